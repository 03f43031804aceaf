import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import Settings
from constants import UI_TEXT

logger = logging.getLogger(__name__)


class CinemaApiError(RuntimeError):
    """Non-2xx answer or transport failure from the cinema API.

    ``message`` is the server-provided ``{"message": ...}`` when there is one,
    so callers can show it verbatim.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class BaseClient:
    def __init__(self, base_url: str, timeout: int = 10):
        if not base_url:
            raise RuntimeError("Missing base URL for the cinema API (CINEMA_API_URL)")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.s = requests.Session()
        self.s.headers.update({"Accept": "application/json"})

        # status and read retries only apply to idempotent methods (not POST)
        retries = Retry(total=3, backoff_factor=0.3, status_forcelist=[502, 503, 504])
        self.s.mount("https://", HTTPAdapter(max_retries=retries))
        self.s.mount("http://", HTTPAdapter(max_retries=retries))

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @staticmethod
    def _auth(token: Optional[str]) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _parse(self, resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    def _request(self, method: str, path: str, *, token: Optional[str] = None,
                 fallback_error: str = UI_TEXT["bad_upstream"], **kwargs) -> Any:
        try:
            resp = self.s.request(
                method, self._url(path), headers=self._auth(token), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise CinemaApiError(fallback_error) from exc

        data = self._parse(resp)
        if not resp.ok:
            message = data.get("message") if isinstance(data, dict) else None
            logger.warning("%s %s -> HTTP %s (%s)", method, path, resp.status_code, message)
            raise CinemaApiError(message or fallback_error, status=resp.status_code)
        return data

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return self._request("GET", path, params=params, **kwargs)

    def _post(self, path: str, data: Dict[str, Any], **kwargs) -> Any:
        return self._request("POST", path, json=data, **kwargs)


# ===================== CINEMA API =====================

class CinemaClient(BaseClient):
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None,
                 settings: Optional[Settings] = None):
        settings = settings or Settings()
        super().__init__(
            base_url or settings.CINEMA_API_URL,
            timeout=timeout or settings.HTTP_TIMEOUT_SEC,
        )

    # ---- chat ----

    def chat(self, message: str, history: List[Dict[str, Any]], token: Optional[str]) -> str:
        data = self._post(
            "chat", {"message": message, "history": history}, token=token,
        )
        if isinstance(data, dict) and isinstance(data.get("reply"), str):
            return data["reply"]
        raise CinemaApiError(UI_TEXT["bad_upstream"])

    # ---- seats & bookings ----

    def occupied_seats(self, showtime_id: Any) -> List[str]:
        data = self._get(
            f"showtimes/{showtime_id}/occupied-seats",
            fallback_error=UI_TEXT["seats_load_failed"],
        )
        if not isinstance(data, list):
            raise CinemaApiError(UI_TEXT["seats_load_failed"])
        return [str(s) for s in data]

    def create_booking(self, showtime_id: Any, seats: List[str], token: Optional[str]) -> Dict[str, Any]:
        data = self._post(
            "bookings",
            {"showtime_id": showtime_id, "seats": list(seats)},
            token=token,
            fallback_error=UI_TEXT["booking_failed"],
        )
        return data if isinstance(data, dict) else {"result": data}

    def my_bookings(self, token: Optional[str]) -> List[Dict[str, Any]]:
        data = self._get(
            "users/me/bookings", token=token, fallback_error=UI_TEXT["tickets_load_failed"],
        )
        return data if isinstance(data, list) else []

    # ---- movies ----

    def movie(self, movie_id: Any) -> Dict[str, Any]:
        return self._get(f"movies/{movie_id}") or {}

    def movie_showtimes(self, movie_id: Any) -> List[Dict[str, Any]]:
        data = self._get(f"movies/{movie_id}/showtimes")
        return data if isinstance(data, list) else []

    # ---- auth ----

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._post(
            "auth/login", {"email": email, "password": password},
            fallback_error=UI_TEXT["login_failed"],
        )
        return data if isinstance(data, dict) else {}

    def register(self, **fields: Any) -> Dict[str, Any]:
        data = self._post("auth/register", fields)
        return data if isinstance(data, dict) else {}

    def me(self, token: str) -> Dict[str, Any]:
        data = self._get("users/me", token=token)
        return data if isinstance(data, dict) else {}
