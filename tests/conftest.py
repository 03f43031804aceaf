# tests/conftest.py
import os

# env before main is imported (Settings() runs at import time)
os.environ.setdefault("CINEMA_API_URL", "http://cinema.test/api")
os.environ.setdefault("PAYMENT_STUB_DELAY_SEC", "0")

import pytest
from fastapi.testclient import TestClient

from api_clients import CinemaApiError
from auth import AuthContext

import main as main_mod


# --- Fake cinema API ---

class FakeCinemaClient:
    def __init__(self):
        self.replies = []          # queued /chat replies (str or Exception)
        self.chat_calls = []
        self.occupied = {}         # showtime_id -> list | Exception
        self.booking_calls = []
        self.booking_result = {"booking_id": 101}
        self.booking_error = None
        self.bookings = []
        self.movies = {3: {"movie_id": 3, "title": "Dune"}}
        self.showtimes = {3: [{"showtime_id": 7, "start_time": "2025-01-01T13:00:00Z", "cinema_name": "CGV"}]}
        self.users = {"a@b.c": {"token": "tok-1", "user": {"id": 1, "name": "An", "email": "a@b.c"}}}

    def chat(self, message, history, token):
        self.chat_calls.append({"message": message, "history": history, "token": token})
        reply = self.replies.pop(0) if self.replies else "Xin chào, bạn cần gì?"
        if isinstance(reply, Exception):
            raise reply
        return reply

    def occupied_seats(self, showtime_id):
        seats = self.occupied.get(showtime_id, [])
        if isinstance(seats, Exception):
            raise seats
        return list(seats)

    def create_booking(self, showtime_id, seats, token):
        self.booking_calls.append({"showtime_id": showtime_id, "seats": seats, "token": token})
        if self.booking_error:
            raise CinemaApiError(self.booking_error, status=409)
        return dict(self.booking_result)

    def my_bookings(self, token):
        return list(self.bookings)

    def movie(self, movie_id):
        if movie_id not in self.movies:
            raise CinemaApiError("Không tìm thấy phim.", status=404)
        return dict(self.movies[movie_id])

    def movie_showtimes(self, movie_id):
        return [dict(s) for s in self.showtimes.get(movie_id, [])]

    def login(self, email, password):
        if email in self.users and password == "secret":
            return self.users[email]
        return {"message": "Sai email hoặc mật khẩu."}

    def register(self, **fields):
        return {"ok": True, **fields}

    def me(self, token):
        if token != "tok-1":
            raise CinemaApiError("Unauthorized", status=401)
        return {"user_id": 1, "username": "An", "email": "a@b.c", "phone": "0900"}


OFFER_JSON = (
    '[{"showtime_id": 7, "movie_id": 3, "title": "Dune", '
    '"start_time": "2025-01-01T10:00:00Z", "cinema_name": "CGV Lý Thường Kiệt", '
    '"ticket_price": "85000", "features": ["IMAX"]}]'
)


@pytest.fixture
def fake_client():
    return FakeCinemaClient()


@pytest.fixture
def logged_in(fake_client):
    return AuthContext(fake_client, token="tok-1")


@pytest.fixture
def logged_out(fake_client):
    return AuthContext(fake_client)


@pytest.fixture
def app_client(monkeypatch, fake_client):
    monkeypatch.setattr(main_mod, "client", fake_client, raising=True)
    monkeypatch.setattr(main_mod, "STORE", main_mod.MemoryStore(main_mod._new_session), raising=True)
    return TestClient(main_mod.app)


@pytest.fixture
def offer_json():
    return OFFER_JSON
