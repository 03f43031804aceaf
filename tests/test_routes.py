# tests/test_routes.py

import threading

import main
from api_clients import CinemaApiError
from seat_map import SeatSelection

SID = {"X-Session-Id": "t1"}


def login(app_client, headers=SID):
    r = app_client.post("/auth/login", json={"email": "a@b.c", "password": "secret"}, headers=headers)
    assert r.status_code == 200
    return r


def start_seats(app_client, showtime_id=7):
    return app_client.post("/seat-selection/start", headers=SID, json={
        "movie": {"movie_id": 3, "title": "Dune"},
        "showtime": {"showtime_id": showtime_id, "cinema_name": "CGV"},
        "format": "2D",
    })


def test_healthz(app_client):
    resp = app_client.get("/healthz")
    assert resp.status_code == 200
    assert resp.text == "OK"


def test_bad_login(app_client):
    r = app_client.post("/auth/login", json={"email": "a@b.c", "password": "nope"}, headers=SID)
    assert r.status_code == 401
    assert r.json()["error"] == "Sai email hoặc mật khẩu."


def test_chat_requires_login(app_client, fake_client):
    r = app_client.post("/chat", json={"message": "hi"}, headers=SID)
    assert r.status_code == 200
    assert "đăng nhập" in r.json()["reply"]
    assert fake_client.chat_calls == []


def test_chat_to_seat_selection(app_client, fake_client, offer_json):
    login(app_client)
    fake_client.replies.append(offer_json)
    data = app_client.post("/chat", json={"message": "Dune"}, headers=SID).json()
    assert data["booking_data"]["showtime_id"] == 7

    r = app_client.post("/chat/book", json={"turn_id": data["turn_id"]}, headers=SID)
    assert r.json()["route"] == "/movie-detail/3/seat-selection"

    history = app_client.get("/chat/history", headers=SID).json()["turns"]
    assert [t["sender"] for t in history] == ["bot", "user", "bot"]


def test_chat_upstream_error_is_apology(app_client, fake_client):
    login(app_client)
    fake_client.replies.append(CinemaApiError("down", status=503))
    data = app_client.post("/chat", json={"message": "hi"}, headers=SID).json()
    assert data["reply"].startswith("Xin lỗi, đã có lỗi xảy ra.")


def test_empty_chat_message(app_client):
    assert app_client.post("/chat", json={"message": "  "}, headers=SID).status_code == 400


def test_seat_selection_fail_open(app_client, fake_client):
    fake_client.occupied[7] = CinemaApiError("down", status=500)
    data = start_seats(app_client).json()
    assert data["loading_failed"] is True
    assert all(c["selectable"] for row in data["rows"] for c in row)


def test_seat_selection_missing_showtime(app_client):
    r = app_client.post("/seat-selection/start", headers=SID, json={"movie": {"movie_id": 3}, "showtime": {}})
    assert r.status_code == 422


def test_full_booking_flow(app_client, fake_client):
    login(app_client)
    fake_client.occupied[7] = ["A2"]
    start_seats(app_client)
    app_client.post("/seat-selection/toggle", json={"seat_id": "A2"}, headers=SID)
    app_client.post("/seat-selection/toggle", json={"seat_id": "A1"}, headers=SID)
    view = app_client.post("/seat-selection/toggle", json={"seat_id": "H5"}, headers=SID).json()
    assert view["selected"] == ["A1", "H5"]
    assert view["total"] == 205000

    cont = app_client.post("/seat-selection/continue", headers=SID).json()
    assert cont["route"] == "/checkout"
    assert cont["charged_total"] == 215000

    done = app_client.post("/checkout", headers=SID).json()
    assert done["ok"] is True
    assert done["state"] == "success"
    assert fake_client.booking_calls[0]["seats"] == ["A1", "H5"]
    # selection is gone after a successful checkout
    assert app_client.get("/seat-selection", headers=SID).status_code == 404


def test_checkout_requires_login(app_client, fake_client):
    start_seats(app_client)
    app_client.post("/seat-selection/toggle", json={"seat_id": "A1"}, headers=SID)
    app_client.post("/seat-selection/continue", headers=SID)
    r = app_client.post("/checkout", headers=SID)
    assert r.status_code == 401
    assert fake_client.booking_calls == []


def test_checkout_conflict_shows_server_message(app_client, fake_client):
    login(app_client)
    fake_client.booking_error = "Ghế A1 vừa được người khác đặt."
    start_seats(app_client)
    app_client.post("/seat-selection/toggle", json={"seat_id": "A1"}, headers=SID)
    app_client.post("/seat-selection/continue", headers=SID)
    r = app_client.post("/checkout", headers=SID)
    assert r.status_code == 400
    assert r.json()["error"] == "Ghế A1 vừa được người khác đặt."
    assert r.json()["state"] == "failed"


def test_my_tickets(app_client, fake_client):
    assert app_client.get("/my-tickets", headers=SID).status_code == 401
    login(app_client)
    fake_client.bookings = [{"booking_id": 1, "start_time": "2000-01-01T00:00:00Z", "seats": ["A1"]}]
    data = app_client.get("/my-tickets", headers=SID).json()
    assert data["upcoming"] == []
    assert data["used"][0]["seats"] == "A1"


def test_chat_reset_restores_greeting(app_client, fake_client):
    login(app_client)
    app_client.post("/chat", json={"message": "hi"}, headers=SID)
    assert app_client.post("/chat/reset", headers=SID).json()["ok"] is True
    turns = app_client.get("/chat/history", headers=SID).json()["turns"]
    assert [t["sender"] for t in turns] == ["bot"]


def hold_booking(fake_client):
    """Make create_booking block until the returned event is set."""
    entered, release = threading.Event(), threading.Event()
    original = fake_client.create_booking

    def slow_booking(showtime_id, seats, token):
        entered.set()
        release.wait(5)
        return original(showtime_id, seats, token)

    fake_client.create_booking = slow_booking
    return entered, release


def ready_for_checkout(app_client, seat="A1"):
    login(app_client)
    start_seats(app_client)
    app_client.post("/seat-selection/toggle", json={"seat_id": seat}, headers=SID)
    assert app_client.post("/seat-selection/continue", headers=SID).status_code == 200


def test_seat_page_frozen_while_checkout_runs(app_client, fake_client):
    ready_for_checkout(app_client)
    entered, release = hold_booking(fake_client)
    results = []
    t = threading.Thread(target=lambda: results.append(app_client.post("/checkout", headers=SID)))
    t.start()
    assert entered.wait(5)

    assert app_client.post("/seat-selection/continue", headers=SID).status_code == 409
    assert app_client.post("/checkout", headers=SID).status_code == 409
    assert start_seats(app_client, showtime_id=9).status_code == 409
    r = app_client.post("/seat-selection/toggle", json={"seat_id": "B2"}, headers=SID)
    assert r.status_code == 409
    assert r.json()["state"] == "processing"
    assert app_client.post("/seat-selection/clear", headers=SID).status_code == 409

    release.set()
    t.join(5)
    assert results[0].status_code == 200
    assert len(fake_client.booking_calls) == 1


def test_late_checkout_success_keeps_newer_selection(app_client, fake_client):
    ready_for_checkout(app_client)
    entered, release = hold_booking(fake_client)
    results = []
    t = threading.Thread(target=lambda: results.append(app_client.post("/checkout", headers=SID)))
    t.start()
    assert entered.wait(5)

    # the session moved on to another showtime before the booking came back
    st = main.STORE.get("t1")
    newer = SeatSelection.start(fake_client, 9)
    st.selection, st.payload = newer, None

    release.set()
    t.join(5)
    assert results[0].json()["ok"] is True
    assert st.selection is newer


def test_checkout_again_after_new_continue(app_client, fake_client):
    ready_for_checkout(app_client)
    assert app_client.post("/checkout", headers=SID).json()["ok"] is True
    ready_for_checkout(app_client, seat="B3")
    assert app_client.post("/checkout", headers=SID).json()["ok"] is True
    assert [c["seats"] for c in fake_client.booking_calls] == [["A1"], ["B3"]]


def test_clear_selection(app_client):
    start_seats(app_client)
    app_client.post("/seat-selection/toggle", json={"seat_id": "A1"}, headers=SID)
    data = app_client.post("/seat-selection/clear", headers=SID).json()
    assert data["selected"] == [] and data["total"] == 0


def test_chat_busy_while_reply_pending(app_client, fake_client):
    login(app_client)
    entered, release = threading.Event(), threading.Event()
    original = fake_client.chat

    def slow_chat(message, history, token):
        entered.set()
        release.wait(5)
        return original(message, history, token)

    fake_client.chat = slow_chat
    results = []
    t = threading.Thread(target=lambda: results.append(
        app_client.post("/chat", json={"message": "Dune"}, headers=SID)))
    t.start()
    assert entered.wait(5)

    r = app_client.post("/chat", json={"message": "nữa"}, headers=SID)
    assert r.status_code == 409

    release.set()
    t.join(5)
    assert results[0].status_code == 200
    assert [c["message"] for c in fake_client.chat_calls] == ["Dune"]


def test_register_and_resume_session(app_client):
    r = app_client.post("/auth/register", headers=SID,
                        json={"name": "Bình", "email": "b@c.d", "password": "pw", "phone": "0911"})
    assert r.json()["data"]["phone"] == "0911"

    assert app_client.get("/auth/me", headers=SID).status_code == 401
    login(app_client)
    me = app_client.get("/auth/me", headers=SID).json()
    assert me["user"]["phone"] == "0900"


def test_movie_showtimes_local_time(app_client):
    data = app_client.get("/movies/3/showtimes").json()
    assert data["showtimes"][0]["time"] == "20:00"
    assert data["showtimes"][0]["date"] == "01/01/2025"
    assert app_client.get("/movies/3").json()["movie"]["title"] == "Dune"
    assert app_client.get("/movies/99").status_code == 404


def test_book_from_movie_detail(app_client):
    r = app_client.post("/movies/3/book", json={"title": "Dune", "showtime": {"showtime_id": 7}, "format": "IMAX"})
    data = r.json()
    assert data["route"] == "/movie-detail/3/seat-selection"
    assert data["state"]["format"] == "IMAX"
    assert app_client.post("/movies/3/book", json={"showtime": {}}).status_code == 422
