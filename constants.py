# constants.py
# -*- coding: utf-8 -*-

# ==============================
# 1) Seat grid & price table
# ==============================

ROWS = ("A", "B", "C", "D", "E", "F", "G", "H", "I", "J")
SEATS_PER_ROW = 12

VIP_ROWS = frozenset({"H", "I", "J"})
COUPLE_SEAT_NUMBERS = frozenset({5, 6})

TICKET_PRICES = {
    "standard": 85_000,
    "vip": 120_000,
    "couple": 200_000,
}

MAX_SEATS_PER_BOOKING = 8
SERVICE_FEE = 10_000

DEFAULT_FORMAT = "2D"

# ==============================
# 2) Routes (navigation intents)
# ==============================

SEAT_SELECTION_ROUTE = "/movie-detail/{movie_id}/seat-selection"
CHECKOUT_ROUTE = "/checkout"
MY_TICKETS_ROUTE = "/my-tickets"

# ==============================
# 3) Stage triggers
# ==============================
# Must stay in sync with the phrasing of the chat backend's reply templates:
# a bot turn containing any of these asks the user to pick / confirm a showtime.

CONFIRMATION_TRIGGERS = (
    "suất nào",
    "chọn suất này không",
)

# ==============================
# 4) UI text
# ==============================

UI_TEXT = {
    "greeting": (
        "Xin chào! 🍿 Tôi là CGV-Bot. Tôi có thể giúp bạn tra cứu suất chiếu hoặc đặt vé. "
        "Bạn muốn xem phim gì hôm nay?"
    ),
    "login_required": "Vui lòng đăng nhập để tôi có thể hỗ trợ bạn tốt hơn nhé! 🔒",
    "chat_error": "Xin lỗi, đã có lỗi xảy ra. Vui lòng thử lại. 🛠️",
    "checkout_login_required": "Bạn cần đăng nhập để hoàn tất đặt vé.",
    "booking_failed": "Đặt vé không thành công.",
    "checkout_in_progress": "Đang xử lý thanh toán, vui lòng đợi.",
    "seats_load_failed": "Lỗi mạng khi tải dữ liệu ghế.",
    "bad_upstream": "Phản hồi từ server không tốt.",
    "booking_success": "Vé của bạn đã được đặt. Vui lòng kiểm tra email và mục \"Vé của tôi\".",
    "showtime_missing": "Không tìm thấy thông tin suất chiếu. Vui lòng thử lại.",
    "tickets_load_failed": "Không thể tải danh sách vé.",
    "login_failed": "Lỗi kết nối khi đăng nhập.",
    "message_too_long": "Tin nhắn quá dài.",
    "message_empty": "Tin nhắn trống.",
    "chat_busy": "Đang chờ phản hồi, vui lòng đợi.",
    "no_seats_selected": "Chưa chọn ghế nào.",
}

PLACEHOLDERS = {
    "time": "[giờ không xác định]",
    "title": "[phim không xác định]",
    "cinema": "[rạp không xác định]",
}

OFFER_CONFIRMED_TEMPLATE = (
    "OK! Đã chọn suất **{title}** lúc **{time}** tại **{cinema}**.\n\n"
    "Mời bạn nhấn nút bên dưới để tiếp tục chọn ghế."
)

OFFER_FOUND_TEMPLATE = (
    "Tuyệt vời! Tôi đã tìm thấy suất chiếu **{title}** lúc **{time}** tại **{cinema}**.\n\n"
    "Bạn có muốn đặt vé cho suất này không?"
)
