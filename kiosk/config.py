# kiosk/config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Full URL wins, otherwise built from parts
DATABASE_URL = os.getenv("KIOSK_DATABASE_URL") or (
    f"postgresql+asyncpg://{os.getenv('KIOSK_DB_USER', 'kiosk')}:{os.getenv('KIOSK_DB_PASSWORD', 'kiosk')}"
    f"@{os.getenv('KIOSK_DB_HOST', 'localhost')}:{os.getenv('KIOSK_DB_PORT', '5432')}/{os.getenv('KIOSK_DB_NAME', 'kiosk')}"
)
SQL_ECHO = _flag("KIOSK_SQL_ECHO", "false")

# Client cookies (cart, draft) are JWT-signed
SECRET_KEY = os.getenv("KIOSK_SECRET_KEY", "your_secret_key")
ALGORITHM = "HS256"
COOKIE_SECURE = _flag("KIOSK_COOKIE_SECURE", "false")
# Browsers drop a cookie whose name and value exceed this
MAX_COOKIE_BYTES = 4096

# Payment provider
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
PAYMENT_API_URL = os.getenv("KIOSK_PAYMENT_API_URL", "https://api.stripe.com")
PAYMENT_TIMEOUT = float(os.getenv("KIOSK_PAYMENT_TIMEOUT", "5"))
CHECKOUT_LABEL = os.getenv("KIOSK_CHECKOUT_LABEL", "McDowell's")
CURRENCY = os.getenv("KIOSK_CURRENCY", "usd")
VERIFY_PAYMENTS = _flag("KIOSK_VERIFY_PAYMENTS", "true")

# Order rules
MIN_QTY = 1
MAX_QTY = 5

# Views
POLL_INTERVAL_MS = int(os.getenv("KIOSK_POLL_INTERVAL_MS", "1000"))
REDIRECT_DELAY_SECONDS = int(os.getenv("KIOSK_REDIRECT_DELAY_SECONDS", "2"))
PAGE_SIZE = 10
READY_ORDERS_LIMIT = 5

LOG_LEVEL = os.getenv("KIOSK_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("KIOSK_LOG_FILE")
