import os
import logging
from dotenv import load_dotenv

# Load .env from project root
try:
    load_dotenv(dotenv_path=os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".env")))
except Exception:
    try:
        load_dotenv()
    except Exception:
        pass

APP_NAME = os.getenv("APP_NAME", "Storefront Admin")

# Database
DATABASE_URL = (os.getenv("DATABASE_URL", "") or "").strip() or "sqlite:///./storefront.db"

# Payments (Paystack)
PAYSTACK_API_BASE = os.getenv("PAYSTACK_API_BASE", "https://api.paystack.co").rstrip("/")
PAYSTACK_SECRET_KEY = (os.getenv("PAYSTACK_SECRET_KEY", "") or "").strip()
PAYSTACK_TIMEOUT_SEC = float(os.getenv("PAYSTACK_TIMEOUT_SEC", "10"))

# Staff auth tokens
AUTH_JWT_SECRET = (os.getenv("AUTH_JWT_SECRET", "") or os.getenv("SECRET_KEY", "")).strip()
AUTH_JWT_ISSUER = os.getenv("AUTH_JWT_ISSUER", "storefront.admin")
AUTH_JWT_TTL_HOURS = int(os.getenv("AUTH_JWT_TTL_HOURS", "12"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

# When on, settings endpoints require an ADMIN bearer token
ENFORCE_ROLES = (os.getenv("ENFORCE_ROLES", "0") or "").strip().lower() in ("1", "true", "yes")

# Login attempts per client IP per 15 minutes
LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "10"))
REDIS_URL = (os.getenv("REDIS_URL", "") or "").strip()

_default_origins = ",".join([
    "http://localhost:3000",
    "http://127.0.0.1:3000",
])
ALLOWED_ORIGINS = [o.strip() for o in (os.getenv("ALLOWED_ORIGINS") or _default_origins).split(",") if o.strip()]

MAIL_FROM = os.getenv("MAIL_FROM", "")
SMTP_HOST = os.getenv("SMTP_HOST", "")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASS = os.getenv("SMTP_PASS", "")
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₦")

# Logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
logger = logging.getLogger("storefront")
