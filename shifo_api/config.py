import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

APP_NAME = "shifo-api"
APP_VERSION = "1.0.0"
API_PREFIX = "/v1"

# MongoDB
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME", "shifo")
MONGODB_SERVER_SELECTION_TIMEOUT_MS = int(os.getenv("MONGODB_SERVER_SELECTION_TIMEOUT_MS", "5000"))

# JWT - CRITICAL: No default secret in production
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    import warnings

    warnings.warn(
        "JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    JWT_SECRET = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = "HS256"
JWT_ISSUER = os.getenv("JWT_ISSUER", "api-main")
# Accepts "<n>s", "<n>m", "<n>h" or "<n>d" (e.g. "7d")
JWT_EXPIRES_IN = os.getenv("JWT_EXPIRES_IN", "7d")

# Password hashing cost
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

# Google sign-in for patients (optional - endpoint returns 400 when unset)
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")

# Telegram landing-page notifications (optional)
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_GROUP_CHAT_ID = os.getenv("TELEGRAM_GROUP_CHAT_ID")

# Booking date/time strings are interpreted in this zone
CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "Asia/Tashkent")

# CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:3001,http://localhost:5173",
).split(",")

# Rate limiting on public login endpoints (Redis)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "false").lower() == "true"
REDIS_URL = os.getenv("REDIS_URL")
