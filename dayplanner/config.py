import os
import warnings

from dotenv import load_dotenv

load_dotenv()

APP_NAME = os.getenv("APP_NAME", "DayPlanner")
APP_DEBUG = os.getenv("APP_DEBUG", "false").lower() in ("1", "true", "yes")
APP_URL = os.getenv("APP_URL", "http://localhost:8000").rstrip("/")
API_PREFIX = os.getenv("API_PREFIX", "/api").rstrip("/")

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable not set.")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"

# Token lifetimes (minutes)
JWT_TTL_MINUTES = int(os.getenv("JWT_TTL_MINUTES", "60"))
# An expired token can still be exchanged at /refresh within this window from its issue time
JWT_REFRESH_TTL_MINUTES = int(os.getenv("JWT_REFRESH_TTL_MINUTES", "20160"))
EMAIL_VERIFY_TTL_MINUTES = int(os.getenv("EMAIL_VERIFY_TTL_MINUTES", "60"))
PASSWORD_RESET_TTL_MINUTES = int(os.getenv("PASSWORD_RESET_TTL_MINUTES", "60"))

# Public files (profile images) live here and are served under /storage
STORAGE_DIR = os.getenv("STORAGE_DIR", "storage")

# Zoho Mail
ZOHO_CLIENT_ID = os.getenv("ZOHO_CLIENT_ID")
ZOHO_CLIENT_SECRET = os.getenv("ZOHO_CLIENT_SECRET")
ZOHO_REFRESH_TOKEN = os.getenv("ZOHO_REFRESH_TOKEN")
ZOHO_FROM_EMAIL = os.getenv("ZOHO_FROM_EMAIL")
ZOHO_ACCOUNTS_URL = os.getenv("ZOHO_ACCOUNTS_URL", "https://accounts.zoho.com").rstrip("/")
ZOHO_MAIL_API_URL = os.getenv("ZOHO_MAIL_API_URL", "https://mail.zoho.com/api/")
ZOHO_REDIRECT_URI = os.getenv("ZOHO_REDIRECT_URI", f"{APP_URL}/callback")
ZOHO_TIMEOUT = float(os.getenv("ZOHO_TIMEOUT", "15"))
