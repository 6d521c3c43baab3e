import os

from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY", "my_super_secret_fallback")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ============================================================================
# TMDB
# ============================================================================
TMDB_API_KEY = os.getenv("TMDB_API_KEY", "").strip()
TMDB_BASE_URL = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3").rstrip("/")
TMDB_IMAGE_BASE_URL = os.getenv("TMDB_IMAGE_BASE_URL", "https://image.tmdb.org/t/p/w500").rstrip("/")
TMDB_TIMEOUT = float(os.getenv("TMDB_TIMEOUT", "10"))

# ============================================================================
# AUTH
# ============================================================================
JWT_SECRET = os.getenv("JWT_SECRET", "supersecret")
JWT_EXPIRES_SECONDS = int(os.getenv("JWT_EXPIRES_SECONDS", "3600"))
COOKIE_SECURE = os.getenv(
    "COOKIE_SECURE", "true" if os.getenv("FLASK_ENV") == "production" else "false"
).lower() in ("1", "true", "yes")

# Role carried by tokens issued at login; the dashboard requires it.
CLIENT_ROLE = "client"

# ============================================================================
# AWS DYNAMODB
# ============================================================================
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
DYNAMODB_ENDPOINT_URL = os.getenv("DYNAMODB_ENDPOINT_URL") or None
TABLE_PREFIX = os.getenv("TABLE_PREFIX", "CineScope_")

USERS_TABLE = TABLE_PREFIX + "Users"
MOVIES_TABLE = TABLE_PREFIX + "Movies"
SEARCH_LOGS_TABLE = TABLE_PREFIX + "SearchLogs"
