import os
from pathlib import Path


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


MONGO_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DB_NAME = os.getenv("DATABASE_NAME", "appdb")

SECRET_KEY = os.getenv("SECRET_KEY", "secret-dev-key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 14))  # 14 days

# When both reciprocal likes carry a like type, they must agree to form a match
MATCH_REQUIRES_SAME_LIKE_TYPE = _flag("MATCH_REQUIRES_SAME_LIKE_TYPE", "true")

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 20))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", 100))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = Path(os.getenv("LOG_FILE", "./logs/app.log"))

PORT = int(os.getenv("PORT", 8000))
