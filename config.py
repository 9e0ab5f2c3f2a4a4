import os
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / ".env")

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
# Server selection timeout, also bounds /api/health when MongoDB is down
DATABASE_TIMEOUT_MS = int(os.getenv("DATABASE_TIMEOUT_MS", 5000))

# Auth setup
SECRET_KEY = os.getenv("SECRET_KEY", "supersecretkey")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 7 * 24 * 60

PORT = int(os.getenv("PORT", 8000))
ENVIRONMENT = os.getenv("ENVIRONMENT", "production")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

FRONTEND_URL = os.getenv("FRONTEND_URL")
ALLOWED_ORIGINS = [
    origin
    for origin in (
        "http://localhost:5173",
        "http://localhost:8080",
        "http://localhost:3000",
        FRONTEND_URL,
    )
    if origin
]


def is_development() -> bool:
    return ENVIRONMENT == "development"
