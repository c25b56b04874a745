from __future__ import annotations

import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _normalize_db_url(url: str) -> str:
    # Render sometimes hands out postgres://; normalize to postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    # Force psycopg3 driver if using Postgres
    if url.startswith("postgresql://") and "+psycopg" not in url:
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


class Settings(BaseModel):
    database_url: str = "sqlite:///./iqtest.db"
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expires_days: int = 30
    log_level: str = "INFO"
    cors_origins: List[str] = []
    question_bank_path: str = ""


@lru_cache
def get_settings() -> Settings:
    """Read the process configuration once; rotating JWT_SECRET needs a restart."""
    origins = os.getenv("CORS_ORIGINS", "")
    return Settings(
        database_url=_normalize_db_url(os.getenv("DATABASE_URL", "sqlite:///./iqtest.db")),
        jwt_secret=os.getenv("JWT_SECRET", ""),
        jwt_expires_days=int(os.getenv("JWT_EXPIRES_DAYS", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        question_bank_path=os.getenv("QUESTION_BANK_PATH", ""),
    )
