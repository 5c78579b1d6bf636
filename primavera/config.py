# primavera/config.py

"""
Runtime settings, read from the environment (and a .env file if present)
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

# Load the environment variables
load_dotenv()

# Build paths inside the project like this: os.path.join(BASE_DIR, ...)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _split(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class Settings:
    database_url: str = f"sqlite:///{os.path.join(BASE_DIR, 'database.db')}"
    log_level: str = "INFO"
    google_api_key: str | None = None
    assistant_model: str = "google-gla:gemini-2.5-flash"
    embedding_model: str = "text-embedding-004"
    qdrant_path: str = os.path.join(BASE_DIR, "qdrant_data")
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
            google_api_key=os.getenv("GOOGLE_API_KEY") or None,
            assistant_model=os.getenv("ASSISTANT_MODEL", defaults.assistant_model),
            embedding_model=os.getenv("EMBEDDING_MODEL", defaults.embedding_model),
            qdrant_path=os.getenv("QDRANT_PATH", defaults.qdrant_path),
            cors_origins=_split(os.getenv("CORS_ORIGINS", "*")),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
