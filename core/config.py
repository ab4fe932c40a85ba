"""
Configuration for the job-hunting tracker.
Values come from the environment (and a .env file, if present).
"""
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from backend.database import DB_PATH, STORAGE_DIR

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseModel):
    """Runtime settings"""
    backend: Literal["local", "supabase"] = "local"
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    db_path: Path = DB_PATH
    storage_dir: Path = STORAGE_DIR
    timezone: str = "Asia/Tokyo"
    deadline_window_days: int = 7
    upcoming_limit: int = 5
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        values = {
            "backend": os.getenv("TRACKER_BACKEND"),
            "supabase_url": os.getenv("SUPABASE_URL"),
            "supabase_anon_key": os.getenv("SUPABASE_ANON_KEY"),
            "db_path": os.getenv("TRACKER_DB_PATH"),
            "storage_dir": os.getenv("TRACKER_STORAGE_DIR"),
            "timezone": os.getenv("TRACKER_TIMEZONE"),
            "deadline_window_days": os.getenv("DEADLINE_WINDOW_DAYS"),
            "upcoming_limit": os.getenv("UPCOMING_LIMIT"),
            "log_level": os.getenv("LOG_LEVEL"),
        }
        settings = cls(**{key: value for key, value in values.items() if value})

        if settings.backend == "supabase" and not (settings.supabase_url and settings.supabase_anon_key):
            raise ValueError(
                "TRACKER_BACKEND=supabase requires SUPABASE_URL and SUPABASE_ANON_KEY to be set."
            )
        return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""
    load_dotenv()
    return Settings.from_env()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level.upper())
