"""Runtime configuration for the history service."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///calculator_history.db"
DEFAULT_PORT = 5000


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    database_url: str = DEFAULT_DATABASE_URL
    cors_origins: str = "*"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """
        Build settings from environment variables.

        A .env file (in the working directory unless env_file is given) is
        loaded first; variables already set in the environment win.
        """
        load_dotenv(env_file or find_dotenv(usecwd=True))
        return cls(
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", DEFAULT_PORT)),
            database_url=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            cors_origins=os.environ.get("CORS_ORIGINS", "*"),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
