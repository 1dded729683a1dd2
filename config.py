"""
Runtime configuration.

Values come from the environment, after an optional .env file in the
working directory has been loaded.
"""
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "devconnector"
    jwt_secret: str = "mysecrettoken"
    jwt_expires_in: int = 360000
    github_client_id: Optional[str] = None
    github_secret: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    github_timeout: float = 10.0
    log_level: str = "INFO"
    port: int = 5000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@lru_cache
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        database_name=os.getenv("DATABASE_NAME", Settings.database_name),
        jwt_secret=os.getenv("JWT_SECRET", Settings.jwt_secret),
        jwt_expires_in=int(os.getenv("JWT_EXPIRES_IN", Settings.jwt_expires_in)),
        github_client_id=os.getenv("GITHUB_CLIENT_ID") or None,
        github_secret=os.getenv("GITHUB_SECRET") or None,
        github_api_url=os.getenv("GITHUB_API_URL", Settings.github_api_url).rstrip("/"),
        github_timeout=float(os.getenv("GITHUB_TIMEOUT", Settings.github_timeout)),
        log_level=os.getenv("LOG_LEVEL", Settings.log_level).upper(),
        port=int(os.getenv("PORT", Settings.port)),
        cors_origins=_split(os.getenv("CORS_ORIGINS", "*")),
    )
