import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel


DEFAULT_FRONTEND_URL = "http://localhost:3000"


class Settings(BaseModel):
    app_env: str = "development"
    log_level: str = "info"
    cors_origins: List[str] = []
    spotify_client_id: str | None = None
    spotify_client_secret: str | None = None
    backend_url: str = "http://localhost:3001"
    frontend_url: str = DEFAULT_FRONTEND_URL
    host: str = "0.0.0.0"
    port: int = 3001
    outbox_size: int = 256
    http_timeout_s: float = 10.0

    @property
    def redirect_uri(self) -> str:
        return f"{self.backend_url.rstrip('/')}/callback"


@lru_cache
def get_settings() -> Settings:
    # Load .env if present (noop if already loaded)
    load_dotenv()
    frontend_url = os.getenv("FRONTEND_URL", DEFAULT_FRONTEND_URL)
    origins = os.getenv("CORS_ORIGINS", "")
    origins_list = [o.strip() for o in origins.split(",") if o.strip()]
    # The local dev frontend and the configured frontend are always allowed
    for origin in (DEFAULT_FRONTEND_URL, frontend_url):
        if origin not in origins_list:
            origins_list.append(origin)
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        log_level=os.getenv("LOG_LEVEL", "info"),
        cors_origins=origins_list,
        spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID"),
        spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET"),
        backend_url=os.getenv("BACKEND_URL", "http://localhost:3001"),
        frontend_url=frontend_url,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001")),
        outbox_size=int(os.getenv("OUTBOX_SIZE", "256")),
        http_timeout_s=float(os.getenv("HTTP_TIMEOUT_S", "10.0")),
    )
