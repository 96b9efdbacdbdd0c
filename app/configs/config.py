# config.py
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv, find_dotenv
import os

# --- Load .env (doesn't override real env vars) ---
load_dotenv(find_dotenv(filename=".env"), override=False)

APP_DIR = Path(__file__).resolve().parents[1]

# --- tiny env helper ---
def env(name, default=None, *, required=False, cast=str):
    v = os.getenv(name, default)
    if required and (v is None or v == ""):
        raise RuntimeError(f"{name} is required but missing")
    if v is None:
        return None
    if cast is bool:
        return str(v).lower() in {"1", "true", "yes", "on"}
    if cast is int:
        return int(v)
    if cast is float:
        return float(v)
    return v  # str


@dataclass(frozen=True)
class Settings:
    SECRET_KEY: str
    DATABASE_URL: str = "sqlite:///./snippetbox.db"
    ALGORITHM: str = "HS256"
    HOST: str = "127.0.0.1"
    PORT: int = 4000
    DEV: bool = True

    # sessions / csrf
    SESSION_COOKIE_NAME: str = "session"
    SESSION_LIFETIME_HOURS: int = 12
    CSRF_COOKIE_NAME: str = "csrf_token"
    CSRF_COOKIE_MAX_AGE: int = 365 * 24 * 3600

    # filesystem
    TEMPLATES_DIR: str = str(APP_DIR / "templates")
    STATIC_DIR: str = str(APP_DIR / "static")

    # logging
    LOG_DIR: str = ""
    LOG_NAME: str = "snippetbox.log"
    LOG_LEVEL: str = "INFO"

    # limits
    DB_TIMEOUT_SECONDS: float = 5.0
    MAX_FORM_BYTES: int = 64 * 1024

    @property
    def session_lifetime_seconds(self) -> int:
        return self.SESSION_LIFETIME_HOURS * 3600

    @property
    def cookie_secure(self) -> bool:
        return not self.DEV


def load_settings() -> Settings:
    """Reads every setting from the environment (after .env)."""
    return Settings(
        SECRET_KEY=env("SECRET_KEY", required=True),
        DATABASE_URL=env("DATABASE_URL", Settings.DATABASE_URL),
        ALGORITHM=env("ALGORITHM", Settings.ALGORITHM),
        HOST=env("HOST", Settings.HOST),
        PORT=env("PORT", Settings.PORT, cast=int),
        DEV=env("DEV", "true", cast=bool),
        SESSION_COOKIE_NAME=env("SESSION_COOKIE_NAME", Settings.SESSION_COOKIE_NAME),
        SESSION_LIFETIME_HOURS=env("SESSION_LIFETIME_HOURS", Settings.SESSION_LIFETIME_HOURS, cast=int),
        CSRF_COOKIE_NAME=env("CSRF_COOKIE_NAME", Settings.CSRF_COOKIE_NAME),
        TEMPLATES_DIR=env("TEMPLATES_DIR", Settings.TEMPLATES_DIR),
        STATIC_DIR=env("STATIC_DIR", Settings.STATIC_DIR),
        LOG_DIR=env("LOG_DIR", Settings.LOG_DIR),
        LOG_NAME=env("LOG_NAME", Settings.LOG_NAME),
        LOG_LEVEL=env("LOG_LEVEL", Settings.LOG_LEVEL),
        DB_TIMEOUT_SECONDS=env("DB_TIMEOUT_SECONDS", Settings.DB_TIMEOUT_SECONDS, cast=float),
        MAX_FORM_BYTES=env("MAX_FORM_BYTES", Settings.MAX_FORM_BYTES, cast=int),
    )


__all__ = ["Settings", "load_settings", "env"]
