import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from mcp_ckan_server import __version__

DEFAULT_CKAN_URL = "https://opendata.swiss/api/3/action"
ACTION_PATH = "/api/3/action"
LOGGER_NAME = "mcp-ckan-server"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(float(raw))
    except (ValueError, OverflowError):
        return default
    return value if value >= 0 else default


def _action_url(url: str) -> str:
    url = url.strip().rstrip("/")
    if not url.endswith(ACTION_PATH):
        url = f"{url}{ACTION_PATH}"
    return url


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read once at startup and never mutated."""

    base_url: str = DEFAULT_CKAN_URL
    enable_sql: bool = False
    timeout: float = 15.0
    user_agent: str = f"ckan-mcp-server/{__version__}"
    max_rows: int = 1000
    default_rows: int = 25
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment (and a .env file if present)"""
        load_dotenv()

        ckan_url = os.getenv("CKAN_URL") or os.getenv("BASE_URL") or DEFAULT_CKAN_URL
        user_agent = (os.getenv("USER_AGENT") or "").strip() or cls.user_agent

        return cls(
            base_url=_action_url(ckan_url),
            enable_sql=os.getenv("ENABLE_SQL", "false").strip().lower() == "true",
            timeout=_env_int("TIMEOUT_MS", 15000) / 1000,
            user_agent=user_agent,
            max_rows=_env_int("MAX_ROWS", 1000),
            default_rows=_env_int("DEFAULT_ROWS", 25),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
            log_file=os.getenv("LOG_FILE") or None,
        )


def configure_logging(settings: Settings) -> logging.Logger:
    # stdout carries the MCP stream, so logs go to a file or stderr only
    level = getattr(logging, settings.log_level, logging.INFO)
    if settings.log_file:
        logging.basicConfig(level=level, filename=settings.log_file)
    else:
        logging.basicConfig(level=level, stream=sys.stderr)
    return logging.getLogger(LOGGER_NAME)
