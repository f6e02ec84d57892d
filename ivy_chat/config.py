"""
Environment-driven configuration for the chat client and its dev endpoint.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from .controller import DEFAULT_BOOKING_URL, DEFAULT_FAILURE_NOTICE

BASE_DIR = Path(__file__).resolve().parent.parent

log = logging.getLogger(__name__)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    def __init__(self) -> None:
        # Stream client
        self.CHAT_STREAM_URL: str = os.getenv("CHAT_STREAM_URL", "http://127.0.0.1:8080/api/chat-stream")
        self.REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
        self.STREAM_CHUNK_SIZE: int = int(os.getenv("STREAM_CHUNK_SIZE", "1024"))
        self.FAILURE_NOTICE: str = os.getenv("FAILURE_NOTICE", DEFAULT_FAILURE_NOTICE)

        # Booking widget
        self.CALENDLY_URL: str = (
            os.getenv("CALENDLY_URL")
            or os.getenv("NEXT_PUBLIC_CALENDLY_URL")
            or DEFAULT_BOOKING_URL
        )

        # Dev endpoint (SSE) feature gate
        self.ENABLE_STREAMING: bool = _flag("ENABLE_STREAMING", "true")
        self.DEV_STREAM_DELAY_SECONDS: float = float(os.getenv("DEV_STREAM_DELAY_SECONDS", "0.05"))
        self.BOOKING_KEYWORDS: List[str] = [
            k.strip().lower()
            for k in os.getenv("BOOKING_KEYWORDS", "book,meeting,schedule,call").split(",")
            if k.strip()
        ]
        self.CORS_ALLOW_ORIGINS: str = os.getenv("CORS_ALLOW_ORIGINS", "").strip()

        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


class DevelopmentConfig(BaseConfig):
    DEBUG: bool = True


class ProductionConfig(BaseConfig):
    DEBUG: bool = False


class TestingConfig(BaseConfig):
    TESTING: bool = True

    def __init__(self) -> None:
        super().__init__()
        self.DEV_STREAM_DELAY_SECONDS = 0.0


def get_config() -> BaseConfig:
    """Get configuration instance directly - no complex manager."""
    env = os.getenv("APP_ENV", os.getenv("FLASK_ENV", "development")).lower()
    mapping = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
        "test": TestingConfig,
    }
    config_class = mapping.get(env, DevelopmentConfig)
    cfg = config_class()

    if not hasattr(get_config, "_logged_startup"):
        log.info(f"CONFIG_STARTUP | env={env} | config_class={config_class.__name__}")
        log.info(f"STREAM_CONFIG | url={cfg.CHAT_STREAM_URL} | timeout={cfg.REQUEST_TIMEOUT_SECONDS}s | chunk={cfg.STREAM_CHUNK_SIZE}")
        log.info(f"DEV_ENDPOINT_CONFIG | enable_streaming={cfg.ENABLE_STREAMING} | delay={cfg.DEV_STREAM_DELAY_SECONDS}s")
        get_config._logged_startup = True

    return cfg
