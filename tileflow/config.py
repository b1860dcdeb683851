"""
Client configuration - environment-driven settings.

All settings can be overridden by environment variables:
    TILEFLOW_RULES_URL       Base URL of the rules service
    TILEFLOW_SLIDE_MS        Phase 1 (slide) duration in milliseconds
    TILEFLOW_SETTLE_MS       Phase 2 (settle) duration in milliseconds
    TILEFLOW_NOTIFY_MS       How long error notifications stay visible
    TILEFLOW_HTTP_TIMEOUT    Seconds before a rules-service call gives up (unset = never)
    TILEFLOW_SESSION_IDLE_S  Seconds before an idle API session is ended
    TILEFLOW_LOG_LEVEL       Root log level
    ALLOWED_ORIGINS          Comma-separated CORS origins for the API bridge
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass
class ClientConfig:
    """Settings shared by the client, scheduler and API bridge."""
    rules_url: str = "http://localhost:8080"

    # Animation phases
    slide_ms: int = 120
    settle_ms: int = 160

    # Transient notifications
    notify_ms: int = 3000

    # Transport
    http_timeout: float | None = None

    # API sessions idle longer than this are ended
    session_idle_s: float = 3600

    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a config from TILEFLOW_* environment variables."""
        timeout = os.getenv("TILEFLOW_HTTP_TIMEOUT")
        return cls(
            rules_url=os.getenv("TILEFLOW_RULES_URL", cls.rules_url).rstrip("/"),
            slide_ms=int(os.getenv("TILEFLOW_SLIDE_MS", cls.slide_ms)),
            settle_ms=int(os.getenv("TILEFLOW_SETTLE_MS", cls.settle_ms)),
            notify_ms=int(os.getenv("TILEFLOW_NOTIFY_MS", cls.notify_ms)),
            http_timeout=float(timeout) if timeout else None,
            session_idle_s=float(os.getenv("TILEFLOW_SESSION_IDLE_S", cls.session_idle_s)),
            log_level=os.getenv("TILEFLOW_LOG_LEVEL", cls.log_level).upper(),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        )

    @classmethod
    def instant(cls) -> ClientConfig:
        """Config with zero-length phases (tests, headless replay)."""
        return cls(slide_ms=0, settle_ms=0)


def configure_logging(level: str = "INFO"):
    """Install a root handler once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
