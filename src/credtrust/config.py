"""
credtrust.config — Environment-driven settings and structured logging.

Configuration via environment:
    CREDTRUST_ADMIN         — initial admin identity (required for from_env)
    CREDTRUST_DB_PATH       — SQLite file for persistent state (empty = in-memory)
    CREDTRUST_LOG_LEVEL     — log level for the credtrust logger (default INFO)
    CREDTRUST_START_HEIGHT  — initial height of the network clock (default 0)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Settings:
    admin: str
    db_path: str = ""
    log_level: str = "INFO"
    start_height: int = 0

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        env = os.environ if environ is None else environ
        admin = env.get("CREDTRUST_ADMIN", "")
        if not admin:
            raise ValueError("CREDTRUST_ADMIN must be set")
        return cls(
            admin=admin,
            db_path=env.get("CREDTRUST_DB_PATH", ""),
            log_level=env.get("CREDTRUST_LOG_LEVEL", "INFO"),
            start_height=int(env.get("CREDTRUST_START_HEIGHT", "0")),
        )


# ─── Structured JSON logging ──────────────────────────────────────

class HeightFilter(logging.Filter):
    """Stamp every record with the network's current height."""

    def __init__(self, clock=None):
        super().__init__()
        self.clock = clock

    def filter(self, record):
        record.height = self.clock.current() if self.clock is not None else None
        return True


def setup_logging(level: str = "INFO", clock=None) -> logging.Logger:
    """Configure JSON structured logging for the credtrust logger."""
    from pythonjsonlogger.json import JsonFormatter

    logger = logging.getLogger("credtrust")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for existing in logger.handlers:
        for f in existing.filters:
            if isinstance(f, HeightFilter):
                f.clock = clock

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s %(height)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
        handler.setFormatter(formatter)
        handler.addFilter(HeightFilter(clock))
        logger.addHandler(handler)

    return logger
