"""Logging initialization for the API and the local render script."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from dubline.config import LoggingSettings, Settings

# httpx logs every request line at INFO, which includes the narration text in the
# query string of the Google endpoint.
_NOISY_LOGGERS = ("httpx", "httpcore", "edge_tts")


def _file_handler(cfg: LoggingSettings, log_dir: str) -> RotatingFileHandler:
    file_path = Path(str(cfg.file))
    if not file_path.is_absolute():
        file_path = Path(log_dir) / file_path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        file_path,
        maxBytes=int(cfg.max_bytes),
        backupCount=int(cfg.backup_count),
        encoding="utf-8",
    )


def setup_logging(settings: Settings) -> logging.Logger:
    """Attach console/file handlers to the `dubline` logger tree.

    Idempotent. Framework loggers (uvicorn, fastapi) are left alone; the HTTP
    client loggers are capped at `LOG_THIRD_PARTY_LEVEL`.
    """
    logger = logging.getLogger("dubline")
    if getattr(logger, "_dubline_configured", False):
        return logger

    cfg = settings.logging
    level = logging.getLevelName(str(cfg.level or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO
    formatter = logging.Formatter(fmt=str(cfg.format), datefmt=str(cfg.datefmt))

    handlers: list[logging.Handler] = []
    if cfg.console:
        handlers.append(logging.StreamHandler())
    if cfg.file:
        handlers.append(_file_handler(cfg, settings.log_dir))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logger.setLevel(level)
    logger.handlers = handlers
    logger.propagate = False

    third_party = logging.getLevelName(str(cfg.third_party_level or "WARNING").upper())
    if isinstance(third_party, int):
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(third_party)

    setattr(logger, "_dubline_configured", True)
    return logger
