from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Optional


ROOT_LOGGER = "sightline"


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line:
      { "t": 169..., "lvl": "WARNING", "name": "sightline.fusion",
        "msg": "source failed", "extra": {"source": "registry", ...} }
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload["extra"] = extra
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # enums, coordinates etc. fall back to str()
        return json.dumps(payload, ensure_ascii=False, default=str)


def _resolve_level(level: Optional[str]) -> int:
    lvl_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    lvl = logging.getLevelName(lvl_name)
    return lvl if isinstance(lvl, int) else logging.INFO


def setup_logging(level: Optional[str] = None) -> None:
    """
    Attach the JSON handler to the `sightline` logger tree.

    Level precedence: explicit `level` arg, then env LOG_LEVEL, then INFO.
    Safe to call repeatedly; later calls with an explicit level only change
    the level. The root logger is left alone so host applications keep
    their own handlers.
    """
    log = logging.getLogger(ROOT_LOGGER)
    if getattr(log, "_sightline_configured", False):
        if level is not None:
            log.setLevel(_resolve_level(level))
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    log.handlers.clear()
    log.addHandler(handler)
    log.setLevel(_resolve_level(level))
    log._sightline_configured = True  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    """Module logger under the `sightline.` namespace; ensures it is configured."""
    setup_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
