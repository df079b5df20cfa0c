from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO") -> None:
    """Route root logging through a single JSON stream handler."""
    global _handler
    root = logging.getLogger()
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(
            JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"levelname": "level", "asctime": "timestamp"},
            )
        )
    if _handler not in root.handlers:
        root.addHandler(_handler)
    root.setLevel(level)
