from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from auth_server.logging_setup import setup_logging


def test_setup_logging_installs_one_json_handler():
    root = logging.getLogger()
    original_level = root.level

    setup_logging("DEBUG")
    setup_logging("WARNING")

    json_handlers = [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]
    assert len(json_handlers) == 1
    assert root.level == logging.WARNING
    root.setLevel(original_level)
