"""Unit tests for logging setup."""

import logging

from app.core.logging import setup_logging


def test_setup_logging_is_idempotent():
    root = logging.getLogger()
    foreign = logging.NullHandler()
    root.addHandler(foreign)
    try:
        setup_logging()
        setup_logging()

        ours = [h for h in root.handlers if getattr(h, "_app_log_handler", False)]
        assert len(ours) == 1
        assert foreign in root.handlers
    finally:
        root.removeHandler(foreign)
