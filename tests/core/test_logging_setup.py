from __future__ import annotations

import logging

from bizsuite.main import HANDLER_NAME, configure_logging


def test_configure_logging_keeps_foreign_handlers_and_installs_one_of_its_own():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    foreign = logging.NullHandler()
    root.addHandler(foreign)
    try:
        configure_logging("debug")
        configure_logging("INFO")

        ours = [h for h in root.handlers if h.get_name() == HANDLER_NAME]
        assert foreign in root.handlers
        assert len(ours) == 1
        assert root.level == logging.INFO
    finally:
        for handler in list(root.handlers):
            if handler not in saved_handlers:
                root.removeHandler(handler)
        root.setLevel(saved_level)
