import logging
import os

import pytest

from app.api.v1.endpoints import admin, surveys
from app.core.config import get_settings
from app.core.logging_config import LOG_FORMAT, daily_log_path, setup_logging
from app.middleware import timing
from app.services import survey as survey_module


@pytest.mark.parametrize("module", [surveys, admin, timing, survey_module])
def test_module_loggers_are_named_after_their_module(module):
    assert module.logger.name == module.__name__


def test_setup_logging_does_not_duplicate_handlers():
    setup_logging()
    setup_logging()

    ours = [h for h in logging.getLogger().handlers if h.formatter and h.formatter._fmt == LOG_FORMAT]
    assert len(ours) == 2
    file_handler = next(h for h in ours if isinstance(h, logging.FileHandler))
    expected = daily_log_path(get_settings().LOG_DIR)
    assert os.path.basename(file_handler.baseFilename) == os.path.basename(expected)
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
