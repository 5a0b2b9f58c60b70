# File: tests/test_logger.py
import logging
from logging.handlers import RotatingFileHandler

import pytest

from goal_scout.logger import LOGGER_NAME, configure, init_logging, logger


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    init_logging()


def test_shared_logger_is_named_and_isolated():
    assert logger is logging.getLogger(LOGGER_NAME)
    assert logger.propagate is False


def test_file_output(tmp_path):
    log_file = tmp_path / "run.log"
    lg = configure(level="DEBUG", log_file=log_file, log_format="%(levelname)s %(message)s")

    lg.debug("fetched %s", "https://x.test/")
    for handler in lg.handlers:
        handler.flush()

    assert [type(h) for h in lg.handlers] == [logging.StreamHandler, RotatingFileHandler]
    assert log_file.read_text(encoding="utf-8").strip() == "DEBUG fetched https://x.test/"


def test_reconfigure_replaces_handlers(tmp_path):
    configure(log_file=tmp_path / "a.log")
    lg = init_logging("WARNING")

    assert len(lg.handlers) == 1
    assert lg.level == logging.WARNING


def test_append_keeps_existing_handlers():
    init_logging()
    lg = configure(replace_handlers=False)
    assert len(lg.handlers) == 2
