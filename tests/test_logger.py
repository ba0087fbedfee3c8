# File: tests/test_logger.py
import logging
import sys

from script_scout.logger import LOGGER_NAME, init_logging


def test_init_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "scout.log"
    init_logging(level="DEBUG", log_file=log_file)
    lg = init_logging(level="WARNING")

    assert lg is logging.getLogger(LOGGER_NAME)
    assert lg.level == logging.WARNING
    assert lg.propagate is False
    (handler,) = lg.handlers
    assert handler.stream is sys.stderr


def test_init_logging_writes_file(tmp_path):
    log_file = tmp_path / "scout.log"
    lg = init_logging(level="INFO", log_file=log_file, log_format="%(levelname)s %(message)s")
    lg.info("crawl done")
    for handler in lg.handlers:
        handler.flush()
    assert "INFO crawl done" in log_file.read_text(encoding="utf-8")
    init_logging(level="WARNING")
