"""로깅 설정 테스트."""
import json
import logging
import sys

import pytest

from learnpath.core.logging import BASE_LOGGER, JsonFormatter, setup_logging


def _record(msg="plan created", exc_info=None):
    return logging.LogRecord(
        name="learnpath.services.progression",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJsonFormatter:
    def test_fields(self):
        data = json.loads(JsonFormatter().format(_record("학습 계획 생성")))

        assert data["level"] == "WARNING"
        assert data["logger"] == "learnpath.services.progression"
        assert data["message"] == "학습 계획 생성"
        assert "timestamp" in data
        assert "exception" not in data

    def test_exception_included(self):
        try:
            raise ValueError("bad duration")
        except ValueError:
            record = _record(exc_info=sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: bad duration" in data["exception"]


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def clean_logger(self):
        logger = logging.getLogger(BASE_LOGGER)
        saved, level = logger.handlers[:], logger.level
        logger.handlers.clear()
        yield
        logger.handlers[:] = saved
        logger.setLevel(level)

    def test_json_handler(self):
        logger = setup_logging("debug", json_format=True)

        assert logger.level == logging.DEBUG
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    def test_no_duplicate_handlers(self):
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1
