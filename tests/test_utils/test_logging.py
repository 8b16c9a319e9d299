"""Tests for structured logging helpers."""

import json
import logging
import sys

import pytest

from soundprint.utils.logging import (
    ColoredFormatter,
    JSONFormatter,
    RequestLoggerAdapter,
    create_logger_with_context,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def _record(msg="hello", **extra):
    record = logging.LogRecord("soundprint.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload['level'] == 'INFO'
        assert payload['logger'] == 'soundprint.test'
        assert payload['message'] == 'hello'
        assert payload['timestamp'].endswith('Z')
        assert 'context' not in payload

    def test_context(self):
        record = _record(request_id='r-1', track_id='t-1', operation=None)
        payload = json.loads(JSONFormatter().format(record))
        assert payload['context'] == {'request_id': 'r-1', 'track_id': 't-1'}

    def test_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord(
                "x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )
        payload = json.loads(JSONFormatter().format(record))
        assert 'ValueError: bad' in payload['exception']


class TestColoredFormatter:
    def test_levelname_restored(self):
        record = _record()
        output = ColoredFormatter("%(levelname)s %(message)s").format(record)
        assert '\033[32m' in output
        assert record.levelname == 'INFO'


class TestRequestLoggerAdapter:
    def test_context_attached(self, caplog):
        log = create_logger_with_context("soundprint.dispatch", {'request_id': 'abc'})
        assert isinstance(log, RequestLoggerAdapter)

        with caplog.at_level(logging.INFO, logger="soundprint.dispatch"):
            log.info("working", extra={'track_id': 't-2'})

        record = caplog.records[-1]
        assert record.request_id == 'abc'
        assert record.track_id == 't-2'


class TestSetupLogging:
    def test_json_console(self, restore_root_logger):
        setup_logging(level="WARNING", log_format="json")
        assert restore_root_logger.level == logging.WARNING
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_text_colored(self, restore_root_logger):
        setup_logging(log_format="text", colored=True)
        assert isinstance(restore_root_logger.handlers[0].formatter, ColoredFormatter)

    def test_file_output_is_json(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "soundprint.log"
        setup_logging(log_format="text", log_file=str(log_file), console_enabled=False)

        logging.getLogger("soundprint.file").info("to disk")
        for handler in restore_root_logger.handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)['message'] == 'to disk'
