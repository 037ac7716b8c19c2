"""Tests for structlog setup."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from nudelink.logging import setup_logging


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    root_logger = logging.getLogger()
    saved = root_logger.handlers[:]
    yield
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers[:] = saved


class TestSetupLogging:
    def test_file_gets_json_lines(self, tmp_path):
        log = setup_logging(str(tmp_path / "logs"))
        log.info("rule_store.updated", hash="abc")
        line = (tmp_path / "logs" / "nudelink.log").read_text().splitlines()[-1]
        data = json.loads(line)
        assert data["event"] == "rule_store.updated"
        assert data["hash"] == "abc"
        assert data["level"] == "info"

    def test_console_on_stderr_warning_by_default(self, tmp_path):
        setup_logging(str(tmp_path))
        console = logging.getLogger().handlers[1]
        assert console.stream is sys.stderr
        assert console.level == logging.WARNING

    def test_verbose_console(self, tmp_path):
        setup_logging(str(tmp_path), verbose=True)
        assert logging.getLogger().handlers[1].level == logging.DEBUG

    def test_repeated_setup_does_not_stack_handlers(self, tmp_path):
        setup_logging(str(tmp_path))
        setup_logging(str(tmp_path))
        assert len(logging.getLogger().handlers) == 2
