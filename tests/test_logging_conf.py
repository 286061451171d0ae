"""
Logging Setup Tests - Handlers, Log File Location and Console Switch
"""
import logging
from logging.handlers import RotatingFileHandler

import pytest  # Testing framework for writing and running tests

from btcperf.shared.logging_conf import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_log_dir_creates_rotating_file(self, tmp_path):
        path = setup_logging("debug", log_dir=tmp_path / "logs", stdout=False)

        root = logging.getLogger()
        assert path == tmp_path / "logs" / "btcperf.log"
        assert root.level == logging.DEBUG
        assert [type(h) for h in root.handlers] == [RotatingFileHandler]

        logging.getLogger("btcperf.test").info("hello")
        root.handlers[0].flush()
        assert "hello" in path.read_text(encoding="utf-8")

    def test_console_only(self):
        assert setup_logging(logging.WARNING, stdout=True) is None
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0], RotatingFileHandler)

    def test_console_cannot_be_disabled_without_a_file(self):
        setup_logging(stdout=False)
        assert len(logging.getLogger().handlers) == 1

    def test_environment_switch(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BTCPERF_LOG_STDOUT", "false")
        setup_logging(log_file=tmp_path / "run.log")
        assert [type(h) for h in logging.getLogger().handlers] == [RotatingFileHandler]
