"""Tests for log setup and credential redaction."""

from __future__ import annotations

import logging
import os

from hostkeeper.display.logging_config import SecretRedactionFilter, setup_logging


def _record(msg, *args) -> logging.LogRecord:
    return logging.LogRecord("hostkeeper.test", logging.INFO, __file__, 1, msg, args, None)


class TestSecretRedactionFilter:
    def test_message_and_args_redacted(self):
        f = SecretRedactionFilter()
        f.register("p4ssw0rd")
        record = _record("login with p4ssw0rd for %s (%d)", "p4ssw0rd", 3)
        assert f.filter(record) is True
        assert record.getMessage() == "login with ***REDACTED*** for ***REDACTED*** (3)"

    def test_url_masked_whole(self):
        f = SecretRedactionFilter()
        f.register("TOKEN123")
        f.register("https://chat.example.com#TOKEN123")
        assert f.redact("adding https://chat.example.com#TOKEN123") == "adding ***REDACTED***"

    def test_short_values_ignored(self):
        f = SecretRedactionFilter()
        f.register("abc")
        assert f.redact("abc") == "abc"

    def test_nothing_registered(self):
        f = SecretRedactionFilter()
        record = _record("plain %s", "text")
        assert f.filter(record) is True
        assert record.getMessage() == "plain text"


class TestSetupLogging:
    def test_creates_log_file(self, tmp_path, restore_logging):
        log_dir = str(tmp_path / "logs")
        path, level = setup_logging("debug", log_dir=log_dir, quiet=True)
        assert level == "DEBUG"
        assert os.path.dirname(path) == log_dir
        assert os.path.basename(path).startswith("hostkeeper_")
        assert path.endswith("_DEBUG.log")

        logging.getLogger("hostkeeper.registry.manager").debug("hello from test")
        for handler in logging.getLogger("hostkeeper.registry").handlers:
            handler.flush()
        with open(path, encoding="utf-8") as fh:
            assert "hello from test" in fh.read()

    def test_invalid_level_falls_back_to_info(self, tmp_path, restore_logging, capsys):
        _, level = setup_logging("chatty", log_dir=str(tmp_path))
        assert level == "INFO"
        assert "invalid log level" in capsys.readouterr().err
