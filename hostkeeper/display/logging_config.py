"""Logging configuration setup."""

import copy
import logging
import logging.config
import os
import re
import sys
from datetime import datetime
from typing import Optional, Set, Tuple  # noqa: UP035

from hostkeeper.constants import LOG_DIR

# ── Credential redaction filter ──────────────────────────────────────────

_REDACTED = "***REDACTED***"


class SecretRedactionFilter(logging.Filter):
    """Logging filter that replaces registered credentials with a placeholder.

    The registry registers host passwords and credential-bearing urls as it
    loads or adds hosts.
    """

    def __init__(self) -> None:
        super().__init__()
        self._secrets: Set[str] = set()
        self._pattern: Optional["re.Pattern[str]"] = None

    def register(self, value: str) -> None:
        """Register a secret value for redaction."""
        if value and len(value) >= 4:  # skip trivially short values
            self._secrets.add(value)
            # Longest first so a url is masked before the token inside it
            escaped = sorted((re.escape(s) for s in self._secrets), key=len, reverse=True)
            self._pattern = re.compile("|".join(escaped))

    def redact(self, text: str) -> str:
        if self._pattern is None:
            return text
        return self._pattern.sub(_REDACTED, text)

    def filter(self, record: logging.LogRecord) -> bool:
        if self._pattern is not None:
            if isinstance(record.msg, str):
                record.msg = self.redact(record.msg)
            if record.args:
                if isinstance(record.args, dict):
                    record.args = {
                        k: self.redact(v) if isinstance(v, str) else v
                        for k, v in record.args.items()
                    }
                elif isinstance(record.args, tuple):
                    record.args = tuple(
                        self.redact(a) if isinstance(a, str) else a for a in record.args
                    )
        return True


# Module-level instance so the registry can register values as hosts appear.
secret_redaction_filter = SecretRedactionFilter()

BASE_LOG_CFG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple_file": {
            "format": ("%(asctime)s - %(name)25s:%(lineno)-4d - " "%(levelname)-7s - %(message)s"),
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "file_handler": {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "simple_file",
            "filename": "temp_log_name.log",
            "encoding": "utf-8",
        },
    },
    "loggers": {
        "hostkeeper": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "INFO",
        },
        "hostkeeper.registry": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "INFO",
        },
        "hostkeeper.config": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "INFO",
        },
        "httpx": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "WARNING",
        },
        "httpcore": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "WARNING",
        },
    },
    "root": {
        "handlers": ["file_handler"],
        "level": "WARNING",
    },
}


def setup_logging(
    log_lvl_str: str,
    *,
    log_dir: str = LOG_DIR,
    quiet: bool = False,
) -> Tuple[str, str]:
    """
    Set up the logging system.

    Uses a timestamped file under *log_dir* and applies the requested level
    to the Hostkeeper loggers.

    Args:
        log_lvl_str: The desired log level string (e.g., 'debug', 'info').
        log_dir: Directory for log files (created if missing).
        quiet: If *True*, suppress the informational ``print()``.

    Returns:
        A tuple of (log_file_path, validated_log_level).
    """
    log_lvl_valid = log_lvl_str.upper()
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if log_lvl_valid not in valid_levels:
        if not quiet:
            print(f"Warning: invalid log level '{log_lvl_str}'. Using 'INFO'.", file=sys.stderr)
        log_lvl_valid = "INFO"

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    os.makedirs(log_dir, exist_ok=True)
    log_fpath = os.path.join(log_dir, f"hostkeeper_{ts}_{log_lvl_valid}.log")

    log_cfg: dict = copy.deepcopy(BASE_LOG_CFG)
    log_cfg["handlers"]["file_handler"]["filename"] = log_fpath

    for name in ("hostkeeper", "hostkeeper.registry", "hostkeeper.config"):
        log_cfg["loggers"][name]["level"] = log_lvl_valid

    # Request-level chatter from the HTTP stack only in debug mode
    if log_lvl_valid == "DEBUG":
        log_cfg["loggers"]["httpx"]["level"] = "DEBUG"
        log_cfg["root"]["level"] = "DEBUG"

    try:
        logging.config.dictConfig(log_cfg)
        # Attach redaction filter to every handler
        for handler in logging.root.handlers:
            handler.addFilter(secret_redaction_filter)
        for name in log_cfg["loggers"]:
            for handler in logging.getLogger(name).handlers:
                handler.addFilter(secret_redaction_filter)
        if not quiet:
            print(
                f"Logging initialized. File log level: {log_lvl_valid}, log file: {log_fpath}",
                file=sys.stderr,
            )
    except Exception as e_log_cfg:
        if not quiet:
            print(
                f"Error applying logging configuration: {e_log_cfg}",
                file=sys.stderr,
            )

    return log_fpath, log_lvl_valid
