"""Interfaces the registry calls out to, with simple implementations.

* :class:`HostsNotifier` - propagates the host map to other processes.
* :class:`Dialogs` - asks the user yes/no questions and shows errors.
* :class:`AppDataResetter` - wipes persisted state and restarts the app.
"""

from __future__ import annotations

import abc
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Sequence, TextIO, Tuple

from hostkeeper.registry.storage import JsonFileStore, KeyValueStore

logger = logging.getLogger(__name__)


# ── Cross-process notification ───────────────────────────────────────


class HostsNotifier(abc.ABC):
    """Receives the full host map after load and after every map change."""

    @abc.abstractmethod
    def notify(self, hosts: Dict[str, Dict[str, Any]]) -> None:
        """Fire-and-forget; must not raise into the registry."""


class NullNotifier(HostsNotifier):
    def notify(self, hosts: Dict[str, Dict[str, Any]]) -> None:
        logger.debug("Host map changed (%d host(s)), no notifier configured", len(hosts))


class SnapshotFileNotifier(HostsNotifier):
    """Writes the host map to a JSON file other processes can watch.

    Credentials are left out of the snapshot.
    """

    _PRIVATE_KEYS = ("authUrl", "username", "password")

    def __init__(self, path: str) -> None:
        self._path = path

    def notify(self, hosts: Dict[str, Dict[str, Any]]) -> None:
        snapshot = {
            url: {k: v for k, v in host.items() if k not in self._PRIVATE_KEYS}
            for url, host in hosts.items()
        }
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self._path)), exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as fh:
                json.dump(snapshot, fh, indent=2)
            logger.debug("Host snapshot written to %s (%d host(s))", self._path, len(snapshot))
        except OSError:
            logger.warning("Could not write host snapshot %s", self._path, exc_info=True)


# ── Dialogs ──────────────────────────────────────────────────────────


class Dialogs(abc.ABC):
    """User-facing confirmation and error reporting."""

    @abc.abstractmethod
    def confirm(self, title: str, message: str) -> bool:
        """Ask a yes/no question; ``True`` means the user accepted."""

    @abc.abstractmethod
    def show_error(self, title: str, message: str) -> None:
        """Report a failure to the user."""


class ConsoleDialogs(Dialogs):
    """Dialogs on a terminal: prompt on stdin, errors on stderr."""

    def __init__(
        self,
        *,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._stderr = stderr or sys.stderr

    def confirm(self, title: str, message: str) -> bool:
        self._stdout.write(f"{title}\n{message} [y/N] ")
        self._stdout.flush()
        answer = self._stdin.readline()
        return answer.strip().lower() in ("y", "yes")

    def show_error(self, title: str, message: str) -> None:
        print(f"Error: {title}\n  {message}", file=self._stderr)


class StaticDialogs(Dialogs):
    """Answers every question the same way and records what was shown.

    Used for ``--yes`` on the command line and in tests.
    """

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.questions: List[Tuple[str, str]] = []
        self.errors: List[Tuple[str, str]] = []

    def confirm(self, title: str, message: str) -> bool:
        self.questions.append((title, message))
        return self.answer

    def show_error(self, title: str, message: str) -> None:
        self.errors.append((title, message))


# ── App data reset ───────────────────────────────────────────────────


class AppDataResetter(abc.ABC):
    @abc.abstractmethod
    def reset_app_data(self) -> None:
        """Wipe persisted state; the application restarts afterwards."""


class StorageResetter(AppDataResetter):
    """Clears the given stores and removes their files where they have one."""

    def __init__(self, stores: Sequence[KeyValueStore]) -> None:
        self._stores = list(stores)

    def reset_app_data(self) -> None:
        for store in self._stores:
            store.clear()
            if isinstance(store, JsonFileStore):
                store.delete_file()
        logger.warning("Application data reset (%d store(s))", len(self._stores))
