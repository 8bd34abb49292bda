"""Shared fixtures for the Hostkeeper test suite."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

import pytest

from hostkeeper.constants import HOSTS_KEY
from hostkeeper.display.logging_config import BASE_LOG_CFG
from hostkeeper.registry.collaborators import HostsNotifier
from hostkeeper.registry.events import RegistryEvent
from hostkeeper.registry.storage import MemoryStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


class RecordingNotifier(HostsNotifier):
    def __init__(self) -> None:
        self.calls: List[Dict[str, Dict[str, Any]]] = []

    def notify(self, hosts: Dict[str, Dict[str, Any]]) -> None:
        self.calls.append(hosts)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def events() -> List[RegistryEvent]:
    return []


def stored_hosts(store: MemoryStore) -> Dict[str, Any]:
    raw = store.get_item(HOSTS_KEY)
    assert raw is not None
    return json.loads(raw)


@pytest.fixture
def restore_logging():
    """Undo :func:`setup_logging` so later tests see default propagation."""
    root = logging.getLogger()
    root_handlers = list(root.handlers)
    root_level = root.level
    yield
    for name in BASE_LOG_CFG["loggers"]:
        lg = logging.getLogger(name)
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()
        lg.propagate = True
        lg.setLevel(logging.NOTSET)
    for handler in list(root.handlers):
        if handler not in root_handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(root_level)
