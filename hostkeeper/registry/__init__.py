"""Host registry: models, parsing, persistence, validation and the registry itself."""

from hostkeeper.registry.events import (
    ActiveChanged,
    ActiveCleared,
    EventBus,
    HostAdded,
    HostRemoved,
    Loaded,
    RegistryEvent,
    TitleChanged,
)
from hostkeeper.registry.manager import HostRegistry
from hostkeeper.registry.migrator import PersistenceMigrator
from hostkeeper.registry.models import Host
from hostkeeper.registry.state import RegistryState
from hostkeeper.registry.url_parser import parse_host_url, protocol_url_from_argv
from hostkeeper.registry.validator import HostValidator

__all__ = [
    "ActiveChanged",
    "ActiveCleared",
    "EventBus",
    "Host",
    "HostAdded",
    "HostRegistry",
    "HostRemoved",
    "HostValidator",
    "Loaded",
    "PersistenceMigrator",
    "RegistryEvent",
    "RegistryState",
    "TitleChanged",
    "parse_host_url",
    "protocol_url_from_argv",
]
