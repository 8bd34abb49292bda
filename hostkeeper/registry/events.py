"""Registry lifecycle events and the observer bus that delivers them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEvent:
    """Base class for every registry event."""


@dataclass(frozen=True)
class Loaded(RegistryEvent):
    """Posted once initial state is established, and when activation finds no hosts."""


@dataclass(frozen=True)
class HostAdded(RegistryEvent):
    url: str


@dataclass(frozen=True)
class HostRemoved(RegistryEvent):
    url: str


@dataclass(frozen=True)
class ActiveChanged(RegistryEvent):
    """Posted when a host becomes the active one."""

    url: str


@dataclass(frozen=True)
class ActiveCleared(RegistryEvent):
    """Posted when no host is active any more."""


@dataclass(frozen=True)
class TitleChanged(RegistryEvent):
    url: str
    title: str


Observer = Callable[[RegistryEvent], None]


class EventBus:
    """Synchronous publish/subscribe channel for :class:`RegistryEvent`.

    Observers run in subscription order on the publishing thread.  An
    observer that raises is logged and skipped; the others still run.
    """

    def __init__(self) -> None:
        self._observers: List[Tuple[Optional[Type[RegistryEvent]], Observer]] = []

    def subscribe(
        self,
        observer: Observer,
        event_type: Optional[Type[RegistryEvent]] = None,
    ) -> Callable[[], None]:
        """Register *observer*, optionally for one event type only.

        Returns a callable that removes the subscription.
        """
        entry = (event_type, observer)
        self._observers.append(entry)

        def unsubscribe() -> None:
            try:
                self._observers.remove(entry)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, event: RegistryEvent) -> None:
        for event_type, observer in list(self._observers):
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                observer(event)
            except Exception:
                logger.warning("Observer %r failed on %s", observer, event, exc_info=True)

    def __len__(self) -> int:
        return len(self._observers)
