"""The host registry.

Owns the in-memory :class:`RegistryState`, applies the pure transitions
from :mod:`hostkeeper.registry.state`, and performs their side effects:
write-through persistence, cross-process notification and observer
events.  One instance is built by the application entry point and handed
to whoever needs it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Callable, Dict, Iterator, Optional, Type

from hostkeeper.constants import (
    ACTIVE_KEY,
    CANONICAL_HOST_PATTERN,
    DEFAULT_PRODUCT_NAME,
    HOSTS_KEY,
)
from hostkeeper.display.logging_config import secret_redaction_filter
from hostkeeper.errors import HostNotFound
from hostkeeper.registry import state as transitions
from hostkeeper.registry.collaborators import HostsNotifier, NullNotifier
from hostkeeper.registry.events import EventBus, Loaded, Observer, RegistryEvent
from hostkeeper.registry.migrator import PersistenceMigrator
from hostkeeper.registry.models import Host, hosts_to_dict
from hostkeeper.registry.state import RegistryState, Transition
from hostkeeper.registry.storage import KeyValueStore
from hostkeeper.registry.url_parser import host_from_raw

logger = logging.getLogger(__name__)


def register_host_secrets(host: Host) -> None:
    """Mask *host*'s password and credential-bearing url in log output."""
    if host.password:
        secret_redaction_filter.register(host.password)
    if host.auth_url:
        secret_redaction_filter.register(host.auth_url)


class HostRegistry:
    """Registered hosts plus the active selection.

    Responsibilities
    ----------------
    * Load state once through the :class:`PersistenceMigrator`.
    * Add / remove / rename hosts and switch the active one.
    * Persist every change before returning (no batching).
    * Send the host map to the :class:`HostsNotifier` whenever it changes.
    * Publish one :class:`RegistryEvent` per logical change.

    Validation is not done here; see :mod:`hostkeeper.registry.flows`.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        migrator: Optional[PersistenceMigrator] = None,
        notifier: Optional[HostsNotifier] = None,
        bus: Optional[EventBus] = None,
        product_name: str = DEFAULT_PRODUCT_NAME,
        canonical_host_pattern: str = CANONICAL_HOST_PATTERN,
    ) -> None:
        self._store = store
        self._migrator = migrator or PersistenceMigrator(store)
        self._notifier = notifier or NullNotifier()
        self._bus = bus or EventBus()
        self._product_name = product_name
        self._canonical_host_pattern = canonical_host_pattern
        self._state = RegistryState()
        self._loaded = False

    # ── Properties ──────────────────────────────────────────────

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def hosts(self) -> Dict[str, Host]:
        """All hosts keyed by url (copy)."""
        return {url: replace(host) for url, host in self._state.hosts.items()}

    @property
    def active(self) -> Optional[str]:
        """Url of the active host, or ``None``."""
        return self._state.active

    @property
    def active_host(self) -> Optional[Host]:
        if self._state.active is None:
            return None
        return self.get(self._state.active)

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._state.hosts)

    def __iter__(self) -> Iterator[Host]:
        return iter(list(self.hosts.values()))

    def __contains__(self, url: object) -> bool:
        return url in self._state.hosts

    # ── Observers ───────────────────────────────────────────────

    def subscribe(
        self,
        observer: Observer,
        event_type: Optional[Type[RegistryEvent]] = None,
    ) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        return self._bus.subscribe(observer, event_type)

    # ── Reads ───────────────────────────────────────────────────

    def get(self, url: str) -> Optional[Host]:
        host = self._state.hosts.get(url)
        return replace(host) if host is not None else None

    def host_exists(self, url: str) -> bool:
        return url in self._state.hosts

    # ── Load ────────────────────────────────────────────────────

    def load(self) -> None:
        """Establish the initial state from storage (once per process)."""
        if self._loaded:
            raise RuntimeError("HostRegistry.load() may only run once")

        self._state = self._migrator.load()
        self._loaded = True
        for host in self._state.hosts.values():
            register_host_secrets(host)

        self._notify()
        self._bus.publish(Loaded())

    # ── Mutations ───────────────────────────────────────────────

    def add_host(self, raw: str) -> Optional[str]:
        """Register the host described by *raw*.

        Returns the new url, or ``None`` if the host already existed (in
        which case it is made active instead).  Raises
        :class:`~hostkeeper.errors.InvalidHostUrl` for non-http(s) input.
        """
        register_host_secrets(host_from_raw(raw))
        transition = transitions.add_host(self._state, raw)
        if transition.result is not None:
            logger.info("Host '%s' added", transition.result)
        else:
            logger.info("Host for '%s' already registered, activating it", raw)
        self._apply(transition)
        return transition.result

    def remove_host(self, url: str) -> None:
        """Unregister *url*.  Unknown urls are ignored."""
        try:
            transition = transitions.remove_host(self._state, url)
        except HostNotFound:
            logger.debug("remove_host: '%s' is not registered", url)
            return
        self._apply(transition)
        logger.info("Host '%s' removed", url)

    def set_active(self, url: Optional[str]) -> bool:
        """Make *url* active, falling back to the first host if unknown.

        Returns ``False`` only when there are no hosts at all.
        """
        transition = transitions.set_active(self._state, url)
        self._apply(transition)
        if transition.result:
            if transition.state.active != url:
                logger.info("Host '%s' unknown, activated '%s' instead", url, transition.state.active)
            else:
                logger.info("Active host set to '%s'", url)
        return transition.result

    def restore_active(self) -> bool:
        """Re-activate the stored selection (or the first host)."""
        return self.set_active(self._state.active or self._migrator.read_active())

    def clear_active(self) -> bool:
        self._apply(transitions.clear_active(self._state))
        logger.info("Active host cleared")
        return True

    def set_host_title(self, url: str, title: str) -> None:
        """Rename *url*.  Unknown urls are ignored."""
        try:
            transition = transitions.set_host_title(
                self._state,
                url,
                title,
                product_name=self._product_name,
                canonical_host_pattern=self._canonical_host_pattern,
            )
        except HostNotFound:
            logger.debug("set_host_title: '%s' is not registered", url)
            return
        self._apply(transition)

    # ── Side effects ────────────────────────────────────────────

    def _apply(self, transition: Transition) -> None:
        self._state = transition.state
        if transition.hosts_changed:
            self._save_hosts()
        if transition.active_changed:
            self._save_active()
        if transition.hosts_changed:
            self._notify()
        for event in transition.events:
            self._bus.publish(event)

    def _save_hosts(self) -> None:
        self._store.set_item(HOSTS_KEY, json.dumps(hosts_to_dict(dict(self._state.hosts))))
        logger.debug("Saved %d host(s)", len(self._state.hosts))

    def _save_active(self) -> None:
        if self._state.active is None:
            self._store.remove_item(ACTIVE_KEY)
        else:
            self._store.set_item(ACTIVE_KEY, self._state.active)

    def _notify(self) -> None:
        try:
            self._notifier.notify(hosts_to_dict(dict(self._state.hosts)))
        except Exception:
            logger.warning("Host notifier failed", exc_info=True)
