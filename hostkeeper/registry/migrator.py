"""Loading and upgrading the persisted host map.

Stored formats seen in the wild, newest first:

* JSON object ``{url: {title, url, ...}}`` - the current format.
* JSON array ``["https://a.com/", ...]`` - a plain server list.
* A bare url string - a single configured server.

When the store holds nothing usable, a ``servers.json`` seed file
(``{title: url}``) shipped next to the application or dropped into the
user data directory is imported once.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Sequence

from hostkeeper.constants import (
    ACTIVE_KEY,
    HOSTS_KEY,
    NO_ACTIVE_SENTINEL,
    SEED_FILENAME,
    SIDEBAR_CLOSED_KEY,
)
from hostkeeper.errors import ImportFileInvalid, MalformedPersistedData
from hostkeeper.registry.models import Host, hosts_to_dict
from hostkeeper.registry.state import RegistryState
from hostkeeper.registry.storage import KeyValueStore

logger = logging.getLogger(__name__)

_HTTP_URL_RE = re.compile(r"^https?://")


def default_seed_paths(
    user_data_dir: str,
    app_path: str,
    filename: str = SEED_FILENAME,
) -> List[str]:
    """Seed file candidates: user data directory first, then install directory.

    An *app_path* pointing at a packed archive file (``app.asar``) is
    replaced by the directory containing it.
    """
    app_dir = os.path.dirname(app_path) if app_path.endswith(".asar") else app_path
    return [os.path.join(user_data_dir, filename), os.path.join(app_dir, filename)]


class PersistenceMigrator:
    """Reads the host map from storage, upgrading legacy formats in place.

    Parameters
    ----------
    store:
        Storage holding the host map and active-host keys.
    preferences:
        Storage for UI preference flags (``sidebar-closed``).  Defaults to
        *store*.
    seed_paths:
        Candidate seed files, in priority order.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        preferences: Optional[KeyValueStore] = None,
        seed_paths: Sequence[str] = (),
    ) -> None:
        self._store = store
        self._preferences = preferences if preferences is not None else store
        self._seed_paths = list(seed_paths)

    # ── public API ──────────────────────────────────────────────────

    def load(self) -> RegistryState:
        """Establish the registry state from storage.

        Never raises for bad stored data or a bad seed file; those are
        logged and treated as absent.
        """
        hosts = self.read_hosts()

        if not hosts:
            hosts = self.import_seed_file()

        self._store.set_item(HOSTS_KEY, json.dumps(hosts_to_dict(hosts)))

        active = self.read_active()
        if active is not None and active not in hosts:
            logger.info("Stored active host '%s' is not registered, ignoring", active)
            active = None

        logger.info("Loaded %d host(s) (active: %s)", len(hosts), active)
        return RegistryState(hosts=hosts, active=active)

    def read_active(self) -> Optional[str]:
        """Return the stored active url, or ``None`` for absent/``"null"``."""
        active = self._store.get_item(ACTIVE_KEY)
        if not active or active == NO_ACTIVE_SENTINEL:
            return None
        return active

    def read_hosts(self) -> Dict[str, Host]:
        """Read the stored host map, upgrading legacy formats."""
        raw = self._store.get_item(HOSTS_KEY)
        if raw is None:
            return {}

        try:
            return self._interpret(raw)
        except MalformedPersistedData as exc:
            logger.warning("Discarding stored hosts: %s", exc)
            return {}

    def import_seed_file(self) -> Dict[str, Host]:
        """Import hosts from the first existing seed file, if any."""
        path = self._find_seed_file()
        if path is None:
            return {}

        try:
            hosts = self._read_seed_file(path)
        except ImportFileInvalid as exc:
            logger.error("%s", exc)
            return {}

        if not hosts:
            return {}

        self._store.set_item(HOSTS_KEY, json.dumps(hosts_to_dict(hosts)))
        # A single pre-configured server needs no server sidebar
        if len(hosts) == 1:
            self._preferences.set_item(SIDEBAR_CLOSED_KEY, "true")

        logger.info("Imported %d host(s) from %s", len(hosts), path)
        return hosts

    # ── format detection ────────────────────────────────────────────

    def _interpret(self, raw: str) -> Dict[str, Host]:
        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError:
            data = raw

        if data is None:
            return {}

        if isinstance(data, dict):
            return self._from_map(data)

        if isinstance(data, list):
            hosts = self._from_list(data)
            self._persist(hosts, "server list")
            return hosts

        if isinstance(data, str) and _HTTP_URL_RE.match(data):
            hosts = {data: Host(url=data, title=data)}
            self._persist(hosts, "single url")
            return hosts

        raise MalformedPersistedData(f"unrecognised stored value {raw[:80]!r}")

    @staticmethod
    def _from_map(data: Dict[str, Any]) -> Dict[str, Host]:
        hosts: Dict[str, Host] = {}
        for key, value in data.items():
            if not isinstance(value, dict):
                logger.warning("Skipping stored host '%s': not an object", key)
                continue
            hosts[key] = Host.from_dict(value, key=key)
        return hosts

    @staticmethod
    def _from_list(data: List[Any]) -> Dict[str, Host]:
        hosts: Dict[str, Host] = {}
        for item in data:
            if not isinstance(item, str):
                logger.warning("Skipping stored host %r: not a string", item)
                continue
            url = re.sub(r"/$", "", item)
            hosts[url] = Host(url=url, title=url)
        return hosts

    def _persist(self, hosts: Dict[str, Host], source: str) -> None:
        self._store.set_item(HOSTS_KEY, json.dumps(hosts_to_dict(hosts)))
        logger.info("Migrated stored hosts from %s format (%d host(s))", source, len(hosts))

    # ── seed file ───────────────────────────────────────────────────

    def _find_seed_file(self) -> Optional[str]:
        for candidate in self._seed_paths:
            if os.path.isfile(candidate):
                return candidate
        logger.debug("No seed file found in %s", self._seed_paths)
        return None

    @staticmethod
    def _read_seed_file(path: str) -> Dict[str, Host]:
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ImportFileInvalid(path, f"not valid JSON: {exc}") from exc
        except OSError as exc:
            raise ImportFileInvalid(path, str(exc)) from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ImportFileInvalid(path, "top level must be an object of title -> url")

        hosts: Dict[str, Host] = {}
        for title, url in data.items():
            if not isinstance(url, str) or not url:
                raise ImportFileInvalid(path, f"url for '{title}' must be a non-empty string")
            hosts[url] = Host(url=url, title=str(title))
        return hosts
