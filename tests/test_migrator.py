"""Tests for loading and upgrading the persisted host map."""

from __future__ import annotations

import json
import logging
import os

from hostkeeper.constants import ACTIVE_KEY, HOSTS_KEY, SIDEBAR_CLOSED_KEY
from hostkeeper.registry.migrator import PersistenceMigrator, default_seed_paths
from hostkeeper.registry.models import Host, hosts_to_dict
from hostkeeper.registry.storage import MemoryStore

from .conftest import stored_hosts

# ── Stored formats ───────────────────────────────────────────────────────


class TestStoredFormats:
    def test_current_map_format_used_as_is(self):
        data = {
            "https://a.com": {"title": "A", "url": "https://a.com"},
            "https://b.com": {
                "title": "https://b.com",
                "url": "https://b.com",
                "authUrl": "https://u:p@b.com",
                "username": "u",
                "password": "p",
            },
        }
        store = MemoryStore({HOSTS_KEY: json.dumps(data)})
        state = PersistenceMigrator(store).load()

        assert set(state.hosts) == {"https://a.com", "https://b.com"}
        assert state.hosts["https://a.com"].title == "A"
        assert state.hosts["https://b.com"].username == "u"
        assert state.hosts["https://b.com"].auth_url == "https://u:p@b.com"
        assert stored_hosts(store) == data

    def test_map_roundtrip_is_stable(self):
        hosts = {
            "https://a.com": Host(url="https://a.com", title="Team A"),
            "https://b.com": Host(
                url="https://b.com",
                auth_url="https://b.com#tok",
                username="sandstorm-sentinel",
                password="tok",
            ),
        }
        store = MemoryStore({HOSTS_KEY: json.dumps(hosts_to_dict(hosts))})
        first = PersistenceMigrator(store).load()
        second = PersistenceMigrator(store).load()
        assert dict(first.hosts) == hosts
        assert dict(second.hosts) == hosts

    def test_legacy_array_migrated_and_persisted(self):
        store = MemoryStore({HOSTS_KEY: json.dumps(["https://a.com/", "https://b.com"])})
        state = PersistenceMigrator(store).load()

        expected = {
            "https://a.com": {"title": "https://a.com", "url": "https://a.com"},
            "https://b.com": {"title": "https://b.com", "url": "https://b.com"},
        }
        assert hosts_to_dict(dict(state.hosts)) == expected
        assert stored_hosts(store) == expected

    def test_legacy_array_skips_non_strings(self):
        store = MemoryStore({HOSTS_KEY: json.dumps(["https://a.com", 42, None])})
        state = PersistenceMigrator(store).load()
        assert list(state.hosts) == ["https://a.com"]

    def test_bare_url_string_wrapped(self):
        store = MemoryStore({HOSTS_KEY: "https://chat.example.com"})
        state = PersistenceMigrator(store).load()

        assert list(state.hosts) == ["https://chat.example.com"]
        assert state.hosts["https://chat.example.com"].title == "https://chat.example.com"
        assert stored_hosts(store) == {
            "https://chat.example.com": {
                "title": "https://chat.example.com",
                "url": "https://chat.example.com",
            }
        }

    def test_json_encoded_url_string_wrapped(self):
        store = MemoryStore({HOSTS_KEY: json.dumps("http://chat.example.com")})
        state = PersistenceMigrator(store).load()
        assert list(state.hosts) == ["http://chat.example.com"]

    def test_garbage_treated_as_empty(self, caplog):
        store = MemoryStore({HOSTS_KEY: "definitely not json"})
        with caplog.at_level(logging.WARNING, logger="hostkeeper.registry.migrator"):
            state = PersistenceMigrator(store).load()
        assert dict(state.hosts) == {}
        assert stored_hosts(store) == {}
        assert "Discarding stored hosts" in caplog.text

    def test_null_and_missing_are_empty(self):
        assert dict(PersistenceMigrator(MemoryStore({HOSTS_KEY: "null"})).load().hosts) == {}
        assert dict(PersistenceMigrator(MemoryStore()).load().hosts) == {}

    def test_map_entries_that_are_not_objects_skipped(self):
        data = {"https://a.com": {"url": "https://a.com"}, "https://b.com": "oops"}
        store = MemoryStore({HOSTS_KEY: json.dumps(data)})
        state = PersistenceMigrator(store).load()
        assert list(state.hosts) == ["https://a.com"]

    def test_map_entry_without_url_uses_key(self):
        store = MemoryStore({HOSTS_KEY: json.dumps({"https://a.com": {"title": "A"}})})
        state = PersistenceMigrator(store).load()
        assert state.hosts["https://a.com"].url == "https://a.com"


# ── Active host ──────────────────────────────────────────────────────────


class TestActiveHost:
    def test_active_restored(self):
        store = MemoryStore(
            {
                HOSTS_KEY: json.dumps({"https://a.com": {"url": "https://a.com"}}),
                ACTIVE_KEY: "https://a.com",
            }
        )
        assert PersistenceMigrator(store).load().active == "https://a.com"

    def test_null_sentinel_means_none(self):
        store = MemoryStore({ACTIVE_KEY: "null"})
        migrator = PersistenceMigrator(store)
        assert migrator.read_active() is None
        assert migrator.load().active is None

    def test_unknown_active_dropped_from_state(self):
        store = MemoryStore(
            {
                HOSTS_KEY: json.dumps({"https://a.com": {"url": "https://a.com"}}),
                ACTIVE_KEY: "https://gone.com",
            }
        )
        migrator = PersistenceMigrator(store)
        assert migrator.load().active is None
        assert migrator.read_active() == "https://gone.com"


# ── Seed file import ─────────────────────────────────────────────────────


def _write_seed(directory, data) -> str:
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, "servers.json")
    with open(path, "w", encoding="utf-8") as fh:
        if isinstance(data, str):
            fh.write(data)
        else:
            json.dump(data, fh)
    return path


class TestSeedImport:
    def test_import_inverts_title_and_url(self, tmp_path):
        seed = _write_seed(tmp_path, {"Team": "https://team.example.com", "Ops": "https://ops.example.com"})
        store = MemoryStore()
        prefs = MemoryStore()
        state = PersistenceMigrator(store, preferences=prefs, seed_paths=[seed]).load()

        assert hosts_to_dict(dict(state.hosts)) == {
            "https://team.example.com": {"title": "Team", "url": "https://team.example.com"},
            "https://ops.example.com": {"title": "Ops", "url": "https://ops.example.com"},
        }
        assert stored_hosts(store) == hosts_to_dict(dict(state.hosts))
        assert prefs.get_item(SIDEBAR_CLOSED_KEY) is None

    def test_single_import_collapses_sidebar(self, tmp_path):
        seed = _write_seed(tmp_path, {"Team": "https://team.example.com"})
        prefs = MemoryStore()
        PersistenceMigrator(MemoryStore(), preferences=prefs, seed_paths=[seed]).load()
        assert prefs.get_item(SIDEBAR_CLOSED_KEY) == "true"

    def test_preferences_default_to_main_store(self, tmp_path):
        seed = _write_seed(tmp_path, {"Team": "https://team.example.com"})
        store = MemoryStore()
        PersistenceMigrator(store, seed_paths=[seed]).load()
        assert store.get_item(SIDEBAR_CLOSED_KEY) == "true"

    def test_user_dir_checked_before_app_dir(self, tmp_path):
        user_dir = tmp_path / "user"
        app_dir = tmp_path / "app"
        _write_seed(user_dir, {"User": "https://user.example.com"})
        _write_seed(app_dir, {"App": "https://app.example.com"})
        paths = default_seed_paths(str(user_dir), str(app_dir))

        state = PersistenceMigrator(MemoryStore(), seed_paths=paths).load()
        assert list(state.hosts) == ["https://user.example.com"]

    def test_app_dir_used_when_user_dir_empty(self, tmp_path):
        app_dir = tmp_path / "app"
        _write_seed(app_dir, {"App": "https://app.example.com"})
        paths = default_seed_paths(str(tmp_path / "user"), str(app_dir))

        state = PersistenceMigrator(MemoryStore(), seed_paths=paths).load()
        assert list(state.hosts) == ["https://app.example.com"]

    def test_asar_archive_resolves_to_parent_dir(self, tmp_path):
        paths = default_seed_paths("/data", str(tmp_path / "resources" / "app.asar"))
        assert paths == [
            os.path.join("/data", "servers.json"),
            os.path.join(str(tmp_path / "resources"), "servers.json"),
        ]

    def test_seed_ignored_when_store_has_hosts(self, tmp_path):
        seed = _write_seed(tmp_path, {"Team": "https://team.example.com"})
        store = MemoryStore({HOSTS_KEY: json.dumps({"https://a.com": {"url": "https://a.com"}})})
        state = PersistenceMigrator(store, seed_paths=[seed]).load()
        assert list(state.hosts) == ["https://a.com"]

    def test_invalid_json_seed_logged_not_raised(self, tmp_path, caplog):
        seed = _write_seed(tmp_path, "{broken")
        store = MemoryStore()
        with caplog.at_level(logging.ERROR, logger="hostkeeper.registry.migrator"):
            state = PersistenceMigrator(store, seed_paths=[seed]).load()
        assert dict(state.hosts) == {}
        assert stored_hosts(store) == {}
        assert "Server file invalid" in caplog.text

    def test_seed_with_wrong_shape_ignored(self, tmp_path):
        seed = _write_seed(tmp_path, ["https://a.com"])
        state = PersistenceMigrator(MemoryStore(), seed_paths=[seed]).load()
        assert dict(state.hosts) == {}

    def test_seed_with_non_string_url_ignored(self, tmp_path):
        seed = _write_seed(tmp_path, {"Team": 42})
        prefs = MemoryStore()
        state = PersistenceMigrator(MemoryStore(), preferences=prefs, seed_paths=[seed]).load()
        assert dict(state.hosts) == {}
        assert prefs.get_item(SIDEBAR_CLOSED_KEY) is None

    def test_no_seed_file_gives_empty_state(self, tmp_path):
        state = PersistenceMigrator(MemoryStore(), seed_paths=[str(tmp_path / "servers.json")]).load()
        assert dict(state.hosts) == {}
        assert state.active is None
