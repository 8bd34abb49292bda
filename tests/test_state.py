"""Tests for the pure registry transitions."""

from __future__ import annotations

import pytest

from hostkeeper.errors import HostNotFound, InvalidHostUrl
from hostkeeper.registry import state as transitions
from hostkeeper.registry.events import (
    ActiveChanged,
    ActiveCleared,
    HostAdded,
    HostRemoved,
    Loaded,
    TitleChanged,
)
from hostkeeper.registry.models import Host
from hostkeeper.registry.state import RegistryState, display_title


def _state(*urls, active=None) -> RegistryState:
    return RegistryState(hosts={u: Host(url=u) for u in urls}, active=active)


class TestSetActive:
    def test_known_url(self):
        t = transitions.set_active(_state("https://a.com", "https://b.com"), "https://b.com")
        assert t.state.active == "https://b.com"
        assert t.events == (ActiveChanged("https://b.com"),)
        assert t.result is True
        assert t.active_changed and not t.hosts_changed

    def test_unknown_url_falls_back_to_first(self):
        t = transitions.set_active(_state("https://a.com", "https://b.com"), "https://zzz.com")
        assert t.state.active == "https://a.com"
        assert t.events == (ActiveChanged("https://a.com"),)

    def test_none_falls_back_to_first(self):
        t = transitions.set_active(_state("https://a.com"), None)
        assert t.state.active == "https://a.com"

    def test_no_hosts_reports_loaded(self):
        start = _state()
        t = transitions.set_active(start, "https://a.com")
        assert t.state is start
        assert t.events == (Loaded(),)
        assert t.result is False
        assert not t.active_changed


class TestClearActive:
    def test_clears(self):
        t = transitions.clear_active(_state("https://a.com", active="https://a.com"))
        assert t.state.active is None
        assert t.events == (ActiveCleared(),)
        assert t.active_changed


class TestAddHost:
    def test_adds_plain_url(self):
        t = transitions.add_host(_state(), "https://a.com")
        assert t.result == "https://a.com"
        assert list(t.state.hosts) == ["https://a.com"]
        assert t.events == (HostAdded("https://a.com"),)
        assert t.hosts_changed and not t.active_changed

    def test_adds_credentialed_url_under_clean_key(self):
        t = transitions.add_host(_state(), "https://alice:pw@chat.example.com")
        host = t.state.hosts["https://chat.example.com"]
        assert host.username == "alice"
        assert host.password == "pw"

    def test_input_state_untouched(self):
        start = _state("https://a.com")
        transitions.add_host(start, "https://b.com")
        assert list(start.hosts) == ["https://a.com"]

    def test_existing_host_is_activated(self):
        t = transitions.add_host(_state("https://a.com", "https://b.com"), "https://b.com")
        assert t.result is None
        assert t.state.active == "https://b.com"
        assert t.events == (ActiveChanged("https://b.com"),)
        assert not t.hosts_changed

    @pytest.mark.parametrize("raw", ["chat.example.com", "ftp://files.example.com", "", "https://exa mple.com"])
    def test_rejects_non_http(self, raw):
        with pytest.raises(InvalidHostUrl):
            transitions.add_host(_state(), raw)


class TestRemoveHost:
    def test_removes_inactive_host(self):
        t = transitions.remove_host(_state("https://a.com", "https://b.com", active="https://a.com"), "https://b.com")
        assert list(t.state.hosts) == ["https://a.com"]
        assert t.state.active == "https://a.com"
        assert t.events == (HostRemoved("https://b.com"),)
        assert t.hosts_changed and not t.active_changed

    def test_removing_active_host_clears_selection_first(self):
        t = transitions.remove_host(_state("https://a.com", active="https://a.com"), "https://a.com")
        assert t.state.active is None
        assert t.events == (ActiveCleared(), HostRemoved("https://a.com"))
        assert t.active_changed

    def test_unknown_url_raises(self):
        with pytest.raises(HostNotFound) as exc_info:
            transitions.remove_host(_state("https://a.com"), "https://b.com")
        assert exc_info.value.url == "https://b.com"
        assert isinstance(exc_info.value, KeyError)
        assert str(exc_info.value) == "No host registered for 'https://b.com'"


class TestTitles:
    def test_plain_title_unchanged(self):
        assert display_title("https://a.com", "Team A") == "Team A"

    def test_default_name_disambiguated(self):
        assert display_title("https://a.com", "Rocket.Chat") == "Rocket.Chat - https://a.com"

    def test_canonical_host_keeps_default_name(self):
        assert display_title("https://open.rocket.chat", "Rocket.Chat") == "Rocket.Chat"

    def test_custom_branding(self):
        assert (
            display_title(
                "https://a.com",
                "Chatty",
                product_name="Chatty",
                canonical_host_pattern=r"https://chatty\.io",
            )
            == "Chatty - https://a.com"
        )

    def test_set_host_title(self):
        t = transitions.set_host_title(_state("https://a.com"), "https://a.com", "Rocket.Chat")
        assert t.state.hosts["https://a.com"].title == "Rocket.Chat - https://a.com"
        assert t.events == (TitleChanged("https://a.com", "Rocket.Chat - https://a.com"),)
        assert t.hosts_changed

    def test_set_host_title_unknown_url(self):
        with pytest.raises(HostNotFound):
            transitions.set_host_title(_state("https://a.com"), "https://b.com", "B")
