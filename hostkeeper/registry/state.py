"""Pure state transitions for the host registry.

Each function takes the current :class:`RegistryState` and returns a
:class:`Transition`: the next state, the events to publish, the value the
operation reports, and which parts of the state must be persisted.  No
function here touches storage or observers; :mod:`manager` does that.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from hostkeeper.constants import CANONICAL_HOST_PATTERN, DEFAULT_PRODUCT_NAME
from hostkeeper.errors import HostNotFound, InvalidHostUrl
from hostkeeper.registry.events import (
    ActiveChanged,
    ActiveCleared,
    HostAdded,
    HostRemoved,
    Loaded,
    RegistryEvent,
    TitleChanged,
)
from hostkeeper.registry.models import Host
from hostkeeper.registry.url_parser import host_from_raw, is_http_url


@dataclass(frozen=True)
class RegistryState:
    hosts: Mapping[str, Host] = field(default_factory=dict)
    active: Optional[str] = None

    def first_url(self) -> Optional[str]:
        return next(iter(self.hosts), None)


@dataclass(frozen=True)
class Transition:
    state: RegistryState
    events: Tuple[RegistryEvent, ...] = ()
    result: Any = None
    hosts_changed: bool = False
    active_changed: bool = False


def _copy_hosts(state: RegistryState) -> Dict[str, Host]:
    return {url: replace(host) for url, host in state.hosts.items()}


def set_active(state: RegistryState, url: Optional[str]) -> Transition:
    """Make *url* active.

    An unknown url falls back to the first registered host, and that
    fallback is what becomes active.  With no hosts at all nothing is
    activated and a :class:`Loaded` event is reported with ``False``.
    """
    if url is not None and url in state.hosts:
        target = url
    else:
        target = state.first_url()

    if target is None:
        return Transition(state=state, events=(Loaded(),), result=False)

    return Transition(
        state=replace(state, active=target),
        events=(ActiveChanged(target),),
        result=True,
        active_changed=True,
    )


def clear_active(state: RegistryState) -> Transition:
    return Transition(
        state=replace(state, active=None),
        events=(ActiveCleared(),),
        result=True,
        active_changed=True,
    )


def add_host(state: RegistryState, raw: str) -> Transition:
    """Register the host described by *raw*.

    Returns the new url as the result, or ``None`` when the host already
    existed (the existing entry is activated instead).

    Raises :class:`InvalidHostUrl` when *raw* does not resolve to an
    absolute http(s) URL.
    """
    host = host_from_raw(raw)
    if not is_http_url(host.url):
        raise InvalidHostUrl(host.url)

    if host.url in state.hosts:
        activated = set_active(state, host.url)
        return replace(activated, result=None)

    hosts = _copy_hosts(state)
    hosts[host.url] = host
    return Transition(
        state=replace(state, hosts=hosts),
        events=(HostAdded(host.url),),
        result=host.url,
        hosts_changed=True,
    )


def remove_host(state: RegistryState, url: str) -> Transition:
    """Unregister *url*.

    Raises :class:`HostNotFound` for an unknown url.
    """
    if url not in state.hosts:
        raise HostNotFound(url)

    hosts = _copy_hosts(state)
    del hosts[url]

    events: Tuple[RegistryEvent, ...] = ()
    active = state.active
    if active == url:
        active = None
        events += (ActiveCleared(),)
    events += (HostRemoved(url),)

    return Transition(
        state=RegistryState(hosts=hosts, active=active),
        events=events,
        result=True,
        hosts_changed=True,
        active_changed=active != state.active,
    )


def display_title(
    url: str,
    title: str,
    *,
    product_name: str = DEFAULT_PRODUCT_NAME,
    canonical_host_pattern: str = CANONICAL_HOST_PATTERN,
) -> str:
    """Disambiguate the product's default name with the url it belongs to.

    Every self-hosted server reports the same default name; only the
    canonical hosted instance keeps it bare.
    """
    if title == product_name and re.search(canonical_host_pattern, url) is None:
        return f"{title} - {url}"
    return title


def set_host_title(
    state: RegistryState,
    url: str,
    title: str,
    *,
    product_name: str = DEFAULT_PRODUCT_NAME,
    canonical_host_pattern: str = CANONICAL_HOST_PATTERN,
) -> Transition:
    if url not in state.hosts:
        raise HostNotFound(url)

    title = display_title(
        url,
        title,
        product_name=product_name,
        canonical_host_pattern=canonical_host_pattern,
    )
    hosts = _copy_hosts(state)
    hosts[url].title = title
    return Transition(
        state=replace(state, hosts=hosts),
        events=(TitleChanged(url, title),),
        result=True,
        hosts_changed=True,
    )
