"""Data model for registered hosts.

Defines :class:`Host` and its JSON representation.  The persisted map
uses camelCase ``authUrl`` so existing stores keep loading.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Host:
    """A single registered server endpoint.

    ``url`` is the registry key.  ``title`` is the display name and
    defaults to the url.  Credentials are only present when the host was
    added from a URL that embedded them.
    """

    url: str
    title: str = ""
    auth_url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.title:
            self.title = self.url

    @property
    def has_credentials(self) -> bool:
        return self.username is not None and self.password is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], key: Optional[str] = None) -> Host:
        """Construct from a stored JSON object (tolerant of missing keys).

        *key* is the map key the object was stored under; it stands in
        for a missing ``url``.
        """
        url = data.get("url") or key or ""
        return cls(
            url=str(url),
            title=str(data.get("title") or url),
            auth_url=data.get("authUrl"),
            username=data.get("username"),
            password=data.get("password"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to the persisted JSON shape, omitting absent fields."""
        return {
            "title": self.title,
            "url": self.url,
            **({"authUrl": self.auth_url} if self.auth_url else {}),
            **({"username": self.username} if self.username is not None else {}),
            **({"password": self.password} if self.password is not None else {}),
        }


def hosts_to_dict(hosts: Dict[str, Host]) -> Dict[str, Dict[str, Any]]:
    """Serialise a url → :class:`Host` map for storage or notification."""
    return {url: host.to_dict() for url, host in hosts.items()}
