"""Reachability check for candidate hosts.

A host is admitted only if ``GET <origin>/api/info`` answers with a 2xx
status within the timeout.  Credentials embedded in the url are turned
into an ``Authorization`` header and stripped from the request target.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlsplit

import httpx

from hostkeeper.constants import DEFAULT_VALIDATION_TIMEOUT, FRAGMENT_TOKEN_USERNAME, INFO_PATH
from hostkeeper.errors import ValidationRejected, ValidationTimeout
from hostkeeper.registry.url_parser import origin_of, parse_host_url

logger = logging.getLogger(__name__)


def _basic(username: str, password: str) -> str:
    raw = f"{username}:{password}".encode("utf-8")
    return f"Basic {base64.b64encode(raw).decode('ascii')}"


def request_target(host_url: str) -> Tuple[str, Dict[str, str]]:
    """Split *host_url* into a bare origin and the auth headers it implies.

    Uses the same precedence as :func:`parse_host_url`: a fragment token
    becomes a bearer token, userinfo becomes basic auth.
    """
    headers: Dict[str, str] = {}
    if "@" not in host_url and "#" not in host_url:
        return host_url.rstrip("/"), headers

    host = parse_host_url(host_url)
    if host is not None and host.auth_url is not None:
        if host.username == FRAGMENT_TOKEN_USERNAME:
            headers["Authorization"] = f"Bearer {host.password}"
        else:
            headers["Authorization"] = _basic(host.username or "", host.password or "")
        return origin_of(host.url), headers

    # Shapes the parser does not classify, e.g. ``https://user@host``
    parts = urlsplit(host_url)
    if parts.username is not None:
        headers["Authorization"] = _basic(parts.username, parts.password or "")
    if parts.fragment:
        headers["Authorization"] = f"Bearer {parts.fragment}"
    return origin_of(host_url), headers


class HostValidator:
    """Async validator for candidate hosts.

    Parameters
    ----------
    info_path:
        Path probed on the host (default ``/api/info``).
    transport:
        Optional ``httpx`` transport, used by tests to avoid the network.
    default_timeout:
        Timeout in seconds when :meth:`validate` is called without one.
    """

    def __init__(
        self,
        *,
        info_path: str = INFO_PATH,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        default_timeout: float = DEFAULT_VALIDATION_TIMEOUT,
    ) -> None:
        self._info_path = "/" + info_path.lstrip("/")
        self._transport = transport
        self._default_timeout = default_timeout
        self._client: Optional[httpx.AsyncClient] = None

    # ── lifecycle ───────────────────────────────────────────────────

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            kwargs: Dict[str, Any] = {
                "headers": {"Accept": "application/json"},
                "follow_redirects": True,
                # The race in validate() owns the deadline
                "timeout": None,
            }
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HostValidator:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ── public API ──────────────────────────────────────────────────

    async def validate(self, host_url: str, timeout: Optional[float] = None) -> None:
        """Check that *host_url* answers its info endpoint.

        Raises :class:`ValidationTimeout` if no response arrives within
        *timeout* seconds and :class:`ValidationRejected` for a non-2xx
        status, a transport error or a url that cannot be parsed.
        """
        if timeout is None:
            timeout = self._default_timeout

        try:
            origin, headers = request_target(host_url)
        except ValueError as exc:
            logger.info("Validation rejected unparseable url: %s", exc)
            raise ValidationRejected(host_url, f"malformed url: {exc}") from exc
        info_url = origin + self._info_path
        client = self._ensure_client()

        logger.debug("Validating %s (timeout=%.1fs)", info_url, timeout)
        try:
            response = await asyncio.wait_for(client.get(info_url, headers=headers), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.info("Validation of %s timed out after %.1fs", origin, timeout)
            raise ValidationTimeout(origin, f"no answer within {timeout:g}s") from exc
        except httpx.TimeoutException as exc:
            logger.info("Validation of %s timed out: %s", origin, exc)
            raise ValidationTimeout(origin, str(exc)) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.info("Validation of %s failed: %s", origin, exc)
            raise ValidationRejected(origin, f"{type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            logger.info("Validation of %s rejected with HTTP %d", origin, response.status_code)
            raise ValidationRejected(
                origin,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        logger.info("Host %s validated", origin)
