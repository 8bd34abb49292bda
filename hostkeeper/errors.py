"""Custom exception classes for Hostkeeper."""

from typing import Optional


class HostkeeperError(Exception):
    """Base class for all custom exceptions in Hostkeeper."""

    pass


class ConfigurationError(HostkeeperError):
    """Raised when loading or validating the configuration file fails."""

    pass


class MalformedPersistedData(HostkeeperError):
    """Raised when the stored host map cannot be interpreted in any known format."""

    pass


class ImportFileInvalid(HostkeeperError):
    """Raised when a seed ``servers.json`` file exists but cannot be used."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Server file invalid ({path}): {reason}")


class InvalidHostUrl(HostkeeperError, ValueError):
    """Raised when a host url is not an absolute http(s) URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Not an absolute http(s) URL: {url!r}")


class HostNotFound(HostkeeperError, KeyError):
    """Raised when a host url is not registered."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(url)

    def __str__(self) -> str:
        return f"No host registered for '{self.url}'"


class HostValidationError(HostkeeperError):
    """
    Raised when a host fails the reachability check.

    ``reason`` is ``"timeout"`` or ``"invalid"``.
    """

    reason = "invalid"

    def __init__(self, url: str, detail: Optional[str] = None):
        self.url = url
        self.detail = detail
        full_msg = f"Host validation failed ({self.reason}): {url}"
        if detail:
            full_msg += f" ({detail})"
        super().__init__(full_msg)


class ValidationTimeout(HostValidationError):
    """The info endpoint did not answer within the timeout."""

    reason = "timeout"


class ValidationRejected(HostValidationError):
    """The info endpoint answered with a non-2xx status or the request failed."""

    reason = "invalid"

    def __init__(
        self,
        url: str,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.status_code = status_code
        super().__init__(url, detail)
