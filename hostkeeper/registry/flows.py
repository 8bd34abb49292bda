"""User-facing flows around the registry.

These tie the registry to its collaborators: confirm with the user,
validate the host, commit it, and report a single error message when any
step fails.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from hostkeeper.constants import APP_NAME, PROTOCOL_SCHEME
from hostkeeper.errors import HostkeeperError
from hostkeeper.registry.collaborators import AppDataResetter, Dialogs
from hostkeeper.registry.manager import HostRegistry, register_host_secrets
from hostkeeper.registry.url_parser import host_from_raw, protocol_url_from_argv
from hostkeeper.registry.validator import HostValidator

logger = logging.getLogger(__name__)

ADD_SERVER_TITLE = "Add Server"
ADD_SERVER_ERROR_TITLE = "Invalid Host"
RESET_TITLE = "Reset app data"
RESET_MESSAGE = "This will sign you out from all your servers and reset the app to its original settings."


class HostFlows:
    """Orchestrates confirmation, validation and registration of hosts.

    Parameters
    ----------
    registry:
        The loaded :class:`HostRegistry`.
    validator:
        Reachability checker used before a host is admitted.
    dialogs:
        Confirmation / error collaborator.
    resetter:
        Collaborator that wipes persisted state; required only for
        :meth:`reset_app_data`.
    timeout:
        Validation timeout in seconds (``None`` uses the validator default).
    protocol_scheme:
        Custom protocol handled by :meth:`handle_process_args`.
    """

    def __init__(
        self,
        registry: HostRegistry,
        validator: HostValidator,
        dialogs: Dialogs,
        *,
        resetter: Optional[AppDataResetter] = None,
        timeout: Optional[float] = None,
        protocol_scheme: str = PROTOCOL_SCHEME,
    ) -> None:
        self._registry = registry
        self._validator = validator
        self._dialogs = dialogs
        self._resetter = resetter
        self._timeout = timeout
        self._protocol_scheme = protocol_scheme

    async def show_host_confirmation(self, url: str, *, validate: bool = True) -> bool:
        """Ask to add *url*; on acceptance validate, add and activate it.

        Returns ``True`` once the host is registered and active.
        """
        register_host_secrets(host_from_raw(url))
        accepted = self._dialogs.confirm(
            ADD_SERVER_TITLE,
            f"Do you want to add \"{url}\" to your list of servers?",
        )
        if not accepted:
            logger.info("Adding '%s' declined by user", url)
            return False

        try:
            if validate:
                await self._validator.validate(url, self._timeout)
            self._registry.add_host(url)
            # Activate under the parsed key; credentials are not part of it
            self._registry.set_active(host_from_raw(url).url)
        except HostkeeperError as exc:
            logger.warning("Could not add host '%s': %s", url, exc)
            self._dialogs.show_error(
                ADD_SERVER_ERROR_TITLE,
                f"Could not add \"{url}\": the server did not answer as a valid {APP_NAME} host.",
            )
            return False
        return True

    async def handle_add_host_request(self, url: str, *, validate: bool = True) -> bool:
        """Handle a host requested from outside (another instance, a link).

        Known hosts are activated without asking or re-validating.
        """
        if self._registry.host_exists(url):
            return self._registry.set_active(url)
        return await self.show_host_confirmation(url, validate=validate)

    async def handle_process_args(self, argv: Sequence[str]) -> bool:
        """Run the confirmation flow for a custom-protocol url in *argv*."""
        url = protocol_url_from_argv(argv, self._protocol_scheme)
        if url is None:
            return False
        logger.info("Custom protocol invocation for '%s'", url)
        return await self.handle_add_host_request(url)

    def reset_app_data(self) -> bool:
        """Ask for confirmation, then hand over to the app-data resetter."""
        if self._resetter is None:
            raise RuntimeError("No AppDataResetter configured")

        if not self._dialogs.confirm(RESET_TITLE, RESET_MESSAGE):
            return False

        logger.warning("Resetting application data")
        self._resetter.reset_app_data()
        return True
