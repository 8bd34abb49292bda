"""
Hostkeeper - a registry of chat server endpoints for a desktop client.

Hostkeeper keeps the list of servers a client may connect to, tracks the
active one, validates reachability before a server is admitted and
upgrades older persisted formats on startup.
"""

from hostkeeper.constants import APP_NAME, APP_VERSION

__version__ = APP_VERSION
__app_name__ = APP_NAME

__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "__version__",
    "__app_name__",
]
