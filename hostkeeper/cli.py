"""CLI argument parsing and main entry point.

``hostkeeper`` manages the host registry from a terminal:

* ``hostkeeper list``: show registered hosts.
* ``hostkeeper add URL``: confirm, validate and register a host.
* ``hostkeeper open rocketchat://...``: handle a custom-protocol invocation.
* ``hostkeeper remove/activate/title``: edit the registry.
* ``hostkeeper validate URL``: reachability check only.
* ``hostkeeper reset``: wipe persisted state.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from hostkeeper.config import HostkeeperConfig, load_config
from hostkeeper.constants import APP_NAME, APP_VERSION, DEFAULT_LOG_LEVEL, LOG_DIR
from hostkeeper.display.console import print_hosts
from hostkeeper.display.logging_config import setup_logging
from hostkeeper.errors import ConfigurationError, HostkeeperError, HostValidationError
from hostkeeper.registry.collaborators import (
    ConsoleDialogs,
    Dialogs,
    HostsNotifier,
    NullNotifier,
    SnapshotFileNotifier,
    StaticDialogs,
    StorageResetter,
)
from hostkeeper.registry.flows import HostFlows
from hostkeeper.registry.manager import HostRegistry
from hostkeeper.registry.migrator import PersistenceMigrator, default_seed_paths
from hostkeeper.registry.storage import JsonFileStore
from hostkeeper.registry.validator import HostValidator

module_logger = logging.getLogger(__name__)

_CONFIG_DIR = os.path.join(
    os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config")),
    "hostkeeper",
)


class App:
    """Everything one CLI invocation needs, wired from the config."""

    def __init__(
        self,
        config: HostkeeperConfig,
        dialogs: Dialogs,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self.config = config
        self.dialogs = dialogs
        self.store = JsonFileStore(config.storage.path)
        self.preferences = JsonFileStore(config.storage.preferences_path)

        notifier: HostsNotifier = NullNotifier()
        if config.storage.snapshot_path:
            notifier = SnapshotFileNotifier(config.storage.snapshot_path)

        migrator = PersistenceMigrator(
            self.store,
            preferences=self.preferences,
            seed_paths=self._seed_paths(config),
        )
        self.registry = HostRegistry(
            self.store,
            migrator=migrator,
            notifier=notifier,
            product_name=config.branding.product_name,
            canonical_host_pattern=config.branding.canonical_host_pattern,
        )
        self.validator = HostValidator(
            info_path=config.validation.info_path,
            default_timeout=config.validation.timeout,
        )
        self.flows = HostFlows(
            self.registry,
            self.validator,
            dialogs,
            resetter=StorageResetter([self.store, self.preferences]),
            timeout=timeout,
            protocol_scheme=config.branding.protocol_scheme,
        )

    @staticmethod
    def _seed_paths(config: HostkeeperConfig) -> List[str]:
        if config.seed.search_dirs:
            return [os.path.join(d, config.seed.filename) for d in config.seed.search_dirs]
        # User data dir first, then the directory the package is installed in
        pkg_parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        return default_seed_paths(_CONFIG_DIR, pkg_parent_dir, config.seed.filename)


def _build_app(args: argparse.Namespace) -> App:
    try:
        config = load_config(args.config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    dialogs: Dialogs = StaticDialogs(answer=True) if getattr(args, "yes", False) else ConsoleDialogs()
    app = App(config, dialogs, timeout=getattr(args, "timeout", None))
    app.registry.load()
    return app


def _report_dialog_errors(app: App) -> None:
    # ConsoleDialogs print as they go; StaticDialogs only record
    if isinstance(app.dialogs, StaticDialogs):
        for title, message in app.dialogs.errors:
            print(f"Error: {title}\n  {message}", file=sys.stderr)


# ── Subcommands ──────────────────────────────────────────────────────────


def _cmd_list(args: argparse.Namespace) -> int:
    app = _build_app(args)
    print_hosts(app.registry, app.registry.active)
    return 0


async def _add(app: App, url: str, validate: bool) -> bool:
    try:
        return await app.flows.handle_add_host_request(url, validate=validate)
    finally:
        await app.validator.close()


def _cmd_add(args: argparse.Namespace) -> int:
    app = _build_app(args)
    ok = asyncio.run(_add(app, args.url, not args.no_validate))
    _report_dialog_errors(app)
    if ok:
        print(f"Active host: {app.registry.active}")
    return 0 if ok else 1


async def _open(app: App, argv: List[str]) -> bool:
    try:
        return await app.flows.handle_process_args(argv)
    finally:
        await app.validator.close()


def _cmd_open(args: argparse.Namespace) -> int:
    app = _build_app(args)
    argv = [sys.argv[0], *args.args]
    ok = asyncio.run(_open(app, argv))
    _report_dialog_errors(app)
    if ok:
        print(f"Active host: {app.registry.active}")
    return 0 if ok else 1


def _cmd_remove(args: argparse.Namespace) -> int:
    app = _build_app(args)
    if not app.registry.host_exists(args.url):
        print(f"Host '{args.url}' is not registered.", file=sys.stderr)
        return 1
    app.registry.remove_host(args.url)
    print(f"Host '{args.url}' removed.")
    return 0


def _cmd_activate(args: argparse.Namespace) -> int:
    app = _build_app(args)
    if not app.registry.set_active(args.url):
        print("No hosts registered.", file=sys.stderr)
        return 1
    print(f"Active host: {app.registry.active}")
    return 0


def _cmd_clear_active(args: argparse.Namespace) -> int:
    app = _build_app(args)
    app.registry.clear_active()
    print("No active host.")
    return 0


def _cmd_title(args: argparse.Namespace) -> int:
    app = _build_app(args)
    if not app.registry.host_exists(args.url):
        print(f"Host '{args.url}' is not registered.", file=sys.stderr)
        return 1
    app.registry.set_host_title(args.url, args.title)
    host = app.registry.get(args.url)
    print(f"Title set: {host.title if host else args.title}")
    return 0


async def _validate(validator: HostValidator, url: str, timeout: Optional[float]) -> None:
    try:
        await validator.validate(url, timeout)
    finally:
        await validator.close()


def _cmd_validate(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    validator = HostValidator(
        info_path=config.validation.info_path,
        default_timeout=config.validation.timeout,
    )
    try:
        asyncio.run(_validate(validator, args.url, args.timeout))
    except HostValidationError as exc:
        print(f"✗ {exc}", file=sys.stderr)
        return 1
    print(f"✓ {args.url} is reachable")
    return 0


def _cmd_reset(args: argparse.Namespace) -> int:
    app = _build_app(args)
    if not app.flows.reset_app_data():
        print("Reset cancelled.")
        return 1
    print("Application data reset.")
    return 0


# ── CLI parser construction ──────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with registry subcommands."""
    parser = argparse.ArgumentParser(
        prog="hostkeeper",
        description=f"{APP_NAME} v{APP_VERSION}",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Path to configuration file (YAML). Default: $HOSTKEEPER_CONFIG or ~/.config/hostkeeper/config.yaml",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=DEFAULT_LOG_LEVEL.lower(),
        choices=["debug", "info", "warning", "error", "critical"],
        help="Set file logging level (default: info)",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=LOG_DIR,
        metavar="DIR",
        help=f"Directory for log files (default: {LOG_DIR})",
    )
    subparsers = parser.add_subparsers(dest="command")

    sp_list = subparsers.add_parser("list", help="List registered hosts")
    sp_list.set_defaults(func=_cmd_list)

    sp_add = subparsers.add_parser("add", help="Validate and register a host")
    sp_add.add_argument("url", help="Host URL, optionally with user:pass@ or #token")
    sp_add.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    sp_add.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Validation timeout (default: from config, 5s)",
    )
    sp_add.add_argument(
        "--no-validate",
        action="store_true",
        help="Register without checking the info endpoint",
    )
    sp_add.set_defaults(func=_cmd_add)

    sp_open = subparsers.add_parser(
        "open",
        help="Handle a custom-protocol invocation (e.g. rocketchat://host?insecure=true)",
    )
    sp_open.add_argument("args", nargs="+", metavar="ARG", help="Process arguments")
    sp_open.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    sp_open.set_defaults(func=_cmd_open)

    sp_remove = subparsers.add_parser("remove", help="Unregister a host")
    sp_remove.add_argument("url")
    sp_remove.set_defaults(func=_cmd_remove)

    sp_activate = subparsers.add_parser("activate", help="Make a host the active one")
    sp_activate.add_argument("url")
    sp_activate.set_defaults(func=_cmd_activate)

    sp_clear = subparsers.add_parser("clear-active", help="Deselect the active host")
    sp_clear.set_defaults(func=_cmd_clear_active)

    sp_title = subparsers.add_parser("title", help="Rename a host")
    sp_title.add_argument("url")
    sp_title.add_argument("title")
    sp_title.set_defaults(func=_cmd_title)

    sp_validate = subparsers.add_parser("validate", help="Check that a host answers its info endpoint")
    sp_validate.add_argument("url")
    sp_validate.add_argument("--timeout", type=float, default=None, metavar="SECONDS")
    sp_validate.set_defaults(func=_cmd_validate)

    sp_reset = subparsers.add_parser("reset", help="Reset all application data")
    sp_reset.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    sp_reset.set_defaults(func=_cmd_reset)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Program entry point: parse arguments and dispatch to subcommand."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level, log_dir=args.log_dir, quiet=True)
    module_logger.info("---- %s v%s: %s ----", APP_NAME, APP_VERSION, args.command)

    try:
        code = args.func(args)
    except KeyboardInterrupt:
        module_logger.info("Interrupted by KeyboardInterrupt.")
        code = 130
    except HostkeeperError as exc:
        module_logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
