"""statusboard - Presentation-state engine for a health-check status dashboard."""

import argparse
import logging
import signal
import sys
from threading import Event
from typing import Optional

__version__ = "0.1.0"

# Global shutdown event for signal handlers
_shutdown_event: Optional[Event] = None

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def _handle_shutdown(signum: int, frame: object) -> None:
    """Signal handler for graceful shutdown."""
    sig_name = signal.Signals(signum).name
    logger.info("Received %s, initiating shutdown...", sig_name)
    if _shutdown_event is not None:
        _shutdown_event.set()


def _log_home(view) -> None:
    for group in view.groups:
        state = "collapsed" if group.collapsed else "expanded"
        logger.info(
            "%s: %d endpoint(s), %d unhealthy (%s)", group.name, len(group.endpoints), group.unhealthy_count, state
        )
        if group.collapsed:
            continue
        for status in group.endpoints:
            row = view.rows.get(status.key)
            logger.info("  %s %s", status.name, row.response_time if row else "")


def _log_detail(view) -> None:
    endpoint = view.endpoint
    logger.info("%s: %d result(s) %s", endpoint.name, len(endpoint.results), view.response_time)
    for entry in view.timeline():
        logger.info("  %s (%s)", entry.fancy_text, entry.fancy_time_ago)


def _open_storage(config):
    from .storage import Storage, StorageError

    try:
        return Storage(config.storage.path)
    except StorageError as e:
        logger.error("Storage error: %s", e)
        sys.exit(1)


def _load(args: argparse.Namespace):
    from .config import ConfigError, load_config

    try:
        return load_config(args.config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)


def _cmd_watch(args: argparse.Namespace) -> None:
    """Execute the watch command - poll the server and log the dashboard model."""
    global _shutdown_event

    _setup_logging(args.verbose)
    logger.info("statusboard %s starting...", __version__)

    # Import here to allow logging setup first
    from .client import ApiError, StatusClient
    from .models import PayloadError
    from .theme import ColorResolver
    from .views import DetailView, HomeView

    config = _load(args)
    storage = _open_storage(config)
    client = StatusClient(config.server, storage)
    resolver = ColorResolver(config.theme, storage)

    try:
        server_config = client.get_config()
        logger.info("Connected to %s (%d config keys)", config.server.base_url, len(server_config))
    except (ApiError, PayloadError) as e:
        logger.warning("Could not fetch server configuration: %s", e)

    if args.endpoint:
        view = DetailView(client, storage, resolver, args.endpoint, config.dashboard.show_average_response_time)
        view.subscribe(_log_detail)
    else:
        view = HomeView(client, storage, resolver, config)
        view.subscribe(_log_home)

    _shutdown_event = Event()
    signal.signal(signal.SIGTERM, _handle_shutdown)
    signal.signal(signal.SIGINT, _handle_shutdown)

    try:
        view.start()
        _shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        view.stop()
        client.close()
        storage.close()
        logger.info("Shutdown complete")


def _cmd_login(args: argparse.Namespace) -> None:
    """Execute the login command - store Basic auth credentials."""
    import getpass

    from .client import encode_credentials

    config = _load(args)
    storage = _open_storage(config)
    password = args.password if args.password is not None else getpass.getpass("Password: ")
    storage.store_auth(args.username, encode_credentials(args.username, password))
    storage.close()
    print(f"Stored credentials for {args.username}")


def _cmd_logout(args: argparse.Namespace) -> None:
    """Execute the logout command - remove stored credentials."""
    config = _load(args)
    storage = _open_storage(config)
    storage.clear_auth()
    storage.close()
    print("Cleared stored credentials")


def _cmd_settings(args: argparse.Namespace) -> None:
    """Execute the settings command - show or change persisted settings."""
    from .theme import ColorResolver

    config = _load(args)
    storage = _open_storage(config)
    resolver = ColorResolver(config.theme, storage)

    try:
        if args.refresh_interval is not None:
            storage.set_refresh_interval(args.refresh_interval)
        if args.theme is not None:
            try:
                resolver.set_active_theme(args.theme)
            except ValueError as e:
                print(f"Error: {e}")
                sys.exit(1)
        if args.dark_mode is not None:
            storage.set_dark_mode(args.dark_mode)

        auth = storage.get_auth()
        print(f"Refresh interval: {storage.get_refresh_interval()}s")
        print(f"Theme: {resolver.active_theme()}")
        print(f"Dark mode: {'on' if storage.get_dark_mode() else 'off'}")
        print(f"Logged in as: {auth['username'] if auth else '-'}")
    finally:
        storage.close()


def main() -> None:
    """Main entry point for the statusboard package."""
    parser = argparse.ArgumentParser(
        description="statusboard - Presentation-state engine for a health-check status dashboard"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"statusboard {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    watch_parser = subparsers.add_parser(
        "watch",
        help="Poll the server and log the dashboard model (default)",
    )
    watch_parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to configuration file (default: built-in defaults)",
    )
    watch_parser.add_argument(
        "-e", "--endpoint",
        help="Watch the detail view of a single endpoint key",
    )
    watch_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    watch_parser.set_defaults(func=_cmd_watch)

    login_parser = subparsers.add_parser(
        "login",
        help="Store Basic auth credentials for the server",
    )
    login_parser.add_argument("-c", "--config", default=None, help="Path to configuration file")
    login_parser.add_argument("--username", required=True, help="User name")
    login_parser.add_argument("--password", help="Password (prompted if omitted)")
    login_parser.set_defaults(func=_cmd_login)

    logout_parser = subparsers.add_parser(
        "logout",
        help="Remove stored credentials",
    )
    logout_parser.add_argument("-c", "--config", default=None, help="Path to configuration file")
    logout_parser.set_defaults(func=_cmd_logout)

    settings_parser = subparsers.add_parser(
        "settings",
        help="Show or change persisted dashboard settings",
    )
    settings_parser.add_argument("-c", "--config", default=None, help="Path to configuration file")
    settings_parser.add_argument("--refresh-interval", type=int, help="Refresh interval in seconds")
    settings_parser.add_argument("--theme", help="Active theme name")
    dark_group = settings_parser.add_mutually_exclusive_group()
    dark_group.add_argument("--dark-mode", dest="dark_mode", action="store_true", default=None)
    dark_group.add_argument("--light-mode", dest="dark_mode", action="store_false", default=None)
    settings_parser.set_defaults(func=_cmd_settings)

    args = parser.parse_args()

    # Default to 'watch' if no command specified
    if args.command is None:
        args.config = None
        args.endpoint = None
        args.verbose = False
        args.func = _cmd_watch

    args.func(args)
