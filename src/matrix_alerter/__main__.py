"""CLI entry point for Matrix Alerter.

This module provides the main entry point for checking the provider
configuration and sending test alerts from the command line.

Usage:
    python -m matrix_alerter [options]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.config
import sys
from typing import NoReturn

from pydantic import ValidationError

from matrix_alerter import __version__
from matrix_alerter.alerter.dispatcher import MatrixDispatcher
from matrix_alerter.alerter.exceptions import ConfigurationInvalidError, MatrixAlerterError
from matrix_alerter.alerter.models import AlertEvent, ConditionResult
from matrix_alerter.config import ProviderState, Settings, clear_settings_cache, get_settings

# Application info
APP_NAME = "Matrix Alerter"
APP_VERSION = __version__

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="matrix-alerter",
        description="Deliver monitoring alerts to a Matrix room.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m matrix_alerter --config-check            Validate config and exit
  python -m matrix_alerter --test-alert              Send a sample triggered alert
  python -m matrix_alerter --test-alert --resolved   Send a sample resolved alert
  python -m matrix_alerter --test-alert --group core Use the "core" override
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {APP_VERSION}",
    )

    parser.add_argument(
        "--config-check",
        action="store_true",
        help="Validate configuration and exit",
    )

    parser.add_argument(
        "--test-alert",
        action="store_true",
        help="Send a sample alert to the configured room",
    )

    parser.add_argument(
        "--group",
        default="",
        help="Endpoint group used to select an override (default: none)",
    )

    parser.add_argument(
        "--endpoint-name",
        default="example",
        help="Endpoint name shown in the sample alert (default: example)",
    )

    parser.add_argument(
        "--resolved",
        action="store_true",
        help="Send the sample alert as resolved instead of triggered",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level (default: from settings)",
    )

    return parser


def configure_logging(level: str) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level string (DEBUG, INFO, etc.)
    """
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed" if level == "DEBUG" else "standard",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        # httpx logs every request URL, which carries the access token
        "loggers": {
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)


def print_config_summary(settings: Settings, state: ProviderState) -> None:
    """Print a summary of the configuration.

    Args:
        settings: Application settings.
        state: Validated provider configuration.
    """
    summary = settings.redacted_summary()
    print("Configuration:")
    print(f"  Config File: {summary['config_file']}")
    print(f"  Homeserver: {state.homeserver_url or summary['homeserver_url']}")
    print(f"  Room: {state.room_id}")
    print(f"  Overrides: {', '.join(o.group for o in state.overrides) or '(none)'}")
    print(f"  Log Level: {summary['log_level']}")
    print(f"  Request Timeout: {summary['request_timeout']}s")
    print()


def validate_config() -> Settings | None:
    """Validate and load configuration.

    Returns:
        Settings instance if valid, None if invalid.
    """
    try:
        clear_settings_cache()
        return get_settings()
    except ValidationError as e:
        print("Configuration validation failed:", file=sys.stderr)
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            msg = error["msg"]
            print(f"  {field}: {msg}", file=sys.stderr)
        return None


def load_provider(settings: Settings) -> ProviderState | None:
    """Load the provider configuration.

    Returns:
        ProviderState if valid, None if invalid.
    """
    try:
        return settings.provider_state()
    except ConfigurationInvalidError as e:
        print(f"Provider configuration invalid: {e}", file=sys.stderr)
        return None


def run_config_check(settings: Settings, state: ProviderState) -> int:
    """Print the configuration summary.

    Returns:
        Exit code (0 for success).
    """
    print("Configuration is valid!")
    print()
    print_config_summary(settings, state)
    return EXIT_SUCCESS


def build_test_event(endpoint_name: str, group: str) -> AlertEvent:
    """Build the sample alert sent by ``--test-alert``."""
    return AlertEvent(
        endpoint_name=endpoint_name,
        endpoint_group=group,
        description="This is a test alert sent by matrix-alerter",
        condition_results=(
            ConditionResult(condition="[CONNECTED] == true", success=True),
            ConditionResult(condition="[STATUS] == 200", success=False),
        ),
    )


async def run_test_alert(
    settings: Settings,
    state: ProviderState,
    *,
    endpoint_name: str,
    group: str,
    resolved: bool,
) -> int:
    """Send a sample alert.

    Returns:
        Exit code.
    """
    logger = logging.getLogger(__name__)
    dispatcher = MatrixDispatcher(state, timeout=settings.request_timeout)
    event = build_test_event(endpoint_name, group)

    try:
        await dispatcher.send(event, resolved, group)
    except MatrixAlerterError as e:
        logger.error("Test alert failed: %s", e)
        return EXIT_ERROR

    logger.info("Test alert sent")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = validate_config()
    if settings is None:
        sys.exit(EXIT_CONFIG_ERROR)

    log_level = args.log_level or settings.log_level
    configure_logging(log_level)

    state = load_provider(settings)
    if state is None:
        sys.exit(EXIT_CONFIG_ERROR)

    # Without --test-alert there is nothing to do beyond the check
    if args.config_check or not args.test_alert:
        sys.exit(run_config_check(settings, state))

    try:
        exit_code = asyncio.run(
            run_test_alert(
                settings,
                state,
                endpoint_name=args.endpoint_name,
                group=args.group,
                resolved=args.resolved,
            )
        )
    except KeyboardInterrupt:
        exit_code = EXIT_INTERRUPTED
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
