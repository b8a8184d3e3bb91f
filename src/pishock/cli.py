"""Command-line interface for the pishock SDK.

Provides a quick way to log in through the browser, list the shockers
reachable with a credential pair, and send a single command.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import SecretStr

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="pishock",
        description="PiShock client: browser login, device listing and commands",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/pishock.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    login_parser = subparsers.add_parser("login", help="Log in through the browser and print the credentials")
    login_parser.add_argument("--port", type=int, default=None, help="Local port for the login page")
    login_parser.add_argument("--timeout", type=float, default=None, help="Seconds to wait for the browser")

    devices_parser = subparsers.add_parser("devices", help="List owned and shared shockers")
    _add_credential_args(devices_parser)

    send_parser = subparsers.add_parser("send", help="Send one command to a shocker")
    _add_credential_args(send_parser)
    send_parser.add_argument("--client-id", type=int, required=True, help="Hub the shocker is paired to")
    send_parser.add_argument("--shocker-id", type=int, required=True)
    send_parser.add_argument(
        "--mode", choices=["vibrate", "shock", "beep", "end"], default="vibrate",
    )
    send_parser.add_argument("--intensity", type=int, default=0)
    send_parser.add_argument("--duration", type=int, default=1000, help="Duration in milliseconds")
    send_parser.add_argument("--share-code", default=None, help="Share code, for shared shockers")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def _add_credential_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--user-id", type=int, default=None, help="Overrides PISHOCK_USER_ID")
    parser.add_argument("--token", default=None, help="Overrides PISHOCK_TOKEN")


def _credentials(settings, args) -> tuple[int, str] | None:
    """Pick the credential pair from the arguments, falling back to settings."""
    overrides = {}
    if args.user_id is not None:
        overrides["user_id"] = args.user_id
    if args.token is not None:
        overrides["token"] = SecretStr(args.token)
    if overrides:
        settings = settings.model_copy(update=overrides)
    if not settings.has_credentials:
        return None
    return settings.user_id, settings.token.get_secret_value()


async def _login(settings, args) -> None:
    """Run the browser login and print the credential pair."""
    from pishock.login.web_login import WebLogin

    config = settings.login
    if args.port is not None:
        config = config.model_copy(update={"port": args.port})

    print("Opening your browser for the PiShock login...")
    user_id, token = await WebLogin.from_config(config).login(timeout=args.timeout)
    print(f"PISHOCK_USER_ID={user_id}")
    print(f"PISHOCK_TOKEN={token}")


async def _devices(settings, user_id: int, token: str) -> None:
    """List owned and shared shockers."""
    from pishock.api.client import PiShockApiClient

    async with PiShockApiClient(
        base_url=settings.api.base_url, timeout=settings.api.timeout,
    ) as api:
        shockers = await api.get_all_shockers(user_id, token)

    print(f"Owned shockers ({len(shockers.owned)}):")
    for s in shockers.owned:
        paused = " [paused]" if s.is_paused else ""
        print(f"  {s.shocker_name} (shocker {s.shocker_id}, hub {s.hub_name} / {s.client_id}){paused}")

    print(f"\nShared shockers ({len(shockers.shared)}):")
    for s in shockers.shared:
        paused = " [paused]" if s.is_paused else ""
        print(
            f"  {s.shocker_name} from {s.owner_username} (shocker {s.shocker_id}, hub {s.client_id}, "
            f"share code {s.share_code}, max {s.max_intensity}){paused}"
        )


async def _send(settings, args, user_id: int, token: str) -> None:
    """Publish one command."""
    from pishock.broker.client import CommandPublisher
    from pishock.domain.models import ShockCommand, ShockMode

    command = ShockCommand(
        shocker_id=args.shocker_id,
        client_id=args.client_id,
        mode=ShockMode(args.mode),
        intensity=args.intensity,
        duration_ms=args.duration,
        share_code=args.share_code,
    )
    async with CommandPublisher.from_config(user_id, token, settings.broker) as publisher:
        delivered = await publisher.send(command)
    print(f"Command delivered to {delivered} receiver(s)")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the pishock CLI."""
    args = parse_args(argv)

    if args.command is None:
        build_parser().print_help()
        return EXIT_USAGE

    from pishock.api.client import ApiError
    from pishock.broker.client import PublisherError
    from pishock.config.settings import load_settings
    from pishock.login.errors import LoginError
    from pishock.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    try:
        if args.command == "login":
            logger.info("Starting browser login")
            asyncio.run(_login(settings, args))
            return EXIT_OK

        credentials = _credentials(settings, args)
        if credentials is None:
            print(
                "error: no credentials; run 'pishock login' and set PISHOCK_USER_ID / PISHOCK_TOKEN",
                file=sys.stderr,
            )
            return EXIT_USAGE

        if args.command == "devices":
            asyncio.run(_devices(settings, *credentials))
        elif args.command == "send":
            asyncio.run(_send(settings, args, *credentials))
    except (LoginError, ApiError, PublisherError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
