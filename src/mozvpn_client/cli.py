"""Command-line front end.

Example
-------
    mozvpn-client login
    mozvpn-client relays --country Sweden
    mozvpn-client select Sweden Gothenburg se-got-wg-001

Every subcommand runs the full startup sequence first; an unrecoverable
startup error is logged at CRITICAL level and the process exits with 1.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence, TextIO

from mozvpn_client.app import StartupResult, VPNApp
from mozvpn_client.config import ClientConfig
from mozvpn_client.errors import MozVPNError
from mozvpn_client.relays import SelectionError
from mozvpn_client.utils.logging import setup_logging

logger = logging.getLogger("mozvpn-client.cli")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mozvpn-client", description="Mozilla VPN client")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="more log output")
    parser.add_argument("--store", type=Path, help="preference file holding token and keys")
    parser.add_argument("--timeout", type=int, help="seconds to wait for the browser login")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("login", help="sign in and register this device")
    sub.add_parser("devices", help="list devices registered with the account")

    relays = sub.add_parser("relays", help="list countries, cities or relays")
    relays.add_argument("--country")
    relays.add_argument("--city")

    select = sub.add_parser("select", help="choose a relay")
    select.add_argument("country")
    select.add_argument("city")
    select.add_argument("relay")
    select.add_argument(
        "--connect", action="store_true", help="mark the selection as connected (no tunnel is created)"
    )
    return parser


# --------------------------------------------------------------------------- #
# Subcommands                                                                 #
# --------------------------------------------------------------------------- #
def _cmd_login(app: VPNApp, result: StartupResult, args: argparse.Namespace, out: TextIO) -> int:
    user = result.user
    status = "active" if user.vpn.active else "inactive"
    print(f"Signed in as {user.display_name or user.email} <{user.email}>", file=out)
    print(f"Subscription: {status}", file=out)
    print(f"Device: {result.device.label} ({len(user.devices)} registered)", file=out)
    return EXIT_OK


def _cmd_devices(app: VPNApp, result: StartupResult, args: argparse.Namespace, out: TextIO) -> int:
    current = app.current_device()
    for device in result.user.devices:
        marker = "*" if current is not None and device.pubkey == current.pubkey else " "
        created = device.created_at.isoformat() if device.created_at else "-"
        print(
            f"{marker} {device.label}\t{device.pubkey}\t{device.ipv4_address}\t"
            f"{device.ipv6_address}\t{created}",
            file=out,
        )
    return EXIT_OK


def _cmd_relays(app: VPNApp, result: StartupResult, args: argparse.Namespace, out: TextIO) -> int:
    selection = app.new_selection()
    if args.city and not args.country:
        raise SelectionError("--city requires --country")
    if args.country:
        selection.select_country(args.country)
    if args.city:
        selection.select_city(args.city)
    options = selection.options()
    if selection.city:
        names = options.relays
    elif selection.country:
        names = options.cities
    else:
        names = options.countries
    for name in names:
        print(name, file=out)
    return EXIT_OK


def _cmd_select(app: VPNApp, result: StartupResult, args: argparse.Namespace, out: TextIO) -> int:
    selection = app.new_selection()
    selection.select_country(args.country)
    selection.select_city(args.city)
    selection.select_relay(args.relay)
    relay = selection.selected_relay
    assert relay is not None
    print(
        f"{relay.hostname}\t{relay.ipv4_addr_in}\t{relay.ipv6_addr_in}\t{relay.public_key}",
        file=out,
    )
    if args.connect:
        app.connection.toggle()
    print(app.connection.status_label, file=out)
    return EXIT_OK


_COMMANDS = {
    "login": _cmd_login,
    "devices": _cmd_devices,
    "relays": _cmd_relays,
    "select": _cmd_select,
}


def main(argv: Sequence[str] | None = None, *, app: VPNApp | None = None, out: TextIO | None = None) -> int:
    args = _build_parser().parse_args(argv)
    out = out or sys.stdout
    level = logging.WARNING - 10 * min(args.verbose, 2)
    setup_logging(level)

    if app is None:
        store_path = args.store.expanduser() if args.store is not None else None
        try:
            config = ClientConfig.from_env()
        except ValueError as exc:
            logger.critical("Invalid configuration: %s", exc)
            return EXIT_FATAL
        app = VPNApp.from_config(config, store_path=store_path)

    try:
        try:
            result = app.start(timeout=args.timeout)
        except MozVPNError as exc:
            logger.critical("Unable to start: %s", exc)
            return EXIT_FATAL

        try:
            return _COMMANDS[args.command](app, result, args, out)
        except SelectionError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return EXIT_USAGE
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_INTERRUPTED
    finally:
        app.close()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
