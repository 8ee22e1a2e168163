"""route53-ip-update CLI — point Route 53 hostnames at this machine's addresses.

Usage examples::

    route53-ip-update -r Z0123456789 home.example.com
    route53-ip-update --config-file /etc/route53-ip-update.yaml -v
    route53-ip-update -a ipv6 -q true -s "" -r Z0123456789 nas.example.com
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from ipupdate import __version__
from ipupdate.base.config import AddressType, UpdaterConfig, load_config_file
from ipupdate.base.exceptions import IPUpdateError
from ipupdate.base.logger import configure_logging
from ipupdate.runner import run
from ipupdate.update import all_succeeded

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def _bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ``route53-ip-update`` CLI.

    Returns:
        Configured :class:`~argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(
        prog="route53-ip-update",
        description="Update Route 53 DNS records with your public IPv4 and/or IPv6 address",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--address-type", "-a",
        choices=[t.value for t in AddressType],
        help="Whether to use IPv4, IPv6, or both",
    )
    parser.add_argument(
        "--allow-nonroutable", "-n",
        type=_bool,
        metavar="BOOL",
        help="Whether non-routable addresses may be used",
    )
    parser.add_argument(
        "--config-file", "-c",
        help="Configuration file to read (.toml, .json, .yaml or .yml)",
    )
    parser.add_argument(
        "--query-interfaces", "-q",
        type=_bool,
        metavar="BOOL",
        help="Whether network interfaces should be queried for their addresses",
    )
    parser.add_argument(
        "--ignore-interfaces", "-I",
        action="append",
        default=[],
        metavar="INTERFACE",
        help="Interface to ignore while querying (repeatable)",
    )
    parser.add_argument(
        "--ip-service", "-s",
        help="Service to query for the current IP address; empty string disables it",
    )
    parser.add_argument(
        "--timeout", "-t",
        help="Timeout for the IP service to respond (e.g. 10s, 500ms)",
    )
    parser.add_argument(
        "--ttl", "-T",
        type=int,
        help="Time-to-live, in seconds, to apply to records",
    )
    parser.add_argument(
        "--route53-zone", "-r",
        help="Route 53 hosted zone ID to update",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "hostnames",
        nargs="*",
        help="Hostnames to update in --route53-zone",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Loads the configuration file (if any), applies command-line overrides,
    discovers addresses and updates every zone.

    Args:
        argv: Optional argument list (defaults to ``sys.argv``).

    Returns:
        0 if every zone is up to date or was updated, 1 otherwise.
    """
    parser = _build_parser()
    ns = parser.parse_args(argv)
    configure_logging(ns.verbose)

    try:
        config = load_config_file(ns.config_file) if ns.config_file else UpdaterConfig()
        config.merge_args(
            address_type=ns.address_type,
            allow_nonroutable=ns.allow_nonroutable,
            query_interfaces=ns.query_interfaces,
            ignore_interfaces=ns.ignore_interfaces,
            ip_service=ns.ip_service,
            timeout=ns.timeout,
            ttl=ns.ttl,
            route53_zone=ns.route53_zone,
            hostnames=ns.hostnames,
        )
        config.check()
        results = asyncio.run(run(config))
    except IPUpdateError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for result in results:
        if not result.ok:
            print(f"Error: zone {result.zone_id}: {result.error}", file=sys.stderr)

    return 0 if all_succeeded(results) else 1


if __name__ == "__main__":
    sys.exit(main())
