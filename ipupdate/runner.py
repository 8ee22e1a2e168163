"""One complete updater run: discover addresses, then update every zone."""

from __future__ import annotations

from ipupdate.aws.route53 import Route53
from ipupdate.base.config import AWSConfig, UpdaterConfig
from ipupdate.base.logger import log
from ipupdate.base.models import DesiredAddresses, ZoneUpdateResult
from ipupdate.base.zone_api import ZoneAPIBlueprint
from ipupdate.discovery import discover_addresses
from ipupdate.update import update_all_zones


def _format(addresses: frozenset) -> str:
    return ", ".join(str(address) for address in sorted(addresses))


async def run(
    config: UpdaterConfig,
    api: ZoneAPIBlueprint | None = None,
    desired: DesiredAddresses | None = None,
) -> list[ZoneUpdateResult]:
    """Update every configured zone with the discovered addresses.

    Args:
        config: Checked configuration.
        api: Zone API to use; a :class:`Route53` client is built from the
            environment when omitted.
        desired: Skip discovery and publish these addresses instead.

    Returns:
        One result per configured zone.

    Raises:
        ConfigurationError: If no discovery source is enabled.
        DiscoveryError: If address discovery fails.
    """
    if desired is None:
        desired = await discover_addresses(config)

    log.info(f"IPv4 addresses: {_format(desired.ipv4)}")
    log.info(f"IPv6 addresses: {_format(desired.ipv6)}")
    if desired.is_empty():
        log.warning("No usable addresses discovered; managed A/AAAA records will be removed")

    if api is None:
        api = Route53(AWSConfig(), api_timeout=config.api_timeout)

    return await update_all_zones(
        api,
        config.route53_zones,
        desired,
        config.ttl,
        poll_interval=config.poll_interval,
        propagation_timeout=config.propagation_timeout,
    )
