"""Discover the addresses managed hostnames should point at.

Two sources are available: the local network interfaces and an "echo my
IP" HTTP service (queried once per allowed address family). Enabled
sources run concurrently; their results are filtered by the configured
address rules and split by family.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Awaitable

from ipupdate.base.async_support import async_wrap
from ipupdate.base.config import UpdaterConfig
from ipupdate.base.exceptions import ConfigurationError, DiscoveryError
from ipupdate.base.logger import log
from ipupdate.base.models import DesiredAddresses

from .interfaces import get_addresses_from_interfaces
from .ip_service import (
    LookupStrategy,
    build_session,
    get_address_from_ip_service,
)

aget_addresses_from_interfaces = async_wrap(get_addresses_from_interfaces)
aget_address_from_ip_service = async_wrap(get_address_from_ip_service)


async def discover_addresses(config: UpdaterConfig) -> DesiredAddresses:
    """Run every enabled discovery source and merge the allowed addresses.

    Raises:
        ConfigurationError: If no source is enabled.
        DiscoveryError: If any enabled source fails; every failure is listed.
    """
    with contextlib.ExitStack() as stack:
        sources: list[tuple[str, Awaitable[Any]]] = []

        if config.query_interfaces:
            sources.append(("network interfaces", aget_addresses_from_interfaces(config)))

        if config.query_ip_service:
            for strategy in LookupStrategy:
                if not config.address_type.allows_version(strategy.version):
                    continue
                session = stack.enter_context(build_session(strategy))
                sources.append((
                    f"IPv{strategy.version} query to {config.ip_service}",
                    aget_address_from_ip_service(session, config.ip_service, config.timeout),
                ))

        if not sources:
            raise ConfigurationError("Not querying any interfaces or IP services.")

        results = await asyncio.gather(*(aw for _, aw in sources), return_exceptions=True)

    ipv4 = set()
    ipv6 = set()
    errors: list[str] = []

    for (label, _), result in zip(sources, results):
        if isinstance(result, Exception):
            log.error(f"Address discovery via {label} failed: {result}")
            errors.append(f"{label}: {result}")
            continue
        if isinstance(result, BaseException):
            raise result
        for address in result:
            if not config.allows_address(address):
                log.debug(f"Address {address} from {label} not allowed by config")
                continue
            (ipv4 if address.version == 4 else ipv6).add(address)

    if errors:
        raise DiscoveryError("Address discovery failed: " + "; ".join(errors))

    return DesiredAddresses(ipv4=frozenset(ipv4), ipv6=frozenset(ipv6))


__all__ = [
    "LookupStrategy",
    "build_session",
    "discover_addresses",
    "get_address_from_ip_service",
    "get_addresses_from_interfaces",
]
