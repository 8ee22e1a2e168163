"""Read candidate addresses from the local network interfaces."""

from __future__ import annotations

import socket
from ipaddress import IPv4Address, IPv6Address, ip_address

import psutil

from ipupdate.base.config import UpdaterConfig
from ipupdate.base.logger import log

_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def get_addresses_from_interfaces(config: UpdaterConfig) -> list[IPv4Address | IPv6Address]:
    """Return the allowed addresses bound to non-ignored interfaces.

    Args:
        config: Supplies the interface ignore list and the address filter.

    Returns:
        Addresses in interface order; may be empty.
    """
    result: list[IPv4Address | IPv6Address] = []

    for name, snics in psutil.net_if_addrs().items():
        if not config.allows_interface(name):
            log.debug(f"Ignoring interface {name}")
            continue

        log.info(f"Checking interface {name}")
        for snic in snics:
            if snic.family not in _FAMILIES:
                continue
            # Link-local IPv6 addresses carry a zone suffix, e.g. fe80::1%eth0.
            address = ip_address(snic.address.split("%", 1)[0])
            if config.allows_address(address):
                log.info(f"Adding address {address} from interface {name}")
                result.append(address)
            else:
                log.info(f"Address {address} from interface {name} not allowed by config")

    return result
