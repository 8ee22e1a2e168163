"""
Ask an "echo my IP" HTTP service for the public address.

The service sees whichever address the request arrives from, so each query
is pinned to one family: the session's adapter binds the local end of every
connection to the IPv4 or IPv6 wildcard address, and connection attempts to
addresses of the other family fail over to the next resolved address.
"""

from __future__ import annotations

import enum
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from ipupdate import __version__
from ipupdate.base.exceptions import DiscoveryError, InvalidAddressError
from ipupdate.base.logger import log

USER_AGENT = f"route53-ip-update/{__version__}"


class LookupStrategy(enum.Enum):
    """Address family a query is restricted to."""

    IPV4_ONLY = 4
    IPV6_ONLY = 6

    @property
    def version(self) -> int:
        return self.value

    @property
    def source_address(self) -> tuple[str, int]:
        return ("0.0.0.0", 0) if self is LookupStrategy.IPV4_ONLY else ("::", 0)


class SourceAddressAdapter(HTTPAdapter):
    """HTTP adapter that binds outgoing connections to a fixed source address."""

    def __init__(self, source_address: tuple[str, int], **kwargs: Any) -> None:
        # HTTPAdapter.__init__ builds the pool manager, so set this first.
        self.source_address = source_address
        super().__init__(**kwargs)

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        kwargs["source_address"] = self.source_address
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, proxy: str, **proxy_kwargs: Any) -> Any:
        proxy_kwargs["source_address"] = self.source_address
        return super().proxy_manager_for(proxy, **proxy_kwargs)


def build_session(strategy: LookupStrategy) -> requests.Session:
    """Create a session whose connections only use *strategy*'s family."""
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    adapter = SourceAddressAdapter(strategy.source_address)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def get_address_from_ip_service(
    session: requests.Session,
    ip_service: str,
    timeout: float,
) -> list[IPv4Address | IPv6Address]:
    """Query *ip_service* and parse the body as a single IP address.

    Args:
        session: Session from :func:`build_session`.
        ip_service: URL of the service.
        timeout: Request timeout in seconds.

    Returns:
        A one-element list with the reported address.

    Raises:
        DiscoveryError: If the request fails or returns an error status.
        InvalidAddressError: If the body is not an IP address.
    """
    log.debug(f"Querying IP service at {ip_service}")
    try:
        response = session.get(ip_service, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise DiscoveryError(f"Failed to query IP service {ip_service}: {e}") from e

    text = response.text.strip()
    try:
        return [ip_address(text)]
    except ValueError as e:
        raise InvalidAddressError(text, f"reply from {ip_service}") from e
