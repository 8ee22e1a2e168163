"""Reconcile one hostname's A/AAAA record sets against the desired addresses."""

from __future__ import annotations

from ipaddress import IPv4Address, IPv6Address
from typing import AbstractSet, Iterable

from ipupdate.base.config import DEFAULT_TTL
from ipupdate.base.exceptions import InvalidAddressError
from ipupdate.base.logger import log
from ipupdate.base.models import Change, ChangeAction, RecordSet

_ADDRESS_TYPES: dict[str, type[IPv4Address] | type[IPv6Address]] = {
    "A": IPv4Address,
    "AAAA": IPv6Address,
}


def resolve_ttl(
    hostname_ttl: int | None,
    zone_ttl: int | None,
    default_ttl: int | None,
) -> int:
    """Pick the first TTL set at hostname, zone or run level, else 300 seconds."""
    for ttl in (hostname_ttl, zone_ttl, default_ttl):
        if ttl is not None:
            return ttl
    return DEFAULT_TTL


def _addresses(record_set: RecordSet, hostname: str) -> set[IPv4Address | IPv6Address]:
    address_type = _ADDRESS_TYPES[record_set.type]
    addresses: set[IPv4Address | IPv6Address] = set()
    for value in record_set.values:
        try:
            addresses.add(address_type(value))
        except ValueError as e:
            raise InvalidAddressError(value, f"{record_set.type} record at {hostname}") from e
    return addresses


def _upsert(
    record_type: str,
    hostname: str,
    ttl: int,
    addresses: AbstractSet[IPv4Address | IPv6Address],
) -> Change:
    return Change(
        action=ChangeAction.UPSERT,
        record_set=RecordSet(
            name=hostname,
            type=record_type,
            ttl=ttl,
            values=tuple(str(address) for address in sorted(addresses)),
        ),
    )


def diff_hostname(
    hostname: str,
    existing: Iterable[RecordSet],
    desired_ipv4: AbstractSet[IPv4Address],
    desired_ipv6: AbstractSet[IPv6Address],
    desired_ttl: int,
) -> list[Change]:
    """Compute the changes that bring *hostname* to the desired addresses.

    Walks the existing record sets once, in provider order. For each family
    the first unrouted record set that does not already match is upserted in
    place; every other record set of that family is deleted, as is any
    record set carrying a set identifier and any CNAME. Other record types
    are left alone. A family that still has no matching record set after
    the walk gets a fresh upsert, A before AAAA.

    Args:
        hostname: Managed hostname; used as the name of upserted records.
        existing: Record sets currently stored at the hostname.
        desired_ipv4: IPv4 addresses the hostname should resolve to.
        desired_ipv6: IPv6 addresses the hostname should resolve to.
        desired_ttl: TTL every managed record set should carry.

    Returns:
        Changes in the order they were discovered.

    Raises:
        InvalidAddressError: If an A or AAAA value is not an address of
            that family.
    """
    desired: dict[str, AbstractSet[IPv4Address | IPv6Address]] = {
        "A": desired_ipv4,
        "AAAA": desired_ipv6,
    }
    # A family with nothing to publish has nothing to create.
    satisfied = {record_type: not addresses for record_type, addresses in desired.items()}
    changes: list[Change] = []

    for record_set in existing:
        record_type = record_set.type

        if record_type in desired:
            current = _addresses(record_set, hostname)
            wanted = desired[record_type]

            if (
                record_set.set_identifier is None
                and current == wanted
                and record_set.ttl == desired_ttl
            ):
                log.debug(f"Existing {record_type} record set is up-to-date", hostname=hostname)
                satisfied[record_type] = True
            elif satisfied[record_type] or not wanted or record_set.set_identifier is not None:
                log.debug(f"Deleting existing {record_type} record set {record_set}", hostname=hostname)
                changes.append(Change(action=ChangeAction.DELETE, record_set=record_set))
            else:
                log.debug(f"Upserting existing {record_type} record set {record_set}", hostname=hostname)
                changes.append(_upsert(record_type, hostname, desired_ttl, wanted))
                satisfied[record_type] = True

        elif record_type == "CNAME":
            log.debug(f"Deleting CNAME record set {record_set}", hostname=hostname)
            changes.append(Change(action=ChangeAction.DELETE, record_set=record_set))

        else:
            log.debug(f"Ignoring {record_type} record set", hostname=hostname)

    for record_type in ("A", "AAAA"):
        if not satisfied[record_type]:
            log.debug(f"Creating new {record_type} record set", hostname=hostname)
            changes.append(_upsert(record_type, hostname, desired_ttl, desired[record_type]))

    return changes
