"""Value types shared by the reader, diff engine, submitter and poller."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from ipaddress import IPv4Address, IPv6Address
from typing import Any, Union


def normalize_hostname(hostname: str) -> str:
    """Return *hostname* with exactly one trailing dot."""
    hostname = hostname.strip()
    return hostname if hostname.endswith(".") else f"{hostname}."


@dataclass(frozen=True)
class DesiredAddresses:
    """Addresses every managed hostname should resolve to, per family."""

    ipv4: frozenset[IPv4Address] = frozenset()
    ipv6: frozenset[IPv6Address] = frozenset()

    def is_empty(self) -> bool:
        return not self.ipv4 and not self.ipv6


@dataclass(frozen=True)
class RecordSet:
    """One record set, either read from the provider or built for an upsert.

    ``raw`` keeps the provider payload of a record set that was read from the
    zone so a delete can send it back verbatim (alias targets, weights and
    other routing-policy fields included).
    """

    name: str
    type: str
    ttl: int | None
    values: tuple[str, ...] = ()
    set_identifier: str | None = None
    raw: dict[str, Any] | None = field(default=None, compare=False, repr=False)


class ChangeAction(str, enum.Enum):
    DELETE = "DELETE"
    UPSERT = "UPSERT"


@dataclass(frozen=True)
class Change:
    action: ChangeAction
    record_set: RecordSet


@dataclass(frozen=True)
class ChangeBatch:
    """An atomic group of changes submitted to one zone."""

    changes: tuple[Change, ...]
    comment: str = ""


# --- Propagation status (tagged union) ---

@dataclass(frozen=True)
class Pending:
    pass


@dataclass(frozen=True)
class InSync:
    pass


@dataclass(frozen=True)
class UnknownStatus:
    raw: str


PropagationStatus = Union[Pending, InSync, UnknownStatus]


def parse_status(raw: str) -> PropagationStatus:
    """Map a provider status string onto :data:`PropagationStatus`."""
    if raw == "PENDING":
        return Pending()
    if raw == "INSYNC":
        return InSync()
    return UnknownStatus(raw)


@dataclass(frozen=True)
class PropagationHandle:
    """Tracking reference for a submitted change batch.

    Attributes:
        change_id: Provider change identifier (without ``/change/`` prefix).
        status: Status embedded in the submission reply.
    """

    change_id: str
    status: PropagationStatus


# --- Zone outcomes ---

class ZoneOutcome(str, enum.Enum):
    NO_CHANGES = "no_changes"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ZoneUpdateResult:
    zone_id: str
    outcome: ZoneOutcome
    change_id: str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not ZoneOutcome.FAILED
