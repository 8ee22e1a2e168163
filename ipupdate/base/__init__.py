"""Zone API blueprint, value types and core utilities.

The Route 53 implementation and the updater are built on the pieces
defined here. Import them to type-hint your own code or to plug in a
fake zone API for testing.
"""

from .zone_api import ZoneAPIBlueprint
from .models import (
    Change,
    ChangeAction,
    ChangeBatch,
    DesiredAddresses,
    InSync,
    Pending,
    PropagationHandle,
    PropagationStatus,
    RecordSet,
    UnknownStatus,
    ZoneOutcome,
    ZoneUpdateResult,
)


__all__ = [
    "ZoneAPIBlueprint",
    "Change",
    "ChangeAction",
    "ChangeBatch",
    "DesiredAddresses",
    "InSync",
    "Pending",
    "PropagationHandle",
    "PropagationStatus",
    "RecordSet",
    "UnknownStatus",
    "ZoneOutcome",
    "ZoneUpdateResult",
]
