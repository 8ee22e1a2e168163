"""Zone-management API blueprint."""

from abc import ABC, abstractmethod

from .models import ChangeBatch, PropagationHandle, PropagationStatus, RecordSet


class ZoneAPIBlueprint(ABC):
    """Abstract interface to the zone-management API used by the updater.

    Maps to AWS Route 53. Implementations are synchronous; they also mix in
    :class:`~ipupdate.base.async_support.AsyncMixin` so the updater can await
    ``alist_records_for_hostname``, ``asubmit_change_batch`` and
    ``aget_change_status``. A single instance is shared by every concurrent
    task, so implementations must not keep per-call mutable state.
    """

    async_operations = (
        "list_records_for_hostname",
        "submit_change_batch",
        "get_change_status",
    )

    # --- Record sets ---

    @abstractmethod
    def list_records_for_hostname(self, zone_id: str, hostname: str) -> list[RecordSet]:
        """Return the record sets stored at *hostname*, in provider order.

        Args:
            zone_id: Hosted zone identifier.
            hostname: Hostname, with or without a trailing dot.

        Raises:
            TransportError: If any page request fails.
            MissingReplyFieldError: If a truncated page lacks its cursor.
        """

    # --- Change batches ---

    @abstractmethod
    def submit_change_batch(self, zone_id: str, batch: ChangeBatch) -> PropagationHandle:
        """Submit *batch* atomically and return its tracking handle.

        Raises:
            TransportError: If the request fails.
            MissingReplyFieldError: If the reply has no change info or id.
        """

    @abstractmethod
    def get_change_status(self, change_id: str, *, zone_id: str | None = None) -> PropagationStatus:
        """Fetch the current propagation status of a submitted batch.

        *zone_id* only adds context to errors; change ids are global.
        """
