"""
route53-ip-update exception hierarchy.

Every failure raised by the updater inherits from :class:`IPUpdateError`.
Zone API failures carry the zone (and hostname, when known) they relate to
so a report can be understood without consulting the logs.
"""

from __future__ import annotations


# ── Base ──────────────────────────────────────────────────────────────
class IPUpdateError(Exception):
    """Root exception for all route53-ip-update errors."""


# ── Addresses ─────────────────────────────────────────────────────────
class InvalidAddressError(IPUpdateError):
    """A record value or discovered value is not a valid IP literal."""

    def __init__(self, value: str, context: str = "") -> None:
        self.value = value
        message = f"Invalid IP address: {value!r}"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)


class DiscoveryError(IPUpdateError):
    """Address discovery failed for one or more sources."""


# ── Configuration ─────────────────────────────────────────────────────
class ConfigurationError(IPUpdateError):
    """The merged configuration is unusable.

    Attributes:
        messages: Every problem found, in the order they were detected.
    """

    def __init__(self, messages: list[str] | str) -> None:
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("Invalid configuration: " + " ".join(self.messages))


# ── Zone API ──────────────────────────────────────────────────────────
class ZoneAPIError(IPUpdateError):
    """Base exception for zone-management API operations."""

    def __init__(
        self,
        message: str,
        *,
        zone_id: str | None = None,
        hostname: str | None = None,
    ) -> None:
        self.zone_id = zone_id
        self.hostname = hostname
        context = []
        if zone_id:
            context.append(f"zone {zone_id}")
        if hostname:
            context.append(f"hostname {hostname}")
        if context:
            message = f"{message} [{', '.join(context)}]"
        super().__init__(message)


class TransportError(ZoneAPIError):
    """A call to the zone API failed; it is not retried."""


class ZoneNotFoundError(TransportError):
    """Hosted zone does not exist."""


class MissingReplyFieldError(ZoneAPIError):
    """The provider reply omitted a field it is contractually bound to send."""

    def __init__(self, field: str, **kwargs: str | None) -> None:
        self.field = field
        super().__init__(f"AWS reply is missing expected field: {field}", **kwargs)


class UnexpectedStatusError(ZoneAPIError):
    """The provider reported a change status outside PENDING / INSYNC."""

    def __init__(self, status: str, **kwargs: str | None) -> None:
        self.status = status
        super().__init__(f"Unexpected Route 53 change status reported: {status}", **kwargs)


class PropagationTimeoutError(ZoneAPIError):
    """A change batch did not reach INSYNC within the configured deadline."""
