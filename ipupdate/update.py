"""
Zone update orchestration.

For every configured zone: gather the changes each hostname needs
(concurrently, fail-fast), submit them as one change batch and wait for
Route 53 to report the batch in sync. Zones are updated concurrently and
independently of each other.
"""

from __future__ import annotations

import asyncio
from typing import Iterable

from ipupdate.base.config import HostnameConfig, ZoneConfig
from ipupdate.base.exceptions import (
    IPUpdateError,
    PropagationTimeoutError,
    UnexpectedStatusError,
)
from ipupdate.base.logger import log
from ipupdate.base.models import (
    Change,
    ChangeBatch,
    DesiredAddresses,
    InSync,
    Pending,
    PropagationHandle,
    UnknownStatus,
    ZoneOutcome,
    ZoneUpdateResult,
)
from ipupdate.base.zone_api import ZoneAPIBlueprint
from ipupdate.diff import diff_hostname, resolve_ttl

DEFAULT_POLL_INTERVAL = 0.5


async def get_changes_for_hostname(
    api: ZoneAPIBlueprint,
    zone: ZoneConfig,
    hostname_config: HostnameConfig,
    desired: DesiredAddresses,
    default_ttl: int | None,
) -> list[Change]:
    """Read one hostname's record sets and diff them against *desired*."""
    hostname = hostname_config.hostname
    desired_ttl = resolve_ttl(hostname_config.ttl, zone.ttl, default_ttl)

    log.debug("Getting changes for hostname", zone_id=zone.zone_id, hostname=hostname)
    record_sets = await api.alist_records_for_hostname(zone.zone_id, hostname)
    log.debug(f"Hostname has record sets: {record_sets}", zone_id=zone.zone_id, hostname=hostname)

    return diff_hostname(hostname, record_sets, desired.ipv4, desired.ipv6, desired_ttl)


async def aggregate_zone_changes(
    api: ZoneAPIBlueprint,
    zone: ZoneConfig,
    desired: DesiredAddresses,
    default_ttl: int | None = None,
) -> list[Change]:
    """Collect the changes every hostname in *zone* needs.

    Hostnames are processed concurrently. The first failure cancels the
    hostnames still in flight and is re-raised; nothing computed for the
    zone is kept.

    Returns:
        All changes, grouped by hostname in configuration order.
    """
    tasks = [
        asyncio.create_task(get_changes_for_hostname(api, zone, h, desired, default_ttl))
        for h in zone.hostnames
    ]
    if not tasks:
        return []

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        for task in tasks:
            if task in done and task.exception() is not None:
                raise task.exception()  # type: ignore[misc]
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()

    return [change for task in tasks for change in task.result()]


def build_change_batch(zone: ZoneConfig, changes: Iterable[Change]) -> ChangeBatch:
    hostnames = " ".join(h.hostname for h in zone.hostnames)
    return ChangeBatch(changes=tuple(changes), comment=f"Route 53 update for {hostnames}")


async def submit_changes(
    api: ZoneAPIBlueprint,
    zone: ZoneConfig,
    changes: list[Change],
) -> PropagationHandle:
    """Submit *changes* to *zone* as a single atomic batch.

    Callers skip this entirely when there are no changes.
    """
    batch = build_change_batch(zone, changes)
    log.debug(
        f"Submitting {len(batch.changes)} change(s)",
        zone_id=zone.zone_id,
        operation="submit_change_batch",
    )
    return await api.asubmit_change_batch(zone.zone_id, batch)


async def wait_for_propagation(
    api: ZoneAPIBlueprint,
    handle: PropagationHandle,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    *,
    zone_id: str | None = None,
) -> None:
    """Poll a submitted batch until Route 53 reports it in sync.

    There is no deadline here; wrap the call in :func:`asyncio.wait_for`
    to bound it.

    Raises:
        UnexpectedStatusError: If the status is neither PENDING nor INSYNC.
        MissingReplyFieldError: If a status reply omits the status.
        TransportError: If a status request fails.
    """
    status = handle.status
    while True:
        log.debug(f"Status of change is now {status}", change_id=handle.change_id)
        match status:
            case InSync():
                return
            case Pending():
                await asyncio.sleep(poll_interval)
                status = await api.aget_change_status(handle.change_id, zone_id=zone_id)
            case UnknownStatus(raw=raw):
                raise UnexpectedStatusError(raw, zone_id=zone_id)
            case _:
                raise UnexpectedStatusError(repr(status), zone_id=zone_id)


async def update_zone(
    api: ZoneAPIBlueprint,
    zone: ZoneConfig,
    desired: DesiredAddresses,
    default_ttl: int | None = None,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    propagation_timeout: float | None = None,
) -> ZoneUpdateResult:
    """Bring every hostname in *zone* up to date and wait for propagation.

    Failures are reported in the result rather than raised so one zone
    cannot stop the others.
    """
    zone_id = zone.zone_id
    change_id: str | None = None
    try:
        changes = await aggregate_zone_changes(api, zone, desired, default_ttl)
        if not changes:
            log.info(
                f"All IP addresses for zone {zone_id} are up-to-date; no changes to make.",
                zone_id=zone_id,
            )
            return ZoneUpdateResult(zone_id=zone_id, outcome=ZoneOutcome.NO_CHANGES)

        handle = await submit_changes(api, zone, changes)
        change_id = handle.change_id
        log.debug("Waiting for Route 53 to propagate changes", zone_id=zone_id, change_id=change_id)
        try:
            await asyncio.wait_for(
                wait_for_propagation(api, handle, poll_interval, zone_id=zone_id),
                timeout=propagation_timeout,
            )
        except asyncio.TimeoutError:
            raise PropagationTimeoutError(
                f"Change {change_id} not in sync after {propagation_timeout}s",
                zone_id=zone_id,
            ) from None
    except IPUpdateError as e:
        log.error(f"Failed to update zone {zone_id}: {e}", zone_id=zone_id, change_id=change_id)
        return ZoneUpdateResult(
            zone_id=zone_id,
            outcome=ZoneOutcome.FAILED,
            change_id=change_id,
            error=e,
        )

    log.info(
        f"Route 53 hostnames updated successfully for zone {zone_id}",
        zone_id=zone_id,
        change_id=change_id,
    )
    return ZoneUpdateResult(zone_id=zone_id, outcome=ZoneOutcome.SUCCEEDED, change_id=change_id)


async def update_all_zones(
    api: ZoneAPIBlueprint,
    zones: Iterable[ZoneConfig],
    desired: DesiredAddresses,
    default_ttl: int | None = None,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    propagation_timeout: float | None = None,
) -> list[ZoneUpdateResult]:
    """Update every zone concurrently; one zone's failure does not affect the others.

    :func:`update_zone` reports updater errors itself. Any other exception
    from a zone is logged and turned into a failed result for that zone.
    """
    zones = list(zones)
    outcomes = await asyncio.gather(
        *(
            update_zone(
                api,
                zone,
                desired,
                default_ttl,
                poll_interval=poll_interval,
                propagation_timeout=propagation_timeout,
            )
            for zone in zones
        ),
        return_exceptions=True,
    )

    results: list[ZoneUpdateResult] = []
    for zone, outcome in zip(zones, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            log.error(
                f"Unexpected error updating zone {zone.zone_id}: {outcome!r}",
                zone_id=zone.zone_id,
            )
            outcome = ZoneUpdateResult(
                zone_id=zone.zone_id,
                outcome=ZoneOutcome.FAILED,
                error=outcome,
            )
        results.append(outcome)
    return results


def all_succeeded(results: Iterable[ZoneUpdateResult]) -> bool:
    return all(result.ok for result in results)
