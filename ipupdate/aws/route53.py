"""AWS Route 53 implementation of the zone API blueprint."""

from __future__ import annotations

import re
from typing import Any, NoReturn

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ipupdate.base.async_support import AsyncMixin
from ipupdate.base.config import AWSConfig
from ipupdate.base.exceptions import (
    MissingReplyFieldError,
    TransportError,
    ZoneNotFoundError,
)
from ipupdate.base.logger import log
from ipupdate.base.models import (
    ChangeBatch,
    PropagationHandle,
    PropagationStatus,
    RecordSet,
    normalize_hostname,
    parse_status,
)
from ipupdate.base.zone_api import ZoneAPIBlueprint

# Route 53 rejects change batch comments longer than this.
MAX_COMMENT_LENGTH = 256

_ERROR_MAP: dict[str, type[TransportError]] = {
    "NoSuchHostedZone": ZoneNotFoundError,
}

_ESCAPE_RE = re.compile(r"\\(\d{3})")


def _handle(e: ClientError | BotoCoreError, msg: str, **context: str | None) -> NoReturn:
    if isinstance(e, ClientError):
        error = e.response.get("Error", {})
        exc = _ERROR_MAP.get(error.get("Code", ""), TransportError)
        raise exc(f"{msg}: {error.get('Message') or e}", **context) from e
    raise TransportError(f"{msg}: {e}", **context) from e


def _unescape_name(name: str) -> str:
    """Decode the ``\\ddd`` octal escapes Route 53 uses in record names (e.g. ``\\052`` for ``*``)."""
    return _ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 8)), name)


def _record_set_from_wire(rrs: dict[str, Any], **context: str | None) -> RecordSet:
    for field in ("Name", "Type"):
        if field not in rrs:
            raise MissingReplyFieldError(field, **context)
    return RecordSet(
        name=rrs["Name"],
        type=rrs["Type"],
        ttl=rrs.get("TTL"),
        values=tuple(rr["Value"] for rr in rrs.get("ResourceRecords", []) if "Value" in rr),
        set_identifier=rrs.get("SetIdentifier"),
        raw=rrs,
    )


def _record_set_to_wire(record_set: RecordSet) -> dict[str, Any]:
    # Record sets read from the zone go back verbatim so deletes match exactly.
    if record_set.raw is not None:
        return record_set.raw
    wire: dict[str, Any] = {
        "Name": record_set.name,
        "Type": record_set.type,
        "TTL": record_set.ttl,
        "ResourceRecords": [{"Value": v} for v in record_set.values],
    }
    if record_set.set_identifier is not None:
        wire["SetIdentifier"] = record_set.set_identifier
    return wire


def _status_from_change_info(change_info: dict[str, Any], **context: str | None) -> PropagationStatus:
    status = change_info.get("Status")
    if not status:
        raise MissingReplyFieldError("Status", **context)
    return parse_status(status)


class Route53(ZoneAPIBlueprint, AsyncMixin):
    """AWS Route 53 zone API.

    Every call is attempted once: botocore's own retries are disabled and
    each request is bounded by ``api_timeout``.

    Attributes:
        client: boto3 Route 53 client, shared by all concurrent tasks.
    """

    def __init__(self, config: AWSConfig, api_timeout: float = 10.0) -> None:
        """Initialize the Route 53 client.

        Args:
            config: AWS configuration object containing credentials and region.
                   Expected attributes:
                   - aws_access_key_id: AWS access key ID
                   - aws_secret_access_key: AWS secret access key
                   - region_name: AWS region name (optional for Route 53)
            api_timeout: Connect and read timeout for each call, in seconds.
        """
        self.client = boto3.client(
            "route53",
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
            region_name=config.region_name,
            config=BotoConfig(
                connect_timeout=api_timeout,
                read_timeout=api_timeout,
                retries={"total_max_attempts": 1},
            ),
        )

    # --- Record sets ---

    def list_records_for_hostname(self, zone_id: str, hostname: str) -> list[RecordSet]:
        """List the record sets at *hostname*, following pagination cursors.

        The listing is ordered by name then type, so the first record with a
        different name ends the hostname's records and the scan stops there.

        Args:
            zone_id: Hosted zone ID.
            hostname: Hostname, with or without the trailing dot.

        Returns:
            Record sets in provider order.

        Raises:
            ZoneNotFoundError: If the zone does not exist.
            TransportError: On any other Route 53 API failure.
            MissingReplyFieldError: If a truncated page lacks its cursor.
        """
        target = normalize_hostname(hostname).lower()
        params: dict[str, Any] = {
            "HostedZoneId": zone_id,
            "StartRecordName": hostname,
            "StartRecordType": "A",
        }
        results: list[RecordSet] = []

        while True:
            log.debug(
                f"Listing record sets from {params['StartRecordName']} "
                f"type {params['StartRecordType']}",
                zone_id=zone_id,
                hostname=hostname,
                operation="list_resource_record_sets",
            )
            try:
                resp = self.client.list_resource_record_sets(**params)
            except (ClientError, BotoCoreError) as e:
                _handle(e, "Failed to list record sets", zone_id=zone_id, hostname=hostname)

            for rrs in resp.get("ResourceRecordSets", []):
                record_set = _record_set_from_wire(rrs, zone_id=zone_id, hostname=hostname)
                if _unescape_name(record_set.name).lower() != target:
                    log.debug(
                        f"Hit next record {record_set.name}; stopping",
                        zone_id=zone_id,
                        hostname=hostname,
                    )
                    return results
                results.append(record_set)

            if not resp.get("IsTruncated"):
                return results

            for field in ("NextRecordName", "NextRecordType"):
                if not resp.get(field):
                    raise MissingReplyFieldError(field, zone_id=zone_id, hostname=hostname)
            params["StartRecordName"] = resp["NextRecordName"]
            params["StartRecordType"] = resp["NextRecordType"]
            if resp.get("NextRecordIdentifier"):
                params["StartRecordIdentifier"] = resp["NextRecordIdentifier"]
            else:
                params.pop("StartRecordIdentifier", None)

    # --- Change batches ---

    def submit_change_batch(self, zone_id: str, batch: ChangeBatch) -> PropagationHandle:
        """Apply a Route 53 change batch atomically.

        Args:
            zone_id: Hosted zone ID.
            batch: Changes to apply and the batch comment.

        Returns:
            Handle carrying the change ID (without ``/change/`` prefix) and
            the status embedded in the reply.

        Raises:
            TransportError: On Route 53 API failure.
            MissingReplyFieldError: If ``ChangeInfo``, ``Id`` or ``Status``
                is absent from the reply.
        """
        change_batch = {
            "Comment": batch.comment[:MAX_COMMENT_LENGTH],
            "Changes": [
                {
                    "Action": change.action.value,
                    "ResourceRecordSet": _record_set_to_wire(change.record_set),
                }
                for change in batch.changes
            ],
        }
        try:
            resp = self.client.change_resource_record_sets(
                HostedZoneId=zone_id,
                ChangeBatch=change_batch,
            )
        except (ClientError, BotoCoreError) as e:
            _handle(e, "Failed to submit change batch", zone_id=zone_id)

        change_info = resp.get("ChangeInfo")
        if not change_info:
            raise MissingReplyFieldError("ChangeInfo", zone_id=zone_id)
        if not change_info.get("Id"):
            raise MissingReplyFieldError("Id", zone_id=zone_id)

        return PropagationHandle(
            change_id=change_info["Id"].split("/")[-1],
            status=_status_from_change_info(change_info, zone_id=zone_id),
        )

    def get_change_status(self, change_id: str, *, zone_id: str | None = None) -> PropagationStatus:
        """Fetch the status of a submitted change batch.

        Raises:
            TransportError: On Route 53 API failure.
            MissingReplyFieldError: If ``ChangeInfo`` or ``Status`` is absent.
        """
        try:
            resp = self.client.get_change(Id=change_id)
        except (ClientError, BotoCoreError) as e:
            _handle(e, f"Failed to get status of change '{change_id}'", zone_id=zone_id)

        change_info = resp.get("ChangeInfo")
        if not change_info:
            raise MissingReplyFieldError("ChangeInfo", zone_id=zone_id)
        return _status_from_change_info(change_info, zone_id=zone_id)
