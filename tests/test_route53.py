"""Tests for the AWS Route 53 zone API."""

from unittest.mock import patch, MagicMock
import asyncio
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from ipupdate.aws.route53 import Route53, MAX_COMMENT_LENGTH
from ipupdate.base.config import AWSConfig
from ipupdate.base.exceptions import (
    MissingReplyFieldError,
    TransportError,
    ZoneNotFoundError,
)
from ipupdate.base.models import (
    Change,
    ChangeAction,
    ChangeBatch,
    InSync,
    Pending,
    RecordSet,
    UnknownStatus,
)


def _client_error(code: str, msg: str = "error") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": msg}}, "op")


def _rrs(name: str, rtype: str, values: list[str], ttl: int = 300, **extra) -> dict:
    return {
        "Name": name,
        "Type": rtype,
        "TTL": ttl,
        "ResourceRecords": [{"Value": v} for v in values],
        **extra,
    }


@pytest.fixture
def svc():
    with patch("ipupdate.aws.route53.boto3") as mock_boto:
        mock_client = MagicMock()
        mock_boto.client.return_value = mock_client
        instance = Route53(AWSConfig(
            aws_access_key_id="key",
            aws_secret_access_key="secret",
            region_name="us-east-1",
        ), api_timeout=5)
        yield instance, mock_client, mock_boto


class TestClient:
    def test_single_attempt_with_timeouts(self, svc):
        _, _, boto = svc
        kwargs = boto.client.call_args[1]
        assert boto.client.call_args[0] == ("route53",)
        assert kwargs["config"].connect_timeout == 5
        assert kwargs["config"].read_timeout == 5
        assert kwargs["config"].retries == {"total_max_attempts": 1}

    def test_async_variants_generated(self, svc):
        inst, client, _ = svc
        client.get_change.return_value = {"ChangeInfo": {"Id": "/change/C1", "Status": "INSYNC"}}
        assert asyncio.run(inst.aget_change_status("C1")) == InSync()


# --- list_records_for_hostname ---

class TestListRecordsForHostname:
    def test_stops_at_next_name(self, svc):
        inst, client, _ = svc
        client.list_resource_record_sets.return_value = {
            "ResourceRecordSets": [
                _rrs("www.example.com.", "A", ["1.1.1.1"]),
                _rrs("www.example.com.", "AAAA", ["2001:db8::1"]),
                _rrs("zzz.example.com.", "A", ["9.9.9.9"]),
            ],
            "IsTruncated": True,
            "NextRecordName": "zzz2.example.com.",
            "NextRecordType": "A",
        }
        records = inst.list_records_for_hostname("Z1", "www.example.com")
        assert [(r.name, r.type) for r in records] == [
            ("www.example.com.", "A"),
            ("www.example.com.", "AAAA"),
        ]
        assert records[0].values == ("1.1.1.1",)
        client.list_resource_record_sets.assert_called_once_with(
            HostedZoneId="Z1",
            StartRecordName="www.example.com",
            StartRecordType="A",
        )

    def test_follows_cursor(self, svc):
        inst, client, _ = svc
        client.list_resource_record_sets.side_effect = [
            {
                "ResourceRecordSets": [
                    _rrs("www.example.com.", "A", ["1.1.1.1"], SetIdentifier="w1", Weight=10),
                ],
                "IsTruncated": True,
                "NextRecordName": "www.example.com.",
                "NextRecordType": "A",
                "NextRecordIdentifier": "w2",
            },
            {
                "ResourceRecordSets": [
                    _rrs("www.example.com.", "A", ["2.2.2.2"], SetIdentifier="w2", Weight=20),
                ],
                "IsTruncated": False,
            },
        ]
        records = inst.list_records_for_hostname("Z1", "www.example.com.")
        assert [r.set_identifier for r in records] == ["w1", "w2"]
        second = client.list_resource_record_sets.call_args_list[1][1]
        assert second["StartRecordName"] == "www.example.com."
        assert second["StartRecordType"] == "A"
        assert second["StartRecordIdentifier"] == "w2"

    def test_matches_case_insensitively_and_unescapes(self, svc):
        inst, client, _ = svc
        client.list_resource_record_sets.return_value = {
            "ResourceRecordSets": [_rrs("\\052.example.com.", "A", ["1.1.1.1"])],
            "IsTruncated": False,
        }
        records = inst.list_records_for_hostname("Z1", "*.Example.com")
        assert len(records) == 1

    def test_empty_zone(self, svc):
        inst, client, _ = svc
        client.list_resource_record_sets.return_value = {
            "ResourceRecordSets": [],
            "IsTruncated": False,
        }
        assert inst.list_records_for_hostname("Z1", "www.example.com") == []

    def test_truncated_without_cursor(self, svc):
        inst, client, _ = svc
        client.list_resource_record_sets.return_value = {
            "ResourceRecordSets": [_rrs("www.example.com.", "A", ["1.1.1.1"])],
            "IsTruncated": True,
        }
        with pytest.raises(MissingReplyFieldError) as exc:
            inst.list_records_for_hostname("Z1", "www.example.com")
        assert exc.value.field == "NextRecordName"
        assert exc.value.zone_id == "Z1"

    def test_missing_type(self, svc):
        inst, client, _ = svc
        client.list_resource_record_sets.return_value = {
            "ResourceRecordSets": [{"Name": "www.example.com."}],
            "IsTruncated": False,
        }
        with pytest.raises(MissingReplyFieldError, match="Type"):
            inst.list_records_for_hostname("Z1", "www.example.com")

    def test_not_found(self, svc):
        inst, client, _ = svc
        client.list_resource_record_sets.side_effect = _client_error(
            "NoSuchHostedZone", "No hosted zone found with ID: Z-missing"
        )
        with pytest.raises(ZoneNotFoundError, match="No hosted zone found") as exc:
            inst.list_records_for_hostname("Z-missing", "www.example.com")
        assert exc.value.hostname == "www.example.com"

    def test_connection_error(self, svc):
        inst, client, _ = svc
        client.list_resource_record_sets.side_effect = EndpointConnectionError(
            endpoint_url="https://route53.amazonaws.com"
        )
        with pytest.raises(TransportError):
            inst.list_records_for_hostname("Z1", "www.example.com")


# --- submit_change_batch ---

class TestSubmitChangeBatch:
    def test_success(self, svc):
        inst, client, _ = svc
        client.change_resource_record_sets.return_value = {
            "ChangeInfo": {"Id": "/change/C123", "Status": "PENDING"}
        }
        existing = RecordSet(
            name="www.example.com.",
            type="A",
            ttl=60,
            values=("9.9.9.9",),
            set_identifier="weighted",
            raw=_rrs("www.example.com.", "A", ["9.9.9.9"], ttl=60, SetIdentifier="weighted", Weight=5),
        )
        batch = ChangeBatch(
            changes=(
                Change(ChangeAction.DELETE, existing),
                Change(ChangeAction.UPSERT, RecordSet("www.example.com", "A", 300, ("2.2.2.2",))),
            ),
            comment="Route 53 update for www.example.com",
        )
        handle = inst.submit_change_batch("Z1", batch)
        assert handle.change_id == "C123"
        assert handle.status == Pending()

        args = client.change_resource_record_sets.call_args[1]
        assert args["HostedZoneId"] == "Z1"
        sent = args["ChangeBatch"]
        assert sent["Comment"] == "Route 53 update for www.example.com"
        assert sent["Changes"][0]["Action"] == "DELETE"
        assert sent["Changes"][0]["ResourceRecordSet"]["Weight"] == 5
        assert sent["Changes"][1] == {
            "Action": "UPSERT",
            "ResourceRecordSet": {
                "Name": "www.example.com",
                "Type": "A",
                "TTL": 300,
                "ResourceRecords": [{"Value": "2.2.2.2"}],
            },
        }

    def test_long_comment_truncated(self, svc):
        inst, client, _ = svc
        client.change_resource_record_sets.return_value = {
            "ChangeInfo": {"Id": "/change/C1", "Status": "INSYNC"}
        }
        inst.submit_change_batch("Z1", ChangeBatch(changes=(), comment="x" * 1000))
        sent = client.change_resource_record_sets.call_args[1]["ChangeBatch"]
        assert len(sent["Comment"]) == MAX_COMMENT_LENGTH

    @pytest.mark.parametrize("reply,field", [
        ({}, "ChangeInfo"),
        ({"ChangeInfo": {"Status": "PENDING"}}, "Id"),
        ({"ChangeInfo": {"Id": "/change/C1"}}, "Status"),
    ])
    def test_missing_reply_field(self, svc, reply, field):
        inst, client, _ = svc
        client.change_resource_record_sets.return_value = reply
        with pytest.raises(MissingReplyFieldError) as exc:
            inst.submit_change_batch("Z1", ChangeBatch(changes=()))
        assert exc.value.field == field

    def test_error(self, svc):
        inst, client, _ = svc
        client.change_resource_record_sets.side_effect = _client_error(
            "InvalidChangeBatch", "Tried to delete resource record set but it was not found"
        )
        with pytest.raises(TransportError, match="not found") as exc:
            inst.submit_change_batch("Z1", ChangeBatch(changes=()))
        assert exc.value.zone_id == "Z1"


# --- get_change_status ---

class TestGetChangeStatus:
    @pytest.mark.parametrize("raw,expected", [
        ("PENDING", Pending()),
        ("INSYNC", InSync()),
        ("REVERTED", UnknownStatus("REVERTED")),
    ])
    def test_statuses(self, svc, raw, expected):
        inst, client, _ = svc
        client.get_change.return_value = {"ChangeInfo": {"Id": "/change/C1", "Status": raw}}
        assert inst.get_change_status("C1") == expected
        client.get_change.assert_called_once_with(Id="C1")

    @pytest.mark.parametrize("reply,field", [
        ({}, "ChangeInfo"),
        ({"ChangeInfo": {"Id": "/change/C1"}}, "Status"),
        ({"ChangeInfo": {"Id": "/change/C1", "Status": ""}}, "Status"),
    ])
    def test_missing_reply_field(self, svc, reply, field):
        inst, client, _ = svc
        client.get_change.return_value = reply
        with pytest.raises(MissingReplyFieldError) as exc:
            inst.get_change_status("C1", zone_id="Z1")
        assert exc.value.field == field
        assert exc.value.zone_id == "Z1"

    def test_error(self, svc):
        inst, client, _ = svc
        client.get_change.side_effect = _client_error("NoSuchChange")
        with pytest.raises(TransportError, match="zone Z1") as exc:
            inst.get_change_status("C-missing", zone_id="Z1")
        assert exc.value.zone_id == "Z1"
