"""Tests for the per-hostname diff engine."""

from ipaddress import IPv4Address, IPv6Address
import pytest
from hypothesis import given, strategies as st

from ipupdate.base.exceptions import InvalidAddressError
from ipupdate.base.models import Change, ChangeAction, RecordSet
from ipupdate.diff import diff_hostname, resolve_ttl

HOST = "www.example.com"
NAME = "www.example.com."


def _a(*values: str, ttl: int | None = 300, set_identifier: str | None = None) -> RecordSet:
    return RecordSet(NAME, "A", ttl, tuple(values), set_identifier)


def _aaaa(*values: str, ttl: int | None = 300, set_identifier: str | None = None) -> RecordSet:
    return RecordSet(NAME, "AAAA", ttl, tuple(values), set_identifier)


def _v4(*values: str) -> frozenset:
    return frozenset(IPv4Address(v) for v in values)


def _v6(*values: str) -> frozenset:
    return frozenset(IPv6Address(v) for v in values)


def _upsert(rtype: str, *values: str, ttl: int = 300) -> Change:
    return Change(ChangeAction.UPSERT, RecordSet(HOST, rtype, ttl, tuple(values)))


def _delete(record_set: RecordSet) -> Change:
    return Change(ChangeAction.DELETE, record_set)


# ══════════════════════════════════════════════════════════════════════
# Scenarios
# ══════════════════════════════════════════════════════════════════════

class TestScenarios:
    def test_up_to_date(self):
        existing = [_a("1.1.1.1", ttl=300)]
        assert diff_hostname(HOST, existing, _v4("1.1.1.1"), _v6(), 300) == []

    def test_values_and_ttl_changed(self):
        existing = [_a("1.1.1.1", ttl=60)]
        assert diff_hostname(HOST, existing, _v4("2.2.2.2"), _v6(), 300) == [
            _upsert("A", "2.2.2.2"),
        ]

    def test_routed_record_replaced(self):
        weighted = _a("9.9.9.9", set_identifier="weighted")
        assert diff_hostname(HOST, [weighted], _v4("2.2.2.2"), _v6(), 300) == [
            _delete(weighted),
            _upsert("A", "2.2.2.2"),
        ]

    def test_cname_removed(self):
        cname = RecordSet(NAME, "CNAME", 300, ("other.example.",))
        assert diff_hostname(HOST, [cname], _v4(), _v6(), 300) == [_delete(cname)]


# ══════════════════════════════════════════════════════════════════════
# Edge cases
# ══════════════════════════════════════════════════════════════════════

class TestDiffHostname:
    def test_creates_both_families_a_first(self):
        changes = diff_hostname(HOST, [], _v4("1.1.1.1"), _v6("2001:db8::1"), 120)
        assert changes == [
            _upsert("A", "1.1.1.1", ttl=120),
            _upsert("AAAA", "2001:db8::1", ttl=120),
        ]

    def test_upsert_values_sorted(self):
        changes = diff_hostname(HOST, [], _v4("10.0.0.2", "1.1.1.1", "10.0.0.10"), _v6(), 300)
        assert changes[0].record_set.values == ("1.1.1.1", "10.0.0.2", "10.0.0.10")

    def test_value_order_irrelevant(self):
        existing = [_a("2.2.2.2", "1.1.1.1")]
        assert diff_hostname(HOST, existing, _v4("1.1.1.1", "2.2.2.2"), _v6(), 300) == []

    def test_ttl_only_change(self):
        existing = [_aaaa("2001:db8::1", ttl=3600)]
        assert diff_hostname(HOST, existing, _v4(), _v6("2001:db8::1"), 300) == [
            _upsert("AAAA", "2001:db8::1"),
        ]

    def test_family_no_longer_desired_is_deleted(self):
        stale = _aaaa("2001:db8::1")
        assert diff_hostname(HOST, [stale], _v4(), _v6(), 300) == [_delete(stale)]

    def test_matching_routed_record_still_deleted(self):
        routed = _a("1.1.1.1", set_identifier="primary")
        changes = diff_hostname(HOST, [routed], _v4("1.1.1.1"), _v6(), 300)
        assert changes == [_delete(routed), _upsert("A", "1.1.1.1")]

    def test_exact_match_after_routed_record(self):
        routed = _a("9.9.9.9", set_identifier="secondary")
        current = _a("1.1.1.1")
        changes = diff_hostname(HOST, [routed, current], _v4("1.1.1.1"), _v6(), 300)
        assert changes == [_delete(routed)]

    def test_later_records_deleted_once_slot_taken(self):
        first = _a("3.3.3.3", ttl=60)
        second = _a("4.4.4.4", ttl=60)
        changes = diff_hostname(HOST, [first, second], _v4("1.1.1.1"), _v6(), 300)
        assert changes == [_upsert("A", "1.1.1.1"), _delete(second)]

    def test_alias_record_replaced(self):
        alias = RecordSet(NAME, "A", None, ())
        assert diff_hostname(HOST, [alias], _v4("1.1.1.1"), _v6(), 300) == [
            _upsert("A", "1.1.1.1"),
        ]

    def test_other_types_untouched(self):
        existing = [
            RecordSet(NAME, "MX", 300, ("10 mail.example.com.",)),
            RecordSet(NAME, "TXT", 300, ('"v=spf1 -all"',)),
            _a("1.1.1.1"),
        ]
        assert diff_hostname(HOST, existing, _v4("1.1.1.1"), _v6(), 300) == []

    def test_invalid_ipv4_value(self):
        with pytest.raises(InvalidAddressError, match="not-an-ip"):
            diff_hostname(HOST, [_a("not-an-ip")], _v4("1.1.1.1"), _v6(), 300)

    def test_ipv6_value_in_a_record(self):
        with pytest.raises(InvalidAddressError):
            diff_hostname(HOST, [_a("2001:db8::1")], _v4("1.1.1.1"), _v6(), 300)


class TestResolveTTL:
    def test_hostname_wins(self):
        assert resolve_ttl(10, 20, 30) == 10

    def test_zone_before_global(self):
        assert resolve_ttl(None, 20, 30) == 20

    def test_global(self):
        assert resolve_ttl(None, None, 30) == 30

    def test_fallback(self):
        assert resolve_ttl(None, None, None) == 300


# ══════════════════════════════════════════════════════════════════════
# Properties
# ══════════════════════════════════════════════════════════════════════

ipv4s = st.frozensets(st.ip_addresses(v=4), max_size=3)
ipv6s = st.frozensets(st.ip_addresses(v=6), max_size=3)
ttls = st.integers(min_value=1, max_value=86400)


def _record(rtype: str, addresses, ttl: int, set_identifier=None) -> RecordSet:
    return RecordSet(NAME, rtype, ttl, tuple(str(a) for a in addresses), set_identifier)


class TestProperties:
    @given(ipv4s, ipv6s, ttls)
    def test_idempotent(self, v4, v6, ttl):
        existing = []
        if v4:
            existing.append(_record("A", v4, ttl))
        if v6:
            existing.append(_record("AAAA", v6, ttl))
        assert diff_hostname(HOST, existing, v4, v6, ttl) == []

    @given(st.lists(ipv4s, min_size=2, max_size=5), ipv4s.filter(bool), ttls)
    def test_exactly_one_slot(self, existing_values, desired, ttl):
        # A different TTL guarantees none of the existing records already matches.
        existing = [_record("A", values, ttl + 1) for values in existing_values]
        changes = diff_hostname(HOST, existing, desired, frozenset(), ttl)
        upserts = [c for c in changes if c.action is ChangeAction.UPSERT]
        deletes = [c for c in changes if c.action is ChangeAction.DELETE]
        assert len(upserts) == 1
        assert [c.record_set for c in deletes] == existing[1:]

    @given(ipv4s, ipv4s, ttls, st.text(min_size=1, max_size=8))
    def test_routed_records_always_deleted(self, existing_values, desired, ttl, set_id):
        routed = _record("A", existing_values, ttl, set_identifier=set_id)
        changes = diff_hostname(HOST, [routed], desired, frozenset(), ttl)
        assert changes[0] == _delete(routed)
        assert all(c.record_set.set_identifier is None for c in changes[1:])

    @given(ipv4s, ipv6s, ttls)
    def test_cname_always_deleted(self, v4, v6, ttl):
        cname = RecordSet(NAME, "CNAME", ttl, ("target.example.",))
        assert _delete(cname) in diff_hostname(HOST, [cname], v4, v6, ttl)

    @given(ipv4s, ipv6s, ttls)
    def test_create_when_absent(self, v4, v6, ttl):
        changes = diff_hostname(HOST, [], v4, v6, ttl)
        assert [c.record_set.type for c in changes] == (["A"] if v4 else []) + (["AAAA"] if v6 else [])
        assert all(c.action is ChangeAction.UPSERT for c in changes)
