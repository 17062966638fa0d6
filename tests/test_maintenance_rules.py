"""Tests for ``upkeep.domain.maintenance_rules``: pure helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from upkeep.domain.maintenance_rules import (
    batched,
    clamp_online_limit,
    is_expired,
    matches_search,
    normalize_ids,
    normalize_usernames,
    parse_timestamp,
)

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class TestParseTimestamp:
    def test_aware_datetime_passes_through(self):
        assert parse_timestamp(NOW) == NOW

    def test_naive_datetime_is_utc(self):
        assert parse_timestamp(datetime(2026, 10, 18, 12, 0, 0)) == NOW

    @pytest.mark.parametrize("value", ["2026-10-18T12:00:00Z", "2026-10-18T12:00:00+00:00", "2026-10-18T14:00:00+02:00"])
    def test_iso_strings(self, value):
        assert parse_timestamp(value) == NOW

    @pytest.mark.parametrize("value", [None, "", "yesterday", 1700000000, {}])
    def test_unparseable(self, value):
        assert parse_timestamp(value) is None


class TestIsExpired:
    def test_ttl_is_strict(self):
        assert not is_expired(NOW - timedelta(seconds=60), NOW)
        assert is_expired(NOW - timedelta(seconds=60, milliseconds=1), NOW)

    @pytest.mark.parametrize("age,expected", [(30, False), (61, True), (120, True)])
    def test_ages(self, age, expected):
        assert is_expired(NOW - timedelta(seconds=age), NOW) is expected

    def test_missing_timestamp_never_expires(self):
        assert not is_expired(None, NOW)
        assert not is_expired("not a date", NOW)


class TestNormalizeIds:
    def test_dedupes_and_drops_falsy(self):
        assert normalize_ids(["t1", "", None, "t2", "t1", 0]) == ["t1", "t2"]

    def test_non_list_is_empty(self):
        assert normalize_ids("t1") == []
        assert normalize_ids({"ids": ["t1"]}) == []
        assert normalize_ids(None) == []

    def test_scalars_become_strings(self):
        assert normalize_ids([7, "7", ["nested"], {"a": 1}, True]) == ["7"]


def test_normalize_usernames():
    assert normalize_usernames(["Bona", "bona ", "MissDeeCash", "", None]) == ["bona", "missdeecash"]


def test_batched():
    assert list(batched(list(range(25)), 10)) == [list(range(10)), list(range(10, 20)), list(range(20, 25))]
    assert list(batched([], 10)) == []
    with pytest.raises(ValueError):
        list(batched([1], 0))


@pytest.mark.parametrize("limit,expected", [(None, 20), ("abc", 20), (0, 20), (-3, 1), (5, 5), (500, 50)])
def test_clamp_online_limit(limit, expected):
    assert clamp_online_limit(limit) == expected


def test_matches_search():
    assert matches_search("", "anyone")
    assert matches_search("dee", "MissDeeCash", None)
    assert matches_search("smith", "bona", "Ann Smith")
    assert not matches_search("zed", "bona", None)
