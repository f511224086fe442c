from datetime import datetime, timedelta, timezone

from fantasy_league.models.race import ResultStatus
from fantasy_league.services.hashing import hash_payload, stable_stringify


def test_keys_are_sorted_at_every_level():
    value = {"b": 1, "a": {"d": [{"z": 1, "y": 2}], "c": None}}
    assert stable_stringify(value) == '{"a":{"c":null,"d":[{"y":2,"z":1}]},"b":1}'


def test_list_order_is_preserved():
    assert stable_stringify([3, 1, 2]) == "[3,1,2]"


def test_datetimes_use_fixed_utc_text():
    naive = datetime(2026, 5, 1, 10, 0, 0, 123456)
    aware = datetime(2026, 5, 1, 14, 0, 0, 123000, tzinfo=timezone(timedelta(hours=2)))
    assert stable_stringify({"at": naive}) == '{"at":"2026-05-01T10:00:00.123Z"}'
    assert stable_stringify(aware) == '"2026-05-01T12:00:00.123Z"'


def test_enums_serialize_as_values():
    assert stable_stringify({"status": ResultStatus.DNF}) == '{"status":"DNF"}'


def test_hash_ignores_key_order_but_not_content():
    first = hash_payload({"race_id": 1, "starters": ["a", "b"]})
    same = hash_payload({"starters": ["a", "b"], "race_id": 1})
    reordered = hash_payload({"race_id": 1, "starters": ["b", "a"]})

    assert first == same
    assert first != reordered
    assert len(first) == 64
