from fantasy_league.core.rules import GameRules
from fantasy_league.models.team import TeamType
from fantasy_league.schemas.rider import RiderProfile
from fantasy_league.schemas.team import BenchInput, StarterInput
from fantasy_league.services.validation import validate_team

from helpers import CATALOG, DEFAULT_STARTERS

RULES = GameRules()


def _riders(category="elite", **cost_changes):
    riders = {
        uci_id: RiderProfile(uci_id=uci_id, gender=gender, category=category, cost=cost)
        for uci_id, (gender, cost) in CATALOG.items()
    }
    for uci_id, cost in cost_changes.items():
        riders[uci_id] = riders[uci_id].model_copy(update={"cost": cost})
    return riders


def _starters(ids=None):
    return [StarterInput(uci_id=uci_id, starter_index=index) for index, uci_id in enumerate(ids or DEFAULT_STARTERS)]


def _codes(result):
    return [error.code for error in result.errors]


def test_valid_roster_passes():
    result = validate_team(TeamType.ELITE, _starters(), BenchInput(uci_id="f3"), _riders(), 2_000_000, RULES)
    assert result.ok
    assert result.total_cost == 1_450_000


def test_budget_exactly_at_cap_passes_and_one_over_fails():
    at_cap = validate_team(TeamType.ELITE, _starters(), BenchInput(uci_id="f3"), _riders(), 1_450_000, RULES)
    assert at_cap.ok

    over = validate_team(TeamType.ELITE, _starters(), BenchInput(uci_id="f3"), _riders(f3=150_001), 1_450_000, RULES)
    assert _codes(over) == ["BUDGET_EXCEEDED"]


def test_five_male_one_female_violates_gender_quota():
    result = validate_team(
        TeamType.ELITE, _starters(["m1", "m2", "m3", "m4", "m5", "f1"]), None, _riders(), 2_000_000, RULES,
    )
    assert _codes(result) == ["GENDER_SLOTS_INVALID"]


def test_wrong_starter_count_reports_missing_slot():
    result = validate_team(TeamType.ELITE, _starters(["m1", "m2", "m3", "m4", "f1"]), None, _riders(), 2_000_000, RULES)
    codes = _codes(result)
    assert "STARTER_COUNT" in codes
    assert "STARTER_INDEX_MISSING" in codes
    assert "GENDER_SLOTS_INVALID" in codes


def test_duplicate_and_invalid_indexes():
    starters = _starters()
    starters[5] = StarterInput(uci_id="f2", starter_index=4)
    starters.append(StarterInput(uci_id="m5", starter_index=9))
    codes = _codes(validate_team(TeamType.ELITE, starters, None, _riders(), 2_000_000, RULES))
    assert "STARTER_INDEX_DUPLICATE" in codes
    assert "STARTER_INDEX_INVALID" in codes
    assert "STARTER_INDEX_MISSING" in codes


def test_rider_on_bench_and_in_starters_is_a_duplicate():
    result = validate_team(TeamType.ELITE, _starters(), BenchInput(uci_id="f1"), _riders(), 2_000_000, RULES)
    assert "DUPLICATE_RIDER" in _codes(result)


def test_unknown_rider_is_reported():
    result = validate_team(
        TeamType.ELITE, _starters(), BenchInput(uci_id="ghost"), _riders(), 2_000_000, RULES,
    )
    assert _codes(result) == ["RIDER_NOT_FOUND"]


def test_category_eligibility():
    junior_only = _riders(category="junior")
    result = validate_team(TeamType.ELITE, _starters(), None, junior_only, 2_000_000, RULES)
    assert _codes(result).count("CATEGORY_INELIGIBLE") == 6

    both = _riders(category="both")
    assert validate_team(TeamType.JUNIOR, _starters(), None, both, 2_000_000, RULES).ok


def test_all_violations_are_reported_together():
    starters = _starters(["m1", "m2", "m3", "m4", "m5", "m6"])
    result = validate_team(TeamType.ELITE, starters, BenchInput(uci_id="m1"), _riders(), 100_000, RULES)
    assert set(_codes(result)) == {"GENDER_SLOTS_INVALID", "DUPLICATE_RIDER", "BUDGET_EXCEEDED"}


def test_cost_overrides_replace_catalog_cost():
    riders = _riders(m1=900_000)
    without = validate_team(TeamType.ELITE, _starters(), None, riders, 1_300_000, RULES)
    assert not without.ok

    grandfathered = validate_team(TeamType.ELITE, _starters(), None, riders, 1_300_000, RULES, {"m1": 300_000})
    assert grandfathered.ok
    assert grandfathered.total_cost == 1_300_000
