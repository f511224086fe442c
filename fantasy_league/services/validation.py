from typing import Dict, List, Optional

from fantasy_league.core.rules import GameRules
from fantasy_league.models.rider import RiderCategory
from fantasy_league.models.team import TeamType
from fantasy_league.schemas.rider import RiderProfile
from fantasy_league.schemas.team import BenchInput, StarterInput, TeamValidationError


class TeamValidationResult:
    def __init__(self, errors: List[TeamValidationError], total_cost: int):
        self.errors = errors
        self.total_cost = total_cost

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_eligible(rider: RiderProfile, team_type: TeamType) -> bool:
    return rider.category == RiderCategory.BOTH.value or rider.category == team_type.value


def validate_team(
    team_type: TeamType,
    starters: List[StarterInput],
    bench: Optional[BenchInput],
    riders_by_uci_id: Dict[str, RiderProfile],
    budget_cap: int,
    rules: GameRules,
    cost_overrides: Optional[Dict[str, int]] = None,
) -> TeamValidationResult:
    """
    Checks a candidate roster against the composition, eligibility and budget
    rules. Nothing short-circuits: every violation is reported so the team
    builder can show all of them at once.

    cost_overrides maps uci_id -> cost to charge instead of the catalog cost
    (riders kept from the previous save are grandfathered).
    """
    errors: List[TeamValidationError] = []
    overrides = cost_overrides or {}
    expected = rules.team_size

    def cost_of(rider: RiderProfile) -> int:
        return overrides.get(rider.uci_id, rider.cost)

    if len(starters) != expected:
        errors.append(TeamValidationError(
            code="STARTER_COUNT",
            message=f"Expected {expected} starters, got {len(starters)}.",
        ))

    seen_indexes = set()
    seen_riders = set()
    gender_counts = {gender: 0 for gender in rules.gender_slots}
    total_cost = 0

    for starter in starters:
        index = starter.starter_index
        if index < 0 or index >= expected:
            errors.append(TeamValidationError(
                code="STARTER_INDEX_INVALID",
                message=f"Starter index {index} is invalid; expected 0-{expected - 1}.",
            ))
        elif index in seen_indexes:
            errors.append(TeamValidationError(
                code="STARTER_INDEX_DUPLICATE",
                message=f"Duplicate starter index {index}.",
            ))
        else:
            seen_indexes.add(index)

        if starter.uci_id in seen_riders:
            errors.append(TeamValidationError(
                code="DUPLICATE_RIDER",
                message=f"Duplicate rider {starter.uci_id} in starters.",
            ))
            continue
        seen_riders.add(starter.uci_id)

        rider = riders_by_uci_id.get(starter.uci_id)
        if not rider:
            errors.append(TeamValidationError(
                code="RIDER_NOT_FOUND",
                message=f"Rider {starter.uci_id} not found.",
            ))
            continue

        gender_counts[rider.gender] = gender_counts.get(rider.gender, 0) + 1
        total_cost += cost_of(rider)

        if not _is_eligible(rider, team_type):
            errors.append(TeamValidationError(
                code="CATEGORY_INELIGIBLE",
                message=f"Rider {starter.uci_id} is not eligible for {team_type.value}.",
            ))

    missing = [idx for idx in range(expected) if idx not in seen_indexes]
    if missing:
        errors.append(TeamValidationError(
            code="STARTER_INDEX_MISSING",
            message=f"Missing starter slots: {', '.join(str(idx) for idx in missing)}.",
        ))

    if any(gender_counts.get(gender, 0) != count for gender, count in rules.gender_slots.items()):
        quota = " and ".join(f"{count} {gender}" for gender, count in rules.gender_slots.items())
        errors.append(TeamValidationError(
            code="GENDER_SLOTS_INVALID",
            message=f"Starters must be {quota} riders.",
        ))

    if bench:
        if bench.uci_id in seen_riders:
            errors.append(TeamValidationError(
                code="DUPLICATE_RIDER",
                message=f"Duplicate rider {bench.uci_id} across starters and bench.",
            ))
        else:
            seen_riders.add(bench.uci_id)

        rider = riders_by_uci_id.get(bench.uci_id)
        if not rider:
            errors.append(TeamValidationError(
                code="RIDER_NOT_FOUND",
                message=f"Bench rider {bench.uci_id} not found.",
            ))
        else:
            total_cost += cost_of(rider)
            if not _is_eligible(rider, team_type):
                errors.append(TeamValidationError(
                    code="CATEGORY_INELIGIBLE",
                    message=f"Rider {bench.uci_id} is not eligible for {team_type.value}.",
                ))

    if total_cost > budget_cap:
        errors.append(TeamValidationError(
            code="BUDGET_EXCEEDED",
            message=f"Team cost {total_cost} exceeds budget cap {budget_cap}.",
        ))

    return TeamValidationResult(errors, total_cost)
