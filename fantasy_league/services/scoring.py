from typing import Dict, Optional

from fantasy_league.core.rules import BASE_POINTS_BY_POSITION, QUAL_BONUS_BY_POSITION, GameRules
from fantasy_league.models.race import ResultStatus
from fantasy_league.schemas.race import RaceResultIn
from fantasy_league.schemas.score import RiderBreakdown, SubstitutionBreakdown, TeamScore, TeamScoreBreakdown
from fantasy_league.schemas.snapshot import SnapshotRider, TeamSnapshot

# Starters the bench may replace. DSQ and finishers never qualify.
SUBSTITUTABLE_STATUSES = {ResultStatus.DNS.value, ResultStatus.DNF.value, ResultStatus.DNQ.value}

REASON_APPLIED = "AUTO_SUB_SAME_GENDER"
REASON_NO_VALID_SUB = "NO_VALID_SUB"
REASON_NO_BENCH = "NO_BENCH"
REASON_NO_ELIGIBLE_STARTER = "NO_ELIGIBLE_STARTER"


def get_base_points(position: Optional[int]) -> int:
    if not position:
        return 0
    return BASE_POINTS_BY_POSITION.get(position, 0)


def get_qual_bonus(position: Optional[int]) -> int:
    if not position:
        return 0
    return QUAL_BONUS_BY_POSITION.get(position, 0)


def score_rider_result(result: Optional[RaceResultIn], rules: GameRules) -> dict:
    """Points of a single rider. A rider without a result did not start."""
    status = result.status.value if result else ResultStatus.DNS.value
    position = result.position if result else None
    base_points = 0
    qual_bonus = 0
    penalties = 0

    if status == ResultStatus.FIN.value:
        base_points = get_base_points(position)
        if rules.qual_bonus_enabled:
            qual_bonus = get_qual_bonus(result.qualification_position)
    elif status == ResultStatus.DSQ.value:
        penalties = rules.dsq_penalty

    return {
        "status": status,
        "position": position,
        "base_points": base_points,
        "qual_bonus": qual_bonus,
        "penalties": penalties,
        "final_points": base_points + qual_bonus + penalties,
    }


def _build_breakdown(rider: SnapshotRider, slot_index: Optional[int],
                     result: Optional[RaceResultIn], rules: GameRules) -> RiderBreakdown:
    return RiderBreakdown(
        slot_index=slot_index,
        uci_id=rider.uci_id,
        gender=rider.gender,
        **score_rider_result(result, rules),
    )


def score_team_snapshot(
    snapshot: TeamSnapshot,
    results_by_uci_id: Dict[str, RaceResultIn],
    rules: GameRules,
) -> TeamScore:
    """
    Turns a locked snapshot and the race results into points.

    With a bench rider, the substitutable starters (DNS/DNF/DNQ) of the bench
    rider's gender are candidates; the one with the highest cost at lock is
    replaced (lowest slot index on ties) and takes the bench rider's points.
    Bench points only count through a substitution.
    """
    starters = [
        _build_breakdown(starter, index, results_by_uci_id.get(starter.uci_id), rules)
        for index, starter in enumerate(snapshot.starters)
    ]
    bench = None
    if snapshot.bench:
        bench = _build_breakdown(snapshot.bench, None, results_by_uci_id.get(snapshot.bench.uci_id), rules)

    substitution = SubstitutionBreakdown(
        applied=False,
        bench_uci_id=snapshot.bench.uci_id if snapshot.bench else None,
        replaced_starter_index=None,
        reason=REASON_NO_BENCH,
    )

    if not rules.auto_sub_enabled:
        substitution.reason = REASON_NO_VALID_SUB
    elif snapshot.bench is not None:
        with_status = [
            index for index, starter in enumerate(starters)
            if starter.status in SUBSTITUTABLE_STATUSES
        ]
        candidates = [
            index for index in with_status
            if starters[index].gender == snapshot.bench.gender
        ]

        if not candidates:
            substitution.reason = REASON_NO_VALID_SUB if with_status else REASON_NO_ELIGIBLE_STARTER
        else:
            replaced = min(
                candidates,
                key=lambda index: (-(snapshot.starters[index].cost_at_lock or 0), index),
            )
            starters[replaced] = starters[replaced].model_copy(update={"final_points": bench.final_points})
            substitution = SubstitutionBreakdown(
                applied=True,
                bench_uci_id=snapshot.bench.uci_id,
                replaced_starter_index=replaced,
                reason=REASON_APPLIED,
            )

    total_points = sum(starter.final_points for starter in starters[:rules.team_size])

    return TeamScore(
        total_points=total_points,
        breakdown=TeamScoreBreakdown(starters=starters, bench=bench, substitution=substitution),
    )
