import logging
from typing import Callable, Dict, List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from fantasy_league.core.clock import utc_now
from fantasy_league.core.errors import NotFoundError, NotReadyError, RosterValidationError
from fantasy_league.core.rules import GameRules
from fantasy_league.db.session import transaction
from fantasy_league.models.joker import JokerCard
from fantasy_league.models.season import Season
from fantasy_league.models.team import Team, TeamMember, TeamType, MemberRole
from fantasy_league.schemas.rider import RiderProfile
from fantasy_league.schemas.team import (
    RosterInput,
    TeamMemberResponse,
    TeamResponse,
    TeamRosterResponse,
    UserTeamsResponse,
)
from fantasy_league.services.editing_window import EditingWindow, get_editing_window
from fantasy_league.services.rider_profiles import fetch_rider_profiles
from fantasy_league.services.transfers import count_transfers
from fantasy_league.services.users import get_or_create_user
from fantasy_league.services.validation import validate_team

logger = logging.getLogger(__name__)


def build_default_team_name(user_id: str, team_type: TeamType, season_id: int) -> str:
    return f"{user_id}-{team_type.value}-{season_id}"


def split_members(members: List[TeamMember]):
    starters = sorted(
        (m for m in members if m.role == MemberRole.STARTER.value),
        key=lambda m: m.starter_index if m.starter_index is not None else 0,
    )
    bench = next((m for m in members if m.role == MemberRole.BENCH.value), None)
    return starters, bench


def to_roster_response(team: Team) -> TeamRosterResponse:
    starters, bench = split_members(team.members)
    return TeamRosterResponse(
        team=TeamResponse.model_validate(team),
        starters=[TeamMemberResponse.model_validate(m) for m in starters],
        bench=TeamMemberResponse.model_validate(bench) if bench else None,
    )


def find_active_joker(
    db: Session, user_id: str, season_id: int, race_id: int, team_type: TeamType
) -> Optional[JokerCard]:
    """The used joker whose transfer waiver is still pending for this race and team type."""
    joker = db.query(JokerCard).filter(
        JokerCard.user_id == user_id,
        JokerCard.season_id == season_id,
    ).first()
    if (
        joker
        and joker.used
        and joker.active_race_id == race_id
        and joker.active_team_type == team_type.value
    ):
        return joker
    return None


class TeamService:
    """Roster repository: every roster write goes through here."""

    def __init__(self, rules: GameRules, clock: Callable[[], datetime] = utc_now):
        self.rules = rules
        self.clock = clock

    def get_user_teams_for_season(self, db: Session, user_id: str, season_id: int) -> UserTeamsResponse:
        teams = db.query(Team).filter(
            Team.user_id == user_id,
            Team.season_id == season_id,
        ).order_by(Team.team_type).all()
        return UserTeamsResponse(
            season_id=season_id,
            teams=[to_roster_response(team) for team in teams],
        )

    def upsert_team_roster(
        self,
        db: Session,
        user_id: str,
        season_id: int,
        team_type_input,
        roster: RosterInput,
    ) -> TeamRosterResponse:
        """
        Creates or replaces the user's roster for a season and team type.
        Order: editing window -> validation -> transfer ledger -> write.
        """
        team_type = self.rules.require_team_type(team_type_input)

        with transaction(db):
            season = db.query(Season).filter(Season.id == season_id).first()
            if not season:
                raise NotFoundError(f"Season {season_id} not found")

            now = self.clock()
            window = get_editing_window(db, season_id, now, self.rules.lock_lead_hours)
            if not window.editing_open or window.next_race is None:
                raise NotReadyError("Team editing is closed until the last race is settled and before the next lock.")

            get_or_create_user(db, user_id)

            team = db.query(Team).filter(
                Team.user_id == user_id,
                Team.season_id == season_id,
                Team.team_type == team_type.value,
            ).first()
            previous_members = list(team.members) if team else []

            incoming_ids = [s.uci_id for s in roster.starters]
            if roster.bench:
                incoming_ids.append(roster.bench.uci_id)

            riders = fetch_rider_profiles(db, incoming_ids + [m.uci_id for m in previous_members])
            overrides = self._grandfathered_costs(previous_members, riders, incoming_ids)
            budget_cap = self.rules.budget_for(team_type)

            validation = validate_team(
                team_type, roster.starters, roster.bench, riders, budget_cap, self.rules, overrides,
            )
            if not validation.ok:
                raise RosterValidationError([e.model_dump() for e in validation.errors])

            if team is None:
                team = Team(
                    user_id=user_id,
                    season_id=season_id,
                    team_type=team_type.value,
                    name=roster.name or build_default_team_name(user_id, team_type, season_id),
                    budget_cap=budget_cap,
                    swaps_used=0,
                    swaps_remaining=self.rules.max_transfers_per_race,
                    current_race_id=window.next_race.id,
                    created_at=now,
                    updated_at=now,
                )
                db.add(team)
            else:
                self._apply_transfers(db, team, previous_members, roster, window, team_type)
                if roster.name:
                    team.name = roster.name
                team.budget_cap = budget_cap
                team.updated_at = now

            team.members = self._build_members(roster, riders, overrides)
            db.flush()

            logger.info(
                f"Roster saved: user={user_id} season={season_id} type={team_type.value} "
                f"cost={validation.total_cost}/{budget_cap} swaps_used={team.swaps_used}"
            )
            return to_roster_response(team)

    def _grandfathered_costs(
        self,
        previous_members: List[TeamMember],
        riders: Dict[str, RiderProfile],
        incoming_ids: List[str],
    ) -> Dict[str, int]:
        """A rider kept from the previous save costs min(stored cost, catalog cost)."""
        incoming = set(incoming_ids)
        overrides = {}
        for member in previous_members:
            rider = riders.get(member.uci_id)
            if member.uci_id in incoming and rider:
                overrides[member.uci_id] = min(member.cost_at_save, rider.cost)
        return overrides

    def _apply_transfers(
        self,
        db: Session,
        team: Team,
        previous_members: List[TeamMember],
        roster: RosterInput,
        window: EditingWindow,
        team_type: TeamType,
    ):
        anchor_race_id = window.next_race.id
        limit = self.rules.max_transfers_per_race
        prior_used = (team.swaps_used or 0) if team.current_race_id == anchor_race_id else 0

        joker = find_active_joker(db, team.user_id, team.season_id, anchor_race_id, team_type)
        enforce = window.has_settled_rounds and joker is None

        team.current_race_id = anchor_race_id
        if joker is not None:
            # The waiver covers this save only
            joker.active_race_id = None
            joker.active_team_type = None
        if not enforce:
            team.swaps_used = 0
            team.swaps_remaining = limit
            return

        previous_starters, previous_bench = split_members(previous_members)
        transfers = count_transfers(
            [m.uci_id for m in previous_starters],
            previous_bench.uci_id if previous_bench else None,
            [s.uci_id for s in roster.starters],
            roster.bench.uci_id if roster.bench else None,
        )
        used = prior_used + transfers
        if used > limit:
            raise NotReadyError(
                f"Transfer limit reached: this save needs {transfers} transfers, "
                f"{max(0, limit - prior_used)} left before the next race."
            )

        team.swaps_used = used
        team.swaps_remaining = max(0, limit - used)

    def _build_members(
        self,
        roster: RosterInput,
        riders: Dict[str, RiderProfile],
        overrides: Dict[str, int],
    ) -> List[TeamMember]:
        members = []
        for starter in sorted(roster.starters, key=lambda s: s.starter_index):
            rider = riders[starter.uci_id]
            members.append(TeamMember(
                uci_id=starter.uci_id,
                role=MemberRole.STARTER.value,
                starter_index=starter.starter_index,
                gender=rider.gender,
                cost_at_save=overrides.get(starter.uci_id, rider.cost),
            ))

        if roster.bench:
            rider = riders[roster.bench.uci_id]
            members.append(TeamMember(
                uci_id=roster.bench.uci_id,
                role=MemberRole.BENCH.value,
                starter_index=None,
                gender=rider.gender,
                cost_at_save=overrides.get(roster.bench.uci_id, rider.cost),
            ))
        return members
