from datetime import datetime
from functools import lru_cache
from typing import Callable, List, Optional
from sqlalchemy.orm import Session

from fantasy_league.core.clock import utc_now
from fantasy_league.core.config import settings
from fantasy_league.core.rules import GameRules
from fantasy_league.schemas.race import (
    LockOutcome,
    RaceResultIn,
    ResultsUpsertOutcome,
    SettleOutcome,
    TickOutcome,
    UnlockOutcome,
)
from fantasy_league.schemas.score import RaceScoreResponse
from fantasy_league.schemas.standings import RaceLeaderboardEntry, SeasonStandingEntry
from fantasy_league.schemas.team import JokerResponse, RosterInput, TeamRosterResponse, UserTeamsResponse
from fantasy_league.services import races as race_service
from fantasy_league.services.joker import JokerService
from fantasy_league.services.lifecycle import RaceLifecycleService
from fantasy_league.services.scheduler import run_game_tick
from fantasy_league.services.settlement import SettlementService
from fantasy_league.services.standings import StandingsService
from fantasy_league.services.teams import TeamService


class GameEngine:
    """
    The season game engine. Wires the services together with one set of
    rules and one clock; every public operation takes the session to run in.
    """

    def __init__(self, rules: GameRules, clock: Callable[[], datetime] = utc_now):
        self.rules = rules
        self.clock = clock
        self.lifecycle = RaceLifecycleService(rules, clock)
        self.settlement = SettlementService(rules, clock)
        self.teams = TeamService(rules, clock)
        self.jokers = JokerService(rules, clock)
        self.standings = StandingsService()

    # --- Race lifecycle ---

    def lock_race(self, db: Session, race_id: int, force: bool = False) -> LockOutcome:
        return self.lifecycle.lock_race(db, race_id, force=force)

    def unlock_race(self, db: Session, race_id: int, force: bool = False) -> UnlockOutcome:
        return self.lifecycle.unlock_race(db, race_id, force=force)

    def upsert_race_results(self, db: Session, race_id: int, results: List[RaceResultIn],
                            is_final: bool = False) -> ResultsUpsertOutcome:
        return race_service.upsert_race_results(db, race_id, results, is_final=is_final, clock=self.clock)

    def settle_race(self, db: Session, race_id: int, force: bool = False,
                    allow_provisional: bool = False) -> SettleOutcome:
        return self.settlement.settle_race(db, race_id, force=force, allow_provisional=allow_provisional)

    def run_tick(self, db: Session, allow_provisional: bool = False, force_lock: bool = False,
                 force_settle: bool = False) -> TickOutcome:
        return run_game_tick(
            db, self.lifecycle, self.settlement,
            allow_provisional=allow_provisional, force_lock=force_lock, force_settle=force_settle,
        )

    # --- Rosters ---

    def get_user_teams(self, db: Session, user_id: str, season_id: int) -> UserTeamsResponse:
        return self.teams.get_user_teams_for_season(db, user_id, season_id)

    def upsert_roster(self, db: Session, user_id: str, season_id: int, team_type,
                      roster: RosterInput) -> TeamRosterResponse:
        return self.teams.upsert_team_roster(db, user_id, season_id, team_type, roster)

    def use_joker(self, db: Session, user_id: str, team_type,
                  season_id: Optional[int] = None) -> JokerResponse:
        return self.jokers.use_joker(db, user_id, team_type, season_id)

    # --- Standings ---

    def get_race_leaderboard(self, db: Session, race_id: int, team_type=None) -> List[RaceLeaderboardEntry]:
        return self.standings.get_race_leaderboard(db, race_id, team_type)

    def get_season_standings(self, db: Session, season_id: int, team_type=None) -> List[SeasonStandingEntry]:
        return self.standings.get_season_standings(db, season_id, team_type)

    def get_user_race_score(self, db: Session, race_id: int, user_id: str, team_type) -> RaceScoreResponse:
        return self.standings.get_user_race_score(db, race_id, user_id, team_type)


@lru_cache()
def get_engine() -> GameEngine:
    return GameEngine(GameRules.from_settings(settings))
