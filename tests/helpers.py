from datetime import datetime, timedelta
from typing import List, Optional

from fantasy_league.models.race import Race, RaceStatus
from fantasy_league.models.rider import Rider
from fantasy_league.models.season import Season
from fantasy_league.models.team import MemberRole, Team, TeamMember, TeamType
from fantasy_league.models.user import User
from fantasy_league.schemas.team import BenchInput, RosterInput, StarterInput

# uci_id -> (gender, cost)
CATALOG = {
    "m1": ("male", 300_000),
    "m2": ("male", 250_000),
    "m3": ("male", 200_000),
    "m4": ("male", 150_000),
    "m5": ("male", 100_000),
    "m6": ("male", 100_000),
    "f1": ("female", 200_000),
    "f2": ("female", 200_000),
    "f3": ("female", 150_000),
    "f4": ("female", 120_000),
}

NOW = datetime(2026, 5, 1, 12, 0, 0)

DEFAULT_STARTERS = ["m1", "m2", "m3", "m4", "f1", "f2"]
DEFAULT_BENCH = "f3"


def make_season(db, name: str = "Season 2026") -> Season:
    season = Season(name=name, start_at=datetime(2026, 1, 1), end_at=datetime(2026, 12, 31, 23, 59, 59))
    db.add(season)
    db.commit()
    return season


def make_race(db, season: Season, name: str, start_date: datetime,
              lock_at: Optional[datetime] = None, status: str = RaceStatus.SCHEDULED.value) -> Race:
    race = Race(
        season_id=season.id,
        name=name,
        start_date=start_date,
        lock_at=lock_at,
        game_status=status,
        needs_resettle=False,
    )
    db.add(race)
    db.commit()
    return race


def seed_catalog(db, category: str = "elite"):
    for uci_id, (gender, cost) in CATALOG.items():
        db.add(Rider(uci_id=uci_id, name=uci_id.upper(), gender=gender, category=category, cost=cost))
    db.commit()


def make_user(db, user_id: str, is_admin: bool = False) -> User:
    user = User(id=user_id, is_admin=is_admin)
    db.add(user)
    db.commit()
    return user


def make_team(db, season: Season, user_id: str, starters: List[str] = None, bench: Optional[str] = DEFAULT_BENCH,
              created_at: datetime = None, team_type: TeamType = TeamType.ELITE) -> Team:
    """Stores a roster directly, bypassing the editing window."""
    if db.query(User).filter(User.id == user_id).first() is None:
        make_user(db, user_id)
    starters = starters or DEFAULT_STARTERS
    team = Team(
        user_id=user_id,
        season_id=season.id,
        team_type=team_type.value,
        name=f"{user_id}-team",
        budget_cap=2_000_000,
        swaps_used=0,
        swaps_remaining=2,
        created_at=created_at or datetime(2026, 1, 10),
    )
    members = []
    for index, uci_id in enumerate(starters):
        gender, cost = CATALOG[uci_id]
        members.append(TeamMember(uci_id=uci_id, role=MemberRole.STARTER.value, starter_index=index,
                                  gender=gender, cost_at_save=cost))
    if bench:
        gender, cost = CATALOG[bench]
        members.append(TeamMember(uci_id=bench, role=MemberRole.BENCH.value, starter_index=None,
                                  gender=gender, cost_at_save=cost))
    team.members = members
    db.add(team)
    db.commit()
    return team


def roster(starters: List[str] = None, bench: Optional[str] = DEFAULT_BENCH, name: str = None) -> RosterInput:
    starters = starters or DEFAULT_STARTERS
    return RosterInput(
        name=name,
        starters=[StarterInput(uci_id=uci_id, starter_index=index) for index, uci_id in enumerate(starters)],
        bench=BenchInput(uci_id=bench) if bench else None,
    )


def hours(n: int) -> timedelta:
    return timedelta(hours=n)
