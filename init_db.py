# init_db.py
from fantasy_league.db.session import engine
from fantasy_league.db.base import Base

# Every model must be imported so its table is registered before create_all
from fantasy_league.models.user import User
from fantasy_league.models.season import Season
from fantasy_league.models.rider import Rider
from fantasy_league.models.race import Race, RaceResult, RaceResultSet
from fantasy_league.models.team import Team, TeamMember
from fantasy_league.models.joker import JokerCard
from fantasy_league.models.snapshot import RaceSnapshot
from fantasy_league.models.score import RaceScore
from fantasy_league.models.cost_update import RiderCostUpdate


def init_db():
    print("Connecting to the database...")
    print("Creating tables...")

    Base.metadata.create_all(bind=engine)

    print("Tables created.")

if __name__ == "__main__":
    init_db()
