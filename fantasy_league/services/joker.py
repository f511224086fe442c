import logging
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.orm import Session

from fantasy_league.core.clock import utc_now
from fantasy_league.core.errors import NotFoundError, NotReadyError
from fantasy_league.core.rules import GameRules
from fantasy_league.db.session import transaction
from fantasy_league.models.joker import JokerCard
from fantasy_league.models.team import Team
from fantasy_league.models.user import User
from fantasy_league.schemas.team import JokerResponse
from fantasy_league.services.editing_window import get_editing_window
from fantasy_league.services.seasons import get_season_id_for_date

logger = logging.getLogger(__name__)


class JokerService:

    def __init__(self, rules: GameRules, clock: Callable[[], datetime] = utc_now):
        self.rules = rules
        self.clock = clock

    def use_joker(self, db: Session, user_id: str, team_type_input, season_id: Optional[int] = None) -> JokerResponse:
        """
        Spends the user's joker for the season: the roster is emptied and the
        next save before the upcoming race ignores the transfer limit.
        """
        team_type = self.rules.require_team_type(team_type_input)
        now = self.clock()
        if season_id is None:
            season_id = get_season_id_for_date(db, now)

        with transaction(db):
            team = db.query(Team).filter(
                Team.user_id == user_id,
                Team.season_id == season_id,
                Team.team_type == team_type.value,
            ).first()
            if not team:
                raise NotFoundError("Team not found")

            window = get_editing_window(db, season_id, now, self.rules.lock_lead_hours)
            if not window.editing_open or window.next_race is None:
                raise NotReadyError("Joker can only be used between settlement and the next lock.")

            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise NotFoundError("User not found")

            if not window.has_settled_rounds:
                raise NotReadyError("Joker can only be used after a round has settled.")

            joker = db.query(JokerCard).filter(
                JokerCard.user_id == user_id,
                JokerCard.season_id == season_id,
            ).first()
            if joker and joker.used:
                raise NotReadyError("Joker card already used")

            next_race_id = window.next_race.id

            # The team record stays; only its members go
            team.members = []
            team.swaps_used = 0
            team.swaps_remaining = 0
            team.current_race_id = next_race_id
            team.updated_at = now

            if joker is None:
                joker = JokerCard(user_id=user_id, season_id=season_id)
                db.add(joker)
            joker.used = True
            joker.used_at = now
            joker.active_race_id = next_race_id
            joker.active_team_type = team_type.value

            logger.info(f"Joker used: user={user_id} season={season_id} type={team_type.value} race={next_race_id}")
            return JokerResponse(success=True, next_race_id=next_race_id, team_type=team_type.value)
