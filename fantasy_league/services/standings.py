from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from fantasy_league.core.errors import NotFoundError
from fantasy_league.core.rules import normalize_team_type
from fantasy_league.models.race import Race
from fantasy_league.models.score import RaceScore
from fantasy_league.models.team import Team
from fantasy_league.schemas.score import RaceScoreResponse, decode_breakdown
from fantasy_league.schemas.standings import RaceLeaderboardEntry, SeasonStandingEntry

PODIUM_SIZE = 3


class StandingsService:
    """
    Leaderboards are folded from the stored race scores on every call,
    so they can never drift from a re-settled race.
    """

    def get_race_leaderboard(self, db: Session, race_id: int, team_type=None) -> List[RaceLeaderboardEntry]:
        race = db.query(Race).filter(Race.id == race_id).first()
        if not race:
            raise NotFoundError(f"Race {race_id} not found")

        query = db.query(RaceScore).filter(RaceScore.race_id == race_id)
        if team_type is not None:
            query = query.filter(RaceScore.team_type == normalize_team_type(team_type).value)
        scores = query.order_by(RaceScore.total_points.desc(), RaceScore.user_id.asc()).all()

        return [
            RaceLeaderboardEntry(
                rank=index + 1,
                user_id=score.user_id,
                team_type=score.team_type,
                total_points=score.total_points,
            )
            for index, score in enumerate(scores)
        ]

    def get_season_standings(self, db: Session, season_id: int, team_type=None) -> List[SeasonStandingEntry]:
        """
        Every user with a roster in the season appears, with zero points if
        they never scored. Ties: total, wins, best race, podiums, earliest
        roster, then user id.
        """
        team_query = db.query(Team).filter(Team.season_id == season_id)
        score_query = db.query(RaceScore).join(Race, RaceScore.race_id == Race.id).filter(Race.season_id == season_id)
        if team_type is not None:
            team_type_value = normalize_team_type(team_type).value
            team_query = team_query.filter(Team.team_type == team_type_value)
            score_query = score_query.filter(RaceScore.team_type == team_type_value)

        earliest_by_user: Dict[str, Optional[datetime]] = {}
        for team in team_query.all():
            current = earliest_by_user.get(team.user_id)
            if team.created_at and (current is None or team.created_at < current):
                earliest_by_user[team.user_id] = team.created_at
            else:
                earliest_by_user.setdefault(team.user_id, None)

        totals: Dict[str, dict] = {
            user_id: self._empty_stats() for user_id in earliest_by_user
        }

        scores_by_race: Dict[int, List[RaceScore]] = {}
        for score in score_query.all():
            scores_by_race.setdefault(score.race_id, []).append(score)

        for race_scores in scores_by_race.values():
            ordered = sorted(race_scores, key=lambda s: (-s.total_points, s.user_id))
            for index, score in enumerate(ordered):
                stats = totals.setdefault(score.user_id, self._empty_stats())
                stats["total_points"] += score.total_points
                stats["highest_single_race_score"] = max(stats["highest_single_race_score"], score.total_points)
                if index == 0:
                    stats["race_wins"] += 1
                if index < PODIUM_SIZE:
                    stats["podium_finishes"] += 1

        entries = [
            SeasonStandingEntry(
                rank=0,
                user_id=user_id,
                earliest_team_created_at=earliest_by_user.get(user_id),
                **stats,
            )
            for user_id, stats in totals.items()
        ]
        entries.sort(key=self._standing_sort_key)

        for index, entry in enumerate(entries):
            entry.rank = index + 1
        return entries

    @staticmethod
    def _empty_stats() -> dict:
        return {"total_points": 0, "race_wins": 0, "highest_single_race_score": 0, "podium_finishes": 0}

    @staticmethod
    def _standing_sort_key(entry: SeasonStandingEntry):
        created = entry.earliest_team_created_at
        # Users without a creation date sort after those with one
        created_key = (0, created) if created is not None else (1, datetime.min)
        return (
            -entry.total_points,
            -entry.race_wins,
            -entry.highest_single_race_score,
            -entry.podium_finishes,
            created_key,
            entry.user_id,
        )

    def get_user_race_score(self, db: Session, race_id: int, user_id: str, team_type) -> RaceScoreResponse:
        score = db.query(RaceScore).filter(
            RaceScore.race_id == race_id,
            RaceScore.user_id == user_id,
            RaceScore.team_type == normalize_team_type(team_type).value,
        ).first()
        if not score:
            raise NotFoundError(f"No score for race {race_id}")
        return RaceScoreResponse(
            race_id=score.race_id,
            user_id=score.user_id,
            team_type=score.team_type,
            total_points=score.total_points,
            breakdown=decode_breakdown(score.breakdown_json),
            settled_at=score.settled_at,
        )
