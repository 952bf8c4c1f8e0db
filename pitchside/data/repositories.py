"""
SQL-backed stats provider and rating store.

Implement the StatsProvider and RatingStore protocols over the Pitchside
database so the prediction service never touches the ORM directly.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func

from ..models.elo import DEFAULT_RATING, TeamRating
from ..models.poisson import TeamFormStats
from .db import Database, EloRating, Fixture, Season

logger = logging.getLogger(__name__)


class SqlStatsProvider:
    """Aggregates completed fixtures into team form stats."""

    def __init__(self, db: Database):
        self.db = db

    def get_team_form_stats(
        self,
        team_id: int,
        season_id: int,
        is_home: bool
    ) -> Optional[TeamFormStats]:
        """
        Goals scored and conceded by a team in its home or away matches.

        Args:
            team_id: Team to aggregate
            season_id: Season to aggregate
            is_home: Home matches if True, away matches otherwise

        Returns:
            TeamFormStats, or None if the team has no completed matches there
        """
        if is_home:
            team_col, scored_col, conceded_col = (
                Fixture.home_team_id, Fixture.home_goals, Fixture.away_goals
            )
        else:
            team_col, scored_col, conceded_col = (
                Fixture.away_team_id, Fixture.away_goals, Fixture.home_goals
            )

        session = self.db.get_session()

        try:
            played, scored, conceded = session.query(
                func.count(Fixture.fixture_id),
                func.coalesce(func.sum(scored_col), 0),
                func.coalesce(func.sum(conceded_col), 0),
            ).filter(
                team_col == team_id,
                Fixture.season_id == season_id,
                Fixture.status == "completed",
                Fixture.home_goals.isnot(None),
                Fixture.away_goals.isnot(None),
            ).one()

        finally:
            session.close()

        if not played:
            return None

        return TeamFormStats(
            goals_scored=int(scored),
            goals_conceded=int(conceded),
            matches_played=int(played)
        )

    def previous_season_id(self, season_id: int) -> Optional[int]:
        """Id of the same league's season that started one year earlier."""
        session = self.db.get_session()

        try:
            season = session.get(Season, season_id)
            if season is None:
                return None

            previous = self.db.get_previous_season(session, season)
            return previous.season_id if previous else None

        finally:
            session.close()


class SqlRatingStore:
    """Elo ratings persisted in the elo_ratings table."""

    def __init__(self, db: Database, seed_rating: float = DEFAULT_RATING):
        self.db = db
        self.seed_rating = seed_rating

    def find_rating(self, team_id: int, season_id: int) -> Optional[TeamRating]:
        session = self.db.get_session()

        try:
            row = session.query(EloRating).filter_by(
                team_id=team_id, season_id=season_id
            ).first()

            if row is None:
                return None

            return TeamRating(
                team_id=team_id,
                season_id=season_id,
                rating=float(row.rating),
                matches_played=int(row.matches_played)
            )

        finally:
            session.close()

    def get_rating(self, team_id: int, season_id: int) -> TeamRating:
        """Stored rating, or the seed rating with no matches played."""
        rating = self.find_rating(team_id, season_id)
        if rating is None:
            rating = TeamRating(team_id=team_id, season_id=season_id, rating=self.seed_rating)
        return rating

    def save_rating(self, rating: TeamRating) -> None:
        """Insert or update the rating of (team, season)."""
        session = self.db.get_session()

        try:
            row = session.query(EloRating).filter_by(
                team_id=rating.team_id, season_id=rating.season_id
            ).first()

            if row is None:
                row = EloRating(team_id=rating.team_id, season_id=rating.season_id)
                session.add(row)

            row.rating = rating.rating
            row.matches_played = rating.matches_played
            row.last_updated = datetime.utcnow()

            session.commit()

        except Exception as e:
            session.rollback()
            logger.error(f"Error saving Elo rating for team {rating.team_id}: {e}")
            raise
        finally:
            session.close()
