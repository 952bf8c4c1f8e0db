"""
Elo rating worker.

Replays completed fixtures of a season in kickoff order. Each result is
applied against the latest stored ratings of both teams, one fixture at a
time, so no update is lost between overlapping fixtures.
"""

import logging
from typing import Optional, Tuple

from ..data.db import Database, EloRating, Fixture
from ..data.repositories import SqlRatingStore
from ..models.elo import DEFAULT_K_FACTOR, TeamRating, result_from_goals
from ..prediction.fallback import RatingStore
from .sync_log import track_sync

logger = logging.getLogger(__name__)


class EloUpdater:
    """Maintains per-season Elo ratings from stored results."""

    def __init__(
        self,
        db: Database,
        rating_store: Optional[RatingStore] = None,
        k_factor: float = DEFAULT_K_FACTOR
    ):
        self.db = db
        self.rating_store = rating_store or SqlRatingStore(db)
        self.k_factor = k_factor

    def apply_result(
        self,
        home_team_id: int,
        away_team_id: int,
        season_id: int,
        home_goals: int,
        away_goals: int
    ) -> Tuple[TeamRating, TeamRating]:
        """
        Update both teams' ratings with one final score.

        Both new ratings are computed from the pre-match ratings.

        Returns:
            Tuple of (home_rating, away_rating) after the match
        """
        home = self.rating_store.get_rating(home_team_id, season_id)
        away = self.rating_store.get_rating(away_team_id, season_id)

        home_result = result_from_goals(home_goals, away_goals)

        new_home = home.updated(away.rating, home_result, self.k_factor)
        new_away = away.updated(home.rating, 1.0 - home_result, self.k_factor)

        self.rating_store.save_rating(new_home)
        self.rating_store.save_rating(new_away)

        return new_home, new_away

    def _clear_season(self, season_id: int) -> None:
        session = self.db.get_session()

        try:
            session.query(EloRating).filter(EloRating.season_id == season_id).delete()
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Error clearing Elo ratings of season {season_id}: {e}")
            raise
        finally:
            session.close()

    def replay_season(self, season_id: int) -> int:
        """
        Rebuild a season's ratings from its completed fixtures.

        Stored ratings of the season are dropped first, so replaying twice
        gives the same ratings.

        Args:
            season_id: Season to replay

        Returns:
            Number of fixtures applied
        """
        with track_sync(self.db, "pitchside", "elo_ratings") as context:
            session = self.db.get_session()

            try:
                results = [
                    (f.home_team_id, f.away_team_id, f.home_goals, f.away_goals)
                    for f in session.query(Fixture).filter(
                        Fixture.season_id == season_id,
                        Fixture.status == "completed",
                        Fixture.home_goals.isnot(None),
                        Fixture.away_goals.isnot(None)
                    ).order_by(Fixture.date, Fixture.fixture_id).all()
                ]
            finally:
                session.close()

            self._clear_season(season_id)

            for home_id, away_id, home_goals, away_goals in results:
                self.apply_result(home_id, away_id, season_id, home_goals, away_goals)

            context.records_processed = len(results)
            context.records_updated = len(results)
            logger.info(f"Applied {len(results)} results to Elo ratings of season {season_id}")

        return len(results)
