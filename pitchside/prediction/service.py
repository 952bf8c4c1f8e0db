"""
Prediction service combining the goal model and Elo ratings.

The Poisson goal model is tried first. When either team lacks enough
matches in the current and previous season, established Elo ratings are
used instead. If both are missing the fixture is left unpriced.
"""

import logging
from typing import Optional

from ..exceptions import InsufficientDataError
from ..models.elo import BASE_DRAW_RATE, elo_outcome_probabilities
from ..models.outcome import OutcomePrediction
from ..models.poisson import PoissonOutcomeModel
from .fallback import (
    MIN_SAMPLE_SIZE,
    RatingStore,
    StatsProvider,
    resolve_form_stats,
    resolve_rating,
)

logger = logging.getLogger(__name__)


class PredictionService:
    """Predicts fixtures from stored form and ratings."""

    def __init__(
        self,
        stats_provider: StatsProvider,
        rating_store: RatingStore,
        model: Optional[PoissonOutcomeModel] = None,
        min_sample_size: int = MIN_SAMPLE_SIZE,
        draw_rate: float = BASE_DRAW_RATE,
        home_advantage: Optional[float] = None
    ):
        """
        Initialize the service.

        Args:
            stats_provider: Source of team form stats
            rating_store: Source of Elo ratings
            model: Goal model (default PoissonOutcomeModel())
            min_sample_size: Matches required before a season is trusted
            draw_rate: Base draw rate for Elo predictions
            home_advantage: Elo points added to the home side
        """
        self.stats_provider = stats_provider
        self.rating_store = rating_store
        self.model = model or PoissonOutcomeModel()
        self.min_sample_size = min_sample_size
        self.draw_rate = draw_rate
        self.home_advantage = home_advantage

    def poisson_prediction(
        self,
        home_team_id: int,
        away_team_id: int,
        season_id: int
    ) -> OutcomePrediction:
        """Goal model prediction from home form of the home side and away form of the visitors."""
        home_stats = resolve_form_stats(
            self.stats_provider, home_team_id, season_id, True, self.min_sample_size
        )
        away_stats = resolve_form_stats(
            self.stats_provider, away_team_id, season_id, False, self.min_sample_size
        )
        return self.model.predict(home_stats, away_stats)

    def elo_prediction(
        self,
        home_team_id: int,
        away_team_id: int,
        season_id: int
    ) -> OutcomePrediction:
        """Elo prediction from the established ratings of both sides."""
        home_rating = resolve_rating(
            self.rating_store, self.stats_provider, home_team_id, season_id, self.min_sample_size
        )
        away_rating = resolve_rating(
            self.rating_store, self.stats_provider, away_team_id, season_id, self.min_sample_size
        )
        return elo_outcome_probabilities(
            home_rating.rating,
            away_rating.rating,
            draw_rate=self.draw_rate,
            home_advantage=self.home_advantage
        )

    def predict(
        self,
        home_team_id: int,
        away_team_id: int,
        season_id: int
    ) -> OutcomePrediction:
        """
        Predict a fixture, falling back from the goal model to Elo.

        Raises:
            InsufficientDataError: Neither model has enough data
        """
        try:
            return self.poisson_prediction(home_team_id, away_team_id, season_id)
        except InsufficientDataError as e:
            logger.debug(f"Goal model unavailable ({e}), trying Elo")

        return self.elo_prediction(home_team_id, away_team_id, season_id)
