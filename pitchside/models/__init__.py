"""Prediction models for Pitchside."""

from .outcome import OutcomePrediction
from .poisson import PoissonOutcomeModel, TeamFormStats, predict_outcome
from .elo import (
    TeamRating,
    elo_outcome_probabilities,
    expected_score,
    update_rating,
    win_probability_from_ratings,
)

__all__ = [
    "OutcomePrediction",
    "PoissonOutcomeModel",
    "TeamFormStats",
    "predict_outcome",
    "TeamRating",
    "elo_outcome_probabilities",
    "expected_score",
    "update_rating",
    "win_probability_from_ratings",
]
