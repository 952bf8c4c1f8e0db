"""
Poisson goal model for football match prediction.

Each side's goal count is treated as an independent Poisson variable whose
mean blends its own scoring rate with the opponent's conceding rate. The
joint score table is collapsed into home/draw/away probabilities.

Home and away goals are assumed independent. This ignores the small
positive correlation seen in low-scoring games.
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd
from scipy.stats import poisson

from ..exceptions import DegenerateProbabilityError, InsufficientDataError
from .outcome import OutcomePrediction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamFormStats:
    """Aggregate scoring record of one team over one season scope."""

    goals_scored: int
    goals_conceded: int
    matches_played: int

    @property
    def avg_scored(self) -> float:
        return self.goals_scored / self.matches_played

    @property
    def avg_conceded(self) -> float:
        return self.goals_conceded / self.matches_played

    def is_sufficient(self, min_sample_size: int) -> bool:
        return self.matches_played > 0 and self.matches_played >= min_sample_size


class PoissonOutcomeModel:
    """
    Independent Poisson model over final scorelines.

    Expected goals for a side are the arithmetic mean of its scoring rate
    and the opponent's conceding rate.
    """

    def __init__(
        self,
        max_goals: int = 10,
        tolerance: float = 1e-9,
        max_goals_limit: int = 60,
        min_lambda: float = 0.001
    ):
        """
        Initialize the model.

        Args:
            max_goals: Initial maximum goals per side in the score table
            tolerance: Probability mass allowed outside the table before it
                is extended
            max_goals_limit: Hard cap on the table size
            min_lambda: Floor for expected goals
        """
        self.max_goals = max_goals
        self.tolerance = tolerance
        self.max_goals_limit = max(max_goals_limit, max_goals)
        self.min_lambda = min_lambda

    def expected_goals(
        self,
        home: TeamFormStats,
        away: TeamFormStats
    ) -> Tuple[float, float]:
        """
        Derive expected goals for both sides.

        Args:
            home: Home team form (usually its home matches)
            away: Away team form (usually its away matches)

        Returns:
            Tuple of (lambda_home, lambda_away)

        Raises:
            InsufficientDataError: Either team has no matches played
        """
        if home.matches_played <= 0 or away.matches_played <= 0:
            raise InsufficientDataError(
                f"Cannot derive expected goals from {home.matches_played} home "
                f"and {away.matches_played} away matches"
            )

        lambda_home = (home.avg_scored + away.avg_conceded) / 2
        lambda_away = (away.avg_scored + home.avg_conceded) / 2

        lambda_home = max(lambda_home, self.min_lambda)
        lambda_away = max(lambda_away, self.min_lambda)

        if not (math.isfinite(lambda_home) and math.isfinite(lambda_away)):
            raise DegenerateProbabilityError(
                f"Expected goals are not finite: {lambda_home}, {lambda_away}"
            )

        return lambda_home, lambda_away

    def _table_size(self, lambda_home: float, lambda_away: float) -> int:
        """Smallest table size from max_goals whose outside mass is within tolerance."""
        k = self.max_goals
        while k < self.max_goals_limit:
            covered = poisson.cdf(k, lambda_home) * poisson.cdf(k, lambda_away)
            if 1.0 - covered <= self.tolerance:
                break
            k += 1
        return k

    def score_matrix(self, lambda_home: float, lambda_away: float) -> np.ndarray:
        """
        Probability of every scoreline, rows = home goals, columns = away goals.

        The table is renormalised so it sums to 1; whatever mass lies beyond
        it is spread proportionally.

        Args:
            lambda_home: Expected home goals
            lambda_away: Expected away goals

        Returns:
            Square array of scoreline probabilities
        """
        k = self._table_size(lambda_home, lambda_away)
        goals = np.arange(k + 1)

        probs = np.outer(poisson.pmf(goals, lambda_home), poisson.pmf(goals, lambda_away))

        total = probs.sum()
        if not np.isfinite(total) or total <= 0:
            raise DegenerateProbabilityError(
                f"Score table carries no probability mass for lambdas "
                f"{lambda_home:.4f}, {lambda_away:.4f}"
            )

        return probs / total

    def predict(self, home: TeamFormStats, away: TeamFormStats) -> OutcomePrediction:
        """
        Predict 1X2 probabilities, totals and the likeliest score.

        Args:
            home: Home team form
            away: Away team form

        Returns:
            OutcomePrediction with source "poisson"
        """
        lambda_home, lambda_away = self.expected_goals(home, away)
        probs = self.score_matrix(lambda_home, lambda_away)

        prob_home = float(np.tril(probs, -1).sum())
        prob_draw = float(np.trace(probs))
        prob_away = float(np.triu(probs, 1).sum())

        goals = np.arange(probs.shape[0])
        totals = np.add.outer(goals, goals)
        prob_over = float(probs[totals > 2.5].sum())

        best = np.unravel_index(np.argmax(probs), probs.shape)

        return OutcomePrediction(
            prob_home=prob_home,
            prob_draw=prob_draw,
            prob_away=prob_away,
            expected_goals=(float(lambda_home), float(lambda_away)),
            prob_over_25=prob_over,
            prob_under_25=float(probs[totals < 2.5].sum()),
            most_likely_score=(int(best[0]), int(best[1])),
            source="poisson"
        )

    def score_frame(self, home: TeamFormStats, away: TeamFormStats) -> pd.DataFrame:
        """
        Predict the probability matrix for all score outcomes.

        Returns:
            DataFrame indexed H0..Hk with columns A0..Ak
        """
        probs = self.score_matrix(*self.expected_goals(home, away))
        size = probs.shape[0]

        return pd.DataFrame(
            probs,
            index=[f"H{i}" for i in range(size)],
            columns=[f"A{j}" for j in range(size)]
        )


_default_model = PoissonOutcomeModel()


def predict_outcome(home: TeamFormStats, away: TeamFormStats) -> OutcomePrediction:
    """Predict a fixture with the default PoissonOutcomeModel."""
    return _default_model.predict(home, away)
