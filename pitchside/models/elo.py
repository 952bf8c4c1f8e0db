"""
Elo ratings for football teams.

Ratings are kept per team per season. After each result the rating moves by
k_factor times the gap between the actual and the expected score.

Elo only yields a win expectancy. Draws are handled by a fixed base draw
rate taken proportionally out of both win probabilities.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from .outcome import OutcomePrediction

logger = logging.getLogger(__name__)

DEFAULT_RATING = 1500.0
DEFAULT_K_FACTOR = 20.0
BASE_DRAW_RATE = 0.26

# Keeps 10 ** (gap / 400) finite and the expected score strictly inside (0, 1)
MAX_RATING_GAP = 4000.0

WIN = 1.0
DRAW = 0.5
LOSS = 0.0


@dataclass(frozen=True)
class TeamRating:
    """Rating of one team in one season."""

    team_id: int
    season_id: int
    rating: float = DEFAULT_RATING
    matches_played: int = 0

    def updated(
        self,
        opponent_rating: float,
        result: float,
        k_factor: float = DEFAULT_K_FACTOR
    ) -> "TeamRating":
        """Return the rating after one more result; the counter goes up by one."""
        return replace(
            self,
            rating=update_rating(self.rating, opponent_rating, result, k_factor),
            matches_played=self.matches_played + 1
        )


def expected_score(rating: float, opponent_rating: float) -> float:
    """
    Logistic expected score of a team against an opponent.

    Args:
        rating: Team rating
        opponent_rating: Opponent rating

    Returns:
        Expected score, strictly between 0 and 1
    """
    gap = min(max(opponent_rating - rating, -MAX_RATING_GAP), MAX_RATING_GAP)
    return 1.0 / (1.0 + 10 ** (gap / 400.0))


def update_rating(
    current_rating: float,
    opponent_rating: float,
    actual_result: float,
    k_factor: float = DEFAULT_K_FACTOR
) -> float:
    """
    Apply one result to a rating.

    Args:
        current_rating: Rating before the match
        opponent_rating: Opponent rating before the match
        actual_result: 1.0 win, 0.5 draw, 0.0 loss
        k_factor: Maximum rating change per match

    Returns:
        New rating
    """
    if actual_result not in (WIN, DRAW, LOSS):
        raise ValueError(f"actual_result must be 1.0, 0.5 or 0.0, got {actual_result!r}")

    expected = expected_score(current_rating, opponent_rating)
    return current_rating + k_factor * (actual_result - expected)


def win_probability_from_ratings(rating_a: float, rating_b: float) -> float:
    """Probability that A beats B, ignoring draws."""
    return expected_score(rating_a, rating_b)


def result_from_goals(goals_for: int, goals_against: int) -> float:
    """Elo score for a final scoreline."""
    if goals_for > goals_against:
        return WIN
    if goals_for == goals_against:
        return DRAW
    return LOSS


def elo_outcome_probabilities(
    home_rating: float,
    away_rating: float,
    draw_rate: float = BASE_DRAW_RATE,
    home_advantage: Optional[float] = None
) -> OutcomePrediction:
    """
    Home/draw/away probabilities from two ratings.

    The base draw rate is removed proportionally from both win
    probabilities: p_home = (1 - d) * E, p_away = (1 - d) * (1 - E).

    Args:
        home_rating: Home team rating
        away_rating: Away team rating
        draw_rate: Fixed draw probability, within (0, 1)
        home_advantage: Optional rating points added to the home side

    Returns:
        OutcomePrediction with source "elo"
    """
    if not 0.0 < draw_rate < 1.0:
        raise ValueError(f"draw_rate must be within (0, 1), got {draw_rate}")

    expected_home = win_probability_from_ratings(
        home_rating + (home_advantage or 0.0), away_rating
    )

    return OutcomePrediction(
        prob_home=(1.0 - draw_rate) * expected_home,
        prob_draw=draw_rate,
        prob_away=(1.0 - draw_rate) * (1.0 - expected_home),
        source="elo"
    )
