"""Match outcome probabilities and the fair odds derived from them."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..exceptions import DegenerateProbabilityError

OUTCOME_LABELS = ("Home", "Draw", "Away")


@dataclass(frozen=True)
class OutcomePrediction:
    """
    Home/draw/away probabilities for one fixture.

    Probabilities sum to 1.0 within floating-point tolerance. Optional
    fields are only filled by models that produce them (the goal model
    reports expected goals and totals, Elo does not).
    """

    prob_home: float
    prob_draw: float
    prob_away: float
    expected_goals: Optional[Tuple[float, float]] = None
    prob_over_25: Optional[float] = None
    prob_under_25: Optional[float] = None
    most_likely_score: Optional[Tuple[int, int]] = None
    source: str = "poisson"

    @property
    def probabilities(self) -> Tuple[float, float, float]:
        return self.prob_home, self.prob_draw, self.prob_away

    def fair_odds(self) -> Tuple[float, float, float]:
        """
        Convert each probability to decimal odds with no bookmaker margin.

        Returns:
            Tuple of (home_odds, draw_odds, away_odds), each > 1.0

        Raises:
            DegenerateProbabilityError: A probability is exactly 0 or 1
        """
        for label, prob in zip(OUTCOME_LABELS, self.probabilities):
            if prob <= 0.0 or prob >= 1.0:
                raise DegenerateProbabilityError(
                    f"{label} probability {prob!r} has no finite fair odd"
                )

        return tuple(1.0 / prob for prob in self.probabilities)

    def odds_values(self) -> List[Dict[str, str]]:
        """Fair odds in the stored market shape: [{"value": "Home", "odd": "2.10"}, ...]."""
        return [
            {"value": label, "odd": f"{odd:.2f}"}
            for label, odd in zip(OUTCOME_LABELS, self.fair_odds())
        ]

    def favourite(self) -> str:
        """Label of the most likely outcome."""
        best = max(range(3), key=lambda i: self.probabilities[i])
        return OUTCOME_LABELS[best]

    def winner_side(self) -> Optional[str]:
        """'home' or 'away' when a win is the most likely outcome, else None."""
        favourite = self.favourite()
        if favourite == "Draw":
            return None
        return favourite.lower()

    def advice(self) -> str:
        """
        Short betting advice.

        A single outcome is advised when it is at least 50% likely,
        otherwise the double chance covering the two likeliest outcomes.
        """
        favourite = self.favourite()
        if max(self.probabilities) >= 0.5:
            return "Draw" if favourite == "Draw" else f"{favourite} win"

        ranked = sorted(
            zip(OUTCOME_LABELS, self.probabilities), key=lambda item: item[1], reverse=True
        )
        first, second = sorted(
            (ranked[0][0], ranked[1][0]), key=OUTCOME_LABELS.index
        )
        return f"Double chance: {first.lower()} or {second.lower()}"
