"""
Double round-robin schedule generation.

Implements the circle (Berger table) method: slot 0 stays fixed while the
other slots rotate one step per round. The first leg covers every pair once;
the second leg replays it with home and away swapped.

With an odd number of competitors a bye slot is added. Whoever is drawn
against the bye rests that round.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Hashable, List, Optional, Sequence, Tuple

import pandas as pd

from ..exceptions import InvalidScheduleInputError

logger = logging.getLogger(__name__)


@dataclass
class Round:
    """One round of fixtures: (home, away) pairings plus the resting competitor."""

    number: int
    pairings: List[Tuple[Any, Any]] = field(default_factory=list)
    bye: Optional[Any] = None
    rounds_per_leg: int = 1

    @property
    def leg(self) -> int:
        """1 for the first leg, 2 for the return leg."""
        return 1 if self.number <= self.rounds_per_leg else 2

    def teams(self) -> List[Any]:
        """All competitors playing this round, in pairing order."""
        playing = []
        for home, away in self.pairings:
            playing.extend([home, away])
        return playing


def berger_rounds(n: int) -> List[List[Tuple[int, int]]]:
    """
    Build double round-robin pairings over slot indices 0..n-1.

    When n is odd, slot n is the bye and pairings against it are kept so
    the caller can tell who rests.

    Args:
        n: Number of real competitors

    Returns:
        2 * (size - 1) rounds of (home_index, away_index) tuples, where size
        is n rounded up to an even number. Empty when n < 2.
    """
    if n < 2:
        return []

    size = n + (n % 2)
    half = size // 2
    order = list(range(size))

    first_leg = []
    for rnd in range(size - 1):
        pairings = []
        for i in range(half):
            t1 = order[i]
            t2 = order[size - 1 - i]
            # Alternate venue by round parity to balance home games
            if rnd % 2 == 1:
                pairings.append((t1, t2))
            else:
                pairings.append((t2, t1))
        first_leg.append(pairings)

        # Keep slot 0 fixed, move the last slot to position 1
        order.insert(1, order.pop())

    second_leg = [[(away, home) for home, away in pairings] for pairings in first_leg]

    return first_leg + second_leg


def _validate_competitors(competitors: Sequence[Hashable]) -> List[Hashable]:
    teams = list(competitors)

    seen = set()
    duplicates = []
    for team in teams:
        if team in seen:
            duplicates.append(team)
        seen.add(team)

    if duplicates:
        raise InvalidScheduleInputError(f"Duplicate competitors in schedule input: {duplicates}")
    if len(teams) < 2:
        raise InvalidScheduleInputError(f"Need at least 2 competitors, got {len(teams)}")

    return teams


def generate_schedule(competitors: Sequence[Hashable]) -> List[Round]:
    """
    Generate a double round-robin schedule.

    Input order only sets the initial seeding; the same order always gives
    the same schedule.

    Args:
        competitors: Distinct competitor identifiers (at least 2)

    Returns:
        List of Round objects numbered from 1

    Raises:
        InvalidScheduleInputError: Fewer than 2 competitors or duplicates
    """
    teams = _validate_competitors(competitors)
    n = len(teams)

    index_rounds = berger_rounds(n)
    rounds_per_leg = len(index_rounds) // 2

    schedule = []
    for number, index_pairings in enumerate(index_rounds, start=1):
        rnd = Round(number=number, rounds_per_leg=rounds_per_leg)
        for home_idx, away_idx in index_pairings:
            if home_idx >= n:
                rnd.bye = teams[away_idx]
            elif away_idx >= n:
                rnd.bye = teams[home_idx]
            else:
                rnd.pairings.append((teams[home_idx], teams[away_idx]))
        schedule.append(rnd)

    logger.debug(
        f"Generated {len(schedule)} rounds with "
        f"{sum(len(r.pairings) for r in schedule)} fixtures for {n} competitors"
    )

    return schedule


def schedule_to_frame(schedule: List[Round]) -> pd.DataFrame:
    """
    Flatten a schedule into one row per fixture.

    Returns:
        DataFrame with columns round, leg, home, away
    """
    rows = [
        {"round": rnd.number, "leg": rnd.leg, "home": home, "away": away}
        for rnd in schedule
        for home, away in rnd.pairings
    ]
    return pd.DataFrame(rows, columns=["round", "leg", "home", "away"])
