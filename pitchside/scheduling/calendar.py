"""
Calendar assignment for generated schedules.

Maps each round to a weekend: rounds start on the first Saturday on or after
the season start and advance one week at a time. A share of fixtures is
moved to the Sunday to spread the load.
"""

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from .round_robin import Round

logger = logging.getLogger(__name__)

SATURDAY = 5


@dataclass
class DatedFixture:
    """A scheduled pairing with its kickoff and venue."""

    round_number: int
    round_name: str
    home: Any
    away: Any
    kickoff: datetime
    venue: Optional[Any] = None


def next_saturday(day: date) -> date:
    """Return day itself if it is a Saturday, otherwise the following Saturday."""
    return day + timedelta(days=(SATURDAY - day.weekday()) % 7)


def round_name(number: int) -> str:
    return f"Regular Season - {number}"


def assign_dates(
    schedule: List[Round],
    season_start: date,
    sunday_share: float = 0.3,
    kickoff: time = time(15, 0),
    seed: Optional[int] = None,
    venues: Optional[Dict[Any, Any]] = None
) -> List[DatedFixture]:
    """
    Assign a kickoff and venue to every pairing in a schedule.

    Args:
        schedule: Rounds from generate_schedule
        season_start: First possible match day
        sunday_share: Probability that a fixture moves to the Sunday
        kickoff: Kickoff time of day
        seed: Seed for the Sunday shift, for reproducible calendars
        venues: Mapping of competitor to home venue

    Returns:
        One DatedFixture per pairing, in schedule order
    """
    if not 0.0 <= sunday_share <= 1.0:
        raise ValueError(f"sunday_share must be within [0, 1], got {sunday_share}")

    rng = random.Random(seed)
    venues = venues or {}
    first_saturday = next_saturday(season_start)

    fixtures = []
    for offset, rnd in enumerate(schedule):
        saturday = first_saturday + timedelta(weeks=offset)

        for home, away in rnd.pairings:
            match_day = saturday
            if rng.random() < sunday_share:
                match_day = saturday + timedelta(days=1)

            fixtures.append(DatedFixture(
                round_number=rnd.number,
                round_name=round_name(rnd.number),
                home=home,
                away=away,
                kickoff=datetime.combine(match_day, kickoff),
                venue=venues.get(home)
            ))

    logger.debug(f"Assigned dates to {len(fixtures)} fixtures starting {first_saturday}")

    return fixtures
