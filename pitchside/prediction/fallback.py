"""
Season fallback chain for prediction inputs.

Current-season data is used once a team has played at least
min_sample_size matches. Below that the immediately preceding season is
used as-is. When neither qualifies the prediction is unavailable.
"""

import logging
from typing import Optional, Protocol

from ..exceptions import InsufficientDataError
from ..models.elo import TeamRating
from ..models.poisson import TeamFormStats

logger = logging.getLogger(__name__)

MIN_SAMPLE_SIZE = 5


class StatsProvider(Protocol):
    """Source of historical team form."""

    def get_team_form_stats(
        self, team_id: int, season_id: int, is_home: bool
    ) -> Optional[TeamFormStats]:
        ...

    def previous_season_id(self, season_id: int) -> Optional[int]:
        ...


class RatingStore(Protocol):
    """Persistent Elo ratings keyed by (team, season)."""

    def get_rating(self, team_id: int, season_id: int) -> TeamRating:
        """Stored rating, or a fresh seed rating when none exists."""
        ...

    def find_rating(self, team_id: int, season_id: int) -> Optional[TeamRating]:
        """Stored rating or None."""
        ...

    def save_rating(self, rating: TeamRating) -> None:
        ...


def _sufficient(stats: Optional[TeamFormStats], min_sample_size: int) -> bool:
    return stats is not None and stats.is_sufficient(min_sample_size)


def resolve_form_stats(
    provider: StatsProvider,
    team_id: int,
    season_id: int,
    is_home: bool,
    min_sample_size: int = MIN_SAMPLE_SIZE
) -> TeamFormStats:
    """
    Pick the form stats a prediction should use for one team.

    Args:
        provider: Stats source
        team_id: Team to look up
        season_id: Season of the fixture
        is_home: Whether to use the team's home or away matches
        min_sample_size: Matches required before a season is trusted

    Returns:
        Current-season stats, or the previous season's stats unchanged

    Raises:
        InsufficientDataError: Neither season reaches min_sample_size
    """
    current = provider.get_team_form_stats(team_id, season_id, is_home)
    if _sufficient(current, min_sample_size):
        return current

    played = current.matches_played if current else 0
    previous_id = provider.previous_season_id(season_id)
    if previous_id is None:
        raise InsufficientDataError(
            f"Team {team_id} has {played} matches in season {season_id} "
            f"and no previous season"
        )

    previous = provider.get_team_form_stats(team_id, previous_id, is_home)
    if _sufficient(previous, min_sample_size):
        logger.debug(
            f"Team {team_id}: {played} matches in season {season_id}, "
            f"using season {previous_id} ({previous.matches_played} matches)"
        )
        return previous

    raise InsufficientDataError(
        f"Team {team_id} has fewer than {min_sample_size} matches in seasons "
        f"{season_id} and {previous_id}"
    )


def resolve_rating(
    store: RatingStore,
    provider: StatsProvider,
    team_id: int,
    season_id: int,
    min_sample_size: int = MIN_SAMPLE_SIZE
) -> TeamRating:
    """
    Pick the Elo rating a prediction should use for one team.

    Same chain as resolve_form_stats, judged on the rating's match counter.

    Raises:
        InsufficientDataError: Neither season has an established rating
    """
    current = store.find_rating(team_id, season_id)
    if current is not None and current.matches_played >= max(min_sample_size, 1):
        return current

    previous_id = provider.previous_season_id(season_id)
    if previous_id is not None:
        previous = store.find_rating(team_id, previous_id)
        if previous is not None and previous.matches_played >= max(min_sample_size, 1):
            return previous

    raise InsufficientDataError(
        f"No established Elo rating for team {team_id} in season {season_id} "
        f"or the season before"
    )
