"""
Fixture generator worker.

Seeds a season calendar for a league: a double round-robin over the
league's teams, dated one round per weekend, stored with source
"generated" so it never mixes with fixtures from external sources.
"""

import logging
from datetime import date, time
from typing import List, Optional, Sequence

from ..data.db import Database, Fixture, League, Team, SOURCE_GENERATED
from ..scheduling.calendar import assign_dates
from ..scheduling.round_robin import generate_schedule
from .sync_log import track_sync

logger = logging.getLogger(__name__)

MAX_LEAGUE_TEAMS = 20


def _parse_kickoff(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


class FixtureGenerator:
    """Generates and stores a round-robin calendar for one league season."""

    def __init__(
        self,
        db: Database,
        season_start: str = "08-15",
        sunday_share: float = 0.3,
        kickoff: str = "15:00",
        seed: Optional[int] = None,
        max_teams: int = MAX_LEAGUE_TEAMS
    ):
        """
        Initialize the generator.

        Args:
            db: Database to read teams from and write fixtures to
            season_start: Default season start as MM-DD, used when the
                season does not exist yet
            sunday_share: Share of fixtures moved from Saturday to Sunday
            kickoff: Kickoff time as HH:MM
            seed: Seed for the Sunday shift
            max_teams: Maximum teams taken from the league's history
        """
        self.db = db
        self.season_start = season_start
        self.sunday_share = sunday_share
        self.kickoff = _parse_kickoff(kickoff)
        self.seed = seed
        self.max_teams = max_teams

    @classmethod
    def from_config(cls, config: dict, db: Database) -> "FixtureGenerator":
        scheduling = config.get("scheduling", {})
        return cls(
            db,
            season_start=scheduling.get("season_start", "08-15"),
            sunday_share=scheduling.get("sunday_share", 0.3),
            kickoff=scheduling.get("kickoff", "15:00"),
            seed=scheduling.get("seed")
        )

    def _default_start(self, year: int) -> date:
        month, day = self.season_start.split("-")
        return date(year, int(month), int(day))

    def select_teams(
        self,
        session,
        league: League,
        team_ids: Optional[Sequence[int]] = None
    ) -> List[Team]:
        """
        Teams to schedule, in seeding order.

        Explicit ids keep their given order. Otherwise the teams that have
        hosted a fixture in the league are used, ordered by id.
        """
        if team_ids:
            found = {
                team.team_id: team
                for team in session.query(Team).filter(Team.team_id.in_(list(team_ids))).all()
            }
            if len(found) != len(set(team_ids)):
                missing = sorted(set(team_ids) - set(found))
                logger.warning(f"Requested {len(team_ids)} teams but {missing} were not found")
            return [found[team_id] for team_id in team_ids if team_id in found]

        return (
            session.query(Team)
            .join(Fixture, Fixture.home_team_id == Team.team_id)
            .filter(Fixture.league_id == league.league_id)
            .group_by(Team.team_id)
            .order_by(Team.team_id)
            .limit(self.max_teams)
            .all()
        )

    def generate(
        self,
        league_key: str,
        year: int,
        team_ids: Optional[Sequence[int]] = None
    ) -> int:
        """
        Generate the calendar of one league season.

        Earlier generated fixtures of that season are replaced; fixtures
        from other sources are left alone.

        Args:
            league_key: League key
            year: Season start year
            team_ids: Explicit teams (default: the league's teams)

        Returns:
            Number of fixtures stored
        """
        with track_sync(self.db, "pitchside", "generated_fixtures") as context:
            session = self.db.get_session()

            try:
                league = session.query(League).filter_by(key=league_key).first()
                if league is None:
                    raise ValueError(f"League {league_key} not found")

                season = self.db.get_or_create_season(
                    session, league, year, start=self._default_start(year)
                )

                teams = self.select_teams(session, league, team_ids)
                if len(teams) < 2:
                    logger.warning(
                        f"[Generator] Not enough teams found for {league.name} ({len(teams)}). Skipping."
                    )
                    session.commit()
                    return 0

                logger.info(
                    f"[Generator] Generating fixtures for {league.name} ({year}) "
                    f"with {len(teams)} teams"
                )

                schedule = generate_schedule([team.team_id for team in teams])
                dated = assign_dates(
                    schedule,
                    season.start,
                    sunday_share=self.sunday_share,
                    kickoff=self.kickoff,
                    seed=self.seed,
                    venues={team.team_id: team.venue_id for team in teams}
                )

                removed = session.query(Fixture).filter(
                    Fixture.league_id == league.league_id,
                    Fixture.season_id == season.season_id,
                    Fixture.source == SOURCE_GENERATED
                ).all()
                for fixture in removed:
                    session.delete(fixture)

                for item in dated:
                    session.add(Fixture(
                        league_id=league.league_id,
                        season_id=season.season_id,
                        round=item.round_name,
                        date=item.kickoff,
                        home_team_id=item.home,
                        away_team_id=item.away,
                        venue_id=item.venue,
                        status="scheduled",
                        source=SOURCE_GENERATED,
                        is_official=False
                    ))

                session.commit()

                context.records_processed = len(dated)
                context.records_inserted = len(dated)
                logger.info(
                    f"[Generator] Saved {len(dated)} fixtures in {len(schedule)} rounds "
                    f"(replaced {len(removed)})"
                )

            except Exception as e:
                session.rollback()
                logger.error(f"Error generating fixtures for {league_key} {year}: {e}")
                raise
            finally:
                session.close()

        return len(dated)
