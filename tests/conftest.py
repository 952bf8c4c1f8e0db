"""Shared fixtures: a throwaway SQLite database seeded with one league."""

from datetime import datetime, timedelta

import pytest

from pitchside.data.db import Database, Fixture, SOURCE_HISTORICAL
from pitchside.scheduling.round_robin import generate_schedule

TEAM_NAMES = ["Arsenal", "Brentford", "Chelsea", "Everton", "Fulham", "Wolves"]


@pytest.fixture
def db(tmp_path):
    database = Database(db_url=f"sqlite:///{tmp_path / 'pitchside.db'}")
    database.create_tables()
    return database


@pytest.fixture
def league(db):
    """Premier League with seasons 2023 and 2024 and six teams, as plain ids."""
    session = db.get_session()
    try:
        league = db.get_or_create_league(
            session, "premier_league", "Premier League", country="ENG", division_code="E0"
        )
        previous = db.get_or_create_season(session, league, 2023)
        current = db.get_or_create_season(session, league, 2024, current=True)
        teams = [db.get_or_create_team(session, name, country="ENG") for name in TEAM_NAMES]
        session.commit()

        return {
            "league_id": league.league_id,
            "league_key": league.key,
            "previous_season_id": previous.season_id,
            "season_id": current.season_id,
            "team_ids": [team.team_id for team in teams],
        }
    finally:
        session.close()


@pytest.fixture
def add_fixture(db, league):
    """Factory inserting one fixture; goals of None leave it scheduled."""

    def _add(home_id, away_id, season_id, home_goals=None, away_goals=None,
             date=datetime(2023, 9, 2, 15, 0), source=SOURCE_HISTORICAL):
        session = db.get_session()
        try:
            fixture = Fixture(
                league_id=league["league_id"],
                season_id=season_id,
                date=date,
                home_team_id=home_id,
                away_team_id=away_id,
                home_goals=home_goals,
                away_goals=away_goals,
                status="completed" if home_goals is not None else "scheduled",
                source=source,
            )
            session.add(fixture)
            session.commit()
            return fixture.fixture_id
        finally:
            session.close()

    return _add


@pytest.fixture
def played_season(league, add_fixture):
    """A full double round-robin of results in the 2023 season."""
    team_ids = league["team_ids"]
    kickoff = datetime(2023, 8, 19, 15, 0)

    for rnd in generate_schedule(team_ids):
        for home_id, away_id in rnd.pairings:
            add_fixture(
                home_id,
                away_id,
                league["previous_season_id"],
                home_goals=(home_id + away_id) % 3 + 1,
                away_goals=(home_id * away_id) % 2,
                date=kickoff + timedelta(weeks=rnd.number - 1),
            )

    return league
