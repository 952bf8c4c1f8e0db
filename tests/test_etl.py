"""Tests for football-data.co.uk ingestion. No network access is used."""

import numpy as np
import pandas as pd
import pytest
import requests

from pitchside.data.db import Fixture, MatchOdds, SOURCE_HISTORICAL, Team
from pitchside.data.etl import ETLPipeline, normalize_name
from pitchside.scraping.odds import FootballDataScraper, season_code

CONFIG = {
    "leagues": {
        "premier_league": {"name": "Premier League", "country": "ENG", "division_code": "E0"},
    },
    "seasons": [2023],
    "scraping": {"retry_attempts": 2, "timeout": 5},
}


def _raw_frame():
    return pd.DataFrame({
        "Div": ["E0", "E0", "E0"],
        "Date": ["12/08/2023", "13/08/23", "19/08/2023"],
        "HomeTeam": ["Arsenal", "Man City", "Chelsea"],
        "AwayTeam": ["Nott'm Forest", "Chelsea", "Arsenal"],
        "FTHG": [2, 1, np.nan],
        "FTAG": [1, 1, np.nan],
        "FTR": ["H", "D", np.nan],
        "PSH": [1.30, 1.55, np.nan],
        "PSD": [5.90, 4.20, np.nan],
        "PSA": [10.5, 6.00, np.nan],
        "B365H": [1.30, 1.50, 2.10],
        "B365D": [5.75, 4.33, 3.40],
        "B365A": [10.0, 6.00, 3.50],
        "Referee": ["M Oliver", "A Taylor", "S Attwell"],
    })


@pytest.fixture
def scraper(tmp_path):
    return FootballDataScraper(config=CONFIG, raw_data_path=str(tmp_path / "raw"))


@pytest.fixture
def etl(db, tmp_path):
    return ETLPipeline(config=CONFIG, db=db, raw_data_path=str(tmp_path / "raw"))


@pytest.mark.parametrize("year, code", [(2023, "2324"), (1999, "9900"), (2009, "0910")])
def test_season_code(year, code):
    assert season_code(year) == code


def test_build_url(scraper):
    assert scraper._build_url("premier_league", 2023) == (
        "https://www.football-data.co.uk/mmz4281/2324/E0.csv"
    )


def test_clean_dataframe(scraper):
    df = scraper.clean_dataframe(_raw_frame(), "premier_league", 2023)

    assert "Referee" not in df.columns
    assert {"home_team", "away_team", "home_goals", "pinnacle_home", "b365_away"} <= set(df.columns)
    assert (df["league"] == "premier_league").all()
    assert (df["season"] == 2023).all()

    # Both four- and two-digit years parse
    assert df["date"].tolist() == [
        pd.Timestamp(2023, 8, 12), pd.Timestamp(2023, 8, 13), pd.Timestamp(2023, 8, 19)
    ]


def test_unknown_league_is_not_fetched(scraper):
    assert scraper.fetch_league_season("eredivisie", 2023) is None


class _FakeResponse:

    def __init__(self, content):
        self.content = content

    def raise_for_status(self):
        pass


def test_fetch_csv_parses_response(scraper, monkeypatch):
    csv = _raw_frame().to_csv(index=False).encode("utf-8")
    monkeypatch.setattr("pitchside.scraping.odds.requests.get", lambda url, timeout: _FakeResponse(csv))

    df = scraper.fetch_league_season("premier_league", 2023)

    assert len(df) == 3
    assert df.loc[0, "home_team"] == "Arsenal"


def test_fetch_csv_gives_up_after_retries(scraper, monkeypatch):
    calls = []

    def failing_get(url, timeout):
        calls.append(url)
        raise requests.ConnectionError("offline")

    monkeypatch.setattr("pitchside.scraping.odds.requests.get", failing_get)

    assert scraper._fetch_csv("https://example.invalid/E0.csv") is None
    assert len(calls) == 2


def test_normalize_name():
    assert normalize_name("Nott'm Forest") == "nottmforest"
    assert normalize_name(" MAN CITY ") == "mancity"


def test_load_results_frame(db, etl, scraper):
    df = scraper.clean_dataframe(_raw_frame(), "premier_league", 2023)

    assert etl.load_results_frame(df) == 3

    session = db.get_session()
    try:
        fixtures = session.query(Fixture).order_by(Fixture.date).all()
        assert [f.status for f in fixtures] == ["completed", "completed", "scheduled"]
        assert (fixtures[0].home_goals, fixtures[0].away_goals) == (2, 1)
        assert all(f.source == SOURCE_HISTORICAL for f in fixtures)
        assert all(f.season.year == 2023 for f in fixtures)

        assert session.query(Team).count() == 4
        assert session.query(MatchOdds).filter_by(bookmaker="pinnacle").count() == 2
        assert session.query(MatchOdds).filter_by(bookmaker="bet365").count() == 3
    finally:
        session.close()


def test_reload_does_not_duplicate(db, etl, scraper):
    df = scraper.clean_dataframe(_raw_frame(), "premier_league", 2023)
    etl.load_results_frame(df)

    # Same matches, different spelling of a team
    df["home_team"] = df["home_team"].str.upper()
    assert etl.load_results_frame(df) == 0

    session = db.get_session()
    try:
        assert session.query(Fixture).count() == 3
        assert session.query(Team).count() == 4
        assert session.query(MatchOdds).count() == 5
    finally:
        session.close()


def test_result_fills_in_scheduled_fixture(db, etl, scraper):
    df = scraper.clean_dataframe(_raw_frame(), "premier_league", 2023)
    etl.load_results_frame(df)

    df.loc[2, ["home_goals", "away_goals"]] = [0, 3]
    etl.load_results_frame(df)

    session = db.get_session()
    try:
        fixture = session.query(Fixture).order_by(Fixture.date.desc()).first()
        assert fixture.status == "completed"
        assert (fixture.home_goals, fixture.away_goals) == (0, 3)
    finally:
        session.close()


def test_full_etl_from_saved_csv(etl, scraper):
    scraper.save_raw_data(scraper.clean_dataframe(_raw_frame(), "premier_league", 2023), "premier_league", 2023)

    assert etl.run_full_etl(download=False) == {"premier_league_2023": 3}

    frame = etl.get_match_dataframe(league_key="premier_league", year=2023)
    assert len(frame) == 3
    assert frame["odds_source"].tolist() == ["pinnacle", "pinnacle", "bet365"]
    assert frame.loc[0, "home_odds"] == pytest.approx(1.30)


def test_missing_csv_loads_nothing(etl):
    assert etl.run_full_etl(download=False) == {"premier_league_2023": 0}
