"""
ETL Pipeline for Pitchside.

Loads football-data.co.uk results and odds into the SQLite database,
matching team names on a normalised form (lower-case, alphanumeric only).
"""

import logging
import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import pandas as pd
import yaml

from ..scraping.odds import FootballDataScraper
from .db import (
    Database,
    Fixture,
    League,
    MatchOdds,
    Season,
    Team,
    SOURCE_HISTORICAL,
)

logger = logging.getLogger(__name__)

# (bookmaker, home column, draw column, away column)
BOOKMAKER_COLUMNS = [
    ("pinnacle", "pinnacle_home", "pinnacle_draw", "pinnacle_away"),
    ("bet365", "b365_home", "b365_draw", "b365_away"),
    ("avg", "avg_home", "avg_draw", "avg_away"),
]


def normalize_name(name: str) -> str:
    """Lower-case a team name and keep only letters and digits."""
    return re.sub(r"[^a-z0-9]", "", str(name).lower())


def _optional_float(value) -> Optional[float]:
    return float(value) if pd.notna(value) else None


class ETLPipeline:
    """ETL pipeline for loading football data into the database."""

    def __init__(
        self,
        config_path: str = "config/config.yaml",
        config: Optional[dict] = None,
        db: Optional[Database] = None,
        raw_data_path: str = "data/raw/odds"
    ):
        """
        Initialize the ETL pipeline.

        Args:
            config_path: Path to configuration file
            config: Already loaded configuration; skips reading config_path
            db: Database to load into (default: built from config_path)
            raw_data_path: Directory holding downloaded CSVs
        """
        if config is None:
            with open(config_path) as f:
                config = yaml.safe_load(f)
        self.config = config

        self.db = db or Database(config_path)
        self.raw_data_path = Path(raw_data_path)
        self.leagues = self.config.get("leagues", {})
        self.seasons = self.config.get("seasons", [])

    def initialize_database(self):
        """Create database tables if they don't exist."""
        self.db.create_tables()
        logger.info("Database initialized")

    def _get_league(self, session, league_key: str) -> League:
        info = self.leagues.get(league_key, {})
        return self.db.get_or_create_league(
            session,
            key=league_key,
            name=info.get("name", league_key),
            country=info.get("country"),
            division_code=info.get("division_code")
        )

    def _team_lookup(self, session) -> dict:
        """Normalized name -> Team for every known team."""
        lookup = {}
        for team in session.query(Team).all():
            lookup[normalize_name(team.canonical_name)] = team
            if team.footballdata_name:
                lookup[normalize_name(team.footballdata_name)] = team
        return lookup

    def _resolve_team(self, session, lookup: dict, raw_name: str, country: Optional[str]) -> Team:
        key = normalize_name(raw_name)
        team = lookup.get(key)

        if team is None:
            team = self.db.get_or_create_team(
                session,
                canonical_name=raw_name.strip(),
                footballdata_name=raw_name,
                country=country
            )
            lookup[key] = team

        return team

    def _find_fixture(self, session, league_id: int, match_date: datetime, home_id: int, away_id: int):
        day_start = datetime(match_date.year, match_date.month, match_date.day)
        return session.query(Fixture).filter(
            Fixture.league_id == league_id,
            Fixture.date >= day_start,
            Fixture.date < day_start + timedelta(days=1),
            Fixture.home_team_id == home_id,
            Fixture.away_team_id == away_id
        ).first()

    def load_results_frame(
        self,
        df: pd.DataFrame,
        league_key: Optional[str] = None,
        year: Optional[int] = None
    ) -> int:
        """
        Load a cleaned football-data.co.uk frame.

        Rows carry their league and season in the 'league' and 'season'
        columns; the arguments fill them in when the columns are missing.

        Args:
            df: Frame from FootballDataScraper.clean_dataframe
            league_key: League key for rows without one
            year: Season start year for rows without one

        Returns:
            Number of fixtures inserted
        """
        session = self.db.get_session()
        fixtures_loaded = 0
        lookup = self._team_lookup(session)

        try:
            for _, row in df.iterrows():
                # Skip rows without essential data
                if pd.isna(row.get("home_team")) or pd.isna(row.get("away_team")):
                    continue

                match_date = pd.to_datetime(row.get("date"), errors="coerce")
                if pd.isna(match_date):
                    continue
                match_date = match_date.to_pydatetime()

                row_league = row.get("league", league_key)
                row_league = league_key if pd.isna(row_league) else row_league
                row_year = row.get("season", year)
                row_year = year if pd.isna(row_year) else int(row_year)
                if row_league is None or row_year is None:
                    logger.warning(f"Row without league or season skipped: {row.to_dict()}")
                    continue

                league = self._get_league(session, row_league)
                season = self.db.get_or_create_season(session, league, row_year)

                home_team = self._resolve_team(session, lookup, row["home_team"], league.country)
                away_team = self._resolve_team(session, lookup, row["away_team"], league.country)

                home_goals = row.get("home_goals")
                away_goals = row.get("away_goals")
                is_finished = pd.notna(home_goals) and pd.notna(away_goals)

                fixture = self._find_fixture(
                    session, league.league_id, match_date, home_team.team_id, away_team.team_id
                )

                if fixture is None:
                    fixture = Fixture(
                        league_id=league.league_id,
                        season_id=season.season_id,
                        date=match_date,
                        home_team_id=home_team.team_id,
                        away_team_id=away_team.team_id,
                        venue_id=home_team.venue_id,
                        source=SOURCE_HISTORICAL,
                        is_official=True
                    )
                    session.add(fixture)
                    fixtures_loaded += 1

                if is_finished:
                    fixture.home_goals = int(home_goals)
                    fixture.away_goals = int(away_goals)
                    fixture.status = "completed"
                else:
                    fixture.status = "scheduled"

                session.flush()

                for bookmaker, home_col, draw_col, away_col in BOOKMAKER_COLUMNS:
                    home_odds = row.get(home_col)
                    draw_odds = row.get(draw_col)
                    away_odds = row.get(away_col)

                    if not (pd.notna(home_odds) and pd.notna(draw_odds) and pd.notna(away_odds)):
                        continue

                    existing_odds = session.query(MatchOdds).filter(
                        MatchOdds.fixture_id == fixture.fixture_id,
                        MatchOdds.bookmaker == bookmaker
                    ).first()

                    if not existing_odds:
                        session.add(MatchOdds(
                            fixture_id=fixture.fixture_id,
                            bookmaker=bookmaker,
                            captured_at=datetime.utcnow(),
                            home_odds=float(home_odds),
                            draw_odds=float(draw_odds),
                            away_odds=float(away_odds),
                            over_25_odds=_optional_float(row.get("avg_over_25")),
                            under_25_odds=_optional_float(row.get("avg_under_25")),
                            source=SOURCE_HISTORICAL,
                            is_closing=True
                        ))

            session.commit()
            logger.info(f"Loaded {fixtures_loaded} fixtures from results data")

        except Exception as e:
            session.rollback()
            logger.error(f"Error loading results data: {e}")
            raise
        finally:
            session.close()

        return fixtures_loaded

    def load_results_csv(
        self,
        filepath: Path,
        league_key: Optional[str] = None,
        year: Optional[int] = None
    ) -> int:
        """
        Load a saved results CSV.

        Args:
            filepath: Path to a cleaned CSV written by FootballDataScraper
            league_key: League key for rows without one
            year: Season start year for rows without one

        Returns:
            Number of fixtures inserted
        """
        filepath = Path(filepath)
        if not filepath.exists():
            logger.warning(f"Results file not found: {filepath}")
            return 0

        logger.info(f"Loading results data from {filepath}")
        df = pd.read_csv(filepath)

        return self.load_results_frame(df, league_key, year)

    def run_full_etl(self, download: bool = False) -> dict:
        """
        Run the complete ETL pipeline over configured leagues and seasons.

        Args:
            download: Fetch missing CSVs from football-data.co.uk first

        Returns:
            Dictionary with counts of loaded fixtures per league and season
        """
        self.initialize_database()

        if download:
            scraper = FootballDataScraper(config=self.config, raw_data_path=str(self.raw_data_path))
        else:
            scraper = None

        results = {}
        for league_key in self.leagues:
            for year in self.seasons:
                filepath = self.raw_data_path / f"{league_key}_{year}.csv"

                if not filepath.exists() and scraper is not None:
                    df = scraper.fetch_league_season(league_key, year)
                    if df is not None and not df.empty:
                        scraper.save_raw_data(df, league_key, year)

                results[f"{league_key}_{year}"] = self.load_results_csv(filepath, league_key, year)

        logger.info(f"ETL complete: {results}")
        return results

    def get_match_dataframe(
        self,
        league_key: Optional[str] = None,
        year: Optional[int] = None,
        include_odds: bool = True
    ) -> pd.DataFrame:
        """
        Export fixtures to a DataFrame.

        Args:
            league_key: Filter by league
            year: Filter by season start year
            include_odds: Include bookmaker odds

        Returns:
            DataFrame with one row per fixture
        """
        session = self.db.get_session()

        try:
            query = session.query(Fixture).join(Season).join(League)

            if league_key:
                query = query.filter(League.key == league_key)
            if year is not None:
                query = query.filter(Season.year == year)

            data = []
            for fixture in query.order_by(Fixture.date).all():
                row = {
                    "fixture_id": fixture.fixture_id,
                    "date": fixture.date,
                    "season": fixture.season.year,
                    "league": fixture.season.league.key,
                    "round": fixture.round,
                    "home_team": fixture.home_team.canonical_name,
                    "away_team": fixture.away_team.canonical_name,
                    "home_goals": fixture.home_goals,
                    "away_goals": fixture.away_goals,
                    "status": fixture.status,
                    "source": fixture.source,
                }

                if include_odds:
                    # Pinnacle preferred, then Bet365, then market average
                    for bookmaker in ["pinnacle", "bet365", "avg"]:
                        odds = next(
                            (o for o in fixture.odds if o.bookmaker == bookmaker),
                            None
                        )
                        if odds:
                            row["home_odds"] = odds.home_odds
                            row["draw_odds"] = odds.draw_odds
                            row["away_odds"] = odds.away_odds
                            row["odds_source"] = bookmaker
                            break

                data.append(row)

            return pd.DataFrame(data)

        finally:
            session.close()
