"""
Database module for Pitchside.

Provides SQLite database connection and schema management using SQLAlchemy.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Float,
    Date,
    DateTime,
    Boolean,
    ForeignKey,
    UniqueConstraint,
    Index,
    Text,
)
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
import yaml

logger = logging.getLogger(__name__)

Base = declarative_base()

# Fixture.source values
SOURCE_API = "api"
SOURCE_HISTORICAL = "historical_dataset"
SOURCE_GENERATED = "generated"


class League(Base):
    """Leagues table - competitions we ingest and schedule."""

    __tablename__ = "leagues"

    league_id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String, unique=True, nullable=False)  # e.g. premier_league
    name = Column(String, nullable=False)
    country = Column(String)
    division_code = Column(String)  # football-data.co.uk code, e.g. E0
    created_at = Column(DateTime, default=datetime.utcnow)

    seasons = relationship("Season", back_populates="league")


class Season(Base):
    """Seasons table - one row per league and start year."""

    __tablename__ = "seasons"

    season_id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(Integer, ForeignKey("leagues.league_id"), nullable=False)
    year = Column(Integer, nullable=False)
    start = Column(Date, nullable=False)
    end = Column(Date, nullable=False)
    current = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    league = relationship("League", back_populates="seasons")
    fixtures = relationship("Fixture", back_populates="season")

    __table_args__ = (
        UniqueConstraint("league_id", "year", name="uq_season_league_year"),
    )


class Venue(Base):
    """Venues table - stadiums, referenced by teams and fixtures."""

    __tablename__ = "venues"

    venue_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    city = Column(String)
    capacity = Column(Integer)


class Team(Base):
    """Teams table - master reference for all teams."""

    __tablename__ = "teams"

    team_id = Column(Integer, primary_key=True, autoincrement=True)
    canonical_name = Column(String, unique=True, nullable=False)
    footballdata_name = Column(String)
    code = Column(String)
    country = Column(String)
    venue_id = Column(Integer, ForeignKey("venues.venue_id"))
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    venue = relationship("Venue")
    home_fixtures = relationship(
        "Fixture", foreign_keys="Fixture.home_team_id", back_populates="home_team"
    )
    away_fixtures = relationship(
        "Fixture", foreign_keys="Fixture.away_team_id", back_populates="away_team"
    )
    elo_ratings = relationship("EloRating", back_populates="team")


class Fixture(Base):
    """Fixtures table - played and scheduled matches from every source."""

    __tablename__ = "fixtures"

    fixture_id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(Integer)  # id at the external provider, NULL when generated
    league_id = Column(Integer, ForeignKey("leagues.league_id"), nullable=False)
    season_id = Column(Integer, ForeignKey("seasons.season_id"), nullable=False)
    round = Column(String)  # e.g. "Regular Season - 1"
    date = Column(DateTime, nullable=False)
    home_team_id = Column(Integer, ForeignKey("teams.team_id"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.team_id"), nullable=False)
    venue_id = Column(Integer, ForeignKey("venues.venue_id"))
    home_goals = Column(Integer)
    away_goals = Column(Integer)
    status = Column(String, default="scheduled")  # scheduled, completed, postponed
    source = Column(String, nullable=False, default=SOURCE_API)
    is_official = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, onupdate=datetime.utcnow)

    # Relationships
    season = relationship("Season", back_populates="fixtures")
    home_team = relationship("Team", foreign_keys=[home_team_id], back_populates="home_fixtures")
    away_team = relationship("Team", foreign_keys=[away_team_id], back_populates="away_fixtures")
    odds = relationship("MatchOdds", back_populates="fixture", cascade="all, delete-orphan")
    prediction = relationship(
        "Prediction", back_populates="fixture", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_fixtures_date", "date"),
        Index("idx_fixtures_teams", "home_team_id", "away_team_id"),
        Index("idx_fixtures_league_season", "league_id", "season_id"),
        Index("idx_fixtures_source", "source"),
    )


class MatchOdds(Base):
    """Match odds table - bookmaker prices and internally modelled fair odds."""

    __tablename__ = "match_odds"

    odds_id = Column(Integer, primary_key=True, autoincrement=True)
    fixture_id = Column(Integer, ForeignKey("fixtures.fixture_id"), nullable=False)
    bookmaker = Column(String, nullable=False)  # bookmaker name or "internal"
    bet = Column(String, nullable=False, default="Match Winner")
    captured_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    home_odds = Column(Float)
    draw_odds = Column(Float)
    away_odds = Column(Float)
    over_25_odds = Column(Float)
    under_25_odds = Column(Float)
    source = Column(String, nullable=False, default=SOURCE_API)
    is_closing = Column(Boolean, default=False)

    # Relationships
    fixture = relationship("Fixture", back_populates="odds")

    __table_args__ = (
        Index("idx_odds_fixture", "fixture_id"),
        Index("idx_odds_bookmaker", "bookmaker"),
    )


class Prediction(Base):
    """Predictions table - one model prediction per fixture."""

    __tablename__ = "predictions"

    prediction_id = Column(Integer, primary_key=True, autoincrement=True)
    fixture_id = Column(Integer, ForeignKey("fixtures.fixture_id"), nullable=False, unique=True)
    model_version = Column(String, nullable=False)
    model_source = Column(String, nullable=False)  # poisson or elo
    predicted_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    lambda_home = Column(Float)
    lambda_away = Column(Float)
    prob_home = Column(Float, nullable=False)
    prob_draw = Column(Float, nullable=False)
    prob_away = Column(Float, nullable=False)
    prob_over_25 = Column(Float)
    winner_side = Column(String)  # home, away, or NULL
    advice = Column(Text)

    # Relationships
    fixture = relationship("Fixture", back_populates="prediction")


class EloRating(Base):
    """Elo ratings table - one rating per team per season."""

    __tablename__ = "elo_ratings"

    elo_id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.team_id"), nullable=False)
    season_id = Column(Integer, ForeignKey("seasons.season_id"), nullable=False)
    rating = Column(Float, nullable=False, default=1500.0)
    matches_played = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    team = relationship("Team", back_populates="elo_ratings")

    __table_args__ = (
        UniqueConstraint("team_id", "season_id", name="uq_elo_team_season"),
        Index("idx_elo_rating", "rating"),
    )


class IngestionLog(Base):
    """Ingestion log table - one row per sync job run."""

    __tablename__ = "ingestion_log"

    log_id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(String, nullable=False)
    entity_type = Column(String, nullable=False)
    status = Column(String, nullable=False)  # success, partial, failure
    records_processed = Column(Integer, default=0)
    records_inserted = Column(Integer, default=0)
    records_updated = Column(Integer, default=0)
    error_message = Column(Text)
    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime)

    __table_args__ = (
        Index("idx_ingestion_source", "source"),
        Index("idx_ingestion_started", "started_at"),
    )


class Database:
    """Database connection and management class."""

    def __init__(self, config_path: str = "config/config.yaml", db_url: Optional[str] = None):
        """
        Initialize database connection.

        Args:
            config_path: Path to configuration file
            db_url: SQLAlchemy URL; when given the configuration file is not read
        """
        if db_url is None:
            with open(config_path) as f:
                config = yaml.safe_load(f)

            self.db_path = Path(config["database"]["path"])
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            db_url = f"sqlite:///{self.db_path}"
        else:
            self.db_path = None

        self.db_url = db_url
        self.engine = create_engine(db_url, echo=False)
        self.Session = sessionmaker(bind=self.engine)

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)
        logger.info(f"Created database tables at {self.db_url}")

    def get_session(self):
        """Get a new database session."""
        return self.Session()

    def get_or_create_league(
        self,
        session,
        key: str,
        name: Optional[str] = None,
        **kwargs
    ) -> League:
        """
        Get existing league or create new one.

        Args:
            session: Database session
            key: Internal league key (e.g. premier_league)
            name: Display name, defaults to the key
            **kwargs: Additional league attributes

        Returns:
            League object
        """
        league = session.query(League).filter_by(key=key).first()

        if league is None:
            league = League(key=key, name=name or key, **kwargs)
            session.add(league)
            session.flush()
            logger.debug(f"Created new league: {key}")

        return league

    def get_or_create_season(
        self,
        session,
        league: League,
        year: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        current: bool = False
    ) -> Season:
        """
        Get existing season or create new one.

        European calendar defaults: 15 August to 25 May of the next year.

        Args:
            session: Database session
            league: League the season belongs to
            year: Season start year
            start: Season start date
            end: Season end date
            current: Whether this is the live season

        Returns:
            Season object
        """
        season = session.query(Season).filter_by(league_id=league.league_id, year=year).first()

        if season is None:
            season = Season(
                league_id=league.league_id,
                year=year,
                start=start or date(year, 8, 15),
                end=end or date(year + 1, 5, 25),
                current=current
            )
            session.add(season)
            session.flush()
            logger.debug(f"Created new season: {league.key} {year}")

        return season

    def get_previous_season(self, session, season: Season) -> Optional[Season]:
        """Season of the same league that started one year earlier."""
        return session.query(Season).filter_by(
            league_id=season.league_id, year=season.year - 1
        ).first()

    def get_or_create_team(
        self,
        session,
        canonical_name: str,
        **kwargs
    ) -> Team:
        """
        Get existing team or create new one.

        Args:
            session: Database session
            canonical_name: Standardized team name
            **kwargs: Additional team attributes

        Returns:
            Team object
        """
        team = session.query(Team).filter_by(canonical_name=canonical_name).first()

        if team is None:
            team = Team(canonical_name=canonical_name, **kwargs)
            session.add(team)
            session.flush()
            logger.debug(f"Created new team: {canonical_name}")

        return team

