"""Database, repositories and ETL modules for Pitchside."""

from .db import Database
from .etl import ETLPipeline
from .repositories import SqlRatingStore, SqlStatsProvider

__all__ = ["Database", "ETLPipeline", "SqlRatingStore", "SqlStatsProvider"]
