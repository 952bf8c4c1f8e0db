"""Data collection from football-data.co.uk."""

from .odds import FootballDataScraper, season_code

__all__ = ["FootballDataScraper", "season_code"]
