"""
Results and odds downloader for football-data.co.uk.

Downloads historical results and closing odds directly from
football-data.co.uk CSV files.
"""

import logging
from io import StringIO
from pathlib import Path
from typing import Optional

import pandas as pd
import requests
import yaml

logger = logging.getLogger(__name__)

# Column mapping for football-data.co.uk CSVs
ODDS_COLUMNS = {
    # Match info
    "Div": "division",
    "Date": "date",
    "Time": "time",
    "HomeTeam": "home_team",
    "AwayTeam": "away_team",
    # Results
    "FTHG": "home_goals",
    "FTAG": "away_goals",
    "FTR": "result",  # H, D, A
    # Bet365 odds
    "B365H": "b365_home",
    "B365D": "b365_draw",
    "B365A": "b365_away",
    # Pinnacle odds
    "PSH": "pinnacle_home",
    "PSD": "pinnacle_draw",
    "PSA": "pinnacle_away",
    # Average odds
    "AvgH": "avg_home",
    "AvgD": "avg_draw",
    "AvgA": "avg_away",
    # Over/under 2.5
    "Avg>2.5": "avg_over_25",
    "Avg<2.5": "avg_under_25",
}


def season_code(year: int) -> str:
    """football-data.co.uk season folder, e.g. 2023 -> '2324'."""
    return f"{year % 100:02d}{(year + 1) % 100:02d}"


class FootballDataScraper:
    """Scraper for football-data.co.uk results and betting odds."""

    BASE_URL = "https://www.football-data.co.uk"

    def __init__(
        self,
        config_path: str = "config/config.yaml",
        config: Optional[dict] = None,
        raw_data_path: str = "data/raw/odds"
    ):
        """
        Initialize the scraper.

        Args:
            config_path: Path to configuration file
            config: Already loaded configuration; skips reading config_path
            raw_data_path: Directory for downloaded CSVs
        """
        if config is None:
            with open(config_path) as f:
                config = yaml.safe_load(f)
        self.config = config

        self.leagues = self.config["leagues"]
        self.seasons = self.config.get("seasons", [])
        self.raw_data_path = Path(raw_data_path)

        scraping = self.config.get("scraping", {})
        self.base_url = scraping.get("base_url", self.BASE_URL)
        self.timeout = scraping.get("timeout", 30)
        self.retry_attempts = scraping.get("retry_attempts", 3)

    def _build_url(self, league: str, year: int) -> str:
        """Build the download URL for a specific league and season."""
        code = self.leagues[league]["division_code"]
        return f"{self.base_url}/mmz4281/{season_code(year)}/{code}.csv"

    def _fetch_csv(self, url: str) -> Optional[pd.DataFrame]:
        """
        Fetch and parse a CSV from the given URL.

        Args:
            url: URL to fetch

        Returns:
            DataFrame or None if fetch failed
        """
        for attempt in range(self.retry_attempts):
            try:
                response = requests.get(url, timeout=self.timeout)
                response.raise_for_status()

                # Handle encoding issues
                content = response.content.decode("utf-8", errors="replace")
                return pd.read_csv(StringIO(content))

            except requests.RequestException as e:
                logger.warning(f"Attempt {attempt + 1} failed for {url}: {e}")

        logger.error(f"Failed to fetch {url} after {self.retry_attempts} attempts")
        return None

    def clean_dataframe(self, df: pd.DataFrame, league: str, year: int) -> pd.DataFrame:
        """
        Clean and standardize a raw football-data.co.uk frame.

        Args:
            df: Raw DataFrame
            league: League key
            year: Season start year

        Returns:
            Cleaned DataFrame
        """
        df = df.dropna(subset=["HomeTeam", "AwayTeam"])

        rename_map = {k: v for k, v in ODDS_COLUMNS.items() if k in df.columns}
        df = df.rename(columns=rename_map)

        if "date" in df.columns:
            original_dates = df["date"].copy()
            # DD/MM/YYYY in recent seasons, DD/MM/YY in older ones
            df["date"] = pd.to_datetime(df["date"], format="%d/%m/%Y", errors="coerce")
            mask = df["date"].isna()
            if mask.any():
                df.loc[mask, "date"] = pd.to_datetime(
                    original_dates.loc[mask], format="%d/%m/%y", errors="coerce"
                )

        df["league"] = league
        df["season"] = year

        available_cols = [v for v in ODDS_COLUMNS.values() if v in df.columns]
        available_cols.extend(["league", "season"])

        return df[available_cols].reset_index(drop=True)

    def fetch_league_season(self, league: str, year: int) -> Optional[pd.DataFrame]:
        """
        Fetch results and odds for one league and season.

        Args:
            league: League key (e.g., 'premier_league')
            year: Season start year (e.g., 2023 for 2023-2024)

        Returns:
            Cleaned DataFrame or None
        """
        if league not in self.leagues:
            logger.error(f"Unknown league: {league}")
            return None

        url = self._build_url(league, year)
        logger.info(f"Fetching results: {league} {year} from {url}")

        df = self._fetch_csv(url)
        if df is None:
            return None

        return self.clean_dataframe(df, league, year)

    def save_raw_data(self, df: pd.DataFrame, league: str, year: int) -> Path:
        """
        Save a cleaned frame to data/raw/odds/{league}_{year}.csv.

        Returns:
            Path to saved file
        """
        self.raw_data_path.mkdir(parents=True, exist_ok=True)
        output_path = self.raw_data_path / f"{league}_{year}.csv"
        df.to_csv(output_path, index=False)
        logger.info(f"Saved {len(df)} rows to {output_path}")
        return output_path

    def fetch_and_save_all(self) -> dict:
        """
        Fetch every configured league and season and save them to disk.

        Returns:
            Mapping of (league, year) to saved path
        """
        saved = {}

        for league in self.leagues:
            for year in self.seasons:
                df = self.fetch_league_season(league, year)
                if df is not None and not df.empty:
                    saved[(league, year)] = self.save_raw_data(df, league, year)

        if not saved:
            logger.warning("No results data retrieved")

        return saved
