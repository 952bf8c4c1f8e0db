#!/usr/bin/env python3
"""
Pitchside Pipeline

Loads historical results, replays Elo ratings, generates the next season's
calendar and prices upcoming fixtures.
"""

import logging

import yaml

from pitchside.data.db import Database, League, Season
from pitchside.data.etl import ETLPipeline
from pitchside.workers.elo_updater import EloUpdater
from pitchside.workers.fixtures_generator import FixtureGenerator
from pitchside.workers.predictions import PredictionWorker

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def load_config(config_path: str = "config/config.yaml") -> dict:
    """Load configuration from YAML file."""
    with open(config_path) as f:
        return yaml.safe_load(f)


def load_history(config: dict, db: Database) -> dict:
    """Load configured leagues and seasons into the database."""
    logger.info("=" * 60)
    logger.info("INGESTION PHASE")
    logger.info("=" * 60)

    etl = ETLPipeline(config=config, db=db)
    return etl.run_full_etl(download=config.get("scraping", {}).get("download", False))


def update_ratings(config: dict, db: Database) -> int:
    """Replay Elo ratings for every stored season, oldest first."""
    logger.info("=" * 60)
    logger.info("ELO PHASE")
    logger.info("=" * 60)

    updater = EloUpdater(db, k_factor=config.get("elo", {}).get("k_factor", 20.0))

    session = db.get_session()
    try:
        season_ids = [s.season_id for s in session.query(Season).order_by(Season.year).all()]
    finally:
        session.close()

    applied = 0
    for season_id in season_ids:
        applied += updater.replay_season(season_id)

    logger.info(f"Applied {applied} results across {len(season_ids)} seasons")
    return applied


def generate_next_season(config: dict, db: Database) -> dict:
    """Generate a calendar for the season after the last configured one."""
    logger.info("=" * 60)
    logger.info("FIXTURE GENERATION PHASE")
    logger.info("=" * 60)

    seasons = config.get("seasons", [])
    if not seasons:
        logger.warning("No seasons configured, skipping fixture generation")
        return {}

    next_year = max(seasons) + 1
    generator = FixtureGenerator.from_config(config, db)

    session = db.get_session()
    try:
        league_keys = [league.key for league in session.query(League).all()]
    finally:
        session.close()

    return {key: generator.generate(key, next_year) for key in league_keys}


def predict_next_season(config: dict, db: Database) -> dict:
    """Price every scheduled fixture of the generated seasons."""
    logger.info("=" * 60)
    logger.info("PREDICTION PHASE")
    logger.info("=" * 60)

    seasons = config.get("seasons", [])
    if not seasons:
        logger.warning("No seasons configured, skipping predictions")
        return {"predicted": 0, "unavailable": 0, "failed": 0}

    worker = PredictionWorker.from_config(config, db)
    next_year = max(seasons) + 1

    session = db.get_session()
    try:
        season_ids = [s.season_id for s in session.query(Season).filter_by(year=next_year).all()]
    finally:
        session.close()

    totals = {"predicted": 0, "unavailable": 0, "failed": 0}
    for season_id in season_ids:
        counts = worker.predict_season(season_id)
        for key in totals:
            totals[key] += counts[key]

    return totals


def main():
    """Main pipeline execution."""
    logger.info("=" * 60)
    logger.info("PITCHSIDE PIPELINE")
    logger.info("=" * 60)

    config = load_config()
    db = Database()
    db.create_tables()

    loaded = load_history(config, db)
    update_ratings(config, db)
    generated = generate_next_season(config, db)
    predicted = predict_next_season(config, db)

    logger.info("\n" + "=" * 60)
    logger.info("PIPELINE COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Fixtures loaded: {sum(loaded.values())}")
    logger.info(f"Fixtures generated: {generated}")
    logger.info(
        f"Predictions: {predicted['predicted']} stored, "
        f"{predicted['unavailable']} unavailable, {predicted['failed']} failed"
    )

    return predicted


if __name__ == "__main__":
    main()
