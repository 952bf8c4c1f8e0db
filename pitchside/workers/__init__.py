"""Scheduled jobs: fixture generation, Elo replay and predictions."""

from .elo_updater import EloUpdater
from .fixtures_generator import FixtureGenerator
from .predictions import PredictionWorker
from .sync_log import SyncContext, track_sync

__all__ = ["EloUpdater", "FixtureGenerator", "PredictionWorker", "SyncContext", "track_sync"]
