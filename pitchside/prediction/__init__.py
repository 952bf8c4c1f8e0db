"""Fallback chain and prediction service."""

from .fallback import (
    MIN_SAMPLE_SIZE,
    RatingStore,
    StatsProvider,
    resolve_form_stats,
    resolve_rating,
)
from .service import PredictionService

__all__ = [
    "MIN_SAMPLE_SIZE",
    "RatingStore",
    "StatsProvider",
    "resolve_form_stats",
    "resolve_rating",
    "PredictionService",
]
