"""
Prediction worker.

Prices scheduled fixtures with the prediction service and stores one
prediction row plus an "internal" fair-odds row per fixture. Fixtures
without enough data are reported as unavailable and left unpriced. A
fixture whose model fails is logged as a sync error and the batch goes on.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from ..data.db import Database, Fixture, MatchOdds, Prediction
from ..data.repositories import SqlRatingStore, SqlStatsProvider
from ..exceptions import DegenerateProbabilityError, InsufficientDataError, PitchsideError
from ..models.outcome import OutcomePrediction
from ..models.poisson import PoissonOutcomeModel
from ..prediction.service import PredictionService
from .sync_log import SyncContext, track_sync

logger = logging.getLogger(__name__)

INTERNAL_BOOKMAKER = "internal"
MODEL_SOURCE = "model"


def _fair_odd(prob: Optional[float]) -> Optional[float]:
    if prob is None or not 0.0 < prob < 1.0:
        return None
    return 1.0 / prob


class PredictionWorker:
    """Stores predictions and fair odds for scheduled fixtures."""

    def __init__(
        self,
        db: Database,
        service: Optional[PredictionService] = None,
        model_version: str = "poisson-elo-v1",
        horizon_days: int = 7
    ):
        """
        Initialize the worker.

        Args:
            db: Database with fixtures, form and ratings
            service: Prediction service (default: SQL-backed with default settings)
            model_version: Label stored with every prediction
            horizon_days: How far ahead predict_upcoming looks
        """
        self.db = db
        self.service = service or PredictionService(SqlStatsProvider(db), SqlRatingStore(db))
        self.model_version = model_version
        self.horizon_days = horizon_days

    @classmethod
    def from_config(cls, config: dict, db: Database) -> "PredictionWorker":
        prediction = config.get("prediction", {})
        elo = config.get("elo", {})

        service = PredictionService(
            SqlStatsProvider(db),
            SqlRatingStore(db, seed_rating=elo.get("seed_rating", 1500.0)),
            model=PoissonOutcomeModel(max_goals=prediction.get("max_goals", 10)),
            min_sample_size=prediction.get("min_sample_size", 5),
            draw_rate=elo.get("draw_rate", 0.26),
            home_advantage=elo.get("home_advantage")
        )
        return cls(
            db,
            service=service,
            model_version=prediction.get("model_version", "poisson-elo-v1"),
            horizon_days=prediction.get("horizon_days", 7)
        )

    def _save_prediction(self, session, fixture: Fixture, outcome: OutcomePrediction) -> bool:
        """Upsert the prediction of a fixture. Returns True when a row was inserted."""
        row = session.query(Prediction).filter_by(fixture_id=fixture.fixture_id).first()
        inserted = row is None
        if inserted:
            row = Prediction(fixture_id=fixture.fixture_id)
            session.add(row)

        lambda_home, lambda_away = outcome.expected_goals or (None, None)

        row.model_version = self.model_version
        row.model_source = outcome.source
        row.predicted_at = datetime.utcnow()
        row.lambda_home = lambda_home
        row.lambda_away = lambda_away
        row.prob_home = outcome.prob_home
        row.prob_draw = outcome.prob_draw
        row.prob_away = outcome.prob_away
        row.prob_over_25 = outcome.prob_over_25
        row.winner_side = outcome.winner_side()
        row.advice = outcome.advice()

        return inserted

    def _save_odds(self, session, fixture: Fixture, outcome: OutcomePrediction) -> None:
        row = session.query(MatchOdds).filter_by(
            fixture_id=fixture.fixture_id, bookmaker=INTERNAL_BOOKMAKER
        ).first()

        try:
            home_odds, draw_odds, away_odds = outcome.fair_odds()
        except DegenerateProbabilityError as e:
            logger.warning(f"Fixture {fixture.fixture_id} left unpriced: {e}")
            if row is not None:
                session.delete(row)
            return

        if row is None:
            row = MatchOdds(fixture_id=fixture.fixture_id, bookmaker=INTERNAL_BOOKMAKER)
            session.add(row)

        row.bet = "Match Winner"
        row.captured_at = datetime.utcnow()
        row.home_odds = home_odds
        row.draw_odds = draw_odds
        row.away_odds = away_odds
        row.over_25_odds = _fair_odd(outcome.prob_over_25)
        row.under_25_odds = _fair_odd(outcome.prob_under_25)
        row.source = MODEL_SOURCE
        row.is_closing = False

    def _predict_all(self, session, fixtures: List[Fixture], context: SyncContext) -> dict:
        counts = {"predicted": 0, "unavailable": 0, "failed": 0}

        for fixture in fixtures:
            context.records_processed += 1

            try:
                outcome = self.service.predict(
                    fixture.home_team_id, fixture.away_team_id, fixture.season_id
                )
            except InsufficientDataError as e:
                logger.warning(f"Prediction unavailable for fixture {fixture.fixture_id}: {e}")
                counts["unavailable"] += 1
                continue
            except (PitchsideError, ValueError, ArithmeticError) as e:
                logger.warning(f"Prediction failed for fixture {fixture.fixture_id}: {e}")
                context.errors.append(f"Fixture {fixture.fixture_id}: {e}")
                counts["failed"] += 1
                continue

            if self._save_prediction(session, fixture, outcome):
                context.records_inserted += 1
            else:
                context.records_updated += 1
            self._save_odds(session, fixture, outcome)
            counts["predicted"] += 1

        return counts

    def _run(self, build_query) -> dict:
        with track_sync(self.db, "pitchside", "predictions") as context:
            session = self.db.get_session()

            try:
                fixtures = build_query(session).order_by(Fixture.date, Fixture.fixture_id).all()
                logger.info(f"Found {len(fixtures)} fixtures to predict")

                counts = self._predict_all(session, fixtures, context)
                session.commit()

            except Exception as e:
                session.rollback()
                logger.error(f"Error storing predictions: {e}")
                raise
            finally:
                session.close()

        logger.info(
            f"Predictions stored for {counts['predicted']} fixtures, "
            f"{counts['unavailable']} unavailable, {counts['failed']} failed"
        )
        return counts

    def predict_upcoming(self, now: Optional[datetime] = None) -> dict:
        """
        Predict scheduled fixtures kicking off within the horizon.

        Args:
            now: Reference time (default: current UTC time)

        Returns:
            Counts of predicted, unavailable and failed fixtures
        """
        now = now or datetime.utcnow()
        until = now + timedelta(days=self.horizon_days)

        return self._run(lambda session: session.query(Fixture).filter(
            Fixture.status == "scheduled",
            Fixture.date > now,
            Fixture.date < until
        ))

    def predict_season(self, season_id: int) -> dict:
        """Predict every scheduled fixture of a season."""
        return self._run(lambda session: session.query(Fixture).filter(
            Fixture.status == "scheduled",
            Fixture.season_id == season_id
        ))
