"""Tests for the Poisson goal model and outcome helpers."""

import numpy as np
import pytest

from pitchside.exceptions import DegenerateProbabilityError, InsufficientDataError
from pitchside.models.outcome import OutcomePrediction
from pitchside.models.poisson import PoissonOutcomeModel, TeamFormStats, predict_outcome

STRONG_HOME = TeamFormStats(goals_scored=40, goals_conceded=20, matches_played=20)
WEAK_AWAY = TeamFormStats(goals_scored=15, goals_conceded=35, matches_played=20)


def test_strong_home_side_is_favoured():
    prediction = predict_outcome(STRONG_HOME, WEAK_AWAY)

    assert prediction.prob_home > prediction.prob_away
    assert prediction.prob_home > prediction.prob_draw
    assert prediction.source == "poisson"

    home_odds, _, away_odds = prediction.fair_odds()
    assert home_odds < away_odds


def test_expected_goals_blend_attack_and_defence():
    lambda_home, lambda_away = PoissonOutcomeModel().expected_goals(STRONG_HOME, WEAK_AWAY)

    assert lambda_home == pytest.approx((2.0 + 1.75) / 2)
    assert lambda_away == pytest.approx((0.75 + 1.0) / 2)


@pytest.mark.parametrize("home, away", [
    (STRONG_HOME, WEAK_AWAY),
    (WEAK_AWAY, STRONG_HOME),
    (TeamFormStats(0, 0, 5), TeamFormStats(0, 0, 5)),
    (TeamFormStats(3, 60, 3), TeamFormStats(90, 2, 3)),
    (TeamFormStats(1, 1, 1), TeamFormStats(1, 1, 1)),
])
def test_probabilities_are_normalised(home, away):
    prediction = predict_outcome(home, away)

    assert sum(prediction.probabilities) == pytest.approx(1.0, abs=1e-9)
    assert all(0.0 <= p <= 1.0 for p in prediction.probabilities)
    assert prediction.prob_over_25 + prediction.prob_under_25 == pytest.approx(1.0, abs=1e-9)


def test_more_home_goals_never_lowers_home_win():
    previous = 0.0
    for scored in range(10, 70, 5):
        home = TeamFormStats(goals_scored=scored, goals_conceded=20, matches_played=20)
        prob_home = predict_outcome(home, WEAK_AWAY).prob_home
        assert prob_home >= previous
        previous = prob_home


def test_prediction_is_deterministic():
    assert predict_outcome(STRONG_HOME, WEAK_AWAY) == predict_outcome(STRONG_HOME, WEAK_AWAY)


@pytest.mark.parametrize("home, away", [
    (TeamFormStats(0, 0, 0), WEAK_AWAY),
    (STRONG_HOME, TeamFormStats(0, 0, 0)),
])
def test_no_matches_raises_insufficient_data(home, away):
    with pytest.raises(InsufficientDataError):
        predict_outcome(home, away)


def test_goalless_teams_use_lambda_floor():
    model = PoissonOutcomeModel()
    goalless = TeamFormStats(goals_scored=0, goals_conceded=0, matches_played=10)

    assert model.expected_goals(goalless, goalless) == (0.001, 0.001)

    prediction = model.predict(goalless, goalless)
    assert prediction.prob_draw > 0.99
    assert prediction.most_likely_score == (0, 0)


def test_score_table_extends_for_high_scoring_teams():
    model = PoissonOutcomeModel(max_goals=10)
    prolific = TeamFormStats(goals_scored=300, goals_conceded=300, matches_played=20)

    probs = model.score_matrix(*model.expected_goals(prolific, prolific))

    assert probs.shape[0] > 11
    assert probs.sum() == pytest.approx(1.0)


def test_score_frame_labels():
    frame = PoissonOutcomeModel(max_goals=10).score_frame(STRONG_HOME, WEAK_AWAY)

    assert frame.shape[0] == frame.shape[1]
    assert frame.index[0] == "H0"
    assert frame.columns[-1] == f"A{frame.shape[1] - 1}"
    assert frame.to_numpy().sum() == pytest.approx(1.0)
    assert np.all(frame.to_numpy() >= 0)


def test_fair_odds_are_reciprocals():
    prediction = predict_outcome(STRONG_HOME, WEAK_AWAY)
    odds = prediction.fair_odds()

    for prob, odd in zip(prediction.probabilities, odds):
        assert odd > 1.0
        assert odd == pytest.approx(1.0 / prob)


@pytest.mark.parametrize("probs", [(1.0, 0.0, 0.0), (0.5, 0.5, 0.0)])
def test_degenerate_probabilities_have_no_fair_odds(probs):
    with pytest.raises(DegenerateProbabilityError):
        OutcomePrediction(*probs).fair_odds()


def test_odds_values_shape():
    values = OutcomePrediction(0.5, 0.25, 0.25).odds_values()

    assert values == [
        {"value": "Home", "odd": "2.00"},
        {"value": "Draw", "odd": "4.00"},
        {"value": "Away", "odd": "4.00"},
    ]


@pytest.mark.parametrize("probs, winner, advice", [
    ((0.6, 0.25, 0.15), "home", "Home win"),
    ((0.2, 0.25, 0.55), "away", "Away win"),
    ((0.45, 0.30, 0.25), "home", "Double chance: home or draw"),
    ((0.30, 0.25, 0.45), "away", "Double chance: home or away"),
    ((0.25, 0.40, 0.35), None, "Double chance: draw or away"),
])
def test_winner_and_advice(probs, winner, advice):
    prediction = OutcomePrediction(*probs)

    assert prediction.winner_side() == winner
    assert prediction.advice() == advice
