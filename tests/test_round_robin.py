"""
Tests for double round-robin schedule generation.
Every pair meets twice with venues swapped; nobody plays twice in a round.
"""

from collections import Counter
from itertools import combinations

import pytest

from pitchside.exceptions import InvalidScheduleInputError
from pitchside.scheduling.round_robin import (
    berger_rounds,
    generate_schedule,
    schedule_to_frame,
)


def _all_pairings(schedule):
    return [pairing for rnd in schedule for pairing in rnd.pairings]


def test_four_teams_scenario():
    """[1,2,3,4]: 6 rounds, 12 fixtures, each pair twice with swapped venues."""
    schedule = generate_schedule([1, 2, 3, 4])
    pairings = _all_pairings(schedule)

    assert len(schedule) == 6
    assert len(pairings) == 12

    for a, b in combinations([1, 2, 3, 4], 2):
        assert pairings.count((a, b)) == 1
        assert pairings.count((b, a)) == 1


def test_four_teams_exact_rounds():
    """Circle method with slot 0 fixed, parity-based venues, swapped second leg."""
    schedule = generate_schedule([1, 2, 3, 4])

    assert [rnd.pairings for rnd in schedule] == [
        [(4, 1), (3, 2)],
        [(1, 3), (4, 2)],
        [(2, 1), (4, 3)],
        [(1, 4), (2, 3)],
        [(3, 1), (2, 4)],
        [(1, 2), (3, 4)],
    ]


@pytest.mark.parametrize("n", range(2, 15))
def test_schedule_completeness(n):
    """Every unordered pair appears exactly twice, once at each venue, in different rounds."""
    teams = [f"T{i}" for i in range(n)]
    schedule = generate_schedule(teams)

    rounds_by_pairing = {}
    for rnd in schedule:
        for pairing in rnd.pairings:
            assert pairing not in rounds_by_pairing
            rounds_by_pairing[pairing] = rnd.number

    for a, b in combinations(teams, 2):
        assert (a, b) in rounds_by_pairing
        assert (b, a) in rounds_by_pairing
        assert rounds_by_pairing[(a, b)] != rounds_by_pairing[(b, a)]

    assert len(rounds_by_pairing) == n * (n - 1)


@pytest.mark.parametrize("n", range(2, 15))
def test_no_team_plays_twice_in_a_round(n):
    schedule = generate_schedule(list(range(n)))
    for rnd in schedule:
        playing = rnd.teams()
        assert len(playing) == len(set(playing))


@pytest.mark.parametrize("n", [2, 4, 6, 10, 20])
def test_even_schedule_size(n):
    """N even: 2(N-1) rounds of N/2 fixtures, no byes."""
    schedule = generate_schedule(list(range(n)))

    assert len(schedule) == 2 * (n - 1)
    assert all(len(rnd.pairings) == n // 2 for rnd in schedule)
    assert all(rnd.bye is None for rnd in schedule)


@pytest.mark.parametrize("n", [3, 5, 7, 9])
def test_odd_schedule_has_one_resting_team_per_round(n):
    teams = list(range(100, 100 + n))
    schedule = generate_schedule(teams)

    assert len(schedule) == 2 * n
    for rnd in schedule:
        assert rnd.bye in teams
        assert rnd.bye not in rnd.teams()
        assert len(rnd.teams()) == n - 1

    # One rest per leg for every team
    byes = Counter(rnd.bye for rnd in schedule)
    assert all(byes[team] == 2 for team in teams)


def test_two_teams_play_twice():
    schedule = generate_schedule(["A", "B"])

    assert len(schedule) == 2
    assert schedule[0].pairings == [("B", "A")]
    assert schedule[1].pairings == [("A", "B")]


@pytest.mark.parametrize("n", [4, 7, 12])
def test_home_games_balanced(n):
    """Mirrored legs give every team N-1 home games (real opponents only)."""
    teams = list(range(n))
    home_games = Counter(home for home, _ in _all_pairings(generate_schedule(teams)))
    assert all(home_games[team] == n - 1 for team in teams)


def test_schedule_is_deterministic():
    teams = [7, 3, 11, 5, 2]
    first = generate_schedule(teams)
    second = generate_schedule(list(teams))

    assert [(r.pairings, r.bye) for r in first] == [(r.pairings, r.bye) for r in second]


def test_second_leg_mirrors_first():
    schedule = generate_schedule(list("ABCDEF"))
    half = len(schedule) // 2

    for first, second in zip(schedule[:half], schedule[half:]):
        assert first.leg == 1
        assert second.leg == 2
        assert second.pairings == [(away, home) for home, away in first.pairings]


@pytest.mark.parametrize("competitors", [[], [1], [1, 1], [1, 2, 3, 2]])
def test_invalid_input_raises(competitors):
    with pytest.raises(InvalidScheduleInputError):
        generate_schedule(competitors)


def test_invalid_input_is_value_error():
    with pytest.raises(ValueError):
        generate_schedule(["solo"])


@pytest.mark.parametrize("n", [0, 1])
def test_berger_rounds_without_opponent_is_empty(n):
    assert berger_rounds(n) == []


def test_berger_rounds_keeps_bye_slot():
    """Index level: odd n pads with slot n and keeps those pairings."""
    rounds = berger_rounds(3)

    assert len(rounds) == 6
    for pairings in rounds:
        assert len(pairings) == 2
        assert sum(3 in pairing for pairing in pairings) == 1


def test_schedule_to_frame():
    frame = schedule_to_frame(generate_schedule([1, 2, 3, 4]))

    assert list(frame.columns) == ["round", "leg", "home", "away"]
    assert len(frame) == 12
    assert frame["round"].tolist() == [1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6]
    assert frame["leg"].value_counts().to_dict() == {1: 6, 2: 6}
