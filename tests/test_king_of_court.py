import pytest

from matchformats.exceptions import (
    InvalidParticipantCountException,
    PairingException,
    ParticipantNotFoundException,
)
from matchformats.models import GameScore, KingOfCourtSettings, Participant
from matchformats.pairing.king_of_court import (
    KingOfCourtScheduler,
    initialize_king_of_court,
    is_session_idle,
    record_match_result,
    start_next_match,
)


def _players(count=4):
    return [
        Participant(id=f"p{i}", name=f"Player {i}", rating=5.0 - i * 0.3)
        for i in range(1, count + 1)
    ]


def _queue_ids(scheduler):
    return [p.id for p in scheduler.queue()]


def test_first_match_takes_two_from_the_queue():
    scheduler = KingOfCourtScheduler("koc", _players())

    match = scheduler.start(1)

    assert (match.side_a.id, match.side_b.id) == ("p1", "p2")
    assert match.status == "in_progress"
    assert match.court_number == 1
    assert match.match_id == "meetup_koc_king-of-court-c1-m1_p1_p2"
    assert _queue_ids(scheduler) == ["p3", "p4"]


def test_king_stays_and_loser_joins_the_back():
    scheduler = KingOfCourtScheduler("koc", _players())
    scheduler.start(1)
    scheduler.record(1, "p1", [GameScore(11, 7)])

    assert scheduler.state.court(1).king_id == "p1"
    assert _queue_ids(scheduler) == ["p3", "p4", "p2"]

    match = scheduler.start(1)
    assert (match.side_a.id, match.side_b.id) == ("p1", "p3")
    assert match.match_number == 2


def test_challenger_win_takes_the_court():
    scheduler = KingOfCourtScheduler("koc", _players())
    scheduler.start(1)
    scheduler.record(1, "p1", [GameScore(11, 7)])
    scheduler.start(1)
    scheduler.record(1, "p3", [GameScore(8, 11)])

    assert scheduler.state.court(1).king_id == "p3"
    assert _queue_ids(scheduler) == ["p4", "p2", "p1"]
    assert scheduler.state.player("p3").consecutive_wins == 1
    assert scheduler.state.player("p1").consecutive_wins == 0

    standings = scheduler.standings()
    assert [s.player.id for s in standings] == ["p3", "p1", "p2", "p4"]
    assert [s.rank for s in standings] == [1, 2, 3, 4]
    assert standings[1].player.points_scored == 19


def test_king_steps_down_after_max_consecutive_wins():
    settings = KingOfCourtSettings(max_consecutive_wins=2)
    scheduler = KingOfCourtScheduler("koc", _players(), settings)
    scheduler.start(1)
    scheduler.record(1, "p1", [GameScore(11, 3)])
    scheduler.start(1)
    scheduler.record(1, "p1", [GameScore(11, 4)])

    court = scheduler.state.court(1)
    assert court.king_id is None
    assert not court.match_in_progress
    assert _queue_ids(scheduler) == ["p4", "p2", "p1", "p3"]
    assert scheduler.state.player("p1").consecutive_wins == 0

    match = scheduler.start(1)
    assert (match.side_a.id, match.side_b.id) == ("p4", "p2")


def test_multiple_courts_start_together():
    scheduler = KingOfCourtScheduler(
        "koc", _players(), KingOfCourtSettings(number_of_courts=2)
    )

    started = scheduler.start_all_courts()

    assert [(m.court_number, m.side_a.id, m.side_b.id) for m in started] == [
        (1, "p1", "p2"),
        (2, "p3", "p4"),
    ]
    assert scheduler.queue() == []
    assert scheduler.start(1) is None
    assert not is_session_idle(scheduler.state)
    assert sorted(scheduler.history_by_court()) == [1, 2]


def test_court_waits_for_a_challenger():
    state = initialize_king_of_court("koc", _players(2))
    state, first = start_next_match(state, 1)
    state = record_match_result(state, 1, "p2", [GameScore(9, 11)])

    state, second = start_next_match(state, 1)

    assert first is not None
    assert (second.side_a.id, second.side_b.id) == ("p2", "p1")
    state = record_match_result(state, 1, "p2")
    assert is_session_idle(state)


def test_state_transitions_are_pure():
    state = initialize_king_of_court("koc", _players())
    started, _ = start_next_match(state, 1)

    assert state.queue == ("p1", "p2", "p3", "p4")
    assert not state.court(1).match_in_progress
    assert started.court(1).match_in_progress


def test_result_needs_a_match_in_progress():
    state = initialize_king_of_court("koc", _players())
    with pytest.raises(PairingException):
        record_match_result(state, 1, "p1")


def test_winner_must_be_on_the_court():
    state, _ = start_next_match(initialize_king_of_court("koc", _players()), 1)
    with pytest.raises(ParticipantNotFoundException):
        record_match_result(state, 1, "p4")


def test_needs_two_participants():
    with pytest.raises(InvalidParticipantCountException):
        initialize_king_of_court("koc", _players(1))
