from dataclasses import replace

import pytest

from matchformats.exceptions import InvalidConfigurationException
from matchformats.models import (
    GameScore,
    GenerationRequest,
    Participant,
    SwissSettings,
)
from matchformats.pairing.swiss import (
    SwissEntrant,
    build_swiss_entrants,
    generate_swiss_round,
    pair_swiss_round,
    recommended_swiss_rounds,
)


def _players(*ratings):
    return [
        Participant(id=f"p{i}", name=f"Player {i}", rating=rating)
        for i, rating in enumerate(ratings, start=1)
    ]


def _completed(match, winner_id, points=(11, 6)):
    if match.side_a.id == winner_id:
        score = GameScore(points[0], points[1])
    else:
        score = GameScore(points[1], points[0])
    return replace(match, status="completed", scores=[score], winner_id=winner_id)


def _round(players, round_number, prior=(), method="slide"):
    request = GenerationRequest(
        "swiss",
        players,
        settings=SwissSettings(total_rounds=4, pairing_method=method),
        round_number=round_number,
        prior_matches=list(prior),
    )
    return generate_swiss_round(request)


def _pairs(result):
    return [(m.side_a.id, m.side_b.id) for m in result.matches]


def test_first_round_slide_pairs_top_half_with_bottom_half():
    result = _round(_players(5.0, 4.5, 4.0, 3.5), 1)

    assert _pairs(result) == [("p1", "p3"), ("p2", "p4")]
    assert result.bye is None
    assert result.warnings == []


def test_first_round_adjacent_pairs_neighbours():
    result = _round(_players(5.0, 4.5, 4.0, 3.5), 1, method="adjacent")

    assert _pairs(result) == [("p1", "p2"), ("p3", "p4")]


def test_second_round_pairs_within_score_groups():
    players = _players(5.0, 4.5, 4.0, 3.5)
    first = _round(players, 1)
    played = [_completed(m, m.side_a.id) for m in first.matches]

    second = _round(players, 2, played)

    assert _pairs(second) == [("p1", "p2"), ("p3", "p4")]
    assert all(m.match_id.startswith("tournament_swiss_swiss-r2_") for m in second.matches)


def test_no_self_pairings_or_repeat_appearances():
    players = _players(6.0, 5.5, 5.0, 4.5, 4.0, 3.5, 3.0, 2.5)
    prior = []
    for round_number in range(1, 4):
        result = _round(players, round_number, prior)
        seen = []
        for match in result.matches:
            assert match.side_a.id != match.side_b.id
            seen.extend(match.participant_ids)
        assert len(seen) == len(set(seen)) == 8
        prior.extend(_completed(m, m.side_a.id) for m in result.matches)


def test_odd_field_bye_goes_to_lowest_rated_first():
    players = _players(5.0, 4.0, 3.0)
    first = _round(players, 1)

    assert first.bye.id == "p3"
    assert len(first.matches) == 1
    assert first.schedule[0].byes == [first.bye]


def test_bye_is_not_repeated_while_others_have_none():
    players = _players(5.0, 4.0, 3.0)
    first = _round(players, 1)
    played = [_completed(m, "p1") for m in first.matches]

    second = _round(players, 2, played)

    # p3 already had a bye, p2 lost round one
    assert second.bye.id == "p2"


def test_bye_prefers_most_losses_over_rating():
    low, high, mid = _players(3.0, 5.0, 4.0)
    entrants = [
        SwissEntrant(low, wins=2),
        SwissEntrant(high, losses=2),
        SwissEntrant(mid, wins=1, losses=1),
    ]

    assert pair_swiss_round(entrants, "slide").bye.id == "p2"

    entrants[1] = SwissEntrant(high, losses=2, byes=1)
    assert pair_swiss_round(entrants, "slide").bye.id == "p3"


def test_adjacent_floater_drops_into_next_group():
    top, second, third, fourth = _players(5.0, 4.5, 4.0, 3.5)
    entrants = [
        SwissEntrant(top, wins=1, opponents=frozenset({"p2"})),
        SwissEntrant(second, wins=1, opponents=frozenset({"p1"})),
        SwissEntrant(third),
        SwissEntrant(fourth),
    ]

    result = pair_swiss_round(entrants, "adjacent", round_number=2)

    pairs = [(a.id, b.id, warning) for a, b, warning in result.pairings]
    assert pairs == [("p1", "p3", None), ("p2", "p4", None)]
    assert result.warnings == []
    assert result.bye is None


def test_bye_counts_derived_from_rounds_with_matches():
    players = _players(5.0, 4.0, 3.0)
    first = _round(players, 1)
    entrants = {e.id: e for e in build_swiss_entrants(players, first.matches)}

    assert entrants["p3"].byes == 1
    assert entrants["p1"].byes == 0
    assert entrants["p1"].opponents == frozenset({"p2"})


def test_forced_rematch_is_flagged():
    players = _players(5.0, 4.0)
    first = _round(players, 1)

    second = _round(players, 2, first.matches)

    assert len(second.matches) == 1
    assert second.matches[0].warning == "unresolved_pairing"
    assert [w.code for w in second.warnings] == ["unresolved_pairing"]
    assert set(second.warnings[0].participant_ids) == {"p1", "p2"}
    assert second.warnings[0].round_number == 2


def test_rematches_avoided_when_possible():
    players = _players(5.0, 4.5, 4.0, 3.5)
    first = _round(players, 1)
    # Results not entered yet, so everyone is still on zero wins
    second = _round(players, 2, first.matches)

    first_pairs = {frozenset(p) for p in _pairs(first)}
    assert not first_pairs & {frozenset(p) for p in _pairs(second)}
    assert second.warnings == []


def test_generation_is_deterministic():
    players = _players(None, 4.0, None, 4.0, 3.0)
    first = _round(players, 1)
    again = _round(list(players), 1)
    assert _pairs(first) == _pairs(again)
    assert first.bye == again.bye


def test_round_number_must_be_positive():
    with pytest.raises(InvalidConfigurationException):
        _round(_players(5.0, 4.0), 0)


def test_invalid_pairing_method_is_rejected():
    with pytest.raises(InvalidConfigurationException):
        _round(_players(5.0, 4.0), 1, method="random")


def test_single_participant_is_empty():
    assert _round(_players(5.0), 1).is_empty


def test_recommended_rounds():
    assert recommended_swiss_rounds(4) == 2
    assert recommended_swiss_rounds(5) == 3
    assert recommended_swiss_rounds(16) == 4
    assert recommended_swiss_rounds(64) == 6
    assert recommended_swiss_rounds(65) == 7
