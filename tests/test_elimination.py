import pytest

from matchformats.exceptions import BracketStateException
from matchformats.models import EliminationSettings, GenerationRequest, Participant
from matchformats.pairing.elimination import (
    advance_winner,
    build_bracket,
    generate_elimination,
    get_round_name,
    next_power_of_two,
    seed_positions,
)


def _seeded(count):
    """Participants whose rating order matches their number."""
    return [
        Participant(id=f"s{i}", name=f"Seed {i}", rating=float(100 - i))
        for i in range(1, count + 1)
    ]


def _first_round(bracket):
    return {m.match_id: m for m in bracket.round(1)}


def test_eight_entrants_seed_one_meets_seed_eight():
    result = generate_elimination(GenerationRequest("cup", _seeded(8)))
    bracket = result.bracket

    assert bracket.size == 8
    assert bracket.bye_count == 0
    assert len(result.matches) == 7

    opener = _first_round(bracket)["R1-M1"]
    assert (opener.side_a.id, opener.side_b.id) == ("s1", "s8")
    assert (opener.seed_a, opener.seed_b) == (1, 8)


def test_byes_go_to_top_seeds():
    bracket = build_bracket(_seeded(5))

    assert bracket.size == 8
    assert bracket.bye_count == 3
    bye_seeds = sorted(m.seed_a for m in bracket.round(1) if m.is_bye)
    assert bye_seeds == [1, 2, 3]
    for match in bracket.round(1):
        if match.is_bye:
            assert match.side_b is None
            assert match.winner_id == match.side_a.id


def test_bye_winners_are_placed_in_round_two():
    bracket = build_bracket(_seeded(5))

    second_round = bracket.round(2)
    placed = {p.id for m in second_round for p in (m.side_a, m.side_b) if p}
    assert placed == {"s1", "s2", "s3"}


def test_bye_slots_are_not_materialized():
    result = generate_elimination(GenerationRequest("cup", _seeded(5)))

    assert len(result.matches) == 4
    first_round = [m for m in result.matches if m.round_number == 1]
    assert len(first_round) == 1
    assert first_round[0].participant_ids == ("s4", "s5")
    later = [m for m in result.matches if m.round_number > 1]
    assert any(not m.is_ready for m in later)


def test_bracket_match_ids_are_position_based():
    result = generate_elimination(GenerationRequest("cup", _seeded(4)))

    ids = [m.match_id for m in result.matches]
    assert ids == [
        "tournament_cup_bracket-r1-m1",
        "tournament_cup_bracket-r1-m2",
        "tournament_cup_bracket-r2-m1",
    ]
    final = result.matches[-1]
    assert final.round_name == "Final"
    assert final.side_a is None and final.side_b is None


def test_advance_winner_moves_winner_forward():
    bracket = build_bracket(_seeded(4))

    bracket = advance_winner(bracket, "R1-M1", "s1")
    bracket = advance_winner(bracket, "R1-M2", "s3")

    final = bracket.get("R2-M1")
    assert final.side_a.id == "s1"
    assert final.side_b.id == "s3"
    assert final.seed_b == 3

    bracket = advance_winner(bracket, "R2-M1", "s3")
    assert bracket.champion_id == "s3"


def test_advance_winner_is_pure_and_idempotent():
    bracket = build_bracket(_seeded(4))
    advanced = advance_winner(bracket, "R1-M1", "s4")

    assert bracket.get("R1-M1").winner_id is None
    assert advance_winner(advanced, "R1-M1", "s4") is advanced


def test_conflicting_winner_raises():
    bracket = advance_winner(build_bracket(_seeded(4)), "R1-M1", "s1")
    with pytest.raises(BracketStateException):
        advance_winner(bracket, "R1-M1", "s4")


def test_winner_must_be_in_a_ready_match():
    bracket = build_bracket(_seeded(4))
    with pytest.raises(BracketStateException):
        advance_winner(bracket, "R1-M1", "s2")
    with pytest.raises(BracketStateException):
        advance_winner(bracket, "R2-M1", "s1")
    with pytest.raises(BracketStateException):
        advance_winner(bracket, "R9-M9", "s1")


def test_third_place_match_takes_semi_final_losers():
    bracket = build_bracket(_seeded(4), third_place_match=True)
    third = bracket.get("R2-3P")
    assert third.is_third_place
    assert third.round_name == "Third Place"

    bracket = advance_winner(bracket, "R1-M1", "s1")
    bracket = advance_winner(bracket, "R1-M2", "s2")

    third = bracket.get("R2-3P")
    assert third.side_a.id == "s4"
    assert third.side_b.id == "s3"
    assert bracket.champion_id is None


def test_third_place_match_generated_as_stub():
    request = GenerationRequest(
        "cup", _seeded(8), settings=EliminationSettings(third_place_match=True)
    )
    result = generate_elimination(request)

    assert len(result.matches) == 8
    assert "tournament_cup_bracket-r3-3p" in {m.match_id for m in result.matches}


def test_preserve_order_keeps_given_seeding():
    players = list(reversed(_seeded(4)))
    bracket = build_bracket(players, preserve_order=True)

    assert [p.id for p in bracket.seeds] == ["s4", "s3", "s2", "s1"]
    assert bracket.get("R1-M1").side_a.id == "s4"


def test_two_entrants_play_a_final():
    bracket = build_bracket(_seeded(2), third_place_match=True)
    assert bracket.size == 2
    assert bracket.rounds == 1
    assert [m.match_id for m in bracket.matches] == ["R1-M1"]


def test_single_entrant_is_empty():
    assert generate_elimination(GenerationRequest("cup", _seeded(1))).is_empty


def test_seed_positions_and_sizes():
    assert seed_positions(8) == [1, 8, 4, 5, 2, 7, 3, 6]
    assert seed_positions(4) == [1, 4, 2, 3]
    assert next_power_of_two(2) == 2
    assert next_power_of_two(5) == 8
    assert next_power_of_two(16) == 16


def test_round_names():
    assert get_round_name(4, 4) == "Final"
    assert get_round_name(3, 4) == "Semi-Final"
    assert get_round_name(2, 4) == "Quarter-Final"
    assert get_round_name(1, 4) == "Round 1"


def test_stored_settings_ignore_retired_keys():
    settings = EliminationSettings.from_dict(
        {"third_place_match": True, "consolation": True}
    )

    assert settings == EliminationSettings(third_place_match=True)
    assert settings.to_dict() == {"third_place_match": True}
