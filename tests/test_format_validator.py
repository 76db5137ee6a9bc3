import pytest

from matchformats.exceptions import ValidationFailureException
from matchformats.models import (
    EventFormat,
    GenerationRequest,
    GenerationResult,
    MatchStub,
    Pairing,
    Participant,
    Round,
)
from matchformats.pairing.elimination import generate_elimination
from matchformats.pairing.round_robin import generate_round_robin
from matchformats.pairing.swiss import generate_swiss_round
from matchformats.validation.format_validator import (
    CriterionStatus,
    ViolationType,
    create_format_validator,
    validate_pools_before_generation,
)


def _player(pid, members=()):
    return Participant(id=pid, name=pid.upper(), member_player_ids=members)


def _players(count):
    return [_player(f"p{i}") for i in range(1, count + 1)]


def _match(a, b, round_number=1, event_format=EventFormat.ROUND_ROBIN, **kwargs):
    return MatchStub(
        event_id="ev",
        format=event_format,
        side_a=a,
        side_b=b,
        round_number=round_number,
        match_number=1,
        **kwargs,
    )


def _criteria(report):
    return {r.criterion for r in report.violations}


def test_generated_round_robin_passes():
    players = _players(5)
    result = generate_round_robin(GenerationRequest("ev", players))

    report = create_format_validator().validate_result(
        EventFormat.ROUND_ROBIN, result, players
    )

    assert report.ok
    assert report.violations == []
    assert report.compliance_percentage == 100.0
    assert report.summary == "All checks passed; 0 warning(s)"


def test_self_pairing_detected():
    a = _player("a")
    result = GenerationResult(matches=[_match(a, a)], schedule=[Round(1)])

    report = create_format_validator().validate_result(EventFormat.SWISS, result, [a])

    assert not report.ok
    assert "SELF_PAIRING" in _criteria(report)


def test_shared_member_counts_as_self_pairing():
    first = _player("p1_p2", ("p1", "p2"))
    second = _player("p2_p3", ("p2", "p3"))
    result = GenerationResult(matches=[_match(first, second)])

    report = create_format_validator().validate_result(
        EventFormat.ROTATING_BOX, result, [first, second]
    )

    assert "SELF_PAIRING" in _criteria(report)


def test_duplicate_pairing_detected():
    a, b = _player("a"), _player("b")
    result = GenerationResult(
        matches=[_match(a, b), _match(b, a)],
        schedule=[Round(1, [Pairing(a, b)])],
    )

    report = create_format_validator().validate_result(
        EventFormat.ROUND_ROBIN, result, [a, b]
    )

    assert "DUPLICATE_PAIRING" in _criteria(report)


def test_double_booking_detected():
    a, b, c = _players(3)
    schedule = [Round(1, [Pairing(a, b), Pairing(a, c)])]
    result = GenerationResult(
        matches=[_match(a, b), _match(a, c)], schedule=schedule
    )

    report = create_format_validator().validate_result(
        EventFormat.ELIMINATION, result, [a, b, c]
    )

    assert _criteria(report) == {"DOUBLE_BOOKED"}


def test_missing_round_robin_pair_and_bye_count():
    a, b, c = _players(3)
    schedule = [Round(1, [Pairing(a, b), Pairing(c, None)]), Round(2, [Pairing(a, c)])]
    result = GenerationResult(
        matches=[_match(a, b), _match(a, c, round_number=2)], schedule=schedule
    )

    report = create_format_validator().validate_result(
        EventFormat.ROUND_ROBIN, result, [a, b, c]
    )

    assert _criteria(report) == {"RR_COMPLETE", "BYES"}


def test_flagged_swiss_rematch_is_only_a_warning():
    players = _players(2)
    first = generate_swiss_round(GenerationRequest("ev", players))
    second = generate_swiss_round(
        GenerationRequest("ev", players, round_number=2, prior_matches=first.matches)
    )

    report = create_format_validator().validate_result(
        EventFormat.SWISS, second, players, first.matches
    )

    assert report.ok
    assert [w.criterion for w in report.warnings] == ["REMATCH"]
    assert report.warnings[0].violation_type is ViolationType.WARNING


def test_unflagged_rematch_is_a_violation():
    a, b = _players(2)
    prior = [_match(a, b, event_format=EventFormat.SWISS)]
    result = GenerationResult(
        matches=[_match(a, b, round_number=2, event_format=EventFormat.SWISS)],
        schedule=[Round(2, [Pairing(a, b)])],
    )

    report = create_format_validator().validate_result(
        EventFormat.SWISS, result, [a, b], prior
    )

    assert "REMATCH" in _criteria(report)


def test_elimination_bracket_shape_checked():
    players = _players(6)
    result = generate_elimination(GenerationRequest("ev", players))

    report = create_format_validator().validate_result(
        EventFormat.ELIMINATION, result, players
    )

    assert report.ok
    bracket_check = [r for r in report.criteria_results if r.criterion == "BRACKET"]
    assert bracket_check[0].status is CriterionStatus.COMPLIANT


def test_empty_result_is_not_applicable():
    report = create_format_validator().validate_result(
        EventFormat.ROUND_ROBIN, GenerationResult.insufficient(), []
    )

    assert report.ok
    assert report.criteria_results[0].status is CriterionStatus.NOT_APPLICABLE


def test_pool_membership_checks():
    players = _players(7)

    ok = validate_pools_before_generation({"Pool A": players[:4], "Pool B": players[4:]})
    assert ok.ok
    assert ok.warnings == []

    overlap = validate_pools_before_generation(
        {"Pool A": players[:4], "Pool B": players[3:]}
    )
    assert not overlap.ok
    assert "p4" in overlap.violations[0].description

    empty = validate_pools_before_generation({"Pool A": players, "Pool B": []})
    assert not empty.ok

    small = validate_pools_before_generation({"Pool A": players[:2]})
    assert small.ok
    assert [w.criterion for w in small.warnings] == ["POOL_SIZE"]


def test_assert_valid_raises_with_report():
    a = _player("a")
    validator = create_format_validator()
    report = validator.validate_result(
        EventFormat.SWISS, GenerationResult(matches=[_match(a, a)]), [a]
    )

    with pytest.raises(ValidationFailureException) as excinfo:
        validator.assert_valid(report)
    assert excinfo.value.report is report
