import pytest

from matchformats.exceptions import InvalidConfigurationException
from matchformats.models import BoxSettings, Participant, StandingRow
from matchformats.tournament.promotion import (
    MOVE_DOWN,
    MOVE_UP,
    PromotionRelegationResolver,
    plan_box_movements,
)


def _rows(count, prefix="p"):
    return [
        StandingRow(participant=Participant(id=f"{prefix}{i}", name=f"{prefix}{i}"), rank=i)
        for i in range(1, count + 1)
    ]


def _ids(rows):
    return [row.participant_id for row in rows]


def test_ten_rows_split_two_six_two():
    rows = _rows(10)
    settings = BoxSettings(promotion_count=2, relegation_count=2)

    result = PromotionRelegationResolver.resolve(rows, settings)

    assert _ids(result.promoting) == ["p1", "p2"]
    assert _ids(result.staying) == ["p3", "p4", "p5", "p6", "p7", "p8"]
    assert _ids(result.relegating) == ["p9", "p10"]


def test_zero_counts_keep_everyone():
    rows = _rows(4)
    result = PromotionRelegationResolver.resolve(
        rows, BoxSettings(promotion_count=0, relegation_count=0)
    )

    assert result.promoting == []
    assert result.relegating == []
    assert _ids(result.staying) == _ids(rows)


def test_counts_larger_than_field_rejected():
    with pytest.raises(InvalidConfigurationException):
        PromotionRelegationResolver.resolve(
            _rows(3), BoxSettings(promotion_count=2, relegation_count=2)
        )


def test_negative_counts_rejected():
    with pytest.raises(InvalidConfigurationException):
        PromotionRelegationResolver.resolve(
            _rows(3), BoxSettings(promotion_count=-1, relegation_count=0)
        )


def test_box_movements_between_adjacent_boxes():
    boxes = {1: _rows(4, "a"), 2: _rows(4, "b"), 3: _rows(4, "c")}

    movements = plan_box_movements(boxes, BoxSettings())

    summary = [(m.participant_id, m.from_box, m.to_box, m.direction) for m in movements]
    assert summary == [
        ("a4", 1, 2, MOVE_DOWN),
        ("b1", 2, 1, MOVE_UP),
        ("b4", 2, 3, MOVE_DOWN),
        ("c1", 3, 2, MOVE_UP),
    ]


def test_single_box_has_no_movements():
    assert plan_box_movements({1: _rows(4)}, BoxSettings()) == []
    assert plan_box_movements({}, BoxSettings()) == []
