# Match Formats
# Copyright (C) 2025  Match Formats developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from matchformats.exceptions import InvalidConfigurationException
from matchformats.models.settings import BoxSettings
from matchformats.models.standing import StandingRow
from matchformats.utils import setup_logger
from matchformats.utils.validation import validate_count_strict

logger = setup_logger(__name__)

MOVE_UP = "up"
MOVE_DOWN = "down"


@dataclass
class PromotionRelegationResult:
    """Disjoint slices of a ranked standings table.

    Attributes:
        promoting: Top rows
        staying: Middle rows
        relegating: Bottom rows
    """

    promoting: List[StandingRow] = field(default_factory=list)
    staying: List[StandingRow] = field(default_factory=list)
    relegating: List[StandingRow] = field(default_factory=list)


@dataclass(frozen=True)
class BoxMovement:
    """A participant changing box between periods."""

    participant_id: str
    from_box: int
    to_box: int
    direction: str


class PromotionRelegationResolver:
    """Slices ranked standings into promote, stay and relegate groups.

    The slices are taken from the standings in their given order, so the
    caller passes rows already ranked by the StandingsCalculator.
    """

    @staticmethod
    def resolve(
        standings: Sequence[StandingRow], settings: BoxSettings
    ) -> PromotionRelegationResult:
        """Split standings by the configured counts.

        Args:
            standings: Ranked rows, best first
            settings: Anything with promotion_count and relegation_count

        Returns:
            PromotionRelegationResult with disjoint slices

        Raises:
            InvalidConfigurationException: If a count is negative or the two
                counts together exceed the number of rows
        """
        promotion = settings.promotion_count
        relegation = settings.relegation_count
        validate_count_strict(promotion, "promotion_count")
        validate_count_strict(relegation, "relegation_count")

        rows = list(standings)
        if promotion + relegation > len(rows):
            raise InvalidConfigurationException(
                f"Cannot promote {promotion} and relegate {relegation} "
                f"from {len(rows)} participants"
            )

        cut = len(rows) - relegation
        return PromotionRelegationResult(
            promoting=rows[:promotion],
            staying=rows[promotion:cut],
            relegating=rows[cut:],
        )


def plan_box_movements(
    box_standings: Dict[int, Sequence[StandingRow]], settings: BoxSettings
) -> List[BoxMovement]:
    """Moves between adjacent boxes at the end of a period.

    The top rows of each box move up one box and the bottom rows move down
    one box. Nobody moves up from box 1 or down from the last box.

    Args:
        box_standings: Box number (1 is the top box) to ranked standings
        settings: Promotion and relegation counts

    Returns:
        Movements ordered by box, then standing
    """
    if not box_standings:
        return []

    top_box = min(box_standings)
    bottom_box = max(box_standings)
    movements = []
    for box_number in sorted(box_standings):
        result = PromotionRelegationResolver.resolve(
            box_standings[box_number], settings
        )
        if box_number != top_box:
            movements.extend(
                BoxMovement(row.participant_id, box_number, box_number - 1, MOVE_UP)
                for row in result.promoting
            )
        if box_number != bottom_box:
            movements.extend(
                BoxMovement(row.participant_id, box_number, box_number + 1, MOVE_DOWN)
                for row in result.relegating
            )

    logger.info(
        "Planned %s box movement(s) across %s boxes", len(movements), len(box_standings)
    )
    return movements
