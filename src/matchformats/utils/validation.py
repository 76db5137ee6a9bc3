"""Validation utilities for Match Formats.

This module provides reusable input checks with consistent error handling.
Each check has a soft form returning a ValidationResult and a strict form
raising the matching exception.
"""

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

import math
from typing import Iterable, Optional

from matchformats.constants import DOUBLES_TEAM_SIZE
from matchformats.exceptions import (
    DuplicateParticipantException,
    InvalidConfigurationException,
    PlayerCountMismatchException,
)


class ValidationResult:
    """Result of a validation operation.

    Attributes:
        is_valid: Whether the validation passed
        error_message: Human-readable error message if invalid
    """

    def __init__(self, is_valid: bool, error_message: Optional[str] = None):
        self.is_valid = is_valid
        self.error_message = error_message

    def __bool__(self) -> bool:
        """Allow using result in boolean context: if result: ..."""
        return self.is_valid

    def __repr__(self) -> str:
        if self.is_valid:
            return "ValidationResult(VALID)"
        return f"ValidationResult(INVALID, {self.error_message!r})"


# ========== Count Validation ==========


def validate_count(
    value, name: str, minimum: int = 0, allow_none: bool = False
) -> ValidationResult:
    """Validate an integer count setting.

    Args:
        value: The value to check
        name: Setting name used in the error message
        minimum: Smallest accepted value
        allow_none: Whether None means "not set"

    Returns:
        ValidationResult with validation status
    """
    if value is None:
        if allow_none:
            return ValidationResult(is_valid=True)
        return ValidationResult(False, f"{name} is required")

    if isinstance(value, bool) or not isinstance(value, int):
        return ValidationResult(False, f"{name} must be an integer, got {value!r}")

    if value < minimum:
        return ValidationResult(False, f"{name} must be >= {minimum}, got {value}")

    return ValidationResult(is_valid=True)


def validate_count_strict(
    value, name: str, minimum: int = 0, allow_none: bool = False
) -> None:
    """Validate a count and raise if invalid.

    Raises:
        InvalidConfigurationException: If the count is invalid
    """
    result = validate_count(value, name, minimum=minimum, allow_none=allow_none)
    if not result:
        raise InvalidConfigurationException(result.error_message)


def validate_choice_strict(value, name: str, choices: Iterable[str]) -> None:
    """Raise InvalidConfigurationException unless value is one of choices."""
    choices = tuple(choices)
    if value not in choices:
        raise InvalidConfigurationException(
            f"{name} must be one of {', '.join(choices)}, got {value!r}"
        )


# ========== Rating Validation ==========


def validate_rating(rating) -> ValidationResult:
    """Validate a participant rating.

    Ratings are optional. When present they must be finite and non-negative.
    """
    if rating is None:
        return ValidationResult(is_valid=True)

    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        return ValidationResult(False, f"Rating must be numeric, got {rating!r}")

    if math.isnan(rating) or math.isinf(rating):
        return ValidationResult(False, "Rating must be a finite number")

    if rating < 0:
        return ValidationResult(False, f"Rating cannot be negative, got {rating}")

    return ValidationResult(is_valid=True)


# ========== Roster Validation ==========


def validate_unique_ids_strict(participants) -> None:
    """Raise DuplicateParticipantException if any participant id repeats."""
    seen = set()
    for participant in participants:
        if participant.id in seen:
            raise DuplicateParticipantException(
                f"Participant {participant.id!r} entered more than once"
            )
        seen.add(participant.id)


def validate_team_sizes_strict(participants, team_size: int = DOUBLES_TEAM_SIZE) -> None:
    """Raise PlayerCountMismatchException unless every side has team_size members.

    Raises:
        PlayerCountMismatchException: If a side has the wrong number of members
    """
    for participant in participants:
        count = len(participant.member_player_ids)
        if count != team_size:
            raise PlayerCountMismatchException(
                f"{participant.name} has {count} member(s), expected {team_size}"
            )
