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

from enum import Enum

from matchformats.constants import (
    FORMAT_ELIMINATION,
    FORMAT_FIXED_BOX,
    FORMAT_KING_OF_COURT,
    FORMAT_LADDER,
    FORMAT_POOL,
    FORMAT_ROTATING_BOX,
    FORMAT_ROUND_ROBIN,
    FORMAT_SWISS,
)


class EventFormat(Enum):
    """Closed set of competition formats the engine can generate."""

    ROUND_ROBIN = FORMAT_ROUND_ROBIN
    SWISS = FORMAT_SWISS
    ELIMINATION = FORMAT_ELIMINATION
    FIXED_BOX = FORMAT_FIXED_BOX
    ROTATING_BOX = FORMAT_ROTATING_BOX
    POOL = FORMAT_POOL
    LADDER = FORMAT_LADDER
    KING_OF_COURT = FORMAT_KING_OF_COURT

    @classmethod
    def parse(cls, value) -> "EventFormat":
        """Accept an EventFormat, its value, or its name in any case."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if member.value == text or member.name.lower() == text:
                return member
        raise ValueError(f"Unknown event format: {value!r}")
