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
from typing import Any, Dict, Optional, Tuple

from matchformats.exceptions import InvalidConfigurationException
from matchformats.utils.validation import validate_rating


@dataclass(frozen=True)
class Participant:
    """An individual or fixed doubles team entering a format.

    Instances are immutable. A match stub keeps the participant object it was
    generated with, so it doubles as the point-in-time snapshot of the side.

    Attributes
    ----------
    id : str
        Stable participant id. Doubles teams use their team id.
    name : str
        Display name.
    member_player_ids : tuple of str
        Player ids on this side, one for singles and two for doubles.
    rating : float or None
        Rating used only for seeding and sorting. Never modified by the engine.
    external_rating_ids : tuple of str
        Optional ids at the rating provider.
    """

    id: str
    name: str
    member_player_ids: Tuple[str, ...] = field(default_factory=tuple)
    rating: Optional[float] = None
    external_rating_ids: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        result = validate_rating(self.rating)
        if not result:
            raise InvalidConfigurationException(
                f"{self.name}: {result.error_message}"
            )
        # Lists are accepted for convenience but stored as tuples
        object.__setattr__(self, "member_player_ids", tuple(self.member_player_ids))
        object.__setattr__(
            self, "external_rating_ids", tuple(self.external_rating_ids)
        )
        if not self.member_player_ids:
            object.__setattr__(self, "member_player_ids", (self.id,))

    @property
    def is_doubles(self) -> bool:
        return len(self.member_player_ids) == 2

    def to_dict(self) -> Dict[str, Any]:
        """Serialize participant to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "member_player_ids": list(self.member_player_ids),
            "rating": self.rating,
            "external_rating_ids": list(self.external_rating_ids),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Participant":
        """Deserialize participant from dictionary."""
        return cls(
            id=str(data["id"]),
            name=data.get("name", str(data["id"])),
            member_player_ids=tuple(data.get("member_player_ids", ())),
            rating=data.get("rating"),
            external_rating_ids=tuple(data.get("external_rating_ids", ())),
        )


def make_doubles_side(first: Participant, second: Participant) -> Participant:
    """Build a composite side from two individual players.

    The side id is "<first>_<second>", the name joins both names with an
    ampersand and the rating is the average of the rated members.
    """
    ratings = [p.rating for p in (first, second) if p.rating is not None]
    rating = sum(ratings) / len(ratings) if ratings else None
    return Participant(
        id=f"{first.id}_{second.id}",
        name=f"{first.name} & {second.name}",
        member_player_ids=(first.id, second.id),
        rating=rating,
    )
