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
from typing import Any, Dict, Iterable, Set

from matchformats.models.match import MatchStub


@dataclass
class PairingHistory:
    """
    Tracks which sides have already met.

    Attributes
    ----------
    previous_matches : set of frozenset of str
        Frozensets of participant id pairs that have already been scheduled.
    """

    previous_matches: Set[frozenset] = field(default_factory=set)

    def add_pairing(self, first_id: str, second_id: str) -> None:
        """Record that two sides have been paired."""
        self.previous_matches.add(frozenset({first_id, second_id}))

    def have_played(self, first_id: str, second_id: str) -> bool:
        """Check if two sides have previously been paired."""
        return frozenset({first_id, second_id}) in self.previous_matches

    @classmethod
    def from_matches(cls, matches: Iterable[MatchStub]) -> "PairingHistory":
        """Build a history from every match with two known sides."""
        history = cls()
        for match in matches:
            if match.is_ready:
                history.add_pairing(match.side_a.id, match.side_b.id)
        return history

    def to_dict(self) -> Dict[str, Any]:
        """Serialize pairing history to dictionary."""
        return {"previous_matches": [sorted(pair) for pair in self.previous_matches]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PairingHistory":
        """Deserialize pairing history from dictionary."""
        return cls(
            previous_matches=set(
                frozenset(map(str, pair)) for pair in data.get("previous_matches", [])
            )
        )
