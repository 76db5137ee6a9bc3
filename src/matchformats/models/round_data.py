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
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant


@dataclass(frozen=True)
class PairingWarning:
    """A warning-level condition attached to generated output.

    Attributes
    ----------
    code : str
        Machine-readable code, e.g. unresolved_pairing.
    message : str
        Human-readable description.
    participant_ids : tuple of str
        Participants the warning concerns.
    round_number : int or None
        Round the warning belongs to, if any.
    """

    code: str
    message: str
    participant_ids: Tuple[str, ...] = ()
    round_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "participant_ids": list(self.participant_ids),
            "round_number": self.round_number,
        }


@dataclass(frozen=True)
class Pairing:
    """Two sides meeting in a round. side_b is None for a bye."""

    side_a: Participant
    side_b: Optional[Participant]
    warning: Optional[str] = None

    @property
    def is_bye(self) -> bool:
        return self.side_b is None

    @property
    def participant_ids(self) -> Tuple[str, ...]:
        if self.side_b is None:
            return (self.side_a.id,)
        return (self.side_a.id, self.side_b.id)


@dataclass
class Round:
    """All pairings of a single round.

    Attributes
    ----------
    round_number : int
        Round number (1-indexed).
    pairings : list of Pairing
        Ordered pairings, byes included.
    resting : list of Participant
        Individuals sitting out a rotating-partner round.
    """

    round_number: int
    pairings: List[Pairing] = field(default_factory=list)
    resting: List[Participant] = field(default_factory=list)

    @property
    def matches(self) -> List[Pairing]:
        """Pairings that are real matches (byes excluded)."""
        return [p for p in self.pairings if not p.is_bye]

    @property
    def byes(self) -> List[Participant]:
        return [p.side_a for p in self.pairings if p.is_bye]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize round to dictionary."""
        return {
            "round_number": self.round_number,
            "pairings": [
                [p.side_a.id, p.side_b.id if p.side_b else None]
                for p in self.pairings
            ],
            "resting": [p.id for p in self.resting],
        }


class GenerationStatus(Enum):
    """Outcome of a generation call."""

    OK = "ok"
    INSUFFICIENT_PARTICIPANTS = "insufficient_participants"


@dataclass
class GenerationResult:
    """Output of a generator: unstored matches plus the round schedule.

    Attributes
    ----------
    status : GenerationStatus
        INSUFFICIENT_PARTICIPANTS when the field is too small; matches and
        schedule are then empty.
    matches : list of MatchStub
        Match stubs, byes not materialized.
    schedule : list of Round
        Rounds of pairings, byes included.
    warnings : list of PairingWarning
        Warning-level conditions such as forced Swiss rematches.
    bye : Participant or None
        Swiss bye recipient for the generated round.
    bracket : Any
        The built bracket for elimination and medal stages.
    pools : dict or None
        Pool name to participants for pool play.
    """

    status: GenerationStatus = GenerationStatus.OK
    matches: List[MatchStub] = field(default_factory=list)
    schedule: List[Round] = field(default_factory=list)
    warnings: List[PairingWarning] = field(default_factory=list)
    bye: Optional[Participant] = None
    bracket: Any = None
    pools: Optional[Dict[str, List[Participant]]] = None

    @property
    def is_empty(self) -> bool:
        return self.status is GenerationStatus.INSUFFICIENT_PARTICIPANTS

    @classmethod
    def insufficient(cls) -> "GenerationResult":
        return cls(status=GenerationStatus.INSUFFICIENT_PARTICIPANTS)
