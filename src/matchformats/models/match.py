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
from typing import Any, Dict, List, Optional, Tuple

from matchformats.constants import (
    EVENT_TYPE_TOURNAMENT,
    STATUS_COMPLETED,
    STATUS_SCHEDULED,
)
from matchformats.models.event_format import EventFormat
from matchformats.models.participant import Participant


@dataclass(frozen=True)
class GameScore:
    """Score of a single game within a match.

    Attributes
    ----------
    side_a : int
        Points scored by side A.
    side_b : int
        Points scored by side B.
    """

    side_a: int
    side_b: int

    @property
    def winner(self) -> Optional[str]:
        """'sideA', 'sideB', or None for a level game."""
        if self.side_a > self.side_b:
            return "sideA"
        if self.side_b > self.side_a:
            return "sideB"
        return None

    def to_dict(self) -> Dict[str, int]:
        return {"side_a": self.side_a, "side_b": self.side_b}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameScore":
        return cls(side_a=int(data["side_a"]), side_b=int(data["side_b"]))


@dataclass
class MatchStub:
    """An unstored match produced by a generator.

    Status, scores and winner are filled in later by result entry outside the
    engine. The engine only reads them back when computing standings.

    Attributes
    ----------
    event_id : str
        Id of the owning event.
    format : EventFormat
        Format that generated the match.
    side_a, side_b : Participant or None
        Side snapshots. None means the side is not yet known (later bracket
        rounds).
    round_number : int
        Round the match belongs to (1-indexed).
    match_number : int
        Sequence number within the generated schedule (1-indexed).
    event_type : str
        tournament, league or meetup. First segment of the canonical id.
    box_number, pool_key, week_number : optional
        Scope keys for box and pool formats.
    status : str
        scheduled at creation.
    scores : list of GameScore
        Empty at creation.
    winner_id : str or None
        Id of the winning side once known.
    match_id : str or None
        Canonical id, assigned by MatchIdentity.
    leg : int
        Repetition index for multi-leg round robins.
    stage : str or None
        pool, medal or plate for pool play events.
    round_name : str or None
        Display name for bracket rounds.
    bracket_match_id : str or None
        Position id inside a bracket (e.g. "R1-M2").
    next_match_id, next_match_slot : str or None
        Where the winner goes.
    loser_next_match_id, loser_next_match_slot : str or None
        Where the loser goes (third-place match).
    court_number : int or None
        Court used by king-of-the-court sessions.
    warning : str or None
        Warning code attached by the generator, e.g. a forced rematch.
    """

    event_id: str
    format: EventFormat
    side_a: Optional[Participant]
    side_b: Optional[Participant]
    round_number: int
    match_number: int
    event_type: str = EVENT_TYPE_TOURNAMENT
    box_number: Optional[int] = None
    pool_key: Optional[str] = None
    week_number: Optional[int] = None
    status: str = STATUS_SCHEDULED
    scores: List[GameScore] = field(default_factory=list)
    winner_id: Optional[str] = None
    match_id: Optional[str] = None
    leg: int = 1
    stage: Optional[str] = None
    round_name: Optional[str] = None
    bracket_match_id: Optional[str] = None
    next_match_id: Optional[str] = None
    next_match_slot: Optional[str] = None
    loser_next_match_id: Optional[str] = None
    loser_next_match_slot: Optional[str] = None
    court_number: Optional[int] = None
    warning: Optional[str] = None

    @property
    def participant_ids(self) -> Tuple[str, ...]:
        """Ids of the known sides, side A first."""
        return tuple(side.id for side in (self.side_a, self.side_b) if side)

    @property
    def is_ready(self) -> bool:
        return self.side_a is not None and self.side_b is not None

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    def involves(self, participant_id: str) -> bool:
        return participant_id in self.participant_ids

    def opponent_of(self, participant_id: str) -> Optional[Participant]:
        if self.side_a and self.side_a.id == participant_id:
            return self.side_b
        if self.side_b and self.side_b.id == participant_id:
            return self.side_a
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize match to dictionary."""
        return {
            "match_id": self.match_id,
            "event_id": self.event_id,
            "event_type": self.event_type,
            "format": self.format.value,
            "side_a": self.side_a.to_dict() if self.side_a else None,
            "side_b": self.side_b.to_dict() if self.side_b else None,
            "round_number": self.round_number,
            "match_number": self.match_number,
            "box_number": self.box_number,
            "pool_key": self.pool_key,
            "week_number": self.week_number,
            "status": self.status,
            "scores": [s.to_dict() for s in self.scores],
            "winner_id": self.winner_id,
            "leg": self.leg,
            "stage": self.stage,
            "round_name": self.round_name,
            "bracket_match_id": self.bracket_match_id,
            "next_match_id": self.next_match_id,
            "next_match_slot": self.next_match_slot,
            "loser_next_match_id": self.loser_next_match_id,
            "loser_next_match_slot": self.loser_next_match_slot,
            "court_number": self.court_number,
            "warning": self.warning,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchStub":
        """Deserialize match from dictionary."""
        side_a = data.get("side_a")
        side_b = data.get("side_b")
        return cls(
            event_id=data["event_id"],
            format=EventFormat.parse(data["format"]),
            side_a=Participant.from_dict(side_a) if side_a else None,
            side_b=Participant.from_dict(side_b) if side_b else None,
            round_number=data["round_number"],
            match_number=data["match_number"],
            event_type=data.get("event_type", EVENT_TYPE_TOURNAMENT),
            box_number=data.get("box_number"),
            pool_key=data.get("pool_key"),
            week_number=data.get("week_number"),
            status=data.get("status", STATUS_SCHEDULED),
            scores=[GameScore.from_dict(s) for s in data.get("scores", [])],
            winner_id=data.get("winner_id"),
            match_id=data.get("match_id"),
            leg=data.get("leg", 1),
            stage=data.get("stage"),
            round_name=data.get("round_name"),
            bracket_match_id=data.get("bracket_match_id"),
            next_match_id=data.get("next_match_id"),
            next_match_slot=data.get("next_match_slot"),
            loser_next_match_id=data.get("loser_next_match_id"),
            loser_next_match_slot=data.get("loser_next_match_slot"),
            court_number=data.get("court_number"),
            warning=data.get("warning"),
        )
