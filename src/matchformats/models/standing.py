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

from dataclasses import dataclass
from typing import Any, Dict, Optional

from matchformats.models.participant import Participant


@dataclass
class StandingRow:
    """A participant's aggregated record.

    Rows are rebuilt from scratch on every standings call and never updated
    incrementally.

    Attributes
    ----------
    participant : Participant
        The ranked participant.
    rank : int
        Sequential rank, 1..n.
    wins, losses, draws : int
        Match outcomes.
    games_won, games_lost : int
        Games where one side's score exceeded the other.
    points_for, points_against : int
        Sum of per-game points.
    matches_played : int
        Completed matches counted.
    buchholz : float or None
        Sum of opponents' wins (Swiss only).
    tied_with_previous : bool
        True when the row equals the previous row on every ranking field and
        was placed after it only by participant id.
    pool_key : str or None
        Pool the row belongs to, for pool standings.
    qualified_as : str or None
        main or plate once qualifiers are determined.
    """

    participant: Participant
    rank: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    games_won: int = 0
    games_lost: int = 0
    points_for: int = 0
    points_against: int = 0
    matches_played: int = 0
    buchholz: Optional[float] = None
    tied_with_previous: bool = False
    pool_key: Optional[str] = None
    qualified_as: Optional[str] = None

    @property
    def participant_id(self) -> str:
        return self.participant.id

    @property
    def point_differential(self) -> int:
        return self.points_for - self.points_against

    @property
    def win_rate(self) -> float:
        if self.matches_played == 0:
            return 0.0
        return self.wins / self.matches_played

    @property
    def qualified(self) -> bool:
        return self.qualified_as == "main"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize standing row to dictionary."""
        return {
            "participant_id": self.participant.id,
            "name": self.participant.name,
            "rank": self.rank,
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "games_won": self.games_won,
            "games_lost": self.games_lost,
            "points_for": self.points_for,
            "points_against": self.points_against,
            "point_differential": self.point_differential,
            "matches_played": self.matches_played,
            "buchholz": self.buchholz,
            "tied_with_previous": self.tied_with_previous,
            "pool_key": self.pool_key,
            "qualified_as": self.qualified_as,
        }
