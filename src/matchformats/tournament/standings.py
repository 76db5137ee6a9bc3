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

from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from matchformats.constants import (
    DEFAULT_POOL_TIEBREAK_ORDER,
    DEFAULT_TIEBREAK_ORDER,
    SWISS_TIEBREAK_ORDER,
    TB_BUCHHOLZ,
    TB_HEAD_TO_HEAD,
    TB_POINT_DIFF,
    TB_POINTS_SCORED,
    TB_WINS,
    TIEBREAK_NAMES,
)
from matchformats.exceptions import InvalidConfigurationException
from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant
from matchformats.models.standing import StandingRow
from matchformats.utils import setup_logger
from matchformats.utils.validation import validate_unique_ids_strict

logger = setup_logger(__name__)


def resolve_winner_id(match: MatchStub) -> Optional[str]:
    """Winner of a match: the recorded winner, else the side with more games.

    Returns None for a level match or when either side is unknown.
    """
    if not match.is_ready:
        return None
    if match.winner_id:
        return match.winner_id
    games_a = sum(1 for g in match.scores if g.side_a > g.side_b)
    games_b = sum(1 for g in match.scores if g.side_b > g.side_a)
    if games_a > games_b:
        return match.side_a.id
    if games_b > games_a:
        return match.side_b.id
    return None


class StandingsCalculator:
    """Folds completed matches into ranked standings.

    Only matches with status completed are counted. For each one the
    winner gets a win and the loser a loss; a completed match with no winner
    and level games is a draw. Games won count games where one side's score
    exceeds the other, and points are the sum of per-game scores.

    Ranking applies the configured tiebreak keys in order, each one only
    inside the group still tied on all earlier keys:

    - wins: match wins, descending
    - buchholz: sum of opponents' wins, descending
    - head_to_head: mini-standings among the tied group only (wins in
      matches between them, then point differential in those matches)
    - point_diff: points for minus points against, descending
    - points_scored: points for, descending

    Whatever is still tied after the last key is ordered by participant id,
    so the ranking is a total order that never depends on input order. Ranks
    are sequential 1..n and tied_with_previous marks rows that only the
    id separated.

    With credit_members enabled the participants are individual players
    and each match side credits every member player on it (rotating
    partner formats).
    """

    def __init__(
        self,
        tiebreak_order: Optional[Sequence[str]] = None,
        credit_members: bool = False,
    ):
        self.tiebreak_order = list(tiebreak_order or DEFAULT_TIEBREAK_ORDER)
        for key in self.tiebreak_order:
            if key not in TIEBREAK_NAMES:
                raise InvalidConfigurationException(f"Unknown tiebreaker: {key!r}")
        self.credit_members = credit_members

    @classmethod
    def for_swiss(cls) -> "StandingsCalculator":
        return cls(SWISS_TIEBREAK_ORDER)

    @classmethod
    def for_pool(cls, tiebreakers: Optional[Sequence[str]] = None) -> "StandingsCalculator":
        return cls(tiebreakers or DEFAULT_POOL_TIEBREAK_ORDER)

    def compute(
        self, participants: Sequence[Participant], matches: Iterable[MatchStub]
    ) -> List[StandingRow]:
        """Build ranked standings.

        Args:
            participants: Everyone to rank, including those without matches
            matches: Any matches; only completed ones are counted

        Returns:
            Ranked StandingRow list
        """
        validate_unique_ids_strict(participants)
        rows = {p.id: StandingRow(participant=p) for p in participants}
        completed = [m for m in matches if m.is_completed and m.is_ready]

        opponents: Dict[str, List[str]] = {pid: [] for pid in rows}
        for match in completed:
            self._apply_match(match, rows, opponents)

        if TB_BUCHHOLZ in self.tiebreak_order:
            for pid, row in rows.items():
                row.buchholz = float(
                    sum(rows[opp].wins for opp in opponents[pid] if opp in rows)
                )

        ranked = self._rank(list(rows.values()), completed)
        logger.debug(
            "Computed standings for %s participants from %s completed matches",
            len(ranked),
            len(completed),
        )
        return ranked

    def _credited_ids(self, side: Participant) -> Tuple[str, ...]:
        if self.credit_members:
            return side.member_player_ids
        return (side.id,)

    def _apply_match(
        self,
        match: MatchStub,
        rows: Dict[str, StandingRow],
        opponents: Dict[str, List[str]],
    ) -> None:
        winner_id = resolve_winner_id(match)
        games_a = sum(1 for g in match.scores if g.side_a > g.side_b)
        games_b = sum(1 for g in match.scores if g.side_b > g.side_a)
        points_a = sum(g.side_a for g in match.scores)
        points_b = sum(g.side_b for g in match.scores)

        sides = (
            (match.side_a, match.side_b, games_a, games_b, points_a, points_b),
            (match.side_b, match.side_a, games_b, games_a, points_b, points_a),
        )
        for side, other, g_won, g_lost, p_for, p_against in sides:
            for pid in self._credited_ids(side):
                row = rows.get(pid)
                if row is None:
                    continue
                row.matches_played += 1
                row.games_won += g_won
                row.games_lost += g_lost
                row.points_for += p_for
                row.points_against += p_against
                if winner_id is None:
                    row.draws += 1
                elif winner_id == side.id:
                    row.wins += 1
                else:
                    row.losses += 1
                opponents[pid].extend(self._credited_ids(other))

    def _rank(
        self, rows: List[StandingRow], completed: List[MatchStub]
    ) -> List[StandingRow]:
        groups = [rows]
        for key in self.tiebreak_order:
            next_groups = []
            for group in groups:
                if len(group) == 1:
                    next_groups.append(group)
                    continue
                value_of = self._key_function(key, group, completed)
                ordered = sorted(group, key=value_of, reverse=True)
                current = [ordered[0]]
                for row in ordered[1:]:
                    if value_of(row) == value_of(current[-1]):
                        current.append(row)
                    else:
                        next_groups.append(current)
                        current = [row]
                next_groups.append(current)
            groups = next_groups

        ranked = []
        for group in groups:
            for position, row in enumerate(sorted(group, key=lambda r: r.participant_id)):
                row.tied_with_previous = position > 0
                ranked.append(row)
        for rank, row in enumerate(ranked, start=1):
            row.rank = rank
        return ranked

    def _key_function(
        self, key: str, group: List[StandingRow], completed: List[MatchStub]
    ) -> Callable[[StandingRow], object]:
        if key == TB_WINS:
            return lambda row: row.wins
        if key == TB_BUCHHOLZ:
            return lambda row: row.buchholz or 0.0
        if key == TB_POINT_DIFF:
            return lambda row: row.point_differential
        if key == TB_POINTS_SCORED:
            return lambda row: row.points_for
        if key == TB_HEAD_TO_HEAD:
            mini = self._mini_standings([r.participant_id for r in group], completed)
            return lambda row: mini[row.participant_id]
        raise InvalidConfigurationException(f"Unknown tiebreaker: {key!r}")

    def _mini_standings(
        self, tied_ids: List[str], completed: List[MatchStub]
    ) -> Dict[str, Tuple[int, int]]:
        """Wins and point differential in matches between the tied participants only."""
        tied = set(tied_ids)
        mini_wins = {pid: 0 for pid in tied_ids}
        mini_diff = {pid: 0 for pid in tied_ids}
        for match in completed:
            ids_a = [pid for pid in self._credited_ids(match.side_a) if pid in tied]
            ids_b = [pid for pid in self._credited_ids(match.side_b) if pid in tied]
            if not ids_a or not ids_b:
                continue
            winner_id = resolve_winner_id(match)
            diff = sum(g.side_a - g.side_b for g in match.scores)
            for pid in ids_a:
                mini_diff[pid] += diff
                if winner_id == match.side_a.id:
                    mini_wins[pid] += 1
            for pid in ids_b:
                mini_diff[pid] -= diff
                if winner_id == match.side_b.id:
                    mini_wins[pid] += 1
        return {pid: (mini_wins[pid], mini_diff[pid]) for pid in tied_ids}


def calculate_standings(
    participants: Sequence[Participant], matches: Iterable[MatchStub]
) -> List[StandingRow]:
    """Standings with the default wins, point differential, points for order."""
    return StandingsCalculator().compute(participants, matches)


def calculate_swiss_standings(
    participants: Sequence[Participant], matches: Iterable[MatchStub]
) -> List[StandingRow]:
    """Standings ranked by wins, Buchholz, point differential, points for."""
    return StandingsCalculator.for_swiss().compute(participants, matches)
