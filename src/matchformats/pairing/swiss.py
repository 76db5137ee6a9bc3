"""Swiss pairing, one round at a time.

Participants are grouped by wins, sorted by rating inside each group and
paired either adjacently or by sliding the top half against the bottom half.
Anyone left over floats into the next group. The algorithm is greedy and
does not backtrack: if the lowest group still holds floaters that have all
met, they are paired anyway and the pairing carries an
unresolved_pairing warning for the caller to accept or reject.
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

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from matchformats.constants import (
    MIN_PARTICIPANTS,
    PAIRING_ADJACENT,
    SWISS_ROUND_TABLE,
    SWISS_ROUNDS_ABOVE_TABLE,
    WARNING_UNRESOLVED_PAIRING,
)
from matchformats.exceptions import InvalidConfigurationException
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant
from matchformats.models.round_data import (
    GenerationResult,
    Pairing,
    PairingWarning,
    Round,
)
from matchformats.models.settings import GenerationRequest, SwissSettings
from matchformats.tournament.match_identity import MatchIdentity
from matchformats.tournament.standings import resolve_winner_id
from matchformats.utils import rating_sort_key, setup_logger
from matchformats.utils.validation import validate_unique_ids_strict

logger = setup_logger(__name__)


@dataclass(frozen=True)
class SwissEntrant:
    """A participant annotated with their running Swiss record.

    Attributes:
        participant: The underlying participant
        wins: Matches won so far
        losses: Matches lost so far
        opponents: Ids already played
        byes: Byes received so far
        points_for: Game points scored
        points_against: Game points conceded
    """

    participant: Participant
    wins: int = 0
    losses: int = 0
    opponents: FrozenSet[str] = field(default_factory=frozenset)
    byes: int = 0
    points_for: int = 0
    points_against: int = 0

    @property
    def id(self) -> str:
        return self.participant.id

    @property
    def rating(self) -> Optional[float]:
        return self.participant.rating

    def has_played(self, other: "SwissEntrant") -> bool:
        return other.id in self.opponents or self.id in other.opponents


@dataclass
class SwissRoundPairings:
    """Result of pairing one Swiss round.

    Attributes:
        pairings: Pairs in board order, forced rematches flagged
        bye: The entrant sitting out, if the field is odd
        warnings: One warning per forced rematch
    """

    pairings: List[Tuple[SwissEntrant, SwissEntrant, Optional[str]]]
    bye: Optional[SwissEntrant] = None
    warnings: List[PairingWarning] = field(default_factory=list)


def recommended_swiss_rounds(participant_count: int) -> int:
    """Rounds needed for a clear winner with participant_count entrants."""
    for max_count, rounds in SWISS_ROUND_TABLE:
        if participant_count <= max_count:
            return rounds
    return SWISS_ROUNDS_ABOVE_TABLE


def build_swiss_entrants(
    participants: Sequence[Participant], matches: Sequence[MatchStub]
) -> List[SwissEntrant]:
    """Derive each participant's Swiss record from earlier matches.

    Every scheduled match counts as played for rematch avoidance, whether or
    not it has a result yet. Only completed matches add wins and losses. A
    bye is a round that has matches but none for the participant.
    """
    ids = {p.id for p in participants}
    wins: Dict[str, int] = {pid: 0 for pid in ids}
    losses: Dict[str, int] = {pid: 0 for pid in ids}
    points_for: Dict[str, int] = {pid: 0 for pid in ids}
    points_against: Dict[str, int] = {pid: 0 for pid in ids}
    opponents: Dict[str, Set[str]] = {pid: set() for pid in ids}
    rounds_played: Dict[str, Set[int]] = {pid: set() for pid in ids}
    all_rounds: Set[int] = set()

    for match in matches:
        if not match.is_ready:
            continue
        a_id, b_id = match.side_a.id, match.side_b.id
        all_rounds.add(match.round_number)
        for pid, other in ((a_id, b_id), (b_id, a_id)):
            if pid in ids:
                opponents[pid].add(other)
                rounds_played[pid].add(match.round_number)

        if not match.is_completed:
            continue
        winner_id = resolve_winner_id(match)
        for game in match.scores:
            if a_id in ids:
                points_for[a_id] += game.side_a
                points_against[a_id] += game.side_b
            if b_id in ids:
                points_for[b_id] += game.side_b
                points_against[b_id] += game.side_a
        if winner_id is None:
            continue
        loser_id = b_id if winner_id == a_id else a_id
        if winner_id in ids:
            wins[winner_id] += 1
        if loser_id in ids:
            losses[loser_id] += 1

    return [
        SwissEntrant(
            participant=p,
            wins=wins[p.id],
            losses=losses[p.id],
            opponents=frozenset(opponents[p.id]),
            byes=len(all_rounds - rounds_played[p.id]),
            points_for=points_for[p.id],
            points_against=points_against[p.id],
        )
        for p in participants
    ]


def _select_bye(entrants: List[SwissEntrant]) -> SwissEntrant:
    """Fewest byes so far, then most losses, then lowest rating, then id."""
    return min(
        entrants,
        key=lambda e: (e.byes, -e.losses, e.rating or 0.0, e.id),
    )


def _group_entrants_by_wins(
    entrants: List[SwissEntrant],
) -> List[Tuple[int, List[SwissEntrant]]]:
    """Score groups ordered by descending wins, each sorted by rating."""
    groups: Dict[int, List[SwissEntrant]] = {}
    for entrant in entrants:
        groups.setdefault(entrant.wins, []).append(entrant)
    return [
        (wins, sorted(groups[wins], key=lambda e: rating_sort_key(e.participant)))
        for wins in sorted(groups, reverse=True)
    ]


def _adjacent_pairing(
    pool: List[SwissEntrant],
) -> Tuple[List[Tuple[SwissEntrant, SwissEntrant]], List[SwissEntrant]]:
    """Pair the top entrant with the first one below who is not a rematch."""
    remaining = list(pool)
    pairs = []
    floaters = []
    while remaining:
        top = remaining.pop(0)
        partner_index = next(
            (i for i, other in enumerate(remaining) if not top.has_played(other)),
            None,
        )
        if partner_index is None:
            floaters.append(top)
            continue
        pairs.append((top, remaining.pop(partner_index)))
    return pairs, floaters


def _slide_pairing(
    pool: List[SwissEntrant],
) -> Tuple[List[Tuple[SwissEntrant, SwissEntrant]], List[SwissEntrant]]:
    """Pair top-half position k with bottom-half position k, skipping rematches."""
    mid = (len(pool) + 1) // 2
    top_half, bottom_half = pool[:mid], pool[mid:]
    paired: Set[str] = set()
    pairs = []
    for top in top_half:
        for bottom in bottom_half:
            if bottom.id in paired or top.has_played(bottom):
                continue
            pairs.append((top, bottom))
            paired.update((top.id, bottom.id))
            break
    floaters = [e for e in pool if e.id not in paired]
    return pairs, floaters


def _pair_remaining_entrants(
    floaters: List[SwissEntrant], round_number: int
) -> Tuple[List[Tuple[SwissEntrant, SwissEntrant, Optional[str]]], List[PairingWarning]]:
    """Last-resort pairing for floaters left after the lowest group.

    Legal partners are still preferred. When none is left the next entrant
    in order is used and the pairing is flagged as an unresolved rematch.
    """
    remaining = list(floaters)
    pairs = []
    warnings = []
    while len(remaining) >= 2:
        top = remaining.pop(0)
        partner_index = next(
            (i for i, other in enumerate(remaining) if not top.has_played(other)),
            None,
        )
        if partner_index is not None:
            pairs.append((top, remaining.pop(partner_index), None))
            continue

        partner = remaining.pop(0)
        pairs.append((top, partner, WARNING_UNRESOLVED_PAIRING))
        warnings.append(
            PairingWarning(
                code=WARNING_UNRESOLVED_PAIRING,
                message=(
                    f"{top.participant.name} and {partner.participant.name} "
                    "have already played; no legal pairing remained"
                ),
                participant_ids=(top.id, partner.id),
                round_number=round_number,
            )
        )
        logger.warning(
            "Round %s: forced rematch between %s and %s",
            round_number,
            top.id,
            partner.id,
        )
    return pairs, warnings


def pair_swiss_round(
    entrants: Sequence[SwissEntrant],
    pairing_method: str,
    round_number: int = 1,
) -> SwissRoundPairings:
    """Pair one Swiss round.

    Args:
        entrants: Participants with their running records
        pairing_method: adjacent or slide
        round_number: Round being paired, used for warnings

    Returns:
        SwissRoundPairings with pairs, bye and warnings
    """
    active = list(entrants)
    bye = None
    if len(active) % 2 == 1:
        bye = _select_bye(active)
        active = [e for e in active if e.id != bye.id]

    pair_group = _adjacent_pairing if pairing_method == PAIRING_ADJACENT else _slide_pairing

    pairings: List[Tuple[SwissEntrant, SwissEntrant, Optional[str]]] = []
    floaters: List[SwissEntrant] = []
    for _wins, group in _group_entrants_by_wins(active):
        pool = floaters + group
        group_pairs, floaters = pair_group(pool)
        pairings.extend((a, b, None) for a, b in group_pairs)

    warnings: List[PairingWarning] = []
    if floaters:
        forced, warnings = _pair_remaining_entrants(floaters, round_number)
        pairings.extend(forced)

    return SwissRoundPairings(pairings=pairings, bye=bye, warnings=warnings)


def generate_swiss_round(request: GenerationRequest) -> GenerationResult:
    """Generate the next Swiss round from the event's earlier matches.

    Args:
        request: Participants, SwissSettings, the round number to generate
            and all earlier matches of the event

    Returns:
        GenerationResult with a single round, its bye and any warnings
    """
    settings = request.settings or SwissSettings()
    settings.validate()
    validate_unique_ids_strict(request.participants)
    if request.round_number < 1:
        raise InvalidConfigurationException(
            f"round_number must be >= 1, got {request.round_number}"
        )

    if len(request.participants) < MIN_PARTICIPANTS:
        return GenerationResult.insufficient()

    if request.round_number > settings.total_rounds:
        logger.warning(
            "Generating Swiss round %s beyond the planned %s rounds",
            request.round_number,
            settings.total_rounds,
        )

    entrants = build_swiss_entrants(request.participants, request.prior_matches)
    paired = pair_swiss_round(entrants, settings.pairing_method, request.round_number)

    pairings = [
        Pairing(a.participant, b.participant, warning) for a, b, warning in paired.pairings
    ]
    bye = paired.bye.participant if paired.bye else None
    if bye is not None:
        pairings.append(Pairing(bye, None))

    matches = [
        MatchStub(
            event_id=request.event_id,
            format=EventFormat.SWISS,
            side_a=pairing.side_a,
            side_b=pairing.side_b,
            round_number=request.round_number,
            match_number=number,
            event_type=request.event_type,
            warning=pairing.warning,
        )
        for number, pairing in enumerate(
            (p for p in pairings if not p.is_bye), start=1
        )
    ]
    MatchIdentity.assign(matches)

    logger.info(
        "Generated Swiss round %s for %s: %s matches, bye=%s, %s warning(s)",
        request.round_number,
        request.event_id,
        len(matches),
        bye.id if bye else None,
        len(paired.warnings),
    )
    return GenerationResult(
        matches=matches,
        schedule=[Round(round_number=request.round_number, pairings=pairings)],
        warnings=paired.warnings,
        bye=bye,
    )
