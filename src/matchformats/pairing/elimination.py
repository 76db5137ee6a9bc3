"""Seeded single-elimination brackets.

Seeds are placed with the standard recursive layout (1 v N, then the
winners of 1/N meet the winners of N/2 and N/2+1, ...), so the top seeds can
only meet in the latest rounds. Empty slots are byes and always fall to the
highest seeds. Brackets are immutable: recording a result returns a new
bracket.
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

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from matchformats.constants import (
    EVENT_TYPE_TOURNAMENT,
    MIN_PARTICIPANTS,
    SIDE_A,
    SIDE_B,
)
from matchformats.exceptions import BracketStateException
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant
from matchformats.models.round_data import GenerationResult, Pairing, Round
from matchformats.models.settings import EliminationSettings, GenerationRequest
from matchformats.tournament.match_identity import MatchIdentity
from matchformats.utils import rating_sort_key, setup_logger
from matchformats.utils.validation import validate_unique_ids_strict

logger = setup_logger(__name__)

THIRD_PLACE_SUFFIX = "3P"


@dataclass(frozen=True)
class BracketMatch:
    """One match slot in a bracket.

    Attributes:
        match_id: Position id, R<round>-M<n> or R<round>-3P
        round_number: 1 for the first round
        match_in_round: Position within the round
        round_name: Display name, not used for scheduling
        side_a: Participant in slot A, None while unknown
        side_b: Participant in slot B, None while unknown or a bye
        seed_a: Seed of side A
        seed_b: Seed of side B
        is_bye: First-round slot with a single entrant
        winner_id: Winner once recorded
        next_match_id: Match the winner feeds
        next_match_slot: sideA or sideB in that match
        loser_next_match_id: Third-place match fed by a semi-final loser
        loser_next_match_slot: Slot in the third-place match
        is_third_place: Whether this is the third-place match
    """

    match_id: str
    round_number: int
    match_in_round: int
    round_name: str
    side_a: Optional[Participant] = None
    side_b: Optional[Participant] = None
    seed_a: Optional[int] = None
    seed_b: Optional[int] = None
    is_bye: bool = False
    winner_id: Optional[str] = None
    next_match_id: Optional[str] = None
    next_match_slot: Optional[str] = None
    loser_next_match_id: Optional[str] = None
    loser_next_match_slot: Optional[str] = None
    is_third_place: bool = False

    @property
    def is_ready(self) -> bool:
        return self.side_a is not None and self.side_b is not None

    @property
    def loser_id(self) -> Optional[str]:
        if not self.winner_id or not self.is_ready:
            return None
        return self.side_b.id if self.winner_id == self.side_a.id else self.side_a.id

    def side(self, participant_id: str) -> Optional[Participant]:
        for side in (self.side_a, self.side_b):
            if side is not None and side.id == participant_id:
                return side
        return None


@dataclass(frozen=True)
class Bracket:
    """A complete bracket.

    Attributes:
        size: Power of two slot count
        rounds: Number of rounds
        matches: All matches in round order
        seeds: Entrants in seed order (seed 1 first)
    """

    size: int
    rounds: int
    matches: Tuple[BracketMatch, ...]
    seeds: Tuple[Participant, ...]

    @property
    def bye_count(self) -> int:
        return self.size - len(self.seeds)

    def get(self, match_id: str) -> BracketMatch:
        for match in self.matches:
            if match.match_id == match_id:
                return match
        raise BracketStateException(f"Unknown bracket match: {match_id}")

    def round(self, round_number: int) -> List[BracketMatch]:
        return [
            m
            for m in self.matches
            if m.round_number == round_number and not m.is_third_place
        ]

    def seed_of(self, participant_id: str) -> Optional[int]:
        for seed, participant in enumerate(self.seeds, start=1):
            if participant.id == participant_id:
                return seed
        return None

    @property
    def champion_id(self) -> Optional[str]:
        final = self.round(self.rounds)
        return final[0].winner_id if final else None


def next_power_of_two(count: int) -> int:
    """Smallest power of two >= count, and never below 2."""
    size = 2
    while size < count:
        size *= 2
    return size


def seed_positions(bracket_size: int) -> List[int]:
    """Seed numbers in bracket order, e.g. [1, 8, 4, 5, 2, 7, 3, 6] for 8."""
    positions = [1, 2]
    while len(positions) < bracket_size:
        total = len(positions) * 2
        expanded = []
        for seed in positions:
            expanded.extend((seed, total + 1 - seed))
        positions = expanded
    return positions


def seed_participants(participants: Sequence[Participant]) -> List[Participant]:
    """Rated entrants by rating descending, unrated last, ties by id."""
    return sorted(participants, key=rating_sort_key)


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Display name for a round counted from the first round."""
    remaining = total_rounds - round_number
    if remaining == 0:
        return "Final"
    if remaining == 1:
        return "Semi-Final"
    if remaining == 2:
        return "Quarter-Final"
    return f"Round {round_number}"


def _match_id(round_number: int, match_in_round: int) -> str:
    return f"R{round_number}-M{match_in_round}"


def _place(
    matches: Dict[str, BracketMatch],
    match_id: str,
    slot: str,
    participant: Participant,
    seed: Optional[int],
) -> None:
    target = matches[match_id]
    if slot == SIDE_A:
        matches[match_id] = replace(target, side_a=participant, seed_a=seed)
    else:
        matches[match_id] = replace(target, side_b=participant, seed_b=seed)


def build_bracket(
    participants: Sequence[Participant],
    third_place_match: bool = False,
    preserve_order: bool = False,
) -> Bracket:
    """Build a seeded bracket with byes already advanced.

    Args:
        participants: At least two entrants
        third_place_match: Add a match between the semi-final losers
        preserve_order: Treat the given order as the seeding

    Returns:
        The bracket
    """
    if len(participants) < MIN_PARTICIPANTS:
        raise BracketStateException("A bracket needs at least two entrants")

    seeded = list(participants) if preserve_order else seed_participants(participants)
    count = len(seeded)
    size = next_power_of_two(count)
    total_rounds = size.bit_length() - 1

    matches: Dict[str, BracketMatch] = {}
    positions = seed_positions(size)

    for index in range(size // 2):
        seed_a, seed_b = positions[2 * index], positions[2 * index + 1]
        side_a = seeded[seed_a - 1] if seed_a <= count else None
        side_b = seeded[seed_b - 1] if seed_b <= count else None
        if side_a is None:
            side_a, side_b, seed_a, seed_b = side_b, side_a, seed_b, seed_a
        is_bye = side_b is None
        match_id = _match_id(1, index + 1)
        matches[match_id] = BracketMatch(
            match_id=match_id,
            round_number=1,
            match_in_round=index + 1,
            round_name=get_round_name(1, total_rounds),
            side_a=side_a,
            side_b=side_b,
            seed_a=seed_a,
            seed_b=None if is_bye else seed_b,
            is_bye=is_bye,
            winner_id=side_a.id if is_bye else None,
        )

    for round_number in range(2, total_rounds + 1):
        for index in range(size // 2 ** round_number):
            match_id = _match_id(round_number, index + 1)
            matches[match_id] = BracketMatch(
                match_id=match_id,
                round_number=round_number,
                match_in_round=index + 1,
                round_name=get_round_name(round_number, total_rounds),
            )
            for offset, slot in ((0, SIDE_A), (1, SIDE_B)):
                feeder_id = _match_id(round_number - 1, 2 * index + 1 + offset)
                matches[feeder_id] = replace(
                    matches[feeder_id], next_match_id=match_id, next_match_slot=slot
                )

    if third_place_match and total_rounds >= 2:
        third_id = f"R{total_rounds}-{THIRD_PLACE_SUFFIX}"
        matches[third_id] = BracketMatch(
            match_id=third_id,
            round_number=total_rounds,
            match_in_round=2,
            round_name="Third Place",
            is_third_place=True,
        )
        for offset, slot in ((0, SIDE_A), (1, SIDE_B)):
            semi_id = _match_id(total_rounds - 1, 1 + offset)
            matches[semi_id] = replace(
                matches[semi_id], loser_next_match_id=third_id, loser_next_match_slot=slot
            )

    for match in list(matches.values()):
        if match.is_bye and match.next_match_id:
            _place(
                matches, match.next_match_id, match.next_match_slot, match.side_a, match.seed_a
            )
            logger.debug("Seed %s advanced on a bye", match.seed_a)

    return Bracket(
        size=size,
        rounds=total_rounds,
        matches=tuple(matches.values()),
        seeds=tuple(seeded),
    )


def advance_winner(bracket: Bracket, match_id: str, winner_id: str) -> Bracket:
    """Record a winner and move them (and a semi-final loser) forward.

    Pure and idempotent: recording the same winner again returns the bracket
    unchanged.

    Raises:
        BracketStateException: If the match is unknown or not ready, the winner
            is not one of its sides, or a different winner is already recorded
    """
    match = bracket.get(match_id)
    if match.winner_id == winner_id:
        return bracket
    if match.winner_id is not None:
        raise BracketStateException(
            f"{match_id} already has winner {match.winner_id}, cannot record {winner_id}"
        )
    if not match.is_ready:
        raise BracketStateException(f"{match_id} does not have both sides yet")

    winner = match.side(winner_id)
    if winner is None:
        raise BracketStateException(f"{winner_id} is not playing in {match_id}")

    matches = {m.match_id: m for m in bracket.matches}
    matches[match_id] = replace(match, winner_id=winner_id)

    if match.next_match_id:
        seed = match.seed_a if winner_id == match.side_a.id else match.seed_b
        _place(matches, match.next_match_id, match.next_match_slot, winner, seed)

    if match.loser_next_match_id:
        loser_id = matches[match_id].loser_id
        loser = match.side(loser_id)
        seed = match.seed_a if loser_id == match.side_a.id else match.seed_b
        _place(matches, match.loser_next_match_id, match.loser_next_match_slot, loser, seed)

    return replace(bracket, matches=tuple(matches.values()))


def bracket_to_matches(
    bracket: Bracket,
    event_id: str,
    event_format: EventFormat = EventFormat.ELIMINATION,
    event_type: str = EVENT_TYPE_TOURNAMENT,
    stage: Optional[str] = None,
    first_match_number: int = 1,
) -> List[MatchStub]:
    """Match stubs for every non-bye bracket slot, later rounds with TBD sides."""
    stubs = []
    playable = [m for m in bracket.matches if not m.is_bye]
    for number, match in enumerate(playable, start=first_match_number):
        stubs.append(
            MatchStub(
                event_id=event_id,
                format=event_format,
                side_a=match.side_a,
                side_b=match.side_b,
                round_number=match.round_number,
                match_number=number,
                event_type=event_type,
                stage=stage,
                round_name=match.round_name,
                bracket_match_id=match.match_id,
                next_match_id=match.next_match_id,
                next_match_slot=match.next_match_slot,
                loser_next_match_id=match.loser_next_match_id,
                loser_next_match_slot=match.loser_next_match_slot,
            )
        )
    return stubs


def bracket_schedule(bracket: Bracket) -> List[Round]:
    """Rounds of known pairings. First-round byes are listed as bye pairings."""
    schedule = []
    for round_number in range(1, bracket.rounds + 1):
        pairings = []
        for match in bracket.matches:
            if match.round_number != round_number:
                continue
            if match.is_bye:
                pairings.append(Pairing(match.side_a, None))
            elif match.is_ready:
                pairings.append(Pairing(match.side_a, match.side_b))
        schedule.append(Round(round_number=round_number, pairings=pairings))
    return schedule


def generate_elimination(request: GenerationRequest) -> GenerationResult:
    """Generate a single-elimination bracket.

    Args:
        request: Participants, EliminationSettings and preserve_order

    Returns:
        GenerationResult whose bracket holds the Bracket
    """
    settings = request.settings or EliminationSettings()
    settings.validate()
    validate_unique_ids_strict(request.participants)

    if len(request.participants) < MIN_PARTICIPANTS:
        return GenerationResult.insufficient()

    bracket = build_bracket(
        request.participants,
        third_place_match=settings.third_place_match,
        preserve_order=request.preserve_order,
    )
    matches = MatchIdentity.assign(
        bracket_to_matches(bracket, request.event_id, event_type=request.event_type)
    )
    logger.info(
        "Generated %s-slot bracket for %s: %s entrants, %s byes, %s matches",
        bracket.size,
        request.event_id,
        len(bracket.seeds),
        bracket.bye_count,
        len(matches),
    )
    return GenerationResult(
        matches=matches, schedule=bracket_schedule(bracket), bracket=bracket
    )
