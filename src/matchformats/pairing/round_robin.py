"""Round robin scheduling using the circle method.

Slot 0 stays fixed while every other slot rotates one position per round.
An odd field gets a synthetic bye slot, so each round has exactly one bye
and every participant sits out exactly once.
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

from collections import deque
from typing import List, Optional, Sequence

from matchformats.constants import EVENT_TYPE_TOURNAMENT, MIN_PARTICIPANTS
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant
from matchformats.models.round_data import GenerationResult, Pairing, Round
from matchformats.models.settings import GenerationRequest, RoundRobinSettings
from matchformats.tournament.match_identity import MatchIdentity
from matchformats.type_hints import IndexRound
from matchformats.utils import rating_sort_key, setup_logger
from matchformats.utils.validation import validate_unique_ids_strict

logger = setup_logger(__name__)


def round_robin_expected_matches(count: int) -> int:
    """Number of non-bye matches in a single round robin of count sides."""
    if count < MIN_PARTICIPANTS:
        return 0
    return count * (count - 1) // 2


def generate_round_robin_index_rounds(count: int) -> List[IndexRound]:
    """Circle-method rounds over participant indices.

    Args:
        count: Number of participants

    Returns:
        One list of index pairs per round. The bye slot is None and is always
        the second element of its pair.
    """
    if count < MIN_PARTICIPANTS:
        return []

    slots: List[Optional[int]] = list(range(count))
    if count % 2 == 1:
        slots.append(None)
    num_slots = len(slots)

    fixed = slots[0]
    rotating = deque(slots[1:])
    rounds: List[IndexRound] = []

    for _ in range(num_slots - 1):
        current = [fixed] + list(rotating)
        round_pairs: IndexRound = []
        for i in range(num_slots // 2):
            first, second = current[i], current[num_slots - 1 - i]
            if first is None:
                first, second = second, first
            round_pairs.append((first, second))
        rounds.append(round_pairs)
        # Last slot moves to position 1
        rotating.rotate(1)

    return rounds


def generate_round_robin_pairings(participants: Sequence[Participant]) -> List[Round]:
    """Full single round robin for the given participants, in the given order.

    The caller's sequence is read but never modified.
    """
    roster = list(participants)
    schedule = []
    for index, index_round in enumerate(
        generate_round_robin_index_rounds(len(roster)), start=1
    ):
        pairings = [
            Pairing(roster[a], roster[b] if b is not None else None)
            for a, b in index_round
        ]
        schedule.append(Round(round_number=index, pairings=pairings))
    return schedule


def build_round_robin_matches(
    schedule: Sequence[Round],
    event_id: str,
    event_format: EventFormat,
    event_type: str = EVENT_TYPE_TOURNAMENT,
    pool_key: Optional[str] = None,
    box_number: Optional[int] = None,
    week_number: Optional[int] = None,
    leg: int = 1,
    first_match_number: int = 1,
    stage: Optional[str] = None,
) -> List[MatchStub]:
    """Materialize a schedule as match stubs, dropping byes."""
    matches = []
    match_number = first_match_number
    for round_data in schedule:
        for pairing in round_data.matches:
            matches.append(
                MatchStub(
                    event_id=event_id,
                    format=event_format,
                    side_a=pairing.side_a,
                    side_b=pairing.side_b,
                    round_number=round_data.round_number,
                    match_number=match_number,
                    event_type=event_type,
                    box_number=box_number,
                    pool_key=pool_key,
                    week_number=week_number,
                    leg=leg,
                    stage=stage,
                    warning=pairing.warning,
                )
            )
            match_number += 1
    return matches


def repeat_schedule(base: Sequence[Round], legs: int) -> List[List[Round]]:
    """Repeat a base schedule legs times with offset round numbers."""
    repeated = []
    for leg in range(legs):
        offset = leg * len(base)
        repeated.append(
            [
                Round(
                    round_number=r.round_number + offset,
                    pairings=list(r.pairings),
                    resting=list(r.resting),
                )
                for r in base
            ]
        )
    return repeated


def generate_round_robin(request: GenerationRequest) -> GenerationResult:
    """Generate a complete round robin event.

    Participants are seeded by rating before the circle method runs. This
    only affects which round each pair meets in, never which pairs meet.

    Args:
        request: Event id, participants and RoundRobinSettings

    Returns:
        GenerationResult with every pair scheduled once per leg
    """
    settings = request.settings or RoundRobinSettings()
    settings.validate()
    validate_unique_ids_strict(request.participants)

    if len(request.participants) < MIN_PARTICIPANTS:
        logger.info(
            "Round robin for %s skipped: %s participant(s)",
            request.event_id,
            len(request.participants),
        )
        return GenerationResult.insufficient()

    seeded = sorted(request.participants, key=rating_sort_key)
    base = generate_round_robin_pairings(seeded)

    schedule: List[Round] = []
    matches: List[MatchStub] = []
    for leg, leg_rounds in enumerate(repeat_schedule(base, settings.rounds), start=1):
        schedule.extend(leg_rounds)
        matches.extend(
            build_round_robin_matches(
                leg_rounds,
                request.event_id,
                EventFormat.ROUND_ROBIN,
                event_type=request.event_type,
                leg=leg,
                first_match_number=len(matches) + 1,
            )
        )

    MatchIdentity.assign(matches)
    logger.info(
        "Generated round robin for %s: %s participants, %s rounds, %s matches",
        request.event_id,
        len(seeded),
        len(schedule),
        len(matches),
    )
    return GenerationResult(matches=matches, schedule=schedule)
