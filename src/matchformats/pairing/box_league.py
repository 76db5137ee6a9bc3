"""Box league generation.

A box is a small round robin group. Fixed boxes hold pre-formed doubles
teams and reuse the round robin generator directly. Rotating boxes hold
individual players who change partner every round.

Rotating partners come from a circle-method factorization of the players:
each circle round is a set of disjoint partnerships, so a full cycle uses
every partnership exactly once before any repeats. Partnerships in a round
are then grouped into matches so that players face the opponents they have
met least often. When a field leaves partnerships resting during the first
cycle, later rounds are drawn from the least used partnerships so that every
pairing is used before any pair partners again.
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

from itertools import combinations
from typing import Dict, List, Optional, Sequence, Set, Tuple

from matchformats.constants import MIN_PARTICIPANTS, MIN_ROTATING_BOX_PLAYERS
from matchformats.exceptions import PairingException
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant, make_doubles_side
from matchformats.models.round_data import GenerationResult, Pairing, Round
from matchformats.models.settings import BoxSettings, GenerationRequest
from matchformats.models.standing import StandingRow
from matchformats.pairing.round_robin import (
    build_round_robin_matches,
    generate_round_robin_index_rounds,
    generate_round_robin_pairings,
)
from matchformats.tournament.match_identity import MatchIdentity
from matchformats.tournament.standings import StandingsCalculator
from matchformats.utils import rating_sort_key, setup_logger
from matchformats.utils.validation import (
    validate_team_sizes_strict,
    validate_unique_ids_strict,
)

logger = setup_logger(__name__)

Partnership = Tuple[int, int]


def assign_participants_to_boxes(
    participants: Sequence[Participant], box_size: int
) -> Dict[int, List[Participant]]:
    """Split a field into boxes by rating, box 1 holding the strongest sides."""
    ordered = sorted(participants, key=rating_sort_key)
    boxes: Dict[int, List[Participant]] = {}
    for index, participant in enumerate(ordered):
        boxes.setdefault(index // box_size + 1, []).append(participant)
    return boxes


# ========== Fixed Teams ==========


def generate_fixed_box(request: GenerationRequest) -> GenerationResult:
    """Round robin between the fixed doubles teams of one box.

    Teams are sorted by rating first. That only changes which round a pair
    meets in.

    Raises:
        PlayerCountMismatchException: If a team does not have two players
    """
    settings = request.settings or BoxSettings()
    settings.validate()
    validate_unique_ids_strict(request.participants)
    validate_team_sizes_strict(request.participants)

    if len(request.participants) < MIN_PARTICIPANTS:
        return GenerationResult.insufficient()

    teams = sorted(request.participants, key=rating_sort_key)
    schedule = generate_round_robin_pairings(teams)
    matches = build_round_robin_matches(
        schedule,
        request.event_id,
        EventFormat.FIXED_BOX,
        event_type=request.event_type,
        box_number=request.box_number,
        week_number=request.week_number,
    )
    MatchIdentity.assign(matches)
    logger.info(
        "Generated fixed box %s (week %s) for %s: %s teams, %s matches",
        request.box_number,
        request.week_number,
        request.event_id,
        len(teams),
        len(matches),
    )
    return GenerationResult(matches=matches, schedule=schedule)


def calculate_fixed_box_team_standings(
    teams: Sequence[Participant], matches: Sequence[MatchStub]
) -> List[StandingRow]:
    """Team standings for a fixed box."""
    return StandingsCalculator().compute(teams, matches)


# ========== Rotating Partners ==========


def _partner_cycle(player_count: int) -> List[Tuple[List[Partnership], List[int]]]:
    """One full partner rotation: (partnerships, bye players) per round."""
    cycle = []
    for index_round in generate_round_robin_index_rounds(player_count):
        partnerships = []
        byes = []
        for a, b in index_round:
            if b is None:
                byes.append(a)
            else:
                partnerships.append((min(a, b), max(a, b)))
        cycle.append((partnerships, byes))
    return cycle


def _opponent_cost(
    first: Partnership, second: Partnership, opponents: Dict[Tuple[int, int], int]
) -> int:
    return sum(
        opponents.get((min(a, b), max(a, b)), 0) for a in first for b in second
    )


def _choose_playing_partnerships(
    partnerships: List[Partnership],
    playing_count: int,
    partner_counts: Dict[Partnership, int],
    rest_counts: List[int],
) -> Tuple[List[Partnership], List[Partnership]]:
    """Pick which partnerships play this round; the rest sit out.

    Partnerships already used sit out first, then those whose players have
    rested least.
    """
    ranked = sorted(
        enumerate(partnerships),
        key=lambda item: (
            partner_counts.get(item[1], 0),
            -(rest_counts[item[1][0]] + rest_counts[item[1][1]]),
            item[0],
        ),
    )
    playing = sorted(ranked[:playing_count])
    resting = sorted(ranked[playing_count:])
    return [p for _, p in playing], [p for _, p in resting]


def _extend_partnerships(
    candidates: List[Partnership],
    start: int,
    needed: int,
    taken: Set[int],
    chosen: List[Partnership],
    repeats_left: int,
    floor: int,
    partner_counts: Dict[Partnership, int],
) -> bool:
    if len(chosen) == needed:
        return True
    for index in range(start, len(candidates)):
        pair = candidates[index]
        if pair[0] in taken or pair[1] in taken:
            continue
        repeat = partner_counts.get(pair, 0) > floor
        if repeat and not repeats_left:
            continue
        chosen.append(pair)
        taken.update(pair)
        if _extend_partnerships(
            candidates,
            index + 1,
            needed,
            taken,
            chosen,
            repeats_left - repeat,
            floor,
            partner_counts,
        ):
            return True
        chosen.pop()
        taken.difference_update(pair)
    return False


def _least_used_partnerships(
    player_count: int,
    needed: int,
    partner_counts: Dict[Partnership, int],
    rest_counts: List[int],
) -> List[Partnership]:
    """Disjoint partnerships for a round after the first full rotation.

    Partnerships used the fewest times are taken first. A more used one is
    only allowed when no disjoint set of least used partnerships exists.
    """
    candidates = sorted(
        combinations(range(player_count), 2),
        key=lambda pair: (
            partner_counts.get(pair, 0),
            -(rest_counts[pair[0]] + rest_counts[pair[1]]),
            pair,
        ),
    )
    floor = min(partner_counts.get(pair, 0) for pair in candidates)
    for repeats_allowed in range(needed + 1):
        chosen: List[Partnership] = []
        if _extend_partnerships(
            candidates, 0, needed, set(), chosen, repeats_allowed, floor, partner_counts
        ):
            return sorted(chosen)
    raise PairingException(
        f"No disjoint partnerships for {needed} sides among {player_count} players"
    )


def _group_into_matches(
    playing: List[Partnership], opponents: Dict[Tuple[int, int], int]
) -> List[Tuple[Partnership, Partnership]]:
    """Pair partnerships into matches, fewest repeated opponents first."""
    remaining = list(playing)
    grouped = []
    while len(remaining) >= 2:
        first = remaining.pop(0)
        best = min(
            range(len(remaining)),
            key=lambda i: (_opponent_cost(first, remaining[i], opponents), i),
        )
        grouped.append((first, remaining.pop(best)))
    return grouped


def schedule_rotating_partners(
    player_count: int, rounds: Optional[int] = None
) -> List[Tuple[List[Tuple[Partnership, Partnership]], List[int]]]:
    """Index-level rotating schedule.

    Args:
        player_count: Players in the box, at least four
        rounds: Rounds to schedule, default one full partner rotation

    Returns:
        Per round, the matches as pairs of partnerships and the resting players
    """
    cycle = _partner_cycle(player_count)
    total_rounds = rounds or len(cycle)
    matches_per_round = player_count // 4

    partner_counts: Dict[Partnership, int] = {}
    opponents: Dict[Tuple[int, int], int] = {}
    rest_counts = [0] * player_count
    schedule = []

    for round_index in range(total_rounds):
        if round_index < len(cycle):
            partnerships, byes = cycle[round_index]
            playing, sitting = _choose_playing_partnerships(
                partnerships, matches_per_round * 2, partner_counts, rest_counts
            )
            resting = sorted(byes + [player for pair in sitting for player in pair])
        else:
            playing = _least_used_partnerships(
                player_count, matches_per_round * 2, partner_counts, rest_counts
            )
            busy = {player for pair in playing for player in pair}
            resting = [p for p in range(player_count) if p not in busy]
        round_matches = _group_into_matches(playing, opponents)

        for player in resting:
            rest_counts[player] += 1
        for side_a, side_b in round_matches:
            for pair in (side_a, side_b):
                partner_counts[pair] = partner_counts.get(pair, 0) + 1
            for a in side_a:
                for b in side_b:
                    key = (min(a, b), max(a, b))
                    opponents[key] = opponents.get(key, 0) + 1
        schedule.append((round_matches, resting))

    return schedule


def generate_rotating_box(request: GenerationRequest) -> GenerationResult:
    """Rotating-partner box for individual players.

    Each side is a composite of two players with id "<p1>_<p2>". Fewer
    than four players returns an empty result.

    Raises:
        PlayerCountMismatchException: If an entrant is not a single player
    """
    settings = request.settings or BoxSettings()
    settings.validate()
    validate_unique_ids_strict(request.participants)
    validate_team_sizes_strict(request.participants, team_size=1)

    if len(request.participants) < MIN_ROTATING_BOX_PLAYERS:
        logger.info(
            "Rotating box %s needs %s players, got %s",
            request.box_number,
            MIN_ROTATING_BOX_PLAYERS,
            len(request.participants),
        )
        return GenerationResult.insufficient()

    players = sorted(request.participants, key=rating_sort_key)
    index_schedule = schedule_rotating_partners(len(players), settings.rounds)

    schedule = []
    for round_number, (round_matches, resting) in enumerate(index_schedule, start=1):
        pairings = [
            Pairing(
                make_doubles_side(players[a1], players[a2]),
                make_doubles_side(players[b1], players[b2]),
            )
            for (a1, a2), (b1, b2) in round_matches
        ]
        schedule.append(
            Round(
                round_number=round_number,
                pairings=pairings,
                resting=[players[i] for i in resting],
            )
        )

    matches = build_round_robin_matches(
        schedule,
        request.event_id,
        EventFormat.ROTATING_BOX,
        event_type=request.event_type,
        box_number=request.box_number,
        week_number=request.week_number,
    )
    MatchIdentity.assign(matches)
    logger.info(
        "Generated rotating box %s for %s: %s players, %s rounds, %s matches",
        request.box_number,
        request.event_id,
        len(players),
        len(schedule),
        len(matches),
    )
    return GenerationResult(matches=matches, schedule=schedule)


def calculate_rotating_box_player_standings(
    players: Sequence[Participant], matches: Sequence[MatchStub]
) -> List[StandingRow]:
    """Individual standings, crediting both players of each composite side."""
    return StandingsCalculator(credit_members=True).compute(players, matches)
