"""Pool play followed by medal rounds.

Entrants are split into rating-balanced pools, every pool plays a round
robin, and the pool qualifiers go on to a single-elimination medal bracket.
Non-qualifiers may play a plate bracket. Bracket generation is gated: it is
refused until every pool match is finished and the qualifier list is sound.
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

import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from matchformats.constants import (
    ADVANCEMENT_TOP_N_PLUS_BEST,
    BRONZE_YES,
    EVENT_TYPE_TOURNAMENT,
    FINISHED_STATUSES,
    MIN_PARTICIPANTS,
    PLATE_ROUND_ROBIN,
    POOL_RATING_TOLERANCE,
    SEEDING_BALANCED,
    SEEDING_SNAKE,
    STAGE_MEDAL,
    STAGE_PLATE,
    STAGE_POOL,
    WARNING_POOL_IMBALANCE,
    WARNING_POOL_SIZE,
)
from matchformats.exceptions import (
    BracketNotReadyException,
    InvalidConfigurationException,
)
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant
from matchformats.models.round_data import (
    GenerationResult,
    PairingWarning,
    Round,
)
from matchformats.models.settings import GenerationRequest, PoolPlaySettings
from matchformats.models.standing import StandingRow
from matchformats.pairing.elimination import (
    bracket_schedule,
    bracket_to_matches,
    build_bracket,
    next_power_of_two,
)
from matchformats.pairing.round_robin import (
    build_round_robin_matches,
    generate_round_robin_pairings,
)
from matchformats.tournament.match_identity import MatchIdentity
from matchformats.tournament.standings import StandingsCalculator
from matchformats.utils import average_rating, rating_sort_key, setup_logger
from matchformats.utils.validation import validate_unique_ids_strict
from matchformats.validation.format_validator import validate_pools_before_generation

logger = setup_logger(__name__)

QUALIFIED_MAIN = "main"
QUALIFIED_PLATE = "plate"


@dataclass
class PoolStageProgress:
    """How far the pool stage has got."""

    total: int
    completed: int
    per_pool: Dict[str, Tuple[int, int]] = field(default_factory=dict)

    @property
    def remaining(self) -> int:
        return self.total - self.completed

    @property
    def percent_complete(self) -> int:
        if self.total == 0:
            return 0
        return round(self.completed / self.total * 100)


@dataclass
class BracketReadiness:
    """Outcome of the gate in front of medal bracket generation.

    Attributes:
        ready: Whether bracket generation may proceed
        incomplete_match_count: Pool matches not yet finished
        qualifier_count: Number of qualifiers
        errors: Reasons the bracket is not ready
    """

    ready: bool
    incomplete_match_count: int
    qualifier_count: int
    errors: List[str] = field(default_factory=list)

    @property
    def all_pools_complete(self) -> bool:
        return self.incomplete_match_count == 0


@dataclass
class MedalStageResult:
    """Everything produced when the pool stage is closed out."""

    standings: Dict[str, List[StandingRow]]
    medal: GenerationResult
    plate: Optional[GenerationResult] = None


# ========== Pool Assignment ==========


def get_pool_name(pool_number: int) -> str:
    """Pool A .. Pool Z, then Pool AA, Pool AB, ... (1-indexed)."""
    if pool_number <= 26:
        return f"Pool {chr(64 + pool_number)}"
    first = (pool_number - 1) // 26
    second = (pool_number - 1) % 26 + 1
    return f"Pool {chr(64 + first)}{chr(64 + second)}"


def calculate_pool_count(participant_count: int, pool_size: int) -> int:
    if pool_size < 1:
        raise InvalidConfigurationException(f"pool_size must be >= 1, got {pool_size}")
    return math.ceil(participant_count / pool_size)


def assign_participants_to_pools(
    participants: Sequence[Participant],
    pool_count: int,
    method: str = SEEDING_SNAKE,
) -> Dict[str, List[Participant]]:
    """Distribute participants over pools by rating.

    Snake: pool A takes seeds 1, 4, 5, 8 ... with two pools.
    Balanced: each participant, strongest first, joins the smallest pool
    with the lowest rating total.

    Returns:
        Pool name to participants, pools in order
    """
    if pool_count < 1:
        raise InvalidConfigurationException(f"pool_count must be >= 1, got {pool_count}")

    seeded = sorted(participants, key=rating_sort_key)
    buckets: List[List[Participant]] = [[] for _ in range(pool_count)]

    if method == SEEDING_BALANCED:
        totals = [0.0] * pool_count
        for participant in seeded:
            index = min(
                range(pool_count),
                key=lambda i: (len(buckets[i]), totals[i], i),
            )
            buckets[index].append(participant)
            totals[index] += participant.rating or 0.0
    else:
        pool_index, direction = 0, 1
        for participant in seeded:
            buckets[pool_index].append(participant)
            pool_index += direction
            if pool_index >= pool_count:
                pool_index, direction = pool_count - 1, -1
            elif pool_index < 0:
                pool_index, direction = 0, 1

    return {get_pool_name(i + 1): bucket for i, bucket in enumerate(buckets)}


def check_pool_fairness(pools: Dict[str, List[Participant]]) -> List[PairingWarning]:
    """Warn when average pool ratings drift too far apart."""
    averages = {
        name: average_rating(p.rating for p in members)
        for name, members in pools.items()
    }
    rated = {name: avg for name, avg in averages.items() if avg is not None}
    if len(rated) < 2:
        return []
    strongest = max(rated, key=rated.get)
    weakest = min(rated, key=rated.get)
    spread = rated[strongest] - rated[weakest]
    if spread <= POOL_RATING_TOLERANCE:
        return []
    return [
        PairingWarning(
            code=WARNING_POOL_IMBALANCE,
            message=(
                f"{strongest} averages {rated[strongest]:.2f} but {weakest} "
                f"averages {rated[weakest]:.2f}"
            ),
        )
    ]


# ========== Pool Stage ==========


def generate_pool_matches(
    event_id: str,
    pools: Dict[str, List[Participant]],
    event_type: str = EVENT_TYPE_TOURNAMENT,
) -> GenerationResult:
    """Round robin inside each of the given pools.

    Raises:
        InvalidConfigurationException: If the pools fail pre-generation checks
    """
    report = validate_pools_before_generation(pools)
    if not report.ok:
        raise InvalidConfigurationException(
            "; ".join(v.description for v in report.violations)
        )

    rounds: Dict[int, Round] = {}
    matches: List[MatchStub] = []
    for pool_name, members in pools.items():
        pool_schedule = generate_round_robin_pairings(
            sorted(members, key=rating_sort_key)
        )
        matches.extend(
            build_round_robin_matches(
                pool_schedule,
                event_id,
                EventFormat.POOL,
                event_type=event_type,
                pool_key=pool_name,
                first_match_number=len(matches) + 1,
                stage=STAGE_POOL,
            )
        )
        for round_data in pool_schedule:
            merged = rounds.setdefault(
                round_data.round_number, Round(round_number=round_data.round_number)
            )
            merged.pairings.extend(round_data.pairings)

    MatchIdentity.assign(matches)
    warnings = [
        PairingWarning(code=WARNING_POOL_SIZE, message=w.description)
        for w in report.warnings
    ]
    warnings.extend(check_pool_fairness(pools))
    return GenerationResult(
        matches=matches,
        schedule=[rounds[n] for n in sorted(rounds)],
        warnings=warnings,
        pools=pools,
    )


def generate_pool_stage(request: GenerationRequest) -> GenerationResult:
    """Assign pools and generate every pool's round robin.

    Args:
        request: Participants and PoolPlaySettings

    Returns:
        GenerationResult with pools set
    """
    settings = request.settings or PoolPlaySettings()
    settings.validate()
    validate_unique_ids_strict(request.participants)

    if len(request.participants) < MIN_PARTICIPANTS:
        return GenerationResult.insufficient()

    pool_count = calculate_pool_count(len(request.participants), settings.pool_size)
    pools = assign_participants_to_pools(
        request.participants, pool_count, settings.seeding_method
    )
    result = generate_pool_matches(request.event_id, pools, request.event_type)
    logger.info(
        "Generated pool stage for %s: %s pools, %s matches",
        request.event_id,
        len(pools),
        len(result.matches),
    )
    return result


def get_matches_for_pool(matches: Sequence[MatchStub], pool_name: str) -> List[MatchStub]:
    return [m for m in matches if m.pool_key == pool_name]


def _is_pool_match(match: MatchStub) -> bool:
    if match.stage is not None:
        return match.stage == STAGE_POOL
    return bool(match.pool_key)


def is_pool_stage_complete(matches: Sequence[MatchStub]) -> bool:
    """True when there are pool matches and every one is finished."""
    pool_matches = [m for m in matches if _is_pool_match(m)]
    return bool(pool_matches) and all(
        m.status in FINISHED_STATUSES for m in pool_matches
    )


def get_pool_stage_progress(matches: Sequence[MatchStub]) -> PoolStageProgress:
    pool_matches = [m for m in matches if _is_pool_match(m)]
    per_pool: Dict[str, Tuple[int, int]] = {}
    for match in pool_matches:
        done, total = per_pool.get(match.pool_key, (0, 0))
        per_pool[match.pool_key] = (
            done + (match.status in FINISHED_STATUSES),
            total + 1,
        )
    return PoolStageProgress(
        total=len(pool_matches),
        completed=sum(done for done, _ in per_pool.values()),
        per_pool=per_pool,
    )


# ========== Standings and Qualification ==========


def calculate_pool_standings(
    pool_name: str,
    members: Sequence[Participant],
    matches: Sequence[MatchStub],
    tiebreakers: Optional[Sequence[str]] = None,
) -> List[StandingRow]:
    """Standings for a single pool using the configured tiebreak order."""
    rows = StandingsCalculator.for_pool(tiebreakers).compute(
        members, get_matches_for_pool(matches, pool_name)
    )
    for row in rows:
        row.pool_key = pool_name
    return rows


def calculate_all_pool_standings(
    pools: Dict[str, List[Participant]],
    matches: Sequence[MatchStub],
    settings: PoolPlaySettings,
) -> Dict[str, List[StandingRow]]:
    return {
        name: calculate_pool_standings(name, members, matches, settings.tiebreakers)
        for name, members in pools.items()
    }


def _quality_key(row: StandingRow):
    return (-row.wins, -row.point_differential, -row.points_for, row.participant_id)


def determine_qualifiers(
    all_standings: Dict[str, List[StandingRow]], settings: PoolPlaySettings
) -> Dict[str, List[StandingRow]]:
    """Mark main and plate qualifiers.

    The top finishers of each pool qualify directly. With
    top_n_plus_best the best remaining finishers across all pools fill
    the bracket up to advancement_count. When the plate is enabled, the
    next finishers in each pool are marked for it.

    Returns:
        New standings rows; the input rows are not modified
    """
    direct = settings.main_qualifiers_per_pool
    marked = {
        name: [
            replace(row, qualified_as=QUALIFIED_MAIN if row.rank <= direct else None)
            for row in rows
        ]
        for name, rows in all_standings.items()
    }

    if settings.advancement == ADVANCEMENT_TOP_N_PLUS_BEST:
        direct_count = sum(1 for rows in marked.values() for r in rows if r.qualified)
        open_slots = max(0, settings.advancement_count - direct_count)
        candidates = sorted(
            (r for rows in marked.values() for r in rows if not r.qualified),
            key=_quality_key,
        )
        best_ids = {r.participant_id for r in candidates[:open_slots]}
        for rows in marked.values():
            for row in rows:
                if row.participant_id in best_ids:
                    row.qualified_as = QUALIFIED_MAIN

    if settings.plate_enabled:
        for rows in marked.values():
            plate_count = settings.plate_qualifiers_per_pool
            if plate_count is None:
                plate_count = min(direct, max(0, len(rows) - direct))
            eligible = [r for r in rows if not r.qualified]
            for row in eligible[:plate_count]:
                row.qualified_as = QUALIFIED_PLATE

    return marked


def _rows_at_rank(all_standings: Dict[str, List[StandingRow]], rank: int):
    return [
        next((r for r in rows if r.rank == rank), None)
        for rows in all_standings.values()
    ]


def _first_round_opponent(seed: int, size: int) -> int:
    return size + 1 - seed


def _order_avoiding_same_pool(
    leaders: List[StandingRow], followers: List[StandingRow], bracket_size: int
) -> List[StandingRow]:
    """Order followers so no leader meets their own pool in round one."""
    candidates = [followers, list(reversed(followers))]
    candidates.extend(followers[i:] + followers[:i] for i in range(1, len(followers)))
    offset = len(leaders)
    for candidate in candidates:
        seeds = leaders + candidate
        clash = False
        for index, leader in enumerate(leaders):
            opponent_seed = _first_round_opponent(index + 1, bracket_size)
            if offset < opponent_seed <= len(seeds):
                opponent = seeds[opponent_seed - 1]
                if opponent.pool_key == leader.pool_key:
                    clash = True
                    break
        if not clash:
            return candidate
    return followers


def get_qualified_participants(
    all_standings: Dict[str, List[StandingRow]]
) -> List[Participant]:
    """Medal bracket entrants in seed order.

    Pool winners take the top seeds in pool order, then runners-up, then any
    best-remaining qualifiers. In a bracket of 2P slots the winner of pool i
    meets the runner-up of pool P-1-i in round one.
    """
    qualified = [r for rows in all_standings.values() for r in rows if r.qualified]
    if not qualified:
        return []

    bracket_size = next_power_of_two(len(qualified))
    max_rank = max(r.rank for r in qualified)
    seeded: List[StandingRow] = []
    for rank in range(1, max_rank + 1):
        tier = [
            r for r in _rows_at_rank(all_standings, rank) if r is not None and r.qualified
        ]
        if rank == 2 and seeded:
            tier = _order_avoiding_same_pool(seeded, tier, bracket_size)
        elif rank > 2:
            tier.sort(key=_quality_key)
        seeded.extend(tier)
    return [row.participant for row in seeded]


def get_plate_participants(
    all_standings: Dict[str, List[StandingRow]]
) -> List[Participant]:
    """Plate entrants in seed order: better finishing position first, then pool order."""
    plate = [
        r
        for rows in all_standings.values()
        for r in rows
        if r.qualified_as == QUALIFIED_PLATE
    ]
    pool_order = {name: i for i, name in enumerate(all_standings)}
    plate.sort(key=lambda r: (r.rank, pool_order[r.pool_key]))
    return [row.participant for row in plate]


def validate_bracket_readiness(
    matches: Sequence[MatchStub], qualified: Sequence[Participant]
) -> BracketReadiness:
    """Fail-closed gate in front of medal bracket generation.

    Checks that every pool match is finished, that there are at least two
    qualifiers, and that no qualifier appears twice.
    """
    errors = []
    incomplete = [
        m for m in matches if _is_pool_match(m) and m.status not in FINISHED_STATUSES
    ]
    if incomplete:
        errors.append(f"{len(incomplete)} pool match(es) not complete")
    if not any(_is_pool_match(m) for m in matches):
        errors.append("No pool matches found")

    if len(qualified) < MIN_PARTICIPANTS:
        errors.append(f"Need at least 2 qualifiers, have {len(qualified)}")

    seen, duplicates = set(), []
    for participant in qualified:
        if participant.id in seen and participant.id not in duplicates:
            duplicates.append(participant.id)
        seen.add(participant.id)
    if duplicates:
        errors.append(f"Duplicate qualifiers: {', '.join(duplicates)}")

    return BracketReadiness(
        ready=not errors,
        incomplete_match_count=len(incomplete),
        qualifier_count=len(qualified),
        errors=errors,
    )


# ========== Medal and Plate Brackets ==========


def generate_medal_bracket(
    event_id: str,
    qualified: Sequence[Participant],
    settings: PoolPlaySettings,
    event_type: str = EVENT_TYPE_TOURNAMENT,
) -> GenerationResult:
    """Single-elimination medal bracket, seeded in the given order."""
    if len(qualified) < MIN_PARTICIPANTS:
        return GenerationResult.insufficient()

    bracket = build_bracket(
        qualified,
        third_place_match=settings.bronze_match == BRONZE_YES,
        preserve_order=True,
    )
    matches = MatchIdentity.assign(
        bracket_to_matches(
            bracket, event_id, EventFormat.POOL, event_type, stage=STAGE_MEDAL
        )
    )
    return GenerationResult(
        matches=matches, schedule=bracket_schedule(bracket), bracket=bracket
    )


def generate_plate_bracket(
    event_id: str,
    plate: Sequence[Participant],
    settings: PoolPlaySettings,
    event_type: str = EVENT_TYPE_TOURNAMENT,
) -> GenerationResult:
    """Plate bracket for non-qualifiers, single elimination or round robin."""
    if len(plate) < MIN_PARTICIPANTS:
        return GenerationResult.insufficient()

    if settings.plate_format == PLATE_ROUND_ROBIN:
        schedule = generate_round_robin_pairings(plate)
        matches = build_round_robin_matches(
            schedule,
            event_id,
            EventFormat.POOL,
            event_type=event_type,
            pool_key="Plate",
            stage=STAGE_PLATE,
        )
        return GenerationResult(
            matches=MatchIdentity.assign(matches), schedule=schedule
        )

    bracket = build_bracket(
        plate, third_place_match=settings.plate_third_place, preserve_order=True
    )
    matches = MatchIdentity.assign(
        bracket_to_matches(
            bracket, event_id, EventFormat.POOL, event_type, stage=STAGE_PLATE
        )
    )
    return GenerationResult(
        matches=matches, schedule=bracket_schedule(bracket), bracket=bracket
    )


class PoolPlayOrchestrator:
    """Runs a pool play event from pool assignment to medal rounds."""

    def __init__(self, settings: Optional[PoolPlaySettings] = None):
        self.settings = settings or PoolPlaySettings()
        self.settings.validate()

    def generate_pool_stage(self, request: GenerationRequest) -> GenerationResult:
        return generate_pool_stage(replace(request, settings=self.settings))

    def generate_medal_stage(
        self,
        event_id: str,
        pools: Dict[str, List[Participant]],
        pool_matches: Sequence[MatchStub],
        event_type: str = EVENT_TYPE_TOURNAMENT,
    ) -> MedalStageResult:
        """Close out the pool stage and build the medal (and plate) brackets.

        Raises:
            BracketNotReadyException: If any pool match is unfinished or the
                qualifiers are not sound
        """
        standings = determine_qualifiers(
            calculate_all_pool_standings(pools, pool_matches, self.settings),
            self.settings,
        )
        qualified = get_qualified_participants(standings)
        readiness = validate_bracket_readiness(pool_matches, qualified)
        if not readiness.ready:
            logger.warning(
                "Medal bracket for %s refused: %s", event_id, "; ".join(readiness.errors)
            )
            raise BracketNotReadyException(
                f"Medal bracket not ready: {'; '.join(readiness.errors)}",
                readiness.errors,
            )

        medal = generate_medal_bracket(event_id, qualified, self.settings, event_type)
        plate = None
        if self.settings.plate_enabled:
            plate = generate_plate_bracket(
                event_id, get_plate_participants(standings), self.settings, event_type
            )
        logger.info(
            "Generated medal stage for %s: %s qualifiers, %s medal matches",
            event_id,
            len(qualified),
            len(medal.matches),
        )
        return MedalStageResult(standings=standings, medal=medal, plate=plate)
