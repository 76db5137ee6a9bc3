"""Format Validator - correctness gate in front of persistence.

Every generated schedule is checked before it may be written. Absolute
criteria (self pairings, duplicate pairings, double-booked participants,
missing round robin pairs, wrong bye counts, malformed brackets) make the
report fail; callers must refuse to persist a failing report. Warning
criteria (flagged Swiss rematches, pool sizes outside the recommended
range) are reported but do not block.
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

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence

from matchformats.constants import (
    MAX_RECOMMENDED_POOL_SIZE,
    MIN_RECOMMENDED_POOL_SIZE,
)
from matchformats.exceptions import ValidationFailureException
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub
from matchformats.models.pairing_history import PairingHistory
from matchformats.models.participant import Participant
from matchformats.models.round_data import GenerationResult, Round
from matchformats.tournament.match_identity import MatchIdentity
from matchformats.utils import setup_logger

logger = setup_logger(__name__)


class CriterionStatus(Enum):
    """Status of a single check."""

    COMPLIANT = "COMPLIANT"
    VIOLATION = "VIOLATION"
    NOT_APPLICABLE = "NOT_APPLICABLE"


class ViolationType(Enum):
    """Severity of a failed check."""

    ABSOLUTE = "ABSOLUTE"  # Blocks persistence
    WARNING = "WARNING"  # Reported only


@dataclass
class CriterionResult:
    """Result of validating a single criterion."""

    criterion: str
    status: CriterionStatus
    violation_type: Optional[ViolationType] = None
    description: str = ""
    details: Dict[str, object] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return self.description


@dataclass
class ValidationReport:
    """Complete validation report for a generated schedule."""

    total_criteria: int
    compliant_count: int
    violations: List[CriterionResult]
    overall_status: CriterionStatus
    summary: str
    warnings: List[CriterionResult] = field(default_factory=list)
    criteria_results: List[CriterionResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.overall_status != CriterionStatus.VIOLATION

    @property
    def compliance_percentage(self) -> float:
        """Calculate compliance percentage."""
        if self.total_criteria == 0:
            return 100.0
        return (self.compliant_count / self.total_criteria) * 100.0


def _compliant(criterion: str, description: str) -> CriterionResult:
    return CriterionResult(
        criterion=criterion,
        status=CriterionStatus.COMPLIANT,
        description=description,
    )


def _not_applicable(criterion: str, description: str) -> CriterionResult:
    return CriterionResult(
        criterion=criterion,
        status=CriterionStatus.NOT_APPLICABLE,
        description=description,
    )


def _violation(
    criterion: str,
    description: str,
    details: Optional[Dict[str, object]] = None,
    violation_type: ViolationType = ViolationType.ABSOLUTE,
) -> CriterionResult:
    return CriterionResult(
        criterion=criterion,
        status=CriterionStatus.VIOLATION,
        violation_type=violation_type,
        description=description,
        details=details or {},
    )


def build_report(results: List[CriterionResult]) -> ValidationReport:
    """Fold criterion results into a report."""
    violations = [
        r
        for r in results
        if r.status == CriterionStatus.VIOLATION
        and r.violation_type == ViolationType.ABSOLUTE
    ]
    warnings = [
        r
        for r in results
        if r.status == CriterionStatus.VIOLATION
        and r.violation_type == ViolationType.WARNING
    ]
    overall_status = (
        CriterionStatus.VIOLATION if violations else CriterionStatus.COMPLIANT
    )
    if violations:
        summary = (
            f"{len(violations)} violation(s): "
            + "; ".join(v.description for v in violations)
        )
    else:
        summary = f"All checks passed; {len(warnings)} warning(s)"
    return ValidationReport(
        total_criteria=len(results),
        compliant_count=sum(
            1 for r in results if r.status == CriterionStatus.COMPLIANT
        ),
        violations=violations,
        overall_status=overall_status,
        summary=summary,
        warnings=warnings,
        criteria_results=results,
    )


class ScheduleCriteriaChecker:
    """Structural checks shared by every format."""

    def check_no_self_pairings(self, matches: Sequence[MatchStub]) -> CriterionResult:
        """No match has the same participant on both sides."""
        for match in matches:
            if match.is_ready and match.side_a.id == match.side_b.id:
                return _violation(
                    "SELF_PAIRING",
                    f"{match.side_a.name} is paired against themselves",
                    {"participant_id": match.side_a.id},
                )
            if match.is_ready:
                shared = set(match.side_a.member_player_ids) & set(
                    match.side_b.member_player_ids
                )
                if shared:
                    return _violation(
                        "SELF_PAIRING",
                        f"Player(s) {', '.join(sorted(shared))} on both sides",
                        {"player_ids": sorted(shared)},
                    )
        return _compliant("SELF_PAIRING", "No self pairings")

    def check_no_duplicate_pairings(
        self, matches: Sequence[MatchStub]
    ) -> CriterionResult:
        """No two matches share a canonical id."""
        counts = Counter(MatchIdentity.for_match(m) for m in matches)
        duplicates = sorted(match_id for match_id, n in counts.items() if n > 1)
        if duplicates:
            return _violation(
                "DUPLICATE_PAIRING",
                f"Duplicate pairing: {duplicates[0]}",
                {"match_ids": duplicates},
            )
        return _compliant("DUPLICATE_PAIRING", "No duplicate pairings")

    def check_single_appearance_per_round(
        self, schedule: Sequence[Round]
    ) -> CriterionResult:
        """Nobody plays twice, or plays and rests, in one round."""
        for round_data in schedule:
            seen = Counter()
            for pairing in round_data.pairings:
                for side in (pairing.side_a, pairing.side_b):
                    if side is not None:
                        seen.update(side.member_player_ids)
            for resting in round_data.resting:
                seen.update(resting.member_player_ids)
            doubled = sorted(pid for pid, n in seen.items() if n > 1)
            if doubled:
                return _violation(
                    "DOUBLE_BOOKED",
                    f"Round {round_data.round_number}: {', '.join(doubled)} "
                    "appear more than once",
                    {"round": round_data.round_number, "player_ids": doubled},
                )
        return _compliant("DOUBLE_BOOKED", "Every participant appears once per round")

    def check_round_robin_complete(
        self,
        matches: Sequence[MatchStub],
        participants: Sequence[Participant],
        scope: str = "",
    ) -> CriterionResult:
        """Every unordered pair meets exactly once in every leg."""
        criterion = f"RR_COMPLETE{':' + scope if scope else ''}"
        ids = sorted(p.id for p in participants)
        if len(ids) < 2:
            return _not_applicable(criterion, "Fewer than two participants")

        legs: Dict[int, Counter] = {}
        for match in matches:
            if match.is_ready:
                legs.setdefault(match.leg, Counter())[
                    frozenset((match.side_a.id, match.side_b.id))
                ] += 1
        if not legs:
            return _violation(criterion, "No matches generated")

        expected = {frozenset(pair) for pair in combinations(ids, 2)}
        for leg, counts in sorted(legs.items()):
            missing = expected - set(counts)
            repeated = [pair for pair, n in counts.items() if n > 1]
            foreign = set(counts) - expected
            if missing or repeated or foreign:
                return _violation(
                    criterion,
                    f"Leg {leg}: {len(missing)} missing, {len(repeated)} repeated, "
                    f"{len(foreign)} unexpected pairing(s)",
                    {
                        "missing": [sorted(p) for p in missing],
                        "repeated": [sorted(p) for p in repeated],
                    },
                )
        return _compliant(criterion, "Every pair meets exactly once")

    def check_byes_per_round(
        self, schedule: Sequence[Round], participant_count: int
    ) -> CriterionResult:
        """Odd fields have exactly one bye per round, even fields none."""
        expected = participant_count % 2
        for round_data in schedule:
            byes = len(round_data.byes)
            if byes != expected:
                return _violation(
                    "BYES",
                    f"Round {round_data.round_number} has {byes} bye(s), "
                    f"expected {expected}",
                    {"round": round_data.round_number},
                )
        return _compliant("BYES", "Bye count correct in every round")

    def check_rematches(
        self,
        matches: Sequence[MatchStub],
        prior_matches: Iterable[MatchStub],
    ) -> List[CriterionResult]:
        """Rematches must be flagged; flagged ones are reported as warnings."""
        history = PairingHistory.from_matches(prior_matches)
        results = []
        for match in matches:
            if not match.is_ready or not history.have_played(
                match.side_a.id, match.side_b.id
            ):
                continue
            if match.warning:
                results.append(
                    _violation(
                        "REMATCH",
                        f"Flagged rematch: {match.side_a.name} vs {match.side_b.name}",
                        {"match_id": match.match_id},
                        violation_type=ViolationType.WARNING,
                    )
                )
            else:
                results.append(
                    _violation(
                        "REMATCH",
                        f"Unflagged rematch: {match.side_a.name} vs {match.side_b.name}",
                        {"match_id": match.match_id},
                    )
                )
        if not results:
            results.append(_compliant("REMATCH", "No rematches"))
        return results

    def check_bracket_shape(self, bracket, participant_count: int) -> CriterionResult:
        """Power-of-two size, correct bye count, byes on the top seeds."""
        size = bracket.size
        if size & (size - 1) or size < max(2, participant_count):
            return _violation("BRACKET", f"Invalid bracket size {size}")
        if size >= 2 * participant_count and size > 2:
            return _violation(
                "BRACKET", f"Bracket size {size} too large for {participant_count}"
            )
        bye_seeds = sorted(m.seed_a for m in bracket.matches if m.is_bye)
        expected = list(range(1, size - participant_count + 1))
        if bye_seeds != expected:
            return _violation(
                "BRACKET",
                f"Byes went to seeds {bye_seeds}, expected {expected}",
                {"bye_seeds": bye_seeds},
            )
        return _compliant("BRACKET", f"{size}-slot bracket with {len(expected)} bye(s)")


class FormatValidator:
    """Runs the checks that apply to each format."""

    def __init__(self):
        self.checker = ScheduleCriteriaChecker()

    def validate_result(
        self,
        event_format: EventFormat,
        result: GenerationResult,
        participants: Sequence[Participant],
        prior_matches: Sequence[MatchStub] = (),
    ) -> ValidationReport:
        """Validate a generator's output.

        Args:
            event_format: Format that produced the result
            result: The generator output
            participants: The entrants the generator was given
            prior_matches: Earlier matches (Swiss rematch checks)

        Returns:
            ValidationReport; ok is False on any absolute violation
        """
        logger.info(
            "Validating %s schedule: %s matches", event_format.value, len(result.matches)
        )
        if result.is_empty:
            return build_report(
                [_not_applicable("EMPTY", "Nothing generated")]
            )

        checker = self.checker
        results = [
            checker.check_no_self_pairings(result.matches),
            checker.check_no_duplicate_pairings(result.matches),
            checker.check_single_appearance_per_round(result.schedule),
        ]

        if event_format in (EventFormat.ROUND_ROBIN, EventFormat.FIXED_BOX):
            results.append(
                checker.check_round_robin_complete(result.matches, participants)
            )
            results.append(checker.check_byes_per_round(result.schedule, len(participants)))
        elif event_format is EventFormat.SWISS:
            results.append(checker.check_byes_per_round(result.schedule, len(participants)))
            results.extend(checker.check_rematches(result.matches, prior_matches))
        elif event_format is EventFormat.ELIMINATION and result.bracket is not None:
            results.append(checker.check_bracket_shape(result.bracket, len(participants)))
        elif event_format is EventFormat.POOL and result.pools:
            results.append(self.validate_pools(result.pools).criteria_results[0])
            for pool_name, members in result.pools.items():
                results.append(
                    checker.check_round_robin_complete(
                        [m for m in result.matches if m.pool_key == pool_name],
                        members,
                        scope=pool_name,
                    )
                )

        report = build_report(results)
        logger.info("Validation complete: %s", report.summary)
        return report

    def validate_pools(self, pools: Dict[str, Sequence[Participant]]) -> ValidationReport:
        """Pre-generation checks on a pool assignment.

        Each participant must be in exactly one pool, ids must be non-empty
        and no pool may be empty. Pools outside the recommended size range
        produce warnings.
        """
        results = []
        membership: Dict[str, List[str]] = {}
        empty_ids = []
        empty_pools = []
        for pool_name, members in pools.items():
            if not members:
                empty_pools.append(pool_name)
            for participant in members:
                if not participant.id:
                    empty_ids.append(f"{participant.name} in {pool_name}")
                    continue
                membership.setdefault(participant.id, []).append(pool_name)

        multi = {pid: names for pid, names in membership.items() if len(names) > 1}
        if multi:
            pid = sorted(multi)[0]
            results.append(
                _violation(
                    "POOL_MEMBERSHIP",
                    f"{pid} appears in {', '.join(multi[pid])}",
                    {"participants": multi},
                )
            )
        elif empty_ids:
            results.append(
                _violation("POOL_MEMBERSHIP", f"Missing id: {', '.join(empty_ids)}")
            )
        elif empty_pools:
            results.append(
                _violation("POOL_MEMBERSHIP", f"Empty pool(s): {', '.join(empty_pools)}")
            )
        else:
            results.append(_compliant("POOL_MEMBERSHIP", "Every participant in one pool"))

        for pool_name, members in pools.items():
            size = len(members)
            if members and not (
                MIN_RECOMMENDED_POOL_SIZE <= size <= MAX_RECOMMENDED_POOL_SIZE
            ):
                results.append(
                    _violation(
                        "POOL_SIZE",
                        f"{pool_name} has {size} participants; recommended "
                        f"{MIN_RECOMMENDED_POOL_SIZE}-{MAX_RECOMMENDED_POOL_SIZE}",
                        {"pool": pool_name, "size": size},
                        violation_type=ViolationType.WARNING,
                    )
                )
        return build_report(results)

    def assert_valid(self, report: ValidationReport) -> ValidationReport:
        """Raise ValidationFailureException when the report has violations."""
        if not report.ok:
            logger.error("Generated schedule failed validation: %s", report.summary)
            raise ValidationFailureException(report.summary, report)
        return report


def create_format_validator() -> FormatValidator:
    """Create and configure a validator instance."""
    return FormatValidator()


def validate_pools_before_generation(
    pools: Dict[str, Sequence[Participant]]
) -> ValidationReport:
    """Quick pre-generation check of a pool assignment."""
    return create_format_validator().validate_pools(pools)
