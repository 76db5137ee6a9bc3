"""Format dispatch.

ScheduleManager is the single entry point callers use to generate a
schedule for any format. It looks the generator up by EventFormat, runs
it, and validates the output before handing it back. A result is only
returned when validation passes, so anything the caller receives is safe
to persist.
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

from typing import Callable, Dict, List, Optional, Sequence, Union

from matchformats.constants import EVENT_TYPE_TOURNAMENT
from matchformats.exceptions import (
    ConfigurationException,
    InvalidConfigurationException,
    ValidationFailureException,
)
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant
from matchformats.models.round_data import GenerationResult
from matchformats.models.settings import GenerationRequest, PoolPlaySettings
from matchformats.models.standing import StandingRow
from matchformats.pairing.box_league import generate_fixed_box, generate_rotating_box
from matchformats.pairing.elimination import generate_elimination
from matchformats.pairing.pool_play import (
    MedalStageResult,
    PoolPlayOrchestrator,
    generate_pool_stage,
)
from matchformats.pairing.round_robin import generate_round_robin
from matchformats.pairing.swiss import generate_swiss_round
from matchformats.tournament.standings import StandingsCalculator
from matchformats.utils import setup_logger
from matchformats.validation.format_validator import (
    FormatValidator,
    ValidationReport,
    create_format_validator,
)

logger = setup_logger(__name__)

Generator = Callable[[GenerationRequest], GenerationResult]

GENERATORS: Dict[EventFormat, Generator] = {
    EventFormat.ROUND_ROBIN: generate_round_robin,
    EventFormat.SWISS: generate_swiss_round,
    EventFormat.ELIMINATION: generate_elimination,
    EventFormat.FIXED_BOX: generate_fixed_box,
    EventFormat.ROTATING_BOX: generate_rotating_box,
    EventFormat.POOL: generate_pool_stage,
}

# Ladder and king of the court are driven one match at a time through
# LadderChallengeManager and KingOfCourtScheduler.
QUEUE_DRIVEN_FORMATS = (EventFormat.LADDER, EventFormat.KING_OF_COURT)


class ScheduleManager:
    """Generates and validates schedules for every batch format."""

    def __init__(self, validator: Optional[FormatValidator] = None):
        """Initialize the manager.

        Args:
            validator: Validator to gate results with, default a fresh one
        """
        self.validator = validator or create_format_validator()
        self.last_report: Optional[ValidationReport] = None

    @staticmethod
    def supported_formats() -> List[EventFormat]:
        return list(GENERATORS)

    def generate(
        self,
        event_format: Union[EventFormat, str],
        request: GenerationRequest,
    ) -> GenerationResult:
        """Generate a validated schedule.

        Args:
            event_format: Format to generate, as an EventFormat or its value
            request: Participants, settings and context for the generator

        Returns:
            The generator's result. Insufficient fields come back with status
            INSUFFICIENT_PARTICIPANTS and no matches.

        Raises:
            ConfigurationException: If the settings or field are invalid
            ValidationFailureException: If the output fails validation
        """
        fmt = EventFormat.parse(event_format)
        generator = GENERATORS.get(fmt)
        if generator is None:
            if fmt in QUEUE_DRIVEN_FORMATS:
                message = f"{fmt.value} is queue driven and has no batch generator"
            else:
                message = f"No generator registered for {fmt.value}"
            logger.warning(message)
            raise InvalidConfigurationException(message)

        logger.info(
            "Generating %s for %s with %s participants",
            fmt.value,
            request.event_id,
            len(request.participants),
        )
        try:
            result = generator(request)
        except ConfigurationException as e:
            logger.warning(
                "Invalid %s configuration for %s: %s", fmt.value, request.event_id, e
            )
            raise

        report = self.validator.validate_result(
            fmt, result, request.participants, request.prior_matches
        )
        self.last_report = report
        try:
            self.validator.assert_valid(report)
        except ValidationFailureException:
            logger.error(
                "Refusing to return %s schedule for %s", fmt.value, request.event_id
            )
            raise
        return result

    def generate_medal_stage(
        self,
        event_id: str,
        pools: Dict[str, List[Participant]],
        pool_matches: Sequence[MatchStub],
        settings: Optional[PoolPlaySettings] = None,
        event_type: str = EVENT_TYPE_TOURNAMENT,
    ) -> MedalStageResult:
        """Build the medal stage once every pool match is finished."""
        stage = PoolPlayOrchestrator(settings).generate_medal_stage(
            event_id, pools, pool_matches, event_type
        )
        for result in (stage.medal, stage.plate):
            if result is not None and result.bracket is not None:
                self.last_report = self.validator.validate_result(
                    EventFormat.ELIMINATION,
                    result,
                    result.bracket.seeds,
                )
                self.validator.assert_valid(self.last_report)
        return stage

    @staticmethod
    def calculate_standings(
        event_format: Union[EventFormat, str],
        participants: Sequence[Participant],
        matches: Sequence[MatchStub],
        settings=None,
    ) -> List[StandingRow]:
        """Standings with the tiebreak order each format uses.

        Swiss adds Buchholz, pools use the configured tiebreakers, and
        rotating boxes credit both players of each composite side.
        """
        fmt = EventFormat.parse(event_format)
        if fmt is EventFormat.SWISS:
            calculator = StandingsCalculator.for_swiss()
        elif fmt is EventFormat.POOL:
            calculator = StandingsCalculator.for_pool(
                (settings or PoolPlaySettings()).tiebreakers
            )
        elif fmt is EventFormat.ROTATING_BOX:
            calculator = StandingsCalculator(credit_members=True)
        else:
            calculator = StandingsCalculator()
        return calculator.compute(participants, matches)
