"""Per-format settings supplied by the caller.

Settings are read-only to the engine. Each class can be built from a plain
dictionary (for JSON configuration files) and checks itself with
validate(), which raises InvalidConfigurationException.
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

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from matchformats.constants import (
    ADVANCEMENT_RULES,
    ADVANCEMENT_TOP_1,
    ADVANCEMENT_TOP_2,
    ADVANCEMENT_TOP_N_PLUS_BEST,
    BRONZE_NO,
    BRONZE_YES,
    DEFAULT_BOX_SIZE,
    DEFAULT_BOX_WEEKS,
    DEFAULT_CHALLENGE_RANGE,
    DEFAULT_MAX_ACTIVE_CHALLENGES,
    DEFAULT_NUMBER_OF_COURTS,
    DEFAULT_PAIRING_METHOD,
    DEFAULT_POINTS_TO_WIN,
    DEFAULT_POOL_SIZE,
    DEFAULT_POOL_TIEBREAK_ORDER,
    DEFAULT_PROMOTION_COUNT,
    DEFAULT_RECHALLENGE_COOLDOWN_DAYS,
    DEFAULT_RELEGATION_COUNT,
    DEFAULT_RESPONSE_DEADLINE_DAYS,
    DEFAULT_ROUND_ROBIN_ROUNDS,
    DEFAULT_SWISS_ROUNDS,
    EVENT_TYPE_TOURNAMENT,
    PAIRING_METHODS,
    PLATE_FORMATS,
    PLATE_SINGLE_ELIM,
    SEEDING_METHODS,
    SEEDING_SNAKE,
    TIEBREAK_NAMES,
)
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant
from matchformats.utils.validation import (
    validate_choice_strict,
    validate_count_strict,
)


class _SettingsDict:
    """Dictionary round-tripping shared by the settings dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize settings to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        """Deserialize settings, ignoring unknown keys."""
        data = data or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class RoundRobinSettings(_SettingsDict):
    """Round robin settings.

    Attributes
    ----------
    rounds : int
        How many times the full round robin is played.
    """

    rounds: int = DEFAULT_ROUND_ROBIN_ROUNDS

    def validate(self) -> None:
        validate_count_strict(self.rounds, "rounds", minimum=1)


@dataclass
class SwissSettings(_SettingsDict):
    """Swiss settings.

    Attributes
    ----------
    total_rounds : int
        Planned number of rounds.
    pairing_method : str
        adjacent or slide.
    """

    total_rounds: int = DEFAULT_SWISS_ROUNDS
    pairing_method: str = DEFAULT_PAIRING_METHOD

    def validate(self) -> None:
        validate_count_strict(self.total_rounds, "total_rounds", minimum=1)
        validate_choice_strict(self.pairing_method, "pairing_method", PAIRING_METHODS)


@dataclass
class EliminationSettings(_SettingsDict):
    """Single-elimination settings.

    Attributes
    ----------
    third_place_match : bool
        Whether semi-final losers play for third place.
    """

    third_place_match: bool = False

    def validate(self) -> None:
        pass


@dataclass
class BoxSettings(_SettingsDict):
    """Box league settings.

    Attributes
    ----------
    box_size : int
        Target number of sides per box.
    weeks : int
        Number of weeks in the season.
    promotion_count : int
        Sides moving up a box at the end of a period.
    relegation_count : int
        Sides moving down a box at the end of a period.
    rounds : int or None
        Rotating boxes only: rounds to generate. None plays one full
        partner rotation.
    """

    box_size: int = DEFAULT_BOX_SIZE
    weeks: int = DEFAULT_BOX_WEEKS
    promotion_count: int = DEFAULT_PROMOTION_COUNT
    relegation_count: int = DEFAULT_RELEGATION_COUNT
    rounds: Optional[int] = None

    def validate(self) -> None:
        validate_count_strict(self.box_size, "box_size", minimum=2)
        validate_count_strict(self.weeks, "weeks", minimum=1)
        validate_count_strict(self.promotion_count, "promotion_count")
        validate_count_strict(self.relegation_count, "relegation_count")
        validate_count_strict(self.rounds, "rounds", minimum=1, allow_none=True)


@dataclass
class PoolPlaySettings(_SettingsDict):
    """Pool play with medal bracket settings.

    Attributes
    ----------
    pool_size : int
        Target sides per pool.
    advancement : str
        top_1, top_2 or top_n_plus_best.
    advancement_count : int or None
        Total qualifiers for top_n_plus_best.
    qualifiers_per_pool : int
        Direct qualifiers per pool for top_n_plus_best.
    bronze_match : str
        yes to play a bronze medal match.
    tiebreakers : list of str
        Pool standings tiebreak order.
    seeding_method : str
        snake or balanced pool assignment.
    plate_enabled : bool
        Whether non-qualifiers play a plate bracket.
    plate_qualifiers_per_pool : int or None
        Plate entrants per pool. Defaults to the smaller of the qualifier
        count and the rest of the pool.
    plate_format : str
        single_elim or round_robin.
    plate_third_place : bool
        Whether the plate bracket has a third-place match.
    """

    pool_size: int = DEFAULT_POOL_SIZE
    advancement: str = ADVANCEMENT_TOP_2
    advancement_count: Optional[int] = None
    qualifiers_per_pool: int = 2
    bronze_match: str = BRONZE_YES
    tiebreakers: List[str] = field(
        default_factory=lambda: list(DEFAULT_POOL_TIEBREAK_ORDER)
    )
    seeding_method: str = SEEDING_SNAKE
    plate_enabled: bool = False
    plate_qualifiers_per_pool: Optional[int] = None
    plate_format: str = PLATE_SINGLE_ELIM
    plate_third_place: bool = False

    @property
    def main_qualifiers_per_pool(self) -> int:
        if self.advancement == ADVANCEMENT_TOP_N_PLUS_BEST:
            return self.qualifiers_per_pool
        return 1 if self.advancement == ADVANCEMENT_TOP_1 else 2

    def validate(self) -> None:
        validate_count_strict(self.pool_size, "pool_size", minimum=2)
        validate_choice_strict(self.advancement, "advancement", ADVANCEMENT_RULES)
        validate_choice_strict(self.bronze_match, "bronze_match", (BRONZE_YES, BRONZE_NO))
        validate_choice_strict(self.seeding_method, "seeding_method", SEEDING_METHODS)
        validate_choice_strict(self.plate_format, "plate_format", PLATE_FORMATS)
        validate_count_strict(self.qualifiers_per_pool, "qualifiers_per_pool", minimum=1)
        validate_count_strict(
            self.plate_qualifiers_per_pool,
            "plate_qualifiers_per_pool",
            allow_none=True,
        )
        if self.advancement == ADVANCEMENT_TOP_N_PLUS_BEST:
            validate_count_strict(self.advancement_count, "advancement_count", minimum=2)
        for key in self.tiebreakers:
            validate_choice_strict(key, "tiebreaker", TIEBREAK_NAMES)


@dataclass
class LadderSettings(_SettingsDict):
    """Ladder challenge rules.

    Attributes
    ----------
    challenge_range : int
        How many rungs above themselves a participant may challenge.
    response_deadline_days : int
        Days a defender has to respond.
    max_active_challenges : int
        Pending or accepted challenges a challenger may have at once.
    rechallenge_cooldown_days : int
        Days before the same pair may meet again.
    """

    challenge_range: int = DEFAULT_CHALLENGE_RANGE
    response_deadline_days: int = DEFAULT_RESPONSE_DEADLINE_DAYS
    max_active_challenges: int = DEFAULT_MAX_ACTIVE_CHALLENGES
    rechallenge_cooldown_days: int = DEFAULT_RECHALLENGE_COOLDOWN_DAYS

    def validate(self) -> None:
        validate_count_strict(self.challenge_range, "challenge_range", minimum=1)
        validate_count_strict(self.response_deadline_days, "response_deadline_days")
        validate_count_strict(
            self.max_active_challenges, "max_active_challenges", minimum=1
        )
        validate_count_strict(
            self.rechallenge_cooldown_days, "rechallenge_cooldown_days"
        )


@dataclass
class KingOfCourtSettings(_SettingsDict):
    """King of the court settings.

    Attributes
    ----------
    points_to_win : int
        Game target.
    number_of_courts : int
        Courts running simultaneously.
    max_consecutive_wins : int or None
        Wins after which the king rotates off. None means unlimited.
    """

    points_to_win: int = DEFAULT_POINTS_TO_WIN
    number_of_courts: int = DEFAULT_NUMBER_OF_COURTS
    max_consecutive_wins: Optional[int] = None

    def validate(self) -> None:
        validate_count_strict(self.points_to_win, "points_to_win", minimum=1)
        validate_count_strict(self.number_of_courts, "number_of_courts", minimum=1)
        validate_count_strict(
            self.max_consecutive_wins,
            "max_consecutive_wins",
            minimum=1,
            allow_none=True,
        )


@dataclass
class GenerationRequest:
    """Everything a generator needs for one call.

    Attributes
    ----------
    event_id : str
        Owning event.
    participants : list of Participant
        Entrants. Never mutated.
    settings : object or None
        Format settings. None uses the format defaults.
    event_type : str
        tournament, league or meetup.
    round_number : int
        Swiss round to generate.
    prior_matches : list of MatchStub
        Earlier matches (Swiss standings input).
    box_number, week_number : int or None
        Box league scope.
    preserve_order : bool
        Use the participant order as seeding (elimination).
    """

    event_id: str
    participants: List[Participant]
    settings: Any = None
    event_type: str = EVENT_TYPE_TOURNAMENT
    round_number: int = 1
    prior_matches: List[MatchStub] = field(default_factory=list)
    box_number: Optional[int] = None
    week_number: Optional[int] = None
    preserve_order: bool = False


SETTINGS_BY_FORMAT = {
    EventFormat.ROUND_ROBIN: RoundRobinSettings,
    EventFormat.SWISS: SwissSettings,
    EventFormat.ELIMINATION: EliminationSettings,
    EventFormat.FIXED_BOX: BoxSettings,
    EventFormat.ROTATING_BOX: BoxSettings,
    EventFormat.POOL: PoolPlaySettings,
    EventFormat.LADDER: LadderSettings,
    EventFormat.KING_OF_COURT: KingOfCourtSettings,
}


def settings_for_format(event_format, data: Optional[Dict[str, Any]] = None):
    """Build and validate the settings object for a format from a dict.

    Raises:
        InvalidConfigurationException: If a value is out of range
    """
    settings = SETTINGS_BY_FORMAT[EventFormat.parse(event_format)].from_dict(data)
    settings.validate()
    return settings
