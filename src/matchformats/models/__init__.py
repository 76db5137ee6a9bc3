"""Data model for Match Formats."""

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

from matchformats.models.event_format import EventFormat
from matchformats.models.match import GameScore, MatchStub
from matchformats.models.pairing_history import PairingHistory
from matchformats.models.participant import Participant, make_doubles_side
from matchformats.models.round_data import (
    GenerationResult,
    GenerationStatus,
    Pairing,
    PairingWarning,
    Round,
)
from matchformats.models.settings import (
    BoxSettings,
    EliminationSettings,
    GenerationRequest,
    KingOfCourtSettings,
    LadderSettings,
    SETTINGS_BY_FORMAT,
    PoolPlaySettings,
    RoundRobinSettings,
    SwissSettings,
    settings_for_format,
)
from matchformats.models.standing import StandingRow

__all__ = [
    "BoxSettings",
    "EliminationSettings",
    "EventFormat",
    "GameScore",
    "GenerationRequest",
    "GenerationResult",
    "GenerationStatus",
    "KingOfCourtSettings",
    "LadderSettings",
    "MatchStub",
    "Pairing",
    "PairingHistory",
    "PairingWarning",
    "Participant",
    "PoolPlaySettings",
    "Round",
    "RoundRobinSettings",
    "StandingRow",
    "SETTINGS_BY_FORMAT",
    "SwissSettings",
    "make_doubles_side",
    "settings_for_format",
]
