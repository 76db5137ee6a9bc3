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

from typing import Dict, List, Literal, Optional, Tuple

PairingMethod = Literal["adjacent", "slide"]
AdvancementRule = Literal["top_1", "top_2", "top_n_plus_best"]
SeedingMethod = Literal["snake", "balanced"]
SlotName = Literal["sideA", "sideB"]

# Ids of the participants on one side of a match
MemberIds = Tuple[str, ...]
# Unordered pair of participant ids, stored sorted
PairKey = Tuple[str, str]
# Index pairing produced by the circle method (None marks the bye slot)
IndexPairing = Tuple[Optional[int], Optional[int]]
# All index pairings for one round
IndexRound = List[IndexPairing]
# Participant id -> ids already played
OpponentMap = Dict[str, List[str]]

#  LocalWords:  IndexPairing IndexRound
