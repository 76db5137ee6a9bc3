"""Match Formats - match generation and standings for racket sport events.

Generators turn a field of participants into unstored match stubs for
round robin, Swiss, elimination, box league and pool play events.
Ladders and king of the court are driven one match at a time. Standings
and promotion/relegation are computed from completed matches.
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

__version__ = "0.1.0"
