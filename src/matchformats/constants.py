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

# --- Constants ---

# Event formats (tag values used by EventFormat)
FORMAT_ROUND_ROBIN = "round_robin"
FORMAT_SWISS = "swiss"
FORMAT_ELIMINATION = "elimination"
FORMAT_FIXED_BOX = "fixed_box"
FORMAT_ROTATING_BOX = "rotating_box"
FORMAT_POOL = "pool"
FORMAT_LADDER = "ladder"
FORMAT_KING_OF_COURT = "king_of_court"

# Event types used as the first segment of canonical match ids
EVENT_TYPE_TOURNAMENT = "tournament"
EVENT_TYPE_LEAGUE = "league"
EVENT_TYPE_MEETUP = "meetup"

# Match statuses
STATUS_SCHEDULED = "scheduled"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_FORFEIT = "forfeit"
STATUS_BYE = "bye"
STATUS_CANCELLED = "cancelled"

# Statuses that count a pool match as finished
FINISHED_STATUSES = (STATUS_COMPLETED, STATUS_FORFEIT, STATUS_BYE)

# Minimum entrants before a schedule is produced
MIN_PARTICIPANTS = 2
MIN_ROTATING_BOX_PLAYERS = 4

# Doubles teams have exactly two members
DOUBLES_TEAM_SIZE = 2

# Round robin defaults
DEFAULT_ROUND_ROBIN_ROUNDS = 1

# Swiss defaults
PAIRING_ADJACENT = "adjacent"
PAIRING_SLIDE = "slide"
PAIRING_METHODS = (PAIRING_ADJACENT, PAIRING_SLIDE)
DEFAULT_SWISS_ROUNDS = 4
DEFAULT_PAIRING_METHOD = PAIRING_SLIDE

# Recommended Swiss round counts: (max participants, rounds)
SWISS_ROUND_TABLE = ((4, 2), (8, 3), (16, 4), (32, 5), (64, 6))
SWISS_ROUNDS_ABOVE_TABLE = 7

# Pairing warning codes
WARNING_UNRESOLVED_PAIRING = "unresolved_pairing"
WARNING_POOL_IMBALANCE = "pool_imbalance"
WARNING_POOL_SIZE = "pool_size"

# Box league defaults
DEFAULT_BOX_SIZE = 4
DEFAULT_BOX_WEEKS = 8
DEFAULT_PROMOTION_COUNT = 1
DEFAULT_RELEGATION_COUNT = 1

# Pool play defaults
DEFAULT_POOL_SIZE = 4
ADVANCEMENT_TOP_1 = "top_1"
ADVANCEMENT_TOP_2 = "top_2"
ADVANCEMENT_TOP_N_PLUS_BEST = "top_n_plus_best"
ADVANCEMENT_RULES = (
    ADVANCEMENT_TOP_1,
    ADVANCEMENT_TOP_2,
    ADVANCEMENT_TOP_N_PLUS_BEST,
)
SEEDING_SNAKE = "snake"
SEEDING_BALANCED = "balanced"
SEEDING_METHODS = (SEEDING_SNAKE, SEEDING_BALANCED)
PLATE_SINGLE_ELIM = "single_elim"
PLATE_ROUND_ROBIN = "round_robin"
PLATE_FORMATS = (PLATE_SINGLE_ELIM, PLATE_ROUND_ROBIN)
BRONZE_YES = "yes"
BRONZE_NO = "no"
MIN_RECOMMENDED_POOL_SIZE = 3
MAX_RECOMMENDED_POOL_SIZE = 6
# Largest tolerated gap between average pool ratings
POOL_RATING_TOLERANCE = 0.5

# Tiebreaker Keys
TB_WINS = "wins"
TB_HEAD_TO_HEAD = "head_to_head"
TB_POINT_DIFF = "point_diff"
TB_POINTS_SCORED = "points_scored"
TB_BUCHHOLZ = "buchholz"

TIEBREAK_NAMES = {
    TB_WINS: "Wins",
    TB_HEAD_TO_HEAD: "Head to Head",
    TB_POINT_DIFF: "Point Differential",
    TB_POINTS_SCORED: "Points Scored",
    TB_BUCHHOLZ: "Buchholz",
}

DEFAULT_TIEBREAK_ORDER = [TB_WINS, TB_POINT_DIFF, TB_POINTS_SCORED]
SWISS_TIEBREAK_ORDER = [TB_WINS, TB_BUCHHOLZ, TB_POINT_DIFF, TB_POINTS_SCORED]
DEFAULT_POOL_TIEBREAK_ORDER = [
    TB_WINS,
    TB_HEAD_TO_HEAD,
    TB_POINT_DIFF,
    TB_POINTS_SCORED,
]

# Elimination slot names
SIDE_A = "sideA"
SIDE_B = "sideB"

# Bracket stages
STAGE_POOL = "pool"
STAGE_MEDAL = "medal"
STAGE_PLATE = "plate"

# Ladder defaults
DEFAULT_CHALLENGE_RANGE = 3
DEFAULT_RESPONSE_DEADLINE_DAYS = 7
DEFAULT_MAX_ACTIVE_CHALLENGES = 2
DEFAULT_RECHALLENGE_COOLDOWN_DAYS = 14

CHALLENGE_PENDING = "pending"
CHALLENGE_ACCEPTED = "accepted"
CHALLENGE_DECLINED = "declined"
CHALLENGE_COMPLETED = "completed"
CHALLENGE_EXPIRED = "expired"
ACTIVE_CHALLENGE_STATUSES = (CHALLENGE_PENDING, CHALLENGE_ACCEPTED)

# King of the court defaults
DEFAULT_POINTS_TO_WIN = 11
DEFAULT_NUMBER_OF_COURTS = 1

# Logging
LOG_LEVEL_ENV_VAR = "MATCHFORMATS_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
