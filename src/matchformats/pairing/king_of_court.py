"""King of the court.

Each court has a king who stays on while they keep winning. Challengers
come from a single queue shared by every court, ordered by rating at the
start. The loser of each game goes to the back of the queue. With
max_consecutive_wins set, a king who reaches the limit also leaves the
court and the next two in the queue take over.

State is immutable; every operation returns a new KingOfCourtState.
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

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from matchformats.constants import EVENT_TYPE_MEETUP, MIN_PARTICIPANTS, STATUS_IN_PROGRESS
from matchformats.exceptions import (
    InvalidConfigurationException,
    InvalidParticipantCountException,
    PairingException,
    ParticipantNotFoundException,
)
from matchformats.models.event_format import EventFormat
from matchformats.models.match import GameScore, MatchStub
from matchformats.models.participant import Participant
from matchformats.models.settings import KingOfCourtSettings
from matchformats.tournament.match_identity import MatchIdentity
from matchformats.utils import rating_sort_key, setup_logger
from matchformats.utils.validation import validate_unique_ids_strict

logger = setup_logger(__name__)


@dataclass(frozen=True)
class KingPlayer:
    """Running totals for one participant."""

    participant: Participant
    games_played: int = 0
    games_won: int = 0
    points_scored: int = 0
    consecutive_wins: int = 0

    @property
    def id(self) -> str:
        return self.participant.id

    @property
    def win_rate(self) -> float:
        return self.games_won / self.games_played if self.games_played else 0.0

    @property
    def points_per_game(self) -> float:
        return self.points_scored / self.games_played if self.games_played else 0.0


@dataclass(frozen=True)
class CourtState:
    """Who is on a court. king_id is kept between games."""

    court_number: int
    king_id: Optional[str] = None
    challenger_id: Optional[str] = None
    match_in_progress: bool = False
    match_number: int = 0


@dataclass(frozen=True)
class KingOfCourtState:
    """Whole session state.

    Attributes
    ----------
    event_id : str
        Owning event.
    event_type : str
        tournament, league or meetup.
    players : tuple of KingPlayer
        Totals for every participant, in initial queue order.
    courts : tuple of CourtState
        One entry per court, court 1 first.
    queue : tuple of str
        Waiting participant ids, head first.
    total_matches_played : int
        Matches started so far; the next match number is this plus one.
    """

    event_id: str
    event_type: str
    players: Tuple[KingPlayer, ...]
    courts: Tuple[CourtState, ...]
    queue: Tuple[str, ...]
    total_matches_played: int = 0

    def player(self, participant_id: str) -> KingPlayer:
        for player in self.players:
            if player.id == participant_id:
                return player
        raise ParticipantNotFoundException(f"{participant_id} is not in this session")

    def court(self, court_number: int) -> CourtState:
        for court in self.courts:
            if court.court_number == court_number:
                return court
        raise InvalidConfigurationException(f"No court {court_number}")

    def _with_court(self, court: CourtState, **changes) -> "KingOfCourtState":
        courts = tuple(
            court if c.court_number == court.court_number else c for c in self.courts
        )
        return replace(self, courts=courts, **changes)

    def _with_players(self, *updated: KingPlayer) -> Tuple[KingPlayer, ...]:
        by_id = {p.id: p for p in updated}
        return tuple(by_id.get(p.id, p) for p in self.players)


@dataclass
class KingOfCourtStanding:
    player: KingPlayer
    rank: int


def initialize_king_of_court(
    event_id: str,
    participants: Sequence[Participant],
    settings: Optional[KingOfCourtSettings] = None,
    event_type: str = EVENT_TYPE_MEETUP,
) -> KingOfCourtState:
    """Queue everyone by rating with every court empty.

    Raises:
        InvalidParticipantCountException: With fewer than two participants
    """
    settings = settings or KingOfCourtSettings()
    settings.validate()
    validate_unique_ids_strict(participants)
    if len(participants) < MIN_PARTICIPANTS:
        raise InvalidParticipantCountException(
            f"King of the court needs at least {MIN_PARTICIPANTS} participants"
        )

    ordered = sorted(participants, key=rating_sort_key)
    if len(ordered) < settings.number_of_courts * 2:
        logger.warning(
            "%s participants cannot fill %s courts",
            len(ordered),
            settings.number_of_courts,
        )
    return KingOfCourtState(
        event_id=event_id,
        event_type=event_type,
        players=tuple(KingPlayer(p) for p in ordered),
        courts=tuple(
            CourtState(court_number=n)
            for n in range(1, settings.number_of_courts + 1)
        ),
        queue=tuple(p.id for p in ordered),
    )


def start_next_match(
    state: KingOfCourtState, court_number: int
) -> Tuple[KingOfCourtState, Optional[MatchStub]]:
    """Put the next challenger on a court.

    A court with a king takes one participant from the head of the queue;
    an empty court takes two, the first becoming king. Returns the state
    unchanged and no match when the court is busy or the queue is short.
    """
    court = state.court(court_number)
    if court.match_in_progress:
        return state, None

    needed = 1 if court.king_id else 2
    if len(state.queue) < needed:
        logger.debug("Court %s idle: %s waiting", court_number, len(state.queue))
        return state, None

    if court.king_id:
        king_id, challenger_id = court.king_id, state.queue[0]
    else:
        king_id, challenger_id = state.queue[0], state.queue[1]

    match_number = state.total_matches_played + 1
    match = MatchStub(
        event_id=state.event_id,
        format=EventFormat.KING_OF_COURT,
        side_a=state.player(king_id).participant,
        side_b=state.player(challenger_id).participant,
        round_number=1,
        match_number=match_number,
        event_type=state.event_type,
        status=STATUS_IN_PROGRESS,
        court_number=court_number,
    )
    match.match_id = MatchIdentity.for_match(match)

    new_court = replace(
        court,
        king_id=king_id,
        challenger_id=challenger_id,
        match_in_progress=True,
        match_number=match_number,
    )
    new_state = state._with_court(
        new_court,
        queue=state.queue[needed:],
        total_matches_played=match_number,
    )
    return new_state, match


def record_match_result(
    state: KingOfCourtState,
    court_number: int,
    winner_id: str,
    scores: Sequence[GameScore] = (),
    settings: Optional[KingOfCourtSettings] = None,
) -> KingOfCourtState:
    """Apply a finished game on a court.

    Scores are from the king's side (side A).

    Raises:
        PairingException: If the court has no match in progress
        ParticipantNotFoundException: If the winner is not on the court
    """
    settings = settings or KingOfCourtSettings()
    court = state.court(court_number)
    if not court.match_in_progress:
        raise PairingException(f"No match in progress on court {court_number}")
    if winner_id not in (court.king_id, court.challenger_id):
        raise ParticipantNotFoundException(
            f"{winner_id} is not playing on court {court_number}"
        )

    king_points = sum(g.side_a for g in scores)
    challenger_points = sum(g.side_b for g in scores)
    if scores and max(king_points, challenger_points) < settings.points_to_win:
        logger.warning(
            "Court %s game ended below %s points",
            court_number,
            settings.points_to_win,
        )

    king = state.player(court.king_id)
    challenger = state.player(court.challenger_id)
    king = replace(
        king,
        games_played=king.games_played + 1,
        points_scored=king.points_scored + king_points,
    )
    challenger = replace(
        challenger,
        games_played=challenger.games_played + 1,
        points_scored=challenger.points_scored + challenger_points,
    )

    if winner_id == king.id:
        winner = replace(
            king, games_won=king.games_won + 1, consecutive_wins=king.consecutive_wins + 1
        )
        loser = replace(challenger, consecutive_wins=0)
    else:
        winner = replace(challenger, games_won=challenger.games_won + 1, consecutive_wins=1)
        loser = replace(king, consecutive_wins=0)

    limit = settings.max_consecutive_wins
    if limit and winner.consecutive_wins >= limit:
        logger.info("%s stepped down after %s straight wins", winner.id, limit)
        winner = replace(winner, consecutive_wins=0)
        cleared = replace(
            court, king_id=None, challenger_id=None, match_in_progress=False
        )
        return state._with_court(
            cleared,
            players=state._with_players(winner, loser),
            queue=state.queue + (winner.id, loser.id),
        )

    crowned = replace(
        court, king_id=winner.id, challenger_id=None, match_in_progress=False
    )
    return state._with_court(
        crowned,
        players=state._with_players(winner, loser),
        queue=state.queue + (loser.id,),
    )


def calculate_king_of_court_standings(
    state: KingOfCourtState,
) -> List[KingOfCourtStanding]:
    """Rank by games won, then win rate, then points per game, then id."""
    ordered = sorted(
        state.players,
        key=lambda p: (-p.games_won, -p.win_rate, -p.points_per_game, p.id),
    )
    return [KingOfCourtStanding(player=p, rank=i) for i, p in enumerate(ordered, start=1)]


def get_queue(state: KingOfCourtState) -> List[KingPlayer]:
    return [state.player(pid) for pid in state.queue]


def get_active_courts(state: KingOfCourtState) -> List[CourtState]:
    return [c for c in state.courts if c.match_in_progress]


def is_session_idle(state: KingOfCourtState) -> bool:
    return not get_active_courts(state)


class KingOfCourtScheduler:
    """Keeps a session's state between calls."""

    def __init__(
        self,
        event_id: str,
        participants: Sequence[Participant],
        settings: Optional[KingOfCourtSettings] = None,
        event_type: str = EVENT_TYPE_MEETUP,
    ):
        self.settings = settings or KingOfCourtSettings()
        self.state = initialize_king_of_court(
            event_id, participants, self.settings, event_type
        )
        self.matches: List[MatchStub] = []

    def start(self, court_number: int) -> Optional[MatchStub]:
        self.state, match = start_next_match(self.state, court_number)
        if match is not None:
            self.matches.append(match)
        return match

    def start_all_courts(self) -> List[MatchStub]:
        """Start a match on every idle court that can be filled."""
        started = []
        for court in self.state.courts:
            match = self.start(court.court_number)
            if match is not None:
                started.append(match)
        return started

    def record(
        self, court_number: int, winner_id: str, scores: Sequence[GameScore] = ()
    ) -> KingOfCourtState:
        self.state = record_match_result(
            self.state, court_number, winner_id, scores, self.settings
        )
        return self.state

    def standings(self) -> List[KingOfCourtStanding]:
        return calculate_king_of_court_standings(self.state)

    def queue(self) -> List[KingPlayer]:
        return get_queue(self.state)

    def history_by_court(self) -> Dict[int, List[MatchStub]]:
        grouped: Dict[int, List[MatchStub]] = {}
        for match in self.matches:
            grouped.setdefault(match.court_number, []).append(match)
        return grouped
