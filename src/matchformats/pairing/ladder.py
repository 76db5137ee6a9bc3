"""Ladder challenges.

Participants hold numbered rungs, rung 1 at the top. A participant may
challenge someone a few rungs above them. If the challenger wins they take
the defender's rung and everyone from the defender down to the
challenger's old rung moves down one. If the defender wins nothing moves.

All functions are pure: they return new entries and challenges rather
than changing the ones passed in. LadderChallengeManager keeps the
current state for callers that want an object.
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

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from matchformats.constants import (
    ACTIVE_CHALLENGE_STATUSES,
    CHALLENGE_ACCEPTED,
    CHALLENGE_COMPLETED,
    CHALLENGE_DECLINED,
    CHALLENGE_EXPIRED,
    CHALLENGE_PENDING,
    EVENT_TYPE_LEAGUE,
)
from matchformats.exceptions import (
    InvalidChallengeException,
    ParticipantNotFoundException,
)
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub
from matchformats.models.participant import Participant
from matchformats.models.settings import LadderSettings
from matchformats.tournament.match_identity import MatchIdentity
from matchformats.utils import rating_sort_key, setup_logger
from matchformats.utils.validation import ValidationResult, validate_unique_ids_strict

logger = setup_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LadderEntry:
    """A participant's position on the ladder."""

    participant: Participant
    rank: int
    wins: int = 0
    losses: int = 0

    @property
    def id(self) -> str:
        return self.participant.id

    @property
    def name(self) -> str:
        return self.participant.name

    def to_dict(self) -> Dict[str, object]:
        return {
            "participant": self.participant.to_dict(),
            "rank": self.rank,
            "wins": self.wins,
            "losses": self.losses,
        }


@dataclass(frozen=True)
class LadderChallenge:
    """A challenge from a lower rung to a higher one.

    Attributes
    ----------
    challenge_id : str
        Stable id, "challenge-<sequence>".
    sequence : int
        1-based order in which challenges were issued. Used as the
        round number of the challenge match so match ids stay unique.
    challenger_id, defender_id : str
        The two participants.
    challenger_rank, defender_rank : int
        Rungs when the challenge was issued.
    status : str
        pending, accepted, declined, expired or completed.
    created_at, response_deadline : datetime
        Issue time and the time the defender must respond by.
    match_id : str or None
        Id of the challenge match once created.
    """

    challenge_id: str
    sequence: int
    challenger_id: str
    defender_id: str
    challenger_rank: int
    defender_rank: int
    status: str
    created_at: datetime
    response_deadline: datetime
    match_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_CHALLENGE_STATUSES

    def involves_pair(self, first_id: str, second_id: str) -> bool:
        return {self.challenger_id, self.defender_id} == {first_id, second_id}


@dataclass(frozen=True)
class RankAdjustment:
    participant_id: str
    old_rank: int
    new_rank: int


@dataclass
class LadderResult:
    """Outcome of processing a challenge match."""

    entries: List[LadderEntry]
    challenge: LadderChallenge
    adjustments: List[RankAdjustment] = field(default_factory=list)

    @property
    def challenger_won(self) -> bool:
        return bool(self.adjustments)


def initialize_ladder_rankings(participants: Sequence[Participant]) -> List[LadderEntry]:
    """Rank a new ladder by rating, unrated entrants last, ties by id."""
    validate_unique_ids_strict(participants)
    ordered = sorted(participants, key=rating_sort_key)
    return [LadderEntry(participant=p, rank=i) for i, p in enumerate(ordered, start=1)]


def get_ladder_standings(entries: Sequence[LadderEntry]) -> List[LadderEntry]:
    return sorted(entries, key=lambda e: (e.rank, e.id))


def _find_entry(entries: Sequence[LadderEntry], participant_id: str) -> LadderEntry:
    for entry in entries:
        if entry.id == participant_id:
            return entry
    raise ParticipantNotFoundException(f"{participant_id} is not on the ladder")


def validate_challenge(
    challenger: LadderEntry,
    defender: LadderEntry,
    settings: LadderSettings,
    existing_challenges: Sequence[LadderChallenge],
    now: Optional[datetime] = None,
) -> ValidationResult:
    """Check whether a challenge may be issued.

    Rules are applied in order and the first failure is returned:
    no self challenge, defender above and within range, challenger under
    the active limit, defender without a pending challenge, cooldown
    elapsed since the pair's last completed challenge.
    """
    now = now or _utcnow()

    if challenger.id == defender.id:
        return ValidationResult(False, "You can't challenge yourself")

    if challenger.rank <= defender.rank:
        return ValidationResult(False, "You can only challenge players ranked above you")

    if challenger.rank - defender.rank > settings.challenge_range:
        return ValidationResult(
            False,
            f"You can only challenge players within {settings.challenge_range} "
            "ranks above you",
        )

    active = [
        c
        for c in existing_challenges
        if c.challenger_id == challenger.id and c.is_active
    ]
    if len(active) >= settings.max_active_challenges:
        return ValidationResult(
            False,
            f"You already have {settings.max_active_challenges} active challenges",
        )

    if any(
        c.defender_id == defender.id and c.status == CHALLENGE_PENDING
        for c in existing_challenges
    ):
        return ValidationResult(False, "This player already has a pending challenge")

    cooldown_start = now - relativedelta(days=settings.rechallenge_cooldown_days)
    if any(
        c.status == CHALLENGE_COMPLETED
        and c.involves_pair(challenger.id, defender.id)
        and c.created_at > cooldown_start
        for c in existing_challenges
    ):
        return ValidationResult(
            False,
            f"You must wait {settings.rechallenge_cooldown_days} days before "
            "rechallenging this player",
        )

    return ValidationResult(True)


def get_valid_challenge_targets(
    challenger: LadderEntry,
    entries: Sequence[LadderEntry],
    settings: LadderSettings,
    existing_challenges: Sequence[LadderChallenge],
    now: Optional[datetime] = None,
) -> List[LadderEntry]:
    """Entries the challenger may challenge right now, top rung first."""
    return [
        target
        for target in get_ladder_standings(entries)
        if validate_challenge(challenger, target, settings, existing_challenges, now)
    ]


def create_challenge(
    challenger: LadderEntry,
    defender: LadderEntry,
    settings: LadderSettings,
    existing_challenges: Sequence[LadderChallenge] = (),
    now: Optional[datetime] = None,
) -> LadderChallenge:
    """Issue a pending challenge.

    Raises:
        InvalidChallengeException: If validate_challenge rejects it
    """
    now = now or _utcnow()
    result = validate_challenge(challenger, defender, settings, existing_challenges, now)
    if not result:
        raise InvalidChallengeException(result.error_message)

    sequence = max((c.sequence for c in existing_challenges), default=0) + 1
    challenge = LadderChallenge(
        challenge_id=f"challenge-{sequence}",
        sequence=sequence,
        challenger_id=challenger.id,
        defender_id=defender.id,
        challenger_rank=challenger.rank,
        defender_rank=defender.rank,
        status=CHALLENGE_PENDING,
        created_at=now,
        response_deadline=now + relativedelta(days=settings.response_deadline_days),
    )
    logger.info(
        "%s (#%s) challenged %s (#%s)",
        challenger.id,
        challenger.rank,
        defender.id,
        defender.rank,
    )
    return challenge


def respond_to_challenge(challenge: LadderChallenge, accept: bool) -> LadderChallenge:
    """Accept or decline a pending challenge.

    Raises:
        InvalidChallengeException: If the challenge is not pending
    """
    if challenge.status != CHALLENGE_PENDING:
        raise InvalidChallengeException(
            f"{challenge.challenge_id} is {challenge.status}, not pending"
        )
    return replace(
        challenge, status=CHALLENGE_ACCEPTED if accept else CHALLENGE_DECLINED
    )


def expire_old_challenges(
    challenges: Sequence[LadderChallenge], now: Optional[datetime] = None
) -> List[LadderChallenge]:
    """Mark pending challenges past their response deadline as expired."""
    now = now or _utcnow()
    expired = []
    for challenge in challenges:
        if challenge.status == CHALLENGE_PENDING and challenge.response_deadline < now:
            logger.debug("Challenge %s expired", challenge.challenge_id)
            challenge = replace(challenge, status=CHALLENGE_EXPIRED)
        expired.append(challenge)
    return expired


def create_challenge_match(
    challenge: LadderChallenge,
    entries: Sequence[LadderEntry],
    event_id: str,
    event_type: str = EVENT_TYPE_LEAGUE,
) -> MatchStub:
    """Match stub for a challenge, challenger on side A.

    Raises:
        ParticipantNotFoundException: If either side left the ladder
    """
    challenger = _find_entry(entries, challenge.challenger_id)
    defender = _find_entry(entries, challenge.defender_id)
    match = MatchStub(
        event_id=event_id,
        format=EventFormat.LADDER,
        side_a=challenger.participant,
        side_b=defender.participant,
        round_number=challenge.sequence,
        match_number=1,
        event_type=event_type,
    )
    match.match_id = MatchIdentity.for_match(match)
    return match


def process_ladder_result(
    entries: Sequence[LadderEntry],
    challenge: LadderChallenge,
    winner_id: str,
) -> LadderResult:
    """Apply a challenge result to the ladder.

    Raises:
        InvalidChallengeException: If the challenge is already finished or
            the winner is not one of its two sides
    """
    if challenge.status not in ACTIVE_CHALLENGE_STATUSES:
        raise InvalidChallengeException(
            f"{challenge.challenge_id} is {challenge.status} and cannot take a result"
        )
    if winner_id not in (challenge.challenger_id, challenge.defender_id):
        raise InvalidChallengeException(
            f"{winner_id} is not part of {challenge.challenge_id}"
        )

    challenger = _find_entry(entries, challenge.challenger_id)
    defender = _find_entry(entries, challenge.defender_id)
    loser_id = defender.id if winner_id == challenger.id else challenger.id
    challenger_won = winner_id == challenger.id

    adjustments = []
    updated = []
    for entry in entries:
        if entry.id == winner_id:
            entry = replace(entry, wins=entry.wins + 1)
        elif entry.id == loser_id:
            entry = replace(entry, losses=entry.losses + 1)

        if challenger_won:
            if entry.id == challenger.id:
                adjustments.append(
                    RankAdjustment(entry.id, challenger.rank, defender.rank)
                )
                entry = replace(entry, rank=defender.rank)
            elif defender.rank <= entry.rank < challenger.rank:
                adjustments.append(RankAdjustment(entry.id, entry.rank, entry.rank + 1))
                entry = replace(entry, rank=entry.rank + 1)
        updated.append(entry)

    logger.info(
        "Challenge %s: %s beat %s%s",
        challenge.challenge_id,
        winner_id,
        loser_id,
        f", {len(adjustments)} rank change(s)" if adjustments else "",
    )
    return LadderResult(
        entries=get_ladder_standings(updated),
        challenge=replace(challenge, status=CHALLENGE_COMPLETED),
        adjustments=adjustments,
    )


class LadderChallengeManager:
    """Holds a ladder and its challenges between calls."""

    def __init__(
        self,
        event_id: str,
        participants: Sequence[Participant] = (),
        settings: Optional[LadderSettings] = None,
        event_type: str = EVENT_TYPE_LEAGUE,
    ):
        self.event_id = event_id
        self.event_type = event_type
        self.settings = settings or LadderSettings()
        self.settings.validate()
        self.entries: List[LadderEntry] = initialize_ladder_rankings(participants)
        self.challenges: List[LadderChallenge] = []

    def entry(self, participant_id: str) -> LadderEntry:
        return _find_entry(self.entries, participant_id)

    def challenge(self, challenge_id: str) -> LadderChallenge:
        for challenge in self.challenges:
            if challenge.challenge_id == challenge_id:
                return challenge
        raise InvalidChallengeException(f"Unknown challenge {challenge_id}")

    def _store(self, challenge: LadderChallenge) -> LadderChallenge:
        self.challenges = [
            challenge if c.challenge_id == challenge.challenge_id else c
            for c in self.challenges
        ]
        return challenge

    def issue_challenge(
        self, challenger_id: str, defender_id: str, now: Optional[datetime] = None
    ) -> Tuple[LadderChallenge, MatchStub]:
        """Create a challenge and its match stub."""
        challenge = create_challenge(
            self.entry(challenger_id),
            self.entry(defender_id),
            self.settings,
            self.challenges,
            now,
        )
        match = create_challenge_match(
            challenge, self.entries, self.event_id, self.event_type
        )
        challenge = replace(challenge, match_id=match.match_id)
        self.challenges.append(challenge)
        return challenge, match

    def respond(self, challenge_id: str, accept: bool) -> LadderChallenge:
        return self._store(respond_to_challenge(self.challenge(challenge_id), accept))

    def record_result(self, challenge_id: str, winner_id: str) -> LadderResult:
        result = process_ladder_result(
            self.entries, self.challenge(challenge_id), winner_id
        )
        self.entries = result.entries
        self._store(result.challenge)
        return result

    def expire(self, now: Optional[datetime] = None) -> List[LadderChallenge]:
        """Expire overdue challenges, returning the ones that changed."""
        before = {c.challenge_id: c.status for c in self.challenges}
        self.challenges = expire_old_challenges(self.challenges, now)
        return [c for c in self.challenges if before[c.challenge_id] != c.status]

    def valid_targets(
        self, challenger_id: str, now: Optional[datetime] = None
    ) -> List[LadderEntry]:
        return get_valid_challenge_targets(
            self.entry(challenger_id), self.entries, self.settings, self.challenges, now
        )

    def standings(self) -> List[LadderEntry]:
        return get_ladder_standings(self.entries)
