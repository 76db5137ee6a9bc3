"""Canonical match identifiers.

A canonical id is {eventType}_{eventId}_{scopeKey}_{sortedParticipantIds}.
The scope key is the pool or box key, extended with a round or leg suffix
where the same two sides may legitimately meet more than once. Identical
inputs always yield identical ids, so a caller retrying a failed write
converges on the same documents instead of duplicating them.

Bracket matches are identified by their bracket position instead of their
sides, because later-round sides are unknown when the bracket is built.
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

import re
from typing import Iterable, List, Optional

from matchformats.exceptions import DuplicatePairingException
from matchformats.models.event_format import EventFormat
from matchformats.models.match import MatchStub

_NON_KEY_CHARS = re.compile(r"[^a-z0-9]+")


def normalize_pool_key(pool_key: str) -> str:
    """Turn a pool name such as "Pool A" into "pool-a"."""
    return _NON_KEY_CHARS.sub("-", pool_key.strip().lower()).strip("-")


class MatchIdentity:
    """Builds and assigns canonical match ids."""

    SEPARATOR = "_"

    @staticmethod
    def build(
        event_type: str,
        event_id: str,
        scope_key: str,
        participant_ids: Iterable[str] = (),
    ) -> str:
        """Join the id segments, sorting participant ids.

        Args:
            event_type: tournament, league or meetup
            event_id: Owning event id
            scope_key: Pool, box, round or bracket key
            participant_ids: Side ids in any order

        Returns:
            The canonical id
        """
        parts = [event_type, event_id, scope_key]
        parts.extend(sorted(participant_ids))
        return MatchIdentity.SEPARATOR.join(parts)

    @staticmethod
    def scope_key(match: MatchStub) -> str:
        """Pool, box or format key for a match, with its disambiguating suffix."""
        if match.bracket_match_id:
            return f"{match.stage or 'bracket'}-{match.bracket_match_id.lower()}"

        if match.pool_key:
            key = normalize_pool_key(match.pool_key)
        elif match.box_number is not None:
            key = f"box{match.box_number}"
            if match.week_number is not None:
                key += f"-w{match.week_number}"
        else:
            key = match.format.value.replace("_", "-")

        if match.format in (
            EventFormat.SWISS,
            EventFormat.ROTATING_BOX,
            EventFormat.LADDER,
        ):
            key += f"-r{match.round_number}"
        elif match.format is EventFormat.KING_OF_COURT:
            key += f"-c{match.court_number or 1}-m{match.match_number}"
        if match.leg > 1:
            key += f"-leg{match.leg}"
        return key

    @classmethod
    def for_match(cls, match: MatchStub) -> str:
        """Canonical id for a generated match."""
        participant_ids = () if match.bracket_match_id else match.participant_ids
        return cls.build(
            match.event_type, match.event_id, cls.scope_key(match), participant_ids
        )

    @staticmethod
    def round_key(round_number: int, leg: Optional[int] = None) -> str:
        """Key used to group a round's matches for one atomic write."""
        if leg and leg > 1:
            return f"r{round_number}-leg{leg}"
        return f"r{round_number}"

    @classmethod
    def assign(cls, matches: List[MatchStub]) -> List[MatchStub]:
        """Set match_id on freshly generated stubs.

        Raises:
            DuplicatePairingException: If two stubs map to the same id
        """
        seen = set()
        for match in matches:
            match_id = cls.for_match(match)
            if match_id in seen:
                raise DuplicatePairingException(
                    f"Generated schedule contains {match_id} twice"
                )
            seen.add(match_id)
            match.match_id = match_id
        return matches
