"""Exceptions for use in Match Formats"""

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


# ========== Base Application Exception ==========


class MatchFormatsException(Exception):
    """Base exception for all Match Formats errors.

    All custom exceptions in the engine inherit from this class.
    This enables catching all engine-specific errors with a single except clause.
    """

    pass


# ========== Configuration Exceptions ==========


class ConfigurationException(MatchFormatsException):
    """Base exception for configuration-related errors."""

    pass


class InvalidConfigurationException(ConfigurationException):
    """Raised when format settings are malformed.

    Examples are negative counts, an unknown pairing method, or promotion
    plus relegation exceeding the field size.
    """

    pass


class InvalidParticipantCountException(ConfigurationException):
    """Raised when a format cannot run with the supplied number of entrants.

    Too few entrants for round robin, Swiss and elimination is reported
    through an empty result instead; this is for hard structural minimums
    such as a rotating box with fewer than four players.
    """

    pass


class PlayerCountMismatchException(ConfigurationException):
    """Raised when a side's member count does not match the format (singles vs doubles)."""

    pass


# ========== Pairing Exceptions ==========


class PairingException(MatchFormatsException):
    """Base exception for pairing-related errors."""

    pass


class DuplicatePairingException(PairingException):
    """Raised when the same pairing would be scheduled twice in one scope."""

    pass


class BracketStateException(PairingException):
    """Raised when a bracket operation conflicts with recorded results."""

    pass


# ========== Participant Exceptions ==========


class ParticipantException(MatchFormatsException):
    """Base exception for participant-related errors."""

    pass


class ParticipantNotFoundException(ParticipantException):
    """Raised when a requested participant does not exist."""

    pass


class DuplicateParticipantException(ParticipantException):
    """Raised when the same participant id is entered twice."""

    pass


# ========== Challenge Exceptions ==========


class ChallengeException(MatchFormatsException):
    """Base exception for ladder challenge errors."""

    pass


class InvalidChallengeException(ChallengeException):
    """Raised when a ladder challenge breaks the ladder rules."""

    pass


# ========== Validation Exceptions ==========


class ValidationException(MatchFormatsException):
    """Base exception for validation errors."""

    pass


class ValidationFailureException(ValidationException):
    """Raised when generated output breaks a correctness invariant.

    This always indicates an engine defect rather than bad input, and the
    output must not be persisted.

    Attributes:
        report: The validation report that failed, if available
    """

    def __init__(self, message: str, report=None):
        super().__init__(message)
        self.report = report


class BracketNotReadyException(ValidationException):
    """Raised when a medal bracket is requested before the pool stage is complete."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])
