"""Shared utilities for Match Formats."""

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

import logging
import os
from typing import Optional

from matchformats.constants import DEFAULT_LOG_LEVEL, LOG_FORMAT, LOG_LEVEL_ENV_VAR

_ROOT_LOGGER_NAME = "matchformats"


def _configure_root_logger() -> logging.Logger:
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        level_name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
        root.setLevel(getattr(logging, level_name, logging.WARNING))
    return root


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Return a logger for name under the package root logger.

    The root handler is installed once, on first use. Its level is read from
    the MATCHFORMATS_LOG_LEVEL environment variable.

    Args:
        name: Usually __name__ of the calling module
        level: Optional explicit level for this logger only

    Returns:
        The configured logger
    """
    _configure_root_logger()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def rating_sort_key(participant) -> tuple:
    """Sort key placing rated entrants first, highest rating first, ties by id."""
    rating = participant.rating
    return (rating is None, -(rating or 0.0), participant.id)


def average_rating(ratings) -> Optional[float]:
    """Average of the non-None ratings, or None when nothing is rated."""
    rated = [r for r in ratings if r is not None]
    if not rated:
        return None
    return sum(rated) / len(rated)
