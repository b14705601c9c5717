# config.py
# Game settings and difficulty levels. Bad values are replaced by defaults here,
# so GridEngine only ever sees a valid size and win target.

import logging
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .core import (
    DEFAULT_BOARD_SIZE,
    DEFAULT_WIN_TILE,
    MAX_BOARD_SIZE,
    MIN_BOARD_SIZE,
    is_power_of_two,
    validate_win_tile,
)

logger = logging.getLogger(__name__)

DIFFICULTIES: Dict[str, int] = {
    "easy": 256,
    "medium": 512,
    "hard": 1024,
    "classic": 2048,
}
DEFAULT_DIFFICULTY = "classic"


class GameSettings(BaseModel):
    """Settings for creating a new game."""
    size: int = Field(
        default=DEFAULT_BOARD_SIZE,
        ge=MIN_BOARD_SIZE,
        le=MAX_BOARD_SIZE,
        description="Size of the N x N game board (e.g., 4 for a 4x4 board)."
    )
    win_tile: int = Field(
        default=DEFAULT_WIN_TILE,
        gt=0,
        description="The tile value to achieve for winning the game (e.g., 2048)."
    )

    @field_validator("win_tile")
    @classmethod
    def _power_of_two(cls, value: int) -> int:
        return validate_win_tile(value)


def sanitize_win_target(value: Any) -> int:
    """
    Coerces a configured win target to a power of two of at least 4.
    Args:
        value: Raw value, e.g. from the environment or a request.
    Returns:
        int: The parsed target, or DEFAULT_WIN_TILE if it is missing or invalid.
    """
    try:
        target = int(str(value).strip())
    except (TypeError, ValueError):
        target = None
    if target is None or target < 4 or not is_power_of_two(target):
        if value not in (None, ""):
            logger.warning("Ignoring invalid win target %r, using %d", value, DEFAULT_WIN_TILE)
        return DEFAULT_WIN_TILE
    return target


def resolve_win_target(difficulty: Optional[str]) -> int:
    """Maps a difficulty name to its win target; unknown names fall back to the classic game."""
    if difficulty is None:
        return DIFFICULTIES[DEFAULT_DIFFICULTY]
    key = str(difficulty).strip().lower()
    if key not in DIFFICULTIES:
        logger.warning("Unknown difficulty %r, using %s", difficulty, DEFAULT_DIFFICULTY)
        return DIFFICULTIES[DEFAULT_DIFFICULTY]
    return DIFFICULTIES[key]


def _sanitize_size(value: Optional[str]) -> int:
    try:
        size = int(value) if value is not None else DEFAULT_BOARD_SIZE
    except ValueError:
        logger.warning("Ignoring invalid board size %r, using %d", value, DEFAULT_BOARD_SIZE)
        return DEFAULT_BOARD_SIZE
    if not MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE:
        logger.warning("Ignoring invalid board size %r, using %d", value, DEFAULT_BOARD_SIZE)
        return DEFAULT_BOARD_SIZE
    return size


def settings_from_env(environ: Optional[Dict[str, str]] = None) -> GameSettings:
    """
    Reads host defaults from SLIDE2048_SIZE, SLIDE2048_WIN_TILE and SLIDE2048_DIFFICULTY.
    An explicit win tile takes precedence over the difficulty name.
    """
    environ = os.environ if environ is None else environ
    size = _sanitize_size(environ.get("SLIDE2048_SIZE"))
    if environ.get("SLIDE2048_WIN_TILE"):
        win_tile = sanitize_win_target(environ["SLIDE2048_WIN_TILE"])
    else:
        win_tile = resolve_win_target(environ.get("SLIDE2048_DIFFICULTY"))
    return GameSettings(size=size, win_tile=win_tile)
