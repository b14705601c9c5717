"""Sliding-tile 2048 game engine with an optional HTTP host (slide2048.api)."""

from .core import DIRECTION, GameProgressState
from .engine import GridEngine
from .models import GameSnapshot, MoveResult, SavedGame, TurnResult

__all__ = [
    "DIRECTION",
    "GameProgressState",
    "GridEngine",
    "GameSnapshot",
    "MoveResult",
    "SavedGame",
    "TurnResult",
]
