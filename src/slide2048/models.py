# models.py
# Result types returned by GridEngine and the pydantic models for snapshots and saved games.

from dataclasses import dataclass
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from .core import GameProgressState, validate_tiles, validate_win_tile

SAVE_FORMAT_VERSION = 1


@dataclass(frozen=True)
class MoveResult:
    """Outcome of sliding the grid in one direction."""
    changed: bool
    score_delta: int


@dataclass(frozen=True)
class TurnResult:
    """Outcome of a full turn: move, spawn, state check."""
    changed: bool
    score_delta: int
    state: GameProgressState
    spawned: Optional[Tuple[int, int, int]] = None
    just_won: bool = False
    just_lost: bool = False


class GameSnapshot(BaseModel):
    """Read-only view of a game for renderers."""
    board: List[List[int]] = Field(..., description="The N x N game board, represented as a list of lists.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    progress: GameProgressState = Field(
        ...,
        description="Current progress state of the game (IN_PROGRESS, GAME_WON, GAME_OVER)."
    )
    win_tile: int = Field(..., gt=0, description="The tile value required to win this game instance.")
    board_size: int = Field(..., gt=1, description="The dimension N of the N x N board.")
    max_tile: int = Field(..., ge=0, description="Largest tile currently on the board.")


class SavedGame(BaseModel):
    """Everything needed to resume a game exactly where it stopped."""
    version: int = Field(default=SAVE_FORMAT_VERSION, description="Save format version.")
    board: List[List[int]] = Field(..., description="The N x N game board.")
    score: int = Field(..., ge=0)
    win_tile: int = Field(..., gt=0)
    progress: GameProgressState = GameProgressState.IN_PROGRESS
    won: bool = Field(default=False, description="Whether the win was already announced.")
    best_score: int = Field(default=0, ge=0)

    @field_validator("version")
    @classmethod
    def _known_version(cls, value: int) -> int:
        if value != SAVE_FORMAT_VERSION:
            raise ValueError(f"Unsupported save format version {value}.")
        return value

    @field_validator("board")
    @classmethod
    def _valid_board(cls, board: List[List[int]]) -> List[List[int]]:
        return validate_tiles(board)

    @field_validator("win_tile")
    @classmethod
    def _valid_win_tile(cls, value: int) -> int:
        return validate_win_tile(value)

    @model_validator(mode="after")
    def _best_covers_score(self) -> "SavedGame":
        if self.best_score < self.score:
            self.best_score = self.score
        return self

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, text: str) -> "SavedGame":
        return cls.model_validate_json(text)
