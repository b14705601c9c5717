# engine.py
# GridEngine: one game session's grid, score and progress, driven one turn at a time.

import logging
import random
from typing import Callable, List, Optional, Union

from . import core
from .core import DIRECTION, GameProgressState
from .models import GameSnapshot, MoveResult, SavedGame, TurnResult

logger = logging.getLogger(__name__)

ScoreListener = Callable[[int], None]


class GridEngine:
    """
    Owns the grid, score and progress state of a single game.

    The engine holds no global state and draws all randomness from the injected
    ``rng``, so two engines built with the same seed play out identically.
    It is not thread-safe: a host serving several callers must serialise access
    per engine (see session.GameSession).
    """

    def __init__(
        self,
        size: int = core.DEFAULT_BOARD_SIZE,
        win_target: int = core.DEFAULT_WIN_TILE,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ):
        self.rng = rng if rng is not None else random.Random(seed)
        self.size = size
        self.win_target = win_target
        self.grid: core.Board = []
        self.score = 0
        self.state = GameProgressState.IN_PROGRESS
        self.won = False
        self.move_count = 0
        self._score_listeners: List[ScoreListener] = []
        self.reset(size, win_target)

    # --- Lifecycle ---

    def reset(self, size: Optional[int] = None, win_target: Optional[int] = None) -> None:
        """
        Starts a new game: empty grid, score 0, IN_PROGRESS, then two random tiles.
        Args:
            size (Optional[int]): New board dimension, keeps the current one if None.
            win_target (Optional[int]): New win tile, keeps the current one if None.
        Raises:
            ValueError: If size or win_target is invalid. Nothing is changed in that case.
        """
        size = self.size if size is None else size
        win_target = core.validate_win_tile(self.win_target if win_target is None else win_target)
        grid = core.new_board(size)

        self.size = size
        self.win_target = win_target
        self.grid = grid
        self.score = 0
        self.state = GameProgressState.IN_PROGRESS
        self.won = False
        self.move_count = 0
        self.spawn_random_tile()
        self.spawn_random_tile()
        logger.info("New %dx%d game, win target %d", size, size, win_target)
        self._notify_score()

    @classmethod
    def from_saved(cls, saved: SavedGame, rng: Optional[random.Random] = None) -> "GridEngine":
        """
        Rebuilds an engine from a SavedGame without spawning any tile.

        The saved progress is only used for the sticky win flag; the state itself
        is recomputed from the board, so a stale progress value cannot freeze a
        playable board or keep a lost one open.
        """
        engine = cls.__new__(cls)
        engine.rng = rng if rng is not None else random.Random()
        engine.size = core.validate_board_size(len(saved.board))
        engine.win_target = core.validate_win_tile(saved.win_tile)
        engine.grid = core.copy_board(saved.board)
        engine.score = saved.score
        engine.won = (
            saved.won
            or saved.progress == GameProgressState.GAME_WON
            or core.check_for_win(saved.board, saved.win_tile)
        )
        engine.state = engine._settle_state()
        engine.move_count = 0
        engine._score_listeners = []
        return engine

    def to_saved(self, best_score: int = 0) -> SavedGame:
        return SavedGame(
            board=core.copy_board(self.grid),
            score=self.score,
            win_tile=self.win_target,
            progress=self.state,
            won=self.won,
            best_score=max(best_score, self.score),
        )

    # --- Grid Operations ---

    def attempt_move(self, direction: Union[DIRECTION, str]) -> MoveResult:
        """
        Slides every line toward ``direction`` and writes the result into the grid.

        The score is left untouched and no tile is spawned; play_turn does that.
        Once the game is lost the grid is frozen and the move is refused.
        Raises:
            ValueError: If direction is not one of the four directions.
        """
        direction = DIRECTION.parse(direction)
        if self.state == GameProgressState.GAME_OVER:
            logger.warning("Move %s refused: game is over", direction.name)
            return MoveResult(changed=False, score_delta=0)

        new_grid, score_delta, changed = core.process_move(self.grid, direction)
        for row_idx, row in enumerate(new_grid):
            self.grid[row_idx][:] = row
        logger.debug("Move %s: changed=%s, score_delta=%d", direction.name, changed, score_delta)
        return MoveResult(changed=changed, score_delta=score_delta)

    def spawn_random_tile(self) -> bool:
        """Places a 2 (90%) or 4 (10%) on a random empty cell. False if the grid is full."""
        return core.place_random_tile(self.grid, self.rng) is not None

    def evaluate_state(self) -> GameProgressState:
        return core.determine_game_status(self.grid, self.win_target)

    def _settle_state(self) -> GameProgressState:
        # Lost is decided by the grid alone; Won stays once it has been reached.
        evaluated = self.evaluate_state()
        if evaluated == GameProgressState.GAME_OVER:
            return evaluated
        if evaluated == GameProgressState.GAME_WON or self.won:
            return GameProgressState.GAME_WON
        return GameProgressState.IN_PROGRESS

    def play_turn(self, direction: Union[DIRECTION, str]) -> TurnResult:
        """
        Runs a full turn: move, and if anything moved, score, spawn and re-evaluate.

        A move that changes nothing is rejected without side effects. The win is
        announced once per game (``just_won``); afterwards the state stays GAME_WON
        and play continues until the grid is lost.
        Args:
            direction (DIRECTION): The direction to move; a direction name is also accepted.
        Returns:
            TurnResult: What happened this turn.
        """
        move = self.attempt_move(direction)
        if not move.changed:
            return TurnResult(changed=False, score_delta=0, state=self.state)

        self.move_count += 1
        self.score += move.score_delta
        spawned = core.place_random_tile(self.grid, self.rng)

        # The win is recorded even when the same turn also loses the game.
        just_won = not self.won and core.check_for_win(self.grid, self.win_target)
        if just_won:
            self.won = True
            logger.info("Reached %d after %d moves", self.win_target, self.move_count)
        self.state = self._settle_state()
        just_lost = self.state == GameProgressState.GAME_OVER
        if just_lost:
            logger.info("Game over after %d moves with score %d", self.move_count, self.score)

        # Listeners run last so a failing one cannot leave the turn half applied.
        if move.score_delta:
            self._notify_score()

        return TurnResult(
            changed=True,
            score_delta=move.score_delta,
            state=self.state,
            spawned=spawned,
            just_won=just_won,
            just_lost=just_lost,
        )

    # --- Read-only Views ---

    def max_tile(self) -> int:
        return core.max_tile(self.grid)

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            board=core.copy_board(self.grid),
            score=self.score,
            progress=self.state,
            win_tile=self.win_target,
            board_size=self.size,
            max_tile=self.max_tile(),
        )

    # --- Score Listeners ---

    def add_score_listener(self, listener: ScoreListener) -> None:
        """Registers a callback that receives the score every time it changes."""
        self._score_listeners.append(listener)

    def _notify_score(self) -> None:
        for listener in self._score_listeners:
            listener(self.score)
