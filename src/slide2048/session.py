# session.py
# Per-session locking for hosts that serve several games at once.

import logging
import random
import threading
import time
import uuid
from typing import Callable, Dict, Optional, Tuple, Union

from .core import DIRECTION
from .engine import GridEngine
from .models import GameSnapshot, SavedGame, TurnResult
from .scores import BestScoreTracker

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 1000
DEFAULT_IDLE_TIMEOUT = 3600.0  # seconds

Clock = Callable[[], float]


class GameSession:
    """A GridEngine plus its best score, every access serialised by one lock."""

    def __init__(self, engine: GridEngine, best: Optional[BestScoreTracker] = None, clock: Clock = time.monotonic):
        self.engine = engine
        self.best = best or BestScoreTracker()
        self.best.report(engine.score)
        self.engine.add_score_listener(self.best.report)
        self._lock = threading.Lock()
        self._clock = clock
        self.last_used = clock()

    def _touch(self) -> None:
        self.last_used = self._clock()

    def move(self, direction: Union[DIRECTION, str]) -> Tuple[TurnResult, GameSnapshot]:
        with self._lock:
            self._touch()
            result = self.engine.play_turn(direction)
            return result, self.engine.snapshot()

    def restart(self, size: Optional[int] = None, win_target: Optional[int] = None) -> GameSnapshot:
        with self._lock:
            self._touch()
            self.engine.reset(size, win_target)
            return self.engine.snapshot()

    def snapshot(self) -> GameSnapshot:
        with self._lock:
            self._touch()
            return self.engine.snapshot()

    def save(self) -> SavedGame:
        with self._lock:
            self._touch()
            return self.engine.to_saved(self.best.best)


class SessionRegistry:
    """
    Creates, looks up and drops sessions by id.

    Sessions unused for ``idle_timeout`` seconds are dropped whenever a new one
    is opened. When ``max_sessions`` are still open after that, the least
    recently used session makes room for the new one.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        clock: Clock = time.monotonic,
    ):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1.")
        # Seeds for new engines; a fixed seed makes a whole registry reproducible.
        self._seeds = random.Random(seed)
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()
        self.max_sessions = max_sessions
        self.idle_timeout = idle_timeout
        self._clock = clock

    def _next_rng(self) -> random.Random:
        return random.Random(self._seeds.getrandbits(64))

    def _evict(self) -> None:
        now = self._clock()
        idle = [game_id for game_id, s in self._sessions.items() if now - s.last_used > self.idle_timeout]
        for game_id in idle:
            del self._sessions[game_id]
            logger.info("Evicted idle session %s", game_id)
        while len(self._sessions) >= self.max_sessions:
            oldest = min(self._sessions, key=lambda game_id: self._sessions[game_id].last_used)
            del self._sessions[oldest]
            logger.warning("Session limit %d reached, evicted %s", self.max_sessions, oldest)

    def _add(self, session: GameSession) -> str:
        self._evict()
        game_id = uuid.uuid4().hex
        self._sessions[game_id] = session
        logger.info("Opened session %s", game_id)
        return game_id

    def create(self, size: int, win_target: int) -> Tuple[str, GameSession]:
        with self._lock:
            engine = GridEngine(size=size, win_target=win_target, rng=self._next_rng())
            session = GameSession(engine, clock=self._clock)
            return self._add(session), session

    def load(self, saved: SavedGame) -> Tuple[str, GameSession]:
        with self._lock:
            engine = GridEngine.from_saved(saved, rng=self._next_rng())
            session = GameSession(engine, BestScoreTracker(saved.best_score), clock=self._clock)
            return self._add(session), session

    def get(self, game_id: str) -> GameSession:
        """
        Raises:
            KeyError: If no session has this id.
        """
        with self._lock:
            return self._sessions[game_id]

    def drop(self, game_id: str) -> None:
        with self._lock:
            del self._sessions[game_id]
        logger.info("Closed session %s", game_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
