# scores.py
# Best-score bookkeeping at the storage boundary. Storage itself belongs to the host.

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def sanitize_score(value: Any) -> int:
    """
    Validates a stored score value.
    Args:
        value: Raw stored value (int, numeric string, None, or garbage).
    Returns:
        int: The score as a non-negative integer, or 0 if it is missing, non-numeric or negative.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        parsed = int(str(value).strip())
    except ValueError:
        logger.warning("Discarding corrupt score value %r", value)
        return 0
    return parsed if parsed >= 0 else 0


class BestScoreTracker:
    """
    Keeps the best score seen in this process and hands improvements to ``persist``.

    A failing ``persist`` never interrupts play: the error is logged and the
    in-memory best score is kept for the rest of the session.
    """

    def __init__(self, initial: Any = None, persist: Optional[Callable[[int], None]] = None):
        self.best = sanitize_score(initial)
        self._persist = persist

    def report(self, score: int) -> bool:
        """Records the current score. Returns True if it is a new best."""
        if score <= self.best:
            return False
        self.best = score
        if self._persist is not None:
            try:
                self._persist(self.best)
            except Exception:
                logger.error("Unable to save best score %d", self.best, exc_info=True)
        return True
