"""Undo history recorded around gestures.

Engine operations know nothing about history. A pointer drag calls
``move_point``/``enforce_locks_for_entity`` once per move event; wrapping the
drag in :meth:`GestureHistory.begin_gesture` / :meth:`GestureHistory.commit_gesture`
turns all of those intermediate updates into a single undo step.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Optional

from .config import get_engine_config
from .stage import Snapshot, Stage

logger = logging.getLogger(__name__)


class GestureHistory:
    def __init__(self, stage: Stage, limit: Optional[int] = None) -> None:
        self.stage = stage
        self.limit = get_engine_config().history_limit if limit is None else int(limit)
        self._past: Deque[Snapshot] = deque(maxlen=max(self.limit, 1))
        self._future: Deque[Snapshot] = deque(maxlen=max(self.limit, 1))
        self._gesture_start: Optional[Snapshot] = None

    @property
    def paused(self) -> bool:
        return self._gesture_start is not None

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    def _push(self, before: Snapshot) -> bool:
        if before == self.stage.snapshot():
            return False
        self._past.append(before)
        self._future.clear()
        return True

    def record(self, before: Snapshot) -> bool:
        """Record a discrete edit whose pre-edit state is ``before``."""

        if self.paused:
            return False
        return self._push(before)

    def begin_gesture(self) -> None:
        if self.paused:
            logger.debug("begin_gesture called while a gesture is open; keeping the first start")
            return
        self._gesture_start = self.stage.snapshot()

    def commit_gesture(self) -> bool:
        """Close the gesture; returns ``True`` when an undo step was recorded."""

        start = self._gesture_start
        if start is None:
            return False
        self._gesture_start = None
        recorded = self._push(start)
        logger.debug("Gesture committed (recorded=%s, depth=%d)", recorded, len(self._past))
        return recorded

    def undo(self) -> bool:
        if not self._past:
            return False
        self._future.append(self.stage.snapshot())
        self.stage.restore(self._past.pop())
        return True

    def redo(self) -> bool:
        if not self._future:
            return False
        self._past.append(self.stage.snapshot())
        self.stage.restore(self._future.pop())
        return True

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()
        self._gesture_start = None


__all__ = ["GestureHistory"]
