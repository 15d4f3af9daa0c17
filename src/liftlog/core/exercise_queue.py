"""
Ordered, session-local exercise queue.

Each entry wraps an Exercise with a queue id minted from a counter that
never rewinds, so ids stay unique for the lifetime of the queue even when
entries are removed or the queue is cleared between sessions.
"""

import itertools
import logging

from .errors import InvariantViolation
from .models import Exercise, QueuedExercise

logger = logging.getLogger(__name__)


class ExerciseQueue:
    """Queue of exercises with array-move reordering."""

    def __init__(self) -> None:
        self._items: list[QueuedExercise] = []
        self._counter = itertools.count(1)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __contains__(self, queue_id: object) -> bool:
        return any(item.queue_id == queue_id for item in self._items)

    @property
    def items(self) -> tuple[QueuedExercise, ...]:
        return tuple(self._items)

    def _mint_id(self, exercise: Exercise) -> str:
        return f"{exercise.id}-{next(self._counter)}"

    def append(self, exercise: Exercise) -> QueuedExercise:
        """Wrap ``exercise`` with a fresh queue id and append it."""
        item = QueuedExercise(queue_id=self._mint_id(exercise), exercise=exercise)
        self._items.append(item)
        return item

    def index_of(self, queue_id: str) -> int:
        """
        Position of ``queue_id`` in the queue.

        Raises:
            InvariantViolation: If the id is not queued
        """
        for i, item in enumerate(self._items):
            if item.queue_id == queue_id:
                return i
        logger.critical("Unknown queue id %r (queue: %s)", queue_id,
                        [item.queue_id for item in self._items])
        raise InvariantViolation(f"Unknown queue id: {queue_id!r}")

    def get(self, queue_id: str) -> QueuedExercise:
        return self._items[self.index_of(queue_id)]

    def move(self, queue_id: str, new_position: int) -> None:
        """
        Move one entry to ``new_position``, shifting the others.

        The position is clamped into range so a known id never fails.
        """
        old = self.index_of(queue_id)
        new = max(0, min(new_position, len(self._items) - 1))
        if old == new:
            return
        item = self._items.pop(old)
        self._items.insert(new, item)

    def remove(self, queue_id: str) -> QueuedExercise:
        return self._items.pop(self.index_of(queue_id))

    def clear(self) -> None:
        self._items.clear()
