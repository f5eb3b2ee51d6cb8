from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class EditHistory(Generic[T]):
    """
    Linear undo timeline of snapshots.

    ``commit`` is the only way forward and always throws away whatever lies
    after the current index, so states undone before a new edit cannot come
    back. There is no redo.
    """

    def __init__(self, limit: Optional[int] = None) -> None:
        if limit is not None and limit < 1:
            raise ValueError("limit must be >= 1")
        self._limit = limit
        self._snapshots: List[T] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def index(self) -> int:
        return self._index

    @property
    def snapshots(self) -> List[T]:
        return list(self._snapshots)

    @property
    def current(self) -> Optional[T]:
        if self._index < 0:
            return None
        return self._snapshots[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    def load(self, snapshot: T) -> None:
        self._snapshots = [snapshot]
        self._index = 0

    def clear(self) -> None:
        self._snapshots = []
        self._index = -1

    def commit(self, snapshot: T) -> None:
        del self._snapshots[self._index + 1:]
        self._snapshots.append(snapshot)
        if self._limit is not None and len(self._snapshots) > self._limit:
            del self._snapshots[: len(self._snapshots) - self._limit]
        self._index = len(self._snapshots) - 1

    def undo(self) -> Optional[T]:
        if self._index > 0:
            self._index -= 1
        return self.current
