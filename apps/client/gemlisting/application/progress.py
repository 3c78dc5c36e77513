from dataclasses import dataclass
from typing import Dict, Iterable, Optional


@dataclass(frozen=True)
class SetProgress:
    key: str
    percent: int


@dataclass(frozen=True)
class RemoveProgress:
    keys: tuple


def reduce_progress(state: Dict[str, int], action) -> Dict[str, int]:
    """Return a new progress map; every update replaces the value at one key."""
    if isinstance(action, SetProgress):
        return {**state, action.key: max(0, min(100, int(action.percent)))}
    if isinstance(action, RemoveProgress):
        return {k: v for k, v in state.items() if k not in action.keys}
    raise TypeError(f"Unknown progress action: {action!r}")


class UploadProgressTracker:
    def __init__(self, listener=None):
        self._state: Dict[str, int] = {}
        self.listener = listener

    def dispatch(self, action) -> None:
        self._state = reduce_progress(self._state, action)
        if self.listener:
            self.listener(self.snapshot())

    def set(self, key: str, percent: int) -> None:
        self.dispatch(SetProgress(key, percent))

    def remove(self, keys: Iterable[str]) -> None:
        self.dispatch(RemoveProgress(tuple(keys)))

    def clear(self) -> None:
        self.remove(list(self._state))

    def get(self, key: str) -> Optional[int]:
        return self._state.get(key)

    def snapshot(self) -> Dict[str, int]:
        return dict(self._state)

    @property
    def overall(self) -> int:
        if not self._state:
            return 0
        return round(sum(self._state.values()) / len(self._state))
