# core/state.py
from __future__ import annotations
import copy
from dataclasses import asdict, dataclass
from typing import Any, Callable, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")

# key under which toasts wait in the signed session until the next page
FLASH_KEY = "_toasts"
TOAST_KINDS = ("success", "error", "info")


@dataclass
class Toast:
    kind: str
    message: str


class Toasts:
    """Transient notifications for the current view."""

    def __init__(self, items: Optional[List[Toast]] = None):
        self.items: List[Toast] = list(items or [])

    def success(self, message: str) -> None:
        self.items.append(Toast("success", message))

    def error(self, message: str) -> None:
        self.items.append(Toast("error", message))

    def info(self, message: str) -> None:
        self.items.append(Toast("info", message))

    def extend(self, other: "Toasts") -> None:
        self.items.extend(other.items)

    def __iter__(self) -> Iterator[Toast]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def as_list(self) -> List[dict]:
        return [asdict(t) for t in self.items]

    @classmethod
    def from_list(cls, data: Any) -> "Toasts":
        if not isinstance(data, list):
            return cls()
        return cls([
            Toast(d["kind"], str(d["message"]))
            for d in data if isinstance(d, dict)
            and d.get("kind") in TOAST_KINDS and "message" in d
        ])


class OptimisticList(Generic[T]):
    """
    A list that can be changed ahead of the server's answer.

    apply() snapshots the current items before mutating them; rollback()
    restores that snapshot and commit() forgets it.
    """

    def __init__(self, items: Optional[List[T]] = None):
        self.items: List[T] = list(items or [])
        self._snapshot: Optional[List[T]] = None

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, i: int) -> T:
        return self.items[i]

    def replace_all(self, items: List[T]) -> None:
        self.items = list(items)
        self._snapshot = None

    def apply(self, mutate: Callable[[List[T]], Optional[List[T]]]) -> None:
        self._snapshot = copy.deepcopy(self.items)
        result = mutate(self.items)
        if result is not None:
            self.items = list(result)

    def commit(self) -> None:
        self._snapshot = None

    def rollback(self) -> None:
        if self._snapshot is not None:
            self.items = self._snapshot
            self._snapshot = None

    def find(self, predicate: Callable[[T], bool]) -> Optional[T]:
        return next((x for x in self.items if predicate(x)), None)

    def index_of(self, predicate: Callable[[T], bool]) -> int:
        for i, x in enumerate(self.items):
            if predicate(x):
                return i
        return -1
