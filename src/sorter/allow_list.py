from __future__ import annotations

from typing import Iterable, Iterator


class AllowList:
    """
    An ordered, duplicate-free list of user-defined names (projects or tags).
    """

    def __init__(self, title: str, items: Iterable[str] = ()):
        self.title = title
        self._items: list[str] = []
        for item in items:
            self.add(item)

    def add(self, value: str) -> bool:
        """Append a trimmed value. Returns False for blanks and duplicates."""
        value = value.strip()
        if not value or value in self._items:
            return False
        self._items.append(value)
        return True

    def remove(self, value: str) -> bool:
        if value not in self._items:
            return False
        self._items.remove(value)
        return True

    def as_list(self) -> list[str]:
        return list(self._items)

    def empty_message(self) -> str:
        return f"No {self.title.lower()} added yet."

    def __contains__(self, value: object) -> bool:
        return value in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"AllowList({self.title!r}, {self._items!r})"
