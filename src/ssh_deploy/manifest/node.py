"""Read-only view over a decoded JSON manifest."""

from __future__ import annotations

from typing import Any, Callable, Iterator, Optional, Tuple


class ManifestNode:
    """
    Wraps one value of a decoded JSON document.

    Lookups never raise: descending into a missing key, or into anything that
    is not an object, yields ``None`` so callers can bail out in one place.
    """

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"ManifestNode({self.value!r})"

    @property
    def is_object(self) -> bool:
        return isinstance(self.value, dict)

    def child(self, key: str) -> Optional["ManifestNode"]:
        if not self.is_object or key not in self.value:
            return None
        return ManifestNode(self.value[key])

    def navigate(self, *path: str) -> Optional["ManifestNode"]:
        node: Optional[ManifestNode] = self
        for key in path:
            if node is None:
                return None
            node = node.child(key)
        return node

    def items(self) -> Iterator[Tuple[str, "ManifestNode"]]:
        """Object members in document order; nothing for non-objects."""
        if not self.is_object:
            return
        for key, value in self.value.items():
            yield key, ManifestNode(value)

    def first(self) -> Optional[Tuple[str, "ManifestNode"]]:
        return next(self.items(), None)

    def find(self, predicate: Callable[[str], bool]) -> Optional[Tuple[str, "ManifestNode"]]:
        for key, node in self.items():
            if predicate(key):
                return key, node
        return None

    def as_text(self) -> str:
        return "" if self.value is None else str(self.value)
