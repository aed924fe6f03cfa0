"""Fixed-capacity containers backing the parser's stacks and text buffers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


class BoundsError(Exception):
    """Base for container capacity violations."""


class CapacityError(BoundsError):
    """Raised when an append or push would exceed a container's capacity."""


class UnderflowError(BoundsError):
    """Raised when popping from an empty container."""


class BoundedText:
    """Text accumulator with a hard capacity.

    Storage is allocated once; appends past the capacity are rejected
    with CapacityError and leave the existing contents untouched.
    """

    def __init__(self, capacity: int) -> None:
        self.capacity: Final = capacity
        self._chars: list[str] = [""] * capacity
        self._length = 0

    def append(self, char: str) -> None:
        if self._length >= self.capacity:
            raise CapacityError(
                f"text buffer full ({self.capacity} characters)"
            )
        self._chars[self._length] = char
        self._length += 1

    def clear(self) -> None:
        self._length = 0

    @property
    def text(self) -> str:
        return "".join(self._chars[: self._length])

    def __len__(self) -> int:
        return self._length

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"BoundedText({self.text!r}, capacity={self.capacity})"


class BoundedStack[T]:
    """LIFO stack that refuses to grow past its capacity."""

    def __init__(self, capacity: int) -> None:
        self.capacity: Final = capacity
        self._items: list[T] = []

    def push(self, item: T) -> None:
        if len(self._items) >= self.capacity:
            raise CapacityError(f"stack full ({self.capacity} entries)")
        self._items.append(item)

    def pop(self) -> T:
        if not self._items:
            raise UnderflowError("pop from empty stack")
        return self._items.pop()

    def clear(self) -> None:
        self._items.clear()

    def items(self) -> tuple[T, ...]:
        """Returns the stack contents, bottom first."""
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)


@dataclass(frozen=True)
class NestingFrame:
    """Name and value buffers for one level of object/array nesting."""

    name: BoundedText
    value: BoundedText

    def clear(self) -> None:
        self.name.clear()
        self.value.clear()


class NestingStack:
    """
    Preallocated frames addressed by a depth cursor.

    Frame 0 belongs to the top level, so at most ``depth - 1`` pushes are
    accepted. Pushing clears the name of the newly active frame; values
    are left alone until the parser starts reading one.
    """

    def __init__(
        self, depth: int, name_capacity: int, value_capacity: int
    ) -> None:
        self._frames: Final = tuple(
            NestingFrame(
                BoundedText(name_capacity), BoundedText(value_capacity)
            )
            for _ in range(depth)
        )
        self._depth = 0

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def active(self) -> NestingFrame:
        return self._frames[self._depth]

    def push(self) -> None:
        if self._depth + 1 >= len(self._frames):
            raise CapacityError(
                f"nesting too deep ({len(self._frames)} levels)"
            )
        self._depth += 1
        self.active.name.clear()

    def pop(self) -> None:
        if self._depth == 0:
            raise UnderflowError("nesting stack already at top level")
        self._depth -= 1

    def reset(self) -> None:
        for frame in self._frames:
            frame.clear()
        self._depth = 0

    def __len__(self) -> int:
        return len(self._frames)
