"""
Incremental JSON parser that consumes one character at a time.

Built for processes that receive JSON over a socket or message bus and
cannot afford to buffer whole documents. Every buffer and stack has a
fixed capacity, parsed elements are reported through optional callbacks
as soon as they complete, and malformed input is reported through an
error callback before the parser resets itself for the next document.
"""

import logging
import os
from collections import deque
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, IntEnum

from ._bounded import (
    BoundedStack,
    BoundsError,
    CapacityError,
    NestingStack,
    UnderflowError,
)

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

type Position = int

# Hook type definitions - each slot is independently optional
OnError = Callable[["ErrorKind", str, str], None] | None
OnObjectStart = Callable[[str], None] | None
OnObjectComplete = Callable[[str], None] | None
OnArrayStart = Callable[[str], None] | None
OnArrayComplete = Callable[[str], None] | None
OnString = Callable[[str, str], None] | None
OnInteger = Callable[[str, int], None] | None

# Stray characters before a document are dropped unless this is set
REPORT_DISCARD = "JSONEAT_REPORT_DISCARD" in os.environ

POOL_SIZE = 2

WHITESPACE = frozenset(" \t\r\n")
DIGITS = frozenset("0123456789")
SIGNS = frozenset("+-")
NAME_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_+"
)


def ascii_to_int(text: str) -> int:
    """
    Converts an optional sign followed by ASCII digits to an int.

    Parsing stops at the first non-digit; text without leading digits
    converts to 0, matching C's atoi.
    """
    pos = 0
    negative = False
    if text and text[0] in SIGNS:
        negative = text[0] == "-"
        pos = 1

    end = pos
    while end < len(text) and text[end] in DIGITS:
        end += 1

    if end == pos:
        return 0
    number = int(text[pos:end])
    return -number if negative else number


class ParseState(Enum):
    """Grammar positions of the character-level state machine."""

    NONE = "none"
    IN_OBJECT = "in_object"
    TO_NAME = "to_name"
    IN_NAME = "in_name"
    TO_COLUMN = "to_column"
    TO_VALUE = "to_value"
    IN_STRING = "in_string"
    IN_NUM = "in_num"
    IN_ARRAY = "in_array"
    OUT_VALUE = "out_value"


CONTAINER_STATES = frozenset({ParseState.IN_OBJECT, ParseState.IN_ARRAY})


class ErrorKind(IntEnum):
    """Closed set of conditions reported through the error hook."""

    NONE = 0
    DISCARD = 1
    NAME_TOO_LONG = 2
    VALUE_TOO_LONG = 3
    PARSE_OBJECT = 4
    PARSE_NAME = 5
    ILLEGAL_NAME_CHAR = 6
    PARSE_ASSIGNMENT = 7
    PARSE_VALUE = 8
    PARSE_ARRAY = 9
    INTERNAL = 10

    @property
    def label(self) -> str:
        return ERROR_LABELS[self]


ERROR_LABELS: dict[ErrorKind, str] = {
    ErrorKind.NONE: "none",
    ErrorKind.DISCARD: "discard",
    ErrorKind.NAME_TOO_LONG: "name too long",
    ErrorKind.VALUE_TOO_LONG: "value too long",
    ErrorKind.PARSE_OBJECT: "parsing object",
    ErrorKind.PARSE_NAME: "parsing name",
    ErrorKind.ILLEGAL_NAME_CHAR: "illegal name char",
    ErrorKind.PARSE_ASSIGNMENT: "parsing assignment",
    ErrorKind.PARSE_VALUE: "parsing value",
    ErrorKind.PARSE_ARRAY: "parsing array",
    ErrorKind.INTERNAL: "internal error",
}


class ParseError(Exception):
    """
    Signals malformed input inside the state machine.

    Never escapes StreamParser.feed: it is converted into an ErrorReport,
    handed to the error hook, and followed by a reset.
    """

    def __init__(self, kind: ErrorKind, detail: str = "") -> None:
        if not isinstance(kind, ErrorKind):
            raise TypeError("kind must be an ErrorKind")

        self.kind = kind
        self.detail = detail
        message = kind.label if not detail else f"{kind.label}: {detail}"
        super().__init__(message)


@dataclass(frozen=True)
class ErrorReport:
    """What the parser knew when it gave up on a document."""

    kind: ErrorKind
    label: str
    context: str
    position: Position

    def __str__(self) -> str:
        return (
            f"JSON error {int(self.kind)} ({self.label}) "
            f"@ {self.context!r}, char {self.position}"
        )


@dataclass(frozen=True)
class ParserConfig:
    """
    Capacity limits and leniency policy for one parser instance.

    Defaults reproduce the limits of the embedded gateway parser this
    library grew out of.
    """

    max_states: int = 10
    max_depth: int = 5
    max_name: int = 30
    max_value: int = 160
    error_history: int = 20
    report_discard: bool = REPORT_DISCARD

    def __post_init__(self) -> None:
        for name in (
            "max_states",
            "max_depth",
            "max_name",
            "max_value",
            "error_history",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an integer")
            if value < 1:
                raise ValueError(f"{name} must be positive, got {value}")
        if not isinstance(self.report_discard, bool):
            raise TypeError("report_discard must be a boolean")

    @property
    def max_passes(self) -> int:
        """Upper bound on dispatches of a single input character."""
        return self.max_states + 2


@dataclass
class Callbacks:
    """Registered hooks; a slot left as None is silently skipped."""

    on_error: OnError = None
    on_object_start: OnObjectStart = None
    on_object_complete: OnObjectComplete = None
    on_array_start: OnArrayStart = None
    on_array_complete: OnArrayComplete = None
    on_string: OnString = None
    on_integer: OnInteger = None


@dataclass(frozen=True)
class ParserSnapshot:
    """Observable parser state, comparable across instances."""

    state: ParseState
    saved_states: tuple[ParseState, ...]
    depth: int
    name: str
    value: str
    allow_comma: bool
    in_escape: bool
    history: str
    char_count: int


class StreamParser:
    """
    Character-at-a-time JSON state machine with callback output.

    Not safe for concurrent use; confine each instance to one thread.
    Hooks must not feed the instance that invoked them.
    """

    def __init__(self, config: ParserConfig | None = None) -> None:
        self.config = config if config is not None else ParserConfig()
        self.callbacks = Callbacks()
        self.last_error: ErrorReport | None = None

        self._states: BoundedStack[ParseState] = BoundedStack(
            self.config.max_states
        )
        self._nesting = NestingStack(
            self.config.max_depth,
            self.config.max_name,
            self.config.max_value,
        )
        self._history: deque[str] = deque(maxlen=self.config.error_history)
        self._handlers: dict[ParseState, Callable[[str], bool]] = {
            ParseState.NONE: self._eat_none,
            ParseState.IN_OBJECT: self._eat_in_object,
            ParseState.TO_NAME: self._eat_to_name,
            ParseState.IN_NAME: self._eat_in_name,
            ParseState.TO_COLUMN: self._eat_to_column,
            ParseState.TO_VALUE: self._eat_to_value,
            ParseState.IN_STRING: self._eat_in_string,
            ParseState.IN_NUM: self._eat_in_num,
            ParseState.IN_ARRAY: self._eat_in_array,
            ParseState.OUT_VALUE: self._eat_out_value,
        }
        self.reset()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Returns to the idle state with empty stacks and buffers."""
        self._state = ParseState.NONE
        self._states.clear()
        self._nesting.reset()
        self._history.clear()
        self._allow_comma = False
        self._in_escape = False
        self._char_count = 0

    def feed(self, char: str) -> None:
        """
        Consumes one character, firing any hooks it completes.

        Malformed input never raises here: it is reported through the
        error hook and the parser resets. Exceptions raised by hooks
        propagate to the caller.
        """
        if not isinstance(char, str) or len(char) != 1:
            raise TypeError(
                f"feed expects a single character, not {char!r}"
            )

        self._char_count += 1
        if char not in WHITESPACE:
            self._history.append(char)

        try:
            self._consume(char)
        except ParseError as exc:
            self._report(exc)

    def feed_text(self, text: Iterable[str]) -> None:
        for char in text:
            self.feed(char)

    def feed_bytes(self, data: bytes | bytearray | memoryview) -> None:
        """Feeds raw bytes, one code point per byte, as read off a socket."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"feed_bytes expects bytes, not {type(data).__name__}"
            )
        for byte in bytes(data):
            self.feed(chr(byte))

    def set_on_error(self, callback: OnError) -> None:
        self.callbacks.on_error = callback

    def set_on_object_start(self, callback: OnObjectStart) -> None:
        self.callbacks.on_object_start = callback

    def set_on_object_complete(self, callback: OnObjectComplete) -> None:
        self.callbacks.on_object_complete = callback

    def set_on_array_start(self, callback: OnArrayStart) -> None:
        self.callbacks.on_array_start = callback

    def set_on_array_complete(self, callback: OnArrayComplete) -> None:
        self.callbacks.on_array_complete = callback

    def set_on_string(self, callback: OnString) -> None:
        self.callbacks.on_string = callback

    def set_on_integer(self, callback: OnInteger) -> None:
        self.callbacks.on_integer = callback

    @property
    def state(self) -> ParseState:
        return self._state

    @property
    def depth(self) -> int:
        return self._nesting.depth

    @property
    def char_count(self) -> int:
        return self._char_count

    def snapshot(self) -> ParserSnapshot:
        frame = self._nesting.active
        return ParserSnapshot(
            state=self._state,
            saved_states=self._states.items(),
            depth=self._nesting.depth,
            name=frame.name.text,
            value=frame.value.text,
            allow_comma=self._allow_comma,
            in_escape=self._in_escape,
            history="".join(self._history),
            char_count=self._char_count,
        )

    # ------------------------------------------------------------------
    # Error reporting
    # ------------------------------------------------------------------

    def _report(self, exc: ParseError) -> None:
        report = ErrorReport(
            kind=exc.kind,
            label=exc.kind.label,
            context="".join(self._history),
            position=self._char_count,
        )
        self.last_error = report
        logger.warning("%s %s", report, exc.detail)

        try:
            if self.callbacks.on_error is not None:
                self.callbacks.on_error(
                    report.kind, report.label, report.context
                )
        finally:
            self.reset()

    # ------------------------------------------------------------------
    # State and stack management
    # ------------------------------------------------------------------

    def _consume(self, char: str) -> None:
        """Dispatches char until a handler stops asking to see it again."""
        for _ in range(self.config.max_passes):
            previous = self._state
            again = self._handlers[self._state](char)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "eat %r: %s -> %s (saved=%d, depth=%d)",
                    char,
                    previous.name,
                    self._state.name,
                    len(self._states),
                    self._nesting.depth,
                )
            if not again:
                return
        raise ParseError(
            ErrorKind.INTERNAL, "character reprocessed too often"
        )

    def _set_state(self, state: ParseState) -> None:
        self._state = state

        if state is ParseState.IN_NAME:
            self._nesting.active.name.clear()
        elif state is ParseState.TO_VALUE:
            self._nesting.active.value.clear()
        elif state in CONTAINER_STATES:
            self._push_frame()

    def _to_state(self, state: ParseState) -> None:
        """Saves the current state, then enters the given one."""
        try:
            self._states.push(self._state)
        except CapacityError as exc:
            raise ParseError(ErrorKind.INTERNAL, str(exc)) from exc
        self._set_state(state)

    def _up_state(self) -> None:
        """Returns to the most recently saved state."""
        try:
            self._state = self._states.pop()
        except UnderflowError as exc:
            raise ParseError(ErrorKind.INTERNAL, str(exc)) from exc

        if self._state in CONTAINER_STATES:
            try:
                self._nesting.pop()
            except UnderflowError as exc:
                raise ParseError(ErrorKind.INTERNAL, str(exc)) from exc
            self._allow_comma = True
        elif self._state is ParseState.NONE:
            self._nesting.active.name.clear()

    def _push_frame(self) -> None:
        try:
            self._nesting.push()
        except CapacityError as exc:
            raise ParseError(ErrorKind.INTERNAL, str(exc)) from exc

    def _append_name(self, char: str) -> None:
        try:
            self._nesting.active.name.append(char)
        except CapacityError as exc:
            raise ParseError(ErrorKind.NAME_TOO_LONG, str(exc)) from exc

    def _append_value(self, char: str) -> None:
        try:
            self._nesting.active.value.append(char)
        except CapacityError as exc:
            raise ParseError(ErrorKind.VALUE_TOO_LONG, str(exc)) from exc

    @property
    def _name(self) -> str:
        return self._nesting.active.name.text

    # ------------------------------------------------------------------
    # Per-state handlers; each returns True to see the character again
    # ------------------------------------------------------------------

    def _eat_none(self, char: str) -> bool:
        if char == "{":
            if self.callbacks.on_object_start is not None:
                self.callbacks.on_object_start(self._name)
            self._to_state(ParseState.IN_OBJECT)
            self._to_state(ParseState.TO_NAME)
            self._allow_comma = False
        elif char == '"':
            self._to_state(ParseState.IN_NAME)
        elif char not in WHITESPACE and self.config.report_discard:
            raise ParseError(ErrorKind.DISCARD, f"stray {char!r}")
        return False

    def _eat_in_object(self, char: str) -> bool:
        if char == "}":
            if self.callbacks.on_object_complete is not None:
                self.callbacks.on_object_complete(self._name)
            self._up_state()
        else:
            self._eat_member_start(char, ErrorKind.PARSE_OBJECT)
        return False

    def _eat_in_array(self, char: str) -> bool:
        if char == "]":
            if self.callbacks.on_array_complete is not None:
                self.callbacks.on_array_complete(self._name)
            self._up_state()
        else:
            self._eat_member_start(char, ErrorKind.PARSE_ARRAY)
        return False

    def _eat_member_start(self, char: str, kind: ErrorKind) -> None:
        """
        Handles a member following a nested container that just closed.

        Closing the nested container popped depth back to this container's
        own level, so the member frame is re-opened before the next name.
        """
        if char == '"':
            self._push_frame()
            self._to_state(ParseState.IN_NAME)
        elif char == "," and self._allow_comma:
            self._allow_comma = False
            self._push_frame()
            self._to_state(ParseState.TO_NAME)
        elif char not in WHITESPACE:
            raise ParseError(kind, f"unexpected {char!r}")

    def _eat_to_name(self, char: str) -> bool:
        if char == '"':
            self._set_state(ParseState.IN_NAME)
        elif char not in WHITESPACE:
            raise ParseError(
                ErrorKind.PARSE_NAME, f"expected '\"', got {char!r}"
            )
        return False

    def _eat_in_name(self, char: str) -> bool:
        if char == '"':
            self._set_state(ParseState.TO_COLUMN)
        elif char in NAME_CHARS:
            self._append_name(char)
        else:
            raise ParseError(ErrorKind.ILLEGAL_NAME_CHAR, f"{char!r} in name")
        return False

    def _eat_to_column(self, char: str) -> bool:
        if char == ":":
            self._set_state(ParseState.TO_VALUE)
        elif char not in WHITESPACE:
            raise ParseError(
                ErrorKind.PARSE_ASSIGNMENT, f"expected ':', got {char!r}"
            )
        return False

    def _eat_to_value(self, char: str) -> bool:
        if char == '"':
            self._in_escape = False
            self._set_state(ParseState.IN_STRING)
        elif char in DIGITS or char in SIGNS:
            self._append_value(char)
            self._set_state(ParseState.IN_NUM)
        elif char == "[":
            if self.callbacks.on_array_start is not None:
                self.callbacks.on_array_start(self._name)
            self._set_state(ParseState.IN_ARRAY)
            self._to_state(ParseState.TO_NAME)
        elif char == "{":
            if self.callbacks.on_object_start is not None:
                self.callbacks.on_object_start(self._name)
            self._set_state(ParseState.IN_OBJECT)
            self._to_state(ParseState.TO_NAME)
        elif char not in WHITESPACE:
            raise ParseError(ErrorKind.PARSE_VALUE, f"unexpected {char!r}")
        return False

    def _eat_in_string(self, char: str) -> bool:
        if self._in_escape:
            # Escapes are kept verbatim, not decoded
            self._in_escape = False
            self._append_value("\\")
            self._append_value(char)
        elif char == "\\":
            self._in_escape = True
        elif char == '"':
            if self.callbacks.on_string is not None:
                self.callbacks.on_string(
                    self._name, self._nesting.active.value.text
                )
            self._set_state(ParseState.OUT_VALUE)
        else:
            self._append_value(char)
        return False

    def _eat_in_num(self, char: str) -> bool:
        if char in DIGITS:
            self._append_value(char)
            return False

        if self.callbacks.on_integer is not None:
            self.callbacks.on_integer(
                self._name, ascii_to_int(self._nesting.active.value.text)
            )
        self._set_state(ParseState.OUT_VALUE)
        return True

    def _eat_out_value(self, char: str) -> bool:
        if char in WHITESPACE:
            return False
        if char == ",":
            self._to_state(ParseState.TO_NAME)
            return False
        self._up_state()
        return True


class ParserPool:
    """
    Fixed set of independent parsers with a movable selection cursor.

    A consumer parsing a sub-document embedded in an outer message can
    switch to the next parser, feed the inner document, and switch back
    without disturbing the outer parse. Parsers can also be addressed
    directly by index.
    """

    def __init__(
        self, size: int = POOL_SIZE, config: ParserConfig | None = None
    ) -> None:
        if not isinstance(size, int) or isinstance(size, bool):
            raise TypeError("size must be an integer")
        if size < 1:
            raise ValueError(f"pool size must be positive, got {size}")

        self._parsers = tuple(StreamParser(config) for _ in range(size))
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._parsers)

    def __getitem__(self, index: int) -> StreamParser:
        return self._parsers[index]

    def __iter__(self) -> Iterator[StreamParser]:
        return iter(self._parsers)

    @property
    def selected_index(self) -> int:
        return self._cursor

    @property
    def selected(self) -> StreamParser:
        return self._parsers[self._cursor]

    def get_selected_index(self) -> int:
        return self._cursor

    def select_next(self) -> bool:
        """Moves the cursor forward; returns False if already at the end."""
        if self._cursor >= len(self._parsers) - 1:
            logger.error("parser pool overflow (at index %d)", self._cursor)
            return False
        self._cursor += 1
        return True

    def select_previous(self) -> bool:
        """Moves the cursor back; returns False if already at the start."""
        if self._cursor <= 0:
            logger.error("parser pool underflow (at index %d)", self._cursor)
            return False
        self._cursor -= 1
        return True

    @contextmanager
    def nested(self) -> Iterator[StreamParser]:
        """
        Selects the next parser for the duration of the block.

        The previous selection is restored on exit, even on error.
        Raises IndexError when no further parser is available.
        """
        if not self.select_next():
            raise IndexError("no parser left in pool for nested parsing")
        try:
            yield self.selected
        finally:
            self.select_previous()

    # Forwarders acting on the selected parser

    def reset(self) -> None:
        self.selected.reset()

    def feed(self, char: str) -> None:
        self.selected.feed(char)

    def feed_text(self, text: Iterable[str]) -> None:
        self.selected.feed_text(text)

    def feed_bytes(self, data: bytes | bytearray | memoryview) -> None:
        self.selected.feed_bytes(data)

    def set_on_error(self, callback: OnError) -> None:
        self.selected.set_on_error(callback)

    def set_on_object_start(self, callback: OnObjectStart) -> None:
        self.selected.set_on_object_start(callback)

    def set_on_object_complete(self, callback: OnObjectComplete) -> None:
        self.selected.set_on_object_complete(callback)

    def set_on_array_start(self, callback: OnArrayStart) -> None:
        self.selected.set_on_array_start(callback)

    def set_on_array_complete(self, callback: OnArrayComplete) -> None:
        self.selected.set_on_array_complete(callback)

    def set_on_string(self, callback: OnString) -> None:
        self.selected.set_on_string(callback)

    def set_on_integer(self, callback: OnInteger) -> None:
        self.selected.set_on_integer(callback)


__all__ = [
    "CONTAINER_STATES",
    "DIGITS",
    "ERROR_LABELS",
    "NAME_CHARS",
    "POOL_SIZE",
    "SIGNS",
    "WHITESPACE",
    "BoundsError",
    "Callbacks",
    "CapacityError",
    "ErrorKind",
    "ErrorReport",
    "ParseError",
    "ParseState",
    "ParserConfig",
    "ParserPool",
    "ParserSnapshot",
    "StreamParser",
    "UnderflowError",
    "ascii_to_int",
]
