"""
Pytest configuration and shared fixtures for jsoneat tests.

Provides immutable test-case data and a recorder that captures every
callback a parser fires, in order.
"""

from dataclasses import dataclass
from typing import Any

import pytest

import jsoneat

type Event = tuple[Any, ...]


@dataclass(frozen=True)
class StreamTestCase:
    """
    Immutable container for one streamed document and its outcome.

    ``expected_error`` is the error kind the document must trigger, or
    None when the document must parse cleanly.
    """

    description: str
    input_data: str
    expected_error: jsoneat.ErrorKind | None = None


class EventRecorder:
    """Registers all seven hooks on a parser and records what they see."""

    def __init__(
        self, parser: jsoneat.StreamParser | jsoneat.ParserPool
    ) -> None:
        self.events: list[Event] = []
        parser.set_on_error(self._on_error)
        parser.set_on_object_start(
            lambda name: self.events.append(("object_start", name))
        )
        parser.set_on_object_complete(
            lambda name: self.events.append(("object_complete", name))
        )
        parser.set_on_array_start(
            lambda name: self.events.append(("array_start", name))
        )
        parser.set_on_array_complete(
            lambda name: self.events.append(("array_complete", name))
        )
        parser.set_on_string(
            lambda name, value: self.events.append(("string", name, value))
        )
        parser.set_on_integer(
            lambda name, value: self.events.append(("integer", name, value))
        )

    def _on_error(
        self, kind: jsoneat.ErrorKind, label: str, context: str
    ) -> None:
        self.events.append(("error", kind, label, context))

    @property
    def errors(self) -> list[Event]:
        return [event for event in self.events if event[0] == "error"]

    @property
    def values(self) -> list[Event]:
        return [
            event for event in self.events if event[0] in ("string", "integer")
        ]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def parser() -> jsoneat.StreamParser:
    return jsoneat.StreamParser(jsoneat.ParserConfig(report_discard=False))


@pytest.fixture
def recorder(parser: jsoneat.StreamParser) -> EventRecorder:
    return EventRecorder(parser)


@pytest.fixture
def stream_fail_cases() -> list[StreamTestCase]:
    """
    Provides documents that break the grammar in one specific state.

    Each case names the error kind the state machine must report for
    the first offending character.
    """
    kind = jsoneat.ErrorKind
    return [
        StreamTestCase("letter after '{'", "{a", kind.PARSE_NAME),
        StreamTestCase("colon after '{'", "{:", kind.PARSE_NAME),
        StreamTestCase("empty object", "{}", kind.PARSE_NAME),
        StreamTestCase("space inside name", '{"a b":1}', kind.ILLEGAL_NAME_CHAR),
        StreamTestCase("dash inside name", '{"a-b":1}', kind.ILLEGAL_NAME_CHAR),
        StreamTestCase("missing colon", '{"a" 1}', kind.PARSE_ASSIGNMENT),
        StreamTestCase("comma instead of colon", '{"a",1}', kind.PARSE_ASSIGNMENT),
        StreamTestCase("letter instead of colon", '{"a"x1}', kind.PARSE_ASSIGNMENT),
        StreamTestCase("literal value", '{"a":true}', kind.PARSE_VALUE),
        StreamTestCase("null value", '{"a":null}', kind.PARSE_VALUE),
        StreamTestCase("double colon", '{"a"::1}', kind.PARSE_VALUE),
        StreamTestCase("empty array", '{"a":[]}', kind.PARSE_NAME),
        StreamTestCase(
            "bare string in array", '{"a":["x","y"]}', kind.PARSE_ASSIGNMENT
        ),
        StreamTestCase(
            "junk after nested object", '{"a":{"b":1}x}', kind.PARSE_OBJECT
        ),
        StreamTestCase(
            "double comma after nested object",
            '{"a":{"b":1},,"c":2}',
            kind.PARSE_NAME,
        ),
        StreamTestCase(
            "junk after nested array", '{"a":["b":1]x}', kind.PARSE_OBJECT
        ),
        StreamTestCase(
            "junk inside array after nested object",
            '{"a":["b":{"c":1}x]}',
            kind.PARSE_ARRAY,
        ),
        StreamTestCase(
            "trailing comma in object", '{"a":1,}', kind.PARSE_NAME
        ),
    ]
