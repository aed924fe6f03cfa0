"""
Test data generators for streaming parser benchmarks.

Creates JSON messages that both jsoneat and whole-document parsers accept:
- Small flat command messages
- Nested sensor reports within the default nesting limit
- String-heavy messages with escape sequences
- Streams of many concatenated messages
"""

import json
import random
import string
from typing import Any

_ESCAPE_PROBABILITY = 0.3
# Keeps every container within the default saved-state capacity
_MAX_MEMBERS = 9
_STREAM_LENGTH = 200


def generate_test_data(data_type: str) -> str:
    """Generates a JSON document based on specified type."""
    generators = {
        "small_object": _generate_small_object,
        "nested_report": _generate_nested_report,
        "string_heavy": _generate_string_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    return generators[data_type]()


def generate_message_stream(count: int = _STREAM_LENGTH) -> list[str]:
    """Generates a sequence of independent small messages."""
    return [_generate_small_object() for _ in range(count)]


def count_members(document: str) -> int:
    """Counts scalar members, for checking parse results."""

    def walk(value: Any) -> int:
        if isinstance(value, dict):
            return sum(walk(item) for item in value.values())
        return 1

    return walk(json.loads(document))


def _generate_small_object() -> str:
    """Generates a flat plug status message."""
    data = {
        "cmd": "status",
        "mac": _random_hex(16),
        "power": random.randint(0, 3500),
        "voltage": random.randint(210, 245),
        "state": random.choice(["on", "off"]),
        "seq": random.randint(0, 65535),
    }
    return json.dumps(data, separators=(",", ":"))


def _generate_nested_report() -> str:
    """Generates a report nested four levels deep."""

    def create_level(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {
                "kwh": random.randint(0, 100000),
                "w": random.randint(-50, 3500),
            }
        return {
            f"level{depth}": create_level(depth - 1),
            "id": _random_hex(8),
            "count": random.randint(0, 99),
        }

    return json.dumps(create_level(2))


def _generate_string_heavy() -> str:
    """Generates a message with many escaped string values."""

    def create_escaped_string() -> str:
        chars = []
        for _ in range(40):
            if random.random() < _ESCAPE_PROBABILITY:
                chars.append(
                    random.choice(['\\"', "\\\\", "\\/", "\\n", "\\t"])
                )
            else:
                chars.append(
                    random.choice(string.ascii_letters + string.digits + " ")
                )
        return "".join(chars)

    members = ",".join(
        f'"text{i}":"{create_escaped_string()}"' for i in range(_MAX_MEMBERS)
    )
    return "{" + members + "}"


def _random_hex(length: int) -> str:
    """Generates a random upper-case hex string of specified length."""
    return "".join(random.choices("0123456789ABCDEF", k=length))
