"""
Parser configuration and error taxonomy tests.
"""

import pytest

import jsoneat


def test_default_limits() -> None:
    config = jsoneat.ParserConfig()

    assert config.max_states == 10
    assert config.max_depth == 5
    assert config.max_name == 30
    assert config.max_value == 160
    assert config.error_history == 20
    assert config.max_passes == 12


def test_config_is_immutable() -> None:
    config = jsoneat.ParserConfig()

    with pytest.raises(AttributeError):
        config.max_depth = 8  # type: ignore[misc]


@pytest.mark.parametrize(
    "field_name", ["max_states", "max_depth", "max_name", "max_value"]
)
def test_limits_must_be_positive(field_name: str) -> None:
    with pytest.raises(ValueError, match=field_name):
        jsoneat.ParserConfig(**{field_name: 0})


@pytest.mark.parametrize("value", [2.5, "3", True])
def test_limits_must_be_integers(value: object) -> None:
    with pytest.raises(TypeError, match="error_history"):
        jsoneat.ParserConfig(error_history=value)  # type: ignore[arg-type]


def test_report_discard_must_be_boolean() -> None:
    with pytest.raises(TypeError, match="report_discard"):
        jsoneat.ParserConfig(report_discard=1)  # type: ignore[arg-type]


def test_error_labels_cover_every_kind() -> None:
    assert set(jsoneat.ERROR_LABELS) == set(jsoneat.ErrorKind)
    assert jsoneat.ErrorKind.ILLEGAL_NAME_CHAR.label == "illegal name char"
    assert jsoneat.ErrorKind.INTERNAL.label == "internal error"
    assert int(jsoneat.ErrorKind.PARSE_ARRAY) == 9


def test_parse_error_carries_kind() -> None:
    error = jsoneat.ParseError(jsoneat.ErrorKind.PARSE_VALUE, "got 'x'")

    assert error.kind is jsoneat.ErrorKind.PARSE_VALUE
    assert str(error) == "parsing value: got 'x'"

    with pytest.raises(TypeError):
        jsoneat.ParseError(4)  # type: ignore[arg-type]


def test_parser_uses_given_config() -> None:
    config = jsoneat.ParserConfig(max_name=2)
    parser = jsoneat.StreamParser(config)

    assert parser.config is config
