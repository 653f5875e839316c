"""
Directive Codec - locate, parse and regenerate the trailing AI: line

A directive line looks like:

    AI: gpt-3.5-turbo, 400, 0.700

with an optional fourth response-count field in the comment dialect. Parsing
never raises: a malformed line yields the dialect's default Directive together
with the DirectiveParseError describing what was wrong.
"""

import re
from typing import Optional, Tuple

from ficta.models.directive_models import (
    DIRECTIVE_PREFIX,
    Dialect,
    Directive,
    get_dialect_profile,
)
from ficta.service.exceptions import (
    DirectiveParseError,
    EmptyModel,
    InvalidFieldCount,
    InvalidMaxTokens,
    InvalidModelField,
    InvalidResponseCount,
    InvalidTemperature,
    NegativeMaxTokens,
    TemperatureOutOfRange,
)

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

# Temperatures are persisted with three decimals
TEMPERATURE_DECIMALS = 3


def default_directive(dialect: Dialect = Dialect.MARKER) -> Directive:
    return get_dialect_profile(dialect).default_directive.model_copy()


def _parse_int(field: str) -> Optional[int]:
    if not _INTEGER_PATTERN.match(field):
        return None
    return int(field)


def _parse_directive_fields(line: str, dialect: Dialect) -> Directive:
    profile = get_dialect_profile(dialect)

    fields = line.split(",")
    if len(fields) not in profile.field_counts:
        raise InvalidFieldCount(line)

    # Model
    model_field = fields[0].strip()
    if not model_field.startswith(DIRECTIVE_PREFIX):
        raise InvalidModelField(line)
    model = model_field[len(DIRECTIVE_PREFIX):].strip()
    if not model:
        raise EmptyModel(line)

    # Max tokens
    max_tokens = _parse_int(fields[1].strip())
    if max_tokens is None:
        raise InvalidMaxTokens(line)
    if max_tokens < 0:
        raise NegativeMaxTokens(line)

    # Temperature
    try:
        temperature = float(fields[2].strip())
    except ValueError:
        raise InvalidTemperature(line)
    if not 0.0 <= temperature <= 1.0:
        raise TemperatureOutOfRange(line)

    # Response count
    response_count = 1
    if len(fields) == 4:
        response_count = _parse_int(fields[3].strip())
        if response_count is None or response_count < 1:
            raise InvalidResponseCount(line)

    return Directive(
        model=model,
        max_tokens=max_tokens,
        temperature=round(temperature, TEMPERATURE_DECIMALS),
        response_count=response_count,
    )


def parse_directive(
    line: str, dialect: Dialect = Dialect.MARKER
) -> Tuple[Directive, Optional[DirectiveParseError]]:
    """
    Parse an AI: line

    Args:
        line: The directive line (may be empty)
        dialect: Which field layout to accept

    Returns:
        (directive, None) on success, or (default directive, error) when the
        line is malformed
    """
    try:
        return _parse_directive_fields(line, dialect), None
    except DirectiveParseError as e:
        return default_directive(dialect), e


def format_directive(directive: Directive, dialect: Dialect = Dialect.MARKER) -> str:
    """Render a Directive as an AI: line"""
    line = f"{DIRECTIVE_PREFIX} {directive.model}, {directive.max_tokens}, {directive.temperature:.3f}"
    if get_dialect_profile(dialect).supports_response_count:
        line += f", {directive.response_count}"
    return line


def split_on_directive(text: str) -> Tuple[str, str]:
    """
    Split a file body at its active directive line

    The active directive is the last line whose trimmed content starts with
    AI:. Everything before it is prose; earlier AI: lines stay in the prose.

    Returns:
        (prose, directive_line). With no directive, (text, "").
    """
    # Lines end at "\n" only; form feeds and Unicode separators stay inside a line
    lines = text.split("\n")
    for i in range(len(lines) - 1, -1, -1):
        stripped = lines[i].strip()
        if stripped.startswith(DIRECTIVE_PREFIX):
            prose = "\n".join(lines[:i]) + "\n" if i else ""
            return prose, stripped
    return text, ""
