"""
Directive Models
Generation parameters carried by the trailing AI: line, and the comment
dialects that decide how a file body is parsed and filtered.
"""

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, Field


DIRECTIVE_PREFIX = "AI:"


class Dialect(str, Enum):
    """Protocol version: directive field count plus annotation syntax"""
    MARKER = "marker"    # @OUT / @IN blocks, 3-field directive
    COMMENT = "comment"  # // lines and /* */ blocks, optional 4th field


class Directive(BaseModel):
    """Parsed AI: line"""
    model: str = Field(min_length=1, description="Completion model name")
    max_tokens: int = Field(ge=0, description="Token limit for the completion")
    temperature: float = Field(ge=0.0, le=1.0, description="Unscaled sampling temperature as shown in the file")
    response_count: int = Field(default=1, ge=1, description="Number of completions requested")


class CommentConfig(BaseModel):
    """Author annotation syntax for both dialects"""
    comment_prefix: str = Field(default="@", min_length=1, description="Marker dialect comment prefix")
    line_comment_prefix: str = Field(default="//", min_length=1, description="Comment dialect line comment")
    block_comment_prefix: str = Field(default="/*", min_length=1, description="Comment dialect block opener")
    block_comment_suffix: str = Field(default="*/", min_length=1, description="Comment dialect block closer")

    def response_marker_prefix(self, dialect: Dialect) -> str:
        """Prefix for the 'response i of n' separator lines, so they read as comments next pass"""
        if dialect == Dialect.MARKER:
            return self.comment_prefix
        return self.line_comment_prefix


class DialectProfile(BaseModel):
    """Per-dialect constants"""
    dialect: Dialect
    field_counts: Tuple[int, ...]
    default_directive: Directive
    temperature_scale: float = 1.0

    @property
    def supports_response_count(self) -> bool:
        return 4 in self.field_counts


DIALECT_PROFILES = {
    Dialect.MARKER: DialectProfile(
        dialect=Dialect.MARKER,
        field_counts=(3,),
        default_directive=Directive(model="gpt-3.5-turbo", max_tokens=400, temperature=0.7),
    ),
    Dialect.COMMENT: DialectProfile(
        dialect=Dialect.COMMENT,
        field_counts=(3, 4),
        default_directive=Directive(model="gpt-3.5-turbo", max_tokens=100, temperature=0.7),
        # Later protocol versions doubled the temperature on the wire
        temperature_scale=2.0,
    ),
}


def get_dialect_profile(dialect: Dialect) -> DialectProfile:
    return DIALECT_PROFILES[Dialect(dialect)]
