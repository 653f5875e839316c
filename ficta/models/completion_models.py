"""
Completion Models
Request/response envelopes exchanged with the completion service.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ficta.models.directive_models import Directive


class CompletionRequest(BaseModel):
    """Cleaned prose plus the generation parameters to send with it."""
    prompt: str = Field(description="Prose with author annotations stripped")
    directive: Directive = Field(description="Parameters parsed from the AI: line")


class CompletionResult(BaseModel):
    """Generated texts, or the service's own error message when it returned no choices."""
    texts: List[str] = Field(default_factory=list)
    error_message: Optional[str] = Field(default=None)
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)

    @property
    def has_choices(self) -> bool:
        return len(self.texts) > 0
