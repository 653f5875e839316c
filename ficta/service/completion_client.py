"""
Completion Client - the completion service collaborator

The file change loop only depends on CompletionClient.complete(). The OpenAI
implementation sends the cleaned prose as a single user message to the chat
completions endpoint, once, with no retries.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from openai import APIError, AsyncOpenAI, AuthenticationError, NotFoundError, RateLimitError

from ficta.models.completion_models import CompletionRequest, CompletionResult
from ficta.service.exceptions import CompletionError

logger = logging.getLogger(__name__)

NO_CHOICES_MESSAGE = "The completion service returned no choices"


class CompletionClient(ABC):
    """Abstract completion service"""

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResult:
        """
        Generate completions for the request

        Returns:
            CompletionResult with one text per requested response, or an
            error_message when the service produced no choices

        Raises:
            CompletionError on service, transport or timeout failures
        """
        pass

    async def close(self) -> None:
        pass


def describe_openai_error(error: Exception) -> CompletionError:
    """Map an OpenAI SDK error to a CompletionError with a readable message"""
    if isinstance(error, AuthenticationError):
        return CompletionError(
            "Authentication failed, check OPENAI_API_KEY and OPENAI_API_ORG",
            "authentication_error",
            str(error),
        )
    if isinstance(error, RateLimitError):
        return CompletionError(
            "Rate limit exceeded, save the file again later",
            "rate_limit_error",
            str(error),
        )
    if isinstance(error, NotFoundError):
        return CompletionError(
            "Model or endpoint not found, check the model named on the AI: line",
            "not_found_error",
            str(error),
        )
    return CompletionError(
        f"Completion service error: {error}",
        "api_error",
        str(error),
    )


class OpenAICompletionClient(CompletionClient):
    """Chat completions through the OpenAI SDK"""

    def __init__(
        self,
        api_key: str,
        organization: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        temperature_scale: float = 1.0,
    ):
        self.timeout = timeout
        self.temperature_scale = temperature_scale
        self.client = AsyncOpenAI(
            api_key=api_key,
            organization=organization or None,
            base_url=base_url or None,
            timeout=timeout,
            max_retries=0,
        )
        logger.info(f"Completion client initialized (timeout={timeout}s, temperature_scale={temperature_scale})")

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        directive = request.directive
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=directive.model,
                    messages=[{"role": "user", "content": request.prompt}],
                    max_tokens=directive.max_tokens,
                    temperature=directive.temperature * self.temperature_scale,
                    n=directive.response_count,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise CompletionError(
                f"Completion timed out after {self.timeout}s",
                "timeout",
                str(e),
            ) from e
        except APIError as e:
            raise describe_openai_error(e) from e

        result = CompletionResult()
        usage = getattr(response, "usage", None)
        if usage is not None:
            result.prompt_tokens = usage.prompt_tokens or 0
            result.completion_tokens = usage.completion_tokens or 0
            result.total_tokens = usage.total_tokens or 0

        if response.choices:
            ordered = sorted(response.choices, key=lambda choice: choice.index)
            result.texts = [choice.message.content or "" for choice in ordered]
        else:
            error = getattr(response, "error", None)
            message = getattr(error, "message", None) if error is not None else None
            if isinstance(error, dict):
                message = error.get("message")
            result.error_message = message or NO_CHOICES_MESSAGE
        return result

    async def close(self) -> None:
        await self.client.close()
