"""
OpenAI completion client, exercised against a stubbed SDK call
"""

import asyncio
from types import SimpleNamespace

import httpx
import pytest
from openai import APIConnectionError

from ficta.models.completion_models import CompletionRequest
from ficta.models.directive_models import Directive
from ficta.service.completion_client import NO_CHOICES_MESSAGE, OpenAICompletionClient
from ficta.service.exceptions import CompletionError


def make_choice(index, content):
    return SimpleNamespace(index=index, message=SimpleNamespace(content=content))


class StubCompletions:
    def __init__(self, response=None, error=None, delay=0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


def make_client(completions, temperature_scale=1.0, timeout=5.0):
    client = OpenAICompletionClient(
        api_key="sk-test", timeout=timeout, temperature_scale=temperature_scale
    )
    client.client = SimpleNamespace(
        chat=SimpleNamespace(completions=completions),
        close=client.client.close,
    )
    return client


REQUEST = CompletionRequest(
    prompt="Once upon a time",
    directive=Directive(model="gpt-4", max_tokens=50, temperature=0.5, response_count=2),
)


class TestOpenAICompletionClient:
    async def test_sends_directive_parameters(self):
        completions = StubCompletions(SimpleNamespace(choices=[make_choice(0, "x")], usage=None))
        client = make_client(completions, temperature_scale=2.0)

        await client.complete(REQUEST)

        assert completions.calls == [{
            "model": "gpt-4",
            "messages": [{"role": "user", "content": "Once upon a time"}],
            "max_tokens": 50,
            "temperature": 1.0,
            "n": 2,
        }]

    async def test_choices_ordered_by_index_with_usage(self):
        usage = SimpleNamespace(prompt_tokens=13, completion_tokens=7, total_tokens=20)
        response = SimpleNamespace(choices=[make_choice(1, "second"), make_choice(0, "first")], usage=usage)
        client = make_client(StubCompletions(response))

        result = await client.complete(REQUEST)

        assert result.texts == ["first", "second"]
        assert (result.prompt_tokens, result.completion_tokens, result.total_tokens) == (13, 7, 20)
        assert result.error_message is None

    async def test_zero_choices_reports_error_message(self):
        response = SimpleNamespace(choices=[], usage=None, error=SimpleNamespace(message="quota exceeded"))
        result = await make_client(StubCompletions(response)).complete(REQUEST)
        assert result.has_choices is False
        assert result.error_message == "quota exceeded"

    async def test_zero_choices_without_error_body(self):
        response = SimpleNamespace(choices=[], usage=None)
        result = await make_client(StubCompletions(response)).complete(REQUEST)
        assert result.error_message == NO_CHOICES_MESSAGE

    async def test_none_content_becomes_empty_text(self):
        response = SimpleNamespace(choices=[make_choice(0, None)], usage=None)
        result = await make_client(StubCompletions(response)).complete(REQUEST)
        assert result.texts == [""]

    async def test_api_error_raises_completion_error(self):
        error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
        client = make_client(StubCompletions(error=error))

        with pytest.raises(CompletionError) as info:
            await client.complete(REQUEST)
        assert info.value.error_type == "api_error"

    async def test_timeout_raises_completion_error(self):
        client = make_client(StubCompletions(SimpleNamespace(choices=[], usage=None), delay=1.0), timeout=0.01)

        with pytest.raises(CompletionError) as info:
            await client.complete(REQUEST)
        assert info.value.error_type == "timeout"

    async def test_sdk_client_has_no_retries(self):
        client = OpenAICompletionClient(api_key="sk-test", organization="org-1", timeout=7.0)
        assert client.client.max_retries == 0
        assert client.client.organization == "org-1"
        await client.close()
