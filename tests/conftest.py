"""
Shared fixtures: a scripted completion client and watched files on disk
"""

from typing import List, Optional

import pytest

from ficta.models.completion_models import CompletionRequest, CompletionResult
from ficta.service.completion_client import CompletionClient
from ficta.service.write_suppressor import WriteSuppressor


class FakeCompletionClient(CompletionClient):
    """Returns queued results (or raises queued exceptions) and records every request"""

    def __init__(self, results: Optional[List] = None):
        self.results = list(results or [])
        self.requests: List[CompletionRequest] = []

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        self.requests.append(request)
        result = self.results.pop(0) if self.results else CompletionResult(texts=["\n\nMore story."])
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def story_file(tmp_path):
    path = tmp_path / "story.txt"
    path.write_text("Once upon a time\n\nAI: gpt-4, 50, 0.500", encoding="utf-8")
    return path


@pytest.fixture
def suppressor(story_file):
    return WriteSuppressor([str(story_file)])
