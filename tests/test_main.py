"""
Command line entry point and service wiring
"""

import asyncio

import pytest

import ficta.main as ficta_main
from ficta.config.settings import Settings
from ficta.models.completion_models import CompletionResult
from ficta.models.directive_models import Dialect
from ficta.utils.file_utils import DEFAULT_SEED_TEXT

from tests.conftest import FakeCompletionClient


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("OPENAI_API_KEY", "OPENAI_API_ORG", "DIALECT", "BACKUP_EXTENSION", "TEMPERATURE_SCALE"):
        monkeypatch.delenv(name, raising=False)


class TestMain:
    def test_no_files_prints_usage(self, capsys):
        assert ficta_main.main([]) == 0
        assert "Usage: ficta" in capsys.readouterr().out

    def test_new_file_seeded_even_without_api_key(self, tmp_path, capsys):
        path = tmp_path / "story.txt"

        assert ficta_main.main([str(path)]) == 0

        assert path.read_text(encoding="utf-8") == DEFAULT_SEED_TEXT + "AI: gpt-3.5-turbo, 400, 0.700"
        assert "FICTA v" in capsys.readouterr().out

    def test_comment_dialect_seed(self, tmp_path):
        path = tmp_path / "story.txt"
        ficta_main.main(["-d", "comment", str(path)])
        assert path.read_text(encoding="utf-8").endswith("AI: gpt-3.5-turbo, 100, 0.700, 1")

    def test_bad_timeout_prints_usage(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert ficta_main.main(["-t", "0", str(tmp_path / "story.txt")]) == 0
        assert "Usage: ficta" in capsys.readouterr().out

    def test_empty_comment_prefix_prints_usage(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert ficta_main.main(["-c", "", str(tmp_path / "story.txt")]) == 0
        assert "Usage: ficta" in capsys.readouterr().out


class TestLoadSettings:
    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("BACKUP_EXTENSION", "old")
        args = ficta_main.build_parser().parse_args(
            ["-b", "bak", "-c", "#", "-l", "%%", "--block-start", "<!--", "--block-end=-->",
             "-d", "comment", "-t", "30", "-v", "notes.txt"]
        )

        config = ficta_main.load_settings(args)

        assert config.BACKUP_EXTENSION == "bak"
        assert config.COMMENT_PREFIX == "#"
        assert config.LINE_COMMENT_PREFIX == "%%"
        assert config.BLOCK_COMMENT_PREFIX == "<!--"
        assert config.BLOCK_COMMENT_SUFFIX == "-->"
        assert config.DIALECT == Dialect.COMMENT
        assert config.COMPLETION_TIMEOUT == 30.0
        assert config.LOG_LEVEL == "DEBUG"
        assert args.files == ["notes.txt"]

    def test_omitted_flags_keep_environment(self, monkeypatch):
        monkeypatch.setenv("BACKUP_EXTENSION", "old")
        config = ficta_main.load_settings(ficta_main.build_parser().parse_args(["notes.txt"]))
        assert config.BACKUP_EXTENSION == "old"
        assert config.LOG_LEVEL == "INFO"


class TestServe:
    async def test_save_is_completed_until_cancelled(self, tmp_path, monkeypatch):
        path = tmp_path / "story.txt"
        path.write_text("Once\nAI: m, 5, 0.500", encoding="utf-8")
        client = FakeCompletionClient([CompletionResult(texts=[" upon a time"])])
        closed = []

        async def close():
            closed.append(True)

        client.close = close
        monkeypatch.setattr(ficta_main, "OpenAICompletionClient", lambda **kwargs: client)
        config = Settings(OPENAI_API_KEY="sk-test", DEBOUNCE_SECONDS=0.05)

        task = asyncio.create_task(ficta_main.serve(config, [str(path)]))
        await asyncio.sleep(0.2)
        path.write_text("Once\nAI: m, 5, 0.500", encoding="utf-8")
        for _ in range(100):
            if client.requests:
                break
            await asyncio.sleep(0.05)
        # Well past the debounce window: the rewrite's own events must not run the pipeline again
        await asyncio.sleep(1.0)
        task.cancel()
        await task

        assert len(client.requests) == 1
        assert client.requests[0].prompt == "Once\n"
        assert path.read_text(encoding="utf-8") == "Once\n upon a time\n\nAI: m, 5, 0.500"
        assert closed == [True]
