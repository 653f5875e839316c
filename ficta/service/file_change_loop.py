"""
File Change Loop - the per-file apply/rewrite cycle

One consumer task drains change notifications and takes each through

    IDLE -> AWAITING_COMPLETION -> REWRITING -> IDLE

before looking at the next. Self-caused notifications are discarded through
the WriteSuppressor. Failures at any stage are logged and leave both the file
and its latch untouched.
"""

import asyncio
import logging
import time
from typing import List, Optional, Tuple

from ficta.models.completion_models import CompletionRequest, CompletionResult
from ficta.models.directive_models import CommentConfig, Dialect, Directive
from ficta.models.watch_models import EventOutcome, FileState
from ficta.service.annotation_filter import strip_annotations
from ficta.service.completion_client import CompletionClient
from ficta.service.directive_codec import format_directive, parse_directive, split_on_directive
from ficta.service.exceptions import CompletionError, FileRewriteError
from ficta.service.write_suppressor import WriteSuppressor
from ficta.utils.file_utils import backup_file, overwrite_file, read_text
from ficta.utils.logging_config import pipeline_log
from ficta.utils.string_utils import unescape

logger = logging.getLogger(__name__)


def join_responses(texts: List[str], marker_prefix: str) -> str:
    """
    Combine generated texts for the rewrite

    A single text is used as is. Several are each preceded by a
    "<prefix> response i of n" line and separated by a blank line.
    """
    if len(texts) == 1:
        return texts[0]
    total = len(texts)
    blocks = [
        f"{marker_prefix} response {i} of {total}\n{text}"
        for i, text in enumerate(texts, start=1)
    ]
    return "\n\n".join(blocks)


def build_rewrite(prose: str, generated: str, directive_line: str) -> str:
    """Assemble the new file content: prose, generated text, blank line, directive"""
    return f"{prose}{generated}\n\n{directive_line}"


class FileChangeLoop:
    """Owns the suppression latches and runs the pipeline for each change event"""

    def __init__(
        self,
        suppressor: WriteSuppressor,
        completion_client: CompletionClient,
        dialect: Dialect = Dialect.MARKER,
        comments: Optional[CommentConfig] = None,
    ):
        self.suppressor = suppressor
        self.completion_client = completion_client
        self.dialect = Dialect(dialect)
        self.comments = comments or CommentConfig()
        self.queue: asyncio.Queue = asyncio.Queue()
        self.running = False

    def notify(self, path: str) -> None:
        """Enqueue a change notification; must be called on the loop's thread"""
        self.queue.put_nowait(path)

    async def run(self) -> None:
        """Consume notifications one at a time until cancelled"""
        self.running = True
        logger.info(f"👀 Listening for changes to {self.suppressor.paths}")
        try:
            while self.running:
                path = await self.queue.get()
                try:
                    await self.handle_event(path)
                except Exception as e:
                    # Keep watching the other files
                    logger.error(f"❌ Unexpected error handling change to {path}: {e}", exc_info=True)
                finally:
                    self.queue.task_done()
        finally:
            self.running = False

    async def handle_event(self, path: str) -> EventOutcome:
        """Decide whether a change notification is ours or the user's, and act on it"""
        if not self.suppressor.is_watched(path):
            logger.debug(f"Ignoring change to unwatched path {path}")
            return EventOutcome.IGNORED

        watched = self.suppressor.get(path)
        if self.suppressor.consume(watched.path):
            pipeline_log.change_suppressed(watched.path)
            return EventOutcome.SUPPRESSED

        pipeline_log.change_detected(watched.path)
        return await self.process_file(watched.path)

    def build_request(self, text: str, path: str = "") -> Tuple[str, CompletionRequest]:
        """
        Split the body, parse its directive and strip annotations

        Returns:
            (prose, CompletionRequest). prose keeps the author's annotations;
            only the request text is filtered.
        """
        prose, directive_line = split_on_directive(text)
        directive, error = parse_directive(directive_line, self.dialect)
        if error is not None:
            pipeline_log.directive_defaulted(path, str(error))
        prompt = strip_annotations(prose, self.dialect, self.comments)
        return prose, CompletionRequest(prompt=prompt, directive=directive)

    def render_result(self, prose: str, directive: Directive, result: CompletionResult) -> str:
        if result.has_choices:
            texts = [unescape(text) for text in result.texts]
            generated = join_responses(texts, self.comments.response_marker_prefix(self.dialect))
        else:
            generated = unescape(result.error_message or "")
        return build_rewrite(prose, generated, format_directive(directive, self.dialect))

    async def process_file(self, path: str) -> EventOutcome:
        """Run one read -> complete -> rewrite cycle for path"""
        watched = self.suppressor.get(path)
        if watched is None:
            return EventOutcome.IGNORED

        stage = "READ"
        try:
            text = await read_text(watched.path)
            prose, request = self.build_request(text, watched.path)

            stage = "COMPLETION"
            self.suppressor.set_state(watched.path, FileState.AWAITING_COMPLETION)
            directive = request.directive
            pipeline_log.completion_start(
                watched.path, directive.model, directive.max_tokens,
                directive.temperature, directive.response_count,
            )
            start = time.monotonic()
            result = await self.completion_client.complete(request)
            pipeline_log.completion_success(
                watched.path, time.monotonic() - start,
                result.prompt_tokens, result.completion_tokens, result.total_tokens,
            )
            if not result.has_choices:
                pipeline_log.completion_empty(watched.path, result.error_message or "")

            content = self.render_result(prose, directive, result)

            stage = "REWRITE"
            self.suppressor.set_state(watched.path, FileState.REWRITING)
            backup_path = await backup_file(watched.path, watched.backup_extension)
            self.suppressor.arm(watched.path)
            try:
                await overwrite_file(watched.path, content)
            except FileRewriteError:
                self.suppressor.disarm(watched.path)
                raise
            pipeline_log.rewrite_success(watched.path, len(content), backup_path)
            return EventOutcome.REWRITTEN

        except CompletionError as e:
            pipeline_log.pipeline_error(watched.path, stage, f"{e.error_type}: {e.user_message}")
            return EventOutcome.FAILED
        except FileRewriteError as e:
            pipeline_log.pipeline_error(watched.path, stage, str(e))
            return EventOutcome.FAILED
        finally:
            self.suppressor.set_state(watched.path, FileState.IDLE)
