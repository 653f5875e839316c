"""
ficta - Main Entry Point

Watches text files and, on every save, sends the text to the OpenAI chat
completions endpoint and appends the response followed by an updated AI: line.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

import structlog

from ficta import __version__
from ficta.config.settings import Settings
from ficta.models.directive_models import Dialect
from ficta.service.completion_client import OpenAICompletionClient
from ficta.service.directive_codec import default_directive, format_directive
from ficta.service.exceptions import ConfigurationError
from ficta.service.file_change_loop import FileChangeLoop
from ficta.service.file_watcher_service import FileWatcherService
from ficta.service.write_suppressor import WriteSuppressor
from ficta.utils.file_utils import DEFAULT_SEED_TEXT, prepare_watch_files
from ficta.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

USAGE = f"""
FICTA v{__version__}

Usage: ficta [options] file1 [file2 ...]

ficta monitors one or more files for changes and calls the OpenAI completion
endpoint with the text of the file. If you pass a filename that doesn't exist,
ficta will create it and write some default content to it.

When you save a changed file, ficta calls the completion endpoint and
overwrites the file with the original text followed by the completion
response, followed by a one line record containing the model name, max_tokens
and temperature settings passed with the completion request:

AI: gpt-3.5-turbo, 400, 0.700

In the 'comment' dialect the record takes an optional fourth field, the number
of responses to request. Edit the record with any valid values and they are
used for the next completion request.

Comment lines are never sent. In the 'marker' dialect (the default) they start
with the comment prefix ('@'); everything between @OUT and @IN is excluded. In
the 'comment' dialect, lines starting with '//' and blocks between '/*' and
'*/' are excluded.

ficta needs a valid OpenAI API key in OPENAI_API_KEY. OPENAI_API_ORG is sent
as the organization when set."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ficta",
        description=USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("files", nargs="*", help="files to watch")
    parser.add_argument("-b", "--backup-ext", dest="backup_ext",
                        help="extension for backup files; no backups when omitted")
    parser.add_argument("-c", "--comment-prefix", dest="comment_prefix",
                        help="comment prefix for the marker dialect (default '@')")
    parser.add_argument("-l", "--line-comment", dest="line_comment",
                        help="line comment prefix for the comment dialect (default '//')")
    parser.add_argument("--block-start", dest="block_start",
                        help="block comment opener for the comment dialect (default '/*')")
    parser.add_argument("--block-end", dest="block_end",
                        help="block comment closer for the comment dialect (default '*/')")
    parser.add_argument("-d", "--dialect", choices=[d.value for d in Dialect],
                        help="directive and annotation dialect (default 'marker')")
    parser.add_argument("-t", "--timeout", type=float,
                        help="completion timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log debug output")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command line overrides applied"""
    overrides = {
        "BACKUP_EXTENSION": args.backup_ext,
        "COMMENT_PREFIX": args.comment_prefix,
        "LINE_COMMENT_PREFIX": args.line_comment,
        "BLOCK_COMMENT_PREFIX": args.block_start,
        "BLOCK_COMMENT_SUFFIX": args.block_end,
        "DIALECT": args.dialect,
        "COMPLETION_TIMEOUT": args.timeout,
        "LOG_LEVEL": "DEBUG" if args.verbose else None,
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def seed_content(dialect: Dialect) -> str:
    return DEFAULT_SEED_TEXT + format_directive(default_directive(dialect), dialect)


async def serve(config: Settings, paths: List[str]) -> None:
    """Watch paths until cancelled"""
    suppressor = WriteSuppressor(paths, backup_extension=config.BACKUP_EXTENSION)
    client = OpenAICompletionClient(
        api_key=config.OPENAI_API_KEY,
        organization=config.OPENAI_API_ORG,
        base_url=config.OPENAI_BASE_URL,
        timeout=config.COMPLETION_TIMEOUT,
        temperature_scale=config.temperature_scale,
    )
    loop = FileChangeLoop(
        suppressor,
        client,
        dialect=config.DIALECT,
        comments=config.comment_config,
    )
    watcher = FileWatcherService(
        suppressor.paths,
        loop.notify,
        debounce_time=config.DEBOUNCE_SECONDS,
        join_timeout=config.OBSERVER_JOIN_TIMEOUT,
    )

    consumer = asyncio.current_task()
    event_loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            event_loop.add_signal_handler(signum, consumer.cancel)
        except (NotImplementedError, RuntimeError):
            # Windows: KeyboardInterrupt still ends asyncio.run
            pass

    try:
        async with watcher:
            await loop.run()
    except asyncio.CancelledError:
        logger.info("🛑 Shutting down")
    finally:
        await client.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_settings(args)
    except ValueError as e:
        setup_logging()
        logger.error(f"❌ Invalid configuration: {e}")
        print(USAGE)
        return 0

    setup_logging(config.LOG_LEVEL)
    log = structlog.get_logger("ficta.startup")

    paths, errors = prepare_watch_files(args.files, seed_content(config.DIALECT))
    for error in errors:
        logger.error(f"❌ {error}")
    if not paths:
        logger.error("❌ No files could be opened")
        print(USAGE)
        return 0

    try:
        config.validate_startup()
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        print(USAGE)
        return 0

    log.info(
        "starting",
        version=__version__,
        dialect=config.DIALECT.value,
        files=paths,
        backup_extension=config.BACKUP_EXTENSION or None,
        temperature_scale=config.temperature_scale,
    )

    try:
        asyncio.run(serve(config, paths))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
