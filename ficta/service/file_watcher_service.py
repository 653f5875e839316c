"""
File System Watcher Service
Feeds change notifications for the watched files into the file change loop
"""

import asyncio
import logging
import os
import time
from typing import Callable, Dict, Iterable, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class WatchedFileHandler(FileSystemEventHandler):
    """
    Handles file system events for the watched files

    Watchdog calls this from its observer thread. Events are handed to the
    asyncio loop with call_soon_threadsafe, so pending_events is only ever
    touched on the loop's thread.
    """

    def __init__(self, paths: Iterable[str], event_loop: asyncio.AbstractEventLoop,
                 notify: Callable[[str], None], debounce_time: float = 0.5):
        super().__init__()
        self.paths: Set[str] = {os.path.abspath(p) for p in paths}
        self.event_loop = event_loop
        self.notify = notify
        self.debounce_time = debounce_time
        self.pending_events: Dict[str, float] = {}  # path -> time of last event

    def _watched_path(self, raw_path) -> Optional[str]:
        path = os.path.abspath(os.fsdecode(raw_path))
        return path if path in self.paths else None

    def _schedule(self, raw_path) -> None:
        path = self._watched_path(raw_path)
        if path is None:
            return
        self.event_loop.call_soon_threadsafe(self.record_event, path)

    def on_modified(self, event: FileSystemEvent):
        """Handle file modification"""
        if event.is_directory:
            return
        self._schedule(event.src_path)

    def on_created(self, event: FileSystemEvent):
        """Editors that save by delete + create land here"""
        if event.is_directory:
            return
        self._schedule(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        """Editors that save by writing a temp file and renaming it over ours land here"""
        if event.is_directory:
            return
        self._schedule(event.dest_path)

    def record_event(self, path: str) -> None:
        """Record a change on the loop thread; bursts inside the debounce window collapse to one"""
        if self.debounce_time <= 0:
            self.notify(path)
            return
        self.pending_events[path] = time.monotonic()
        logger.debug(f"📝 File modified (debouncing): {path}")

    def flush_pending_events(self, now: Optional[float] = None) -> int:
        """Hand settled paths to the loop; returns how many were flushed"""
        now = time.monotonic() if now is None else now
        settled = [
            path for path, timestamp in self.pending_events.items()
            if now - timestamp >= self.debounce_time
        ]
        for path in settled:
            del self.pending_events[path]
            self.notify(path)
        return len(settled)


class FileWatcherService:
    """
    Watches a fixed set of files

    Watchdog watches directories, so each parent directory is scheduled once
    and events for files outside the watch list are dropped by the handler.
    """

    def __init__(self, paths: Iterable[str], notify: Callable[[str], None],
                 debounce_time: float = 0.5, join_timeout: float = 5.0):
        self.paths = [os.path.abspath(p) for p in paths]
        self.notify = notify
        self.debounce_time = debounce_time
        self.join_timeout = join_timeout
        self.observer = None
        self.event_handler: Optional[WatchedFileHandler] = None
        self.running = False
        self._debounce_task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the observer thread and the debounce task"""
        try:
            logger.info("👀 Starting File System Watcher...")

            event_loop = asyncio.get_running_loop()
            self.event_handler = WatchedFileHandler(
                self.paths, event_loop, self.notify, self.debounce_time
            )

            self.observer = Observer()
            for directory in sorted({os.path.dirname(p) for p in self.paths}):
                self.observer.schedule(self.event_handler, directory, recursive=False)

            self.observer.start()
            self.running = True
            logger.info(f"✅ File System Watcher started, monitoring: {self.paths}")

            if self.debounce_time > 0:
                self._debounce_task = asyncio.create_task(self._debounce_loop())

        except Exception as e:
            logger.error(f"❌ Failed to start File System Watcher: {e}")
            raise

    async def _debounce_loop(self):
        """Background loop to flush debounced events"""
        interval = min(self.debounce_time / 2, 0.25)
        while self.running:
            self.event_handler.flush_pending_events()
            await asyncio.sleep(interval)

    async def stop(self):
        """Stop watching"""
        self.running = False
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            try:
                await self._debounce_task
            except asyncio.CancelledError:
                pass
            self._debounce_task = None
        if self.observer:
            logger.info("⏹️ Stopping File System Watcher...")
            self.observer.stop()
            self.observer.join(timeout=self.join_timeout)
            self.observer = None
            logger.info("✅ File System Watcher stopped")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()
