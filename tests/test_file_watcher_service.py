"""
Watcher handler: event filtering, thread handoff and debouncing
"""

import asyncio
import time

from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from ficta.service.file_watcher_service import FileWatcherService, WatchedFileHandler


async def settle():
    # call_soon_threadsafe callbacks run on the next loop iterations
    await asyncio.sleep(0.01)


class TestWatchedFileHandler:
    async def test_modified_watched_file_notifies(self, tmp_path):
        path = str(tmp_path / "a.txt")
        notified = []
        handler = WatchedFileHandler([path], asyncio.get_running_loop(), notified.append, debounce_time=0)

        handler.on_modified(FileModifiedEvent(path))
        await settle()

        assert notified == [path]

    async def test_other_files_and_directories_ignored(self, tmp_path):
        path = str(tmp_path / "a.txt")
        notified = []
        handler = WatchedFileHandler([path], asyncio.get_running_loop(), notified.append, debounce_time=0)

        handler.on_modified(FileModifiedEvent(str(tmp_path / "b.txt")))
        handler.on_modified(DirModifiedEvent(str(tmp_path)))
        await settle()

        assert notified == []

    async def test_created_and_moved_onto_watched_file(self, tmp_path):
        path = str(tmp_path / "a.txt")
        notified = []
        handler = WatchedFileHandler([path], asyncio.get_running_loop(), notified.append, debounce_time=0)

        handler.on_created(FileCreatedEvent(path))
        handler.on_moved(FileMovedEvent(str(tmp_path / ".a.txt.swp"), path))
        handler.on_moved(FileMovedEvent(path, str(tmp_path / "renamed.txt")))
        await settle()

        assert notified == [path, path]

    async def test_burst_collapses_to_one_notification(self, tmp_path):
        path = str(tmp_path / "a.txt")
        notified = []
        handler = WatchedFileHandler([path], asyncio.get_running_loop(), notified.append, debounce_time=0.5)

        handler.record_event(path)
        handler.record_event(path)
        assert handler.flush_pending_events() == 0
        assert notified == []

        assert handler.flush_pending_events(now=time.monotonic() + 1.0) == 1
        assert notified == [path]
        assert handler.pending_events == {}


class TestFileWatcherService:
    async def test_start_and_stop(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("x", encoding="utf-8")
        service = FileWatcherService([str(path)], lambda p: None, debounce_time=0.05)

        await service.start()
        assert service.running is True
        assert service.observer is not None

        await service.stop()
        assert service.running is False
        assert service.observer is None

    async def test_write_reaches_notify(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("x", encoding="utf-8")
        notified = []

        async with FileWatcherService([str(path)], notified.append, debounce_time=0.05):
            await asyncio.sleep(0.2)
            path.write_text("changed", encoding="utf-8")
            for _ in range(100):
                if notified:
                    break
                await asyncio.sleep(0.05)

        assert str(path) in notified
