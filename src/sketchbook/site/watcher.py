"""Debounced content-directory watcher that queues changed projects for rebuild."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import threading
from typing import Awaitable, Callable

from watchdog.events import FileSystemEvent, PatternMatchingEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

CONTENT_PATTERNS = ["*.ino", "*.h", "*.hpp", "*.c", "*.cpp", "*.md", "project.json"]


def project_id_for(content_dir: Path, changed: Path) -> str | None:
    """Return the project directory name a changed file belongs to."""

    try:
        relative = changed.resolve().relative_to(content_dir.resolve())
    except ValueError:
        return None
    if len(relative.parts) < 2:
        return None
    return relative.parts[0]


class DebouncedContentHandler(PatternMatchingEventHandler):
    """Collapse bursts of editor writes into one queued project id."""

    def __init__(
        self,
        *,
        content_dir: Path,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[str],
        debounce_seconds: float = 0.5,
    ) -> None:
        super().__init__(
            patterns=CONTENT_PATTERNS,
            ignore_patterns=["*.tmp", "*.swp", ".*", "*~"],
            ignore_directories=True,
            case_sensitive=False,
        )
        self._content_dir = content_dir
        self._loop = loop
        self._queue = queue
        self._debounce_seconds = debounce_seconds
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def _emit(self, project_id: str) -> None:
        with self._lock:
            self._timers.pop(project_id, None)
        self._loop.call_soon_threadsafe(self._queue.put_nowait, project_id)

    def _schedule(self, raw_path: str) -> None:
        project_id = project_id_for(self._content_dir, Path(raw_path))
        if project_id is None:
            return

        with self._lock:
            existing = self._timers.pop(project_id, None)
            if existing is not None:
                existing.cancel()

            timer = threading.Timer(self._debounce_seconds, self._emit, args=(project_id,))
            timer.daemon = True
            self._timers[project_id] = timer
            timer.start()

    def on_created(self, event: FileSystemEvent) -> None:
        self._schedule(str(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        self._schedule(str(event.src_path))

    def close(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()


class ContentWatcher:
    def __init__(
        self,
        content_dir: str | Path,
        callback: Callable[[str], Awaitable[None]],
        debounce_seconds: float = 0.5,
    ) -> None:
        self._content_dir = Path(content_dir)
        self._callback = callback
        self._debounce_seconds = debounce_seconds
        self._queue: asyncio.Queue[str] | None = None
        self._handler: DebouncedContentHandler | None = None
        self._observer: Observer | None = None
        self._consumer_task: asyncio.Task[None] | None = None

    async def _consume(self) -> None:
        assert self._queue is not None
        while True:
            project_id = await self._queue.get()
            try:
                await self._callback(project_id)
            except Exception:  # pragma: no cover
                logger.exception("Rebuild failed for project %s", project_id)
            finally:
                self._queue.task_done()

    async def start(self) -> None:
        if self._observer is not None:
            return
        if not self._content_dir.is_dir():
            raise ValueError(f"Content directory does not exist or is not a directory: {self._content_dir}")

        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._handler = DebouncedContentHandler(
            content_dir=self._content_dir,
            loop=loop,
            queue=self._queue,
            debounce_seconds=self._debounce_seconds,
        )

        observer = Observer()
        observer.schedule(self._handler, str(self._content_dir), recursive=True)
        observer.start()
        self._observer = observer
        self._consumer_task = asyncio.create_task(self._consume())

    def stop(self) -> None:
        observer = self._observer
        if observer is not None:
            observer.stop()
            observer.join(timeout=5.0)
            self._observer = None

        if self._handler is not None:
            self._handler.close()
            self._handler = None

        if self._consumer_task is not None:
            self._consumer_task.cancel()
            self._consumer_task = None
