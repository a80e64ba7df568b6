"""File watching for the functions directory.

watchdog's observer thread only enqueues :class:`FileEvent` objects; a single
asyncio task consumes them and is the only writer of the route indexes.
"""
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .notifier import FUNCTION_RELOAD_EVENT, EventBroadcaster
from .path_classifier import logical_path
from .route_index import RouteGroup

logger = logging.getLogger(__name__)

ADD = "add"
REMOVE = "remove"
CHANGE = "change"


@dataclass(frozen=True)
class FileEvent:
    kind: str
    path: str


class _EnqueueHandler(FileSystemEventHandler):
    def __init__(self, watcher: "FunctionsWatcher") -> None:
        self.watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.push_threadsafe(FileEvent(ADD, str(event.src_path)))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.push_threadsafe(FileEvent(REMOVE, str(event.src_path)))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.push_threadsafe(FileEvent(CHANGE, str(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.push_threadsafe(FileEvent(REMOVE, str(event.src_path)))
            self.watcher.push_threadsafe(FileEvent(ADD, str(event.dest_path)))
            # atomic saves rename a temp file over an existing function
            self.watcher.push_threadsafe(FileEvent(CHANGE, str(event.dest_path)))


class FunctionsWatcher:
    def __init__(
        self,
        root: str,
        groups: list[RouteGroup],
        notifier: Optional[EventBroadcaster] = None,
    ):
        self.root = root
        self.groups = groups
        self.notifier = notifier
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._observer = None

    def scan(self) -> None:
        """Seed every group from the files currently on disk."""
        root = Path(self.root)
        files = sorted(p.as_posix() for p in root.rglob("*") if p.is_file()) if root.is_dir() else []
        if not files:
            logger.warning(f"No function files found under {self.root}")

        for group in self.groups:
            group.index.seed(path for path in files if group.owns(path))
            logger.info(f"[{group.name}] {len(group.index.routes)} route(s) from initial scan")

    async def start(self, observe: bool = True) -> None:
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._consume())

        if observe and Path(self.root).is_dir():
            self._observer = Observer()
            self._observer.schedule(_EnqueueHandler(self), self.root, recursive=True)
            self._observer.start()
            logger.info(f"Watching {self.root} for function changes")

    async def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join)
            self._observer = None

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def push(self, event: FileEvent) -> None:
        if self._queue is None:
            raise RuntimeError("Watcher is not started")
        self._queue.put_nowait(event)

    def push_threadsafe(self, event: FileEvent) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.push, event)

    async def drain(self) -> None:
        """Wait until every queued event has been applied."""
        if self._queue is not None:
            await self._queue.join()

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self.handle(event)
            except Exception:
                logger.exception(f"Failed to apply {event.kind} event for {event.path}")
            finally:
                self._queue.task_done()

    def handle(self, event: FileEvent) -> None:
        if event.kind == CHANGE:
            self._announce_reload(event.path)
            return

        for group in self.groups:
            if not group.owns(event.path):
                continue
            if event.kind == ADD:
                group.index.on_file_added(event.path)
            elif event.kind == REMOVE:
                group.index.on_file_removed(event.path)

    def _announce_reload(self, path: str) -> None:
        if self.notifier is None:
            return
        logical = logical_path(path, self.root)
        if logical:
            self.notifier.send(FUNCTION_RELOAD_EVENT, {"path": logical})
