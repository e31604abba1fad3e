"""Filesystem change feed for snippet sources.

Watchdog callbacks run on observer threads, not the event loop. Every
event is handed to the loop with loop.call_soon_threadsafe() and then
debounced, so a burst of writes (an editor save, a bundle download)
becomes a single ChangeEvent.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from snipdex.config import Config
from snipdex.constants.cache import DEFAULT_WATCH_DEBOUNCE_SECONDS
from snipdex.constants.sources import BUNDLE_SUFFIX

logger = logging.getLogger(__name__)

_IGNORED_NAMES = {".DS_Store", "Thumbs.db", "desktop.ini"}


@dataclass(frozen=True)
class ChangeEvent:
    """One debounced batch of filesystem changes."""

    paths: tuple[str, ...]
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        if len(self.paths) == 1:
            return self.paths[0]
        return f"{len(self.paths)} paths"


@dataclass(frozen=True)
class WatchTarget:
    """A directory to observe and a filter for the paths that matter."""

    path: Path
    recursive: bool = True
    match: Callable[[Path], bool] | None = None


def _is_ignored(path: Path) -> bool:
    name = path.name
    if name in _IGNORED_NAMES:
        return True
    return name.endswith(".tmp") or name.endswith("~")


class _ForwardingHandler(FileSystemEventHandler):
    """Filters events for one target and forwards their paths."""

    def __init__(self, target: WatchTarget, forward: Callable[[str], None]):
        super().__init__()
        self.target = target
        self.forward = forward

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("opened", "closed_no_write"):
            return
        # A file event already covers its parent's mtime change
        if event.is_directory and event.event_type == "modified":
            return
        path = Path(str(event.src_path))
        if _is_ignored(path):
            return
        if self.target.match is not None and not self.target.match(path):
            return
        logger.debug(f"File event: {event.event_type} - {path}")
        self.forward(str(path))


class ChangeFeed:
    """Async iterator of ChangeEvents for a set of watch targets.

    Usage::

        feed = ChangeFeed(targets)
        feed.start()
        async for event in feed:
            ...
        await feed.close()  # from elsewhere; ends the iteration

    start() must be called from the event loop that consumes the feed.
    """

    def __init__(
        self,
        targets: Iterable[WatchTarget],
        debounce_seconds: float = DEFAULT_WATCH_DEBOUNCE_SECONDS,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.targets = list(targets)
        self.debounce_seconds = debounce_seconds
        self._observer_factory = observer_factory
        self._observer: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue()
        self._pending: list[str] = []
        self._timer: asyncio.TimerHandle | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Begin observing. Targets that do not exist are skipped."""
        if self._observer is not None:
            return
        self._loop = asyncio.get_running_loop()
        observer = self._observer_factory()
        watched = 0
        for target in self.targets:
            if not target.path.is_dir():
                logger.info(f"Not watching {target.path}: not a directory")
                continue
            handler = _ForwardingHandler(target, self._forward_threadsafe)
            observer.schedule(handler, str(target.path), recursive=target.recursive)
            watched += 1
        observer.start()
        self._observer = observer
        logger.info(f"Watching {watched} location(s) for snippet changes")

    async def close(self) -> None:
        """Stop observing and end iteration. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._queue.put_nowait(None)
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            # join() blocks until the observer thread exits
            await asyncio.to_thread(observer.join, 5)

    def push(self, path: str) -> None:
        """Record a changed path. Must run on the event loop thread."""
        if self._closed:
            return
        self._pending.append(path)
        if self._timer is not None:
            self._timer.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._flush)

    def _forward_threadsafe(self, path: str) -> None:
        # Called on a watchdog observer thread
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self.push, path)

    def _flush(self) -> None:
        self._timer = None
        if not self._pending or self._closed:
            return
        paths = tuple(dict.fromkeys(self._pending))
        self._pending.clear()
        self._queue.put_nowait(ChangeEvent(paths=paths))

    def __aiter__(self) -> "ChangeFeed":
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event


def watch_targets(settings: Config) -> list[WatchTarget]:
    """Watch targets for the configured snippet sources."""
    targets: list[WatchTarget] = []

    if settings.snippets_dir is not None:
        targets.append(WatchTarget(settings.snippets_dir, recursive=True))

    db_path = settings.snippets_db_path
    if db_path is not None:
        # SQLite writes go to the db file and its -wal/-journal siblings
        prefix = db_path.name
        targets.append(
            WatchTarget(
                db_path.parent,
                recursive=False,
                match=lambda p: p.name.startswith(prefix),
            )
        )

    for directory in settings.archive_dirs:
        targets.append(
            WatchTarget(
                directory,
                recursive=False,
                match=lambda p: p.suffix.lower() == BUNDLE_SUFFIX,
            )
        )

    return targets


def create_change_feed(settings: Config) -> ChangeFeed:
    """Build an unstarted ChangeFeed for the configured sources."""
    return ChangeFeed(watch_targets(settings), debounce_seconds=settings.watch.debounce_seconds)
