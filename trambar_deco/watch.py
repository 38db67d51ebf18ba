"""Watchdog-backed file watch feeding ``FileEvent`` values to a dispatcher.

Watchdog callbacks run on the observer's background thread; the dispatcher
(normally ``ChangeTracker.handle``) must be thread-safe.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .change_tracker import EventKind, FileEvent
from .config import IGNORE_FILE_NAME, SIDECAR_FOLDER_NAME
from .gitignore import IgnoreCache

logger = logging.getLogger(__name__)

VISIBLE_DOT_NAMES = frozenset({SIDECAR_FOLDER_NAME, IGNORE_FILE_NAME})

_EVENT_KINDS = {
    "created": EventKind.ADD,
    "modified": EventKind.CHANGE,
    "deleted": EventKind.UNLINK,
}


class RepositoryEventHandler(FileSystemEventHandler):
    """Translate watchdog events under one repository into ``FileEvent``s."""

    def __init__(
        self,
        repository_root: Path,
        ignore_cache: IgnoreCache,
        dispatch: Callable[[FileEvent], object],
    ) -> None:
        super().__init__()
        self.repository_root = repository_root
        self.ignore_cache = ignore_cache
        self._dispatch = dispatch

    def is_ignored(self, path: Path, is_dir: bool = False) -> bool:
        """Drop dot-paths (except sidecar folders and ignore files) and ignored paths."""
        try:
            relative = path.relative_to(self.repository_root)
        except ValueError:
            return True
        for part in relative.parts:
            if part.startswith(".") and part not in VISIBLE_DOT_NAMES:
                return True
        return self.ignore_cache.cached(path.parent).match(path, is_dir=is_dir)

    def _emit(self, kind: EventKind, raw_path: object, is_dir: bool) -> None:
        path = Path(str(raw_path))
        if self.is_ignored(path, is_dir=is_dir):
            return
        logger.debug("File event: %s %s", kind.value, path)
        try:
            self._dispatch(FileEvent(kind, path))
        except Exception:
            logger.exception("Failed to handle %s event for %s", kind.value, path)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type == "moved":
            self._emit(EventKind.UNLINK, event.src_path, event.is_directory)
            self._emit(EventKind.ADD, event.dest_path, event.is_directory)
            return
        kind = _EVENT_KINDS.get(event.event_type)
        if kind is None:
            return
        if kind is EventKind.CHANGE and event.is_directory:
            return
        self._emit(kind, event.src_path, event.is_directory)


class FileWatch:
    """Start, stop and restart a recursive observer over the repository root."""

    def __init__(
        self,
        repository_root: Path,
        ignore_cache: IgnoreCache,
        dispatch: Callable[[FileEvent], object],
        observer_factory: Callable[[], object] = Observer,
    ) -> None:
        self.handler = RepositoryEventHandler(repository_root, ignore_cache, dispatch)
        self.repository_root = repository_root
        self._observer_factory = observer_factory
        self._observer = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        with self._lock:
            if self._observer is not None:
                return
            observer = self._observer_factory()
            observer.schedule(self.handler, str(self.repository_root), recursive=True)
            observer.start()
            self._observer = observer
        logger.debug("Watching %s", self.repository_root)

    def stop(self) -> None:
        with self._lock:
            observer = self._observer
            self._observer = None
        if observer is None:
            return
        observer.stop()
        if observer is not threading.current_thread():
            observer.join()

    def restart(self) -> None:
        """Replace the observer from a helper thread.

        Restarts are requested from inside event callbacks, which run on the
        observer's own thread and cannot join it.
        """
        worker = threading.Thread(
            target=self._restart,
            name="trambar-deco-watch-restart",
            daemon=True,
        )
        worker.start()

    def _restart(self) -> None:
        self.stop()
        self.start()


__all__ = ["FileWatch", "RepositoryEventHandler", "VISIBLE_DOT_NAMES"]
