"""Cache invalidation driven by file-system events.

``ChangeTracker.handle`` applies every invalidation one event implies and
emits at most one change notification for it. Nothing is recomputed here
except after an ignore-file change, which reseeds the caches with a full
rescan before the watch resumes.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .config import IGNORE_FILE_NAME
from .descriptors import DescriptorLoader
from .file_tree_model import DirectoryScanner
from .gitignore import IgnoreCache

logger = logging.getLogger(__name__)


class EventKind(str, enum.Enum):
    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"


@dataclass(frozen=True)
class FileEvent:
    kind: EventKind
    path: Path


class TrackerState(enum.Enum):
    IDLE = "idle"
    INVALIDATING = "invalidating"
    RESTART_PENDING = "restart-pending"


class ChangeTracker:
    """Explicit idle / invalidating / restart-pending state machine."""

    def __init__(
        self,
        scanner: DirectoryScanner,
        ignore_cache: IgnoreCache,
        loader: DescriptorLoader,
        notify: Callable[[], object],
        *,
        rescan: Callable[[], object] | None = None,
        restart_watch: Callable[[], object] | None = None,
        lock: threading.RLock | None = None,
    ) -> None:
        self.scanner = scanner
        self.ignore_cache = ignore_cache
        self.loader = loader
        self.notify = notify
        self.rescan = rescan
        self.restart_watch = restart_watch
        self._lock = lock if lock is not None else threading.RLock()
        self.state = TrackerState.IDLE

    def _invalidate(self, event: FileEvent) -> tuple[bool, bool]:
        """Apply cache invalidations for ``event``.

        Returns ``(changed, ignore_rules_changed)``.
        """
        path = event.path
        parent = path.parent
        changed = False

        if event.kind is not EventKind.CHANGE:
            if self.scanner.invalidate(parent):
                changed = True
        if event.kind is EventKind.UNLINK:
            # a removed directory takes its cached subtree with it
            if self.scanner.clear(path):
                changed = True
            if self.loader.clear(path):
                changed = True
            self.ignore_cache.clear(path)

        ignore_rules_changed = False
        if path.name == IGNORE_FILE_NAME and self.ignore_cache.invalidate(parent):
            ignore_rules_changed = True
            changed = True

        if self.loader.invalidate(path):
            changed = True
        return changed, ignore_rules_changed

    def _restart(self, directory: Path) -> None:
        self.state = TrackerState.RESTART_PENDING
        # listings below the ignore file were filtered with the old rules
        self.scanner.clear(directory)
        if self.rescan is not None:
            self.rescan()
        if self.restart_watch is not None:
            self.restart_watch()

    def handle(self, event: FileEvent) -> bool:
        """Invalidate caches for ``event``; notify once if anything was dropped."""
        with self._lock:
            self.state = TrackerState.INVALIDATING
            try:
                changed, ignore_rules_changed = self._invalidate(event)
                if ignore_rules_changed:
                    logger.debug("Ignore rules changed at %s; rescanning", event.path)
                    self._restart(event.path.parent)
            finally:
                self.state = TrackerState.IDLE

        if changed:
            logger.debug("%s %s invalidated cached state", event.kind.value, event.path)
            self.notify()
        return changed


__all__ = ["ChangeTracker", "EventKind", "FileEvent", "TrackerState"]
