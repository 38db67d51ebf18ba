"""One repository's caches plus the describe and watch control flow.

A describe request builds the folder tree, loads every descriptor from the
repository root and resolves them against the tree. The caches persist
between requests; the change tracker tears them down as files change.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from .change_tracker import ChangeTracker, FileEvent
from .config import DEFAULT_LANGUAGE, METADATA_FOLDER_NAME
from .descriptors import Descriptor, DescriptorLoader
from .errors import RepositoryNotFoundError, WorkingDirectoryError
from .file_tree_model import TREE_SCAN_MAX_WORKERS, DirectoryScanner, FolderNode, build_file_tree
from .gitignore import IgnoreCache
from .images import resolve_image
from .notification import ChangeNotifier
from .resolver import export_flat, export_tree, resolve_components
from .watch import FileWatch

logger = logging.getLogger(__name__)


def find_repository_root(start: Path) -> Path:
    """Return the nearest folder at or above ``start`` holding a ``.git`` entry.

    Raises ``WorkingDirectoryError`` when ``start`` is not a readable folder
    and ``RepositoryNotFoundError`` when no repository encloses it.
    """
    try:
        resolved = start.resolve(strict=True)
    except OSError as exc:
        raise WorkingDirectoryError(start, exc.strerror or str(exc)) from exc
    if not resolved.is_dir() or not os.access(resolved, os.R_OK | os.X_OK):
        raise WorkingDirectoryError(start, "not a readable folder")

    current = resolved
    while True:
        if (current / METADATA_FOLDER_NAME).exists():
            return current
        parent = current.parent
        if parent == current:
            raise RepositoryNotFoundError(start)
        current = parent


class Workspace:
    """Caches and operations for a single repository root."""

    def __init__(
        self,
        repository_root: Path,
        *,
        language: str = DEFAULT_LANGUAGE,
        notifier: ChangeNotifier | None = None,
        max_workers: int = TREE_SCAN_MAX_WORKERS,
    ) -> None:
        self.repository_root = repository_root.resolve()
        self.language = language
        self.max_workers = max_workers
        self.notifier = notifier if notifier is not None else ChangeNotifier()
        self.ignore_cache = IgnoreCache(self.repository_root)
        self.scanner = DirectoryScanner(self.ignore_cache)
        self.loader = DescriptorLoader(self.repository_root, self.scanner, language)
        self._lock = threading.RLock()
        self.tracker = ChangeTracker(
            self.scanner,
            self.ignore_cache,
            self.loader,
            self.notifier.notify,
            rescan=self.rescan,
            lock=self._lock,
        )
        self.watch: FileWatch | None = None

    @classmethod
    def discover(cls, start: Path, **kwargs) -> Workspace:
        """Create a workspace for the repository enclosing ``start``."""
        return cls(find_repository_root(start), **kwargs)

    def _start_folder(self, start: Path | None) -> Path:
        if start is None:
            return self.repository_root
        folder = start.resolve()
        try:
            folder.relative_to(self.repository_root)
        except ValueError:
            return self.repository_root
        return folder

    def describe(self, start: Path | None = None) -> tuple[FolderNode, list[Descriptor]]:
        """Build and resolve the tree under ``start`` (default: the repository root).

        Descriptors always come from the whole repository.
        """
        folder = self._start_folder(start)
        with self._lock:
            tree = build_file_tree(folder, self.scanner, max_workers=self.max_workers)
            descriptors = self.loader.load_all()
            resolve_components(tree, descriptors)
        logger.debug("Described %s with %d descriptor(s)", folder, len(descriptors))
        return tree, descriptors

    def describe_flat(self, start: Path | None = None) -> dict[str, object]:
        tree, descriptors = self.describe(start)
        return export_flat(tree, descriptors, self.repository_root)

    def describe_tree(self, start: Path | None = None) -> dict[str, object]:
        tree, descriptors = self.describe(start)
        return export_tree(tree, descriptors, self.repository_root)

    def rescan(self) -> FolderNode:
        """Walk the whole repository to reseed the listing and ignore caches."""
        with self._lock:
            return build_file_tree(self.repository_root, self.scanner, max_workers=self.max_workers)

    def handle_event(self, event: FileEvent) -> bool:
        return self.tracker.handle(event)

    def resolve_image(self, relative_path: str) -> Path | None:
        return resolve_image(self.repository_root, relative_path)

    def start_watch(self) -> FileWatch:
        """Seed the caches, then start watching the repository for changes."""
        if self.watch is None:
            self.rescan()
            self.watch = FileWatch(self.repository_root, self.ignore_cache, self.tracker.handle)
            self.tracker.restart_watch = self.watch.restart
        self.watch.start()
        return self.watch

    def stop_watch(self) -> None:
        if self.watch is not None:
            self.watch.stop()

    def clear_caches(self) -> None:
        with self._lock:
            self.ignore_cache.clear()
            self.scanner.clear()
            self.loader.clear()


__all__ = ["Workspace", "find_repository_root"]
