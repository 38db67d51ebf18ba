"""Filesystem scanning and domain-tree construction.

``DirectoryScanner`` lists one directory at a time through the ignore rules
and memoizes the result per path. ``build_file_tree`` walks the scanner
recursively and classifies every file as text or binary.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from ..cache import PathCache
from ..config import METADATA_FOLDER_NAME, TEXT_SAMPLE_BYTES
from ..gitignore import IgnoreCache
from .types import FileNode, FolderNode, TreeNode

logger = logging.getLogger(__name__)

TREE_SCAN_MAX_WORKERS = 8


@dataclass(frozen=True)
class DirectoryChild:
    """One visible directory entry as observed when the listing was taken.

    ``is_file`` is true only for regular files (following symlinks); pipes,
    sockets and device nodes are neither files nor directories.
    """

    name: str
    path: Path
    is_dir: bool
    is_file: bool = False


def is_text_file(path: Path, sample_bytes: int = TEXT_SAMPLE_BYTES) -> bool | None:
    """Classify ``path`` by sampling its first bytes for a NUL byte.

    Returns ``None`` when the file cannot be opened, which callers treat as
    "vanished". Empty files are text.
    """
    try:
        with path.open("rb") as handle:
            try:
                sample = handle.read(sample_bytes)
            except OSError as exc:
                logger.debug("Cannot read %s: %s", path, exc)
                return False
    except OSError:
        return None
    return b"\x00" not in sample


def _read_children(directory: Path, ignore_cache: IgnoreCache) -> tuple[DirectoryChild, ...]:
    """List ``directory`` through its ignore rules; unreadable means empty."""
    ignore_set = ignore_cache.load(directory)
    children: list[DirectoryChild] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                child_path = directory / entry.name
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                    is_file = not is_dir and entry.is_file(follow_symlinks=True)
                except OSError:
                    is_dir = False
                    is_file = False
                if ignore_set.match(child_path, is_dir=is_dir):
                    continue
                children.append(DirectoryChild(name=entry.name, path=child_path, is_dir=is_dir, is_file=is_file))
    except OSError as exc:
        logger.debug("Cannot list %s: %s", directory, exc)
        return ()
    return tuple(children)


class DirectoryScanner:
    """Memoized, ignore-aware listing of immediate directory children."""

    def __init__(
        self,
        ignore_cache: IgnoreCache,
        cache: PathCache[tuple[DirectoryChild, ...]] | None = None,
    ) -> None:
        self.ignore_cache = ignore_cache
        self.cache: PathCache[tuple[DirectoryChild, ...]] = cache if cache is not None else PathCache("listing")

    def list_children(self, directory: Path) -> tuple[DirectoryChild, ...]:
        """Return cached child entries of ``directory``, reading on a miss."""
        return self.cache.get_or_load(directory, lambda: _read_children(directory, self.ignore_cache))

    def scan(self, directory: Path) -> list[Path]:
        """Return absolute paths of the visible children of ``directory``."""
        return [child.path for child in self.list_children(directory)]

    def invalidate(self, directory: Path) -> bool:
        return self.cache.invalidate(directory)

    def clear(self, prefix: Path | None = None) -> int:
        return self.cache.clear(prefix)


def _build_children(scanner: DirectoryScanner, directory: Path) -> tuple[TreeNode, ...]:
    nodes: list[TreeNode] = []
    for child in scanner.list_children(directory):
        node = _build_child(scanner, child)
        if node is not None:
            nodes.append(node)
    return tuple(nodes)


def _build_child(scanner: DirectoryScanner, child: DirectoryChild) -> TreeNode | None:
    """Build the node for one listed child, or ``None`` if it has vanished."""
    if child.is_dir:
        if child.name == METADATA_FOLDER_NAME:
            return None
        children = _build_children(scanner, child.path)
        if not children and not child.path.is_dir():
            return None
        return FolderNode(path=child.path, children=children)

    if not child.is_file:
        # opening a pipe or device would block the whole scan
        logger.debug("Skipping non-regular file %s", child.path)
        return None
    is_text = is_text_file(child.path)
    if is_text is None:
        logger.debug("Skipping vanished file %s", child.path)
        return None
    return FileNode(path=child.path, is_text=is_text)


def build_file_tree(
    root: Path,
    scanner: DirectoryScanner,
    *,
    max_workers: int = TREE_SCAN_MAX_WORKERS,
) -> FolderNode:
    """Build the folder tree rooted at ``root``.

    Top-level subdirectories are scanned concurrently when ``max_workers`` is
    greater than one; children always come back in listing order.
    """
    listing = scanner.list_children(root)
    subdirectories = [child for child in listing if child.is_dir]
    if max_workers <= 1 or len(subdirectories) < 2:
        return FolderNode(path=root, children=_build_children(scanner, root))

    built: list[TreeNode | None] = [None] * len(listing)
    with ThreadPoolExecutor(
        max_workers=min(max_workers, len(subdirectories)),
        thread_name_prefix="trambar-deco-scan",
    ) as executor:
        futures = {
            index: executor.submit(_build_child, scanner, child)
            for index, child in enumerate(listing)
            if child.is_dir
        }
        for index, child in enumerate(listing):
            if not child.is_dir:
                built[index] = _build_child(scanner, child)
        for index, future in futures.items():
            built[index] = future.result()
    return FolderNode(path=root, children=tuple(node for node in built if node is not None))


__all__ = [
    "DirectoryChild",
    "DirectoryScanner",
    "TREE_SCAN_MAX_WORKERS",
    "build_file_tree",
    "is_text_file",
]
