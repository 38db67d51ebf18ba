"""Domain model for the scanned repository tree.

This package contains the non-UI tree primitives:
- file/folder node datatypes with nested children
- the memoized, ignore-aware directory scanner
- recursive tree construction with text/binary classification
"""

from __future__ import annotations

from .types import FileNode, FolderNode, TreeNode, iter_files
from .fs import (
    DirectoryChild,
    DirectoryScanner,
    TREE_SCAN_MAX_WORKERS,
    build_file_tree,
    is_text_file,
)

__all__ = [
    "FileNode",
    "FolderNode",
    "TreeNode",
    "iter_files",
    "DirectoryChild",
    "DirectoryScanner",
    "TREE_SCAN_MAX_WORKERS",
    "build_file_tree",
    "is_text_file",
]
