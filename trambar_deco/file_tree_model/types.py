"""Domain datatypes for the scanned repository tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..descriptors.types import Component


@dataclass
class FileNode:
    """One file in the tree; ``components`` is filled in by resolution."""

    path: Path
    is_text: bool
    components: list["Component"] = field(default_factory=list)


@dataclass(frozen=True)
class FolderNode:
    """Directory with recursively nested children in listing order."""

    path: Path
    children: tuple["TreeNode", ...] = ()


TreeNode = FolderNode | FileNode


def iter_files(folder: FolderNode):
    """Yield every ``FileNode`` under ``folder`` depth-first."""
    for child in folder.children:
        if isinstance(child, FolderNode):
            yield from iter_files(child)
        else:
            yield child


__all__ = [
    "FileNode",
    "FolderNode",
    "TreeNode",
    "iter_files",
]
