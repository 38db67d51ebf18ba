"""Attach descriptors to files and export the result for the UI.

``resolve_components`` fills ``FileNode.components``; the export helpers
produce the flat and tree payloads with paths relative to the repository
root and children sorted by path.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .descriptors import Component, Descriptor
from .file_tree_model import FileNode, FolderNode, TreeNode, iter_files


def resolve_components(tree: FolderNode, descriptors: Sequence[Descriptor]) -> FolderNode:
    """Set each file's components to those of every matching descriptor.

    Components keep descriptor discovery order.
    """
    for file in iter_files(tree):
        file.components = [descriptor.component for descriptor in descriptors if descriptor.match(file)]
    return tree


def index_component_files(tree: FolderNode, descriptors: Sequence[Descriptor]) -> dict[str, list[FileNode]]:
    """Build the component-id to files index in one pass over resolved files.

    Every descriptor gets an entry, even when it matched nothing.
    """
    index: dict[str, list[FileNode]] = {descriptor.id: [] for descriptor in descriptors}
    for file in iter_files(tree):
        for component in file.components:
            index.setdefault(component.id, []).append(file)
    return index


def relative_path(path: Path, root: Path) -> str:
    """Return ``path`` relative to ``root`` in POSIX form; the root itself is ``""``."""
    try:
        relative = path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()
    return "" if relative == "." else relative


def _sorted_children(folder: FolderNode, root: Path) -> list[TreeNode]:
    return sorted(folder.children, key=lambda child: relative_path(child.path, root))


def export_file(file: FileNode, root: Path, include_components: bool) -> dict[str, object]:
    data: dict[str, object] = {"path": relative_path(file.path, root), "text": file.is_text}
    if include_components and file.components:
        data["components"] = [component.id for component in file.components]
    return data


def export_folder(folder: FolderNode, root: Path, include_components: bool = False) -> dict[str, object]:
    children: list[dict[str, object]] = []
    for child in _sorted_children(folder, root):
        if isinstance(child, FolderNode):
            children.append(export_folder(child, root, include_components))
        else:
            children.append(export_file(child, root, include_components))
    return {"path": relative_path(folder.path, root), "children": children}


def export_components(
    tree: FolderNode,
    descriptors: Sequence[Descriptor],
    root: Path,
) -> list[dict[str, object]]:
    """Export components with their file lists.

    Components appear in the order their first file sorts; components with
    no files follow, sorted by id.
    """
    index = index_component_files(tree, descriptors)
    components: dict[str, Component] = {descriptor.id: descriptor.component for descriptor in descriptors}

    files = sorted(iter_files(tree), key=lambda file: relative_path(file.path, root))
    ordered: list[str] = []
    seen: set[str] = set()
    for file in files:
        for component in file.components:
            if component.id not in seen:
                seen.add(component.id)
                ordered.append(component.id)
                components.setdefault(component.id, component)
    ordered.extend(sorted(component_id for component_id in index if component_id not in seen))

    exported: list[dict[str, object]] = []
    for component_id in ordered:
        data = components[component_id].to_dict()
        file_paths = sorted(relative_path(file.path, root) for file in index.get(component_id, []))
        data["files"] = [{"path": path} for path in file_paths]
        exported.append(data)
    return exported


def export_flat(tree: FolderNode, descriptors: Sequence[Descriptor], root: Path) -> dict[str, object]:
    """Flat form: ``{components, folders}``."""
    return {
        "components": export_components(tree, descriptors, root),
        "folders": [export_folder(tree, root, include_components=False)],
    }


def export_tree(tree: FolderNode, descriptors: Sequence[Descriptor], root: Path) -> dict[str, object]:
    """Tree form: ``{folder, components, root}`` with component ids on files."""
    return {
        "folder": export_folder(tree, root, include_components=True),
        "components": export_components(tree, descriptors, root),
        "root": str(root),
    }


__all__ = [
    "export_components",
    "export_file",
    "export_flat",
    "export_folder",
    "export_tree",
    "index_component_files",
    "relative_path",
    "resolve_components",
]
