"""Compiled, matchable representation of one definition file.

Rules are split into three buckets when a descriptor is built:

- sidecar rules mention the sidecar folder and only apply to files inside
  one;
- relative rules start with ``../`` and apply to files outside the
  defining folder;
- hierarchical rules apply to files inside the defining folder.

Every bucket compiles to its own gitignore-style matcher and a file is only
ever tested against the bucket its location selects.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from urllib.parse import unquote

from pathspec import GitIgnoreSpec

from ..config import SIDECAR_FOLDER_NAME
from ..file_tree_model import FileNode
from ..gitignore import compile_patterns
from .document import parse_definition
from .types import Component

logger = logging.getLogger(__name__)

SIDECAR_RULE_RE = re.compile(r"(^|/)" + re.escape(SIDECAR_FOLDER_NAME) + r"/")
RELATIVE_RULE_RE = re.compile(r"^\s*\.\./")
URL_SCHEME_RE = re.compile(r"^\w+?:")
IMAGES_ENDPOINT = "images"


def is_in_sidecar(path: Path) -> bool:
    """Return whether ``path`` lies inside a sidecar folder."""
    return SIDECAR_FOLDER_NAME in path.parent.parts


def _is_within(path: Path, folder: Path) -> bool:
    try:
        path.relative_to(folder)
        return True
    except ValueError:
        return False


def partition_rules(rules: list[str] | tuple[str, ...]) -> tuple[list[str], list[str], list[str]]:
    """Split rules into ``(hierarchical, relative, sidecar)`` buckets."""
    hierarchical: list[str] = []
    relative: list[str] = []
    sidecar: list[str] = []
    for rule in rules:
        if not rule:
            continue
        if SIDECAR_RULE_RE.search(rule):
            sidecar.append(rule)
        elif RELATIVE_RULE_RE.match(rule):
            relative.append(rule.lstrip())
        else:
            hierarchical.append(rule)
    return hierarchical, relative, sidecar


def implicit_rules(name: str) -> tuple[str, ...]:
    """Rules matching files named ``<name>.<ext>`` directly in the defining folder.

    A folder such as ``<name>.assets/`` would otherwise match along with
    everything below it.
    """
    return (f"/{name}.*", f"!/{name}.*/**")


def component_id(repository_root: Path, definition_folder: Path, name: str) -> str:
    """Derive ``<containingFolder>/<name>`` relative to the repository root."""
    try:
        folder = definition_folder.relative_to(repository_root).as_posix()
    except ValueError:
        folder = definition_folder.as_posix()
    if folder in ("", "."):
        return name
    return f"{folder}/{name}"


def resolve_icon_url(reference: str | None, sidecar_folder: Path, repository_root: Path) -> str | None:
    """Turn a non-URL icon reference into a path under the images endpoint."""
    if not reference:
        return None
    if URL_SCHEME_RE.match(reference):
        return reference
    icon_path = os.path.normpath(os.path.join(sidecar_folder, unquote(reference)))
    relative = Path(os.path.relpath(icon_path, repository_root)).as_posix()
    return f"{IMAGES_ENDPOINT}/{relative}"


class Descriptor:
    """One component definition and the rules deciding which files it describes."""

    def __init__(
        self,
        name: str,
        definition_folder: Path,
        rules: list[str] | tuple[str, ...],
        component: Component,
    ) -> None:
        self.name = name
        self.definition_folder = definition_folder
        self.rules = tuple(rules)
        self.component = component

        hierarchical, relative, sidecar = partition_rules(self.rules)
        source = f"{definition_folder}/{name}"
        self.matching: GitIgnoreSpec | None = compile_patterns(hierarchical, source=source)
        self.matching_relative: GitIgnoreSpec | None = compile_patterns(relative, source=source)
        self.matching_sidecar: GitIgnoreSpec | None = compile_patterns(sidecar, source=source)

    def __repr__(self) -> str:
        return f"Descriptor(id={self.id!r}, rules={list(self.rules)!r})"

    @property
    def id(self) -> str:
        return self.component.id

    def matcher_for(self, path: Path) -> GitIgnoreSpec | None:
        """Pick the single bucket matcher that applies to ``path``."""
        if is_in_sidecar(path):
            return self.matching_sidecar
        if _is_within(path, self.definition_folder):
            return self.matching
        return self.matching_relative

    def match(self, file: FileNode | Path) -> bool:
        """Return whether this descriptor describes ``file``."""
        path = file.path if isinstance(file, FileNode) else file
        matcher = self.matcher_for(path)
        if matcher is None:
            return False
        relative = Path(os.path.relpath(path, self.definition_folder)).as_posix()
        return matcher.match_file(relative)

    @classmethod
    def from_file(
        cls,
        definition_folder: Path,
        file_path: Path,
        *,
        repository_root: Path,
        language: str,
    ) -> Descriptor:
        """Parse the definition at ``file_path`` into a descriptor.

        Without an explicit match block the descriptor matches the files
        directly inside ``definition_folder`` sharing the definition's base
        name (see ``implicit_rules``). Raises
        ``OSError`` when the file cannot be read.
        """
        text = file_path.read_text(encoding="utf-8-sig", errors="replace")
        info = parse_definition(text, language)
        name = file_path.stem
        url = resolve_icon_url(info.icon, file_path.parent, repository_root)
        component = Component.create(
            component_id(repository_root, definition_folder, name),
            info.descriptions,
            url,
        )
        rules = info.rules if info.rules is not None else implicit_rules(name)
        logger.debug("Loaded descriptor %s with %d rule(s)", component.id, len(rules))
        return cls(name, definition_folder, rules, component)


__all__ = [
    "Descriptor",
    "IMAGES_ENDPOINT",
    "component_id",
    "implicit_rules",
    "is_in_sidecar",
    "partition_rules",
    "resolve_icon_url",
]
