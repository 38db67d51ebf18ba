"""Cascading ``.gitignore`` evaluation for a directory chain.

Each ignore file compiles to one ``IgnoreRuleSet`` attached to the directory
holding it. ``IgnoreCache.load`` aggregates the rule sets from the repository
root down to a directory; scanners use the result to hide ignored entries.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from pathspec import GitIgnoreSpec

from .cache import PathCache
from .config import IGNORE_FILE_NAME, METADATA_FOLDER_NAME

logger = logging.getLogger(__name__)


def _is_within(path: Path, root: Path) -> bool:
    """Return whether ``path`` is at or under ``root``."""
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


def compile_patterns(lines: Iterable[str], *, source: object = None) -> GitIgnoreSpec | None:
    """Compile gitignore-style lines, skipping any the matcher rejects.

    Returns ``None`` when no usable pattern remains.
    """
    patterns = [line for line in lines if line and line.strip()]
    if not patterns:
        return None
    try:
        spec = GitIgnoreSpec.from_lines(patterns)
    except ValueError:
        accepted: list[str] = []
        for pattern in patterns:
            try:
                GitIgnoreSpec.from_lines([pattern])
            except ValueError as exc:
                logger.warning("Skipping malformed pattern %r in %s: %s", pattern, source, exc)
                continue
            accepted.append(pattern)
        if not accepted:
            return None
        spec = GitIgnoreSpec.from_lines(accepted)
    if not any(pattern.include is not None for pattern in spec.patterns):
        return None
    return spec


@dataclass(frozen=True)
class IgnoreRuleSet:
    """Compiled patterns from one ignore file, scoped to ``directory``."""

    directory: Path
    spec: GitIgnoreSpec

    def decide(self, relative_path: str) -> bool | None:
        """Return the verdict of the last pattern matching ``relative_path``.

        ``True`` means ignored, ``False`` means explicitly re-included by a
        negated pattern, ``None`` means no pattern applies.
        """
        decision: bool | None = None
        for pattern in self.spec.patterns:
            if pattern.include is None:
                continue
            if pattern.match_file(relative_path) is not None:
                decision = bool(pattern.include)
        return decision


@dataclass(frozen=True)
class IgnoreSet:
    """Rule sets governing one directory, ordered from root-most to deepest."""

    rule_sets: tuple[IgnoreRuleSet, ...] = ()

    def match(self, path: Path, is_dir: bool = False) -> bool:
        """Return whether ``path`` should be hidden.

        The metadata directory is always ignored. Deeper rule sets can only
        re-include a path that an ancestor ignored, and only through their
        own negated patterns.
        """
        if path.name == METADATA_FOLDER_NAME:
            return True
        ignored = False
        for rule_set in self.rule_sets:
            if not _is_within(path, rule_set.directory):
                continue
            relative = path.relative_to(rule_set.directory).as_posix()
            if is_dir:
                relative += "/"
            decision = rule_set.decide(relative)
            if decision is True:
                ignored = True
            elif ignored and decision is False:
                ignored = False
        return ignored


def load_rule_set(directory: Path) -> IgnoreRuleSet | None:
    """Read and compile ``directory``'s ignore file.

    A missing, unreadable or non-regular file contributes no rules.
    """
    ignore_path = directory / IGNORE_FILE_NAME
    if not ignore_path.is_file():
        return None
    try:
        text = ignore_path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError:
        return None
    spec = compile_patterns(text.splitlines(), source=ignore_path)
    if spec is None:
        return None
    logger.debug("Loaded ignore rules from %s", ignore_path)
    return IgnoreRuleSet(directory=directory, spec=spec)


class IgnoreCache:
    """Per-directory cache of compiled ignore rule sets for one repository.

    Entries are keyed by the directory containing the ignore file. Absence of
    a file is cached too, so creating one later counts as an invalidation.
    """

    def __init__(self, repository_root: Path, cache: PathCache[IgnoreRuleSet | None] | None = None) -> None:
        self.repository_root = repository_root
        self.cache: PathCache[IgnoreRuleSet | None] = cache if cache is not None else PathCache("ignore")

    def folder_chain(self, directory: Path) -> list[Path]:
        """Return ``directory`` and its ancestors up to the repository root, deepest first."""
        chain: list[Path] = []
        current: Path | None = directory
        while current is not None:
            chain.append(current)
            parent = current.parent
            if current == self.repository_root or parent == current:
                current = None
            else:
                current = parent
        return chain

    def load_rule_set(self, directory: Path) -> IgnoreRuleSet | None:
        return self.cache.get_or_load(directory, lambda: load_rule_set(directory))

    def load(self, directory: Path) -> IgnoreSet:
        """Return the aggregated ignore rules governing ``directory``."""
        rule_sets = [self.load_rule_set(folder) for folder in self.folder_chain(directory)]
        return IgnoreSet(tuple(rule_set for rule_set in reversed(rule_sets) if rule_set is not None))

    def cached(self, directory: Path) -> IgnoreSet:
        """Like ``load`` but only consults already-cached rule sets."""
        rule_sets = [self.cache.get(folder) for folder in self.folder_chain(directory)]
        return IgnoreSet(tuple(rule_set for rule_set in reversed(rule_sets) if rule_set is not None))

    def invalidate(self, directory: Path) -> bool:
        return self.cache.invalidate(directory)

    def clear(self, prefix: Path | None = None) -> int:
        return self.cache.clear(prefix)


__all__ = [
    "IgnoreRuleSet",
    "IgnoreSet",
    "IgnoreCache",
    "compile_patterns",
    "load_rule_set",
]
