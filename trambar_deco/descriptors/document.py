"""Definition-document parsing.

A definition is CommonMark. Top-level blocks are classified into language
headings, match-pattern fences and ordinary content; content is collected
per language and rendered to a ``Document``. A reference definition named
``icon`` supplies the icon or image reference.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from functools import lru_cache

from markdown_it import MarkdownIt
from markdown_it.token import Token

from ..config import MATCH_BLOCK_LANGUAGES
from .types import Document

ICON_REFERENCE_LABEL = "ICON"

_PARENTHESIZED_CODE_RE = re.compile(r"^\s*\(([a-z]{2})\)")
_LEADING_CODE_RE = re.compile(r"^\s*([a-z]{2})\b")


@lru_cache(maxsize=1)
def get_markdown_parser() -> MarkdownIt:
    """Get cached Markdown parser instance."""
    return MarkdownIt("commonmark")


@dataclass(frozen=True)
class LanguageHeading:
    code: str


@dataclass(frozen=True)
class MatchBlock:
    patterns: tuple[str, ...]


@dataclass(frozen=True)
class ContentBlock:
    tokens: tuple[Token, ...]


Block = LanguageHeading | MatchBlock | ContentBlock


@dataclass(frozen=True)
class DefinitionInfo:
    """Parsed definition: per-language documents, explicit rules, icon reference.

    ``rules`` is ``None`` when the document declares no match block at all.
    """

    descriptions: dict[str, Document]
    rules: tuple[str, ...] | None
    icon: str | None


def language_code(heading_text: str) -> str | None:
    """Return the two-letter code a heading starts with, if any."""
    match = _PARENTHESIZED_CODE_RE.match(heading_text) or _LEADING_CODE_RE.match(heading_text)
    return match.group(1) if match else None


def iter_top_level_groups(tokens: Sequence[Token]) -> Iterator[list[Token]]:
    """Split a flat token stream into balanced top-level block groups."""
    group: list[Token] = []
    depth = 0
    for token in tokens:
        group.append(token)
        depth += token.nesting
        if depth == 0:
            yield group
            group = []
    if group:
        yield group


def classify_block(group: Sequence[Token]) -> Block:
    """Classify one top-level token group."""
    first = group[0]
    if first.type == "heading_open" and first.tag == "h1" and len(group) > 1:
        code = language_code(group[1].content)
        if code is not None:
            return LanguageHeading(code)
    if first.type == "fence":
        info = first.info.strip().split()
        if info and info[0] in MATCH_BLOCK_LANGUAGES:
            patterns = tuple(
                line.strip() for line in first.content.splitlines() if line.strip()
            )
            return MatchBlock(patterns)
    return ContentBlock(tuple(group))


def _source_text(lines: list[str], blocks: list[ContentBlock]) -> str:
    chunks: list[str] = []
    for block in blocks:
        line_map = block.tokens[0].map
        if line_map is None:
            continue
        chunks.append("\n".join(lines[line_map[0] : line_map[1]]).strip("\n"))
    return "\n\n".join(chunk for chunk in chunks if chunk)


def _render(md: MarkdownIt, blocks: list[ContentBlock], env: dict) -> str:
    tokens = [token for block in blocks for token in block.tokens]
    return md.renderer.render(tokens, md.options, env)


def parse_definition(text: str, default_language: str) -> DefinitionInfo:
    """Parse definition ``text`` into per-language documents, rules and icon.

    Content before any language heading belongs to ``default_language``
    unless a heading for that language exists.
    """
    md = get_markdown_parser()
    env: dict = {}
    tokens = md.parse(text, env)
    lines = text.splitlines()

    default_blocks: list[ContentBlock] = []
    language_blocks: dict[str, list[ContentBlock]] = {}
    current = default_blocks
    patterns: list[str] = []
    saw_match_block = False

    for group in iter_top_level_groups(tokens):
        block = classify_block(group)
        if isinstance(block, LanguageHeading):
            current = language_blocks.setdefault(block.code, [])
        elif isinstance(block, MatchBlock):
            saw_match_block = True
            patterns.extend(block.patterns)
        else:
            current.append(block)

    if default_language not in language_blocks:
        language_blocks[default_language] = default_blocks

    descriptions = {
        language: Document(markdown=_source_text(lines, blocks), html=_render(md, blocks, env))
        for language, blocks in language_blocks.items()
    }

    reference = env.get("references", {}).get(ICON_REFERENCE_LABEL)
    icon = reference.get("href") if isinstance(reference, dict) else None

    return DefinitionInfo(
        descriptions=descriptions,
        rules=tuple(patterns) if saw_match_block else None,
        icon=icon or None,
    )


__all__ = [
    "Block",
    "ContentBlock",
    "DefinitionInfo",
    "LanguageHeading",
    "MatchBlock",
    "classify_block",
    "get_markdown_parser",
    "iter_top_level_groups",
    "language_code",
    "parse_definition",
]
