"""Guarded lookup of sidecar images served under the images endpoint."""

from __future__ import annotations

import mimetypes
from pathlib import Path, PurePosixPath

from .config import IMAGE_SUFFIXES, SIDECAR_FOLDER_NAME


def resolve_image(repository_root: Path, relative_path: str) -> Path | None:
    """Return the absolute image path for ``relative_path`` or ``None``.

    Only image files sitting directly inside a sidecar folder and staying
    under ``repository_root`` are served.
    """
    candidate = PurePosixPath(relative_path.lstrip("/"))
    if not candidate.parts or ".." in candidate.parts:
        return None
    if candidate.parent.name != SIDECAR_FOLDER_NAME:
        return None
    if candidate.suffix.lower() not in IMAGE_SUFFIXES:
        return None

    root = repository_root.resolve()
    absolute = (root / candidate).resolve()
    try:
        absolute.relative_to(root)
    except ValueError:
        return None
    if not absolute.is_file():
        return None
    return absolute


def image_content_type(path: Path) -> str:
    content_type, _encoding = mimetypes.guess_type(path.name)
    return content_type or "application/octet-stream"


__all__ = ["image_content_type", "resolve_image"]
