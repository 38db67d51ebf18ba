"""Discovery of sidecar definition files across a repository tree."""

from __future__ import annotations

import logging
from pathlib import Path

from ..cache import PathCache
from ..config import DEFINITION_SUFFIX, METADATA_FOLDER_NAME, SIDECAR_FOLDER_NAME
from ..file_tree_model import DirectoryScanner
from .descriptor import Descriptor

logger = logging.getLogger(__name__)


class DescriptorLoader:
    """Load and cache descriptors, keyed by the path of their definition file."""

    def __init__(
        self,
        repository_root: Path,
        scanner: DirectoryScanner,
        language: str,
        cache: PathCache[Descriptor | None] | None = None,
    ) -> None:
        self.repository_root = repository_root
        self.scanner = scanner
        self.language = language
        self.cache: PathCache[Descriptor | None] = cache if cache is not None else PathCache("descriptor")

    def _read(self, definition_folder: Path, file_path: Path) -> Descriptor | None:
        try:
            return Descriptor.from_file(
                definition_folder,
                file_path,
                repository_root=self.repository_root,
                language=self.language,
            )
        except OSError as exc:
            logger.debug("Cannot read definition %s: %s", file_path, exc)
            return None
        except Exception:
            logger.warning("Failed to parse definition %s", file_path, exc_info=True)
            return None

    def load(self, definition_folder: Path, file_path: Path) -> Descriptor | None:
        """Return the descriptor defined by ``file_path``, parsing it at most once."""
        return self.cache.get_or_load(file_path, lambda: self._read(definition_folder, file_path))

    def load_folder(self, folder: Path) -> list[Descriptor]:
        """Load the descriptors defined in ``folder``'s own sidecar folder."""
        descriptors: list[Descriptor] = []
        for child in self.scanner.list_children(folder / SIDECAR_FOLDER_NAME):
            if not child.is_file or not child.name.endswith(DEFINITION_SUFFIX):
                continue
            descriptor = self.load(folder, child.path)
            if descriptor is not None:
                descriptors.append(descriptor)
        return descriptors

    def load_all(self, folder: Path | None = None) -> list[Descriptor]:
        """Load descriptors from ``folder`` (default: the repository root) and below.

        Sidecar folders never nest, so they are not descended into.
        """
        folder = self.repository_root if folder is None else folder
        descriptors = self.load_folder(folder)
        for child in self.scanner.list_children(folder):
            if not child.is_dir or child.name in (SIDECAR_FOLDER_NAME, METADATA_FOLDER_NAME):
                continue
            descriptors.extend(self.load_all(child.path))
        return descriptors

    def invalidate(self, file_path: Path) -> bool:
        return self.cache.invalidate(file_path)

    def clear(self, prefix: Path | None = None) -> int:
        return self.cache.clear(prefix)


__all__ = ["DescriptorLoader"]
