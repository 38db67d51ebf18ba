"""Component definitions: parsing, matching and discovery."""

from __future__ import annotations

from .types import Component, Document, Icon, Image
from .document import DefinitionInfo, parse_definition
from .descriptor import Descriptor, is_in_sidecar, partition_rules, resolve_icon_url
from .loader import DescriptorLoader

__all__ = [
    "Component",
    "DefinitionInfo",
    "Descriptor",
    "DescriptorLoader",
    "Document",
    "Icon",
    "Image",
    "is_in_sidecar",
    "parse_definition",
    "partition_rules",
    "resolve_icon_url",
]
