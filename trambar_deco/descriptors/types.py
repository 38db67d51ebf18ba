"""Component value types exported to the UI."""

from __future__ import annotations

from dataclasses import dataclass, field

ICON_URL_PREFIX = "fa://"


@dataclass(frozen=True)
class Document:
    """One language section of a definition, as source and rendered HTML."""

    markdown: str
    html: str

    def to_dict(self) -> dict[str, str]:
        return {"markdown": self.markdown, "html": self.html}


@dataclass(frozen=True)
class Icon:
    """Font icon reference decoded from a ``fa://`` pseudo-URL."""

    class_name: str
    background_color: str | None = None
    color: str | None = None

    @classmethod
    def from_url(cls, url: str) -> Icon:
        """Decode ``fa://<class>/<backgroundColor>/<color>``.

        ``+`` in the class segment stands for a space; missing colours are
        ``None``.
        """
        parts = url[len(ICON_URL_PREFIX) :].split("/")
        return cls(
            class_name=parts[0].replace("+", " ").strip(),
            background_color=(parts[1] or None) if len(parts) > 1 else None,
            color=(parts[2] or None) if len(parts) > 2 else None,
        )

    def to_dict(self) -> dict[str, str | None]:
        return {
            "class": self.class_name,
            "backgroundColor": self.background_color,
            "color": self.color,
        }


@dataclass(frozen=True)
class Image:
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url}


@dataclass(frozen=True)
class Component:
    """Localized description plus optional icon or image, keyed by ``id``."""

    id: str
    text: dict[str, Document] = field(default_factory=dict, hash=False, compare=False)
    icon: Icon | None = None
    image: Image | None = None

    @classmethod
    def create(cls, component_id: str, text: dict[str, Document], url: str | None) -> Component:
        """Build a component, decoding ``url`` into an icon or an image."""
        if url and url.startswith(ICON_URL_PREFIX):
            return cls(id=component_id, text=text, icon=Icon.from_url(url))
        if url:
            return cls(id=component_id, text=text, image=Image(url=url))
        return cls(id=component_id, text=text)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "id": self.id,
            "text": {language: document.to_dict() for language, document in self.text.items()},
        }
        if self.icon is not None:
            data["icon"] = self.icon.to_dict()
        if self.image is not None:
            data["image"] = self.image.to_dict()
        return data


__all__ = [
    "Component",
    "Document",
    "Icon",
    "Image",
    "ICON_URL_PREFIX",
]
