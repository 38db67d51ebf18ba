"""Public package surface for trambar-deco.

Exports ``main`` for programmatic CLI invocation and ``Workspace`` for
embedding the descriptor engine in another server.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


def __getattr__(name: str):
    if name == "Workspace":
        from .workspace import Workspace

        return Workspace
    raise AttributeError(name)


__all__ = ["main", "Workspace"]
