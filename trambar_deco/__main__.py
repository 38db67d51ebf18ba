"""Module entrypoint for ``python -m trambar_deco``.

All argument parsing and runtime setup happen in ``trambar_deco.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
