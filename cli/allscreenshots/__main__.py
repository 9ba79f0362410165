"""Module entrypoint for ``python -m cli.allscreenshots``."""

from __future__ import annotations

from .cli import main as run


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
