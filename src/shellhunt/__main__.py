"""Lets `python -m shellhunt` start the scavenger hunt."""

from __future__ import annotations

from .main import main_entry


def main() -> None:
    """Hand over to the console script."""
    main_entry()


if __name__ == "__main__":  # pragma: no cover
    main()
