"""Print the arguments separated by spaces."""

from __future__ import annotations

import sys
from collections.abc import Sequence


def echo(args: Sequence[str]) -> str:
    """The arguments joined by spaces and ended by a newline; empty if none."""
    return " ".join(args) + "\n" if args else ""


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    sys.stdout.write(echo(args))
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())