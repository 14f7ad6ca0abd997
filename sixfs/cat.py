"""Concatenate files to standard output."""

from __future__ import annotations

import sys
from typing import BinaryIO

_CHUNK = 512


def cat(stream: BinaryIO, out: BinaryIO) -> None:
    """Copy everything from ``stream`` to ``out``; read errors propagate."""
    while chunk := stream.read(_CHUNK):
        out.write(chunk)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout.buffer
    try:
        if not args:
            cat(sys.stdin.buffer, out)
            return 0
        for name in args:
            try:
                stream = open(name, "rb")
            except OSError:
                out.write(f"cat: cannot open {name}\n".encode())
                return 1
            with stream:
                cat(stream, out)
        return 0
    except OSError:
        out.write(b"cat: read error\n")
        return 1
    finally:
        out.flush()


if __name__ == "__main__":
    sys.exit(main())