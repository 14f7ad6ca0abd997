"""Print the last lines of a file."""

from __future__ import annotations

import sys
from collections import deque
from typing import BinaryIO

DEFAULT_LINES = 10


def tail(stream: BinaryIO, nline: int) -> list[bytes]:
    """The last ``nline`` newline-terminated lines of ``stream``.

    A final line without a newline is not counted.
    """
    if nline <= 0:
        return []
    last: deque[bytes] = deque(maxlen=nline)
    for line in stream:
        if line.endswith(b"\n"):
            last.append(line)
    return list(last)


def _is_numeric(s: str) -> bool:
    return all("0" <= ch <= "9" for ch in s)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout.buffer
    nline = DEFAULT_LINES
    path = None
    for arg in args:
        if arg.startswith("-"):
            count = arg[1:]
            if _is_numeric(count):
                nline = int(count) if count else 0
            else:
                out.write(f"tail: invalid option -- '{arg[1]}'\n".encode())
                out.flush()
                return 1
        else:
            path = arg
    if path is None:
        out.write(b"".join(tail(sys.stdin.buffer, nline)))
        out.flush()
        return 0
    try:
        stream = open(path, "rb")
    except OSError:
        out.write(f"tail: cannot open {path}\n".encode())
        out.flush()
        return 1
    with stream:
        out.write(b"".join(tail(stream, nline)))
    out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())