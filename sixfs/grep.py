"""Print lines matching a pattern; patterns support only ^ . * $."""

from __future__ import annotations

import sys
from typing import BinaryIO

_BUFSIZE = 1024


def match(re: str, text: str) -> bool:
    """True if ``re`` matches anywhere in ``text``."""
    if re.startswith("^"):
        return _match_here(re[1:], text)
    return any(_match_here(re, text[i:]) for i in range(len(text) + 1))


def _match_here(re: str, text: str) -> bool:
    if not re:
        return True
    if len(re) > 1 and re[1] == "*":
        return _match_star(re[0], re[2:], text)
    if re == "$":
        return not text
    if text and (re[0] == "." or re[0] == text[0]):
        return _match_here(re[1:], text[1:])
    return False


def _match_star(c: str, re: str, text: str) -> bool:
    i = 0
    while True:
        if _match_here(re, text[i:]):
            return True
        if i < len(text) and (text[i] == c or c == "."):
            i += 1
        else:
            return False


def grep(pattern: str, stream: BinaryIO, out: BinaryIO) -> None:
    """Copy to ``out`` each newline-terminated line of ``stream`` that matches.

    A line longer than the buffer, or a last line with no newline, is dropped.
    """
    pending = b""
    while True:
        chunk = stream.read(_BUFSIZE - 1 - len(pending))
        if not chunk:
            break
        pending += chunk
        *lines, rest = pending.split(b"\n")
        for line in lines:
            if match(pattern, line.split(b"\0", 1)[0].decode("latin-1")):
                out.write(line + b"\n")
        pending = rest if lines else b""


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout.buffer
    if not args:
        print("usage: grep pattern [file ...]", file=sys.stderr)
        return 1
    pattern, files = args[0], args[1:]
    if not files:
        grep(pattern, sys.stdin.buffer, out)
        out.flush()
        return 0
    for name in files:
        try:
            stream = open(name, "rb")
        except OSError:
            out.write(f"grep: cannot open {name}\n".encode())
            out.flush()
            return 1
        with stream:
            grep(pattern, stream, out)
    out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())