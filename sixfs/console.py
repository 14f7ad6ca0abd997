"""Line-editing console input buffer fed by keyboard or serial interrupts."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable

INPUT_BUF = 128
BACKSPACE = 0x100


def _ctrl(ch: str) -> int:
    return ord(ch) - ord("@")


class ConsoleInput:
    """Collects typed characters into lines that readers then consume.

    Echoed output accumulates in ``output``.  Typing ^P calls ``on_procdump``.
    """

    def __init__(self, on_procdump: Callable[[], None] | None = None):
        self._cond = threading.Condition()
        self._buf = bytearray(INPUT_BUF)
        self.r = 0  # read index
        self.w = 0  # write index
        self.e = 0  # edit index
        self.output = bytearray()
        self.on_procdump = on_procdump
        self._cancelled = False

    def _putc(self, c: int) -> None:
        if c == BACKSPACE:
            self.output += b"\b \b"
        else:
            self.output.append(c & 0xFF)

    def interrupt(self, chars: Iterable[int] | str | bytes) -> None:
        """Handle typed characters: editing keys, echo and line completion."""
        if isinstance(chars, str):
            chars = [ord(ch) for ch in chars]
        doprocdump = False
        with self._cond:
            for c in chars:
                if c == _ctrl("P"):
                    doprocdump = True
                elif c == _ctrl("U"):
                    while self.e != self.w and self._buf[(self.e - 1) % INPUT_BUF] != ord("\n"):
                        self.e -= 1
                        self._putc(BACKSPACE)
                elif c in (_ctrl("H"), 0x7F):
                    if self.e != self.w:
                        self.e -= 1
                        self._putc(BACKSPACE)
                elif c != 0 and self.e - self.r < INPUT_BUF:
                    if c == ord("\r"):
                        c = ord("\n")
                    self._buf[self.e % INPUT_BUF] = c & 0xFF
                    self.e += 1
                    self._putc(c)
                    if c in (ord("\n"), _ctrl("D")) or self.e == self.r + INPUT_BUF:
                        self.w = self.e
                        self._cond.notify_all()
        if doprocdump and self.on_procdump is not None:
            self.on_procdump()

    def cancel(self) -> None:
        """Make readers waiting for input give up with InterruptedError."""
        with self._cond:
            self._cancelled = True
            self._cond.notify_all()

    def read(self, n: int) -> bytes:
        """Read up to ``n`` bytes, stopping after a newline; ^D marks end of file."""
        target = n
        out = bytearray()
        with self._cond:
            while n > 0:
                while self.r == self.w:
                    if self._cancelled:
                        raise InterruptedError("console read cancelled")
                    self._cond.wait()
                c = self._buf[self.r % INPUT_BUF]
                self.r += 1
                if c == _ctrl("D"):
                    if n < target:
                        # Keep ^D so the next read returns nothing.
                        self.r -= 1
                    break
                out.append(c)
                n -= 1
                if c == ord("\n"):
                    break
        return bytes(out)