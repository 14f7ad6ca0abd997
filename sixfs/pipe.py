"""A bounded in-kernel pipe between a reader and a writer."""

from __future__ import annotations

import threading

PIPESIZE = 512


class Pipe:
    """Ring buffer of PIPESIZE bytes; writers block when full, readers when empty."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._data = bytearray(PIPESIZE)
        self.nread = 0
        self.nwrite = 0
        self.readopen = True
        self.writeopen = True

    def write(self, data) -> int:
        """Write all of ``data``; raises BrokenPipeError if the reader is gone."""
        data = bytes(data)
        with self._cond:
            for byte in data:
                while self.nwrite == self.nread + PIPESIZE:
                    if not self.readopen:
                        raise BrokenPipeError("pipe: read end closed")
                    self._cond.notify_all()
                    self._cond.wait()
                self._data[self.nwrite % PIPESIZE] = byte
                self.nwrite += 1
            self._cond.notify_all()
        return len(data)

    def read(self, n: int) -> bytes:
        """Read up to ``n`` bytes, waiting for data; empty once the writer closed."""
        with self._cond:
            while self.nread == self.nwrite and self.writeopen:
                self._cond.wait()
            count = max(0, min(n, self.nwrite - self.nread))
            out = bytes(self._data[(self.nread + i) % PIPESIZE] for i in range(count))
            self.nread += count
            self._cond.notify_all()
        return out

    def close(self, writable: bool) -> None:
        """Close the write end if ``writable``, else the read end."""
        with self._cond:
            if writable:
                self.writeopen = False
            else:
                self.readopen = False
            self._cond.notify_all()