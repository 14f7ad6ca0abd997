"""Buffer cache: a fixed pool of cached disk blocks kept in MRU order."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from .layout import BSIZE, NBUF, Panic


@dataclass(eq=False)
class Buffer:
    """A cached copy of one disk block.

    ``busy`` means a caller holds it, ``valid`` that the data was read from
    disk, ``dirty`` that the data changed and must still go to disk.
    """

    dev: int = -1
    blockno: int = 0
    data: bytearray = field(default_factory=lambda: bytearray(BSIZE))
    busy: bool = False
    valid: bool = False
    dirty: bool = False


class BufferCache:
    """Hands out one buffer per block at a time, recycling the least recently used."""

    def __init__(self, disk, nbuf: int = NBUF):
        self.disk = disk
        self._cond = threading.Condition()
        self._buffers = [Buffer() for _ in range(nbuf)]  # most recently used first

    def _get(self, dev: int, blockno: int) -> Buffer:
        with self._cond:
            while True:
                cached = next(
                    (b for b in self._buffers if b.dev == dev and b.blockno == blockno),
                    None,
                )
                if cached is None:
                    break
                if not cached.busy:
                    cached.busy = True
                    return cached
                self._cond.wait()
            for b in reversed(self._buffers):
                if not b.busy and not b.dirty:
                    b.dev, b.blockno = dev, blockno
                    b.busy, b.valid, b.dirty = True, False, False
                    return b
            raise Panic("bget: no buffers")

    def _sync(self, buf: Buffer) -> None:
        if not buf.busy:
            raise Panic("iderw: buf not busy")
        if buf.valid and not buf.dirty:
            raise Panic("iderw: nothing to do")
        if buf.dirty:
            self.disk.write_block(buf.dev, buf.blockno, bytes(buf.data))
            buf.dirty = False
        else:
            buf.data[:] = self.disk.read_block(buf.dev, buf.blockno)
        buf.valid = True

    def read(self, dev: int, blockno: int) -> Buffer:
        """Return a busy buffer holding the contents of the block."""
        buf = self._get(dev, blockno)
        if not buf.valid:
            self._sync(buf)
        return buf

    def write(self, buf: Buffer) -> None:
        """Write a busy buffer's contents to disk."""
        if not buf.busy:
            raise Panic("bwrite")
        buf.dirty = True
        self._sync(buf)

    def release(self, buf: Buffer) -> None:
        """Give a busy buffer back and make it the most recently used."""
        if not buf.busy:
            raise Panic("brelse")
        with self._cond:
            self._buffers.remove(buf)
            self._buffers.insert(0, buf)
            buf.busy = False
            self._cond.notify_all()