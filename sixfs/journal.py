"""Write-ahead redo log that makes groups of block writes atomic."""

from __future__ import annotations

import struct
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from .bcache import Buffer, BufferCache
from .layout import BSIZE, LOGSIZE, MAXOPBLOCKS, ROOTDEV, Panic, Superblock

_HEADER_SIZE = struct.calcsize(f"<i{LOGSIZE}i")


class Log:
    """The on-disk log: a header block naming home blocks, then their copies.

    File-system operations run between ``begin_op`` and ``end_op``; the last
    one to finish commits everything logged so far.
    """

    def __init__(self, cache: BufferCache, dev: int = ROOTDEV):
        if _HEADER_SIZE >= BSIZE:
            raise Panic("initlog: too big logheader")
        self.cache = cache
        self.dev = dev
        buf = cache.read(dev, 1)
        sb = Superblock.unpack(buf.data)
        cache.release(buf)
        self.start = sb.logstart
        self.size = sb.nlog
        self.outstanding = 0
        self.committing = False
        self.blocks: list[int] = []
        self._cond = threading.Condition()
        self._recover()

    def _copy(self, src: int, dst: int) -> None:
        from_buf = self.cache.read(self.dev, src)
        to_buf = self.cache.read(self.dev, dst)
        to_buf.data[:] = from_buf.data
        self.cache.write(to_buf)
        self.cache.release(from_buf)
        self.cache.release(to_buf)

    def _install(self) -> None:
        for tail, blockno in enumerate(self.blocks):
            self._copy(self.start + tail + 1, blockno)

    def _write_log(self) -> None:
        for tail, blockno in enumerate(self.blocks):
            self._copy(blockno, self.start + tail + 1)

    def _read_head(self) -> None:
        buf = self.cache.read(self.dev, self.start)
        (n,) = struct.unpack_from("<i", buf.data)
        if not 0 <= n <= LOGSIZE:
            self.cache.release(buf)
            raise Panic("log header corrupt")
        self.blocks = list(struct.unpack_from(f"<{n}i", buf.data, 4))
        self.cache.release(buf)

    def _write_head(self) -> None:
        buf = self.cache.read(self.dev, self.start)
        n = len(self.blocks)
        struct.pack_into(f"<i{n}i", buf.data, 0, n, *self.blocks)
        self.cache.write(buf)
        self.cache.release(buf)

    def _recover(self) -> None:
        self._read_head()
        self._install()
        self.blocks = []
        self._write_head()

    def _commit(self) -> None:
        if self.blocks:
            self._write_log()
            self._write_head()  # the commit point
            self._install()
            self.blocks = []
            self._write_head()

    def begin_op(self) -> None:
        """Start an operation, waiting while a commit runs or space is short."""
        with self._cond:
            while self.committing or (
                len(self.blocks) + (self.outstanding + 1) * MAXOPBLOCKS > LOGSIZE
            ):
                self._cond.wait()
            self.outstanding += 1

    def end_op(self) -> None:
        """Finish an operation; the last outstanding one commits."""
        with self._cond:
            self.outstanding -= 1
            if self.committing:
                raise Panic("log.committing")
            do_commit = self.outstanding == 0
            if do_commit:
                self.committing = True
            else:
                self._cond.notify_all()
        if do_commit:
            try:
                self._commit()
            finally:
                with self._cond:
                    self.committing = False
                    self._cond.notify_all()

    def write(self, buf: Buffer) -> None:
        """Record a modified buffer in the current transaction and pin it."""
        if len(self.blocks) >= LOGSIZE or len(self.blocks) >= self.size - 1:
            raise Panic("too big a transaction")
        if self.outstanding < 1:
            raise Panic("log_write outside of trans")
        with self._cond:
            if buf.blockno not in self.blocks:
                self.blocks.append(buf.blockno)
            buf.dirty = True

    @contextmanager
    def transaction(self) -> Iterator[Log]:
        """Run the body between ``begin_op`` and ``end_op``."""
        self.begin_op()
        try:
            yield self
        finally:
            self.end_op()