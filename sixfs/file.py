"""Open files: a table of reference-counted handles to pipes and inodes."""

from __future__ import annotations

import enum
import errno
import threading
from dataclasses import dataclass

from .fs import FileSystem, Inode
from .layout import BSIZE, LOGSIZE, NFILE, Panic, Stat
from .pipe import Pipe

# Bytes written per transaction: stays within the log with room for the
# inode, indirect block, bitmap and unaligned ends.
_MAX_WRITE = ((LOGSIZE - 1 - 1 - 2) // 2) * BSIZE


class FileKind(enum.Enum):
    NONE = enum.auto()
    PIPE = enum.auto()
    INODE = enum.auto()


@dataclass(eq=False)
class File:
    """An open file: what it refers to, how it may be used and where it is."""

    kind: FileKind = FileKind.NONE
    ref: int = 0
    readable: bool = False
    writable: bool = False
    pipe: Pipe | None = None
    ip: Inode | None = None
    off: int = 0


class FileTable:
    """The system-wide table of open files."""

    def __init__(self, fs: FileSystem | None = None, nfile: int = NFILE):
        self.fs = fs
        self._lock = threading.Lock()
        self._files = [File() for _ in range(nfile)]

    def alloc(self) -> File:
        """Take a free entry with one reference; raises OSError when full."""
        with self._lock:
            for f in self._files:
                if f.ref == 0:
                    f.kind = FileKind.NONE
                    f.ref = 1
                    f.readable = f.writable = False
                    f.pipe = None
                    f.ip = None
                    f.off = 0
                    return f
        raise OSError(errno.ENFILE, "file table overflow")

    def dup(self, f: File) -> File:
        with self._lock:
            if f.ref < 1:
                raise Panic("filedup")
            f.ref += 1
        return f

    def close(self, f: File) -> None:
        """Drop a reference; the last one releases the pipe end or inode."""
        with self._lock:
            if f.ref < 1:
                raise Panic("fileclose")
            f.ref -= 1
            if f.ref > 0:
                return
            kind, pipe, ip, writable = f.kind, f.pipe, f.ip, f.writable
            f.kind = FileKind.NONE
        if kind is FileKind.PIPE:
            pipe.close(writable)
        elif kind is FileKind.INODE:
            with self.fs.log.transaction():
                self.fs.iput(ip)

    def stat(self, f: File) -> Stat:
        if f.kind is not FileKind.INODE:
            raise ValueError("filestat: not an inode")
        self.fs.ilock(f.ip)
        try:
            return self.fs.stati(f.ip)
        finally:
            self.fs.iunlock(f.ip)

    def read(self, f: File, n: int) -> bytes:
        if not f.readable:
            raise PermissionError(errno.EBADF, "file not open for reading")
        if f.kind is FileKind.PIPE:
            return f.pipe.read(n)
        if f.kind is FileKind.INODE:
            self.fs.ilock(f.ip)
            try:
                data = self.fs.readi(f.ip, f.off, n)
                f.off += len(data)
            finally:
                self.fs.iunlock(f.ip)
            return data
        raise Panic("fileread")

    def write(self, f: File, data) -> int:
        if not f.writable:
            raise PermissionError(errno.EBADF, "file not open for writing")
        data = bytes(data)
        if f.kind is FileKind.PIPE:
            return f.pipe.write(data)
        if f.kind is FileKind.INODE:
            for start in range(0, len(data), _MAX_WRITE):
                chunk = data[start : start + _MAX_WRITE]
                with self.fs.log.transaction():
                    self.fs.ilock(f.ip)
                    try:
                        written = self.fs.writei(f.ip, chunk, f.off)
                        f.off += written
                    finally:
                        self.fs.iunlock(f.ip)
                if written != len(chunk):
                    raise Panic("short filewrite")
            return len(data)
        raise Panic("filewrite")

    def pipe(self) -> tuple[File, File]:
        """Open a new pipe: returns its (read end, write end)."""
        read_end = self.alloc()
        try:
            write_end = self.alloc()
        except OSError:
            self.close(read_end)
            raise
        p = Pipe()
        read_end.kind, read_end.readable, read_end.writable = FileKind.PIPE, True, False
        write_end.kind, write_end.readable, write_end.writable = FileKind.PIPE, False, True
        read_end.pipe = write_end.pipe = p
        return read_end, write_end