"""On-disk format of the file system, its limits and its record types."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field

# System-wide limits.
NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000

# Disk format.
ROOTINO = 1
BSIZE = 512
NDIRECT = 12
NINDIRECT = BSIZE // 4
MAXFILE = NDIRECT + NINDIRECT
DIRSIZ = 14

_SUPERBLOCK = struct.Struct("<7I")
_DINODE = struct.Struct(f"<4hI{NDIRECT + 1}I")
_DIRENT = struct.Struct(f"<H{DIRSIZ}s")

SUPERBLOCK_SIZE = _SUPERBLOCK.size
DINODE_SIZE = _DINODE.size
DIRENT_SIZE = _DIRENT.size

IPB = BSIZE // DINODE_SIZE
BPB = BSIZE * 8


class Panic(RuntimeError):
    """An inconsistency the file system cannot recover from."""


class FileType(enum.IntEnum):
    """Type of an inode; FREE marks an unallocated one."""

    FREE = 0
    DIR = 1
    FILE = 2
    DEV = 3


def _unpack(layout: struct.Struct, data: bytes, what: str) -> tuple:
    try:
        return layout.unpack_from(data)
    except struct.error as exc:
        raise ValueError(f"{what}: need {layout.size} bytes, got {len(data)}") from exc


@dataclass
class Superblock:
    """Describes where each region of the disk starts and how large it is."""

    size: int = 0
    nblocks: int = 0
    ninodes: int = 0
    nlog: int = 0
    logstart: int = 0
    inodestart: int = 0
    bmapstart: int = 0

    def pack(self) -> bytes:
        return _SUPERBLOCK.pack(
            self.size,
            self.nblocks,
            self.ninodes,
            self.nlog,
            self.logstart,
            self.inodestart,
            self.bmapstart,
        )

    @classmethod
    def unpack(cls, data: bytes) -> Superblock:
        return cls(*_unpack(_SUPERBLOCK, data, "superblock"))


@dataclass
class Dinode:
    """An inode as stored on disk."""

    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: list[int] = field(default_factory=lambda: [0] * (NDIRECT + 1))

    def pack(self) -> bytes:
        if len(self.addrs) != NDIRECT + 1:
            raise ValueError(f"inode needs {NDIRECT + 1} block addresses")
        return _DINODE.pack(
            self.type, self.major, self.minor, self.nlink, self.size, *self.addrs
        )

    @classmethod
    def unpack(cls, data: bytes) -> Dinode:
        type_, major, minor, nlink, size, *addrs = _unpack(_DINODE, data, "inode")
        return cls(type_, major, minor, nlink, size, list(addrs))


@dataclass
class Dirent:
    """A directory entry: inode number and a name of at most DIRSIZ bytes."""

    inum: int = 0
    name: str = ""

    def pack(self) -> bytes:
        raw = self.name.encode("utf-8", "surrogateescape")[:DIRSIZ]
        return _DIRENT.pack(self.inum, raw)

    @classmethod
    def unpack(cls, data: bytes) -> Dirent:
        inum, raw = _unpack(_DIRENT, data, "dirent")
        raw = raw.split(b"\0", 1)[0]
        return cls(inum, raw.decode("utf-8", "surrogateescape"))


@dataclass
class Stat:
    """Metadata about a file, as reported to programs."""

    type: int
    dev: int
    ino: int
    nlink: int
    size: int


def iblock(inum: int, sb: Superblock) -> int:
    """Block holding inode ``inum``."""
    return inum // IPB + sb.inodestart


def bblock(b: int, sb: Superblock) -> int:
    """Bitmap block holding the bit for block ``b``."""
    return b // BPB + sb.bmapstart