"""Inodes, directories and path names on top of the logged buffer cache."""

from __future__ import annotations

import errno
import struct
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from .bcache import BufferCache
from .journal import Log
from .layout import (
    BPB,
    BSIZE,
    DINODE_SIZE,
    DIRENT_SIZE,
    DIRSIZ,
    IPB,
    MAXFILE,
    NDEV,
    NDIRECT,
    NINDIRECT,
    NINODE,
    ROOTDEV,
    ROOTINO,
    Dinode,
    Dirent,
    FileType,
    Panic,
    Stat,
    Superblock,
    bblock,
    iblock,
)


@dataclass(eq=False)
class Inode:
    """In-memory copy of an inode plus its cache bookkeeping.

    ``busy`` means the inode is locked; ``valid`` that the fields were read
    from disk.
    """

    dev: int = 0
    inum: int = 0
    ref: int = 0
    busy: bool = False
    valid: bool = False
    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: list[int] = field(default_factory=lambda: [0] * (NDIRECT + 1))


def namecmp(s: str, t: str) -> int:
    """Compare two directory names over at most DIRSIZ bytes."""
    a = s.encode("utf-8", "surrogateescape")[:DIRSIZ]
    b = t.encode("utf-8", "surrogateescape")[:DIRSIZ]
    return (a > b) - (a < b)


def skipelem(path: str) -> tuple[str, str] | None:
    """Split off the first path element: ``"a/bb/c"`` gives ``("a", "bb/c")``.

    The rest has no leading slashes; None when there is no element left.
    """
    path = path.lstrip("/")
    if not path:
        return None
    name, _, rest = path.partition("/")
    return name[:DIRSIZ], rest.lstrip("/")


def _slot(inum: int) -> int:
    return (inum % IPB) * DINODE_SIZE


class FileSystem:
    """One mounted file system: blocks, inodes, directories and paths."""

    def __init__(
        self,
        disk,
        dev: int = ROOTDEV,
        ninode: int = NINODE,
        devsw: Mapping[int, object] | None = None,
    ):
        self.dev = dev
        self.cache = BufferCache(disk)
        buf = self.cache.read(dev, 1)
        self.sb = Superblock.unpack(bytes(buf.data))
        self.cache.release(buf)
        self.log = Log(self.cache, dev)
        self.devsw = dict(devsw or {})
        self._cond = threading.Condition()
        self._inodes = [Inode() for _ in range(ninode)]

    # Blocks.

    def _bzero(self, bno: int) -> None:
        bp = self.cache.read(self.dev, bno)
        bp.data[:] = bytes(BSIZE)
        self.log.write(bp)
        self.cache.release(bp)

    def _balloc(self) -> int:
        for b in range(0, self.sb.size, BPB):
            bp = self.cache.read(self.dev, bblock(b, self.sb))
            for bi in range(min(BPB, self.sb.size - b)):
                m = 1 << (bi % 8)
                if not bp.data[bi // 8] & m:
                    bp.data[bi // 8] |= m
                    self.log.write(bp)
                    self.cache.release(bp)
                    self._bzero(b + bi)
                    return b + bi
            self.cache.release(bp)
        raise Panic("balloc: out of blocks")

    def _bfree(self, b: int) -> None:
        bp = self.cache.read(self.dev, bblock(b, self.sb))
        bi = b % BPB
        m = 1 << (bi % 8)
        if not bp.data[bi // 8] & m:
            self.cache.release(bp)
            raise Panic("freeing free block")
        bp.data[bi // 8] &= ~m & 0xFF
        self.log.write(bp)
        self.cache.release(bp)

    # Inodes.

    def ialloc(self, type) -> Inode:
        """Allocate a free on-disk inode of the given type; returned unlocked."""
        for inum in range(1, self.sb.ninodes):
            bp = self.cache.read(self.dev, iblock(inum, self.sb))
            off = _slot(inum)
            din = Dinode.unpack(bytes(bp.data[off : off + DINODE_SIZE]))
            if din.type == FileType.FREE:
                bp.data[off : off + DINODE_SIZE] = Dinode(type=int(type)).pack()
                self.log.write(bp)
                self.cache.release(bp)
                return self.iget(inum)
            self.cache.release(bp)
        raise Panic("ialloc: no inodes")

    def iupdate(self, ip: Inode) -> None:
        """Copy a modified in-memory inode to disk."""
        bp = self.cache.read(ip.dev, iblock(ip.inum, self.sb))
        off = _slot(ip.inum)
        din = Dinode(ip.type, ip.major, ip.minor, ip.nlink, ip.size, list(ip.addrs))
        bp.data[off : off + DINODE_SIZE] = din.pack()
        self.log.write(bp)
        self.cache.release(bp)

    def iget(self, inum: int) -> Inode:
        """Return the cached inode, neither locked nor read from disk."""
        with self._cond:
            empty = None
            for ip in self._inodes:
                if ip.ref > 0 and ip.dev == self.dev and ip.inum == inum:
                    ip.ref += 1
                    return ip
                if empty is None and ip.ref == 0:
                    empty = ip
            if empty is None:
                raise Panic("iget: no inodes")
            empty.dev = self.dev
            empty.inum = inum
            empty.ref = 1
            empty.busy = False
            empty.valid = False
            return empty

    def idup(self, ip: Inode) -> Inode:
        with self._cond:
            ip.ref += 1
        return ip

    def ilock(self, ip: Inode) -> None:
        """Lock the inode, reading it from disk if needed."""
        if ip is None or ip.ref < 1:
            raise Panic("ilock")
        with self._cond:
            while ip.busy:
                self._cond.wait()
            ip.busy = True
        if not ip.valid:
            bp = self.cache.read(ip.dev, iblock(ip.inum, self.sb))
            off = _slot(ip.inum)
            din = Dinode.unpack(bytes(bp.data[off : off + DINODE_SIZE]))
            self.cache.release(bp)
            ip.type, ip.major, ip.minor = din.type, din.major, din.minor
            ip.nlink, ip.size, ip.addrs = din.nlink, din.size, list(din.addrs)
            ip.valid = True
            if ip.type == FileType.FREE:
                raise Panic("ilock: no type")

    def iunlock(self, ip: Inode) -> None:
        if ip is None or not ip.busy or ip.ref < 1:
            raise Panic("iunlock")
        with self._cond:
            ip.busy = False
            self._cond.notify_all()

    def iput(self, ip: Inode) -> None:
        """Drop a reference; free the inode on disk if it was the last and unlinked."""
        with self._cond:
            free = ip.ref == 1 and ip.valid and ip.nlink == 0
            if free:
                if ip.busy:
                    raise Panic("iput busy")
                ip.busy = True
        if free:
            self._itrunc(ip)
            ip.type = FileType.FREE
            self.iupdate(ip)
            with self._cond:
                ip.busy = False
                ip.valid = False
                self._cond.notify_all()
        with self._cond:
            ip.ref -= 1

    def iunlockput(self, ip: Inode) -> None:
        self.iunlock(ip)
        self.iput(ip)

    def _bmap(self, ip: Inode, bn: int) -> int:
        if bn < NDIRECT:
            if not ip.addrs[bn]:
                ip.addrs[bn] = self._balloc()
            return ip.addrs[bn]
        bn -= NDIRECT
        if bn < NINDIRECT:
            if not ip.addrs[NDIRECT]:
                ip.addrs[NDIRECT] = self._balloc()
            bp = self.cache.read(ip.dev, ip.addrs[NDIRECT])
            (addr,) = struct.unpack_from("<I", bp.data, bn * 4)
            if not addr:
                addr = self._balloc()
                struct.pack_into("<I", bp.data, bn * 4, addr)
                self.log.write(bp)
            self.cache.release(bp)
            return addr
        raise Panic("bmap: out of range")

    def _itrunc(self, ip: Inode) -> None:
        for i in range(NDIRECT):
            if ip.addrs[i]:
                self._bfree(ip.addrs[i])
                ip.addrs[i] = 0
        if ip.addrs[NDIRECT]:
            bp = self.cache.read(ip.dev, ip.addrs[NDIRECT])
            blocks = [a for a in struct.unpack_from(f"<{NINDIRECT}I", bp.data) if a]
            self.cache.release(bp)
            for a in blocks:
                self._bfree(a)
            self._bfree(ip.addrs[NDIRECT])
            ip.addrs[NDIRECT] = 0
        ip.size = 0
        self.iupdate(ip)

    def stati(self, ip: Inode) -> Stat:
        return Stat(type=ip.type, dev=ip.dev, ino=ip.inum, nlink=ip.nlink, size=ip.size)

    def _device(self, ip: Inode, op: str):
        dev = self.devsw.get(ip.major) if 0 <= ip.major < NDEV else None
        handler = getattr(dev, op, None)
        if handler is None:
            raise OSError(errno.ENODEV, f"no {op} for device {ip.major}")
        return handler

    def readi(self, ip: Inode, off: int, n: int) -> bytes:
        """Read up to ``n`` bytes at ``off``; fewer at end of file."""
        if ip.type == FileType.DEV:
            return self._device(ip, "read")(ip, n)
        if off < 0 or n < 0 or off > ip.size:
            raise ValueError("readi: offset out of range")
        n = min(n, ip.size - off)
        out = bytearray()
        while len(out) < n:
            bp = self.cache.read(ip.dev, self._bmap(ip, off // BSIZE))
            start = off % BSIZE
            m = min(n - len(out), BSIZE - start)
            out += bp.data[start : start + m]
            self.cache.release(bp)
            off += m
        return bytes(out)

    def writei(self, ip: Inode, data, off: int) -> int:
        """Write ``data`` at ``off``, growing the file; returns the bytes written."""
        if ip.type == FileType.DEV:
            return self._device(ip, "write")(ip, bytes(data))
        data = bytes(data)
        n = len(data)
        if off < 0 or off > ip.size:
            raise ValueError("writei: offset beyond end of file")
        if off + n > MAXFILE * BSIZE:
            raise ValueError("writei: file too large")
        pos = 0
        while pos < n:
            bp = self.cache.read(ip.dev, self._bmap(ip, off // BSIZE))
            start = off % BSIZE
            m = min(n - pos, BSIZE - start)
            bp.data[start : start + m] = data[pos : pos + m]
            self.log.write(bp)
            self.cache.release(bp)
            pos += m
            off += m
        if n > 0 and off > ip.size:
            ip.size = off
            self.iupdate(ip)
        return n

    # Directories.

    def _dirents(self, dp: Inode) -> Iterator[tuple[int, Dirent]]:
        for off in range(0, dp.size, DIRENT_SIZE):
            raw = self.readi(dp, off, DIRENT_SIZE)
            if len(raw) != DIRENT_SIZE:
                raise Panic("dirlink read")
            yield off, Dirent.unpack(raw)

    def dirlookup(self, dp: Inode, name: str) -> tuple[Inode, int] | None:
        """Find ``name`` in directory ``dp``: the inode and the entry's offset."""
        if dp.type != FileType.DIR:
            raise Panic("dirlookup not DIR")
        for off, de in self._dirents(dp):
            if de.inum and namecmp(name, de.name) == 0:
                return self.iget(de.inum), off
        return None

    def dirlink(self, dp: Inode, name: str, inum: int) -> None:
        """Add the entry (name, inum) to directory ``dp``."""
        found = self.dirlookup(dp, name)
        if found is not None:
            self.iput(found[0])
            raise FileExistsError(errno.EEXIST, "name already in directory", name)
        end = -(-dp.size // DIRENT_SIZE) * DIRENT_SIZE
        off = next((o for o, de in self._dirents(dp) if de.inum == 0), end)
        try:
            written = self.writei(dp, Dirent(inum, name).pack(), off)
        except ValueError as exc:
            raise Panic("dirlink") from exc
        if written != DIRENT_SIZE:
            raise Panic("dirlink")

    # Paths.

    def _namex(
        self, path: str, parent: bool, cwd: Inode | None
    ) -> tuple[Inode, str] | None:
        if path.startswith("/") or cwd is None:
            ip = self.iget(ROOTINO)
        else:
            ip = self.idup(cwd)
        while (step := skipelem(path)) is not None:
            name, path = step
            self.ilock(ip)
            if ip.type != FileType.DIR:
                self.iunlockput(ip)
                return None
            if parent and path == "":
                self.iunlock(ip)
                return ip, name
            found = self.dirlookup(ip, name)
            if found is None:
                self.iunlockput(ip)
                return None
            self.iunlockput(ip)
            ip = found[0]
        if parent:
            self.iput(ip)
            return None
        return ip, ""

    def namei(self, path: str, cwd: Inode | None = None) -> Inode | None:
        """Inode for ``path``; relative paths start at ``cwd`` (root if None)."""
        found = self._namex(path, False, cwd)
        return None if found is None else found[0]

    def nameiparent(self, path: str, cwd: Inode | None = None) -> tuple[Inode, str] | None:
        """Inode of the parent directory of ``path`` and the final element."""
        return self._namex(path, True, cwd)