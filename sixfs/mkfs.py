"""Build a file-system image holding a root directory and some files."""

from __future__ import annotations

import struct
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path

from .layout import (
    BPB,
    BSIZE,
    DINODE_SIZE,
    FSSIZE,
    IPB,
    LOGSIZE,
    MAXFILE,
    NDIRECT,
    ROOTINO,
    Dinode,
    Dirent,
    FileType,
    Panic,
    Superblock,
    iblock,
)

NINODES = 200
NBITMAP = FSSIZE // (BSIZE * 8) + 1
NINODEBLOCKS = NINODES // IPB + 1
NLOG = LOGSIZE
NMETA = 2 + NLOG + NINODEBLOCKS + NBITMAP  # boot, super, log, inodes, bitmap
NBLOCKS = FSSIZE - NMETA


class ImageBuilder:
    """Lays out an image: superblock, root directory, then files added to it."""

    def __init__(self) -> None:
        self.superblock = Superblock(
            size=FSSIZE,
            nblocks=NBLOCKS,
            ninodes=NINODES,
            nlog=NLOG,
            logstart=2,
            inodestart=2 + NLOG,
            bmapstart=2 + NLOG + NINODEBLOCKS,
        )
        self._image = bytearray(FSSIZE * BSIZE)
        packed = self.superblock.pack()
        self._image[BSIZE : BSIZE + len(packed)] = packed
        self._freeinode = 1
        self.freeblock = NMETA
        root = self._ialloc(FileType.DIR)
        if root != ROOTINO:
            raise Panic("root inode is not ROOTINO")
        self._append(root, Dirent(root, ".").pack())
        self._append(root, Dirent(root, "..").pack())

    def _inode_offset(self, inum: int) -> int:
        return iblock(inum, self.superblock) * BSIZE + (inum % IPB) * DINODE_SIZE

    def _read_inode(self, inum: int) -> Dinode:
        off = self._inode_offset(inum)
        return Dinode.unpack(self._image[off : off + DINODE_SIZE])

    def _write_inode(self, image: bytearray, inum: int, din: Dinode) -> None:
        off = self._inode_offset(inum)
        image[off : off + DINODE_SIZE] = din.pack()

    def _ialloc(self, type_: FileType) -> int:
        inum = self._freeinode
        if inum >= NINODES:
            raise ValueError("out of inodes")
        self._freeinode += 1
        self._write_inode(self._image, inum, Dinode(type=type_, nlink=1, size=0))
        return inum

    def _alloc_block(self) -> int:
        b = self.freeblock
        if b >= FSSIZE:
            raise ValueError("out of blocks")
        self.freeblock += 1
        return b

    def _append(self, inum: int, data: bytes) -> None:
        din = self._read_inode(inum)
        off = din.size
        pos = 0
        while pos < len(data):
            fbn = off // BSIZE
            if fbn >= MAXFILE:
                raise ValueError("file too large")
            if fbn < NDIRECT:
                if din.addrs[fbn] == 0:
                    din.addrs[fbn] = self._alloc_block()
                x = din.addrs[fbn]
            else:
                if din.addrs[NDIRECT] == 0:
                    din.addrs[NDIRECT] = self._alloc_block()
                slot = din.addrs[NDIRECT] * BSIZE + (fbn - NDIRECT) * 4
                (x,) = struct.unpack_from("<I", self._image, slot)
                if x == 0:
                    x = self._alloc_block()
                    struct.pack_into("<I", self._image, slot, x)
            n1 = min(len(data) - pos, (fbn + 1) * BSIZE - off)
            start = x * BSIZE + off - fbn * BSIZE
            self._image[start : start + n1] = data[pos : pos + n1]
            pos += n1
            off += n1
        din.size = off
        self._write_inode(self._image, inum, din)

    def add_file(self, name: str, data: bytes) -> int:
        """Add a file to the root directory; a leading '_' is dropped from the name."""
        if "/" in name:
            raise ValueError(f"file name may not contain '/': {name!r}")
        if name.startswith("_"):
            name = name[1:]
        inum = self._ialloc(FileType.FILE)
        self._append(ROOTINO, Dirent(inum, name).pack())
        self._append(inum, bytes(data))
        return inum

    def build(self) -> bytes:
        """Return the finished image; the builder itself is left unchanged."""
        image = bytearray(self._image)
        root = self._read_inode(ROOTINO)
        root.size = (root.size // BSIZE + 1) * BSIZE
        self._write_inode(image, ROOTINO, root)

        used = self.freeblock
        if used >= BPB:
            raise ValueError("bitmap cannot cover the allocated blocks")
        bitmap = bytearray(BSIZE)
        for i in range(used):
            bitmap[i // 8] |= 1 << (i % 8)
        start = self.superblock.bmapstart * BSIZE
        image[start : start + BSIZE] = bitmap
        return bytes(image)


def make_image(files: Mapping[str, bytes] | Iterable[tuple[str, bytes]]) -> bytes:
    """Build an image holding the given (name, data) files."""
    items = files.items() if isinstance(files, Mapping) else files
    builder = ImageBuilder()
    for name, data in items:
        builder.add_file(name, data)
    return builder.build()


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("Usage: mkfs fs.img files...", file=sys.stderr)
        return 1
    output = args[0]
    try:
        out = open(output, "wb")
    except OSError as exc:
        print(f"{output}: {exc.strerror}", file=sys.stderr)
        return 1
    with out:
        builder = ImageBuilder()
        print(
            f"nmeta {NMETA} (boot, super, log blocks {NLOG} inode blocks "
            f"{NINODEBLOCKS}, bitmap blocks {NBITMAP}) blocks {NBLOCKS} total {FSSIZE}"
        )
        for name in args[1:]:
            try:
                if "/" in name:
                    raise ValueError(f"file name may not contain '/': {name!r}")
                data = Path(name).read_bytes()
                builder.add_file(name, data)
            except OSError as exc:
                print(f"{name}: {exc.strerror}", file=sys.stderr)
                return 1
            except ValueError as exc:
                print(f"mkfs: {exc}", file=sys.stderr)
                return 1
        print(f"balloc: first {builder.freeblock} blocks have been allocated")
        try:
            image = builder.build()
        except ValueError as exc:
            print(f"mkfs: {exc}", file=sys.stderr)
            return 1
        print(f"balloc: write bitmap block at sector {builder.superblock.bmapstart}")
        out.write(image)
    return 0


if __name__ == "__main__":
    sys.exit(main())