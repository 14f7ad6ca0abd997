"""A disk whose blocks are held in memory."""

from __future__ import annotations

import os

from .layout import BSIZE, FSSIZE, ROOTDEV, Panic


class MemoryDisk:
    """Block device backed by a byte array; serves a single device number."""

    def __init__(self, image: bytes | bytearray | None = None, dev: int = ROOTDEV):
        if image is None:
            image = bytes(FSSIZE * BSIZE)
        self._data = bytearray(image)
        self.dev = dev
        self.nblocks = len(self._data) // BSIZE

    def _offset(self, dev: int, blockno: int) -> int:
        if dev != self.dev:
            raise Panic(f"iderw: request not for disk {self.dev}")
        if not 0 <= blockno < self.nblocks:
            raise Panic("iderw: block out of range")
        return blockno * BSIZE

    def read_block(self, dev: int, blockno: int) -> bytes:
        start = self._offset(dev, blockno)
        return bytes(self._data[start : start + BSIZE])

    def write_block(self, dev: int, blockno: int, data: bytes) -> None:
        start = self._offset(dev, blockno)
        if len(data) != BSIZE:
            raise ValueError(f"block data must be {BSIZE} bytes, got {len(data)}")
        self._data[start : start + BSIZE] = data

    def to_bytes(self) -> bytes:
        return bytes(self._data)

    @classmethod
    def from_file(cls, path: str | os.PathLike) -> MemoryDisk:
        """Load an image file as the root device."""
        with open(path, "rb") as f:
            return cls(f.read(), ROOTDEV)