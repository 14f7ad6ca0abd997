import pytest

from sixfs.disk import MemoryDisk
from sixfs.layout import BSIZE, FSSIZE, ROOTDEV, Panic


def test_default_size():
    disk = MemoryDisk()
    assert disk.nblocks == FSSIZE
    assert len(disk.to_bytes()) == FSSIZE * BSIZE


def test_write_then_read():
    disk = MemoryDisk(bytes(4 * BSIZE))
    payload = bytes(range(256)) * 2
    disk.write_block(ROOTDEV, 2, payload)
    assert disk.read_block(ROOTDEV, 2) == payload
    assert disk.read_block(ROOTDEV, 1) == bytes(BSIZE)
    assert disk.to_bytes()[2 * BSIZE : 3 * BSIZE] == payload


def test_block_out_of_range():
    disk = MemoryDisk(bytes(4 * BSIZE))
    with pytest.raises(Panic, match="out of range"):
        disk.read_block(ROOTDEV, 4)
    with pytest.raises(Panic, match="out of range"):
        disk.write_block(ROOTDEV, -1, bytes(BSIZE))


def test_wrong_device():
    disk = MemoryDisk(bytes(4 * BSIZE))
    with pytest.raises(Panic, match="not for disk"):
        disk.read_block(ROOTDEV + 1, 0)


def test_write_wrong_length():
    disk = MemoryDisk(bytes(4 * BSIZE))
    with pytest.raises(ValueError):
        disk.write_block(ROOTDEV, 0, b"short")


def test_from_file(tmp_path):
    image = bytes(BSIZE) + b"\x07" * BSIZE
    path = tmp_path / "fs.img"
    path.write_bytes(image)
    disk = MemoryDisk.from_file(path)
    assert disk.nblocks == 2
    assert disk.read_block(ROOTDEV, 1) == b"\x07" * BSIZE
    assert disk.to_bytes() == image