import pytest

from sixfs.bcache import BufferCache
from sixfs.disk import MemoryDisk
from sixfs.layout import BSIZE, ROOTDEV, Panic


def _disk(nblocks=8):
    image = bytearray(nblocks * BSIZE)
    for b in range(nblocks):
        image[b * BSIZE] = b
    return MemoryDisk(bytes(image))


def test_read_returns_disk_contents():
    disk = _disk()
    cache = BufferCache(disk)
    buf = cache.read(ROOTDEV, 3)
    assert bytes(buf.data) == disk.read_block(ROOTDEV, 3)
    assert buf.busy and buf.valid and not buf.dirty
    cache.release(buf)
    assert not buf.busy


def test_write_reaches_disk():
    disk = _disk()
    cache = BufferCache(disk)
    buf = cache.read(ROOTDEV, 2)
    buf.data[:3] = b"abc"
    cache.write(buf)
    cache.release(buf)
    assert disk.read_block(ROOTDEV, 2)[:3] == b"abc"
    assert not buf.dirty


def test_cached_block_not_reread():
    disk = _disk()
    cache = BufferCache(disk)
    first = cache.read(ROOTDEV, 1)
    cache.release(first)
    disk.write_block(ROOTDEV, 1, b"\xff" * BSIZE)
    again = cache.read(ROOTDEV, 1)
    assert again is first
    assert again.data[0] == 1


def test_least_recently_used_is_recycled():
    cache = BufferCache(_disk(), nbuf=2)
    b0 = cache.read(ROOTDEV, 0)
    cache.release(b0)
    b1 = cache.read(ROOTDEV, 1)
    cache.release(b1)
    b2 = cache.read(ROOTDEV, 2)
    assert b2 is b0
    assert b2.data[0] == 2
    cache.release(b2)
    assert cache.read(ROOTDEV, 1) is b1


def test_no_free_buffers():
    cache = BufferCache(_disk(), nbuf=2)
    cache.read(ROOTDEV, 0)
    cache.read(ROOTDEV, 1)
    with pytest.raises(Panic, match="no buffers"):
        cache.read(ROOTDEV, 2)


def test_dirty_buffer_not_recycled():
    cache = BufferCache(_disk(), nbuf=1)
    buf = cache.read(ROOTDEV, 0)
    buf.dirty = True
    cache.release(buf)
    with pytest.raises(Panic, match="no buffers"):
        cache.read(ROOTDEV, 1)


def test_release_not_busy():
    cache = BufferCache(_disk())
    buf = cache.read(ROOTDEV, 0)
    cache.release(buf)
    with pytest.raises(Panic, match="brelse"):
        cache.release(buf)


def test_write_not_busy():
    cache = BufferCache(_disk())
    buf = cache.read(ROOTDEV, 0)
    cache.release(buf)
    with pytest.raises(Panic, match="bwrite"):
        cache.write(buf)