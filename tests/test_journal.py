import struct

import pytest

from sixfs.bcache import BufferCache
from sixfs.disk import MemoryDisk
from sixfs.journal import Log
from sixfs.layout import BSIZE, LOGSIZE, ROOTDEV, Panic
from sixfs.mkfs import NMETA, make_image


def _setup(image=None):
    disk = MemoryDisk(image if image is not None else make_image([]))
    cache = BufferCache(disk)
    return disk, cache, Log(cache)


def _header_count(disk, log):
    return struct.unpack_from("<i", disk.read_block(ROOTDEV, log.start))[0]


def test_log_geometry_from_superblock():
    _, _, log = _setup()
    assert log.start == 2
    assert log.size == LOGSIZE
    assert log.blocks == []


def test_commit_installs_block():
    disk, cache, log = _setup()
    target = NMETA + 5
    with log.transaction():
        buf = cache.read(ROOTDEV, target)
        buf.data[:5] = b"hello"
        log.write(buf)
        assert buf.dirty
        cache.release(buf)
        assert disk.read_block(ROOTDEV, target)[:5] == bytes(5)
    assert disk.read_block(ROOTDEV, target)[:5] == b"hello"
    assert log.blocks == []
    assert _header_count(disk, log) == 0
    assert not buf.dirty


def test_absorption():
    _, cache, log = _setup()
    target = NMETA + 3
    log.begin_op()
    buf = cache.read(ROOTDEV, target)
    log.write(buf)
    log.write(buf)
    cache.release(buf)
    assert log.blocks == [target]
    log.end_op()
    assert log.blocks == []


def test_nested_operations_commit_at_last_end():
    disk, cache, log = _setup()
    target = NMETA + 7
    log.begin_op()
    log.begin_op()
    assert log.outstanding == 2
    buf = cache.read(ROOTDEV, target)
    buf.data[0] = 0x5A
    log.write(buf)
    cache.release(buf)
    log.end_op()
    assert disk.read_block(ROOTDEV, target)[0] == 0
    log.end_op()
    assert disk.read_block(ROOTDEV, target)[0] == 0x5A
    assert log.outstanding == 0


def test_write_outside_transaction():
    _, cache, log = _setup()
    buf = cache.read(ROOTDEV, NMETA)
    with pytest.raises(Panic, match="outside of trans"):
        log.write(buf)


def test_transaction_too_big():
    _, cache, log = _setup()
    log.begin_op()
    for i in range(log.size - 1):
        buf = cache.read(ROOTDEV, NMETA + i)
        log.write(buf)
        cache.release(buf)
    buf = cache.read(ROOTDEV, NMETA + log.size)
    with pytest.raises(Panic, match="too big"):
        log.write(buf)


def test_end_op_runs_on_exception():
    _, _, log = _setup()
    with pytest.raises(KeyError):
        with log.transaction():
            raise KeyError("boom")
    assert log.outstanding == 0
    assert not log.committing


def test_recovery_replays_committed_log():
    image = bytearray(make_image([]))
    target = NMETA + 9
    start = 2
    struct.pack_into("<ii", image, start * BSIZE, 1, target)
    image[(start + 1) * BSIZE : (start + 2) * BSIZE] = b"\x42" * BSIZE
    disk, _, log = _setup(bytes(image))
    assert disk.read_block(ROOTDEV, target) == b"\x42" * BSIZE
    assert _header_count(disk, log) == 0
    assert log.blocks == []