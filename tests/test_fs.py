import pytest

from sixfs.disk import MemoryDisk
from sixfs.fs import FileSystem, namecmp, skipelem
from sixfs.layout import BSIZE, MAXFILE, NDIRECT, ROOTINO, FileType, Panic
from sixfs.mkfs import make_image

FILES = {"hello.txt": b"hello world\n", "notes": b"line one\nline two\n"}


@pytest.fixture
def disk():
    return MemoryDisk(make_image(FILES))


@pytest.fixture
def fs(disk):
    return FileSystem(disk)


def read_file(fs, path):
    ip = fs.namei(path)
    fs.ilock(ip)
    data = fs.readi(ip, 0, ip.size)
    fs.iunlockput(ip)
    return data


def create(fs, name, type_=FileType.FILE):
    with fs.log.transaction():
        ip = fs.ialloc(type_)
        fs.ilock(ip)
        ip.nlink = 1
        fs.iupdate(ip)
        root = fs.namei("/")
        fs.ilock(root)
        fs.dirlink(root, name, ip.inum)
        fs.iunlockput(root)
        fs.iunlock(ip)
    return ip


def write_chunks(fs, ip, data, chunk):
    for off in range(0, len(data), chunk):
        with fs.log.transaction():
            fs.ilock(ip)
            fs.writei(ip, data[off : off + chunk], off)
            fs.iunlock(ip)


def test_skipelem_examples():
    assert skipelem("a/bb/c") == ("a", "bb/c")
    assert skipelem("///a//bb") == ("a", "bb")
    assert skipelem("a") == ("a", "")
    assert skipelem("") is None
    assert skipelem("////") is None


def test_namecmp_compares_dirsiz_bytes():
    assert namecmp("abcdefghijklmnop", "abcdefghijklmnXY") == 0
    assert namecmp("a", "b") < 0
    assert namecmp("b", "a") > 0


def test_read_file_from_image(fs):
    assert read_file(fs, "/hello.txt") == FILES["hello.txt"]
    assert read_file(fs, "//notes") == FILES["notes"]


def test_relative_lookup(fs):
    root = fs.namei("/")
    ip = fs.namei("notes", cwd=root)
    fs.ilock(ip)
    assert fs.readi(ip, 0, ip.size) == FILES["notes"]
    fs.iunlockput(ip)
    assert read_file(fs, "notes") == FILES["notes"]


def test_missing_paths(fs):
    assert fs.namei("/nope") is None
    assert fs.namei("/hello.txt/x") is None


def test_nameiparent(fs):
    ip, name = fs.nameiparent("/hello.txt")
    assert ip.inum == ROOTINO
    assert name == "hello.txt"
    assert fs.nameiparent("/") is None


def test_stati(fs):
    ip = fs.namei("/hello.txt")
    fs.ilock(ip)
    st = fs.stati(ip)
    fs.iunlockput(ip)
    assert st.ino == ip.inum
    assert st.type == FileType.FILE
    assert st.size == len(FILES["hello.txt"])
    assert st.nlink == 1


def test_readi_clamps_to_size(fs):
    ip = fs.namei("/hello.txt")
    fs.ilock(ip)
    assert fs.readi(ip, 6, 100) == FILES["hello.txt"][6:]
    assert fs.readi(ip, ip.size, 10) == b""
    with pytest.raises(ValueError):
        fs.readi(ip, ip.size + 1, 1)
    fs.iunlockput(ip)


def test_write_persists_across_remount(fs, disk):
    ip = create(fs, "new")
    write_chunks(fs, ip, b"fresh data", 64)
    again = FileSystem(disk)
    assert read_file(again, "/new") == b"fresh data"
    assert read_file(again, "/hello.txt") == FILES["hello.txt"]


def test_large_file_uses_indirect_block(fs, disk):
    ip = create(fs, "big")
    data = bytes(i % 251 for i in range((NDIRECT + 8) * BSIZE))
    write_chunks(fs, ip, data, 4 * BSIZE)
    assert read_file(fs, "/big") == data
    assert ip.addrs[NDIRECT] != 0 and ip.size == len(data)
    assert read_file(FileSystem(disk), "/big") == data


def test_writei_limits(fs):
    ip = create(fs, "f")
    with fs.log.transaction():
        fs.ilock(ip)
        with pytest.raises(ValueError):
            fs.writei(ip, b"x", ip.size + 1)
        with pytest.raises(ValueError):
            fs.writei(ip, bytes(MAXFILE * BSIZE + 1), 0)
        fs.iunlock(ip)
    assert ip.size == 0


def test_dirlink_duplicate_raises(fs):
    with fs.log.transaction():
        root = fs.namei("/")
        fs.ilock(root)
        with pytest.raises(FileExistsError):
            fs.dirlink(root, "hello.txt", 7)
        fs.iunlockput(root)


def test_dirlookup_gives_offset(fs):
    root = fs.namei("/")
    fs.ilock(root)
    ip, off = fs.dirlookup(root, "notes")
    fs.iunlock(root)
    assert read_file(fs, "/notes") == FILES["notes"]
    assert off % 16 == 0
    fs.iput(ip)


def test_iput_frees_unlinked_inode(fs):
    ip = create(fs, "doomed")
    write_chunks(fs, ip, b"x" * 100, 100)
    inum, block = ip.inum, ip.addrs[0]
    with fs.log.transaction():
        fs.ilock(ip)
        ip.nlink = 0
        fs.iupdate(ip)
        fs.iunlock(ip)
        fs.iput(ip)
    assert ip.ref == 0
    with fs.log.transaction():
        fresh = fs.ialloc(FileType.FILE)
        fs.ilock(fresh)
        fresh.nlink = 1
        fs.writei(fresh, b"y", 0)
        fs.iunlock(fresh)
    assert fresh.inum == inum
    assert fresh.addrs[0] == block


def test_iget_shares_entries_and_runs_out(disk):
    fs = FileSystem(disk, ninode=2)
    a = fs.iget(1)
    assert fs.iget(1) is a
    assert a.ref == 2
    fs.iget(2)
    with pytest.raises(Panic):
        fs.iget(3)


def test_ilock_unallocated_panics(fs):
    ip = fs.iget(150)
    with pytest.raises(Panic):
        fs.ilock(ip)


def test_iunlock_unlocked_panics(fs):
    ip = fs.iget(ROOTINO)
    with pytest.raises(Panic):
        fs.iunlock(ip)


def test_dirlookup_on_file_panics(fs):
    ip = fs.namei("/hello.txt")
    fs.ilock(ip)
    with pytest.raises(Panic):
        fs.dirlookup(ip, "x")


class Recorder:
    def __init__(self):
        self.written = []

    def read(self, ip, n):
        return b"x" * n

    def write(self, ip, data):
        self.written.append(data)
        return len(data)


def test_device_inode(disk):
    rec = Recorder()
    fs = FileSystem(disk, devsw={5: rec})
    with fs.log.transaction():
        ip = fs.ialloc(FileType.DEV)
        fs.ilock(ip)
        ip.major = 5
        ip.nlink = 1
        fs.iupdate(ip)
    assert fs.readi(ip, 0, 3) == b"xxx"
    assert fs.writei(ip, b"ab", 0) == 2
    assert rec.written == [b"ab"]
    ip.major = 6
    with pytest.raises(OSError):
        fs.readi(ip, 0, 1)