"""List files and directories of a file-system image."""

from __future__ import annotations

import errno
import sys

from .disk import MemoryDisk
from .fs import FileSystem
from .layout import DIRENT_SIZE, DIRSIZ, Dirent, FileType, Stat

_PATH_MAX = 512


def fmtname(path: str) -> str:
    """The last path element, padded with blanks to DIRSIZ characters."""
    name = path.rsplit("/", 1)[-1]
    if len(name) >= DIRSIZ:
        return name
    return name.ljust(DIRSIZ)


def _line(path: str, st: Stat) -> str:
    return f"{fmtname(path)} {int(st.type)} {st.ino} {st.size}"


def _stat(fs: FileSystem, path: str) -> Stat | None:
    with fs.log.transaction():
        ip = fs.namei(path)
        if ip is None:
            return None
        fs.ilock(ip)
        try:
            return fs.stati(ip)
        finally:
            fs.iunlockput(ip)


def ls(fs: FileSystem, path: str) -> list[str]:
    """Listing lines for ``path``; raises FileNotFoundError if it does not exist."""
    with fs.log.transaction():
        ip = fs.namei(path)
        if ip is None:
            raise FileNotFoundError(errno.ENOENT, "cannot open", path)
        fs.ilock(ip)
        try:
            st = fs.stati(ip)
            contents = fs.readi(ip, 0, ip.size) if st.type == FileType.DIR else b""
        finally:
            fs.iunlockput(ip)

    if st.type == FileType.FILE:
        return [_line(path, st)]
    if st.type != FileType.DIR:
        return []
    if len(path) + 1 + DIRSIZ + 1 > _PATH_MAX:
        return ["ls: path too long"]

    lines = []
    whole = len(contents) - len(contents) % DIRENT_SIZE
    for off in range(0, whole, DIRENT_SIZE):
        de = Dirent.unpack(contents[off : off + DIRENT_SIZE])
        if de.inum == 0:
            continue
        entry = f"{path}/{de.name}"
        entry_st = _stat(fs, entry)
        if entry_st is None:
            lines.append(f"ls: cannot stat {entry}")
            continue
        lines.append(_line(entry, entry_st))
    return lines


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("usage: ls image [path ...]", file=sys.stderr)
        return 1
    try:
        disk = MemoryDisk.from_file(args[0])
    except OSError as exc:
        print(f"ls: {args[0]}: {exc.strerror}", file=sys.stderr)
        return 1
    fs = FileSystem(disk)
    status = 0
    for path in args[1:] or ["."]:
        try:
            lines = ls(fs, path)
        except FileNotFoundError:
            print(f"ls: cannot open {path}", file=sys.stderr)
            status = 1
            continue
        for line in lines:
            print(line)
    return status


if __name__ == "__main__":
    sys.exit(main())