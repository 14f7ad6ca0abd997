# sixfs

`sixfs` is a small Unix-style file system in plain Python, together with a
handful of tools that go with it. It is meant for reading, experimenting and
teaching. Each layer is short enough to read in one sitting. It uses only the
standard library.

## What is in it

- **On-disk format** (`sixfs.layout`): 512-byte blocks, the limits of the
  system (`FSSIZE`, `NINODE`, `LOGSIZE`, ...), and the record types
  `Superblock`, `Dinode` and `Dirent`, each with `pack()` and `unpack()`.
  There is also `Stat`, the `FileType` enum, the helpers `iblock` and `bblock`,
  and the `Panic` exception, which is raised on any inconsistency the file
  system cannot recover from.
- **Disk** (`sixfs.disk`): `MemoryDisk` holds an image in memory. It has
  `read_block`, `write_block`, `to_bytes()` and `MemoryDisk.from_file(path)`.
- **Buffer cache** (`sixfs.bcache`): `BufferCache` gives out one `Buffer` per
  block at a time through `read`, `write` and `release`, and recycles the
  least recently used clean buffer.
- **Log** (`sixfs.journal`): `Log` is a redo log that makes multi-block
  updates atomic. It recovers a committed transaction when it is created.
  Operations run between `begin_op()` and `end_op()`, or inside the
  `transaction()` context manager.
- **Inodes, directories and paths** (`sixfs.fs`): `FileSystem` and `Inode`.
  It provides `ialloc`, `iget`, `ilock`/`iunlock`, `iput`, `readi`, `writei`,
  `dirlookup`, `dirlink`, `namei` and `nameiparent`, plus the helpers
  `skipelem` and `namecmp`.
- **Open files and pipes** (`sixfs.file`, `sixfs.pipe`): `FileTable` holds
  reference-counted `File` entries that refer to an inode or a pipe. `Pipe` is
  a bounded 512-byte pipe that blocks readers and writers.
- **Image builder** (`sixfs.mkfs`): `ImageBuilder` and `make_image` build a
  fresh image with a root directory and the files you give them.
- **Console and keyboard** (`sixfs.console`, `sixfs.kbd`): `ConsoleInput`
  provides line editing. It handles backspace, ^U to kill a line, ^D for end
  of file and ^P to call a callback, and it echoes into `output`.
  `KeyboardDecoder.getc` turns PC scan codes into character codes and tracks
  shift, control and caps lock.
- **Formatting** (`sixfs.printf`): `format_printf` understands `%d %x %p %s %c %%`
  and writes hex in upper case. `format_cprintf` understands `%d %x %p %s %%`
  and writes hex in lower case. Unknown sequences are printed as written.
- **Tools**: `cat`, `echo`, `grep`, `tail`, `ls` and a small shell.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Building and reading an image

```
sixfs-mkfs fs.img notes.txt _hello
sixfs-ls fs.img /
```

`sixfs-mkfs` writes a 1000-block image. A leading `_` is dropped from each
file name. Names may not contain `/`. `sixfs-ls IMAGE [PATH ...]` lists paths
inside the image, `.` by default. Each line shows the padded name, the type,
the inode number and the size.

From Python:

```python
from sixfs.disk import MemoryDisk
from sixfs.fs import FileSystem
from sixfs.mkfs import make_image

fs = FileSystem(MemoryDisk(make_image({"notes.txt": b"hello\n"})))
with fs.log.transaction():
    ip = fs.namei("/notes.txt")
    fs.ilock(ip)
    data = fs.readi(ip, 0, ip.size)
    fs.iunlockput(ip)
```

Changes made through `FileSystem` stay in the `MemoryDisk`. Call
`disk.to_bytes()` to save them.

## Text tools

Each tool reads the files named on its command line, or standard input when
no file is named:

```
sixfs-cat notes.txt
sixfs-echo hello world
sixfs-grep '^he.*o$' notes.txt
sixfs-tail -5 notes.txt
```

`grep` supports only `^ . * $`. It prints only lines that end in a newline.
The matcher can be used on its own:

```python
from sixfs.grep import match

match("^a.c$", "abc")   # True
```

`tail` prints the last ten lines unless told otherwise with `-N`. A last line
without a newline is not counted.

## The shell

`sixfs-sh` reads one command per line and runs programs from the host system.
It connects commands joined by `|`, applies `<` and `>` redirections, and
handles `cd dir` itself. `parsecmd` turns a line into a tree of `ExecCmd`,
`RedirCmd` and `PipeCmd` nodes. It raises `ParseError` on bad input.
`runcmd` runs a tree and returns its exit status.

```python
from sixfs.shell import parsecmd

tree = parsecmd("cat < in.txt | grep x > out.txt\n")
```

```
sixfs-sh
```

## What it does not do

There is no kernel around the file system: no processes, scheduler or system
calls, and nothing that boots. The shell runs host programs, not programs
stored in an image. Images are not mounted into the host. They are read and
changed only through the Python API, and the command-line tools only build
(`sixfs-mkfs`) and list (`sixfs-ls`) them. There are no commands to create,
remove or link files inside an image.