"""A small Unix-style file system: disk format, buffer cache, log, inodes, files and pipes, image builder, console input and text tools."""

__version__ = "0.1.0"