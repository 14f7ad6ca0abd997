[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sixfs"
version = "0.1.0"
description = "A small Unix-style teaching file system: on-disk format, buffer cache, redo log, inodes, image builder and classic text tools"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "filesystem",
    "inode",
    "journal",
    "buffer-cache",
    "disk-image",
    "mkfs",
    "shell",
    "grep",
    "teaching",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sixfs-mkfs = "sixfs.mkfs:main"
sixfs-ls = "sixfs.ls:main"
sixfs-cat = "sixfs.cat:main"
sixfs-echo = "sixfs.echo:main"
sixfs-grep = "sixfs.grep:main"
sixfs-tail = "sixfs.tail:main"
sixfs-sh = "sixfs.shell:main"

[tool.hatch.build.targets.wheel]
packages = ["sixfs"]

[tool.hatch.build.targets.sdist]
include = ["sixfs", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
