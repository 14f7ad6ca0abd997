"""A small command shell: parses pipelines and redirections and runs them."""

from __future__ import annotations

import os
import subprocess
import sys
from dataclasses import dataclass, field
from typing import Union

MAXARGS = 10
WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>"
PROMPT = "cs6233> "
_LINE_MAX = 99


class ParseError(ValueError):
    """The command line cannot be parsed."""


@dataclass
class ExecCmd:
    """A program and its arguments; an empty argv does nothing."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run ``cmd`` with standard input ('<') or output ('>') taken from ``file``."""

    cmd: "Command"
    file: str
    type: str

    @property
    def mode(self) -> int:
        if self.type == "<":
            return os.O_RDONLY
        return os.O_WRONLY | os.O_CREAT | os.O_TRUNC

    @property
    def fd(self) -> int:
        return 0 if self.type == "<" else 1


@dataclass
class PipeCmd:
    """Run ``left`` with its output fed to ``right``."""

    left: "Command"
    right: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd]


class _Scanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def _skip_space(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self, toks: str) -> bool:
        self._skip_space()
        return not self.at_end() and self.text[self.pos] in toks

    def gettoken(self) -> tuple[str, str]:
        """Next token kind ('' at end, a symbol, or 'a' for a word) and its text."""
        self._skip_space()
        start = self.pos
        if self.at_end():
            kind = ""
        elif self.text[self.pos] in SYMBOLS:
            kind = self.text[self.pos]
            self.pos += 1
        else:
            kind = "a"
            while (
                not self.at_end()
                and self.text[self.pos] not in WHITESPACE
                and self.text[self.pos] not in SYMBOLS
            ):
                self.pos += 1
        token = self.text[start : self.pos]
        self._skip_space()
        return kind, token


def _parsepipe(sc: _Scanner) -> Command:
    cmd = _parseexec(sc)
    if sc.peek("|"):
        sc.gettoken()
        cmd = PipeCmd(cmd, _parsepipe(sc))
    return cmd


def _parseredirs(cmd: Command, sc: _Scanner) -> Command:
    while sc.peek("<>"):
        tok, _ = sc.gettoken()
        kind, name = sc.gettoken()
        if kind != "a":
            raise ParseError("missing file for redirection")
        cmd = RedirCmd(cmd, name, tok)
    return cmd


def _parseexec(sc: _Scanner) -> Command:
    exec_cmd = ExecCmd()
    ret: Command = _parseredirs(exec_cmd, sc)
    while not sc.peek("|"):
        kind, word = sc.gettoken()
        if kind == "":
            break
        if kind != "a":
            raise ParseError("syntax error")
        exec_cmd.argv.append(word)
        if len(exec_cmd.argv) >= MAXARGS:
            raise ParseError("too many args")
        ret = _parseredirs(ret, sc)
    return ret


def parsecmd(s: str) -> Command:
    """Parse one command line into a command tree."""
    sc = _Scanner(s)
    cmd = _parsepipe(sc)
    sc.peek("")
    if not sc.at_end():
        raise ParseError(f"leftovers: {sc.text[sc.pos:]}")
    return cmd


def _launch(cmd, stdin, stdout) -> tuple[list[subprocess.Popen], int | None]:
    """Start the processes of ``cmd``.

    Returns them with a fixed status, or None when the status is that of the
    single process started.
    """
    if cmd is None:
        return [], 0
    if isinstance(cmd, ExecCmd):
        if not cmd.argv:
            return [], 0
        try:
            proc = subprocess.Popen(cmd.argv, stdin=stdin, stdout=stdout)
        except OSError:
            print(f"{cmd.argv[0]} exec failed!", file=sys.stderr)
            return [], 0
        return [proc], None
    if isinstance(cmd, RedirCmd):
        try:
            nfd = os.open(cmd.file, cmd.mode, 0o666)
        except OSError:
            print(f"{cmd.file} open failed!", file=sys.stderr)
            return [], 1
        try:
            if cmd.fd == 0:
                return _launch(cmd.cmd, nfd, stdout)
            return _launch(cmd.cmd, stdin, nfd)
        finally:
            os.close(nfd)
    if isinstance(cmd, PipeCmd):
        try:
            read_fd, write_fd = os.pipe()
        except OSError:
            print("pipe failed!", file=sys.stderr)
            return [], 1
        try:
            right, _ = _launch(cmd.right, read_fd, stdout)
        finally:
            os.close(read_fd)
        try:
            left, _ = _launch(cmd.left, stdin, write_fd)
        finally:
            os.close(write_fd)
        return right + left, 0
    print("unknown runcmd", file=sys.stderr)
    return [], -1


def runcmd(cmd: Command | None) -> int:
    """Run ``cmd`` to completion and return its exit status."""
    sys.stdout.flush()
    procs, status = _launch(cmd, None, None)
    codes = [p.wait() for p in procs]
    if status is None:
        return codes[0]
    return status


def _getcmd() -> str | None:
    if sys.stdin.isatty():
        sys.stdout.write(PROMPT)
        sys.stdout.flush()
    line = sys.stdin.readline(_LINE_MAX)
    return line or None


def main(argv: list[str] | None = None) -> int:
    """Read command lines from standard input and run them until end of file."""
    while (line := _getcmd()) is not None:
        if line.startswith("cd "):
            target = line[:-1][3:]
            try:
                os.chdir(target)
            except OSError:
                print(f"cannot cd {target}", file=sys.stderr)
            continue
        try:
            cmd = parsecmd(line)
        except ParseError as exc:
            print(exc, file=sys.stderr)
            continue
        runcmd(cmd)
    return 0


if __name__ == "__main__":
    sys.exit(main())