"""Minimal printf-style formatting as understood by user programs and the console."""

from __future__ import annotations

from collections.abc import Iterator

_MASK = 0xFFFFFFFF


def _signed(value) -> int:
    v = int(value) & _MASK
    return v - (1 << 32) if v & 0x80000000 else v


def _string(value) -> str:
    if value is None:
        return "(null)"
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("latin-1")
    return str(value).split("\0", 1)[0]


def _char(value) -> str:
    if isinstance(value, str):
        return value[:1]
    return chr(int(value) & 0xFF)


def _next_arg(args: Iterator):
    try:
        return next(args)
    except StopIteration:
        raise TypeError("not enough arguments for format string") from None


def _format(fmt: str, args: tuple, *, upper: bool, allow_char: bool) -> str:
    out: list[str] = []
    values = iter(args)
    chars = iter(fmt)
    for c in chars:
        if c != "%":
            out.append(c)
            continue
        c = next(chars, None)
        if c is None:
            break
        if c == "d":
            out.append(str(_signed(_next_arg(values))))
        elif c in ("x", "p"):
            digits = format(int(_next_arg(values)) & _MASK, "x")
            out.append(digits.upper() if upper else digits)
        elif c == "s":
            out.append(_string(_next_arg(values)))
        elif c == "c" and allow_char:
            out.append(_char(_next_arg(values)))
        elif c == "%":
            out.append("%")
        else:
            # Unknown sequences are printed to draw attention.
            out.append("%" + c)
    return "".join(out)


def format_printf(fmt: str, *args) -> str:
    """Format as user programs do: %d, %x, %p, %s, %c and %% (hex in upper case)."""
    return _format(fmt, args, upper=True, allow_char=True)


def format_cprintf(fmt: str, *args) -> str:
    """Format as the console does: %d, %x, %p, %s and %% (hex in lower case)."""
    return _format(fmt, args, upper=False, allow_char=False)