"""Reproducible reading and writing of ``.properties`` files.

Output follows the escaping rules of the classic key/value properties format
but is canonical: keys are sorted, no timestamp comment is ever written and
every line ends with a single ``\\n``. Two runs against the same commit
therefore produce byte-identical files.
"""

from __future__ import annotations

import io
import re
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, List, Mapping, Optional

PROPERTIES_ENCODING = "iso-8859-1"

_SIMPLE_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\f": "\\f",
}
_SPECIAL_CHARS = frozenset("#=!:")
_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t", "f": "\f"}
_WHITESPACE = " \t\f"
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def escape(text: str, escape_space: bool) -> str:
    """Escape a key or value for a properties file.

    Spaces are only escaped when ``escape_space`` is true (keys). Characters
    outside printable ASCII become ``\\uXXXX`` with uppercase hex digits;
    code points beyond the BMP are written as a surrogate pair.
    """
    out: List[str] = []
    for ch in text:
        code = ord(ch)
        if 61 < code < 127:
            out.append("\\\\" if ch == "\\" else ch)
        elif ch == " ":
            out.append("\\ " if escape_space else " ")
        elif ch in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[ch])
        elif ch in _SPECIAL_CHARS:
            out.append("\\" + ch)
        elif code < 0x20 or code > 0x7E:
            out.append(_hex_escape(code))
        else:
            out.append(ch)
    return "".join(out)


def _hex_escape(code: int) -> str:
    if code > 0xFFFF:
        code -= 0x10000
        high = 0xD800 + (code >> 10)
        low = 0xDC00 + (code & 0x3FF)
        return f"\\u{high:04X}\\u{low:04X}"
    return f"\\u{code:04X}"


def format_properties(props: Mapping[str, str], comment: Optional[str] = None) -> List[str]:
    """Return the canonical lines for ``props``, sorted by key."""
    lines: List[str] = []
    if comment is not None:
        lines.append(f"# {comment}")
    for key in sorted(props):
        lines.append(f"{escape(key, True)}={escape(props[key], False)}")
    return lines


def write_lines(
    lines: Iterable[str],
    stream: BinaryIO,
    *,
    encoding: str = "utf-8",
    close: bool = False,
    errors: str = "strict",
) -> int:
    """Write ``lines`` to a binary stream, each terminated by ``\\n``.

    The line terminator never depends on the host platform. When ``close``
    is true the stream is closed however the write ends.
    """
    count = 0
    try:
        for line in lines:
            stream.write(line.encode(encoding, errors))
            stream.write(b"\n")
            count += 1
        stream.flush()
    finally:
        if close:
            stream.close()
    return count


def save_properties(
    props: Mapping[str, str],
    stream: BinaryIO,
    comment: Optional[str] = None,
    *,
    close: bool = True,
) -> int:
    """Write ``props`` in canonical form; returns the number of lines written.

    With ``close`` the stream is closed even when ``props`` cannot be
    formatted.
    """
    try:
        lines = format_properties(props, comment)
    except Exception:
        if close:
            stream.close()
        raise
    return _write_encoded(lines, stream, close=close)


def _write_encoded(lines: Iterable[str], stream: BinaryIO, *, close: bool) -> int:
    # Escaped lines are pure ASCII; only a free-form comment can fall outside latin-1.
    return write_lines(lines, stream, encoding=PROPERTIES_ENCODING, close=close, errors="replace")


def dump_properties(props: Mapping[str, str], comment: Optional[str] = None) -> bytes:
    """Return the canonical encoded bytes for ``props``."""
    buffer = io.BytesIO()
    save_properties(props, buffer, comment, close=False)
    return buffer.getvalue()


def write_properties_file(
    path: Path, props: Mapping[str, str], comment: Optional[str] = None
) -> Path:
    """Create parent directories and (over)write a properties file.

    Lines are formatted before the file is opened, so a bad property set
    leaves any previous file untouched.
    """
    lines = format_properties(props, comment)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as stream:
        _write_encoded(lines, stream, close=False)
    return path


# ----------------------------------------------------------------------
# Reading


def unescape(text: str) -> str:
    """Reverse :func:`escape` (and the wider set of escapes readers accept)."""
    out: List[str] = []
    index = 0
    length = len(text)
    while index < length:
        ch = text[index]
        index += 1
        if ch != "\\" or index >= length:
            out.append(ch)
            continue
        marker = text[index]
        index += 1
        if marker == "u":
            digits = text[index : index + 4]
            if len(digits) != 4:
                raise ValueError(f"Malformed \\uXXXX escape in {text!r}")
            try:
                out.append(chr(int(digits, 16)))
            except ValueError as exc:
                raise ValueError(f"Malformed \\uXXXX escape in {text!r}") from exc
            index += 4
        else:
            out.append(_UNESCAPES.get(marker, marker))
    joined = "".join(out)
    # Recombine surrogate pairs produced for characters beyond the BMP.
    return joined.encode("utf-16-le", "surrogatepass").decode("utf-16-le")


def _logical_lines(text: str) -> Iterable[str]:
    pending: Optional[str] = None
    for raw in _LINE_BREAK.split(text):
        line = raw.lstrip(_WHITESPACE) if pending is not None else raw
        if pending is None:
            stripped = line.lstrip(_WHITESPACE)
            if not stripped or stripped[0] in "#!":
                continue
            line = stripped
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue
        yield (pending or "") + line
        pending = None
    if pending is not None:
        yield pending


def _split_entry(line: str) -> tuple[str, str]:
    index = 0
    length = len(line)
    while index < length:
        ch = line[index]
        if ch == "\\":
            index += 2
            continue
        if ch in "=:" or ch in _WHITESPACE:
            break
        index += 1
    key = line[:index]
    rest = line[index:].lstrip(_WHITESPACE)
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def load_properties(text: str) -> Dict[str, str]:
    """Parse properties-file text into an ordered dict."""
    result: Dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split_entry(line)
        result[unescape(key)] = unescape(value)
    return result


def read_properties_file(path: Path) -> Dict[str, str]:
    """Load a properties file written in ISO-8859-1."""
    return load_properties(path.read_text(encoding=PROPERTIES_ENCODING))


__all__ = [
    "PROPERTIES_ENCODING",
    "dump_properties",
    "escape",
    "format_properties",
    "load_properties",
    "read_properties_file",
    "save_properties",
    "unescape",
    "write_lines",
    "write_properties_file",
]
