"""File helpers shared by rule fixers.

Fixers read a whole file, compute the new content and hand it to
:func:`atomic_write`, which replaces the target in one ``os.replace`` so a
crash never leaves a half-written file behind.
"""

from __future__ import annotations

import json
import os
import stat
import tempfile
from pathlib import Path
from typing import Any

from lineup.kernel.exceptions import ParseError

_DEFAULT_FILE_MODE = 0o644


def read_text(path: Path) -> str:
    """Read a UTF-8 text file.

    Line endings are returned as stored so fixers can write them back unchanged.

    Raises
    ------
    ParseError
        If the file is not valid UTF-8
    OSError
        If the file cannot be read
    """
    try:
        with path.open(encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise ParseError(path, f"not valid UTF-8 ({e.reason})") from e


def error_reason(exc: Exception) -> str:
    """Short human-readable cause of a read or parse failure, without the path."""
    if isinstance(exc, ParseError):
        return exc.reason
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return str(exc)


def load_json(path: Path) -> Any:
    """Read and decode a JSON file.

    Raises
    ------
    ParseError
        If the content is not valid JSON; ``line`` is set from the decoder
    OSError
        If the file cannot be read
    """
    text = read_text(path)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(path, e.msg, line=e.lineno) from e


def load_json_object(path: Path) -> dict[str, Any]:
    """Read a JSON file whose top-level value must be an object."""
    data = load_json(path)
    if not isinstance(data, dict):
        raise ParseError(path, f"expected a JSON object, got {type(data).__name__}")
    return data


def detect_newline(text: str) -> str:
    """Line ending used by ``text``: CRLF when it contains any, otherwise LF."""
    return "\r\n" if "\r\n" in text else "\n"


def detect_indent(text: str) -> int | str:
    """Guess the indentation unit of a JSON document, defaulting to two spaces.

    Examples
    --------
    >>> detect_indent('{\\n    "a": 1\\n}')
    4
    >>> detect_indent('{"a": 1}')
    2
    """
    for line in text.splitlines():
        stripped = line.lstrip(" \t")
        if not stripped or stripped == line:
            continue
        prefix = line[: len(line) - len(stripped)]
        if prefix.startswith("\t"):
            return "\t"
        return len(prefix)
    return 2


def dump_json(data: Any, indent: int | str = 2, newline: str = "\n") -> str:
    """Serialize JSON the way package managers write manifests (trailing newline)."""
    text = json.dumps(data, indent=indent, ensure_ascii=False) + "\n"
    # json.dumps escapes newlines inside strings, so every "\n" here is a line break
    return text if newline == "\n" else text.replace("\n", newline)


def atomic_write(path: Path, content: str, mode: int | None = None) -> None:
    """Write ``content`` to ``path`` through a temporary sibling and ``os.replace``.

    Parent directories are created as needed. An existing file keeps its
    permission bits; a new file gets ``mode`` (``0o644`` when omitted).
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.exists():
        target_mode = stat.S_IMODE(path.stat().st_mode)
    else:
        target_mode = mode if mode is not None else _DEFAULT_FILE_MODE

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, target_mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def write_json(path: Path, data: Any, original: str | None = None) -> None:
    """Atomically write JSON, keeping the indentation and line endings of ``original``."""
    if original is None:
        atomic_write(path, dump_json(data))
        return
    atomic_write(
        path, dump_json(data, indent=detect_indent(original), newline=detect_newline(original))
    )
