"""File operations: fingerprinting, backup, atomic write, text reading."""

from __future__ import annotations

import errno
import hashlib
import os
import shutil
import stat
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

SOURCE_ENCODING = "utf-8-sig"
TARGET_ENCODING = "utf-8"


def fingerprint(path: str | Path) -> str:
    """Compute SHA-256 fingerprint of a dataset file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return f"sha256:{h.hexdigest()}"


def backup(path: str | Path) -> str:
    """Copy ``path`` to a timestamped ``.bak`` sibling. Returns the backup path."""
    path = Path(path)
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    backup_path = path.with_name(f"{path.stem}.{ts}.bak{path.suffix}")
    shutil.copy2(path, backup_path)
    return str(backup_path)


def _new_file_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def atomic_write_text(target: str | Path, text: str) -> None:
    """Replace ``target`` with ``text`` via a temp file in the same directory.

    The destination is either fully rewritten or left untouched; a failed
    write never leaves a truncated file behind. An existing destination
    keeps its permission bits.
    """
    target = Path(target)
    if target.is_dir():
        raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), str(target))
    parent = target.parent if str(target.parent) else Path(".")
    mode = stat.S_IMODE(target.stat().st_mode) if target.exists() else _new_file_mode()
    fd, tmp_path = tempfile.mkstemp(
        dir=parent, suffix=target.suffix, prefix=".csvedit_tmp_"
    )
    try:
        with os.fdopen(fd, "w", encoding=TARGET_ENCODING, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, target)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def iter_lines(path: str | Path) -> Iterator[str]:
    """Yield the lines of a text file without their terminators.

    Uses ``utf-8-sig`` so a leading BOM never ends up in the first cell.
    """
    with open(path, encoding=SOURCE_ENCODING) as f:
        for line in f:
            yield line.rstrip("\r\n")


def read_text_safe(path: str | Path) -> str:
    """Read a whole text file with UTF-8 BOM tolerance."""
    return Path(path).read_text(encoding=SOURCE_ENCODING)
