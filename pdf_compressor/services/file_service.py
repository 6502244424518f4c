"""Temporary file staging and cleanup for a single compression request."""

from __future__ import annotations

import contextlib
import errno
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)

_STORAGE_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


@dataclass(frozen=True)
class TempFilePair:
    """Input/output paths handed to Ghostscript, owned by one request."""

    token: str
    input_path: Path
    output_path: Path

    @property
    def paths(self) -> tuple[Path, Path]:
        return self.input_path, self.output_path


def new_temp_pair(tmp_dir: Union[str, Path]) -> TempFilePair:
    """Derive a fresh pair of paths from a random 128-bit token."""
    token = uuid.uuid4().hex
    base = Path(tmp_dir)
    return TempFilePair(
        token=token,
        input_path=base / f"in_{token}.pdf",
        output_path=base / f"out_{token}.pdf",
    )


def write_input(pair: TempFilePair, data: bytes) -> None:
    """Write the upload to the pair's input path.

    Uses exclusive creation so an existing file is never truncated.
    """
    with open(pair.input_path, "xb") as handle:
        handle.write(data)


def read_output(pair: TempFilePair) -> bytes:
    return pair.output_path.read_bytes()


def remove_files(*paths: Path) -> None:
    """Best-effort unlink; errors are logged and swallowed."""
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Cleanup error for {path.name}: {e}")


@contextlib.contextmanager
def staged_pair(tmp_dir: Union[str, Path]) -> Iterator[TempFilePair]:
    """Yield a new temp pair and remove both files on every exit path."""
    pair = new_temp_pair(tmp_dir)
    try:
        yield pair
    finally:
        remove_files(*pair.paths)


def is_storage_exhausted(exc: Optional[BaseException]) -> bool:
    """True if ``exc`` (or an exception it wraps) is an out-of-space error."""
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        if isinstance(exc, OSError) and exc.errno in _STORAGE_ERRNOS:
            return True
        exc = exc.__cause__ or exc.__context__
    return False
