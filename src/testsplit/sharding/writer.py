"""Group file serialization.

Each group is written as plain text, one identifier per line, to
``<prefix><index>`` (no extension, no header, no trailing newline).
These files are what a parallel runner reads to decide which tests each
worker executes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from testsplit.sharding.errors import GroupWriteError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from testsplit.sharding.observer import SplitObserver

logger = logging.getLogger(__name__)


def group_path(prefix: str | Path, index: int) -> Path:
    """Return the file path for group *index* under *prefix*."""
    return Path(f"{prefix}{index}")


def write_group(index: int, identifiers: Sequence[str], prefix: str | Path) -> Path:
    """Write one group file, replacing any existing file.

    Raises:
        GroupWriteError: If the file (or its directory) cannot be written.
    """
    path = group_path(prefix, index)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(identifiers), encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot write group file {path}: {exc.strerror or exc}"
        raise GroupWriteError(msg) from exc
    return path


def write_groups(
    groups: Mapping[int, Sequence[str]],
    prefix: str | Path,
    observer: SplitObserver | None = None,
) -> list[Path]:
    """Write every group in ascending index order.

    Stops at the first failure; files written before it are left on disk.

    Returns:
        Paths of the files written.
    """
    written: list[Path] = []
    for index in sorted(groups):
        path = group_path(prefix, index)
        if observer is not None:
            observer.info(f"Writing {path}")
        written.append(write_group(index, groups[index], prefix))
    logger.debug("Wrote %d group files with prefix %s", len(written), prefix)
    return written
