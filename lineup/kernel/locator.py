"""Filesystem repository locator.

Walks a directory tree depth-first and yields every directory that directly
contains a repository marker directory (``.git`` by default).
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from lineup.kernel.exceptions import NotFoundError
from lineup.kernel.logging import get_logger

logger = get_logger(__name__)

# Version-control internals and dependency caches; never descended into
DEFAULT_EXCLUDED_DIRS = frozenset({
    ".git",
    "node_modules",
    ".pnpm-store",
    "bower_components",
    ".yarn",
    ".venv",
    "venv",
    "__pycache__",
    ".tox",
    "target",
})

ErrorCallback = Callable[[Path, OSError], None]


class RepositoryLocator:
    """Lazy depth-first search for repository roots.

    Examples
    --------
    >>> locator = RepositoryLocator(excluded=DEFAULT_EXCLUDED_DIRS | {"fixtures"})
    >>> for repo in locator.locate("/work"):  # doctest: +SKIP
    ...     print(repo)
    """

    def __init__(
        self, marker: str = ".git", excluded: Iterable[str] = DEFAULT_EXCLUDED_DIRS
    ) -> None:
        self.marker = marker
        self.excluded = frozenset(excluded) | {marker}

    def locate(self, root: str | Path, on_error: ErrorCallback | None = None) -> Iterator[Path]:
        """Yield repository roots under ``root`` (inclusive), in name order.

        Symlinked directories are not followed. Nested repositories are
        yielded as well as their parents.

        Parameters
        ----------
        root : str | Path
            Directory to search
        on_error : ErrorCallback | None
            Called with the directory and the error when a directory cannot
            be listed; the directory is skipped and the walk continues

        Raises
        ------
        NotFoundError
            If ``root`` does not exist or is not a directory (raised on the
            first ``next()``)
        """
        root_path = Path(root)
        if not root_path.is_dir():
            raise NotFoundError("path", str(root_path))

        # Stack of directories still to visit; children pushed in reverse
        # so they pop in name order
        stack = [root_path]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = sorted(
                        (e for e in it if e.is_dir(follow_symlinks=False)),
                        key=lambda e: e.name,
                    )
            except OSError as e:
                logger.debug("Cannot list {path}: {error}", path=current, error=e)
                if on_error is not None:
                    on_error(current, e)
                continue

            if any(e.name == self.marker for e in entries):
                yield current

            stack.extend(
                Path(e.path) for e in reversed(entries) if e.name not in self.excluded
            )


def find_repositories(root: str | Path, *, exclude: Iterable[str] = ()) -> list[Path]:
    """All repository roots under ``root``, skipping unreadable directories."""
    locator = RepositoryLocator(excluded=DEFAULT_EXCLUDED_DIRS | frozenset(exclude))
    return list(locator.locate(root))
