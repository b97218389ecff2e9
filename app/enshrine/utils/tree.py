"""Lazy, restartable directory tree traversal.

A FileTree yields nodes depth-first in sorted order without building the
full listing in memory. Iterating the same FileTree again starts a fresh
walk of the current on-disk state.
"""

import os
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class TreeNode:
    """A single entry found while walking a tree.

    Attributes:
        path: Absolute path of the entry.
        relative: Path relative to the tree root, using "/" separators.
        is_dir: True for real directories (symlinks are never directories).
    """

    path: Path
    relative: str
    is_dir: bool


class FileTree:
    """Depth-first, pre-order view of a directory tree.

    Args:
        root: Directory to walk.
        exclude: Directory names that are neither yielded nor descended into.
        on_error: Called with the OSError when a directory cannot be listed.
            If None, the error propagates.
    """

    def __init__(
        self,
        root: Path,
        *,
        exclude: frozenset[str] = frozenset(),
        on_error: Callable[[OSError], None] | None = None,
    ) -> None:
        self._root = Path(root)
        self._exclude = exclude
        self._on_error = on_error

    @property
    def root(self) -> Path:
        return self._root

    def __iter__(self) -> Iterator[TreeNode]:
        return self._walk(self._root, "")

    def files(self) -> Iterator[TreeNode]:
        """Yield only non-directory nodes."""
        return (node for node in self if not node.is_dir)

    def directories(self) -> Iterator[TreeNode]:
        """Yield only directory nodes."""
        return (node for node in self if node.is_dir)

    def _walk(self, directory: Path, prefix: str) -> Iterator[TreeNode]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            if self._on_error is None:
                raise
            self._on_error(e)
            return

        for entry in entries:
            relative = f"{prefix}{entry.name}"
            is_dir = entry.is_dir(follow_symlinks=False)
            if is_dir and entry.name in self._exclude:
                continue
            yield TreeNode(path=Path(entry.path), relative=relative, is_dir=is_dir)
            if is_dir:
                yield from self._walk(Path(entry.path), f"{relative}/")
