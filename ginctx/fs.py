"""Read-only file systems rooted at a directory."""

from __future__ import annotations

import dataclasses
import os
import posixpath
from pathlib import Path


@dataclasses.dataclass(frozen=True)
class FileEntry:
    """A file or directory opened from a file system."""

    path: Path
    listable: bool = True

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_dir(self) -> bool:
        return self.path.is_dir()

    def read(self) -> bytes:
        """Return the file's contents."""
        return self.path.read_bytes()

    def readdir(self, count: int = 0) -> list[FileEntry]:
        """List directory entries; at most ``count`` when it is positive."""
        if not self.listable:
            return []
        entries = sorted(self.path.iterdir(), key=lambda p: p.name)
        if count > 0:
            entries = entries[:count]
        return [FileEntry(entry) for entry in entries]


class DirFileSystem:
    """A file system that serves the files below ``root``."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root) if str(root) else Path(".")

    def open(self, name: str) -> FileEntry:
        """Open a slash-separated name; it cannot escape the root."""
        if os.sep != "/" and os.sep in name:
            raise ValueError("invalid character in file path")
        relative = posixpath.normpath("/" + name).lstrip("/")
        path = self.root.joinpath(*relative.split("/")) if relative else self.root
        if not path.exists():
            raise FileNotFoundError(name)
        return FileEntry(path)


class OnlyFilesFileSystem:
    """A file system whose directories cannot be listed."""

    def __init__(self, fs: DirFileSystem) -> None:
        self.fs = fs

    def open(self, name: str) -> FileEntry:
        entry = self.fs.open(name)
        return dataclasses.replace(entry, listable=False)


def directory(root: str | os.PathLike[str],
              list_directory: bool) -> DirFileSystem | OnlyFilesFileSystem:
    """Return a file system for ``root``, listing directories only if asked."""
    fs = DirFileSystem(root)
    if list_directory:
        return fs
    return OnlyFilesFileSystem(fs)