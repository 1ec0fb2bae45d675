"""Filesystem capability used by the tree overlay and compiler."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """Single-call filesystem primitives; implementations raise OSError on failure."""

    def exists(self, path: Path) -> bool: ...

    def is_dir(self, path: Path) -> bool: ...

    def is_link(self, path: Path) -> bool: ...

    def list_dir(self, path: Path) -> list[str]: ...

    def make_dir(self, path: Path) -> None: ...

    def copy_file(self, source: Path, dest: Path) -> None: ...

    def remove_file(self, path: Path) -> None: ...

    def remove_dir(self, path: Path) -> None: ...

    def write_text(self, path: Path, content: str) -> int: ...


class LocalFileSystem:
    """FileSystem backed by the local disk."""

    def exists(self, path: Path) -> bool:
        return path.exists() or path.is_symlink()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def is_link(self, path: Path) -> bool:
        return path.is_symlink()

    def list_dir(self, path: Path) -> list[str]:
        return sorted(child.name for child in path.iterdir())

    def make_dir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def copy_file(self, source: Path, dest: Path) -> None:
        shutil.copy2(str(source), str(dest))

    def remove_file(self, path: Path) -> None:
        path.unlink()

    def remove_dir(self, path: Path) -> None:
        path.rmdir()

    def write_text(self, path: Path, content: str) -> int:
        data = content.encode("utf-8")
        with path.open("wb") as handle:
            return handle.write(data)
