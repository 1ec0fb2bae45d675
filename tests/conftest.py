"""Shared fixtures: an in-memory filesystem with failure injection."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

import pytest


class MemoryFileSystem:
    """FileSystem implementation backed by dicts.

    Any method name listed in ``fail_on`` raises OSError when called with a
    path whose string form contains the mapped fragment.
    """

    def __init__(self) -> None:
        self.files: dict[PurePosixPath, bytes] = {}
        self.dirs: set[PurePosixPath] = {PurePosixPath("/")}
        self.fail_on: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []

    def _check(self, op: str, path: Path) -> PurePosixPath:
        key = PurePosixPath(str(path))
        self.calls.append((op, str(key)))
        fragment = self.fail_on.get(op)
        if fragment is not None and fragment in str(key):
            raise OSError(f"injected {op} failure")
        return key

    # -- setup helpers --

    def add_file(self, path: str, content: str) -> None:
        key = PurePosixPath(path)
        self._add_parents(key)
        self.files[key] = content.encode("utf-8")

    def read(self, path: str | Path) -> str:
        return self.files[PurePosixPath(str(path))].decode("utf-8")

    def _add_parents(self, key: PurePosixPath) -> None:
        for parent in key.parents:
            self.dirs.add(parent)

    # -- FileSystem protocol --

    def exists(self, path: Path) -> bool:
        key = self._check("exists", path)
        return key in self.files or key in self.dirs

    def is_dir(self, path: Path) -> bool:
        return PurePosixPath(str(path)) in self.dirs

    def is_link(self, path: Path) -> bool:
        return False

    def list_dir(self, path: Path) -> list[str]:
        key = self._check("list_dir", path)
        if key not in self.dirs:
            raise FileNotFoundError(str(key))
        names = {p.name for p in (*self.files, *self.dirs) if p.parent == key and p != key}
        return sorted(names)

    def make_dir(self, path: Path) -> None:
        key = self._check("make_dir", path)
        if key in self.files:
            raise FileExistsError(str(key))
        self._add_parents(key)
        self.dirs.add(key)

    def copy_file(self, source: Path, dest: Path) -> None:
        self._check("copy_file", source)
        dst = PurePosixPath(str(dest))
        if dst.parent not in self.dirs:
            raise FileNotFoundError(str(dst.parent))
        self.files[dst] = self.files[PurePosixPath(str(source))]

    def remove_file(self, path: Path) -> None:
        key = self._check("remove_file", path)
        if key not in self.files:
            raise FileNotFoundError(str(key))
        del self.files[key]

    def remove_dir(self, path: Path) -> None:
        key = self._check("remove_dir", path)
        if any(p.parent == key for p in (*self.files, *self.dirs) if p != key):
            raise OSError(f"directory not empty: {key}")
        self.dirs.discard(key)

    def write_text(self, path: Path, content: str) -> int:
        key = self._check("write_text", path)
        if key.parent not in self.dirs:
            raise FileNotFoundError(str(key.parent))
        data = content.encode("utf-8")
        self.files[key] = data
        return len(data)


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    return MemoryFileSystem()
