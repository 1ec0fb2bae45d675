"""Non-destructive directory overlay and recursive deletion."""

from __future__ import annotations

from pathlib import Path

from themeflat.core.filesystem import FileSystem
from themeflat.errors import ErrorCode, wrap_os_error


def overlay_tree(source: Path, destination: Path, fs: FileSystem) -> int:
    """Copy the contents of source into destination, skipping paths that already exist.

    Files already present at the destination always win, so callers get
    "first layer wins" precedence by overlaying layers in order.

    Returns:
        Number of files copied.
    """
    ensure_dir(destination, fs)
    try:
        entries = fs.list_dir(source)
    except OSError as exc:
        raise wrap_os_error(
            ErrorCode.SOURCE_UNREADABLE, f"Cannot read directory {source}", exc, source
        ) from exc

    copied = 0
    for name in entries:
        src = source / name
        dest = destination / name
        if fs.is_dir(src):
            copied += overlay_tree(src, dest, fs)
            continue
        try:
            if fs.exists(dest):
                continue
            fs.copy_file(src, dest)
        except OSError as exc:
            raise wrap_os_error(
                ErrorCode.COPY_FAILED, f"Cannot copy {src} to {dest}.", exc, src
            ) from exc
        copied += 1
    return copied


def ensure_dir(path: Path, fs: FileSystem) -> None:
    """Create path (and parents) unless it is already a directory."""
    if fs.is_dir(path):
        return
    try:
        if fs.exists(path):
            raise FileExistsError(f"{path} exists and is not a directory")
        fs.make_dir(path)
    except OSError as exc:
        raise wrap_os_error(
            ErrorCode.DIRECTORY_CREATE_FAILED, f"Cannot create {path}", exc, path
        ) from exc


def delete_tree(path: Path, fs: FileSystem) -> None:
    """Recursively delete a directory; symlinks are unlinked, never followed."""
    if fs.is_link(path):
        _remove_file(path, fs)
        return
    try:
        entries = fs.list_dir(path)
    except OSError as exc:
        raise wrap_os_error(ErrorCode.DELETE_FAILED, f"Cannot delete {path}", exc, path) from exc

    for name in entries:
        current = path / name
        if fs.is_dir(current) and not fs.is_link(current):
            delete_tree(current, fs)
            continue
        _remove_file(current, fs)

    try:
        fs.remove_dir(path)
    except OSError as exc:
        raise wrap_os_error(ErrorCode.DELETE_FAILED, f"Cannot delete {path}", exc, path) from exc


def _remove_file(path: Path, fs: FileSystem) -> None:
    try:
        fs.remove_file(path)
    except OSError as exc:
        raise wrap_os_error(ErrorCode.DELETE_FAILED, f"Cannot delete {path}", exc, path) from exc
