"""Filesystem seam for the configfs tree.

Writer, loader and remover only talk to a TreeFS, never to os/pathlib
directly, so the tree logic runs unchanged against:

    LocalFS    a plain directory tree (tests, dry runs, staging dirs)
    ConfigFS   a real configfs mount, where the kernel owns attribute
               files and default groups
    <double>   an in-memory implementation (see tests/memfs.py)
"""

from __future__ import annotations

import contextlib
import os
from pathlib import Path
from typing import Protocol

# Subdirectories the kernel creates (and removes) together with their parent item.
DEFAULT_GROUPS = frozenset({
    "planes", "crtcs", "encoders", "connectors",
    "possible_crtcs", "possible_encoders",
})

_MOUNTS_FILE = Path("/proc/self/mounts")


class TreeFS(Protocol):
    def mkdir(self, path: Path, *, exist_ok: bool = False) -> None: ...

    def write_attr(self, path: Path, value: str) -> None: ...

    def read_attr(self, path: Path) -> str: ...

    def symlink(self, target: Path, link: Path) -> None: ...

    def link_target(self, link: Path) -> Path:
        """Target of a symlink as stored, without resolving it."""
        ...

    def list_dir(self, path: Path) -> list[str]: ...

    def is_dir(self, path: Path) -> bool: ...

    def exists(self, path: Path) -> bool: ...

    def remove_tree(self, path: Path) -> None: ...


class LocalFS:
    """TreeFS over a regular directory hierarchy."""

    def mkdir(self, path: Path, *, exist_ok: bool = False) -> None:
        path.mkdir(exist_ok=exist_ok)

    def write_attr(self, path: Path, value: str) -> None:
        path.write_text(value)

    def read_attr(self, path: Path) -> str:
        # configfs show() handlers terminate values with a newline
        return path.read_text().strip()

    def symlink(self, target: Path, link: Path) -> None:
        link.symlink_to(target, target_is_directory=True)

    def link_target(self, link: Path) -> Path:
        return Path(os.readlink(link))

    def list_dir(self, path: Path) -> list[str]:
        return sorted(p.name for p in path.iterdir())

    def is_dir(self, path: Path) -> bool:
        return path.is_dir() and not path.is_symlink()

    def exists(self, path: Path) -> bool:
        return os.path.lexists(path)

    def remove_tree(self, path: Path) -> None:
        """Delete path bottom-up. Symlinks are unlinked, never followed."""
        if path.is_symlink() or not path.is_dir():
            path.unlink()
            return
        with os.scandir(path) as it:
            entries = list(it)
        for entry in entries:
            child = Path(entry.path)
            if entry.is_symlink():
                child.unlink()
            elif entry.is_dir(follow_symlinks=False):
                self.remove_tree(child)
            else:
                self._remove_file(child)
        self._remove_dir(path)

    def _remove_file(self, path: Path) -> None:
        path.unlink()

    def _remove_dir(self, path: Path) -> None:
        path.rmdir()


class ConfigFS(LocalFS):
    """TreeFS over a kernel configfs mount.

    Attribute files cannot be unlinked and default groups cannot be
    removed from user space; both vanish when their item is rmdir'ed.
    """

    def _remove_file(self, path: Path) -> None:
        pass

    def _remove_dir(self, path: Path) -> None:
        if path.name in DEFAULT_GROUPS:
            return
        path.rmdir()


def is_configfs_mount(path: Path | str) -> bool:
    """True if path lives on a configfs mount according to /proc/self/mounts."""
    target = Path(path).resolve()
    mountpoints: list[Path] = []
    with contextlib.suppress(OSError):
        for line in _MOUNTS_FILE.read_text().splitlines():
            parts = line.split()
            if len(parts) >= 3 and parts[2] == "configfs":
                mountpoints.append(Path(parts[1]))
    return any(target == mp or mp in target.parents for mp in mountpoints)


def default_fs(configfs_path: Path | str) -> TreeFS:
    """Pick ConfigFS for a real mount, LocalFS for anything else."""
    if is_configfs_mount(configfs_path):
        return ConfigFS()
    return LocalFS()
