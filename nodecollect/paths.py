"""Locations of the proc, sys and root filesystems."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass


def _clean(path: str) -> str:
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _join(*elements: str) -> str:
    parts = [element for element in elements if element]
    if not parts:
        return ""
    return _clean("/".join(parts))


@dataclass
class Paths:
    """Mount points that collectors read their files from."""

    procfs: str = "/proc"
    sysfs: str = "/sys"
    rootfs: str = "/"

    def proc_file_path(self, name: str) -> str:
        return _join(self.procfs, name)

    def sys_file_path(self, name: str) -> str:
        return _join(self.sysfs, name)

    def rootfs_file_path(self, name: str) -> str:
        return _join(self.rootfs, name)

    def rootfs_strip_prefix(self, path: str) -> str:
        """Remove the rootfs mount point from the front of a path."""
        if self.rootfs == "/":
            return path
        stripped = path[len(self.rootfs):] if path.startswith(self.rootfs) else path
        return stripped or "/"