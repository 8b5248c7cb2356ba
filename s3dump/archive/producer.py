# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3dump Archive Producer - Stream a directory tree as a tar archive.

Every visited node becomes one tar entry written straight to the sink, so
the archive is never held in memory. Per-node races (permission changes,
nodes vanishing mid-walk, sockets) are logged and skipped; anything that
makes the archive as a whole unreliable raises ArchiveError.
"""

import os
import stat
import tarfile
import threading
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import BinaryIO

import structlog

from s3dump.archive.fserrors import FsErrorKind, classify_os_error
from s3dump.archive.walker import ROOT_REL_PATH, Decision, walk_tree
from s3dump.exceptions import ArchiveError

try:
    import grp
    import pwd
except ImportError:  # pragma: no cover - non-POSIX platforms
    grp = pwd = None

logger = structlog.get_logger()

# Kernel-exposed trees that are meaningless or infinite in a snapshot
VIRTUAL_TOP_LEVEL_DIRS = ("dev", "proc", "sys")

# Stored as the link target when readlink is denied
PERMISSION_DENIED_TARGET = "permission denied"


@dataclass
class ArchiveStats:
    """Counters describing one produced archive."""

    entries: int = 0
    content_bytes: int = 0
    elided_files: int = 0
    skipped_virtual: int = 0
    skipped_denied: int = 0
    skipped_vanished: int = 0
    skipped_special: int = 0


def is_virtual_path(rel_path: str) -> bool:
    """Return True for dev, proc, sys and anything below them."""
    return rel_path.split("/", 1)[0] in VIRTUAL_TOP_LEVEL_DIRS


def is_world_readable(mode: int) -> bool:
    """Check the other/world read bit."""
    return bool(mode & stat.S_IROTH)


@lru_cache(maxsize=256)
def _user_name(uid: int) -> str:
    if pwd is None:
        return ""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return ""


@lru_cache(maxsize=256)
def _group_name(gid: int) -> str:
    if grp is None:
        return ""
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return ""


def build_entry(rel_path: str, st: os.stat_result, link_target: str = "") -> tarfile.TarInfo | None:
    """
    Build a tar header from lstat metadata.

    The stored name is always the forward-slash relative path. Returns None
    for node types tar cannot represent (sockets and the like).
    """
    info = tarfile.TarInfo(name=rel_path)
    mode = st.st_mode

    if stat.S_ISREG(mode):
        info.type = tarfile.REGTYPE
        info.size = st.st_size
    elif stat.S_ISDIR(mode):
        info.type = tarfile.DIRTYPE
    elif stat.S_ISLNK(mode):
        info.type = tarfile.SYMTYPE
        info.linkname = link_target
    elif stat.S_ISCHR(mode) or stat.S_ISBLK(mode):
        info.type = tarfile.CHRTYPE if stat.S_ISCHR(mode) else tarfile.BLKTYPE
        info.devmajor = os.major(st.st_rdev)
        info.devminor = os.minor(st.st_rdev)
    elif stat.S_ISFIFO(mode):
        info.type = tarfile.FIFOTYPE
    else:
        return None

    info.mode = stat.S_IMODE(mode)
    info.mtime = int(st.st_mtime)
    info.uid = st.st_uid
    info.gid = st.st_gid
    info.uname = _user_name(st.st_uid)
    info.gname = _group_name(st.st_gid)
    return info


class _ArchiveVisitor:
    """Walk visitor that writes one tar entry per node."""

    def __init__(self, tar: tarfile.TarFile, stats: ArchiveStats):
        self._tar = tar
        self._stats = stats

    def __call__(self, rel_path: str, abs_path: str) -> Decision:
        if rel_path == ROOT_REL_PATH:
            return Decision.DESCEND

        if is_virtual_path(rel_path):
            self._stats.skipped_virtual += 1
            logger.debug("virtual_tree_skipped", path=abs_path)
            return Decision.SKIP

        try:
            st = os.lstat(abs_path)
        except OSError as exc:
            kind = classify_os_error(exc)
            if kind == FsErrorKind.NOT_FOUND:
                self._stats.skipped_vanished += 1
                logger.info("node_vanished", path=abs_path)
                return Decision.SKIP
            if kind == FsErrorKind.PERMISSION_DENIED:
                self._stats.skipped_denied += 1
                logger.warning("node_stat_denied", path=abs_path)
                return Decision.SKIP
            raise ArchiveError(
                f"Failed to get file info: {exc}",
                details={"path": abs_path},
            ) from exc

        if stat.S_ISSOCK(st.st_mode):
            self._stats.skipped_special += 1
            logger.info("socket_skipped", path=abs_path)
            return Decision.SKIP

        link_target = ""
        if stat.S_ISLNK(st.st_mode):
            link_target = self._read_link(abs_path)

        info = build_entry(rel_path, st, link_target)
        if info is None:
            self._stats.skipped_special += 1
            logger.info("unsupported_node_skipped", path=abs_path, mode=oct(st.st_mode))
            return Decision.SKIP

        if info.isreg() and is_world_readable(st.st_mode):
            self._write_file(info, abs_path)
        else:
            if info.isreg():
                self._stats.elided_files += 1
            info.size = 0
            self._write_header(info, abs_path)

        self._stats.entries += 1
        return Decision.DESCEND if info.isdir() else Decision.CONTINUE

    def _read_link(self, abs_path: str) -> str:
        try:
            return os.readlink(abs_path)
        except OSError as exc:
            if classify_os_error(exc) == FsErrorKind.PERMISSION_DENIED:
                logger.warning("readlink_denied", path=abs_path)
                return PERMISSION_DENIED_TARGET
            raise ArchiveError(
                f"Failed to read link: {exc}",
                details={"path": abs_path},
            ) from exc

    def _write_header(self, info: tarfile.TarInfo, abs_path: str) -> None:
        try:
            self._tar.addfile(info)
        except (OSError, tarfile.TarError, ValueError) as exc:
            raise ArchiveError(
                f"Failed to write tar header: {exc}",
                details={"path": abs_path},
            ) from exc

    def _write_file(self, info: tarfile.TarInfo, abs_path: str) -> None:
        try:
            f = open(abs_path, "rb")
        except OSError as exc:
            raise ArchiveError(
                f"Failed to open file: {exc}",
                details={"path": abs_path},
            ) from exc

        with f:
            try:
                self._tar.addfile(info, f)
            except (OSError, tarfile.TarError, ValueError) as exc:
                raise ArchiveError(
                    f"Failed to copy file: {exc}",
                    details={"path": abs_path, "size": info.size},
                ) from exc

        self._stats.content_bytes += info.size


def _check_root(root: Path) -> str:
    """Fail fast unless root is an existing directory and not a symlink."""
    try:
        st = os.lstat(root)
    except OSError as exc:
        raise ArchiveError(
            f"Dump root is not accessible: {exc}",
            details={"root": str(root)},
        ) from exc

    if stat.S_ISLNK(st.st_mode):
        raise ArchiveError("Dump root must not be a symlink", details={"root": str(root)})
    if not stat.S_ISDIR(st.st_mode):
        raise ArchiveError("Dump root must be a directory", details={"root": str(root)})

    return str(root)


def produce_archive(
    sink: BinaryIO,
    root_path: str | Path,
    cancel: threading.Event | None = None,
) -> ArchiveStats:
    """
    Write a streaming tar archive of root_path to sink.

    The archive is finalized only when the whole walk succeeds. On error
    nothing more is written and the caller is responsible for failing the
    sink instead of finishing it.

    Args:
        sink: Writable binary stream (usually a compressor over a pipe)
        root_path: Directory to archive
        cancel: Optional event that stops the walk before the next node

    Returns:
        ArchiveStats for the written archive

    Raises:
        ArchiveError: If the archive cannot be produced reliably
    """
    root = _check_root(Path(root_path))
    stats = ArchiveStats()

    # Plain "w" mode never seeks and adds no buffering layer of its own
    tar = tarfile.TarFile(fileobj=sink, mode="w", format=tarfile.PAX_FORMAT)
    walk_tree(root, _ArchiveVisitor(tar, stats), cancel)

    try:
        tar.close()
    except (OSError, tarfile.TarError) as exc:
        raise ArchiveError(
            f"Failed to finalize archive: {exc}",
            details={"root": root},
        ) from exc

    logger.info(
        "archive_produced",
        root=root,
        entries=stats.entries,
        content_bytes=stats.content_bytes,
        elided_files=stats.elided_files,
        skipped_virtual=stats.skipped_virtual,
        skipped_denied=stats.skipped_denied,
        skipped_vanished=stats.skipped_vanished,
        skipped_special=stats.skipped_special,
    )
    return stats
