# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Deterministic directory traversal.

walk_tree() performs an explicit stack-based, depth-first, pre-order walk.
Siblings are visited in lexicographic order so that two walks over an
unchanged tree visit the same nodes in the same order. The visitor decides
per node whether the walk descends into it.
"""

import os
import threading
from enum import Enum
from typing import Callable, List, Tuple

import structlog

from s3dump.archive.fserrors import FsErrorKind, classify_os_error
from s3dump.exceptions import ArchiveError, DumpCancelled

logger = structlog.get_logger()

ROOT_REL_PATH = "."


class Decision(str, Enum):
    """What the walk does with a node after visiting it."""

    SKIP = "skip"  # Nothing emitted, do not descend
    CONTINUE = "continue"  # Node handled, nothing below it
    DESCEND = "descend"  # Node handled, visit its children


# visit(rel_path, abs_path) -> Decision
Visitor = Callable[[str, str], Decision]


def join_rel_path(parent: str, name: str) -> str:
    """Join relative paths with forward slashes regardless of platform."""
    if parent == ROOT_REL_PATH:
        return name
    return f"{parent}/{name}"


def list_children(rel_path: str, abs_path: str) -> List[str]:
    """
    List a directory's entry names in lexicographic order.

    A directory that became unreadable or vanished yields no children;
    any other listing failure aborts the walk.
    """
    try:
        names = os.listdir(abs_path)
    except OSError as exc:
        kind = classify_os_error(exc)
        if kind == FsErrorKind.PERMISSION_DENIED:
            logger.warning("directory_listing_denied", path=abs_path)
            return []
        if kind == FsErrorKind.NOT_FOUND:
            logger.info("directory_vanished", path=abs_path)
            return []
        raise ArchiveError(
            f"Failed to list directory: {exc}",
            details={"path": abs_path, "rel_path": rel_path},
        ) from exc

    names.sort()
    return names


def walk_tree(
    root: str,
    visit: Visitor,
    cancel: threading.Event | None = None,
) -> None:
    """
    Walk the tree below root, calling visit for every node.

    The root itself is visited with the relative path ".".

    Args:
        root: Absolute or relative path of the walk origin
        visit: Callback returning a Decision for each node
        cancel: Optional event; once set, the walk stops before the next node

    Raises:
        DumpCancelled: If cancel is set during the walk
        ArchiveError: If a directory cannot be listed for unexpected reasons
    """
    stack: List[Tuple[str, str]] = [(ROOT_REL_PATH, root)]

    while stack:
        if cancel is not None and cancel.is_set():
            raise DumpCancelled("Dump cancelled", details={"root": root})

        rel_path, abs_path = stack.pop()
        if visit(rel_path, abs_path) != Decision.DESCEND:
            continue

        # Reversed so the smallest name is popped first
        for name in reversed(list_children(rel_path, abs_path)):
            stack.append((join_rel_path(rel_path, name), os.path.join(abs_path, name)))
