import logging
import os
from typing import List

from shared.schemas.cgroup_schema import CgroupId
from src.reclaimer.errors import ParentNotFound

logger = logging.getLogger(__name__)


def _subdirectories(path: str) -> List[str]:
    with os.scandir(path) as it:
        return sorted(
            entry.path for entry in it if entry.is_dir(follow_symlinks=False)
        )


class Discoverer:
    """Lists the leaf cgroups (containers) below a parent cgroup."""

    def __init__(self, parent: str):
        self.parent = parent

    def discover(self) -> List[CgroupId]:
        """
        Walk the tree under the parent and return every directory that has no
        subdirectory, in depth-first order. The parent itself is never a leaf.

        The tree is re-read on every call. Directories removed while the walk
        is in progress are skipped.
        """
        if not os.path.isdir(self.parent):
            raise ParentNotFound(self.parent)
        try:
            top = _subdirectories(self.parent)
        except OSError as e:
            raise ParentNotFound(self.parent) from e

        leaves: List[CgroupId] = []
        # reversed so that pops come out in sorted order
        stack = list(reversed(top))
        while stack:
            path = stack.pop()
            try:
                children = _subdirectories(path)
            except OSError as e:
                logger.debug(f"Skipping {path}: {e}")
                continue
            if children:
                stack.extend(reversed(children))
            else:
                leaves.append(path)
        return leaves
