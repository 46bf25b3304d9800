"""Directory trees: a bounded recursive walk of a filesystem path."""

import logging
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from app_diagnostics.utils.errors import DirectoryTreeError

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SYMBOLIC_LINK = "symbolic_link"


@dataclass
class DirectoryTreeNode:
    """A file, symbolic link, or directory with its children."""

    path: str
    name: str
    kind: NodeKind
    children: List["DirectoryTreeNode"] = field(default_factory=list)

    def render(self) -> str:
        """Render as an indented tree, one node per line."""
        lines = [f"{self.name}/" if self.kind == NodeKind.DIRECTORY else self.name]
        lines.extend(self._render_children(""))
        return "\n".join(lines)

    def _render_children(self, indent: str) -> List[str]:
        lines = []
        for index, child in enumerate(self.children):
            last = index == len(self.children) - 1
            branch = "└── " if last else "├── "
            label = child.name
            if child.kind == NodeKind.DIRECTORY:
                label += "/"
            elif child.kind == NodeKind.SYMBOLIC_LINK:
                label += " ->"
            lines.append(f"{indent}{branch}{label}")
            lines.extend(child._render_children(indent + ("    " if last else "│   ")))
        return lines


@dataclass
class DirectoryTreeFactory:
    """Builds a ``DirectoryTreeNode`` tree for ``path``.

    Directories list at most ``max_length`` entries (sorted by name); the
    rest are summarized by a single "N more file(s)" node.
    """

    path: str
    max_depth: int = sys.maxsize
    max_length: int = 10
    include_hidden_files: bool = False
    include_symbolic_links: bool = False
    skip_directory_contents: Callable[[str], bool] = lambda path: False

    def make(self) -> DirectoryTreeNode:
        """Build the tree.

        Raises:
            DirectoryTreeError: If the root cannot be turned into a node
        """
        try:
            root = self._node_from(os.fspath(self.path), depth=0)
        except OSError as e:
            raise DirectoryTreeError(f"Reading {self.path} failed: {e}", path=str(self.path)) from e
        if root is None:
            raise DirectoryTreeError(
                f"Root node creation failed for {self.path}", path=str(self.path)
            )
        return root

    def _node_from(self, path: str, depth: int) -> Optional[DirectoryTreeNode]:
        if depth >= self.max_depth:
            return None

        name = os.path.basename(os.path.normpath(path)) or path
        if not self.include_hidden_files and name.startswith("."):
            return None

        if os.path.islink(path):
            if not self.include_symbolic_links:
                return None
            return DirectoryTreeNode(path, name, NodeKind.SYMBOLIC_LINK)

        if os.path.isdir(path):
            if self.skip_directory_contents(path):
                return DirectoryTreeNode(path, name, NodeKind.DIRECTORY)
            return self._directory_node(path, name, depth)

        if os.path.isfile(path):
            return DirectoryTreeNode(path, name, NodeKind.FILE)

        if depth == 0:
            raise DirectoryTreeError(f"Unsupported file type at {path}", path=path)
        logger.debug(f"Skipping unsupported file type at {path}")
        return None

    def _directory_node(self, path: str, name: str, depth: int) -> DirectoryTreeNode:
        try:
            entries = sorted(os.listdir(path))
        except OSError as e:
            if depth == 0:
                raise
            logger.debug(f"Cannot list {path}: {e}")
            entries = []

        children = []
        for entry in entries[: self.max_length]:
            child = self._node_from(os.path.join(path, entry), depth + 1)
            if child is not None:
                children.append(child)

        if len(entries) > self.max_length and children:
            skipped = len(entries) - self.max_length
            children.append(DirectoryTreeNode("", f"{skipped} more file(s)", NodeKind.FILE))
        return DirectoryTreeNode(path, name, NodeKind.DIRECTORY, children)
