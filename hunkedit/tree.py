"""
Change-set tree — group changed files into foldable folders.

Trees are immutable tuples of :class:`ChangeTreeNode`. Every operation that
changes expansion returns a new tree, so the flattened list (which the
selection index points into) can always be recomputed from scratch.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence

from .status import FileStatus, StatusColor, highest_severity
from .viewport import Window, scroll_window

logger = logging.getLogger(__name__)


class NodeKind(str, enum.Enum):
    FILE = "file"
    FOLDER = "folder"


@dataclass(frozen=True)
class ChangeTreeNode:
    """A file leaf or a folder in the change-set tree."""
    kind: NodeKind
    name: str
    path: str
    depth: int
    color: StatusColor = StatusColor.DEFAULT
    record: FileStatus | None = None
    expanded: bool = True
    children: tuple["ChangeTreeNode", ...] = field(default_factory=tuple)

    @property
    def is_folder(self) -> bool:
        return self.kind is NodeKind.FOLDER


Tree = tuple[ChangeTreeNode, ...]


class _FolderBuilder:
    """Mutable scratch folder used only while building."""

    def __init__(self, name: str, path: str, depth: int) -> None:
        self.name = name
        self.path = path
        self.depth = depth
        self.entries: dict[str, "_FolderBuilder | ChangeTreeNode"] = {}

    def freeze(self) -> ChangeTreeNode:
        children = _freeze_entries(self.entries)
        return ChangeTreeNode(
            kind=NodeKind.FOLDER,
            name=self.name,
            path=self.path,
            depth=self.depth,
            color=highest_severity(child.color for child in children),
            children=children,
        )


def _freeze_entries(entries: dict) -> Tree:
    return tuple(
        entry.freeze() if isinstance(entry, _FolderBuilder) else entry
        for entry in entries.values()
    )


def build_change_tree(files: Iterable[FileStatus]) -> Tree:
    """Build a tree from a flat list of file statuses.

    Files are ordered by path; every folder starts expanded. Duplicate
    paths are not supported.
    """
    root: dict[str, _FolderBuilder | ChangeTreeNode] = {}

    for record in sorted(files, key=lambda f: f.path):
        parts = record.path.split("/")
        entries = root
        path = ""
        for depth, part in enumerate(parts):
            path = f"{path}/{part}" if path else part
            if depth == len(parts) - 1:
                entries[part] = ChangeTreeNode(
                    kind=NodeKind.FILE,
                    name=part,
                    path=path,
                    depth=depth,
                    color=record.color,
                    record=record,
                )
                break
            folder = entries.get(part)
            if not isinstance(folder, _FolderBuilder):
                folder = _FolderBuilder(part, path, depth)
                entries[part] = folder
            entries = folder.entries

    return _freeze_entries(root)


def flatten_tree(nodes: Sequence[ChangeTreeNode]) -> list[ChangeTreeNode]:
    """Pre-order walk that only descends into expanded folders."""
    result: list[ChangeTreeNode] = []

    def _walk(level: Sequence[ChangeTreeNode]) -> None:
        for node in level:
            result.append(node)
            if node.is_folder and node.expanded:
                _walk(node.children)

    _walk(nodes)
    return result


def toggle_folder(nodes: Sequence[ChangeTreeNode], target_path: str) -> Tree:
    """Return a new tree with the folder at *target_path* toggled."""
    toggled: list[ChangeTreeNode] = []
    for node in nodes:
        if node.is_folder and node.path == target_path:
            node = replace(node, expanded=not node.expanded)
        elif node.is_folder and target_path.startswith(node.path + "/"):
            node = replace(node, children=toggle_folder(node.children, target_path))
        toggled.append(node)
    return tuple(toggled)


def collect_expansion_state(nodes: Sequence[ChangeTreeNode]) -> dict[str, bool]:
    state: dict[str, bool] = {}
    for node in nodes:
        if node.is_folder:
            state[node.path] = node.expanded
            state.update(collect_expansion_state(node.children))
    return state


def preserve_expansion_state(
    old_tree: Sequence[ChangeTreeNode],
    new_tree: Sequence[ChangeTreeNode],
) -> Tree:
    """Carry folder expansion from *old_tree* to same-path folders in *new_tree*.

    Folders without a counterpart in the old tree are expanded.
    """
    state = collect_expansion_state(old_tree)

    def _apply(level: Sequence[ChangeTreeNode]) -> Tree:
        applied: list[ChangeTreeNode] = []
        for node in level:
            if node.is_folder:
                node = replace(
                    node,
                    expanded=state.get(node.path, True),
                    children=_apply(node.children),
                )
            applied.append(node)
        return tuple(applied)

    return _apply(new_tree)


class ChangeTree:
    """The current tree snapshot plus the selection index into its flattening."""

    def __init__(self) -> None:
        self._nodes: Tree = ()
        self._flat: list[ChangeTreeNode] = []
        self.selected_index = 0

    @property
    def nodes(self) -> Tree:
        return self._nodes

    @property
    def flattened(self) -> list[ChangeTreeNode]:
        return self._flat

    @property
    def selected(self) -> ChangeTreeNode | None:
        if not self._flat:
            return None
        return self._flat[self.selected_index]

    def refresh(self, files: Iterable[FileStatus]) -> None:
        """Rebuild from *files*, keeping the user's folds and selected path."""
        previous = self.selected.path if self.selected is not None else None
        self._set_nodes(preserve_expansion_state(self._nodes, build_change_tree(files)))
        if previous is not None:
            for index, node in enumerate(self._flat):
                if node.path == previous:
                    self.selected_index = index
                    break
        self._clamp()
        logger.debug("[Tree] Rebuilt: %d visible nodes", len(self._flat))

    def toggle(self, path: str | None = None) -> None:
        """Toggle the folder at *path* (default: the selected node)."""
        if path is None:
            node = self.selected
            if node is None or not node.is_folder:
                return
            path = node.path
        self._set_nodes(toggle_folder(self._nodes, path))
        self._clamp()

    def move(self, delta: int) -> None:
        self.selected_index += delta
        self._clamp()

    def visible_window(self, max_visible: int) -> Window:
        return scroll_window(len(self._flat), self.selected_index, max_visible)

    def _set_nodes(self, nodes: Tree) -> None:
        self._nodes = nodes
        self._flat = flatten_tree(nodes)

    def _clamp(self) -> None:
        if self.selected_index >= len(self._flat):
            self.selected_index = max(len(self._flat) - 1, 0)
        if self.selected_index < 0:
            self.selected_index = 0
