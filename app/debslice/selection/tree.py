"""Compressed path tree for slice selections.

The tree stores absolute paths as a radix trie keyed by characters. Edges
carry the shared substring and are split at the longest common prefix
whenever an insertion diverges in the middle of an edge. Nodes live in an
arena owned by the tree and refer to each other by index, so splitting an
edge only reassigns an index.

Directories end with ``/``. Inserting ``/a/b/c`` creates the implicit
directories ``/``, ``/a/`` and ``/a/b/`` on the way down. A segment that
contains ``*`` or ``?`` stops the descent: the rest of the path is stored
as a glob entry on the directory reached so far and is matched against
the remaining suffix of looked-up paths.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from debslice.utils.paths import (
    PathError,
    clean_path,
    glob_path,
    is_glob,
    longest_common_prefix,
)

logger = logging.getLogger(__name__)

V = TypeVar("V")
A = TypeVar("A")

ROOT_INDEX = 0


class PathConflictError(PathError):
    """Raised when a path is inserted as a file and a directory."""


class NodeKind(str, Enum):
    """Role of a node in the tree.

    Attributes:
        BRIDGE: Internal split point with no path of its own.
        FILE: A file path.
        DIRECTORY: A directory path (ends with ``/``).
        GLOB: A glob entry, reachable only through pattern matching.
    """

    BRIDGE = "bridge"
    FILE = "file"
    DIRECTORY = "directory"
    GLOB = "glob"


@dataclass(slots=True)
class _Edge:
    label: str
    destination: int


@dataclass(slots=True, eq=False)
class PathNode(Generic[V]):
    """A node of the path tree.

    Attributes:
        index: Position of the node in the tree arena.
        path: Absolute path of the node (empty for bridges).
        kind: Role of the node.
        implicit: True for directories that only exist because a deeper
            path required them.
        value: Caller data attached through the tree hooks.
        parent: Arena index of the enclosing directory, None for the root,
            bridges and detached nodes.
        pattern: For glob nodes, the pattern relative to the parent directory.
    """

    index: int
    path: str = ""
    kind: NodeKind = NodeKind.BRIDGE
    implicit: bool = False
    value: V | None = None
    parent: int | None = None
    pattern: str = ""
    children: dict[str, _Edge] = field(default_factory=dict, repr=False)
    globs: list[int] = field(default_factory=list, repr=False)

    @property
    def is_dir(self) -> bool:
        """True for directory nodes, explicit or implicit."""
        return self.kind == NodeKind.DIRECTORY

    @property
    def is_glob(self) -> bool:
        """True for glob nodes, which are only reached by pattern matching."""
        return self.kind == NodeKind.GLOB


InitHook = Callable[[PathNode[Any]], None]
UpdateHook = Callable[[PathNode[Any], Any], None]


def replace_value(node: PathNode[Any], arg: Any) -> None:
    """Update hook that stores the insert argument as the node value."""
    node.value = arg


class PathTree(Generic[V, A]):
    """Radix tree of selected paths with glob support.

    Hooks are bound at construction and never replaced afterwards:

    - ``init_value(node)`` runs once when a node first gets a path.
    - ``update(node, arg)`` runs when an insertion terminates at the node.
    - ``update_implicit(node, arg)`` runs on every directory an insertion
      passes through on its way to a deeper path.

    Args:
        init_value: Hook initializing the value of new nodes.
        update: Hook for explicit insertions.
        update_implicit: Hook for directories traversed by an insertion.
    """

    def __init__(
        self,
        *,
        init_value: InitHook | None = None,
        update: UpdateHook | None = None,
        update_implicit: UpdateHook | None = None,
    ) -> None:
        self._init_value = init_value
        self._update = update
        self._update_implicit = update_implicit
        self._nodes: list[PathNode[V]] = []

        root = self._new_node()
        root.path = "/"
        root.kind = NodeKind.DIRECTORY
        root.implicit = True
        if self._init_value is not None:
            self._init_value(root)

    @property
    def root(self) -> PathNode[V]:
        """The root directory node."""
        return self._nodes[ROOT_INDEX]

    def insert(self, path: str, arg: A | None = None) -> PathNode[V]:
        """Insert a path and return its node.

        A trailing ``/`` inserts a directory, anything else a file. Paths
        with a wildcard segment are stored as glob entries; inserting the
        same glob twice returns the existing entry.

        Args:
            path: Path to insert.
            arg: Argument handed to the update hooks.

        Returns:
            The node for the path (a glob node for wildcard paths).

        Raises:
            PathError: If the path is empty.
            PathBackreferenceError: If the path contains ``..``.
            PathConflictError: If the path was inserted with the other kind.
        """
        if not path:
            msg = "path is empty"
            raise PathError(msg)
        key = clean_path(path)
        want_dir = key == "" or key.endswith("/")
        parts = key.rstrip("/").split("/") if key else []

        current = ROOT_INDEX
        for i, part in enumerate(parts):
            self._call(self._update_implicit, self._nodes[current], arg)

            if is_glob(part):
                pattern = "/".join(parts[i:]) + ("/" if want_dir else "")
                return self._add_glob(current, pattern, arg)

            last = i == len(parts) - 1
            if last and not want_dir:
                return self._insert_file(current, part, arg)
            current = self._insert_dir(current, part, arg, explicit=last)

        if not parts:
            self._mark_explicit(self.root, arg)
        return self._nodes[current]

    def find(self, path: str) -> PathNode[V] | None:
        """Look up the node selecting a path.

        Directory lookups (trailing ``/``) only match directories. Bare
        lookups match files and explicitly inserted directories. When
        there is no exact match, glob entries are tried, deepest first.

        Args:
            path: Path to look up.

        Returns:
            The matching node, or None.
        """
        try:
            key = clean_path(path)
        except PathError:
            return None

        if key == "" or key.endswith("/"):
            node = self._node_at(key)
            if node is not None and node.kind == NodeKind.DIRECTORY:
                return node
        else:
            node = self._node_at(key)
            if node is not None and node.kind == NodeKind.FILE:
                return node
            node = self._node_at(key + "/")
            if node is not None and node.kind == NodeKind.DIRECTORY and not node.implicit:
                return node

        return self._match_glob(key)

    def contains(self, path: str) -> bool:
        """Check whether a path is selected."""
        return self.find(path) is not None

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.contains(path)

    def parent(self, node: PathNode[V]) -> PathNode[V] | None:
        """Return the directory enclosing a node, or None for the root."""
        if node.parent is None:
            return None
        return self._nodes[node.parent]

    def iter_nodes(self) -> Iterator[PathNode[V]]:
        """Yield every file, directory and glob node in path order."""
        nodes = [n for n in self._nodes if n.kind != NodeKind.BRIDGE]
        yield from sorted(nodes, key=lambda n: n.path)

    # === Private helpers ===

    def _new_node(self) -> PathNode[V]:
        node: PathNode[V] = PathNode(index=len(self._nodes))
        self._nodes.append(node)
        return node

    def _call(self, hook: UpdateHook | None, node: PathNode[V], arg: A | None) -> None:
        if hook is not None:
            hook(node, arg)

    def _mark_explicit(self, node: PathNode[V], arg: A | None) -> None:
        node.implicit = False
        self._call(self._update, node, arg)

    def _insert_dir(self, current: int, part: str, arg: A | None, *, explicit: bool) -> int:
        """Ensure the directory ``part/`` exists below a directory node."""
        holder = self._nodes[current]
        clash = self._locate(current, part)
        if clash is not None and clash.kind == NodeKind.FILE:
            msg = f"cannot insert directory {holder.path}{part}/: path is a file"
            raise PathConflictError(msg)

        node = self._nodes[self._descend(current, part + "/")]
        if node.kind == NodeKind.BRIDGE:
            node.kind = NodeKind.DIRECTORY
            node.path = f"{holder.path}{part}/"
            node.parent = current
            node.implicit = True
            if self._init_value is not None:
                self._init_value(node)
            logger.debug("Created directory node %s", node.path)
        if explicit:
            self._mark_explicit(node, arg)
        return node.index

    def _insert_file(self, current: int, part: str, arg: A | None) -> PathNode[V]:
        holder = self._nodes[current]
        clash = self._locate(current, part + "/")
        if clash is not None and clash.kind == NodeKind.DIRECTORY:
            msg = f"cannot insert file {holder.path}{part}: path is a directory"
            raise PathConflictError(msg)

        node = self._nodes[self._descend(current, part)]
        if node.kind == NodeKind.BRIDGE:
            node.kind = NodeKind.FILE
            node.path = holder.path + part
            node.parent = current
            if self._init_value is not None:
                self._init_value(node)
        self._call(self._update, node, arg)
        return node

    def _add_glob(self, current: int, pattern: str, arg: A | None) -> PathNode[V]:
        holder = self._nodes[current]
        for index in holder.globs:
            existing = self._nodes[index]
            if existing.pattern == pattern:
                self._call(self._update, existing, arg)
                return existing

        node = self._new_node()
        node.kind = NodeKind.GLOB
        node.path = holder.path + pattern
        node.pattern = pattern
        node.parent = current
        # Insertion order decides which glob wins a lookup.
        holder.globs.append(node.index)
        if self._init_value is not None:
            self._init_value(node)
        self._call(self._update, node, arg)
        return node

    def _descend(self, start: int, piece: str) -> int:
        """Walk ``piece`` below a node, creating and splitting edges as needed."""
        current = start
        rest = piece
        while rest:
            node = self._nodes[current]
            edge = node.children.get(rest[0])
            if edge is None:
                new = self._new_node()
                node.children[rest[0]] = _Edge(rest, new.index)
                return new.index

            prefix, rest_suffix, edge_suffix = longest_common_prefix(rest, edge.label)
            if not edge_suffix:
                current = edge.destination
                rest = rest_suffix
                continue

            bridge = self._new_node()
            bridge.children[edge_suffix[0]] = _Edge(edge_suffix, edge.destination)
            node.children[rest[0]] = _Edge(prefix, bridge.index)
            current = bridge.index
            rest = rest_suffix
        return current

    def _locate(self, start: int, piece: str) -> PathNode[V] | None:
        """Return the node exactly at ``piece`` below a node, without mutating."""
        current = start
        rest = piece
        while rest:
            edge = self._nodes[current].children.get(rest[0])
            if edge is None or not rest.startswith(edge.label):
                return None
            rest = rest[len(edge.label) :]
            current = edge.destination
        return self._nodes[current]

    def _node_at(self, key: str) -> PathNode[V] | None:
        return self._locate(ROOT_INDEX, key)

    def _match_glob(self, key: str) -> PathNode[V] | None:
        candidates: list[tuple[int, int]] = []
        current = ROOT_INDEX
        offset = 0
        while True:
            node = self._nodes[current]
            if node.globs:
                candidates.append((current, offset))
            if offset == len(key):
                break
            edge = node.children.get(key[offset])
            if edge is None or not key.startswith(edge.label, offset):
                break
            offset += len(edge.label)
            current = edge.destination

        for index, start in reversed(candidates):
            suffix = key[start:]
            for glob_index in self._nodes[index].globs:
                glob = self._nodes[glob_index]
                if glob_path(glob.pattern, suffix):
                    return glob
        return None
