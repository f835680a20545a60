"""
Module: hierarchy

Purpose: Tree structure for nested layouts (treemap, circle packing, tree).

Each node's value is the exact sum of its children's values. The sum is
computed bottom-up once, when the tree is built.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from vizpipe.exceptions import LayoutError
from vizpipe.transform.aggregate import Aggregate


@dataclass(eq=False)
class HierarchyNode:
    """A node of a value-summed tree, plus the coordinates a layout assigns to it."""

    name: Any
    data: Any = None
    value: float = 0
    children: list["HierarchyNode"] = field(default_factory=list, repr=False)
    parent: "HierarchyNode | None" = field(default=None, repr=False)
    depth: int = 0
    height: int = 0

    # Rectangular layouts (treemap)
    x0: float | None = None
    y0: float | None = None
    x1: float | None = None
    y1: float | None = None

    # Point and circle layouts (tree, pack)
    x: float | None = None
    y: float | None = None
    r: float | None = None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def __iter__(self) -> Iterator["HierarchyNode"]:
        return iter(self.descendants())

    def descendants(self) -> list["HierarchyNode"]:
        """This node and all nodes below it, pre-order."""
        nodes = []
        stack = [self]
        while stack:
            node = stack.pop()
            nodes.append(node)
            stack.extend(reversed(node.children))
        return nodes

    def leaves(self) -> list["HierarchyNode"]:
        return [n for n in self.descendants() if n.is_leaf]

    def links(self) -> list[tuple["HierarchyNode", "HierarchyNode"]]:
        """(parent, child) pairs for every edge below this node."""
        return [(n.parent, n) for n in self.descendants() if n.parent is not None and n is not self]

    def ancestors(self) -> list["HierarchyNode"]:
        """This node, its parent, and so on up to the root."""
        nodes = []
        node: HierarchyNode | None = self
        while node is not None:
            nodes.append(node)
            node = node.parent
        return nodes

    def path_names(self) -> tuple[Any, ...]:
        """Names from just below the root down to this node."""
        return tuple(n.name for n in reversed(self.ancestors()[:-1]))

    def find(self, name: Any) -> "HierarchyNode | None":
        for node in self.descendants():
            if node.name == name:
                return node
        return None

    def each(self, fn: Callable[["HierarchyNode"], None]) -> "HierarchyNode":
        for node in self.descendants():
            fn(node)
        return self

    def sort(self, key: Callable[["HierarchyNode"], Any], *, reverse: bool = False) -> "HierarchyNode":
        """Sort children at every level, in place."""
        for node in self.descendants():
            if node.children:
                node.children.sort(key=key, reverse=reverse)
        return self


# =============================================================================
# CONSTRUCTION
# =============================================================================


def _finalize(root: HierarchyNode) -> HierarchyNode:
    """Assign depth top-down and height and value bottom-up."""
    for node in root.descendants():
        node.depth = 0 if node.parent is None else node.parent.depth + 1

    for node in reversed(root.descendants()):
        if node.children:
            node.value = sum(c.value for c in node.children)
            node.height = 1 + max(c.height for c in node.children)
        else:
            if node.value < 0:
                raise LayoutError(
                    f"Negative value {node.value} at node {node.name!r}",
                    layout="hierarchy",
                    node=str(node.name),
                )
            node.height = 0
    return root


def build_hierarchy(aggregate: Aggregate, name: Any = "root") -> HierarchyNode:
    """
    Build a HierarchyNode tree from a (nested) Aggregate.

    Leaves carry the aggregate counts. Every internal node's value is the sum
    of its children's values.

    Args:
        aggregate: Aggregate from rollup (optionally reordered by top_n)
        name: Name of the root node

    Returns:
        Root HierarchyNode
    """
    root = HierarchyNode(name=name, data=aggregate)

    def attach(parent: HierarchyNode, level: Aggregate) -> None:
        for key, value in level.items():
            child = HierarchyNode(name=key, data=value, parent=parent)
            parent.children.append(child)
            if isinstance(value, dict):
                attach(child, value)
            else:
                child.value = value

    attach(root, aggregate)
    return _finalize(root)


def hierarchy_from_nested(
    data: dict[str, Any],
    *,
    children_key: str = "children",
    value_key: str = "value",
    name_key: str = "name",
) -> HierarchyNode:
    """
    Build a hierarchy from already nested JSON (``{"name", "children": [...]}``).

    Leaves take their value from ``value_key`` (missing means 0). Internal
    nodes ignore any value of their own and sum their children.
    """

    def build(item: dict[str, Any], parent: HierarchyNode | None) -> HierarchyNode:
        node = HierarchyNode(name=item.get(name_key), data=item, parent=parent)
        kids = item.get(children_key) or []
        if kids:
            node.children = [build(k, node) for k in kids]
        else:
            node.value = float(item.get(value_key, 0) or 0)
        return node

    return _finalize(build(data, None))
