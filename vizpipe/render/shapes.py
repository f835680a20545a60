"""
Module: shapes

Purpose: In-memory drawing surface that charts render into.

Key Classes:
- Shape: one drawable element bound to a datum
- ShapeGroup: ordered, keyed collection of shapes (an SVG <g>)
- RenderTarget: named surface holding ordered groups

Architecture Notes:
- Shapes are mutable; reconciliation and transitions update them in place
- The target is the only shared mutable state of a chart
"""

from dataclasses import dataclass, field
from typing import Any, Hashable, Iterator


@dataclass(eq=False)
class Shape:
    """A drawable element: an SVG tag name plus attributes and style."""

    kind: str
    key: Hashable
    datum: Any = None
    attrs: dict[str, Any] = field(default_factory=dict)
    style: dict[str, Any] = field(default_factory=dict)
    text: str | None = None
    # Set while the shape transitions out before removal
    exiting: bool = False

    def set(self, **attrs: Any) -> "Shape":
        """Set attributes; underscores in names become dashes."""
        for name, value in attrs.items():
            self.attrs[name.replace("_", "-")] = value
        return self

    def __repr__(self) -> str:
        return f"Shape(kind={self.kind!r}, key={self.key!r})"


class ShapeGroup:
    """Shapes of one data join, kept in document order and indexed by key."""

    def __init__(self, name: str, attrs: dict[str, Any] | None = None):
        self.name = name
        self.attrs: dict[str, Any] = dict(attrs or {})
        self._shapes: dict[Hashable, Shape] = {}

    def __iter__(self) -> Iterator[Shape]:
        return iter(list(self._shapes.values()))

    def __len__(self) -> int:
        return len(self._shapes)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._shapes

    def get(self, key: Hashable) -> Shape | None:
        return self._shapes.get(key)

    def keys(self, *, include_exiting: bool = True) -> list[Hashable]:
        return [k for k, s in self._shapes.items() if include_exiting or not s.exiting]

    def add(self, shape: Shape) -> Shape:
        self._shapes[shape.key] = shape
        return shape

    def remove(self, key: Hashable) -> Shape | None:
        return self._shapes.pop(key, None)

    def clear(self) -> None:
        self._shapes.clear()

    def reorder(self, keys: list[Hashable]) -> None:
        """Put the given keys first, in order; any other shapes keep their relative order after them."""
        ordered = {k: self._shapes[k] for k in keys if k in self._shapes}
        for k, shape in self._shapes.items():
            ordered.setdefault(k, shape)
        self._shapes = ordered

    def replace(self, shapes: list[Shape]) -> None:
        """Swap in a freshly built set of shapes (for static decorations such as axes)."""
        self._shapes = {s.key: s for s in shapes}

    def __repr__(self) -> str:
        return f"ShapeGroup(name={self.name!r}, shapes={len(self._shapes)})"


class RenderTarget:
    """
    A drawing surface of a given size made of named groups.

    Usage:
        target = RenderTarget("scatter", 960, 600)
        points = target.group("points", transform="translate(0,0)")
    """

    def __init__(self, name: str, width: float, height: float):
        self.name = name
        self.width = width
        self.height = height
        self._groups: dict[str, ShapeGroup] = {}

    def group(self, name: str, **attrs: Any) -> ShapeGroup:
        """Get a group, creating it (appended last) on first use."""
        group = self._groups.get(name)
        if group is None:
            group = ShapeGroup(name)
            self._groups[name] = group
        for attr, value in attrs.items():
            group.attrs[attr.replace("_", "-")] = value
        return group

    def has_group(self, name: str) -> bool:
        return name in self._groups

    def remove_group(self, name: str) -> None:
        self._groups.pop(name, None)

    @property
    def groups(self) -> list[ShapeGroup]:
        return list(self._groups.values())

    def shapes(self) -> Iterator[Shape]:
        for group in self._groups.values():
            yield from group

    def find(self, key: Hashable) -> Shape | None:
        """First shape with the key, searching groups in order."""
        for group in self._groups.values():
            shape = group.get(key)
            if shape is not None:
                return shape
        return None

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height

    def __repr__(self) -> str:
        return f"RenderTarget(name={self.name!r}, size={self.width}x{self.height}, groups={len(self._groups)})"
