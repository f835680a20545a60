"""
Module: layouts

Purpose: Positional layouts for hierarchies and part-of-whole charts.

Key Functions:
- treemap: squarified rectangles (x0, y0, x1, y1) with padding, via squarify
- pack: nested circles (x, y, r) by front-chain sibling packing
- tree: layered node-link positions (x, y)
- pie / arc_path / arc_centroid: angular partition of values

Architecture Notes:
- Hierarchy layouts write their output onto the HierarchyNode in place
- Node values must already be summed (see transform.hierarchy)
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Sequence

import squarify

from vizpipe.encode.projections import format_coordinate
from vizpipe.exceptions import LayoutError
from vizpipe.transform.hierarchy import HierarchyNode

TAU = 2 * math.pi


# =============================================================================
# TREEMAP
# =============================================================================


def _squarify(parent: HierarchyNode, x0: float, y0: float, x1: float, y1: float) -> None:
    """Tile the rectangle with parent's children, largest first, keeping rows near square."""
    dx, dy = x1 - x0, y1 - y0
    ordered = sorted((c for c in parent.children if c.value > 0), key=lambda c: c.value, reverse=True)
    for node in parent.children:
        node.x0, node.y0, node.x1, node.y1 = x0, y0, x0, y0
    if dx <= 0 or dy <= 0 or not ordered:
        return

    values = [node.value for node in ordered]
    rects = squarify.squarify(squarify.normalize_sizes(values, dx, dy), x0, y0, dx, dy)
    for node, rect in zip(ordered, rects):
        node.x0, node.y0 = rect["x"], rect["y"]
        node.x1, node.y1 = rect["x"] + rect["dx"], rect["y"] + rect["dy"]


def treemap(
    root: HierarchyNode,
    size: tuple[float, float],
    *,
    padding: float = 0.0,
    padding_top: float | None = None,
) -> HierarchyNode:
    """
    Squarified treemap layout.

    Args:
        root: Summed hierarchy
        size: (width, height) of the layout area
        padding: Gap between siblings and around each parent's children
        padding_top: Separate top padding for parents (room for a label)

    Returns:
        The root, with x0/y0/x1/y1 set on every node
    """
    width, height = size
    if width <= 0 or height <= 0:
        raise LayoutError(f"Treemap size must be positive, got {size}", layout="treemap")
    top = padding if padding_top is None else padding_top

    root.x0, root.y0, root.x1, root.y1 = 0.0, 0.0, float(width), float(height)

    def position(node: HierarchyNode, inset: float) -> None:
        x0, y0 = node.x0 + inset, node.y0 + inset
        x1, y1 = node.x1 - inset, node.y1 - inset
        if x1 < x0:
            x0 = x1 = (x0 + x1) / 2
        if y1 < y0:
            y0 = y1 = (y0 + y1) / 2
        node.x0, node.y0, node.x1, node.y1 = x0, y0, x1, y1

        if node.children:
            half = padding / 2
            cx0, cy0 = x0 + padding - half, y0 + top - half
            cx1, cy1 = x1 - (padding - half), y1 - (padding - half)
            if cx1 < cx0:
                cx0 = cx1 = (cx0 + cx1) / 2
            if cy1 < cy0:
                cy0 = cy1 = (cy0 + cy1) / 2
            _squarify(node, cx0, cy0, cx1, cy1)
            for child in node.children:
                position(child, half)

    position(root, 0.0)
    return root


# =============================================================================
# CIRCLE PACKING
# =============================================================================


@dataclass
class _Circle:
    x: float
    y: float
    r: float


def _encloses_not(a: Any, b: Any) -> bool:
    dr = a.r - b.r
    dx, dy = b.x - a.x, b.y - a.y
    return dr < 0 or dr * dr < dx * dx + dy * dy


def _encloses_weak(a: Any, b: Any) -> bool:
    dr = a.r - b.r + max(a.r, b.r, 1) * 1e-9
    dx, dy = b.x - a.x, b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


def _encloses_weak_all(a: Any, basis: list[Any]) -> bool:
    return all(_encloses_weak(a, b) for b in basis)


def _enclose_basis2(a: Any, b: Any) -> _Circle:
    x21, y21, r21 = b.x - a.x, b.y - a.y, b.r - a.r
    length = math.hypot(x21, y21)
    if length == 0:
        return _Circle(a.x, a.y, max(a.r, b.r))
    return _Circle(
        (a.x + b.x + x21 / length * r21) / 2,
        (a.y + b.y + y21 / length * r21) / 2,
        (length + a.r + b.r) / 2,
    )


def _enclose_basis3(a: Any, b: Any, c: Any) -> _Circle:
    x1, y1, r1 = a.x, a.y, a.r
    x2, y2, r2 = b.x, b.y, b.r
    x3, y3, r3 = c.x, c.y, c.r
    a2, a3 = x1 - x2, x1 - x3
    b2, b3 = y1 - y2, y1 - y3
    c2, c3 = r2 - r1, r3 - r1
    d1 = x1 * x1 + y1 * y1 - r1 * r1
    d2 = d1 - x2 * x2 - y2 * y2 + r2 * r2
    d3 = d1 - x3 * x3 - y3 * y3 + r3 * r3
    ab = a3 * b2 - a2 * b3
    if ab == 0:
        return _Circle(x1, y1, -1.0)
    xa = (b2 * d3 - b3 * d2) / (ab * 2) - x1
    xb = (b3 * c2 - b2 * c3) / ab
    ya = (a3 * d2 - a2 * d3) / (ab * 2) - y1
    yb = (a2 * c3 - a3 * c2) / ab
    qa = xb * xb + yb * yb - 1
    qb = 2 * (r1 + xa * xb + ya * yb)
    qc = xa * xa + ya * ya - r1 * r1
    r = -((qb + math.sqrt(max(0.0, qb * qb - 4 * qa * qc))) / (2 * qa) if abs(qa) > 1e-6 else qc / qb)
    return _Circle(x1 + xa + xb * r, y1 + ya + yb * r, r)


def _enclose_basis(basis: list[Any]) -> _Circle:
    if len(basis) == 1:
        return _Circle(basis[0].x, basis[0].y, basis[0].r)
    if len(basis) == 2:
        return _enclose_basis2(basis[0], basis[1])
    return _enclose_basis3(basis[0], basis[1], basis[2])


def _extend_basis(basis: list[Any], p: Any) -> list[Any]:
    if _encloses_weak_all(p, basis):
        return [p]
    for b in basis:
        if _encloses_not(p, b) and _encloses_weak_all(_enclose_basis2(b, p), basis):
            return [b, p]
    for i in range(len(basis) - 1):
        for j in range(i + 1, len(basis)):
            bi, bj = basis[i], basis[j]
            if (
                _encloses_not(_enclose_basis2(bi, bj), p)
                and _encloses_not(_enclose_basis2(bi, p), bj)
                and _encloses_not(_enclose_basis2(bj, p), bi)
                and _encloses_weak_all(_enclose_basis3(bi, bj, p), basis)
            ):
                return [bi, bj, p]
    raise LayoutError("No enclosing basis found", layout="pack")


def enclose(circles: Sequence[Any]) -> _Circle | None:
    """Smallest circle enclosing all given circles (objects with x, y, r)."""
    basis: list[Any] = []
    e: _Circle | None = None
    i = 0
    while i < len(circles):
        p = circles[i]
        if e is not None and _encloses_weak(e, p):
            i += 1
        else:
            basis = _extend_basis(basis, p)
            e = _enclose_basis(basis)
            i = 0
    return e


class _ChainNode:
    __slots__ = ("circle", "next", "previous")

    def __init__(self, circle: Any):
        self.circle = circle
        self.next: _ChainNode = self
        self.previous: _ChainNode = self


def _place(b: Any, a: Any, c: Any) -> None:
    """Position c tangent to both a and b."""
    dx, dy = b.x - a.x, b.y - a.y
    d2 = dx * dx + dy * dy
    if d2:
        a2 = (a.r + c.r) ** 2
        b2 = (b.r + c.r) ** 2
        if a2 > b2:
            x = (d2 + b2 - a2) / (2 * d2)
            y = math.sqrt(max(0.0, b2 / d2 - x * x))
            c.x = b.x - x * dx - y * dy
            c.y = b.y - x * dy + y * dx
        else:
            x = (d2 + a2 - b2) / (2 * d2)
            y = math.sqrt(max(0.0, a2 / d2 - x * x))
            c.x = a.x + x * dx - y * dy
            c.y = a.y + x * dy + y * dx
    else:
        c.x = a.x + c.r
        c.y = a.y


def _intersects(a: Any, b: Any) -> bool:
    dr = a.r + b.r - 1e-6
    dx, dy = b.x - a.x, b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


def _score(node: _ChainNode) -> float:
    a, b = node.circle, node.next.circle
    ab = a.r + b.r
    if not ab:
        return 0.0
    dx = (a.x * b.r + b.x * a.r) / ab
    dy = (a.y * b.r + b.y * a.r) / ab
    return dx * dx + dy * dy


def pack_siblings(circles: Sequence[Any]) -> float:
    """
    Place circles (objects with r) tangent to each other around the origin.

    Sets x and y on every circle, centred on their enclosing circle, and
    returns the enclosing radius.
    """
    n = len(circles)
    if n == 0:
        return 0.0

    a = circles[0]
    a.x, a.y = 0.0, 0.0
    if n == 1:
        return a.r

    b = circles[1]
    a.x, b.x, b.y = -b.r, a.r, 0.0
    if n == 2:
        return a.r + b.r

    _place(b, a, circles[2])

    na, nb, nc = _ChainNode(a), _ChainNode(b), _ChainNode(circles[2])
    na.next = nc.previous = nb
    nb.next = na.previous = nc
    nc.next = nb.previous = na

    i = 3
    while i < n:
        c = circles[i]
        _place(na.circle, nb.circle, c)
        node = _ChainNode(c)

        # Walk the front chain both ways looking for an overlap
        j, k = nb.next, na.previous
        sj, sk = nb.circle.r, na.circle.r
        retry = False
        while True:
            if sj <= sk:
                if _intersects(j.circle, node.circle):
                    nb = j
                    na.next, nb.previous = nb, na
                    retry = True
                    break
                sj += j.circle.r
                j = j.next
            else:
                if _intersects(k.circle, node.circle):
                    na = k
                    na.next, nb.previous = nb, na
                    retry = True
                    break
                sk += k.circle.r
                k = k.previous
            if j is k.next:
                break
        if retry:
            continue

        node.previous, node.next = na, nb
        na.next = nb.previous = node
        nb = node

        # The next pair to try is the one closest to the origin
        best_score = _score(na)
        cursor = node.next
        while cursor is not nb:
            s = _score(cursor)
            if s < best_score:
                na, best_score = cursor, s
            cursor = cursor.next
        nb = na.next
        i += 1

    chain = [nb.circle]
    cursor = nb.next
    while cursor is not nb:
        chain.append(cursor.circle)
        cursor = cursor.next
    e = enclose(chain)
    for circle in circles:
        circle.x -= e.x
        circle.y -= e.y
    return e.r


def _post_order(root: HierarchyNode) -> list[HierarchyNode]:
    return list(reversed(root.descendants()))


def pack(
    root: HierarchyNode,
    size: tuple[float, float],
    *,
    padding: float = 0.0,
    radius: Callable[[HierarchyNode], float] | None = None,
) -> HierarchyNode:
    """
    Circle-packing layout.

    Leaves get radius sqrt(value) (or ``radius(node)``), siblings are packed
    tangent to each other, each parent encloses its children, and the whole
    layout is scaled to fit ``size``.

    Returns:
        The root, with x/y/r set on every node
    """
    width, height = size
    if width <= 0 or height <= 0:
        raise LayoutError(f"Pack size must be positive, got {size}", layout="pack")
    leaf_radius = radius or (lambda node: math.sqrt(node.value))

    for node in _post_order(root):
        if node.is_leaf:
            node.r = max(0.0, float(leaf_radius(node)))
            node.x = node.y = 0.0

    def pack_children(pad: float) -> None:
        for node in _post_order(root):
            if not node.children:
                continue
            for child in node.children:
                child.r += pad
            e = pack_siblings(node.children)
            for child in node.children:
                child.r -= pad
            node.r = e + pad

    # First pass sizes the layout; second pass adds padding in layout units
    pack_children(0.0)
    if padding and root.r:
        pack_children(padding * root.r / min(width, height))

    k = min(width, height) / (2 * root.r) if root.r else 0.0
    root.x, root.y = width / 2, height / 2
    for node in root.descendants():
        node.r *= k
        if node.parent is not None:
            node.x = node.parent.x + k * node.x
            node.y = node.parent.y + k * node.y
    return root


# =============================================================================
# TREE
# =============================================================================


def tree(root: HierarchyNode, size: tuple[float, float]) -> HierarchyNode:
    """
    Layered node-link layout.

    Leaves are spread evenly across the width in tree order, each parent is
    centred over its children, and y grows with depth.

    Returns:
        The root, with x/y set on every node
    """
    width, height = size
    leaves = root.leaves()
    spacing = width / len(leaves)
    for i, leaf in enumerate(leaves):
        leaf.x = (i + 0.5) * spacing

    for node in _post_order(root):
        if node.children:
            node.x = (node.children[0].x + node.children[-1].x) / 2

    levels = root.height
    for node in root.descendants():
        node.y = (node.depth / levels * height) if levels else 0.0
    return root


# =============================================================================
# PIE
# =============================================================================


@dataclass(frozen=True)
class Arc:
    """Angular extent of one datum. Angles in radians, 0 at 12 o'clock, clockwise."""

    data: Any
    value: float
    index: int
    start_angle: float
    end_angle: float

    @property
    def span(self) -> float:
        return self.end_angle - self.start_angle


def pie(
    data: Sequence[Any],
    value: Callable[[Any], float] = float,
    *,
    start_angle: float = 0.0,
    end_angle: float = TAU,
    sort_values: bool = True,
) -> list[Arc]:
    """
    Partition an angle range among data in proportion to their values.

    Angles are assigned largest value first when ``sort_values`` is set (ties
    in input order). The returned arcs are always in input order.
    """
    values = [float(value(d)) for d in data]
    total = sum(v for v in values if v > 0)
    k = (end_angle - start_angle) / total if total else 0.0

    order = list(range(len(values)))
    if sort_values:
        order.sort(key=lambda i: values[i], reverse=True)

    arcs: list[Arc | None] = [None] * len(values)
    angle = start_angle
    for i in order:
        span = values[i] * k if values[i] > 0 else 0.0
        arcs[i] = Arc(data=data[i], value=values[i], index=i, start_angle=angle, end_angle=angle + span)
        angle += span
    return [a for a in arcs if a is not None]


def _polar(r: float, angle: float) -> tuple[float, float]:
    return r * math.sin(angle), -r * math.cos(angle)


def arc_path(arc: Arc, inner_radius: float, outer_radius: float) -> str:
    """SVG path data for an annular sector centred on the origin."""
    f = format_coordinate
    r0, r1 = inner_radius, outer_radius
    a0, a1 = arc.start_angle, arc.end_angle
    if arc.span <= 0 or r1 <= 0:
        return ""

    if arc.span >= TAU - 1e-9:
        d = (
            f"M0,{f(-r1)}A{f(r1)},{f(r1)},0,1,1,0,{f(r1)}"
            f"A{f(r1)},{f(r1)},0,1,1,0,{f(-r1)}"
        )
        if r0 > 0:
            d += (
                f"M0,{f(-r0)}A{f(r0)},{f(r0)},0,1,0,0,{f(r0)}"
                f"A{f(r0)},{f(r0)},0,1,0,0,{f(-r0)}"
            )
        return d + "Z"

    large = 1 if arc.span > math.pi else 0
    sx, sy = _polar(r1, a0)
    ex, ey = _polar(r1, a1)
    d = f"M{f(sx)},{f(sy)}A{f(r1)},{f(r1)},0,{large},1,{f(ex)},{f(ey)}"
    if r0 > 0:
        ix, iy = _polar(r0, a1)
        jx, jy = _polar(r0, a0)
        d += f"L{f(ix)},{f(iy)}A{f(r0)},{f(r0)},0,{large},0,{f(jx)},{f(jy)}"
    else:
        d += "L0,0"
    return d + "Z"


def arc_centroid(arc: Arc, inner_radius: float, outer_radius: float) -> tuple[float, float]:
    """Midpoint of the sector, halfway between the radii and the angles."""
    r = (inner_radius + outer_radius) / 2
    a = (arc.start_angle + arc.end_angle) / 2 - math.pi / 2
    return (math.cos(a) * r, math.sin(a) * r)
