"""
Renderer stage: shapes, keyed reconciliation, transitions and SVG output.
"""

from vizpipe.render.shapes import RenderTarget, Shape, ShapeGroup
from vizpipe.render.transitions import TransitionScheduler, ease_cubic_in_out, ease_linear, interpolate
from vizpipe.render.reconcile import JoinResult, Reconciliation, ReconciliationAction, join, reconcile
from vizpipe.render.svg import render_html, render_svg, save_html

__all__ = [
    "JoinResult",
    "Reconciliation",
    "ReconciliationAction",
    "RenderTarget",
    "Shape",
    "ShapeGroup",
    "TransitionScheduler",
    "ease_cubic_in_out",
    "ease_linear",
    "interpolate",
    "join",
    "reconcile",
    "render_html",
    "render_svg",
    "save_html",
]
