"""
vizpipe: declarative data-visualization pipeline.

Loader -> Transformer -> Encoder -> Renderer, with keyed reconciliation,
scheduled transitions and event-driven re-rendering.
"""

__version__ = "0.1.0"
