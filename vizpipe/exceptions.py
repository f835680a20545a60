"""
Module: exceptions

Purpose: Domain-specific exception hierarchy for the charting pipeline.

All exceptions include context information. Stage failures propagate; nothing
is rendered from partial data.
"""

from typing import Any


class VizPipeError(Exception):
    """Base exception for all vizpipe errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


class ResourceLoadError(VizPipeError):
    """Raised when a resource cannot be fetched or parsed."""

    def __init__(
        self,
        message: str,
        *,
        location: str | None = None,
        kind: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if location is not None:
            ctx["location"] = location
        if kind is not None:
            ctx["kind"] = kind
        super().__init__(message, context=ctx)
        self.location = location
        self.kind = kind


class RecordCoercionError(VizPipeError):
    """Raised when a required field of a record cannot be coerced to its type."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        row_index: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if field is not None:
            ctx["field"] = field
        if value is not None:
            ctx["value"] = value
        if row_index is not None:
            ctx["row_index"] = row_index
        super().__init__(message, context=ctx)
        self.field = field
        self.value = value
        self.row_index = row_index


class ScaleConfigurationError(VizPipeError):
    """Raised when a scale is constructed with an unusable domain or range."""

    def __init__(
        self,
        message: str,
        *,
        scale_type: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["scale_type"] = scale_type
        super().__init__(message, context=ctx)
        self.scale_type = scale_type


class ProjectionError(VizPipeError):
    """Raised when a projection cannot be built."""

    def __init__(
        self,
        message: str,
        *,
        family: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if family is not None:
            ctx["family"] = family
        super().__init__(message, context=ctx)
        self.family = family


class LayoutError(VizPipeError):
    """Raised when a hierarchical layout cannot be computed."""

    def __init__(
        self,
        message: str,
        *,
        layout: str,
        node: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["layout"] = layout
        if node is not None:
            ctx["node"] = node
        super().__init__(message, context=ctx)
        self.layout = layout
        self.node = node


class PipelineError(VizPipeError):
    """Raised when a pipeline stage fails. The original error is chained."""

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        chart_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["stage"] = stage
        if chart_id is not None:
            ctx["chart_id"] = chart_id
        super().__init__(message, context=ctx)
        self.stage = stage
        self.chart_id = chart_id
