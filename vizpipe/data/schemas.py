"""
Module: schemas

Purpose: Pydantic models for resources, record schemas and chart geometry.

All models use Pydantic v2 for validation with strict type hints.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# A single row of a loaded dataset: field name -> value.
Record = dict[str, Any]


# =============================================================================
# ENUMS
# =============================================================================


class ResourceKind(str, Enum):
    """File kinds the loader understands."""

    CSV = "csv"
    JSON = "json"
    TOPOJSON = "topojson"
    TEXT = "text"


class FieldType(str, Enum):
    """Target type of a record field after coercion."""

    STRING = "string"
    FLOAT = "float"
    INT = "int"
    BOOL = "bool"


# =============================================================================
# BASE MODELS
# =============================================================================


class BaseSchema(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


# =============================================================================
# RESOURCES
# =============================================================================


class ResourceSpec(BaseSchema):
    """One resource to fetch: a local path or an http(s) URL plus its kind."""

    location: str
    kind: ResourceKind = ResourceKind.CSV
    name: str | None = None
    # TopoJSON only: which object of the topology to decode
    topology_object: str | None = None

    @property
    def is_remote(self) -> bool:
        return self.location.startswith(("http://", "https://"))

    @property
    def key(self) -> str:
        """Name under which the loaded payload is stored."""
        return self.name or self.location

    def __repr__(self) -> str:
        return f"ResourceSpec(kind={self.kind.value!r}, location={self.location!r})"


# =============================================================================
# RECORD SCHEMAS
# =============================================================================


class FieldSpec(BaseSchema):
    """Declared type of one record field."""

    name: str
    type: FieldType = FieldType.STRING
    # Optional fields become None when empty or not coercible
    optional: bool = False
    # Rename on parse (e.g. "gdpPercap" -> "gdp_per_capita")
    rename: str | None = None

    @property
    def output_name(self) -> str:
        return self.rename or self.name


class RecordSchema(BaseSchema):
    """Field declarations applied to every record of a dataset.

    Fields not declared are passed through unchanged as strings. When
    ``keep_undeclared`` is False they are dropped instead.
    """

    fields: list[FieldSpec] = Field(default_factory=list)
    keep_undeclared: bool = True

    @field_validator("fields")
    @classmethod
    def _unique_names(cls, v: list[FieldSpec]) -> list[FieldSpec]:
        names = [f.name for f in v]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate field names in schema: {names}")
        return v

    @classmethod
    def numeric(cls, *names: str, optional: bool = False) -> "RecordSchema":
        """Shortcut for a schema where the given fields are floats."""
        return cls(fields=[FieldSpec(name=n, type=FieldType.FLOAT, optional=optional) for n in names])

    def field_map(self) -> dict[str, FieldSpec]:
        return {f.name: f for f in self.fields}


# =============================================================================
# CHART GEOMETRY
# =============================================================================


class Margin(BaseSchema):
    """Margins around the plotting area, in pixels."""

    top: float = 50
    right: float = 50
    bottom: float = 100
    left: float = 100


class Dimensions(BaseSchema):
    """Drawing surface size and the plotting area inside its margins."""

    width: float = Field(gt=0)
    height: float = Field(gt=0)
    margin: Margin = Field(default_factory=Margin)

    @model_validator(mode="after")
    def _margins_fit(self) -> "Dimensions":
        if self.margin.left + self.margin.right >= self.width:
            raise ValueError("Horizontal margins exceed the drawing width")
        if self.margin.top + self.margin.bottom >= self.height:
            raise ValueError("Vertical margins exceed the drawing height")
        return self

    @property
    def inner_width(self) -> float:
        return self.width - self.margin.left - self.margin.right

    @property
    def inner_height(self) -> float:
        return self.height - self.margin.top - self.margin.bottom

    @property
    def x_range(self) -> tuple[float, float]:
        return (self.margin.left, self.width - self.margin.right)

    @property
    def y_range(self) -> tuple[float, float]:
        """Screen y grows downward, so the range runs bottom to top."""
        return (self.height - self.margin.bottom, self.margin.top)
