"""
Module: records

Purpose: Record-level transforms: type coercion, filtering and extents.

CSV values arrive as strings. Coercion is an explicit, required parsing step
so that arithmetic never runs on text.
"""

import logging
import math
from typing import Any, Callable, Iterable

from vizpipe.data.schemas import FieldSpec, FieldType, Record, RecordSchema
from vizpipe.exceptions import RecordCoercionError

logger = logging.getLogger(__name__)

Accessor = Callable[[Record], Any]

_TRUE = {"true", "1", "yes", "y"}
_FALSE = {"false", "0", "no", "n"}


def accessor(key: str | Accessor) -> Accessor:
    """Turn a field name into an accessor; callables pass through."""
    if callable(key):
        return key
    return lambda record: record[key]


def _coerce_value(value: Any, spec: FieldSpec) -> Any:
    if spec.type == FieldType.STRING:
        return None if value is None else str(value)
    if value is None or (isinstance(value, str) and value.strip() == ""):
        raise ValueError("empty value")
    if spec.type == FieldType.FLOAT:
        result = float(value)
        if math.isnan(result):
            raise ValueError("NaN")
        return result
    if spec.type == FieldType.INT:
        as_float = float(value)
        if not as_float.is_integer():
            raise ValueError(f"{value!r} is not an integer")
        return int(as_float)
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{value!r} is not a boolean")


def coerce_record(record: Record, schema: RecordSchema, *, row_index: int | None = None) -> Record:
    """
    Coerce one record according to a schema.

    Args:
        record: Raw record (values usually strings)
        schema: Field declarations
        row_index: Position in the dataset, for error context

    Returns:
        New record with typed values

    Raises:
        RecordCoercionError: If a required field is missing or not coercible
    """
    specs = schema.field_map()
    out: Record = {}

    if schema.keep_undeclared:
        for name, value in record.items():
            if name not in specs:
                out[name] = value

    for name, spec in specs.items():
        if name not in record:
            if spec.optional:
                out[spec.output_name] = None
                continue
            raise RecordCoercionError(
                f"Missing required field {name!r}",
                field=name,
                row_index=row_index,
            )
        try:
            out[spec.output_name] = _coerce_value(record[name], spec)
        except (TypeError, ValueError) as e:
            if spec.optional:
                out[spec.output_name] = None
                continue
            raise RecordCoercionError(
                f"Cannot coerce field {name!r} to {spec.type.value}: {e}",
                field=name,
                value=record[name],
                row_index=row_index,
            ) from e

    return out


def coerce_records(records: Iterable[Record], schema: RecordSchema) -> list[Record]:
    """Coerce every record. The input records are left untouched."""
    result = [coerce_record(r, schema, row_index=i) for i, r in enumerate(records)]
    logger.debug(f"Coerced {len(result)} records ({len(schema.fields)} typed fields)")
    return result


def filter_records(
    records: Iterable[Record],
    predicate: Callable[[Record], bool] | None = None,
    **equals: Any,
) -> list[Record]:
    """
    Keep records matching a predicate and/or field equality constraints.

    Equality compares against the record's own value, so string CSV fields
    are matched with string constants (``year="2007"``).
    """
    result = []
    for record in records:
        if any(record.get(k) != v for k, v in equals.items()):
            continue
        if predicate is not None and not predicate(record):
            continue
        result.append(record)
    return result


def extent(records: Iterable[Record], key: str | Accessor) -> tuple[float, float] | None:
    """Min and max of an accessor over records, ignoring None/NaN. None when empty."""
    get = accessor(key)
    values = []
    for record in records:
        value = get(record)
        if value is None:
            continue
        if isinstance(value, float) and math.isnan(value):
            continue
        values.append(value)
    if not values:
        return None
    return (min(values), max(values))


def pluck(records: Iterable[Record], key: str | Accessor) -> list[Any]:
    get = accessor(key)
    return [get(r) for r in records]


def unique(records: Iterable[Record], key: str | Accessor) -> list[Any]:
    """Distinct values in first-appearance order."""
    seen: dict[Any, None] = {}
    for value in pluck(records, key):
        seen.setdefault(value, None)
    return list(seen)
