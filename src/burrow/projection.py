"""SchemaProjector — extract the declared subset of a parsed payload.

Projection is a pure function over plain data: it never mutates its input or
the schema, so any number of envelopes may project concurrently.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from .result import FaultKind, Result
from .schema import FieldSchema, NestedField


def project(data: Any, schema: FieldSchema) -> Result[dict[str, Any]]:
    """Project *data* onto *schema*.

    * scalar field: value deep-copied, ``None`` when absent;
    * nested field, value absent or ``None``: key omitted;
    * nested field, mapping: projected recursively;
    * nested field, list/tuple: every element projected, result is a list;
    * nested field, anything else: ``PROJECTION_ERROR``.
    """
    if not isinstance(data, Mapping):
        return _mismatch(f"expected an object at top level, got {type(data).__name__}")
    return _project_mapping(data, schema, "")


def _mismatch(message: str) -> Result[Any]:
    return Result.failure(FaultKind.PROJECTION_ERROR, message)


def _project_mapping(
    data: Mapping[str, Any], schema: FieldSchema, path: str
) -> Result[dict[str, Any]]:
    projected: dict[str, Any] = {}
    for spec in schema:
        value = data.get(spec.name)
        if not isinstance(spec, NestedField):
            projected[spec.name] = copy.deepcopy(value)
            continue
        if value is None:
            continue

        where = f"{path}{spec.name}"
        if isinstance(value, Mapping):
            nested = _project_mapping(value, spec.schema, f"{where}.")
        elif isinstance(value, (list, tuple)):
            nested = _project_sequence(value, spec.schema, where)
        else:
            return _mismatch(
                f"{where}: expected an object or a list of objects, "
                f"got {type(value).__name__}"
            )
        if not nested.ok:
            return nested
        projected[spec.name] = nested.value
    return Result.success(projected)


def _project_sequence(
    values: list[Any] | tuple[Any, ...], schema: FieldSchema, where: str
) -> Result[Any]:
    projected: list[dict[str, Any]] = []
    for i, element in enumerate(values):
        if not isinstance(element, Mapping):
            return _mismatch(
                f"{where}[{i}]: expected an object, got {type(element).__name__}"
            )
        result = _project_mapping(element, schema, f"{where}[{i}].")
        if not result.ok:
            return result
        projected.append(result.unwrap())
    return Result.success(projected)


__all__ = ["project"]
