"""FieldSchema — declarative description of the fields a message type keeps."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from .exceptions import SchemaDeclarationError


@dataclass(frozen=True)
class ScalarField:
    """A leaf field copied verbatim from the payload."""

    name: str


@dataclass(frozen=True)
class NestedField:
    """An object-valued field projected with its own schema.

    When the payload holds a sequence at ``name`` the nested schema is
    applied to every element.
    """

    name: str
    schema: FieldSchema


FieldSpec = Union[ScalarField, NestedField]


@dataclass(frozen=True)
class FieldSchema:
    """Ordered, immutable sequence of field specifiers.

    Declaration order is part of the schema's identity: two schemas with the
    same fields in a different order are not equal.

    Usage::

        schema = FieldSchema.declare(
            "order_id",
            "total_amount",
            {"customer": ["name", "email"]},
            {"items": ["product_id", "quantity", "price"]},
        )
    """

    fields: tuple[FieldSpec, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for spec in self.fields:
            if spec.name in seen:
                raise SchemaDeclarationError(f"Duplicate field name {spec.name!r}")
            seen.add(spec.name)

    @classmethod
    def declare(cls, *specs: Any) -> FieldSchema:
        """Build a schema from the declarative form.

        Each spec is a field name, a mapping of ``name -> nested specs``, or a
        list/tuple of further specs (flattened). An existing ``FieldSchema``
        is accepted as the nested side of a mapping.
        """
        return cls(tuple(_parse_specs(specs)))

    def names(self) -> list[str]:
        """Return the top-level field names in declaration order."""
        return [spec.name for spec in self.fields]

    def get(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def declaration(self) -> list[Any]:
        """Return the schema in its declarative form (round-trips ``declare``)."""
        out: list[Any] = []
        for spec in self.fields:
            if isinstance(spec, NestedField):
                out.append({spec.name: spec.schema.declaration()})
            else:
                out.append(spec.name)
        return out

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return any(spec.name == name for spec in self.fields)


def _parse_specs(specs: Sequence[Any]) -> list[FieldSpec]:
    parsed: list[FieldSpec] = []
    for spec in specs:
        if isinstance(spec, str):
            parsed.append(ScalarField(_check_name(spec)))
        elif isinstance(spec, Mapping):
            for name, nested in spec.items():
                parsed.append(NestedField(_check_name(name), _nested_schema(nested)))
        elif isinstance(spec, (list, tuple)):
            parsed.extend(_parse_specs(spec))
        else:
            raise SchemaDeclarationError(
                f"Invalid field specifier {spec!r} of type {type(spec).__name__}"
            )
    return parsed


def _nested_schema(nested: Any) -> FieldSchema:
    if isinstance(nested, FieldSchema):
        return nested
    if isinstance(nested, (str, list, tuple, Mapping)):
        return FieldSchema.declare(nested)
    raise SchemaDeclarationError(
        f"Invalid nested schema {nested!r} of type {type(nested).__name__}"
    )


def _check_name(name: Any) -> str:
    if not isinstance(name, str) or not name:
        raise SchemaDeclarationError(f"Field names must be non-empty strings: {name!r}")
    return name


__all__ = ["FieldSchema", "FieldSpec", "NestedField", "ScalarField"]
