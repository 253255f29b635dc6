"""Structural shape model for JSON type inference.

A Shape describes the structure of a JSON value. Shapes are immutable values:
- Primitive: string, integer, float, boolean or null
- ArrayOf: an array whose elements all have one (possibly union) shape
- ObjectShape: an object with named fields, each described by a FieldSpec
- UnionShape: a flattened, canonically ordered set of distinct shapes
- Reference: a pointer-by-name to a named ObjectShape (only after naming)
"""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

PRIMITIVE_KINDS = ('boolean', 'integer', 'float', 'string', 'null')

# Largest integer a double represents exactly (Number.MAX_SAFE_INTEGER)
SAFE_INTEGER_MAX = 2**53 - 1

# Canonical order of union variants
_KIND_RANK = {
    'boolean': 0,
    'integer': 1,
    'float': 2,
    'string': 3,
    'array': 4,
    'object': 5,
    'reference': 6,
    'null': 7,
}


class TypesGenError(Exception):
    """Base class for all type generation errors."""


class EmptyInputError(TypesGenError):
    """Raised when inference or merging is asked to work on zero samples."""


class UnsupportedValueError(TypesGenError):
    """Raised when a sample holds a value outside the JSON value grammar."""

    def __init__(self, message: str, path: str = "#"):
        self.message = message
        self.path = path
        super().__init__(f"{message} at {path}")


class NamingCollisionError(TypesGenError):
    """Raised when no unique type name can be derived."""


class DanglingReferenceError(TypesGenError):
    """Raised when a Reference has no entry in the name table."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Reference to unknown type '{name}'")


@dataclass
class TypeGenOptions:
    """Options that control merging and rendering."""
    alphabetize_fields: bool = True
    explicit_unions: bool = True
    widen_int_to_float: bool = True


@dataclass(frozen=True)
class Primitive:
    """A JSON primitive: string, integer, float, boolean or null."""
    kind: str

    def __post_init__(self):
        if self.kind not in PRIMITIVE_KINDS:
            raise ValueError(f"Unknown primitive kind '{self.kind}'")

    def to_json(self) -> Any:
        return self.kind


@dataclass(frozen=True)
class ArrayOf:
    """An array of elements of one shape.

    `placeholder` marks the shape inferred from an empty array. It does not
    take part in equality; the merger uses it to adopt the element shape of
    a non-empty sibling array.
    """
    element: 'Shape'
    placeholder: bool = field(default=False, compare=False)

    def to_json(self) -> Any:
        return {"type": "array", "items": self.element.to_json()}


@dataclass(frozen=True)
class FieldSpec:
    """The shape of an object field and whether it may be absent or null."""
    type: 'Shape'
    optional: bool = False

    def to_json(self) -> Any:
        return {"type": self.type.to_json(), "optional": self.optional}


@dataclass(frozen=True, eq=False)
class ObjectShape:
    """A JSON object. Field order is kept but ignored by equality."""
    fields: Mapping[str, FieldSpec] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'fields', MappingProxyType(dict(self.fields)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectShape):
            return NotImplemented
        return dict(self.fields) == dict(other.fields)

    def __hash__(self) -> int:
        return hash(frozenset(self.fields.items()))

    def __repr__(self) -> str:
        return f"ObjectShape({dict(self.fields)!r})"

    def to_json(self) -> Any:
        return {"type": "object", "fields": {name: spec.to_json() for name, spec in self.fields.items()}}


@dataclass(frozen=True)
class UnionShape:
    """A union of at least two structurally distinct, non-union shapes.

    Build unions with make_union(), which flattens and orders the variants.
    """
    variants: Tuple['Shape', ...]

    def __post_init__(self):
        if len(self.variants) < 2:
            raise ValueError("A union needs at least two variants")
        if any(isinstance(v, UnionShape) for v in self.variants):
            raise ValueError("Unions must not be nested")

    def to_json(self) -> Any:
        return {"type": "union", "variants": [v.to_json() for v in self.variants]}


@dataclass(frozen=True)
class Reference:
    """A non-owning pointer to a named ObjectShape."""
    name: str

    def to_json(self) -> Any:
        return {"$ref": self.name}


Shape = Union[Primitive, ArrayOf, ObjectShape, UnionShape, Reference]

NULL = Primitive('null')


def shape_kind(shape: Shape) -> str:
    """Returns the outer kind of a shape: a primitive kind, array, object, union or reference."""
    if isinstance(shape, Primitive):
        return shape.kind
    if isinstance(shape, ArrayOf):
        return 'array'
    if isinstance(shape, ObjectShape):
        return 'object'
    if isinstance(shape, UnionShape):
        return 'union'
    if isinstance(shape, Reference):
        return 'reference'
    raise TypeError(f"Not a shape: {shape!r}")


def shape_sort_key(shape: Shape) -> Tuple[int, str]:
    """Sort key giving union variants a canonical, order-independent position."""
    return _KIND_RANK[shape_kind(shape)], json.dumps(shape.to_json(), sort_keys=True)


def make_union(variants: Iterable[Shape]) -> Shape:
    """Flattens, de-duplicates and orders variants.

    Returns the sole variant when only one remains. Same-kind variants are
    not merged here; that is the merger's job.
    """
    flat: List[Shape] = []
    for variant in variants:
        nested = variant.variants if isinstance(variant, UnionShape) else (variant,)
        for item in nested:
            if item not in flat:
                flat.append(item)
    if not flat:
        raise ValueError("A union needs at least one variant")
    if len(flat) == 1:
        return flat[0]
    return UnionShape(tuple(sorted(flat, key=shape_sort_key)))


def shapes_to_json(shapes: Dict[str, Shape]) -> Dict[str, Any]:
    """Converts a name-to-shape mapping to plain JSON for comparison and debugging."""
    return {name: shape.to_json() for name, shape in shapes.items()}
