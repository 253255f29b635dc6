"""Shape inference and merging for JSON samples.

This module turns JSON values into Shapes and folds the Shapes of several
samples into one canonical Shape:
- infer: one JSON value -> Shape
- merge: several Shapes -> one Shape with optional fields and unions
"""

import logging
import math
from functools import reduce
from typing import Any, Dict, List, Sequence

from typesgen.shapes import (
    NULL,
    SAFE_INTEGER_MAX,
    ArrayOf,
    EmptyInputError,
    FieldSpec,
    ObjectShape,
    Primitive,
    Shape,
    UnionShape,
    UnsupportedValueError,
    make_union,
    shape_kind,
)

logger = logging.getLogger(__name__)


class ShapeInferrer:
    """Infers Shapes from JSON values and merges them."""

    def __init__(self, widen_int_to_float: bool = True):
        """Initialize the shape inferrer.

        Args:
            widen_int_to_float: Merge integer with float into float instead of a union
        """
        self.widen_int_to_float = widen_int_to_float

    def infer(self, value: Any, path: str = '#') -> Shape:
        """Maps a JSON value to its Shape.

        Args:
            value: A parsed JSON value
            path: Location of the value, used in error messages

        Returns:
            The Shape of the value

        Raises:
            UnsupportedValueError: If the value is not representable in JSON
        """
        if value is None:
            return NULL
        # bool is a subclass of int and must be checked first
        if isinstance(value, bool):
            return Primitive('boolean')
        if isinstance(value, str):
            return Primitive('string')
        if isinstance(value, int):
            return Primitive('integer' if abs(value) <= SAFE_INTEGER_MAX else 'float')
        if isinstance(value, float):
            if not math.isfinite(value):
                raise UnsupportedValueError(f"Non-finite number {value!r} is not valid JSON", path)
            if value.is_integer() and abs(value) <= SAFE_INTEGER_MAX:
                return Primitive('integer')
            return Primitive('float')
        if isinstance(value, list):
            if not value:
                return ArrayOf(NULL, placeholder=True)
            element_shapes = [self.infer(item, f"{path}/{index}") for index, item in enumerate(value)]
            return ArrayOf(reduce(self.merge_pair, element_shapes))
        if isinstance(value, dict):
            fields: Dict[str, FieldSpec] = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise UnsupportedValueError(f"Object key {key!r} is not a string", path)
                fields[key] = FieldSpec(self.infer(item, f"{path}/{key}"))
            return ObjectShape(fields)
        raise UnsupportedValueError(f"Value of type {type(value).__name__} is not a JSON value", path)

    def infer_all(self, values: Sequence[Any]) -> Shape:
        """Infers and merges the Shapes of a sequence of samples.

        Raises:
            EmptyInputError: If there are no samples
        """
        if not values:
            raise EmptyInputError("At least one sample is required")
        shapes = [self.infer(value, f"#[{index}]") for index, value in enumerate(values)]
        return self.merge(shapes)

    def merge(self, shapes: Sequence[Shape]) -> Shape:
        """Merges Shapes observed for the same type into one canonical Shape.

        Raises:
            EmptyInputError: If there are no shapes
        """
        if not shapes:
            raise EmptyInputError("Cannot merge an empty sequence of shapes")
        merged = reduce(self.merge_pair, shapes)
        logger.debug("Merged %d shapes into %s", len(shapes), shape_kind(merged))
        return merged

    def merge_pair(self, shape1: Shape, shape2: Shape) -> Shape:
        """Merges two Shapes.

        Nulls are kept as union members here. Object fields go through
        merge_fields, which turns null observations into optionality.
        """
        if isinstance(shape1, UnionShape) or isinstance(shape2, UnionShape):
            return self._merge_unions(shape1, shape2)
        if isinstance(shape1, ArrayOf) and isinstance(shape2, ArrayOf):
            return self._merge_arrays(shape1, shape2)
        if isinstance(shape1, ObjectShape) and isinstance(shape2, ObjectShape):
            return self._merge_objects(shape1, shape2)
        if isinstance(shape1, Primitive) and isinstance(shape2, Primitive):
            return self._merge_primitives(shape1, shape2)
        if shape1 == shape2:
            return shape1
        return make_union([shape1, shape2])

    def merge_fields(self, field1: FieldSpec, field2: FieldSpec) -> FieldSpec:
        """Merges two observations of the same object field."""
        optional = field1.optional or field2.optional
        if field1.type == NULL and field2.type == NULL:
            return FieldSpec(NULL, optional)
        if field1.type == NULL:
            return FieldSpec(field2.type, True)
        if field2.type == NULL:
            return FieldSpec(field1.type, True)
        return FieldSpec(self.merge_pair(field1.type, field2.type), optional)

    def _merge_primitives(self, shape1: Primitive, shape2: Primitive) -> Shape:
        if shape1.kind == shape2.kind:
            return shape1
        if self.widen_int_to_float and {shape1.kind, shape2.kind} == {'integer', 'float'}:
            return Primitive('float')
        return make_union([shape1, shape2])

    def _merge_arrays(self, array1: ArrayOf, array2: ArrayOf) -> ArrayOf:
        if array1.placeholder and array2.placeholder:
            return array1
        if array1.placeholder:
            return ArrayOf(array2.element)
        if array2.placeholder:
            return ArrayOf(array1.element)
        return ArrayOf(self.merge_pair(array1.element, array2.element))

    def _merge_objects(self, object1: ObjectShape, object2: ObjectShape) -> ObjectShape:
        fields: Dict[str, FieldSpec] = {}
        for name, spec in object1.fields.items():
            other = object2.fields.get(name)
            if other is None:
                fields[name] = FieldSpec(spec.type, True)
            else:
                fields[name] = self.merge_fields(spec, other)
        for name, spec in object2.fields.items():
            if name not in object1.fields:
                fields[name] = FieldSpec(spec.type, True)
        return ObjectShape(fields)

    def _merge_unions(self, shape1: Shape, shape2: Shape) -> Shape:
        variants: List[Shape] = list(shape1.variants) if isinstance(shape1, UnionShape) else [shape1]
        incoming = shape2.variants if isinstance(shape2, UnionShape) else (shape2,)
        for shape in incoming:
            variants = self._absorb_variant(variants, shape)
        return make_union(variants)

    def _absorb_variant(self, variants: List[Shape], shape: Shape) -> List[Shape]:
        """Merges a shape into the variant of the same kind, or appends it."""
        kind = self._merge_kind(shape)
        for index, variant in enumerate(variants):
            if self._merge_kind(variant) == kind:
                return variants[:index] + [self.merge_pair(variant, shape)] + variants[index + 1:]
        return variants + [shape]

    def _merge_kind(self, shape: Shape) -> str:
        kind = shape_kind(shape)
        if self.widen_int_to_float and kind in ('integer', 'float'):
            return 'number'
        if kind == 'reference':
            return f"reference:{shape.name}"
        return kind


def infer_shape_from_json(json_values: Sequence[Any], widen_int_to_float: bool = True) -> Shape:
    """Infers the canonical Shape of a list of JSON samples.

    Args:
        json_values: List of parsed JSON values
        widen_int_to_float: Merge integer with float into float

    Returns:
        The merged Shape
    """
    inferrer = ShapeInferrer(widen_int_to_float=widen_int_to_float)
    return inferrer.infer_all(json_values)
