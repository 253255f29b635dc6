"""Validates JSON instances against named shapes.

A value is an instance of a shape when:
- primitives match by JSON type; integer accepts integral numbers, float any number
- arrays hold only instances of the element shape
- objects have every required field, no unknown field, and each present
  field matches; an optional field may be absent or null
- unions accept a value that any variant accepts
- references are resolved through the name table
"""

from typing import Any

from typesgen.shape_naming import NamedShapes
from typesgen.shapes import ArrayOf, ObjectShape, Primitive, Reference, Shape, TypesGenError, UnionShape


class ShapeValidationError(TypesGenError):
    """Exception raised when a JSON instance doesn't match a shape."""

    def __init__(self, message: str, path: str = "#"):
        self.message = message
        self.path = path
        super().__init__(f"{message} at {path}")


class ShapeValidator:
    """Validates JSON instances against a named shape graph."""

    def __init__(self, named: NamedShapes):
        self.named = named

    def validate(self, instance: Any) -> None:
        """Validates a JSON instance against the root shape.

        Raises:
            ShapeValidationError: If the instance doesn't match
        """
        self._validate(instance, self.named.root, "#")

    def is_valid(self, instance: Any) -> bool:
        """Returns True if the instance matches the root shape."""
        try:
            self.validate(instance)
        except ShapeValidationError:
            return False
        return True

    def _validate(self, instance: Any, shape: Shape, path: str) -> None:
        if isinstance(shape, Primitive):
            self._validate_primitive(instance, shape.kind, path)
        elif isinstance(shape, Reference):
            self._validate_object(instance, self.named.resolve(shape), path)
        elif isinstance(shape, ObjectShape):
            self._validate_object(instance, shape, path)
        elif isinstance(shape, ArrayOf):
            if not isinstance(instance, list):
                raise ShapeValidationError(f"Expected array, got {type(instance).__name__}", path)
            for index, item in enumerate(instance):
                self._validate(item, shape.element, f"{path}/{index}")
        elif isinstance(shape, UnionShape):
            for variant in shape.variants:
                try:
                    self._validate(instance, variant, path)
                    return
                except ShapeValidationError:
                    continue
            raise ShapeValidationError("Value matches no union variant", path)
        else:
            raise TypeError(f"Not a shape: {shape!r}")

    def _validate_primitive(self, instance: Any, kind: str, path: str) -> None:
        is_number = isinstance(instance, (int, float)) and not isinstance(instance, bool)
        if kind == 'null':
            valid = instance is None
        elif kind == 'boolean':
            valid = isinstance(instance, bool)
        elif kind == 'string':
            valid = isinstance(instance, str)
        elif kind == 'integer':
            valid = is_number and (isinstance(instance, int) or instance.is_integer())
        else:
            valid = is_number
        if not valid:
            raise ShapeValidationError(f"Expected {kind}, got {type(instance).__name__}", path)

    def _validate_object(self, instance: Any, shape: ObjectShape, path: str) -> None:
        if not isinstance(instance, dict):
            raise ShapeValidationError(f"Expected object, got {type(instance).__name__}", path)
        for key in instance:
            if key not in shape.fields:
                raise ShapeValidationError(f"Unexpected field '{key}'", path)
        for name, spec in shape.fields.items():
            if name not in instance:
                if not spec.optional:
                    raise ShapeValidationError(f"Missing required field '{name}'", path)
                continue
            value = instance[name]
            if value is None and spec.optional:
                continue
            self._validate(value, spec.type, f"{path}/{name}")
