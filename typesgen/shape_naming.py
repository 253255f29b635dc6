"""Structural deduplication and naming of object shapes.

The namer walks a canonical Shape depth-first, gives every distinct
ObjectShape a unique name and replaces every object occurrence with a
Reference into the resulting name table. Structurally identical objects
share one name, wherever they appear in the tree.
"""

import logging
from typing import Any, Dict, Optional, Set

from typesgen.common import element_type_name, get_tree_hash, type_name_from
from typesgen.shapes import (
    ArrayOf,
    DanglingReferenceError,
    FieldSpec,
    NamingCollisionError,
    ObjectShape,
    Reference,
    Shape,
    UnionShape,
    make_union,
    shapes_to_json,
)

logger = logging.getLogger(__name__)

MAX_NAME_SUFFIX = 10000

# Globals that a generated TypeScript declaration must not shadow
RESERVED_TYPE_NAMES = frozenset([
    'Array', 'BigInt', 'Boolean', 'Date', 'Error', 'Function', 'JSON', 'Map',
    'Math', 'Number', 'Object', 'Partial', 'Promise', 'Readonly', 'Record',
    'RegExp', 'Required', 'Set', 'String', 'Symbol',
])


class NamedShapes:
    """The result of naming: the root shape and the table of named objects.

    `table` preserves discovery order. When the root is an object, it is the
    first entry, under `root_name`, and `root` is a Reference to it.
    """

    def __init__(self, root_name: str, root: Shape, table: Dict[str, ObjectShape]):
        self.root_name = root_name
        self.root = root
        self.table = table

    @property
    def root_is_object(self) -> bool:
        """True when the root is a named object rather than an array, primitive or union."""
        return isinstance(self.root, Reference) and self.root.name == self.root_name

    def resolve(self, reference: Reference) -> ObjectShape:
        """Returns the object a reference points to.

        Raises:
            DanglingReferenceError: If the name is not in the table
        """
        shape = self.table.get(reference.name)
        if shape is None:
            raise DanglingReferenceError(reference.name)
        return shape

    def check_references(self) -> None:
        """Verifies that every Reference in the root and the table resolves."""
        self._check(self.root)
        for shape in self.table.values():
            self._check(shape)

    def _check(self, shape: Shape) -> None:
        if isinstance(shape, Reference):
            self.resolve(shape)
        elif isinstance(shape, ArrayOf):
            self._check(shape.element)
        elif isinstance(shape, UnionShape):
            for variant in shape.variants:
                self._check(variant)
        elif isinstance(shape, ObjectShape):
            for spec in shape.fields.values():
                self._check(spec.type)

    def to_json(self) -> Dict[str, Any]:
        return {"root": self.root.to_json(), "types": shapes_to_json(self.table)}


class ShapeNamer:
    """Assigns names to distinct object shapes and deduplicates them."""

    def __init__(self) -> None:
        self.table: Dict[str, ObjectShape] = {}
        self.names_by_fingerprint: Dict[bytes, str] = {}
        self.used_names: Set[str] = set()

    def name_and_dedup(self, root: Shape, root_name: str) -> NamedShapes:
        """Names and deduplicates all object shapes reachable from root.

        Args:
            root: The canonical Shape
            root_name: Name of the root type

        Returns:
            NamedShapes with the name table and the rewritten root
        """
        self.table = {}
        self.names_by_fingerprint = {}
        self.used_names = set()
        if not isinstance(root, ObjectShape):
            # the root name is kept for the alias declaration
            self.used_names.add(root_name)
        new_root = self._walk(root, root_name, root_name)
        logger.debug("Named %d object types for %s", len(self.table), root_name)
        return NamedShapes(root_name, new_root, dict(self.table))

    def _walk(self, shape: Shape, context_name: str, fixed_name: Optional[str] = None) -> Shape:
        if isinstance(shape, ObjectShape):
            return self._name_object(shape, context_name, fixed_name)
        if isinstance(shape, ArrayOf):
            return ArrayOf(self._walk(shape.element, element_type_name(context_name)), placeholder=shape.placeholder)
        if isinstance(shape, UnionShape):
            return make_union(self._walk(variant, context_name) for variant in shape.variants)
        return shape

    def _name_object(self, shape: ObjectShape, context_name: str, fixed_name: Optional[str]) -> Reference:
        fingerprint = get_tree_hash(shape.to_json()).hash_value
        existing = self.names_by_fingerprint.get(fingerprint)
        if existing is not None:
            return Reference(existing)

        name = fixed_name if fixed_name is not None else self._unique_name(context_name)
        self.used_names.add(name)
        self.names_by_fingerprint[fingerprint] = name
        # reserve the slot now so the table keeps discovery order
        self.table[name] = shape

        renamed: Dict[str, FieldSpec] = {}
        for field_name in sorted(shape.fields):
            spec = shape.fields[field_name]
            renamed[field_name] = FieldSpec(self._walk(spec.type, type_name_from(field_name)), spec.optional)
        self.table[name] = ObjectShape({field_name: renamed[field_name] for field_name in shape.fields})
        return Reference(name)

    def _unique_name(self, base_name: str) -> str:
        if base_name not in self.used_names and base_name not in RESERVED_TYPE_NAMES:
            return base_name
        for suffix in range(2, MAX_NAME_SUFFIX):
            candidate = f"{base_name}{suffix}"
            if candidate not in self.used_names:
                return candidate
        raise NamingCollisionError(f"Could not find a unique name for '{base_name}'")


def name_and_dedup(root: Shape, root_name: str) -> NamedShapes:
    """Names and deduplicates the object shapes of a canonical Shape."""
    return ShapeNamer().name_and_dedup(root, root_name)
