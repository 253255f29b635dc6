# pylint: disable=line-too-long

""" ShapeToTypeScript class for rendering named shapes as TypeScript declarations """

import logging
from typing import Dict, List

from typesgen.common import process_template
from typesgen.shape_naming import NamedShapes
from typesgen.shapes import ArrayOf, ObjectShape, Primitive, Reference, Shape, UnionShape

logger = logging.getLogger(__name__)

INDENT = '    '


class ShapeToTypeScript:
    """ Renders named shapes as TypeScript interfaces and type aliases """

    def __init__(self, alphabetize_fields: bool = True, explicit_unions: bool = True) -> None:
        self.alphabetize_fields = alphabetize_fields
        self.explicit_unions = explicit_unions

    def map_primitive_to_typescript(self, kind: str) -> str:
        """ Maps shape primitive kinds to TypeScript types """
        mapping = {
            'null': 'null',
            'boolean': 'boolean',
            'string': 'string',
            'integer': 'number',
            'float': 'number',
        }
        return mapping[kind]

    def convert_shape_to_typescript(self, shape: Shape, named: NamedShapes) -> str:
        """ Converts a shape to a TypeScript type expression """
        if isinstance(shape, Primitive):
            return self.map_primitive_to_typescript(shape.kind)
        if isinstance(shape, Reference):
            named.resolve(shape)
            return shape.name
        if isinstance(shape, ArrayOf):
            element_type = self.convert_shape_to_typescript(shape.element, named)
            if isinstance(shape.element, UnionShape) and ' | ' in element_type:
                return f'({element_type})[]'
            return f'{element_type}[]'
        if isinstance(shape, UnionShape):
            return self.convert_union_to_typescript(shape, named)
        # objects only appear in the name table; anywhere else they are References
        raise TypeError(f"Cannot render {shape!r}")

    def convert_union_to_typescript(self, shape: UnionShape, named: NamedShapes) -> str:
        """ Renders a union as an explicit enumeration of its variants """
        if not self.explicit_unions:
            logger.warning("Rendering union of %d variants as 'any'", len(shape.variants))
            return 'any'
        ts_types: List[str] = []
        for variant in shape.variants:
            ts_type = self.convert_shape_to_typescript(variant, named)
            # integer and float both render as number
            if ts_type not in ts_types:
                ts_types.append(ts_type)
        return ' | '.join(ts_types)

    def generate_fields(self, shape: ObjectShape, named: NamedShapes) -> List[Dict]:
        """ Generates the field descriptors of an interface """
        field_names = sorted(shape.fields) if self.alphabetize_fields else list(shape.fields)
        fields = []
        for field_name in field_names:
            spec = shape.fields[field_name]
            fields.append({
                'name': field_name,
                'type': self.convert_shape_to_typescript(spec.type, named),
                'optional': spec.optional,
            })
        return fields

    def generate_interface(self, name: str, shape: ObjectShape, named: NamedShapes) -> str:
        """ Generates the declaration of one named object """
        return process_template(
            "shapetots/interface.ts.jinja",
            interface_name=name,
            fields=self.generate_fields(shape, named),
            indent=INDENT,
        )

    def generate_alias(self, name: str, shape: Shape, named: NamedShapes) -> str:
        """ Generates a type alias for a root that is not an object """
        return process_template(
            "shapetots/alias.ts.jinja",
            alias_name=name,
            alias_type=self.convert_shape_to_typescript(shape, named),
        )

    def render(self, named: NamedShapes) -> List[str]:
        """ Renders one block per named object, root first, then an alias for a non-object root """
        named.check_references()
        blocks = [self.generate_interface(name, shape, named) for name, shape in named.table.items()]
        if not named.root_is_object:
            blocks.append(self.generate_alias(named.root_name, named.root, named))
        return blocks

    def render_text(self, named: NamedShapes) -> str:
        """ Renders all blocks as the text of one .ts file """
        return join_blocks(self.render(named))


def convert_shapes_to_typescript(named: NamedShapes, alphabetize_fields: bool = True, explicit_unions: bool = True) -> List[str]:
    """ Renders named shapes as TypeScript declaration blocks """
    return ShapeToTypeScript(alphabetize_fields, explicit_unions).render(named)


def join_blocks(blocks: List[str]) -> str:
    """ Joins declaration blocks into the text of one .ts file """
    return '\n\n'.join(blocks) + '\n'
