"""
Common utility functions for typesgen.
"""

# pylint: disable=line-too-long

import hashlib
import json
import os
import re
from typing import Any

import jinja2

TYPE_NAME_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9]*$')
TS_IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')


def is_valid_type_name(name: str) -> bool:
    """Check that a name starts with a letter and contains only letters and digits."""
    return isinstance(name, str) and TYPE_NAME_PATTERN.match(name) is not None


def type_name_from(name: str) -> str:
    """
    Convert an arbitrary JSON key into a PascalCase type name.

    Characters other than ASCII letters and digits separate words. The first
    letter of every word is upper-cased and the rest of the word is kept, so
    `userId` becomes `UserId` and `first-name` becomes `FirstName`. Names that
    come out empty or start with a digit are prefixed with `Type`.

    Args:
        name (str): The JSON key.

    Returns:
        str: A name matching `^[A-Za-z][A-Za-z0-9]*$`.
    """
    words = [w for w in re.split(r'[^A-Za-z0-9]+', name) if w]
    result = ''.join(w[0].upper() + w[1:] for w in words)
    if not result or result[0].isdigit():
        result = 'Type' + result
    return result


def singular(name: str) -> str:
    """Naive English singular of a PascalCase name ('Categories' -> 'Category', 'Items' -> 'Item')."""
    if len(name) > 3 and name.endswith('ies'):
        return name[:-3] + 'y'
    if len(name) > 1 and name.endswith('s') and not name.endswith(('ss', 'us', 'is')):
        return name[:-1]
    return name


def element_type_name(name: str) -> str:
    """Name for the element type of an array held under `name`."""
    element = singular(name)
    if element != name or name.endswith('Element'):
        return element
    return name + 'Element'


class NodeHash:
    """ A hash value and count for a JSON object. """
    def __init__(self: 'NodeHash', hash_value: bytes, count: int):
        self.hash_value: bytes = hash_value
        self.count: int = count


def get_tree_hash(json_obj: Any) -> NodeHash:
    """
    Generate a hash from a JSON value. Object keys are sorted first so that
    the hash does not depend on key order.

    Args:
        json_obj (Any): The JSON value to hash.

    Returns:
        NodeHash: The hash value and the length of the canonical encoding.
    """
    s = json.dumps(json_obj, sort_keys=True).encode('utf-8')
    return NodeHash(hashlib.sha256(s).digest(), len(s))


def ts_property_name(name: str) -> str:
    """Returns the name as a TypeScript property key, quoted when it is not an identifier."""
    if TS_IDENTIFIER_PATTERN.match(name):
        return name
    return json.dumps(name, ensure_ascii=False)


def process_template(file_path: str, **kvargs) -> str:
    """
    Process a file as a Jinja2 template with the given object as input.

    Args:
        file_path (str): The path to the template, relative to this package.
        **kvargs: The keyword arguments to pass to the template.

    Returns:
        str: The processed template as a string.
    """
    # Load the template environment
    file_dir = os.path.dirname(__file__)
    template_loader = jinja2.FileSystemLoader(searchpath=file_dir)
    template_env = jinja2.Environment(loader=template_loader)
    template_env.filters['property_name'] = ts_property_name

    # Load the template from the file
    template = template_env.get_template(file_path)

    # Render the template with the object as input
    output = template.render(**kvargs)

    return output
