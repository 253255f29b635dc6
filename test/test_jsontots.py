"""Tests for end-to-end TypeScript generation from JSON samples."""

import itertools
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import Mock, patch

import requests

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from typesgen.jsontots import (
    FetchError,
    WriteError,
    convert_json_to_typescript,
    fetch_samples,
    generate_types,
    generate_types_batch,
    load_samples,
    parse_samples,
    persist_types,
)
from typesgen.shape_inference import ShapeInferrer
from typesgen.shape_naming import name_and_dedup
from typesgen.shape_validator import ShapeValidator
from typesgen.shapes import ArrayOf, EmptyInputError, ObjectShape, Primitive, TypeGenOptions, UnionShape, UnsupportedValueError

USERS_TS = """export interface Users {
    address: Address;
    email?: string;
    id: number;
    name: string;
    score?: number;
    tags: string[];
}

export interface Address {
    city: string;
    zip: string;
}
"""

EVENTS_TS = """export interface Event {
    at: number;
    origin?: Origin;
    target: Origin;
    type: string;
}

export interface Origin {
    x: number;
    y: number;
}
"""

CATALOG_TS = """export interface Catalog {
    categories: Category[];
    notes: null[];
    opened: string;
    packaging: Packaging;
    products: Product[];
    ratings: (number | string)[];
    store: string;
}

export interface Category {
    id: number;
    label: string;
    parent?: number;
}

export interface Packaging {
    h: number;
    w: number;
}

export interface Product {
    category: number;
    dimensions: Packaging;
    discontinued?: boolean;
    price: number;
    sku: string;
}
"""

SAMPLES = [
    {"id": 1, "name": "a", "tags": [], "pos": {"x": 1, "y": 2}},
    {"id": 2.5, "name": None, "tags": ["t", 3], "pos": {"x": 0, "y": 0}},
    {"id": 3, "extra": True, "home": {"x": 5, "y": 6}, "trail": [{"x": 1, "y": 1}, None]},
    {"id": "x", "nested": [[1], [2.5, "s"]]},
]


def get_json(name):
    """Provides the path of a JSON test file."""
    return os.path.join(os.path.dirname(__file__), 'json', name)


def read_text(path):
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def synthetic_sample(shape):
    """Builds one JSON value that is an instance of an unnamed shape."""
    if isinstance(shape, Primitive):
        return {'null': None, 'boolean': True, 'integer': 1, 'float': 1.5, 'string': 's'}[shape.kind]
    if isinstance(shape, ArrayOf):
        if shape.placeholder:
            return []
        if isinstance(shape.element, UnionShape):
            return [synthetic_sample(variant) for variant in shape.element.variants]
        return [synthetic_sample(shape.element)]
    if isinstance(shape, ObjectShape):
        return {name: synthetic_sample(spec.type) for name, spec in shape.fields.items()}
    if isinstance(shape, UnionShape):
        return synthetic_sample(shape.variants[0])
    raise TypeError(f"Cannot build a sample for {shape!r}")


class TestGenerateTypes(unittest.TestCase):
    """Test cases for generate_types."""

    def test_scenarios(self):
        self.assertEqual(generate_types([{"a": 1, "b": "x"}]), ["export interface ApiTypes {\n    a: number;\n    b: string;\n}"])
        self.assertEqual(generate_types([{"a": 1}, {"a": "x"}]), ["export interface ApiTypes {\n    a: number | string;\n}"])
        self.assertEqual(generate_types([{"a": 1}, {}]), ["export interface ApiTypes {\n    a?: number;\n}"])
        self.assertEqual(generate_types([{"a": 1}, {"a": 1.5}]), ["export interface ApiTypes {\n    a: number;\n}"])
        self.assertEqual(generate_types([{"x": {"a": 1}}, {"y": {"a": 1}}]), [
            "export interface ApiTypes {\n    x?: X;\n    y?: X;\n}",
            "export interface X {\n    a: number;\n}",
        ])

    def test_options(self):
        options = TypeGenOptions(alphabetize_fields=False, explicit_unions=False)
        self.assertEqual(generate_types([{"b": 1, "a": "x"}, {"b": "y"}], "Item", options),
                         ["export interface Item {\n    b: any;\n    a?: string;\n}"])

    def test_invalid_type_name(self):
        for name in ["", "1Abc", "Api-Types", "Api Types", None]:
            with self.assertRaises(ValueError):
                generate_types([{"a": 1}], name)

    def test_reserved_type_name(self):
        """Test that the root type cannot shadow a TypeScript global."""
        for name in ["Date", "Map", "Record"]:
            with self.assertRaises(ValueError):
                generate_types([{"a": {"b": 1}}], name)
        self.assertEqual(generate_types([{"a": 1}], "Dates"), ["export interface Dates {\n    a: number;\n}"])

    def test_empty_samples(self):
        with self.assertRaises(EmptyInputError):
            generate_types([])

    def test_unsupported_value(self):
        with self.assertRaises(UnsupportedValueError):
            generate_types([{"a": float('nan')}])

    def test_batch(self):
        """Test that each root type is generated independently."""
        result = generate_types_batch({"First": [{"x": {"a": 1}}], "Second": [{"x": {"b": "y"}}]})
        self.assertEqual(list(result), ["First", "Second"])
        self.assertEqual(result["First"][1], "export interface X {\n    a: number;\n}")
        self.assertEqual(result["Second"][1], "export interface X {\n    b: string;\n}")


class TestTypeProperties(unittest.TestCase):
    """Test properties that hold for any set of samples."""

    def test_merge_is_commutative(self):
        """Test that every ordering of the samples gives the same shape and text."""
        inferrer = ShapeInferrer()
        expected_shape = inferrer.infer_all(SAMPLES)
        expected_text = generate_types(SAMPLES)
        for ordering in itertools.permutations(SAMPLES):
            self.assertEqual(inferrer.infer_all(list(ordering)), expected_shape)
            self.assertEqual(generate_types(list(ordering)), expected_text)

    def test_samples_are_covered(self):
        """Test that every sample is an instance of the generated type."""
        for samples in [SAMPLES, load_samples([get_json('users.json')]), load_samples([get_json('catalog.json')])]:
            validator = ShapeValidator(name_and_dedup(ShapeInferrer().infer_all(samples), "Root"))
            for sample in samples:
                validator.validate(sample)

    def test_merge_is_idempotent(self):
        """Test that merging a synthetic instance of a shape gives the shape back."""
        inferrer = ShapeInferrer()
        for samples in [SAMPLES, load_samples([get_json('catalog.json')]), load_samples([get_json('events.jsonl')])]:
            shape = inferrer.infer_all(samples)
            sample = synthetic_sample(shape)
            self.assertEqual(inferrer.merge([shape, inferrer.infer(sample)]), shape)

    def test_output_is_deterministic(self):
        self.assertEqual(generate_types(SAMPLES), generate_types(SAMPLES))

    def test_no_duplicate_named_types(self):
        """Test that no two named types are structurally equal."""
        named = name_and_dedup(ShapeInferrer().infer_all(SAMPLES), "Root")
        shapes = list(named.table.values())
        self.assertEqual(len(set(shapes)), len(shapes))
        named.check_references()


class TestSamples(unittest.TestCase):
    """Test cases for reading samples."""

    def test_parse_document(self):
        self.assertEqual(parse_samples('{"a": 1}'), [{"a": 1}])
        self.assertEqual(parse_samples('"x"'), ["x"])

    def test_parse_root_array(self):
        """Test that a root array is split unless asked otherwise."""
        self.assertEqual(parse_samples('[1, {"a": 2}]'), [1, {"a": 2}])
        self.assertEqual(parse_samples('[1, 2]', split_root_array=False), [[1, 2]])
        self.assertEqual(parse_samples('[]'), [[]])

    def test_parse_json_lines(self):
        self.assertEqual(parse_samples('{"a": 1}\n\n{"a": 2}\n'), [{"a": 1}, {"a": 2}])

    def test_parse_errors(self):
        with self.assertRaises(FetchError):
            parse_samples('   ')
        with self.assertRaises(FetchError) as context:
            parse_samples('{"a": 1}\n{"a": ', 'broken.jsonl')
        self.assertIn('broken.jsonl', str(context.exception))

    def test_fetch_file_path(self):
        samples = fetch_samples(get_json('users.json'))
        self.assertEqual(len(samples), 2)
        self.assertEqual(samples[1]["name"], "Bob")

    def test_fetch_file_url(self):
        samples = fetch_samples('file://' + get_json('events.jsonl'))
        self.assertEqual([s["type"] for s in samples], ["click", "move"])

    def test_fetch_keeps_root_array(self):
        samples = fetch_samples(get_json('users.json'), split_root_array=False)
        self.assertEqual(len(samples), 1)
        self.assertEqual(len(samples[0]), 2)

    @patch('typesgen.jsontots.requests.get')
    def test_fetch_http(self, mock_get):
        mock_get.return_value = Mock(text='{"a": 1}')
        self.assertEqual(fetch_samples('https://example.com/data.json'), [{"a": 1}])
        mock_get.assert_called_once_with('https://example.com/data.json', timeout=30)
        mock_get.return_value.raise_for_status.assert_called_once()

    @patch('typesgen.jsontots.requests.get')
    def test_fetch_http_error(self, mock_get):
        mock_get.return_value = Mock(text='')
        mock_get.return_value.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
        with self.assertRaises(FetchError):
            fetch_samples('https://example.com/missing.json')

    @patch('typesgen.jsontots.requests.get', side_effect=requests.ConnectionError("refused"))
    def test_fetch_connection_error(self, mock_get):
        with self.assertRaises(FetchError):
            fetch_samples('http://localhost:1/data.json')

    def test_fetch_errors(self):
        with self.assertRaises(FetchError):
            fetch_samples('ftp://example.com/data.json')
        with self.assertRaises(FetchError):
            fetch_samples(get_json('missing.json'))

    def test_load_samples(self):
        """Test that sources are concatenated and capped by sample size."""
        sources = [get_json('users.json'), get_json('events.jsonl')]
        self.assertEqual(len(load_samples(sources)), 4)
        samples = load_samples(sources, sample_size=3)
        self.assertEqual(len(samples), 3)
        self.assertEqual(samples[2]["type"], "click")
        self.assertEqual(len(load_samples(sources, sample_size=1)), 1)


class TestConvert(unittest.TestCase):
    """Test cases for writing declarations to files."""

    def setUp(self):
        self.out_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.out_dir, ignore_errors=True)

    def test_persist_to_file(self):
        path = os.path.join(self.out_dir, 'nested', 'types.ts')
        self.assertEqual(persist_types(path, "export type A = number;\n"), path)
        self.assertEqual(read_text(path), "export type A = number;\n")

    def test_persist_to_directory(self):
        path = persist_types(self.out_dir, "export type A = number;\n", "A")
        self.assertEqual(path, os.path.join(self.out_dir, 'A.ts'))
        self.assertTrue(os.path.exists(path))

    def test_persist_to_new_directory(self):
        """Test that a path without a .ts extension is created as a directory."""
        target = os.path.join(self.out_dir, 'types')
        path = persist_types(target, "export type A = number;\n", "Users")
        self.assertEqual(path, os.path.join(target, 'Users.ts'))
        self.assertTrue(os.path.isdir(target))
        self.assertEqual(read_text(path), "export type A = number;\n")

    def test_convert_to_new_directory(self):
        target = os.path.join(self.out_dir, 'generated', 'types')
        path = convert_json_to_typescript(get_json('users.json'), target, 'Users')
        self.assertEqual(path, os.path.join(target, 'Users.ts'))
        self.assertEqual(read_text(path), USERS_TS)

    def test_persist_error(self):
        blocker = os.path.join(self.out_dir, 'blocker')
        with open(blocker, 'w', encoding='utf-8') as f:
            f.write('x')
        with self.assertRaises(WriteError):
            persist_types(os.path.join(blocker, 'types.ts'), "export type A = number;\n")

    def test_convert_users(self):
        path = convert_json_to_typescript(get_json('users.json'), os.path.join(self.out_dir, 'users.ts'), 'Users')
        self.assertEqual(read_text(path), USERS_TS)

    def test_convert_json_lines(self):
        path = convert_json_to_typescript([get_json('events.jsonl')], self.out_dir, 'Event')
        self.assertEqual(path, os.path.join(self.out_dir, 'Event.ts'))
        self.assertEqual(read_text(path), EVENTS_TS)

    def test_convert_catalog(self):
        path = convert_json_to_typescript(get_json('catalog.json'), os.path.join(self.out_dir, 'catalog.ts'), 'Catalog')
        self.assertEqual(read_text(path), CATALOG_TS)

    def test_convert_keep_root_array(self):
        """Test that an unsplit root array becomes an alias of its element type."""
        path = convert_json_to_typescript(get_json('users.json'), os.path.join(self.out_dir, 'users.ts'), 'Users', split_root_array=False)
        text = read_text(path)
        self.assertTrue(text.startswith("export interface User {\n    address: Address;\n"))
        self.assertTrue(text.endswith("\n\nexport type Users = User[];\n"))

    def test_convert_without_widening(self):
        path = convert_json_to_typescript(get_json('events.jsonl'), os.path.join(self.out_dir, 'events.ts'), 'Event', widen_int_to_float=False)
        self.assertEqual(read_text(path), EVENTS_TS)

    def test_convert_without_sources(self):
        with self.assertRaises(ValueError):
            convert_json_to_typescript([], os.path.join(self.out_dir, 'none.ts'))


if __name__ == '__main__':
    unittest.main()
