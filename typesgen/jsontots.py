"""Generates TypeScript type declarations from JSON samples.

This module provides:
- generate_types: samples -> TypeScript declaration blocks
- fetch_samples / load_samples: read samples from URLs, files or JSON Lines
- persist_types: write rendered declarations to a .ts file
- convert_json_to_typescript: the end-to-end conversion used by the CLI
"""

import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlparse

import requests

from typesgen.common import is_valid_type_name
from typesgen.shape_inference import ShapeInferrer
from typesgen.shape_naming import RESERVED_TYPE_NAMES, ShapeNamer
from typesgen.shapes import EmptyInputError, TypeGenOptions, TypesGenError
from typesgen.shapetots import ShapeToTypeScript, join_blocks

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 30


class FetchError(TypesGenError):
    """Raised when samples cannot be retrieved or parsed."""


class WriteError(TypesGenError):
    """Raised when rendered declarations cannot be written."""


def generate_types(samples: Sequence[Any], type_name: str = 'ApiTypes', options: Optional[TypeGenOptions] = None) -> List[str]:
    """Infers a type from JSON samples and renders it as TypeScript.

    Args:
        samples: Parsed JSON values observed for one type
        type_name: Name of the root type; a letter followed by letters and digits
        options: Merge and rendering options

    Returns:
        Declaration blocks, root type first

    Raises:
        ValueError: If the type name is not a valid identifier or is a TypeScript global
        EmptyInputError: If there are no samples
        UnsupportedValueError: If a sample holds a non-JSON value
    """
    if not is_valid_type_name(type_name):
        raise ValueError(f"Type name '{type_name}' must start with a letter and contain only letters and numbers")
    if type_name in RESERVED_TYPE_NAMES:
        raise ValueError(f"Type name '{type_name}' would shadow a TypeScript global")
    if not samples:
        raise EmptyInputError("At least one JSON sample is required")
    options = options or TypeGenOptions()

    inferrer = ShapeInferrer(widen_int_to_float=options.widen_int_to_float)
    canonical = inferrer.infer_all(samples)
    named = ShapeNamer().name_and_dedup(canonical, type_name)
    renderer = ShapeToTypeScript(alphabetize_fields=options.alphabetize_fields,
                                 explicit_unions=options.explicit_unions)
    blocks = renderer.render(named)
    logger.debug("Generated %d declarations for %s from %d samples", len(blocks), type_name, len(samples))
    return blocks


def generate_types_batch(sources: Mapping[str, Sequence[Any]], options: Optional[TypeGenOptions] = None) -> Dict[str, List[str]]:
    """Generates declarations for several independent root types.

    Args:
        sources: Samples keyed by root type name

    Returns:
        Declaration blocks keyed by root type name
    """
    return {type_name: generate_types(samples, type_name, options) for type_name, samples in sources.items()}


def fetch_content(source: str) -> str:
    """Fetches text from an http(s) URL, a file URL or a file path.

    Raises:
        FetchError: If the content cannot be retrieved
    """
    parsed_url = urlparse(source)
    scheme = parsed_url.scheme

    try:
        if scheme in ['http', 'https']:
            response = requests.get(source, timeout=FETCH_TIMEOUT)
            # Raises an HTTPError if the response status code is 4XX/5XX
            response.raise_for_status()
            return response.text
        if scheme == 'file':
            file_path = parsed_url.netloc or parsed_url.path
            # On Windows, a file URL might start with a '/' but it's not part of the actual path
            if os.name == 'nt' and file_path.startswith('/'):
                file_path = file_path[1:]
        elif scheme == '' or len(scheme) == 1:
            # plain path, or a Windows drive letter
            file_path = source
        else:
            raise FetchError(f"Unsupported URL scheme: {scheme}")
        with open(file_path, 'r', encoding='utf-8') as file:
            return file.read()
    except requests.RequestException as e:
        raise FetchError(f"Request for {source} failed: {e}") from e
    except OSError as e:
        raise FetchError(f"Could not read {source}: {e}") from e


def parse_samples(content: str, source: str = '<input>', split_root_array: bool = True) -> List[Any]:
    """Parses a JSON document or JSON Lines text into samples.

    A non-empty array at the root level is split into one sample per element
    unless split_root_array is False.

    Raises:
        FetchError: If the text is empty or not JSON
    """
    content = content.strip()
    if not content:
        raise FetchError(f"No JSON data found in {source}")

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        pass
    else:
        if split_root_array and isinstance(data, list) and data:
            return list(data)
        return [data]

    # Try parsing as JSON Lines (JSONL)
    values: List[Any] = []
    for line_number, line in enumerate(content.split('\n'), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            values.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise FetchError(f"Invalid JSON in {source} at line {line_number}: {e.msg}") from e
    return values


def fetch_samples(source: str, split_root_array: bool = True) -> List[Any]:
    """Retrieves the JSON samples held at a URL or file path.

    Args:
        source: http(s) URL, file URL or file path
        split_root_array: Treat each element of a root-level array as a sample

    Returns:
        Non-empty list of parsed JSON values

    Raises:
        FetchError: On network, I/O or parse failure
    """
    samples = parse_samples(fetch_content(source), source, split_root_array)
    logger.debug("Fetched %d samples from %s", len(samples), source)
    return samples


def load_samples(sources: Sequence[str], sample_size: int = 0, split_root_array: bool = True) -> List[Any]:
    """Loads samples from several sources.

    Args:
        sources: URLs or file paths
        sample_size: Maximum number of samples to load (0 = all)
        split_root_array: Treat each element of a root-level array as a sample
    """
    values: List[Any] = []
    for source in sources:
        if sample_size > 0 and len(values) >= sample_size:
            break
        values.extend(fetch_samples(source, split_root_array))
    if sample_size > 0:
        values = values[:sample_size]
    return values


def persist_types(ts_file_path: str, rendered_text: str, type_name: str = 'ApiTypes') -> str:
    """Writes rendered declarations to a file.

    A path that does not end in .ts, or that is an existing directory, is
    treated as a directory and the file is <dir>/<type_name>.ts. Missing
    directories are created.

    Returns:
        The path of the written file

    Raises:
        WriteError: If the file cannot be written
    """
    if os.path.isdir(ts_file_path) or not ts_file_path.endswith('.ts'):
        ts_file_path = os.path.join(ts_file_path, f"{type_name}.ts")
    try:
        # Ensure output directory exists
        output_dir = os.path.dirname(ts_file_path)
        if output_dir and not os.path.exists(output_dir):
            os.makedirs(output_dir)
        with open(ts_file_path, 'w', encoding='utf-8') as f:
            f.write(rendered_text)
    except OSError as e:
        raise WriteError(f"Could not write {ts_file_path}: {e}") from e
    return ts_file_path


def convert_json_to_typescript(
    input_sources: List[str] | str,
    ts_file_path: str,
    type_name: str = 'ApiTypes',
    alphabetize_fields: bool = True,
    explicit_unions: bool = True,
    widen_int_to_float: bool = True,
    sample_size: int = 0,
    split_root_array: bool = True
) -> str:
    """Infers TypeScript declarations from JSON sources and writes them to a file.

    Args:
        input_sources: URLs or paths of JSON / JSON Lines documents
        ts_file_path: Output .ts file, or a directory to hold <type_name>.ts
        type_name: Name for the root type
        alphabetize_fields: Emit fields in lexicographic order
        explicit_unions: Always enumerate union members
        widen_int_to_float: Merge integer with float into float
        sample_size: Maximum number of samples to analyze (0 = all)
        split_root_array: Treat each element of a root-level array as a sample

    Returns:
        The path of the written file
    """
    if isinstance(input_sources, str):
        input_sources = [input_sources]
    if not input_sources:
        raise ValueError("At least one input source is required")

    samples = load_samples(input_sources, sample_size, split_root_array)
    options = TypeGenOptions(alphabetize_fields=alphabetize_fields,
                             explicit_unions=explicit_unions,
                             widen_int_to_float=widen_int_to_float)
    blocks = generate_types(samples, type_name, options)
    if not blocks:
        raise TypesGenError("Generated types are empty, please check the JSON data")
    return persist_types(ts_file_path, join_blocks(blocks), type_name)
