"""Composition loading: schema validation and the default fallback.

WHY: Compositions arrive as JSON from the HTTP API, the CLI, or a
pipeline step that may not have produced anything yet. Structural
problems must be reported once, with a readable message, before any
frame is evaluated; absent data must yield the explicit default
composition rather than a half-empty object.

HOW: The packaged JSON Schema is loaded once and cached. load_composition()
returns DEFAULT_COMPOSITION for None/empty input, otherwise validates with
jsonschema and parses into the IR.

RULES:
- None or {} → DEFAULT_COMPOSITION (never an error)
- Schema violations raise CompositionError("composition.invalid", ...)
- Compositions longer than MAX_DURATION_SECONDS are rejected the same way
- The message names the JSON path of the first offending value
- load_style(None) → CaptionStyle() with all defaults
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional

import jsonschema

from reel_composer.config import MAX_DURATION_SECONDS
from reel_composer.core.ir import (
    DEFAULT_COMPOSITION,
    INVALID_COMPOSITION_CODE,
    CaptionStyle,
    Composition,
    CompositionError,
)

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"

_CACHED_SCHEMAS: dict[str, dict] = {}


def get_schema(name: str) -> dict:
    """Load and cache a packaged JSON schema by file stem."""
    if name not in _CACHED_SCHEMAS:
        with open(SCHEMA_DIR / "{}.schema.json".format(name), encoding="utf-8") as f:
            _CACHED_SCHEMAS[name] = json.load(f)
    return _CACHED_SCHEMAS[name]


def _describe(error: jsonschema.ValidationError) -> str:
    path = "/".join(str(part) for part in error.absolute_path)
    return "{}: {}".format(path or "<root>", error.message)


def load_composition(data: Optional[Mapping[str, Any]]) -> Composition:
    """Validate composition props and build the IR.

    Args:
        data: Parsed composition JSON, or None when nothing was produced.

    Returns:
        The parsed Composition, or DEFAULT_COMPOSITION for absent data.

    Raises:
        CompositionError: If the data does not match the composition schema.
    """
    if not data:
        return DEFAULT_COMPOSITION

    try:
        jsonschema.validate(instance=data, schema=get_schema("composition"))
    except jsonschema.ValidationError as exc:
        raise CompositionError(INVALID_COMPOSITION_CODE, _describe(exc)) from exc

    composition = Composition.from_dict(data)
    if composition.duration_s > MAX_DURATION_SECONDS:
        raise CompositionError(
            INVALID_COMPOSITION_CODE,
            "composition lasts {:g}s; the limit is {:g}s".format(
                composition.duration_s, MAX_DURATION_SECONDS
            ),
        )
    return composition


def load_composition_file(path: Path) -> Composition:
    """Read a composition JSON file from disk and load it."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CompositionError(
            INVALID_COMPOSITION_CODE,
            "{} is not valid JSON: {}".format(path.name, exc.msg),
        ) from exc
    if data is not None and not isinstance(data, dict):
        raise CompositionError(
            INVALID_COMPOSITION_CODE, "{} must contain a JSON object".format(path.name)
        )
    return load_composition(data)


def load_style(data: Optional[Mapping[str, Any]]) -> CaptionStyle:
    """Build a CaptionStyle from customization props (None → defaults)."""
    return CaptionStyle.from_dict(data)
