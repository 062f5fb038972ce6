"""Intermediate representation dataclasses for video compositions.

WHY: Rendering props arrive as loosely structured JSON: captions carry
either ``start``/``end`` seconds or ``startMs``/``endMs`` milliseconds,
segment ends are sometimes missing, and style options are optional keys
with defaults scattered across templates. The IR gives every consumer a
single, well-typed form with all times normalized to float seconds.

HOW: Four dataclasses plus one explicit fallback value:
  Caption        : a timed text unit shown as a subtitle
  Segment        : a timed visual unit (image or video reference)
  Composition    : the full snapshot of segments and captions
  CaptionStyle   : caption presentation options with documented defaults
  DEFAULT_COMPOSITION: what the loader returns when real data is absent

RULES:
- All times are float seconds (milliseconds are divided by 1000)
- ``start_s <= end_s`` is NOT enforced here; the timeline resolver guards it
- Unparseable time values become NaN rather than raising
- Missing required fields raise CompositionError (structural violation)
- Instances are immutable once built; rendering never mutates them
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple
from urllib.parse import urlparse

from reel_composer.config import (
    DEFAULT_SEGMENT_SECONDS,
    IMAGE_SUFFIXES,
    VIDEO_SUFFIXES,
)

INVALID_COMPOSITION_CODE = "composition.invalid"
INVALID_STYLE_CODE = "composition.invalid_style"

TEXT_TRANSFORMS = frozenset({"uppercase", "lowercase", "capitalize", "none"})


class CompositionError(ValueError):
    """Raised when composition input is structurally invalid.

    WHY: Missing required fields or wrongly typed containers cannot be
    rendered at all. Callers (HTTP API, CLI) need one typed exception to
    report the problem once at the boundary.

    RULES:
    - code is a stable dotted identifier, e.g. "composition.invalid"
    - message is human-readable and names the offending field
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class MediaKind(str, Enum):
    """What a segment's media reference points at."""

    VIDEO = "video"
    IMAGE = "image"
    NONE = "none"
    UNKNOWN = "unknown"


def coerce_seconds(value: Any) -> float:
    """Convert a seconds value (number or numeric string) to float.

    Booleans, None and unparseable strings become NaN so that a single bad
    value degrades to "never active" instead of aborting a render.
    """
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def coerce_millis(value: Any) -> float:
    """Convert a milliseconds value to float seconds."""
    return coerce_seconds(value) / 1000.0


def _is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _coerce_bounds(entity: Any) -> None:
    """Store start_s/end_s as floats on a frozen entity built by hand."""
    object.__setattr__(entity, "start_s", coerce_seconds(entity.start_s))
    object.__setattr__(entity, "end_s", coerce_seconds(entity.end_s))


def _time_bounds(data: Mapping[str, Any], kind: str) -> Tuple[float, float]:
    """Read a start/end pair from either the millisecond or seconds keys.

    The millisecond pair wins when both are present.
    """
    if "startMs" in data and "endMs" in data:
        return coerce_millis(data["startMs"]), coerce_millis(data["endMs"])
    if "start" in data and "end" in data:
        return coerce_seconds(data["start"]), coerce_seconds(data["end"])
    raise CompositionError(
        INVALID_COMPOSITION_CODE,
        "{} needs start/end seconds or startMs/endMs milliseconds".format(kind),
    )


@dataclass(frozen=True)
class Caption:
    """A timed text unit produced by upstream transcription/alignment.

    RULES:
    - text is kept verbatim; normalization happens in core.highlight
    - start_s / end_s are float seconds, possibly NaN for unparseable input;
      they are coerced on construction, so hand-built captions are safe too
    - id is optional; word-level captions often carry none
    """

    text: str
    start_s: float
    end_s: float
    id: Optional[str] = None

    def __post_init__(self) -> None:
        _coerce_bounds(self)

    @property
    def words(self) -> Tuple[str, ...]:
        """Whitespace-delimited words of the caption text."""
        return tuple(self.text.split())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Caption:
        """Parse a Caption from a rendering-props dict.

        RULES:
        - text is required
        - startMs/endMs (milliseconds) or start/end (seconds) is required
        """
        if "text" not in data or data["text"] is None:
            raise CompositionError(INVALID_COMPOSITION_CODE, "caption is missing text")
        start_s, end_s = _time_bounds(data, "caption")
        caption_id = data.get("id")
        return cls(
            text=str(data["text"]),
            start_s=start_s,
            end_s=end_s,
            id=str(caption_id) if caption_id is not None else None,
        )


@dataclass(frozen=True)
class Segment:
    """A timed visual unit shown during a sub-range of the composition.

    RULES:
    - end_s defaults to start_s + 3 seconds when the end is missing
    - media_url is optional; media_kind is derived from its suffix
    - order is informational; segments are rendered in list order
    """

    id: str
    start_s: float
    end_s: float
    text: str = ""
    media_url: Optional[str] = None
    animation: Optional[str] = None
    order: Optional[int] = None

    def __post_init__(self) -> None:
        _coerce_bounds(self)

    @property
    def media_kind(self) -> MediaKind:
        """Classify the media reference by its path suffix (query ignored)."""
        if not self.media_url:
            return MediaKind.NONE
        path = urlparse(self.media_url).path.lower()
        for suffix in VIDEO_SUFFIXES:
            if path.endswith(suffix):
                return MediaKind.VIDEO
        for suffix in IMAGE_SUFFIXES:
            if path.endswith(suffix):
                return MediaKind.IMAGE
        return MediaKind.UNKNOWN

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], index: int = 0) -> Segment:
        """Parse a Segment from a rendering-props dict.

        RULES:
        - start is required (seconds)
        - missing end → start + DEFAULT_SEGMENT_SECONDS
        - missing id → "segment-{index}"
        - mediaUrl falls back to imageUrl
        - order is kept only when it is a finite number (NaN/Infinity → None)
        """
        if "start" not in data:
            raise CompositionError(
                INVALID_COMPOSITION_CODE, "segment {} is missing start".format(index)
            )
        start_s = coerce_seconds(data["start"])
        if data.get("end") is not None:
            end_s = coerce_seconds(data["end"])
        else:
            end_s = start_s + DEFAULT_SEGMENT_SECONDS

        segment_id = data.get("id")
        order = data.get("order")
        return cls(
            id=str(segment_id) if segment_id is not None else "segment-{}".format(index),
            start_s=start_s,
            end_s=end_s,
            text=str(data.get("text") or ""),
            media_url=data.get("mediaUrl") or data.get("imageUrl") or None,
            animation=data.get("animation"),
            order=int(order) if _is_finite_number(order) else None,
        )


@dataclass(frozen=True)
class Composition:
    """The complete snapshot a renderer evaluates frame by frame.

    RULES:
    - segments and captions are tuples, ordered as received
    - script is the full story text used for whole-text highlighting
    - is_placeholder is True for the default fallback, or when there is
      nothing to render (no segments and no captions)
    """

    id: str
    segments: Tuple[Segment, ...] = ()
    captions: Tuple[Caption, ...] = ()
    music_url: Optional[str] = None
    script: Optional[str] = None
    aspect: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return self.id == DEFAULT_COMPOSITION_ID or not (self.segments or self.captions)

    @property
    def duration_s(self) -> float:
        """End of the last segment or caption, ignoring unparseable bounds."""
        ends = [
            item.end_s
            for item in (*self.segments, *self.captions)
            if math.isfinite(item.end_s)
        ]
        return max(ends) if ends else 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Composition:
        segments = tuple(
            Segment.from_dict(item, index)
            for index, item in enumerate(data.get("segments") or [])
        )
        captions = tuple(Caption.from_dict(item) for item in data.get("captions") or [])
        composition_id = data.get("id")
        return cls(
            id=str(composition_id) if composition_id is not None else "",
            segments=segments,
            captions=captions,
            music_url=data.get("musicUrl") or None,
            script=data.get("script") or None,
            aspect=data.get("aspect") or None,
        )


@dataclass(frozen=True)
class CaptionStyle:
    """Caption presentation options with their documented defaults.

    WHY: Templates used to read optional keys ad hoc on every frame
    (``customizations?.fontSize || 64``). An explicit type validated once
    at construction removes the per-frame guesswork.

    RULES:
    - font_size, font_weight, words_per_batch must be positive integers;
      integral floats from JSON (``2.0``) are accepted by from_dict
    - position_from_bottom is a percentage in [0, 100]
    - music_volume is a percentage in [0, 100]
    - text_transform is one of uppercase, lowercase, capitalize, none
    """

    font_size: int = 64
    font_weight: int = 700
    font_family: str = "Inter"
    text_transform: str = "uppercase"
    active_word_color: str = "#fff"
    inactive_word_color: str = "#00ffea"
    position_from_bottom: float = 9
    words_per_batch: int = 3
    show_emojis: bool = True
    music_volume: float = 8

    def __post_init__(self) -> None:
        for prop_name, value in (
            ("fontSize", self.font_size),
            ("fontWeight", self.font_weight),
            ("wordsPerBatch", self.words_per_batch),
        ):
            if isinstance(value, bool) or not isinstance(value, int):
                raise CompositionError(
                    INVALID_STYLE_CODE, "{} must be an integer".format(prop_name)
                )
        if self.font_size <= 0:
            raise CompositionError(INVALID_STYLE_CODE, "fontSize must be positive")
        if self.font_weight <= 0:
            raise CompositionError(INVALID_STYLE_CODE, "fontWeight must be positive")
        if self.words_per_batch <= 0:
            raise CompositionError(INVALID_STYLE_CODE, "wordsPerBatch must be positive")
        if not 0 <= self.position_from_bottom <= 100:
            raise CompositionError(
                INVALID_STYLE_CODE, "positionFromBottom must be within 0-100"
            )
        if not 0 <= self.music_volume <= 100:
            raise CompositionError(INVALID_STYLE_CODE, "musicVolume must be within 0-100")
        if self.text_transform not in TEXT_TRANSFORMS:
            raise CompositionError(
                INVALID_STYLE_CODE,
                "textTransform must be one of {}".format(", ".join(sorted(TEXT_TRANSFORMS))),
            )

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> CaptionStyle:
        """Build a style from camelCase customization props.

        Unknown keys are ignored; absent or null keys keep their default.
        """
        if not data:
            return cls()
        kwargs: dict[str, Any] = {}
        for prop_name, field_name in _STYLE_PROPS.items():
            value = data.get(prop_name)
            if value is None:
                continue
            if field_name in _INTEGER_FIELDS and isinstance(value, float) and value.is_integer():
                value = int(value)
            kwargs[field_name] = value
        if "text_transform" in kwargs:
            kwargs["text_transform"] = str(kwargs["text_transform"]).lower()
        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise CompositionError(
                INVALID_STYLE_CODE, "invalid style value: {}".format(exc)
            ) from exc


_STYLE_PROPS: dict[str, str] = {
    "fontSize": "font_size",
    "fontWeight": "font_weight",
    "fontFamily": "font_family",
    "textTransform": "text_transform",
    "activeWordColor": "active_word_color",
    "inactiveWordColor": "inactive_word_color",
    "positionFromBottom": "position_from_bottom",
    "wordsPerBatch": "words_per_batch",
    "showEmojis": "show_emojis",
    "musicVolume": "music_volume",
}

_INTEGER_FIELDS = frozenset({"font_size", "font_weight", "words_per_batch"})

DEFAULT_COMPOSITION_ID = "default"

DEFAULT_COMPOSITION = Composition(
    id=DEFAULT_COMPOSITION_ID,
    segments=(
        Segment(
            id="default-segment",
            start_s=0.0,
            end_s=DEFAULT_SEGMENT_SECONDS,
            text="Loading...",
            animation="fade",
            order=0,
        ),
    ),
    captions=(),
    script="Loading...",
    aspect="9:16",
)
"""Explicit fallback returned by the loader when no composition data exists."""
