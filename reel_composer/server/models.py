"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field types at runtime and generate JSON Schema that
appears in the /docs UI.

HOW: Each endpoint pair (request + response) has its own model. The
composition itself is accepted as a free-form object and validated by
the composition JSON Schema in core.loader, so there is one source of
truth for its structure.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Media library responses use camelCase keys (systemVoices, voiceUrl, ...)
- Frame view responses mirror FrameView.to_dict() exactly
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from reel_composer.config import DEFAULT_FPS, MAX_FRAMES

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class PlanRequest(BaseModel):
    """A composition with the options needed to time it.

    RULES:
    - composition may be null or {} → the default placeholder composition
    - style keys are the camelCase customization props (fontSize, ...)
    """

    composition: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Composition props: id, segments, captions, script, musicUrl, aspect.",
    )
    style: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Caption customization props. Absent keys keep their defaults.",
    )
    fps: int = Field(
        default=DEFAULT_FPS,
        gt=0,
        description="Frames per second of the render.",
    )


class FrameRequest(PlanRequest):
    """A composition plus the frame to evaluate."""

    frame: int = Field(ge=0, le=MAX_FRAMES, description="Zero-based frame number.")


# ---------------------------------------------------------------------------
# Response models: compositions
# ---------------------------------------------------------------------------


class SegmentViewModel(BaseModel):
    id: str = Field(description="Segment identifier.")
    text: str = Field(description="Segment text.")
    media_url: Optional[str] = Field(default=None, description="Image or video URL.")
    media_kind: str = Field(description="video, image, none or unknown.")
    opacity: float = Field(description="Fade envelope value in [0, 1].")
    progress: float = Field(description="Progress through the segment in [0, 1].")


class WordViewModel(BaseModel):
    text: str = Field(description="The word as written in the caption.")
    is_active: bool = Field(description="Reached by the highlight sweep.")
    is_current: bool = Field(description="The word being spoken.")


class CaptionViewModel(BaseModel):
    id: Optional[str] = Field(default=None, description="Caption identifier, if any.")
    text: str = Field(description="Caption text.")
    progress: float = Field(description="Progress through the caption in [0, 1].")
    current_word_index: Optional[int] = Field(
        default=None,
        description="Index of the current word; null once every word is spoken.",
    )
    words: List[WordViewModel] = Field(description="Per-word highlight state.")


class StoryWordModel(BaseModel):
    text: str = Field(description="Word of the story text.")
    state: str = Field(description="spoken, current or upcoming.")


class PhraseViewModel(BaseModel):
    text: str = Field(description="Phrase shown in the caption box.")
    tokens: List[str] = Field(description="Displayed tokens, with trailing spaces.")
    active_token: Optional[int] = Field(
        default=None, description="Index of the token being spoken."
    )
    scale: float = Field(description="Entry animation scale.")


class FrameResponse(BaseModel):
    """Everything a renderer needs to draw one frame."""

    frame: int = Field(description="Zero-based frame number.")
    time_s: float = Field(description="Frame time in seconds.")
    placeholder: bool = Field(
        description="True for the default fallback or a composition with nothing to render."
    )
    segments: List[SegmentViewModel] = Field(description="Visible segments.")
    captions: List[CaptionViewModel] = Field(description="Active captions.")
    story: List[StoryWordModel] = Field(description="Story text with highlight states.")
    phrase: Optional[PhraseViewModel] = Field(
        default=None, description="Phrase shown in the caption box, if any."
    )
    current_words: List[str] = Field(description="Normalized words being spoken.")
    spoken_words: List[str] = Field(description="Normalized words already spoken.")


class PlanResponse(BaseModel):
    """Frame count and duration of a composition."""

    composition_id: str = Field(description="Composition identifier.")
    fps: int = Field(description="Frames per second used for the plan.")
    duration_s: float = Field(description="End of the last segment or caption, in seconds.")
    total_frames: int = Field(description="Frames needed to render the composition.")
    placeholder: bool = Field(
        description="True for the default fallback or a composition with nothing to render."
    )


class FormatInfo(BaseModel):
    """Description of an available export format."""

    key: str = Field(description="Format identifier used in API requests.")
    name: str = Field(description="Human-readable format name.")


# ---------------------------------------------------------------------------
# Response models: media library
# ---------------------------------------------------------------------------


class VoiceInfo(BaseModel):
    id: str = Field(description="Voice identifier.")
    name: str = Field(description="Display name.")
    voiceUrl: str = Field(description="URL of the voice sample.")
    isSystem: bool = Field(description="Shared by every user.")
    createdBy: Optional[str] = Field(default=None, description="Creator's user id.")
    isDeleted: bool = Field(description="Always false in responses.")
    createdAt: str = Field(description="Creation time (ISO 8601, UTC).")


class VoicesResponse(BaseModel):
    systemVoices: List[VoiceInfo] = Field(description="Voices available to every user.")
    userVoices: List[VoiceInfo] = Field(description="Voices created by the caller.")


class AudioInfo(BaseModel):
    id: str = Field(description="Audio generation identifier.")
    userId: str = Field(description="Owner's user id.")
    voiceId: Optional[str] = Field(default=None, description="Voice used, if any.")
    prompt: Optional[str] = Field(default=None, description="Text that was narrated.")
    audioUrl: str = Field(description="URL of the generated audio.")
    isDeleted: bool = Field(description="Always false in responses.")
    createdAt: str = Field(description="Creation time (ISO 8601, UTC).")


class UserAudiosResponse(BaseModel):
    userAudios: List[AudioInfo] = Field(description="The caller's audios, newest first.")


# ---------------------------------------------------------------------------
# Common
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
