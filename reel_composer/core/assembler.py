"""Composition assembler: one composition + one frame → one view state.

WHY: A renderer asks the same question on every frame: what is on screen
now? The answer combines every segment's fade, every active caption's
word sweep, the highlighted story text, and the short phrase shown in
the caption box. The assembler delegates each piece to the timeline and
highlight functions and packages the result for presentation.

HOW: assemble_frame() converts the frame to seconds, resolves each
segment on its floored frame range, resolves each caption on its exact
bounds, builds the caption render state and the story highlight, and
picks the active phrase. iter_frames() repeats that for every frame of
the composition.

RULES:
- fps is validated once per call; frames are never cached
- Placeholder compositions produce an empty view with placeholder=True
- Segments are active on [floor(start * fps), floor(end * fps)] inclusive
- Captions are active on [start, end] inclusive, in seconds
- Word-level captions (one word each) are grouped into phrases;
  otherwise the first active caption is paginated
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from reel_composer.config import MAX_FRAMES
from reel_composer.core.highlight import (
    EMPTY_STATE,
    CaptionRenderState,
    IndexedWord,
    StoryWord,
    render_state,
    story_highlights,
    word_states,
)
from reel_composer.core.ir import (
    INVALID_COMPOSITION_CODE,
    Caption,
    CaptionStyle,
    Composition,
    CompositionError,
    MediaKind,
)
from reel_composer.core.phrases import (
    Phrase,
    active_token_index,
    find_active_phrase,
    group_word_captions,
    paginate_caption,
)
from reel_composer.core.timeline import (
    check_fps,
    clamp,
    enter_scale,
    fade_envelope,
    frame_range,
    frame_to_seconds,
    resolve,
    seconds_to_frame,
)

PHRASE_ENTER_FRAMES = 8


@dataclass(frozen=True)
class SegmentView:
    id: str
    text: str
    media_url: Optional[str]
    media_kind: MediaKind
    opacity: float
    progress: float


@dataclass(frozen=True)
class CaptionView:
    id: Optional[str]
    text: str
    progress: float
    words: Tuple[IndexedWord, ...]

    @property
    def current_word_index(self) -> Optional[int]:
        for word in self.words:
            if word.is_current:
                return word.index
        return None


@dataclass(frozen=True)
class PhraseView:
    text: str
    tokens: Tuple[str, ...]
    active_token: Optional[int]
    scale: float


@dataclass(frozen=True)
class FrameView:
    """Everything a renderer needs to draw one frame."""

    frame: int
    time_s: float
    placeholder: bool = False
    segments: Tuple[SegmentView, ...] = ()
    captions: Tuple[CaptionView, ...] = ()
    story: Tuple[StoryWord, ...] = ()
    phrase: Optional[PhraseView] = None
    state: CaptionRenderState = field(default=EMPTY_STATE)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation (sets become sorted lists)."""
        return {
            "frame": self.frame,
            "time_s": self.time_s,
            "placeholder": self.placeholder,
            "segments": [
                {
                    "id": seg.id,
                    "text": seg.text,
                    "media_url": seg.media_url,
                    "media_kind": seg.media_kind.value,
                    "opacity": seg.opacity,
                    "progress": seg.progress,
                }
                for seg in self.segments
            ],
            "captions": [
                {
                    "id": cap.id,
                    "text": cap.text,
                    "progress": cap.progress,
                    "current_word_index": cap.current_word_index,
                    "words": [
                        {
                            "text": word.text,
                            "is_active": word.is_active,
                            "is_current": word.is_current,
                        }
                        for word in cap.words
                    ],
                }
                for cap in self.captions
            ],
            "story": [
                {"text": word.text, "state": word.state.value} for word in self.story
            ],
            "phrase": None if self.phrase is None else {
                "text": self.phrase.text,
                "tokens": list(self.phrase.tokens),
                "active_token": self.phrase.active_token,
                "scale": self.phrase.scale,
            },
            "current_words": sorted(self.state.current_words),
            "spoken_words": sorted(self.state.spoken_words),
        }


def total_frames(composition: Composition, fps: int) -> int:
    """Number of frames needed to show every segment and caption.

    Raises:
        CompositionError: If the render would exceed MAX_FRAMES.
    """
    fps = check_fps(fps)
    try:
        frames = composition.duration_s * fps
    except OverflowError:
        frames = math.inf
    if not math.isfinite(frames) or frames > MAX_FRAMES:
        raise CompositionError(
            INVALID_COMPOSITION_CODE,
            "composition needs more than {} frames at {} fps".format(MAX_FRAMES, fps),
        )
    return max(1, int(math.ceil(frames)))


def _segment_views(composition: Composition, frame: int, fps: int) -> List[SegmentView]:
    time_s = frame_to_seconds(frame, fps)
    views: List[SegmentView] = []
    for segment in composition.segments:
        if not (math.isfinite(segment.start_s) and math.isfinite(segment.end_s)):
            continue
        start_frame, end_frame = frame_range(segment.start_s, segment.end_s, fps)
        position = resolve(start_frame / fps, end_frame / fps, time_s, fps)
        if not position.is_active:
            continue
        views.append(SegmentView(
            id=segment.id,
            text=segment.text,
            media_url=segment.media_url,
            media_kind=segment.media_kind,
            opacity=fade_envelope(frame, start_frame, end_frame),
            progress=position.progress,
        ))
    return views


def _caption_views(
    captions: Tuple[Caption, ...], time_s: float, fps: int
) -> List[Tuple[Caption, CaptionView]]:
    views: List[Tuple[Caption, CaptionView]] = []
    for caption in captions:
        position = resolve(caption.start_s, caption.end_s, time_s, fps)
        if not position.is_active:
            continue
        views.append((caption, CaptionView(
            id=caption.id,
            text=caption.text,
            progress=position.progress,
            words=tuple(word_states(caption.text, position.progress)),
        )))
    return views


def _phrase_view(
    captions: Tuple[Caption, ...],
    active: List[Caption],
    style: CaptionStyle,
    frame: int,
    fps: int,
) -> Optional[PhraseView]:
    time_s = frame_to_seconds(frame, fps)
    phrase: Optional[Phrase]
    if captions and all(len(caption.words) == 1 for caption in captions):
        ordered = sorted(
            (c for c in captions if math.isfinite(c.start_s) and math.isfinite(c.end_s)),
            key=lambda c: c.start_s,
        )
        phrase = find_active_phrase(
            group_word_captions(ordered, style.words_per_batch), time_s
        )
    elif active:
        phrase = find_active_phrase(paginate_caption(active[0], style.words_per_batch), time_s)
    else:
        phrase = None

    if phrase is None:
        return None

    entered = (frame - seconds_to_frame(phrase.start_s, fps)) / PHRASE_ENTER_FRAMES
    return PhraseView(
        text=phrase.text,
        tokens=tuple(token.text for token in phrase.tokens),
        active_token=active_token_index(phrase, time_s),
        scale=enter_scale(clamp(entered)),
    )


def assemble_frame(
    composition: Composition,
    frame: int,
    fps: int,
    style: Optional[CaptionStyle] = None,
) -> FrameView:
    """Build the view state of one frame.

    Args:
        composition: The loaded composition snapshot.
        frame: Zero-based frame number.
        fps: Frames per second (positive integer).
        style: Caption style; defaults apply when None.

    Returns:
        FrameView for the frame. Nothing is retained between calls.
    """
    fps = check_fps(fps)
    style = style or CaptionStyle()
    time_s = frame_to_seconds(frame, fps)

    if composition.is_placeholder:
        return FrameView(frame=frame, time_s=time_s, placeholder=True)

    captions = composition.captions
    resolved = _caption_views(captions, time_s, fps)
    state = render_state(captions, time_s)
    story = story_highlights(composition.script, state) if composition.script else []

    return FrameView(
        frame=frame,
        time_s=time_s,
        segments=tuple(_segment_views(composition, frame, fps)),
        captions=tuple(view for _, view in resolved),
        story=tuple(story),
        phrase=_phrase_view(
            captions, [caption for caption, _ in resolved], style, frame, fps
        ),
        state=state,
    )


def iter_frames(
    composition: Composition,
    fps: int,
    style: Optional[CaptionStyle] = None,
) -> Iterator[FrameView]:
    """Yield the view of every frame, in order."""
    for frame in range(total_frames(composition, fps)):
        yield assemble_frame(composition, frame, fps, style)
