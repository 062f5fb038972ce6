"""Caption render state: which words are spoken, current, or upcoming.

WHY: Captions highlight words as they are spoken. Two templates need
this: one highlights words inside the whole story text by matching them
against time-stamped word captions, the other sweeps a highlight across a
single caption's words as its progress advances. Both reduce to small
pure functions of the captions and the current time.

HOW: normalize_word() is the single text normalization used on both sides
of every comparison. render_state() builds the sets of currently active
and already finished words. word_states() applies the index sweep to one
caption, and story_highlights() classifies every word of a story text.

RULES:
- Normalization: lowercase, strip surrounding whitespace, strip trailing
  characters from ". , ! ? ; :"; it is idempotent
- current_words: words of every caption with start <= t <= end (union)
- spoken_words: words of every caption with end <= t that is not itself
  active (a caption ending exactly at t is still current)
- Captions with unparseable bounds contribute nothing
- Index sweep: active_index = floor(progress * word_count); words at
  index <= active_index are active, the word at active_index is current
- The sweep is linear over the whole caption regardless of word length
- Nothing is retained between calls; time may move backwards (seeking)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List

from reel_composer.core.ir import Caption
from reel_composer.core.timeline import clamp

TRAILING_PUNCTUATION = ".,!?;:"

_TRAILING_STRIP = TRAILING_PUNCTUATION + " \t\r\n\f\v"


def normalize_word(word: str) -> str:
    """Normalize a word for highlight matching."""
    return word.lower().strip().rstrip(_TRAILING_STRIP).strip()


def normalized_tokens(text: str) -> List[str]:
    """Split text on whitespace and normalize each token, dropping empties."""
    tokens = (normalize_word(token) for token in text.split())
    return [token for token in tokens if token]


class WordState(str, Enum):
    """Highlight state of one word in a story text."""

    SPOKEN = "spoken"
    CURRENT = "current"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class CaptionRenderState:
    """Normalized words that are being spoken now and that have been spoken."""

    current_words: FrozenSet[str]
    spoken_words: FrozenSet[str]


@dataclass(frozen=True)
class IndexedWord:
    """One word of a caption under the index sweep."""

    index: int
    text: str
    is_active: bool
    is_current: bool


@dataclass(frozen=True)
class StoryWord:
    """One word of a story text with its highlight state."""

    index: int
    text: str
    state: WordState


EMPTY_STATE = CaptionRenderState(current_words=frozenset(), spoken_words=frozenset())


def render_state(captions: Iterable[Caption], current_time_s: float) -> CaptionRenderState:
    """Collect current and spoken words at the given time.

    Args:
        captions: Every caption of the composition, in any order.
        current_time_s: Playback time in seconds.

    Returns:
        CaptionRenderState; both sets are empty when nothing qualifies.
    """
    if not math.isfinite(current_time_s):
        return EMPTY_STATE

    current: set[str] = set()
    spoken: set[str] = set()
    for caption in captions:
        start_s, end_s = caption.start_s, caption.end_s
        if not (math.isfinite(start_s) and math.isfinite(end_s)):
            continue
        if start_s <= current_time_s <= end_s:
            current.update(normalized_tokens(caption.text))
        elif end_s <= current_time_s:
            spoken.update(normalized_tokens(caption.text))

    if not current and not spoken:
        return EMPTY_STATE
    return CaptionRenderState(current_words=frozenset(current), spoken_words=frozenset(spoken))


def active_word_index(progress: float, word_count: int) -> int:
    """Index of the word the sweep has reached; equals word_count at the end."""
    if word_count <= 0 or not math.isfinite(progress):
        return 0
    return int(math.floor(clamp(progress) * word_count))


def word_states(text: str, progress: float) -> List[IndexedWord]:
    """Apply the index sweep to a caption's words.

    At progress 1.0 the index runs past the last word: every word is
    active and none is current.
    """
    words = text.split()
    active_index = active_word_index(progress, len(words))
    return [
        IndexedWord(
            index=index,
            text=word,
            is_active=index <= active_index,
            is_current=index == active_index,
        )
        for index, word in enumerate(words)
    ]


def story_highlights(text: str, state: CaptionRenderState) -> List[StoryWord]:
    """Classify every word of a story text against a render state.

    Current wins over spoken: a word repeated in the story is shown as
    current while any caption containing it is active.
    """
    highlights: List[StoryWord] = []
    for index, word in enumerate(text.split()):
        key = normalize_word(word)
        if key in state.current_words:
            word_state = WordState.CURRENT
        elif key in state.spoken_words:
            word_state = WordState.SPOKEN
        else:
            word_state = WordState.UPCOMING
        highlights.append(StoryWord(index=index, text=word, state=word_state))
    return highlights
