"""Phrase grouping for short-form, few-words-at-a-time captions.

WHY: Vertical social video shows captions a few words at a time, with
the word being spoken lit up. Word-level captions need grouping into
phrases, and captions without word timing need splitting into evenly
timed pages so the same presentation still works.

HOW: group_word_captions() chunks word captions into phrases that keep
each word's own timing. paginate_caption() splits one caption into
batches with an even share of its duration, and each word an even share
of its batch. find_active_phrase() and active_token_index() look up what
is on screen at a given time.

RULES:
- Phrase and token lookup use half-open intervals [start, end)
- Phrase bounds span the first token's start to the last token's end
- Every token except the last in a phrase carries a trailing space
- Paginated word ends are capped at the batch end; batch ends at the
  caption end
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from reel_composer.core.ir import Caption


@dataclass(frozen=True)
class PhraseToken:
    """One displayed word of a phrase with its own timing."""

    text: str
    start_s: float
    end_s: float


@dataclass(frozen=True)
class Phrase:
    """A group of words shown together on screen."""

    text: str
    start_s: float
    end_s: float
    tokens: Tuple[PhraseToken, ...]


def _is_open_at(start_s: float, end_s: float, current_time_s: float) -> bool:
    return start_s <= current_time_s < end_s


def group_word_captions(
    captions: Sequence[Caption],
    words_per_phrase: int = 3,
) -> List[Phrase]:
    """Chunk word-level captions into phrases of ``words_per_phrase`` words.

    The last phrase takes the remainder. Captions are grouped in the order
    given; callers pass them already sorted by time.
    """
    if words_per_phrase <= 0:
        raise ValueError("words_per_phrase must be positive")

    phrases: List[Phrase] = []
    for offset in range(0, len(captions), words_per_phrase):
        chunk = captions[offset:offset + words_per_phrase]
        last = len(chunk) - 1
        tokens = tuple(
            PhraseToken(
                text=caption.text + (" " if index < last else ""),
                start_s=caption.start_s,
                end_s=caption.end_s,
            )
            for index, caption in enumerate(chunk)
        )
        phrases.append(Phrase(
            text=" ".join(caption.text for caption in chunk),
            start_s=chunk[0].start_s,
            end_s=chunk[-1].end_s,
            tokens=tokens,
        ))
    return phrases


def paginate_caption(caption: Caption, words_per_batch: int = 3) -> List[Phrase]:
    """Split a caption without word timing into evenly timed pages."""
    if words_per_batch <= 0:
        raise ValueError("words_per_batch must be positive")

    words = caption.words
    if not words:
        return []

    total = caption.end_s - caption.start_s
    batch_count = math.ceil(len(words) / words_per_batch)
    per_batch = total / batch_count

    pages: List[Phrase] = []
    for batch_index, offset in enumerate(range(0, len(words), words_per_batch)):
        batch = words[offset:offset + words_per_batch]
        page_start = caption.start_s + batch_index * per_batch
        page_end = min(page_start + per_batch, caption.end_s)
        per_word = per_batch / len(batch)
        last = len(batch) - 1

        tokens = []
        for index, word in enumerate(batch):
            word_start = page_start + index * per_word
            tokens.append(PhraseToken(
                text=word + (" " if index < last else ""),
                start_s=word_start,
                end_s=min(word_start + per_word, page_end),
            ))

        pages.append(Phrase(
            text=" ".join(batch),
            start_s=page_start,
            end_s=page_end,
            tokens=tuple(tokens),
        ))
    return pages


def find_active_phrase(phrases: Sequence[Phrase], current_time_s: float) -> Optional[Phrase]:
    """Return the first phrase on screen at the given time, if any."""
    for phrase in phrases:
        if _is_open_at(phrase.start_s, phrase.end_s, current_time_s):
            return phrase
    return None


def active_token_index(phrase: Phrase, current_time_s: float) -> Optional[int]:
    """Index of the token being spoken, or None between words."""
    for index, token in enumerate(phrase.tokens):
        if _is_open_at(token.start_s, token.end_s, current_time_s):
            return index
    return None
