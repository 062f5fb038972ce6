"""Word timings formatter: when each caption word becomes current.

WHY: Captions carry no per-word timestamps, so the templates sweep the
highlight linearly across a caption. Tools that position or animate
words outside the templates need the same instants.

HOW: For a caption of n words spanning [start, end], word i becomes
current at start + i * (end - start) / n, which is exactly where
floor(progress * n) first reaches i.

RULES:
- Instants follow the linear sweep, regardless of word length
- Captions with unparseable or reversed bounds report every word at start
- Output keys: captions[].text, start_s, end_s, words[].text, current_at_s
"""

from __future__ import annotations

import json
import math
from typing import Any, List

from reel_composer.core.ir import Caption, Composition
from reel_composer.formatters.base import BaseFormatter, FormatterOutput


def word_instants(caption: Caption) -> List[float]:
    """Return the instant each word of the caption becomes current."""
    words = caption.words
    if not words:
        return []
    if not (math.isfinite(caption.start_s) and math.isfinite(caption.end_s)):
        return [caption.start_s if math.isfinite(caption.start_s) else 0.0] * len(words)
    span = max(0.0, caption.end_s - caption.start_s)
    step = span / len(words)
    return [caption.start_s + index * step for index in range(len(words))]


class WordTimingsFormatter(BaseFormatter):
    """Formatter producing ``-words.json``."""

    @property
    def name(self) -> str:
        return "Word Timings JSON"

    def format(self, composition: Composition) -> List[FormatterOutput]:
        entries: List[dict[str, Any]] = []
        for caption in composition.captions:
            instants = word_instants(caption)
            entries.append({
                "text": caption.text,
                "start_s": caption.start_s if math.isfinite(caption.start_s) else None,
                "end_s": caption.end_s if math.isfinite(caption.end_s) else None,
                "words": [
                    {"text": word, "current_at_s": round(instant, 6)}
                    for word, instant in zip(caption.words, instants)
                ],
            })

        document = {"composition_id": composition.id, "captions": entries}
        return [FormatterOutput(
            suffix="-words.json",
            content=json.dumps(document, indent=2, ensure_ascii=False),
            media_type="application/json",
        )]
