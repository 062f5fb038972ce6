"""SRT caption formatter: one subtitle block per caption.

WHY: Editors and players that cannot run the rendering templates still
need the captions as a sidecar subtitle file.

HOW: Captions are sorted by start time and written as numbered SRT
blocks with ``HH:MM:SS,mmm`` timestamps.

RULES:
- Captions with unparseable bounds are skipped
- end < start is clamped to start (zero-length block)
- Negative times are clamped to zero
- Media type: "application/x-subrip"
"""

from __future__ import annotations

import math
from typing import List

from reel_composer.core.ir import Composition
from reel_composer.formatters.base import BaseFormatter, FormatterOutput


def format_timestamp(seconds: float) -> str:
    """Format seconds as an SRT timestamp (HH:MM:SS,mmm)."""
    total_ms = int(round(max(0.0, seconds) * 1000))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return "{:02d}:{:02d}:{:02d},{:03d}".format(hours, minutes, secs, millis)


class SRTCaptionFormatter(BaseFormatter):
    """Formatter producing a single SRT file from the composition captions."""

    @property
    def name(self) -> str:
        return "SRT Captions"

    def format(self, composition: Composition) -> List[FormatterOutput]:
        captions = sorted(
            (
                c for c in composition.captions
                if math.isfinite(c.start_s) and math.isfinite(c.end_s)
            ),
            key=lambda c: c.start_s,
        )

        blocks: List[str] = []
        for number, caption in enumerate(captions, start=1):
            end_s = max(caption.end_s, caption.start_s)
            blocks.append("{}\n{} --> {}\n{}\n".format(
                number,
                format_timestamp(caption.start_s),
                format_timestamp(end_s),
                caption.text.strip(),
            ))

        return [FormatterOutput(
            suffix="-captions.srt",
            content="\n".join(blocks),
            media_type="application/x-subrip",
        )]
