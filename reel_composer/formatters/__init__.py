"""Export formatter registry.

WHY: The CLI and HTTP layers need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new exports:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["frame_plan"](fps=30)``.

RULES:
- Keys are snake_case identifiers (used in CLI flags)
- Values are BaseFormatter subclasses (not instances)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from reel_composer.formatters.frame_plan import FramePlanFormatter
from reel_composer.formatters.srt_captions import SRTCaptionFormatter
from reel_composer.formatters.word_timings import WordTimingsFormatter

if TYPE_CHECKING:
    from reel_composer.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "frame_plan": FramePlanFormatter,
    "srt_captions": SRTCaptionFormatter,
    "word_timings": WordTimingsFormatter,
}
