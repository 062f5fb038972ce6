"""Frame plan formatter: per-frame view state as schema-checked JSON.

WHY: An external renderer (or a reviewer) can consume the whole timeline
without re-implementing the timing rules: which segments are visible at
what opacity, and which caption word is current, for every frame.

HOW: Runs the assembler over every frame of the composition and keeps
the compact subset of each view a renderer needs. The document is
validated against the packaged frame_plan schema before it is returned.

RULES:
- One entry per frame, from 0 to total_frames - 1
- Placeholder compositions produce frames with no segments or captions
- Output is validated with jsonschema; a failure raises ValidationError
"""

from __future__ import annotations

import json
from typing import Any, List

import jsonschema

from reel_composer.core.assembler import iter_frames, total_frames
from reel_composer.core.ir import Composition
from reel_composer.core.loader import get_schema
from reel_composer.formatters.base import BaseFormatter, FormatterOutput


class FramePlanFormatter(BaseFormatter):
    """Formatter producing ``-frames.json``."""

    @property
    def name(self) -> str:
        return "Frame Plan JSON"

    def build_plan(self, composition: Composition) -> dict[str, Any]:
        frames: List[dict[str, Any]] = []
        for view in iter_frames(composition, self.fps):
            frames.append({
                "frame": view.frame,
                "time_s": round(view.time_s, 6),
                "segments": [
                    {
                        "id": seg.id,
                        "opacity": round(seg.opacity, 6),
                        "progress": round(seg.progress, 6),
                        "media_kind": seg.media_kind.value,
                    }
                    for seg in view.segments
                ],
                "captions": [
                    {
                        "text": cap.text,
                        "progress": round(cap.progress, 6),
                        "current_word_index": cap.current_word_index,
                    }
                    for cap in view.captions
                ],
            })

        return {
            "composition_id": composition.id,
            "fps": self.fps,
            "total_frames": total_frames(composition, self.fps),
            "placeholder": composition.is_placeholder,
            "frames": frames,
        }

    def format(self, composition: Composition) -> List[FormatterOutput]:
        plan = self.build_plan(composition)
        jsonschema.validate(instance=plan, schema=get_schema("frame_plan"))
        return [FormatterOutput(
            suffix="-frames.json",
            content=json.dumps(plan, indent=2, ensure_ascii=False),
            media_type="application/json",
        )]
