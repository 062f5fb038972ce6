"""ComfyUI API response dataclasses.

WHY: The ComfyUI HTTP API returns loosely structured JSON for the queue,
the generation history and prompt submissions. Typed dataclasses make the
parts the pipeline relies on explicit while keeping the raw payload for
everything else.

HOW: Each dataclass maps to one ComfyUI JSON object. Factory methods
(from_dict) handle parsing from raw API responses and tolerate missing
optional fields.

RULES:
- QueueStatus keeps the full response in ``raw``; counts are derived
- HistoryEntry.outputs maps node id → list of OutputImage
- An entry without a ``status`` object is treated as not completed
- PromptReceipt.number and node_errors are optional
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class OutputImage:
    """One image written by a SaveImage node.

    RULES:
    - filename is always present
    - subfolder defaults to "" and type to "output"
    """

    filename: str
    subfolder: str = ""
    type: str = "output"

    @classmethod
    def from_dict(cls, data: dict) -> OutputImage:
        return cls(
            filename=data["filename"],
            subfolder=data.get("subfolder") or "",
            type=data.get("type") or "output",
        )


@dataclass
class QueueStatus:
    """Response of GET /queue.

    ComfyUI lists running and pending jobs as arrays; only their lengths
    are interpreted here.
    """

    running: int
    pending: int
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> QueueStatus:
        return cls(
            running=len(data.get("queue_running") or []),
            pending=len(data.get("queue_pending") or []),
            raw=data,
        )


@dataclass
class HistoryEntry:
    """One prompt in the response of GET /history.

    WHY: The history is how callers find out whether a submitted prompt
    has finished and where its images were saved.

    HOW: Reads ``status.completed`` and ``status.status_str`` and parses
    each node's ``images`` list into OutputImage objects. Nodes that wrote
    no images are kept with an empty list.
    """

    prompt_id: str
    completed: bool
    status_str: str | None = None
    outputs: dict[str, list[OutputImage]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, prompt_id: str, data: dict) -> HistoryEntry:
        status = data.get("status") or {}
        outputs: dict[str, list[OutputImage]] = {}
        for node_id, node_output in (data.get("outputs") or {}).items():
            images = (node_output or {}).get("images") or []
            outputs[str(node_id)] = [OutputImage.from_dict(image) for image in images]
        return cls(
            prompt_id=prompt_id,
            completed=bool(status.get("completed", False)),
            status_str=status.get("status_str"),
            outputs=outputs,
        )

    def images_for(self, node_id: str) -> list[OutputImage]:
        return self.outputs.get(str(node_id), [])


@dataclass
class PromptReceipt:
    """Response of POST /prompt."""

    prompt_id: str
    number: int | None = None
    node_errors: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> PromptReceipt:
        return cls(
            prompt_id=data["prompt_id"],
            number=data.get("number"),
            node_errors=data.get("node_errors") or {},
        )
