"""Abstract base formatter and output container.

WHY: Every export consumes the same Composition but produces different
file content. This base class enforces a consistent interface so the CLI
and HTTP layers can work with any formatter generically.

HOW: BaseFormatter is an ABC with a ``name`` property and a ``format()``
method. FormatterOutput is a plain dataclass that bundles a file suffix
with its content (string or bytes) and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list; most formatters return one item
- ``suffix`` starts with a hyphen, e.g. ``"-frames.json"``
- The caller is responsible for prepending the composition file stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from reel_composer.config import DEFAULT_FPS
from reel_composer.core.ir import Composition


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-frames.json"`` → ``"story-frames.json"``.
        content: The file content as a string or bytes.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: str | bytes
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all export formatters.

    To add a new export:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    def __init__(self, fps: int = DEFAULT_FPS) -> None:
        self.fps = fps

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Frame Plan JSON'."""

    @abstractmethod
    def format(self, composition: Composition) -> list[FormatterOutput]:
        """Convert the composition into one or more output files."""
