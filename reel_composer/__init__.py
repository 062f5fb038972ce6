"""Reel Composer: timing core and glue for a text-to-video pipeline.

WHY: A generated short video is a composition of timed segments (images or
clips) and timed captions. Rendering templates evaluate that composition once
per frame and need to know, for the current frame, which segment is visible,
how far through it we are, and which caption words are highlighted. This
package owns that timing logic and the glue around it: an image-generation
API client, a media library boundary, export formatters, a CLI, and an HTTP
API.

HOW: Four layers. Load (validate composition JSON into the IR), resolve
(pure timeline and highlight functions), assemble (per-frame view state),
export (pluggable formatters). Each layer is independently testable.

RULES:
- The core is pure: every frame is recomputed from the authoritative time value
- Structural input errors are raised once, at the loading boundary
- Edge-case numeric input never raises inside the per-frame functions
"""

__version__ = "0.1.0"
