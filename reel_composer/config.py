"""Configuration constants, media suffixes, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Frame rate, canvas size, the image-generation
endpoint, and recognised media suffixes are plain data structures, not
buried in rendering logic, so they can be changed confidently.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level sets and strings with environment overrides. The
load_library_path() function resolves the optional media library seed
file.

RULES:
- All defaults can be overridden via environment variables
- Media suffixes are lowercase and include the leading dot
- COMFYUI_BASE_URL never carries a trailing slash
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Rendering defaults
# ---------------------------------------------------------------------------

DEFAULT_FPS = int(os.getenv("REEL_DEFAULT_FPS", "30"))
DEFAULT_WIDTH = int(os.getenv("REEL_DEFAULT_WIDTH", "1080"))
DEFAULT_HEIGHT = int(os.getenv("REEL_DEFAULT_HEIGHT", "1920"))

DEFAULT_SEGMENT_SECONDS = 3.0
"""Length given to a segment whose end time is missing."""

FADE_RAMP_FRAMES = 10
"""Frames spent fading a segment in and out."""

MAX_DURATION_SECONDS = float(os.getenv("REEL_MAX_DURATION_S", "3600"))
"""Longest composition the loader accepts (end of the last segment or caption)."""

MAX_FRAMES = int(os.getenv("REEL_MAX_FRAMES", "216000"))
"""Upper bound on frames per render (one hour at 60 fps)."""

# ---------------------------------------------------------------------------
# Media suffixes
# ---------------------------------------------------------------------------

VIDEO_SUFFIXES: set[str] = {".mp4", ".mov", ".webm"}
IMAGE_SUFFIXES: set[str] = {".png", ".jpg", ".jpeg", ".webp", ".gif"}

# ---------------------------------------------------------------------------
# Image-generation API (ComfyUI)
# ---------------------------------------------------------------------------

COMFYUI_BASE_URL = os.getenv("COMFYUI_BASE_URL", "http://127.0.0.1:8188").rstrip("/")
COMFYUI_OUTPUT_NODE = os.getenv("COMFYUI_OUTPUT_NODE", "9")
COMFYUI_CHECKPOINT = os.getenv(
    "COMFYUI_CHECKPOINT", "juggernautXL_juggXIByRundiffusion.safetensors"
)
COMFYUI_LORA = os.getenv("COMFYUI_LORA", "")

# ---------------------------------------------------------------------------
# Media library
# ---------------------------------------------------------------------------

REEL_LIBRARY_PATH = os.getenv("REEL_LIBRARY_PATH", "")


def load_library_path() -> Path | None:
    """Return the media library seed file path, or None when unset.

    WHY: The HTTP API serves voices and generated audios from a seed
    file. Deployments without one still start with an empty library.

    RULES:
    - Empty or unset REEL_LIBRARY_PATH returns None
    - Raises FileNotFoundError when the variable names a missing file
    """
    raw = os.getenv("REEL_LIBRARY_PATH", REEL_LIBRARY_PATH).strip()
    if not raw:
        return None
    path = Path(raw).expanduser()
    if not path.is_file():
        raise FileNotFoundError(
            "Media library file not found: {} "
            "(check REEL_LIBRARY_PATH in the .env file).".format(path)
        )
    return path
