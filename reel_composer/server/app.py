"""FastAPI application with composition and media library routes.

WHY: Renderers, editors and the web front end need an HTTP API to time
compositions frame by frame, export them, and list the voices and audio
clips a user can put into a reel. FastAPI provides automatic OpenAPI
documentation and request validation.

HOW: One FastAPI app with three route groups. Composition routes load the
request body through core.loader (schema validation, default fallback)
and call the assembler or a formatter. Audio routes resolve the caller
from a bearer API key and query the media library. The library is loaded
at startup from REEL_LIBRARY_PATH and injected with a dependency so tests
can replace it.

RULES:
- Invalid compositions or styles → 422 with the validation message
- Compositions over the duration or frame limit → 422
- Unknown export format → 404
- Audio routes: missing or unknown API key → 401 "User not authenticated"
- Nothing is cached between requests; every frame is recomputed
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated, List, Optional, Tuple

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.responses import Response

from reel_composer import __version__
from reel_composer.config import load_library_path
from reel_composer.core.assembler import assemble_frame, total_frames
from reel_composer.core.ir import CaptionStyle, Composition, CompositionError
from reel_composer.core.loader import load_composition, load_style
from reel_composer.formatters import FORMATTERS
from reel_composer.library.store import (
    DEFAULT_AUDIO_LIMIT,
    AuthenticationError,
    MediaLibrary,
    User,
)
from reel_composer.server.models import (
    ErrorResponse,
    FormatInfo,
    FrameRequest,
    FrameResponse,
    HealthResponse,
    PlanRequest,
    PlanResponse,
    UserAudiosResponse,
    VoicesResponse,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and library setup
# ---------------------------------------------------------------------------

_library = MediaLibrary()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the media library seed file on startup, if one is configured."""
    global _library
    path = load_library_path()
    if path is not None:
        _library = MediaLibrary.from_file(path)
    else:
        logger.warning("REEL_LIBRARY_PATH is not set; media library is empty")
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Reel Composer API",
    description=(
        "REST API for timing short-form video compositions: per-frame segment "
        "fades, caption word highlighting and phrase display, exports to frame "
        "plans and subtitles, and the per-user voice and audio library."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Dependencies and helpers
# ---------------------------------------------------------------------------


def get_library() -> MediaLibrary:
    return _library


def get_current_user(
    library: Annotated[MediaLibrary, Depends(get_library)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> Optional[User]:
    """Resolve the caller from an ``Authorization: Bearer <key>`` header."""
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return library.authenticate(parts[1])


def _load_request(request: PlanRequest) -> Tuple[Composition, CaptionStyle]:
    """Load the composition and style of a request, mapping errors to 422."""
    try:
        composition = load_composition(request.composition)
        style = load_style(request.style)
    except CompositionError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return composition, style


def _plan(composition: Composition, fps: int) -> PlanResponse:
    return PlanResponse(
        composition_id=composition.id,
        fps=fps,
        duration_s=composition.duration_s,
        total_frames=total_frames(composition, fps),
        placeholder=composition.is_placeholder,
    )


# ---------------------------------------------------------------------------
# Endpoints: Compositions
# ---------------------------------------------------------------------------


@app.post(
    "/compositions/frame",
    response_model=FrameResponse,
    tags=["compositions"],
    summary="Evaluate one frame of a composition",
    description=(
        "Returns the visible segments with their fade opacity, the active "
        "captions with per-word highlight state, the story text highlight, "
        "and the phrase shown in the caption box."
    ),
    responses={422: {"model": ErrorResponse, "description": "Invalid composition or style"}},
)
async def evaluate_frame(request: FrameRequest) -> FrameResponse:
    composition, style = _load_request(request)
    view = assemble_frame(composition, request.frame, request.fps, style)
    return FrameResponse(**view.to_dict())


@app.post(
    "/compositions/plan",
    response_model=PlanResponse,
    tags=["compositions"],
    summary="Frame count and duration of a composition",
    description="Validates the composition and reports how many frames a render needs.",
    responses={422: {"model": ErrorResponse, "description": "Invalid composition or style"}},
)
async def plan_composition(request: PlanRequest) -> PlanResponse:
    composition, _ = _load_request(request)
    try:
        return _plan(composition, request.fps)
    except CompositionError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@app.post(
    "/compositions/export/{format_key}",
    tags=["compositions"],
    summary="Export a composition",
    description=(
        "Runs one export formatter over the composition and returns the file "
        "content. See GET /formats for the available keys."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Unknown format"},
        422: {"model": ErrorResponse, "description": "Invalid composition or style"},
    },
)
async def export_composition(format_key: str, request: PlanRequest) -> Response:
    formatter_cls = FORMATTERS.get(format_key)
    if formatter_cls is None:
        available = ", ".join(sorted(FORMATTERS.keys()))
        raise HTTPException(
            status_code=404,
            detail="Unknown format '{}'. Available: {}".format(format_key, available),
        )
    composition, _ = _load_request(request)
    try:
        output = formatter_cls(fps=request.fps).format(composition)[0]
    except CompositionError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    filename = "{}{}".format(composition.id or "composition", output.suffix)
    return Response(
        content=output.content,
        media_type=output.media_type,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(filename)},
    )


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["compositions"],
    summary="List available export formats",
)
async def list_formats() -> List[FormatInfo]:
    return [
        FormatInfo(key=key, name=formatter_cls().name)
        for key, formatter_cls in sorted(FORMATTERS.items())
    ]


# ---------------------------------------------------------------------------
# Endpoints: Audio library
# ---------------------------------------------------------------------------


@app.get(
    "/api/audio/voices",
    response_model=VoicesResponse,
    tags=["audio"],
    summary="List voices available to the caller",
    responses={401: {"model": ErrorResponse, "description": "User not authenticated"}},
)
async def fetch_voices(
    library: Annotated[MediaLibrary, Depends(get_library)],
    user: Annotated[Optional[User], Depends(get_current_user)],
) -> VoicesResponse:
    try:
        voices = library.fetch_voices(user)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    return VoicesResponse(
        systemVoices=[v.to_dict() for v in voices["systemVoices"]],
        userVoices=[v.to_dict() for v in voices["userVoices"]],
    )


@app.get(
    "/api/audio/user-audios",
    response_model=UserAudiosResponse,
    tags=["audio"],
    summary="List the caller's generated audios, newest first",
    responses={401: {"model": ErrorResponse, "description": "User not authenticated"}},
)
async def fetch_user_audios(
    library: Annotated[MediaLibrary, Depends(get_library)],
    user: Annotated[Optional[User], Depends(get_current_user)],
    limit: Annotated[
        int, Query(ge=1, le=100, description="Maximum number of audios to return.")
    ] = DEFAULT_AUDIO_LIMIT,
    offset: Annotated[
        int, Query(ge=0, description="Number of audios to skip.")
    ] = 0,
) -> UserAudiosResponse:
    try:
        audios = library.fetch_user_audios(user, limit=limit, offset=offset)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    return UserAudiosResponse(userAudios=[a.to_dict() for a in audios])


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the reel-api console script."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
