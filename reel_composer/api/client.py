"""Async HTTP client for the ComfyUI image-generation API.

WHY: Segment images are generated by a ComfyUI server. The pipeline
needs to check the queue, submit workflow graphs, and find the images a
finished prompt produced. This module keeps the HTTP details behind one
client class so callers (CLI, tests) only deal with typed results.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. ComfyUIClient is an
async context manager: enter it to open the connection pool, exit to
close it. Each endpoint is one method: get_queue → GET /queue,
get_history → GET /history, queue_prompt → POST /prompt.
wait_for_images polls the history until a prompt completes.

RULES:
- Always use the async context manager (async with ComfyUIClient() as client:)
- Non-2xx responses raise ComfyUIAPIError with status code and body
- Transport failures propagate as httpx.HTTPError to the caller
- Polling uses exponential backoff: 2s initial, 1.5x factor, 15s max, 10min timeout
- View URLs are built against the client's base URL
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from urllib.parse import urlencode

import httpx

from reel_composer.api.models import (
    HistoryEntry,
    OutputImage,
    PromptReceipt,
    QueueStatus,
)
from reel_composer.config import COMFYUI_BASE_URL, COMFYUI_OUTPUT_NODE

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_POLL_INITIAL_INTERVAL_S = 2.0
_POLL_BACKOFF_FACTOR = 1.5
_POLL_MAX_INTERVAL_S = 15.0
_POLL_TIMEOUT_S = 10 * 60  # 10 minutes


class ComfyUIAPIError(Exception):
    """Raised when the ComfyUI API returns an error response.

    WHY: Callers need a typed exception to distinguish API errors (bad
    workflow, unknown node) from network errors.

    RULES:
    - Always include status_code and message
    - message is the response body text
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"ComfyUI API error {status_code}: {message}")


class GenerationTimeoutError(TimeoutError):
    """Raised when a prompt does not complete before the polling timeout."""


class ComfyUIClient:
    """Async client for a ComfyUI server.

    RULES:
    - Use as: async with ComfyUIClient() as client: ...
    - base_url defaults to COMFYUI_BASE_URL from config
    - client_id identifies this client's prompts; random when not given
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str | None = None,
        client_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or COMFYUI_BASE_URL).rstrip("/")
        self.client_id = client_id or uuid.uuid4().hex
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ComfyUIClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(60.0, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "ComfyUIClient must be used as an async context manager: "
                "async with ComfyUIClient() as client: ..."
            )
        return self._client

    async def _get_json(self, path: str) -> dict:
        client = self._ensure_client()
        resp = await client.get(path)
        if resp.status_code != 200:
            raise ComfyUIAPIError(resp.status_code, resp.text)
        return resp.json()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def get_queue(self) -> QueueStatus:
        """Fetch the current queue (GET /queue)."""
        data = await self._get_json("/queue")
        status = QueueStatus.from_dict(data)
        logger.debug("Queue: %d running, %d pending", status.running, status.pending)
        return status

    async def get_history(self, prompt_id: str | None = None) -> dict[str, HistoryEntry]:
        """Fetch the generation history (GET /history).

        Args:
            prompt_id: Restrict the history to one prompt (GET /history/{id}).

        Returns:
            Mapping of prompt id to HistoryEntry, in the server's order.
        """
        path = "/history" if prompt_id is None else f"/history/{prompt_id}"
        data = await self._get_json(path)
        return {
            str(pid): HistoryEntry.from_dict(str(pid), entry or {})
            for pid, entry in data.items()
        }

    async def queue_prompt(self, workflow: dict) -> PromptReceipt:
        """Submit a workflow graph for execution (POST /prompt).

        RULES:
        - The graph is wrapped as {"prompt": workflow, "client_id": ...}
        - Returns the receipt holding the new prompt_id
        - Raises ComfyUIAPIError when the server rejects the graph
        """
        client = self._ensure_client()
        body = {"prompt": workflow, "client_id": self.client_id}
        resp = await client.post("/prompt", json=body)
        if resp.status_code != 200:
            raise ComfyUIAPIError(resp.status_code, resp.text)

        receipt = PromptReceipt.from_dict(resp.json())
        logger.info("Queued prompt %s", receipt.prompt_id)
        return receipt

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def image_url(self, image: OutputImage) -> str:
        """Build the /view URL for a saved image."""
        query = urlencode({
            "filename": image.filename,
            "type": image.type,
            "subfolder": image.subfolder,
        })
        return f"{self._base_url}/view?{query}"

    def completed_images(
        self,
        history: dict[str, HistoryEntry],
        node_id: str = COMFYUI_OUTPUT_NODE,
    ) -> dict[str, list[str]]:
        """View URLs of the images saved by ``node_id``, per completed prompt.

        Completed prompts whose output node wrote no images map to an
        empty list; prompts still running are left out.
        """
        return {
            prompt_id: [self.image_url(image) for image in entry.images_for(node_id)]
            for prompt_id, entry in history.items()
            if entry.completed
        }

    async def wait_for_images(
        self,
        prompt_id: str,
        node_id: str = COMFYUI_OUTPUT_NODE,
        timeout_s: float = _POLL_TIMEOUT_S,
        on_status: Callable[[str], None] | None = None,
    ) -> list[str]:
        """Poll the history until ``prompt_id`` completes and return its image URLs.

        HOW: Exponential backoff polling, starting at 2s, growing by 1.5x
        per poll, capped at 15s.

        Raises:
            GenerationTimeoutError: If the prompt is not complete within timeout_s.
        """
        interval = _POLL_INITIAL_INTERVAL_S
        start_time = time.monotonic()

        while True:
            history = await self.get_history(prompt_id)
            entry = history.get(prompt_id)
            if entry is not None and entry.completed:
                urls = [self.image_url(image) for image in entry.images_for(node_id)]
                if on_status:
                    on_status(f"Prompt {prompt_id} complete ({len(urls)} image(s)).")
                return urls

            elapsed = time.monotonic() - start_time
            if elapsed > timeout_s:
                raise GenerationTimeoutError(
                    f"Prompt {prompt_id} did not complete after "
                    f"{elapsed:.0f}s (limit: {timeout_s:.0f}s)"
                )
            if on_status:
                on_status(f"Generating... (elapsed: {int(elapsed)}s)")

            await asyncio.sleep(interval)
            interval = min(interval * _POLL_BACKOFF_FACTOR, _POLL_MAX_INTERVAL_S)
