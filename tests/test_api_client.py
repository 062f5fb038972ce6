"""Tests for the ComfyUI client, its response models and the workflow graph.

WHY: The client is the only code that talks to the image-generation
server. These tests pin the request shapes (paths, prompt wrapping) and
the parsing of queue, history and receipt payloads.

HOW: httpx.MockTransport stands in for the server; coroutines are driven
with asyncio.run so no async test plugin is needed. Polling sleeps are
patched out.

RULES:
- No test opens a real network connection
- History payloads follow ComfyUI's {prompt_id: {status, outputs}} shape
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from reel_composer.api.client import (
    ComfyUIAPIError,
    ComfyUIClient,
    GenerationTimeoutError,
)
from reel_composer.api.models import HistoryEntry, OutputImage, QueueStatus
from reel_composer.api.workflow import build_text_to_image_workflow

BASE_URL = "http://comfy.test:8188"

HISTORY = {
    "abc": {
        "status": {"status_str": "success", "completed": True},
        "outputs": {
            "9": {"images": [
                {"filename": "ComfyUI_00001_.png", "subfolder": "", "type": "output"},
                {"filename": "ComfyUI_00002_.png", "subfolder": "reels", "type": "output"},
            ]},
        },
    },
    "def": {
        "status": {"status_str": "success", "completed": True},
        "outputs": {},
    },
    "ghi": {
        "status": {"completed": False},
        "outputs": {},
    },
}


def _run(coro):
    return asyncio.run(coro)


def _client(handler):
    return ComfyUIClient(base_url=BASE_URL, client_id="test-client",
                         transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestModels:
    def test_queue_status_counts(self):
        status = QueueStatus.from_dict({"queue_running": [[0, "a"]], "queue_pending": []})
        assert status.running == 1
        assert status.pending == 0
        assert "queue_running" in status.raw

    def test_history_entry(self):
        entry = HistoryEntry.from_dict("abc", HISTORY["abc"])
        assert entry.completed is True
        assert entry.status_str == "success"
        assert [i.filename for i in entry.images_for("9")] == [
            "ComfyUI_00001_.png", "ComfyUI_00002_.png",
        ]
        assert entry.images_for(9)[1].subfolder == "reels"

    def test_history_entry_without_status(self):
        entry = HistoryEntry.from_dict("x", {"outputs": {"9": {"text": ["no images"]}}})
        assert entry.completed is False
        assert entry.images_for("9") == []


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


class TestEndpoints:
    def test_get_queue(self):
        def handler(request):
            assert request.method == "GET"
            assert request.url.path == "/queue"
            return httpx.Response(200, json={"queue_running": [], "queue_pending": [[1], [2]]})

        async def go():
            async with _client(handler) as client:
                return await client.get_queue()

        assert _run(go()).pending == 2

    def test_get_history(self):
        def handler(request):
            assert request.url.path == "/history"
            return httpx.Response(200, json=HISTORY)

        async def go():
            async with _client(handler) as client:
                return await client.get_history()

        history = _run(go())
        assert list(history) == ["abc", "def", "ghi"]
        assert history["ghi"].completed is False

    def test_get_history_for_one_prompt(self):
        def handler(request):
            assert request.url.path == "/history/abc"
            return httpx.Response(200, json={"abc": HISTORY["abc"]})

        async def go():
            async with _client(handler) as client:
                return await client.get_history("abc")

        assert list(_run(go())) == ["abc"]

    def test_queue_prompt_wraps_workflow(self):
        seen = {}

        def handler(request):
            assert request.method == "POST"
            assert request.url.path == "/prompt"
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"prompt_id": "p-1", "number": 4, "node_errors": {}})

        workflow = build_text_to_image_workflow("a red fox", seed=1)

        async def go():
            async with _client(handler) as client:
                return await client.queue_prompt(workflow)

        receipt = _run(go())
        assert receipt.prompt_id == "p-1"
        assert receipt.number == 4
        assert seen["prompt"] == workflow
        assert seen["client_id"] == "test-client"

    def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(400, text='{"error": "invalid prompt"}')

        async def go():
            async with _client(handler) as client:
                await client.queue_prompt({})

        with pytest.raises(ComfyUIAPIError) as exc_info:
            _run(go())
        assert exc_info.value.status_code == 400
        assert "invalid prompt" in exc_info.value.message

    def test_transport_errors_propagate(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def go():
            async with _client(handler) as client:
                await client.get_queue()

        with pytest.raises(httpx.HTTPError):
            _run(go())

    def test_requires_context_manager(self):
        client = ComfyUIClient(base_url=BASE_URL)
        with pytest.raises(RuntimeError):
            _run(client.get_queue())


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class TestResults:
    def test_image_url(self):
        client = ComfyUIClient(base_url=BASE_URL + "/")
        url = client.image_url(OutputImage(filename="ComfyUI_00001_.png"))
        assert url == BASE_URL + "/view?filename=ComfyUI_00001_.png&type=output&subfolder="

    def test_completed_images(self):
        client = ComfyUIClient(base_url=BASE_URL)
        history = {pid: HistoryEntry.from_dict(pid, data) for pid, data in HISTORY.items()}
        completed = client.completed_images(history)
        assert set(completed) == {"abc", "def"}
        assert len(completed["abc"]) == 2
        assert completed["abc"][1].endswith("subfolder=reels")
        assert completed["def"] == []

    def test_wait_for_images_polls_until_complete(self):
        responses = [
            {"abc": HISTORY["ghi"]},
            {},
            {"abc": HISTORY["abc"]},
        ]
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(200, json=responses[len(calls) - 1])

        async def go():
            async with _client(handler) as client:
                return await client.wait_for_images("abc")

        with patch("reel_composer.api.client.asyncio.sleep", new=AsyncMock()) as sleep:
            urls = _run(go())

        assert len(urls) == 2
        assert calls == ["/history/abc"] * 3
        intervals = [call.args[0] for call in sleep.await_args_list]
        assert intervals == pytest.approx([2.0, 3.0])

    def test_wait_for_images_times_out(self):
        def handler(request):
            return httpx.Response(200, json={"abc": HISTORY["ghi"]})

        async def go():
            async with _client(handler) as client:
                await client.wait_for_images("abc", timeout_s=1)

        with patch("reel_composer.api.client.time") as fake_time:
            fake_time.monotonic.side_effect = [0.0, 5.0]
            with pytest.raises(GenerationTimeoutError):
                _run(go())


# ---------------------------------------------------------------------------
# Workflow graph
# ---------------------------------------------------------------------------


class TestWorkflow:
    def test_graph_without_lora(self):
        workflow = build_text_to_image_workflow("a red fox", seed=7, lora="")
        assert workflow["9"]["class_type"] == "SaveImage"
        assert workflow["9"]["inputs"]["images"] == ["8", 0]
        assert workflow["6"]["inputs"]["text"] == "a red fox"
        assert workflow["3"]["inputs"]["seed"] == 7
        assert workflow["3"]["inputs"]["model"] == ["4", 0]
        assert "10" not in workflow

    def test_graph_with_lora(self):
        workflow = build_text_to_image_workflow("fox", lora="style.safetensors", lora_strength=1.5)
        assert workflow["10"]["class_type"] == "LoraLoader"
        assert workflow["10"]["inputs"]["strength_model"] == 1.5
        assert workflow["3"]["inputs"]["model"] == ["10", 0]
        assert workflow["7"]["inputs"]["clip"] == ["10", 1]

    def test_size_and_seed(self):
        workflow = build_text_to_image_workflow("fox", width=768, height=1344)
        assert workflow["5"]["inputs"]["width"] == 768
        assert workflow["5"]["inputs"]["height"] == 1344
        assert isinstance(workflow["3"]["inputs"]["seed"], int)

    @pytest.mark.parametrize("kwargs", [
        {"prompt_text": ""},
        {"prompt_text": "fox", "width": 1001},
        {"prompt_text": "fox", "height": 1020},
        {"prompt_text": "fox", "steps": 0},
    ])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            build_text_to_image_workflow(**kwargs)
