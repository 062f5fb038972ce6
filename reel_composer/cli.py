"""Command-line interface for Reel Composer.

WHY: Operators need single-shot scripts to check the image-generation
server, submit a prompt, collect finished images, and turn a composition
file into export files without starting the HTTP API.

HOW: Uses argparse subcommands. The three ComfyUI commands (queue,
history, prompt) run the async client via asyncio.run(). The plan
command loads a composition JSON file, runs the selected formatters and
saves their output next to the input (or to --output-dir).

RULES:
- Results go to stdout; status and errors go to stderr
- Any failure prints "Error: ..." and exits with status 1
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-frames-2.json)
- Python 3.9+ compatible (no match/case)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from reel_composer.api.client import (
    ComfyUIAPIError,
    ComfyUIClient,
    GenerationTimeoutError,
)
from reel_composer.api.workflow import build_text_to_image_workflow
from reel_composer.config import COMFYUI_OUTPUT_NODE, DEFAULT_FPS
from reel_composer.core.assembler import total_frames
from reel_composer.core.ir import CompositionError
from reel_composer.core.loader import load_composition_file
from reel_composer.formatters import FORMATTERS
from reel_composer.formatters.base import FormatterOutput


def _status(msg: str) -> None:
    """Print a status message to stderr.

    RULES:
    - All status messages go to stderr
    - Always flush after writing
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr, flush=True)
    sys.exit(1)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding numeric suffix on conflict.

    RULES:
    - First attempt: {stem}{suffix} (e.g. story-frames.json)
    - Conflict: split suffix at last dot, insert counter before extension
      (e.g. story-frames-2.json)
    - Counter starts at 2 and increments

    Args:
        stem: Source filename stem (without extension).
        suffix: Formatter's suffix (e.g. "-frames.json").
        output_dir: Directory to save the output file.

    Returns:
        A Path that does not yet exist.
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(
    output: FormatterOutput,
    stem: str,
    output_dir: Path,
) -> Path:
    """Save a single formatter output to disk and return its path."""
    path = _resolve_output_path(stem, output.suffix, output_dir)

    if isinstance(output.content, bytes):
        path.write_bytes(output.content)
    else:
        path.write_text(output.content, encoding="utf-8")

    return path


# ---------------------------------------------------------------------------
# ComfyUI commands
# ---------------------------------------------------------------------------


async def _show_queue(args: argparse.Namespace) -> None:
    _status("Checking queue status...")
    async with ComfyUIClient(base_url=args.base_url) as client:
        queue = await client.get_queue()
    print("Running: {}".format(queue.running))
    print("Pending: {}".format(queue.pending))


async def _show_history(args: argparse.Namespace) -> None:
    _status("Fetching generated images...")
    async with ComfyUIClient(base_url=args.base_url) as client:
        history = await client.get_history(args.prompt_id)
        completed = client.completed_images(history, node_id=args.node)

    if not completed:
        _status("No completed prompts.")
    for prompt_id, urls in completed.items():
        print("Prompt {} is ready.".format(prompt_id))
        if not urls:
            print("  No image found for this prompt.")
        for index, url in enumerate(urls, start=1):
            print("  Image {}: {}".format(index, url))


async def _submit_prompt(args: argparse.Namespace) -> None:
    workflow = build_text_to_image_workflow(
        args.text,
        args.negative,
        seed=args.seed,
        steps=args.steps,
        cfg=args.cfg,
        width=args.width,
        height=args.height,
    )
    _status("Sending prompt to ComfyUI...")
    async with ComfyUIClient(base_url=args.base_url) as client:
        receipt = await client.queue_prompt(workflow)
        print("Prompt id: {}".format(receipt.prompt_id))
        if receipt.number is not None:
            print("Queue position: {}".format(receipt.number))

        if args.wait:
            urls = await client.wait_for_images(
                receipt.prompt_id, node_id=COMFYUI_OUTPUT_NODE, on_status=_status
            )
            for index, url in enumerate(urls, start=1):
                print("  Image {}: {}".format(index, url))


# ---------------------------------------------------------------------------
# Composition commands
# ---------------------------------------------------------------------------


def _run_plan(args: argparse.Namespace) -> None:
    input_path = Path(args.composition).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    if args.formats:
        format_keys = [f.strip() for f in args.formats.split(",") if f.strip()]
        for key in format_keys:
            if key not in FORMATTERS:
                available = ", ".join(sorted(FORMATTERS.keys()))
                _fail("Unknown format '{}'. Available formats: {}".format(key, available))
    else:
        format_keys = list(FORMATTERS.keys())

    composition = load_composition_file(input_path)
    _status("Loaded composition '{}': {} segments, {} captions, {} frames at {} fps".format(
        composition.id,
        len(composition.segments),
        len(composition.captions),
        total_frames(composition, args.fps),
        args.fps,
    ))

    saved_files: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key](fps=args.fps)
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(composition):
            saved_files.append(_save_output(output, input_path.stem, output_dir))

    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))
    for path in saved_files:
        print(path)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Subcommands: queue, history, prompt, plan
    - --base-url applies to the ComfyUI commands
    """
    parser = argparse.ArgumentParser(
        prog="reel_composer",
        description="Generate images with ComfyUI and export short-form video "
                    "compositions (frame plans, SRT captions, word timings).",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="ComfyUI server URL (default: COMFYUI_BASE_URL from .env).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("queue", help="Show the ComfyUI queue status.")

    history = sub.add_parser("history", help="List images of completed prompts.")
    history.add_argument(
        "--node",
        default=COMFYUI_OUTPUT_NODE,
        help="Output node id that saves the images (default: %(default)s).",
    )
    history.add_argument(
        "--prompt-id",
        default=None,
        help="Only show this prompt.",
    )

    prompt = sub.add_parser("prompt", help="Submit a text-to-image prompt.")
    prompt.add_argument("text", help="Positive prompt text.")
    prompt.add_argument("--negative", default="", help="Negative prompt text.")
    prompt.add_argument("--seed", type=int, default=None, help="Sampler seed (default: random).")
    prompt.add_argument("--steps", type=int, default=25, help="Sampler steps (default: %(default)s).")
    prompt.add_argument("--cfg", type=float, default=4.0, help="Guidance scale (default: %(default)s).")
    prompt.add_argument("--width", type=int, default=1024, help="Image width (default: %(default)s).")
    prompt.add_argument("--height", type=int, default=1024, help="Image height (default: %(default)s).")
    prompt.add_argument(
        "--wait",
        action="store_true",
        help="Poll the history until the images are saved and print their URLs.",
    )

    plan = sub.add_parser("plan", help="Export a composition JSON file.")
    plan.add_argument("composition", help="Path to the composition JSON file.")
    plan.add_argument(
        "--fps",
        type=int,
        default=DEFAULT_FPS,
        help="Frames per second (default: %(default)s).",
    )
    plan.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )
    plan.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as the composition file).",
    )

    return parser


_ASYNC_COMMANDS = {
    "queue": _show_queue,
    "history": _show_history,
    "prompt": _submit_prompt,
}


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "plan":
            if args.fps <= 0:
                _fail("--fps must be a positive integer")
            _run_plan(args)
        else:
            asyncio.run(_ASYNC_COMMANDS[args.command](args))
    except ComfyUIAPIError as e:
        _fail(str(e))
    except GenerationTimeoutError as e:
        _fail(str(e))
    except httpx.HTTPError as e:
        _fail("Could not reach ComfyUI: {}".format(e))
    except (CompositionError, ValueError) as e:
        _fail(str(e))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)


if __name__ == "__main__":
    main()
