"""Text-to-image workflow graph for ComfyUI.

WHY: ComfyUI executes a node graph posted as JSON. The pipeline always
submits the same shape of graph (checkpoint, optional LoRA, prompt
encoders, sampler, decoder, save node) and varies only a handful of
values, so the graph is built here instead of being kept as a static
file.

HOW: build_text_to_image_workflow() returns a plain dict keyed by node
id. Links between nodes are ``[source_node_id, output_index]`` pairs, as
ComfyUI expects.

RULES:
- The SaveImage node is always node "9" (COMFYUI_OUTPUT_NODE)
- Without a LoRA, the sampler and encoders read the checkpoint directly
- seed defaults to a random 48-bit integer
- width and height must be positive multiples of 8
"""

from __future__ import annotations

import random
from typing import Any, Optional

from reel_composer.config import COMFYUI_CHECKPOINT, COMFYUI_LORA, COMFYUI_OUTPUT_NODE

_LORA_NODE = "10"
_CHECKPOINT_NODE = "4"


def build_text_to_image_workflow(
    prompt_text: str,
    negative_text: str = "",
    *,
    seed: Optional[int] = None,
    steps: int = 25,
    cfg: float = 4.0,
    width: int = 1024,
    height: int = 1024,
    checkpoint: Optional[str] = None,
    lora: Optional[str] = None,
    lora_strength: float = 1.0,
    filename_prefix: str = "ComfyUI",
) -> dict[str, Any]:
    """Build the node graph for one text-to-image generation.

    Args:
        prompt_text: Positive prompt.
        negative_text: Negative prompt (may be empty).
        seed: Sampler seed; random when None.
        steps: Sampler steps.
        cfg: Classifier-free guidance scale.
        width: Image width in pixels.
        height: Image height in pixels.
        checkpoint: Checkpoint file name; defaults to COMFYUI_CHECKPOINT.
        lora: Optional LoRA file name; defaults to COMFYUI_LORA.
        lora_strength: LoRA strength applied to model and clip.
        filename_prefix: Prefix of the saved image files.

    Returns:
        The workflow dict to send as the ``prompt`` field of POST /prompt.
    """
    if not prompt_text or not prompt_text.strip():
        raise ValueError("prompt_text must not be empty")
    for name, value in (("width", width), ("height", height)):
        if value <= 0 or value % 8:
            raise ValueError("{} must be a positive multiple of 8, got {}".format(name, value))
    if steps <= 0:
        raise ValueError("steps must be positive")

    lora = COMFYUI_LORA if lora is None else lora
    model_source = _LORA_NODE if lora else _CHECKPOINT_NODE

    workflow: dict[str, Any] = {
        "3": {
            "class_type": "KSampler",
            "inputs": {
                "seed": seed if seed is not None else random.getrandbits(48),
                "steps": steps,
                "cfg": cfg,
                "sampler_name": "dpmpp_2m",
                "scheduler": "karras",
                "denoise": 1.0,
                "model": [model_source, 0],
                "positive": ["6", 0],
                "negative": ["7", 0],
                "latent_image": ["5", 0],
            },
        },
        _CHECKPOINT_NODE: {
            "class_type": "CheckpointLoaderSimple",
            "inputs": {"ckpt_name": checkpoint or COMFYUI_CHECKPOINT},
        },
        "5": {
            "class_type": "EmptyLatentImage",
            "inputs": {"width": width, "height": height, "batch_size": 1},
        },
        "6": {
            "class_type": "CLIPTextEncode",
            "inputs": {"text": prompt_text, "clip": [model_source, 1]},
        },
        "7": {
            "class_type": "CLIPTextEncode",
            "inputs": {"text": negative_text, "clip": [model_source, 1]},
        },
        "8": {
            "class_type": "VAEDecode",
            "inputs": {"samples": ["3", 0], "vae": [_CHECKPOINT_NODE, 2]},
        },
        COMFYUI_OUTPUT_NODE: {
            "class_type": "SaveImage",
            "inputs": {"filename_prefix": filename_prefix, "images": ["8", 0]},
        },
    }

    if lora:
        workflow[_LORA_NODE] = {
            "class_type": "LoraLoader",
            "inputs": {
                "lora_name": lora,
                "strength_model": lora_strength,
                "strength_clip": lora_strength,
                "model": [_CHECKPOINT_NODE, 0],
                "clip": [_CHECKPOINT_NODE, 1],
            },
        }

    return workflow
