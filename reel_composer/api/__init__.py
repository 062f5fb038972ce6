"""ComfyUI image-generation API client and workflow builder."""
