"""Per-user media library (voices and generated audios)."""
