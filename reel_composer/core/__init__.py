"""Core timing modules.

WHY: The core package holds the pure, per-frame logic: the IR, the
timeline resolver, caption highlight state, phrase grouping, and the
frame assembler. Everything else in the package is glue around it.

HOW: ir.py defines the data structures, loader.py validates and builds
them, timeline.py and highlight.py resolve one entity at a time, and
assembler.py combines them into a per-frame view.

RULES:
- No I/O except in loader.py
- No state retained between calls
"""
