"""Text output for template loading and expansion diagnostics."""

from weekplan.output.debug_generator import DebugGenerator

__all__ = [
    "DebugGenerator",
]
