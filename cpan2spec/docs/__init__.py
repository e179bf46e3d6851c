"""Documentation lookup and prose extraction."""

from __future__ import annotations

from .locator import doc_candidates, locate_documentation
from .pod import render_pod
from .prose import resolve_prose, wrap_description

__all__ = [
    "doc_candidates",
    "locate_documentation",
    "render_pod",
    "resolve_prose",
    "wrap_description",
]
