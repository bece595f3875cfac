"""
Display sinks for annotated frames.
"""

from __future__ import annotations

from typing import List, Optional

from web.state import FrameStore
from .base import DisplaySink, MultiDisplay, NullDisplay
from .web import WebDisplay
from .window import WindowDisplay


def create_display(backend: str, store: Optional[FrameStore] = None) -> DisplaySink:
    """
    Factory: build the display sink for a config backend name.

    A FrameStore, when given, always receives frames so the web preview works
    alongside a window.
    """
    sinks: List[DisplaySink] = []
    if backend == "window":
        sinks.append(WindowDisplay())
    elif backend not in ("web", "none"):
        raise ValueError(f"Unknown display backend: {backend}")

    if store is not None:
        sinks.append(WebDisplay(store))

    if not sinks:
        return NullDisplay()
    if len(sinks) == 1:
        return sinks[0]
    return MultiDisplay(sinks)


__all__ = [
    "DisplaySink",
    "MultiDisplay",
    "NullDisplay",
    "WebDisplay",
    "WindowDisplay",
    "create_display",
]
