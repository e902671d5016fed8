"""Rendering — drawing surface, rendering context and frame painter."""

from rps_arena.render.canvas import DisplayListCanvas, DrawingSurface, RenderContext
from rps_arena.render.painter import paint_frame

__all__ = ["DisplayListCanvas", "DrawingSurface", "RenderContext", "paint_frame"]
