"""Drawing surface and rendering context.

The engine draws through the RenderContext protocol, a small subset of an
HTML canvas 2D context. DisplayListCanvas implements it by recording each
call as a plain dict, which the host streams to browser clients that replay
the list onto a real canvas.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, Sequence

Point = tuple[float, float]
Command = dict[str, Any]


@dataclass
class DrawingSurface:
    """Pixel extents of the area the engine draws into.

    Attributes:
        min_extent: Both extents must stay strictly above this. The engine
            raises it to its arena margin on attach.
    """

    width: float
    height: float
    min_extent: float = 0.0

    def __post_init__(self) -> None:
        self._validate(self.width, self.height)

    @property
    def center(self) -> Point:
        return (self.width / 2.0, self.height / 2.0)

    def resize(self, width: float, height: float) -> None:
        """Change the surface extents.

        Raises:
            ValueError: If either extent is not finite or not above
                min_extent. The surface keeps its previous size.
        """
        self._validate(width, height)
        self.width = width
        self.height = height

    def _validate(self, width: float, height: float) -> None:
        for extent in (width, height):
            if not math.isfinite(extent) or extent <= max(self.min_extent, 0.0):
                raise ValueError(
                    f"Surface extents must be finite and above {self.min_extent}, got {width}x{height}"
                )


class RenderContext(Protocol):
    """Drawing operations the engine needs."""

    def begin_frame(self, width: float, height: float) -> None:
        """Start a new frame and clear the whole surface."""
        ...

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str, alpha: float = 1.0) -> None: ...

    def stroke_rect(
        self, x: float, y: float, w: float, h: float, color: str, line_width: float = 1.0, alpha: float = 1.0
    ) -> None: ...

    def fill_circle(self, x: float, y: float, radius: float, color: str, alpha: float = 1.0) -> None: ...

    def stroke_circle(
        self, x: float, y: float, radius: float, color: str, line_width: float = 1.0, alpha: float = 1.0
    ) -> None: ...

    def fill_polygon(self, points: Sequence[Point], color: str, alpha: float = 1.0) -> None: ...

    def stroke_polygon(
        self, points: Sequence[Point], color: str, line_width: float = 1.0, alpha: float = 1.0
    ) -> None: ...

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        color: str,
        font: str = "12px sans-serif",
        align: str = "left",
        alpha: float = 1.0,
    ) -> None: ...

    def end_frame(self) -> None:
        """Finish the frame started by begin_frame()."""
        ...


FrameListener = Callable[[int, list[Command]], None]


class DisplayListCanvas:
    """RenderContext that records draw calls into a per-frame display list.

    Attributes:
        frame: Number of frames completed so far.
        last_frame: Commands of the most recently completed frame.
    """

    def __init__(self, on_frame: Optional[FrameListener] = None) -> None:
        """Initialize the canvas.

        Args:
            on_frame: Called with (frame number, commands) each time a frame
                is completed via end_frame().
        """
        self.on_frame = on_frame
        self.frame = 0
        self.last_frame: list[Command] = []
        self._commands: list[Command] = []
        self._in_frame = False

    def _record(self, op: str, **params: Any) -> None:
        params["op"] = op
        self._commands.append(params)

    def begin_frame(self, width: float, height: float) -> None:
        self._commands = []
        self._in_frame = True
        self._record("clear", width=width, height=height)

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str, alpha: float = 1.0) -> None:
        self._record("fill_rect", x=x, y=y, w=w, h=h, color=color, alpha=alpha)

    def stroke_rect(
        self, x: float, y: float, w: float, h: float, color: str, line_width: float = 1.0, alpha: float = 1.0
    ) -> None:
        self._record("stroke_rect", x=x, y=y, w=w, h=h, color=color, line_width=line_width, alpha=alpha)

    def fill_circle(self, x: float, y: float, radius: float, color: str, alpha: float = 1.0) -> None:
        self._record("fill_circle", x=x, y=y, r=radius, color=color, alpha=alpha)

    def stroke_circle(
        self, x: float, y: float, radius: float, color: str, line_width: float = 1.0, alpha: float = 1.0
    ) -> None:
        self._record("stroke_circle", x=x, y=y, r=radius, color=color, line_width=line_width, alpha=alpha)

    def fill_polygon(self, points: Sequence[Point], color: str, alpha: float = 1.0) -> None:
        self._record("fill_polygon", points=[list(p) for p in points], color=color, alpha=alpha)

    def stroke_polygon(
        self, points: Sequence[Point], color: str, line_width: float = 1.0, alpha: float = 1.0
    ) -> None:
        self._record(
            "stroke_polygon",
            points=[list(p) for p in points],
            color=color,
            line_width=line_width,
            alpha=alpha,
        )

    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        color: str,
        font: str = "12px sans-serif",
        align: str = "left",
        alpha: float = 1.0,
    ) -> None:
        self._record("fill_text", text=text, x=x, y=y, color=color, font=font, align=align, alpha=alpha)

    def end_frame(self) -> None:
        if not self._in_frame:
            return
        self._in_frame = False
        self.frame += 1
        self.last_frame = self._commands
        self._commands = []
        if self.on_frame is not None:
            self.on_frame(self.frame, self.last_frame)
