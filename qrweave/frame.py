"""Decorative frame: three concentric ornament rings driven by one complexity knob.

Ring 1 is a broken circle of arcs, ring 2 a circle of small dots, ring 3 eight
cross-shaped runes that only appear once complexity passes ``RUNE_THRESHOLD``.
The frame carries no QR data and is drawn behind everything else.
"""

import math

from qrweave.errors import ConfigError
from qrweave.logging import audit, get_logger, trace
from qrweave.scene import FrameArc, FrameDot, FrameOrnament, FrameRune

log = get_logger("frame")

# Ring radii as fractions of half the drawing size
ARC_RING = 0.65
DOT_RING = 0.80
RUNE_RING = 0.95

# Share of each dash slice covered by its arc
ARC_FILL = 0.7

RUNE_THRESHOLD = 0.3
RUNE_COUNT = 8

# Sizes as fractions of the full drawing size
ARC_STROKE_RATIO = 0.006
FRAME_DOT_RATIO = 0.004
RUNE_ARM_RATIO = 0.012
RUNE_STROKE_RATIO = 0.003


def dash_count(complexity: float) -> int:
    return math.floor(12 + complexity * 24)


def dot_count(complexity: float) -> int:
    return math.floor(20 + complexity * 40)


def has_runes(complexity: float) -> bool:
    return complexity > RUNE_THRESHOLD


def _arc_ring(cx: float, cy: float, radius: float, count: int, stroke: float, color: str) -> list[FrameArc]:
    slice_angle = 2 * math.pi / count
    return [
        FrameArc(
            cx=cx, cy=cy, radius=radius, color=color,
            start_angle=i * slice_angle,
            sweep=slice_angle * ARC_FILL,
            stroke_width=stroke,
        )
        for i in range(1, count, 2)
    ]


def _dot_ring(cx: float, cy: float, radius: float, count: int, dot_radius: float, color: str) -> list[FrameDot]:
    step = 2 * math.pi / count
    return [
        FrameDot(cx=cx, cy=cy, radius=radius, color=color, angle=k * step, dot_radius=dot_radius)
        for k in range(count)
    ]


def _rune_ring(cx: float, cy: float, radius: float, arm: float, stroke: float, color: str) -> list[FrameRune]:
    step = 2 * math.pi / RUNE_COUNT
    return [
        FrameRune(cx=cx, cy=cy, radius=radius, color=color, angle=k * step, arm=arm, stroke_width=stroke)
        for k in range(RUNE_COUNT)
    ]


@trace
def render_frame(
    size: float,
    color: str,
    complexity: float,
    show_frame: bool = True,
) -> tuple[FrameOrnament, ...]:
    """Build the frame layer for a square drawing of side ``size``.

    Returns an empty tuple when ``show_frame`` is false.
    """
    if not 0.0 <= complexity <= 1.0:
        raise ConfigError(f"mandala_complexity must be within [0, 1], got {complexity}")
    if not show_frame:
        return ()

    half = size / 2
    cx = cy = half

    ornaments: list[FrameOrnament] = []
    ornaments += _arc_ring(cx, cy, half * ARC_RING, dash_count(complexity), size * ARC_STROKE_RATIO, color)
    ornaments += _dot_ring(cx, cy, half * DOT_RING, dot_count(complexity), size * FRAME_DOT_RATIO, color)
    if has_runes(complexity):
        ornaments += _rune_ring(cx, cy, half * RUNE_RING, size * RUNE_ARM_RATIO, size * RUNE_STROKE_RATIO, color)

    audit("frame.rendered", logger=log,
          complexity=complexity, dashes=dash_count(complexity),
          dots=dot_count(complexity), runes=has_runes(complexity),
          ornaments=len(ornaments))
    return tuple(ornaments)
