"""Scene value types: drawable primitives and the ordered, layered scene."""

from dataclasses import dataclass
from math import cos, sin


@dataclass(frozen=True)
class Dot:
    x: float
    y: float
    radius: float
    color: str


@dataclass(frozen=True)
class Edge:
    x1: float
    y1: float
    x2: float
    y2: float
    width: float
    opacity: float
    color: str


@dataclass(frozen=True)
class FinderOrnament:
    """Concentric rings replacing one finder pattern.

    ``ring_radii`` runs outer to inner; the last entry is the solid core.
    ``ring_widths`` holds the stroke width of each ring (0 for the core).
    """

    center_x: float
    center_y: float
    ring_radii: tuple[float, ...]
    ring_widths: tuple[float, ...]
    color: str


@dataclass(frozen=True)
class FrameOrnament:
    """Base for the cosmetic frame layer; geometry is relative to (cx, cy)."""

    cx: float
    cy: float
    radius: float
    color: str


@dataclass(frozen=True)
class FrameArc(FrameOrnament):
    start_angle: float
    sweep: float
    stroke_width: float

    def endpoints(self) -> tuple[tuple[float, float], tuple[float, float]]:
        a0 = self.start_angle
        a1 = self.start_angle + self.sweep
        return (
            (self.cx + self.radius * cos(a0), self.cy + self.radius * sin(a0)),
            (self.cx + self.radius * cos(a1), self.cy + self.radius * sin(a1)),
        )


@dataclass(frozen=True)
class FrameDot(FrameOrnament):
    angle: float
    dot_radius: float

    @property
    def x(self) -> float:
        return self.cx + self.radius * cos(self.angle)

    @property
    def y(self) -> float:
        return self.cy + self.radius * sin(self.angle)


@dataclass(frozen=True)
class FrameRune(FrameOrnament):
    """A cross mark on the outer ring."""

    angle: float
    arm: float
    stroke_width: float

    @property
    def x(self) -> float:
        return self.cx + self.radius * cos(self.angle)

    @property
    def y(self) -> float:
        return self.cy + self.radius * sin(self.angle)


@dataclass(frozen=True)
class LogoOverlay:
    x: float
    y: float
    w: float
    h: float
    image_ref: str
    clip_radius: float


Primitive = Dot | Edge | FinderOrnament | FrameOrnament | LogoOverlay

# Back-to-front layer rank; a valid scene never decreases along its primitives.
LAYER_ORDER = {
    FrameOrnament: 0,
    Edge: 1,
    Dot: 2,
    FinderOrnament: 3,
    LogoOverlay: 4,
}


def layer_of(primitive) -> int:
    for cls, rank in LAYER_ORDER.items():
        if isinstance(primitive, cls):
            return rank
    raise TypeError(f"Not a scene primitive: {type(primitive).__name__}")


@dataclass(frozen=True)
class Scene:
    """Immutable, ordered set of primitives produced by one render pass."""

    width: int
    height: int
    background: str
    primitives: tuple = ()

    def of_type(self, kind: type) -> list:
        return [p for p in self.primitives if isinstance(p, kind)]

    @property
    def dots(self) -> list[Dot]:
        return self.of_type(Dot)

    @property
    def edges(self) -> list[Edge]:
        return self.of_type(Edge)

    @property
    def finders(self) -> list[FinderOrnament]:
        return self.of_type(FinderOrnament)

    @property
    def frame(self) -> list[FrameOrnament]:
        return self.of_type(FrameOrnament)

    @property
    def logo(self) -> LogoOverlay | None:
        logos = self.of_type(LogoOverlay)
        return logos[0] if logos else None

    def counts(self) -> dict[str, int]:
        return {
            "frame": len(self.frame),
            "edges": len(self.edges),
            "dots": len(self.dots),
            "finders": len(self.finders),
            "logo": 1 if self.logo else 0,
        }

    def is_layered(self) -> bool:
        """True if primitives appear in back-to-front layer order."""
        ranks = [layer_of(p) for p in self.primitives]
        return all(a <= b for a, b in zip(ranks, ranks[1:]))
