"""Export: serialise a Scene to SVG markup and rasterise it to pixels.

The SVG is self-contained: its first element is an opaque full-canvas
rectangle in the background colour, logos are referenced by the URI stored in
the scene (data URIs from ``qrweave.logo``), and only the scene's semantic
colours are used. Rasterisation decodes that SVG with cairosvg and reads the
pixels back with Pillow.
"""

import asyncio
import io
import math
import os
import tempfile
import xml.etree.ElementTree as ET
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from qrweave.errors import ExportError, RasterError
from qrweave.logging import audit, get_logger, trace
from qrweave.scene import (
    Dot,
    Edge,
    FinderOrnament,
    FrameArc,
    FrameDot,
    FrameRune,
    LogoOverlay,
    Scene,
)

log = get_logger("export")

SVG_NS = "http://www.w3.org/2000/svg"
LOGO_CLIP_ID = "logo-clip"

FORMATS = ("vector", "raster")
_SUFFIX_FORMATS = {".svg": "vector", ".png": "raster"}


def _num(value: float) -> str:
    """Compact, deterministic decimal rendering (3 places, no trailing zeros)."""
    s = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if s in ("", "-0") else s


# ---------------------------------------------------------------------------
# Primitive -> attributes
# ---------------------------------------------------------------------------

def _dot_attrs(p: Dot) -> dict[str, str]:
    return {
        "data-kind": "dot",
        "cx": _num(p.x), "cy": _num(p.y), "r": _num(p.radius),
        "fill": p.color,
    }


def _edge_attrs(p: Edge) -> dict[str, str]:
    return {
        "data-kind": "edge",
        "x1": _num(p.x1), "y1": _num(p.y1), "x2": _num(p.x2), "y2": _num(p.y2),
        "stroke": p.color,
        "stroke-width": _num(p.width),
        "stroke-opacity": _num(p.opacity),
        "stroke-linecap": "round",
    }


def _finder_attrs(p: FinderOrnament) -> dict[str, str]:
    return {
        "data-kind": "finder",
        "data-cx": _num(p.center_x),
        "data-cy": _num(p.center_y),
        "data-rings": " ".join(_num(r) for r in p.ring_radii),
        "data-widths": " ".join(_num(w) for w in p.ring_widths),
        "data-color": p.color,
    }


def _polar_attrs(p) -> dict[str, str]:
    return {"data-cx": _num(p.cx), "data-cy": _num(p.cy), "data-r": _num(p.radius)}


def _arc_attrs(p: FrameArc) -> dict[str, str]:
    (x0, y0), (x1, y1) = p.endpoints()
    large = 1 if p.sweep > math.pi else 0
    r = _num(p.radius)
    return {
        "data-kind": "frame-arc",
        **_polar_attrs(p),
        "data-start": _num(p.start_angle),
        "data-sweep": _num(p.sweep),
        "d": f"M {_num(x0)} {_num(y0)} A {r} {r} 0 {large} 1 {_num(x1)} {_num(y1)}",
        "fill": "none",
        "stroke": p.color,
        "stroke-width": _num(p.stroke_width),
        "stroke-linecap": "round",
    }


def _frame_dot_attrs(p: FrameDot) -> dict[str, str]:
    return {
        "data-kind": "frame-dot",
        **_polar_attrs(p),
        "data-angle": _num(p.angle),
        "cx": _num(p.x), "cy": _num(p.y), "r": _num(p.dot_radius),
        "fill": p.color,
    }


def _rune_attrs(p: FrameRune) -> dict[str, str]:
    return {
        "data-kind": "frame-rune",
        **_polar_attrs(p),
        "data-angle": _num(p.angle),
        "data-arm": _num(p.arm),
        "transform": f"translate({_num(p.x)} {_num(p.y)}) rotate({_num(math.degrees(p.angle))})",
        "stroke": p.color,
        "stroke-width": _num(p.stroke_width),
        "stroke-linecap": "round",
    }


def _logo_attrs(p: LogoOverlay) -> dict[str, str]:
    return {
        "data-kind": "logo",
        "data-x": _num(p.x), "data-y": _num(p.y),
        "data-w": _num(p.w), "data-h": _num(p.h),
        "data-clip-r": _num(p.clip_radius),
        "clip-path": f"url(#{LOGO_CLIP_ID})",
    }


_ATTRS = (
    (Dot, "circle", _dot_attrs),
    (Edge, "line", _edge_attrs),
    (FinderOrnament, "g", _finder_attrs),
    (FrameArc, "path", _arc_attrs),
    (FrameDot, "circle", _frame_dot_attrs),
    (FrameRune, "g", _rune_attrs),
    (LogoOverlay, "g", _logo_attrs),
)


def primitive_element(primitive) -> tuple[str, dict[str, str]]:
    """SVG tag and top-level attributes for one primitive."""
    for cls, tag, attrs in _ATTRS:
        if isinstance(primitive, cls):
            return tag, attrs(primitive)
    raise ExportError(f"Cannot serialise {type(primitive).__name__}")


def _finder_children(parent: ET.Element, p: FinderOrnament) -> None:
    for radius, width in zip(p.ring_radii, p.ring_widths):
        if width > 0:
            ET.SubElement(parent, "circle", {
                "cx": _num(p.center_x), "cy": _num(p.center_y), "r": _num(radius),
                "fill": "none", "stroke": p.color, "stroke-width": _num(width),
            })
        else:
            ET.SubElement(parent, "circle", {
                "cx": _num(p.center_x), "cy": _num(p.center_y), "r": _num(radius),
                "fill": p.color,
            })


def _rune_children(parent: ET.Element, p: FrameRune) -> None:
    arm = _num(p.arm)
    neg = _num(-p.arm)
    ET.SubElement(parent, "line", {"x1": neg, "y1": "0", "x2": arm, "y2": "0"})
    ET.SubElement(parent, "line", {"x1": "0", "y1": neg, "x2": "0", "y2": arm})


def _logo_children(parent: ET.Element, p: LogoOverlay) -> None:
    ET.SubElement(parent, "image", {
        "href": p.image_ref,
        "x": _num(p.x), "y": _num(p.y),
        "width": _num(p.w), "height": _num(p.h),
        "preserveAspectRatio": "xMidYMid slice",
    })


def _logo_defs(p: LogoOverlay) -> ET.Element:
    defs = ET.Element("defs")
    clip = ET.SubElement(defs, "clipPath", {"id": LOGO_CLIP_ID})
    ET.SubElement(clip, "circle", {
        "cx": _num(p.x + p.w / 2), "cy": _num(p.y + p.h / 2), "r": _num(p.clip_radius),
    })
    return defs


# ---------------------------------------------------------------------------
# Vector export
# ---------------------------------------------------------------------------

@trace
def to_vector_text(scene: Scene) -> str:
    """Serialise every primitive of ``scene`` to standalone SVG markup."""
    w, h = str(scene.width), str(scene.height)
    root = ET.Element("svg", {
        "xmlns": SVG_NS,
        "width": w,
        "height": h,
        "viewBox": f"0 0 {w} {h}",
    })
    ET.SubElement(root, "rect", {
        "data-kind": "background",
        "x": "0", "y": "0", "width": w, "height": h,
        "fill": scene.background,
    })

    for primitive in scene.primitives:
        tag, attrs = primitive_element(primitive)
        if isinstance(primitive, LogoOverlay):
            root.append(_logo_defs(primitive))
        el = ET.SubElement(root, tag, attrs)
        if isinstance(primitive, FinderOrnament):
            _finder_children(el, primitive)
        elif isinstance(primitive, FrameRune):
            _rune_children(el, primitive)
        elif isinstance(primitive, LogoOverlay):
            _logo_children(el, primitive)

    text = ET.tostring(root, encoding="unicode")
    audit("export.vector", logger=log,
          width=scene.width, height=scene.height,
          primitives=len(scene.primitives), chars=len(text))
    return text


def _floats(value: str) -> tuple[float, ...]:
    return tuple(float(v) for v in value.split())


def _polar(a: dict) -> dict:
    return {"cx": float(a["data-cx"]), "cy": float(a["data-cy"]), "radius": float(a["data-r"])}


_READERS = {
    "dot": lambda a: Dot(
        x=float(a["cx"]), y=float(a["cy"]), radius=float(a["r"]), color=a["fill"],
    ),
    "edge": lambda a: Edge(
        x1=float(a["x1"]), y1=float(a["y1"]), x2=float(a["x2"]), y2=float(a["y2"]),
        width=float(a["stroke-width"]), opacity=float(a["stroke-opacity"]), color=a["stroke"],
    ),
    "finder": lambda a: FinderOrnament(
        center_x=float(a["data-cx"]), center_y=float(a["data-cy"]),
        ring_radii=_floats(a["data-rings"]), ring_widths=_floats(a["data-widths"]),
        color=a["data-color"],
    ),
    "frame-arc": lambda a: FrameArc(
        **_polar(a), color=a["stroke"],
        start_angle=float(a["data-start"]), sweep=float(a["data-sweep"]),
        stroke_width=float(a["stroke-width"]),
    ),
    "frame-dot": lambda a: FrameDot(
        **_polar(a), color=a["fill"], angle=float(a["data-angle"]), dot_radius=float(a["r"]),
    ),
    "frame-rune": lambda a: FrameRune(
        **_polar(a), color=a["stroke"], angle=float(a["data-angle"]),
        arm=float(a["data-arm"]), stroke_width=float(a["stroke-width"]),
    ),
    "logo": lambda a: LogoOverlay(
        x=float(a["data-x"]), y=float(a["data-y"]), w=float(a["data-w"]), h=float(a["data-h"]),
        image_ref=a["href"], clip_radius=float(a["data-clip-r"]),
    ),
}


@dataclass(frozen=True)
class ParsedPrimitive:
    kind: str
    tag: str
    attributes: dict

    def to_primitive(self):
        """Rebuild the scene primitive; numbers carry the export's 3-place precision.

        Raises:
            ExportError: Unknown kind or missing/invalid attributes.
        """
        try:
            reader = _READERS[self.kind]
        except KeyError:
            raise ExportError(f"Unknown primitive kind {self.kind!r}") from None
        try:
            return reader(self.attributes)
        except (KeyError, ValueError) as exc:
            raise ExportError(f"Incomplete {self.kind} element: {exc}") from exc


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


@trace
def parse_vector_text(text: str) -> list[ParsedPrimitive]:
    """Read markup produced by ``to_vector_text`` back into primitive records.

    The background rectangle and ``<defs>`` are not primitives and are skipped.
    A logo record also carries the ``href`` of its ``<image>`` child.

    Raises:
        ExportError: The markup is not well-formed or is not an SVG document.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ExportError(f"Malformed vector markup: {exc}") from exc
    if _local(root.tag) != "svg":
        raise ExportError(f"Expected an <svg> root, got <{_local(root.tag)}>")

    parsed = []
    for el in root:
        kind = el.get("data-kind")
        if kind is None or kind == "background":
            continue
        attributes = dict(el.attrib)
        if kind == "logo":
            for child in el:
                if _local(child.tag) == "image":
                    attributes["href"] = child.get("href")
        parsed.append(ParsedPrimitive(kind=kind, tag=_local(el.tag), attributes=attributes))
    return parsed


# ---------------------------------------------------------------------------
# Raster export
# ---------------------------------------------------------------------------

@contextmanager
def _svg_resource(svg_text: str):
    """Scoped in-memory handle on serialised SVG; closed on every exit path."""
    buf = io.BytesIO(svg_text.encode("utf-8"))
    log.debug("svg resource acquired (%d bytes)", buf.getbuffer().nbytes)
    try:
        yield buf
    finally:
        buf.close()
        log.debug("svg resource released")


def svg_to_pixels(svg_text: str, width: int, height: int) -> np.ndarray:
    """Decode SVG markup into a fresh ``height x width x 4`` uint8 RGBA array.

    Raises:
        RasterError: The markup cannot be decoded as an image.
    """
    import cairosvg

    with _svg_resource(svg_text) as resource:
        try:
            png = cairosvg.svg2png(file_obj=resource, output_width=width, output_height=height)
        except Exception as exc:
            raise RasterError(f"Vector form could not be decoded: {exc}") from exc

    try:
        with Image.open(io.BytesIO(png)) as img:
            pixels = np.array(img.convert("RGBA"), dtype=np.uint8)
    except (OSError, UnidentifiedImageError) as exc:
        raise RasterError(f"Decoded raster could not be read: {exc}") from exc

    if pixels.shape[:2] != (height, width):
        raise RasterError(f"Raster is {pixels.shape[1]}x{pixels.shape[0]}, expected {width}x{height}")
    return pixels


@trace
def to_raster(scene: Scene) -> np.ndarray:
    """Rasterise ``scene`` at its declared width x height.

    Returns:
        RGBA pixel buffer of shape (height, width, 4), owned by the caller.
    """
    pixels = svg_to_pixels(to_vector_text(scene), scene.width, scene.height)
    audit("export.raster", logger=log, width=scene.width, height=scene.height,
          corner=tuple(int(v) for v in pixels[0, 0]))
    return pixels


async def to_raster_async(scene: Scene) -> np.ndarray:
    """Awaitable ``to_raster``; the decode runs on a worker thread."""
    return await asyncio.to_thread(to_raster, scene)


def to_image(scene: Scene) -> Image.Image:
    return Image.fromarray(to_raster(scene))


def _png_bytes(pixels: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(pixels).save(buf, format="PNG")
    return buf.getvalue()


@trace
def export(scene: Scene, fmt: str = "vector") -> bytes:
    """Export ``scene`` as UTF-8 SVG (``"vector"``) or PNG (``"raster"``) bytes.

    Raises:
        ExportError: Unknown format.
        RasterError: Rasterisation failed.
    """
    if fmt == "vector":
        return to_vector_text(scene).encode("utf-8")
    if fmt == "raster":
        return _png_bytes(to_raster(scene))
    raise ExportError(f"Unknown export format {fmt!r} (expected one of {', '.join(FORMATS)})")


def format_for_path(path: str | Path) -> str:
    suffix = Path(path).suffix.lower()
    if suffix not in _SUFFIX_FORMATS:
        raise ExportError(f"Cannot infer export format from {suffix or 'missing'} suffix (use .svg or .png)")
    return _SUFFIX_FORMATS[suffix]


@trace
def write_artifact(scene: Scene, path: str | Path, fmt: str | None = None) -> Path:
    """Export ``scene`` to ``path``; on failure no file is left behind.

    The artifact is written to a temporary file next to ``path`` and renamed
    into place only after the export succeeded.
    """
    path = Path(path)
    fmt = fmt or format_for_path(path)
    data = export(scene, fmt)

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    audit("export.written", logger=log, path=str(path), format=fmt, bytes=len(data))
    return path
