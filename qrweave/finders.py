"""Finder ornaments: concentric rings drawn in place of the three finder patterns."""

from qrweave.logging import get_logger
from qrweave.scene import FinderOrnament
from qrweave.zones import FINDER_SIZE, finder_origins

log = get_logger("finders")

# Ring geometry in cell units: (radius, stroke width). Core is filled.
OUTER_RING = (3.0, 0.8)
MIDDLE_RING = (1.5, 0.5)
CORE_DOT = (0.5, 0.0)


def finder_center(origin_row: int, origin_col: int, cell_size: float) -> tuple[float, float]:
    half = FINDER_SIZE / 2
    return (origin_col + half) * cell_size, (origin_row + half) * cell_size


def render_finders(
    n: int,
    cell_size: float,
    color: str,
    middle_ring: bool = True,
) -> tuple[FinderOrnament, ...]:
    """One ornament per finder zone, in TL, TR, BL order.

    Only the matrix size matters; module values inside the zones are fixed by
    the QR standard and are never read.
    """
    rings = [OUTER_RING]
    if middle_ring:
        rings.append(MIDDLE_RING)
    rings.append(CORE_DOT)

    radii = tuple(r * cell_size for r, _ in rings)
    widths = tuple(w * cell_size for _, w in rings)

    ornaments = []
    for origin_row, origin_col in finder_origins(n):
        cx, cy = finder_center(origin_row, origin_col, cell_size)
        ornaments.append(FinderOrnament(
            center_x=cx, center_y=cy,
            ring_radii=radii, ring_widths=widths, color=color,
        ))
    log.debug("finder ornaments n=%d cell=%.3f rings=%d", n, cell_size, len(rings))
    return tuple(ornaments)
