"""Data-network renderer: active data modules become dots joined by edges.

Each active module outside every zone yields one ``Dot`` at its cell centre.
Adjacency is tested to the right and below only, so each pair of
neighbouring active modules is joined by exactly one ``Edge``.
"""

from qrweave.encoder import BitMatrix
from qrweave.errors import ConfigError
from qrweave.logging import audit, get_logger, trace
from qrweave.scene import Dot, Edge
from qrweave.zones import ZoneClassifier

log = get_logger("network")

# Edge stroke width as a fraction of the cell size
EDGE_WIDTH_RATIO = 0.2

# (row offset, col offset) of the neighbours each module connects to
_NEIGHBOURS = ((0, 1), (1, 0))


def cell_center(row: int, col: int, cell_size: float) -> tuple[float, float]:
    """Drawing coordinates (x, y) of a module's centre."""
    return (col + 0.5) * cell_size, (row + 0.5) * cell_size


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigError(f"{name} must be within [0, 1], got {value}")


@trace
def render_network(
    matrix: BitMatrix,
    classifier: ZoneClassifier,
    color: str,
    connectivity: float,
    dot_scale: float,
    cell_size: float,
) -> tuple[list[Edge], list[Dot]]:
    """Convert the matrix's data modules into edge and dot primitives.

    Args:
        matrix: Encoded module matrix.
        classifier: Zone membership for the same matrix size.
        color: Foreground colour for dots and edges.
        connectivity: Edge opacity in [0, 1]; 0 keeps edges but hides them.
        dot_scale: Dot radius as a fraction of half a cell, in [0, 1]; 0
            keeps dots but gives them zero radius.
        cell_size: Drawing units per module.

    Returns:
        (edges, dots), each in row-major module order.
    """
    _check_unit("connectivity", connectivity)
    _check_unit("dot_scale", dot_scale)
    if cell_size <= 0:
        raise ConfigError(f"cell_size must be positive, got {cell_size}")
    if classifier.n != matrix.size:
        raise ConfigError(f"Classifier is for {classifier.n}x{classifier.n}, matrix is {matrix.size}x{matrix.size}")

    n = matrix.size
    radius = cell_size / 2 * dot_scale
    width = cell_size * EDGE_WIDTH_RATIO
    dots: list[Dot] = []
    edges: list[Edge] = []
    excluded = 0

    for r, c in matrix.active_cells():
        if classifier.is_excluded(r, c):
            excluded += 1
            continue

        cx, cy = cell_center(r, c, cell_size)
        dots.append(Dot(x=cx, y=cy, radius=radius, color=color))

        for dr, dc in _NEIGHBOURS:
            nr, nc = r + dr, c + dc
            if nr >= n or nc >= n:
                continue
            if not matrix.is_active(nr, nc) or classifier.is_excluded(nr, nc):
                continue
            nx, ny = cell_center(nr, nc, cell_size)
            edges.append(Edge(
                x1=cx, y1=cy, x2=nx, y2=ny,
                width=width, opacity=connectivity, color=color,
            ))

    audit("network.rendered", logger=log,
          size=f"{n}x{n}", dots=len(dots), edges=len(edges),
          excluded_active=excluded)
    return edges, dots
