from __future__ import annotations

import pytest

from conftest import full_matrix, random_matrix
from qrweave.encoder import BitMatrix
from qrweave.errors import ConfigError
from qrweave.network import EDGE_WIDTH_RATIO, cell_center, render_network
from qrweave.zones import ZoneClassifier

CELL = 10.0


def _expected_pairs(matrix: BitMatrix, classifier: ZoneClassifier) -> set:
    """Every unordered pair of adjacent drawable cells, found by brute force."""
    n = matrix.size
    drawable = {
        (r, c)
        for r, c in matrix.active_cells()
        if not classifier.is_excluded(r, c)
    }
    pairs = set()
    for r, c in drawable:
        for nr, nc in ((r - 1, c), (r + 1, c), (r, c - 1), (r, c + 1)):
            if 0 <= nr < n and 0 <= nc < n and (nr, nc) in drawable:
                pairs.add(frozenset({(r, c), (nr, nc)}))
    return pairs


def _edge_pair(edge) -> frozenset:
    a = (round(edge.y1 / CELL - 0.5), round(edge.x1 / CELL - 0.5))
    b = (round(edge.y2 / CELL - 0.5), round(edge.x2 / CELL - 0.5))
    return frozenset({a, b})


@pytest.mark.parametrize("seed", range(6))
@pytest.mark.parametrize("has_logo", [False, True])
def test_dots_plus_excluded_equals_active(seed: int, has_logo: bool) -> None:
    matrix = random_matrix(21 + 4 * seed, seed)
    classifier = ZoneClassifier(matrix.size, has_logo=has_logo)
    _, dots = render_network(matrix, classifier, "#000000", 1.0, 1.0, CELL)
    excluded = sum(1 for r, c in matrix.active_cells() if classifier.is_excluded(r, c))
    assert len(dots) + excluded == matrix.count_active()


@pytest.mark.parametrize("seed", range(6))
@pytest.mark.parametrize("has_logo", [False, True])
def test_exactly_one_edge_per_adjacent_pair(seed: int, has_logo: bool) -> None:
    matrix = random_matrix(25, seed)
    classifier = ZoneClassifier(matrix.size, has_logo=has_logo)
    edges, _ = render_network(matrix, classifier, "#000000", 1.0, 1.0, CELL)
    emitted = [_edge_pair(e) for e in edges]
    assert len(emitted) == len(set(emitted))
    assert set(emitted) == _expected_pairs(matrix, classifier)


def test_full_matrix_edge_count() -> None:
    matrix = full_matrix(21)
    classifier = ZoneClassifier(21)
    edges, dots = render_network(matrix, classifier, "#000000", 1.0, 1.0, CELL)
    assert len(dots) == 21 * 21 - 147
    assert len(edges) == len(_expected_pairs(matrix, classifier))


def test_edges_run_right_or_down_between_centres() -> None:
    matrix = random_matrix(21, 3)
    edges, _ = render_network(matrix, ZoneClassifier(21), "#abcdef", 0.5, 1.0, CELL)
    for e in edges:
        assert (e.x2 - e.x1, e.y2 - e.y1) in {(CELL, 0.0), (0.0, CELL)}
        assert e.width == CELL * EDGE_WIDTH_RATIO
        assert e.opacity == 0.5
        assert e.color == "#abcdef"


def test_dots_are_centred_with_scaled_radius() -> None:
    rows = [[False] * 21 for _ in range(21)]
    rows[10][12] = True
    matrix = BitMatrix.from_rows(rows)
    _, dots = render_network(matrix, ZoneClassifier(21), "#000000", 1.0, 0.5, CELL)
    assert len(dots) == 1
    assert (dots[0].x, dots[0].y) == cell_center(10, 12, CELL) == (125.0, 105.0)
    assert dots[0].radius == CELL / 2 * 0.5


def test_zero_connectivity_hides_edges_but_keeps_counts() -> None:
    matrix = random_matrix(29, 7)
    classifier = ZoneClassifier(29)
    edges0, dots0 = render_network(matrix, classifier, "#000000", 0.0, 1.0, CELL)
    edges1, dots1 = render_network(matrix, classifier, "#000000", 1.0, 1.0, CELL)
    assert edges0 and all(e.opacity == 0 for e in edges0)
    assert len(edges0) == len(edges1)
    assert dots0 == dots1


def test_zero_dot_scale_keeps_dots_and_edge_geometry() -> None:
    matrix = random_matrix(29, 11)
    classifier = ZoneClassifier(29)
    edges0, dots0 = render_network(matrix, classifier, "#000000", 1.0, 0.0, CELL)
    edges1, dots1 = render_network(matrix, classifier, "#000000", 1.0, 1.0, CELL)
    assert dots0 and all(d.radius == 0 for d in dots0)
    assert len(dots0) == len(dots1)
    assert edges0 == edges1


def test_no_primitives_inside_zones() -> None:
    matrix = full_matrix(29)
    classifier = ZoneClassifier(29, has_logo=True)
    edges, dots = render_network(matrix, classifier, "#000000", 1.0, 1.0, CELL)
    for d in dots:
        r, c = round(d.y / CELL - 0.5), round(d.x / CELL - 0.5)
        assert not classifier.is_excluded(r, c)
    for e in edges:
        for r, c in _edge_pair(e):
            assert not classifier.is_excluded(r, c)


@pytest.mark.parametrize("connectivity, dot_scale", [(-0.1, 1.0), (1.1, 1.0), (1.0, -0.01), (1.0, 1.5)])
def test_out_of_range_parameters_raise(connectivity: float, dot_scale: float) -> None:
    with pytest.raises(ConfigError):
        render_network(full_matrix(21), ZoneClassifier(21), "#000000", connectivity, dot_scale, CELL)


def test_mismatched_classifier_raises() -> None:
    with pytest.raises(ConfigError):
        render_network(full_matrix(21), ZoneClassifier(25), "#000000", 1.0, 1.0, CELL)
