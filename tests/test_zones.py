from __future__ import annotations

import math

import pytest

from qrweave.encoder import version_size
from qrweave.zones import (
    LOGO_SAFE_FRACTION,
    Zone,
    ZoneClassifier,
    correction_capacity,
    finder_origins,
    within_capacity,
)


@pytest.mark.parametrize("n", [21, 25, 57, 177])
def test_three_finder_zones_and_empty_fourth_corner(n: int) -> None:
    classifier = ZoneClassifier(n)
    assert classifier.zone_of(0, 0) is Zone.FINDER
    assert classifier.zone_of(6, 6) is Zone.FINDER
    assert classifier.zone_of(0, n - 1) is Zone.FINDER
    assert classifier.zone_of(6, n - 7) is Zone.FINDER
    assert classifier.zone_of(n - 1, 0) is Zone.FINDER
    assert classifier.zone_of(n - 7, 6) is Zone.FINDER
    assert classifier.zone_of(n - 1, n - 1) is Zone.NONE
    assert classifier.zone_of(7, 7) is Zone.NONE
    assert classifier.zone_of(0, 7) is Zone.NONE
    assert len(classifier.cells(Zone.FINDER)) == 3 * 49


def test_finder_origins() -> None:
    assert finder_origins(21) == ((0, 0), (0, 14), (14, 0))


def test_no_logo_zone_without_logo() -> None:
    classifier = ZoneClassifier(29, has_logo=False)
    assert classifier.zone_of(14, 14) is Zone.NONE
    assert classifier.logo_safe_area() == 0


def test_logo_zone_is_centred_disk() -> None:
    n = 29
    classifier = ZoneClassifier(n, has_logo=True)
    radius = n * LOGO_SAFE_FRACTION
    for r in range(n):
        for c in range(n):
            inside = math.hypot(r - n / 2, c - n / 2) < radius
            assert classifier.in_logo_safe(r, c) is inside
    assert classifier.zone_of(14, 14) is Zone.LOGO_SAFE
    # symmetric about the centre point n/2
    cells = set(classifier.cells(Zone.LOGO_SAFE))
    assert cells == {(n - r, n - c) for r, c in cells}


def test_logo_zone_measures_from_module_index() -> None:
    classifier = ZoneClassifier(21, has_logo=True)
    assert classifier.in_logo_safe(12, 12)
    assert classifier.in_logo_safe(13, 11)
    assert not classifier.in_logo_safe(8, 8)
    assert not classifier.in_logo_safe(10, 7)
    assert classifier.logo_safe_area() == 32
    assert ZoneClassifier(25, has_logo=True).logo_safe_area() == 44


def test_classifier_ignores_matrix_content() -> None:
    a = ZoneClassifier(25, has_logo=True)
    b = ZoneClassifier(25, has_logo=True)
    assert [a.zone_of(r, c) for r in range(25) for c in range(25)] == [
        b.zone_of(r, c) for r in range(25) for c in range(25)
    ]


@pytest.mark.parametrize("version", range(3, 41))
def test_carve_out_fits_level_h_budget(version: int) -> None:
    n = version_size(version)
    classifier = ZoneClassifier(n, has_logo=True)
    ratio = (classifier.finder_area() + classifier.logo_safe_area()) / (n * n)
    assert ratio <= correction_capacity("H")
    assert within_capacity(classifier, "H")


def test_small_symbols_with_logo_exceed_budget() -> None:
    assert not within_capacity(ZoneClassifier(21, has_logo=True), "H")
    assert within_capacity(ZoneClassifier(25, has_logo=False), "H")


def test_correction_capacity_levels() -> None:
    assert [correction_capacity(l) for l in "LMQH"] == [0.07, 0.15, 0.25, 0.30]
