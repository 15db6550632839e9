"""Matrix classifier: which modules are carved out of the data network.

Two kinds of zone exist. The three 7x7 finder patterns sit in the top-left,
top-right and bottom-left corners (the bottom-right corner never has one).
When a logo is configured, a centred disk of radius ``LOGO_SAFE_FRACTION * N``
is reserved for it. Every render layer consults the same ``ZoneClassifier``.
"""

import math
from enum import Enum

from qrweave.logging import get_logger

log = get_logger("zones")

FINDER_SIZE = 7

# Correctness bound, not a style knob: the disk plus the finders must stay
# inside the level-H correction budget for every version >= 3.
LOGO_SAFE_FRACTION = 0.15

# Fraction of modules each level can restore (ISO/IEC 18004 nominal values)
CORRECTION_CAPACITY = {"L": 0.07, "M": 0.15, "Q": 0.25, "H": 0.30}


class Zone(Enum):
    NONE = "none"
    FINDER = "finder"
    LOGO_SAFE = "logo_safe"


def finder_origins(n: int) -> tuple[tuple[int, int], ...]:
    """(row, col) of the top-left module of each finder pattern: TL, TR, BL."""
    return ((0, 0), (0, n - FINDER_SIZE), (n - FINDER_SIZE, 0))


def correction_capacity(level: str) -> float:
    return CORRECTION_CAPACITY[level.upper()]


class ZoneClassifier:
    """Zone membership for an N x N matrix.

    Depends only on ``n`` and whether a logo is present, never on module
    values, so it can be built and queried without a matrix.
    """

    def __init__(self, n: int, has_logo: bool = False):
        self.n = n
        self.has_logo = has_logo
        self.center = n / 2.0
        self.logo_radius = n * LOGO_SAFE_FRACTION

    def __repr__(self):
        return f"ZoneClassifier(n={self.n}, has_logo={self.has_logo})"

    def in_finder(self, row: int, col: int) -> bool:
        far = self.n - FINDER_SIZE
        if row < FINDER_SIZE and col < FINDER_SIZE:
            return True
        if row < FINDER_SIZE and col >= far:
            return True
        if row >= far and col < FINDER_SIZE:
            return True
        return False

    def in_logo_safe(self, row: int, col: int) -> bool:
        if not self.has_logo:
            return False
        dist = math.hypot(row - self.center, col - self.center)
        return dist < self.logo_radius

    def zone_of(self, row: int, col: int) -> Zone:
        if self.in_finder(row, col):
            return Zone.FINDER
        if self.in_logo_safe(row, col):
            return Zone.LOGO_SAFE
        return Zone.NONE

    def is_excluded(self, row: int, col: int) -> bool:
        return self.zone_of(row, col) is not Zone.NONE

    def cells(self, zone: Zone) -> list[tuple[int, int]]:
        return [
            (r, c)
            for r in range(self.n)
            for c in range(self.n)
            if self.zone_of(r, c) is zone
        ]

    def finder_area(self) -> int:
        return 3 * FINDER_SIZE * FINDER_SIZE

    def logo_safe_area(self) -> int:
        if not self.has_logo:
            return 0
        return len(self.cells(Zone.LOGO_SAFE))

    def carve_out_ratio(self) -> float:
        """Fraction of all modules excluded from the data network."""
        return (self.finder_area() + self.logo_safe_area()) / (self.n * self.n)


def within_capacity(classifier: ZoneClassifier, level: str) -> bool:
    """True when the carved-out area fits the correction budget of ``level``."""
    ratio = classifier.carve_out_ratio()
    capacity = correction_capacity(level)
    log.debug("capacity check n=%d logo=%s ratio=%.3f capacity=%.2f",
              classifier.n, classifier.has_logo, ratio, capacity)
    return ratio <= capacity
