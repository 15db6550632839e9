"""QR matrix encoding: content string -> immutable module matrix.

Symbol encoding itself (mode/version selection, Reed-Solomon) is delegated to
the ``qrcode`` library; this module only wraps its output in a validated
``BitMatrix`` and maps its failures onto ``EncodingError``.
"""

from dataclasses import dataclass, field
from enum import Enum

import qrcode
import qrcode.constants
import qrcode.exceptions

from qrweave.errors import EncodingError
from qrweave.logging import audit, get_logger, trace

log = get_logger("encoder")

MIN_SIZE = 21
MAX_VERSION = 40


class ECCLevel(Enum):
    L = qrcode.constants.ERROR_CORRECT_L  # 7%
    M = qrcode.constants.ERROR_CORRECT_M  # 15%
    Q = qrcode.constants.ERROR_CORRECT_Q  # 25%
    H = qrcode.constants.ERROR_CORRECT_H  # 30%


ECC_NAMES = {"L": ECCLevel.L, "M": ECCLevel.M, "Q": ECCLevel.Q, "H": ECCLevel.H}


def version_size(version: int) -> int:
    """Side length of a standard QR symbol of the given version."""
    if not 1 <= version <= MAX_VERSION:
        raise EncodingError(f"QR version must be 1-{MAX_VERSION}, got {version}")
    return version * 4 + 17


def parse_ecc(ecc: str) -> str:
    """Normalise an error-correction level name, rejecting unknown ones."""
    name = str(ecc).strip().upper()
    if name not in ECC_NAMES:
        raise EncodingError(f"Unknown error-correction level {ecc!r} (expected L/M/Q/H)")
    return name


@dataclass(frozen=True)
class BitMatrix:
    """Square grid of QR modules (True = active/dark).

    ``ecc`` records the level the symbol was encoded with; ``version`` is
    derived from the size when not supplied.
    """

    rows: tuple[tuple[bool, ...], ...]
    ecc: str = "H"
    version: int | None = field(default=None)

    def __post_init__(self):
        rows = tuple(tuple(bool(v) for v in row) for row in self.rows)
        object.__setattr__(self, "rows", rows)
        n = len(rows)
        if n < MIN_SIZE or n % 2 == 0:
            raise EncodingError(f"Matrix side must be odd and >= {MIN_SIZE}, got {n}")
        if any(len(row) != n for row in rows):
            raise EncodingError(f"Matrix must be exactly {n}x{n}")
        object.__setattr__(self, "ecc", parse_ecc(self.ecc))
        if self.version is None:
            if (n - 17) % 4 == 0:
                object.__setattr__(self, "version", (n - 17) // 4)
        elif version_size(self.version) != n:
            raise EncodingError(f"Version {self.version} implies side {version_size(self.version)}, got {n}")

    @classmethod
    def from_rows(cls, rows, ecc: str = "H", version: int | None = None) -> "BitMatrix":
        return cls(rows=tuple(tuple(r) for r in rows), ecc=ecc, version=version)

    @property
    def size(self) -> int:
        return len(self.rows)

    def is_active(self, row: int, col: int) -> bool:
        return self.rows[row][col]

    def active_cells(self):
        """Yield (row, col) of every active module, row-major."""
        for r, row in enumerate(self.rows):
            for c, value in enumerate(row):
                if value:
                    yield r, c

    def count_active(self) -> int:
        return sum(sum(row) for row in self.rows)


@trace
def encode(content: str, ecc: str = "H", version: int | None = None, mask: int | None = None) -> BitMatrix:
    """Encode ``content`` into a QR module matrix without a quiet zone.

    Args:
        content: Text or URL to encode.
        ecc: Error correction level L/M/Q/H.
        version: Force a QR version 1-40 (None = smallest that fits).
        mask: Mask pattern 0-7 (None = library's choice).

    Raises:
        EncodingError: Empty content, unknown level, or content too large
            for the level (no partial matrix is ever returned).
    """
    level = parse_ecc(ecc)
    if not content:
        raise EncodingError("QR content cannot be empty")

    qr = qrcode.QRCode(
        version=version,
        error_correction=ECC_NAMES[level].value,
        box_size=1,
        border=0,
        mask_pattern=mask,
    )
    qr.add_data(content)
    try:
        qr.make(fit=(version is None))
    except (qrcode.exceptions.DataOverflowError, ValueError) as exc:
        raise EncodingError(f"Content of {len(content)} chars does not fit at level {level}: {exc}") from exc

    matrix = BitMatrix.from_rows(qr.modules, ecc=level, version=qr.version)
    audit("matrix.encoded", logger=log,
          content=content[:80], version=qr.version,
          size=f"{matrix.size}x{matrix.size}", ecc=level,
          active=matrix.count_active())
    return matrix
