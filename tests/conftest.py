from __future__ import annotations

import random

import pytest

from qrweave.config import Colors, LogoRef, StyleConfig
from qrweave.encoder import BitMatrix, encode

# Embedded logos only need a well-formed URI for vector output
LOGO_URI = "data:image/png;base64,bG9nbw=="


def random_matrix(n: int, seed: int, ecc: str = "H") -> BitMatrix:
    rng = random.Random(seed)
    return BitMatrix.from_rows(
        [[rng.random() < 0.5 for _ in range(n)] for _ in range(n)],
        ecc=ecc,
    )


def full_matrix(n: int) -> BitMatrix:
    return BitMatrix.from_rows([[True] * n for _ in range(n)])


@pytest.fixture
def hello_matrix() -> BitMatrix:
    return encode("HELLO", ecc="H")


@pytest.fixture
def plain_style() -> StyleConfig:
    return StyleConfig(
        content="HELLO",
        colors=Colors(background="#ffffff", foreground="#000000", accent="#112233"),
        connectivity=1.0,
        dot_scale=1.0,
        mandala_complexity=0.5,
        show_frame=False,
    )


@pytest.fixture
def logo_ref() -> LogoRef:
    return LogoRef(href=LOGO_URI)


@pytest.fixture
def cairosvg():
    # cairosvg needs the native cairo library, which raises OSError when missing
    try:
        import cairosvg as module
    except (ImportError, OSError) as exc:
        pytest.skip(f"cairosvg unavailable: {exc}")
    return module
