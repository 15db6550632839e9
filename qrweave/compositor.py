"""Scene compositor: assemble every layer of a stylised code into one Scene.

Layer order, back to front: frame, network edges, network dots, finder
ornaments, logo overlay. Data dots never cover the finder ornaments and the
logo is always on top.
"""

from qrweave.config import StyleConfig
from qrweave.encoder import BitMatrix
from qrweave.errors import ConfigError
from qrweave.finders import render_finders
from qrweave.frame import render_frame
from qrweave.logging import audit, get_logger, trace
from qrweave.network import render_network
from qrweave.scene import LogoOverlay, Scene
from qrweave.zones import ZoneClassifier, correction_capacity, within_capacity

log = get_logger("compositor")

# Logo side as a fraction of the drawing size
LOGO_SIZE_RATIO = 0.3


def logo_overlay(draw_width: float, image_ref: str) -> LogoOverlay:
    """Square logo box centred on the drawing, clipped to its inscribed circle."""
    side = draw_width * LOGO_SIZE_RATIO
    center = draw_width / 2
    return LogoOverlay(
        x=center - side / 2,
        y=center - side / 2,
        w=side,
        h=side,
        image_ref=image_ref,
        clip_radius=side / 2,
    )


@trace
def render(matrix: BitMatrix, style: StyleConfig, draw_width: int) -> Scene:
    """Render ``matrix`` with ``style`` into a square scene ``draw_width`` wide.

    Pure: the same matrix, style and width always produce an equal Scene.

    Raises:
        ConfigError: ``draw_width`` is not a positive integer.
    """
    if isinstance(draw_width, bool) or not isinstance(draw_width, int) or draw_width <= 0:
        raise ConfigError(f"draw_width must be a positive integer, got {draw_width!r}")

    n = matrix.size
    cell_size = draw_width / n
    has_logo = style.logo is not None
    classifier = ZoneClassifier(n, has_logo=has_logo)

    if has_logo and not within_capacity(classifier, matrix.ecc):
        log.warning(
            "Carved-out area %.1f%% exceeds the %.0f%% correction capacity of level %s at %dx%d; "
            "scannability may degrade",
            classifier.carve_out_ratio() * 100, correction_capacity(matrix.ecc) * 100,
            matrix.ecc, n, n,
        )

    colors = style.colors
    frame = render_frame(draw_width, colors.accent, style.mandala_complexity, style.show_frame)
    edges, dots = render_network(
        matrix, classifier, colors.foreground,
        style.connectivity, style.dot_scale, cell_size,
    )
    finders = render_finders(n, cell_size, colors.accent)

    primitives = [*frame, *edges, *dots, *finders]
    if has_logo:
        primitives.append(logo_overlay(draw_width, style.logo.href))

    scene = Scene(
        width=draw_width,
        height=draw_width,
        background=colors.background,
        primitives=tuple(primitives),
    )
    audit("scene.rendered", logger=log,
          size=f"{n}x{n}", width=draw_width, ecc=matrix.ecc, **scene.counts())
    return scene
