"""Logo loading: turn an image file into a self-contained ``LogoRef``."""

import base64
import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from qrweave.config import LogoRef
from qrweave.errors import ConfigError
from qrweave.logging import audit, get_logger, trace

log = get_logger("logo")

# Longest side of the embedded copy; larger uploads are downscaled
MAX_LOGO_PX = 512


def image_to_data_uri(image: Image.Image) -> str:
    """PNG-encode a PIL image as a ``data:`` URI."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


@trace
def load_logo(path: str | Path, max_px: int = MAX_LOGO_PX) -> LogoRef:
    """Load a logo image and embed it as a PNG data URI.

    Transparency is kept (the image is converted to RGBA). Images larger than
    ``max_px`` on their longest side are downscaled with Lanczos filtering.

    Raises:
        ConfigError: The file is missing or is not a readable image.
    """
    path = Path(path)
    try:
        with Image.open(path) as src:
            img = src.convert("RGBA")
    except (OSError, UnidentifiedImageError) as exc:
        raise ConfigError(f"Cannot read logo image {path}: {exc}") from exc

    if max(img.size) > max_px:
        img.thumbnail((max_px, max_px), Image.LANCZOS)

    ref = LogoRef(href=image_to_data_uri(img))
    audit("logo.loaded", logger=log, path=str(path), size=f"{img.size[0]}x{img.size[1]}")
    return ref
