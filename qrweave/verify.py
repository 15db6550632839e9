"""Scan verification: decode rendered codes with real QR readers."""

import time
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image
from pyzbar.pyzbar import decode as pyzbar_decode

from qrweave.export import to_image
from qrweave.logging import audit, get_logger, trace
from qrweave.scene import Scene

log = get_logger("verify")


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = ""
    error: str | None = None


def _flatten(image: Image.Image, background=(255, 255, 255)) -> Image.Image:
    """Composite RGBA onto an opaque background; readers ignore alpha."""
    if image.mode == "RGBA":
        base = Image.new("RGB", image.size, background)
        base.paste(image, mask=image.split()[3])
        return base
    return image.convert("RGB")


def _scan(name: str, image: Image.Image, decode_fn) -> ScanResult:
    start = time.perf_counter()
    try:
        data = decode_fn(_flatten(image))
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        audit("scan.error", logger=log, decoder=name, error=str(e), time_ms=round(elapsed, 1))
        return ScanResult(success=False, decode_time_ms=elapsed, decoder=name, error=str(e))

    elapsed = (time.perf_counter() - start) * 1000
    if data:
        audit("scan.verified", logger=log, decoder=name, success=True, time_ms=round(elapsed, 1), data=data[:80])
        return ScanResult(success=True, decoded_data=data, decode_time_ms=elapsed, decoder=name)
    audit("scan.verified", logger=log, decoder=name, success=False, time_ms=round(elapsed, 1))
    return ScanResult(success=False, decode_time_ms=elapsed, decoder=name, error="No QR code detected")


def _decode_pyzbar(image: Image.Image) -> str | None:
    results = pyzbar_decode(image)
    if not results:
        return None
    return results[0].data.decode("utf-8", errors="replace")


def _decode_opencv(image: Image.Image) -> str | None:
    gray = cv2.cvtColor(np.array(image), cv2.COLOR_RGB2GRAY)
    data, _points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    return data or None


@trace
def scan_pyzbar(image: Image.Image) -> ScanResult:
    """Scan a QR code using pyzbar (wraps ZBar)."""
    return _scan("pyzbar/zbar", image, _decode_pyzbar)


@trace
def scan_opencv(image: Image.Image) -> ScanResult:
    """Scan a QR code using OpenCV's built-in detector."""
    return _scan("opencv", image, _decode_opencv)


SCANNERS = [scan_pyzbar, scan_opencv]


@trace
def verify(image: Image.Image, expected_data: str | None = None) -> list[ScanResult]:
    """Run every available decoder on an image.

    Args:
        image: PIL Image containing a QR code.
        expected_data: If provided, a decode with different data counts as failure.

    Returns:
        List of ScanResults, one per decoder.
    """
    results = []
    for scanner in SCANNERS:
        result = scanner(image)
        if result.success and expected_data is not None and result.decoded_data != expected_data:
            result.success = False
            result.error = f"Data mismatch: got '{result.decoded_data}', expected '{expected_data}'"
        results.append(result)
    return results


@trace
def verify_scene(scene: Scene, expected_data: str | None = None) -> list[ScanResult]:
    """Rasterise a scene and scan it with every decoder."""
    return verify(to_image(scene), expected_data=expected_data)


def any_success(results: list[ScanResult]) -> bool:
    return any(r.success for r in results)
