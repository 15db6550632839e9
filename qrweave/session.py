"""Render session: the display side of the pipeline.

Encoding runs on a worker pool so input changes never block. Every request
gets a generation number; when an encoding finishes, its result is rendered
and committed only if no newer request arrived meanwhile. Superseded results
are dropped, never merged. A failed latest request records its error and
leaves the last good Scene in place.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from qrweave.compositor import render
from qrweave.config import StyleConfig
from qrweave.encoder import BitMatrix, encode
from qrweave.errors import QRWeaveError
from qrweave.logging import audit, get_logger
from qrweave.scene import Scene

log = get_logger("session")

Encoder = Callable[[str, str], BitMatrix]


class RenderSession:
    """Holds the most recently committed Scene for one display surface.

    Thread-safe. ``encoder`` defaults to :func:`qrweave.encoder.encode` and
    can be replaced (e.g. to add latency or a cache).
    """

    def __init__(
        self,
        draw_width: int = 500,
        ecc: str = "H",
        encoder: Encoder | None = None,
        max_workers: int = 2,
    ):
        self.draw_width = draw_width
        self.ecc = ecc
        self._encoder = encoder or encode
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="qrweave-encode")
        self._lock = threading.Lock()
        self._settled = threading.Condition(self._lock)
        self._generation = 0
        self._settled_generation = 0
        self._scene: Scene | None = None
        self._error: QRWeaveError | None = None
        self._committed_generation = 0

    # -- state ---------------------------------------------------------------

    @property
    def scene(self) -> Scene | None:
        """Last successfully committed Scene (None before the first success)."""
        with self._lock:
            return self._scene

    @property
    def error(self) -> QRWeaveError | None:
        """Error of the latest settled request, or None if it succeeded."""
        with self._lock:
            return self._error

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def committed_generation(self) -> int:
        with self._lock:
            return self._committed_generation

    # -- requests ------------------------------------------------------------

    def request(self, style: StyleConfig) -> Future:
        """Start encoding ``style.content``; returns the worker future.

        The future resolves to True if this request's Scene was committed,
        False if it was superseded or failed.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
        log.debug("request generation=%d content=%r", generation, style.content[:80])
        return self._executor.submit(self._run, generation, style)

    def _is_latest(self, generation: int) -> bool:
        return generation == self._generation

    def _run(self, generation: int, style: StyleConfig) -> bool:
        try:
            matrix = self._encoder(style.content, self.ecc)
            scene = render(matrix, style, self.draw_width)
        except QRWeaveError as exc:
            return self._settle(generation, error=exc)
        return self._settle(generation, scene=scene)

    def _settle(self, generation: int, scene: Scene | None = None, error: QRWeaveError | None = None) -> bool:
        with self._lock:
            if not self._is_latest(generation):
                log.debug("dropping stale generation=%d (latest=%d)", generation, self._generation)
                return False
            self._settled_generation = generation
            if error is not None:
                self._error = error
                self._settled.notify_all()
                audit("session.failed", logger=log, generation=generation, error=str(error))
                return False
            self._scene = scene
            self._error = None
            self._committed_generation = generation
            self._settled.notify_all()
        audit("session.committed", logger=log, generation=generation, primitives=len(scene.primitives))
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the latest request has settled; False on timeout."""
        with self._lock:
            return self._settled.wait_for(
                lambda: self._settled_generation == self._generation,
                timeout=timeout,
            )

    def close(self):
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
