from __future__ import annotations

import threading
from dataclasses import replace

from qrweave.compositor import render
from qrweave.config import StyleConfig
from qrweave.encoder import encode
from qrweave.errors import EncodingError
from qrweave.session import RenderSession


class _GatedEncoder:
    """Encoder whose calls block until the test releases them by content."""

    def __init__(self) -> None:
        self.gates: dict[str, threading.Event] = {}
        self.started: dict[str, threading.Event] = {}

    def gate(self, content: str) -> threading.Event:
        self.started.setdefault(content, threading.Event())
        return self.gates.setdefault(content, threading.Event())

    def __call__(self, content: str, ecc: str):
        gate = self.gate(content)
        self.started[content].set()
        gate.wait(timeout=5)
        return encode(content, ecc=ecc)


def _expected_scene(content: str, base: StyleConfig):
    return render(encode(content, ecc="H"), replace(base, content=content), 210)


def test_single_request_commits_scene() -> None:
    with RenderSession(draw_width=210) as session:
        future = session.request(StyleConfig(content="HELLO", show_frame=False))
        assert future.result(timeout=5) is True
        assert session.wait(timeout=5)
        assert session.scene is not None
        assert session.scene.width == 210
        assert len(session.scene.finders) == 3
        assert session.error is None


def test_stale_result_is_dropped() -> None:
    encoder = _GatedEncoder()
    old_gate = encoder.gate("old")
    new_gate = encoder.gate("new")
    base = StyleConfig(show_frame=False)

    with RenderSession(draw_width=210, encoder=encoder) as session:
        old = session.request(replace(base, content="old"))
        assert encoder.started["old"].wait(timeout=5)
        new = session.request(replace(base, content="new"))

        new_gate.set()
        assert new.result(timeout=5) is True
        committed = session.scene

        old_gate.set()
        assert old.result(timeout=5) is False
        assert session.scene is committed
        assert session.committed_generation == 2
        assert session.scene == _expected_scene("new", base)


def test_failed_latest_request_keeps_last_good_scene() -> None:
    with RenderSession(draw_width=210) as session:
        assert session.request(StyleConfig(content="HELLO")).result(timeout=5)
        good = session.scene

        assert session.request(StyleConfig(content="9" * 8000)).result(timeout=5) is False
        assert session.wait(timeout=5)
        assert isinstance(session.error, EncodingError)
        assert session.scene is good

        assert session.request(StyleConfig(content="HELLO again")).result(timeout=5)
        assert session.error is None
        assert session.scene is not good


def test_generation_counts_requests() -> None:
    with RenderSession() as session:
        for i in range(3):
            session.request(StyleConfig(content=f"n{i}"))
        assert session.generation == 3
        assert session.wait(timeout=5)
        assert session.committed_generation == 3
