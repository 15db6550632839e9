from __future__ import annotations

import pytest

from qrweave.export import parse_vector_text
from qrweave.server import create_app


@pytest.fixture
def client():
    app = create_app(default_size=210)
    app.config["TESTING"] = True
    return app.test_client()


def test_render_vector(client) -> None:
    resp = client.post("/api/render", json={"content": "HELLO", "showFrame": False})
    assert resp.status_code == 200
    assert resp.mimetype == "image/svg+xml"
    parsed = parse_vector_text(resp.get_data(as_text=True))
    assert sum(1 for p in parsed if p.kind == "finder") == 3
    assert not any(p.kind.startswith("frame") for p in parsed)


def test_render_accepts_preset_and_size(client) -> None:
    resp = client.post("/api/render", json={"content": "HELLO", "preset": "matrix", "size": 300})
    body = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert 'width="300"' in body
    assert "#022c22" in body


def test_missing_content(client) -> None:
    resp = client.post("/api/render", json={"preset": "royal"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ConfigError"


def test_config_error_maps_to_400(client) -> None:
    resp = client.post("/api/render", json={"content": "HELLO", "dotScale": 3})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ConfigError"


def test_encoding_error_maps_to_400(client) -> None:
    resp = client.post("/api/render", json={"content": "9" * 8000})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "EncodingError"


@pytest.mark.parametrize("body", [
    {"content": "HELLO", "format": "gif"},
    {"content": "HELLO", "size": 0},
    {"content": "HELLO", "ecc": "Z"},
])
def test_invalid_request_fields(client, body) -> None:
    assert client.post("/api/render", json=body).status_code == 400


def test_external_logo_is_rejected(client) -> None:
    resp = client.post("/api/render", json={"content": "HELLO", "logo": "https://example.com/logo.png"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ConfigError"


def test_embedded_logo_is_inlined(client) -> None:
    href = "data:image/png;base64,bG9nbw=="
    resp = client.post("/api/render", json={"content": "HELLO", "logo": href})
    assert resp.status_code == 200
    logo = next(p for p in parse_vector_text(resp.get_data(as_text=True)) if p.kind == "logo")
    assert logo.attributes["href"] == href


def test_presets(client) -> None:
    data = client.get("/api/presets").get_json()
    assert set(data) == {"cyberpunk", "royal", "matrix", "print-safe"}
    assert data["print-safe"]["background"] == "#ffffff"


def test_render_raster(cairosvg, client) -> None:
    resp = client.post("/api/render", json={"content": "HELLO", "format": "raster"})
    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.data.startswith(b"\x89PNG")
