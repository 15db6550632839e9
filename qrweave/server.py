"""HTTP render API: JSON style in, SVG or PNG out."""

from qrweave.compositor import render
from qrweave.config import PRESETS, StyleConfig
from qrweave.encoder import encode
from qrweave.errors import ConfigError, EncodingError, ExportError, RasterError
from qrweave.export import export
from qrweave.logging import audit, get_logger, trace

log = get_logger("server")

MIME_TYPES = {"vector": "image/svg+xml", "raster": "image/png"}
MAX_SIZE = 4096


def _parse_size(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= MAX_SIZE:
        raise ConfigError(f"size must be an integer in [1, {MAX_SIZE}], got {value!r}")
    return value


@trace
def create_app(default_size: int = 500):
    """Create a Flask app exposing ``render`` and ``export`` over HTTP."""
    from flask import Flask, Response, jsonify, request

    app = Flask(__name__)

    @app.errorhandler(ConfigError)
    @app.errorhandler(EncodingError)
    def bad_request(err):
        audit("api.rejected", logger=log, error=type(err).__name__, detail=str(err))
        return jsonify({"error": type(err).__name__, "detail": str(err)}), 400

    @app.errorhandler(RasterError)
    @app.errorhandler(ExportError)
    def export_failed(err):
        audit("api.export_failed", logger=log, error=type(err).__name__, detail=str(err))
        return jsonify({"error": type(err).__name__, "detail": str(err)}), 500

    @app.route("/api/render", methods=["POST"])
    def render_code():
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data.get("content"):
            return jsonify({"error": "ConfigError", "detail": "Missing 'content' field"}), 400

        style = StyleConfig.from_dict(data)
        size = _parse_size(data.get("size", default_size))
        fmt = data.get("format", "vector")
        if fmt not in MIME_TYPES:
            raise ConfigError(f"format must be one of {', '.join(MIME_TYPES)}, got {fmt!r}")

        matrix = encode(style.content, ecc=data.get("ecc", "H"))
        scene = render(matrix, style, size)
        body = export(scene, fmt)
        audit("api.rendered", logger=log, format=fmt, size=size, bytes=len(body))
        return Response(body, mimetype=MIME_TYPES[fmt])

    @app.route("/api/presets")
    def list_presets():
        return jsonify({
            name: {"background": c.background, "foreground": c.foreground, "accent": c.accent}
            for name, c in PRESETS.items()
        })

    return app
