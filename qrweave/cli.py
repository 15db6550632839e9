"""QR-Weave CLI: render stylised QR codes from the command line."""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from qrweave.config import PRESETS, Colors, StyleConfig
from qrweave.errors import QRWeaveError
from qrweave.logging import audit, get_logger, setup_logging

log = get_logger("cli")


def _style_from_args(args) -> StyleConfig:
    style = StyleConfig.from_json_file(args.config) if args.config else StyleConfig()
    if args.preset:
        style = style.with_preset(args.preset)

    colors = style.colors
    colors = Colors(
        background=args.background or colors.background,
        foreground=args.foreground or colors.foreground,
        accent=args.accent or colors.accent,
    )

    overrides = {"content": args.content, "colors": colors}
    for name in ("connectivity", "dot_scale", "mandala_complexity"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.no_frame:
        overrides["show_frame"] = False
    if args.logo:
        from qrweave.logo import load_logo
        overrides["logo"] = load_logo(args.logo)
    return replace(style, **overrides)


def cmd_render(args):
    """Render a stylised QR code to .svg or .png."""
    from qrweave.compositor import render
    from qrweave.encoder import encode
    from qrweave.export import write_artifact

    style = _style_from_args(args)
    matrix = encode(style.content, ecc=args.ecc, version=args.version)
    scene = render(matrix, style, args.size)
    path = write_artifact(scene, Path(args.output))

    counts = scene.counts()
    print(f"Rendered: {path} ({scene.width}x{scene.height})")
    print(f"  Matrix:  {matrix.size}x{matrix.size} (version {matrix.version}, ECC {matrix.ecc})")
    print(f"  Layers:  frame={counts['frame']} edges={counts['edges']} dots={counts['dots']} "
          f"finders={counts['finders']} logo={counts['logo']}")

    if args.verify:
        from qrweave.verify import any_success, verify_scene
        results = verify_scene(scene, expected_data=style.content)
        for r in results:
            status = "PASS" if r.success else "FAIL"
            print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
        if not any_success(results):
            sys.exit(1)


def cmd_zones(args):
    """Print the zone layout and correction-budget usage for some content."""
    from qrweave.encoder import encode
    from qrweave.zones import Zone, ZoneClassifier, correction_capacity, within_capacity

    matrix = encode(args.content, ecc=args.ecc, version=args.version)
    n = matrix.size
    classifier = ZoneClassifier(n, has_logo=args.logo)

    active = matrix.count_active()
    excluded = sum(1 for r, c in matrix.active_cells() if classifier.is_excluded(r, c))

    print(f"QR Version {matrix.version} ({n}x{n} = {n * n} modules), ECC {matrix.ecc}")
    print(f"  Finder zones:    {classifier.finder_area():4d} modules")
    print(f"  Logo safe zone:  {classifier.logo_safe_area():4d} modules")
    print(f"  Active modules:  {active:4d} ({excluded} carved out, {active - excluded} drawn as dots)")
    print(f"  Carve-out ratio: {classifier.carve_out_ratio():.1%} "
          f"(capacity {correction_capacity(matrix.ecc):.0%}) -> "
          f"{'OK' if within_capacity(classifier, matrix.ecc) else 'OVER BUDGET'}")

    if args.map:
        glyphs = {Zone.FINDER: "F", Zone.LOGO_SAFE: "L"}
        for r in range(n):
            row = []
            for c in range(n):
                zone = classifier.zone_of(r, c)
                row.append(glyphs.get(zone) or ("#" if matrix.is_active(r, c) else "."))
            print("  " + "".join(row))


def cmd_verify(args):
    """Verify a rendered QR code image."""
    from PIL import Image

    from qrweave.verify import any_success, verify

    with Image.open(args.image) as img:
        results = verify(img.copy(), expected_data=args.expected)

    for r in results:
        status = "PASS" if r.success else "FAIL"
        print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
    sys.exit(0 if any_success(results) else 1)


def cmd_presets(args):
    """List the built-in colour presets."""
    for name, colors in PRESETS.items():
        print(f"  {name:12s} bg={colors.background} fg={colors.foreground} accent={colors.accent}")


def cmd_serve(args):
    """Start the HTTP render API."""
    from qrweave.server import create_app

    app = create_app(default_size=args.size)
    print(f"Starting render API on http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qrweave", description="QR-Weave: stylised network QR codes")

    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- render ---
    p_render = subparsers.add_parser("render", help="Render a stylised QR code")
    p_render.add_argument("content", help="URL or text to encode")
    p_render.add_argument("-o", "--output", default="output/qr.svg", help="Output path (.svg or .png)")
    p_render.add_argument("-v", "--version", type=int, default=None, help="QR version 1-40 (auto if omitted)")
    p_render.add_argument("-e", "--ecc", default="H", choices=["L", "M", "Q", "H"], help="Error correction level")
    p_render.add_argument("-s", "--size", type=int, default=500, help="Drawing size in pixels")
    p_render.add_argument("--config", default=None, help="JSON style config file")
    p_render.add_argument("--preset", default=None, choices=sorted(PRESETS), help="Colour preset")
    p_render.add_argument("--background", default=None, help="Background colour (hex)")
    p_render.add_argument("--foreground", default=None, help="Data network colour (hex)")
    p_render.add_argument("--accent", default=None, help="Finder and frame colour (hex)")
    p_render.add_argument("--connectivity", type=float, default=None, help="Edge opacity 0-1")
    p_render.add_argument("--dot-scale", type=float, default=None, help="Dot size 0.1-1")
    p_render.add_argument("--mandala-complexity", type=float, default=None, help="Frame complexity 0-1")
    p_render.add_argument("--no-frame", action="store_true", help="Omit the decorative frame")
    p_render.add_argument("--logo", default=None, help="Logo image to place in the centre")
    p_render.add_argument("--verify", action="store_true", help="Scan the rendered code afterwards")

    # --- zones ---
    p_zones = subparsers.add_parser("zones", help="Show zone layout and correction budget")
    p_zones.add_argument("content", help="URL or text to encode")
    p_zones.add_argument("-v", "--version", type=int, default=None, help="QR version")
    p_zones.add_argument("-e", "--ecc", default="H", choices=["L", "M", "Q", "H"])
    p_zones.add_argument("--logo", action="store_true", help="Reserve the logo safe zone")
    p_zones.add_argument("--map", action="store_true", help="Print an ASCII zone map")

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Scan a rendered QR code image")
    p_ver.add_argument("image", help="Path to image")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")

    # --- presets ---
    subparsers.add_parser("presets", help="List colour presets")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Start the HTTP render API")
    p_serve.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    p_serve.add_argument("--port", type=int, default=8080, help="Port to listen on")
    p_serve.add_argument("-s", "--size", type=int, default=500, help="Default drawing size")
    p_serve.add_argument("--debug", action="store_true", help="Enable debug mode")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    level = "DEBUG" if args.verbose else "INFO"
    setup_logging(level=level, log_file=args.log_file)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "render": cmd_render,
        "zones": cmd_zones,
        "verify": cmd_verify,
        "presets": cmd_presets,
        "serve": cmd_serve,
    }
    try:
        commands[args.command](args)
    except QRWeaveError as exc:
        audit("cli.failed", logger=log, command=args.command, error=type(exc).__name__)
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(2)
    audit("cli.done", logger=log, command=args.command)


if __name__ == "__main__":
    main()
