"""Style configuration: colours, network parameters, frame and logo options.

A ``StyleConfig`` is validated when constructed and never mutated; changing a
parameter means building a new config (``dataclasses.replace``) and rendering
again. Out-of-domain values raise ``ConfigError`` instead of being clamped.
"""

import json
import re
from dataclasses import dataclass, field, replace
from pathlib import Path

from qrweave.errors import ConfigError
from qrweave.logging import get_logger

log = get_logger("config")

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

DOT_SCALE_RANGE = (0.1, 1.0)
UNIT_RANGE = (0.0, 1.0)

DEFAULT_CONTENT = "https://llegue.app"
LOGO_URI_PREFIX = "data:image/"


def normalize_hex(value: str) -> str:
    """Return ``value`` as lower-case ``#rrggbb``; accepts ``#rgb`` and a missing '#'."""
    m = _HEX_RE.match(str(value).strip())
    if not m:
        raise ConfigError(f"Invalid hex colour {value!r}")
    digits = m.group(1).lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


def parse_hex_color(value: str) -> tuple[int, int, int]:
    """Parse a hex colour string (with or without '#') to an RGB tuple."""
    s = normalize_hex(value)[1:]
    return tuple(int(s[i : i + 2], 16) for i in (0, 2, 4))


def _check_range(name: str, value, lo: float, hi: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{name} must be a number, got {value!r}")
    if not lo <= value <= hi:
        raise ConfigError(f"{name} must be within [{lo}, {hi}], got {value}")
    return float(value)


@dataclass(frozen=True)
class Colors:
    """The three semantic colours of a rendered code."""

    background: str = "#09090b"
    foreground: str = "#06b6d4"
    accent: str = "#d946ef"

    def __post_init__(self):
        for name in ("background", "foreground", "accent"):
            object.__setattr__(self, name, normalize_hex(getattr(self, name)))


@dataclass(frozen=True)
class LogoRef:
    """An embedded logo image; ``href`` is a ``data:image/...`` URI.

    Only inline images are accepted so exported SVG never points at a file
    or remote URL. Use ``qrweave.logo.load_logo`` to embed a file.
    """

    href: str

    def __post_init__(self):
        if not self.href:
            raise ConfigError("Logo reference cannot be empty")
        if not isinstance(self.href, str) or not self.href.startswith(LOGO_URI_PREFIX):
            raise ConfigError(f"Logo must be an embedded {LOGO_URI_PREFIX}... URI, got {str(self.href)[:40]!r}")


PRESETS: dict[str, Colors] = {
    "cyberpunk": Colors(background="#09090b", foreground="#06b6d4", accent="#d946ef"),
    "royal": Colors(background="#1e1b4b", foreground="#fbbf24", accent="#f59e0b"),
    "matrix": Colors(background="#022c22", foreground="#4ade80", accent="#22c55e"),
    "print-safe": Colors(background="#ffffff", foreground="#000000", accent="#000000"),
}


@dataclass(frozen=True)
class StyleConfig:
    """Everything that controls how one code is drawn."""

    content: str = DEFAULT_CONTENT
    colors: Colors = field(default_factory=Colors)
    connectivity: float = 0.8
    dot_scale: float = 0.7
    mandala_complexity: float = 0.5
    show_frame: bool = True
    logo: LogoRef | None = None

    def __post_init__(self):
        if not isinstance(self.colors, Colors):
            raise ConfigError(f"colors must be a Colors value, got {type(self.colors).__name__}")
        object.__setattr__(self, "connectivity", _check_range("connectivity", self.connectivity, *UNIT_RANGE))
        object.__setattr__(self, "dot_scale", _check_range("dot_scale", self.dot_scale, *DOT_SCALE_RANGE))
        object.__setattr__(
            self, "mandala_complexity",
            _check_range("mandala_complexity", self.mandala_complexity, *UNIT_RANGE),
        )
        if not isinstance(self.show_frame, bool):
            raise ConfigError(f"show_frame must be a boolean, got {self.show_frame!r}")
        if self.logo is not None and not isinstance(self.logo, LogoRef):
            raise ConfigError("logo must be a LogoRef or None")

    def with_preset(self, name: str) -> "StyleConfig":
        """Copy of this config with the colours of a named preset."""
        try:
            colors = PRESETS[name]
        except KeyError:
            raise ConfigError(f"Unknown preset {name!r} (choose from {', '.join(PRESETS)})") from None
        return replace(self, colors=colors)

    @classmethod
    def from_dict(cls, data: dict) -> "StyleConfig":
        """Build a config from a plain mapping.

        Accepts snake_case keys as well as the camelCase names used by the
        web control panel (``dotScale``, ``mandalaComplexity``, ``showFrame``).
        ``colors`` may be a mapping or a preset name; ``bg``/``fg`` aliases
        are accepted inside the colour mapping.
        """
        if not isinstance(data, dict):
            raise ConfigError("Style configuration must be a JSON object")
        aliases = {
            "dotScale": "dot_scale",
            "mandalaComplexity": "mandala_complexity",
            "showFrame": "show_frame",
            "value": "content",
        }
        flat = {}
        for key, value in data.items():
            if key == "style" and isinstance(value, dict):
                for k, v in value.items():
                    flat[aliases.get(k, k)] = v
            else:
                flat[aliases.get(key, key)] = value

        kwargs = {}
        known = {"content", "connectivity", "dot_scale", "mandala_complexity", "show_frame"}
        for key in known & flat.keys():
            kwargs[key] = flat[key]

        preset = flat.get("preset")
        colors = flat.get("colors")
        if isinstance(colors, str):
            preset, colors = colors, None
        if preset is not None:
            if preset not in PRESETS:
                raise ConfigError(f"Unknown preset {preset!r}")
            kwargs["colors"] = PRESETS[preset]
        if isinstance(colors, dict):
            color_aliases = {"bg": "background", "fg": "foreground"}
            base = kwargs.get("colors", Colors())
            merged = {
                "background": base.background,
                "foreground": base.foreground,
                "accent": base.accent,
            }
            for k, v in colors.items():
                merged[color_aliases.get(k, k)] = v
            unknown = set(merged) - {"background", "foreground", "accent"}
            if unknown:
                raise ConfigError(f"Unknown colour keys: {', '.join(sorted(unknown))}")
            kwargs["colors"] = Colors(**merged)

        logo = flat.get("logo")
        if isinstance(logo, dict):
            logo = logo.get("href")
        if logo is not None:
            kwargs["logo"] = LogoRef(href=logo)

        return cls(**kwargs)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "StyleConfig":
        path = Path(path)
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Cannot read style config {path}: {exc}") from exc
        config = cls.from_dict(data)
        log.info("Loaded style config from %s", path)
        return config
