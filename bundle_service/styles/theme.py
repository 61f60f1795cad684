"""Default design tokens for the utility-class generator.

``default_theme()`` returns a fresh, mutable copy each call so that merging
a caller configuration never leaks between requests.  Scales that derive
from other scales (padding from spacing, and so on) are filled in by
``resolve_theme`` after user overrides and ``extend`` blocks are applied.
"""

from __future__ import annotations

import copy
from typing import Any

# ---------------------------------------------------------------------------
# Color palette
# ---------------------------------------------------------------------------

SHADES = ("50", "100", "200", "300", "400", "500", "600", "700", "800", "900", "950")

_PALETTE_HEX = {
    "slate": "f8fafc f1f5f9 e2e8f0 cbd5e1 94a3b8 64748b 475569 334155 1e293b 0f172a 020617",
    "gray": "f9fafb f3f4f6 e5e7eb d1d5db 9ca3af 6b7280 4b5563 374151 1f2937 111827 030712",
    "zinc": "fafafa f4f4f5 e4e4e7 d4d4d8 a1a1aa 71717a 52525b 3f3f46 27272a 18181b 09090b",
    "neutral": "fafafa f5f5f5 e5e5e5 d4d4d4 a3a3a3 737373 525252 404040 262626 171717 0a0a0a",
    "stone": "fafaf9 f5f5f4 e7e5e4 d6d3d1 a8a29e 78716c 57534e 44403c 292524 1c1917 0c0a09",
    "red": "fef2f2 fee2e2 fecaca fca5a5 f87171 ef4444 dc2626 b91c1c 991b1b 7f1d1d 450a0a",
    "orange": "fff7ed ffedd5 fed7aa fdba74 fb923c f97316 ea580c c2410c 9a3412 7c2d12 431407",
    "amber": "fffbeb fef3c7 fde68a fcd34d fbbf24 f59e0b d97706 b45309 92400e 78350f 451a03",
    "yellow": "fefce8 fef9c3 fef08a fde047 facc15 eab308 ca8a04 a16207 854d0e 713f12 422006",
    "lime": "f7fee7 ecfccb d9f99d bef264 a3e635 84cc16 65a30d 4d7c0f 3f6212 365314 1a2e05",
    "green": "f0fdf4 dcfce7 bbf7d0 86efac 4ade80 22c55e 16a34a 15803d 166534 14532d 052e16",
    "emerald": "ecfdf5 d1fae5 a7f3d0 6ee7b7 34d399 10b981 059669 047857 065f46 064e3b 022c22",
    "teal": "f0fdfa ccfbf1 99f6e4 5eead4 2dd4bf 14b8a6 0d9488 0f766e 115e59 134e4a 042f2e",
    "cyan": "ecfeff cffafe a5f3fc 67e8f9 22d3ee 06b6d4 0891b2 0e7490 155e75 164e63 083344",
    "sky": "f0f9ff e0f2fe bae6fd 7dd3fc 38bdf8 0ea5e9 0284c7 0369a1 075985 0c4a6e 082f49",
    "blue": "eff6ff dbeafe bfdbfe 93c5fd 60a5fa 3b82f6 2563eb 1d4ed8 1e40af 1e3a8a 172554",
    "indigo": "eef2ff e0e7ff c7d2fe a5b4fc 818cf8 6366f1 4f46e5 4338ca 3730a3 312e81 1e1b4b",
    "violet": "f5f3ff ede9fe ddd6fe c4b5fd a78bfa 8b5cf6 7c3aed 6d28d9 5b21b6 4c1d95 2e1065",
    "purple": "faf5ff f3e8ff e9d5ff d8b4fe c084fc a855f7 9333ea 7e22ce 6b21a8 581c87 3b0764",
    "fuchsia": "fdf4ff fae8ff f5d0fe f0abfc e879f9 d946ef c026d3 a21caf 86198f 701a75 4a044e",
    "pink": "fdf2f8 fce7f3 fbcfe8 f9a8d4 f472b6 ec4899 db2777 be185d 9d174d 831843 500724",
    "rose": "fff1f2 ffe4e6 fecdd3 fda4af fb7185 f43f5e e11d48 be123c 9f1239 881337 4c0519",
}


def palette() -> dict[str, Any]:
    """Return the full named color palette (``tailwindcss/colors``)."""
    colors: dict[str, Any] = {
        "inherit": "inherit",
        "current": "currentColor",
        "transparent": "transparent",
        "black": "#000",
        "white": "#fff",
    }
    for name, hexes in _PALETTE_HEX.items():
        colors[name] = {shade: f"#{value}" for shade, value in zip(SHADES, hexes.split())}
    return colors


# ---------------------------------------------------------------------------
# Scales
# ---------------------------------------------------------------------------

_SPACING_STEPS = (
    "0.5 1 1.5 2 2.5 3 3.5 4 5 6 7 8 9 10 11 12 14 16 20 24 28 32 36 40 44 48 52 56 "
    "60 64 72 80 96"
)


def _rem(value: float) -> str:
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return f"{text}rem"


def _spacing() -> dict[str, str]:
    scale = {"px": "1px", "0": "0px"}
    for step in _SPACING_STEPS.split():
        scale[step] = _rem(float(step) * 0.25)
    return scale


def _fractions() -> dict[str, str]:
    result = {}
    for denominator in (2, 3, 4, 5, 6, 12):
        for numerator in range(1, denominator):
            percent = f"{numerator / denominator * 100:.6f}".rstrip("0").rstrip(".")
            result[f"{numerator}/{denominator}"] = f"{percent}%"
    return result


_SCREENS = {"sm": "640px", "md": "768px", "lg": "1024px", "xl": "1280px", "2xl": "1536px"}

_DEFAULT_THEME: dict[str, Any] = {
    "screens": _SCREENS,
    "colors": palette(),
    "spacing": _spacing(),
    "fontFamily": {
        "sans": [
            "ui-sans-serif",
            "system-ui",
            "sans-serif",
            '"Apple Color Emoji"',
            '"Segoe UI Emoji"',
            '"Segoe UI Symbol"',
            '"Noto Color Emoji"',
        ],
        "serif": ["ui-serif", "Georgia", "Cambria", '"Times New Roman"', "Times", "serif"],
        "mono": [
            "ui-monospace",
            "SFMono-Regular",
            "Menlo",
            "Monaco",
            "Consolas",
            '"Liberation Mono"',
            '"Courier New"',
            "monospace",
        ],
    },
    "fontSize": {
        "xs": ["0.75rem", "1rem"],
        "sm": ["0.875rem", "1.25rem"],
        "base": ["1rem", "1.5rem"],
        "lg": ["1.125rem", "1.75rem"],
        "xl": ["1.25rem", "1.75rem"],
        "2xl": ["1.5rem", "2rem"],
        "3xl": ["1.875rem", "2.25rem"],
        "4xl": ["2.25rem", "2.5rem"],
        "5xl": ["3rem", "1"],
        "6xl": ["3.75rem", "1"],
        "7xl": ["4.5rem", "1"],
        "8xl": ["6rem", "1"],
        "9xl": ["8rem", "1"],
    },
    "fontWeight": {
        "thin": "100",
        "extralight": "200",
        "light": "300",
        "normal": "400",
        "medium": "500",
        "semibold": "600",
        "bold": "700",
        "extrabold": "800",
        "black": "900",
    },
    "lineHeight": {
        "none": "1",
        "tight": "1.25",
        "snug": "1.375",
        "normal": "1.5",
        "relaxed": "1.625",
        "loose": "2",
        **{str(n): _rem(n * 0.25) for n in range(3, 11)},
    },
    "letterSpacing": {
        "tighter": "-0.05em",
        "tight": "-0.025em",
        "normal": "0em",
        "wide": "0.025em",
        "wider": "0.05em",
        "widest": "0.1em",
    },
    "borderRadius": {
        "none": "0px",
        "sm": "0.125rem",
        "DEFAULT": "0.25rem",
        "md": "0.375rem",
        "lg": "0.5rem",
        "xl": "0.75rem",
        "2xl": "1rem",
        "3xl": "1.5rem",
        "full": "9999px",
    },
    "borderWidth": {"DEFAULT": "1px", "0": "0px", "2": "2px", "4": "4px", "8": "8px"},
    "ringWidth": {"DEFAULT": "3px", "0": "0px", "1": "1px", "2": "2px", "4": "4px", "8": "8px"},
    "ringOffsetWidth": {"0": "0px", "1": "1px", "2": "2px", "4": "4px", "8": "8px"},
    "boxShadow": {
        "sm": "0 1px 2px 0 rgb(0 0 0 / 0.05)",
        "DEFAULT": "0 1px 3px 0 rgb(0 0 0 / 0.1), 0 1px 2px -1px rgb(0 0 0 / 0.1)",
        "md": "0 4px 6px -1px rgb(0 0 0 / 0.1), 0 2px 4px -2px rgb(0 0 0 / 0.1)",
        "lg": "0 10px 15px -3px rgb(0 0 0 / 0.1), 0 4px 6px -4px rgb(0 0 0 / 0.1)",
        "xl": "0 20px 25px -5px rgb(0 0 0 / 0.1), 0 8px 10px -6px rgb(0 0 0 / 0.1)",
        "2xl": "0 25px 50px -12px rgb(0 0 0 / 0.25)",
        "inner": "inset 0 2px 4px 0 rgb(0 0 0 / 0.05)",
        "none": "none",
    },
    "opacity": {str(n): (f"{n / 100:g}") for n in range(0, 101, 5)},
    "zIndex": {"0": "0", "10": "10", "20": "20", "30": "30", "40": "40", "50": "50", "auto": "auto"},
    "order": {
        **{str(n): str(n) for n in range(1, 13)},
        "first": "-9999",
        "last": "9999",
        "none": "0",
    },
    "blur": {
        "none": "0",
        "sm": "4px",
        "DEFAULT": "8px",
        "md": "12px",
        "lg": "16px",
        "xl": "24px",
        "2xl": "40px",
        "3xl": "64px",
    },
    "scale": {
        n: f"{int(n) / 100:g}" for n in ("0", "50", "75", "90", "95", "100", "105", "110", "125", "150")
    },
    "rotate": {n: f"{n}deg" for n in ("0", "1", "2", "3", "6", "12", "45", "90", "180")},
    "transitionDuration": {
        "DEFAULT": "150ms",
        **{n: f"{n}ms" for n in ("0", "75", "100", "150", "200", "300", "500", "700", "1000")},
    },
    "transitionDelay": {
        n: f"{n}ms" for n in ("0", "75", "100", "150", "200", "300", "500", "700", "1000")
    },
    "transitionTimingFunction": {
        "DEFAULT": "cubic-bezier(0.4, 0, 0.2, 1)",
        "linear": "linear",
        "in": "cubic-bezier(0.4, 0, 1, 1)",
        "out": "cubic-bezier(0, 0, 0.2, 1)",
        "in-out": "cubic-bezier(0.4, 0, 0.2, 1)",
    },
    "animation": {
        "none": "none",
        "spin": "spin 1s linear infinite",
        "ping": "ping 1s cubic-bezier(0, 0, 0.2, 1) infinite",
        "pulse": "pulse 2s cubic-bezier(0.4, 0, 0.6, 1) infinite",
        "bounce": "bounce 1s infinite",
    },
    "keyframes": {
        "spin": {"to": {"transform": "rotate(360deg)"}},
        "ping": {"75%, 100%": {"transform": "scale(2)", "opacity": "0"}},
        "pulse": {"50%": {"opacity": ".5"}},
        "bounce": {
            "0%, 100%": {
                "transform": "translateY(-25%)",
                "animation-timing-function": "cubic-bezier(0.8, 0, 1, 1)",
            },
            "50%": {
                "transform": "none",
                "animation-timing-function": "cubic-bezier(0, 0, 0.2, 1)",
            },
        },
    },
    "maxWidth": {
        "none": "none",
        "0": "0rem",
        "xs": "20rem",
        "sm": "24rem",
        "md": "28rem",
        "lg": "32rem",
        "xl": "36rem",
        "2xl": "42rem",
        "3xl": "48rem",
        "4xl": "56rem",
        "5xl": "64rem",
        "6xl": "72rem",
        "7xl": "80rem",
        "full": "100%",
        "min": "min-content",
        "max": "max-content",
        "fit": "fit-content",
        "prose": "65ch",
        **{f"screen-{k}": v for k, v in _SCREENS.items()},
    },
    "gridTemplateColumns": {
        "none": "none",
        "subgrid": "subgrid",
        **{str(n): f"repeat({n}, minmax(0, 1fr))" for n in range(1, 13)},
    },
    "gridTemplateRows": {
        "none": "none",
        "subgrid": "subgrid",
        **{str(n): f"repeat({n}, minmax(0, 1fr))" for n in range(1, 13)},
    },
    "container": {},
}

# Scales copied from another scale when the config does not set them.
_SPACING_DERIVED = ("padding", "margin", "gap", "inset", "space", "translate", "scrollMargin")

_SIZE_EXTRAS = {"auto": "auto", "full": "100%", "min": "min-content", "max": "max-content", "fit": "fit-content"}


def default_theme() -> dict[str, Any]:
    """Return a deep copy of the default theme (``tailwindcss/defaultTheme``)."""
    return copy.deepcopy(_DEFAULT_THEME)


def resolve_theme(config: dict[str, Any]) -> dict[str, Any]:
    """Build the effective theme for *config*.

    Keys under ``theme`` replace the default scale wholesale; keys under
    ``theme.extend`` are merged into the (possibly replaced) scale.
    Derived scales are then filled in from ``spacing`` and ``colors``.
    """
    theme = default_theme()
    user_theme = config.get("theme") or {}
    if not isinstance(user_theme, dict):
        raise TypeError("theme must be an object")

    for key, value in user_theme.items():
        if key != "extend":
            theme[key] = copy.deepcopy(value)

    extend = user_theme.get("extend") or {}
    if not isinstance(extend, dict):
        raise TypeError("theme.extend must be an object")
    derived_extend: dict[str, Any] = {}
    for key, value in extend.items():
        if key in theme and isinstance(theme[key], dict) and isinstance(value, dict):
            theme[key] = _extend(theme[key], value)
        elif key in theme:
            theme[key] = copy.deepcopy(value)
        else:
            derived_extend[key] = value

    spacing = theme["spacing"]
    for key in _SPACING_DERIVED:
        theme.setdefault(key, dict(spacing))
    for key in ("width", "height", "size", "minWidth", "minHeight", "maxHeight"):
        if key not in theme:
            theme[key] = {**spacing, **_fractions(), **_SIZE_EXTRAS}
    theme["width"].setdefault("screen", "100vw")
    theme["height"].setdefault("screen", "100vh")
    theme["minHeight"].setdefault("screen", "100vh")
    theme["maxHeight"].setdefault("screen", "100vh")
    theme["inset"] = {**_fractions(), "auto": "auto", "full": "100%", **theme["inset"]}
    theme["translate"] = {**_fractions(), "full": "100%", **theme["translate"]}
    theme["margin"] = {"auto": "auto", **theme["margin"]}

    colors = theme["colors"]
    for key in (
        "textColor",
        "backgroundColor",
        "borderColor",
        "ringColor",
        "ringOffsetColor",
        "placeholderColor",
        "fill",
        "stroke",
        "gradientColorStops",
        "divideColor",
        "outlineColor",
    ):
        theme.setdefault(key, colors)
    theme["borderColor"] = {"DEFAULT": _gray_200(colors), **theme["borderColor"]}

    for key, value in derived_extend.items():
        base = theme.get(key)
        if isinstance(base, dict) and isinstance(value, dict):
            theme[key] = _extend(base, value)
        else:
            theme[key] = copy.deepcopy(value)
    return theme


def _extend(base: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in extra.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _extend(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _gray_200(colors: dict[str, Any]) -> str:
    gray = colors.get("gray")
    if isinstance(gray, dict) and isinstance(gray.get("200"), str):
        return gray["200"]
    return "currentColor"
