"""Pre-registered named transforms available to style configurations.

A configuration may only obtain function-valued entries (plugins) through
``require`` of a name registered here.  Each value is a ``NamedTransform``:
it remembers the ``require(...)`` source that produced it so it can be
serialized back to the same expression, and it is callable with a
``PluginAPI`` to contribute CSS to the generator.

Data modules (``tailwindcss/colors``, ``tailwindcss/defaultTheme``) are
plain dictionaries.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

from ..errors import ConfigEvalError
from .theme import default_theme, palette

Declarations = dict[str, str]


# ---------------------------------------------------------------------------
# Plugin API
# ---------------------------------------------------------------------------


@dataclass
class FunctionalUtility:
    """A utility family whose value comes from a scale, e.g. ``fade-in-50``."""

    prefix: str
    build: Callable[[str], Declarations]
    values: dict[str, str]


@dataclass
class PluginAPI:
    """The surface a transform uses to contribute CSS."""

    theme_values: dict[str, Any]
    base: dict[str, Declarations] = field(default_factory=dict)
    components: dict[str, Declarations] = field(default_factory=dict)
    utilities: dict[str, Declarations] = field(default_factory=dict)
    functional: list[FunctionalUtility] = field(default_factory=list)
    keyframes: dict[str, dict[str, Declarations]] = field(default_factory=dict)

    def theme(self, path: str, default: Any = None) -> Any:
        """Look up a dotted theme path, e.g. ``theme("colors.gray.200")``."""
        node: Any = self.theme_values
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def add_base(self, rules: dict[str, Declarations]) -> None:
        self.base.update(rules)

    def add_components(self, rules: dict[str, Declarations]) -> None:
        self.components.update(rules)

    def add_utilities(self, rules: dict[str, Declarations]) -> None:
        self.utilities.update(rules)

    def match_utilities(
        self,
        builders: dict[str, Callable[[str], Declarations]],
        values: dict[str, str],
    ) -> None:
        for prefix, build in builders.items():
            self.functional.append(FunctionalUtility(prefix, build, dict(values)))

    def add_keyframes(self, name: str, frames: dict[str, Declarations]) -> None:
        self.keyframes[name] = frames


# ---------------------------------------------------------------------------
# NamedTransform
# ---------------------------------------------------------------------------


class NamedTransform:
    """A callable plugin obtained from the registry.

    ``source`` is the exact expression that recreates this transform, e.g.
    ``require("tailwindcss-animate")`` or
    ``require("@tailwindcss/typography")({"className": "prose"})``.
    """

    def __init__(
        self,
        name: str,
        handler: Callable[[PluginAPI, dict[str, Any]], None],
        options: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.handler = handler
        self.options = options

    @property
    def source(self) -> str:
        text = f"require({json.dumps(self.name)})"
        if self.options is not None:
            text += f"({json.dumps(self.options, separators=(', ', ': '))})"
        return text

    def configure(self, options: Any = None) -> "NamedTransform":
        """Return a copy bound to *options* (``plugin({...})`` in a config)."""
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise ConfigEvalError(f"Options for {self.name} must be an object")
        try:
            json.dumps(options)
        except TypeError as exc:
            raise ConfigEvalError(f"Options for {self.name} must be plain data: {exc}") from exc
        return NamedTransform(self.name, self.handler, options)

    def __call__(self, api: PluginAPI) -> None:
        self.handler(api, self.options or {})

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NamedTransform) and other.source == self.source

    def __hash__(self) -> int:
        return hash(self.source)

    def __repr__(self) -> str:
        return f"NamedTransform({self.source})"


# ---------------------------------------------------------------------------
# Plugin handlers
# ---------------------------------------------------------------------------


def _animate(api: PluginAPI, options: dict[str, Any]) -> None:
    api.add_keyframes(
        "enter",
        {
            "from": {
                "opacity": "var(--tw-enter-opacity, 1)",
                "transform": (
                    "translate3d(var(--tw-enter-translate-x, 0), var(--tw-enter-translate-y, 0), 0) "
                    "scale3d(var(--tw-enter-scale, 1), var(--tw-enter-scale, 1), var(--tw-enter-scale, 1)) "
                    "rotate(var(--tw-enter-rotate, 0))"
                ),
            }
        },
    )
    api.add_keyframes(
        "exit",
        {
            "to": {
                "opacity": "var(--tw-exit-opacity, 1)",
                "transform": (
                    "translate3d(var(--tw-exit-translate-x, 0), var(--tw-exit-translate-y, 0), 0) "
                    "scale3d(var(--tw-exit-scale, 1), var(--tw-exit-scale, 1), var(--tw-exit-scale, 1)) "
                    "rotate(var(--tw-exit-rotate, 0))"
                ),
            }
        },
    )
    api.add_utilities(
        {
            ".animate-in": {
                "animation-name": "enter",
                "animation-duration": "150ms",
                "--tw-enter-opacity": "initial",
                "--tw-enter-scale": "initial",
                "--tw-enter-rotate": "initial",
                "--tw-enter-translate-x": "initial",
                "--tw-enter-translate-y": "initial",
            },
            ".animate-out": {
                "animation-name": "exit",
                "animation-duration": "150ms",
                "--tw-exit-opacity": "initial",
                "--tw-exit-scale": "initial",
                "--tw-exit-rotate": "initial",
                "--tw-exit-translate-x": "initial",
                "--tw-exit-translate-y": "initial",
            },
            ".running": {"animation-play-state": "running"},
            ".paused": {"animation-play-state": "paused"},
        }
    )
    api.match_utilities(
        {
            "fade-in": lambda v: {"--tw-enter-opacity": v},
            "fade-out": lambda v: {"--tw-exit-opacity": v},
        },
        {"DEFAULT": "0", **api.theme("opacity", {})},
    )
    api.match_utilities(
        {
            "zoom-in": lambda v: {"--tw-enter-scale": v},
            "zoom-out": lambda v: {"--tw-exit-scale": v},
        },
        {"DEFAULT": "0", **api.theme("scale", {})},
    )
    api.match_utilities(
        {
            "spin-in": lambda v: {"--tw-enter-rotate": v},
            "spin-out": lambda v: {"--tw-exit-rotate": v},
        },
        {"DEFAULT": "30deg", **api.theme("rotate", {})},
    )
    translate = {"DEFAULT": "100%", **api.theme("translate", {})}
    api.match_utilities(
        {
            "slide-in-from-top": lambda v: {"--tw-enter-translate-y": f"-{v}"},
            "slide-in-from-bottom": lambda v: {"--tw-enter-translate-y": v},
            "slide-in-from-left": lambda v: {"--tw-enter-translate-x": f"-{v}"},
            "slide-in-from-right": lambda v: {"--tw-enter-translate-x": v},
            "slide-out-to-top": lambda v: {"--tw-exit-translate-y": f"-{v}"},
            "slide-out-to-bottom": lambda v: {"--tw-exit-translate-y": v},
            "slide-out-to-left": lambda v: {"--tw-exit-translate-x": f"-{v}"},
            "slide-out-to-right": lambda v: {"--tw-exit-translate-x": v},
        },
        translate,
    )
    api.match_utilities(
        {
            "fill-mode": lambda v: {"animation-fill-mode": v},
        },
        {"none": "none", "forwards": "forwards", "backwards": "backwards", "both": "both"},
    )
    api.match_utilities(
        {"repeat": lambda v: {"animation-iteration-count": v}},
        {"0": "0", "1": "1", "infinite": "infinite"},
    )


def _typography(api: PluginAPI, options: dict[str, Any]) -> None:
    name = options.get("className", "prose")
    body = api.theme("colors.gray.700", "#374151")
    headings = api.theme("colors.gray.900", "#111827")
    links = api.theme("colors.gray.900", "#111827")
    api.add_components(
        {
            f".{name}": {"color": body, "max-width": "65ch", "line-height": "1.75"},
            f".{name} :where(p)": {"margin-top": "1.25em", "margin-bottom": "1.25em"},
            f".{name} :where(a)": {
                "color": links,
                "text-decoration": "underline",
                "font-weight": "500",
            },
            f".{name} :where(strong)": {"color": headings, "font-weight": "600"},
            f".{name} :where(h1)": {
                "color": headings,
                "font-weight": "800",
                "font-size": "2.25em",
                "margin-top": "0",
                "margin-bottom": "0.8888889em",
                "line-height": "1.1111111",
            },
            f".{name} :where(h2)": {
                "color": headings,
                "font-weight": "700",
                "font-size": "1.5em",
                "margin-top": "2em",
                "margin-bottom": "1em",
                "line-height": "1.3333333",
            },
            f".{name} :where(h3)": {
                "color": headings,
                "font-weight": "600",
                "font-size": "1.25em",
                "margin-top": "1.6em",
                "margin-bottom": "0.6em",
                "line-height": "1.6",
            },
            f".{name} :where(ul)": {
                "list-style-type": "disc",
                "margin-top": "1.25em",
                "margin-bottom": "1.25em",
                "padding-inline-start": "1.625em",
            },
            f".{name} :where(ol)": {
                "list-style-type": "decimal",
                "margin-top": "1.25em",
                "margin-bottom": "1.25em",
                "padding-inline-start": "1.625em",
            },
            f".{name} :where(code)": {
                "color": headings,
                "font-weight": "600",
                "font-size": "0.875em",
            },
            f".{name} :where(blockquote)": {
                "font-weight": "500",
                "font-style": "italic",
                "border-inline-start-width": "0.25rem",
                "padding-inline-start": "1em",
            },
            f".{name}-sm": {"font-size": "0.875rem", "line-height": "1.7142857"},
            f".{name}-lg": {"font-size": "1.125rem", "line-height": "1.7777778"},
            f".{name}-invert": {
                "color": api.theme("colors.gray.300", "#d1d5db"),
            },
        }
    )


_FORM_INPUTS = (
    "[type='text'],input:where(:not([type])),[type='email'],[type='url'],[type='password'],"
    "[type='number'],[type='date'],[type='search'],[type='tel'],[type='time'],"
    "textarea,select"
)


def _forms(api: PluginAPI, options: dict[str, Any]) -> None:
    border = api.theme("colors.gray.500", "#6b7280")
    focus = api.theme("colors.blue.600", "#2563eb")
    rules = {
        "appearance": "none",
        "background-color": "#fff",
        "border-color": border,
        "border-width": "1px",
        "border-radius": "0px",
        "padding-top": "0.5rem",
        "padding-right": "0.75rem",
        "padding-bottom": "0.5rem",
        "padding-left": "0.75rem",
        "font-size": "1rem",
        "line-height": "1.5rem",
    }
    focus_rules = {
        "outline": "2px solid transparent",
        "outline-offset": "2px",
        "border-color": focus,
    }
    strategy = options.get("strategy")
    if strategy in (None, "base"):
        api.add_base({_FORM_INPUTS: rules, ":is(" + _FORM_INPUTS + "):focus": focus_rules})
    if strategy in (None, "class"):
        for cls in ("form-input", "form-textarea", "form-select", "form-multiselect"):
            api.add_components({f".{cls}": rules, f".{cls}:focus": focus_rules})


def _aspect_ratio(api: PluginAPI, options: dict[str, Any]) -> None:
    steps = {str(n): str(n) for n in range(1, 17)}
    api.match_utilities(
        {
            "aspect-w": lambda v: {
                "position": "relative",
                "padding-bottom": "calc(var(--tw-aspect-h) / var(--tw-aspect-w) * 100%)",
                "--tw-aspect-w": v,
            },
            "aspect-h": lambda v: {"--tw-aspect-h": v},
        },
        steps,
    )
    api.add_utilities(
        {
            ".aspect-none": {"position": "static", "padding-bottom": "0"},
        }
    )


def _scrollbar_hide(api: PluginAPI, options: dict[str, Any]) -> None:
    api.add_utilities(
        {
            ".scrollbar-hide": {"-ms-overflow-style": "none", "scrollbar-width": "none"},
            ".scrollbar-hide::-webkit-scrollbar": {"display": "none"},
            ".scrollbar-default": {"-ms-overflow-style": "auto", "scrollbar-width": "auto"},
        }
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

PLUGINS: dict[str, Callable[[PluginAPI, dict[str, Any]], None]] = {
    "tailwindcss-animate": _animate,
    "@tailwindcss/typography": _typography,
    "@tailwindcss/forms": _forms,
    "@tailwindcss/aspect-ratio": _aspect_ratio,
    "tailwind-scrollbar-hide": _scrollbar_hide,
}

DATA_MODULES: dict[str, Callable[[], Any]] = {
    "tailwindcss/colors": palette,
    "tailwindcss/defaultTheme": default_theme,
    "tailwindcss/defaultTheme.js": default_theme,
}


def require(module: Any) -> Any:
    """Resolve *module* against the registry.

    Raises:
        ConfigEvalError: For any name that is not registered.
    """
    if not isinstance(module, str):
        raise ConfigEvalError("require() expects a string module name")
    if module in PLUGINS:
        return NamedTransform(module, PLUGINS[module])
    if module in DATA_MODULES:
        return DATA_MODULES[module]()
    raise ConfigEvalError(f"Module {module!r} is not available in style configurations")


def is_registered(module: str) -> bool:
    return module in PLUGINS or module in DATA_MODULES
