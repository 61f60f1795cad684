"""Utility-class CSS generator.

Given an evaluated configuration object, scans content for class-name
candidates and produces the stylesheet for the global CSS input:

- ``@tailwind base`` / ``components`` / ``utilities`` directives are
  replaced by the preflight, component and utility layers
- ``@layer`` blocks are unwrapped in place
- ``@apply`` is expanded to the declarations of the named utilities
- ``theme(...)`` references are resolved against the effective theme

When the input carries no ``@tailwind utilities`` directive the utility
layer is appended at the end.  Candidates that do not name a known utility
are ignored; an unknown class inside ``@apply`` raises
``StyleGenerationError``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from .theme import resolve_theme
from .transforms import Declarations, NamedTransform, PluginAPI

logger = logging.getLogger(__name__)


class StyleGenerationError(ValueError):
    """Raised when the stylesheet cannot be generated from a configuration."""


@dataclass
class Match:
    decls: Declarations
    suffix: str = ""


Resolver = Callable[[str, bool, "str | None"], "Declarations | Match | None"]


@dataclass
class _Rule:
    selector: str
    decls: Declarations
    media: tuple[str, ...]
    sort_key: tuple


@dataclass
class _Variants:
    pseudo_classes: list[str] = field(default_factory=list)
    pseudo_elements: list[str] = field(default_factory=list)
    parents: list[str] = field(default_factory=list)
    media: list[str] = field(default_factory=list)
    media_rank: int = 0
    rank: int = 0


# ---------------------------------------------------------------------------
# Candidate scanning
# ---------------------------------------------------------------------------

_SPLIT_RE = re.compile(r"[\s\"'`{}<>=;\\]+")

_TRIM_CHARS = ",()"


def extract_candidates(content: str | Iterable[str]) -> list[str]:
    """Return unique class-name candidates in first-seen order.

    Examples::

        extract_candidates('<h1 className="text-xl font-bold">') ->
            ["h1", "className", "text-xl", "font-bold"]
    """
    if isinstance(content, str):
        content = [content]
    seen: dict[str, None] = {}
    for text in content:
        for raw in _SPLIT_RE.split(text or ""):
            token = raw
            if "[" not in token:
                token = token.strip(_TRIM_CHARS)
            token = token.rstrip(".:,")
            if token and token not in seen:
                seen[token] = None
    return list(seen)


def _split_top_level(text: str, sep: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch in "[(":
            depth += 1
        elif ch in "])":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def css_escape(name: str) -> str:
    """Escape a class name for use in a selector.

    Examples::

        css_escape("md:p-4")   -> "md\\\\:p-4"
        css_escape("w-1/2")    -> "w-1\\\\/2"
    """
    out: list[str] = []
    for index, ch in enumerate(name):
        if ch.isalnum() and ch.isascii() or ch in "_-":
            if index == 0 and ch.isdigit():
                out.append(f"\\3{ch} ")
            else:
                out.append(ch)
        else:
            out.append("\\" + ch)
    return "".join(out)


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

_LENGTH_RE = re.compile(
    r"^-?(\d+\.?\d*|\.\d+)(px|rem|em|%|vh|vw|svh|lvh|dvh|ch|ex|pt|cm|mm|in|fr)?$"
)
_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_TYPE_HINT_RE = re.compile(
    r"^(length|color|url|number|percentage|family-name|image|position|any|size|line-width):"
)


def _flatten(values: Any, prefix: str = "") -> dict[str, str]:
    flat: dict[str, str] = {}
    if not isinstance(values, dict):
        return flat
    for key, value in values.items():
        name = prefix if key == "DEFAULT" and prefix else (f"{prefix}-{key}" if prefix else str(key))
        if isinstance(value, dict):
            flat.update(_flatten(value, name))
        elif isinstance(value, (list, tuple)):
            flat[name] = ", ".join(str(v) for v in value)
        elif value is not None and not isinstance(value, NamedTransform):
            flat[name] = _stringify(value)
    return flat


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _decode_arbitrary(value: str) -> str | None:
    if not (value.startswith("[") and value.endswith("]")):
        return None
    inner = _TYPE_HINT_RE.sub("", value[1:-1])
    if not inner:
        return None
    return re.sub(r"(?<!\\)_", " ", inner).replace("\\_", "_")


def _looks_like_length(value: str) -> bool:
    return bool(_LENGTH_RE.match(value)) or value.startswith(("calc(", "clamp(", "min(", "max("))


def _looks_like_color(value: str) -> bool:
    return bool(_HEX_RE.match(value)) or value.startswith(
        ("rgb", "hsl", "oklch", "oklab", "lab(", "lch(", "hwb(", "color-mix(", "var(", "color(")
    ) or value.isalpha()


def _negate(value: str) -> str | None:
    if value in ("0", "0px", "0rem"):
        return value
    if value.startswith("-"):
        return value[1:]
    if value[:1].isdigit() or value.startswith("."):
        return "-" + value
    if value in ("auto", "none"):
        return None
    return f"calc({value} * -1)"


def with_opacity(color: str, alpha: str) -> str:
    """Apply an alpha value to *color*.

    Examples::

        with_opacity("#ff0000", "0.5")             -> "rgb(255 0 0 / 0.5)"
        with_opacity("hsl(var(--primary))", "0.5") -> "hsl(var(--primary) / 0.5)"
    """
    if "<alpha-value>" in color:
        return color.replace("<alpha-value>", alpha)
    if color in ("currentColor", "transparent", "inherit", "current"):
        return color
    hex_match = _HEX_RE.match(color)
    if hex_match:
        digits = hex_match.group(1)
        if len(digits) == 3:
            digits = "".join(d * 2 for d in digits)
        r, g, b = (int(digits[i : i + 2], 16) for i in (0, 2, 4))
        return f"rgb({r} {g} {b} / {alpha})"
    if re.match(r"^(rgb|hsl)a?\(", color) and "/" not in color and "," not in color:
        return color[:-1] + f" / {alpha})"
    percent = f"{float(alpha) * 100:g}%" if _is_number(alpha) else alpha
    return f"color-mix(in srgb, {color} {percent}, transparent)"


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def _strip_alpha_placeholder(color: str) -> str:
    return color.replace(" / <alpha-value>", "").replace("<alpha-value>", "1")


# ---------------------------------------------------------------------------
# Static data
# ---------------------------------------------------------------------------

_TW_TRANSFORM = (
    "translate(var(--tw-translate-x), var(--tw-translate-y)) rotate(var(--tw-rotate)) "
    "skewX(var(--tw-skew-x)) skewY(var(--tw-skew-y)) scaleX(var(--tw-scale-x)) "
    "scaleY(var(--tw-scale-y))"
)

_TW_DEFAULT_VARS: Declarations = {
    "--tw-translate-x": "0",
    "--tw-translate-y": "0",
    "--tw-rotate": "0",
    "--tw-skew-x": "0",
    "--tw-skew-y": "0",
    "--tw-scale-x": "1",
    "--tw-scale-y": "1",
    "--tw-ring-inset": " ",
    "--tw-ring-offset-width": "0px",
    "--tw-ring-offset-color": "#fff",
    "--tw-ring-color": "rgb(59 130 246 / 0.5)",
    "--tw-ring-offset-shadow": "0 0 #0000",
    "--tw-ring-shadow": "0 0 #0000",
    "--tw-shadow": "0 0 #0000",
}

_TRANSITION_PROPS = {
    "DEFAULT": (
        "color, background-color, border-color, text-decoration-color, fill, stroke, "
        "opacity, box-shadow, transform, filter, backdrop-filter"
    ),
    "none": "none",
    "all": "all",
    "colors": "color, background-color, border-color, text-decoration-color, fill, stroke",
    "opacity": "opacity",
    "shadow": "box-shadow",
    "transform": "transform",
}

_PSEUDO_CLASSES = {
    "first": ":first-child",
    "last": ":last-child",
    "only": ":only-child",
    "odd": ":nth-child(odd)",
    "even": ":nth-child(even)",
    "first-of-type": ":first-of-type",
    "last-of-type": ":last-of-type",
    "empty": ":empty",
    "visited": ":visited",
    "target": ":target",
    "open": "[open]",
    "checked": ":checked",
    "indeterminate": ":indeterminate",
    "default": ":default",
    "required": ":required",
    "valid": ":valid",
    "invalid": ":invalid",
    "in-range": ":in-range",
    "out-of-range": ":out-of-range",
    "placeholder-shown": ":placeholder-shown",
    "autofill": ":autofill",
    "read-only": ":read-only",
    "focus-within": ":focus-within",
    "hover": ":hover",
    "focus": ":focus",
    "focus-visible": ":focus-visible",
    "active": ":active",
    "enabled": ":enabled",
    "disabled": ":disabled",
}

_PSEUDO_ELEMENTS = {
    "placeholder": "::placeholder",
    "before": "::before",
    "after": "::after",
    "selection": "::selection",
    "marker": "::marker",
    "file": "::file-selector-button",
    "first-letter": "::first-letter",
    "first-line": "::first-line",
    "backdrop": "::backdrop",
}

_PARENT_STATES = ("hover", "focus", "focus-within", "focus-visible", "active", "disabled", "checked")

_VARIANT_RANK = {name: index + 1 for index, name in enumerate(_PSEUDO_CLASSES)}


def _preflight(theme: dict[str, Any]) -> list[tuple[str, Declarations]]:
    border = _flatten(theme.get("borderColor", {})).get("DEFAULT", "currentColor")
    families = _flatten(theme.get("fontFamily", {}))
    placeholder = _flatten(theme.get("colors", {})).get("gray-400", "#9ca3af")
    return [
        (
            "*,\n::before,\n::after",
            {
                "box-sizing": "border-box",
                "border-width": "0",
                "border-style": "solid",
                "border-color": _strip_alpha_placeholder(border),
            },
        ),
        ("::before,\n::after", {"--tw-content": "''"}),
        (
            "html,\n:host",
            {
                "line-height": "1.5",
                "-webkit-text-size-adjust": "100%",
                "-moz-tab-size": "4",
                "tab-size": "4",
                "font-family": families.get("sans", "ui-sans-serif, system-ui, sans-serif"),
                "font-feature-settings": "normal",
                "font-variation-settings": "normal",
                "-webkit-tap-highlight-color": "transparent",
            },
        ),
        ("body", {"margin": "0", "line-height": "inherit"}),
        ("hr", {"height": "0", "color": "inherit", "border-top-width": "1px"}),
        ("h1,\nh2,\nh3,\nh4,\nh5,\nh6", {"font-size": "inherit", "font-weight": "inherit"}),
        ("a", {"color": "inherit", "text-decoration": "inherit"}),
        ("b,\nstrong", {"font-weight": "bolder"}),
        (
            "code,\nkbd,\nsamp,\npre",
            {"font-family": families.get("mono", "monospace"), "font-size": "1em"},
        ),
        ("small", {"font-size": "80%"}),
        ("table", {"text-indent": "0", "border-color": "inherit", "border-collapse": "collapse"}),
        (
            "button,\ninput,\noptgroup,\nselect,\ntextarea",
            {
                "font-family": "inherit",
                "font-feature-settings": "inherit",
                "font-variation-settings": "inherit",
                "font-size": "100%",
                "font-weight": "inherit",
                "line-height": "inherit",
                "letter-spacing": "inherit",
                "color": "inherit",
                "margin": "0",
                "padding": "0",
            },
        ),
        ("button,\nselect", {"text-transform": "none"}),
        (
            "button,\ninput:where([type='button']),\ninput:where([type='reset']),\n"
            "input:where([type='submit'])",
            {
                "-webkit-appearance": "button",
                "background-color": "transparent",
                "background-image": "none",
            },
        ),
        (
            "blockquote,\ndl,\ndd,\nh1,\nh2,\nh3,\nh4,\nh5,\nh6,\nhr,\nfigure,\np,\npre",
            {"margin": "0"},
        ),
        ("ol,\nul,\nmenu", {"list-style": "none", "margin": "0", "padding": "0"}),
        ("textarea", {"resize": "vertical"}),
        (
            "input::placeholder,\ntextarea::placeholder",
            {"opacity": "1", "color": _strip_alpha_placeholder(placeholder)},
        ),
        ('button,\n[role="button"]', {"cursor": "pointer"}),
        (
            "img,\nsvg,\nvideo,\ncanvas,\naudio,\niframe,\nembed,\nobject",
            {"display": "block", "vertical-align": "middle"},
        ),
        ("img,\nvideo", {"max-width": "100%", "height": "auto"}),
        ('[hidden]:where(:not([hidden="until-found"]))', {"display": "none"}),
    ]


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class UtilityGenerator:
    """Generates CSS for one evaluated configuration object."""

    def __init__(self, config: dict[str, Any]) -> None:
        if not isinstance(config, dict):
            raise StyleGenerationError("Configuration must be an object")
        self.config = config
        try:
            self.theme = resolve_theme(config)
        except TypeError as exc:
            raise StyleGenerationError(str(exc)) from exc

        self.prefix = str(config.get("prefix") or "")
        important = config.get("important")
        self.important = important is True
        self.important_selector = important if isinstance(important, str) and important else ""
        self.dark_mode = _dark_mode(config.get("darkMode"))
        self.preflight = _core_plugin_enabled(config, "preflight")
        self.screens = self._screens()

        self._static: dict[str, tuple[int, Declarations]] = {}
        self._functional: dict[str, list[tuple[int, Resolver]]] = {}
        self._family = 0
        self._scale_cache: dict[str, dict[str, str]] = {}
        self._register_core()

        self.plugin_api = PluginAPI(self.theme)
        plugins = config.get("plugins") or []
        if not isinstance(plugins, list):
            raise StyleGenerationError("plugins must be an array")
        for plugin in plugins:
            if not isinstance(plugin, NamedTransform):
                raise StyleGenerationError(f"Unsupported plugin value: {plugin!r}")
            plugin(self.plugin_api)
        self._register_plugin_utilities()

        self.keyframes: dict[str, Any] = dict(self.theme.get("keyframes") or {})
        self.keyframes.update(self.plugin_api.keyframes)

    # -- Public API --------------------------------------------------------

    def generate(self, content: str | Iterable[str], css: str) -> str:
        """Return the stylesheet for *css* with utilities found in *content*."""
        candidates = extract_candidates(content)
        safelist = self.config.get("safelist") or []
        candidates.extend(c for c in safelist if isinstance(c, str) and c not in candidates)
        used = set(candidates)

        source = _unwrap_layers(css or "")
        source = self._expand_apply(source)
        source = self._resolve_theme_calls(source)

        layers = {
            "base": self._base_layer(),
            "components": self._components_layer(used),
            "utilities": self._utilities_layer(candidates),
            "variants": "",
        }

        has_utilities = bool(re.search(r"@tailwind\s+utilities\s*;", source))

        def _directive(m: re.Match[str]) -> str:
            return layers.get(m.group(1), "")

        output = re.sub(r"@tailwind\s+([\w-]+)\s*;", _directive, source)
        if not has_utilities and layers["utilities"]:
            output = output.rstrip() + "\n\n" + layers["utilities"]
        return _tidy(output)

    def resolve(self, candidate: str) -> list[_Rule]:
        """Return the CSS rules generated for a single candidate class."""
        return self._rules_for(candidate, 0)

    # -- Layers ------------------------------------------------------------

    def _base_layer(self) -> str:
        rules: list[tuple[str, Declarations]] = []
        if self.preflight:
            rules.extend(_preflight(self.theme))
        rules.append(("*, ::before, ::after", dict(_TW_DEFAULT_VARS)))
        rules.append(("::backdrop", dict(_TW_DEFAULT_VARS)))
        rules.extend(self.plugin_api.base.items())
        return "\n".join(_format_rule(sel, decls) for sel, decls in rules)

    def _components_layer(self, used: set[str]) -> str:
        blocks: list[str] = []
        if f"{self.prefix}container" in used:
            blocks.append(self._container())
        for selector, decls in self.plugin_api.components.items():
            m = re.match(r"^\.([\w-]+)", selector)
            if m and m.group(1) in used:
                blocks.append(_format_rule(self._scope(selector), decls))
        return "\n".join(blocks)

    def _utilities_layer(self, candidates: list[str]) -> str:
        rules: list[_Rule] = []
        for index, candidate in enumerate(candidates):
            rules.extend(self._rules_for(candidate, index))
        if not rules:
            return ""
        rules.sort(key=lambda r: r.sort_key)

        blocks: list[str] = []
        needed = self._keyframes_for(rules)
        for name in needed:
            blocks.append(_format_keyframes(name, self.keyframes[name]))

        current_media: tuple[str, ...] | None = None
        group: list[str] = []
        for rule in rules:
            if rule.media != current_media:
                if group:
                    blocks.append(_wrap_media(current_media or (), group))
                group = []
                current_media = rule.media
            group.append(_format_rule(rule.selector, rule.decls))
        if group:
            blocks.append(_wrap_media(current_media or (), group))
        return "\n".join(blocks)

    def _container(self) -> str:
        options = self.theme.get("container") or {}
        decls: Declarations = {"width": "100%"}
        if options.get("center"):
            decls["margin-right"] = "auto"
            decls["margin-left"] = "auto"
        padding = options.get("padding")
        if isinstance(padding, str):
            decls["padding-right"] = padding
            decls["padding-left"] = padding
        elif isinstance(padding, dict) and "DEFAULT" in padding:
            decls["padding-right"] = str(padding["DEFAULT"])
            decls["padding-left"] = str(padding["DEFAULT"])
        blocks = [_format_rule(self._scope(".container"), decls)]

        screens = options.get("screens") or self.screens
        if isinstance(screens, dict):
            screens = [(name, self._screen_min(value)) for name, value in screens.items()]
        for name, width in screens:
            if width is None:
                continue
            media_decls: Declarations = {"max-width": width}
            if isinstance(padding, dict) and name in padding:
                media_decls["padding-right"] = str(padding[name])
                media_decls["padding-left"] = str(padding[name])
            blocks.append(
                _wrap_media(
                    (f"(min-width: {width})",),
                    [_format_rule(self._scope(".container"), media_decls)],
                )
            )
        return "\n".join(blocks)

    def _keyframes_for(self, rules: list[_Rule]) -> list[str]:
        needed: list[str] = []
        for rule in rules:
            for prop in ("animation", "animation-name"):
                value = rule.decls.get(prop)
                if not value:
                    continue
                for name in re.findall(r"[\w-]+", value):
                    if name in self.keyframes and name not in needed:
                        needed.append(name)
        return needed

    # -- Candidate resolution ----------------------------------------------

    def _rules_for(self, candidate: str, seen_index: int) -> list[_Rule]:
        parts = _split_top_level(candidate, ":")
        if any(not part for part in parts):
            return []
        *variant_names, utility = parts

        important = self.important
        if utility.startswith("!"):
            important = True
            utility = utility[1:]
        elif utility.endswith("!"):
            important = True
            utility = utility[:-1]
        negative = False
        if utility.startswith("-"):
            negative = True
            utility = utility[1:]
        if self.prefix:
            if not utility.startswith(self.prefix):
                return []
            utility = utility[len(self.prefix) :]
        if not utility:
            return []

        variants = self._parse_variants(variant_names)
        if variants is None:
            return []

        found = self._match_utility(utility, negative)
        if found is None:
            return []
        family, match = found

        decls = dict(match.decls)
        if any(pe in ("::before", "::after") for pe in variants.pseudo_elements):
            decls = {"content": "var(--tw-content)", **decls}
        if important:
            decls = {k: v if v.endswith("!important") else f"{v} !important" for k, v in decls.items()}

        selector = "." + css_escape(candidate)
        selector += "".join(variants.pseudo_classes) + match.suffix
        selector += "".join(variants.pseudo_elements)
        for parent in variants.parents:
            selector = f"{parent} {selector}"
        selector = self._scope(selector)

        return [
            _Rule(
                selector=selector,
                decls=decls,
                media=tuple(variants.media),
                sort_key=(variants.media_rank, variants.rank, family, seen_index),
            )
        ]

    def _scope(self, selector: str) -> str:
        if self.important_selector:
            return f"{self.important_selector} {selector}"
        return selector

    def _parse_variants(self, names: list[str]) -> _Variants | None:
        result = _Variants()
        screen_names = [name for name, _ in self.screens]
        for name in names:
            if name in _PSEUDO_CLASSES:
                result.pseudo_classes.append(_PSEUDO_CLASSES[name])
                result.rank = max(result.rank, _VARIANT_RANK[name])
            elif name in _PSEUDO_ELEMENTS:
                result.pseudo_elements.append(_PSEUDO_ELEMENTS[name])
            elif name.startswith(("group-", "peer-")) and name.split("-", 1)[1] in _PARENT_STATES:
                kind, state = name.split("-", 1)
                pseudo = _PSEUDO_CLASSES[state]
                if kind == "group":
                    result.parents.append(f".group{pseudo}")
                else:
                    result.parents.append(f".peer{pseudo} ~")
                result.rank = max(result.rank, len(_PSEUDO_CLASSES) + 1)
            elif name == "dark":
                if self.dark_mode == "media":
                    result.media.append("(prefers-color-scheme: dark)")
                    result.media_rank = max(result.media_rank, 1)
                else:
                    result.parents.append(self.dark_mode)
                result.rank = max(result.rank, len(_PSEUDO_CLASSES) + 2)
            elif name in ("motion-safe", "motion-reduce"):
                pref = "no-preference" if name == "motion-safe" else "reduce"
                result.media.append(f"(prefers-reduced-motion: {pref})")
                result.media_rank = max(result.media_rank, 1)
            elif name in ("print", "portrait", "landscape"):
                result.media.append("print" if name == "print" else f"(orientation: {name})")
                result.media_rank = max(result.media_rank, 1)
            elif name in screen_names:
                index = screen_names.index(name)
                result.media.append(self._screen_query(name))
                result.media_rank = max(result.media_rank, 10 + index)
            elif name.startswith("max-") and name[4:] in screen_names:
                index = screen_names.index(name[4:])
                result.media.append(f"not all and {self._screen_query(name[4:])}")
                result.media_rank = max(result.media_rank, 2 + len(screen_names) - index)
            elif name.startswith("data-[") and name.endswith("]"):
                result.pseudo_classes.append(f"[data-{name[6:-1]}]")
            elif name.startswith("aria-") and not name.startswith("aria-["):
                result.pseudo_classes.append(f'[aria-{name[5:]}="true"]')
            elif name.startswith("[") and name.endswith("]") and "&" in name:
                result.pseudo_classes.append(name[1:-1].replace("&", "").replace("_", " "))
            else:
                return None
        return result

    def _match_utility(self, utility: str, negative: bool) -> tuple[int, Match] | None:
        # Arbitrary property: [mask-type:luminance]
        if utility.startswith("[") and utility.endswith("]") and ":" in utility and not negative:
            prop, _, value = utility[1:-1].partition(":")
            if re.fullmatch(r"-?-?[a-zA-Z][\w-]*", prop) and value:
                return self._family + 1, Match({prop: value.replace("_", " ")})
            return None

        if not negative and utility in self._static:
            family, decls = self._static[utility]
            return family, Match(decls)

        found = self._match_functional(utility, negative, None)
        if found is not None:
            return found

        parts = _split_top_level(utility, "/")
        if len(parts) > 1 and parts[-1]:
            head = "/".join(parts[:-1])
            if head:
                return self._match_functional(head, negative, parts[-1])
        return None

    def _match_functional(
        self, utility: str, negative: bool, modifier: str | None
    ) -> tuple[int, Match] | None:
        bracket = utility.find("[")
        search_end = bracket if bracket != -1 else len(utility)
        candidates: list[tuple[str, str]] = []
        if utility in self._functional:
            candidates.append((utility, "DEFAULT"))
        for index in range(search_end - 1, 0, -1):
            if utility[index] == "-":
                candidates.append((utility[:index], utility[index + 1 :]))
        for prefix, value in candidates:
            for family, resolver in self._functional.get(prefix, []):
                result = resolver(value, negative, modifier)
                if result is None:
                    continue
                if isinstance(result, dict):
                    result = Match(result)
                return family, result
        return None

    # -- Screens -----------------------------------------------------------

    def _screens(self) -> list[tuple[str, str | None]]:
        screens = self.theme.get("screens") or {}
        if not isinstance(screens, dict):
            raise StyleGenerationError("theme.screens must be an object")
        pairs = [(str(name), self._screen_min(value)) for name, value in screens.items()]
        return sorted(pairs, key=lambda pair: _px(pair[1]))

    def _screen_min(self, value: Any) -> str | None:
        if isinstance(value, dict):
            found = value.get("min")
            return str(found) if found is not None else None
        return _stringify(value) if value is not None else None

    def _screen_query(self, name: str) -> str:
        value = (self.theme.get("screens") or {}).get(name)
        if isinstance(value, dict):
            if "raw" in value:
                return str(value["raw"])
            parts = []
            if "min" in value:
                parts.append(f"(min-width: {value['min']})")
            if "max" in value:
                parts.append(f"(max-width: {value['max']})")
            return " and ".join(parts)
        return f"(min-width: {_stringify(value)})"

    # -- Directive helpers -------------------------------------------------

    def _expand_apply(self, css: str) -> str:
        def _replace(m: re.Match[str]) -> str:
            classes = m.group(1).split()
            force_important = False
            if classes and classes[-1] == "!important":
                force_important = True
                classes = classes[:-1]
            lines: list[str] = []
            for cls in classes:
                if len(_split_top_level(cls, ":")) > 1:
                    logger.warning("Variant utilities are not supported in @apply: %s", cls)
                    continue
                rules = self._rules_for(cls, 0)
                if not rules:
                    raise StyleGenerationError(
                        f"The `{cls}` class does not exist. If `{cls}` is a custom class, "
                        "make sure it is defined within a `@layer` directive."
                    )
                for prop, value in rules[0].decls.items():
                    if force_important and not value.endswith("!important"):
                        value = f"{value} !important"
                    lines.append(f"{prop}: {value};")
            return "\n    ".join(lines)

        return re.sub(r"@apply\s+([^;{}]+?)\s*;", _replace, css)

    def _resolve_theme_calls(self, css: str) -> str:
        def _replace(m: re.Match[str]) -> str:
            path = m.group(2).strip()
            value = self._theme_path(path)
            if value is None:
                logger.warning("Unresolved theme() reference: %s", path)
                return m.group(0)
            return value

        return re.sub(r"theme\(\s*(['\"]?)([^'\")]+)\1\s*\)", _replace, css)

    def _theme_path(self, path: str) -> str | None:
        node: Any = self.theme
        parts = re.split(r"\.(?![^\[]*\])", path)
        for part in parts:
            part = part.strip()
            if part.startswith("[") and part.endswith("]"):
                part = part[1:-1]
            bracket = re.match(r"^([\w-]+)\[([^\]]+)\]$", part)
            keys = [bracket.group(1), bracket.group(2)] if bracket else [part]
            for key in keys:
                if not isinstance(node, dict) or key not in node:
                    return None
                node = node[key]
        if isinstance(node, dict):
            node = node.get("DEFAULT")
        if isinstance(node, (list, tuple)):
            return ", ".join(str(v) for v in node)
        return _stringify(node) if node is not None else None

    # -- Value lookup ------------------------------------------------------

    def _scale(self, key: str) -> dict[str, str]:
        if key not in self._scale_cache:
            self._scale_cache[key] = _flatten(self.theme.get(key) or {})
        return self._scale_cache[key]

    def _value(self, key: str, value: str) -> str | None:
        arbitrary = _decode_arbitrary(value)
        if arbitrary is not None:
            return arbitrary
        return self._scale(key).get(value)

    def _color(self, key: str, value: str, modifier: str | None) -> str | None:
        arbitrary = _decode_arbitrary(value)
        if arbitrary is not None:
            if not _looks_like_color(arbitrary):
                return None
            color = arbitrary
        else:
            color = self._scale(key).get(value)
            if color is None:
                return None
        if modifier is None:
            return _strip_alpha_placeholder(color)
        alpha = self._alpha(modifier)
        if alpha is None:
            return None
        return with_opacity(color, alpha)

    def _alpha(self, modifier: str) -> str | None:
        arbitrary = _decode_arbitrary(modifier)
        if arbitrary is not None:
            return arbitrary
        found = self._scale("opacity").get(modifier)
        if found is not None:
            return found
        if modifier.isdigit():
            return f"{int(modifier) / 100:g}"
        return None

    # -- Registration ------------------------------------------------------

    def _add_static(self, mapping: dict[str, Declarations]) -> None:
        self._family += 1
        for name, decls in mapping.items():
            self._static[name] = (self._family, decls)

    def _add_functional(self, prefixes: Iterable[str], resolver: Resolver) -> None:
        self._family += 1
        for prefix in prefixes:
            self._functional.setdefault(prefix, []).append((self._family, resolver))

    def _scale_utility(
        self,
        prefix: str,
        key: str,
        props: tuple[str, ...] | Callable[[str], Declarations],
        negative: bool = False,
    ) -> None:
        def resolve(value: str, is_negative: bool, modifier: str | None) -> Declarations | None:
            if modifier is not None or (is_negative and not negative):
                return None
            found = self._value(key, value)
            if found is None:
                return None
            if is_negative:
                found = _negate(found)
                if found is None:
                    return None
            if callable(props):
                return props(found)
            return {prop: found for prop in props}

        self._add_functional([prefix], resolve)

    def _color_utility(
        self, prefix: str, key: str, props: tuple[str, ...], suffix: str = ""
    ) -> None:
        def resolve(value: str, is_negative: bool, modifier: str | None) -> Match | None:
            if is_negative:
                return None
            color = self._color(key, value, modifier)
            if color is None:
                return None
            return Match({prop: color for prop in props}, suffix)

        self._add_functional([prefix], resolve)

    def _register_plugin_utilities(self) -> None:
        self._add_static(
            {
                selector[1:]: decls
                for selector, decls in self.plugin_api.utilities.items()
                if re.fullmatch(r"\.[\w-]+", selector)
            }
        )
        for selector, decls in self.plugin_api.utilities.items():
            m = re.fullmatch(r"\.([\w-]+)(.+)", selector)
            if m and m.group(1) not in self._static:
                # Pseudo-element utilities such as ``.scrollbar-hide::-webkit-scrollbar``.
                self.plugin_api.components[selector] = decls
        for utility in self.plugin_api.functional:
            def resolve(
                value: str,
                is_negative: bool,
                modifier: str | None,
                utility: Any = utility,
            ) -> Declarations | None:
                if is_negative or modifier is not None:
                    return None
                found = _decode_arbitrary(value)
                if found is None:
                    found = utility.values.get(value)
                if found is None:
                    return None
                return utility.build(_stringify(found))

            self._add_functional([utility.prefix], resolve)

    def _register_core(self) -> None:
        sr_only = {
            "position": "absolute",
            "width": "1px",
            "height": "1px",
            "padding": "0",
            "margin": "-1px",
            "overflow": "hidden",
            "clip": "rect(0, 0, 0, 0)",
            "white-space": "nowrap",
            "border-width": "0",
        }
        not_sr_only = {
            "position": "static",
            "width": "auto",
            "height": "auto",
            "padding": "0",
            "margin": "0",
            "overflow": "visible",
            "clip": "auto",
            "white-space": "normal",
        }
        self._add_static({"sr-only": sr_only, "not-sr-only": not_sr_only})
        self._add_static({f"pointer-events-{v}": {"pointer-events": v} for v in ("none", "auto")})
        self._add_static(
            {
                "visible": {"visibility": "visible"},
                "invisible": {"visibility": "hidden"},
                "collapse": {"visibility": "collapse"},
            }
        )
        self._add_static({v: {"position": v} for v in ("static", "fixed", "absolute", "relative", "sticky")})

        self._scale_utility("inset", "inset", ("inset",), negative=True)
        self._scale_utility("inset-x", "inset", ("left", "right"), negative=True)
        self._scale_utility("inset-y", "inset", ("top", "bottom"), negative=True)
        for side in ("start", "end", "top", "right", "bottom", "left"):
            prop = {"start": "inset-inline-start", "end": "inset-inline-end"}.get(side, side)
            self._scale_utility(side, "inset", (prop,), negative=True)

        self._add_static({"isolate": {"isolation": "isolate"}, "isolation-auto": {"isolation": "auto"}})
        self._scale_utility("z", "zIndex", ("z-index",), negative=True)
        self._scale_utility("order", "order", ("order",), negative=True)

        def span(prop: str) -> Callable[[str, bool, str | None], Declarations | None]:
            def resolve(value: str, is_negative: bool, modifier: str | None) -> Declarations | None:
                if is_negative or modifier is not None:
                    return None
                if value == "full":
                    return {prop: "1 / -1"}
                arbitrary = _decode_arbitrary(value)
                if arbitrary is not None:
                    return {prop: arbitrary}
                if value.isdigit():
                    return {prop: f"span {value} / span {value}"}
                return None

            return resolve

        self._add_functional(["col-span"], span("grid-column"))
        self._add_functional(["row-span"], span("grid-row"))
        line_scale = {str(n): str(n) for n in range(1, 14)}
        line_scale["auto"] = "auto"
        for prefix, prop in (
            ("col-start", "grid-column-start"),
            ("col-end", "grid-column-end"),
            ("row-start", "grid-row-start"),
            ("row-end", "grid-row-end"),
        ):
            self._add_functional(
                [prefix],
                lambda v, n, m, prop=prop: (
                    {prop: line_scale.get(v) or _decode_arbitrary(v)}
                    if not n and m is None and (v in line_scale or _decode_arbitrary(v))
                    else None
                ),
            )

        self._add_static(
            {
                "float-right": {"float": "right"},
                "float-left": {"float": "left"},
                "float-none": {"float": "none"},
                "clear-both": {"clear": "both"},
                "clear-none": {"clear": "none"},
            }
        )

        margin_sides = {
            "m": ("margin",),
            "mx": ("margin-left", "margin-right"),
            "my": ("margin-top", "margin-bottom"),
            "ms": ("margin-inline-start",),
            "me": ("margin-inline-end",),
            "mt": ("margin-top",),
            "mr": ("margin-right",),
            "mb": ("margin-bottom",),
            "ml": ("margin-left",),
        }
        for prefix, props in margin_sides.items():
            self._scale_utility(prefix, "margin", props, negative=True)

        self._add_static(
            {
                "box-border": {"box-sizing": "border-box"},
                "box-content": {"box-sizing": "content-box"},
            }
        )
        self._add_functional(
            ["line-clamp"],
            lambda v, n, m: (
                {
                    "overflow": "hidden",
                    "display": "-webkit-box",
                    "-webkit-box-orient": "vertical",
                    "-webkit-line-clamp": v,
                }
                if not n and m is None and v.isdigit()
                else ({"overflow": "visible", "display": "block", "-webkit-box-orient": "horizontal", "-webkit-line-clamp": "none"} if v == "none" else None)
            ),
        )

        display = {
            "block": "block",
            "inline-block": "inline-block",
            "inline": "inline",
            "flex": "flex",
            "inline-flex": "inline-flex",
            "table": "table",
            "inline-table": "inline-table",
            "table-row": "table-row",
            "table-cell": "table-cell",
            "grid": "grid",
            "inline-grid": "inline-grid",
            "contents": "contents",
            "list-item": "list-item",
            "flow-root": "flow-root",
            "hidden": "none",
        }
        self._add_static({name: {"display": value} for name, value in display.items()})
        self._add_static(
            {
                "aspect-auto": {"aspect-ratio": "auto"},
                "aspect-square": {"aspect-ratio": "1 / 1"},
                "aspect-video": {"aspect-ratio": "16 / 9"},
            }
        )
        self._add_functional(
            ["aspect"],
            lambda v, n, m: {"aspect-ratio": _decode_arbitrary(v)} if _decode_arbitrary(v) else None,
        )

        self._scale_utility("size", "size", ("width", "height"))
        self._scale_utility("h", "height", ("height",))
        self._scale_utility("max-h", "maxHeight", ("max-height",))
        self._scale_utility("min-h", "minHeight", ("min-height",))
        self._scale_utility("w", "width", ("width",))
        self._scale_utility("min-w", "minWidth", ("min-width",))
        self._scale_utility("max-w", "maxWidth", ("max-width",))

        self._add_static(
            {
                "flex-1": {"flex": "1 1 0%"},
                "flex-auto": {"flex": "1 1 auto"},
                "flex-initial": {"flex": "0 1 auto"},
                "flex-none": {"flex": "none"},
            }
        )
        self._add_static(
            {
                "shrink": {"flex-shrink": "1"},
                "shrink-0": {"flex-shrink": "0"},
                "grow": {"flex-grow": "1"},
                "grow-0": {"flex-grow": "0"},
            }
        )
        self._scale_utility("basis", "width", ("flex-basis",))
        self._add_static(
            {
                "table-auto": {"table-layout": "auto"},
                "table-fixed": {"table-layout": "fixed"},
                "border-collapse": {"border-collapse": "collapse"},
                "border-separate": {"border-collapse": "separate"},
            }
        )
        self._add_static(
            {
                f"origin-{name}": {"transform-origin": name.replace("-", " ")}
                for name in (
                    "center",
                    "top",
                    "top-right",
                    "right",
                    "bottom-right",
                    "bottom",
                    "bottom-left",
                    "left",
                    "top-left",
                )
            }
        )

        def transform(var_names: tuple[str, ...]) -> Callable[[str], Declarations]:
            return lambda v: {**{name: v for name in var_names}, "transform": _TW_TRANSFORM}

        self._scale_utility("translate-x", "translate", transform(("--tw-translate-x",)), negative=True)
        self._scale_utility("translate-y", "translate", transform(("--tw-translate-y",)), negative=True)
        self._scale_utility("rotate", "rotate", transform(("--tw-rotate",)), negative=True)
        self._scale_utility("scale", "scale", transform(("--tw-scale-x", "--tw-scale-y")), negative=True)
        self._scale_utility("scale-x", "scale", transform(("--tw-scale-x",)), negative=True)
        self._scale_utility("scale-y", "scale", transform(("--tw-scale-y",)), negative=True)
        skew = {n: f"{n}deg" for n in ("0", "1", "2", "3", "6", "12")}
        for axis in ("x", "y"):
            self._add_functional(
                [f"skew-{axis}"],
                lambda v, n, m, axis=axis: (
                    {
                        f"--tw-skew-{axis}": (_negate(skew[v]) if n else skew[v]) or skew[v],
                        "transform": _TW_TRANSFORM,
                    }
                    if m is None and v in skew
                    else None
                ),
            )
        self._add_static(
            {
                "transform": {"transform": _TW_TRANSFORM},
                "transform-gpu": {"transform": _TW_TRANSFORM.replace("translate(", "translate3d(").replace("var(--tw-translate-y))", "var(--tw-translate-y), 0)")},
                "transform-none": {"transform": "none"},
            }
        )
        self._scale_utility("animate", "animation", ("animation",))

        cursors = (
            "auto default pointer wait text move help not-allowed none context-menu progress "
            "cell crosshair vertical-text alias copy no-drop grab grabbing all-scroll "
            "col-resize row-resize n-resize e-resize s-resize w-resize zoom-in zoom-out"
        )
        self._add_static({f"cursor-{c}": {"cursor": c} for c in cursors.split()})
        self._add_static(
            {
                "select-none": {"user-select": "none"},
                "select-text": {"user-select": "text"},
                "select-all": {"user-select": "all"},
                "select-auto": {"user-select": "auto"},
                "resize-none": {"resize": "none"},
                "resize-y": {"resize": "vertical"},
                "resize-x": {"resize": "horizontal"},
                "resize": {"resize": "both"},
            }
        )
        self._add_static(
            {
                "list-inside": {"list-style-position": "inside"},
                "list-outside": {"list-style-position": "outside"},
                "list-none": {"list-style-type": "none"},
                "list-disc": {"list-style-type": "disc"},
                "list-decimal": {"list-style-type": "decimal"},
                "appearance-none": {"appearance": "none"},
                "appearance-auto": {"appearance": "auto"},
            }
        )
        self._add_functional(
            ["columns"],
            lambda v, n, m: {"columns": v} if not n and m is None and v.isdigit() else None,
        )
        self._scale_utility("grid-cols", "gridTemplateColumns", ("grid-template-columns",))
        self._scale_utility("grid-rows", "gridTemplateRows", ("grid-template-rows",))
        self._add_static(
            {
                "grid-flow-row": {"grid-auto-flow": "row"},
                "grid-flow-col": {"grid-auto-flow": "column"},
                "grid-flow-dense": {"grid-auto-flow": "dense"},
                "flex-row": {"flex-direction": "row"},
                "flex-row-reverse": {"flex-direction": "row-reverse"},
                "flex-col": {"flex-direction": "column"},
                "flex-col-reverse": {"flex-direction": "column-reverse"},
                "flex-wrap": {"flex-wrap": "wrap"},
                "flex-wrap-reverse": {"flex-wrap": "wrap-reverse"},
                "flex-nowrap": {"flex-wrap": "nowrap"},
            }
        )
        alignments = {
            "start": "flex-start",
            "end": "flex-end",
            "center": "center",
            "between": "space-between",
            "around": "space-around",
            "evenly": "space-evenly",
            "stretch": "stretch",
            "baseline": "baseline",
            "normal": "normal",
        }
        self._add_static({f"place-content-{k}": {"place-content": v.replace("flex-", "")} for k, v in alignments.items() if k != "normal"})
        self._add_static({f"place-items-{k}": {"place-items": k} for k in ("start", "end", "center", "baseline", "stretch")})
        self._add_static({f"content-{k}": {"align-content": v} for k, v in alignments.items()})
        self._add_static({f"items-{k}": {"align-items": alignments[k]} for k in ("start", "end", "center", "baseline", "stretch")})
        self._add_static({f"justify-{k}": {"justify-content": v} for k, v in alignments.items() if k != "baseline"})
        self._add_static({f"justify-items-{k}": {"justify-items": k} for k in ("start", "end", "center", "stretch")})
        self._add_static(
            {f"self-{k}": {"align-self": v} for k, v in {"auto": "auto", **alignments}.items() if k in ("auto", "start", "end", "center", "stretch", "baseline")}
        )
        self._add_static({f"justify-self-{k}": {"justify-self": k} for k in ("auto", "start", "end", "center", "stretch")})

        self._scale_utility("gap", "gap", ("gap",))
        self._scale_utility("gap-x", "gap", ("column-gap",))
        self._scale_utility("gap-y", "gap", ("row-gap",))

        def space(axis: str) -> Resolver:
            first, second = ("margin-right", "margin-left") if axis == "x" else ("margin-bottom", "margin-top")

            def resolve(value: str, is_negative: bool, modifier: str | None) -> Match | None:
                if modifier is not None:
                    return None
                found = self._value("space", value)
                if found is None:
                    return None
                if is_negative:
                    found = _negate(found)
                    if found is None:
                        return None
                var = f"--tw-space-{axis}-reverse"
                return Match(
                    {
                        var: "0",
                        first: f"calc({found} * var({var}))",
                        second: f"calc({found} * calc(1 - var({var})))",
                    },
                    " > :not([hidden]) ~ :not([hidden])",
                )

            return resolve

        self._add_functional(["space-x"], space("x"))
        self._add_functional(["space-y"], space("y"))

        def divide(axis: str) -> Resolver:
            first, second = ("border-right-width", "border-left-width") if axis == "x" else ("border-bottom-width", "border-top-width")

            def resolve(value: str, is_negative: bool, modifier: str | None) -> Match | None:
                if is_negative or modifier is not None:
                    return None
                found = self._value("borderWidth", value)
                if found is None:
                    return None
                var = f"--tw-divide-{axis}-reverse"
                return Match(
                    {
                        var: "0",
                        first: f"calc({found} * var({var}))",
                        second: f"calc({found} * calc(1 - var({var})))",
                    },
                    " > :not([hidden]) ~ :not([hidden])",
                )

            return resolve

        self._add_functional(["divide-x"], divide("x"))
        self._add_functional(["divide-y"], divide("y"))
        self._color_utility("divide", "divideColor", ("border-color",), " > :not([hidden]) ~ :not([hidden])")

        overflow = {}
        for value in ("auto", "hidden", "clip", "visible", "scroll"):
            overflow[f"overflow-{value}"] = {"overflow": value}
            overflow[f"overflow-x-{value}"] = {"overflow-x": value}
            overflow[f"overflow-y-{value}"] = {"overflow-y": value}
        self._add_static(overflow)
        self._add_static(
            {
                "truncate": {"overflow": "hidden", "text-overflow": "ellipsis", "white-space": "nowrap"},
                "text-ellipsis": {"text-overflow": "ellipsis"},
                "text-clip": {"text-overflow": "clip"},
            }
        )
        self._add_static(
            {f"whitespace-{v}": {"white-space": v} for v in ("normal", "nowrap", "pre", "pre-line", "pre-wrap", "break-spaces")}
        )
        self._add_static(
            {
                "text-wrap": {"text-wrap": "wrap"},
                "text-nowrap": {"text-wrap": "nowrap"},
                "text-balance": {"text-wrap": "balance"},
                "text-pretty": {"text-wrap": "pretty"},
                "break-normal": {"overflow-wrap": "normal", "word-break": "normal"},
                "break-words": {"overflow-wrap": "break-word"},
                "break-all": {"word-break": "break-all"},
                "break-keep": {"word-break": "keep-all"},
            }
        )

        corners = {
            "rounded": ("border-radius",),
            "rounded-s": ("border-start-start-radius", "border-end-start-radius"),
            "rounded-e": ("border-start-end-radius", "border-end-end-radius"),
            "rounded-t": ("border-top-left-radius", "border-top-right-radius"),
            "rounded-r": ("border-top-right-radius", "border-bottom-right-radius"),
            "rounded-b": ("border-bottom-right-radius", "border-bottom-left-radius"),
            "rounded-l": ("border-top-left-radius", "border-bottom-left-radius"),
            "rounded-tl": ("border-top-left-radius",),
            "rounded-tr": ("border-top-right-radius",),
            "rounded-br": ("border-bottom-right-radius",),
            "rounded-bl": ("border-bottom-left-radius",),
        }
        for prefix, props in corners.items():
            self._scale_utility(prefix, "borderRadius", props)

        borders = {
            "border": ("border-width",),
            "border-x": ("border-left-width", "border-right-width"),
            "border-y": ("border-top-width", "border-bottom-width"),
            "border-s": ("border-inline-start-width",),
            "border-e": ("border-inline-end-width",),
            "border-t": ("border-top-width",),
            "border-r": ("border-right-width",),
            "border-b": ("border-bottom-width",),
            "border-l": ("border-left-width",),
        }
        for prefix, props in borders.items():
            self._scale_utility(prefix, "borderWidth", props)
        self._add_static(
            {f"border-{s}": {"border-style": s} for s in ("solid", "dashed", "dotted", "double", "hidden", "none")}
        )
        self._color_utility("border", "borderColor", ("border-color",))
        for side, prop in (("x", ("border-left-color", "border-right-color")), ("y", ("border-top-color", "border-bottom-color")), ("t", ("border-top-color",)), ("r", ("border-right-color",)), ("b", ("border-bottom-color",)), ("l", ("border-left-color",))):
            self._color_utility(f"border-{side}", "borderColor", prop)

        self._color_utility("bg", "backgroundColor", ("background-color",))
        self._add_functional(
            ["bg"],
            lambda v, n, m: (
                {"background-image": _decode_arbitrary(v)}
                if not n and m is None and (_decode_arbitrary(v) or "").startswith(("url(", "linear-gradient(", "radial-gradient("))
                else None
            ),
        )
        directions = {"t": "top", "tr": "top right", "r": "right", "br": "bottom right", "b": "bottom", "bl": "bottom left", "l": "left", "tl": "top left"}
        self._add_static(
            {
                "bg-none": {"background-image": "none"},
                **{
                    f"bg-gradient-to-{k}": {"background-image": f"linear-gradient(to {v}, var(--tw-gradient-stops))"}
                    for k, v in directions.items()
                },
            }
        )
        self._add_static(
            {
                "bg-fixed": {"background-attachment": "fixed"},
                "bg-local": {"background-attachment": "local"},
                "bg-scroll": {"background-attachment": "scroll"},
                "bg-auto": {"background-size": "auto"},
                "bg-cover": {"background-size": "cover"},
                "bg-contain": {"background-size": "contain"},
                "bg-center": {"background-position": "center"},
                "bg-top": {"background-position": "top"},
                "bg-bottom": {"background-position": "bottom"},
                "bg-left": {"background-position": "left"},
                "bg-right": {"background-position": "right"},
                "bg-repeat": {"background-repeat": "repeat"},
                "bg-no-repeat": {"background-repeat": "no-repeat"},
                "bg-clip-text": {"-webkit-background-clip": "text", "background-clip": "text"},
                "bg-clip-border": {"background-clip": "border-box"},
                "bg-clip-padding": {"background-clip": "padding-box"},
                "bg-clip-content": {"background-clip": "content-box"},
            }
        )

        def gradient(stop: str) -> Resolver:
            def resolve(value: str, is_negative: bool, modifier: str | None) -> Declarations | None:
                if is_negative:
                    return None
                color = self._color("gradientColorStops", value, modifier)
                if color is None:
                    return None
                transparent = with_opacity(color, "0") if _HEX_RE.match(color) else "rgb(255 255 255 / 0)"
                if stop == "from":
                    return {
                        "--tw-gradient-from": f"{color} var(--tw-gradient-from-position)",
                        "--tw-gradient-to": f"{transparent} var(--tw-gradient-to-position)",
                        "--tw-gradient-stops": "var(--tw-gradient-from), var(--tw-gradient-to)",
                    }
                if stop == "via":
                    return {
                        "--tw-gradient-to": f"{transparent} var(--tw-gradient-to-position)",
                        "--tw-gradient-stops": (
                            f"var(--tw-gradient-from), {color} var(--tw-gradient-via-position), "
                            "var(--tw-gradient-to)"
                        ),
                    }
                return {"--tw-gradient-to": f"{color} var(--tw-gradient-to-position)"}

            return resolve

        for stop in ("from", "via", "to"):
            self._add_functional([stop], gradient(stop))

        self._color_utility("fill", "fill", ("fill",))
        self._add_static({"fill-none": {"fill": "none"}})
        self._color_utility("stroke", "stroke", ("stroke",))
        self._add_functional(
            ["stroke"],
            lambda v, n, m: {"stroke-width": v} if not n and m is None and v in ("0", "1", "2") else None,
        )
        self._add_static(
            {f"object-{v}": {"object-fit": v} for v in ("contain", "cover", "fill", "none", "scale-down")}
        )
        self._add_static(
            {f"object-{v}": {"object-position": v.replace("-", " ")} for v in ("bottom", "center", "left", "left-bottom", "left-top", "right", "right-bottom", "right-top", "top")}
        )

        padding_sides = {
            "p": ("padding",),
            "px": ("padding-left", "padding-right"),
            "py": ("padding-top", "padding-bottom"),
            "ps": ("padding-inline-start",),
            "pe": ("padding-inline-end",),
            "pt": ("padding-top",),
            "pr": ("padding-right",),
            "pb": ("padding-bottom",),
            "pl": ("padding-left",),
        }
        for prefix, props in padding_sides.items():
            self._scale_utility(prefix, "padding", props)

        self._add_static(
            {f"text-{v}": {"text-align": v} for v in ("left", "center", "right", "justify", "start", "end")}
        )
        self._scale_utility("indent", "spacing", ("text-indent",), negative=True)
        self._add_static(
            {f"align-{v}": {"vertical-align": v} for v in ("baseline", "top", "middle", "bottom", "text-top", "text-bottom", "sub", "super")}
        )

        def font(value: str, is_negative: bool, modifier: str | None) -> Declarations | None:
            if is_negative or modifier is not None:
                return None
            family = self._scale("fontFamily").get(value)
            if family is not None:
                return {"font-family": family}
            weight = self._value("fontWeight", value)
            if weight is not None:
                return {"font-weight": weight}
            return None

        self._add_functional(["font"], font)

        def text(value: str, is_negative: bool, modifier: str | None) -> Declarations | None:
            if is_negative:
                return None
            arbitrary = _decode_arbitrary(value)
            if arbitrary is not None and _looks_like_length(arbitrary):
                return {"font-size": arbitrary} if modifier is None else None
            size = (self.theme.get("fontSize") or {}).get(value)
            if size is not None and arbitrary is None:
                decls = _font_size(size)
                if modifier is not None:
                    line_height = self._value("lineHeight", modifier)
                    if line_height is None:
                        return None
                    decls["line-height"] = line_height
                return decls
            color = self._color("textColor", value, modifier)
            if color is not None:
                return {"color": color}
            return None

        self._add_functional(["text"], text)
        self._add_static(
            {
                "uppercase": {"text-transform": "uppercase"},
                "lowercase": {"text-transform": "lowercase"},
                "capitalize": {"text-transform": "capitalize"},
                "normal-case": {"text-transform": "none"},
                "italic": {"font-style": "italic"},
                "not-italic": {"font-style": "normal"},
                "tabular-nums": {"font-variant-numeric": "tabular-nums"},
                "normal-nums": {"font-variant-numeric": "normal"},
            }
        )
        self._scale_utility("leading", "lineHeight", ("line-height",))
        self._scale_utility("tracking", "letterSpacing", ("letter-spacing",), negative=True)
        self._add_static(
            {
                "underline": {"text-decoration-line": "underline"},
                "overline": {"text-decoration-line": "overline"},
                "line-through": {"text-decoration-line": "line-through"},
                "no-underline": {"text-decoration-line": "none"},
            }
        )
        self._color_utility("decoration", "textColor", ("text-decoration-color",))
        self._add_functional(
            ["underline-offset"],
            lambda v, n, m: (
                {"text-underline-offset": "auto" if v == "auto" else f"{v}px"}
                if not n and m is None and (v.isdigit() or v == "auto")
                else None
            ),
        )
        self._add_static(
            {
                "antialiased": {"-webkit-font-smoothing": "antialiased", "-moz-osx-font-smoothing": "grayscale"},
                "subpixel-antialiased": {"-webkit-font-smoothing": "auto", "-moz-osx-font-smoothing": "auto"},
            }
        )
        self._color_utility("placeholder", "placeholderColor", ("color",), "::placeholder")
        self._color_utility("caret", "textColor", ("caret-color",))
        self._color_utility("accent", "textColor", ("accent-color",))
        self._scale_utility("opacity", "opacity", ("opacity",))

        def shadow(value: str, is_negative: bool, modifier: str | None) -> Declarations | None:
            if is_negative or modifier is not None:
                return None
            found = self._value("boxShadow", value)
            if found is None:
                return None
            return {
                "--tw-shadow": found,
                "box-shadow": (
                    "var(--tw-ring-offset-shadow, 0 0 #0000), var(--tw-ring-shadow, 0 0 #0000), "
                    "var(--tw-shadow)"
                ),
            }

        self._add_functional(["shadow"], shadow)
        self._add_static(
            {
                "outline-none": {"outline": "2px solid transparent", "outline-offset": "2px"},
                "outline": {"outline-style": "solid"},
                "outline-dashed": {"outline-style": "dashed"},
                "outline-dotted": {"outline-style": "dotted"},
            }
        )
        widths = {n: f"{n}px" for n in ("0", "1", "2", "4", "8")}
        self._add_functional(
            ["outline"],
            lambda v, n, m: {"outline-width": widths[v]} if not n and m is None and v in widths else None,
        )
        self._add_functional(
            ["outline-offset"],
            lambda v, n, m: {"outline-offset": widths[v]} if not n and m is None and v in widths else None,
        )
        self._color_utility("outline", "outlineColor", ("outline-color",))

        def ring(value: str, is_negative: bool, modifier: str | None) -> Declarations | None:
            if is_negative or modifier is not None:
                return None
            found = self._value("ringWidth", value)
            if found is None:
                return None
            return {
                "--tw-ring-offset-shadow": (
                    "var(--tw-ring-inset) 0 0 0 var(--tw-ring-offset-width) var(--tw-ring-offset-color)"
                ),
                "--tw-ring-shadow": (
                    f"var(--tw-ring-inset) 0 0 0 calc({found} + var(--tw-ring-offset-width)) "
                    "var(--tw-ring-color)"
                ),
                "box-shadow": "var(--tw-ring-offset-shadow), var(--tw-ring-shadow), var(--tw-shadow, 0 0 #0000)",
            }

        self._add_functional(["ring"], ring)
        self._add_static({"ring-inset": {"--tw-ring-inset": "inset"}})
        self._color_utility("ring", "ringColor", ("--tw-ring-color",))
        self._scale_utility("ring-offset", "ringOffsetWidth", ("--tw-ring-offset-width",))
        self._color_utility("ring-offset", "ringOffsetColor", ("--tw-ring-offset-color",))

        self._scale_utility("blur", "blur", lambda v: {"filter": f"blur({v})"})
        self._scale_utility("backdrop-blur", "blur", lambda v: {"backdrop-filter": f"blur({v})"})
        self._add_static(
            {
                "grayscale": {"filter": "grayscale(100%)"},
                "grayscale-0": {"filter": "grayscale(0)"},
                "invert": {"filter": "invert(100%)"},
                "filter-none": {"filter": "none"},
            }
        )

        def transition(value: str, is_negative: bool, modifier: str | None) -> Declarations | None:
            if is_negative or modifier is not None or value not in _TRANSITION_PROPS:
                return None
            if value == "none":
                return {"transition-property": "none"}
            return {
                "transition-property": _TRANSITION_PROPS[value],
                "transition-timing-function": self._scale("transitionTimingFunction").get(
                    "DEFAULT", "cubic-bezier(0.4, 0, 0.2, 1)"
                ),
                "transition-duration": self._scale("transitionDuration").get("DEFAULT", "150ms"),
            }

        self._add_functional(["transition"], transition)
        self._scale_utility("delay", "transitionDelay", ("transition-delay",))
        self._scale_utility("duration", "transitionDuration", ("transition-duration",))
        self._scale_utility("ease", "transitionTimingFunction", ("transition-timing-function",))
        self._add_static(
            {
                "will-change-auto": {"will-change": "auto"},
                "will-change-transform": {"will-change": "transform"},
                "will-change-scroll": {"will-change": "scroll-position"},
            }
        )


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def _font_size(value: Any) -> Declarations:
    if isinstance(value, (list, tuple)):
        decls: Declarations = {"font-size": _stringify(value[0])}
        if len(value) > 1:
            extra = value[1]
            if isinstance(extra, dict):
                if "lineHeight" in extra:
                    decls["line-height"] = _stringify(extra["lineHeight"])
                if "letterSpacing" in extra:
                    decls["letter-spacing"] = _stringify(extra["letterSpacing"])
                if "fontWeight" in extra:
                    decls["font-weight"] = _stringify(extra["fontWeight"])
            else:
                decls["line-height"] = _stringify(extra)
        return decls
    return {"font-size": _stringify(value)}


def _format_rule(selector: str, decls: Declarations, indent: str = "") -> str:
    lines = [f"{indent}{selector} {{"]
    for prop, value in decls.items():
        lines.append(f"{indent}  {prop}: {value};")
    lines.append(f"{indent}}}")
    return "\n".join(lines)


def _format_keyframes(name: str, frames: Any) -> str:
    lines = [f"@keyframes {name} {{"]
    if isinstance(frames, dict):
        for step, decls in frames.items():
            lines.append(f"  {step} {{")
            if isinstance(decls, dict):
                for prop, value in decls.items():
                    lines.append(f"    {_kebab(prop)}: {_stringify(value)};")
            lines.append("  }")
    lines.append("}")
    return "\n".join(lines)


def _wrap_media(media: tuple[str, ...], rules: list[str]) -> str:
    body = "\n".join(rules)
    if not media:
        return body
    indented = "\n".join(f"  {line}" if line else line for line in body.split("\n"))
    return f"@media {' and '.join(media)} {{\n{indented}\n}}"


def _kebab(name: str) -> str:
    if name.startswith("--"):
        return name
    return re.sub(r"([a-z])([A-Z])", r"\1-\2", name).lower()


def _unwrap_layers(css: str) -> str:
    """Replace each ``@layer name { ... }`` block by its contents."""
    css = re.sub(r"@layer\s+[\w\s,-]+;", "", css)
    out: list[str] = []
    pos = 0
    pattern = re.compile(r"@layer\s+[\w-]+\s*\{")
    while True:
        m = pattern.search(css, pos)
        if not m:
            out.append(css[pos:])
            break
        out.append(css[pos : m.start()])
        depth = 1
        k = m.end()
        while k < len(css) and depth:
            if css[k] == "{":
                depth += 1
            elif css[k] == "}":
                depth -= 1
            k += 1
        if depth:
            raise StyleGenerationError("Unterminated @layer block")
        out.append(css[m.end() : k - 1].strip("\n"))
        pos = k
    return "".join(out)


def _tidy(css: str) -> str:
    css = re.sub(r"\n{3,}", "\n\n", css)
    return css.strip() + "\n"


def _px(value: str | None) -> float:
    if value is None:
        return float("inf")
    m = re.match(r"^([\d.]+)(px|rem|em)?$", value)
    if not m:
        return float("inf")
    number = float(m.group(1))
    return number * 16 if m.group(2) in ("rem", "em") else number


def _dark_mode(value: Any) -> str:
    """Return ``"media"`` or the parent selector used for class-based dark mode."""
    if isinstance(value, list) and value:
        mode = value[0]
        selector = value[1] if len(value) > 1 and isinstance(value[1], str) else ".dark"
    else:
        mode = value
        selector = ".dark"
    if mode in ("class", "selector"):
        return selector
    return "media"


def _core_plugin_enabled(config: dict[str, Any], name: str) -> bool:
    core = config.get("corePlugins")
    if isinstance(core, dict):
        return core.get(name, True) is not False
    if isinstance(core, list):
        return name in core
    return True
