"""Style compiler: base/override configuration cascade plus CSS generation.

The base configuration must always evaluate; it is the floor every request
can fall back to.  The override is optional and untrusted: any failure while
compiling, evaluating, merging, re-serializing or generating with it is
logged as a warning and the stylesheet is produced from the base alone.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from ..errors import BundleServiceError, StyleCompileError
from ..utils import preview
from .generator import StyleGenerationError, UtilityGenerator
from .merge import deep_merge
from .program import ConfigSandbox, compile_source, split_export
from .serializer import build_program, serialize_config

logger = logging.getLogger(__name__)


@dataclass
class CompiledStyles:
    """Outcome of one compilation.

    ``fallback_reason`` is ``None`` when the override (if any) was applied,
    otherwise a short description of why the base configuration was used.
    """

    css: str
    config: dict[str, Any]
    fallback_reason: str | None = None

    @property
    def used_override(self) -> bool:
        return self.fallback_reason is None


class StyleCompiler:
    """Compiles global CSS against a merged style configuration.

    Args:
        sandbox: Interpreter used for every configuration program.  A fresh
            ``ConfigSandbox`` is created when omitted.
    """

    def __init__(self, sandbox: ConfigSandbox | None = None) -> None:
        self.sandbox = sandbox or ConfigSandbox()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(
        self,
        content: str | Iterable[str],
        base_config: str,
        custom_config: str | None = None,
        base_css: str = "",
        custom_css: str | None = None,
    ) -> CompiledStyles:
        """Produce the stylesheet for *content*.

        Args:
            content: Source text (or texts) scanned for class names.
            base_config: Base configuration, an object literal or a program.
            custom_config: Optional override program.
            base_css: Global CSS input holding the ``@tailwind`` directives.
            custom_css: Optional CSS appended after *base_css*.

        Raises:
            StyleCompileError: If the base configuration cannot be evaluated,
                or CSS cannot be generated from it.
        """
        global_css = _join_css(base_css, custom_css)
        base = self._evaluate_base(base_config)

        if not custom_config:
            return CompiledStyles(css=self._generate(base, content, global_css), config=base)

        try:
            merged = self._apply_override(base, custom_config)
            css = UtilityGenerator(merged).generate(content, global_css)
        except _OverrideSkipped as exc:
            logger.warning(
                "Invalid style config format: %s. Falling back to base config. (config: %s)",
                exc,
                preview(custom_config),
            )
            return self._fallback(base, content, global_css, str(exc))
        except (BundleServiceError, StyleGenerationError, RecursionError, TypeError, ValueError) as exc:
            logger.warning(
                "Error processing custom style config: %s. Falling back to base config. "
                "(config: %s)",
                exc,
                preview(custom_config),
            )
            return self._fallback(base, content, global_css, str(exc))
        return CompiledStyles(css=css, config=merged)

    async def compile_async(
        self,
        content: str | Iterable[str],
        base_config: str,
        custom_config: str | None = None,
        base_css: str = "",
        custom_css: str | None = None,
    ) -> CompiledStyles:
        """Run :meth:`compile` in a worker thread."""
        return await asyncio.to_thread(
            self.compile, content, base_config, custom_config, base_css, custom_css
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _evaluate_base(self, base_config: str) -> dict[str, Any]:
        try:
            return self.sandbox.evaluate_module(base_config)
        except (BundleServiceError, RecursionError) as exc:
            logger.error("Base style config failed to evaluate: %s (config: %s)", exc, preview(base_config))
            raise StyleCompileError(f"Error processing base style config: {exc}") from exc

    def _generate(self, config: dict[str, Any], content: str | Iterable[str], css: str) -> str:
        try:
            return UtilityGenerator(config).generate(content, css)
        except (StyleGenerationError, TypeError, ValueError) as exc:
            logger.error("CSS generation failed with base config: %s", exc)
            raise StyleCompileError(f"CSS processing error: {exc}") from exc

    def _apply_override(self, base: dict[str, Any], custom_config: str) -> dict[str, Any]:
        compiled = compile_source(custom_config)
        parts = split_export(compiled)
        if parts is None:
            raise _OverrideSkipped("Could not parse configuration object")
        before, object_text, after = parts

        override = self.sandbox.run(build_program(before, object_text, after))
        if not isinstance(override, dict):
            raise _OverrideSkipped("Custom configuration does not export an object")

        merged = deep_merge(base, override)
        final_program = build_program(before, serialize_config(merged), after)
        final = self.sandbox.run(final_program)
        if not isinstance(final, dict):
            raise _OverrideSkipped("Merged configuration does not evaluate to an object")
        return final

    def _fallback(
        self,
        base: dict[str, Any],
        content: str | Iterable[str],
        css: str,
        reason: str,
    ) -> CompiledStyles:
        return CompiledStyles(
            css=self._generate(base, content, css), config=base, fallback_reason=reason
        )


class _OverrideSkipped(Exception):
    """The override was recognised as unusable; the base config applies."""


def _join_css(base_css: str, custom_css: str | None) -> str:
    if not custom_css:
        return base_css
    return f"{base_css.rstrip()}\n{custom_css}"
