"""Unit tests for StyleCompiler (bundle_service.styles.compiler).

Tests cover:
- base configuration only
- override merged on top of the base
- overrides that fall back to the base (named export, bad module, syntax)
- base failures raising StyleCompileError
- custom CSS concatenation and compile_async
"""

from __future__ import annotations

import pytest

from bundle_service.errors import StyleCompileError
from bundle_service.styles.compiler import CompiledStyles, StyleCompiler
from bundle_service.styles.transforms import NamedTransform

DIRECTIVES = "@tailwind base;\n@tailwind components;\n@tailwind utilities;\n"

CONTENT = '<section className="bg-brand text-accent prose dark:bg-primary/50">'


@pytest.fixture
def compiler() -> StyleCompiler:
    return StyleCompiler()


# ---------------------------------------------------------------------------
# Base configuration
# ---------------------------------------------------------------------------


class TestBaseOnly:
    @pytest.mark.unit
    def test_base_config_applied(self, compiler: StyleCompiler, base_tailwind_config: str):
        result = compiler.compile(CONTENT, base_tailwind_config, base_css=DIRECTIVES)
        assert isinstance(result, CompiledStyles)
        assert result.used_override is True
        assert result.config["darkMode"] == ["class"]
        assert ".bg-brand {\n  background-color: #3366ff;\n}" in result.css
        assert ".dark .dark\\:bg-primary\\/50" in result.css
        assert "hsl(var(--primary) / 0.5)" in result.css
        assert "#ff8800" not in result.css

    @pytest.mark.unit
    def test_module_exports_program(self, compiler: StyleCompiler):
        result = compiler.compile("p-4", "module.exports = { important: true };", base_css=DIRECTIVES)
        assert "padding: 1rem !important;" in result.css

    @pytest.mark.unit
    def test_empty_override_ignored(self, compiler: StyleCompiler, base_tailwind_config: str):
        result = compiler.compile(CONTENT, base_tailwind_config, custom_config="", base_css=DIRECTIVES)
        assert result.fallback_reason is None

    @pytest.mark.unit
    def test_base_evaluation_failure(self, compiler: StyleCompiler):
        with pytest.raises(StyleCompileError) as exc_info:
            compiler.compile("p-4", '{ plugins: [require("fs")] }')
        assert exc_info.value.code == "CSS_COMPILATION_ERROR"
        assert exc_info.value.message.startswith("Error processing base style config")

    @pytest.mark.unit
    def test_base_syntax_failure(self, compiler: StyleCompiler):
        with pytest.raises(StyleCompileError):
            compiler.compile("p-4", "{ darkMode: 'class' theme: {} }")

    @pytest.mark.unit
    def test_base_generation_failure(self, compiler: StyleCompiler, base_tailwind_config: str):
        with pytest.raises(StyleCompileError, match="CSS processing error"):
            compiler.compile("", base_tailwind_config, base_css=".x { @apply not-a-utility; }")


# ---------------------------------------------------------------------------
# Override cascade
# ---------------------------------------------------------------------------


class TestOverride:
    @pytest.mark.unit
    def test_override_merged(
        self, compiler: StyleCompiler, base_tailwind_config: str, custom_tailwind_config: str
    ):
        result = compiler.compile(
            CONTENT, base_tailwind_config, custom_tailwind_config, base_css=DIRECTIVES
        )
        assert result.fallback_reason is None
        assert "color: #ff8800;" in result.css
        assert ".prose {" in result.css
        assert ".bg-brand {" in result.css
        plugins = result.config["plugins"]
        assert all(isinstance(p, NamedTransform) for p in plugins)
        assert [p.name for p in plugins] == ["tailwindcss-animate", "@tailwindcss/typography"]

    @pytest.mark.unit
    def test_override_scalar_wins(self, compiler: StyleCompiler, base_tailwind_config: str):
        result = compiler.compile(
            '<p className="dark:p-4">',
            base_tailwind_config,
            'module.exports = { darkMode: "media" };',
            base_css=DIRECTIVES,
        )
        assert result.config["darkMode"] == "media"
        assert "@media (prefers-color-scheme: dark)" in result.css

    @pytest.mark.unit
    def test_named_export_falls_back(
        self, compiler: StyleCompiler, base_tailwind_config: str, typed_override_config: str
    ):
        result = compiler.compile(
            CONTENT, base_tailwind_config, typed_override_config, base_css=DIRECTIVES
        )
        assert result.used_override is False
        assert result.fallback_reason == "Could not parse configuration object"
        assert "#ff8800" not in result.css
        assert ".bg-brand {" in result.css

    @pytest.mark.unit
    def test_unregistered_module_falls_back(self, compiler: StyleCompiler, base_tailwind_config: str):
        result = compiler.compile(
            CONTENT,
            base_tailwind_config,
            'export default { plugins: [require("child_process")] };',
            base_css=DIRECTIVES,
        )
        assert "not available" in result.fallback_reason
        assert ".bg-brand {" in result.css

    @pytest.mark.unit
    def test_function_plugin_falls_back(self, compiler: StyleCompiler, base_tailwind_config: str):
        result = compiler.compile(
            CONTENT,
            base_tailwind_config,
            "module.exports = { plugins: [function ({ addUtilities }) {}] };",
            base_css=DIRECTIVES,
        )
        assert result.used_override is False

    @pytest.mark.unit
    def test_syntax_error_falls_back(self, compiler: StyleCompiler, base_tailwind_config: str):
        result = compiler.compile(
            CONTENT, base_tailwind_config, "export default { a: 1 b: 2 };", base_css=DIRECTIVES
        )
        assert result.used_override is False
        assert result.config["darkMode"] == ["class"]

    @pytest.mark.unit
    def test_override_generation_failure_falls_back(
        self, compiler: StyleCompiler, base_tailwind_config: str
    ):
        result = compiler.compile(
            "p-4",
            base_tailwind_config,
            'module.exports = { theme: { screens: "wide" } };',
            base_css=DIRECTIVES,
        )
        assert result.used_override is False
        assert ".p-4 {" in result.css


# ---------------------------------------------------------------------------
# CSS inputs
# ---------------------------------------------------------------------------


class TestCssInputs:
    @pytest.mark.unit
    def test_custom_css_appended(self, compiler: StyleCompiler, base_tailwind_config: str):
        result = compiler.compile(
            "p-4",
            base_tailwind_config,
            base_css=DIRECTIVES,
            custom_css=".custom { color: theme('colors.brand'); }",
        )
        assert ".custom { color: #3366ff; }" in result.css

    @pytest.mark.unit
    def test_custom_css_uses_override_theme(
        self, compiler: StyleCompiler, base_tailwind_config: str, custom_tailwind_config: str
    ):
        result = compiler.compile(
            "",
            base_tailwind_config,
            custom_tailwind_config,
            base_css=DIRECTIVES,
            custom_css=".title { @apply text-accent; }",
        )
        assert "color: #ff8800;" in result.css

    @pytest.mark.unit
    async def test_compile_async(self, compiler: StyleCompiler, base_tailwind_config: str):
        result = await compiler.compile_async("p-4", base_tailwind_config, base_css=DIRECTIVES)
        assert ".p-4 {\n  padding: 1rem;\n}" in result.css
