"""Unit tests for request models and identifier checks (bundle_service.models).

Tests cover:
- is_valid_identifier / validate_identifier
- normalize_source_path
- BundleRequest validation (id, files, dependencies, entry, aliases)
- CompileCssRequest defaults
- BundleDemoRequest validation and conversion to a page request
"""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError as PydanticValidationError

from bundle_service.config import BackendName
from bundle_service.errors import ValidationError
from bundle_service.models import (
    DEFAULT_DEMO_TAILWIND_CONFIG,
    DEFAULT_GLOBAL_CSS,
    BundleDemoRequest,
    BundleRequest,
    CompileCssRequest,
    is_valid_identifier,
    normalize_source_path,
    validate_identifier,
)


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


class TestIdentifiers:
    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["abc", "abc-123_X", "0", "_-_"])
    def test_valid(self, value: str):
        assert is_valid_identifier(value)
        assert validate_identifier(value) == value

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["", "../etc", "a/b", "a.b", "a b", "ünï", None, 42])
    def test_invalid(self, value: Any):
        assert not is_valid_identifier(value)
        with pytest.raises(ValidationError) as exc_info:
            validate_identifier(value)
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert "Invalid ID format" in exc_info.value.message


# ---------------------------------------------------------------------------
# Source paths
# ---------------------------------------------------------------------------


class TestNormalizeSourcePath:
    @pytest.mark.unit
    def test_strips_dot_slash_and_backslashes(self):
        assert normalize_source_path("./components\\ui\\button.tsx") == "components/ui/button.tsx"

    @pytest.mark.unit
    @pytest.mark.parametrize("path", ["/etc/passwd", "C:/x.ts", "../x.ts", "a/../../x.ts", "", "a//b.ts"])
    def test_rejects_unsafe(self, path: str):
        with pytest.raises(ValueError):
            normalize_source_path(path)


# ---------------------------------------------------------------------------
# BundleRequest
# ---------------------------------------------------------------------------


class TestBundleRequest:
    @pytest.mark.unit
    def test_parses_camel_case_payload(self, bundle_payload: dict[str, Any]):
        req = BundleRequest.model_validate(bundle_payload)
        assert req.id == "demo-1"
        assert req.entry == "App"
        assert req.entry_file == "App.tsx"
        assert req.dependencies == {"clsx": "^2.1.0"}
        assert req.custom_tailwind_config is None
        assert req.backend is None

    @pytest.mark.unit
    def test_numeric_id_coerced(self, bundle_payload: dict[str, Any]):
        bundle_payload["id"] = 123
        assert BundleRequest.model_validate(bundle_payload).id == "123"

    @pytest.mark.unit
    def test_invalid_id_rejected(self, bundle_payload: dict[str, Any]):
        bundle_payload["id"] = "../../etc"
        with pytest.raises(PydanticValidationError, match="Invalid ID format"):
            BundleRequest.model_validate(bundle_payload)

    @pytest.mark.unit
    def test_missing_files_rejected(self, bundle_payload: dict[str, Any]):
        bundle_payload["files"] = {}
        with pytest.raises(PydanticValidationError, match="No files provided"):
            BundleRequest.model_validate(bundle_payload)

    @pytest.mark.unit
    def test_missing_base_config_rejected(self, bundle_payload: dict[str, Any]):
        del bundle_payload["baseTailwindConfig"]
        with pytest.raises(PydanticValidationError):
            BundleRequest.model_validate(bundle_payload)

    @pytest.mark.unit
    def test_traversal_path_rejected(self, bundle_payload: dict[str, Any]):
        bundle_payload["files"]["../evil.ts"] = "x"
        with pytest.raises(PydanticValidationError, match="Path traversal"):
            BundleRequest.model_validate(bundle_payload)

    @pytest.mark.unit
    def test_duplicate_after_normalization_rejected(self, bundle_payload: dict[str, Any]):
        bundle_payload["files"]["./App.tsx"] = "x"
        with pytest.raises(PydanticValidationError, match="Duplicate"):
            BundleRequest.model_validate(bundle_payload)

    @pytest.mark.unit
    def test_invalid_package_name_rejected(self, bundle_payload: dict[str, Any]):
        bundle_payload["dependencies"] = {"react; rm -rf /": "1"}
        with pytest.raises(PydanticValidationError, match="Invalid package name"):
            BundleRequest.model_validate(bundle_payload)

    @pytest.mark.unit
    def test_scoped_package_allowed(self, bundle_payload: dict[str, Any]):
        bundle_payload["dependencies"] = {"@radix-ui/react-slot": "^1.1.0"}
        req = BundleRequest.model_validate(bundle_payload)
        assert "@radix-ui/react-slot" in req.dependencies

    @pytest.mark.unit
    def test_null_dependencies_become_empty(self, bundle_payload: dict[str, Any]):
        bundle_payload["dependencies"] = None
        assert BundleRequest.model_validate(bundle_payload).dependencies == {}

    @pytest.mark.unit
    def test_entry_with_extension(self, bundle_payload: dict[str, Any]):
        bundle_payload["entry"] = "components/button.tsx"
        req = BundleRequest.model_validate(bundle_payload)
        assert req.entry == "components/button"
        assert req.entry_file == "components/button.tsx"

    @pytest.mark.unit
    def test_missing_entry_rejected(self, bundle_payload: dict[str, Any]):
        bundle_payload["entry"] = "Missing"
        with pytest.raises(PydanticValidationError, match="not found in files"):
            BundleRequest.model_validate(bundle_payload)

    @pytest.mark.unit
    def test_blank_override_is_none(self, bundle_payload: dict[str, Any]):
        bundle_payload["customTailwindConfig"] = "   "
        bundle_payload["customGlobalCss"] = ""
        req = BundleRequest.model_validate(bundle_payload)
        assert req.custom_tailwind_config is None
        assert req.custom_global_css is None

    @pytest.mark.unit
    def test_blank_base_css_gets_default(self, bundle_payload: dict[str, Any]):
        bundle_payload["baseGlobalCss"] = None
        req = BundleRequest.model_validate(bundle_payload)
        assert req.base_global_css == DEFAULT_GLOBAL_CSS

    @pytest.mark.unit
    def test_fallback_defaults_to_none(self, bundle_payload: dict[str, Any]):
        assert BundleRequest.model_validate(bundle_payload).fallback is None
        assert BundleRequest.model_validate({**bundle_payload, "fallback": True}).fallback is True

    @pytest.mark.unit
    def test_backend_selection(self, bundle_payload: dict[str, Any]):
        bundle_payload["backend"] = "vite"
        assert BundleRequest.model_validate(bundle_payload).backend == BackendName.VITE

    @pytest.mark.unit
    def test_populate_by_field_name(self, bundle_payload: dict[str, Any]):
        bundle_payload["base_tailwind_config"] = bundle_payload.pop("baseTailwindConfig")
        req = BundleRequest.model_validate(bundle_payload)
        assert req.base_tailwind_config.strip().startswith("{")


# ---------------------------------------------------------------------------
# CompileCssRequest
# ---------------------------------------------------------------------------


class TestCompileCssRequest:
    @pytest.mark.unit
    def test_defaults(self, compile_css_payload: dict[str, Any]):
        req = CompileCssRequest.model_validate(compile_css_payload)
        assert req.demo_code == '<A className="mt-4" />'
        assert req.dependencies == []
        assert req.custom_global_css is None

    @pytest.mark.unit
    def test_missing_code_rejected(self, compile_css_payload: dict[str, Any]):
        del compile_css_payload["code"]
        with pytest.raises(PydanticValidationError):
            CompileCssRequest.model_validate(compile_css_payload)

    @pytest.mark.unit
    def test_null_dependencies(self, compile_css_payload: dict[str, Any]):
        compile_css_payload["dependencies"] = None
        assert CompileCssRequest.model_validate(compile_css_payload).dependencies == []


# ---------------------------------------------------------------------------
# BundleDemoRequest
# ---------------------------------------------------------------------------


class TestBundleDemoRequest:
    @pytest.mark.unit
    def test_parses_camel_case_payload(self, bundle_demo_payload: dict[str, Any]):
        req = BundleDemoRequest.model_validate(bundle_demo_payload)
        assert req.component_slug == "badge"
        assert req.demo_slug == "default"
        assert req.base_tailwind_config == DEFAULT_DEMO_TAILWIND_CONFIG
        assert req.global_css == DEFAULT_GLOBAL_CSS
        assert req.fallback is None

    @pytest.mark.unit
    @pytest.mark.parametrize("missing", ["code", "demoCode"])
    def test_code_required(self, bundle_demo_payload: dict[str, Any], missing: str):
        bundle_demo_payload[missing] = ""
        with pytest.raises(PydanticValidationError, match="Component code and demo code are required"):
            BundleDemoRequest.model_validate(bundle_demo_payload)

    @pytest.mark.unit
    @pytest.mark.parametrize("missing", ["componentSlug", "demoSlug"])
    def test_slugs_required(self, bundle_demo_payload: dict[str, Any], missing: str):
        del bundle_demo_payload[missing]
        with pytest.raises(PydanticValidationError, match="Component slug and demo slug are required"):
            BundleDemoRequest.model_validate(bundle_demo_payload)

    @pytest.mark.unit
    @pytest.mark.parametrize("slug", ["../x", "a/b", "with space"])
    def test_invalid_slug_rejected(self, bundle_demo_payload: dict[str, Any], slug: str):
        bundle_demo_payload["componentSlug"] = slug
        with pytest.raises(PydanticValidationError, match="Invalid slug format"):
            BundleDemoRequest.model_validate(bundle_demo_payload)

    @pytest.mark.unit
    def test_blank_style_inputs_get_defaults(self, bundle_demo_payload: dict[str, Any]):
        req = BundleDemoRequest.model_validate(
            {**bundle_demo_payload, "baseTailwindConfig": "  ", "globalCss": None}
        )
        assert req.base_tailwind_config == DEFAULT_DEMO_TAILWIND_CONFIG
        assert req.global_css == DEFAULT_GLOBAL_CSS

    @pytest.mark.unit
    def test_to_bundle_request(self, bundle_demo_payload: dict[str, Any]):
        bundle_demo_payload["dependencies"]["lucide-react"] = "^0.300.0"
        page = BundleDemoRequest.model_validate(
            {**bundle_demo_payload, "backend": "vite", "fallback": True}
        ).to_bundle_request()

        assert page.id == "default"
        assert page.entry == "Demo"
        assert page.entry_file == "Demo.tsx"
        assert page.files["Demo.tsx"] == bundle_demo_payload["demoCode"]
        assert "components/ui/badge.tsx" in page.files
        assert page.dependencies == {"clsx": "^2.1.0", "lucide-react": "^0.400.0"}
        assert page.backend == BackendName.VITE
        assert page.fallback is True
        assert page.base_tailwind_config == DEFAULT_DEMO_TAILWIND_CONFIG

    @pytest.mark.unit
    def test_bad_ui_component_path_rejected_on_conversion(self, bundle_demo_payload: dict[str, Any]):
        bundle_demo_payload["uiComponents"] = {"../escape.tsx": "x"}
        req = BundleDemoRequest.model_validate(bundle_demo_payload)
        with pytest.raises(PydanticValidationError):
            req.to_bundle_request()
