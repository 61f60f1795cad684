"""Tests for the ephemeral project scaffolder.

Covers:
- Unique project naming
- Manifest construction (defaults, caller overrides, shim package drop)
- Full project tree: sources, entry module, index.html, style config
- Shim package layout and restore after install
- Partial tree removal on failure
- merge_global_css
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from bundle_service.config import Config
from bundle_service.errors import ScaffoldError
from bundle_service.models import BundleRequest
from bundle_service.scaffolder.generator import (
    DEFAULT_DEPENDENCIES,
    ENTRY_MODULE,
    ProjectScaffolder,
    merge_global_css,
)


@pytest.fixture
def scaffolder(config: Config) -> ProjectScaffolder:
    return ProjectScaffolder(config)


# ---------------------------------------------------------------------------
# Naming & manifest
# ---------------------------------------------------------------------------


class TestProjectName:
    @pytest.mark.unit
    def test_names_are_unique(self, scaffolder: ProjectScaffolder):
        names = {scaffolder.project_name("demo") for _ in range(50)}
        assert len(names) == 50
        assert all(name.startswith("demo-") for name in names)


class TestBuildManifest:
    @pytest.mark.unit
    def test_defaults_and_caller_dependencies(
        self, scaffolder: ProjectScaffolder, bundle_request: BundleRequest
    ):
        manifest = scaffolder.build_manifest(bundle_request)
        assert manifest["name"] == "bundle-demo-1"
        assert manifest["private"] is True
        for name in DEFAULT_DEPENDENCIES:
            assert name in manifest["dependencies"]
        assert manifest["dependencies"]["clsx"] == "^2.1.0"
        assert "devDependencies" not in manifest

    @pytest.mark.unit
    def test_caller_version_overrides_default(
        self, scaffolder: ProjectScaffolder, bundle_payload: dict[str, Any]
    ):
        bundle_payload["dependencies"] = {"react": "18.3.1"}
        manifest = scaffolder.build_manifest(BundleRequest.model_validate(bundle_payload))
        assert manifest["dependencies"]["react"] == "18.3.1"

    @pytest.mark.unit
    def test_shim_package_dependency_dropped(
        self, scaffolder: ProjectScaffolder, bundle_payload: dict[str, Any]
    ):
        bundle_payload["dependencies"] = {"next": "^15.0.0"}
        manifest = scaffolder.build_manifest(BundleRequest.model_validate(bundle_payload))
        assert "next" not in manifest["dependencies"]

    @pytest.mark.unit
    def test_dev_dependencies_included(
        self, scaffolder: ProjectScaffolder, bundle_request: BundleRequest
    ):
        manifest = scaffolder.build_manifest(bundle_request, {"esbuild": "^0.24.0"})
        assert manifest["devDependencies"] == {"esbuild": "^0.24.0"}


# ---------------------------------------------------------------------------
# scaffold()
# ---------------------------------------------------------------------------


class TestScaffold:
    @pytest.mark.unit
    async def test_writes_complete_tree(
        self, scaffolder: ProjectScaffolder, bundle_request: BundleRequest, work_root: Path
    ):
        project = await scaffolder.scaffold(bundle_request, {"esbuild": "^0.24.0"})

        assert project.root.parent == work_root
        assert project.request_id == "demo-1"
        assert project.entry_file == "App.tsx"

        manifest = json.loads(project.manifest_path.read_text(encoding="utf-8"))
        assert manifest["devDependencies"] == {"esbuild": "^0.24.0"}

        assert (project.src_dir / "App.tsx").read_text(encoding="utf-8").startswith("import React")
        assert (project.src_dir / "components" / "button.tsx").exists()

        entry = (project.src_dir / ENTRY_MODULE).read_text(encoding="utf-8")
        assert 'import App from "./App";' in entry
        assert 'document.getElementById("root")' in entry

        index_html = (project.root / "index.html").read_text(encoding="utf-8")
        assert f'src="/src/{ENTRY_MODULE}"' in index_html
        assert "<title>demo-1</title>" in index_html

        tailwind = (project.root / "tailwind.config.js").read_text(encoding="utf-8")
        assert tailwind.startswith("module.exports = {")

        tsconfig = json.loads((project.root / "tsconfig.json").read_text(encoding="utf-8"))
        assert tsconfig["compilerOptions"]["paths"] == {"@/*": ["./src/*"]}

        assert (project.src_dir / "globals.css").read_text(encoding="utf-8").startswith("@tailwind base;")

    @pytest.mark.unit
    async def test_shim_package_written(
        self, scaffolder: ProjectScaffolder, bundle_request: BundleRequest
    ):
        project = await scaffolder.scaffold(bundle_request)
        package = json.loads((project.shim_dir / "package.json").read_text(encoding="utf-8"))
        assert package["name"] == "next"
        assert package["exports"]["./link"] == "./link.jsx"
        assert package["exports"]["./font/google"] == "./font.js"
        for name in ("index.js", "image.jsx", "link.jsx", "head.jsx", "navigation.js", "font.js"):
            assert (project.shim_dir / name).is_file(), name
        font = (project.shim_dir / "font.js").read_text(encoding="utf-8")
        assert 'export const Geist_Mono = makeFont("Geist Mono");' in font

    @pytest.mark.unit
    async def test_restore_shims_after_prune(
        self, scaffolder: ProjectScaffolder, bundle_request: BundleRequest
    ):
        project = await scaffolder.scaffold(bundle_request)
        (project.shim_dir / "link.jsx").unlink()
        await scaffolder.restore_shims(project)
        assert (project.shim_dir / "link.jsx").is_file()

    @pytest.mark.unit
    async def test_projects_are_isolated(
        self, scaffolder: ProjectScaffolder, bundle_request: BundleRequest
    ):
        first = await scaffolder.scaffold(bundle_request)
        second = await scaffolder.scaffold(bundle_request)
        assert first.root != second.root
        assert first.root.is_dir() and second.root.is_dir()

    @pytest.mark.unit
    async def test_reserved_entry_name_rejected_and_cleaned(
        self, scaffolder: ProjectScaffolder, bundle_payload: dict[str, Any], work_root: Path
    ):
        bundle_payload["files"][ENTRY_MODULE] = "export {};"
        request = BundleRequest.model_validate(bundle_payload)
        with pytest.raises(ScaffoldError, match="reserved"):
            await scaffolder.scaffold(request)
        assert list(work_root.iterdir()) == []

    @pytest.mark.unit
    async def test_write_failure_wrapped_and_cleaned(
        self, scaffolder: ProjectScaffolder, bundle_request: BundleRequest, work_root: Path
    ):
        with patch(
            "bundle_service.scaffolder.generator.write_text",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(ScaffoldError, match="disk full"):
                await scaffolder.scaffold(bundle_request)
        assert list(work_root.iterdir()) == []

    @pytest.mark.unit
    async def test_cancelled_scaffold_cleaned(
        self, scaffolder: ProjectScaffolder, bundle_request: BundleRequest, work_root: Path
    ):
        with patch(
            "bundle_service.scaffolder.generator.write_text",
            side_effect=asyncio.CancelledError(),
        ):
            with pytest.raises(asyncio.CancelledError):
                await scaffolder.scaffold(bundle_request)
        assert list(work_root.iterdir()) == []

    @pytest.mark.unit
    async def test_creates_missing_work_root(
        self, config: Config, bundle_request: BundleRequest, tmp_path: Path
    ):
        config.build.work_root = tmp_path / "not-yet"
        project = await ProjectScaffolder(config).scaffold(bundle_request)
        assert project.root.parent == tmp_path / "not-yet"


# ---------------------------------------------------------------------------
# merge_global_css
# ---------------------------------------------------------------------------


class TestMergeGlobalCss:
    @pytest.mark.unit
    def test_base_only(self, bundle_request: BundleRequest):
        assert merge_global_css(bundle_request).endswith("@tailwind utilities;\n")

    @pytest.mark.unit
    def test_override_appended(self, bundle_payload: dict[str, Any]):
        bundle_payload["customGlobalCss"] = ".x { color: red; }"
        merged = merge_global_css(BundleRequest.model_validate(bundle_payload))
        assert merged.index("@tailwind utilities;") < merged.index(".x { color: red; }")
