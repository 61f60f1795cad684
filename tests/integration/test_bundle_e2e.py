"""Integration tests for the full bundle pipeline.

These tests scaffold a real project, run ``npm install`` and the real build
backends, then store the page on local disk.  They need ``node``/``npx`` on
PATH and access to the npm registry, and are skipped otherwise.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

import pytest

from bundle_service.config import BackendName, BuildConfig, Config, StorageBackend, StorageConfig
from bundle_service.models import BundleRequest
from bundle_service.pipeline import BundlePipeline

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("npx") is None, reason="node/npx not installed"),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_config(tmp_path: Path) -> Config:
    return Config(
        build=BuildConfig(work_root=tmp_path / "work", install_timeout=600, bundle_timeout=300),
        storage=StorageConfig(
            backend=StorageBackend.LOCAL,
            local_dir=tmp_path / "pages",
            public_base_url="http://localhost:3001",
        ),
    )


async def _run(tmp_path: Path, payload: dict[str, Any], fallback: bool | None = None):
    config = _make_config(tmp_path)
    config.ensure_directories()
    pipeline = BundlePipeline.from_config(config)
    result = await pipeline.run(BundleRequest.model_validate(payload), fallback=fallback)
    return config, result


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestBundleEndToEnd:
    async def test_esbuild_bundle(self, tmp_path: Path, bundle_payload: dict[str, Any]):
        config, result = await _run(tmp_path, {**bundle_payload, "backend": BackendName.ESBUILD.value})

        assert result.backend == "esbuild"
        pages = config.storage.local_dir / "bundled"
        html = (pages / "demo-1.html").read_text(encoding="utf-8")
        assert 'href="http://localhost:3001/bundled/demo-1.css"' in html
        assert (pages / "demo-1.js").stat().st_size > 0
        css = (pages / "demo-1.css").read_text(encoding="utf-8")
        assert ".bg-brand" in css
        assert list(config.work_root.iterdir()) == []

    async def test_vite_bundle(self, tmp_path: Path, bundle_payload: dict[str, Any]):
        config, result = await _run(
            tmp_path, {**bundle_payload, "backend": BackendName.VITE.value}, fallback=True
        )

        assert result.backend in ("vite", "esbuild")
        html = (config.storage.local_dir / "bundled" / "demo-1.html").read_text(encoding="utf-8")
        assert "demo-1.css" in html
        assert list(config.work_root.iterdir()) == []

    async def test_sourcemap_is_valid_json(self, tmp_path: Path, bundle_payload: dict[str, Any]):
        config, _ = await _run(tmp_path, bundle_payload)

        sourcemap = config.storage.local_dir / "bundled" / "demo-1.js.map"
        if sourcemap.exists():
            assert json.loads(sourcemap.read_text(encoding="utf-8"))["version"] == 3
