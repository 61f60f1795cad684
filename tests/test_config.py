"""Unit tests for Config and related Pydantic models (bundle_service.config).

Tests cover:
- BuildConfig defaults and validation
- StorageConfig / ServerConfig defaults
- Config derived properties, save/load, from_env
- Config.ensure_directories
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from bundle_service.config import (
    BackendName,
    BuildConfig,
    Config,
    ServerConfig,
    StorageBackend,
    StorageConfig,
)


# ---------------------------------------------------------------------------
# BuildConfig
# ---------------------------------------------------------------------------


class TestBuildConfig:
    @pytest.mark.unit
    def test_defaults(self):
        cfg = BuildConfig()
        assert cfg.install_command[0] == "npm"
        assert cfg.install_timeout == 300
        assert cfg.bundle_timeout == 300
        assert cfg.default_backend == BackendName.ESBUILD
        assert cfg.fallback_enabled is False
        assert cfg.max_concurrent_bundles == 4
        assert cfg.npx_binary == "npx"

    @pytest.mark.unit
    def test_rejects_tiny_timeout(self):
        with pytest.raises(ValidationError):
            BuildConfig(install_timeout=1)

    @pytest.mark.unit
    def test_rejects_empty_install_command(self):
        with pytest.raises(ValidationError):
            BuildConfig(install_command=[])

    @pytest.mark.unit
    def test_backend_from_string(self):
        cfg = BuildConfig(default_backend="vite")
        assert cfg.default_backend == BackendName.VITE


# ---------------------------------------------------------------------------
# StorageConfig / ServerConfig
# ---------------------------------------------------------------------------


class TestStorageAndServerConfig:
    @pytest.mark.unit
    def test_storage_defaults(self):
        cfg = StorageConfig()
        assert cfg.backend == StorageBackend.S3
        assert cfg.bucket == "components-code"
        assert cfg.region == "auto"
        assert cfg.key_prefix == "bundled"

    @pytest.mark.unit
    def test_server_defaults(self):
        cfg = ServerConfig()
        assert cfg.port == 3001
        assert "http://localhost:3000" in cfg.allowed_origins
        assert "https://21st.dev" in cfg.allowed_origins

    @pytest.mark.unit
    def test_server_rejects_bad_port(self):
        with pytest.raises(ValidationError):
            ServerConfig(port=70000)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class TestConfig:
    @pytest.mark.unit
    def test_work_root_property(self, tmp_path: Path):
        cfg = Config(build=BuildConfig(work_root=tmp_path / "w"))
        assert cfg.work_root == tmp_path / "w"

    @pytest.mark.unit
    def test_public_base_url_strips_slash(self):
        cfg = Config(storage=StorageConfig(public_base_url="https://cdn.example.com/"))
        assert cfg.public_base_url == "https://cdn.example.com"

    @pytest.mark.unit
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        cfg = Config(
            build=BuildConfig(default_backend=BackendName.VITE, fallback_enabled=True),
            server=ServerConfig(port=4000),
        )
        target = cfg.save(tmp_path / "nested" / "config.json")
        assert target.exists()
        data = json.loads(target.read_text(encoding="utf-8"))
        assert data["server"]["port"] == 4000

        loaded = Config.load(target)
        assert loaded.build.default_backend == BackendName.VITE
        assert loaded.build.fallback_enabled is True
        assert loaded.server.port == 4000

    @pytest.mark.unit
    def test_ensure_directories_local(self, tmp_path: Path):
        cfg = Config(
            build=BuildConfig(work_root=tmp_path / "work"),
            storage=StorageConfig(backend=StorageBackend.LOCAL, local_dir=tmp_path / "pages"),
        )
        cfg.ensure_directories()
        assert (tmp_path / "work").is_dir()
        assert (tmp_path / "pages").is_dir()

    @pytest.mark.unit
    def test_ensure_directories_s3_skips_local_dir(self, tmp_path: Path):
        cfg = Config(
            build=BuildConfig(work_root=tmp_path / "work"),
            storage=StorageConfig(local_dir=tmp_path / "pages"),
        )
        cfg.ensure_directories()
        assert (tmp_path / "work").is_dir()
        assert not (tmp_path / "pages").exists()


# ---------------------------------------------------------------------------
# Config.from_env
# ---------------------------------------------------------------------------


class TestConfigFromEnv:
    @pytest.mark.unit
    def test_empty_environment_gives_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = Config.from_env()
        assert cfg.server.port == 3001
        assert cfg.storage.backend == StorageBackend.S3

    @pytest.mark.unit
    def test_build_variables(self, tmp_path: Path):
        env = {
            "BUNDLE_WORK_ROOT": str(tmp_path),
            "BUNDLE_INSTALL_COMMAND": "pnpm install --frozen-lockfile",
            "BUNDLE_TIMEOUT": "90",
            "BUNDLE_BACKEND": "vite",
            "BUNDLE_FALLBACK": "yes",
            "BUNDLE_MAX_CONCURRENT": "2",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = Config.from_env()
        assert cfg.work_root == tmp_path
        assert cfg.build.install_command == ["pnpm", "install", "--frozen-lockfile"]
        assert cfg.build.bundle_timeout == 90
        assert cfg.build.default_backend == BackendName.VITE
        assert cfg.build.fallback_enabled is True
        assert cfg.build.max_concurrent_bundles == 2

    @pytest.mark.unit
    def test_storage_variables(self):
        env = {
            "NEXT_PUBLIC_R2_ENDPOINT": "https://acct.r2.cloudflarestorage.com",
            "R2_ACCESS_KEY_ID": "key",
            "R2_SECRET_ACCESS_KEY": "secret",
            "NEXT_PUBLIC_CDN_URL": "https://cdn.example.com",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = Config.from_env()
        assert cfg.storage.endpoint_url == "https://acct.r2.cloudflarestorage.com"
        assert cfg.storage.access_key_id == "key"
        assert cfg.storage.secret_access_key == "secret"
        assert cfg.public_base_url == "https://cdn.example.com"

    @pytest.mark.unit
    def test_unprefixed_r2_endpoint_wins(self):
        env = {"R2_ENDPOINT": "https://a", "NEXT_PUBLIC_R2_ENDPOINT": "https://b"}
        with patch.dict(os.environ, env, clear=True):
            cfg = Config.from_env()
        assert cfg.storage.endpoint_url == "https://a"

    @pytest.mark.unit
    def test_server_variables(self):
        env = {
            "BUNDLE_PORT": "8080",
            "BUNDLE_ALLOWED_ORIGINS": "https://a.example.com, https://b.example.com,",
            "BUNDLE_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = Config.from_env()
        assert cfg.server.port == 8080
        assert cfg.server.allowed_origins == ["https://a.example.com", "https://b.example.com"]
        assert cfg.server.log_level == "DEBUG"

    @pytest.mark.unit
    def test_local_storage_variable(self, tmp_path: Path):
        env = {"BUNDLE_STORAGE": "local", "BUNDLE_LOCAL_DIR": str(tmp_path)}
        with patch.dict(os.environ, env, clear=True):
            cfg = Config.from_env()
        assert cfg.storage.backend == StorageBackend.LOCAL
        assert cfg.storage.local_dir == tmp_path

    @pytest.mark.unit
    def test_invalid_backend_raises(self):
        with patch.dict(os.environ, {"BUNDLE_BACKEND": "webpack"}, clear=True):
            with pytest.raises(ValueError):
                Config.from_env()
