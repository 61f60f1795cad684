"""Bundle service configuration.

Centralised, typed configuration for the build pipeline, the artifact store
and the HTTP server.  All settings use Pydantic v2 models so they can be
validated at construction time and serialised to/from JSON or environment
variables without boiler-plate.
"""

from __future__ import annotations

import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class BackendName(str, Enum):
    """Build backends known to the orchestrator."""

    ESBUILD = "esbuild"
    VITE = "vite"


class StorageBackend(str, Enum):
    """Where compiled artifacts are persisted."""

    S3 = "s3"
    LOCAL = "local"


DEFAULT_ALLOWED_ORIGINS: list[str] = [
    "http://localhost:3000",
    "https://21st.dev",
]


class BuildConfig(BaseModel):
    """Tuning knobs for the scaffold / install / bundle steps."""

    work_root: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "bundle-service",
        description="Parent directory for ephemeral projects",
    )
    install_command: list[str] = Field(
        default=["npm", "install", "--no-audit", "--no-fund", "--loglevel=error"],
        min_length=1,
    )
    install_timeout: int = Field(default=300, ge=5, description="Install timeout in seconds")
    bundle_timeout: int = Field(default=300, ge=5, description="Per-backend timeout in seconds")
    npx_binary: str = Field(default="npx")
    default_backend: BackendName = Field(default=BackendName.ESBUILD)
    fallback_enabled: bool = Field(
        default=False, description="Retry with the other backend when the first one fails"
    )
    max_concurrent_bundles: int = Field(
        default=4, ge=1, description="Maximum bundle pipelines running at once"
    )
    stale_project_age: int = Field(
        default=3600, ge=60, description="Age in seconds after which leftover projects are swept"
    )


class StorageConfig(BaseModel):
    """Durable object storage settings (S3 / Cloudflare R2 compatible)."""

    backend: StorageBackend = Field(default=StorageBackend.S3)
    bucket: str = Field(default="components-code")
    endpoint_url: str | None = Field(default=None)
    region: str = Field(default="auto")
    access_key_id: str = Field(default="")
    secret_access_key: str = Field(default="")
    public_base_url: str = Field(default="", description="CDN base URL for published objects")
    local_dir: Path = Field(default=Path("./bundled-pages"))
    key_prefix: str = Field(default="bundled")


class ServerConfig(BaseModel):
    """HTTP boundary settings."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001, ge=1, le=65535)
    allowed_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    log_level: str = Field(default="INFO")


class Config(BaseModel):
    """Global bundle service configuration.

    Instances are typically created once by the server or CLI entry point and
    then passed through the rest of the system.
    """

    build: BuildConfig = Field(default_factory=BuildConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def work_root(self) -> Path:
        """Root directory holding every ephemeral project."""
        return self.build.work_root

    @property
    def public_base_url(self) -> str:
        """Base URL used when building public links, without trailing slash."""
        return self.storage.public_base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            BUNDLE_WORK_ROOT, BUNDLE_INSTALL_COMMAND, BUNDLE_INSTALL_TIMEOUT,
            BUNDLE_TIMEOUT, BUNDLE_BACKEND, BUNDLE_FALLBACK,
            BUNDLE_MAX_CONCURRENT, BUNDLE_NPX,
            BUNDLE_STORAGE, BUNDLE_BUCKET, BUNDLE_LOCAL_DIR,
            R2_ENDPOINT (or NEXT_PUBLIC_R2_ENDPOINT), R2_ACCESS_KEY_ID,
            R2_SECRET_ACCESS_KEY, CDN_URL (or NEXT_PUBLIC_CDN_URL),
            BUNDLE_HOST, BUNDLE_PORT, BUNDLE_ALLOWED_ORIGINS, BUNDLE_LOG_LEVEL.
        """
        build_kwargs: dict[str, Any] = {}
        if os.environ.get("BUNDLE_WORK_ROOT"):
            build_kwargs["work_root"] = Path(os.environ["BUNDLE_WORK_ROOT"])
        if os.environ.get("BUNDLE_INSTALL_COMMAND"):
            build_kwargs["install_command"] = os.environ["BUNDLE_INSTALL_COMMAND"].split()
        if os.environ.get("BUNDLE_INSTALL_TIMEOUT"):
            build_kwargs["install_timeout"] = int(os.environ["BUNDLE_INSTALL_TIMEOUT"])
        if os.environ.get("BUNDLE_TIMEOUT"):
            build_kwargs["bundle_timeout"] = int(os.environ["BUNDLE_TIMEOUT"])
        if os.environ.get("BUNDLE_BACKEND"):
            build_kwargs["default_backend"] = BackendName(os.environ["BUNDLE_BACKEND"])
        if os.environ.get("BUNDLE_FALLBACK"):
            build_kwargs["fallback_enabled"] = _env_flag(os.environ["BUNDLE_FALLBACK"])
        if os.environ.get("BUNDLE_MAX_CONCURRENT"):
            build_kwargs["max_concurrent_bundles"] = int(os.environ["BUNDLE_MAX_CONCURRENT"])
        if os.environ.get("BUNDLE_NPX"):
            build_kwargs["npx_binary"] = os.environ["BUNDLE_NPX"]

        storage_kwargs: dict[str, Any] = {}
        if os.environ.get("BUNDLE_STORAGE"):
            storage_kwargs["backend"] = StorageBackend(os.environ["BUNDLE_STORAGE"])
        if os.environ.get("BUNDLE_BUCKET"):
            storage_kwargs["bucket"] = os.environ["BUNDLE_BUCKET"]
        if os.environ.get("BUNDLE_LOCAL_DIR"):
            storage_kwargs["local_dir"] = Path(os.environ["BUNDLE_LOCAL_DIR"])
        endpoint = os.environ.get("R2_ENDPOINT") or os.environ.get("NEXT_PUBLIC_R2_ENDPOINT")
        if endpoint:
            storage_kwargs["endpoint_url"] = endpoint
        if os.environ.get("R2_ACCESS_KEY_ID"):
            storage_kwargs["access_key_id"] = os.environ["R2_ACCESS_KEY_ID"]
        if os.environ.get("R2_SECRET_ACCESS_KEY"):
            storage_kwargs["secret_access_key"] = os.environ["R2_SECRET_ACCESS_KEY"]
        cdn_url = os.environ.get("CDN_URL") or os.environ.get("NEXT_PUBLIC_CDN_URL")
        if cdn_url:
            storage_kwargs["public_base_url"] = cdn_url

        server_kwargs: dict[str, Any] = {}
        if os.environ.get("BUNDLE_HOST"):
            server_kwargs["host"] = os.environ["BUNDLE_HOST"]
        if os.environ.get("BUNDLE_PORT"):
            server_kwargs["port"] = int(os.environ["BUNDLE_PORT"])
        if os.environ.get("BUNDLE_ALLOWED_ORIGINS"):
            server_kwargs["allowed_origins"] = [
                o.strip() for o in os.environ["BUNDLE_ALLOWED_ORIGINS"].split(",") if o.strip()
            ]
        if os.environ.get("BUNDLE_LOG_LEVEL"):
            server_kwargs["log_level"] = os.environ["BUNDLE_LOG_LEVEL"].upper()

        return cls(
            build=BuildConfig(**build_kwargs),
            storage=StorageConfig(**storage_kwargs),
            server=ServerConfig(**server_kwargs),
        )

    def ensure_directories(self) -> None:
        """Create the directories that must exist before the service starts."""
        self.work_root.mkdir(parents=True, exist_ok=True)
        if self.storage.backend == StorageBackend.LOCAL:
            self.storage.local_dir.mkdir(parents=True, exist_ok=True)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}
