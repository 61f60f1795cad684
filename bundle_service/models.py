"""Request and result models shared by the pipeline and the HTTP boundary.

Request models are Pydantic v2 models so that every check on caller input
(identifier pattern, source paths, entry module) runs at construction time,
before the pipeline touches the filesystem or storage.  Field aliases accept
the camelCase names used by the web tier.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from .config import BackendName
from .errors import ValidationError

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_-]+")

_PACKAGE_NAME_PATTERN = re.compile(r"(@[a-z0-9][\w.~-]*/)?[a-z0-9~][\w.~-]*", re.IGNORECASE)

ENTRY_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")

DEFAULT_GLOBAL_CSS = "@tailwind base;\n@tailwind components;\n@tailwind utilities;\n"


def is_valid_identifier(value: Any) -> bool:
    """Return ``True`` if *value* is a string of letters, digits, ``_`` or ``-``."""
    return isinstance(value, str) and IDENTIFIER_PATTERN.fullmatch(value) is not None


def validate_identifier(value: Any) -> str:
    """Return *value* unchanged or raise ``ValidationError``.

    Examples::

        validate_identifier("abc-123_X") -> "abc-123_X"
        validate_identifier("../etc")    -> ValidationError
    """
    if not is_valid_identifier(value):
        raise ValidationError(
            "Invalid ID format. Only alphanumeric characters, hyphens, and "
            "underscores are allowed."
        )
    return value


def normalize_source_path(path: str) -> str:
    """Normalize a caller-supplied relative source path.

    Backslashes become ``/`` and a leading ``./`` is dropped.  Absolute paths,
    empty paths and any ``..`` segment are rejected with ``ValueError``.
    """
    clean = path.replace("\\", "/").strip()
    while clean.startswith("./"):
        clean = clean[2:]
    if not clean:
        raise ValueError("Empty file path")
    if clean.startswith("/") or re.match(r"^[A-Za-z]:", clean):
        raise ValueError(f"Absolute file path not allowed: {path!r}")
    segments = clean.split("/")
    if any(seg == ".." for seg in segments):
        raise ValueError(f"Path traversal not allowed: {path!r}")
    if any(seg == "" for seg in segments):
        raise ValueError(f"Empty path segment in: {path!r}")
    return posixpath.normpath(clean)


class _StyleFields(BaseModel):
    """Style configuration inputs shared by bundle and compile-css requests."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_tailwind_config: str = Field(..., alias="baseTailwindConfig", min_length=1)
    custom_tailwind_config: str | None = Field(default=None, alias="customTailwindConfig")
    base_global_css: str = Field(default=DEFAULT_GLOBAL_CSS, alias="baseGlobalCss")
    custom_global_css: str | None = Field(default=None, alias="customGlobalCss")

    @field_validator("custom_tailwind_config", "custom_global_css")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("base_global_css", mode="before")
    @classmethod
    def _default_global_css(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_GLOBAL_CSS
        return value


class BundleRequest(_StyleFields):
    """One call asking the pipeline to compile sources into a published page."""

    id: str = Field(..., description="Caller-chosen identifier, [A-Za-z0-9_-]+")
    files: dict[str, str] = Field(..., description="Relative path -> source text")
    dependencies: dict[str, str] = Field(default_factory=dict)
    backend: BackendName | None = Field(default=None)
    fallback: bool | None = Field(
        default=None, description="Retry with the other backend on failure; None uses the service default"
    )
    entry: str = Field(default="App", description="Entry module under src/, without extension")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        if not is_valid_identifier(value):
            raise ValueError(
                "Invalid ID format. Only alphanumeric characters, hyphens, and "
                "underscores are allowed."
            )
        return value

    @field_validator("files")
    @classmethod
    def _check_files(cls, value: dict[str, str]) -> dict[str, str]:
        if not value:
            raise ValueError("No files provided")
        normalized: dict[str, str] = {}
        for raw_path, content in value.items():
            path = normalize_source_path(raw_path)
            if path in normalized:
                raise ValueError(f"Duplicate file path after normalization: {raw_path!r}")
            normalized[path] = content
        return normalized

    @field_validator("dependencies", mode="before")
    @classmethod
    def _none_dependencies(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("dependencies")
    @classmethod
    def _check_dependencies(cls, value: dict[str, str]) -> dict[str, str]:
        for name in value:
            if not _PACKAGE_NAME_PATTERN.fullmatch(name):
                raise ValueError(f"Invalid package name: {name!r}")
        return value

    @field_validator("entry")
    @classmethod
    def _check_entry(cls, value: str) -> str:
        entry = normalize_source_path(value)
        for ext in ENTRY_EXTENSIONS:
            if entry.endswith(ext):
                entry = entry[: -len(ext)]
                break
        return entry

    @model_validator(mode="after")
    def _entry_exists(self) -> "BundleRequest":
        if self.entry_file is None:
            raise ValueError(f"Entry module {self.entry!r} not found in files")
        return self

    @property
    def entry_file(self) -> str | None:
        """Path of the file providing the entry component, if present."""
        for ext in ENTRY_EXTENSIONS:
            candidate = f"{self.entry}{ext}"
            if candidate in self.files:
                return candidate
        return None


class CompileCssRequest(_StyleFields):
    """Request for the style compiler alone."""

    code: str = Field(..., min_length=1)
    demo_code: str | None = Field(default=None, alias="demoCode")
    dependencies: list[str] = Field(default_factory=list)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _none_dependencies(cls, value: Any) -> Any:
        return [] if value is None else value


DEFAULT_DEMO_TAILWIND_CONFIG = """\
module.exports = {
  content: ["./src/**/*.{js,ts,jsx,tsx}"],
  theme: {
    extend: {},
  },
  plugins: [],
}
"""

DEMO_ENTRY = "Demo"


class BundleDemoRequest(BaseModel):
    """A component demo to publish under ``<componentSlug>/<demoSlug>``.

    The demo code is the entry module; ``uiComponents`` supplies the files it
    imports.  Styles are generated from the component and demo code only.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    code: str
    demo_code: str = Field(..., alias="demoCode")
    component_slug: str = Field(..., alias="componentSlug")
    demo_slug: str = Field(..., alias="demoSlug")
    dependencies: dict[str, str] = Field(default_factory=dict)
    demo_dependencies: dict[str, str] = Field(default_factory=dict, alias="demoDependencies")
    ui_components: dict[str, str] = Field(default_factory=dict, alias="uiComponents")
    base_tailwind_config: str = Field(default=DEFAULT_DEMO_TAILWIND_CONFIG, alias="baseTailwindConfig")
    global_css: str = Field(default=DEFAULT_GLOBAL_CSS, alias="globalCss")
    backend: BackendName | None = Field(default=None)
    fallback: bool | None = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def _required(cls, data: Any) -> Any:
        if isinstance(data, dict):
            if not data.get("code") or not data.get("demoCode", data.get("demo_code")):
                raise ValueError("Component code and demo code are required")
            if not data.get("componentSlug", data.get("component_slug")) or not data.get(
                "demoSlug", data.get("demo_slug")
            ):
                raise ValueError("Component slug and demo slug are required")
        return data

    @field_validator("component_slug", "demo_slug")
    @classmethod
    def _check_slug(cls, value: str) -> str:
        if not is_valid_identifier(value):
            raise ValueError(
                "Invalid slug format. Only alphanumeric characters, hyphens, and "
                "underscores are allowed."
            )
        return value

    @field_validator("dependencies", "demo_dependencies", "ui_components", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("base_tailwind_config", "global_css", mode="before")
    @classmethod
    def _blank_is_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            if info.field_name == "global_css":
                return DEFAULT_GLOBAL_CSS
            return DEFAULT_DEMO_TAILWIND_CONFIG
        return value

    def to_bundle_request(self) -> BundleRequest:
        """The equivalent page request: demo entry plus the UI component files."""
        files = dict(self.ui_components)
        files[f"{DEMO_ENTRY}.tsx"] = self.demo_code
        return BundleRequest(
            id=self.demo_slug,
            files=files,
            dependencies={**self.dependencies, **self.demo_dependencies},
            backend=self.backend,
            fallback=self.fallback,
            entry=DEMO_ENTRY,
            base_tailwind_config=self.base_tailwind_config,
            base_global_css=self.global_css,
        )


@dataclass(frozen=True)
class CompiledArtifact:
    """The published blobs plus the backend that produced them."""

    html: str
    script: str
    stylesheet: str
    backend: str
    sourcemap: str | None = None
