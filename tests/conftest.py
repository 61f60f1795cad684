"""Shared pytest fixtures for the bundle service test suite.

Provides reusable fixtures for:
- Temporary work roots and local artifact storage
- Sample bundle / compile-css requests and style configurations
- Mock subprocess helpers
- In-memory object storage
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from bundle_service.config import BuildConfig, Config, ServerConfig, StorageBackend, StorageConfig
from bundle_service.models import BundleRequest


# ---------------------------------------------------------------------------
# Paths & Configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def work_root(tmp_path: Path) -> Path:
    """Temporary parent directory for ephemeral projects."""
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path: Path, work_root: Path) -> Config:
    """Config pointing at temporary directories and local storage."""
    return Config(
        build=BuildConfig(work_root=work_root, install_timeout=30, bundle_timeout=30),
        storage=StorageConfig(
            backend=StorageBackend.LOCAL,
            local_dir=tmp_path / "bundled-pages",
            public_base_url="https://cdn.example.com/",
        ),
        server=ServerConfig(allowed_origins=["https://app.example.com"]),
    )


# ---------------------------------------------------------------------------
# Style configurations
# ---------------------------------------------------------------------------

BASE_TAILWIND_CONFIG = textwrap.dedent(
    """\
    {
      darkMode: ["class"],
      content: ["./src/**/*.{ts,tsx}"],
      theme: {
        extend: {
          colors: {
            brand: "#3366ff",
            primary: { DEFAULT: "hsl(var(--primary))", foreground: "hsl(var(--primary-foreground))" },
          },
        },
      },
      plugins: [require("tailwindcss-animate")],
    }
    """
)


@pytest.fixture
def base_tailwind_config() -> str:
    return BASE_TAILWIND_CONFIG


@pytest.fixture
def custom_tailwind_config() -> str:
    """An ES-module override importing a plugin and exporting an inline object."""
    return textwrap.dedent(
        """\
        import typography from "@tailwindcss/typography";

        export default {
          theme: {
            extend: {
              colors: { accent: "#ff8800" },
            },
          },
          plugins: [typography],
        };
        """
    )


@pytest.fixture
def typed_override_config() -> str:
    """A TypeScript override that exports a named binding instead of a literal."""
    return textwrap.dedent(
        """\
        import type { Config } from "tailwindcss";

        const config: Config = {
          theme: { extend: { colors: { accent: "#ff8800" } } },
        } satisfies Config;

        export default config;
        """
    )


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

APP_SOURCE = textwrap.dedent(
    """\
    import React from "react";
    import Link from "next/link";

    export default function App() {
      return (
        <main className="flex p-4 bg-brand text-white">
          <h1 className="text-xl font-bold">Hello</h1>
          <Link href="/about">About</Link>
        </main>
      );
    }
    """
)


@pytest.fixture
def bundle_payload(base_tailwind_config: str) -> dict[str, Any]:
    """Raw camelCase payload as sent by the web tier."""
    return {
        "id": "demo-1",
        "files": {"App.tsx": APP_SOURCE, "components/button.tsx": "export const B = () => null;\n"},
        "dependencies": {"clsx": "^2.1.0"},
        "baseTailwindConfig": base_tailwind_config,
        "baseGlobalCss": "@tailwind base;\n@tailwind components;\n@tailwind utilities;\n",
    }


@pytest.fixture
def bundle_request(bundle_payload: dict[str, Any]) -> BundleRequest:
    return BundleRequest.model_validate(bundle_payload)


@pytest.fixture
def compile_css_payload(base_tailwind_config: str) -> dict[str, Any]:
    return {
        "code": 'import x from "y";\nexport const A = () => <div className="p-2 text-center" />;',
        "demoCode": '<A className="mt-4" />',
        "baseTailwindConfig": base_tailwind_config,
        "baseGlobalCss": "@tailwind base;\n@tailwind components;\n@tailwind utilities;\n",
    }


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


# ---------------------------------------------------------------------------
# In-memory storage
# ---------------------------------------------------------------------------

class MemoryStorage:
    """ObjectStorage double that records every write in order."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.writes: list[str] = []

    async def put(self, key: str, body: bytes, content_type: str) -> None:
        self.objects[key] = body
        self.content_types[key] = content_type
        self.writes.append(key)

    async def get(self, key: str) -> bytes | None:
        return self.objects.get(key)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def bundle_demo_payload() -> dict[str, Any]:
    """A component demo as posted by the web tier's bundle generator."""
    return {
        "code": 'export const Badge = () => <span className="rounded-full px-2" />;',
        "demoCode": 'import { Badge } from "./components/ui/badge";\n'
        'export default function Demo() { return <div className="p-6"><Badge /></div>; }\n',
        "componentSlug": "badge",
        "demoSlug": "default",
        "dependencies": {"clsx": "^2.1.0"},
        "demoDependencies": {"lucide-react": "^0.400.0"},
        "uiComponents": {
            "components/ui/badge.tsx": 'export const Badge = () => <span className="bg-green-500" />;',
        },
    }
