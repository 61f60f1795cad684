"""Ephemeral project scaffolding.

Takes a validated ``BundleRequest`` and materializes a uniquely named project
directory under the configured work root: the dependency manifest, the
caller's sources under ``src/``, the ``next`` compatibility shim package, the
synthetic entry module and the style configuration files.  Every write
completes before this module returns, so the installer always sees a
finished tree.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from ..config import Config
from ..errors import ScaffoldError
from ..models import BundleRequest
from ..styles.program import as_module_source
from ..utils import write_text
from .templates import TemplateRenderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_DEPENDENCIES: dict[str, str] = {
    "react": "^19.0.0",
    "react-dom": "^19.0.0",
    "next-themes": "^0.4.4",
    "@types/react": "^19.0.0",
    "@types/react-dom": "^19.0.0",
}

SHIM_PACKAGE = "next"

ENTRY_MODULE = "__entry__.tsx"

ROOT_ELEMENT_ID = "root"

FONT_FAMILIES = [
    "Roboto",
    "Inter",
    "Geist",
    "Geist Mono",
    "Open Sans",
    "Poppins",
    "Montserrat",
    "Lato",
]

_SHIM_EXPORTS = {
    ".": "./index.js",
    "./image": "./image.jsx",
    "./link": "./link.jsx",
    "./head": "./head.jsx",
    "./script": "./script.jsx",
    "./router": "./router.jsx",
    "./navigation": "./navigation.js",
    "./dynamic": "./dynamic.jsx",
    "./font/google": "./font.js",
    "./font/local": "./font.js",
    "./document": "./document.jsx",
}


# ---------------------------------------------------------------------------
# EphemeralProject
# ---------------------------------------------------------------------------


@dataclass
class EphemeralProject:
    """A disposable on-disk working tree owned by exactly one request."""

    root: Path
    request_id: str
    entry_file: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def src_dir(self) -> Path:
        return self.root / "src"

    @property
    def dist_dir(self) -> Path:
        return self.root / "dist"

    @property
    def manifest_path(self) -> Path:
        return self.root / "package.json"

    @property
    def shim_dir(self) -> Path:
        return self.root / "node_modules" / SHIM_PACKAGE

    @property
    def entry_path(self) -> str:
        """Project-relative path of the synthetic entry module."""
        return f"src/{ENTRY_MODULE}"


# ---------------------------------------------------------------------------
# ProjectScaffolder
# ---------------------------------------------------------------------------


class ProjectScaffolder:
    """Materializes an ``EphemeralProject`` for a bundle request."""

    def __init__(self, config: Config, renderer: TemplateRenderer | None = None) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()

    # -- Public API --------------------------------------------------------

    def project_name(self, request_id: str) -> str:
        """Unique directory name: ``<id>-<UTC timestamp>-<random hex>``."""
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        return f"{request_id}-{stamp}-{secrets.token_hex(4)}"

    def build_manifest(
        self,
        request: BundleRequest,
        dev_dependencies: dict[str, str] | None = None,
    ) -> dict:
        """Return the ``package.json`` payload for *request*.

        Caller dependencies override the defaults on name collision.  A
        caller entry for the shimmed framework package is dropped so the
        stub can never be replaced by the real package.
        """
        dependencies = dict(DEFAULT_DEPENDENCIES)
        for name, version in request.dependencies.items():
            if name == SHIM_PACKAGE:
                logger.warning(
                    "Ignoring dependency %r for %s: provided by the compatibility shim",
                    name,
                    request.id,
                )
                continue
            dependencies[name] = version

        manifest: dict = {
            "name": f"bundle-{request.id.lower()}",
            "version": "1.0.0",
            "private": True,
            "type": "module",
            "dependencies": dependencies,
        }
        if dev_dependencies:
            manifest["devDependencies"] = dict(dev_dependencies)
        return manifest

    async def scaffold(
        self,
        request: BundleRequest,
        dev_dependencies: dict[str, str] | None = None,
    ) -> EphemeralProject:
        """Create the project tree for *request*.

        Args:
            request: Validated bundle request.
            dev_dependencies: Build tooling required by the selected
                backend adapters.

        Returns:
            The created ``EphemeralProject``.

        Raises:
            ScaffoldError: If any write fails.  The partially written
                directory is removed before the error propagates.
        """
        work_root = self.config.work_root
        await asyncio.to_thread(work_root.mkdir, parents=True, exist_ok=True)

        root = work_root / self.project_name(request.id)
        try:
            await asyncio.to_thread(root.mkdir)
        except OSError as exc:
            raise ScaffoldError(f"Cannot create project directory {root}: {exc}") from exc

        project = EphemeralProject(
            root=root, request_id=request.id, entry_file=request.entry_file or ""
        )

        try:
            await self._write_project(project, request, dev_dependencies)
        except ScaffoldError:
            await self._discard(root)
            raise
        except Exception as exc:
            await self._discard(root)
            raise ScaffoldError(f"Failed to scaffold project {root.name}: {exc}") from exc
        except BaseException:
            # Cancelled: remove synchronously, a second cancel cannot interrupt it.
            shutil.rmtree(root, ignore_errors=True)
            logger.warning("Removed cancelled project %s", root.name)
            raise

        logger.info(
            "Scaffolded %s (%d source files) at %s", request.id, len(request.files), root
        )
        return project

    async def write_shims(self, project: EphemeralProject) -> list[Path]:
        """Write the ``next`` compatibility package into ``node_modules``."""
        written = await self.renderer.render_tree(
            "shims/next", project.shim_dir, {"font_families": FONT_FAMILIES}
        )
        package = {
            "name": SHIM_PACKAGE,
            "version": "latest",
            "type": "module",
            "main": "index.js",
            "exports": _SHIM_EXPORTS,
        }
        written.append(
            await write_text(project.shim_dir / "package.json", json.dumps(package, indent=2))
        )
        return written

    async def restore_shims(self, project: EphemeralProject) -> None:
        """Re-write the shim package after the installer pruned ``node_modules``."""
        await self.write_shims(project)

    # -- Internal ----------------------------------------------------------

    async def _write_project(
        self,
        project: EphemeralProject,
        request: BundleRequest,
        dev_dependencies: dict[str, str] | None,
    ) -> None:
        manifest = self.build_manifest(request, dev_dependencies)
        await write_text(project.manifest_path, json.dumps(manifest, indent=2))

        await asyncio.gather(
            *[
                write_text(self._source_target(project, path), content)
                for path, content in request.files.items()
            ]
        )

        await self.write_shims(project)

        context = {
            "entry_import": "./" + request.entry,
            "root_id": ROOT_ELEMENT_ID,
            "entry_path": project.entry_path,
            "title": request.id,
        }
        await asyncio.gather(
            self.renderer.render_to_file(
                "entry.tsx.j2", project.src_dir / ENTRY_MODULE, context
            ),
            self.renderer.render_to_file(
                "index.html.j2", project.root / "index.html", context
            ),
            write_text(project.root / "tsconfig.json", json.dumps(_TSCONFIG, indent=2)),
            write_text(
                project.root / "tailwind.config.js",
                as_module_source(request.base_tailwind_config),
            ),
            write_text(project.src_dir / "globals.css", merge_global_css(request)),
        )

    def _source_target(self, project: EphemeralProject, rel_path: str) -> Path:
        if rel_path == ENTRY_MODULE:
            raise ScaffoldError(f"Source path {rel_path!r} is reserved")
        src = project.src_dir.resolve()
        target = (src / rel_path).resolve()
        if not target.is_relative_to(src):
            raise ScaffoldError(f"Source path escapes src/: {rel_path!r}")
        return target

    async def _discard(self, root: Path) -> None:
        await asyncio.to_thread(shutil.rmtree, root, True)
        logger.warning("Removed partially scaffolded project %s", root.name)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_TSCONFIG = {
    "compilerOptions": {
        "target": "ES2020",
        "lib": ["DOM", "DOM.Iterable", "ES2020"],
        "module": "ESNext",
        "moduleResolution": "bundler",
        "jsx": "react-jsx",
        "strict": False,
        "skipLibCheck": True,
        "esModuleInterop": True,
        "allowJs": True,
        "baseUrl": ".",
        "paths": {"@/*": ["./src/*"]},
    },
    "include": ["src"],
}


def merge_global_css(request: BundleRequest) -> str:
    """Base global stylesheet followed by the caller's override, if any."""
    parts = [request.base_global_css.rstrip()]
    if request.custom_global_css:
        parts.append(request.custom_global_css.rstrip())
    return "\n\n".join(parts) + "\n"
