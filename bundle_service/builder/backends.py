"""Build backend adapters.

Every adapter turns a scaffolded project into a ``BundleOutput`` with the
same shape (``script`` plus optional ``html``, ``stylesheet`` and
``sourcemap``) and reports failure through ``BackendRunResult`` instead of
raising.  Outputs are always read back from the output directory after the
tool exits.

Two backends are available:

- ``esbuild``: multi-file output (script, sourcemap, stylesheet when sources
  import CSS).  Deterministic, used by default.
- ``vite``: a single self-contained HTML document built with
  ``vite-plugin-singlefile``; the inline module script is extracted as the
  script blob.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from ..config import BackendName, BuildConfig
from ..scaffolder.generator import ENTRY_MODULE, EphemeralProject
from ..scaffolder.templates import TemplateRenderer
from ..utils import preview, run_command

logger = logging.getLogger(__name__)

_ERROR_KEYWORDS = ("error", "failed", "exception", "fatal", "could not resolve")

_INLINE_MODULE_RE = re.compile(
    r"<script\b[^>]*\btype=[\"']module[\"'][^>]*>(.*?)</script>",
    re.DOTALL | re.IGNORECASE,
)
_INLINE_STYLE_RE = re.compile(r"<style\b[^>]*>(.*?)</style>", re.DOTALL | re.IGNORECASE)


class BackendOutputError(Exception):
    """Raised inside an adapter when expected output files are missing."""


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class BundleOutput:
    """Normalized output of one backend run."""

    backend: str
    script: str
    html: str | None = None
    stylesheet: str | None = None
    sourcemap: str | None = None


@dataclass
class BackendRunResult:
    """Structured result of a single adapter invocation."""

    backend: str
    success: bool
    output: BundleOutput | None = None
    errors: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0
    exit_code: int = -1
    stdout: str = ""
    stderr: str = ""

    def summary(self) -> str:
        """Return a human-readable summary of the run."""
        status = "SUCCESS" if self.success else "FAILED"
        lines = [
            f"Backend: {self.backend}",
            f"Status: {status}",
            f"Duration: {self.duration_seconds:.1f}s",
        ]
        if self.errors:
            lines.append(f"Errors: {len(self.errors)}")
            for err in self.errors[:5]:
                lines.append(f"  - {err[:200]}")
        return "\n".join(lines)


def _extract_errors(text: str) -> list[str]:
    """Pick diagnostic lines out of tool output.

    Falls back to the last few non-empty lines when nothing looks like an
    error message.
    """
    lines = [line.strip() for line in text.split("\n") if line.strip()]
    errors = [line for line in lines if any(kw in line.lower() for kw in _ERROR_KEYWORDS)]
    return errors or lines[-5:]


# ---------------------------------------------------------------------------
# Adapter base
# ---------------------------------------------------------------------------


class BundlerBackend(ABC):
    """Common adapter contract: ``build(project, out_dir) -> BackendRunResult``."""

    name: BackendName
    dev_dependencies: dict[str, str] = {}

    def __init__(self, config: BuildConfig, renderer: TemplateRenderer | None = None) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()
        self.timeout = config.bundle_timeout

    def output_dir(self, project: EphemeralProject) -> Path:
        """Default output directory, one per backend so retries start clean."""
        return project.dist_dir / self.name.value

    async def build(
        self,
        project: EphemeralProject,
        out_dir: Path | None = None,
    ) -> BackendRunResult:
        """Run the backend against *project* and read its output from disk.

        Never raises for tool failures; the returned result carries
        ``success=False`` and the collected diagnostics instead.
        """
        out = Path(out_dir) if out_dir is not None else self.output_dir(project)
        backend = self.name.value
        start = time.monotonic()

        try:
            await self.prepare(project, out)
            cmd = self.command(project, out)
            logger.info("Running %s for %s", backend, project.request_id)
            returncode, stdout, stderr = await run_command(
                cmd, cwd=project.root, timeout=self.timeout
            )
        except FileNotFoundError:
            return BackendRunResult(
                backend=backend,
                success=False,
                errors=[f"Build tool not found: '{self.config.npx_binary}'"],
                duration_seconds=time.monotonic() - start,
            )
        except OSError as exc:
            return BackendRunResult(
                backend=backend,
                success=False,
                errors=[f"Could not start {backend}: {exc}"],
                duration_seconds=time.monotonic() - start,
            )

        if returncode != 0:
            diagnostic = stderr or stdout
            logger.warning(
                "%s failed for %s (exit %s): %s",
                backend,
                project.request_id,
                returncode,
                preview(diagnostic),
            )
            return BackendRunResult(
                backend=backend,
                success=False,
                errors=_extract_errors(diagnostic) or [f"{backend} exited with code {returncode}"],
                duration_seconds=time.monotonic() - start,
                exit_code=returncode,
                stdout=stdout,
                stderr=stderr,
            )

        try:
            output = await asyncio.to_thread(self.collect, project, out)
        except (OSError, BackendOutputError) as exc:
            return BackendRunResult(
                backend=backend,
                success=False,
                errors=[f"Could not read {backend} output: {exc}"],
                duration_seconds=time.monotonic() - start,
                exit_code=returncode,
                stdout=stdout,
                stderr=stderr,
            )

        elapsed = time.monotonic() - start
        logger.info("%s built %s in %.1fs", backend, project.request_id, elapsed)
        return BackendRunResult(
            backend=backend,
            success=True,
            output=output,
            duration_seconds=elapsed,
            exit_code=returncode,
            stdout=stdout,
            stderr=stderr,
        )

    async def prepare(self, project: EphemeralProject, out_dir: Path) -> None:
        """Write backend-specific configuration before the tool runs."""

    @abstractmethod
    def command(self, project: EphemeralProject, out_dir: Path) -> list[str]:
        """Return the argv that runs the tool."""

    @abstractmethod
    def collect(self, project: EphemeralProject, out_dir: Path) -> BundleOutput:
        """Read the tool's output files into a ``BundleOutput``."""


# ---------------------------------------------------------------------------
# esbuild
# ---------------------------------------------------------------------------


class EsbuildBackend(BundlerBackend):
    """Multi-file backend: ``<entry>.js`` + ``.js.map`` (+ ``.css``)."""

    name = BackendName.ESBUILD
    dev_dependencies = {"esbuild": "^0.24.0"}

    def command(self, project: EphemeralProject, out_dir: Path) -> list[str]:
        return [
            self.config.npx_binary,
            "esbuild",
            project.entry_path,
            "--bundle",
            "--minify",
            "--sourcemap",
            "--format=esm",
            "--jsx=automatic",
            "--loader:.js=jsx",
            "--log-level=warning",
            '--define:process.env.NODE_ENV="production"',
            f"--outdir={out_dir.as_posix()}",
        ]

    def collect(self, project: EphemeralProject, out_dir: Path) -> BundleOutput:
        stem = Path(ENTRY_MODULE).stem
        script_path = out_dir / f"{stem}.js"
        if not script_path.is_file():
            raise BackendOutputError(f"missing {script_path.name}")

        css_path = out_dir / f"{stem}.css"
        map_path = out_dir / f"{stem}.js.map"
        return BundleOutput(
            backend=self.name.value,
            script=script_path.read_text(encoding="utf-8"),
            stylesheet=css_path.read_text(encoding="utf-8") if css_path.is_file() else None,
            sourcemap=map_path.read_text(encoding="utf-8") if map_path.is_file() else None,
        )


# ---------------------------------------------------------------------------
# Vite
# ---------------------------------------------------------------------------


class ViteBackend(BundlerBackend):
    """Single-file backend producing a self-contained ``index.html``."""

    name = BackendName.VITE
    dev_dependencies = {
        "vite": "^6.0.0",
        "@vitejs/plugin-react": "^4.3.4",
        "vite-plugin-singlefile": "^2.1.0",
    }

    config_file = "vite.config.js"

    async def prepare(self, project: EphemeralProject, out_dir: Path) -> None:
        await self.renderer.render_to_file(
            "vite.config.js.j2",
            project.root / self.config_file,
            {"out_dir": out_dir.as_posix()},
        )

    def command(self, project: EphemeralProject, out_dir: Path) -> list[str]:
        return [
            self.config.npx_binary,
            "vite",
            "build",
            "--config",
            self.config_file,
        ]

    def collect(self, project: EphemeralProject, out_dir: Path) -> BundleOutput:
        html_path = out_dir / "index.html"
        if not html_path.is_file():
            raise BackendOutputError(f"missing {html_path.name}")

        html = html_path.read_text(encoding="utf-8")
        scripts = _INLINE_MODULE_RE.findall(html)
        if not scripts:
            raise BackendOutputError("no inline module script in index.html")
        styles = _INLINE_STYLE_RE.findall(html)
        return BundleOutput(
            backend=self.name.value,
            script="\n".join(s.strip() for s in scripts),
            html=html,
            stylesheet="\n".join(s.strip() for s in styles) if styles else None,
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

BACKENDS: dict[BackendName, type[BundlerBackend]] = {
    BackendName.ESBUILD: EsbuildBackend,
    BackendName.VITE: ViteBackend,
}


def create_backend(
    name: BackendName | str,
    config: BuildConfig,
    renderer: TemplateRenderer | None = None,
) -> BundlerBackend:
    """Instantiate the adapter registered under *name*."""
    return BACKENDS[BackendName(name)](config, renderer)
