"""Bundle pipeline: one request in, one published page out.

Flow per request::

    validate -> scaffold -> install -> (style compile || bundle)
             -> assemble page -> store -> teardown

The project directory is removed on every exit path by the
``TeardownManager`` guard.  Style compilation never fails because of the
caller's override configuration; it only raises when the base configuration
is unusable.

Usage::

    python -m bundle_service.pipeline request.json
    python -m bundle_service.pipeline request.json --backend vite --fallback
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import sys
import time
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from .builder import BundlerOrchestrator, DependencyInstaller, TeardownManager
from .builder.backends import BundleOutput
from .config import BackendName, Config, StorageBackend
from .errors import BundleServiceError
from .models import BundleDemoRequest, BundleRequest, CompileCssRequest, CompiledArtifact
from .scaffolder import ProjectScaffolder, TemplateRenderer
from .scaffolder.generator import ROOT_ELEMENT_ID
from .storage import ArtifactLocation, ArtifactStore, create_storage
from .styles import CompiledStyles, StyleCompiler
from .utils import configure_logging, console, format_duration, print_summary_table, strip_import_lines

logger = logging.getLogger(__name__)

_SOURCEMAP_COMMENT_RE = re.compile(r"//# sourceMappingURL=\S+\s*$")
_TAILWIND_DIRECTIVE_RE = re.compile(r"@tailwind\s+[\w-]+\s*;?[ \t]*\n?")


@dataclass
class BundleResult:
    """Outcome of a successful pipeline run."""

    id: str
    html_url: str
    js_url: str
    css_url: str
    backend: str
    attempts: int
    duration_seconds: float
    style_fallback: str | None = None

    def summary(self) -> dict[str, str]:
        data = {
            "ID": self.id,
            "Page": self.html_url,
            "Script": self.js_url,
            "Stylesheet": self.css_url,
            "Backend": f"{self.backend} (attempts: {self.attempts})",
            "Duration": format_duration(self.duration_seconds),
        }
        if self.style_fallback:
            data["Style config"] = f"base only ({self.style_fallback})"
        return data


class BundlePipeline:
    """Runs bundle and compile-css requests end to end.

    Collaborators default to instances built from *config*; tests inject
    fakes for the ones that shell out or touch remote storage.
    """

    def __init__(
        self,
        config: Config,
        store: ArtifactStore,
        scaffolder: ProjectScaffolder | None = None,
        installer: DependencyInstaller | None = None,
        orchestrator: BundlerOrchestrator | None = None,
        compiler: StyleCompiler | None = None,
        teardown: TeardownManager | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.renderer = renderer or TemplateRenderer()
        self.scaffolder = scaffolder or ProjectScaffolder(config, self.renderer)
        self.installer = installer or DependencyInstaller(config.build)
        self.orchestrator = orchestrator or BundlerOrchestrator(config.build, renderer=self.renderer)
        self.compiler = compiler or StyleCompiler()
        self.teardown = teardown or TeardownManager(config.work_root)
        self._semaphore = asyncio.Semaphore(config.build.max_concurrent_bundles)

    @classmethod
    def from_config(cls, config: Config) -> "BundlePipeline":
        """Build a pipeline whose artifact store uses the configured storage."""
        store = ArtifactStore(
            create_storage(config.storage),
            public_base_url=config.public_base_url,
            key_prefix=config.storage.key_prefix,
        )
        return cls(config, store)

    # ------------------------------------------------------------------
    # Bundle
    # ------------------------------------------------------------------

    async def run(self, request: BundleRequest, fallback: bool | None = None) -> BundleResult:
        """Compile *request* into a stored page.

        Raises:
            ValidationError: If the id is malformed (before any side effect).
            ScaffoldError, DependencyInstallError, BundlerError,
            StyleCompileError, StorageError: From the failing stage.
        """
        location = self.store.locate(request.id)
        return await self._publish(request, location, _scan_content(request), fallback)

    async def run_demo(self, request: BundleDemoRequest, fallback: bool | None = None) -> BundleResult:
        """Compile a component demo and store it under its component/demo slugs.

        Styles are generated from the component and demo code, not from the
        UI component files.

        Raises:
            ValidationError: If a slug is malformed (before any side effect).
        """
        location = self.store.locate_demo(request.component_slug, request.demo_slug)
        content = [strip_import_lines(request.code), strip_import_lines(request.demo_code)]
        return await self._publish(request.to_bundle_request(), location, content, fallback)

    async def _publish(
        self,
        request: BundleRequest,
        location: ArtifactLocation,
        content: list[str],
        fallback: bool | None,
    ) -> BundleResult:
        start = time.monotonic()
        selected = request.backend or self.config.build.default_backend
        if fallback is None:
            fallback = request.fallback

        async with self._semaphore:
            dev_dependencies = self.orchestrator.dev_dependencies(selected, fallback)
            async with self.teardown.guard(
                lambda: self.scaffolder.scaffold(request, dev_dependencies)
            ) as project:
                logger.info("Installing dependencies for %s", request.id)
                await self.installer.install(project.root)
                await self.scaffolder.restore_shims(project)

                outcomes = await asyncio.gather(
                    self.compiler.compile_async(
                        content,
                        request.base_tailwind_config,
                        request.custom_tailwind_config,
                        request.base_global_css,
                        request.custom_global_css,
                    ),
                    self.orchestrator.bundle(project, selected, fallback),
                    return_exceptions=True,
                )
                for outcome in outcomes:
                    if isinstance(outcome, BaseException):
                        raise outcome
                styles, build = outcomes

            artifact = self.assemble(request.id, build.output, styles, location)
            saved = await self.store.save_at(location, artifact)

        result = BundleResult(
            id=request.id,
            html_url=saved.html_url,
            js_url=saved.js_url,
            css_url=saved.css_url,
            backend=build.backend,
            attempts=build.attempts,
            duration_seconds=time.monotonic() - start,
            style_fallback=styles.fallback_reason,
        )
        logger.info(
            "Bundled %s with %s in %s", request.id, build.backend, format_duration(result.duration_seconds)
        )
        return result

    def assemble(
        self,
        artifact_id: str,
        output: BundleOutput,
        styles: CompiledStyles,
        location: ArtifactLocation | None = None,
    ) -> CompiledArtifact:
        """Combine backend output and compiled styles into publishable blobs."""
        location = location or self.store.locate(artifact_id)
        css_url = location.css_url
        js_url = location.js_url

        script = output.script
        if output.sourcemap:
            script = _SOURCEMAP_COMMENT_RE.sub(f"//# sourceMappingURL={location.map_name}\n", script)

        if output.html is None:
            stylesheet = styles.css
            imported = strip_tailwind_directives(output.stylesheet or "")
            if imported:
                stylesheet = f"{stylesheet.rstrip()}\n\n{imported}"
            html = self.renderer.render(
                "page.html.j2",
                {
                    "title": artifact_id,
                    "root_id": ROOT_ELEMENT_ID,
                    "css_url": css_url,
                    "js_url": js_url,
                },
            )
        else:
            stylesheet = styles.css
            html = inject_stylesheet(output.html, css_url)

        return CompiledArtifact(
            html=html,
            script=script,
            stylesheet=stylesheet,
            backend=output.backend,
            sourcemap=output.sourcemap,
        )

    # ------------------------------------------------------------------
    # Compile CSS
    # ------------------------------------------------------------------

    async def compile_css(self, request: CompileCssRequest) -> str:
        """Run the style compiler alone over the request's code snippets."""
        content = [strip_import_lines(request.code), strip_import_lines(request.demo_code)]
        content.extend(strip_import_lines(snippet) for snippet in request.dependencies)
        styles = await self.compiler.compile_async(
            content,
            request.base_tailwind_config,
            request.custom_tailwind_config,
            request.base_global_css,
            request.custom_global_css,
        )
        return styles.css


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def inject_stylesheet(html: str, css_url: str) -> str:
    """Insert a stylesheet ``<link>`` just before ``</head>``.

    Examples::

        inject_stylesheet("<head></head>", "/a.css")
            -> '<head><link rel="stylesheet" href="/a.css"></head>'
    """
    link = f'<link rel="stylesheet" href="{css_url}">'
    match = re.search(r"</head\s*>", html, re.IGNORECASE)
    if match:
        return html[: match.start()] + link + html[match.start() :]
    return link + html


def strip_tailwind_directives(css: str) -> str:
    """Remove ``@tailwind`` directives from stylesheet text imported by caller code.

    The compiled stylesheet already carries the generated layers; a raw directive
    in the bundler's CSS output means the caller imported the scaffolded
    ``globals.css`` and must not be published.
    """
    return _TAILWIND_DIRECTIVE_RE.sub("", css).strip()


def _scan_content(request: BundleRequest) -> list[str]:
    return [strip_import_lines(source) for source in request.files.values()]


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """CLI entry point for ``python -m bundle_service.pipeline``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Bundle service -- run one bundle request locally",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m bundle_service.pipeline request.json\n"
            "  python -m bundle_service.pipeline request.json --backend vite --fallback\n"
            "  python -m bundle_service.pipeline request.json --local-dir ./bundled-pages\n"
        ),
    )
    parser.add_argument("request", help="Path to a JSON bundle request")
    parser.add_argument(
        "--backend",
        choices=[b.value for b in BackendName],
        default=None,
        help="Build backend (default: from configuration)",
    )
    parser.add_argument(
        "--fallback",
        action="store_true",
        help="Retry with the other backend if the first one fails",
    )
    parser.add_argument(
        "--local-dir",
        default=None,
        help="Store artifacts on disk under this directory instead of object storage",
    )
    args = parser.parse_args()

    config = Config.from_env()
    configure_logging(config.server.log_level)
    if args.local_dir:
        config.storage.backend = StorageBackend.LOCAL
        config.storage.local_dir = Path(args.local_dir)

    req_path = Path(args.request)
    if not req_path.exists():
        console.print(f"[bold red]Error:[/bold red] Request file not found: {req_path}")
        sys.exit(1)

    try:
        payload = json.loads(req_path.read_text(encoding="utf-8"))
        if args.backend:
            payload["backend"] = args.backend
        request = BundleRequest.model_validate(payload)
    except (json.JSONDecodeError, PydanticValidationError) as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid request: {exc}")
        sys.exit(1)

    config.ensure_directories()
    pipeline = BundlePipeline.from_config(config)
    try:
        result = asyncio.run(pipeline.run(request, fallback=True if args.fallback else None))
    except BundleServiceError as exc:
        console.print(f"[bold red]Bundle failed ({exc.code}):[/bold red] {exc.message}")
        sys.exit(1)

    print_summary_table(result.summary(), title="Bundle Result")
    console.print("[bold green]Bundle completed successfully![/bold green]")


if __name__ == "__main__":
    main()
