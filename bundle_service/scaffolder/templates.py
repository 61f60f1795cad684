"""Jinja2 template rendering for ephemeral project scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``bundle_service/scaffolder/templates/`` directory and renders them with
per-request context data.  Supports single-file rendering and batch tree
rendering (used for the framework shim package).
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from ..utils import write_text


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for an ephemeral project.

    Templates are plain ``.j2`` files; their output is JavaScript, JSX and
    HTML, so autoescaping is disabled and every value placed into a template
    must already be safe (validated identifiers, generated URLs).
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"entry.tsx.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    # -- File-based rendering (async) --------------------------------------

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.
        """
        return await write_text(output_path, self.render(template_path, context))

    async def render_tree(
        self,
        template_prefix: str,
        output_dir: str | Path,
        context: dict[str, Any],
    ) -> list[Path]:
        """Render every ``*.j2`` file under *template_prefix* to *output_dir*.

        The directory structure is preserved: a template at
        ``shims/next/link.jsx.j2`` rendered with ``template_prefix="shims/next"``
        and ``output_dir="<project>/node_modules/next"`` writes to
        ``<project>/node_modules/next/link.jsx``.  Files are written
        concurrently since their paths are disjoint.

        Returns:
            List of written file paths.
        """
        prefix_path = self.template_dir / template_prefix
        if not prefix_path.is_dir():
            return []

        out_base = Path(output_dir)
        jobs = []
        for template_file in sorted(prefix_path.rglob("*.j2")):
            rel = template_file.relative_to(prefix_path).as_posix()
            output_file = out_base / rel[: -len(".j2")]
            jobs.append(
                self.render_to_file(f"{template_prefix}/{rel}", output_file, context)
            )
        return list(await asyncio.gather(*jobs))
