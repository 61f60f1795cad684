"""Backend selection and fallback for the bundling step.

Runs exactly the selected backend.  When fallback is enabled, a failed
primary run is retried once with the other backend against the same
project.  Every attempt is recorded for reporting; a chain where every
attempt failed raises ``BundlerError`` carrying the collected diagnostics.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..config import BackendName, BuildConfig
from ..errors import BundlerError
from ..scaffolder.generator import EphemeralProject
from ..scaffolder.templates import TemplateRenderer
from .backends import BundleOutput, BundlerBackend, create_backend

logger = logging.getLogger(__name__)


@dataclass
class BuildAttempt:
    """Record of a single backend attempt."""

    backend: str
    attempt_number: int
    success: bool
    started_at: str
    duration_seconds: float
    errors: list[str] = field(default_factory=list)


@dataclass
class BuildResult:
    """Final result of the fallback-aware bundling step."""

    success: bool
    backend: str
    output: BundleOutput | None = None
    errors: list[str] = field(default_factory=list)
    attempt_history: list[BuildAttempt] = field(default_factory=list)
    total_duration_seconds: float = 0.0

    @property
    def attempts(self) -> int:
        return len(self.attempt_history)

    def summary(self) -> str:
        """Return a human-readable summary of the bundling step."""
        status = "SUCCESS" if self.success else "FAILED"
        lines = [
            f"Backend: {self.backend}",
            f"Status: {status}",
            f"Attempts: {self.attempts}",
            f"Total Duration: {self.total_duration_seconds:.1f}s",
        ]
        if self.errors:
            lines.append(f"Errors: {len(self.errors)}")
            for err in self.errors[:3]:
                lines.append(f"  - {err[:200]}")
        return "\n".join(lines)


class BundlerOrchestrator:
    """Drives one backend adapter, optionally falling back to the other."""

    def __init__(
        self,
        config: BuildConfig,
        backends: dict[BackendName, BundlerBackend] | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Build settings (default backend, fallback, timeouts).
            backends: Optional pre-built adapters keyed by name; any backend
                not supplied is created from the registry on first use.
            renderer: Template renderer shared with created adapters.
        """
        self.config = config
        self.renderer = renderer or TemplateRenderer()
        self._backends: dict[BackendName, BundlerBackend] = dict(backends or {})

    def backend(self, name: BackendName) -> BundlerBackend:
        if name not in self._backends:
            self._backends[name] = create_backend(name, self.config, self.renderer)
        return self._backends[name]

    def backend_order(
        self,
        selected: BackendName | None = None,
        fallback: bool | None = None,
    ) -> list[BackendName]:
        """Return the backends to try, primary first.

        Examples::

            backend_order(BackendName.VITE, fallback=False) -> [VITE]
            backend_order(BackendName.VITE, fallback=True)  -> [VITE, ESBUILD]
        """
        primary = BackendName(selected) if selected else self.config.default_backend
        use_fallback = self.config.fallback_enabled if fallback is None else fallback
        order = [primary]
        if use_fallback:
            order.extend(name for name in BackendName if name != primary)
        return order

    def dev_dependencies(
        self,
        selected: BackendName | None = None,
        fallback: bool | None = None,
    ) -> dict[str, str]:
        """Build tooling the scaffolder must declare for the chosen chain."""
        deps: dict[str, str] = {}
        for name in self.backend_order(selected, fallback):
            deps.update(self.backend(name).dev_dependencies)
        return deps

    async def bundle(
        self,
        project: EphemeralProject,
        selected: BackendName | None = None,
        fallback: bool | None = None,
    ) -> BuildResult:
        """Bundle *project* with the selected backend chain.

        Returns:
            BuildResult for the first successful attempt.

        Raises:
            BundlerError: If every attempt in the chain failed.
        """
        start = time.monotonic()
        history: list[BuildAttempt] = []
        all_errors: list[str] = []
        order = self.backend_order(selected, fallback)

        for number, name in enumerate(order, start=1):
            if number > 1:
                logger.warning(
                    "Falling back to %s for %s", name.value, project.request_id
                )
            started_at = datetime.now(timezone.utc).isoformat()
            run = await self.backend(name).build(project)
            history.append(
                BuildAttempt(
                    backend=name.value,
                    attempt_number=number,
                    success=run.success,
                    started_at=started_at,
                    duration_seconds=run.duration_seconds,
                    errors=list(run.errors),
                )
            )
            if run.success:
                return BuildResult(
                    success=True,
                    backend=name.value,
                    output=run.output,
                    errors=all_errors,
                    attempt_history=history,
                    total_duration_seconds=time.monotonic() - start,
                )
            all_errors.extend(f"[{name.value}] {err}" for err in run.errors)

        tried = ", ".join(name.value for name in order)
        detail = "; ".join(all_errors[:5]) or "no diagnostics"
        raise BundlerError(f"Bundling failed ({tried}): {detail}", attempts=history)
