"""Bundle service builder module.

Runs the out-of-band tooling for an ephemeral project: dependency
installation, backend adapters with fallback, and guaranteed teardown.

Key classes:
    DependencyInstaller  - Package-manager subprocess with timeout
    BundlerBackend       - Adapter contract (EsbuildBackend, ViteBackend)
    BundlerOrchestrator  - Selected backend plus optional fallback
    TeardownManager      - Exactly-once project removal
"""

from .backends import (
    BackendRunResult,
    BundleOutput,
    BundlerBackend,
    EsbuildBackend,
    ViteBackend,
    create_backend,
)
from .installer import DependencyInstaller, InstallResult
from .orchestrator import BuildAttempt, BuildResult, BundlerOrchestrator
from .teardown import TeardownManager

__all__ = [
    # Installation
    "DependencyInstaller",
    "InstallResult",
    # Backends
    "BundlerBackend",
    "EsbuildBackend",
    "ViteBackend",
    "BundleOutput",
    "BackendRunResult",
    "create_backend",
    # Orchestration
    "BundlerOrchestrator",
    "BuildResult",
    "BuildAttempt",
    # Teardown
    "TeardownManager",
]
