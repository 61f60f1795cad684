"""Error taxonomy for the bundle service.

Every error carries a ``code`` so the HTTP boundary can translate it into the
JSON error envelope without inspecting the concrete type.  Style
configuration errors (``ConfigParseError`` / ``ConfigEvalError``) are
recovered inside the style compiler; everything else propagates to the
request boundary.
"""

from __future__ import annotations


class BundleServiceError(Exception):
    """Base class for all domain errors raised by the service."""

    code = "BUNDLE_SERVICE_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(BundleServiceError):
    """Raised for a bad identifier or missing/malformed request fields.

    Always raised before any filesystem or storage side effect.
    """

    code = "VALIDATION_ERROR"


class ScaffoldError(BundleServiceError):
    """Raised when the ephemeral project tree cannot be written."""

    code = "SCAFFOLD_ERROR"


class ConfigParseError(BundleServiceError):
    """Raised when style configuration text cannot be tokenized or parsed."""

    code = "CONFIG_PARSE_ERROR"

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message)


class ConfigEvalError(BundleServiceError):
    """Raised when a parsed style configuration cannot be evaluated."""

    code = "CONFIG_EVAL_ERROR"


class StyleCompileError(BundleServiceError):
    """Raised when CSS cannot be produced even from the base configuration."""

    code = "CSS_COMPILATION_ERROR"


class DependencyInstallError(BundleServiceError):
    """Raised when the package manager exits non-zero or cannot be run.

    ``stderr`` holds the tool's diagnostic stream verbatim.
    """

    code = "DEPENDENCY_INSTALL_ERROR"

    def __init__(self, message: str, stderr: str = "", exit_code: int | None = None) -> None:
        self.stderr = stderr
        self.exit_code = exit_code
        super().__init__(f"{message}: {stderr}" if stderr else message)


class BundlerError(BundleServiceError):
    """Raised when every configured build backend failed."""

    code = "BUNDLER_ERROR"

    def __init__(self, message: str, attempts: list | None = None) -> None:
        self.attempts = attempts or []
        super().__init__(message)


class StorageError(BundleServiceError):
    """Raised on durable storage transport failures (never for a missing key)."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str, key: str = "") -> None:
        self.key = key
        super().__init__(message)
