"""Bundle service styles module.

Evaluates base and override style configurations without a JavaScript
engine and generates the page stylesheet from them.

Key classes:
    ConfigSandbox      - Restricted interpreter for configuration programs
    NamedTransform     - Registered plugin reference that survives serialization
    UtilityGenerator   - Class-name scanner and CSS generator
    StyleCompiler      - Base/override cascade with base-only fallback
"""

from .compiler import CompiledStyles, StyleCompiler
from .generator import StyleGenerationError, UtilityGenerator, extract_candidates
from .merge import deep_merge
from .program import ConfigSandbox, as_module_source, compile_source, split_export
from .serializer import serialize_config
from .transforms import NamedTransform, require

__all__ = [
    # Interpreter
    "ConfigSandbox",
    "as_module_source",
    "compile_source",
    "split_export",
    # Transforms
    "NamedTransform",
    "require",
    # Merge and serialization
    "deep_merge",
    "serialize_config",
    # Generation
    "UtilityGenerator",
    "StyleGenerationError",
    "extract_candidates",
    # Compilation
    "StyleCompiler",
    "CompiledStyles",
]
