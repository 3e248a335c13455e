"""Generate OpenAPI 3 documents from annotated Go source."""

__version__ = "2.0.0"

from .config import Config, TemplateConfig
from .errors import ConfigurationError, DependencyWarning, ParseError, ResolutionError, SwaggenError
from .gen import Builder, BuildResult

__all__ = [
    "Builder",
    "BuildResult",
    "Config",
    "ConfigurationError",
    "DependencyWarning",
    "ParseError",
    "ResolutionError",
    "SwaggenError",
    "TemplateConfig",
    "__version__",
]
