"""Error taxonomy for the generation pipeline.

ConfigurationError and ResolutionError are fatal to a build. ParseError is
scoped to one declaration and only fatal in strict mode. DependencyWarning
is never raised, it is logged when traversal degrades.
"""

from __future__ import annotations


class SwaggenError(Exception):
    """Base class for every error a build can report."""


class ConfigurationError(SwaggenError):
    """Invalid configuration detected before any file is read."""


class ParseError(SwaggenError):
    """Malformed annotation block attached to one declaration."""

    def __init__(self, message: str, path: str = "", line: int = 0, declaration: str = "") -> None:
        self.message = message
        self.path = path
        self.line = line
        self.declaration = declaration
        super().__init__(str(self))

    def __str__(self) -> str:
        where = self.path
        if self.line:
            where = f"{where}:{self.line}"
        if self.declaration:
            where = f"{where} ({self.declaration})"
        return f"{where}: {self.message}" if where else self.message


class ResolutionError(SwaggenError):
    """Type reference that cannot be resolved, or an ambiguous canonical name."""

    def __init__(self, message: str, reference: str = "", path: str = "", declaration: str = "") -> None:
        self.message = message
        self.reference = reference
        self.path = path
        self.declaration = declaration
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [self.message]
        if self.reference:
            parts.append(f"reference {self.reference!r}")
        if self.declaration:
            parts.append(f"in {self.declaration}")
        if self.path:
            parts.append(f"at {self.path}")
        return ", ".join(parts)


class DependencyWarning(UserWarning):
    """Dependency traversal was truncated or fell back to the heuristic scanner."""
