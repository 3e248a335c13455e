"""Global type overrides read from the overrides file (``.swaggo``).

Format, one rule per line:

    // Replace all NullInt64 with int
    replace database/sql.NullInt64 int
    // Leave NullString fields out of the document
    skip    database/sql.NullString
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

REPLACE = "replace"
SKIP = "skip"


@dataclass(frozen=True)
class Override:
    source: str
    replacement: str | None = None

    @property
    def skip(self) -> bool:
        return self.replacement is None


def parse_overrides(text: str, origin: str = "") -> dict[str, Override]:
    """Parse override rules keyed by full type path."""
    rules: dict[str, Override] = {}
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("//"):
            continue
        parts = line.split()
        directive = parts[0].lower()
        if directive == REPLACE and len(parts) == 3:
            rules[parts[1]] = Override(parts[1], parts[2])
        elif directive == SKIP and len(parts) == 2:
            rules[parts[1]] = Override(parts[1])
        else:
            raise ConfigurationError(f"{origin or 'overrides'}:{number}: could not parse override {line!r}")
    return rules


def load_overrides(path: str | Path | None) -> dict[str, Override]:
    """Read the overrides file; a missing file means no overrides."""
    if not path:
        return {}
    path = Path(path)
    if not path.is_file():
        logger.debug("no overrides file at %s", path)
        return {}
    rules = parse_overrides(path.read_text(encoding="utf-8"), str(path))
    logger.info("loaded %d type overrides from %s", len(rules), path)
    return rules
