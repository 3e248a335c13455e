"""Convert Go field names to property names.

Strategies:
  - camelcase   -> leading upper-case run lowered   (UserID -> userID, ID -> id)
  - snakecase   -> lower-delimited                  (UserID -> user_id)
  - pascalcase  -> upper-camel                      (userID -> UserID)

Examples:
  camelcase  HTTPServer  -> httpserver
  snakecase  HTTPServer  -> http_server
  pascalcase createdAt   -> CreatedAt

Every strategy is idempotent: applying it to its own output is a no-op.
"""

from __future__ import annotations

import re

CAMEL_CASE = "camelcase"
SNAKE_CASE = "snakecase"
PASCAL_CASE = "pascalcase"

STRATEGIES = (CAMEL_CASE, SNAKE_CASE, PASCAL_CASE)


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def to_lower_camel(name: str) -> str:
    """Lower the leading run of upper-case letters."""
    out = []
    lowering = True
    for char in name:
        if lowering and char.isupper():
            out.append(char.lower())
            continue
        lowering = False
        out.append(char)
    return "".join(out)


def to_snake(name: str) -> str:
    """Lower-case with underscores between words."""
    return _camel_to_snake(name)


def to_pascal(name: str) -> str:
    """Upper-case the first letter, leave the rest untouched."""
    if not name:
        return name
    return name[0].upper() + name[1:]


_STRATEGY_FUNCS = {
    CAMEL_CASE: to_lower_camel,
    SNAKE_CASE: to_snake,
    PASCAL_CASE: to_pascal,
}


def is_valid_strategy(strategy: str) -> bool:
    return strategy in _STRATEGY_FUNCS


def apply_strategy(strategy: str, name: str) -> str:
    """Map a declared field name to its display name."""
    try:
        func = _STRATEGY_FUNCS[strategy]
    except KeyError:
        raise ValueError(f"not supported {strategy} propertyStrategy") from None
    return func(name)


def sanitize_package_name(name: str) -> str:
    """Turn a directory base name into a valid Go package identifier."""
    name = re.sub(r"[^A-Za-z0-9_]", "_", name).strip("_")
    name = re.sub(r"_+", "_", name)
    if not name:
        return "docs"
    if name[0].isdigit():
        name = "_" + name
    return name.lower()


def component_token(canonical: str) -> str:
    """Canonical name as it appears inside a generic instantiation name."""
    return canonical.replace(".", "_").replace("/", "_")
