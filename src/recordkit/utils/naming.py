"""
Naming utilities for recordkit.
"""

import re
from typing import Optional

_WORD_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def camel_to_snake(name: str) -> str:
    """
    Convert ``CamelCase`` model names to ``snake_case`` table names.

    Acronyms stay together: ``HTTPRequestLog`` becomes ``http_request_log``.
    """
    return _WORD_BOUNDARY_RE.sub("_", name).lower()


def qualified_table(table: str, schema: Optional[str] = None) -> str:
    if schema:
        return f"{schema}.{table}"
    return table
