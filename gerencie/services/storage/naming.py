"""Field-name translation between in-app records and remote table columns."""

import re
from typing import Any

_UPPER = re.compile(r"[A-Z]")
_SNAKE = re.compile(r"_([a-z])")


def camel_to_snake(key: str) -> str:
    return _UPPER.sub(lambda m: f"_{m.group(0).lower()}", key)


def snake_to_camel(key: str) -> str:
    return _SNAKE.sub(lambda m: m.group(1).upper(), key)


def to_db(record: dict[str, Any]) -> dict[str, Any]:
    """
    camelCase record -> snake_case row.

    Keys whose value is None are dropped so the database keeps its defaults.
    """
    return {
        camel_to_snake(key): value
        for key, value in record.items()
        if value is not None
    }


def from_db(row: dict[str, Any]) -> dict[str, Any]:
    """snake_case row -> camelCase record. Values are kept as-is."""
    return {snake_to_camel(key): value for key, value in row.items()}
