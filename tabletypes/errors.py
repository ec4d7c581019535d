# File: tabletypes/errors.py
"""
TableTypes - Error Hierarchy
==============================
Every failure the generator can surface is a ``TableTypesError``.  Errors
are raised synchronously and carry enough context (field path, relation
name, configuration key) to locate the cause without re-running.

None of these are retryable: the transform is deterministic, so the same
input always fails the same way.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class TableTypesError(Exception):
    """Base class for all generator errors."""


class MetadataLoadError(TableTypesError):
    """The metadata, customization or config document could not be read or decoded."""


class UnsupportedTypeError(TableTypesError):
    """A column's database type matches no entry of the type mapping table."""

    def __init__(
        self,
        field_name: str,
        database_type: str,
        relation: Optional[str] = None,
    ) -> None:
        self.field_name: str = field_name
        self.database_type: str = database_type
        self.relation: Optional[str] = relation
        where: str = f"{relation}.{field_name}" if relation else field_name
        super().__init__(
            f"Unsupported type for field {where} of type '{database_type}'."
        )


class MissingRequiredConfigError(TableTypesError):
    """One or more required configuration values are absent."""

    def __init__(self, keys: Sequence[str]) -> None:
        self.keys: List[str] = list(keys)
        super().__init__(
            "Missing required configuration value(s): " + ", ".join(self.keys)
        )


class MalformedCustomizationError(TableTypesError):
    """A field customization entry is unparseable or contradicts another entry."""

    def __init__(self, field_path: str, reason: str) -> None:
        self.field_path: str = field_path
        self.reason: str = reason
        super().__init__(f"Malformed customization for '{field_path}': {reason}")


__all__: List[str] = [
    "TableTypesError",
    "MetadataLoadError",
    "UnsupportedTypeError",
    "MissingRequiredConfigError",
    "MalformedCustomizationError",
]
