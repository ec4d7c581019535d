# File: tabletypes/policy.py
"""
TableTypes - Field Policy
===========================
Customization index and the two per-field inclusion decisions.

Customizations arrive as a mapping keyed by ``schema.table.field`` (or
``table.field`` for relations without a schema).  The keys are parsed once
into a structured ``FieldPath`` so lookups never build strings; under any
case-insensitive database mode the path parts are folded to lower case on
both sides.

``FieldPolicy`` answers, for one field:

    * is it part of the generated type for a usage context
      (INSERT / QUERY / ANY), and
    * is it part of the generated insert statement.

A non-null customization slot always wins; otherwise QUERY includes every
field and INSERT/ANY (and insert SQL) exclude ``GENERATED_ALWAYS`` identity
columns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from tabletypes.errors import MalformedCustomizationError
from tabletypes.models import (
    CaseSensitivity,
    ColumnField,
    FieldCustomization,
    RelationId,
    RelationMetadata,
    SchemaMetadata,
    UsageContext,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes.policy")


# ---------------------------------------------------------------------------
# Field path
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldPath:
    """Structured customization key."""

    schema: Optional[str]
    table: str
    field: str

    @classmethod
    def parse(cls, key: str) -> "FieldPath":
        """
        Parse ``schema.table.field`` or ``table.field``.

        Raises:
            MalformedCustomizationError: Wrong number of parts, or an empty part.
        """
        parts: List[str] = key.split(".")
        if len(parts) not in (2, 3) or not all(p.strip() for p in parts):
            raise MalformedCustomizationError(
                key, "expected 'schema.table.field' or 'table.field'"
            )
        if len(parts) == 2:
            return cls(schema=None, table=parts[0], field=parts[1])
        return cls(schema=parts[0], table=parts[1], field=parts[2])

    @classmethod
    def of(cls, relation_id: RelationId, field_name: str) -> "FieldPath":
        return cls(schema=relation_id.schema_name or None, table=relation_id.name, field=field_name)

    def folded(self) -> "FieldPath":
        return FieldPath(
            schema=self.schema.lower() if self.schema is not None else None,
            table=self.table.lower(),
            field=self.field.lower(),
        )

    def __str__(self) -> str:
        if self.schema is None:
            return f"{self.table}.{self.field}"
        return f"{self.schema}.{self.table}.{self.field}"


# ---------------------------------------------------------------------------
# Customization index
# ---------------------------------------------------------------------------


class FieldCustomizations:
    """
    Immutable mapping ``FieldPath -> FieldCustomization``.

    Build it with ``from_mapping`` from the decoded external document; the
    constructor expects already-parsed entries.
    """

    def __init__(
        self,
        entries: Optional[Mapping[FieldPath, FieldCustomization]] = None,
        case_insensitive: bool = True,
    ) -> None:
        self._case_insensitive: bool = case_insensitive
        self._entries: Dict[FieldPath, FieldCustomization] = {}
        self._keys: Dict[FieldPath, str] = {}
        for path, custom in (entries or {}).items():
            self._add(path, custom, str(path))

    @classmethod
    def empty(cls) -> "FieldCustomizations":
        return cls()

    @classmethod
    def from_mapping(
        cls,
        raw: Optional[Mapping[str, Any]],
        case_sensitivity: CaseSensitivity = CaseSensitivity.INSENSITIVE_STORED_LOWER,
    ) -> "FieldCustomizations":
        """
        Parse the external string-keyed customization document.

        Raises:
            MalformedCustomizationError: A key or entry is invalid, or two keys
                address the same field with different overrides.
        """
        index: FieldCustomizations = cls(case_insensitive=case_sensitivity.is_insensitive)
        if not raw:
            return index
        if not isinstance(raw, Mapping):
            raise MalformedCustomizationError(
                "<root>", f"expected a mapping, got {type(raw).__name__}"
            )

        for key, value in raw.items():
            key = str(key)
            path: FieldPath = FieldPath.parse(key)
            if value is None:
                value = {}
            if not isinstance(value, Mapping):
                raise MalformedCustomizationError(
                    key, f"expected a mapping of overrides, got {type(value).__name__}"
                )
            try:
                custom: FieldCustomization = FieldCustomization.model_validate(dict(value))
            except PydanticValidationError as exc:
                reasons: str = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc']) or 'entry'}: {err['msg']}"
                    for err in exc.errors()
                )
                raise MalformedCustomizationError(key, reasons) from exc
            index._add(path, custom, key)

        logger.info("Loaded %d field customization(s).", len(index))
        return index

    def _add(self, path: FieldPath, custom: FieldCustomization, key: str) -> None:
        norm: FieldPath = self._normalize(path)
        existing: Optional[FieldCustomization] = self._entries.get(norm)
        if existing is not None and existing != custom:
            raise MalformedCustomizationError(
                key,
                f"conflicts with the overrides given for '{self._keys[norm]}'",
            )
        self._entries[norm] = custom
        self._keys.setdefault(norm, key)

    def _normalize(self, path: FieldPath) -> FieldPath:
        return path.folded() if self._case_insensitive else path

    # -- queries -----------------------------------------------------------

    def lookup(self, relation_id: RelationId, field_name: str) -> Optional[FieldCustomization]:
        """Override record for one field, or ``None``."""
        if not self._entries:
            return None
        return self._entries.get(self._normalize(FieldPath.of(relation_id, field_name)))

    def unmatched(self, metadata: SchemaMetadata) -> List[str]:
        """Original keys that address no field of any table in *metadata*."""
        known: set = set()
        for relation in metadata.tables():
            for f in relation.fields:
                known.add(self._normalize(FieldPath.of(relation.relation_id, f.name)))
        return [self._keys[p] for p in self._entries if p not in known]

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"<FieldCustomizations {len(self._entries)} entries>"


# ---------------------------------------------------------------------------
# Inclusion policy
# ---------------------------------------------------------------------------


class FieldPolicy:
    """Inclusion decisions for table fields, honoring customizations."""

    def __init__(self, customizations: Optional[FieldCustomizations] = None) -> None:
        self._customizations: FieldCustomizations = (
            customizations if customizations is not None else FieldCustomizations.empty()
        )

    def include_in_type(
        self, relation_id: RelationId, field: ColumnField, usage: UsageContext
    ) -> bool:
        custom = self._customizations.lookup(relation_id, field.name)
        if custom is not None:
            specific: Optional[bool] = None
            if usage is UsageContext.INSERT:
                specific = custom.include_in_insert_type
            elif usage is UsageContext.QUERY:
                specific = custom.include_in_query_type
            if specific is not None:
                return specific
            if custom.include_in_type is not None:
                return custom.include_in_type

        if usage is UsageContext.QUERY:
            return True
        return not field.is_generated_always

    def include_in_insert_sql(self, relation_id: RelationId, field: ColumnField) -> bool:
        custom = self._customizations.lookup(relation_id, field.name)
        if custom is not None and custom.include_in_insert_sql is not None:
            return custom.include_in_insert_sql
        return not field.is_generated_always

    def type_fields(
        self, relation: RelationMetadata, usage: UsageContext
    ) -> List[ColumnField]:
        """Fields of *relation* in declared order that belong to the *usage* type."""
        return [
            f for f in relation.fields
            if self.include_in_type(relation.relation_id, f, usage)
        ]

    def insert_sql_fields(self, relation: RelationMetadata) -> List[ColumnField]:
        """Fields of *relation* in declared order that appear in its insert statement."""
        return [
            f for f in relation.fields
            if self.include_in_insert_sql(relation.relation_id, f)
        ]


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FieldPath",
    "FieldCustomizations",
    "FieldPolicy",
]

logger.debug("tabletypes.policy loaded — %d public symbols.", len(__all__))
