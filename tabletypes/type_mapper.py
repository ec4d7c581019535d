# File: tabletypes/type_mapper.py
"""
TableTypes - Type Mapper
==========================
Maps a column's declared database type (plus precision, nullability and
user-defined-type flag) to an output type name.

Resolution order for one field:

    1. An explicit ``propertyType`` customization is used verbatim.
    2. A user-defined column refers to the generated type for its own
       schema-qualified type name, whatever the raw type string says.
    3. Otherwise the lower-cased raw type picks a ``BaseType`` from the
       mapping table; unmatched types starting with ``timestamp`` fall back
       to text and anything else raises ``UnsupportedTypeError``.

The chosen ``BaseType`` is named through a ``TypeVocabulary`` (one per
target language), and nullable fields (``nullable`` true or unknown) are
wrapped in the vocabulary's optional form.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from tabletypes.errors import UnsupportedTypeError
from tabletypes.models import ColumnField, RelationId, TargetLanguage
from tabletypes.naming import NameResolver
from tabletypes.policy import FieldCustomizations

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes.type_mapper")


class BaseType(str, Enum):
    """Language-neutral base types the mapping table resolves to."""

    FLOAT64 = "float64"
    DECIMAL = "decimal"
    INT32 = "int32"
    INT64 = "int64"
    TEXT = "text"
    UUID = "uuid"
    INSTANT = "instant"
    LOCAL_DATETIME = "local_datetime"
    DATE = "date"
    TIME = "time"
    BOOLEAN = "boolean"
    BYTES = "bytes"
    JSON = "json"
    BINARY_STREAM = "binary_stream"


# ---------------------------------------------------------------------------
# Database type families
# ---------------------------------------------------------------------------

_FLOAT_TYPES: FrozenSet[str] = frozenset({"float", "real", "double", "double precision", "float4", "float8"})
_DECIMAL_TYPES: FrozenSet[str] = frozenset({"numeric", "decimal", "number"})
_INTEGER_TYPES: FrozenSet[str] = frozenset({
    "int", "integer", "bigint", "smallint", "int2", "int4", "int8",
    "serial", "smallserial", "bigserial", "serial2", "serial4", "serial8",
})
_TEXT_TYPES: FrozenSet[str] = frozenset({
    "varchar", "varchar2", "character varying", "text", "longvarchar",
    "char", "character", "bpchar", "clob", "xml", "tsvector",
})

_SIMPLE_TYPES: Dict[str, BaseType] = {
    "uuid": BaseType.UUID,
    "timestamp with time zone": BaseType.INSTANT,
    "timestamptz": BaseType.INSTANT,
    "timestamp": BaseType.LOCAL_DATETIME,
    "date": BaseType.DATE,
    "time": BaseType.TIME,
    "bit": BaseType.BOOLEAN,
    "boolean": BaseType.BOOLEAN,
    "bool": BaseType.BOOLEAN,
    "bytea": BaseType.BYTES,
    "json": BaseType.JSON,
    "jsonb": BaseType.JSON,
    "oid": BaseType.BINARY_STREAM,
}

# Largest declared precision that still fits a 32-bit integer.
MAX_INT32_PRECISION: int = 9


# ---------------------------------------------------------------------------
# Type vocabularies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TypeVocabulary:
    """
    Names of the base types in one target language, and how that language
    spells "this may be null".
    """

    language: TargetLanguage
    names: Dict[BaseType, str]
    reference_names: Dict[str, str] = field(default_factory=dict)
    optional_template: str = "{}"
    qualified_optional_template: Optional[str] = None

    def name_of(self, base: BaseType) -> str:
        return self.names[base]

    def with_nullability(self, type_name: str, nullable: bool) -> str:
        """
        Wrap *type_name* in the optional form when *nullable*.

        Value-like primitives are first swapped for their reference form.
        When a qualified-name template is defined and the name carries a
        container prefix, the marker goes on the final segment.
        """
        if not nullable:
            return type_name
        reference: str = self.reference_names.get(type_name, type_name)
        if self.qualified_optional_template and "." in reference:
            container, _, simple = reference.rpartition(".")
            return self.qualified_optional_template.format(container, simple)
        return self.optional_template.format(reference)


PYTHON_VOCABULARY: TypeVocabulary = TypeVocabulary(
    language=TargetLanguage.PYTHON,
    names={
        BaseType.FLOAT64: "float",
        BaseType.DECIMAL: "Decimal",
        BaseType.INT32: "int",
        BaseType.INT64: "int",
        BaseType.TEXT: "str",
        BaseType.UUID: "UUID",
        BaseType.INSTANT: "datetime",
        BaseType.LOCAL_DATETIME: "datetime",
        BaseType.DATE: "date",
        BaseType.TIME: "time",
        BaseType.BOOLEAN: "bool",
        BaseType.BYTES: "bytes",
        BaseType.JSON: "Any",
        BaseType.BINARY_STREAM: "BinaryIO",
    },
    optional_template="Optional[{}]",
)

JAVA_VOCABULARY: TypeVocabulary = TypeVocabulary(
    language=TargetLanguage.JAVA,
    names={
        BaseType.FLOAT64: "double",
        BaseType.DECIMAL: "BigDecimal",
        BaseType.INT32: "int",
        BaseType.INT64: "long",
        BaseType.TEXT: "String",
        BaseType.UUID: "UUID",
        BaseType.INSTANT: "Instant",
        BaseType.LOCAL_DATETIME: "LocalDateTime",
        BaseType.DATE: "LocalDate",
        BaseType.TIME: "LocalTime",
        BaseType.BOOLEAN: "boolean",
        BaseType.BYTES: "byte[]",
        BaseType.JSON: "JsonNode",
        BaseType.BINARY_STREAM: "InputStream",
    },
    reference_names={
        "int": "Integer",
        "long": "Long",
        "double": "Double",
        "float": "Float",
        "boolean": "Boolean",
        "char": "Character",
        "short": "Short",
        "byte": "Byte",
    },
    optional_template="@Nullable {}",
    qualified_optional_template="{}.@Nullable {}",
)

VOCABULARIES: Dict[TargetLanguage, TypeVocabulary] = {
    TargetLanguage.PYTHON: PYTHON_VOCABULARY,
    TargetLanguage.JAVA: JAVA_VOCABULARY,
}


# ---------------------------------------------------------------------------
# Base type resolution
# ---------------------------------------------------------------------------


def base_type_for(field: ColumnField, relation: Optional[str] = None) -> BaseType:
    """
    Dispatch on the lower-cased raw database type of a non-user-defined field.

    Raises:
        UnsupportedTypeError: The type is in no family and is not
            ``timestamp``-prefixed.
    """
    lc_type: str = field.database_type.strip().lower()

    if lc_type in _FLOAT_TYPES:
        return BaseType.FLOAT64
    if lc_type in _DECIMAL_TYPES:
        return BaseType.DECIMAL
    if lc_type in _INTEGER_TYPES:
        if field.precision is not None and field.precision <= MAX_INT32_PRECISION:
            return BaseType.INT32
        return BaseType.INT64
    if lc_type in _TEXT_TYPES:
        return BaseType.TEXT
    if lc_type in _SIMPLE_TYPES:
        return _SIMPLE_TYPES[lc_type]
    if lc_type.startswith("timestamp"):
        logger.debug(
            "Field %s of type '%s' falls back to text.", field.name, field.database_type
        )
        return BaseType.TEXT

    raise UnsupportedTypeError(field.name, field.database_type, relation)


# ---------------------------------------------------------------------------
# TypeMapper
# ---------------------------------------------------------------------------


class TypeMapper:
    """
    Resolves output type names for table fields.

    Usage::

        mapper = TypeMapper(names, customizations, JAVA_VOCABULARY)
        mapper.map_type(relation.relation_id, field)   # e.g. "@Nullable Long"
    """

    def __init__(
        self,
        names: NameResolver,
        customizations: Optional[FieldCustomizations] = None,
        vocabulary: TypeVocabulary = PYTHON_VOCABULARY,
    ) -> None:
        self._names: NameResolver = names
        self._customizations: FieldCustomizations = (
            customizations if customizations is not None else FieldCustomizations.empty()
        )
        self._vocabulary: TypeVocabulary = vocabulary

    def map_type(self, relation_id: RelationId, field: ColumnField) -> str:
        """Output type name for *field* of the relation *relation_id*."""
        custom = self._customizations.lookup(relation_id, field.name)
        if custom is not None and custom.property_type is not None:
            return custom.property_type

        bare: str = self.bare_type(relation_id, field)
        return self._vocabulary.with_nullability(bare, field.is_nullable)

    def bare_type(self, relation_id: RelationId, field: ColumnField) -> str:
        """Output type name ignoring customization and nullability."""
        if field.type_user_defined:
            if not field.database_type.strip():
                raise UnsupportedTypeError(
                    field.name, field.database_type, relation_id.qualified_name
                )
            return self._names.type_reference(field.type_schema, field.database_type)

        base: BaseType = base_type_for(field, relation_id.qualified_name)
        return self._vocabulary.name_of(base)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "BaseType",
    "MAX_INT32_PRECISION",
    "TypeVocabulary",
    "PYTHON_VOCABULARY",
    "JAVA_VOCABULARY",
    "VOCABULARIES",
    "base_type_for",
    "TypeMapper",
]

logger.debug("tabletypes.type_mapper loaded — %d public symbols.", len(__all__))
