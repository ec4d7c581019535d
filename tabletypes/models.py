# File: tabletypes/models.py
"""
TableTypes - Core Data Models
===============================
Pydantic V2 models for the three kinds of data flowing through the
generator:

    1. The **metadata document** produced by the introspection query
       (``SchemaMetadata`` and everything it contains).  Decoded once from
       camelCase JSON and frozen afterwards.
    2. The **run configuration** (``GenerationConfig``) and per-field
       overrides (``FieldCustomization``).
    3. The **generated definitions** (``GeneratedTypeDefinition`` grouped
       into ``SchemaUnit``) handed to the source renderers.

Loosely typed strings from the document (identity generation marker,
relation kind) are decoded into closed enumerations here so that nothing
downstream ever compares raw strings.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes.models")

DEFAULT_SCHEMA: str = "public"

# ---------------------------------------------------------------------------
# Enums: closed value sets shared by the metadata and config models
# ---------------------------------------------------------------------------


class CaseSensitivity(str, Enum):
    """How the source database treats unquoted identifiers."""

    INSENSITIVE_STORED_LOWER = "INSENSITIVE_STORED_LOWER"
    INSENSITIVE_STORED_UPPER = "INSENSITIVE_STORED_UPPER"
    INSENSITIVE_STORED_MIXED = "INSENSITIVE_STORED_MIXED"
    SENSITIVE = "SENSITIVE"

    @property
    def is_insensitive(self) -> bool:
        return self is not CaseSensitivity.SENSITIVE


class RelationKind(str, Enum):
    """Kind of relation; only tables are turned into definitions."""

    TABLE = "table"
    VIEW = "view"
    UNKNOWN = "unknown"


class IdentityGeneration(str, Enum):
    """Decoded form of the column identity-generation marker."""

    GENERATED_ALWAYS = "ALWAYS"
    GENERATED_BY_DEFAULT = "BY DEFAULT"
    NOT_GENERATED = "NONE"


class NamingStyle(str, Enum):
    """Styles for schema, table and user-defined type names."""

    AS_IS = "AS_IS"
    CAPITALIZE_WHOLE = "CAPITALIZE_WHOLE"
    CAPITALIZE_EACH_PART = "CAPITALIZE_EACH_PART"
    UPPER_CAMEL_CASE = "UPPER_CAMEL_CASE"


class FieldNameStyle(str, Enum):
    """Styles for generated property names."""

    AS_IS = "AS_IS"
    CAMEL_CASE = "CAMEL_CASE"


class ParameterStyle(str, Enum):
    """Styles for parameter references in generated insert SQL."""

    AS_IS = "AS_IS"
    CAMEL_CASE = "CAMEL_CASE"
    QUESTION_MARK = "QUESTION_MARK"
    DOLLAR_NUMBER = "DOLLAR_NUMBER"


class TargetLanguage(str, Enum):
    """Language of the rendered source files."""

    PYTHON = "python"
    JAVA = "java"


class UsageContext(str, Enum):
    """What a generated table definition is meant for."""

    INSERT = "INSERT"
    QUERY = "QUERY"
    ANY = "ANY"


class DefinitionKind(str, Enum):
    TABLE = "table"
    ENUM = "enum"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

# Input document: camelCase keys, tolerant of extra keys, immutable.
_DOCUMENT_CONFIG: ConfigDict = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    frozen=True,
)

# Generated output: immutable, no aliasing.
_OUTPUT_CONFIG: ConfigDict = ConfigDict(
    extra="forbid",
    frozen=True,
)


# ---------------------------------------------------------------------------
# Metadata document
# ---------------------------------------------------------------------------


class RelationId(BaseModel):
    """Identity of a relation: optional schema plus name."""

    model_config = _DOCUMENT_CONFIG

    schema_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("schema", "schema_name", "schemaName"),
        description="Schema name; absent means the default schema.",
    )
    name: str = Field(..., min_length=1, description="Relation name.")

    @property
    def qualified_name(self) -> str:
        """``schema.name``, or bare ``name`` when no schema is recorded."""
        if self.schema_name:
            return f"{self.schema_name}.{self.name}"
        return self.name

    @property
    def schema_key(self) -> str:
        """Schema used for grouping; absent and empty mean the default schema."""
        return self.schema_name or DEFAULT_SCHEMA

    def __str__(self) -> str:
        return self.qualified_name


class ColumnField(BaseModel):
    """
    One column of a relation as described by the metadata document.

    ``nullable`` is tri-state: ``None`` means unknown and is treated as
    nullable everywhere.
    """

    model_config = _DOCUMENT_CONFIG

    name: str = Field(..., min_length=1)
    database_type: str = Field(
        ...,
        validation_alias=AliasChoices("type", "databaseType", "database_type"),
    )
    type_schema: Optional[str] = None
    type_user_defined: bool = False
    identity_generation: IdentityGeneration = IdentityGeneration.NOT_GENERATED
    is_identity: Optional[bool] = None
    nullable: Optional[bool] = None
    primary_key_part_number: Optional[int] = None
    length: Optional[int] = None
    precision: Optional[int] = None
    precision_radix: Optional[int] = None
    fractional_digits: Optional[int] = None
    jdbc_type_code: Optional[int] = None
    comment: Optional[str] = None

    @field_validator("identity_generation", mode="before")
    @classmethod
    def _decode_identity_generation(cls, v: Any) -> IdentityGeneration:
        if isinstance(v, IdentityGeneration):
            return v
        if isinstance(v, str):
            normalized: str = " ".join(v.strip().upper().split())
            if normalized in ("ALWAYS", "GENERATED_ALWAYS"):
                return IdentityGeneration.GENERATED_ALWAYS
            if normalized in ("BY DEFAULT", "GENERATED_BY_DEFAULT"):
                return IdentityGeneration.GENERATED_BY_DEFAULT
        return IdentityGeneration.NOT_GENERATED

    @property
    def is_nullable(self) -> bool:
        return self.nullable is None or self.nullable

    @property
    def is_generated_always(self) -> bool:
        return self.identity_generation is IdentityGeneration.GENERATED_ALWAYS

    def __repr__(self) -> str:
        null_flag: str = " NOT NULL" if self.nullable is False else ""
        ident_flag: str = " ALWAYS" if self.is_generated_always else ""
        return f"<Field {self.name} {self.database_type}{null_flag}{ident_flag}>"


class RelationMetadata(BaseModel):
    """A table or view with its ordered fields."""

    model_config = _DOCUMENT_CONFIG

    relation_id: RelationId
    relation_type: RelationKind = RelationKind.UNKNOWN
    fields: Tuple[ColumnField, ...] = ()
    comment: Optional[str] = None

    @field_validator("relation_type", mode="before")
    @classmethod
    def _decode_relation_type(cls, v: Any) -> RelationKind:
        if isinstance(v, RelationKind):
            return v
        if isinstance(v, str):
            try:
                return RelationKind(v.strip().lower())
            except ValueError:
                logger.debug("Unrecognised relation type '%s' decoded as unknown.", v)
        return RelationKind.UNKNOWN

    @property
    def is_table(self) -> bool:
        return self.relation_type is RelationKind.TABLE

    def get_field(self, name: str) -> Optional[ColumnField]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def __repr__(self) -> str:
        return (
            f"<Relation {self.relation_id.qualified_name} "
            f"({self.relation_type.value}, {len(self.fields)} fields)>"
        )


class ForeignKeyComponent(BaseModel):
    model_config = _DOCUMENT_CONFIG

    foreign_key_field_name: str
    primary_key_field_name: str


class ForeignKey(BaseModel):
    """
    A foreign key between two relations.

    Carried through from the document as-is; generation does not use it.
    """

    model_config = _DOCUMENT_CONFIG

    constraint_name: Optional[str] = None
    foreign_key_relation_id: RelationId
    primary_key_relation_id: RelationId
    foreign_key_components: Tuple[ForeignKeyComponent, ...] = ()

    def __repr__(self) -> str:
        return (
            f"<FK {self.constraint_name or '?'} "
            f"{self.foreign_key_relation_id} → {self.primary_key_relation_id}>"
        )


class EnumType(BaseModel):
    """A database enumerated type with its labels in declaration order."""

    model_config = _DOCUMENT_CONFIG

    schema_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("schema", "schema_name", "schemaName"),
    )
    name: str = Field(..., min_length=1)
    labels: Tuple[str, ...] = ()

    @property
    def schema_key(self) -> str:
        return self.schema_name or DEFAULT_SCHEMA

    @property
    def qualified_name(self) -> str:
        if self.schema_name:
            return f"{self.schema_name}.{self.name}"
        return self.name


class SchemaMetadata(BaseModel):
    """
    The root model: the whole parsed metadata document.

    Immutable once decoded; read once at the start of a generation run.
    """

    model_config = _DOCUMENT_CONFIG

    dbms_name: str = ""
    dbms_version: str = ""
    major_version: Optional[int] = None
    minor_version: Optional[int] = None
    case_sensitivity: CaseSensitivity = CaseSensitivity.INSENSITIVE_STORED_LOWER
    relation_metadatas: Tuple[RelationMetadata, ...] = ()
    foreign_keys: Tuple[ForeignKey, ...] = ()
    enums: Tuple[EnumType, ...] = ()

    def tables(self) -> List[RelationMetadata]:
        """Relations of kind ``table``, in document order."""
        return [r for r in self.relation_metadatas if r.is_table]

    def get_relation(self, relation_id: RelationId) -> Optional[RelationMetadata]:
        for rel in self.relation_metadatas:
            if rel.relation_id == relation_id:
                return rel
        return None

    def get_enum(self, schema: Optional[str], name: str) -> Optional[EnumType]:
        key: str = schema or DEFAULT_SCHEMA
        for e in self.enums:
            if e.schema_key == key and e.name == name:
                return e
        return None

    def __repr__(self) -> str:
        return (
            f"<SchemaMetadata {self.dbms_name} {self.dbms_version}: "
            f"{len(self.relation_metadatas)} relations, "
            f"{len(self.foreign_keys)} FKs, {len(self.enums)} enums>"
        )


# ---------------------------------------------------------------------------
# Field customization
# ---------------------------------------------------------------------------


class FieldCustomization(BaseModel):
    """
    Per-field overrides.  ``None`` in any slot means "use the default policy".

    ``include_in_type`` applies to every usage context; the context-specific
    slots win over it for their own context.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    property_type: Optional[str] = None
    include_in_type: Optional[StrictBool] = None
    include_in_insert_type: Optional[StrictBool] = None
    include_in_query_type: Optional[StrictBool] = None
    include_in_insert_sql: Optional[StrictBool] = None

    @field_validator("property_type")
    @classmethod
    def _non_blank_property_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("propertyType must not be blank")
        return v

    @model_validator(mode="after")
    def _no_contradicting_inclusion(self) -> "FieldCustomization":
        if self.include_in_type is None:
            return self
        for slot in ("include_in_insert_type", "include_in_query_type"):
            specific: Optional[bool] = getattr(self, slot)
            if specific is not None and specific != self.include_in_type:
                raise ValueError(
                    f"includeInType={self.include_in_type} contradicts "
                    f"{to_camel(slot)}={specific}"
                )
        return self


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """
    Every option that shapes a generation run.

    ``package_name`` is the only required value; it names the package the
    rendered sources belong to and the directory they are written into.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra="forbid",
        frozen=False,
    )

    package_name: str = Field(
        ...,
        min_length=1,
        description="Dotted package name for the generated sources.",
    )
    target: TargetLanguage = Field(
        default=TargetLanguage.PYTHON, description="Language to render."
    )
    schema_name_style: NamingStyle = Field(default=NamingStyle.UPPER_CAMEL_CASE)
    table_name_style: NamingStyle = Field(default=NamingStyle.CAPITALIZE_WHOLE)
    type_name_style: NamingStyle = Field(default=NamingStyle.UPPER_CAMEL_CASE)
    field_name_style: FieldNameStyle = Field(default=FieldNameStyle.AS_IS)
    parameter_style: ParameterStyle = Field(default=ParameterStyle.AS_IS)
    schema_name_prefix: str = Field(
        default="",
        description="Prepended to schema container names (avoids keyword clashes).",
    )
    insert_name_suffix: str = Field(
        default="_Ins",
        description="Appended to the insert-only variant of a table definition.",
    )
    header_comment: bool = Field(
        default=True, description="Start each rendered file with a generated-code banner."
    )

    @field_validator("package_name")
    @classmethod
    def _valid_package_name(cls, v: str) -> str:
        parts: List[str] = v.split(".")
        if not all(p.isidentifier() for p in parts):
            raise ValueError(f"'{v}' is not a valid dotted package name")
        return v


# ---------------------------------------------------------------------------
# Generated definitions
# ---------------------------------------------------------------------------


class GeneratedField(BaseModel):
    """One property of a generated table definition."""

    model_config = _OUTPUT_CONFIG

    name: str
    type_name: str
    column_name: str


class EnumConstant(BaseModel):
    """One constant of a generated enum definition."""

    model_config = _OUTPUT_CONFIG

    name: str
    label: str


class GeneratedTypeDefinition(BaseModel):
    """A single generated type: a table record or an enum."""

    model_config = _OUTPUT_CONFIG

    name: str
    kind: DefinitionKind
    usage: UsageContext = UsageContext.ANY
    fields: Tuple[GeneratedField, ...] = ()
    constants: Tuple[EnumConstant, ...] = ()
    source_relation: str
    insert_sql: Optional[str] = None
    query_sql: Optional[str] = None
    comment: Optional[str] = None

    @property
    def field_pairs(self) -> List[Tuple[str, str]]:
        """Ordered ``(field name, type name)`` pairs."""
        return [(f.name, f.type_name) for f in self.fields]

    def __repr__(self) -> str:
        return (
            f"<Definition {self.name} ({self.kind.value}/{self.usage.value}) "
            f"from {self.source_relation}>"
        )


class SchemaUnit(BaseModel):
    """All definitions generated for one database schema."""

    model_config = _OUTPUT_CONFIG

    schema_key: str
    name: str
    definitions: Tuple[GeneratedTypeDefinition, ...] = ()

    def get_definition(self, name: str) -> Optional[GeneratedTypeDefinition]:
        for d in self.definitions:
            if d.name == name:
                return d
        return None

    @property
    def definition_names(self) -> List[str]:
        return [d.name for d in self.definitions]


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_SCHEMA",
    "CaseSensitivity",
    "RelationKind",
    "IdentityGeneration",
    "NamingStyle",
    "FieldNameStyle",
    "ParameterStyle",
    "TargetLanguage",
    "UsageContext",
    "DefinitionKind",
    "RelationId",
    "ColumnField",
    "RelationMetadata",
    "ForeignKeyComponent",
    "ForeignKey",
    "EnumType",
    "SchemaMetadata",
    "FieldCustomization",
    "GenerationConfig",
    "GeneratedField",
    "EnumConstant",
    "GeneratedTypeDefinition",
    "SchemaUnit",
]

logger.debug("tabletypes.models loaded — %d public symbols.", len(__all__))
