# File: tabletypes/validators.py
"""
TableTypes - Metadata & Customization Validators
==================================================
Cross-entity semantic checks run on the decoded metadata document before
any definition is emitted.

Pydantic handles structural correctness of each model.  This module adds
the checks that need the whole document: duplicate relations and fields,
unmappable column types, enum labels or definition names that would
collide once resolved, field names that shadow the rendered SQL members,
dangling foreign keys and user-defined types, and
customization keys that address nothing.

Every function returns a ``ValidationResult``; ``validate_full`` merges
them all and is the single entry point used by the generator and the CLI.

Usage::

    from tabletypes.validators import validate_full
    result = validate_full(metadata, customizations, config)
    if result.has_errors:
        print(result.format_report())
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from tabletypes.emitter import group_by_schema
from tabletypes.errors import UnsupportedTypeError
from tabletypes.models import (
    GenerationConfig,
    RelationId,
    SchemaMetadata,
    UsageContext,
)
from tabletypes.naming import NameResolver
from tabletypes.policy import FieldCustomizations, FieldPolicy
from tabletypes.templates import SourceRenderer, renderer_for
from tabletypes.type_mapper import VOCABULARIES, TypeMapper

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight issue descriptor."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationError`` items in the order they were found."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self) -> str:
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            prefix: str = "✗" if item.is_error else "!"
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Individual validation functions
# ---------------------------------------------------------------------------


def validate_relations(metadata: SchemaMetadata) -> ValidationResult:
    """Duplicate relations, duplicate fields, and tables without fields."""
    result: ValidationResult = ValidationResult()
    seen: Set[RelationId] = set()

    for relation in metadata.relation_metadatas:
        rid = relation.relation_id
        ctx: Dict[str, Any] = {"relation": rid.qualified_name}
        if rid in seen:
            result.add_error(
                "DUPLICATE_RELATION",
                f"Relation '{rid.qualified_name}' is described more than once.",
                ctx,
            )
        seen.add(rid)

        field_names: Set[str] = set()
        for f in relation.fields:
            if f.name in field_names:
                result.add_error(
                    "DUPLICATE_FIELD",
                    f"Field '{f.name}' appears more than once in '{rid.qualified_name}'.",
                    {**ctx, "field": f.name},
                )
            field_names.add(f.name)

        if relation.is_table and not relation.fields:
            result.add_warning(
                "TABLE_WITHOUT_FIELDS",
                f"Table '{rid.qualified_name}' has no fields.",
                ctx,
            )

    logger.debug(
        "validate_relations: checked %d relations, %d issue(s).",
        len(metadata.relation_metadatas),
        len(result),
    )
    return result


def validate_field_types(
    metadata: SchemaMetadata,
    customizations: FieldCustomizations,
    config: GenerationConfig,
) -> ValidationResult:
    """
    Every table field must map to a type; all failures are reported together.

    User-defined fields that name no known enum only raise a warning, since
    the type may live outside the document.
    """
    result: ValidationResult = ValidationResult()
    mapper: TypeMapper = TypeMapper(
        NameResolver(config), customizations, VOCABULARIES[config.target]
    )

    for relation in metadata.tables():
        rid = relation.relation_id
        for f in relation.fields:
            ctx: Dict[str, Any] = {"relation": rid.qualified_name, "field": f.name}
            try:
                mapper.map_type(rid, f)
            except UnsupportedTypeError as exc:
                result.add_error("UNSUPPORTED_TYPE", str(exc), {**ctx, "type": f.database_type})
                continue
            if f.type_user_defined and metadata.get_enum(f.type_schema, f.database_type) is None:
                result.add_warning(
                    "UNKNOWN_USER_TYPE",
                    f"Field '{rid.qualified_name}.{f.name}' uses user-defined type "
                    f"'{f.database_type}' which is not an enum in the document.",
                    {**ctx, "type": f.database_type, "type_schema": f.type_schema},
                )
    return result


def validate_enums(metadata: SchemaMetadata) -> ValidationResult:
    """Empty enums, and labels that escape to invalid or colliding constant names."""
    result: ValidationResult = ValidationResult()

    for enum in metadata.enums:
        ctx: Dict[str, Any] = {"enum": enum.qualified_name}
        if not enum.labels:
            result.add_warning(
                "EMPTY_ENUM", f"Enum '{enum.qualified_name}' has no labels.", ctx
            )
            continue
        constants: Dict[str, str] = {}
        for label in enum.labels:
            constant: str = NameResolver.constant_name(label)
            if not constant.isidentifier():
                result.add_error(
                    "INVALID_ENUM_CONSTANT",
                    f"Label '{label}' of enum '{enum.qualified_name}' escapes to "
                    f"'{constant}', which is not an identifier.",
                    {**ctx, "constant": constant},
                )
                continue
            if constant in constants:
                result.add_error(
                    "ENUM_CONSTANT_COLLISION",
                    f"Labels '{constants[constant]}' and '{label}' of enum "
                    f"'{enum.qualified_name}' both become constant '{constant}'.",
                    {**ctx, "constant": constant},
                )
            else:
                constants[constant] = label
    return result


def validate_foreign_keys(metadata: SchemaMetadata) -> ValidationResult:
    """Foreign keys must point at described relations and fields."""
    result: ValidationResult = ValidationResult()

    for fk in metadata.foreign_keys:
        name: str = fk.constraint_name or "<unnamed>"
        child = metadata.get_relation(fk.foreign_key_relation_id)
        parent = metadata.get_relation(fk.primary_key_relation_id)
        for rid, rel in (
            (fk.foreign_key_relation_id, child),
            (fk.primary_key_relation_id, parent),
        ):
            if rel is None:
                result.add_warning(
                    "FK_UNKNOWN_RELATION",
                    f"Foreign key '{name}' references unknown relation "
                    f"'{rid.qualified_name}'.",
                    {"constraint": name, "relation": rid.qualified_name},
                )
        for comp in fk.foreign_key_components:
            pairs: List[Tuple[Any, str]] = [
                (child, comp.foreign_key_field_name),
                (parent, comp.primary_key_field_name),
            ]
            for rel, field_name in pairs:
                if rel is not None and rel.get_field(field_name) is None:
                    result.add_warning(
                        "FK_UNKNOWN_FIELD",
                        f"Foreign key '{name}' references unknown field "
                        f"'{rel.relation_id.qualified_name}.{field_name}'.",
                        {"constraint": name, "field": field_name},
                    )
    return result


def validate_definition_names(
    metadata: SchemaMetadata,
    customizations: FieldCustomizations,
    config: GenerationConfig,
) -> ValidationResult:
    """Definitions in one schema unit must resolve to distinct names."""
    result: ValidationResult = ValidationResult()
    names: NameResolver = NameResolver(config)
    policy: FieldPolicy = FieldPolicy(customizations)

    for schema_key, (tables, enums) in group_by_schema(metadata).items():
        owners: Dict[str, str] = {}
        candidates: List[Tuple[str, str]] = []
        for relation in tables:
            source: str = relation.relation_id.qualified_name
            candidates.append((names.table_type_name(relation.relation_id.name), source))
            query_names = [f.name for f in policy.type_fields(relation, UsageContext.QUERY)]
            insert_names = [f.name for f in policy.type_fields(relation, UsageContext.INSERT)]
            if query_names != insert_names:
                candidates.append(
                    (names.table_type_name(relation.relation_id.name, insert_variant=True), source)
                )
        for enum in enums:
            candidates.append((names.type_name(enum.name), enum.qualified_name))

        for def_name, source in candidates:
            if def_name in owners:
                result.add_error(
                    "DEFINITION_NAME_COLLISION",
                    f"'{owners[def_name]}' and '{source}' both generate "
                    f"'{names.container_name(schema_key)}.{def_name}'.",
                    {"schema": schema_key, "name": def_name},
                )
            else:
                owners[def_name] = source
    return result


def validate_field_names(
    metadata: SchemaMetadata,
    customizations: FieldCustomizations,
    config: GenerationConfig,
) -> ValidationResult:
    """
    Rendered field names must be distinct within a definition and must not
    shadow the members that hold the SQL text.
    """
    result: ValidationResult = ValidationResult()
    names: NameResolver = NameResolver(config)
    policy: FieldPolicy = FieldPolicy(customizations)
    renderer: SourceRenderer = renderer_for(config)
    reserved: Set[str] = set(renderer.sql_members)

    for relation in metadata.tables():
        rid = relation.relation_id
        reported: Set[str] = set()
        for usage in (UsageContext.QUERY, UsageContext.INSERT):
            owners: Dict[str, str] = {}
            for f in policy.type_fields(relation, usage):
                identifier: str = renderer.identifier(names.field_name(f.name))
                ctx: Dict[str, Any] = {
                    "relation": rid.qualified_name,
                    "field": f.name,
                    "name": identifier,
                }
                if identifier in reported:
                    continue
                if identifier in reserved:
                    reported.add(identifier)
                    result.add_error(
                        "FIELD_NAME_COLLISION",
                        f"Field '{rid.qualified_name}.{f.name}' renders as "
                        f"'{identifier}', which holds the generated SQL text.",
                        ctx,
                    )
                elif identifier in owners:
                    if owners[identifier] == f.name:
                        continue
                    reported.add(identifier)
                    result.add_error(
                        "FIELD_NAME_COLLISION",
                        f"Fields '{owners[identifier]}' and '{f.name}' of "
                        f"'{rid.qualified_name}' both render as '{identifier}'.",
                        ctx,
                    )
                else:
                    owners[identifier] = f.name
    return result


def validate_customizations(
    metadata: SchemaMetadata, customizations: FieldCustomizations
) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    for key in customizations.unmatched(metadata):
        result.add_warning(
            "CUSTOMIZATION_UNMATCHED",
            f"Customization '{key}' matches no table field.",
            {"key": key},
        )
    return result


# ---------------------------------------------------------------------------
# Aggregate validators
# ---------------------------------------------------------------------------


def validate_full(
    metadata: SchemaMetadata,
    customizations: Optional[FieldCustomizations],
    config: GenerationConfig,
) -> ValidationResult:
    """
    **Master validation entry point.**

    Runs every check above and merges the results.
    """
    logger.info(
        "Starting full validation — %d relations, %d enums, target=%s",
        len(metadata.relation_metadatas),
        len(metadata.enums),
        config.target.value,
    )
    custom: FieldCustomizations = (
        customizations if customizations is not None else FieldCustomizations.empty()
    )
    result: ValidationResult = ValidationResult()

    checks: List[Callable[[], ValidationResult]] = [
        lambda: validate_relations(metadata),
        lambda: validate_field_types(metadata, custom, config),
        lambda: validate_enums(metadata),
        lambda: validate_foreign_keys(metadata),
        lambda: validate_definition_names(metadata, custom, config),
        lambda: validate_field_names(metadata, custom, config),
        lambda: validate_customizations(metadata, custom),
    ]
    for check in checks:
        result.merge(check())

    if result.has_errors:
        logger.error(
            "Validation FAILED with %d error(s). %s",
            result.error_count,
            result.summary(),
        )
    else:
        logger.info("Validation PASSED. %s", result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "validate_relations",
    "validate_field_types",
    "validate_enums",
    "validate_foreign_keys",
    "validate_definition_names",
    "validate_field_names",
    "validate_customizations",
    "validate_full",
]

logger.debug("tabletypes.validators loaded — %d public symbols.", len(__all__))
