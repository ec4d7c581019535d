# File: tabletypes/emitter.py
"""
TableTypes - Definition Emitter
=================================
Turns a ``SchemaMetadata`` into one ``SchemaUnit`` per schema.

For every table the INSERT and QUERY field sets are computed with the
``FieldPolicy``.  When they are equal the table yields a single ``ANY``
definition carrying both statements; otherwise it yields a query variant
(table name, select statement) followed by an insert variant (table name
plus suffix, insert statement).  Every enum yields one definition whose
constants follow the label order.

Units are ordered by the first appearance of their schema across tables
then enums, so two runs over the same input give identical output.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from tabletypes.models import (
    ColumnField,
    DefinitionKind,
    EnumConstant,
    EnumType,
    GeneratedField,
    GeneratedTypeDefinition,
    GenerationConfig,
    RelationMetadata,
    SchemaMetadata,
    SchemaUnit,
    UsageContext,
)
from tabletypes.naming import NameResolver
from tabletypes.policy import FieldCustomizations, FieldPolicy
from tabletypes.sql import SqlTemplates
from tabletypes.type_mapper import VOCABULARIES, TypeMapper

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes.emitter")


def group_by_schema(
    metadata: SchemaMetadata,
) -> Dict[str, Tuple[List[RelationMetadata], List[EnumType]]]:
    """
    Tables and enums per schema key, in first-appearance order.

    Non-table relations are left out; a schema with neither tables nor
    enums does not appear.
    """
    groups: Dict[str, Tuple[List[RelationMetadata], List[EnumType]]] = {}
    for relation in metadata.relation_metadatas:
        if not relation.is_table:
            logger.debug(
                "Skipping %s (%s).",
                relation.relation_id.qualified_name,
                relation.relation_type.value,
            )
            continue
        groups.setdefault(relation.relation_id.schema_key, ([], []))[0].append(relation)
    for enum in metadata.enums:
        groups.setdefault(enum.schema_key, ([], []))[1].append(enum)
    return groups


class DefinitionEmitter:
    """
    Builds generated definitions for one run.

    Usage::

        emitter = DefinitionEmitter(config, customizations)
        units = emitter.emit(metadata)
    """

    def __init__(
        self,
        config: GenerationConfig,
        customizations: Optional[FieldCustomizations] = None,
    ) -> None:
        self.config: GenerationConfig = config
        self.names: NameResolver = NameResolver(config)
        self.customizations: FieldCustomizations = (
            customizations if customizations is not None else FieldCustomizations.empty()
        )
        self.policy: FieldPolicy = FieldPolicy(self.customizations)
        self.type_mapper: TypeMapper = TypeMapper(
            self.names, self.customizations, VOCABULARIES[config.target]
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def emit(self, metadata: SchemaMetadata) -> List[SchemaUnit]:
        """
        Emit every schema unit.

        Raises:
            UnsupportedTypeError: On the first field that cannot be mapped.
        """
        sql: SqlTemplates = self._sql_for(metadata)
        units: List[SchemaUnit] = []
        for schema_key, (tables, enums) in group_by_schema(metadata).items():
            units.append(self._build_unit(schema_key, tables, enums, sql))
        logger.info(
            "Emitted %d schema unit(s) with %d definition(s).",
            len(units),
            sum(len(u.definitions) for u in units),
        )
        return units

    def emit_schema(self, metadata: SchemaMetadata, schema_key: str) -> Optional[SchemaUnit]:
        """
        Emit the unit for one schema, or ``None`` when it has nothing to emit.

        Nothing is produced for the schema if any of its definitions fails.
        """
        groups = group_by_schema(metadata)
        if schema_key not in groups:
            return None
        tables, enums = groups[schema_key]
        return self._build_unit(schema_key, tables, enums, self._sql_for(metadata))

    def schema_keys(self, metadata: SchemaMetadata) -> List[str]:
        return list(group_by_schema(metadata))

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def table_definitions(
        self, relation: RelationMetadata, sql: SqlTemplates
    ) -> List[GeneratedTypeDefinition]:
        """One ``ANY`` definition, or a query and an insert variant."""
        rid = relation.relation_id
        query_fields: List[ColumnField] = self.policy.type_fields(relation, UsageContext.QUERY)
        insert_fields: List[ColumnField] = self.policy.type_fields(relation, UsageContext.INSERT)
        insert_text: str = sql.insert_sql(relation, self.policy.insert_sql_fields(relation))
        query_text: str = sql.query_sql(relation)

        if [f.name for f in query_fields] == [f.name for f in insert_fields]:
            return [
                self._table_definition(
                    relation, query_fields, UsageContext.ANY, insert_text, query_text
                )
            ]

        logger.debug("Table %s needs separate insert and query types.", rid.qualified_name)
        return [
            self._table_definition(relation, query_fields, UsageContext.QUERY, None, query_text),
            self._table_definition(relation, insert_fields, UsageContext.INSERT, insert_text, None),
        ]

    def _table_definition(
        self,
        relation: RelationMetadata,
        fields: List[ColumnField],
        usage: UsageContext,
        insert_sql: Optional[str],
        query_sql: Optional[str],
    ) -> GeneratedTypeDefinition:
        rid = relation.relation_id
        generated: List[GeneratedField] = [
            GeneratedField(
                name=self.names.field_name(f.name),
                type_name=self.type_mapper.map_type(rid, f),
                column_name=f.name,
            )
            for f in fields
        ]
        return GeneratedTypeDefinition(
            name=self.names.table_type_name(
                rid.name, insert_variant=usage is UsageContext.INSERT
            ),
            kind=DefinitionKind.TABLE,
            usage=usage,
            fields=tuple(generated),
            source_relation=rid.qualified_name,
            insert_sql=insert_sql,
            query_sql=query_sql,
            comment=relation.comment,
        )

    # ------------------------------------------------------------------
    # Enums
    # ------------------------------------------------------------------

    def enum_definition(self, enum: EnumType) -> GeneratedTypeDefinition:
        return GeneratedTypeDefinition(
            name=self.names.type_name(enum.name),
            kind=DefinitionKind.ENUM,
            usage=UsageContext.ANY,
            constants=tuple(
                EnumConstant(name=self.names.constant_name(label), label=label)
                for label in enum.labels
            ),
            source_relation=enum.qualified_name,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_unit(
        self,
        schema_key: str,
        tables: List[RelationMetadata],
        enums: List[EnumType],
        sql: SqlTemplates,
    ) -> SchemaUnit:
        definitions: List[GeneratedTypeDefinition] = []
        for relation in tables:
            definitions.extend(self.table_definitions(relation, sql))
        for enum in enums:
            definitions.append(self.enum_definition(enum))
        unit = SchemaUnit(
            schema_key=schema_key,
            name=self.names.container_name(schema_key),
            definitions=tuple(definitions),
        )
        logger.debug("Schema %s → %s: %s", schema_key, unit.name, unit.definition_names)
        return unit

    def _sql_for(self, metadata: SchemaMetadata) -> SqlTemplates:
        return SqlTemplates(
            self.config.parameter_style,
            metadata.case_sensitivity,
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = ["group_by_schema", "DefinitionEmitter"]

logger.debug("tabletypes.emitter loaded — %d public symbols.", len(__all__))
