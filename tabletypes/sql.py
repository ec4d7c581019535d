# File: tabletypes/sql.py
"""
TableTypes - SQL Templates
============================
Builds the literal insert and select statements attached to generated
table definitions.

    insert into public.orders(customer_name) values(:customerName) returning id
    select id,customer_name from public.orders

Column lists are comma-joined without spaces, statement parts are joined
with single spaces.  Identifiers stay bare unless the database's
case-sensitivity mode would fold them, in which case they are quoted.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from tabletypes.models import (
    CaseSensitivity,
    ColumnField,
    ParameterStyle,
    RelationId,
    RelationMetadata,
)
from tabletypes.naming import lower_camel_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes.sql")

# ---------------------------------------------------------------------------
# Identifiers that need no quoting, per case-sensitivity mode
# ---------------------------------------------------------------------------

_BARE_LOWER_RE: re.Pattern[str] = re.compile(r"^[a-z_][a-z0-9_$]*$")
_BARE_UPPER_RE: re.Pattern[str] = re.compile(r"^[A-Z_][A-Z0-9_$]*$")
_BARE_ANY_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")


class SqlTemplates:
    """
    Statement text generator for one run.

    Args:
        parameter_style:  How parameter references are spelled.
        case_sensitivity: The source database's identifier handling, used to
                          decide which identifiers must be quoted.
    """

    def __init__(
        self,
        parameter_style: ParameterStyle = ParameterStyle.AS_IS,
        case_sensitivity: CaseSensitivity = CaseSensitivity.INSENSITIVE_STORED_LOWER,
    ) -> None:
        self.parameter_style: ParameterStyle = parameter_style
        self.case_sensitivity: CaseSensitivity = case_sensitivity
        if case_sensitivity is CaseSensitivity.INSENSITIVE_STORED_LOWER:
            self._bare_re: re.Pattern[str] = _BARE_LOWER_RE
        elif case_sensitivity is CaseSensitivity.INSENSITIVE_STORED_UPPER:
            self._bare_re = _BARE_UPPER_RE
        else:
            self._bare_re = _BARE_ANY_RE

    # -- identifiers -------------------------------------------------------

    def quote_identifier(self, identifier: str) -> str:
        if self._bare_re.match(identifier):
            return identifier
        return '"' + identifier.replace('"', '""') + '"'

    def table_reference(self, relation_id: RelationId) -> str:
        """Possibly schema-qualified, quoted-where-needed table name."""
        table: str = self.quote_identifier(relation_id.name)
        if relation_id.schema_name:
            return f"{self.quote_identifier(relation_id.schema_name)}.{table}"
        return table

    def column_list(self, fields: Sequence[ColumnField]) -> str:
        return ",".join(self.quote_identifier(f.name) for f in fields)

    # -- parameters --------------------------------------------------------

    def parameter_reference(self, field: ColumnField, position: int) -> str:
        """
        Parameter token for *field*, the *position*-th (1-based) insert value.

        User-defined types get an explicit ``::schema.type`` cast.
        """
        style: ParameterStyle = self.parameter_style
        if style is ParameterStyle.AS_IS:
            token: str = f":{field.name}"
        elif style is ParameterStyle.CAMEL_CASE:
            token = f":{lower_camel_case(field.name)}"
        elif style is ParameterStyle.QUESTION_MARK:
            token = "?"
        elif style is ParameterStyle.DOLLAR_NUMBER:
            token = f"${position}"
        else:
            raise ValueError(f"Unknown parameter style: {style!r}")

        if field.type_user_defined:
            token += "::" + self._cast_type(field)
        return token

    @staticmethod
    def _cast_type(field: ColumnField) -> str:
        if field.type_schema:
            return f"{field.type_schema}.{field.database_type}"
        return field.database_type

    # -- statements --------------------------------------------------------

    def insert_sql(
        self,
        relation: RelationMetadata,
        insert_fields: Optional[Sequence[ColumnField]] = None,
    ) -> str:
        """
        Insert statement over *insert_fields* (default: every field), with a
        ``returning`` clause naming the always-generated identity columns.
        """
        fields: Sequence[ColumnField] = (
            relation.fields if insert_fields is None else insert_fields
        )
        params: str = ",".join(
            self.parameter_reference(f, i) for i, f in enumerate(fields, start=1)
        )
        parts: List[str] = [
            f"insert into {self.table_reference(relation.relation_id)}"
            f"({self.column_list(fields)})",
            f"values({params})",
        ]
        generated: List[ColumnField] = [f for f in relation.fields if f.is_generated_always]
        if generated:
            parts.append(f"returning {self.column_list(generated)}")
        return " ".join(parts)

    def query_sql(self, relation: RelationMetadata) -> str:
        """Select statement over every declared field of *relation*."""
        return (
            f"select {self.column_list(relation.fields)} "
            f"from {self.table_reference(relation.relation_id)}"
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = ["SqlTemplates"]

logger.debug("tabletypes.sql loaded — %d public symbols.", len(__all__))
