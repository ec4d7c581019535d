# File: tabletypes/templates.py
"""
TableTypes - Source Renderers
===============================
Turns ``SchemaUnit`` objects into source file contents.

    * ``PythonRenderer`` writes one module per schema unit, with a frozen
      ``@dataclass`` per table definition (SQL text as ``ClassVar[str]``
      ``INSERT_SQL`` / ``QUERY_SQL``)
      and a ``str``-valued ``Enum`` per enum definition, plus the package
      ``__init__.py``.
    * ``JavaRenderer`` writes one class per schema unit with a nested
      ``record`` per table definition (SQL text as ``static final String``
      text blocks) and a nested ``enum`` per enum definition.

All string assembly uses the ``List[str]`` + ``"\\n".join()`` pattern.
Renderers hold no mutable state; the same units always render to the
same text.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, FrozenSet, Iterable, List, Sequence, Set, Tuple

from tabletypes.models import (
    DefinitionKind,
    GeneratedTypeDefinition,
    GenerationConfig,
    SchemaUnit,
    TargetLanguage,
)
from tabletypes.naming import JAVA_KEYWORDS, PYTHON_KEYWORDS, safe_identifier
from tabletypes.utils import indent_lines, wrap_in_quotes

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

GENERATED_BANNER: str = "Generated by TableTypes from database metadata. Do not edit."

_QUALIFIER_RE: re.Pattern[str] = re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)\.")

_PYTHON_IMPORT_HEADER: List[str] = [
    "from __future__ import annotations",
    "",
    "from dataclasses import dataclass",
    "from datetime import date, datetime, time",
    "from decimal import Decimal",
    "from enum import Enum",
    "from typing import Any, BinaryIO, ClassVar, Optional",
    "from uuid import UUID",
]

_JAVA_IMPORT_HEADER: List[str] = [
    "import java.util.*;",
    "import java.math.*;",
    "import java.time.*;",
    "import java.io.InputStream;",
    "import org.checkerframework.checker.nullness.qual.Nullable;",
    "import com.fasterxml.jackson.databind.JsonNode;",
]


def referenced_containers(
    unit: SchemaUnit, known: Iterable[str]
) -> List[str]:
    """Names from *known* used as a ``Container.`` qualifier in *unit*'s field types."""
    known_set: FrozenSet[str] = frozenset(known)
    found: Set[str] = set()
    for definition in unit.definitions:
        for f in definition.fields:
            for match in _QUALIFIER_RE.finditer(f.type_name):
                if match.group(1) in known_set:
                    found.add(match.group(1))
    return sorted(found)


# ---------------------------------------------------------------------------
# Base renderer
# ---------------------------------------------------------------------------


class SourceRenderer:
    """Common plumbing: output paths and the multi-unit entry point."""

    extension: str = ""
    keywords: FrozenSet[str] = frozenset()
    # Member names holding the insert and query SQL text.
    sql_members: Tuple[str, str] = ("", "")

    def __init__(self, config: GenerationConfig) -> None:
        self._config: GenerationConfig = config

    @property
    def package_path(self) -> str:
        return self._config.package_name.replace(".", "/")

    def unit_path(self, unit: SchemaUnit) -> str:
        return f"{self.package_path}/{unit.name}{self.extension}"

    def identifier(self, name: str) -> str:
        return safe_identifier(name, self.keywords)

    def render_unit(self, unit: SchemaUnit, known_containers: Sequence[str] = ()) -> str:
        raise NotImplementedError

    def extra_files(self, units: Sequence[SchemaUnit]) -> Dict[str, str]:
        return {}

    def render_all(self, units: Sequence[SchemaUnit]) -> Dict[str, str]:
        """
        Render every unit.

        Returns a dict of relative path → file content, in unit order.
        """
        known: List[str] = [u.name for u in units]
        result: Dict[str, str] = {}
        for unit in units:
            result[self.unit_path(unit)] = self.render_unit(unit, known)
        result.update(self.extra_files(units))
        logger.info(
            "Rendered %d file(s) for target %s.",
            len(result),
            self._config.target.value,
        )
        return result


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------


class PythonRenderer(SourceRenderer):
    """Dataclass / Enum modules, one per schema unit."""

    extension = ".py"
    keywords = PYTHON_KEYWORDS
    sql_members = ("INSERT_SQL", "QUERY_SQL")

    def render_unit(self, unit: SchemaUnit, known_containers: Sequence[str] = ()) -> str:
        lines: List[str] = ['"""']
        lines.append(f"Table types for schema {unit.schema_key}.")
        if self._config.header_comment:
            lines.append("")
            lines.append(GENERATED_BANNER)
        lines.append('"""')
        lines.append("")
        lines.extend(_PYTHON_IMPORT_HEADER)

        imported: List[str] = referenced_containers(unit, known_containers)
        if imported:
            lines.append("")
            for container in imported:
                lines.append(f"from . import {container}")

        for definition in unit.definitions:
            lines.append("")
            lines.append("")
            if definition.kind is DefinitionKind.ENUM:
                lines.extend(self.enum_lines(definition))
            else:
                lines.extend(self.table_lines(definition))

        lines.append("")
        return "\n".join(lines)

    def table_lines(self, definition: GeneratedTypeDefinition) -> List[str]:
        lines: List[str] = ["@dataclass(frozen=True)", f"class {definition.name}:"]
        doc: str = f"Row of {definition.source_relation} ({definition.usage.value.lower()})."
        if definition.comment:
            doc = f"{doc} {definition.comment.strip()}"
        body: List[str] = [f'"""{doc}"""', ""]

        insert_member, query_member = self.sql_members
        if definition.insert_sql is not None:
            body.append(f"{insert_member}: ClassVar[str] = {wrap_in_quotes(definition.insert_sql)}")
        if definition.query_sql is not None:
            body.append(f"{query_member}: ClassVar[str] = {wrap_in_quotes(definition.query_sql)}")
        if definition.fields:
            body.append("")
            for f in definition.fields:
                body.append(f"{self.identifier(f.name)}: {f.type_name}")

        lines.extend(indent_lines(body))
        return lines

    def enum_lines(self, definition: GeneratedTypeDefinition) -> List[str]:
        lines: List[str] = [f"class {definition.name}(str, Enum):"]
        body: List[str] = [f'"""Labels of {definition.source_relation}."""']
        if definition.constants:
            body.append("")
            for c in definition.constants:
                body.append(f"{c.name} = {wrap_in_quotes(c.label)}")
        lines.extend(indent_lines(body))
        return lines

    def extra_files(self, units: Sequence[SchemaUnit]) -> Dict[str, str]:
        lines: List[str] = ['"""', f"{self._config.package_name} table types."]
        if self._config.header_comment:
            lines.append("")
            lines.append(GENERATED_BANNER)
        lines.append('"""')
        if units:
            lines.append("")
            for unit in units:
                lines.append(f"from . import {unit.name}")
            lines.append("")
            lines.append("__all__ = [" + ", ".join(wrap_in_quotes(u.name) for u in units) + "]")
        lines.append("")
        return {f"{self.package_path}/__init__.py": "\n".join(lines)}


# ---------------------------------------------------------------------------
# Java
# ---------------------------------------------------------------------------


class JavaRenderer(SourceRenderer):
    """One outer class per schema unit holding records and enums."""

    extension = ".java"
    keywords = JAVA_KEYWORDS
    sql_members = ("insertSql", "querySql")

    def render_unit(self, unit: SchemaUnit, known_containers: Sequence[str] = ()) -> str:
        lines: List[str] = []
        if self._config.header_comment:
            lines.append(f"// {GENERATED_BANNER}")
        lines.append(f"package {self._config.package_name};")
        lines.append("")
        lines.extend(_JAVA_IMPORT_HEADER)
        lines.append("")
        lines.append(f"public class {unit.name} {{")

        for definition in unit.definitions:
            lines.append("")
            if definition.kind is DefinitionKind.ENUM:
                lines.extend(indent_lines(self.enum_lines(definition), size=2))
            else:
                lines.extend(indent_lines(self.record_lines(definition), size=2))

        lines.append("")
        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    def record_lines(self, definition: GeneratedTypeDefinition) -> List[str]:
        lines: List[str] = [f"/** Table {definition.source_relation} */"]
        lines.append(f"public record {definition.name}")
        lines.append("(")
        components: List[str] = [
            f"  {f.type_name} {self.identifier(f.name)}" for f in definition.fields
        ]
        if components:
            lines.append(",\n".join(components))
        lines.append(")")
        lines.append("{")
        for member, sql in zip(
            self.sql_members, (definition.insert_sql, definition.query_sql)
        ):
            if sql is None:
                continue
            lines.append(f"  public static final String {member} =")
            lines.append('    """')
            lines.append(f"    {sql}")
            lines.append('    """;')
        lines.append("}")
        return "\n".join(lines).split("\n")

    def enum_lines(self, definition: GeneratedTypeDefinition) -> List[str]:
        lines: List[str] = [f"/** Enum {definition.source_relation} */"]
        lines.append(f"public enum {definition.name}")
        lines.append("{")
        constants: List[str] = [
            f"  {c.name}({wrap_in_quotes(c.label)})" for c in definition.constants
        ]
        if constants:
            lines.append(",\n".join(constants) + ";")
        else:
            lines.append("  ;")
        lines.append("")
        lines.append("  private final String label;")
        lines.append("")
        lines.append(f"  {definition.name}(String label) {{ this.label = label; }}")
        lines.append("")
        lines.append("  public String label() { return label; }")
        lines.append("}")
        return "\n".join(lines).split("\n")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_RENDERERS: Dict[TargetLanguage, type] = {
    TargetLanguage.PYTHON: PythonRenderer,
    TargetLanguage.JAVA: JavaRenderer,
}


def renderer_for(config: GenerationConfig) -> SourceRenderer:
    """Renderer for the configured target language."""
    return _RENDERERS[config.target](config)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GENERATED_BANNER",
    "referenced_containers",
    "SourceRenderer",
    "PythonRenderer",
    "JavaRenderer",
    "renderer_for",
]

logger.debug("tabletypes.templates loaded — %d public symbols.", len(__all__))
