# File: tabletypes/naming.py
"""
TableTypes - Naming Resolver
==============================
Pure, total functions turning raw database identifiers into output
identifiers under a selected naming style.

Every function accepts any string (empty, one character, no delimiter)
and returns a deterministic result; none of them can fail.  The string
transforms are ``lru_cache``-d because the same table and column names
are resolved many times during one run.

``NameResolver`` binds the per-axis styles of a ``GenerationConfig`` so
callers ask for "the container name of schema X" rather than juggling
styles themselves.
"""

from __future__ import annotations

import functools
import keyword
import logging
import re
from typing import Dict, FrozenSet, List, Optional

from tabletypes.models import (
    DEFAULT_SCHEMA,
    FieldNameStyle,
    GenerationConfig,
    NamingStyle,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes.naming")

# ---------------------------------------------------------------------------
# Pre-compiled patterns
# ---------------------------------------------------------------------------

_CAMEL_DELIMITER_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9]+")

# Substitutions applied to enum labels so each becomes a bare identifier.
_LABEL_TOKENS: Dict[str, str] = {
    ",": "_comma_",
    "/": "_slash_",
    ".": "_dot_",
    "-": "_dash_",
    "(": "_lparen_",
    ")": "_rparen_",
    "[": "_lbracket_",
    "]": "_rbracket_",
    "{": "_lbrace_",
    "}": "_rbrace_",
    "<": "_lt_",
    ">": "_gt_",
}

_SPACE_TOKEN: str = "_space_"

JAVA_KEYWORDS: FrozenSet[str] = frozenset({
    "abstract", "assert", "boolean", "break", "byte", "case", "catch",
    "char", "class", "const", "continue", "default", "do", "double",
    "else", "enum", "extends", "final", "finally", "float", "for", "goto",
    "if", "implements", "import", "instanceof", "int", "interface", "long",
    "native", "new", "package", "private", "protected", "public",
    "return", "short", "static", "strictfp", "super", "switch",
    "synchronized", "this", "throw", "throws", "transient", "try", "void",
    "volatile", "while", "true", "false", "null", "record", "var",
})

PYTHON_KEYWORDS: FrozenSet[str] = frozenset(keyword.kwlist)


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def capitalize(name: str) -> str:
    """
    Upper-case the first character only.

        >>> capitalize("order_item")
        'Order_item'
    """
    if not name:
        return ""
    return name[0].upper() + name[1:]


@functools.lru_cache(maxsize=None)
def capitalize_each_part(name: str) -> str:
    """
    Split on ``_``, capitalize each part, re-join without separator.

        >>> capitalize_each_part("order_item")
        'OrderItem'
        >>> capitalize_each_part("sku_ID")
        'SkuID'
    """
    return "".join(capitalize(part) for part in name.split("_"))


@functools.lru_cache(maxsize=None)
def upper_camel_case(name: str) -> str:
    """
    Split on any run of non-alphanumerics and join the parts in UpperCamelCase.

        >>> upper_camel_case("order_item")
        'OrderItem'
        >>> upper_camel_case("ORDER-ITEM")
        'OrderItem'
    """
    parts: List[str] = [p for p in _CAMEL_DELIMITER_RE.split(name) if p]
    return "".join(p[0].upper() + p[1:].lower() for p in parts)


@functools.lru_cache(maxsize=None)
def lower_camel_case(name: str) -> str:
    """
    UpperCamelCase with the first character lower-cased.

        >>> lower_camel_case("customer_name")
        'customerName'
    """
    upper: str = upper_camel_case(name)
    if not upper:
        return ""
    return upper[0].lower() + upper[1:]


def resolve_name(raw: str, style: NamingStyle) -> str:
    """Apply a schema/table/type naming style to *raw*."""
    if style is NamingStyle.AS_IS:
        return raw
    if style is NamingStyle.CAPITALIZE_WHOLE:
        return capitalize(raw)
    if style is NamingStyle.CAPITALIZE_EACH_PART:
        return capitalize_each_part(raw)
    if style is NamingStyle.UPPER_CAMEL_CASE:
        return upper_camel_case(raw)
    raise ValueError(f"Unknown naming style: {style!r}")


def resolve_field_name(raw: str, style: FieldNameStyle) -> str:
    """Apply a property naming style to a column name."""
    if style is FieldNameStyle.AS_IS:
        return raw
    if style is FieldNameStyle.CAMEL_CASE:
        return lower_camel_case(raw)
    raise ValueError(f"Unknown field name style: {style!r}")


@functools.lru_cache(maxsize=None)
def escape_enum_label(label: str) -> str:
    """
    Turn an arbitrary enum label into a bare identifier.

    Common punctuation and whitespace become descriptive tokens. Any other
    character that cannot continue an identifier becomes ``_x<hex>_``. A
    result that cannot start an identifier (or is empty) gets a ``_``
    prefix and keywords of either target language get a ``_`` suffix.

        >>> escape_enum_label("a,b")
        'a_comma_b'
        >>> escape_enum_label("in progress")
        'in_space_progress'
        >>> escape_enum_label("c++")
        'c_x2b__x2b_'
    """
    chars: List[str] = []
    for ch in label:
        if ch in _LABEL_TOKENS:
            chars.append(_LABEL_TOKENS[ch])
        elif ch.isspace():
            chars.append(_SPACE_TOKEN)
        elif f"_{ch}".isidentifier():
            chars.append(ch)
        else:
            chars.append(f"_x{ord(ch):x}_")
    result: str = "".join(chars)
    if not result or not result[0].isidentifier():
        result = f"_{result}"
    if result in PYTHON_KEYWORDS or result in JAVA_KEYWORDS:
        result = f"{result}_"
    return result


def safe_identifier(name: str, keywords: FrozenSet[str]) -> str:
    """Append ``_`` to *name* when it collides with a keyword."""
    if name in keywords:
        return f"{name}_"
    return name


# ---------------------------------------------------------------------------
# Configured resolver
# ---------------------------------------------------------------------------


class NameResolver:
    """
    Naming decisions for one run, bound to a ``GenerationConfig``.

    Stateless apart from the configuration; safe to share.
    """

    def __init__(self, config: GenerationConfig) -> None:
        self._config: GenerationConfig = config

    def container_name(self, schema: Optional[str]) -> str:
        """Name of the per-schema output unit (module or outer class)."""
        raw: str = schema or DEFAULT_SCHEMA
        return self._config.schema_name_prefix + resolve_name(
            raw, self._config.schema_name_style
        )

    def table_type_name(self, table_name: str, insert_variant: bool = False) -> str:
        resolved: str = resolve_name(table_name, self._config.table_name_style)
        if insert_variant:
            return resolved + self._config.insert_name_suffix
        return resolved

    def type_name(self, type_name: str) -> str:
        """Unqualified name of a user-defined type definition."""
        return resolve_name(type_name, self._config.type_name_style)

    def type_reference(self, schema: Optional[str], type_name: str) -> str:
        """Schema-qualified reference ``Container.Type`` to a user-defined type."""
        return f"{self.container_name(schema)}.{self.type_name(type_name)}"

    def field_name(self, column_name: str) -> str:
        return resolve_field_name(column_name, self._config.field_name_style)

    @staticmethod
    def constant_name(label: str) -> str:
        return escape_enum_label(label)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "JAVA_KEYWORDS",
    "PYTHON_KEYWORDS",
    "capitalize",
    "capitalize_each_part",
    "upper_camel_case",
    "lower_camel_case",
    "resolve_name",
    "resolve_field_name",
    "escape_enum_label",
    "safe_identifier",
    "NameResolver",
]

logger.debug("tabletypes.naming loaded — %d public symbols.", len(__all__))
