"""
tests/test_naming.py
Unit tests for tabletypes.naming.

Tests cover:
- Every naming style on ordinary, empty, one-character and undelimited input
- Lower camel case for field and parameter names
- Enum label escaping
- NameResolver container, table, type and field names
"""

from __future__ import annotations

import pytest

from tabletypes.models import FieldNameStyle, GenerationConfig, NamingStyle
from tabletypes.naming import (
    NameResolver,
    capitalize,
    capitalize_each_part,
    escape_enum_label,
    lower_camel_case,
    resolve_field_name,
    resolve_name,
    safe_identifier,
    upper_camel_case,
    PYTHON_KEYWORDS,
)


# ===========================================================================
# Naming styles
# ===========================================================================


class TestNamingStyles:
    """Each style applied to representative identifiers."""

    @pytest.mark.parametrize(
        "style, expected",
        [
            (NamingStyle.AS_IS, "order_item"),
            (NamingStyle.CAPITALIZE_WHOLE, "Order_item"),
            (NamingStyle.CAPITALIZE_EACH_PART, "OrderItem"),
            (NamingStyle.UPPER_CAMEL_CASE, "OrderItem"),
        ],
    )
    def test_snake_identifier(self, style: NamingStyle, expected: str) -> None:
        assert resolve_name("order_item", style) == expected

    def test_each_part_keeps_inner_case(self) -> None:
        assert capitalize_each_part("sku_ID") == "SkuID"

    def test_upper_camel_lowers_inner_case(self) -> None:
        assert upper_camel_case("ORDER_ITEM") == "OrderItem"

    def test_upper_camel_splits_on_any_delimiter(self) -> None:
        assert upper_camel_case("order-item line") == "OrderItemLine"

    def test_capitalize_whole_leaves_rest(self) -> None:
        assert capitalize("orderItem") == "OrderItem"

    @pytest.mark.parametrize("style", list(NamingStyle))
    @pytest.mark.parametrize("raw", ["", "x", "orders", "__", "a_", "Ünïcode_name"])
    def test_styles_are_total_and_deterministic(self, style: NamingStyle, raw: str) -> None:
        first = resolve_name(raw, style)
        second = resolve_name(raw, style)
        assert isinstance(first, str)
        assert first == second

    def test_single_character(self) -> None:
        assert resolve_name("x", NamingStyle.CAPITALIZE_WHOLE) == "X"
        assert resolve_name("x", NamingStyle.UPPER_CAMEL_CASE) == "X"

    def test_empty_string(self) -> None:
        for style in NamingStyle:
            assert resolve_name("", style) == ""


class TestFieldNames:
    def test_lower_camel(self) -> None:
        assert lower_camel_case("customer_name") == "customerName"

    def test_lower_camel_no_delimiter(self) -> None:
        assert lower_camel_case("id") == "id"

    def test_lower_camel_empty(self) -> None:
        assert lower_camel_case("") == ""

    def test_resolve_field_name_styles(self) -> None:
        assert resolve_field_name("customer_name", FieldNameStyle.AS_IS) == "customer_name"
        assert resolve_field_name("customer_name", FieldNameStyle.CAMEL_CASE) == "customerName"


# ===========================================================================
# Enum label escaping
# ===========================================================================


class TestEscapeEnumLabel:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("happy", "happy"),
            ("a,b", "a_comma_b"),
            ("in progress", "in_space_progress"),
            ("a\tb", "a_space_b"),
            ("a/b", "a_slash_b"),
            ("v1.2", "v1_dot_2"),
            ("x-y", "x_dash_y"),
            ("(a)", "_lparen_a_rparen_"),
            ("[a]", "_lbracket_a_rbracket_"),
            ("{a}", "_lbrace_a_rbrace_"),
            ("<a>", "_lt_a_gt_"),
        ],
    )
    def test_tokens(self, label: str, expected: str) -> None:
        assert escape_enum_label(label) == expected

    @pytest.mark.parametrize(
        "label, expected",
        [
            ("c++", "c_x2b__x2b_"),
            ("it's", "it_x27_s"),
            ("rock&roll", "rock_x26_roll"),
            ("$1", "_x24_1"),
            ("café", "café"),
        ],
    )
    def test_other_characters_hex_encoded(self, label: str, expected: str) -> None:
        assert escape_enum_label(label) == expected

    @pytest.mark.parametrize(
        "label", ["c++", "it's", "a:b!", "50%", "x=y?", "🙂", "a b", "a_b", "9", ""]
    )
    def test_always_identifier(self, label: str) -> None:
        assert escape_enum_label(label).isidentifier()

    def test_space_and_underscore_distinct(self) -> None:
        assert escape_enum_label("a b") != escape_enum_label("a_b")

    def test_leading_digit_prefixed(self) -> None:
        assert escape_enum_label("9lives") == "_9lives"

    def test_empty_label(self) -> None:
        assert escape_enum_label("") == "_"

    def test_keywords_suffixed(self) -> None:
        assert escape_enum_label("class") == "class_"
        assert escape_enum_label("None") == "None_"

    def test_safe_identifier(self) -> None:
        assert safe_identifier("from", PYTHON_KEYWORDS) == "from_"
        assert safe_identifier("orders", PYTHON_KEYWORDS) == "orders"


# ===========================================================================
# NameResolver
# ===========================================================================


class TestNameResolver:
    def test_container_defaults_to_public(self, names: NameResolver) -> None:
        assert names.container_name(None) == "Public"
        assert names.container_name("") == "Public"

    def test_container_prefix(self) -> None:
        resolver = NameResolver(GenerationConfig(package_name="p", schema_name_prefix="Db"))
        assert resolver.container_name("sales_data") == "DbSalesData"

    def test_table_names_and_insert_suffix(self, names: NameResolver) -> None:
        assert names.table_type_name("orders") == "Orders"
        assert names.table_type_name("orders", insert_variant=True) == "Orders_Ins"

    def test_custom_suffix(self) -> None:
        resolver = NameResolver(GenerationConfig(package_name="p", insert_name_suffix="New"))
        assert resolver.table_type_name("orders", insert_variant=True) == "OrdersNew"

    def test_type_reference_is_qualified(self, names: NameResolver) -> None:
        assert names.type_reference("shop", "order_status") == "Shop.OrderStatus"
        assert names.type_reference(None, "mood") == "Public.Mood"

    def test_field_name_style(self) -> None:
        resolver = NameResolver(
            GenerationConfig(package_name="p", field_name_style=FieldNameStyle.CAMEL_CASE)
        )
        assert resolver.field_name("customer_name") == "customerName"

    def test_constant_name(self) -> None:
        assert NameResolver.constant_name("a,b") == "a_comma_b"
