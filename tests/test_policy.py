"""
tests/test_policy.py
Unit tests for tabletypes.policy.

Tests cover:
- FieldPath parsing and its error cases
- Customization index: case folding, conflicts, unmatched keys
- Default inclusion policy per usage context
- Customization precedence over the defaults
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from tabletypes.errors import MalformedCustomizationError
from tabletypes.models import (
    CaseSensitivity,
    RelationId,
    RelationMetadata,
    SchemaMetadata,
    UsageContext,
)
from tabletypes.policy import FieldCustomizations, FieldPath, FieldPolicy

ORDERS: RelationId = RelationId(schema="public", name="orders")


def _names(fields: List[Any]) -> List[str]:
    return [f.name for f in fields]


@pytest.fixture()
def orders(orders_metadata: SchemaMetadata) -> RelationMetadata:
    return orders_metadata.tables()[0]


# ===========================================================================
# FieldPath
# ===========================================================================


class TestFieldPath:
    def test_three_parts(self) -> None:
        path = FieldPath.parse("public.orders.id")
        assert path == FieldPath(schema="public", table="orders", field="id")
        assert str(path) == "public.orders.id"

    def test_two_parts_has_no_schema(self) -> None:
        path = FieldPath.parse("orders.id")
        assert path.schema is None
        assert str(path) == "orders.id"

    @pytest.mark.parametrize("key", ["id", "a.b.c.d", "public..id", ".orders.id", "", "a. .b"])
    def test_malformed_keys(self, key: str) -> None:
        with pytest.raises(MalformedCustomizationError) as exc_info:
            FieldPath.parse(key)
        assert exc_info.value.field_path == key

    def test_of_relation(self) -> None:
        assert FieldPath.of(ORDERS, "id") == FieldPath("public", "orders", "id")
        assert FieldPath.of(RelationId(name="note"), "body") == FieldPath(None, "note", "body")

    def test_folded(self) -> None:
        assert FieldPath("Public", "Orders", "ID").folded() == FieldPath("public", "orders", "id")


# ===========================================================================
# FieldCustomizations
# ===========================================================================


class TestFieldCustomizations:
    def test_empty(self) -> None:
        index = FieldCustomizations.empty()
        assert len(index) == 0
        assert not index
        assert index.lookup(ORDERS, "id") is None

    def test_from_none(self) -> None:
        assert len(FieldCustomizations.from_mapping(None)) == 0

    def test_lookup_case_insensitive(self) -> None:
        index = FieldCustomizations.from_mapping(
            {"PUBLIC.Orders.Customer_Name": {"propertyType": "Name"}}
        )
        custom = index.lookup(ORDERS, "customer_name")
        assert custom is not None
        assert custom.property_type == "Name"

    def test_lookup_case_sensitive(self) -> None:
        index = FieldCustomizations.from_mapping(
            {"public.orders.Customer_Name": {"propertyType": "Name"}},
            CaseSensitivity.SENSITIVE,
        )
        assert index.lookup(ORDERS, "customer_name") is None
        assert index.lookup(ORDERS, "Customer_Name") is not None

    def test_null_entry_is_empty_customization(self) -> None:
        index = FieldCustomizations.from_mapping({"public.orders.id": None})
        custom = index.lookup(ORDERS, "id")
        assert custom is not None
        assert custom.property_type is None

    def test_snake_case_keys_accepted(self) -> None:
        index = FieldCustomizations.from_mapping(
            {"public.orders.id": {"include_in_insert_sql": True}}
        )
        assert index.lookup(ORDERS, "id").include_in_insert_sql is True

    def test_schema_less_relation_uses_two_part_key(self) -> None:
        bare = RelationId(name="orders")
        index = FieldCustomizations.from_mapping({"public.orders.id": {"propertyType": "A"}})
        assert index.lookup(bare, "id") is None
        index = FieldCustomizations.from_mapping({"orders.id": {"propertyType": "B"}})
        assert index.lookup(bare, "id").property_type == "B"
        assert index.lookup(ORDERS, "id") is None

    def test_root_must_be_mapping(self) -> None:
        with pytest.raises(MalformedCustomizationError):
            FieldCustomizations.from_mapping(["public.orders.id"])  # type: ignore[arg-type]

    def test_entry_must_be_mapping(self) -> None:
        with pytest.raises(MalformedCustomizationError, match="public.orders.id"):
            FieldCustomizations.from_mapping({"public.orders.id": "Money"})

    def test_unknown_override_rejected(self) -> None:
        with pytest.raises(MalformedCustomizationError) as exc_info:
            FieldCustomizations.from_mapping({"public.orders.id": {"propertyKind": "x"}})
        assert "propertyKind" in exc_info.value.reason

    def test_non_boolean_flag_rejected(self) -> None:
        with pytest.raises(MalformedCustomizationError):
            FieldCustomizations.from_mapping({"public.orders.id": {"includeInType": "yes"}})

    def test_blank_property_type_rejected(self) -> None:
        with pytest.raises(MalformedCustomizationError):
            FieldCustomizations.from_mapping({"public.orders.id": {"propertyType": "  "}})

    def test_contradicting_slots_rejected(self) -> None:
        with pytest.raises(MalformedCustomizationError):
            FieldCustomizations.from_mapping(
                {"public.orders.id": {"includeInType": True, "includeInInsertType": False}}
            )

    def test_conflicting_duplicates_after_folding(self) -> None:
        with pytest.raises(MalformedCustomizationError, match="conflicts"):
            FieldCustomizations.from_mapping(
                {
                    "public.orders.id": {"propertyType": "A"},
                    "PUBLIC.ORDERS.ID": {"propertyType": "B"},
                }
            )

    def test_identical_duplicates_allowed(self) -> None:
        index = FieldCustomizations.from_mapping(
            {
                "public.orders.id": {"propertyType": "A"},
                "PUBLIC.ORDERS.ID": {"propertyType": "A"},
            }
        )
        assert len(index) == 1

    def test_unmatched_keys(self, orders_metadata: SchemaMetadata) -> None:
        index = FieldCustomizations.from_mapping(
            {
                "public.orders.id": {"propertyType": "A"},
                "public.orders.missing": {"propertyType": "B"},
                "shop.orders.id": {"propertyType": "C"},
            }
        )
        assert index.unmatched(orders_metadata) == ["public.orders.missing", "shop.orders.id"]


# ===========================================================================
# FieldPolicy
# ===========================================================================


class TestDefaultPolicy:
    def test_query_includes_everything(self, orders: RelationMetadata) -> None:
        policy = FieldPolicy()
        assert _names(policy.type_fields(orders, UsageContext.QUERY)) == ["id", "customer_name"]

    @pytest.mark.parametrize("usage", [UsageContext.INSERT, UsageContext.ANY])
    def test_insert_and_any_exclude_generated_always(
        self, orders: RelationMetadata, usage: UsageContext
    ) -> None:
        policy = FieldPolicy()
        assert _names(policy.type_fields(orders, usage)) == ["customer_name"]

    def test_insert_sql_excludes_generated_always(self, orders: RelationMetadata) -> None:
        assert _names(FieldPolicy().insert_sql_fields(orders)) == ["customer_name"]

    def test_by_default_identity_is_included(self) -> None:
        relation = RelationMetadata.model_validate(
            {
                "relationId": {"name": "t"},
                "relationType": "Table",
                "fields": [{"name": "id", "type": "int8", "identityGeneration": "BY DEFAULT"}],
            }
        )
        policy = FieldPolicy()
        assert _names(policy.type_fields(relation, UsageContext.INSERT)) == ["id"]
        assert _names(policy.insert_sql_fields(relation)) == ["id"]


class TestCustomizedPolicy:
    def _policy(self, overrides: Dict[str, Any]) -> FieldPolicy:
        return FieldPolicy(FieldCustomizations.from_mapping({"public.orders.id": overrides}))

    def test_include_in_type_applies_to_all_contexts(self, orders: RelationMetadata) -> None:
        policy = self._policy({"includeInType": False})
        for usage in UsageContext:
            assert "id" not in _names(policy.type_fields(orders, usage))

    def test_context_specific_slot(self, orders: RelationMetadata) -> None:
        policy = self._policy({"includeInInsertType": True})
        assert "id" in _names(policy.type_fields(orders, UsageContext.INSERT))
        # ANY still follows the default
        assert "id" not in _names(policy.type_fields(orders, UsageContext.ANY))

    def test_query_slot(self, orders: RelationMetadata) -> None:
        policy = self._policy({"includeInQueryType": False})
        assert _names(policy.type_fields(orders, UsageContext.QUERY)) == ["customer_name"]

    def test_include_in_insert_sql(self, orders: RelationMetadata) -> None:
        policy = self._policy({"includeInInsertSql": True})
        assert _names(policy.insert_sql_fields(orders)) == ["id", "customer_name"]

    def test_order_is_declared_order(self, orders: RelationMetadata) -> None:
        policy = FieldPolicy(
            FieldCustomizations.from_mapping(
                {"public.orders.customer_name": {"includeInQueryType": True}}
            )
        )
        assert _names(policy.type_fields(orders, UsageContext.QUERY)) == ["id", "customer_name"]

    def test_without_overrides_insert_is_subset_of_query(
        self, example_metadata: SchemaMetadata
    ) -> None:
        policy = FieldPolicy()
        for relation in example_metadata.tables():
            query = set(_names(policy.type_fields(relation, UsageContext.QUERY)))
            insert = set(_names(policy.type_fields(relation, UsageContext.INSERT)))
            assert insert <= query
