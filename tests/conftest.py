"""
tests/conftest.py
Shared fixtures for the tabletypes test suite.

Metadata documents are plain dicts in the camelCase shape produced by the
introspection query.  No mocking libraries are used; file I/O happens in
pytest's ``tmp_path`` directories.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict

import pytest
import yaml

from tabletypes.models import GenerationConfig, SchemaMetadata
from tabletypes.naming import NameResolver
from tabletypes.policy import FieldCustomizations


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
METADATA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "metadata_example.json"


# ---------------------------------------------------------------------------
# Raw metadata fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_example_metadata() -> Dict[str, Any]:
    """The reference metadata_example.json, loaded once per session."""
    assert METADATA_EXAMPLE_PATH.exists(), (
        f"Reference metadata not found at {METADATA_EXAMPLE_PATH}."
    )
    with open(METADATA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    assert isinstance(data, dict)
    return data


@pytest.fixture()
def example_metadata_dict(raw_example_metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_example_metadata)


@pytest.fixture()
def example_metadata(example_metadata_dict: Dict[str, Any]) -> SchemaMetadata:
    return SchemaMetadata.model_validate(example_metadata_dict)


@pytest.fixture()
def orders_metadata_dict() -> Dict[str, Any]:
    """public.orders: an always-generated id plus one nullable text column."""
    return {
        "dbmsName": "PostgreSQL",
        "dbmsVersion": "15",
        "caseSensitivity": "INSENSITIVE_STORED_LOWER",
        "relationMetadatas": [
            {
                "relationId": {"schema": "public", "name": "orders"},
                "relationType": "Table",
                "fields": [
                    {
                        "name": "id",
                        "type": "bigint",
                        "identityGeneration": "ALWAYS",
                        "nullable": False,
                    },
                    {"name": "customer_name", "type": "varchar", "nullable": True},
                ],
            }
        ],
        "foreignKeys": [],
    }


@pytest.fixture()
def orders_metadata(orders_metadata_dict: Dict[str, Any]) -> SchemaMetadata:
    return SchemaMetadata.model_validate(orders_metadata_dict)


@pytest.fixture()
def mood_metadata_dict() -> Dict[str, Any]:
    """A schema-less enum ``mood`` and nothing else."""
    return {
        "dbmsName": "PostgreSQL",
        "dbmsVersion": "15",
        "caseSensitivity": "INSENSITIVE_STORED_LOWER",
        "relationMetadatas": [],
        "foreignKeys": [],
        "enums": [{"name": "mood", "labels": ["happy", "a,b"]}],
    }


@pytest.fixture()
def plain_table_metadata_dict() -> Dict[str, Any]:
    """A schema-less table without identity columns."""
    return {
        "dbmsName": "PostgreSQL",
        "dbmsVersion": "15",
        "caseSensitivity": "INSENSITIVE_STORED_LOWER",
        "relationMetadatas": [
            {
                "relationId": {"name": "note"},
                "relationType": "table",
                "fields": [
                    {"name": "note_id", "type": "int4", "nullable": False, "precision": 9},
                    {"name": "body", "type": "text"},
                ],
            }
        ],
        "foreignKeys": [],
    }


# ---------------------------------------------------------------------------
# Config & helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> GenerationConfig:
    return GenerationConfig(package_name="acme.db")


@pytest.fixture()
def java_config() -> GenerationConfig:
    return GenerationConfig(package_name="com.acme.db", target="java")


@pytest.fixture()
def names(config: GenerationConfig) -> NameResolver:
    return NameResolver(config)


@pytest.fixture()
def no_customizations() -> FieldCustomizations:
    return FieldCustomizations.empty()


# ---------------------------------------------------------------------------
# Files on disk
# ---------------------------------------------------------------------------


@pytest.fixture()
def example_metadata_path(
    example_metadata_dict: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    path = tmp_path / "dbmd.json"
    path.write_text(json.dumps(example_metadata_dict), encoding="utf-8")
    return path


@pytest.fixture()
def orders_metadata_path(
    orders_metadata_dict: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    path = tmp_path / "orders.json"
    path.write_text(json.dumps(orders_metadata_dict), encoding="utf-8")
    return path


@pytest.fixture()
def config_yaml_path(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "tabletypes.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(
            {"package_name": "acme.db", "parameter_style": "CAMEL_CASE"},
            fh,
            default_flow_style=False,
        )
    return path


@pytest.fixture()
def customization_yaml_path(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "fields.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(
            {
                "public.orders.total": {"propertyType": "Money"},
                "public.order_item.attributes": {"includeInType": False},
            },
            fh,
            default_flow_style=False,
        )
    return path
