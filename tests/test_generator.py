"""
tests/test_generator.py
Integration tests for tabletypes.generator (pipeline orchestrator).

Tests cover:
- Document loading (JSON, YAML, missing and broken files)
- Metadata, customization and config decoding
- Full pipeline from files and from in-memory objects
- Strict vs non-strict handling of validation and emission failures
- validate-only, dry-run and manifest modes
- Report contents and summary text
"""

from __future__ import annotations

import json
import pathlib
from typing import Any, Dict

import pytest

from tabletypes.errors import (
    MalformedCustomizationError,
    MetadataLoadError,
    MissingRequiredConfigError,
)
from tabletypes.generator import (
    GenerationReport,
    TableTypesGenerator,
    load_config,
    load_customizations,
    load_document,
    load_metadata,
    load_metadata_file,
)
from tabletypes.models import (
    CaseSensitivity,
    GenerationConfig,
    ParameterStyle,
    SchemaMetadata,
    TargetLanguage,
)
from tabletypes.policy import FieldCustomizations


def _add_hstore(raw: Dict[str, Any]) -> Dict[str, Any]:
    raw["relationMetadatas"][0]["fields"].append({"name": "tags", "type": "hstore"})
    return raw


# ===========================================================================
# Loaders
# ===========================================================================


class TestLoadDocument:
    def test_json(self, example_metadata_path: pathlib.Path) -> None:
        data = load_document(example_metadata_path)
        assert data["dbmsName"] == "PostgreSQL"

    def test_yaml(self, config_yaml_path: pathlib.Path) -> None:
        assert load_document(config_yaml_path) == {
            "package_name": "acme.db",
            "parameter_style": "CAMEL_CASE",
        }

    def test_unknown_extension_falls_back_to_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "settings.conf"
        path.write_text("package_name: acme.db\n", encoding="utf-8")
        assert load_document(path) == {"package_name": "acme.db"}

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(MetadataLoadError, match="not found"):
            load_document(tmp_path / "nope.json")

    def test_broken_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{ not json", encoding="utf-8")
        with pytest.raises(MetadataLoadError, match="Invalid JSON"):
            load_document(path)

    def test_broken_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("a: [1, 2\n", encoding="utf-8")
        with pytest.raises(MetadataLoadError, match="Invalid YAML"):
            load_document(path)


class TestLoadMetadata:
    def test_from_file(self, example_metadata_path: pathlib.Path) -> None:
        metadata = load_metadata_file(example_metadata_path)
        assert isinstance(metadata, SchemaMetadata)
        assert len(metadata.relation_metadatas) == 4
        assert metadata.case_sensitivity is CaseSensitivity.INSENSITIVE_STORED_LOWER

    def test_top_level_must_be_object(self) -> None:
        with pytest.raises(MetadataLoadError):
            load_metadata([1, 2, 3])

    def test_invalid_structure(self) -> None:
        with pytest.raises(MetadataLoadError, match="invalid"):
            load_metadata({"relationMetadatas": [{"relationType": "Table"}]})


class TestLoadCustomizations:
    def test_folds_by_metadata_mode(self, orders_metadata_dict: Dict[str, Any]) -> None:
        orders_metadata_dict["caseSensitivity"] = "SENSITIVE"
        metadata = SchemaMetadata.model_validate(orders_metadata_dict)
        custom = load_customizations({"PUBLIC.ORDERS.ID": {"propertyType": "X"}}, metadata)
        assert len(custom) == 1
        assert custom.unmatched(metadata) == ["PUBLIC.ORDERS.ID"]

    def test_malformed(self) -> None:
        with pytest.raises(MalformedCustomizationError):
            load_customizations({"orders": {}})


class TestLoadConfig:
    def test_defaults(self) -> None:
        config = load_config({"package_name": "acme.db"})
        assert config.target is TargetLanguage.PYTHON
        assert config.insert_name_suffix == "_Ins"

    def test_overrides_win(self) -> None:
        config = load_config(
            {"package_name": "acme.db", "target": "python"},
            {"target": "java", "schema_name_prefix": None},
        )
        assert config.target is TargetLanguage.JAVA
        assert config.schema_name_prefix == ""

    def test_missing_package(self) -> None:
        with pytest.raises(MissingRequiredConfigError) as exc_info:
            load_config({"target": "java"})
        assert exc_info.value.keys == ["package_name"]

    def test_null_package(self) -> None:
        with pytest.raises(MissingRequiredConfigError):
            load_config({"package_name": None})

    def test_invalid_value(self) -> None:
        with pytest.raises(ValueError):
            load_config({"package_name": "acme.db", "parameter_style": "COLON"})

    def test_invalid_package_name(self) -> None:
        with pytest.raises(ValueError):
            load_config({"package_name": "acme-db"})

    def test_unknown_key(self) -> None:
        with pytest.raises(ValueError):
            load_config({"package_name": "acme.db", "colour": "blue"})


# ===========================================================================
# Pipeline
# ===========================================================================


class TestGenerateFromFiles:
    def test_writes_python_package(
        self, example_metadata_path: pathlib.Path, tmp_path: pathlib.Path
    ) -> None:
        out = tmp_path / "out"
        report = TableTypesGenerator().generate_from_files(
            example_metadata_path, out, config_overrides={"package_name": "acme.db"}
        )
        assert report.success, report.summary()
        assert report.files_written == [
            "acme/db/Public.py",
            "acme/db/Shop.py",
            "acme/db/__init__.py",
        ]
        assert (out / "acme" / "db" / "Public.py").is_file()
        assert report.total_units == 2
        assert report.total_definitions == 5
        assert report.total_files == 3
        assert report.total_bytes > 0
        assert report.validation_errors == []

    def test_config_and_customization_files(
        self,
        example_metadata_path: pathlib.Path,
        config_yaml_path: pathlib.Path,
        customization_yaml_path: pathlib.Path,
        tmp_path: pathlib.Path,
    ) -> None:
        out = tmp_path / "out"
        report = TableTypesGenerator().generate_from_files(
            example_metadata_path,
            out,
            customization_path=customization_yaml_path,
            config_path=config_yaml_path,
        )
        assert report.success, report.summary()
        source = (out / "acme" / "db" / "Public.py").read_text(encoding="utf-8")
        assert "    total: Money" in source
        assert "    attributes:" not in source
        assert ":customerName" in source

    def test_java_target(self, example_metadata_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        report = TableTypesGenerator().generate_from_files(
            example_metadata_path,
            tmp_path,
            config_overrides={"package_name": "com.acme.db", "target": "java"},
        )
        assert report.success
        assert report.files_written == ["com/acme/db/Public.java", "com/acme/db/Shop.java"]

    def test_missing_package_raises(self, example_metadata_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        with pytest.raises(MissingRequiredConfigError):
            TableTypesGenerator().generate_from_files(example_metadata_path, tmp_path)

    def test_missing_metadata_raises(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(MetadataLoadError):
            TableTypesGenerator().generate_from_files(
                tmp_path / "missing.json", tmp_path, config_overrides={"package_name": "p"}
            )

    def test_empty_config_file(self, example_metadata_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("", encoding="utf-8")
        report = TableTypesGenerator(dry_run=True).generate_from_files(
            example_metadata_path,
            tmp_path / "out",
            config_path=config_path,
            config_overrides={"package_name": "acme.db"},
        )
        assert report.success


class TestGenerateInMemory:
    def test_strict_stops_on_validation_error(
        self, orders_metadata_dict: Dict[str, Any], config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        metadata = SchemaMetadata.model_validate(_add_hstore(orders_metadata_dict))
        report = TableTypesGenerator().generate(metadata, None, config, tmp_path / "out")
        assert not report.success
        assert report.validation_errors
        assert report.units == []
        assert not (tmp_path / "out").exists()

    def test_non_strict_abandons_failing_schema_only(
        self, example_metadata_dict: Dict[str, Any], config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        metadata = SchemaMetadata.model_validate(_add_hstore(example_metadata_dict))
        out = tmp_path / "out"
        report = TableTypesGenerator(strict=False).generate(metadata, None, config, out)
        assert not report.success
        assert report.abandoned_schemas == ["public"]
        assert [u.name for u in report.units] == ["Shop"]
        assert report.files_written == ["acme/db/Shop.py", "acme/db/__init__.py"]
        assert not (out / "acme" / "db" / "Public.py").exists()
        assert "Public" not in (out / "acme" / "db" / "__init__.py").read_text(encoding="utf-8")

    def test_non_strict_passes_with_only_warnings(
        self, orders_metadata: SchemaMetadata, config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        custom = FieldCustomizations.from_mapping({"public.orders.nope": {"propertyType": "X"}})
        report = TableTypesGenerator(strict=False).generate(orders_metadata, custom, config, tmp_path)
        assert report.success
        assert len(report.validation_warnings) == 1

    def test_validate_only(
        self, example_metadata: SchemaMetadata, config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        out = tmp_path / "out"
        report = TableTypesGenerator(validate_only=True).generate(example_metadata, None, config, out)
        assert report.success
        assert report.units == []
        assert not out.exists()
        assert [s.step_name for s in report.step_metrics] == ["Validate"]

    def test_dry_run_writes_nothing(
        self, example_metadata: SchemaMetadata, config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        out = tmp_path / "out"
        report = TableTypesGenerator(dry_run=True).generate(example_metadata, None, config, out)
        assert report.success
        assert report.total_files == 3
        assert report.files_written == []
        assert not out.exists()

    def test_manifest(
        self, example_metadata: SchemaMetadata, config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        report = TableTypesGenerator(write_manifest=True).generate(
            example_metadata, None, config, tmp_path
        )
        manifest = json.loads((tmp_path / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["package_name"] == "acme.db"
        assert manifest["total_files"] == report.total_files == 3
        assert [f["relative_path"] for f in manifest["files"]] == report.files_written

    def test_rerun_is_byte_identical(
        self, example_metadata: SchemaMetadata, config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        first = TableTypesGenerator().generate(example_metadata, None, config, tmp_path / "a")
        second = TableTypesGenerator().generate(example_metadata, None, config, tmp_path / "b")
        assert [f.sha256 for f in first.manifest.files] == [f.sha256 for f in second.manifest.files]

    def test_export_error_reported(
        self, example_metadata: SchemaMetadata, config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        report = TableTypesGenerator().generate(example_metadata, None, config, blocker)
        assert not report.success
        assert report.export_errors
        assert report.generation_errors == []


class TestGenerationReport:
    def test_summary(
        self, example_metadata: SchemaMetadata, config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        report = TableTypesGenerator().generate(example_metadata, None, config, tmp_path)
        text = report.summary()
        assert "TableTypes — Generation Report" in text
        assert "SUCCESS" in text
        assert "acme.db" in text
        assert "Emit Definitions" in text

    def test_summary_lists_problems(self) -> None:
        report = GenerationReport(
            success=False,
            validation_errors=["[ERROR] UNSUPPORTED_TYPE: bad"],
            abandoned_schemas=["public"],
        )
        text = report.summary()
        assert "FAILED" in text
        assert "Validation Errors (1):" in text
        assert "Abandoned Schemas (1):" in text

    def test_parameter_style_reaches_sql(
        self, orders_metadata: SchemaMetadata, tmp_path: pathlib.Path
    ) -> None:
        config = GenerationConfig(package_name="p", parameter_style=ParameterStyle.DOLLAR_NUMBER)
        report = TableTypesGenerator(dry_run=True).generate(orders_metadata, None, config, tmp_path)
        insert = report.units[0].get_definition("Orders_Ins")
        assert insert.insert_sql == "insert into public.orders(customer_name) values($1) returning id"
