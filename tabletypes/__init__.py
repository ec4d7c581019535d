# File: tabletypes/__init__.py
"""
TableTypes — Typed Table Definitions from Database Metadata
=============================================================

Turns a database metadata document (tables, columns, enum types, foreign
keys) into typed record definitions and ready-made insert/select SQL, one
source unit per schema, for Python or Java.

Architecture overview::

    ┌──────────────┐     ┌────────────────────┐     ┌────────────────┐
    │  CLI / Entry │────▶│ TableTypesGenerator │────▶│ SourceRenderer │
    │   (cli.py)   │     │   (generator.py)    │     │ (templates.py) │
    └──────────────┘     └─────────┬──────────┘     └────────────────┘
                                   │
               ┌───────────────────┼───────────────────┐
               ▼                   ▼                   ▼
        ┌────────────┐    ┌──────────────────┐   ┌────────────┐
        │ validators │    │ DefinitionEmitter│   │ exporters  │
        └────────────┘    │   (emitter.py)   │   └────────────┘
                          └────────┬─────────┘
              ┌──────────┬─────────┼──────────┬─────────┐
              ▼          ▼         ▼          ▼         ▼
           naming   type_mapper  policy      sql      models

Usage::

    from tabletypes import TableTypesGenerator, load_config, load_metadata_file
    report = TableTypesGenerator().generate_from_files(
        Path("dbmd.json"), Path("./out"), config_overrides={"package_name": "acme.db"}
    )

    # From the command line
    python -m tabletypes dbmd.json ./out --package acme.db -v
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from tabletypes.errors import (
    MalformedCustomizationError,
    MetadataLoadError,
    MissingRequiredConfigError,
    TableTypesError,
    UnsupportedTypeError,
)
from tabletypes.models import (
    CaseSensitivity,
    ColumnField,
    DefinitionKind,
    EnumType,
    FieldCustomization,
    FieldNameStyle,
    GeneratedTypeDefinition,
    GenerationConfig,
    IdentityGeneration,
    NamingStyle,
    ParameterStyle,
    RelationId,
    RelationMetadata,
    SchemaMetadata,
    SchemaUnit,
    TargetLanguage,
    UsageContext,
)
from tabletypes.naming import NameResolver, resolve_field_name, resolve_name
from tabletypes.type_mapper import BaseType, TypeMapper
from tabletypes.policy import FieldCustomizations, FieldPath, FieldPolicy
from tabletypes.sql import SqlTemplates
from tabletypes.emitter import DefinitionEmitter
from tabletypes.validators import ValidationResult, validate_full
from tabletypes.templates import JavaRenderer, PythonRenderer, renderer_for
from tabletypes.exporters import ExportManifest, ExportResult, SourceExporter
from tabletypes.generator import (
    GenerationReport,
    TableTypesGenerator,
    load_config,
    load_customizations,
    load_metadata,
    load_metadata_file,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestrator
    "TableTypesGenerator",
    "GenerationReport",
    "load_config",
    "load_customizations",
    "load_metadata",
    "load_metadata_file",
    # Errors
    "TableTypesError",
    "MetadataLoadError",
    "UnsupportedTypeError",
    "MissingRequiredConfigError",
    "MalformedCustomizationError",
    # Models
    "CaseSensitivity",
    "ColumnField",
    "DefinitionKind",
    "EnumType",
    "FieldCustomization",
    "FieldNameStyle",
    "GeneratedTypeDefinition",
    "GenerationConfig",
    "IdentityGeneration",
    "NamingStyle",
    "ParameterStyle",
    "RelationId",
    "RelationMetadata",
    "SchemaMetadata",
    "SchemaUnit",
    "TargetLanguage",
    "UsageContext",
    # Core
    "NameResolver",
    "resolve_name",
    "resolve_field_name",
    "BaseType",
    "TypeMapper",
    "FieldCustomizations",
    "FieldPath",
    "FieldPolicy",
    "SqlTemplates",
    "DefinitionEmitter",
    # Validation
    "validate_full",
    "ValidationResult",
    # Rendering & export
    "PythonRenderer",
    "JavaRenderer",
    "renderer_for",
    "SourceExporter",
    "ExportManifest",
    "ExportResult",
]
