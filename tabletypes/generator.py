# File: tabletypes/generator.py
"""
TableTypes - Generation Pipeline (Orchestrator)
=================================================
Connects every phase together:

    Load → Parse → Validate → Emit → Render → Export

Workflow::

    1. Load the metadata document, the optional customization document and
       the optional config file (JSON or YAML).
    2. Decode them into ``SchemaMetadata``, ``FieldCustomizations`` and
       ``GenerationConfig``.  Problems here raise immediately: nothing is
       generated from unreadable input or an incomplete configuration.
    3. Run the validation pipeline (validators.py).
    4. Emit one ``SchemaUnit`` per schema (emitter.py).
    5. Render the units as source files (templates.py).
    6. Write them (exporters.py).
    7. Return a ``GenerationReport`` with metrics and status.

Error handling strategy:
    - Input and configuration errors are raised to the caller.
    - Validation problems are collected in the report.  In strict mode any
      validation error stops the run before emission.
    - A schema whose emission fails is abandoned as a whole.  In strict
      mode the run stops there; otherwise the other schemas continue.
    - Export errors are recorded per file.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from tabletypes.emitter import DefinitionEmitter
from tabletypes.errors import (
    MetadataLoadError,
    MissingRequiredConfigError,
    TableTypesError,
)
from tabletypes.exporters import ExportManifest, ExportResult, SourceExporter
from tabletypes.models import GenerationConfig, SchemaMetadata, SchemaUnit
from tabletypes.policy import FieldCustomizations
from tabletypes.templates import renderer_for
from tabletypes.utils import Timer, count_lines, read_file
from tabletypes.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``TableTypesGenerator.generate()``.

    Contains timing information, counts, validation results and every
    error encountered.
    """

    success: bool = False
    strict: bool = True
    package_name: str = ""
    target: str = ""
    output_directory: str = ""

    # Metrics
    total_units: int = 0
    total_definitions: int = 0
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    abandoned_schemas: List[str] = field(default_factory=list)
    files_written: List[str] = field(default_factory=list)

    units: List[SchemaUnit] = field(default_factory=list)
    manifest: Optional[ExportManifest] = None

    def summary(self) -> str:
        """Human-readable summary."""
        lines: List[str] = []
        status: str = "SUCCESS" if self.success else "FAILED"
        lines.append(f"{'='*60}")
        lines.append("  TableTypes — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Package:          {self.package_name}")
        lines.append(f"  Target:           {self.target}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Schema units:     {self.total_units}")
        lines.append(f"  Definitions:      {self.total_definitions}")
        lines.append(f"  Files:            {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<24s} "
                    f"{step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        sections = (
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "!"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Export Errors", self.export_errors, "✗"),
            ("Abandoned Schemas", self.abandoned_schemas, "⊘"),
        )
        for title, items, icon in sections:
            if items:
                lines.append(f"{'─'*60}")
                lines.append(f"  {title} ({len(items)}):")
                for item in items:
                    lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Document loaders
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Any:
    try:
        return json.loads(read_file(path))
    except json.JSONDecodeError as exc:
        raise MetadataLoadError(f"Invalid JSON in {path}: {exc}") from exc


def _load_yaml_file(path: Path) -> Any:
    try:
        return yaml.safe_load(read_file(path))
    except yaml.YAMLError as exc:
        raise MetadataLoadError(f"Invalid YAML in {path}: {exc}") from exc


def load_document(path: Path) -> Any:
    """
    Load a JSON or YAML document, dispatching on the file extension.

    Unknown extensions are tried as JSON, then YAML.

    Raises:
        MetadataLoadError: The file is missing, unreadable or unparseable.
    """
    path = Path(path)
    if not path.is_file():
        raise MetadataLoadError(f"File not found: {path}")

    suffix: str = path.suffix.lower()
    try:
        if suffix in (".yaml", ".yml"):
            return _load_yaml_file(path)
        if suffix == ".json":
            return _load_json_file(path)
        logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
        try:
            return _load_json_file(path)
        except MetadataLoadError:
            return _load_yaml_file(path)
    except OSError as exc:
        raise MetadataLoadError(f"Cannot read {path}: {exc}") from exc


def load_metadata(raw: Any) -> SchemaMetadata:
    """
    Decode a metadata document.

    Raises:
        MetadataLoadError: The document is not an object or fails validation.
    """
    if not isinstance(raw, Mapping):
        raise MetadataLoadError(
            f"Expected a metadata object at top level, got {type(raw).__name__}."
        )
    try:
        metadata: SchemaMetadata = SchemaMetadata.model_validate(dict(raw))
    except PydanticValidationError as exc:
        raise MetadataLoadError(f"Metadata document is invalid: {exc}") from exc
    logger.info("Decoded metadata: %r", metadata)
    return metadata


def load_metadata_file(path: Path) -> SchemaMetadata:
    return load_metadata(load_document(path))


def load_customizations(
    raw: Any, metadata: Optional[SchemaMetadata] = None
) -> FieldCustomizations:
    """
    Decode a customization document, folding key case the way *metadata*'s
    database does.

    Raises:
        MalformedCustomizationError: An entry is invalid or conflicts with another.
    """
    if metadata is None:
        return FieldCustomizations.from_mapping(raw)
    return FieldCustomizations.from_mapping(raw, metadata.case_sensitivity)


def load_config(
    raw: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GenerationConfig:
    """
    Build a ``GenerationConfig`` from a config document plus overrides.

    Precedence, lowest first: model defaults, *raw*, *overrides*.  ``None``
    values in *overrides* mean "not given" and are skipped.

    Raises:
        MissingRequiredConfigError: Required keys are absent or null.
        ValueError: Any other invalid value.
    """
    if raw is not None and not isinstance(raw, Mapping):
        raise ValueError(f"Expected a config mapping, got {type(raw).__name__}.")

    merged: Dict[str, Any] = dict(raw or {})
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value

    required: List[str] = [
        name for name, info in GenerationConfig.model_fields.items() if info.is_required()
    ]
    missing: List[str] = [key for key in required if merged.get(key) is None]
    if missing:
        raise MissingRequiredConfigError(missing)

    try:
        config: GenerationConfig = GenerationConfig.model_validate(merged)
    except PydanticValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc
    logger.debug("Loaded config: %s", config.model_dump())
    return config


# ---------------------------------------------------------------------------
# TableTypesGenerator: pipeline orchestrator
# ---------------------------------------------------------------------------


class TableTypesGenerator:
    """
    Pipeline orchestrator.

    Usage::

        generator = TableTypesGenerator()

        report = generator.generate_from_files(
            metadata_path=Path("dbmd.json"),
            output_dir=Path("./out"),
            config_overrides={"package_name": "acme.db"},
        )
        print(report.summary())

    Reusable: create once, call ``generate()`` many times.
    """

    def __init__(
        self,
        *,
        strict: bool = True,
        validate_only: bool = False,
        dry_run: bool = False,
        write_manifest: bool = False,
    ) -> None:
        """
        Args:
            strict: Stop on validation errors and on the first failing schema.
            validate_only: Stop after validation.
            dry_run: Render but do not write files.
            write_manifest: Write ``manifest.json`` next to the sources.
        """
        self._strict: bool = strict
        self._validate_only: bool = validate_only
        self._dry_run: bool = dry_run
        self._write_manifest: bool = write_manifest

        logger.debug(
            "TableTypesGenerator initialised: strict=%s, validate_only=%s, "
            "dry_run=%s, manifest=%s.",
            strict,
            validate_only,
            dry_run,
            write_manifest,
        )

    # -----------------------------------------------------------------
    # Public: generate from files
    # -----------------------------------------------------------------

    def generate_from_files(
        self,
        metadata_path: Path,
        output_dir: Path,
        customization_path: Optional[Path] = None,
        config_path: Optional[Path] = None,
        config_overrides: Optional[Mapping[str, Any]] = None,
    ) -> GenerationReport:
        """
        Full pipeline from files on disk.

        Raises:
            MetadataLoadError, MalformedCustomizationError,
            MissingRequiredConfigError, ValueError: Unusable input.
        """
        with Timer("load_inputs") as t_load:
            raw_config: Optional[Mapping[str, Any]] = None
            if config_path is not None:
                raw_config = load_document(Path(config_path))
                if raw_config is None:
                    raw_config = {}
            config: GenerationConfig = load_config(raw_config, config_overrides)

            metadata: SchemaMetadata = load_metadata_file(Path(metadata_path))

            customizations: FieldCustomizations = FieldCustomizations.empty()
            if customization_path is not None:
                customizations = load_customizations(
                    load_document(Path(customization_path)), metadata
                )

        report: GenerationReport = self._new_report(config, output_dir)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Load Inputs",
            success=True,
            elapsed_seconds=t_load.elapsed,
            detail=(
                f"{len(metadata.relation_metadatas)} relations, "
                f"{len(metadata.enums)} enums, {len(customizations)} customizations"
            ),
        ))
        return self._run_pipeline(metadata, customizations, config, Path(output_dir), report)

    # -----------------------------------------------------------------
    # Public: generate from in-memory objects
    # -----------------------------------------------------------------

    def generate(
        self,
        metadata: SchemaMetadata,
        customizations: Optional[FieldCustomizations],
        config: GenerationConfig,
        output_dir: Path,
    ) -> GenerationReport:
        """Full pipeline from already-decoded inputs."""
        report: GenerationReport = self._new_report(config, output_dir)
        custom: FieldCustomizations = (
            customizations if customizations is not None else FieldCustomizations.empty()
        )
        return self._run_pipeline(metadata, custom, config, Path(output_dir), report)

    # -----------------------------------------------------------------
    # Internal: master pipeline
    # -----------------------------------------------------------------

    def _new_report(self, config: GenerationConfig, output_dir: Path) -> GenerationReport:
        return GenerationReport(
            strict=self._strict,
            package_name=config.package_name,
            target=config.target.value,
            output_directory=str(Path(output_dir).resolve()),
        )

    def _run_pipeline(
        self,
        metadata: SchemaMetadata,
        customizations: FieldCustomizations,
        config: GenerationConfig,
        output_dir: Path,
        report: GenerationReport,
    ) -> GenerationReport:
        pipeline_start: float = time.perf_counter()

        validation_ok: bool = self._step_validate(metadata, customizations, config, report)
        if self._validate_only or (not validation_ok and self._strict):
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        units: List[SchemaUnit] = self._step_emit(metadata, customizations, config, report)
        if report.generation_errors and self._strict:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        files: Dict[str, str] = self._step_render(units, config, report)
        self._step_export(files, config, output_dir, report)

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    def _step_validate(
        self,
        metadata: SchemaMetadata,
        customizations: FieldCustomizations,
        config: GenerationConfig,
        report: GenerationReport,
    ) -> bool:
        with Timer("validation") as t:
            result: ValidationResult = validate_full(metadata, customizations, config)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{result.error_count} error(s)"
        elif result.has_warnings:
            detail = f"{result.warning_count} warning(s)"
        else:
            detail = "all checks passed"

        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate",
            success=result.is_valid,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

        for err in result.errors:
            logger.error("  ✗ %s", err)
        for warn in result.warnings:
            logger.warning("  ! %s", warn)
        return result.is_valid

    def _step_emit(
        self,
        metadata: SchemaMetadata,
        customizations: FieldCustomizations,
        config: GenerationConfig,
        report: GenerationReport,
    ) -> List[SchemaUnit]:
        """Emit schema by schema; a failing schema produces nothing."""
        units: List[SchemaUnit] = []
        emitter: DefinitionEmitter = DefinitionEmitter(config, customizations)

        with Timer("emission") as t:
            for schema_key in emitter.schema_keys(metadata):
                try:
                    unit: Optional[SchemaUnit] = emitter.emit_schema(metadata, schema_key)
                except TableTypesError as exc:
                    report.generation_errors.append(f"Schema '{schema_key}': {exc}")
                    report.abandoned_schemas.append(schema_key)
                    logger.error("Abandoning schema '%s': %s", schema_key, exc)
                    if self._strict:
                        break
                    continue
                if unit is not None:
                    units.append(unit)

        report.units = units
        report.total_units = len(units)
        report.total_definitions = sum(len(u.definitions) for u in units)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Emit Definitions",
            success=not report.generation_errors,
            elapsed_seconds=t.elapsed,
            detail=f"{report.total_units} unit(s), {report.total_definitions} definition(s)",
        ))
        return units

    def _step_render(
        self,
        units: List[SchemaUnit],
        config: GenerationConfig,
        report: GenerationReport,
    ) -> Dict[str, str]:
        with Timer("render") as t:
            files: Dict[str, str] = renderer_for(config).render_all(units)

        total_lines: int = sum(count_lines(c) for c in files.values())
        report.step_metrics.append(GenerationStepMetric(
            step_name="Render Sources",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(files)} file(s), ~{total_lines:,} lines",
        ))
        return files

    def _step_export(
        self,
        files: Dict[str, str],
        config: GenerationConfig,
        output_dir: Path,
        report: GenerationReport,
    ) -> None:
        exporter: SourceExporter = SourceExporter(
            output_dir,
            package_name=config.package_name,
            write_manifest=self._write_manifest,
            dry_run=self._dry_run,
        )
        result: ExportResult = exporter.export(files)

        report.manifest = result.manifest
        report.total_files = result.manifest.total_files
        report.total_bytes = result.manifest.total_bytes
        report.total_lines = result.manifest.total_lines
        report.files_written = [] if result.dry_run else [
            f.relative_path for f in result.manifest.files
        ]
        report.export_errors.extend(result.errors)

        detail: str = f"{result.manifest.total_files} file(s), {result.manifest.total_bytes:,} bytes"
        report.step_metrics.append(GenerationStepMetric(
            step_name="Export (dry run)" if result.dry_run else "Export",
            success=result.success,
            elapsed_seconds=result.elapsed_seconds,
            detail=detail,
        ))

    def _finalise_report(self, report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        blocked_by_validation: bool = bool(report.validation_errors) and self._strict
        report.success = not (
            blocked_by_validation or report.generation_errors or report.export_errors
        )
        logger.info(
            "Generation %s in %.3fs.",
            "succeeded" if report.success else "failed",
            total_elapsed,
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GenerationStepMetric",
    "GenerationReport",
    "load_document",
    "load_metadata",
    "load_metadata_file",
    "load_customizations",
    "load_config",
    "TableTypesGenerator",
]

logger.debug("tabletypes.generator loaded — %d public symbols.", len(__all__))
