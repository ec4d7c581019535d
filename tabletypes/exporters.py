# File: tabletypes/exporters.py
"""
TableTypes - Source Exporter
==============================
Writes rendered source files under the output directory.

    1. Every file is written atomically (temporary file, then rename).
    2. A failed write is recorded and the remaining files are still written;
       files already on disk are never left half-written.
    3. An optional ``manifest.json`` lists each file with its size, line
       count and SHA-256 checksum.
    4. In dry-run mode nothing touches the disk, but the manifest data is
       still computed so callers can report what *would* be written.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from tabletypes.utils import Timer, count_lines, ensure_directory, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("tabletypes.exporters")

MANIFEST_FILE_NAME: str = "manifest.json"


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """All exported files of one run, serialisable to JSON."""

    package_name: str = ""
    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package_name": self.package_name,
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Outcome of ``SourceExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    dry_run: bool
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# SourceExporter
# ---------------------------------------------------------------------------


class SourceExporter:
    """
    Writes a ``relative path → content`` mapping under *output_dir*.

    Usage::

        exporter = SourceExporter(Path("./out"), package_name="acme.db")
        result = exporter.export(files)

    Not thread-safe; use one exporter per output directory.
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        package_name: str = "",
        atomic_writes: bool = True,
        write_manifest: bool = False,
        dry_run: bool = False,
    ) -> None:
        self._output_dir: Path = Path(output_dir).resolve()
        self._package_name: str = package_name
        self._atomic_writes: bool = atomic_writes
        self._write_manifest: bool = write_manifest
        self._dry_run: bool = dry_run

        self._errors: List[str] = []
        self._file_records: List[FileRecord] = []

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, files: Dict[str, str]) -> ExportResult:
        """
        Write every file in *files* (relative path → content).

        Returns:
            ExportResult with the manifest and any per-file errors.
        """
        self._errors = []
        self._file_records = []

        with Timer("export") as timer:
            if not self._dry_run:
                try:
                    ensure_directory(self._output_dir)
                except OSError as exc:
                    self._errors.append(f"Cannot create {self._output_dir}: {exc}")
                    logger.error("Cannot create output directory %s: %s", self._output_dir, exc)

            if not self._errors:
                for rel_path, content in files.items():
                    self._export_one(rel_path, content)

            manifest: ExportManifest = self._build_manifest()
            if self._write_manifest and not self._dry_run and not self._errors:
                self._export_manifest(manifest)

        success: bool = not self._errors
        if self._dry_run:
            logger.info("Dry run: %d file(s) would be written.", manifest.total_files)
        elif success:
            logger.info(
                "Export completed: %d files, %d bytes, %.3fs.",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error("Export finished with %d error(s).", len(self._errors))

        return ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            dry_run=self._dry_run,
            elapsed_seconds=timer.elapsed,
        )

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _export_one(self, rel_path: str, content: str) -> None:
        full_path: Path = self._output_dir / rel_path
        if not self._dry_run:
            try:
                write_file(full_path, content, atomic=self._atomic_writes)
            except OSError as exc:
                msg: str = f"Failed to write {rel_path}: {exc}"
                self._errors.append(msg)
                logger.error(msg)
                return

        self._file_records.append(
            FileRecord(
                relative_path=rel_path,
                absolute_path=str(full_path),
                size_bytes=len(content.encode("utf-8")),
                line_count=count_lines(content),
                sha256=sha256_hex(content),
            )
        )

    def _build_manifest(self) -> ExportManifest:
        from tabletypes import __version__

        return ExportManifest(
            package_name=self._package_name,
            generator_version=__version__,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            total_lines=sum(r.line_count for r in self._file_records),
            files=list(self._file_records),
        )

    def _export_manifest(self, manifest: ExportManifest) -> None:
        path: Path = self._output_dir / MANIFEST_FILE_NAME
        try:
            write_file(path, manifest.to_json() + "\n", atomic=self._atomic_writes)
            logger.debug("Wrote manifest to %s.", path)
        except OSError as exc:
            msg: str = f"Could not write manifest: {exc}"
            self._errors.append(msg)
            logger.error(msg)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MANIFEST_FILE_NAME",
    "FileRecord",
    "ExportManifest",
    "ExportResult",
    "SourceExporter",
]

logger.debug("tabletypes.exporters loaded — %d public symbols.", len(__all__))
