# File: modgen/exporters.py
"""
modgen - Module Exporter (File-System Manager)
===============================================

Responsible for:
    1. Refusing to touch a module folder that already exists.
    2. Writing each rendered artifact atomically (write-to-temp then rename).
    3. Writing the shared upload helper once, when uploads are enabled.
    4. Recording a ``FileRecord`` (size, lines, checksum) per written file.

A failure on one file is logged and recorded; the remaining artifacts are
still attempted.  Each individual file is atomic, so a failed batch never
leaves a half-written file behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from modgen.models import GeneratorConfig, ModuleNames
from modgen.templates import TemplateGenerator
from modgen.utils import Timer, count_lines, ensure_directory, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.exporters")

FILE_HELPER_NAME: str = "fileHelper.ts"


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    kind: str
    path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(slots=True)
class ExportResult:
    """What ``ModuleExporter.export()`` did for one module."""

    module_dir: str = ""
    created: bool = False
    skipped_existing: bool = False
    files: List[FileRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)

    @property
    def written_paths(self) -> List[str]:
        return [f.path for f in self.files]


# ---------------------------------------------------------------------------
# ModuleExporter
# ---------------------------------------------------------------------------


class ModuleExporter:
    """
    Writes the rendered artifacts of one module under ``modules_dir``.

    Usage::

        exporter = ModuleExporter(config)
        result = exporter.export(names, rendered, has_file_upload=False)

    Not thread-safe; use one exporter per invocation.
    """

    def __init__(self, config: GeneratorConfig, *, atomic_writes: bool = True) -> None:
        self._config: GeneratorConfig = config
        self._atomic_writes: bool = atomic_writes

    def module_dir(self, names: ModuleNames) -> Path:
        return self._config.modules_path / names.folder_name

    def export(
        self,
        names: ModuleNames,
        rendered: Dict[str, str],
        has_file_upload: bool = False,
    ) -> ExportResult:
        """
        Export every rendered artifact.

        Args:
            names: Derived module names.
            rendered: Mapping of artifact kind → file content, in write order.
            has_file_upload: Also write the shared upload helper if missing.

        Returns:
            ExportResult; ``skipped_existing`` is set and nothing is written
            when the module folder is already there.
        """
        target: Path = self.module_dir(names)
        result = ExportResult(module_dir=str(target))

        if target.exists():
            message: str = f"Module {names.folder_name} already exists at {target}"
            logger.warning(message)
            result.skipped_existing = True
            result.warnings.append(message)
            return result

        with Timer("export") as timer:
            try:
                ensure_directory(target)
                result.created = True
            except OSError as exc:
                message = f"Failed to create module directory {target}: {exc}"
                logger.error(message)
                result.errors.append(message)
                return result

            for kind, content in rendered.items():
                path: Path = target / names.artifact_filename(kind)
                try:
                    result.files.append(self._write_single_file(kind, path, content))
                    logger.info("Created %s", path.name)
                except OSError as exc:
                    message = f"Failed to write {path.name}: {type(exc).__name__}: {exc}"
                    logger.error(message)
                    result.errors.append(message)

            if has_file_upload:
                self._ensure_file_helper(result)

        result.elapsed_seconds = timer.elapsed

        if result.success:
            logger.info(
                "Exported %d file(s), %d bytes, in %.3fs.",
                len(result.files),
                result.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error(
                "Export of %s completed with %d error(s).",
                names.folder_name,
                len(result.errors),
            )
        return result

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _write_single_file(self, kind: str, path: Path, content: str) -> FileRecord:
        size: int = write_file(path, content, atomic=self._atomic_writes)
        return FileRecord(
            kind=kind,
            path=str(path),
            size_bytes=size,
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )

    def _ensure_file_helper(self, result: ExportResult) -> None:
        """Write ``<helpers_dir>/fileHelper.ts``; never overwrite an existing one."""
        helper: Path = self._config.helpers_path / FILE_HELPER_NAME
        if helper.exists():
            logger.debug("Upload helper already present at %s", helper)
            return
        try:
            result.files.append(
                self._write_single_file(
                    "file_helper", helper, TemplateGenerator.generate_file_helper()
                )
            )
            logger.info("Created %s", helper)
        except OSError as exc:
            message: str = f"Failed to write {helper}: {exc}"
            logger.error(message)
            result.errors.append(message)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FILE_HELPER_NAME",
    "FileRecord",
    "ExportResult",
    "ModuleExporter",
]

logger.debug("modgen.exporters loaded.")
