# File: modgen/generator.py
"""
modgen - Module Generation Pipeline (Orchestrator)
===================================================

Connects every phase for one module:

    Tokens → Parse → Validate → Render → Export → Router → Documentation

Workflow::

    1. Parse the field tokens (parser.py).
    2. Validate the module name, fields and skip list (validators.py).
    3. Stop early when no field was parsed (successful no-op).
    4. Render each artifact (templates.py).
    5. Write the module folder (exporters.py); stop if it already exists.
    6. Register the routes in the router file (router.py).
    7. Regenerate Postman / Swagger documentation (docs.py).

Error handling strategy:
    - A bad module name is a validation error; strict mode also turns
      parser diagnostics into validation errors.
    - Export errors are per file; the rest of the module is still written.
    - Router and documentation failures are reported as warnings and never
      fail a generation whose files were written.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from modgen.docs import DocumentationReport, update_all_documentation
from modgen.exporters import ExportResult, ModuleExporter
from modgen.models import GeneratorConfig, ModuleNames
from modgen.parser import ParseResult, parse_field_definitions
from modgen.postman_api import PostmanApiClient
from modgen.router import RouterPatchResult, patch_router_file
from modgen.templates import TemplateGenerator
from modgen.utils import Timer, count_lines
from modgen.validators import (
    ValidationResult,
    validate_fields,
    validate_module_name,
    validate_skip_artifacts,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.generator")

NO_FIELDS_MESSAGE: str = "No fields were parsed. Check your command syntax."
EXAMPLE_USAGE: str = "Example: modgen generate User name:string email:string age:number"


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
    """Everything ``ModuleGenerator.generate()`` did for one module."""

    success: bool = False
    module_name: str = ""
    class_name: str = ""
    module_directory: str = ""

    # Outcome flags
    no_op: bool = False
    skipped_existing: bool = False
    router_changed: bool = False

    # Metrics
    total_fields: int = 0
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
    warnings: List[str] = field(default_factory=list)
    skipped_artifacts: List[str] = field(default_factory=list)
    files_written: List[str] = field(default_factory=list)
    documentation: Optional[DocumentationReport] = None

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        if self.success and self.no_op:
            status = "⚠ NOTHING TO DO"
        elif self.success and self.skipped_existing:
            status = "⚠ SKIPPED (module exists)"
        lines.append(f"{'='*60}")
        lines.append("  modgen - Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Module:           {self.class_name or self.module_name}")
        lines.append(f"  Directory:        {self.module_directory}")
        lines.append(f"  Fields:           {self.total_fields}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Router updated:   {'yes' if self.router_changed else 'no'}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections = (
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "⚠"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Export Errors", self.export_errors, "✗"),
            ("Warnings", self.warnings, "⚠"),
            ("Skipped Artifacts", self.skipped_artifacts, "⊘"),
        )
        for title, items, icon in sections:
            if not items:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# ModuleGenerator
# ---------------------------------------------------------------------------


class ModuleGenerator:
    """
    Pipeline orchestrator for one module.

    Usage::

        generator = ModuleGenerator(config)
        report = generator.generate("User", ["name:string", "email!:string"])
        print(report.summary())

    The generator is reusable; create once, call generate() many times.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        *,
        strict: bool = False,
        client: Optional[PostmanApiClient] = None,
    ) -> None:
        """
        Args:
            config: Paths and documentation settings.
            strict: Fail the run when the parser dropped any token.
            client: Postman API client to reuse for remote sync.
        """
        self._config: GeneratorConfig = config
        self._strict: bool = strict
        self._client: Optional[PostmanApiClient] = client
        logger.debug("ModuleGenerator initialised: %r, strict=%s.", config, strict)

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def generate(self, module_name: str, tokens: Sequence[str]) -> GenerationReport:
        """Full pipeline from raw CLI tokens."""
        with Timer("parse") as t_parse:
            parse_result: ParseResult = parse_field_definitions(tokens)

        report = self.generate_fields(module_name, parse_result)
        report.step_metrics.insert(0, GenerationStepMetric(
            step_name="Parse Fields",
            success=True,
            elapsed_seconds=t_parse.elapsed,
            detail=(
                f"{len(parse_result.fields)} field(s), "
                f"{len(parse_result.diagnostics.warnings)} dropped token(s)"
            ),
        ))
        report.total_elapsed_seconds += t_parse.elapsed
        return report

    def generate_fields(
        self, module_name: str, parse_result: ParseResult
    ) -> GenerationReport:
        """Pipeline from an already parsed field list."""
        report = GenerationReport(module_name=module_name)
        report.total_fields = len(parse_result.fields)
        report.skipped_artifacts = list(parse_result.skip_artifacts)
        start: float = time.perf_counter()

        if not self._step_validate(module_name, parse_result, report):
            return self._finalise_report(report, time.perf_counter() - start)

        names: ModuleNames = ModuleNames.from_name(module_name)
        report.class_name = names.class_name

        if not parse_result.fields:
            logger.warning(NO_FIELDS_MESSAGE)
            logger.warning(EXAMPLE_USAGE)
            report.no_op = True
            report.warnings.extend([NO_FIELDS_MESSAGE, EXAMPLE_USAGE])
            return self._finalise_report(report, time.perf_counter() - start)

        rendered: Dict[str, str] = self._step_render(names, parse_result, report)
        if report.generation_errors:
            return self._finalise_report(report, time.perf_counter() - start)

        export_result: ExportResult = self._step_export(
            names, rendered, parse_result.has_file_upload, report
        )
        if export_result.skipped_existing or not export_result.created:
            return self._finalise_report(report, time.perf_counter() - start)

        self._step_router(names, report)

        if self._config.update_postman or self._config.update_swagger:
            self._step_documentation(names, parse_result, report)

        logger.info("Module '%s' created successfully!", names.class_name)
        return self._finalise_report(report, time.perf_counter() - start)

    # -----------------------------------------------------------------
    # Pipeline step: Validation
    # -----------------------------------------------------------------

    def _step_validate(
        self,
        module_name: str,
        parse_result: ParseResult,
        report: GenerationReport,
    ) -> bool:
        with Timer("validation") as t:
            result = ValidationResult()
            result.merge(validate_module_name(module_name))
            result.merge(validate_fields(parse_result.fields))
            result.merge(validate_skip_artifacts(parse_result.skip_artifacts))

            diagnostics: ValidationResult = parse_result.diagnostics
            if self._strict:
                for item in diagnostics.warnings:
                    result.add_error(item.code, item.message, item.context)
            else:
                result.merge(diagnostics)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{len(result.errors)} error(s)"
        elif result.has_warnings:
            detail = f"{len(result.warnings)} warning(s)"
        else:
            detail = "all checks passed"

        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate Input",
            success=result.is_valid,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

        for warn in result.warnings:
            logger.warning("  ⚠ %s", warn)
        if result.has_errors:
            logger.error("Validation failed with %d error(s).", len(result.errors))
            for err in result.errors:
                logger.error("  ✗ %s", err)
            return False
        return True

    # -----------------------------------------------------------------
    # Pipeline step: Rendering
    # -----------------------------------------------------------------

    def _step_render(
        self,
        names: ModuleNames,
        parse_result: ParseResult,
        report: GenerationReport,
    ) -> Dict[str, str]:
        rendered: Dict[str, str] = {}
        with Timer("render") as t:
            try:
                templates = TemplateGenerator(
                    names,
                    parse_result.fields,
                    has_file_upload=parse_result.has_file_upload,
                )
                rendered = templates.generate_all(parse_result.skip_artifacts)
            except Exception as exc:
                error_msg: str = f"Fatal generation error: {type(exc).__name__}: {exc}"
                report.generation_errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        total_lines: int = sum(count_lines(c) for c in rendered.values())
        report.step_metrics.append(GenerationStepMetric(
            step_name="Render Artifacts",
            success=not report.generation_errors,
            elapsed_seconds=t.elapsed,
            detail=f"{len(rendered)} artifact(s), ~{total_lines:,} lines",
        ))
        return rendered

    # -----------------------------------------------------------------
    # Pipeline step: Export
    # -----------------------------------------------------------------

    def _step_export(
        self,
        names: ModuleNames,
        rendered: Dict[str, str],
        has_file_upload: bool,
        report: GenerationReport,
    ) -> ExportResult:
        with Timer("export") as t:
            result: ExportResult = ModuleExporter(self._config).export(
                names, rendered, has_file_upload
            )

        report.module_directory = result.module_dir
        report.skipped_existing = result.skipped_existing
        report.export_errors.extend(result.errors)
        report.warnings.extend(result.warnings)
        report.files_written = result.written_paths
        report.total_files = len(result.files)
        report.total_bytes = result.total_bytes
        report.total_lines = sum(f.line_count for f in result.files)

        detail: str = (
            "module already exists"
            if result.skipped_existing
            else f"{len(result.files)} file(s), {result.total_bytes:,} bytes"
        )
        report.step_metrics.append(GenerationStepMetric(
            step_name="Export to Filesystem",
            success=result.success,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))
        return result

    # -----------------------------------------------------------------
    # Pipeline step: Router
    # -----------------------------------------------------------------

    def _step_router(self, names: ModuleNames, report: GenerationReport) -> None:
        with Timer("router") as t:
            result: RouterPatchResult = patch_router_file(self._config, names)

        report.router_changed = result.changed
        report.warnings.extend(result.warnings)
        if result.error:
            report.warnings.append(result.error)

        if result.changed:
            detail: str = "import and route registered"
        elif result.error or result.warnings:
            detail = "not patched"
        else:
            detail = "already registered"
        report.step_metrics.append(GenerationStepMetric(
            step_name="Patch Router",
            success=result.error is None,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

    # -----------------------------------------------------------------
    # Pipeline step: Documentation
    # -----------------------------------------------------------------

    def _step_documentation(
        self,
        names: ModuleNames,
        parse_result: ParseResult,
        report: GenerationReport,
    ) -> None:
        with Timer("documentation") as t:
            docs: DocumentationReport = update_all_documentation(
                self._config, names, parse_result.fields, self._client
            )

        report.documentation = docs
        report.warnings.extend(docs.errors)

        parts: List[str] = []
        if docs.postman_path:
            parts.append("postman")
        if docs.remote_synced:
            parts.append("postman api")
        if docs.swagger_path:
            parts.append("swagger")
        report.step_metrics.append(GenerationStepMetric(
            step_name="Update Documentation",
            success=docs.success,
            elapsed_seconds=t.elapsed,
            detail=", ".join(parts) or "nothing updated",
        ))

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    @staticmethod
    def _finalise_report(
        report: GenerationReport, total_elapsed: float
    ) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not (
            report.validation_errors or report.generation_errors or report.export_errors
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "NO_FIELDS_MESSAGE",
    "EXAMPLE_USAGE",
    "GenerationStepMetric",
    "GenerationReport",
    "ModuleGenerator",
]

logger.debug("modgen.generator loaded.")
