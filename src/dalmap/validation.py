"""Validation pass: cross-check target annotations against the batch."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import Backend, EngineSettings
from .exceptions import AnnotationError, SchemaValidationError, StructuralError
from .ir.plan import Diagnostic, DiagnosticCode
from .mapping.merge import merge_fields, skipped_field_names
from .schema.index import MessageIndex
from .schema.models import SchemaMessage

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    errors: list[StructuralError | AnnotationError] = field(default_factory=list)
    warnings: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise SchemaValidationError(self.errors)


class ValidationPass:
    """
    Checks every storage entity of a batch and collects *all* violations:

    * standalone tables (no source) only get serializer hints
    * a declared source must resolve to a known message (StructuralError)
    * every skip directive must name a field of that source (AnnotationError)

    Nothing is raised until the whole batch has been inspected.
    """

    def __init__(self, index: MessageIndex, settings: EngineSettings | None = None):
        self._index = index
        self._settings = settings or EngineSettings()
        self._logger = logger.getChild(self.__class__.__name__)

    def run(self) -> ValidationReport:
        report = ValidationReport()
        for entity in self._index.entities():
            self._check_message(entity, report)

        if report.errors:
            self._logger.error(
                "Validation found %d error(s) in %d message(s)",
                len(report.errors),
                len({e.target for e in report.errors}),
            )
        else:
            self._logger.debug("Validation passed for %d message(s)", len(self._index))
        return report

    def validate(self) -> ValidationReport:
        """Run and raise SchemaValidationError if anything is wrong."""
        report = self.run()
        report.raise_for_errors()
        return report

    # ------------------------------------------------------------------ #
    # Checks
    # ------------------------------------------------------------------ #

    def _check_message(self, target: SchemaMessage, report: ValidationReport) -> None:
        if not target.source:
            # standalone table: nothing to resolve, struct only
            self._check_serializers(None, target, report)
            return
        source = self._index.source_of(target)
        if source is None:
            report.errors.append(
                StructuralError(
                    f"source message '{target.source}' not found for target "
                    f"'{target.full_name}'",
                    target=target.full_name,
                    source_name=target.source or "",
                )
            )
            return

        for name in skipped_field_names(target):
            if source.field(name) is None:
                report.errors.append(
                    AnnotationError(
                        f"field '{name}' in target '{target.full_name}' has "
                        f"skip_field=true but does not exist in source "
                        f"'{source.full_name}'",
                        target=target.full_name,
                        field_name=name,
                        source_name=source.full_name,
                    )
                )

        self._check_serializers(source, target, report)

    def _check_serializers(
        self,
        source: SchemaMessage | None,
        target: SchemaMessage,
        report: ValidationReport,
    ) -> None:
        if self._settings.backend != Backend.GORM or not self._settings.serializer_hints:
            return
        # merging is safe here only when no skip directive is broken
        if any(e.target == target.full_name for e in report.errors):
            return
        for merged in merge_fields(source, target):
            f = merged.field
            if not f.is_collection:
                continue
            tags = f.annotations.storage_tags
            if any(t == "embedded" or t.startswith("embedded:") for t in tags):
                continue
            if any(t.startswith("serializer:") for t in tags):
                continue
            shape = "map" if f.is_map else f"repeated {'message' if f.is_message else 'primitive'}"
            report.warnings.append(
                Diagnostic(
                    code=DiagnosticCode.SERIALIZER_HINT,
                    message_name=target.full_name,
                    field_name=f.name,
                    detail=(
                        f"{shape} field has no serializer tag; add "
                        "'serializer:json' for cross-database compatibility"
                    ),
                )
            )
