"""
exceptions.py

Typed exception hierarchy used across the schema → plan pipeline.

Only structural problems are exceptions. A field pair that no conversion rule
can handle is a ConversionGap diagnostic (see ``dalmap.ir.plan.Diagnostic``)
and never raised.
"""

from __future__ import annotations

from typing import Any

# --------------------------------------------------------------------------- #
#                              Base hierarchy                                 #
# --------------------------------------------------------------------------- #


class DalMapError(Exception):
    """Root of all errors raised by this project."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        base_msg = self.message
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg = f"{base_msg} (Context: {context_str})"
        return base_msg


class SchemaLoadError(DalMapError):
    """
    Raised by the I/O layer when a schema document cannot be read or parsed.

    Examples
    --------
    * File does not exist / bad extension
    * YAML or JSON syntax error
    * Document does not describe a valid schema batch
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        context = {}
        if path:
            context["path"] = path
        super().__init__(message, "SCHEMA_LOAD_ERROR", context)


class ConfigurationError(DalMapError):
    """Raised when engine settings are invalid."""

    def __init__(self, message: str, setting: str | None = None) -> None:
        context = {}
        if setting:
            context["setting"] = setting
        super().__init__(message, "CONFIGURATION_ERROR", context)


class StructuralError(DalMapError):
    """A target message references a source message that does not exist."""

    def __init__(self, message: str, target: str, source_name: str) -> None:
        super().__init__(
            message,
            "STRUCTURAL_ERROR",
            {"target": target, "source": source_name},
        )
        self.target = target
        self.source_name = source_name

    def get_recovery_hint(self) -> str:
        return (
            f"Declare message '{self.source_name}' in the batch or fix the "
            f"source reference on '{self.target}'"
        )


class AnnotationError(DalMapError):
    """A skip directive names a field that the resolved source does not have."""

    def __init__(
        self,
        message: str,
        target: str,
        field_name: str,
        source_name: str | None = None,
    ) -> None:
        context = {"target": target, "field": field_name}
        if source_name:
            context["source"] = source_name
        super().__init__(message, "ANNOTATION_ERROR", context)
        self.target = target
        self.field_name = field_name
        self.source_name = source_name

    def get_recovery_hint(self) -> str:
        return (
            f"Remove skip from '{self.target}.{self.field_name}' or add the "
            "field to the source message"
        )


class SchemaValidationError(DalMapError):
    """
    Aggregate of every structural and annotation violation found in a batch.

    The validation pass never stops at the first problem; all of them are
    reported together through this single exception.
    """

    def __init__(self, errors: list[StructuralError | AnnotationError]) -> None:
        self.errors = list(errors)
        lines = "\n  - ".join(e.message for e in self.errors)
        super().__init__(
            f"Schema validation failed with {len(self.errors)} error(s):\n  - {lines}",
            "SCHEMA_VALIDATION_ERROR",
        )

    def get_recovery_hint(self) -> str:
        hints = [e.get_recovery_hint() for e in self.errors]
        return "; ".join(dict.fromkeys(hints))


class EvaluationError(DalMapError):
    """Raised when a plan cannot be applied to a record."""

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        function: str | None = None,
    ) -> None:
        context = {}
        if field_name:
            context["field"] = field_name
        if function:
            context["function"] = function
        super().__init__(message, "EVALUATION_ERROR", context)
