"""
Type & strategy resolver.

For every merged field that also exists in the source, decide per direction
how the value is converted. The rules form a strict priority chain that is
evaluated independently for ToTarget and FromTarget:

1. explicit custom converter declared on the field for this direction
2. repeated/map fields: collection strategy classifier
3. well-known type substitution
4. identical scalar (or enum) kind: plain assignment
5. both structured: generated converter, if the registry has the pair
6. both numeric: assignment with an explicit cast
7. anything else: conversion gap

A gap in either direction drops the field from the plan; the emitter never
sees a reference to a converter that will not be generated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..ir.plan import (
    ConversionPlan,
    ConversionType,
    ConverterCall,
    Diagnostic,
    DiagnosticCode,
    Direction,
    FieldMapping,
    InlineExpression,
    MergedField,
)
from ..schema.models import FieldKind, ScalarKind, SchemaField
from . import well_known
from .collections import classify_collection
from .context import (
    Gap,
    Outcome,
    Resolved,
    ResolutionContext,
    error_mode,
    input_expression,
)
from .imports import ImportSet
from .render import determine_render_strategy

logger = logging.getLogger(__name__)

# bits, signed, floating
_NUMERIC_SHAPE: dict[str, tuple[int, bool, bool]] = {
    "int32": (32, True, False),
    "int64": (64, True, False),
    "uint32": (32, False, False),
    "uint64": (64, False, False),
    "float32": (24, True, True),  # mantissa bits
    "float64": (53, True, True),
}


def is_narrowing(from_native: str, to_native: str) -> bool:
    """Whether casting ``from_native`` to ``to_native`` can lose information."""
    if from_native == to_native:
        return False
    f_bits, f_signed, f_float = _NUMERIC_SHAPE[from_native]
    t_bits, t_signed, t_float = _NUMERIC_SHAPE[to_native]

    if f_float:
        return not t_float or t_bits < f_bits
    if t_float:
        # integer magnitude must fit the mantissa
        return (f_bits - (1 if f_signed else 0)) > t_bits
    if f_signed and not t_signed:
        return True
    if not f_signed and t_signed:
        return t_bits <= f_bits
    return t_bits < f_bits


@dataclass
class FieldResolution:
    """Outcome of resolving one merged field."""

    mapping: FieldMapping | None
    diagnostics: list[Diagnostic] = field(default_factory=list)


class FieldResolver:
    """Resolves conversion plans for the fields of one target message."""

    def __init__(
        self,
        ctx: ResolutionContext,
        message_name: str,
        imports: ImportSet | None = None,
    ) -> None:
        self._ctx = ctx
        self._message_name = message_name
        self._imports = imports if imports is not None else ImportSet()
        self._logger = logger.getChild(self.__class__.__name__)

    @property
    def imports(self) -> ImportSet:
        return self._imports

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def resolve(self, merged: MergedField, source: SchemaField | None) -> FieldResolution:
        """
        Build the FieldMapping for a merged field.

        Args:
            merged: entry of the merged target field list
            source: same-named source field, None for target-only fields

        Returns:
            FieldResolution; ``mapping`` is None for gaps.
            Target-only fields yield a mapping without plans.
        """
        target = merged.field
        if source is None:
            self._logger.debug(
                "%s.%s has no source counterpart", self._message_name, merged.name
            )
            return FieldResolution(
                FieldMapping(
                    name=merged.name,
                    origin_number=merged.origin_number,
                    target_field=target,
                )
            )

        outcomes = {
            direction: self.resolve_direction(source, target, direction)
            for direction in Direction
        }

        gaps = {d: o for d, o in outcomes.items() if isinstance(o, Gap)}
        if gaps:
            return FieldResolution(None, [self._gap(merged.name, source, target, gaps)])

        diagnostics: list[Diagnostic] = []
        plans: dict[Direction, ConversionPlan] = {}
        resolved = {d: o for d, o in outcomes.items() if isinstance(o, Resolved)}
        for direction, outcome in resolved.items():
            plans[direction] = self._to_plan(direction, outcome, source, target)
            self._record_import(plans[direction])
            if outcome.narrowing and self._ctx.settings.warn_on_narrowing:
                diagnostics.append(
                    self._narrowing(merged.name, source, target, direction)
                )

        mapping = FieldMapping(
            name=merged.name,
            origin_number=merged.origin_number,
            source_field=source,
            target_field=target,
            to_target=plans[Direction.TO_TARGET],
            from_target=plans[Direction.FROM_TARGET],
        )
        return FieldResolution(mapping, diagnostics)

    def resolve_direction(
        self, source: SchemaField, target: SchemaField, direction: Direction
    ) -> Outcome:
        """Run the priority chain for one direction."""
        custom = (
            target.annotations.to_func
            if direction == Direction.TO_TARGET
            else target.annotations.from_func
        )
        if custom is not None:
            return Resolved(
                error_mode(custom.returns_error, custom.ignore_error),
                ConverterCall(
                    function=custom.qualified_name,
                    argument=input_expression(direction, source, target),
                    import_path=custom.package or None,
                ),
            )

        if source.is_collection or target.is_collection:
            return classify_collection(source, target, direction, self._ctx)

        arg = input_expression(direction, source, target)

        wk = well_known.lookup(source, target)
        if wk is not None:
            nilable = None
            if wk.target_nilable is not None and direction == Direction.FROM_TARGET:
                nilable = wk.target_nilable
            return Resolved(
                wk.conversion_type,
                self._ctx.helper_call(wk, direction, arg),
                nilable=nilable,
            )

        if (
            source.kind != FieldKind.MESSAGE
            and source.kind == target.kind
            and source.type_key == target.type_key
        ):
            return Resolved(ConversionType.ASSIGNMENT, InlineExpression(expression=arg))

        if source.is_message and target.is_message:
            return self._nested(source, target, direction, arg)

        if (
            source.kind == FieldKind.SCALAR
            and target.kind == FieldKind.SCALAR
            and source.scalar.is_numeric  # type: ignore[union-attr]
            and target.scalar.is_numeric  # type: ignore[union-attr]
        ):
            return self._numeric(source.scalar, target.scalar, direction, arg)  # type: ignore[arg-type]

        return Gap(f"no conversion rule for {source.type_key} -> {target.type_key}")

    # ------------------------------------------------------------------ #
    # Rules
    # ------------------------------------------------------------------ #

    def _nested(
        self,
        source: SchemaField,
        target: SchemaField,
        direction: Direction,
        arg: str,
    ) -> Outcome:
        pair = self._ctx.nested_pair(source.type_key, target.type_key)
        if not self._ctx.registry.has_converter(pair):
            return Gap(f"no converter registered for {pair.source} -> {pair.target}")

        to_func, from_func = self._ctx.registry.converter_names(pair)
        return Resolved(
            ConversionType.TRANSFORM_WITH_ERROR,
            ConverterCall(
                function=to_func if direction == Direction.TO_TARGET else from_func,
                argument=arg,
                generated=True,
            ),
        )

    @staticmethod
    def _numeric(
        source: ScalarKind, target: ScalarKind, direction: Direction, arg: str
    ) -> Resolved:
        if direction == Direction.TO_TARGET:
            from_native, to_native = source.native_type, target.native_type
        else:
            from_native, to_native = target.native_type, source.native_type
        return Resolved(
            ConversionType.ASSIGNMENT,
            InlineExpression(expression=f"{to_native}({arg})", cast=to_native),
            narrowing=is_narrowing(from_native, to_native),
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _to_plan(
        direction: Direction,
        outcome: Resolved,
        source: SchemaField,
        target: SchemaField,
    ) -> ConversionPlan:
        nilable = source.is_nilable if direction == Direction.TO_TARGET else target.is_nilable
        if outcome.nilable is not None:
            nilable = outcome.nilable
        return ConversionPlan(
            direction=direction,
            conversion_type=outcome.conversion_type,
            body=outcome.body,
            render=determine_render_strategy(
                outcome.conversion_type, nilable, outcome.loop
            ),
            preserve_absence=outcome.preserve_absence,
        )

    def _record_import(self, plan: ConversionPlan) -> None:
        body = plan.body
        call = body if isinstance(body, ConverterCall) else getattr(body, "element", None)
        if call is not None and call.import_path:
            self._imports.add(call.import_path, call.function.rsplit(".", 1)[0])

    def _gap(
        self,
        field_name: str,
        source: SchemaField,
        target: SchemaField,
        gaps: dict[Direction, Gap],
    ) -> Diagnostic:
        direction = next(iter(gaps)) if len(gaps) == 1 else None
        reason = "; ".join(dict.fromkeys(g.reason for g in gaps.values()))
        diagnostic = Diagnostic(
            code=DiagnosticCode.CONVERSION_GAP,
            message_name=self._message_name,
            field_name=field_name,
            direction=direction,
            source_type=source.describe(),
            target_type=target.describe(),
            detail=f"{reason}; field skipped, supply a custom converter",
        )
        self._logger.warning(
            "Skipping field %s.%s (%s -> %s): %s",
            self._message_name,
            field_name,
            source.describe(),
            target.describe(),
            reason,
        )
        return diagnostic

    def _narrowing(
        self,
        field_name: str,
        source: SchemaField,
        target: SchemaField,
        direction: Direction,
    ) -> Diagnostic:
        return Diagnostic(
            code=DiagnosticCode.NARROWING_CAST,
            message_name=self._message_name,
            field_name=field_name,
            direction=direction,
            source_type=source.describe(),
            target_type=target.describe(),
            detail="numeric cast may truncate",
        )
