"""
Reference evaluator for conversion plans.

Applies resolved FieldMappings to plain Python records so plans can be
checked without generating any code. Assignments copy and numeric casts
wrap like fixed-width integers. Converter calls dispatch to a function
table; literal extra arguments are left to the registered implementation.
Loops rebuild containers element by element.
"""

from __future__ import annotations

import logging
import math
import struct
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..exceptions import EvaluationError
from ..ir.plan import (
    CollectionKind,
    CollectionLoop,
    ConversionPlan,
    ConversionType,
    ConverterCall,
    Direction,
    FieldMapping,
    InlineExpression,
)

logger = logging.getLogger(__name__)

_INT_WIDTHS = {"int32": (32, True), "int64": (64, True), "uint32": (32, False), "uint64": (64, False)}


def cast_numeric(value: Any, native: str, field_name: str | None = None) -> Any:
    """
    Cast a Python number the way a fixed-width target type would.

    Narrowing is silent: integers wrap, floats round to float32 and values
    beyond the float32 range become signed infinities. Only NaN or infinity
    cast to an integer type has no defined result and raises EvaluationError.
    """
    if native == "float64":
        return float(value)
    if native == "float32":
        number = float(value)
        try:
            return struct.unpack("<f", struct.pack("<f", number))[0]
        except OverflowError:
            return math.copysign(math.inf, number)

    bits, signed = _INT_WIDTHS[native]
    if isinstance(value, float) and not math.isfinite(value):
        raise EvaluationError(
            f"Cannot cast {value!r} to {native}", field_name=field_name
        )
    number = int(value)  # truncates floats toward zero
    number &= (1 << bits) - 1
    if signed and number >= 1 << (bits - 1):
        number -= 1 << bits
    return number


class PlanEvaluator:
    """Apply conversion plans to dict records."""

    def __init__(self, functions: Mapping[str, Callable[[Any], Any]] | None = None):
        self._functions = dict(functions or {})
        self._logger = logger.getChild(self.__class__.__name__)

    def register(self, name: str, func: Callable[[Any], Any]) -> None:
        self._functions[name] = func

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def apply(
        self, mapping: FieldMapping, direction: Direction, record: Mapping[str, Any]
    ) -> Any:
        """Converted value of one field, read from ``record``."""
        plan = mapping.plan(direction)
        if plan is None:
            raise EvaluationError(
                f"Field '{mapping.name}' has no {direction.value} plan",
                field_name=mapping.name,
            )
        if direction == Direction.TO_TARGET:
            input_name = mapping.source_field.name  # type: ignore[union-attr]
        else:
            input_name = mapping.target_field.name
        return self._evaluate(plan, record.get(input_name), mapping.name)

    def convert(
        self,
        mappings: Iterable[FieldMapping],
        direction: Direction,
        record: Mapping[str, Any],
    ) -> dict[str, Any]:
        """
        Convert a whole record. Fields without a plan are left out; absent
        input keys stay absent in the output.
        """
        out: dict[str, Any] = {}
        for mapping in mappings:
            plan = mapping.plan(direction)
            if plan is None:
                continue
            if direction == Direction.TO_TARGET:
                input_name = mapping.source_field.name  # type: ignore[union-attr]
                output_name = mapping.target_field.name
            else:
                input_name = mapping.target_field.name
                output_name = mapping.source_field.name  # type: ignore[union-attr]
            if input_name not in record:
                continue
            out[output_name] = self._evaluate(plan, record[input_name], mapping.name)
        return out

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _evaluate(self, plan: ConversionPlan, value: Any, field_name: str) -> Any:
        body = plan.body
        if isinstance(body, InlineExpression):
            if value is None or body.cast is None:
                return value
            return cast_numeric(value, body.cast, field_name)

        if isinstance(body, ConverterCall):
            return self._call(body, plan.conversion_type, value, field_name)

        if isinstance(body, CollectionLoop):
            if value is None:
                return None
            if body.collection == CollectionKind.MAP:
                return {
                    key: self._call(body.element, plan.conversion_type, item, field_name)
                    for key, item in value.items()
                }
            return [
                self._call(body.element, plan.conversion_type, item, field_name)
                for item in value
            ]

        raise EvaluationError(f"Unsupported plan body {body!r}", field_name=field_name)

    def _call(
        self,
        call: ConverterCall,
        conversion_type: ConversionType,
        value: Any,
        field_name: str,
    ) -> Any:
        func = self._functions.get(call.function)
        if func is None:
            raise EvaluationError(
                f"No implementation registered for '{call.function}'",
                field_name=field_name,
                function=call.function,
            )
        if call.argument_cast and value is not None:
            value = cast_numeric(value, call.argument_cast, field_name)
        try:
            result = func(value)
        except Exception as exc:
            if conversion_type == ConversionType.TRANSFORM_IGNORABLE_ERROR:
                self._logger.debug(
                    "Ignoring error from %s on %s: %s", call.function, field_name, exc
                )
                return None
            raise EvaluationError(
                f"Converter '{call.function}' failed: {exc}",
                field_name=field_name,
                function=call.function,
            ) from exc
        if call.result_cast and result is not None:
            result = cast_numeric(result, call.result_cast, field_name)
        return result
