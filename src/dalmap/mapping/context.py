"""Shared state and result types of the type & strategy resolution pass."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import EngineSettings
from ..ir.plan import (
    CollectionKind,
    ConversionType,
    ConverterCall,
    Direction,
    PlanBody,
)
from ..schema.index import MessageIndex
from ..schema.models import SchemaField, package_alias
from .registry import ConverterRegistry, TypePair
from .well_known import WellKnownMapping


@dataclass(frozen=True)
class ResolutionContext:
    """Batch-scoped, read-only inputs of every field resolution."""

    index: MessageIndex
    registry: ConverterRegistry
    settings: EngineSettings

    def nested_pair(self, source_type: str, target_type: str) -> TypePair:
        """
        Registry key for a structured field pair.

        ``target_type`` is whatever the merged target field declares. When it
        names a target message, that message's struct is the target. When it
        still names a source message (inherited field), the batch's target
        for that source is used; failing that the type's own name.
        """
        source_msg = self.index.resolve(source_type)
        source_key = source_msg.full_name if source_msg else source_type

        declared = self.index.resolve(target_type)
        if declared is not None and declared.source:
            return TypePair(source_key, self.index.struct_name(declared))

        mapped = self.index.lookup_target_for(
            declared.full_name if declared else target_type
        )
        if mapped is not None:
            return TypePair(source_key, self.index.struct_name(mapped))

        if declared is not None:
            return TypePair(source_key, self.index.struct_name(declared))
        return TypePair(source_key, target_type.rsplit(".", 1)[-1])

    def helper_call(
        self, mapping: WellKnownMapping, direction: Direction, argument: str
    ) -> ConverterCall:
        helper = (
            mapping.to_target
            if direction == Direction.TO_TARGET
            else mapping.from_target
        )
        if helper.package:
            path, alias = helper.package, package_alias(helper.package)
        else:
            path = self.settings.helpers_package
            alias = self.settings.effective_helpers_alias
        return ConverterCall(
            function=f"{alias}.{helper.name}",
            argument=argument,
            import_path=path,
            argument_cast=helper.argument_cast,
            extra_args=list(helper.extra_args),
            result_cast=helper.result_cast,
        )


@dataclass(frozen=True)
class Resolved:
    """One direction resolved successfully."""

    conversion_type: ConversionType
    body: PlanBody
    loop: CollectionKind | None = None
    preserve_absence: bool = False
    nilable: bool | None = None  # overrides the field's own nilability
    narrowing: bool = False


@dataclass(frozen=True)
class Gap:
    """No rule matched this direction."""

    reason: str


Outcome = Resolved | Gap


def input_expression(direction: Direction, source: SchemaField, target: SchemaField) -> str:
    """Expression reading the value being converted in a direction."""
    if direction == Direction.TO_TARGET:
        return f"src.{source.name}"
    return f"src.{target.name}"


def error_mode(returns_error: bool, ignore_error: bool) -> ConversionType:
    if returns_error and ignore_error:
        return ConversionType.TRANSFORM_IGNORABLE_ERROR
    if returns_error:
        return ConversionType.TRANSFORM_WITH_ERROR
    return ConversionType.TRANSFORM_NO_ERROR
