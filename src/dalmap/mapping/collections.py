"""Collection strategy classifier for repeated and map fields."""

from __future__ import annotations

from ..ir.plan import (
    CollectionKind,
    CollectionLoop,
    ConversionType,
    ConverterCall,
    Direction,
    InlineExpression,
)
from ..schema.models import SchemaField
from . import well_known
from .context import Gap, Outcome, Resolved, ResolutionContext, input_expression

ELEMENT = "item"


def collection_kind(field: SchemaField) -> CollectionKind | None:
    if field.is_map:
        return CollectionKind.MAP
    if field.is_repeated:
        return CollectionKind.REPEATED
    return None


def classify_collection(
    source: SchemaField,
    target: SchemaField,
    direction: Direction,
    ctx: ResolutionContext,
) -> Outcome:
    """
    Decide how a repeated/map field pair is converted in one direction.

    Scalar elements copy the whole container in one step and keep nil and
    empty containers distinct. Structured elements loop over the source and
    convert every element; a missing element converter is a gap for the
    whole field. Map keys are never transformed.
    """
    kind = collection_kind(source)
    if kind is None or kind != collection_kind(target):
        return Gap(
            f"cardinality mismatch: {source.cardinality.value} vs "
            f"{target.cardinality.value}"
        )

    if kind == CollectionKind.MAP and source.map_key != target.map_key:
        return Gap(
            f"map key kinds differ: {source.map_key.value} vs "  # type: ignore[union-attr]
            f"{target.map_key.value}"  # type: ignore[union-attr]
        )

    if not source.is_message:
        if source.kind != target.kind or source.type_key != target.type_key:
            return Gap(
                f"element kinds differ: {source.type_key} vs {target.type_key}"
            )
        return Resolved(
            ConversionType.ASSIGNMENT,
            InlineExpression(expression=input_expression(direction, source, target)),
            preserve_absence=True,
        )

    return _loop_strategy(source, target, kind, direction, ctx)


def _loop_strategy(
    source: SchemaField,
    target: SchemaField,
    kind: CollectionKind,
    direction: Direction,
    ctx: ResolutionContext,
) -> Outcome:
    wk = well_known.lookup_element(source, target)
    if wk is not None:
        element = ctx.helper_call(wk, direction, ELEMENT)
        return Resolved(
            wk.conversion_type,
            CollectionLoop(
                collection=kind,
                element=element,
                source_element_type=source.type_key,
                target_element_type=well_known.target_type_key(target),
            ),
            loop=kind,
            preserve_absence=True,
        )

    if not target.is_message:
        return Gap(
            f"structured elements {source.type_key} cannot be stored as "
            f"{target.type_key}"
        )

    pair = ctx.nested_pair(source.type_key, target.type_key)
    if not ctx.registry.has_converter(pair):
        return Gap(f"no converter registered for element type {pair.source} -> {pair.target}")

    to_func, from_func = ctx.registry.converter_names(pair)
    func = to_func if direction == Direction.TO_TARGET else from_func
    return Resolved(
        ConversionType.TRANSFORM_WITH_ERROR,
        CollectionLoop(
            collection=kind,
            element=ConverterCall(function=func, argument=ELEMENT, generated=True),
            source_element_type=pair.source.rsplit(".", 1)[-1],
            target_element_type=pair.target,
        ),
        loop=kind,
        preserve_absence=True,
    )
