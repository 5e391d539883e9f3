"""Render strategy classification (emission ergonomics only)."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..ir.plan import (
    CollectionKind,
    ConversionType,
    Direction,
    FieldMapping,
    RenderGroup,
    RenderStrategy,
)

_SETTERS: dict[ConversionType, RenderStrategy] = {
    ConversionType.ASSIGNMENT: RenderStrategy.SETTER_SIMPLE,
    ConversionType.TRANSFORM_NO_ERROR: RenderStrategy.SETTER_TRANSFORM,
    ConversionType.TRANSFORM_WITH_ERROR: RenderStrategy.SETTER_WITH_ERROR,
    ConversionType.TRANSFORM_IGNORABLE_ERROR: RenderStrategy.SETTER_IGNORE_ERROR,
}


def determine_render_strategy(
    conversion_type: ConversionType,
    is_nilable: bool = False,
    loop: CollectionKind | None = None,
) -> RenderStrategy:
    """
    Pick how one direction of a field conversion is laid out.

    - element-wise collections always render as loop blocks
    - nilable inputs need a nil check, so they render as setters
    - otherwise only error-free conversions can live in a struct literal
    """
    if loop == CollectionKind.REPEATED:
        return RenderStrategy.LOOP_REPEATED
    if loop == CollectionKind.MAP:
        return RenderStrategy.LOOP_MAP

    if is_nilable:
        return _SETTERS[conversion_type]

    if conversion_type in (
        ConversionType.ASSIGNMENT,
        ConversionType.TRANSFORM_NO_ERROR,
    ):
        return RenderStrategy.INLINE_VALUE
    return _SETTERS[conversion_type]


@dataclass
class ClassifiedFields:
    """Field mappings grouped per direction by render group."""

    to_target_inline: list[FieldMapping] = field(default_factory=list)
    to_target_setter: list[FieldMapping] = field(default_factory=list)
    to_target_loop: list[FieldMapping] = field(default_factory=list)
    from_target_inline: list[FieldMapping] = field(default_factory=list)
    from_target_setter: list[FieldMapping] = field(default_factory=list)
    from_target_loop: list[FieldMapping] = field(default_factory=list)

    def group(self, direction: Direction, group: RenderGroup) -> list[FieldMapping]:
        return getattr(self, f"{direction.value}_{group.value}")


def classify_fields(mappings: Iterable[FieldMapping]) -> ClassifiedFields:
    """Partition mappings by render group, keeping merged order."""
    result = ClassifiedFields()
    for mapping in mappings:
        for direction in Direction:
            plan = mapping.plan(direction)
            if plan is None:
                continue
            result.group(direction, plan.render.group).append(mapping)
    return result
