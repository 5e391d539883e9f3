"""Per-message planning: merge, resolve and assemble a MessagePlan."""

from __future__ import annotations

import logging

from ..ir.plan import Diagnostic, FieldMapping, MessagePlan
from ..schema.models import SchemaMessage
from .context import ResolutionContext
from .imports import collect_custom_converter_imports
from .merge import merge_fields
from .registry import TypePair
from .resolver import FieldResolver

logger = logging.getLogger(__name__)


class MessagePlanner:
    """Builds the plan of one target message against a shared context."""

    def __init__(self, ctx: ResolutionContext) -> None:
        self._ctx = ctx
        self._logger = logger.getChild(self.__class__.__name__)

    def plan(self, target: SchemaMessage) -> MessagePlan:
        index = self._ctx.index
        source = index.source_of(target)
        struct = index.struct_name(target)
        merged = merge_fields(source, target)

        if source is None:
            # standalone message: struct only, no converters
            self._logger.debug(
                "Planned standalone %s: %d field(s)", target.full_name, len(merged)
            )
            return MessagePlan(
                target=target.full_name,
                target_struct=struct,
                table=target.table,
                fields=merged,
            )

        imports = collect_custom_converter_imports(m.field for m in merged)
        resolver = FieldResolver(self._ctx, target.full_name, imports)

        mappings: list[FieldMapping] = []
        diagnostics: list[Diagnostic] = []
        for entry in merged:
            result = resolver.resolve(entry, source.field(entry.name))
            diagnostics.extend(result.diagnostics)
            if result.mapping is not None:
                mappings.append(result.mapping)

        to_func = from_func = None
        pair = TypePair(source.full_name, struct)
        if self._ctx.registry.has_converter(pair):
            to_func, from_func = self._ctx.registry.converter_names(pair)

        self._logger.debug(
            "Planned %s: %d field(s), %d mapping(s), %d diagnostic(s)",
            target.full_name,
            len(merged),
            len(mappings),
            len(diagnostics),
        )
        return MessagePlan(
            target=target.full_name,
            target_struct=struct,
            source=source.full_name,
            source_type=source.name,
            table=target.table,
            fields=merged,
            mappings=mappings,
            imports=imports.to_list(),
            diagnostics=diagnostics,
            to_target_function=to_func,
            from_target_function=from_func,
        )


__all__ = ["MessagePlanner"]
