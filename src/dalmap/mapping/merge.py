"""Field merge resolver: effective field list of a target message."""

from __future__ import annotations

import logging

from ..exceptions import AnnotationError
from ..ir.plan import MergedField
from ..schema.models import SchemaField, SchemaMessage

logger = logging.getLogger(__name__)


def merge_fields(
    source: SchemaMessage | None, target: SchemaMessage
) -> list[MergedField]:
    """
    Merge source fields into a target message (opt-out model).

    1. Start with every source field, keyed by name, remembering its number.
    2. A target field named like a source oneof replaces the whole oneof:
       every member of that oneof is dropped.
    3. For each target field: ``skip`` removes the inherited entry (the field
       must exist in the source); any other declaration overrides the entry
       under the same name or adds a new one.
    4. Sort by origin number: the source number for inherited fields, the
       target's own number for new ones. Ties break on name.

    Without a source the target fields are returned as declared.

    Raises:
        AnnotationError: if a skip directive names a field absent from source
    """
    if source is None:
        return [
            MergedField(name=f.name, origin_number=f.number, field=f)
            for f in target.fields
        ]

    target_names = {f.name for f in target.fields}
    replaced_oneofs = {o for o in source.oneof_names if o in target_names}
    if replaced_oneofs:
        logger.debug(
            "%s replaces oneof(s) %s of %s",
            target.full_name,
            ", ".join(sorted(replaced_oneofs)),
            source.full_name,
        )

    source_by_name: dict[str, SchemaField] = {}
    for f in source.fields:
        if f.oneof and f.oneof in replaced_oneofs:
            continue
        source_by_name[f.name] = f

    # name -> (origin number, effective field, inherited, overridden)
    entries: dict[str, tuple[int, SchemaField, bool, bool]] = {
        name: (f.number, f, True, False) for name, f in source_by_name.items()
    }

    for field in target.fields:
        if field.annotations.skip:
            if source.field(field.name) is None:
                raise AnnotationError(
                    f"field '{field.name}' in target '{target.full_name}' has "
                    f"skip_field=true but does not exist in source "
                    f"'{source.full_name}'",
                    target=target.full_name,
                    field_name=field.name,
                    source_name=source.full_name,
                )
            # already gone when its oneof was replaced
            entries.pop(field.name, None)
            continue

        inherited = source_by_name.get(field.name)
        if inherited is not None:
            entries[field.name] = (inherited.number, field, True, True)
        else:
            entries[field.name] = (field.number, field, False, False)

    ordered = sorted(entries.items(), key=lambda item: (item[1][0], item[0]))
    return [
        MergedField(
            name=name,
            origin_number=number,
            field=field,
            inherited=inherited,
            overridden=overridden,
        )
        for name, (number, field, inherited, overridden) in ordered
    ]


def skipped_field_names(target: SchemaMessage) -> list[str]:
    """Names of the target fields carrying a skip directive, in order."""
    return [f.name for f in target.fields if f.annotations.skip]
