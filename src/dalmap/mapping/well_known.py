"""
Well-known type substitutions.

A fixed table keyed by (source type key, target type key). Each entry names
the helper called in each direction. Helpers without an explicit package
live in the configured helpers package; the rest come from the named
package (e.g. ``strconv``).
"""

from __future__ import annotations

from typing import NamedTuple

from ..ir.plan import ConversionType
from ..schema.models import SchemaField

TIMESTAMP = "google.protobuf.Timestamp"
ANY = "google.protobuf.Any"

# Storage representation of well-known message types on the target side.
# Types stored as bytes are matched under the "bytes" key.
_TARGET_REPRESENTATION: dict[str, str] = {
    TIMESTAMP: TIMESTAMP,  # native time value
    ANY: "bytes",
}


class Helper(NamedTuple):
    """One helper call: ``result_cast(pkg.name(argument_cast(x), *extra_args))``."""

    name: str
    package: str | None = None
    argument_cast: str | None = None
    extra_args: tuple[str, ...] = ()
    result_cast: str | None = None


class WellKnownMapping(NamedTuple):
    to_target: Helper
    from_target: Helper
    conversion_type: ConversionType
    target_nilable: bool | None = None


_WELL_KNOWN: dict[tuple[str, str], WellKnownMapping] = {
    (TIMESTAMP, "int64"): WellKnownMapping(
        Helper("TimestampToInt64"),
        Helper("Int64ToTimestamp"),
        ConversionType.TRANSFORM_NO_ERROR,
    ),
    (TIMESTAMP, TIMESTAMP): WellKnownMapping(
        Helper("TimestampToTime"),
        Helper("TimeToTimestamp"),
        ConversionType.TRANSFORM_NO_ERROR,
        target_nilable=False,
    ),
    (ANY, "bytes"): WellKnownMapping(
        Helper("AnyToBytes"),
        Helper("BytesToAny"),
        ConversionType.TRANSFORM_WITH_ERROR,
    ),
    # id columns: decimal text in storage
    ("uint32", "string"): WellKnownMapping(
        Helper("FormatUint", "strconv", argument_cast="uint64", extra_args=("10",)),
        Helper("MustParseUint", result_cast="uint32"),
        ConversionType.TRANSFORM_NO_ERROR,
    ),
}

# Any message stored into a google.protobuf.Any target column.
MESSAGE_TO_ANY = WellKnownMapping(
    Helper("MessageToAnyBytes"),
    Helper("AnyBytesToMessage"),
    ConversionType.TRANSFORM_WITH_ERROR,
)


def target_type_key(field: SchemaField) -> str:
    """Type key of a target field, folding well-known types onto storage."""
    key = field.type_key
    if field.is_message:
        return _TARGET_REPRESENTATION.get(key, key)
    return key


def lookup(source: SchemaField, target: SchemaField) -> WellKnownMapping | None:
    """Helper pair for a singular field pair, or None."""
    src_key = source.type_key
    mapping = _WELL_KNOWN.get((src_key, target_type_key(target)))
    if mapping is not None:
        return mapping
    if source.is_message and src_key != ANY and target.type_key == ANY:
        return MESSAGE_TO_ANY
    return None


def lookup_element(source: SchemaField, target: SchemaField) -> WellKnownMapping | None:
    """Per-element helper pair for collections of well-known message types."""
    if not source.is_message:
        return None
    return lookup(source, target)
