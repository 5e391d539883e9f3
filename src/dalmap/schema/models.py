"""
models.py – Schema Model
~~~~~~~~~~~~~~~~~~~~~~~~
In-memory representation of source (wire) and target (storage entity)
messages, as handed over by the IDL front-end. Instances are built once and
are read-only for the rest of the run.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ScalarKind(str, Enum):
    """Scalar kinds of the interface-definition language."""

    DOUBLE = "double"
    FLOAT = "float"
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    SINT32 = "sint32"
    SINT64 = "sint64"
    FIXED32 = "fixed32"
    FIXED64 = "fixed64"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"

    @property
    def is_numeric(self) -> bool:
        return self in _NATIVE_NUMERIC

    @property
    def native_type(self) -> str:
        """Target-language type used when casting between numeric kinds."""
        return _NATIVE_NUMERIC.get(self, self.value)


_NATIVE_NUMERIC: Dict[ScalarKind, str] = {
    ScalarKind.INT32: "int32",
    ScalarKind.SINT32: "int32",
    ScalarKind.SFIXED32: "int32",
    ScalarKind.INT64: "int64",
    ScalarKind.SINT64: "int64",
    ScalarKind.SFIXED64: "int64",
    ScalarKind.UINT32: "uint32",
    ScalarKind.FIXED32: "uint32",
    ScalarKind.UINT64: "uint64",
    ScalarKind.FIXED64: "uint64",
    ScalarKind.FLOAT: "float32",
    ScalarKind.DOUBLE: "float64",
}


class FieldKind(str, Enum):
    SCALAR = "scalar"
    ENUM = "enum"
    MESSAGE = "message"


class Cardinality(str, Enum):
    SINGULAR = "singular"
    REPEATED = "repeated"
    MAP = "map"


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------


def package_alias(package: str) -> str:
    """Last path segment of an import path (``a/b/conv`` → ``conv``)."""
    return package.rstrip("/").rsplit("/", 1)[-1]


class ConverterFunc(BaseModel):
    """Reference to a user supplied conversion function."""

    package: str = Field(
        "", description="Import path of the package holding the function."
    )
    function: str = Field(..., description="Function name inside the package.")
    alias: Optional[str] = Field(
        None, description="Import alias; defaults to the last package segment."
    )
    returns_error: bool = Field(
        False, description="Function returns (value, error)."
    )
    ignore_error: bool = Field(
        False, description="Discard the returned error instead of checking it."
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("function")
    @classmethod
    def _not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("ConverterFunc.function must not be empty")
        return v

    @property
    def effective_alias(self) -> str:
        if self.alias:
            return self.alias
        return package_alias(self.package) if self.package else ""

    @property
    def qualified_name(self) -> str:
        alias = self.effective_alias
        return f"{alias}.{self.function}" if alias else self.function


class FieldAnnotations(BaseModel):
    """Backend directives attached to a target field."""

    skip: bool = Field(
        False, description="Exclude the inherited source field from the target."
    )
    to_func: Optional[ConverterFunc] = Field(
        None, description="Custom converter used for source → target."
    )
    from_func: Optional[ConverterFunc] = Field(
        None, description="Custom converter used for target → source."
    )
    storage_tags: List[str] = Field(
        default_factory=list,
        description="Opaque storage tags passed through unmodified.",
    )
    storage_options: Dict[str, Any] = Field(
        default_factory=dict, description="Backend specific column options."
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------------
# Fields and messages
# ---------------------------------------------------------------------------


class SchemaField(BaseModel):
    """One declared field of a source or target message."""

    name: str = Field(..., description="Field name as declared.")
    number: int = Field(..., ge=1, description="Declared field number.")
    kind: FieldKind = Field(FieldKind.SCALAR, description="Value kind.")
    scalar: Optional[ScalarKind] = Field(
        None, description="Scalar kind (scalar fields only)."
    )
    type_name: Optional[str] = Field(
        None,
        description="Fully qualified enum/message type (enum/message fields).",
    )
    cardinality: Cardinality = Field(Cardinality.SINGULAR)
    map_key: Optional[ScalarKind] = Field(
        None, description="Key kind (map fields only)."
    )
    oneof: Optional[str] = Field(
        None, description="Name of the oneof group this field belongs to."
    )
    optional: bool = Field(
        False, description="Explicit presence – value may be absent (nil)."
    )
    annotations: FieldAnnotations = Field(default_factory=FieldAnnotations)

    model_config = ConfigDict(extra="forbid", frozen=True)

    # ----- validators --------------------------------------------------------
    @model_validator(mode="after")
    def _kind_consistent(self) -> Self:
        if self.kind == FieldKind.SCALAR:
            if self.scalar is None:
                raise ValueError(f"Scalar field '{self.name}' requires 'scalar'")
            if self.type_name is not None:
                raise ValueError(
                    f"Scalar field '{self.name}' must not declare 'type_name'"
                )
        else:
            if not self.type_name:
                raise ValueError(
                    f"{self.kind.value.title()} field '{self.name}' "
                    "requires 'type_name'"
                )
            if self.scalar is not None:
                raise ValueError(
                    f"Field '{self.name}' of kind {self.kind.value} "
                    "must not declare 'scalar'"
                )
        return self

    @model_validator(mode="after")
    def _map_key_ok(self) -> Self:
        if self.cardinality == Cardinality.MAP:
            if self.map_key is None:
                raise ValueError(f"Map field '{self.name}' requires 'map_key'")
            if self.map_key in (ScalarKind.FLOAT, ScalarKind.DOUBLE, ScalarKind.BYTES):
                raise ValueError(
                    f"Map field '{self.name}' cannot use "
                    f"'{self.map_key.value}' keys"
                )
        elif self.map_key is not None:
            raise ValueError(
                f"Only map fields may declare 'map_key' (field '{self.name}')"
            )
        return self

    # ----- helpers -----------------------------------------------------------
    @property
    def is_message(self) -> bool:
        return self.kind == FieldKind.MESSAGE

    @property
    def is_repeated(self) -> bool:
        return self.cardinality == Cardinality.REPEATED

    @property
    def is_map(self) -> bool:
        return self.cardinality == Cardinality.MAP

    @property
    def is_collection(self) -> bool:
        return self.cardinality != Cardinality.SINGULAR

    @property
    def is_nilable(self) -> bool:
        """Whether the value can be absent (optional scalar or message)."""
        return self.optional or (self.is_message and not self.is_collection)

    @property
    def type_key(self) -> str:
        """Scalar kind name, or the fully qualified enum/message name."""
        if self.kind == FieldKind.SCALAR:
            return self.scalar.value  # type: ignore[union-attr]
        return self.type_name  # type: ignore[return-value]

    def describe(self) -> str:
        """Human readable type, e.g. ``map<string, api.Author>``."""
        if self.is_map:
            return f"map<{self.map_key.value}, {self.type_key}>"  # type: ignore[union-attr]
        if self.is_repeated:
            return f"repeated {self.type_key}"
        return self.type_key


class SchemaMessage(BaseModel):
    """A source message or a target storage entity."""

    name: str = Field(..., description="Short message name.")
    full_name: str = Field(..., description="Fully qualified type name.")
    fields: List[SchemaField] = Field(
        default_factory=list, description="Fields in declaration order."
    )
    source: Optional[str] = Field(
        None,
        description="Source message this target maps from (absent ⇒ standalone).",
    )
    table: Optional[str] = Field(None, description="Storage table / kind name.")
    options: Dict[str, Any] = Field(
        default_factory=dict, description="Free-form backend options."
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    # ----- validators --------------------------------------------------------
    @field_validator("full_name")
    @classmethod
    def _full_name_ok(cls, v: str) -> str:
        if not v or v.startswith(".") or v.endswith("."):
            raise ValueError(f"Invalid fully qualified name '{v}'")
        return v

    @model_validator(mode="after")
    def _unique_fields(self) -> Self:
        names: set[str] = set()
        numbers: set[int] = set()
        for f in self.fields:
            if f.name in names:
                raise ValueError(
                    f"Message '{self.full_name}' declares field '{f.name}' twice"
                )
            if f.number in numbers:
                raise ValueError(
                    f"Message '{self.full_name}' reuses field number {f.number}"
                )
            names.add(f.name)
            numbers.add(f.number)
        return self

    # ----- helpers -----------------------------------------------------------
    def field(self, name: str) -> Optional[SchemaField]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def oneof_names(self) -> List[str]:
        seen: Dict[str, None] = {}
        for f in self.fields:
            if f.oneof:
                seen.setdefault(f.oneof, None)
        return list(seen)


class SchemaBatch(BaseModel):
    """Every message handed over for one generation run."""

    messages: List[SchemaMessage] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def _unique_messages(self) -> Self:
        seen: set[str] = set()
        for msg in self.messages:
            if msg.full_name in seen:
                raise ValueError(f"Duplicate message '{msg.full_name}'")
            seen.add(msg.full_name)
        return self


__all__ = [
    "ScalarKind",
    "FieldKind",
    "Cardinality",
    "package_alias",
    "ConverterFunc",
    "FieldAnnotations",
    "SchemaField",
    "SchemaMessage",
    "SchemaBatch",
]
