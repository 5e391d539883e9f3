"""
plan.py – Conversion plan IR
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Output of the merge + resolve passes, consumed by an external emitter.
Every model is frozen: once a FieldMapping is resolved it does not change
for the remainder of the run.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..schema.models import SchemaField

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ConversionType(str, Enum):
    """Shape of code needed to move a value across one direction."""

    ASSIGNMENT = "assignment"
    TRANSFORM_NO_ERROR = "transform_no_error"
    TRANSFORM_WITH_ERROR = "transform_with_error"
    TRANSFORM_IGNORABLE_ERROR = "transform_ignorable_error"


class Direction(str, Enum):
    TO_TARGET = "to_target"
    FROM_TARGET = "from_target"


class CollectionKind(str, Enum):
    REPEATED = "repeated"
    MAP = "map"


class RenderGroup(str, Enum):
    INLINE = "inline"
    SETTER = "setter"
    LOOP = "loop"


class RenderStrategy(str, Enum):
    """How an emitter should lay out one direction of a field conversion."""

    INLINE_VALUE = "inline_value"
    SETTER_SIMPLE = "setter_simple"
    SETTER_TRANSFORM = "setter_transform"
    SETTER_WITH_ERROR = "setter_with_error"
    SETTER_IGNORE_ERROR = "setter_ignore_error"
    LOOP_REPEATED = "loop_repeated"
    LOOP_MAP = "loop_map"

    @property
    def group(self) -> RenderGroup:
        if self in (RenderStrategy.LOOP_REPEATED, RenderStrategy.LOOP_MAP):
            return RenderGroup.LOOP
        if self == RenderStrategy.INLINE_VALUE:
            return RenderGroup.INLINE
        return RenderGroup.SETTER


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"


class DiagnosticCode(str, Enum):
    CONVERSION_GAP = "conversion_gap"
    NARROWING_CAST = "narrowing_cast"
    SERIALIZER_HINT = "serializer_hint"


# ---------------------------------------------------------------------------
# Plan bodies (closed union, discriminated on ``kind``)
# ---------------------------------------------------------------------------


class InlineExpression(BaseModel):
    """Expression evaluated in place, e.g. ``src.title`` or ``int64(src.age)``."""

    kind: Literal["inline"] = "inline"
    expression: str
    cast: Optional[str] = Field(
        None, description="Native numeric type cast to, if any."
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class ConverterCall(BaseModel):
    """Call of a named conversion function on the field value."""

    kind: Literal["call"] = "call"
    function: str = Field(..., description="Qualified function name.")
    argument: str = Field(..., description="Argument expression.")
    argument_cast: Optional[str] = Field(
        None, description="Native numeric type the argument is cast to first."
    )
    extra_args: List[str] = Field(
        default_factory=list, description="Literal trailing arguments."
    )
    result_cast: Optional[str] = Field(
        None, description="Native numeric type the result is cast to."
    )
    import_path: Optional[str] = Field(
        None, description="Package to import for the function (if external)."
    )
    generated: bool = Field(
        False, description="Function is a converter generated in this batch."
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def expression(self) -> str:
        arg = self.argument
        if self.argument_cast:
            arg = f"{self.argument_cast}({arg})"
        call = f"{self.function}({', '.join([arg, *self.extra_args])})"
        if self.result_cast:
            call = f"{self.result_cast}({call})"
        return call


class CollectionLoop(BaseModel):
    """Element-wise conversion of a repeated or map field."""

    kind: Literal["loop"] = "loop"
    collection: CollectionKind
    element: ConverterCall = Field(
        ..., description="Per-element call; its argument is the loop element."
    )
    source_element_type: str
    target_element_type: str

    model_config = ConfigDict(extra="forbid", frozen=True)


PlanBody = Annotated[
    Union[InlineExpression, ConverterCall, CollectionLoop],
    Field(discriminator="kind"),
]


class ConversionPlan(BaseModel):
    """Resolved conversion for one direction of one field."""

    direction: Direction
    conversion_type: ConversionType
    body: PlanBody
    render: RenderStrategy = RenderStrategy.INLINE_VALUE
    preserve_absence: bool = Field(
        False,
        description="Nil and empty containers must stay distinct.",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def converter_function(self) -> Optional[str]:
        if isinstance(self.body, ConverterCall):
            return self.body.function
        if isinstance(self.body, CollectionLoop):
            return self.body.element.function
        return None


# ---------------------------------------------------------------------------
# Field level results
# ---------------------------------------------------------------------------


class MergedField(BaseModel):
    """One entry of the effective target field list."""

    name: str
    origin_number: int = Field(
        ..., description="Source number if inherited, else the target's own."
    )
    field: SchemaField = Field(..., description="Effective declaration.")
    inherited: bool = Field(
        False, description="A same-named field exists in the source."
    )
    overridden: bool = Field(
        False, description="The target re-declared an inherited field."
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class FieldMapping(BaseModel):
    """Pairing of a source field and a merged target field with its plans."""

    name: str
    origin_number: int
    source_field: Optional[SchemaField] = None
    target_field: SchemaField
    to_target: Optional[ConversionPlan] = None
    from_target: Optional[ConversionPlan] = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    def plan(self, direction: Direction) -> Optional[ConversionPlan]:
        if direction == Direction.TO_TARGET:
            return self.to_target
        return self.from_target


class ImportSpec(BaseModel):
    path: str
    alias: str

    model_config = ConfigDict(extra="forbid", frozen=True)


class Diagnostic(BaseModel):
    """Non-fatal finding reported alongside a plan."""

    severity: Severity = Severity.WARNING
    code: DiagnosticCode
    message_name: str
    field_name: Optional[str] = None
    direction: Optional[Direction] = None
    source_type: Optional[str] = None
    target_type: Optional[str] = None
    detail: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)

    def render(self) -> str:
        where = self.message_name
        if self.field_name:
            where = f"{where}.{self.field_name}"
        types = ""
        if self.source_type or self.target_type:
            types = f" ({self.source_type} -> {self.target_type})"
        return f"{self.code.value}: {where}{types}: {self.detail}".rstrip(": ")


class MessagePlan(BaseModel):
    """Everything the emitter needs for one target message."""

    target: str = Field(..., description="Target message full name.")
    target_struct: str
    source: Optional[str] = Field(None, description="Source message full name.")
    source_type: Optional[str] = None
    table: Optional[str] = None
    fields: List[MergedField] = Field(default_factory=list)
    mappings: List[FieldMapping] = Field(default_factory=list)
    imports: List[ImportSpec] = Field(default_factory=list)
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    to_target_function: Optional[str] = None
    from_target_function: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def gaps(self) -> List[Diagnostic]:
        return [
            d for d in self.diagnostics if d.code == DiagnosticCode.CONVERSION_GAP
        ]

    def mapping(self, name: str) -> Optional[FieldMapping]:
        for m in self.mappings:
            if m.name == name:
                return m
        return None


class BatchPlan(BaseModel):
    """Result of one run over a schema batch."""

    messages: List[MessagePlan] = Field(default_factory=list)
    converters: List[str] = Field(
        default_factory=list,
        description="Converter pairs (Source:Target) generated for this batch.",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return [d for m in self.messages for d in m.diagnostics]

    def message(self, name: str) -> Optional[MessagePlan]:
        for m in self.messages:
            if m.target == name or m.target_struct == name:
                return m
        return None


__all__ = [
    "ConversionType",
    "Direction",
    "CollectionKind",
    "RenderGroup",
    "RenderStrategy",
    "Severity",
    "DiagnosticCode",
    "InlineExpression",
    "ConverterCall",
    "CollectionLoop",
    "PlanBody",
    "ConversionPlan",
    "MergedField",
    "FieldMapping",
    "ImportSpec",
    "Diagnostic",
    "MessagePlan",
    "BatchPlan",
]
