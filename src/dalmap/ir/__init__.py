from .plan import (
    BatchPlan,
    CollectionKind,
    CollectionLoop,
    ConversionPlan,
    ConversionType,
    ConverterCall,
    Diagnostic,
    DiagnosticCode,
    Direction,
    FieldMapping,
    ImportSpec,
    InlineExpression,
    MergedField,
    MessagePlan,
    RenderGroup,
    RenderStrategy,
    Severity,
)

__all__ = [
    "BatchPlan",
    "CollectionKind",
    "CollectionLoop",
    "ConversionPlan",
    "ConversionType",
    "ConverterCall",
    "Diagnostic",
    "DiagnosticCode",
    "Direction",
    "FieldMapping",
    "ImportSpec",
    "InlineExpression",
    "MergedField",
    "MessagePlan",
    "RenderGroup",
    "RenderStrategy",
    "Severity",
]
