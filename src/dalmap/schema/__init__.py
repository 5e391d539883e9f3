from .index import MessageIndex
from .models import (
    Cardinality,
    ConverterFunc,
    FieldAnnotations,
    FieldKind,
    ScalarKind,
    SchemaBatch,
    SchemaField,
    SchemaMessage,
)

__all__ = [
    "Cardinality",
    "ConverterFunc",
    "FieldAnnotations",
    "FieldKind",
    "MessageIndex",
    "ScalarKind",
    "SchemaBatch",
    "SchemaField",
    "SchemaMessage",
]
