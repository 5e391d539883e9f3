"""dalmap – field merge and converter planning for storage entities."""

from .config import EngineSettings
from .exceptions import (
    AnnotationError,
    DalMapError,
    SchemaLoadError,
    SchemaValidationError,
    StructuralError,
)
from .pipeline import MappingPipeline

__all__ = [
    "EngineSettings",
    "MappingPipeline",
    "DalMapError",
    "SchemaLoadError",
    "StructuralError",
    "AnnotationError",
    "SchemaValidationError",
]
