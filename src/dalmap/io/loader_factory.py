"""Choose the appropriate concrete loader and build a SchemaBatch."""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, Dict, Protocol, cast, runtime_checkable

from pydantic import ValidationError

from ..exceptions import SchemaLoadError
from ..schema.models import SchemaBatch
from .file_loader import FileLoader


@runtime_checkable
class LoaderProtocol(Protocol):
    """Required signature for every concrete loader."""

    supported_exts: ClassVar[set[str]]

    @staticmethod
    def load(path: str | Path) -> Dict[str, Any]: ...


class LoaderFactory:
    """Resolve a loader by file extension."""

    # Register new loaders here (order matters: first match wins).
    _LOADERS = (FileLoader,)

    @classmethod
    def resolve(cls, path: str | Path) -> type[LoaderProtocol]:
        """Return the first loader that *claims* to support the given path."""
        suffix = Path(path).suffix.lower()
        for loader in cls._LOADERS:
            if suffix in loader.supported_exts:
                return cast(type[LoaderProtocol], loader)

        raise SchemaLoadError(f"No loader found for: {path}", path=str(path))

    @classmethod
    def load_batch(cls, path: str | Path) -> SchemaBatch:
        return batch_from_dict(cls.resolve(path).load(path), origin=str(path))


def batch_from_dict(data: Dict[str, Any], origin: str | None = None) -> SchemaBatch:
    """Validate a raw mapping into a SchemaBatch (``{"messages": [...]}``)."""
    FileLoader.check_document(data, origin)
    try:
        return SchemaBatch.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise SchemaLoadError(f"Invalid schema: {problems}", path=origin) from exc
