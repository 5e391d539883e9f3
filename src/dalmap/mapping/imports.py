"""Import bookkeeping for converter packages referenced by a plan."""

from __future__ import annotations

from collections.abc import Iterable

from ..ir.plan import ImportSpec
from ..schema.models import ConverterFunc, SchemaField, package_alias


class ImportSet:
    """Imports keyed by path; the first alias registered for a path wins."""

    def __init__(self) -> None:
        self._specs: dict[str, ImportSpec] = {}

    def add(self, path: str, alias: str | None = None) -> None:
        if not path or path in self._specs:
            return
        self._specs[path] = ImportSpec(path=path, alias=alias or package_alias(path))

    def add_converter(self, func: ConverterFunc | None) -> None:
        if func is not None and func.package:
            self.add(func.package, func.effective_alias)

    def to_list(self) -> list[ImportSpec]:
        return [self._specs[path] for path in sorted(self._specs)]

    def __contains__(self, path: str) -> bool:
        return path in self._specs

    def __len__(self) -> int:
        return len(self._specs)


def collect_custom_converter_imports(
    fields: Iterable[SchemaField], imports: ImportSet | None = None
) -> ImportSet:
    """Register the packages of every to_func/from_func declared on fields."""
    imports = imports if imports is not None else ImportSet()
    for field in fields:
        imports.add_converter(field.annotations.to_func)
        imports.add_converter(field.annotations.from_func)
    return imports
