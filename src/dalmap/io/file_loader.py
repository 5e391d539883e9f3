"""
Schema document loader for local files.

A schema document is a mapping with a ``messages`` list, one entry per
source or target message. This module reads and parses the file and checks
that document shape; validating each message is left to ``SchemaBatch``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Dict

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..exceptions import SchemaLoadError

logger = logging.getLogger(__name__)

_yaml_parser = YAML(typ="safe")

_PARSERS: Dict[str, Callable[[str], Any]] = {
    ".yaml": _yaml_parser.load,
    ".yml": _yaml_parser.load,
    ".json": json.loads,
}


def _type_label(value: Any) -> str:
    if isinstance(value, list):
        return "a list"
    if value is None:
        return "empty"
    return f"a {type(value).__name__}"


class FileLoader:
    """Load a schema document (``{"messages": [...]}``) from YAML or JSON."""

    supported_exts: set[str] = set(_PARSERS)

    @staticmethod
    def load(path: str | Path) -> Dict[str, Any]:
        file_path = Path(path)
        origin = str(file_path)

        parse = _PARSERS.get(file_path.suffix.lower())
        if parse is None:
            raise SchemaLoadError(
                f"Unsupported extension '{file_path.suffix}' for a schema "
                f"document (use {', '.join(sorted(_PARSERS))})",
                path=origin,
            )
        try:
            text = file_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            logger.error("Schema file not found: %s", file_path)
            raise SchemaLoadError(
                f"File not found: {file_path}", path=origin
            ) from exc

        try:
            document = parse(text)
        except (YAMLError, json.JSONDecodeError) as exc:
            raise SchemaLoadError(
                f"Cannot parse {file_path.name}: {exc}", path=origin
            ) from exc

        FileLoader.check_document(document, origin)
        logger.debug(
            "Schema document %s: %d message(s)",
            file_path.name,
            len(document["messages"]),
        )
        return document

    @staticmethod
    def check_document(document: Any, origin: str | None = None) -> None:
        """Require a mapping whose ``messages`` entry is a list."""
        if not isinstance(document, dict):
            raise SchemaLoadError(
                f"Schema document must be a mapping with a 'messages' list, "
                f"got {_type_label(document)}",
                path=origin,
            )
        if "messages" not in document:
            raise SchemaLoadError(
                "Schema document has no 'messages' entry "
                f"(keys: {', '.join(sorted(map(str, document))) or 'none'})",
                path=origin,
            )
        if not isinstance(document["messages"], list):
            raise SchemaLoadError(
                f"'messages' must be a list, got {_type_label(document['messages'])}",
                path=origin,
            )
