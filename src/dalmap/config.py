"""Engine settings shared by every stage of a run."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from ruamel.yaml import YAML

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_yaml_parser = YAML(typ="safe")


class Backend(str, Enum):
    """Storage backend the target messages are written for."""

    GORM = "gorm"
    DATASTORE = "datastore"
    GENERIC = "generic"


class EngineSettings(BaseModel):
    """Knobs for naming, helper packages and diagnostics."""

    backend: Backend = Field(
        Backend.GENERIC, description="Naming convention for target structs."
    )
    helpers_package: str = Field(
        "dal/converters",
        description="Import path of the runtime helpers for well-known types.",
    )
    helpers_alias: str | None = Field(
        None, description="Import alias for the helpers package."
    )
    warn_on_narrowing: bool = Field(
        True, description="Record a warning for lossy numeric casts."
    )
    serializer_hints: bool = Field(
        True,
        description="Warn about GORM collections stored without a serializer tag.",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("helpers_package")
    @classmethod
    def _package_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("helpers_package must not be empty")
        return v.strip()

    @property
    def effective_helpers_alias(self) -> str:
        if self.helpers_alias:
            return self.helpers_alias
        return self.helpers_package.rstrip("/").rsplit("/", 1)[-1]

    # ------------------------------------------------------------------ #
    # Construction helpers
    # ------------------------------------------------------------------ #

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "EngineSettings":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            first = exc.errors()[0]
            setting = ".".join(str(p) for p in first.get("loc", ()))
            raise ConfigurationError(
                f"Invalid engine settings: {first.get('msg')}", setting=setting
            ) from exc

    @classmethod
    def from_file(cls, path: str | Path) -> "EngineSettings":
        """Load settings from a YAML file (top-level mapping)."""
        file_path = Path(path)
        if not file_path.exists():
            raise ConfigurationError(f"Settings file not found: {file_path}")

        data = _yaml_parser.load(file_path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ConfigurationError("Settings file must contain a mapping")

        logger.debug("Loaded settings from %s (%d key(s))", file_path, len(data))
        return cls.from_mapping(data)

    def with_overrides(self, **overrides: Any) -> "EngineSettings":
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if not values:
            return self
        return self.from_mapping({**self.model_dump(), **values})
