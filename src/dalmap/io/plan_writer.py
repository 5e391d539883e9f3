"""Serialize a BatchPlan to YAML for the external emitter."""

from __future__ import annotations

import logging
from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from ..ir.plan import BatchPlan

logger = logging.getLogger(__name__)


class PlanWriter:
    """YAML dumper with stable key order and block style."""

    def __init__(self) -> None:
        self._yaml = YAML()
        self._configure_yaml()

    def _configure_yaml(self) -> None:
        self._yaml.indent(mapping=2, sequence=4, offset=2)
        self._yaml.default_flow_style = False
        self._yaml.allow_unicode = True
        self._yaml.width = 4096

    @staticmethod
    def to_data(plan: BatchPlan) -> dict[str, Any]:
        return plan.model_dump(mode="json", exclude_none=True)

    def dumps(self, plan: BatchPlan) -> str:
        buffer = StringIO()
        self._yaml.dump(self.to_data(plan), buffer)
        return buffer.getvalue()

    def save(self, plan: BatchPlan, output_file: str | Path) -> Path:
        path = Path(output_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.dumps(plan), encoding="utf-8")
        logger.info("Plan written to %s (%d message(s))", path, len(plan.messages))
        return path
