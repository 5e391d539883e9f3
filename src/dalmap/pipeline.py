"""
MappingPipeline – high-level orchestration from schema batch to BatchPlan.

Responsibilities
----------------
1.   Accept a filesystem path (str/Path), a pre-parsed dict or a SchemaBatch.
2.   Run the validation pass over the whole batch (fail closed, all errors).
3.   Build the converter dependency registry once.
4.   Plan every storage entity (targets and standalone tables) and return
     an immutable BatchPlan.

Conversion gaps never fail the run; they are logged and carried in the plan.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from .config import EngineSettings
from .exceptions import DalMapError
from .io.loader_factory import LoaderFactory, batch_from_dict
from .ir.plan import BatchPlan, MessagePlan
from .mapping.context import ResolutionContext
from .mapping.planner import MessagePlanner
from .mapping.registry import ConverterRegistry
from .schema.index import MessageIndex
from .schema.models import SchemaBatch
from .validation import ValidationPass

logger = logging.getLogger(__name__)


class MappingPipeline:
    """End-to-end planner: schema batch → BatchPlan."""

    def __init__(
        self,
        source: str | Path | Dict[str, Any] | SchemaBatch,
        settings: EngineSettings | None = None,
    ) -> None:
        """
        Parameters
        ----------
        source
            Path/str to .yaml, .yml, .json, an in-memory dict or a SchemaBatch.
        settings
            Engine settings; defaults apply when omitted.
        """
        if isinstance(source, SchemaBatch):
            self._batch = source
        elif isinstance(source, (str, Path)):
            logger.debug("Loading schema file: %s", source)
            self._batch = LoaderFactory.load_batch(source)
        elif isinstance(source, dict):
            logger.debug("Using in-memory schema dictionary")
            self._batch = batch_from_dict(source)
        else:
            raise DalMapError(
                "MappingPipeline: source must be Path | str | dict | SchemaBatch"
            )

        self._settings = settings or EngineSettings()

    @property
    def batch(self) -> SchemaBatch:
        return self._batch

    def run(self) -> BatchPlan:
        """Return the plan for every target message (raises on violations)."""
        index = MessageIndex(self._batch, self._settings.backend)

        report = ValidationPass(index, self._settings).validate()
        for warning in report.warnings:
            logger.warning(warning.render())

        registry = ConverterRegistry.build(index)
        planner = MessagePlanner(ResolutionContext(index, registry, self._settings))

        plans: list[MessagePlan] = []
        for target in index.entities():
            plan = planner.plan(target)
            if report.warnings:
                own = [w for w in report.warnings if w.message_name == target.full_name]
                if own:
                    plan = plan.model_copy(
                        update={"diagnostics": [*own, *plan.diagnostics]}
                    )
            plans.append(plan)

        result = BatchPlan(
            messages=plans,
            converters=[f"{p.source}:{p.target}" for p in registry],
        )

        gaps = sum(len(p.gaps) for p in plans)
        logger.info(
            "Planning succeeded – %d message(s), %d converter(s), %d gap(s)",
            len(plans),
            len(registry),
            gaps,
        )
        return result
