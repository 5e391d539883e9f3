"""Batch-scoped lookup of messages by name."""

from __future__ import annotations

import logging

from ..config import Backend
from .models import SchemaBatch, SchemaMessage

logger = logging.getLogger(__name__)


class MessageIndex:
    """
    Read-only index over every message of a batch.

    Messages are resolved by fully qualified name first and by short name
    when that short name is unambiguous within the batch.
    """

    def __init__(self, batch: SchemaBatch, backend: Backend = Backend.GENERIC):
        self._logger = logger.getChild(self.__class__.__name__)
        self._backend = backend
        self._messages = list(batch.messages)
        self._by_full_name = {m.full_name: m for m in self._messages}

        by_short: dict[str, list[SchemaMessage]] = {}
        for msg in self._messages:
            by_short.setdefault(msg.name, []).append(msg)
        self._by_short_name = {
            name: msgs[0] for name, msgs in by_short.items() if len(msgs) == 1
        }

        # source full name -> targets declaring it, in declaration order
        self._targets_by_source: dict[str, list[SchemaMessage]] = {}
        for msg in self._messages:
            if not msg.source:
                continue
            source = self.resolve(msg.source)
            if source is not None:
                self._targets_by_source.setdefault(source.full_name, []).append(msg)

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    @property
    def messages(self) -> list[SchemaMessage]:
        return list(self._messages)

    def resolve(self, name: str) -> SchemaMessage | None:
        """Return the message for a fully qualified or unambiguous short name."""
        name = name.lstrip(".")
        msg = self._by_full_name.get(name)
        if msg is None:
            msg = self._by_short_name.get(name)
        return msg

    def source_of(self, target: SchemaMessage) -> SchemaMessage | None:
        if not target.source:
            return None
        return self.resolve(target.source)

    def targets(self) -> list[SchemaMessage]:
        """Messages that declare a source reference, in declaration order."""
        return [m for m in self._messages if m.source]

    def entities(self) -> list[SchemaMessage]:
        """
        Messages that get a storage struct, in declaration order: every
        target plus standalone messages that declare a ``table``.
        """
        return [m for m in self._messages if m.source or m.table]

    def lookup_target_for(self, source_full_name: str) -> SchemaMessage | None:
        """First target (declaration order) that maps from the given source."""
        targets = self._targets_by_source.get(source_full_name, [])
        if len(targets) > 1:
            self._logger.debug(
                "Source %s has %d targets, using %s",
                source_full_name,
                len(targets),
                targets[0].full_name,
            )
        return targets[0] if targets else None

    # ------------------------------------------------------------------ #
    # Naming
    # ------------------------------------------------------------------ #

    def struct_name(self, message: SchemaMessage) -> str:
        """Name of the generated target struct for a message."""
        name = message.name
        if self._backend == Backend.GORM and name.endswith("Gorm"):
            name = name[: -len("Gorm")] + "GORM"
        return name

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, name: str) -> bool:
        return self.resolve(name) is not None
