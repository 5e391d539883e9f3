"""Converter dependency registry: which converters exist in this batch."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import NamedTuple

from ..schema.index import MessageIndex

logger = logging.getLogger(__name__)


class TypePair(NamedTuple):
    """Structural key of a generated converter."""

    source: str  # fully qualified source message name
    target: str  # target struct name


class ConverterRegistry:
    """
    Immutable set of (source type, target type) pairs that will have
    generated converter functions.

    Built once per batch, before any field is resolved, and passed explicitly
    into every resolution call. Field resolution only needs to know that a
    dependency *exists*, so messages may reference each other in any order.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: dict[TypePair, str]) -> None:
        # pair -> short source name used in function names
        self._pairs = dict(pairs)

    @classmethod
    def build(cls, index: MessageIndex) -> "ConverterRegistry":
        """Scan every target message that declares a resolvable source."""
        pairs: dict[TypePair, str] = {}
        for target in index.targets():
            source = index.source_of(target)
            if source is None:
                logger.debug(
                    "No converter for %s: source %r unresolved",
                    target.full_name,
                    target.source,
                )
                continue
            pair = TypePair(source.full_name, index.struct_name(target))
            pairs[pair] = source.name

        logger.debug("Converter registry built with %d pair(s)", len(pairs))
        return cls(pairs)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def has_converter(self, pair: TypePair) -> bool:
        return pair in self._pairs

    def converter_names(self, pair: TypePair) -> tuple[str, str]:
        """
        Names of the generated (to, from) converter functions.

        Raises:
            KeyError: if the pair is not registered
        """
        source_name = self._pairs[pair]
        return (
            f"{source_name}To{pair.target}",
            f"{source_name}From{pair.target}",
        )

    def __contains__(self, pair: object) -> bool:
        return pair in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)

    def __iter__(self) -> Iterator[TypePair]:
        return iter(sorted(self._pairs))

    def __setattr__(self, name: str, value: object) -> None:
        if hasattr(self, "_pairs"):
            raise AttributeError("ConverterRegistry is read-only")
        super().__setattr__(name, value)
