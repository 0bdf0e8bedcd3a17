# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Pair index value and an in-memory variant indexer.

``PairIndex`` is the concrete enumerated index the engine reads rows from.
``InMemoryVariantIndexer`` is a ``ProtocolVariantIndexer`` over
pre-generated pairs: the default index holds the regular rows, the extended
index adds the rows of bypassed variants. It performs no combinatorial
expansion of its own; hosts with a real variant engine implement the
protocol directly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from interaction_inference.models.model_pair import Pair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairIndex:
    """Enumerated row index.

    Attributes:
        pairs: Rows in display order.
        base_version: Indexer version the rows were built against.
    """

    pairs: tuple[Pair, ...]
    base_version: int = 0

    def get_pair(self, row_index: int) -> Pair | None:
        if 0 <= row_index < len(self.pairs):
            return self.pairs[row_index]
        return None

    def get_row_count(self) -> int:
        return len(self.pairs)


class InMemoryVariantIndexer:
    """Variant indexer over fixed default and bypass rows.

    Args:
        pairs: Rows of the default index.
        bypass_pairs: Rows that exist only when bypassed variants are
            included.
        index_version: Initial model-wide index version.
    """

    def __init__(
        self,
        pairs: Iterable[Pair],
        bypass_pairs: Iterable[Pair] = (),
        *,
        index_version: int = 1,
    ) -> None:
        self._pairs = tuple(pairs)
        self._bypass_pairs = tuple(bypass_pairs)
        self.index_version = index_version
        self.build_calls: list[tuple[int, ...] | None] = []

    def bump_version(self) -> int:
        """Record a structural change; invalidates every cached index."""
        self.index_version += 1
        return self.index_version

    def replace_pairs(
        self,
        pairs: Iterable[Pair],
        bypass_pairs: Iterable[Pair] = (),
    ) -> None:
        self._pairs = tuple(pairs)
        self._bypass_pairs = tuple(bypass_pairs)
        self.bump_version()

    def default_index(self) -> PairIndex:
        return PairIndex(pairs=self._pairs, base_version=self.index_version)

    def build_interactions_pairs(self, *, include_bypass: bool) -> PairIndex:
        self.build_calls.append(None)
        rows = self._extended_rows() if include_bypass else list(self._pairs)
        logger.debug(
            "Built interactions index. include_bypass=%s rows=%d",
            include_bypass,
            len(rows),
        )
        return PairIndex(pairs=tuple(rows), base_version=self.index_version)

    def build_scoped_interactions_pairs(
        self,
        action_ids: Sequence[int],
        *,
        include_bypass: bool,
    ) -> PairIndex:
        scoped = set(action_ids)
        self.build_calls.append(tuple(sorted(scoped)))
        source = self._extended_rows() if include_bypass else list(self._pairs)
        rows = [pair for pair in source if pair.a_id in scoped]
        logger.debug(
            "Built scoped interactions index. actions=%s rows=%d",
            sorted(scoped),
            len(rows),
        )
        return PairIndex(pairs=tuple(rows), base_version=self.index_version)

    def _extended_rows(self) -> list[Pair]:
        """Default rows with each action's bypass rows appended after them."""
        order: list[int | None] = []
        by_action: dict[int | None, list[Pair]] = {}
        for pair in (*self._pairs, *self._bypass_pairs):
            if pair.a_id not in by_action:
                order.append(pair.a_id)
                by_action[pair.a_id] = []
            by_action[pair.a_id].append(pair)
        return [pair for action_id in order for pair in by_action[action_id]]


__all__ = ["InMemoryVariantIndexer", "PairIndex"]
