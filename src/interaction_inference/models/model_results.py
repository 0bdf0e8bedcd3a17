# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Result and event models returned by the application engine.

The engine never fires notifications itself. Tag changes are collected as
``TagChangeEvent`` values on the result and dispatched once by the
controller after the mutation completes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from interaction_inference.models.model_pair import Pair
from interaction_inference.models.model_thresholds import HeuristicThresholds


@dataclass(frozen=True)
class TagChangeEvent:
    """Notification that a run changed interaction tags.

    Attributes:
        reason: ``"inference"`` for writes, ``"clearInference"`` for clears.
        kind: ``"set"`` or ``"remove"``.
        note_key: Note whose tags were removed (clears only).
        pair: Row of the removed tags (clears only).
        phase: Phase of the removed tags (clears only).
        tags: Removed tags (clears only).
        force: Listeners should refresh even without a diff.
    """

    reason: str
    kind: str
    note_key: str | None = None
    pair: Pair | None = None
    phase: int | None = None
    tags: tuple[str, ...] = ()
    force: bool = False

    @property
    def count(self) -> int:
        return len(self.tags)


@dataclass
class ApplyResult:
    """Aggregate counts of one inference run.

    ``thresholds`` holds the merged thresholds the run used.
    """

    applied: int = 0
    skipped_manual: int = 0
    skipped_manual_outcome: int = 0
    skipped_existing: int = 0
    empty: int = 0
    sources: dict[str, int] = field(default_factory=dict)
    allowed: bool = True
    status: str | None = None
    tag_events: list[TagChangeEvent] = field(default_factory=list)
    thresholds: HeuristicThresholds | None = None

    def count_source(self, source: str) -> None:
        self.sources[source] = self.sources.get(source, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "applied": self.applied,
            "skipped_manual": self.skipped_manual,
            "skipped_manual_outcome": self.skipped_manual_outcome,
            "skipped_existing": self.skipped_existing,
            "empty": self.empty,
            "sources": dict(self.sources),
            "allowed": self.allowed,
            "status": self.status,
        }


@dataclass
class ClearResult:
    """Aggregate counts of one clear request."""

    cleared: int = 0
    skipped_manual: int = 0
    allowed: bool = True
    status: str | None = None
    tag_events: list[TagChangeEvent] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cleared": self.cleared,
            "skipped_manual": self.skipped_manual,
            "allowed": self.allowed,
            "status": self.status,
        }


__all__ = ["ApplyResult", "ClearResult", "TagChangeEvent"]
