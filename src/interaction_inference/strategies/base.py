# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Strategy protocol, per-run context and strategy threshold views.

A strategy is a small object with four members:

    - ``key``: stable identifier.
    - ``thresholds(t)``: pick the knobs it needs from ``HeuristicThresholds``.
    - ``prepare(targets)``: group prepared targets into its own state.
    - ``suggest(context)``: register candidates into the suggestion table.

Strategies run in a fixed order over a shared ``SuggestionTable``; the
table's replacement rule makes the outcome independent of that order for
candidates of different confidence.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from interaction_inference.models.model_suggestion import SuggestionTable
from interaction_inference.models.model_target import PreparedTarget
from interaction_inference.models.model_thresholds import HeuristicThresholds
from interaction_inference.preferences import ProfilePreferences


@dataclass(frozen=True)
class ConsensusThresholds:
    """Group-size and agreement floors for one consensus grouping."""

    min_group_size: int
    min_existing_ratio: float


@dataclass(frozen=True)
class PairedConsensusThresholds:
    """Thresholds for strategies grouping both per input and per phase."""

    input: ConsensusThresholds
    phase: ConsensusThresholds
    enabled: bool = True


@dataclass(frozen=True)
class PhaseAdjacencyThresholds:
    max_gap: int
    enabled: bool = True


@dataclass(frozen=True)
class ProfileTrendThresholds:
    min_observations: float
    min_preference_ratio: float


@dataclass(frozen=True)
class StrategyContext:
    """Everything a strategy's ``suggest`` step may read or write.

    Attributes:
        targets: All prepared targets of the run.
        state: Whatever the strategy's ``prepare`` returned.
        thresholds: Whatever the strategy's ``thresholds`` returned.
        base_thresholds: Full thresholds of the run (base confidences).
        suggestions: Shared suggestion table.
        profile_prefs: Profile preferences, or None without a snapshot.
    """

    targets: Sequence[PreparedTarget]
    state: Any
    thresholds: Any
    base_thresholds: HeuristicThresholds
    suggestions: SuggestionTable
    profile_prefs: ProfilePreferences | None


@runtime_checkable
class InferenceStrategy(Protocol):
    """One pluggable heuristic."""

    key: str

    def thresholds(self, thresholds: HeuristicThresholds) -> Any: ...

    def prepare(self, targets: Sequence[PreparedTarget]) -> Any: ...

    def suggest(self, context: StrategyContext) -> None: ...


def group_targets(
    targets: Iterable[PreparedTarget],
    key_fn: Callable[[PreparedTarget], Hashable | None],
) -> dict[Hashable, list[PreparedTarget]]:
    """Group targets by key, preserving first-seen order; None keys are dropped."""
    groups: dict[Hashable, list[PreparedTarget]] = {}
    for target in targets:
        key = key_fn(target)
        if key is None:
            continue
        groups.setdefault(key, []).append(target)
    return groups


def action_key(target: PreparedTarget) -> str:
    return "" if target.action_id is None else str(target.action_id)


__all__ = [
    "ConsensusThresholds",
    "InferenceStrategy",
    "PairedConsensusThresholds",
    "PhaseAdjacencyThresholds",
    "ProfileTrendThresholds",
    "StrategyContext",
    "action_key",
    "group_targets",
]
