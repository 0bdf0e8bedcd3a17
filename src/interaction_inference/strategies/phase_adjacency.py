# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Phase adjacency: fill phases bracketed by matching anchors."""

from __future__ import annotations

from collections.abc import Sequence

from interaction_inference.models.model_target import PreparedTarget
from interaction_inference.models.model_thresholds import HeuristicThresholds
from interaction_inference.strategies.base import (
    PhaseAdjacencyThresholds,
    StrategyContext,
    action_key,
    group_targets,
)
from interaction_inference.strategies.helpers import apply_phase_adjacency


class PhaseAdjacencyStrategy:
    """Groups phase-qualified targets by action, input and field."""

    key = "phase-adjacency"

    def thresholds(self, thresholds: HeuristicThresholds) -> PhaseAdjacencyThresholds:
        return PhaseAdjacencyThresholds(
            max_gap=thresholds.phase_adjacency_max_gap,
            enabled=thresholds.phase_adjacency_enabled,
        )

    def prepare(self, targets: Sequence[PreparedTarget]) -> dict:
        return group_targets(
            targets,
            lambda t: (
                None
                if t.phase is None
                else (action_key(t), t.input_key, t.field.value)
            ),
        )

    def suggest(self, context: StrategyContext) -> None:
        apply_phase_adjacency(
            context.state,
            context.suggestions,
            context.profile_prefs,
            context.thresholds,
            context.base_thresholds,
        )


phase_adjacency_strategy = PhaseAdjacencyStrategy()


__all__ = ["PhaseAdjacencyStrategy", "phase_adjacency_strategy"]
