# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Modifier propagation: variants of one action agree on an input's value."""

from __future__ import annotations

from collections.abc import Sequence

from interaction_inference.enums import EnumHeuristicSource
from interaction_inference.models.model_target import PreparedTarget
from interaction_inference.models.model_thresholds import HeuristicThresholds
from interaction_inference.strategies.base import (
    ConsensusThresholds,
    StrategyContext,
    action_key,
    group_targets,
)
from interaction_inference.strategies.helpers import apply_consensus


class ConsensusStrategy:
    """Groups by action, input, phase and field across variant signatures."""

    key = "consensus"

    def thresholds(self, thresholds: HeuristicThresholds) -> ConsensusThresholds:
        return ConsensusThresholds(
            min_group_size=thresholds.consensus_min_group_size,
            min_existing_ratio=thresholds.consensus_min_existing_ratio,
        )

    def prepare(self, targets: Sequence[PreparedTarget]) -> dict:
        return group_targets(
            targets,
            lambda t: (action_key(t), t.input_key, t.phase, t.field.value),
        )

    def suggest(self, context: StrategyContext) -> None:
        apply_consensus(
            context.state,
            context.suggestions,
            EnumHeuristicSource.MODIFIER_PROPAGATION,
            context.profile_prefs,
            context.thresholds,
            context.base_thresholds,
        )


consensus_strategy = ConsensusStrategy()


__all__ = ["ConsensusStrategy", "consensus_strategy"]
