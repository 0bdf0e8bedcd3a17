# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Modifier profile: one action variant behaves the same against every input."""

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


class ModifierProfileStrategy:
    """Groups by action, variant signature, phase and field across inputs.

    Shares the consensus floors with modifier propagation.
    """

    key = "modifier-profile"

    def thresholds(self, thresholds: HeuristicThresholds) -> ConsensusThresholds:
        return ConsensusThresholds(
            min_group_size=thresholds.consensus_min_group_size,
            min_existing_ratio=thresholds.consensus_min_existing_ratio,
        )

    def prepare(self, targets: Sequence[PreparedTarget]) -> dict:
        return group_targets(
            targets,
            lambda t: (action_key(t), t.variant_sig, t.phase, t.field.value),
        )

    def suggest(self, context: StrategyContext) -> None:
        apply_consensus(
            context.state,
            context.suggestions,
            EnumHeuristicSource.MODIFIER_PROFILE,
            context.profile_prefs,
            context.thresholds,
            context.base_thresholds,
        )


modifier_profile_strategy = ModifierProfileStrategy()


__all__ = ["ModifierProfileStrategy", "modifier_profile_strategy"]
