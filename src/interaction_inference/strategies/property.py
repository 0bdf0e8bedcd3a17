# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Action property similarity.

Same two groupings as the action group strategy, keyed by each of the
action's property labels instead of its group. A target with several
properties joins one group per property.
"""

from __future__ import annotations

from collections.abc import Sequence

from interaction_inference.enums import EnumHeuristicSource
from interaction_inference.models.model_target import PreparedTarget
from interaction_inference.models.model_thresholds import HeuristicThresholds
from interaction_inference.strategies.action_group import PairedGroups
from interaction_inference.strategies.base import (
    ConsensusThresholds,
    PairedConsensusThresholds,
    StrategyContext,
)
from interaction_inference.strategies.helpers import apply_consensus


class PropertyStrategy:
    key = "action-property"

    def thresholds(self, thresholds: HeuristicThresholds) -> PairedConsensusThresholds:
        return PairedConsensusThresholds(
            input=ConsensusThresholds(
                min_group_size=thresholds.action_property_min_group_size,
                min_existing_ratio=thresholds.action_property_min_existing_ratio,
            ),
            phase=ConsensusThresholds(
                min_group_size=thresholds.action_property_phase_min_group_size,
                min_existing_ratio=thresholds.action_property_phase_min_existing_ratio,
            ),
            enabled=thresholds.action_property_enabled,
        )

    def prepare(self, targets: Sequence[PreparedTarget]) -> PairedGroups:
        by_input: dict[tuple, list[PreparedTarget]] = {}
        by_phase: dict[tuple, list[PreparedTarget]] = {}
        for target in targets:
            for prop in target.property_keys:
                by_input.setdefault(
                    (prop, target.input_key, target.phase, target.field.value), []
                ).append(target)
                by_phase.setdefault(
                    (prop, target.phase, target.field.value), []
                ).append(target)
        return PairedGroups(by_input=by_input, by_phase=by_phase)

    def suggest(self, context: StrategyContext) -> None:
        thresholds: PairedConsensusThresholds = context.thresholds
        if not thresholds.enabled:
            return
        state: PairedGroups = context.state
        for groups, floors in (
            (state.by_input, thresholds.input),
            (state.by_phase, thresholds.phase),
        ):
            if groups:
                apply_consensus(
                    groups,
                    context.suggestions,
                    EnumHeuristicSource.ACTION_PROPERTY,
                    context.profile_prefs,
                    floors,
                    context.base_thresholds,
                )


property_strategy = PropertyStrategy()


__all__ = ["PropertyStrategy", "property_strategy"]
