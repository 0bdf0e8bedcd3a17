# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Action group similarity.

Actions sharing a group label are expected to interact alike. Two
groupings are evaluated, each with its own floors:

    - per input: group, input, phase, field
    - phase-wide: group, phase, field (stricter defaults)

Targets of ungrouped actions take no part.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from interaction_inference.enums import EnumHeuristicSource
from interaction_inference.models.model_target import PreparedTarget
from interaction_inference.models.model_thresholds import HeuristicThresholds
from interaction_inference.strategies.base import (
    ConsensusThresholds,
    PairedConsensusThresholds,
    StrategyContext,
    group_targets,
)
from interaction_inference.strategies.helpers import apply_consensus


@dataclass(frozen=True)
class PairedGroups:
    by_input: dict
    by_phase: dict


class ActionGroupStrategy:
    key = "action-group"

    def thresholds(self, thresholds: HeuristicThresholds) -> PairedConsensusThresholds:
        return PairedConsensusThresholds(
            input=ConsensusThresholds(
                min_group_size=thresholds.action_group_min_group_size,
                min_existing_ratio=thresholds.action_group_min_existing_ratio,
            ),
            phase=ConsensusThresholds(
                min_group_size=thresholds.action_group_phase_min_group_size,
                min_existing_ratio=thresholds.action_group_phase_min_existing_ratio,
            ),
        )

    def prepare(self, targets: Sequence[PreparedTarget]) -> PairedGroups:
        grouped = [t for t in targets if t.action_group_key]
        return PairedGroups(
            by_input=group_targets(
                grouped,
                lambda t: (t.action_group_key, t.input_key, t.phase, t.field.value),
            ),
            by_phase=group_targets(
                grouped,
                lambda t: (t.action_group_key, t.phase, t.field.value),
            ),
        )

    def suggest(self, context: StrategyContext) -> None:
        state: PairedGroups = context.state
        thresholds: PairedConsensusThresholds = context.thresholds
        for groups, floors in (
            (state.by_input, thresholds.input),
            (state.by_phase, thresholds.phase),
        ):
            if groups:
                apply_consensus(
                    groups,
                    context.suggestions,
                    EnumHeuristicSource.ACTION_GROUP,
                    context.profile_prefs,
                    floors,
                    context.base_thresholds,
                )


action_group_strategy = ActionGroupStrategy()


__all__ = ["ActionGroupStrategy", "PairedGroups", "action_group_strategy"]
