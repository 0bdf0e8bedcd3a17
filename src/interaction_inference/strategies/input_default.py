# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Input default: reuse the first known value for an action and input.

Unlike the consensus strategies, anchors need not agree; the first anchor
in target order supplies the value.
"""

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
from interaction_inference.strategies.helpers import (
    compute_suggestion_confidence,
    register_suggestion,
)


class InputDefaultStrategy:
    key = "input-default"

    def thresholds(self, thresholds: HeuristicThresholds) -> ConsensusThresholds:
        return ConsensusThresholds(
            min_group_size=thresholds.input_default_min_group_size,
            min_existing_ratio=thresholds.input_default_min_existing_ratio,
        )

    def prepare(self, targets: Sequence[PreparedTarget]) -> dict:
        return group_targets(
            targets,
            lambda t: (action_key(t), t.input_key, t.phase, t.field.value),
        )

    def suggest(self, context: StrategyContext) -> None:
        thresholds: ConsensusThresholds = context.thresholds
        for members in context.state.values():
            total = len(members)
            if total < thresholds.min_group_size:
                continue
            anchors = [member for member in members if member.anchor_value is not None]
            if not anchors:
                continue
            existing_ratio = len(anchors) / total
            if existing_ratio < thresholds.min_existing_ratio:
                continue
            confidence = compute_suggestion_confidence(
                EnumHeuristicSource.INPUT_DEFAULT,
                context.base_thresholds,
                existing_ratio=existing_ratio,
            )
            value = anchors[0].anchor_value
            for member in members:
                if member.eligible:
                    register_suggestion(
                        context.suggestions,
                        member,
                        EnumHeuristicSource.INPUT_DEFAULT,
                        confidence,
                        value,
                        context.profile_prefs,
                    )


input_default_strategy = InputDefaultStrategy()


__all__ = ["InputDefaultStrategy", "input_default_strategy"]
