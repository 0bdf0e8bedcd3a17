# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Profile trend: propose the value history prefers for a target.

Needs a profile snapshot; without one the strategy is a no-op.
"""

from __future__ import annotations

from collections.abc import Sequence

from interaction_inference.enums import EnumHeuristicSource
from interaction_inference.models.model_target import PreparedTarget
from interaction_inference.models.model_thresholds import HeuristicThresholds
from interaction_inference.strategies.base import (
    ProfileTrendThresholds,
    StrategyContext,
)
from interaction_inference.strategies.helpers import (
    compute_suggestion_confidence,
    register_suggestion,
)


class ProfileTrendStrategy:
    key = "profile-trend"

    def thresholds(self, thresholds: HeuristicThresholds) -> ProfileTrendThresholds:
        return ProfileTrendThresholds(
            min_observations=thresholds.profile_trend_min_observations,
            min_preference_ratio=thresholds.profile_trend_min_preference_ratio,
        )

    def prepare(self, targets: Sequence[PreparedTarget]) -> Sequence[PreparedTarget]:
        return targets

    def suggest(self, context: StrategyContext) -> None:
        prefs = context.profile_prefs
        if prefs is None:
            return
        for target in context.state:
            if not target.eligible or not prefs.has_signal(target):
                continue
            if prefs.should_skip(target):
                continue
            preferred = prefs.preferred_value(target)
            summary = prefs.summary(target)
            if preferred is None or summary is None:
                continue
            confidence = compute_suggestion_confidence(
                EnumHeuristicSource.PROFILE_TREND,
                context.base_thresholds,
                preference_ratio=prefs.preference_ratio(target),
                support_count=summary.top_count,
            )
            register_suggestion(
                context.suggestions,
                target,
                EnumHeuristicSource.PROFILE_TREND,
                confidence,
                preferred,
                prefs,
            )


profile_trend_strategy = ProfileTrendStrategy()


__all__ = ["ProfileTrendStrategy", "profile_trend_strategy"]
