# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Profile preferences: what learned history says about one target.

``ProfilePreferences`` reads an immutable ``ProfilesSnapshot`` and answers
three questions per target, using the merged summary of the target's input
profile and each of its modifier profiles (phase bucket when present, else
the all-phase bucket):

    - ``has_signal``: enough change/no-effect observations to trust a trend.
    - ``preferred_value``: the histogram's top value, when its share of the
      observations clears the minimum preference ratio.
    - ``should_skip``: the preference gate. History that is mostly
      "no effect" vetoes candidates that disagree with its top value.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from interaction_inference.models.model_target import PreparedTarget
from interaction_inference.models.model_thresholds import HeuristicThresholds
from interaction_inference.profiles import ProfileSummary, ProfilesSnapshot
from interaction_inference.utils import value_key


class ProfilePreferences:
    """Per-run view of profile history, memoized by (target key, field)."""

    def __init__(self, snapshot: ProfilesSnapshot, thresholds: HeuristicThresholds) -> None:
        self._snapshot = snapshot
        self._thresholds = thresholds
        self._summaries: dict[tuple[str, str], ProfileSummary | None] = {}

    def summary(self, target: PreparedTarget) -> ProfileSummary | None:
        memo_key = (target.key, target.field.value)
        if memo_key not in self._summaries:
            self._summaries[memo_key] = self._snapshot.summarize(
                target.pair, target.field, target.phase
            )
        return self._summaries[memo_key]

    def has_signal(self, target: PreparedTarget) -> bool:
        summary = self.summary(target)
        if summary is None or summary.observations <= 0:
            return False
        return summary.observations >= self._thresholds.profile_trend_min_observations

    def preference_ratio(self, target: PreparedTarget) -> float | None:
        summary = self.summary(target)
        if summary is None or summary.observations <= 0 or not summary.top_key:
            return None
        return summary.top_count / summary.observations

    def preferred_value(self, target: PreparedTarget) -> Mapping[str, Any] | None:
        summary = self.summary(target)
        ratio = self.preference_ratio(target)
        if summary is None or ratio is None:
            return None
        if ratio < self._thresholds.profile_trend_min_preference_ratio:
            return None
        return summary.top_value

    def should_skip(
        self,
        target: PreparedTarget,
        value: Mapping[str, Any] | None = None,
    ) -> bool:
        """True when no-effect history vetoes ``value`` for this target.

        Without a value, any target with no-effect dominated history is
        skipped.
        """
        summary = self.summary(target)
        if summary is None:
            return False
        observations = summary.observations
        if observations <= 0:
            return False
        if observations < self._thresholds.profile_preference_min_observations:
            return False
        if summary.noop / observations < self._thresholds.profile_preference_noop_ratio:
            return False
        if value is None:
            return True
        return value_key(target.field, value) != summary.top_key


__all__ = ["ProfilePreferences"]
