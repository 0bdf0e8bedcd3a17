# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Shared scoring and registration helpers for the strategies.

Confidence Model:
    - Consensus sources (modifier propagation, modifier profile, action
      group, action property, input default): ``base * existing_ratio``.
    - Profile trend: ``base * preference_ratio + min(cap, step * support)``.
    - Phase adjacency: ``base / anchor_distance``.

    Every result is clamped to [0, 1].
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from interaction_inference.enums import EnumHeuristicSource
from interaction_inference.models.model_suggestion import Suggestion, SuggestionTable
from interaction_inference.models.model_target import PreparedTarget
from interaction_inference.models.model_thresholds import HeuristicThresholds
from interaction_inference.preferences import ProfilePreferences
from interaction_inference.strategies.base import (
    ConsensusThresholds,
    PhaseAdjacencyThresholds,
)
from interaction_inference.utils import clone_value, value_key

logger = logging.getLogger(__name__)

_BASE_CONFIDENCE_FIELDS: dict[EnumHeuristicSource, str] = {
    EnumHeuristicSource.MODIFIER_PROPAGATION: "modifier_propagation_confidence",
    EnumHeuristicSource.MODIFIER_PROFILE: "modifier_profile_confidence",
    EnumHeuristicSource.PHASE_ADJACENCY: "phase_adjacency_confidence",
    EnumHeuristicSource.ACTION_GROUP: "action_group_confidence",
    EnumHeuristicSource.ACTION_PROPERTY: "action_property_confidence",
    EnumHeuristicSource.PROFILE_TREND: "profile_trend_confidence",
    EnumHeuristicSource.INPUT_DEFAULT: "input_default_confidence",
}


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def base_confidence(source: EnumHeuristicSource | str, thresholds: HeuristicThresholds) -> float:
    return float(getattr(thresholds, _BASE_CONFIDENCE_FIELDS[EnumHeuristicSource(source)]))


def compute_suggestion_confidence(
    source: EnumHeuristicSource | str,
    thresholds: HeuristicThresholds,
    *,
    existing_ratio: float | None = None,
    preference_ratio: float | None = None,
    support_count: float | None = None,
    gap_distance: int | None = None,
) -> float:
    """Score a candidate of ``source`` from its evidence."""
    resolved = EnumHeuristicSource(source)
    base = base_confidence(resolved, thresholds)

    if resolved is EnumHeuristicSource.PROFILE_TREND:
        score = base * (preference_ratio if preference_ratio is not None else 1.0)
        if support_count is not None and support_count > 0:
            score += min(
                thresholds.profile_trend_support_bonus_cap,
                thresholds.profile_trend_support_bonus_step * support_count,
            )
        return _clamp(score)

    if resolved is EnumHeuristicSource.PHASE_ADJACENCY:
        distance = gap_distance if gap_distance and gap_distance > 0 else 1
        return _clamp(base / distance)

    if existing_ratio is None:
        return _clamp(base)
    return _clamp(base * existing_ratio)


def register_suggestion(
    suggestions: SuggestionTable,
    target: PreparedTarget,
    source: EnumHeuristicSource | str,
    confidence: float,
    value: Mapping[str, Any] | None,
    profile_prefs: ProfilePreferences | None = None,
    source_metadata: Mapping[str, Any] | None = None,
) -> bool:
    """Offer a candidate for ``target`` after the profile preference gate.

    Returns:
        True if the candidate now holds the target's slot.
    """
    if not value:
        return False
    if profile_prefs is not None and profile_prefs.should_skip(target, value):
        logger.debug(
            "Profile preference vetoed candidate. key=%s field=%s source=%s",
            target.key,
            target.field.value,
            EnumHeuristicSource(source).value,
        )
        return False
    candidate = Suggestion(
        source=EnumHeuristicSource(source).value,
        confidence=_clamp(confidence),
        value=clone_value(target.field, value),  # type: ignore[arg-type]
        source_metadata=copy.deepcopy(dict(source_metadata)) if source_metadata else None,
    )
    return suggestions.offer(target.key, target.field, candidate)


def apply_consensus(
    groups: Mapping[Any, Sequence[PreparedTarget]],
    suggestions: SuggestionTable,
    source: EnumHeuristicSource,
    profile_prefs: ProfilePreferences | None,
    thresholds: ConsensusThresholds,
    base_thresholds: HeuristicThresholds,
) -> int:
    """Propagate a unanimous anchor value to the eligible members of each group.

    A group qualifies when it has at least ``min_group_size`` members, at
    least one anchor, an anchor share of at least ``min_existing_ratio`` and
    exactly one distinct anchor value.

    Returns:
        Number of candidates that took a slot.
    """
    registered = 0
    for members in groups.values():
        total = len(members)
        if total < thresholds.min_group_size:
            continue
        anchors = [member for member in members if member.anchor_value is not None]
        if not anchors:
            continue
        existing_ratio = len(anchors) / total
        if existing_ratio < thresholds.min_existing_ratio:
            continue
        unique: dict[str, Mapping[str, Any]] = {}
        for anchor in anchors:
            key = value_key(anchor.field, anchor.anchor_value)
            if key:
                unique.setdefault(key, anchor.anchor_value)  # type: ignore[arg-type]
        if len(unique) != 1:
            continue
        value = next(iter(unique.values()))
        confidence = compute_suggestion_confidence(
            source, base_thresholds, existing_ratio=existing_ratio
        )
        for member in members:
            if not member.eligible:
                continue
            if register_suggestion(
                suggestions, member, source, confidence, value, profile_prefs
            ):
                registered += 1
    return registered


def _split_by_variant(
    members: Iterable[PreparedTarget],
) -> dict[str, list[PreparedTarget]]:
    chains: dict[str, list[PreparedTarget]] = {}
    for member in members:
        chains.setdefault(member.variant_sig, []).append(member)
    return chains


def apply_phase_adjacency(
    groups: Mapping[Any, Sequence[PreparedTarget]],
    suggestions: SuggestionTable,
    profile_prefs: ProfilePreferences | None,
    thresholds: PhaseAdjacencyThresholds,
    base_thresholds: HeuristicThresholds,
) -> int:
    """Fill gaps between phases that carry the same value and source.

    Each group is walked per row (one chain per variant signature) in phase
    order. Two consecutive anchors bracket a gap when they share value key
    and source, lie at most ``max_gap`` phases apart, and no interior phase
    holds a different value or source. Eligible interior targets receive
    the anchor value at ``base / distance``.

    Returns:
        Number of candidates that took a slot.
    """
    if not thresholds.enabled:
        return 0
    source = EnumHeuristicSource.PHASE_ADJACENCY
    metadata = {"sources": [source.value]}
    registered = 0
    for members in groups.values():
        for chain in _split_by_variant(members).values():
            ordered = sorted(
                (member for member in chain if member.phase is not None),
                key=lambda member: member.phase,  # type: ignore[arg-type, return-value]
            )
            anchors = [member for member in ordered if member.anchor_value is not None]
            for low, high in zip(anchors, anchors[1:]):
                distance = high.phase - low.phase  # type: ignore[operator]
                if distance <= 1 or distance > thresholds.max_gap:
                    continue
                anchor_key = value_key(low.field, low.anchor_value)
                if anchor_key != value_key(high.field, high.anchor_value):
                    continue
                if low.source != high.source:
                    continue
                interior = [
                    member
                    for member in ordered
                    if low.phase < member.phase < high.phase  # type: ignore[operator]
                ]
                if any(
                    member.has_value
                    and (
                        value_key(member.field, member.current_value) != anchor_key
                        or member.source != low.source
                    )
                    for member in interior
                ):
                    continue
                confidence = compute_suggestion_confidence(
                    source, base_thresholds, gap_distance=distance
                )
                for member in interior:
                    if not member.eligible:
                        continue
                    if register_suggestion(
                        suggestions,
                        member,
                        source,
                        confidence,
                        low.anchor_value,
                        profile_prefs,
                        source_metadata=metadata,
                    ):
                        registered += 1
    return registered


__all__ = [
    "apply_consensus",
    "apply_phase_adjacency",
    "base_confidence",
    "compute_suggestion_confidence",
    "register_suggestion",
]
