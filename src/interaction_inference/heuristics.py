# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Heuristic strategy engine.

Prepares targets once per run, then executes the strategies in order over
one shared ``SuggestionTable``:

    1. consensus (modifier propagation)
    2. action group
    3. action property
    4. modifier profile
    5. phase adjacency
    6. input default
    7. profile trend

The engine is a pure function of its inputs: targets, an immutable
profile snapshot and thresholds. It never touches the note store.

Usage:
    >>> table = propose_interaction_inferences(targets, profiles=snapshot)
    >>> table.get(key, "outcome")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from interaction_inference.constants import DEFAULT_INTERACTION_SOURCE
from interaction_inference.models.model_note import describe_interaction_inference
from interaction_inference.models.model_suggestion import SuggestionTable
from interaction_inference.models.model_target import PreparedTarget, Target
from interaction_inference.models.model_thresholds import (
    DEFAULT_HEURISTIC_THRESHOLDS,
    HeuristicThresholds,
)
from interaction_inference.preferences import ProfilePreferences
from interaction_inference.profiles import ProfilesSnapshot
from interaction_inference.strategies import DEFAULT_INFERENCE_STRATEGIES
from interaction_inference.strategies.base import InferenceStrategy, StrategyContext
from interaction_inference.utils import (
    extract_note_field_value,
    normalize_action_id,
    normalize_input_key,
    normalize_variant_sig,
)

logger = logging.getLogger(__name__)


def _property_keys(properties: Iterable[object]) -> tuple[str, ...]:
    keys: list[str] = []
    for prop in properties or ():
        key = str(prop or "").strip().lower()
        if key and key not in keys:
            keys.append(key)
    return tuple(keys)


def prepare_targets(targets: Iterable[Target]) -> list[PreparedTarget]:
    """Normalize identifiers and provenance for every target."""
    prepared: list[PreparedTarget] = []
    for target in targets:
        current_value = extract_note_field_value(target.note, target.field)
        info = describe_interaction_inference(target.note)
        prepared.append(
            PreparedTarget(
                target=target,
                action_id=normalize_action_id(target.pair),
                variant_sig=normalize_variant_sig(target.pair),
                input_key=normalize_input_key(target.pair),
                action_group_key=(target.action_group or "").strip().lower(),
                property_keys=_property_keys(target.properties),
                current_value=current_value,
                source=info.source,
                is_manual=(
                    info.source == DEFAULT_INTERACTION_SOURCE and current_value is not None
                ),
                is_inferred=info.inferred,
            )
        )
    return prepared


def resolve_thresholds(
    thresholds: HeuristicThresholds | Mapping[str, Any] | None,
) -> HeuristicThresholds:
    """Accept a thresholds model or a partial override bag."""
    if isinstance(thresholds, HeuristicThresholds):
        return thresholds
    return DEFAULT_HEURISTIC_THRESHOLDS.with_overrides(thresholds)


def resolve_profiles(
    profiles: ProfilesSnapshot | Mapping[str, Any] | None,
) -> ProfilesSnapshot | None:
    if profiles is None or isinstance(profiles, ProfilesSnapshot):
        return profiles
    return ProfilesSnapshot.from_mapping(profiles)


def run_inference_strategies(
    prepared: Sequence[PreparedTarget],
    strategies: Iterable[InferenceStrategy],
    thresholds: HeuristicThresholds,
    profile_prefs: ProfilePreferences | None,
) -> SuggestionTable:
    """Run strategies in order over one shared suggestion table."""
    suggestions = SuggestionTable()
    for strategy in strategies:
        before = len(suggestions)
        context = StrategyContext(
            targets=prepared,
            state=strategy.prepare(prepared),
            thresholds=strategy.thresholds(thresholds),
            base_thresholds=thresholds,
            suggestions=suggestions,
            profile_prefs=profile_prefs,
        )
        strategy.suggest(context)
        logger.debug(
            "Strategy finished. key=%s new_slots=%d total=%d",
            strategy.key,
            len(suggestions) - before,
            len(suggestions),
        )
    return suggestions


def propose_interaction_inferences(
    targets: Iterable[Target],
    profiles: ProfilesSnapshot | Mapping[str, Any] | None = None,
    thresholds: HeuristicThresholds | Mapping[str, Any] | None = None,
    strategies: Sequence[InferenceStrategy] | None = None,
) -> SuggestionTable:
    """Propose values for the given targets.

    Args:
        targets: Evidence and candidate targets of the run.
        profiles: Profile snapshot (or its plain-mapping form); None
            disables the profile trend and the preference gate.
        thresholds: Thresholds model or partial override bag.
        strategies: Strategy sequence; defaults to the built-in order.

    Returns:
        Best suggestion per (target key, field).
    """
    resolved = resolve_thresholds(thresholds)
    snapshot = resolve_profiles(profiles)
    prepared = prepare_targets(targets)
    prefs = ProfilePreferences(snapshot, resolved) if snapshot is not None else None
    suggestions = run_inference_strategies(
        prepared,
        strategies if strategies is not None else DEFAULT_INFERENCE_STRATEGIES,
        resolved,
        prefs,
    )
    logger.debug(
        "Proposed interaction inferences. targets=%d suggestions=%d",
        len(prepared),
        len(suggestions),
    )
    return suggestions


__all__ = [
    "prepare_targets",
    "propose_interaction_inferences",
    "resolve_profiles",
    "resolve_thresholds",
    "run_inference_strategies",
]
