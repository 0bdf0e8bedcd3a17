# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Unit tests for the heuristic strategy engine.

Covers each strategy's grouping and floors, the confidence model, the
suggestion replacement rule across strategies, and the profile preference
gate.
"""

from __future__ import annotations

from typing import Any

import pytest

from interaction_inference.enums import EnumHeuristicSource, EnumNoteField
from interaction_inference.heuristics import propose_interaction_inferences
from interaction_inference.models import (
    HeuristicThresholds,
    Pair,
    Target,
    note_key_for_pair,
)
from interaction_inference.strategies import (
    DEFAULT_INFERENCE_STRATEGIES,
    InferenceStrategy,
)
from interaction_inference.strategies.helpers import compute_suggestion_confidence

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_target(
    a_id: int,
    i_id: int,
    phase: int = 1,
    value: dict[str, Any] | None = None,
    *,
    sig: str = "",
    field: EnumNoteField = EnumNoteField.OUTCOME,
    provenance: dict[str, Any] | None = None,
    group: str = "",
    properties: tuple[str, ...] = (),
    allow_inferred_existing: bool = False,
) -> Target:
    pair = Pair(a_id=a_id, i_id=i_id, variant_sig=sig)
    note = None
    if value is not None or provenance:
        note = {**(value or {}), **(provenance or {})}
    return Target(
        key=note_key_for_pair(pair, phase),
        field=field,
        phase=phase,
        note=note,
        pair=pair,
        action_group=group,
        allow_inferred_targets=True,
        allow_inferred_existing=allow_inferred_existing,
        properties=properties,
    )


def _outcome(outcome_id: int) -> dict[str, Any]:
    return {"outcome_id": outcome_id}


def _trend_profiles(
    phase: int,
    *,
    change: float = 0,
    noop: float = 0,
    outcome_id: int = 42,
    count: float = 0,
) -> dict[str, Any]:
    return {
        "input": {
            "in:10": {
                "outcome": {
                    "phases": {
                        phase: {
                            "change": change,
                            "noop": noop,
                            "values": {
                                f"o:{outcome_id}": {
                                    "count": count,
                                    "value": {"outcome_id": outcome_id},
                                }
                            },
                        }
                    }
                }
            }
        }
    }


@pytest.mark.unit
class TestConfidenceModel:
    def test_consensus_sources_scale_by_ratio(self) -> None:
        t = HeuristicThresholds()
        assert compute_suggestion_confidence(
            "modifier-propagation", t, existing_ratio=0.5
        ) == pytest.approx(0.41)
        assert compute_suggestion_confidence(
            EnumHeuristicSource.INPUT_DEFAULT, t, existing_ratio=0.5
        ) == pytest.approx(0.24)

    def test_profile_trend_support_bonus_is_capped(self) -> None:
        t = HeuristicThresholds()
        assert compute_suggestion_confidence(
            "profile-trend", t, preference_ratio=1.0, support_count=6
        ) == pytest.approx(0.62)
        assert compute_suggestion_confidence(
            "profile-trend", t, preference_ratio=1.0, support_count=50
        ) == pytest.approx(0.66)

    def test_phase_adjacency_divides_by_distance(self) -> None:
        t = HeuristicThresholds()
        assert compute_suggestion_confidence(
            "phase-adjacency", t, gap_distance=2
        ) == pytest.approx(0.31)

    def test_scores_are_clamped(self) -> None:
        t = HeuristicThresholds(profile_trend_confidence=1.0)
        assert compute_suggestion_confidence(
            "profile-trend", t, preference_ratio=1.0, support_count=10
        ) == 1.0


@pytest.mark.unit
class TestConsensus:
    def test_modifier_propagation_beats_input_default(self) -> None:
        anchor = _make_target(1, 10, value=_outcome(5))
        empty = _make_target(1, 10, sig="3")
        table = propose_interaction_inferences([anchor, empty])

        suggestion = table.get(empty.key, "outcome")
        assert suggestion is not None
        assert suggestion.source == "modifier-propagation"
        assert suggestion.confidence == pytest.approx(0.41)
        assert suggestion.value == {"outcome_id": 5}
        assert table.get(anchor.key, "outcome") is None

    def test_ratio_below_floor_yields_nothing(self) -> None:
        targets = [
            _make_target(1, 10, value=_outcome(5)),
            _make_target(1, 10, sig="3"),
            _make_target(1, 10, sig="4"),
        ]
        assert len(propose_interaction_inferences(targets)) == 0

    def test_disagreeing_anchors_fall_back_to_input_default(self) -> None:
        empty = _make_target(1, 10, sig="4")
        targets = [
            _make_target(1, 10, value=_outcome(5)),
            _make_target(1, 10, sig="3", value=_outcome(6)),
            empty,
        ]
        suggestion = propose_interaction_inferences(targets).get(empty.key, "outcome")
        assert suggestion.source == "input-default"
        assert suggestion.confidence == pytest.approx(0.48 * 2 / 3)
        assert suggestion.value == {"outcome_id": 5}

    def test_group_size_floor(self) -> None:
        empty = _make_target(1, 10, sig="3")
        table = propose_interaction_inferences(
            [_make_target(1, 10, value=_outcome(5)), empty],
            thresholds={"consensusMinGroupSize": 3},
        )
        assert table.get(empty.key, "outcome").source == "input-default"

    def test_inferred_values_only_anchor_when_allowed(self) -> None:
        inferred = {"source": "input-default", "confidence": 0.24}
        empty = _make_target(1, 10, sig="3")
        table = propose_interaction_inferences(
            [_make_target(1, 10, value=_outcome(5), provenance=inferred), empty]
        )
        assert table.get(empty.key, "outcome") is None

        opted = _make_target(
            1, 10, value=_outcome(5), provenance=inferred, allow_inferred_existing=True
        )
        table = propose_interaction_inferences([opted, empty])
        assert table.get(empty.key, "outcome").value == {"outcome_id": 5}

    def test_tag_consensus(self) -> None:
        empty = _make_target(1, 10, sig="3", field=EnumNoteField.TAG)
        anchor = _make_target(1, 10, value={"tags": ["stun", "Hit"]}, field=EnumNoteField.TAG)
        suggestion = propose_interaction_inferences([anchor, empty]).get(empty.key, "tag")
        assert suggestion.value == {"tags": ["stun", "Hit"]}

    def test_end_consensus(self) -> None:
        value = {"end_action_id": 9, "end_variant_sig": "2"}
        empty = _make_target(1, 10, sig="3", field=EnumNoteField.END)
        anchor = _make_target(1, 10, value=value, field=EnumNoteField.END)
        suggestion = propose_interaction_inferences([anchor, empty]).get(empty.key, "end")
        assert suggestion.value == value


@pytest.mark.unit
class TestGroupStrategies:
    def test_action_group_fills_across_actions(self) -> None:
        empty = _make_target(1, 10, group="Strikes")
        targets = [empty, _make_target(2, 10, value=_outcome(5), group="strikes")]
        suggestion = propose_interaction_inferences(targets).get(empty.key, "outcome")
        assert suggestion.source == "action-group"
        assert suggestion.confidence == pytest.approx(0.30)

    def test_action_group_does_not_displace_stronger_consensus(self) -> None:
        empty = _make_target(1, 10, sig="3", group="Strikes")
        targets = [
            _make_target(1, 10, value=_outcome(5), group="Strikes"),
            empty,
            _make_target(2, 10, value=_outcome(5), group="Strikes"),
        ]
        suggestion = propose_interaction_inferences(targets).get(empty.key, "outcome")
        assert suggestion.source == "modifier-propagation"
        assert suggestion.confidence == pytest.approx(0.41)

    def test_modifier_profile_beats_action_group(self) -> None:
        empty = _make_target(1, 11, sig="3", group="Strikes")
        targets = [
            _make_target(1, 10, sig="3", value=_outcome(5), group="Strikes"),
            empty,
            _make_target(2, 11, value=_outcome(7), group="Strikes"),
        ]
        suggestion = propose_interaction_inferences(targets).get(empty.key, "outcome")
        assert suggestion.source == "modifier-profile"
        assert suggestion.confidence == pytest.approx(0.32)
        assert suggestion.value == {"outcome_id": 5}

    def test_action_property_groups_by_normalized_label(self) -> None:
        empty = _make_target(1, 10, properties=(" FAST ",))
        targets = [empty, _make_target(2, 10, value=_outcome(5), properties=("fast",))]
        suggestion = propose_interaction_inferences(targets).get(empty.key, "outcome")
        assert suggestion.source == "action-property"
        assert suggestion.confidence == pytest.approx(0.29)

    def test_action_property_can_be_disabled(self) -> None:
        empty = _make_target(1, 10, properties=("fast",))
        targets = [empty, _make_target(2, 10, value=_outcome(5), properties=("fast",))]
        table = propose_interaction_inferences(
            targets, thresholds={"actionPropertyEnabled": False}
        )
        assert table.get(empty.key, "outcome") is None


@pytest.mark.unit
class TestPhaseAdjacency:
    def test_fills_gap_between_matching_anchors(self) -> None:
        targets = [
            _make_target(1, 10, 1, _outcome(5)),
            _make_target(1, 10, 2),
            _make_target(1, 10, 3),
            _make_target(1, 10, 4, _outcome(5)),
        ]
        table = propose_interaction_inferences(targets)
        for target in targets[1:3]:
            suggestion = table.get(target.key, "outcome")
            assert suggestion.source == "phase-adjacency"
            assert suggestion.confidence == pytest.approx(0.62 / 3)
            assert suggestion.source_metadata == {"sources": ["phase-adjacency"]}

    def test_gap_beyond_max_is_ignored(self) -> None:
        targets = [_make_target(1, 10, 1, _outcome(5))]
        targets += [_make_target(1, 10, phase) for phase in range(2, 6)]
        targets.append(_make_target(1, 10, 6, _outcome(5)))
        assert len(propose_interaction_inferences(targets)) == 0

    def test_conflicting_interior_blocks_fill(self) -> None:
        inferred = {"source": "input-default", "confidence": 0.3}
        targets = [
            _make_target(1, 10, 1, _outcome(5)),
            _make_target(1, 10, 2, _outcome(6), provenance=inferred),
            _make_target(1, 10, 3),
            _make_target(1, 10, 4, _outcome(5)),
        ]
        table = propose_interaction_inferences(targets)
        assert table.get(targets[1].key, "outcome") is None
        assert table.get(targets[2].key, "outcome") is None

    def test_different_values_do_not_bracket(self) -> None:
        targets = [
            _make_target(1, 10, 1, _outcome(5)),
            _make_target(1, 10, 2),
            _make_target(1, 10, 3, _outcome(6)),
        ]
        assert len(propose_interaction_inferences(targets)) == 0

    def test_chains_are_split_per_variant(self) -> None:
        targets = [
            _make_target(1, 10, 1, _outcome(5)),
            _make_target(1, 10, 2, sig="3"),
            _make_target(1, 10, 3, _outcome(5)),
        ]
        assert propose_interaction_inferences(targets).get(targets[1].key, "outcome") is None

    def test_can_be_disabled(self) -> None:
        targets = [
            _make_target(1, 10, 1, _outcome(5)),
            _make_target(1, 10, 2),
            _make_target(1, 10, 3, _outcome(5)),
        ]
        table = propose_interaction_inferences(targets, thresholds={"phaseAdjacencyEnabled": False})
        assert len(table) == 0

    def test_noop_history_vetoes_one_interior_phase(self) -> None:
        targets = [_make_target(1, 10, phase) for phase in range(5)]
        targets[0] = _make_target(1, 10, 0, _outcome(7))
        targets[4] = _make_target(1, 10, 4, _outcome(7))
        profiles = _trend_profiles(1, noop=5, outcome_id=999, count=5)

        table = propose_interaction_inferences(targets, profiles=profiles)

        assert table.get(targets[1].key, "outcome") is None
        for target in targets[2:4]:
            suggestion = table.get(target.key, "outcome")
            assert suggestion.source == "phase-adjacency"
            assert suggestion.confidence == pytest.approx(0.155)


@pytest.mark.unit
class TestProfileTrend:
    def test_trend_fills_single_target(self) -> None:
        target = _make_target(1, 10)
        table = propose_interaction_inferences(
            [target], profiles=_trend_profiles(1, change=6, count=6)
        )
        suggestion = table.get(target.key, "outcome")
        assert suggestion.source == "profile-trend"
        assert suggestion.confidence == pytest.approx(0.62)
        assert suggestion.value == {"outcome_id": 42}

    def test_trend_outranks_consensus(self) -> None:
        empty = _make_target(1, 10, sig="3")
        table = propose_interaction_inferences(
            [_make_target(1, 10, value=_outcome(5)), empty],
            profiles=_trend_profiles(1, change=10, count=10),
        )
        suggestion = table.get(empty.key, "outcome")
        assert suggestion.source == "profile-trend"
        assert suggestion.confidence == pytest.approx(0.66)

    def test_no_profile_means_no_trend(self) -> None:
        assert len(propose_interaction_inferences([_make_target(1, 10)])) == 0

    def test_noop_history_suppresses_trend(self) -> None:
        target = _make_target(1, 10)
        table = propose_interaction_inferences(
            [target], profiles=_trend_profiles(1, noop=5, count=5)
        )
        assert table.get(target.key, "outcome") is None


@pytest.mark.unit
class TestPreferenceGate:
    def test_noop_history_vetoes_disagreeing_consensus(self) -> None:
        empty = _make_target(1, 10, sig="3")
        table = propose_interaction_inferences(
            [_make_target(1, 10, value=_outcome(5)), empty],
            profiles=_trend_profiles(1, noop=5, outcome_id=9, count=5),
        )
        assert table.get(empty.key, "outcome") is None

    def test_noop_history_allows_matching_consensus(self) -> None:
        empty = _make_target(1, 10, sig="3")
        table = propose_interaction_inferences(
            [_make_target(1, 10, value=_outcome(5)), empty],
            profiles=_trend_profiles(1, noop=5, outcome_id=5, count=5),
        )
        assert table.get(empty.key, "outcome").source == "modifier-propagation"


@pytest.mark.unit
class TestStrategySequence:
    def test_default_order(self) -> None:
        assert [s.key for s in DEFAULT_INFERENCE_STRATEGIES] == [
            "consensus",
            "action-group",
            "action-property",
            "modifier-profile",
            "phase-adjacency",
            "input-default",
            "profile-trend",
        ]
        assert all(isinstance(s, InferenceStrategy) for s in DEFAULT_INFERENCE_STRATEGIES)

    def test_empty_sequence_proposes_nothing(self) -> None:
        targets = [_make_target(1, 10, value=_outcome(5)), _make_target(1, 10, sig="3")]
        assert len(propose_interaction_inferences(targets, strategies=[])) == 0

    def test_proposals_do_not_alias_notes(self) -> None:
        tags = ["stun"]
        anchor = _make_target(1, 10, value={"tags": tags}, field=EnumNoteField.TAG)
        empty = _make_target(1, 10, sig="3", field=EnumNoteField.TAG)
        suggestion = propose_interaction_inferences([anchor, empty]).get(empty.key, "tag")
        tags.append("mutated")
        assert suggestion.value == {"tags": ["stun"]}
