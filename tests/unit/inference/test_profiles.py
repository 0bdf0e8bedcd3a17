# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Unit tests for the profile store, snapshots and profile preferences."""

from __future__ import annotations

import pytest

from interaction_inference.config import InferenceSettings, ProfileDecayPolicy
from interaction_inference.enums import EnumNoteField, EnumProfileImpact
from interaction_inference.heuristics import prepare_targets
from interaction_inference.models import Pair, Target, note_key_for_pair
from interaction_inference.models.model_thresholds import DEFAULT_HEURISTIC_THRESHOLDS
from interaction_inference.preferences import ProfilePreferences
from interaction_inference.profiles import (
    ProfilesSnapshot,
    ProfileStore,
    compute_impact,
)

PAIR = Pair(a_id=1, i_id=10, variant_sig="3")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_store(factor: float = 1.0, interval: int = 50) -> ProfileStore:
    return ProfileStore(ProfileDecayPolicy(factor=factor, interval=interval))


def _record(store: ProfileStore, outcome_id: int | None, **kwargs) -> None:
    store.record_impact(
        pair=PAIR,
        field="outcome",
        next_value={"outcome_id": outcome_id} if outcome_id is not None else None,
        phase=1,
        **kwargs,
    )


def _prepared(pair: Pair, phase: int = 1):
    target = Target(
        key=note_key_for_pair(pair, phase),
        field=EnumNoteField.OUTCOME,
        phase=phase,
        note=None,
        pair=pair,
    )
    return prepare_targets([target])[0]


def _bucket(change: float = 0, noop: float = 0, values: dict[int, float] | None = None) -> dict:
    return {
        "change": change,
        "noop": noop,
        "values": {
            f"o:{outcome}": {"count": count, "value": {"outcome_id": outcome}}
            for outcome, count in (values or {}).items()
        },
    }


@pytest.mark.unit
class TestComputeImpact:
    def test_same_value_is_noop(self) -> None:
        assert compute_impact("outcome", {"outcome_id": 1}, {"outcome_id": 1}) is EnumProfileImpact.NOOP

    def test_new_value_is_change(self) -> None:
        assert compute_impact("outcome", None, {"outcome_id": 1}) is EnumProfileImpact.CHANGE

    def test_removed_value_is_clear(self) -> None:
        assert compute_impact("outcome", {"outcome_id": 1}, None) is EnumProfileImpact.CLEAR

    def test_nothing_to_nothing_is_noop(self) -> None:
        assert compute_impact("tag", None, None) is EnumProfileImpact.NOOP


@pytest.mark.unit
class TestProfileStore:
    def test_change_updates_input_and_modifier_profiles(self) -> None:
        store = _make_store()
        _record(store, 7)
        snapshot = store.capture_snapshot()

        outcome = snapshot.input["in:10"].field_snapshot("outcome")
        assert outcome.all.change == 1.0
        assert outcome.phases["1"].values["o:7"].count == 1.0
        assert snapshot.modifier[3].field_snapshot("outcome").all.change == 1.0

    def test_inferred_writes_are_ignored_when_manual_only(self) -> None:
        store = _make_store()
        _record(store, 7, inferred=True, manual_only=True)
        assert store.pending_impacts == 0
        assert not store.capture_snapshot().input

    def test_negative_delta_rolls_back(self) -> None:
        store = _make_store()
        _record(store, 7)
        _record(store, 7, inferred=True, delta=-1)
        bucket = store.capture_snapshot().input["in:10"].field_snapshot("outcome").all
        assert bucket.change == 0.0
        assert "o:7" not in bucket.values

    def test_counters_never_go_negative(self) -> None:
        store = _make_store()
        _record(store, 7, delta=-1)
        bucket = store.capture_snapshot().input["in:10"].field_snapshot("outcome").all
        assert bucket.change == 0.0

    def test_zero_delta_and_unknown_field_are_ignored(self) -> None:
        store = _make_store()
        _record(store, 7, delta=0)
        store.record_impact(pair=PAIR, field="notes", next_value={"outcome_id": 1})
        assert store.pending_impacts == 0

    def test_scheduled_decay(self) -> None:
        store = _make_store(factor=0.5, interval=2)
        _record(store, 7)
        _record(store, 7)
        assert store.pending_impacts == 0
        snapshot = store.capture_snapshot()
        # Capture applies one more decay pass.
        bucket = snapshot.input["in:10"].field_snapshot("outcome").all
        assert bucket.change == pytest.approx(0.5)
        assert bucket.values["o:7"].count == pytest.approx(0.5)

    def test_negligible_histogram_entries_are_dropped(self) -> None:
        store = ProfileStore(ProfileDecayPolicy(factor=0.1, interval=50, negligible_count=0.5))
        _record(store, 7)
        bucket = store.capture_snapshot().input["in:10"].field_snapshot("outcome").all
        assert "o:7" not in bucket.values
        assert bucket.change == pytest.approx(0.1)

    def test_snapshot_is_immutable_and_detached(self) -> None:
        store = _make_store()
        _record(store, 7)
        snapshot = store.capture_snapshot()
        with pytest.raises(TypeError):
            snapshot.input["in:99"] = snapshot.input["in:10"]  # type: ignore[index]
        _record(store, 8)
        assert "o:8" not in snapshot.input["in:10"].field_snapshot("outcome").all.values

    def test_tag_values_are_frozen_as_tuples(self) -> None:
        store = _make_store()
        store.record_impact(pair=PAIR, field="tag", next_value={"tags": ["stun"]})
        entry = store.capture_snapshot().input["in:10"].field_snapshot("tag").all.values["t:stun"]
        assert entry.value["tags"] == ("stun",)

    def test_reset(self) -> None:
        store = _make_store()
        _record(store, 7)
        store.reset()
        assert store.pending_impacts == 0
        assert not store.capture_snapshot().modifier

    def test_create_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INFERENCE_PROFILE_DECAY_INTERVAL", "7")
        assert ProfileStore.create(InferenceSettings()).decay_policy.interval == 7


@pytest.mark.unit
class TestProfilesSnapshot:
    def test_from_mapping_ignores_malformed_entries(self) -> None:
        snapshot = ProfilesSnapshot.from_mapping(
            {
                "modifier": {"x": {}, "3": {"outcome": {"all": {"change": "many"}}}},
                "input": {"in:10": "junk"},
            }
        )
        assert list(snapshot.modifier) == [3]
        assert snapshot.modifier[3].field_snapshot("outcome").all.change == 0.0
        assert not snapshot.input

    def test_summary_merges_profiles_and_breaks_ties_by_key(self) -> None:
        snapshot = ProfilesSnapshot.from_mapping(
            {
                "input": {"in:10": {"outcome": {"all": _bucket(change=2, values={9: 2})}}},
                "modifier": {3: {"outcome": {"all": _bucket(change=2, noop=1, values={4: 2})}}},
            }
        )
        summary = snapshot.summarize(PAIR, "outcome", None)
        assert summary is not None
        assert summary.observations == 5
        assert summary.top_key == "o:4"
        assert summary.top_count == 2

    def test_phase_bucket_falls_back_to_all(self) -> None:
        snapshot = ProfilesSnapshot.from_mapping(
            {"input": {"in:10": {"outcome": {"all": _bucket(change=1), "phases": {2: _bucket(noop=4)}}}}}
        )
        assert snapshot.summarize(PAIR, "outcome", 2).noop == 4
        assert snapshot.summarize(PAIR, "outcome", 5).change == 1

    def test_summary_without_profiles(self) -> None:
        assert ProfilesSnapshot().summarize(PAIR, "outcome", 1) is None


@pytest.mark.unit
class TestProfilePreferences:
    def _prefs(self, bucket: dict) -> ProfilePreferences:
        snapshot = ProfilesSnapshot.from_mapping(
            {"input": {"in:10": {"outcome": {"phases": {1: bucket}}}}}
        )
        return ProfilePreferences(snapshot, DEFAULT_HEURISTIC_THRESHOLDS)

    def test_signal_and_preferred_value(self) -> None:
        prefs = self._prefs(_bucket(change=6, values={42: 6}))
        target = _prepared(PAIR)
        assert prefs.has_signal(target)
        assert prefs.preference_ratio(target) == 1.0
        assert prefs.preferred_value(target) == {"outcome_id": 42}

    def test_weak_preference_yields_no_value(self) -> None:
        prefs = self._prefs(_bucket(change=6, values={42: 3, 43: 3}))
        assert prefs.preferred_value(_prepared(PAIR)) is None

    def test_too_few_observations_have_no_signal(self) -> None:
        prefs = self._prefs(_bucket(change=2, values={42: 2}))
        assert not prefs.has_signal(_prepared(PAIR))

    def test_noop_history_vetoes_other_values(self) -> None:
        prefs = self._prefs(_bucket(noop=5, values={999: 5}))
        target = _prepared(PAIR)
        assert prefs.should_skip(target, {"outcome_id": 7})
        assert not prefs.should_skip(target, {"outcome_id": 999})
        assert prefs.should_skip(target)

    def test_change_history_never_vetoes(self) -> None:
        prefs = self._prefs(_bucket(change=5, noop=1, values={999: 5}))
        assert not prefs.should_skip(_prepared(PAIR), {"outcome_id": 7})

    def test_unrelated_pair_has_no_summary(self) -> None:
        prefs = self._prefs(_bucket(noop=5, values={999: 5}))
        other = _prepared(Pair(a_id=1, i_id=11))
        assert prefs.summary(other) is None
        assert not prefs.should_skip(other, {"outcome_id": 7})
