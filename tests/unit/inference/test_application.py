# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Unit tests for applying suggestions and clearing inferred values."""

from __future__ import annotations

from typing import Any

import pytest

from interaction_inference.application import (
    apply_suggestions,
    clear_inferred,
    merge_thresholds,
)
from interaction_inference.enums import EnumNoteField
from interaction_inference.models import (
    DEFAULT_HEURISTIC_THRESHOLDS,
    InferenceOptions,
    Pair,
    TagChangeEvent,
    Target,
    note_key_for_pair,
)
from interaction_inference.note_store import InMemoryNoteStore
from interaction_inference.profiles import ProfileStore

BASE = Pair(a_id=1, i_id=10)
VARIANT = Pair(a_id=1, i_id=10, variant_sig="3")
INFERRED = {"source": "input-default", "confidence": 0.24}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _targets(
    store: InMemoryNoteStore,
    field: EnumNoteField = EnumNoteField.OUTCOME,
    pairs: tuple[Pair, ...] = (BASE, VARIANT),
    *,
    overwrite_inferred: bool = True,
) -> list[Target]:
    """Phase 1 targets reading their notes from ``store``."""
    targets = []
    for row, pair in enumerate(pairs):
        key = note_key_for_pair(pair, 1)
        targets.append(
            Target(
                key=key,
                field=field,
                phase=1,
                note=store.get(key),
                pair=pair,
                row=row,
                allow_inferred_targets=overwrite_inferred,
            )
        )
    return targets


def _apply(
    store: InMemoryNoteStore,
    targets: list[Target],
    payload: dict[str, Any] | None = None,
    **kwargs: Any,
):
    return apply_suggestions(
        note_store=store,
        targets=targets,
        suggestion_targets=targets,
        options=InferenceOptions.from_payload(payload),
        **kwargs,
    )


def _store(notes: dict[str, dict[str, Any]]) -> InMemoryNoteStore:
    return InMemoryNoteStore({key: dict(note) for key, note in notes.items()})


BASE_KEY = note_key_for_pair(BASE, 1)
VARIANT_KEY = note_key_for_pair(VARIANT, 1)


@pytest.mark.unit
class TestApplySuggestions:
    def test_writes_value_and_provenance(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}})
        result = _apply(store, _targets(store))

        assert result.applied == 1
        assert result.sources == {"modifier-propagation": 1}
        assert store.get(VARIANT_KEY) == {
            "outcome_id": 5,
            "confidence": 0.41,
            "source": "modifier-propagation",
        }
        assert store.get(BASE_KEY) == {"outcome_id": 5}

    def test_empty_targets_are_counted(self) -> None:
        store = _store({})
        result = _apply(store, _targets(store))
        assert result.applied == 0
        assert result.empty == 2
        assert len(store) == 0

    def test_manual_outcome_guards_other_fields(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}})
        result = _apply(
            store, _targets(store, EnumNoteField.TAG, (BASE,)), {"skipManualOutcome": True}
        )
        assert result.skipped_manual_outcome == 1
        assert result.applied == 0

    def test_manual_values_are_skipped(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}})
        result = _apply(store, _targets(store, pairs=(BASE,)), {"skipManualOutcome": True})
        assert result.skipped_manual == 1

    def test_inferred_notes_kept_without_overwrite(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}, VARIANT_KEY: {"outcome_id": 9, **INFERRED}})
        targets = _targets(store, overwrite_inferred=False)
        result = _apply(store, targets, {"overwriteInferred": False})
        assert result.skipped_existing == 1
        assert store.get(VARIANT_KEY)["outcome_id"] == 9

    def test_only_fill_empty(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}})
        result = _apply(store, _targets(store), {"onlyFillEmpty": True})
        assert result.skipped_existing == 1
        assert result.applied == 1

    def test_inferred_values_are_overwritten(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}, VARIANT_KEY: {"outcome_id": 9, **INFERRED}})
        result = _apply(store, _targets(store))
        assert result.applied == 1
        assert store.get(VARIANT_KEY) == {
            "outcome_id": 5,
            "confidence": 0.41,
            "source": "modifier-propagation",
        }

    def test_result_value_replaces_outcome_id(self) -> None:
        store = _store({BASE_KEY: {"result": "Stagger"}, VARIANT_KEY: {"outcome_id": 9, **INFERRED}})
        _apply(store, _targets(store))
        note = store.get(VARIANT_KEY)
        assert note["result"] == "Stagger"
        assert "outcome_id" not in note

    def test_default_provenance_is_stamped_without_suggestion(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 9, **INFERRED}})
        result = _apply(
            store,
            _targets(store, pairs=(BASE,)),
            {"defaultConfidence": 0.5, "defaultSource": "import"},
        )
        assert result.applied == 1
        assert result.sources == {}
        assert store.get(BASE_KEY) == {"outcome_id": 9, "confidence": 0.5, "source": "import"}

    def test_default_provenance_never_relabels_manual_values(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}})
        result = _apply(
            store,
            _targets(store, pairs=(BASE,)),
            {"defaultConfidence": 0.5, "defaultSource": "import"},
        )
        assert result.applied == 0
        assert store.get(BASE_KEY) == {"outcome_id": 5}

    def test_manual_value_in_other_field_blocks_write(self) -> None:
        store = _store({BASE_KEY: {"tags": ["stun"]}, VARIANT_KEY: {"outcome_id": 7}})
        result = _apply(store, _targets(store, EnumNoteField.TAG))
        assert result.applied == 0
        assert result.skipped_manual == 1
        assert store.get(VARIANT_KEY) == {"outcome_id": 7}

    def test_tag_writes_emit_one_set_event(self) -> None:
        store = _store({BASE_KEY: {"tags": ["stun"]}})
        result = _apply(store, _targets(store, EnumNoteField.TAG))
        assert store.get(VARIANT_KEY)["tags"] == ["stun"]
        assert result.tag_events == [TagChangeEvent(reason="inference", kind="set", force=True)]

    def test_unchanged_tags_emit_no_event(self) -> None:
        store = _store({BASE_KEY: {"tags": ["stun"]}, VARIANT_KEY: {"tags": ["stun"], **INFERRED}})
        result = _apply(store, _targets(store, EnumNoteField.TAG))
        assert result.applied == 1
        assert result.tag_events == []

    def test_threshold_overrides_are_merged(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}})
        result = _apply(store, _targets(store), {"thresholdOverrides": {"consensusMinGroupSize": 3}})
        assert result.sources == {"input-default": 1}
        assert store.get(VARIANT_KEY)["confidence"] == pytest.approx(0.24)
        assert result.thresholds.consensus_min_group_size == 3

    def test_only_requested_targets_are_written(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}})
        evidence = _targets(store)
        result = apply_suggestions(
            note_store=store,
            targets=evidence[:1],
            suggestion_targets=evidence,
            options=InferenceOptions(),
        )
        assert result.applied == 0
        assert VARIANT_KEY not in store

    def test_engine_writes_do_not_train_profiles(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}})
        profiles = ProfileStore()
        _apply(store, _targets(store), profile_store=profiles)
        assert profiles.pending_impacts == 0


@pytest.mark.unit
class TestClearInferred:
    def test_round_trip_restores_original_notes(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5}})
        original = store.snapshot()
        _apply(store, _targets(store))

        result = clear_inferred(note_store=store, targets=_targets(store))

        assert result.cleared == 1
        assert result.skipped_manual == 1
        assert store.snapshot() == original

    def test_round_trip_keeps_manual_note_with_other_field(self) -> None:
        store = _store({BASE_KEY: {"tags": ["stun"]}, VARIANT_KEY: {"outcome_id": 7}})
        original = store.snapshot()
        _apply(store, _targets(store, EnumNoteField.TAG))

        targets = _targets(store) + _targets(store, EnumNoteField.TAG)
        clear_inferred(note_store=store, targets=targets)

        assert store.snapshot() == original

    def test_round_trip_across_fields_of_one_note(self) -> None:
        store = _store({BASE_KEY: {"outcome_id": 5, "tags": ["stun"]}})
        original = store.snapshot()
        targets = _targets(store) + _targets(store, EnumNoteField.TAG)
        result = _apply(store, targets)
        assert result.applied == 2
        assert store.get(VARIANT_KEY)["tags"] == ["stun"]

        cleared = clear_inferred(note_store=store, targets=targets)

        assert cleared.cleared == 2
        assert store.snapshot() == original

    def test_missing_notes_are_ignored(self) -> None:
        result = clear_inferred(note_store=_store({}), targets=_targets(_store({})))
        assert result.cleared == 0
        assert result.skipped_manual == 0

    def test_other_fields_survive_and_stay_inferred(self) -> None:
        store = _store({VARIANT_KEY: {"outcome_id": 5, "tags": ["stun"], **INFERRED}})
        result = clear_inferred(
            note_store=store, targets=_targets(store, EnumNoteField.TAG, (VARIANT,))
        )
        assert result.cleared == 1
        assert store.get(VARIANT_KEY) == {"outcome_id": 5, **INFERRED}

    def test_tag_clear_reports_removed_tags(self) -> None:
        store = _store({VARIANT_KEY: {"tags": ["stun", "air"], **INFERRED}})
        result = clear_inferred(
            note_store=store, targets=_targets(store, EnumNoteField.TAG, (VARIANT,))
        )
        assert VARIANT_KEY not in store
        assert result.tag_events == [
            TagChangeEvent(
                reason="clearInference",
                kind="remove",
                note_key=VARIANT_KEY,
                pair=VARIANT,
                phase=1,
                tags=("stun", "air"),
            )
        ]
        assert result.tag_events[0].count == 2

    def test_clears_roll_back_profiles(self) -> None:
        store = _store({VARIANT_KEY: {"outcome_id": 5, **INFERRED}})
        profiles = ProfileStore()
        clear_inferred(note_store=store, targets=_targets(store), profile_store=profiles)
        assert profiles.pending_impacts == 1


@pytest.mark.unit
class TestMergeThresholds:
    def test_defaults(self) -> None:
        assert merge_thresholds(None, None) is DEFAULT_HEURISTIC_THRESHOLDS

    def test_overrides_on_custom_base(self) -> None:
        base = DEFAULT_HEURISTIC_THRESHOLDS.with_overrides({"phaseAdjacencyMaxGap": 2})
        merged = merge_thresholds(base, {"consensusMinGroupSize": 4})
        assert merged.phase_adjacency_max_gap == 2
        assert merged.consensus_min_group_size == 4
