# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Application and clearing engine.

``apply_suggestions`` writes the winning suggestion of each requested
target into the note store; ``clear_inferred`` retracts machine-written
values. Both mutate notes through ``ProtocolNoteStore`` and return a result
carrying counts and the tag change events for the controller to dispatch.

Apply Rules (first match wins, per target):
    1. ``skip_manual_outcome``, non-outcome field, note has an outcome and
       default source: skipped as manual outcome.
    2. Field has a value with default source and ``skip_manual_outcome``:
       skipped as manual.
    3. Default source and another field holds a value: skipped as manual.
       A note carries one provenance triple, so writing here would relabel
       the manual fields as inferred.
    4. ``overwrite_inferred`` off and the note is inferred: skipped existing.
    5. ``only_fill_empty`` and the field has a value: skipped existing.
    6. A suggestion is usable when the field is empty or not manual. Without
       a value or a usable suggestion the target counts as empty.
    7. Write the suggestion value and provenance, or stamp the explicit
       default provenance onto an already inferred note when no suggestion
       is usable. Manual notes are never restamped.

Clearing:
    Removes the target field from inferred notes. Provenance is stripped
    once no field values remain, so clearing every field apply wrote
    restores the note it started from.

Learning:
    Engine writes are recorded as ``inferred`` with ``manual_only`` so they
    never train the profile store. Clears record a ``delta=-1`` rollback.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from interaction_inference.constants import DEFAULT_INTERACTION_SOURCE
from interaction_inference.enums import EnumNoteField
from interaction_inference.models.model_note import (
    apply_interaction_metadata,
    describe_interaction_inference,
)
from interaction_inference.models.model_options import InferenceOptions
from interaction_inference.models.model_results import (
    ApplyResult,
    ClearResult,
    TagChangeEvent,
)
from interaction_inference.models.model_suggestion import Suggestion
from interaction_inference.models.model_target import Target
from interaction_inference.models.model_thresholds import (
    DEFAULT_HEURISTIC_THRESHOLDS,
    HeuristicThresholds,
)
from interaction_inference.heuristics import propose_interaction_inferences
from interaction_inference.profiles import ProfileStore
from interaction_inference.protocols import ProtocolNoteStore
from interaction_inference.strategies.base import InferenceStrategy
from interaction_inference.utils import (
    extract_note_field_value,
    has_structured_value,
    normalize_tag_list,
)

logger = logging.getLogger(__name__)

_FIELD_KEYS: dict[EnumNoteField, tuple[str, ...]] = {
    EnumNoteField.OUTCOME: ("outcome_id", "result"),
    EnumNoteField.END: ("end_action_id", "end_variant_sig", "end_free"),
    EnumNoteField.TAG: ("tags",),
}


def _write_value(note: dict[str, Any], field: EnumNoteField, value: Mapping[str, Any]) -> None:
    """Write one field value, removing the field's alternative keys."""
    if field is EnumNoteField.OUTCOME:
        if "outcome_id" in value:
            note["outcome_id"] = value["outcome_id"]
            note.pop("result", None)
        elif "result" in value:
            note["result"] = value["result"]
            note.pop("outcome_id", None)
    elif field is EnumNoteField.END:
        if "end_action_id" in value:
            note["end_action_id"] = value["end_action_id"]
            note["end_variant_sig"] = value.get("end_variant_sig") or ""
            note.pop("end_free", None)
        elif "end_free" in value:
            note["end_free"] = value["end_free"]
            note.pop("end_action_id", None)
            note.pop("end_variant_sig", None)
    elif field is EnumNoteField.TAG:
        tags = value.get("tags")
        note["tags"] = list(tags) if isinstance(tags, (list, tuple)) else []


def _has_other_values(note: Mapping[str, Any] | None, field: EnumNoteField) -> bool:
    return any(
        has_structured_value(note, other) for other in _FIELD_KEYS if other is not field
    )


def _suggestion_metadata(suggestion: Suggestion) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "confidence": suggestion.confidence,
        "source": suggestion.source,
    }
    if suggestion.source_metadata:
        metadata["source_metadata"] = suggestion.source_metadata
    return metadata


def merge_thresholds(
    base_thresholds: HeuristicThresholds | None,
    overrides: Mapping[str, Any] | None,
) -> HeuristicThresholds:
    return (base_thresholds or DEFAULT_HEURISTIC_THRESHOLDS).with_overrides(overrides)


# =============================================================================
# Apply
# =============================================================================


def apply_suggestions(
    *,
    note_store: ProtocolNoteStore,
    targets: Sequence[Target],
    suggestion_targets: Iterable[Target],
    options: InferenceOptions,
    profile_store: ProfileStore | None = None,
    base_thresholds: HeuristicThresholds | None = None,
    strategies: Sequence[InferenceStrategy] | None = None,
) -> ApplyResult:
    """Propose over ``suggestion_targets`` and write into ``targets``.

    Args:
        note_store: Note storage to mutate.
        targets: Requested targets; the only ones written.
        suggestion_targets: Evidence set for the strategies.
        options: Normalized request options.
        profile_store: Learned profiles; snapshotted once for the run.
        base_thresholds: Thresholds the option overrides are merged into.
        strategies: Strategy sequence override.

    Returns:
        Counts, per-source tallies, tag events and the merged thresholds.
    """
    thresholds = merge_thresholds(base_thresholds, options.threshold_overrides)
    snapshot = profile_store.capture_snapshot() if profile_store is not None else None
    suggestions = propose_interaction_inferences(
        suggestion_targets,
        profiles=snapshot,
        thresholds=thresholds,
        strategies=strategies,
    )
    default_metadata = options.default_metadata
    result = ApplyResult(thresholds=thresholds)
    tags_changed = False

    for target in targets:
        note = note_store.get(target.key)
        previous_value = extract_note_field_value(note, target.field)
        has_value = has_structured_value(note, target.field)
        info = describe_interaction_inference(note)
        is_default_source = info.source == DEFAULT_INTERACTION_SOURCE

        if (
            options.skip_manual_outcome
            and target.field is not EnumNoteField.OUTCOME
            and has_structured_value(note, EnumNoteField.OUTCOME)
            and is_default_source
        ):
            result.skipped_manual_outcome += 1
            continue
        if is_default_source and has_value and options.skip_manual_outcome:
            result.skipped_manual += 1
            continue
        if is_default_source and _has_other_values(note, target.field):
            result.skipped_manual += 1
            continue
        if not options.overwrite_inferred and info.inferred:
            result.skipped_existing += 1
            continue
        if options.only_fill_empty and has_value:
            result.skipped_existing += 1
            continue

        suggestion = suggestions.get(target.key, target.field)
        usable = suggestion is not None and (not has_value or not is_default_source)
        if not has_value and not usable:
            result.empty += 1
            continue

        dest: dict[str, Any] = dict(note) if note is not None else {}
        if usable and suggestion is not None:
            _write_value(dest, target.field, suggestion.value)
            apply_interaction_metadata(dest, _suggestion_metadata(suggestion))
            result.count_source(suggestion.source)
            if target.field is EnumNoteField.TAG:
                previous_tags = normalize_tag_list(previous_value)
                if previous_tags != dest["tags"]:
                    tags_changed = True
        elif default_metadata is not None and not is_default_source:
            apply_interaction_metadata(dest, default_metadata)
        else:
            continue

        note_store.set(target.key, dest)  # type: ignore[arg-type]
        result.applied += 1
        if profile_store is not None:
            profile_store.record_impact(
                pair=target.pair,
                field=target.field,
                previous_value=previous_value,
                next_value=extract_note_field_value(dest, target.field),
                phase=target.phase,
                inferred=True,
                manual_only=True,
            )

    if tags_changed:
        result.tag_events.append(
            TagChangeEvent(reason="inference", kind="set", force=True)
        )
    logger.info(
        "Applied inference. targets=%d applied=%d empty=%d skipped_existing=%d "
        "skipped_manual=%d skipped_manual_outcome=%d",
        len(targets),
        result.applied,
        result.empty,
        result.skipped_existing,
        result.skipped_manual,
        result.skipped_manual_outcome,
    )
    return result


# =============================================================================
# Clear
# =============================================================================


def clear_inferred(
    *,
    note_store: ProtocolNoteStore,
    targets: Sequence[Target],
    profile_store: ProfileStore | None = None,
) -> ClearResult:
    """Remove machine-written values from the given targets.

    Manual notes are counted and left alone. Provenance is stripped once a
    cleared note holds no field values; notes left without keys are removed
    from the store.
    """
    result = ClearResult()
    for target in targets:
        note = note_store.get(target.key)
        if note is None:
            continue
        info = describe_interaction_inference(note)
        if info.source == DEFAULT_INTERACTION_SOURCE:
            result.skipped_manual += 1
            continue
        if not info.inferred:
            continue

        previous_value = extract_note_field_value(note, target.field)
        updated: dict[str, Any] = dict(note)
        removed_tags = list(updated.get("tags") or ()) if target.field is EnumNoteField.TAG else []
        for key in _FIELD_KEYS[target.field]:
            updated.pop(key, None)
        if removed_tags:
            result.tag_events.append(
                TagChangeEvent(
                    reason="clearInference",
                    kind="remove",
                    note_key=target.key,
                    pair=target.pair,
                    phase=target.phase,
                    tags=tuple(removed_tags),
                )
            )
        if not any(has_structured_value(updated, other) for other in _FIELD_KEYS):
            apply_interaction_metadata(updated, None)
        if updated:
            note_store.set(target.key, updated)  # type: ignore[arg-type]
        else:
            note_store.remove(target.key)
        result.cleared += 1

        if profile_store is not None:
            profile_store.record_impact(
                pair=target.pair,
                field=target.field,
                previous_value=previous_value,
                next_value=extract_note_field_value(updated, target.field),
                phase=target.phase,
                inferred=True,
                delta=-1,
            )

    logger.info(
        "Cleared inference. targets=%d cleared=%d skipped_manual=%d",
        len(targets),
        result.cleared,
        result.skipped_manual,
    )
    return result


__all__ = ["apply_suggestions", "clear_inferred", "merge_thresholds"]
