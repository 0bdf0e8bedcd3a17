# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Modifier and input profile store.

Profiles are lightweight frequency maps learned from edit history. Two
independent stores are kept, one keyed by modifier id and one by input key
(``in:<id>`` / ``rhs:<id>``). Each profile holds, per field, an all-phase
bucket plus a sparse per-phase mapping; every bucket counts ``change``,
``clear`` and ``noop`` impacts and keeps a value histogram keyed by the
canonical value key.

Design Decisions:
    - The store is an explicit object owned by the host, not module state.
      ``reset()`` is called on project load.
    - Counters never go below zero; histogram entries at or below zero are
      removed, so rollbacks (``delta=-1``) undo earlier recordings.
    - Every ``interval`` recorded impacts, all buckets decay by ``factor``
      and histogram entries below ``negligible_count`` are dropped.
    - ``capture_snapshot()`` forces a decay pass and returns an immutable
      deep copy. Strategies only ever read snapshots.

Usage:
    >>> store = ProfileStore.create()
    >>> store.record_impact(pair=pair, field="outcome", next_value={"outcome_id": 3})
    >>> snapshot = store.capture_snapshot()
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from interaction_inference.config import InferenceSettings, ProfileDecayPolicy
from interaction_inference.enums import EnumNoteField, EnumProfileImpact
from interaction_inference.models.model_pair import Pair
from interaction_inference.utils import (
    clone_value,
    coerce_int,
    normalize_input_key,
    normalize_phase_key,
    parse_modifier_ids,
    value_key,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Snapshot Types (immutable)
# =============================================================================


@dataclass(frozen=True)
class HistogramEntry:
    """Weighted observation count of one value."""

    count: float
    value: Mapping[str, Any]


@dataclass(frozen=True)
class BucketSnapshot:
    """Frozen copy of one counts bucket."""

    change: float = 0.0
    clear: float = 0.0
    noop: float = 0.0
    values: Mapping[str, HistogramEntry] = field(
        default_factory=lambda: MappingProxyType({})
    )


@dataclass(frozen=True)
class FieldSnapshot:
    """Frozen copy of one field: the all-phase bucket plus per-phase buckets."""

    all: BucketSnapshot = field(default_factory=BucketSnapshot)
    phases: Mapping[str, BucketSnapshot] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def bucket_for(self, phase: int | None) -> BucketSnapshot:
        """Phase bucket when one exists for ``phase``, else the all bucket."""
        phase_key = normalize_phase_key(phase)
        if phase_key is not None and phase_key in self.phases:
            return self.phases[phase_key]
        return self.all


@dataclass(frozen=True)
class ProfileSnapshot:
    """Frozen copy of one modifier or input profile."""

    fields: Mapping[EnumNoteField, FieldSnapshot]

    def field_snapshot(self, field_name: EnumNoteField | str) -> FieldSnapshot:
        return self.fields.get(EnumNoteField(field_name)) or FieldSnapshot()


@dataclass(frozen=True)
class ProfileSummary:
    """Merged view of every profile relevant to one target.

    Attributes:
        change: Summed change weight.
        clear: Summed clear weight.
        noop: Summed no-effect weight.
        top_key: Value key with the highest merged count ("" if none).
        top_count: Merged count of ``top_key``.
        top_value: Value stored for ``top_key``.
    """

    change: float
    clear: float
    noop: float
    top_key: str
    top_count: float
    top_value: Mapping[str, Any] | None

    @property
    def observations(self) -> float:
        return self.change + self.noop


@dataclass(frozen=True)
class ProfilesSnapshot:
    """Immutable snapshot of both profile stores for one inference run."""

    modifier: Mapping[int, ProfileSnapshot] = field(
        default_factory=lambda: MappingProxyType({})
    )
    input: Mapping[str, ProfileSnapshot] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> ProfilesSnapshot:
        """Build a snapshot from a plain nested mapping.

        Accepts ``{"modifier": {id: profile}, "input": {key: profile}}`` where
        each profile maps field names to ``{"all": bucket, "phases": {...}}``
        and each bucket holds ``change``, ``clear``, ``noop`` and
        ``values: {value_key: {"count": n, "value": {...}}}``. Missing
        pieces default to empty.
        """
        if not isinstance(data, Mapping):
            return cls()
        modifier: dict[int, ProfileSnapshot] = {}
        for key, profile in (data.get("modifier") or {}).items():
            modifier_id = coerce_int(key)
            if modifier_id is not None and isinstance(profile, Mapping):
                modifier[modifier_id] = _profile_from_mapping(profile)
        inputs: dict[str, ProfileSnapshot] = {}
        for key, profile in (data.get("input") or {}).items():
            if isinstance(profile, Mapping):
                inputs[str(key)] = _profile_from_mapping(profile)
        return cls(modifier=MappingProxyType(modifier), input=MappingProxyType(inputs))

    def profiles_for(self, pair: Pair | None) -> list[ProfileSnapshot]:
        """Profiles keyed by the pair's input key and each of its modifier ids."""
        found: list[ProfileSnapshot] = []
        input_key = normalize_input_key(pair)
        if input_key and input_key in self.input:
            found.append(self.input[input_key])
        for modifier_id in parse_modifier_ids(pair) if pair is not None else []:
            profile = self.modifier.get(modifier_id)
            if profile is not None:
                found.append(profile)
        return found

    def summarize(
        self,
        pair: Pair | None,
        field_name: EnumNoteField | str,
        phase: int | None,
    ) -> ProfileSummary | None:
        """Merge the buckets relevant to a target into one summary.

        Returns:
            None when no profile exists for the pair.
        """
        profiles = self.profiles_for(pair)
        if not profiles:
            return None
        change = clear = noop = 0.0
        counts: dict[str, float] = {}
        values: dict[str, Mapping[str, Any]] = {}
        for profile in profiles:
            bucket = profile.field_snapshot(field_name).bucket_for(phase)
            change += bucket.change
            clear += bucket.clear
            noop += bucket.noop
            for key, entry in bucket.values.items():
                counts[key] = counts.get(key, 0.0) + entry.count
                values.setdefault(key, entry.value)

        top_key = ""
        top_count = 0.0
        for key in sorted(counts):
            if counts[key] > top_count:
                top_key, top_count = key, counts[key]
        return ProfileSummary(
            change=change,
            clear=clear,
            noop=noop,
            top_key=top_key,
            top_count=top_count,
            top_value=values.get(top_key),
        )


def _freeze_value(value: Mapping[str, Any]) -> Mapping[str, Any]:
    frozen = {
        key: tuple(item) if isinstance(item, list) else item
        for key, item in value.items()
    }
    return MappingProxyType(frozen)


def _bucket_from_mapping(data: object) -> BucketSnapshot:
    if not isinstance(data, Mapping):
        return BucketSnapshot()

    def number(name: str) -> float:
        raw = data.get(name)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            return 0.0
        return float(raw) if math.isfinite(raw) else 0.0

    values: dict[str, HistogramEntry] = {}
    for key, entry in (data.get("values") or {}).items():
        if not isinstance(entry, Mapping) or not isinstance(entry.get("value"), Mapping):
            continue
        count = entry.get("count")
        if isinstance(count, bool) or not isinstance(count, (int, float)):
            continue
        values[str(key)] = HistogramEntry(
            count=float(count), value=_freeze_value(entry["value"])
        )
    return BucketSnapshot(
        change=number("change"),
        clear=number("clear"),
        noop=number("noop"),
        values=MappingProxyType(values),
    )


def _profile_from_mapping(data: Mapping[str, Any]) -> ProfileSnapshot:
    fields: dict[EnumNoteField, FieldSnapshot] = {}
    for note_field in EnumNoteField:
        raw = data.get(note_field.value)
        if not isinstance(raw, Mapping):
            continue
        phases = {
            str(phase): _bucket_from_mapping(bucket)
            for phase, bucket in (raw.get("phases") or {}).items()
        }
        fields[note_field] = FieldSnapshot(
            all=_bucket_from_mapping(raw.get("all")),
            phases=MappingProxyType(phases),
        )
    return ProfileSnapshot(fields=MappingProxyType(fields))


# =============================================================================
# Mutable Store Internals
# =============================================================================


@dataclass
class _CountsBucket:
    change: float = 0.0
    clear: float = 0.0
    noop: float = 0.0
    # value_key -> [count, cloned value]
    values: dict[str, list[Any]] = field(default_factory=dict)

    def increment(
        self,
        impact: EnumProfileImpact,
        next_value: Mapping[str, Any] | None,
        note_field: EnumNoteField,
        delta: float,
    ) -> None:
        if impact is EnumProfileImpact.CHANGE:
            self.change = max(0.0, self.change + delta)
        elif impact is EnumProfileImpact.CLEAR:
            self.clear = max(0.0, self.clear + delta)
        else:
            self.noop = max(0.0, self.noop + delta)
        if not next_value:
            return
        key = value_key(note_field, next_value)
        if not key:
            return
        entry = self.values.setdefault(key, [0.0, clone_value(note_field, next_value)])
        entry[0] += delta
        if entry[0] <= 0:
            del self.values[key]

    def decay(self, factor: float, negligible_count: float) -> None:
        self.change *= factor
        self.clear *= factor
        self.noop *= factor
        for key in list(self.values):
            self.values[key][0] *= factor
            if self.values[key][0] < negligible_count:
                del self.values[key]

    def freeze(self, note_field: EnumNoteField) -> BucketSnapshot:
        values = {}
        for key, (count, value) in self.values.items():
            cloned = clone_value(note_field, value) or value
            values[key] = HistogramEntry(count=count, value=_freeze_value(cloned))
        return BucketSnapshot(
            change=self.change,
            clear=self.clear,
            noop=self.noop,
            values=MappingProxyType(values),
        )


@dataclass
class _FieldBucket:
    all: _CountsBucket = field(default_factory=_CountsBucket)
    phases: dict[str, _CountsBucket] = field(default_factory=dict)

    def buckets(self) -> Iterable[_CountsBucket]:
        yield self.all
        yield from self.phases.values()


def _new_profile() -> dict[EnumNoteField, _FieldBucket]:
    return {note_field: _FieldBucket() for note_field in EnumNoteField}


# =============================================================================
# Impact Classification
# =============================================================================


def compute_impact(
    note_field: EnumNoteField | str,
    previous_value: Mapping[str, Any] | None,
    next_value: Mapping[str, Any] | None,
) -> EnumProfileImpact:
    """Classify an edit by comparing value keys before and after."""
    before = value_key(note_field, previous_value)
    after = value_key(note_field, next_value)
    if before == after:
        return EnumProfileImpact.NOOP
    if after:
        return EnumProfileImpact.CHANGE
    if before:
        return EnumProfileImpact.CLEAR
    return EnumProfileImpact.NOOP


# =============================================================================
# ProfileStore
# =============================================================================


class ProfileStore:
    """Learned modifier and input profiles for one open project.

    Thread Safety:
        Not thread-safe. Owned by the single-threaded host.
    """

    def __init__(self, decay_policy: ProfileDecayPolicy | None = None) -> None:
        self._policy = decay_policy or ProfileDecayPolicy()
        self._modifier: dict[int, dict[EnumNoteField, _FieldBucket]] = {}
        self._input: dict[str, dict[EnumNoteField, _FieldBucket]] = {}
        self._decay_budget = 0

    @classmethod
    def create(cls, settings: InferenceSettings | None = None) -> ProfileStore:
        """Create an empty store using the decay schedule from settings."""
        settings = settings or InferenceSettings()
        return cls(settings.to_decay_policy())

    @property
    def decay_policy(self) -> ProfileDecayPolicy:
        return self._policy

    @property
    def pending_impacts(self) -> int:
        """Impacts recorded since the last scheduled decay."""
        return self._decay_budget

    def reset(self) -> None:
        """Drop every profile; called when a project is loaded."""
        self._modifier.clear()
        self._input.clear()
        self._decay_budget = 0
        logger.debug("Profile store reset")

    def record_impact(
        self,
        *,
        pair: Pair | None,
        field: EnumNoteField | str,
        previous_value: Mapping[str, Any] | None = None,
        next_value: Mapping[str, Any] | None = None,
        impact: EnumProfileImpact | str | None = None,
        phase: int | None = None,
        inferred: bool = False,
        manual_only: bool = False,
        delta: float = 1.0,
    ) -> None:
        """Record one edit against the pair's input and modifier profiles.

        Args:
            pair: Row whose cell was edited.
            field: Edited note field.
            previous_value: Field value before the edit.
            next_value: Field value after the edit.
            impact: Explicit classification; computed from the values when
                omitted.
            phase: Phase of the edited cell, if phase-qualified.
            inferred: The edit was written by the inference engine.
            manual_only: Ignore the edit when it is ``inferred``.
            delta: Weight of the edit; negative values roll back.
        """
        try:
            note_field = EnumNoteField(field)
        except ValueError:
            return
        if manual_only and inferred:
            return
        if isinstance(delta, bool) or not isinstance(delta, (int, float)):
            return
        if not math.isfinite(delta) or delta == 0:
            return

        impact_type = (
            EnumProfileImpact(impact)
            if impact
            else compute_impact(note_field, previous_value, next_value)
        )
        phase_key = normalize_phase_key(phase)
        profiles = [
            self._modifier.setdefault(modifier_id, _new_profile())
            for modifier_id in (parse_modifier_ids(pair) if pair is not None else [])
        ]
        input_key = normalize_input_key(pair)
        if input_key:
            profiles.append(self._input.setdefault(input_key, _new_profile()))

        for profile in profiles:
            bucket = profile[note_field]
            bucket.all.increment(impact_type, next_value, note_field, delta)
            if phase_key is not None:
                phase_bucket = bucket.phases.setdefault(phase_key, _CountsBucket())
                phase_bucket.increment(impact_type, next_value, note_field, delta)

        self._decay_budget += 1
        if self._decay_budget >= self._policy.interval:
            self.decay()
            self._decay_budget = 0

    def decay(self) -> None:
        """Apply one multiplicative decay pass to every bucket."""
        for profile in (*self._modifier.values(), *self._input.values()):
            for field_bucket in profile.values():
                for bucket in field_bucket.buckets():
                    bucket.decay(self._policy.factor, self._policy.negligible_count)

    def capture_snapshot(self) -> ProfilesSnapshot:
        """Decay, then return an immutable deep copy of both stores."""
        self.decay()
        return ProfilesSnapshot(
            modifier=MappingProxyType(
                {key: _freeze_profile(profile) for key, profile in self._modifier.items()}
            ),
            input=MappingProxyType(
                {key: _freeze_profile(profile) for key, profile in self._input.items()}
            ),
        )


def _freeze_profile(profile: Mapping[EnumNoteField, _FieldBucket]) -> ProfileSnapshot:
    fields = {
        note_field: FieldSnapshot(
            all=bucket.all.freeze(note_field),
            phases=MappingProxyType(
                {key: phase.freeze(note_field) for key, phase in bucket.phases.items()}
            ),
        )
        for note_field, bucket in profile.items()
    }
    return ProfileSnapshot(fields=MappingProxyType(fields))


__all__ = [
    "BucketSnapshot",
    "FieldSnapshot",
    "HistogramEntry",
    "ProfileSnapshot",
    "ProfileStore",
    "ProfileSummary",
    "ProfilesSnapshot",
    "compute_impact",
]
