# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Target models.

A ``Target`` is one addressable (row, field, phase) unit built fresh for
each request by the target resolver. A ``PreparedTarget`` wraps it with the
normalized identifiers and provenance flags every strategy needs, computed
once per run so strategies never re-derive them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from interaction_inference.enums import EnumNoteField
from interaction_inference.models.model_note import FieldValueDict
from interaction_inference.models.model_pair import Pair


@dataclass(frozen=True)
class Target:
    """Addressable inference unit.

    Attributes:
        key: Phase-qualified NoteKey.
        field: Note field this target addresses.
        phase: Phase number (None for phase-less targets).
        note: Note snapshot read when the target was collected.
        pair: Matrix row the key was derived from.
        row: Row index inside the index the target was collected from.
        action_group: Group label of the row's left action ("" if none).
        allow_inferred_targets: Inferred values may be replaced.
        allow_inferred_existing: Inferred values count as consensus anchors.
        properties: Property labels of the row's left action.
    """

    key: str
    field: EnumNoteField
    phase: int | None
    note: Mapping[str, Any] | None
    pair: Pair
    row: int | None = None
    action_group: str | None = ""
    allow_inferred_targets: bool = False
    allow_inferred_existing: bool = False
    properties: tuple[str, ...] = ()

    @property
    def dedupe_key(self) -> tuple[str, str]:
        return (self.key, self.field.value)


@dataclass(frozen=True)
class PreparedTarget:
    """Target plus the normalized attributes strategies group and score on.

    Attributes:
        target: The underlying target.
        action_id: Normalized left action id.
        variant_sig: Normalized variant signature.
        input_key: ``in:<id>`` or ``rhs:<id>``.
        action_group_key: Lower-cased action group label ("" if none).
        property_keys: Lower-cased, stripped, deduplicated property labels.
        current_value: Normalized current field value, or None.
        source: Normalized provenance source of the note.
        is_manual: The field holds a value with default provenance.
        is_inferred: The note carries non-default provenance.
    """

    target: Target
    action_id: int | None
    variant_sig: str
    input_key: str
    action_group_key: str
    property_keys: tuple[str, ...]
    current_value: FieldValueDict | None
    source: str
    is_manual: bool
    is_inferred: bool

    @property
    def key(self) -> str:
        return self.target.key

    @property
    def field(self) -> EnumNoteField:
        return self.target.field

    @property
    def phase(self) -> int | None:
        return self.target.phase

    @property
    def pair(self) -> Pair:
        return self.target.pair

    @property
    def has_value(self) -> bool:
        return self.current_value is not None

    @property
    def anchor_value(self) -> FieldValueDict | None:
        """Value usable as consensus evidence.

        Manual values always count; inferred values count only when the
        target opts in through ``allow_inferred_existing``.
        """
        if self.current_value is None:
            return None
        if self.is_manual:
            return self.current_value
        if self.is_inferred and self.target.allow_inferred_existing:
            return self.current_value
        return None

    @property
    def eligible(self) -> bool:
        """True when the target may receive a new suggestion."""
        if not self.has_value:
            return True
        if self.is_manual:
            return False
        return self.is_inferred and self.target.allow_inferred_targets


__all__ = ["PreparedTarget", "Target"]
