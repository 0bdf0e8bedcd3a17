# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Suggestion and suggestion-table models.

Replacement Rule:
    A candidate replaces the suggestion already held for the same
    ``(target key, field)`` only if its confidence is strictly higher, or
    equal and its source has a higher fixed priority (``SOURCE_PRIORITY``).
    The rule is total and independent of registration order.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from interaction_inference.constants import SOURCE_PRIORITY
from interaction_inference.enums import EnumNoteField
from interaction_inference.models.model_note import FieldValueDict


@dataclass(frozen=True)
class Suggestion:
    """Candidate value proposed by one strategy.

    Attributes:
        source: Provenance source of the proposing strategy.
        confidence: Confidence in [0, 1].
        value: Proposed field value.
        source_metadata: Opaque payload written to the note unchanged.
    """

    source: str
    confidence: float
    value: FieldValueDict
    source_metadata: Mapping[str, Any] | None = None

    @property
    def priority(self) -> int:
        return SOURCE_PRIORITY.get(self.source, 0)

    def outranks(self, other: Suggestion | None) -> bool:
        """True when this candidate should replace ``other``."""
        if other is None:
            return True
        if self.confidence > other.confidence:
            return True
        return self.confidence == other.confidence and self.priority > other.priority


class SuggestionTable:
    """Suggestions for one inference run, keyed by target key then field."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[EnumNoteField, Suggestion]] = {}

    def get(self, key: str, field: EnumNoteField | str) -> Suggestion | None:
        fields = self._entries.get(key)
        if not fields:
            return None
        return fields.get(EnumNoteField(field))

    def offer(self, key: str, field: EnumNoteField | str, candidate: Suggestion) -> bool:
        """Store ``candidate`` if it outranks the current entry.

        Returns:
            True if the candidate was stored.
        """
        resolved = EnumNoteField(field)
        current = self.get(key, resolved)
        if not candidate.outranks(current):
            return False
        self._entries.setdefault(key, {})[resolved] = candidate
        return True

    def fields_for(self, key: str) -> Mapping[EnumNoteField, Suggestion]:
        return dict(self._entries.get(key, {}))

    def items(self) -> Iterator[tuple[str, EnumNoteField, Suggestion]]:
        for key, fields in self._entries.items():
            for field, suggestion in fields.items():
                yield key, field, suggestion

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return sum(len(fields) for fields in self._entries.values())


__all__ = ["Suggestion", "SuggestionTable"]
