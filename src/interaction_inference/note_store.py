# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""In-memory note store.

Provides ``InMemoryNoteStore``, a dict-backed ``ProtocolNoteStore`` for
tests and hosts that keep notes in a plain mapping. Hosts with their own
storage implement the protocol directly.

Thread Safety:
    Not thread-safe. The engine is single-threaded and synchronous.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

from interaction_inference.models.model_note import NoteDict

logger = logging.getLogger(__name__)


class InMemoryNoteStore:
    """Note store backed by a (possibly shared) dict.

    Args:
        notes: Existing mapping to wrap. The store mutates it in place so a
            host holding the same dict sees every write.
    """

    def __init__(self, notes: MutableMapping[str, Any] | None = None) -> None:
        self._notes: MutableMapping[str, Any] = notes if notes is not None else {}

    def get(self, key: str) -> NoteDict | None:
        note = self._notes.get(key)
        return note if isinstance(note, dict) else None

    def set(self, key: str, note: NoteDict) -> None:
        self._notes[key] = note

    def remove(self, key: str) -> None:
        if self._notes.pop(key, None) is not None:
            logger.debug("Removed empty note. key=%s", key)

    def keys(self) -> Iterator[str]:
        return iter(list(self._notes.keys()))

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Deep copy of every note, for before/after comparisons."""
        return {
            key: copy.deepcopy(dict(note))
            for key, note in self._notes.items()
            if isinstance(note, Mapping)
        }

    def __len__(self) -> int:
        return len(self._notes)

    def __contains__(self, key: object) -> bool:
        return key in self._notes


__all__ = ["InMemoryNoteStore"]
