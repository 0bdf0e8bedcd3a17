# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Pytest configuration and fixtures for interaction inference tests.

Shared fakes for the host collaborators (status bar, mutation runner, tag
event sink) plus a small interaction matrix used by the resolver, index
and controller tests.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from interaction_inference.models.model_pair import Pair
from interaction_inference.models.model_project import ActionRecord
from interaction_inference.models.model_results import TagChangeEvent
from interaction_inference.note_store import InMemoryNoteStore

# =========================================================================
# Host Fakes
# =========================================================================


class RecordingStatusBar:
    """Status bar that remembers every message."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def set(self, message: str) -> None:
        self.messages.append(message)

    @property
    def last(self) -> str | None:
        return self.messages[-1] if self.messages else None


class RecordingMutationRunner:
    """Mutation runner that executes immediately and records each call."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    def __call__(
        self,
        label: str,
        mutate: Callable[[], Any],
        *,
        undo: dict[str, Any],
        status: Callable[[Any], str] | None,
        should_record: Callable[[Any], bool],
    ) -> Any:
        result = mutate()
        self.calls.append(
            {
                "label": label,
                "undo": undo,
                "recorded": should_record(result),
                "status": status(result) if status is not None else None,
            }
        )
        return result


class RecordingTagSink:
    def __init__(self) -> None:
        self.events: list[TagChangeEvent] = []

    def __call__(self, event: TagChangeEvent) -> None:
        self.events.append(event)


# =========================================================================
# Fixtures
# =========================================================================


@pytest.fixture
def note_store() -> InMemoryNoteStore:
    """Empty in-memory note store."""
    return InMemoryNoteStore()


@pytest.fixture
def status_bar() -> RecordingStatusBar:
    return RecordingStatusBar()


@pytest.fixture
def mutation_runner() -> RecordingMutationRunner:
    return RecordingMutationRunner()


@pytest.fixture
def tag_sink() -> RecordingTagSink:
    return RecordingTagSink()


@pytest.fixture
def matrix_pairs() -> list[Pair]:
    """Default-index rows: two actions, one modifier variant on action 1.

    Row layout:
        0: action 1 x input 10
        1: action 1 (modifier 3) x input 10
        2: action 1 x input 11
        3: action 2 x input 10
    """
    return [
        Pair(a_id=1, i_id=10),
        Pair(a_id=1, i_id=10, variant_sig="3"),
        Pair(a_id=1, i_id=11),
        Pair(a_id=2, i_id=10),
    ]


@pytest.fixture
def matrix_actions() -> list[ActionRecord]:
    return [
        ActionRecord.create(1, "Jab", action_group="Strikes"),
        ActionRecord.create(2, "Kick", action_group="Strikes", phases=[1]),
        ActionRecord.create(3, "Block"),
    ]
