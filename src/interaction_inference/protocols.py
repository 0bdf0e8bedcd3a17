# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Protocol definitions for the collaborators the engine consumes.

Consumers depend on these protocols, not on concrete host classes:

    - ``ProtocolNoteStore``: sparse note storage keyed by NoteKey.
    - ``ProtocolPairIndex``: one enumerated row index (default or extended).
    - ``ProtocolVariantIndexer``: the external variant engine that builds
      those indices and owns the model-wide index version counter.
    - ``ProtocolStatusBar``, ``ProtocolMutationRunner``,
      ``ProtocolTagEventSink``, ``ProtocolInferenceDialog``: host shell hooks
      used only by the controller.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from interaction_inference.models.model_note import NoteDict
from interaction_inference.models.model_pair import Pair
from interaction_inference.models.model_results import TagChangeEvent


@runtime_checkable
class ProtocolNoteStore(Protocol):
    """Note storage capability.

    Implementations must provide ``get``, ``set``, ``remove`` and ``keys``.
    Only the application engine calls ``remove``, once a note it edited has
    no keys left.
    """

    def get(self, key: str) -> NoteDict | None: ...

    def set(self, key: str, note: NoteDict) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> Iterable[str]: ...


@runtime_checkable
class ProtocolPairIndex(Protocol):
    """An enumerated row index built by the variant engine."""

    @property
    def base_version(self) -> int: ...

    def get_pair(self, row_index: int) -> Pair | None: ...

    def get_row_count(self) -> int: ...


@runtime_checkable
class ProtocolVariantIndexer(Protocol):
    """The external variant engine.

    ``index_version`` is bumped by the host on every structural change; all
    index and row-lookup caches are validated against it.
    """

    @property
    def index_version(self) -> int: ...

    def default_index(self) -> ProtocolPairIndex: ...

    def build_interactions_pairs(self, *, include_bypass: bool) -> ProtocolPairIndex: ...

    def build_scoped_interactions_pairs(
        self,
        action_ids: Sequence[int],
        *,
        include_bypass: bool,
    ) -> ProtocolPairIndex: ...


@runtime_checkable
class ProtocolStatusBar(Protocol):
    def set(self, message: str) -> None: ...


class ProtocolMutationRunner(Protocol):
    """Host wrapper that groups a model mutation into one undo step."""

    def __call__(
        self,
        label: str,
        mutate: Callable[[], Any],
        *,
        undo: Mapping[str, Any],
        status: Callable[[Any], str] | None,
        should_record: Callable[[Any], bool],
    ) -> Any: ...


class ProtocolTagEventSink(Protocol):
    def __call__(self, event: TagChangeEvent) -> None: ...


class ProtocolInferenceDialog(Protocol):
    """Async dialog opener; gathers options then calls back into the engine."""

    def __call__(
        self,
        *,
        defaults: Mapping[str, Any],
        default_thresholds: Mapping[str, Any],
        on_run: Callable[[Mapping[str, Any]], Any],
        on_clear: Callable[[Mapping[str, Any]], Any],
    ) -> Awaitable[Any]: ...


__all__ = [
    "ProtocolInferenceDialog",
    "ProtocolMutationRunner",
    "ProtocolNoteStore",
    "ProtocolPairIndex",
    "ProtocolStatusBar",
    "ProtocolTagEventSink",
    "ProtocolVariantIndexer",
]
