# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Pair index access for inference runs.

Decides which enumerated row index a request reads from and which rows it
covers:

    - Without bypass options the default index and the rows resolved for
      the requested scope are used unchanged.
    - With ``infer_from_bypassed`` or ``infer_to_bypassed`` the extended
      index (which includes bypassed variants) is used, base rows are mapped
      into it through their phase-less NoteKey, and the active row is
      remapped as well.

Caching:
    The full extended index and scoped extended indices (keyed by the
    sorted, comma-joined action ids) are cached per ``InferenceIndexAccess``
    and revalidated against the indexer's ``index_version``. A version of 0
    means "unversioned" and is always treated as current. Scoped entries are
    never evicted; a one-time advisory is logged and pushed to the status
    bar once the cache crosses its soft budget.

Row Lookup:
    ``build_row_lookup`` maps a phase-less NoteKey to every row carrying it
    in an index. The lookup is memoized on the ``IndexAccess`` value and
    rebuilt when the access reports a different version.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from interaction_inference.config import BypassCacheBudget, InferenceSettings
from interaction_inference.enums import EnumInferenceScope
from interaction_inference.exceptions import InferenceConfigurationError
from interaction_inference.models.model_note import note_key_for_pair
from interaction_inference.models.model_options import InferenceOptions
from interaction_inference.models.model_pair import Pair
from interaction_inference.models.model_project import SelectionState
from interaction_inference.protocols import (
    ProtocolNoteStore,
    ProtocolPairIndex,
    ProtocolStatusBar,
    ProtocolVariantIndexer,
)
from interaction_inference.utils import coerce_int, normalize_input_key, sorted_unique_ints

logger = logging.getLogger(__name__)

BYPASS_CACHE_WARNING = (
    "Bypass scoped cache is growing; broaden inference scope or restart to "
    "reclaim memory."
)


# =============================================================================
# IndexAccess
# =============================================================================


@dataclass(frozen=True)
class IndexAccess:
    """Read-only view over one enumerated row index.

    Attributes:
        get_pair: Row index to Pair (None when out of range).
        get_row_count: Number of rows in the index.
        get_version: Version the index was built against.
        include_bypass: True for the extended index.
        active_row: Cursor row inside this index, when remapped.
    """

    get_pair: Callable[[int], Pair | None]
    get_row_count: Callable[[], int]
    get_version: Callable[[], int]
    include_bypass: bool = False
    active_row: int | None = None
    lookup_cache: dict[str, Any] = field(
        default_factory=dict, init=False, compare=False, repr=False
    )

    @classmethod
    def from_index(
        cls,
        index: ProtocolPairIndex,
        *,
        include_bypass: bool,
        get_version: Callable[[], int] | None = None,
    ) -> IndexAccess:
        return cls(
            get_pair=index.get_pair,
            get_row_count=index.get_row_count,
            get_version=get_version or (lambda: index.base_version),
            include_bypass=include_bypass,
        )

    def rows(self) -> list[int]:
        return list(range(self.get_row_count()))


class ResolvedIndex(NamedTuple):
    """Index access and rows chosen for one request.

    ``base_access`` is the default index the selection rows belong to.
    """

    index_access: IndexAccess
    rows: list[int]
    base_access: IndexAccess | None = None


ResolveRows = Callable[[EnumInferenceScope, IndexAccess], Sequence[int]]


# =============================================================================
# Row Mapping
# =============================================================================


def build_row_lookup(access: IndexAccess) -> dict[str, list[int]]:
    """Phase-less NoteKey to rows, memoized per access and version."""
    version = access.get_version()
    cached = access.lookup_cache
    if cached and cached.get("version") == version:
        return cached["lookup"]

    lookup: dict[str, list[int]] = {}
    for row in range(access.get_row_count()):
        pair = access.get_pair(row)
        if pair is None:
            continue
        lookup.setdefault(note_key_for_pair(pair), []).append(row)

    cached.clear()
    cached.update(version=version, lookup=lookup)
    logger.debug("Built row lookup. version=%s keys=%d", version, len(lookup))
    return lookup


def map_rows_to_index(
    rows: Iterable[int],
    source: IndexAccess,
    target: IndexAccess,
) -> list[int]:
    """Map rows of ``source`` to every row of ``target`` with the same NoteKey."""
    row_list = list(rows)
    if not row_list:
        return []
    lookup = build_row_lookup(target)
    mapped: set[int] = set()
    for row in row_list:
        pair = source.get_pair(row)
        if pair is None:
            continue
        mapped.update(lookup.get(note_key_for_pair(pair), ()))
    return sorted(mapped)


def _prefer_variant_rows(rows: Iterable[int], access: IndexAccess) -> list[int]:
    """Keep one row per (action, input), preferring rows with a variant."""
    fallback: list[int] = []
    preferred: dict[tuple[Any, str], tuple[int, bool]] = {}
    for row in rows:
        pair = access.get_pair(row)
        if pair is None:
            fallback.append(row)
            continue
        key = (pair.a_id, normalize_input_key(pair))
        has_variant = bool(pair.variant_sig)
        existing = preferred.get(key)
        if existing is None or (has_variant and not existing[1]):
            preferred[key] = (row, has_variant)
    merged = set(fallback)
    merged.update(row for row, _ in preferred.values())
    return sorted(merged)


# =============================================================================
# InferenceIndexAccess
# =============================================================================


class InferenceIndexAccess:
    """Chooses and caches the index each inference request reads from.

    Args:
        indexer: External variant engine.
        note_store: Note storage, scanned for actions that carry notes.
        selection: Callable returning the current grid selection.
        status_bar: Optional status bar for the cache advisory.
        settings: Engine settings; defaults are loaded from environment.
    """

    def __init__(
        self,
        indexer: ProtocolVariantIndexer,
        note_store: ProtocolNoteStore,
        selection: Callable[[], SelectionState],
        *,
        status_bar: ProtocolStatusBar | None = None,
        settings: InferenceSettings | None = None,
    ) -> None:
        if indexer is None:
            raise InferenceConfigurationError("indexer is required")
        if note_store is None:
            raise InferenceConfigurationError("note_store is required")
        self._indexer = indexer
        self._note_store = note_store
        self._selection = selection
        self._status_bar = status_bar
        self._budget: BypassCacheBudget = (settings or InferenceSettings()).to_cache_budget()
        self._full_index: ProtocolPairIndex | None = None
        self._scoped_cache: dict[str, ProtocolPairIndex] = {}
        self._warning_shown = False

    # ------------------------------------------------------------------
    # Index selection
    # ------------------------------------------------------------------

    def get_base_index_access(self) -> IndexAccess:
        """Access over the default index, versioned by the live indexer."""
        return IndexAccess.from_index(
            self._indexer.default_index(),
            include_bypass=False,
            get_version=lambda: self._indexer.index_version,
        )

    def _is_current(self, index: ProtocolPairIndex) -> bool:
        current = self._indexer.index_version
        if not current:
            return True
        return index.base_version == current

    def ensure_bypass_index(
        self, action_ids: Iterable[object] | None = None
    ) -> ProtocolPairIndex:
        """Return a current extended index, building it when needed.

        Args:
            action_ids: Restrict the build to these actions. None or empty
                selects the full extended index.
        """
        ids = sorted_unique_ints(action_ids or ())
        if not ids:
            if self._full_index is not None and self._is_current(self._full_index):
                return self._full_index
            self._full_index = self._indexer.build_interactions_pairs(include_bypass=True)
            logger.debug(
                "Rebuilt full bypass index. rows=%d",
                self._full_index.get_row_count(),
            )
            return self._full_index

        cache_key = ",".join(str(item) for item in ids)
        cached = self._scoped_cache.get(cache_key)
        if cached is not None and self._is_current(cached):
            return cached
        index = self._indexer.build_scoped_interactions_pairs(ids, include_bypass=True)
        self._scoped_cache[cache_key] = index
        logger.debug(
            "Cached scoped bypass index. key=%s rows=%d entries=%d",
            cache_key,
            index.get_row_count(),
            len(self._scoped_cache),
        )
        if self._budget.telemetry_enabled:
            self._warn_on_cache_pressure()
        return index

    @property
    def scoped_cache_size(self) -> int:
        return len(self._scoped_cache)

    def _warn_on_cache_pressure(self) -> None:
        if self._warning_shown:
            return
        entries = len(self._scoped_cache)
        rows = sum(index.get_row_count() for index in self._scoped_cache.values())
        if entries < self._budget.warning_entries and rows < self._budget.warning_rows:
            return
        self._warning_shown = True
        approx_rows = f" (~{rows:,} indexed rows)" if rows > 0 else ""
        message = f"{BYPASS_CACHE_WARNING} ({entries} scoped entries{approx_rows})"
        logger.warning(message)
        if self._status_bar is not None:
            self._status_bar.set(message)

    # ------------------------------------------------------------------
    # Scope helpers
    # ------------------------------------------------------------------

    def _scoped_action_ids(
        self,
        scope: EnumInferenceScope,
        base_rows: Sequence[int],
        base_access: IndexAccess,
    ) -> list[int]:
        if scope is EnumInferenceScope.PROJECT:
            return []
        ids: set[int] = set()
        for row in base_rows:
            pair = base_access.get_pair(row)
            action_id = coerce_int(pair.a_id) if pair is not None else None
            if action_id is not None:
                ids.add(action_id)
        return sorted(ids)

    def collect_action_ids_with_notes(self) -> set[int]:
        """Action ids referenced by existing ``ai|``/``aa|`` note keys."""
        ids: set[int] = set()
        for key in self._note_store.keys():
            if not isinstance(key, str) or self._note_store.get(key) is None:
                continue
            parts = key.split("|")
            if parts[0] == "ai" and len(parts) > 1:
                candidates = parts[1:2]
            elif parts[0] == "aa" and len(parts) > 2:
                candidates = parts[1:3]
            else:
                continue
            for part in candidates:
                action_id = coerce_int(part)
                if action_id is not None:
                    ids.add(action_id)
        return ids

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_index_access(
        self,
        options: InferenceOptions,
        resolve_rows: ResolveRows,
    ) -> ResolvedIndex:
        """Pick the index for a request and the rows it covers."""
        base_access = self.get_base_index_access()
        base_rows = list(resolve_rows(options.scope, base_access))
        if not options.uses_bypass_index:
            return ResolvedIndex(base_access, base_rows, base_access)

        action_ids = set(self._scoped_action_ids(options.scope, base_rows, base_access))
        if options.infer_from_bypassed:
            action_ids.update(self.collect_action_ids_with_notes())

        # Either bypass flag reads the full extended index.
        index = self.ensure_bypass_index(None)
        access = IndexAccess.from_index(index, include_bypass=True)
        active = self._selection().active_row
        mapped_active = map_rows_to_index([active], base_access, access)
        if mapped_active:
            access = dataclasses.replace(access, active_row=mapped_active[0])

        if options.scope is EnumInferenceScope.PROJECT:
            return ResolvedIndex(access, access.rows(), base_access)

        mapped = map_rows_to_index(base_rows, base_access, access)
        if not options.infer_to_bypassed:
            return ResolvedIndex(access, mapped, base_access)

        merged = set(mapped)
        if action_ids:
            scoped_rows = [
                row
                for row in access.rows()
                if (pair := access.get_pair(row)) is not None and pair.a_id in action_ids
            ]
            merged.update(_prefer_variant_rows(scoped_rows, access))
        elif options.scope in (EnumInferenceScope.SELECTION, EnumInferenceScope.ACTION):
            merged.update(access.rows())
        rows = _prefer_variant_rows(sorted(merged), access)
        logger.debug(
            "Resolved bypass rows. scope=%s mapped=%d rows=%d",
            options.scope.value,
            len(mapped),
            len(rows),
        )
        return ResolvedIndex(access, rows, base_access)


__all__ = [
    "BYPASS_CACHE_WARNING",
    "IndexAccess",
    "InferenceIndexAccess",
    "ResolveRows",
    "ResolvedIndex",
    "build_row_lookup",
    "map_rows_to_index",
]
