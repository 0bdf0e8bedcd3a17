# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Target resolution: from a requested scope to addressable targets.

The resolver turns a scope into rows, rows into ``Target`` values (one per
eligible phase column), and computes a broader *suggestion scope* whose
targets supply evidence without being written.

Scope Plan:
    - ``project``, ``actionGroup`` and ``action`` are used as requested.
    - ``selection`` on the extended index whose selected rows belong to
      exactly one action is widened to ``project`` (``bypassSelection``).
    - ``selection`` on the default index is widened to ``action``
      (``broadened``).
    - Anything else stays as requested (``requested``).

Column Eligibility:
    Outcome columns always participate; end and tag columns only when the
    options include them. A selection spanning more than one column limits
    targets to the selected columns, unless the whole row is selected.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from interaction_inference.constants import (
    BYPASS_ACTION_GROUP,
    INTERACTIONS_VIEW,
    OUT_OF_VIEW_STATUS,
)
from interaction_inference.enums import (
    EnumInferenceScope,
    EnumNoteField,
    EnumSuggestionScopeReason,
)
from interaction_inference.exceptions import InferenceConfigurationError
from interaction_inference.index_access import IndexAccess
from interaction_inference.models.model_note import note_key_for_pair
from interaction_inference.models.model_options import InferenceOptions
from interaction_inference.models.model_pair import PhaseKey
from interaction_inference.models.model_project import ActionRecord, SelectionState
from interaction_inference.models.model_target import Target
from interaction_inference.protocols import ProtocolNoteStore
from interaction_inference.utils import coerce_int

logger = logging.getLogger(__name__)


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class ScopePlan:
    """Requested scope plus the scope suggestions are computed over.

    Attributes:
        requested_scope: Scope the user asked for.
        selection_action_ids: Distinct action ids of the selected rows
            (selection scope only, None otherwise).
        suggestion_scope: Scope whose targets feed the strategies.
        reason: Why the suggestion scope differs (or not).
    """

    requested_scope: EnumInferenceScope
    selection_action_ids: tuple[int, ...] | None
    suggestion_scope: EnumInferenceScope
    reason: EnumSuggestionScopeReason


@dataclass(frozen=True)
class TargetCollection:
    targets: list[Target] = field(default_factory=list)
    allowed: bool = True
    reason: str | None = None


@dataclass(frozen=True)
class ResolvedScopes:
    """Targets to write plus the wider evidence set for the strategies."""

    plan: ScopePlan
    requested_targets: list[Target]
    suggestion_targets: list[Target]
    allowed: bool = True
    reason: str | None = None


# =============================================================================
# Scope Plan
# =============================================================================


def _selection_action_ids(
    selection: SelectionState | None,
    requested_scope: EnumInferenceScope,
    selection_access: IndexAccess,
) -> tuple[int, ...] | None:
    # Selection rows are addresses in the default index.
    if requested_scope is not EnumInferenceScope.SELECTION:
        return None
    if selection is None or not selection.rows:
        return None
    ids: list[int] = []
    for row in sorted(selection.rows):
        pair = selection_access.get_pair(row)
        action_id = coerce_int(pair.a_id) if pair is not None else None
        if action_id is not None and action_id not in ids:
            ids.append(action_id)
    return tuple(ids) if ids else None


def build_scope_plan(
    requested_scope: EnumInferenceScope | str,
    selection: SelectionState | None,
    index_access: IndexAccess,
    base_access: IndexAccess | None = None,
) -> ScopePlan:
    """Decide the suggestion scope for a requested scope.

    ``base_access`` is the default index the selection rows address; it
    defaults to ``index_access``.
    """
    requested = EnumInferenceScope(requested_scope)
    action_ids = _selection_action_ids(
        selection, requested, base_access if base_access is not None else index_access
    )

    if requested in (
        EnumInferenceScope.PROJECT,
        EnumInferenceScope.ACTION_GROUP,
        EnumInferenceScope.ACTION,
    ):
        suggestion = requested
    elif index_access.include_bypass and action_ids is not None and len(action_ids) == 1:
        suggestion = EnumInferenceScope.PROJECT
    elif not index_access.include_bypass:
        suggestion = EnumInferenceScope.ACTION
    else:
        suggestion = requested

    if suggestion is requested:
        reason = EnumSuggestionScopeReason.REQUESTED
    elif suggestion is EnumInferenceScope.PROJECT and index_access.include_bypass:
        reason = EnumSuggestionScopeReason.BYPASS_SELECTION
    else:
        reason = EnumSuggestionScopeReason.BROADENED

    return ScopePlan(
        requested_scope=requested,
        selection_action_ids=action_ids,
        suggestion_scope=suggestion,
        reason=reason,
    )


# =============================================================================
# TargetResolver
# =============================================================================


class TargetResolver:
    """Resolves scopes into rows and targets for the interactions view.

    Args:
        note_store: Note storage read for each target's current note.
        actions: Callable returning the project's action records.
        selection: Callable returning the current grid selection.
        columns: Callable returning the interactions view's column keys.
        active_view: Callable returning the active view name; inference is
            only allowed on the interactions view.
    """

    def __init__(
        self,
        note_store: ProtocolNoteStore,
        actions: Callable[[], Iterable[ActionRecord]],
        selection: Callable[[], SelectionState],
        columns: Callable[[], Sequence[str]],
        *,
        active_view: Callable[[], str] | None = None,
    ) -> None:
        if note_store is None:
            raise InferenceConfigurationError("note_store is required")
        self._note_store = note_store
        self._actions = actions
        self._selection = selection
        self._columns = columns
        self._active_view = active_view

    @property
    def selection(self) -> SelectionState:
        return self._selection()

    def _action_records(self) -> dict[int, ActionRecord]:
        return {record.id: record for record in self._actions()}

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def get_rows(
        self,
        scope: EnumInferenceScope | str,
        index_access: IndexAccess,
    ) -> list[int]:
        """Rows covered by a scope inside the given index."""
        resolved = EnumInferenceScope(scope)
        selection = self._selection()
        total = index_access.get_row_count()
        active_row = index_access.active_row
        if active_row is None or active_row < 0:
            active_row = selection.active_row

        if resolved is EnumInferenceScope.PROJECT:
            return list(range(total))

        if resolved in (EnumInferenceScope.ACTION, EnumInferenceScope.ACTION_GROUP):
            active_pair = index_access.get_pair(active_row)
            if active_pair is None:
                return []
            records = self._action_records()
            if resolved is EnumInferenceScope.ACTION_GROUP:
                group = _action_group(records, active_pair.a_id)
                if group:
                    return [
                        row
                        for row in range(total)
                        if (pair := index_access.get_pair(row)) is not None
                        and _action_group(records, pair.a_id) == group
                    ]
            return [
                row
                for row in range(total)
                if (pair := index_access.get_pair(row)) is not None
                and pair.a_id == active_pair.a_id
            ]

        if selection.rows:
            return sorted(selection.rows)
        return [selection.active_row]

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def _relevant_columns(
        self,
        options: InferenceOptions,
        selection: SelectionState | None,
    ) -> list[PhaseKey]:
        matches: list[tuple[int, PhaseKey]] = []
        for index, column_key in enumerate(self._columns()):
            phase_key = PhaseKey.parse(column_key)
            if phase_key is None:
                continue
            if phase_key.field is EnumNoteField.END and not options.include_end:
                continue
            if phase_key.field is EnumNoteField.TAG and not options.include_tag:
                continue
            matches.append((index, phase_key))
        if selection is not None and not selection.cols_all and len(selection.cols) > 1:
            matches = [(index, pk) for index, pk in matches if index in selection.cols]
        return [phase_key for _, phase_key in matches]

    def collect_targets(
        self,
        scope: EnumInferenceScope | str,
        options: InferenceOptions,
        index_access: IndexAccess,
        rows: Sequence[int] | None = None,
    ) -> TargetCollection:
        """Build one target per (row, eligible phase column)."""
        if self._active_view is not None and self._active_view() != INTERACTIONS_VIEW:
            return TargetCollection(allowed=False, reason=OUT_OF_VIEW_STATUS)

        resolved = EnumInferenceScope(scope)
        resolved_rows = list(rows) if rows is not None else self.get_rows(resolved, index_access)
        selection = self._selection() if resolved is EnumInferenceScope.SELECTION else None
        columns = self._relevant_columns(options, selection)
        records = self._action_records()

        targets: list[Target] = []
        for row in resolved_rows:
            pair = index_access.get_pair(row)
            if pair is None:
                continue
            record = records.get(coerce_int(pair.a_id))  # type: ignore[arg-type]
            allowed_phases = record.allowed_phases if record is not None else None
            group = record.action_group if record is not None else ""
            if index_access.include_bypass and not group:
                group = BYPASS_ACTION_GROUP
            for phase_key in columns:
                if allowed_phases is not None and phase_key.phase not in allowed_phases:
                    continue
                key = note_key_for_pair(pair, phase_key.phase)
                targets.append(
                    Target(
                        key=key,
                        field=phase_key.field,
                        phase=phase_key.phase,
                        note=self._note_store.get(key),
                        pair=pair,
                        row=row,
                        action_group=group,
                        allow_inferred_targets=options.overwrite_inferred,
                        properties=record.properties if record is not None else (),
                    )
                )
        return TargetCollection(targets=targets)

    def resolve_scopes(
        self,
        options: InferenceOptions,
        index_access: IndexAccess,
        rows: Sequence[int] | None = None,
        *,
        base_access: IndexAccess | None = None,
    ) -> ResolvedScopes:
        """Collect requested targets and the broadened suggestion targets.

        ``base_access`` is the default index behind an extended
        ``index_access``; the selection's action ids are read from it.
        """
        requested = options.scope
        collection = self.collect_targets(requested, options, index_access, rows)
        plan = build_scope_plan(
            requested, self._selection(), index_access, base_access=base_access
        )
        if not collection.allowed:
            return ResolvedScopes(
                plan=plan,
                requested_targets=collection.targets,
                suggestion_targets=collection.targets,
                allowed=False,
                reason=collection.reason,
            )
        if plan.suggestion_scope is requested:
            return ResolvedScopes(
                plan=plan,
                requested_targets=collection.targets,
                suggestion_targets=collection.targets,
            )

        broader = self.collect_targets(plan.suggestion_scope, options, index_access)
        suggestion_targets = list(collection.targets)
        if broader.allowed:
            seen = {target.dedupe_key for target in suggestion_targets}
            for target in broader.targets:
                if target.dedupe_key not in seen:
                    suggestion_targets.append(target)
                    seen.add(target.dedupe_key)
        logger.debug(
            "Broadened suggestion scope. requested=%s suggestion=%s reason=%s "
            "requested_targets=%d suggestion_targets=%d",
            requested.value,
            plan.suggestion_scope.value,
            plan.reason.value,
            len(collection.targets),
            len(suggestion_targets),
        )
        return ResolvedScopes(
            plan=plan,
            requested_targets=collection.targets,
            suggestion_targets=suggestion_targets,
        )


def _action_group(records: Mapping[int, ActionRecord], action_id: object) -> str:
    record = records.get(coerce_int(action_id))  # type: ignore[arg-type]
    return record.action_group if record is not None else ""


__all__ = [
    "ResolvedScopes",
    "ScopePlan",
    "TargetCollection",
    "TargetResolver",
    "build_scope_plan",
]
