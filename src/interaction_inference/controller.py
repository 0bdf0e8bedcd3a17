# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Inference controller: the user-facing entry points.

Wires index access, target resolution, the heuristic engine and the
application engine into three operations:

    - ``run_inference(payload)``: infer and write suggestions.
    - ``run_clear(payload)``: retract machine-written values.
    - ``open_inference_dialog()``: gather options through the host dialog,
      which calls back into the two operations above.

Each run executes inside the host's mutation runner when one is supplied,
so a run is a single undo step and only recorded when it changed something.
Tag change events collected by the application engine are dispatched once
per call, inside the mutation once the engine has returned.

Usage:
    >>> controller = create_inference_controller(
    ...     note_store=store,
    ...     indexer=indexer,
    ...     actions=lambda: actions,
    ...     selection=lambda: selection,
    ...     columns=lambda: ["p1:outcome", "p1:end", "p1:tag"],
    ... )
    >>> result = controller.run_inference({"scope": "action"})
    >>> result.status
    'Inference: 3 inferred.'
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from interaction_inference.application import apply_suggestions, clear_inferred
from interaction_inference.config import InferenceSettings
from interaction_inference.constants import (
    HEURISTIC_LABELS,
    NO_CHANGES_STATUS,
    NO_CLEARED_STATUS,
    NO_TARGETS_STATUS,
    OUT_OF_VIEW_STATUS,
)
from interaction_inference.index_access import InferenceIndexAccess
from interaction_inference.models.model_options import InferenceOptions
from interaction_inference.models.model_project import ActionRecord, SelectionState
from interaction_inference.models.model_results import (
    ApplyResult,
    ClearResult,
    TagChangeEvent,
)
from interaction_inference.models.model_thresholds import (
    DEFAULT_HEURISTIC_THRESHOLDS,
    HeuristicThresholds,
)
from interaction_inference.profiles import ProfileStore
from interaction_inference.protocols import (
    ProtocolInferenceDialog,
    ProtocolMutationRunner,
    ProtocolNoteStore,
    ProtocolStatusBar,
    ProtocolTagEventSink,
    ProtocolVariantIndexer,
)
from interaction_inference.strategies.base import InferenceStrategy
from interaction_inference.targets import TargetResolver

logger = logging.getLogger(__name__)

RUN_LABEL = "Inference"
CLEAR_LABEL = "Clear inference"
CLEARED_STATUS_LABEL = "Cleared inference"

ResultT = TypeVar("ResultT", ApplyResult, ClearResult)


def format_status(result: ApplyResult | ClearResult | None, label: str) -> str:
    """Render the status-bar summary of a run or clear result.

    Blocked results report their own status. Otherwise the summary lists
    the actions taken, the skip counts and the per-heuristic tallies.
    """
    if result is None:
        return ""
    if not result.allowed and result.status:
        return result.status

    applied = getattr(result, "applied", 0)
    cleared = getattr(result, "cleared", 0)
    actions: list[str] = []
    if applied:
        actions.append(f"{applied} inferred")
    if cleared:
        actions.append(f"{cleared} cleared")
    nothing_cleared = False
    if not actions:
        if result.status:
            return result.status
        nothing_cleared = isinstance(result, ClearResult)
        actions.append(NO_CLEARED_STATUS if nothing_cleared else NO_CHANGES_STATUS)

    skips: list[str] = []
    if result.skipped_manual:
        skips.append(f"{result.skipped_manual} manual")
    skipped_manual_outcome = getattr(result, "skipped_manual_outcome", 0)
    if skipped_manual_outcome:
        skips.append(f"{skipped_manual_outcome} manual outcomes")
    skipped_existing = getattr(result, "skipped_existing", 0)
    if skipped_existing:
        skips.append(f"{skipped_existing} existing")
    empty = getattr(result, "empty", 0)
    if empty:
        skips.append(f"{empty} empty")
    suffix = f" (skipped {', '.join(skips)})" if skips else ""

    sources: Mapping[str, int] = getattr(result, "sources", {})
    entries = [
        f"{HEURISTIC_LABELS.get(key, key)}: {count}"
        for key, count in sources.items()
        if count
    ]
    source_text = f" Heuristics — {', '.join(entries)}." if entries else ""
    if nothing_cleared:
        return f"{actions[0]}{suffix}."
    return f"{label or RUN_LABEL}: {', '.join(actions)}{suffix}.{source_text}"


class InferenceController:
    """Runs and clears inference for the interactions view.

    Args:
        note_store: Note storage the runs mutate.
        index_access: Index selection and bypass cache.
        resolver: Scope and target resolution.
        status_bar: Optional status line.
        run_model_mutation: Optional host mutation runner (undo grouping).
        tag_event_sink: Optional receiver of tag change events.
        dialog: Optional async dialog opener.
        profile_store: Optional learned profiles; read once per run and
            updated with each write.
        heuristic_thresholds: Base thresholds; defaults to the built-ins.
        strategies: Strategy sequence override.
    """

    def __init__(
        self,
        *,
        note_store: ProtocolNoteStore,
        index_access: InferenceIndexAccess,
        resolver: TargetResolver,
        status_bar: ProtocolStatusBar | None = None,
        run_model_mutation: ProtocolMutationRunner | None = None,
        tag_event_sink: ProtocolTagEventSink | None = None,
        dialog: ProtocolInferenceDialog | None = None,
        profile_store: ProfileStore | None = None,
        heuristic_thresholds: HeuristicThresholds | None = None,
        strategies: Sequence[InferenceStrategy] | None = None,
    ) -> None:
        self._note_store = note_store
        self._index_access = index_access
        self._resolver = resolver
        self._status_bar = status_bar
        self._run_model_mutation = run_model_mutation
        self._tag_event_sink = tag_event_sink
        self._dialog = dialog
        self._profile_store = profile_store
        self._base_thresholds = heuristic_thresholds or DEFAULT_HEURISTIC_THRESHOLDS
        self._strategies = strategies
        self._last_thresholds = self._base_thresholds

    @property
    def base_thresholds(self) -> HeuristicThresholds:
        return self._base_thresholds

    @property
    def last_threshold_overrides(self) -> HeuristicThresholds:
        """Merged thresholds of the last run that reached the engine."""
        return self._last_thresholds

    @property
    def index_access(self) -> InferenceIndexAccess:
        return self._index_access

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def run_inference(self, payload: Mapping[str, Any] | None = None) -> ApplyResult:
        """Infer values for the requested scope and write them."""
        options = InferenceOptions.from_payload(payload)
        return self._run_with_history(
            RUN_LABEL,
            lambda: self._apply(options),
            lambda res: format_status(res, RUN_LABEL),
            lambda res: res.applied > 0,
        )

    def run_clear(self, payload: Mapping[str, Any] | None = None) -> ClearResult:
        """Remove inferred values from the requested scope."""
        options = InferenceOptions.from_payload(payload)
        return self._run_with_history(
            CLEAR_LABEL,
            lambda: self._clear(options),
            lambda res: format_status(res, CLEARED_STATUS_LABEL),
            lambda res: res.cleared > 0,
        )

    async def open_inference_dialog(self) -> Any:
        """Open the host dialog with the current defaults.

        Failures are reported on the status bar and yield None.
        """
        if self._dialog is None:
            logger.warning("Inference dialog requested but none is configured.")
            self._set_status("Open inference failed: inference dialog is not configured")
            return None
        try:
            return await self._dialog(
                defaults=self._dialog_defaults(),
                default_thresholds=self._base_thresholds.model_dump(by_alias=True),
                on_run=self.run_inference,
                on_clear=self.run_clear,
            )
        except Exception as exc:
            logger.exception("Opening the inference dialog failed.")
            self._set_status(f"Open inference failed: {exc}")
            return None

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _dialog_defaults(self) -> dict[str, Any]:
        defaults = InferenceOptions()
        return {
            "scope": defaults.scope.value,
            "include_end": defaults.include_end,
            "include_tag": defaults.include_tag,
            "infer_from_bypassed": defaults.infer_from_bypassed,
            "infer_to_bypassed": defaults.infer_to_bypassed,
            "overwrite_inferred": defaults.overwrite_inferred,
            "only_fill_empty": defaults.only_fill_empty,
            "skip_manual_outcome": defaults.skip_manual_outcome,
            "threshold_overrides": self._last_thresholds.model_dump(by_alias=True),
        }

    def _apply(self, options: InferenceOptions) -> ApplyResult:
        resolved = self._index_access.resolve_index_access(options, self._resolver.get_rows)
        scopes = self._resolver.resolve_scopes(
            options,
            resolved.index_access,
            resolved.rows,
            base_access=resolved.base_access,
        )
        if not scopes.allowed:
            status = scopes.reason or OUT_OF_VIEW_STATUS
            self._set_status(status)
            return ApplyResult(allowed=False, status=status)
        if not scopes.requested_targets:
            self._set_status(NO_TARGETS_STATUS)
            return ApplyResult(status=NO_TARGETS_STATUS)

        result = apply_suggestions(
            note_store=self._note_store,
            targets=scopes.requested_targets,
            suggestion_targets=scopes.suggestion_targets,
            options=options,
            profile_store=self._profile_store,
            base_thresholds=self._base_thresholds,
            strategies=self._strategies,
        )
        if result.thresholds is not None:
            self._last_thresholds = result.thresholds
        self._dispatch_tag_events(result.tag_events)
        return result

    def _clear(self, options: InferenceOptions) -> ClearResult:
        resolved = self._index_access.resolve_index_access(options, self._resolver.get_rows)
        collection = self._resolver.collect_targets(
            options.scope, options, resolved.index_access, resolved.rows
        )
        if not collection.allowed:
            status = collection.reason or OUT_OF_VIEW_STATUS
            self._set_status(status)
            return ClearResult(allowed=False, status=status)
        if not collection.targets:
            self._set_status(NO_TARGETS_STATUS)
            return ClearResult(status=NO_TARGETS_STATUS)

        result = clear_inferred(
            note_store=self._note_store,
            targets=collection.targets,
            profile_store=self._profile_store,
        )
        self._dispatch_tag_events(result.tag_events)
        return result

    def _run_with_history(
        self,
        label: str,
        mutate: Callable[[], ResultT],
        formatter: Callable[[ResultT], str],
        should_record: Callable[[ResultT], bool],
    ) -> ResultT:
        if self._run_model_mutation is None:
            result = mutate()
            status = formatter(result)
            if status:
                result.status = status
                self._set_status(status)
            return result

        formatted: list[str] = []

        def status_callback(value: ResultT) -> str:
            text = formatter(value)
            formatted.append(text)
            return text

        result = self._run_model_mutation(
            label,
            mutate,
            undo={"label": label, "include_location": False, "include_column": False},
            status=status_callback,
            should_record=should_record,
        )
        if result is not None and not result.status:
            status = formatted[-1] if formatted else formatter(result)
            if status:
                result.status = status
        return result

    def _dispatch_tag_events(self, events: Iterable[TagChangeEvent]) -> None:
        if self._tag_event_sink is None:
            return
        for event in events:
            self._tag_event_sink(event)

    def _set_status(self, message: str) -> None:
        if self._status_bar is not None:
            self._status_bar.set(message)


def create_inference_controller(
    *,
    note_store: ProtocolNoteStore,
    indexer: ProtocolVariantIndexer,
    actions: Callable[[], Iterable[ActionRecord]],
    selection: Callable[[], SelectionState],
    columns: Callable[[], Sequence[str]],
    active_view: Callable[[], str] | None = None,
    status_bar: ProtocolStatusBar | None = None,
    run_model_mutation: ProtocolMutationRunner | None = None,
    tag_event_sink: ProtocolTagEventSink | None = None,
    dialog: ProtocolInferenceDialog | None = None,
    profile_store: ProfileStore | None = None,
    heuristic_thresholds: HeuristicThresholds | Mapping[str, Any] | None = None,
    strategies: Sequence[InferenceStrategy] | None = None,
    settings: InferenceSettings | None = None,
) -> InferenceController:
    """Build a controller from host collaborators.

    ``heuristic_thresholds`` may be a thresholds model or a partial
    override bag merged into the defaults.

    Raises:
        InferenceConfigurationError: If a required collaborator is missing.
    """
    resolved_settings = settings or InferenceSettings()
    if isinstance(heuristic_thresholds, HeuristicThresholds):
        base_thresholds = heuristic_thresholds
    else:
        base_thresholds = DEFAULT_HEURISTIC_THRESHOLDS.with_overrides(heuristic_thresholds)

    index_access = InferenceIndexAccess(
        indexer,
        note_store,
        selection,
        status_bar=status_bar,
        settings=resolved_settings,
    )
    resolver = TargetResolver(
        note_store,
        actions,
        selection,
        columns,
        active_view=active_view,
    )
    logger.debug(
        "Created inference controller. mutation_runner=%s dialog=%s profiles=%s",
        run_model_mutation is not None,
        dialog is not None,
        profile_store is not None,
    )
    return InferenceController(
        note_store=note_store,
        index_access=index_access,
        resolver=resolver,
        status_bar=status_bar,
        run_model_mutation=run_model_mutation,
        tag_event_sink=tag_event_sink,
        dialog=dialog,
        profile_store=profile_store,
        heuristic_thresholds=base_thresholds,
        strategies=strategies,
    )


__all__ = [
    "CLEAR_LABEL",
    "InferenceController",
    "RUN_LABEL",
    "create_inference_controller",
    "format_status",
]
