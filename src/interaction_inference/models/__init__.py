# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Data models for the interaction inference engine."""

from interaction_inference.models.model_note import (
    EndValueDict,
    FieldValueDict,
    InferenceInfo,
    NoteDict,
    OutcomeValueDict,
    TagValueDict,
    apply_interaction_metadata,
    describe_interaction_inference,
    normalize_interaction_confidence,
    normalize_interaction_source,
    note_key_for_pair,
)
from interaction_inference.models.model_options import InferenceOptions
from interaction_inference.models.model_pair import Pair, PhaseKey
from interaction_inference.models.model_project import ActionRecord, SelectionState
from interaction_inference.models.model_results import (
    ApplyResult,
    ClearResult,
    TagChangeEvent,
)
from interaction_inference.models.model_suggestion import Suggestion, SuggestionTable
from interaction_inference.models.model_target import PreparedTarget, Target
from interaction_inference.models.model_thresholds import (
    DEFAULT_HEURISTIC_THRESHOLDS,
    HeuristicThresholds,
)

__all__ = [
    "DEFAULT_HEURISTIC_THRESHOLDS",
    "ActionRecord",
    "ApplyResult",
    "ClearResult",
    "EndValueDict",
    "FieldValueDict",
    "HeuristicThresholds",
    "InferenceInfo",
    "InferenceOptions",
    "NoteDict",
    "OutcomeValueDict",
    "Pair",
    "PhaseKey",
    "PreparedTarget",
    "SelectionState",
    "Suggestion",
    "SuggestionTable",
    "TagChangeEvent",
    "TagValueDict",
    "Target",
    "apply_interaction_metadata",
    "describe_interaction_inference",
    "normalize_interaction_confidence",
    "normalize_interaction_source",
    "note_key_for_pair",
]
