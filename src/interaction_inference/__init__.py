# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Interaction Inference - heuristic filling of interaction matrix notes.

Suggests outcome, end and tag values for the (action x input/action x
phase) cells of an interaction matrix from the values the user already
entered, scores every suggestion, and writes the winners back with
provenance so they can be told apart from manual values and cleared later.

Quick Start - Proposals Only:
    >>> from interaction_inference import propose_interaction_inferences
    >>> table = propose_interaction_inferences(targets)
    >>> table.get("ai|1|10||p1", "outcome")
    Suggestion(source='modifier-propagation', confidence=0.41, ...)

Quick Start - Full Runs:
    >>> from interaction_inference import create_inference_controller
    >>> controller = create_inference_controller(
    ...     note_store=store,
    ...     indexer=indexer,
    ...     actions=lambda: actions,
    ...     selection=lambda: selection,
    ...     columns=lambda: columns,
    ... )
    >>> controller.run_inference({"scope": "project"}).status
    'Inference: 4 inferred.'
"""

from interaction_inference.application import apply_suggestions, clear_inferred
from interaction_inference.config import InferenceSettings
from interaction_inference.controller import (
    InferenceController,
    create_inference_controller,
    format_status,
)
from interaction_inference.enums import (
    EnumHeuristicSource,
    EnumInferenceScope,
    EnumNoteField,
)
from interaction_inference.exceptions import InferenceConfigurationError
from interaction_inference.heuristics import propose_interaction_inferences
from interaction_inference.models import (
    DEFAULT_HEURISTIC_THRESHOLDS,
    ActionRecord,
    ApplyResult,
    ClearResult,
    HeuristicThresholds,
    InferenceOptions,
    Pair,
    SelectionState,
    Suggestion,
    SuggestionTable,
    TagChangeEvent,
    Target,
)
from interaction_inference.note_store import InMemoryNoteStore
from interaction_inference.profiles import ProfilesSnapshot, ProfileStore
from interaction_inference.variant_index import InMemoryVariantIndexer, PairIndex

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "DEFAULT_HEURISTIC_THRESHOLDS",
    "HeuristicThresholds",
    "InferenceOptions",
    "InferenceSettings",
    # Types
    "ActionRecord",
    "ApplyResult",
    "ClearResult",
    "EnumHeuristicSource",
    "EnumInferenceScope",
    "EnumNoteField",
    "Pair",
    "SelectionState",
    "Suggestion",
    "SuggestionTable",
    "TagChangeEvent",
    "Target",
    # Exceptions
    "InferenceConfigurationError",
    # Storage
    "InMemoryNoteStore",
    "InMemoryVariantIndexer",
    "PairIndex",
    "ProfileStore",
    "ProfilesSnapshot",
    # Main API
    "InferenceController",
    "apply_suggestions",
    "clear_inferred",
    "create_inference_controller",
    "format_status",
    "propose_interaction_inferences",
]
