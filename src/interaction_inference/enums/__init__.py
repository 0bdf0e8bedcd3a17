# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""
Interaction Inference Enums Package.

Unified import location for all enums:

    from interaction_inference.enums import (
        EnumHeuristicSource,
        EnumInferenceScope,
        EnumNoteField,
    )
"""

from interaction_inference.enums.enum_heuristic_source import EnumHeuristicSource
from interaction_inference.enums.enum_inference_scope import (
    EnumInferenceScope,
    EnumSuggestionScopeReason,
)
from interaction_inference.enums.enum_note_field import EnumNoteField
from interaction_inference.enums.enum_profile_impact import EnumProfileImpact

__all__ = [
    "EnumHeuristicSource",
    "EnumInferenceScope",
    "EnumNoteField",
    "EnumProfileImpact",
    "EnumSuggestionScopeReason",
]
