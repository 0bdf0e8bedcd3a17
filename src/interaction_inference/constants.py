# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Constants shared across the interaction inference engine.

Provenance defaults, the fixed source priority used to break confidence
ties, human-readable heuristic labels, and the user-facing status strings.
Tunable knobs (ratios, group sizes, base confidences) are NOT here; they
live in ``HeuristicThresholds`` and ``InferenceSettings`` so callers can
override them.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Final

from interaction_inference.enums import EnumHeuristicSource

# =============================================================================
# Provenance Defaults
# =============================================================================

DEFAULT_INTERACTION_CONFIDENCE: Final[float] = 1.0
DEFAULT_INTERACTION_SOURCE: Final[str] = "manual"

PROVENANCE_KEYS: Final[tuple[str, ...]] = ("confidence", "source", "source_metadata")

# =============================================================================
# Source Priority
# =============================================================================

# Higher value wins when two candidates carry equal confidence.
SOURCE_PRIORITY: Final[MappingProxyType[str, int]] = MappingProxyType(
    {
        EnumHeuristicSource.MODIFIER_PROPAGATION.value: 70,
        EnumHeuristicSource.MODIFIER_PROFILE.value: 60,
        EnumHeuristicSource.PHASE_ADJACENCY.value: 50,
        EnumHeuristicSource.ACTION_GROUP.value: 40,
        EnumHeuristicSource.ACTION_PROPERTY.value: 35,
        EnumHeuristicSource.PROFILE_TREND.value: 30,
        EnumHeuristicSource.INPUT_DEFAULT.value: 20,
    }
)

HEURISTIC_LABELS: Final[MappingProxyType[str, str]] = MappingProxyType(
    {
        EnumHeuristicSource.ACTION_GROUP.value: "action group similarity",
        EnumHeuristicSource.ACTION_PROPERTY.value: "action property similarity",
        EnumHeuristicSource.MODIFIER_PROPAGATION.value: "modifier propagation",
        EnumHeuristicSource.MODIFIER_PROFILE.value: "modifier profile",
        EnumHeuristicSource.INPUT_DEFAULT.value: "input default",
        EnumHeuristicSource.PROFILE_TREND.value: "modifier/input trends",
        EnumHeuristicSource.PHASE_ADJACENCY.value: "phase adjacency",
    }
)

# =============================================================================
# Views, Status Strings
# =============================================================================

INTERACTIONS_VIEW: Final[str] = "interactions"
BYPASS_ACTION_GROUP: Final[str] = "__bypass__"

OUT_OF_VIEW_STATUS: Final[str] = "Inference only applies to the Interactions view."
NO_TARGETS_STATUS: Final[str] = (
    "Select Outcome, End, or Tag cells in the Interactions view to run inference."
)
NO_CHANGES_STATUS: Final[str] = "No changes"
NO_CLEARED_STATUS: Final[str] = "Cleared no entries"

# =============================================================================
# Bypass Scoped Cache Telemetry
# =============================================================================

DEFAULT_BYPASS_CACHE_WARNING_ENTRIES: Final[int] = 8
DEFAULT_BYPASS_CACHE_WARNING_ROWS: Final[int] = 150_000

# =============================================================================
# Profile Store
# =============================================================================

DEFAULT_PROFILE_DECAY_FACTOR: Final[float] = 0.94
DEFAULT_PROFILE_DECAY_INTERVAL: Final[int] = 50
DEFAULT_PROFILE_NEGLIGIBLE_COUNT: Final[float] = 0.1


__all__ = [
    "BYPASS_ACTION_GROUP",
    "DEFAULT_BYPASS_CACHE_WARNING_ENTRIES",
    "DEFAULT_BYPASS_CACHE_WARNING_ROWS",
    "DEFAULT_INTERACTION_CONFIDENCE",
    "DEFAULT_INTERACTION_SOURCE",
    "DEFAULT_PROFILE_DECAY_FACTOR",
    "DEFAULT_PROFILE_DECAY_INTERVAL",
    "DEFAULT_PROFILE_NEGLIGIBLE_COUNT",
    "HEURISTIC_LABELS",
    "INTERACTIONS_VIEW",
    "NO_CHANGES_STATUS",
    "NO_CLEARED_STATUS",
    "NO_TARGETS_STATUS",
    "OUT_OF_VIEW_STATUS",
    "PROVENANCE_KEYS",
    "SOURCE_PRIORITY",
]
