# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Heuristic source enum.

Each value is the provenance ``source`` string written to notes filled by
the corresponding strategy.
"""

from enum import Enum


class EnumHeuristicSource(str, Enum):
    """Provenance sources produced by inference strategies."""

    MODIFIER_PROPAGATION = "modifier-propagation"
    MODIFIER_PROFILE = "modifier-profile"
    PHASE_ADJACENCY = "phase-adjacency"
    ACTION_GROUP = "action-group"
    ACTION_PROPERTY = "action-property"
    PROFILE_TREND = "profile-trend"
    INPUT_DEFAULT = "input-default"


__all__ = [
    "EnumHeuristicSource",
]
