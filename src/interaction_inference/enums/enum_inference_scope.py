# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Inference scope enums.

Contains the breadth values an inference or clear request can target, and
the reasons a suggestion scope may differ from the requested one.
"""

from enum import Enum


class EnumInferenceScope(str, Enum):
    """Breadth of an inference request."""

    SELECTION = "selection"
    ACTION = "action"
    ACTION_GROUP = "actionGroup"
    PROJECT = "project"


class EnumSuggestionScopeReason(str, Enum):
    """Why the suggestion scope was chosen."""

    REQUESTED = "requested"
    BYPASS_SELECTION = "bypassSelection"
    BROADENED = "broadened"


__all__ = [
    "EnumInferenceScope",
    "EnumSuggestionScopeReason",
]
