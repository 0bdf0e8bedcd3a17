# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Profile impact enum.

Classification of a single edit as recorded by the profile store.
"""

from enum import Enum


class EnumProfileImpact(str, Enum):
    """How an edit changed a note field."""

    CHANGE = "change"
    CLEAR = "clear"
    NOOP = "noop"


__all__ = [
    "EnumProfileImpact",
]
