# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Note field enum for interaction inference.

Contains the structured fields a phase-qualified note can carry.
"""

from enum import Enum


class EnumNoteField(str, Enum):
    """Structured note fields that inference can read and write."""

    OUTCOME = "outcome"
    END = "end"
    TAG = "tag"


__all__ = [
    "EnumNoteField",
]
