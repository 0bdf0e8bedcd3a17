# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Exceptions for the interaction inference engine.

Inference itself never raises for expected conditions: out-of-view
requests, empty target sets and no-op runs are reported through status
strings on the result. Exceptions are reserved for invalid wiring detected
when a component is constructed.
"""

from __future__ import annotations


class InferenceConfigurationError(Exception):
    """Raised when an engine component is wired with missing collaborators.

    Example:
        >>> raise InferenceConfigurationError("note_store is required")
        InferenceConfigurationError: note_store is required
    """

    pass


__all__ = ["InferenceConfigurationError"]
