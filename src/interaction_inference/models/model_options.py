# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Inference request options.

Parses the loosely shaped payload the dialog layer sends into a frozen,
fully defaulted options model. Boolean flags follow the host convention:
``include_end``, ``include_tag`` and ``overwrite_inferred`` are on unless
explicitly ``False``; the remaining flags are on only when truthy.
``default_confidence`` / ``default_source`` are normalized only when the
payload names them, so their presence (even as null) is meaningful.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from interaction_inference.enums import EnumInferenceScope
from interaction_inference.models.model_note import (
    normalize_interaction_confidence,
    normalize_interaction_source,
)

logger = logging.getLogger(__name__)

_DEFAULT_ON_FLAGS = ("include_end", "include_tag", "overwrite_inferred")
_DEFAULT_OFF_FLAGS = (
    "infer_from_bypassed",
    "infer_to_bypassed",
    "only_fill_empty",
    "skip_manual_outcome",
)


class InferenceOptions(BaseModel):
    """Normalized options for one run or clear request."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    scope: EnumInferenceScope = EnumInferenceScope.SELECTION
    include_end: bool = True
    include_tag: bool = True
    infer_from_bypassed: bool = False
    infer_to_bypassed: bool = False
    overwrite_inferred: bool = True
    only_fill_empty: bool = False
    skip_manual_outcome: bool = False
    default_confidence: float | None = None
    default_source: str | None = None
    threshold_overrides: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_payload(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return {}
        payload: dict[str, Any] = {}
        for name in cls.model_fields:
            alias = to_camel(name)
            if name in data:
                payload[name] = data[name]
            elif alias in data:
                payload[name] = data[alias]

        for name in _DEFAULT_ON_FLAGS:
            payload[name] = payload.get(name) is not False
        for name in _DEFAULT_OFF_FLAGS:
            payload[name] = bool(payload.get(name))

        scope = payload.get("scope")
        try:
            payload["scope"] = EnumInferenceScope(scope or EnumInferenceScope.SELECTION)
        except ValueError:
            logger.warning("Unknown inference scope %r; using selection.", scope)
            payload["scope"] = EnumInferenceScope.SELECTION

        if "default_confidence" in payload:
            payload["default_confidence"] = normalize_interaction_confidence(
                payload["default_confidence"]
            )
        if "default_source" in payload:
            payload["default_source"] = normalize_interaction_source(
                payload["default_source"]
            )

        overrides = payload.get("threshold_overrides")
        payload["threshold_overrides"] = (
            dict(overrides) if isinstance(overrides, Mapping) else None
        )
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> InferenceOptions:
        return cls.model_validate(payload or {})

    @property
    def uses_bypass_index(self) -> bool:
        return self.infer_from_bypassed or self.infer_to_bypassed

    @property
    def default_metadata(self) -> dict[str, Any] | None:
        """Explicit provenance to stamp when no suggestion applies."""
        if self.default_confidence is None and self.default_source is None:
            return None
        return {"confidence": self.default_confidence, "source": self.default_source}


__all__ = ["InferenceOptions"]
