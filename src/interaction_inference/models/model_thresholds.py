# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Heuristic threshold configuration.

Every tunable knob of the strategy pipeline: minimum group sizes, minimum
existing-value ratios, profile observation floors, phase-adjacency limits
and the base confidence of each source.

IMPORTANT:
    These are INPUTS (reasonable defaults), not load-bearing constants.
    The dialog sends partial override bags in camelCase
    (``{"consensusMinGroupSize": 3}``); ``with_overrides`` merges them.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class HeuristicThresholds(BaseModel):
    """Thresholds and base confidences for the inference strategies.

    Attributes mirror the camelCase keys hosts use; both spellings are
    accepted on input.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    # Modifier propagation / modifier profile consensus
    consensus_min_group_size: int = Field(default=2, ge=1)
    consensus_min_existing_ratio: float = Field(default=0.5, ge=0.0, le=1.0)

    # Action group consensus (same input, then phase-wide)
    action_group_min_group_size: int = Field(default=2, ge=1)
    action_group_min_existing_ratio: float = Field(default=0.5, ge=0.0, le=1.0)
    action_group_phase_min_group_size: int = Field(default=3, ge=1)
    action_group_phase_min_existing_ratio: float = Field(default=0.6, ge=0.0, le=1.0)

    # Action property consensus
    action_property_enabled: bool = True
    action_property_min_group_size: int = Field(default=2, ge=1)
    action_property_min_existing_ratio: float = Field(default=0.5, ge=0.0, le=1.0)
    action_property_phase_min_group_size: int = Field(default=3, ge=1)
    action_property_phase_min_existing_ratio: float = Field(default=0.6, ge=0.0, le=1.0)

    # Input default
    input_default_min_group_size: int = Field(default=2, ge=1)
    input_default_min_existing_ratio: float = Field(default=0.5, ge=0.0, le=1.0)

    # Profile trend and profile preference gate
    profile_trend_min_observations: float = Field(default=3.0, ge=0.0)
    profile_trend_min_preference_ratio: float = Field(default=0.6, ge=0.0, le=1.0)
    profile_trend_support_bonus_step: float = Field(default=0.01, ge=0.0, le=1.0)
    profile_trend_support_bonus_cap: float = Field(default=0.1, ge=0.0, le=1.0)
    profile_preference_min_observations: float = Field(default=3.0, ge=0.0)
    profile_preference_noop_ratio: float = Field(default=0.7, ge=0.0, le=1.0)

    # Phase adjacency
    phase_adjacency_enabled: bool = True
    phase_adjacency_max_gap: int = Field(default=4, ge=1)

    # Base confidence per source
    modifier_propagation_confidence: float = Field(default=0.82, ge=0.0, le=1.0)
    modifier_profile_confidence: float = Field(default=0.64, ge=0.0, le=1.0)
    phase_adjacency_confidence: float = Field(default=0.62, ge=0.0, le=1.0)
    action_group_confidence: float = Field(default=0.60, ge=0.0, le=1.0)
    action_property_confidence: float = Field(default=0.58, ge=0.0, le=1.0)
    profile_trend_confidence: float = Field(default=0.56, ge=0.0, le=1.0)
    input_default_confidence: float = Field(default=0.48, ge=0.0, le=1.0)

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> HeuristicThresholds:
        """Merge a partial override bag into a new thresholds instance.

        Only finite numbers and booleans are kept, unknown keys are ignored,
        and values that fail validation are dropped with a warning so the
        remaining overrides still apply.
        """
        if not overrides:
            return self
        names = self._field_names_by_key()
        accepted: dict[str, Any] = {}
        for key, value in overrides.items():
            name = names.get(key)
            if name is None:
                continue
            if isinstance(value, bool) or (
                isinstance(value, (int, float)) and math.isfinite(value)
            ):
                accepted[name] = value
        if not accepted:
            return self

        merged = {**self.model_dump(), **accepted}
        try:
            return type(self).model_validate(merged)
        except ValidationError as exc:
            rejected = {
                names.get(str(err["loc"][0]), str(err["loc"][0]))
                for err in exc.errors()
                if err["loc"]
            }
            logger.warning(
                "Dropping invalid threshold overrides. fields=%s",
                sorted(rejected),
            )
            for name in rejected:
                merged[name] = getattr(self, name)
            return type(self).model_validate(merged)

    @classmethod
    def _field_names_by_key(cls) -> dict[str, str]:
        names: dict[str, str] = {}
        for name, info in cls.model_fields.items():
            names[name] = name
            if info.alias:
                names[info.alias] = name
        return names


DEFAULT_HEURISTIC_THRESHOLDS = HeuristicThresholds()


__all__ = ["DEFAULT_HEURISTIC_THRESHOLDS", "HeuristicThresholds"]
