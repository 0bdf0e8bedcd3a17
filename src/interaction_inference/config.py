# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Environment-driven settings for the interaction inference engine.

``InferenceSettings`` holds the operational knobs that are not per-request:
bypass scoped-cache telemetry and the profile store's decay schedule.
Per-request strategy thresholds live in ``HeuristicThresholds``.

Environment variables:
    INFERENCE_BYPASS_CACHE_WARNING_ENTRIES: int (default 8)
    INFERENCE_BYPASS_CACHE_WARNING_ROWS: int (default 150000)
    INFERENCE_ENABLE_BYPASS_CACHE_TELEMETRY: bool (default true)
    INFERENCE_PROFILE_DECAY_FACTOR: float (default 0.94)
    INFERENCE_PROFILE_DECAY_INTERVAL: int (default 50)
    INFERENCE_PROFILE_NEGLIGIBLE_COUNT: float (default 0.1)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from interaction_inference.constants import (
    DEFAULT_BYPASS_CACHE_WARNING_ENTRIES,
    DEFAULT_BYPASS_CACHE_WARNING_ROWS,
    DEFAULT_PROFILE_DECAY_FACTOR,
    DEFAULT_PROFILE_DECAY_INTERVAL,
    DEFAULT_PROFILE_NEGLIGIBLE_COUNT,
)


class ProfileDecayPolicy(BaseModel):
    """Decay schedule applied by the profile store.

    Attributes:
        factor: Multiplier applied to every counter and histogram count.
        interval: Number of recorded impacts between decays.
        negligible_count: Histogram entries below this are dropped on decay.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    factor: float = Field(default=DEFAULT_PROFILE_DECAY_FACTOR, gt=0.0, le=1.0)
    interval: int = Field(default=DEFAULT_PROFILE_DECAY_INTERVAL, ge=1)
    negligible_count: float = Field(default=DEFAULT_PROFILE_NEGLIGIBLE_COUNT, ge=0.0)


class BypassCacheBudget(BaseModel):
    """Soft limits for the scoped bypass-index cache.

    Crossing either limit emits a one-time advisory; nothing is evicted.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    warning_entries: int = Field(default=DEFAULT_BYPASS_CACHE_WARNING_ENTRIES, ge=1)
    warning_rows: int = Field(default=DEFAULT_BYPASS_CACHE_WARNING_ROWS, ge=1)
    telemetry_enabled: bool = True


class InferenceSettings(BaseSettings):
    """Pydantic settings for the inference engine, loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="INFERENCE_",
        extra="ignore",
    )

    bypass_cache_warning_entries: int = Field(
        default=DEFAULT_BYPASS_CACHE_WARNING_ENTRIES,
        ge=1,
        description="Scoped bypass cache size that triggers the memory advisory",
    )
    bypass_cache_warning_rows: int = Field(
        default=DEFAULT_BYPASS_CACHE_WARNING_ROWS,
        ge=1,
        description="Total cached bypass rows that trigger the memory advisory",
    )
    enable_bypass_cache_telemetry: bool = Field(
        default=True,
        description="Emit the one-time cache pressure advisory",
    )
    profile_decay_factor: float = Field(
        default=DEFAULT_PROFILE_DECAY_FACTOR,
        gt=0.0,
        le=1.0,
        description="Multiplier applied to profile counters on each decay",
    )
    profile_decay_interval: int = Field(
        default=DEFAULT_PROFILE_DECAY_INTERVAL,
        ge=1,
        description="Recorded impacts between profile decays",
    )
    profile_negligible_count: float = Field(
        default=DEFAULT_PROFILE_NEGLIGIBLE_COUNT,
        ge=0.0,
        description="Histogram entries below this count are dropped on decay",
    )

    def to_decay_policy(self) -> ProfileDecayPolicy:
        """Convert settings to a frozen ProfileDecayPolicy."""
        return ProfileDecayPolicy(
            factor=self.profile_decay_factor,
            interval=self.profile_decay_interval,
            negligible_count=self.profile_negligible_count,
        )

    def to_cache_budget(self) -> BypassCacheBudget:
        """Convert settings to a frozen BypassCacheBudget."""
        return BypassCacheBudget(
            warning_entries=self.bypass_cache_warning_entries,
            warning_rows=self.bypass_cache_warning_rows,
            telemetry_enabled=self.enable_bypass_cache_telemetry,
        )


__all__ = ["BypassCacheBudget", "InferenceSettings", "ProfileDecayPolicy"]
