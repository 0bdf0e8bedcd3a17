# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Inference strategies and their default execution order."""

from interaction_inference.strategies.action_group import (
    ActionGroupStrategy,
    action_group_strategy,
)
from interaction_inference.strategies.base import InferenceStrategy, StrategyContext
from interaction_inference.strategies.consensus import (
    ConsensusStrategy,
    consensus_strategy,
)
from interaction_inference.strategies.input_default import (
    InputDefaultStrategy,
    input_default_strategy,
)
from interaction_inference.strategies.modifier_profile import (
    ModifierProfileStrategy,
    modifier_profile_strategy,
)
from interaction_inference.strategies.phase_adjacency import (
    PhaseAdjacencyStrategy,
    phase_adjacency_strategy,
)
from interaction_inference.strategies.profile_trend import (
    ProfileTrendStrategy,
    profile_trend_strategy,
)
from interaction_inference.strategies.property import (
    PropertyStrategy,
    property_strategy,
)

DEFAULT_INFERENCE_STRATEGIES: tuple[InferenceStrategy, ...] = (
    consensus_strategy,
    action_group_strategy,
    property_strategy,
    modifier_profile_strategy,
    phase_adjacency_strategy,
    input_default_strategy,
    profile_trend_strategy,
)

__all__ = [
    "DEFAULT_INFERENCE_STRATEGIES",
    "ActionGroupStrategy",
    "ConsensusStrategy",
    "InferenceStrategy",
    "InputDefaultStrategy",
    "ModifierProfileStrategy",
    "PhaseAdjacencyStrategy",
    "ProfileTrendStrategy",
    "PropertyStrategy",
    "StrategyContext",
    "action_group_strategy",
    "consensus_strategy",
    "input_default_strategy",
    "modifier_profile_strategy",
    "phase_adjacency_strategy",
    "profile_trend_strategy",
    "property_strategy",
]
