# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Pair and phase-key models for the interaction matrix.

A ``Pair`` is one generated matrix row, produced by the external variant
engine and only ever read by inference. A ``PhaseKey`` is the parsed form of
a wire-level column key such as ``"p3:outcome"``; the engine parses column
keys once at the boundary and works on the tagged value everywhere else.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from interaction_inference.enums import EnumNoteField

_PHASE_KEY_PATTERN = re.compile(r"^p(\d+):(outcome|end|tag)$")


@dataclass(frozen=True)
class Pair:
    """One generated matrix row.

    Attributes:
        kind: ``"AI"`` (Action x Input) or ``"AA"`` (Action x Action).
        a_id: Left-hand action id.
        i_id: Input id for AI rows.
        rhs_action_id: Right-hand action id for AA rows.
        variant_sig: Modifier signature of the left-hand action variant.
        rhs_variant_sig: Modifier signature of the right-hand variant (AA).
    """

    kind: str = "AI"
    a_id: int | None = None
    i_id: int | None = None
    rhs_action_id: int | None = None
    variant_sig: str = ""
    rhs_variant_sig: str = ""

    @property
    def is_action_pair(self) -> bool:
        return str(self.kind or "AI").upper() == "AA"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Pair:
        """Build a pair from a host payload using either naming convention."""

        def pick(*names: str) -> Any:
            for name in names:
                if name in data:
                    return data[name]
            return None

        variant_sig = pick("variant_sig", "variantSig")
        rhs_variant_sig = pick("rhs_variant_sig", "rhsVariantSig")
        return cls(
            kind=str(pick("kind") or "AI").upper(),
            a_id=pick("a_id", "aId"),
            i_id=pick("i_id", "iId"),
            rhs_action_id=pick("rhs_action_id", "rhsActionId"),
            variant_sig="" if variant_sig is None else str(variant_sig),
            rhs_variant_sig="" if rhs_variant_sig is None else str(rhs_variant_sig),
        )


@dataclass(frozen=True)
class PhaseKey:
    """Parsed ``p<phase>:<field>`` column key."""

    field: EnumNoteField
    phase: int

    @classmethod
    def parse(cls, key: object) -> PhaseKey | None:
        """Parse a column key; returns None for non-phase columns."""
        match = _PHASE_KEY_PATTERN.match(str(key or ""))
        if match is None:
            return None
        return cls(field=EnumNoteField(match.group(2)), phase=int(match.group(1)))

    @property
    def column_key(self) -> str:
        return f"p{self.phase}:{self.field.value}"


__all__ = ["Pair", "PhaseKey"]
