# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Note shapes, provenance helpers and note keys.

Notes are sparse dicts stored by NoteKey. A note holds structured values
for any of the three fields plus one provenance triple
``(confidence, source, source_metadata)``. Provenance keys are stored only
when they differ from the defaults, so a manually authored note carries no
provenance keys at all.

Manual vs. Inferred:
    A note is *inferred* iff its confidence differs from 1.0 OR its source
    differs from ``"manual"``. Everything else is manual.

NoteKey Format:
    ``ai|<aId>|<iId>|<sig>`` or ``aa|<aId>|<rhsId>|<sig>|<rhsSig>``,
    optionally suffixed ``|p<phase>``. Signatures are canonicalized so the
    key does not depend on modifier authoring order.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any, TypedDict

from interaction_inference.constants import (
    DEFAULT_INTERACTION_CONFIDENCE,
    DEFAULT_INTERACTION_SOURCE,
)
from interaction_inference.models.model_pair import Pair
from interaction_inference.utils import canonical_sig


class OutcomeValueDict(TypedDict, total=False):
    outcome_id: int
    result: str


class EndValueDict(TypedDict, total=False):
    end_action_id: int
    end_variant_sig: str
    end_free: str


class TagValueDict(TypedDict):
    tags: list[str]


FieldValueDict = OutcomeValueDict | EndValueDict | TagValueDict


class NoteDict(TypedDict, total=False):
    """Sparse note record as stored in the note store."""

    outcome_id: int
    result: str
    end_action_id: int
    end_variant_sig: str
    end_free: str
    tags: list[str]
    confidence: float
    source: str
    source_metadata: dict[str, Any]


@dataclass(frozen=True)
class InferenceInfo:
    """Provenance of a note as seen by the engine.

    Attributes:
        confidence: Normalized confidence in [0, 1].
        source: Normalized source string.
        source_metadata: Opaque payload carried unchanged, or None.
        inferred: True when the note is machine-suggested.
    """

    confidence: float
    source: str
    source_metadata: Mapping[str, Any] | None
    inferred: bool


def normalize_interaction_confidence(value: object) -> float:
    """Clamp a confidence to [0, 1]; non-numbers map to the default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_INTERACTION_CONFIDENCE
    number = float(value)
    if not math.isfinite(number):
        return DEFAULT_INTERACTION_CONFIDENCE
    return min(1.0, max(0.0, number))


def normalize_interaction_source(value: object) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_INTERACTION_SOURCE


def describe_interaction_inference(note: Mapping[str, Any] | None) -> InferenceInfo:
    """Describe the provenance of a note (absent notes read as manual)."""
    if not isinstance(note, Mapping):
        return InferenceInfo(
            confidence=DEFAULT_INTERACTION_CONFIDENCE,
            source=DEFAULT_INTERACTION_SOURCE,
            source_metadata=None,
            inferred=False,
        )
    confidence = normalize_interaction_confidence(note.get("confidence"))
    source = normalize_interaction_source(note.get("source"))
    metadata = note.get("source_metadata")
    return InferenceInfo(
        confidence=confidence,
        source=source,
        source_metadata=metadata if isinstance(metadata, Mapping) else None,
        inferred=(
            confidence != DEFAULT_INTERACTION_CONFIDENCE
            or source != DEFAULT_INTERACTION_SOURCE
        ),
    )


def apply_interaction_metadata(
    note: MutableMapping[str, Any],
    metadata: Mapping[str, Any] | None,
) -> None:
    """Write or strip provenance on a note in place.

    ``None`` removes every provenance key. Otherwise confidence and source
    are normalized and stored only when non-default; ``source_metadata`` is
    deep-copied and stored only when present and non-empty.
    """
    if metadata is None:
        for key in ("confidence", "source", "source_metadata"):
            note.pop(key, None)
        return

    confidence = normalize_interaction_confidence(metadata.get("confidence"))
    if confidence != DEFAULT_INTERACTION_CONFIDENCE:
        note["confidence"] = confidence
    else:
        note.pop("confidence", None)

    source = normalize_interaction_source(metadata.get("source"))
    if source != DEFAULT_INTERACTION_SOURCE:
        note["source"] = source
    else:
        note.pop("source", None)

    source_metadata = metadata.get("source_metadata")
    if isinstance(source_metadata, Mapping) and source_metadata:
        note["source_metadata"] = copy.deepcopy(dict(source_metadata))
    else:
        note.pop("source_metadata", None)


def note_key_for_pair(pair: Pair, phase: int | None = None) -> str:
    """Deterministic note address for a pair, optionally phase-qualified."""
    if pair.is_action_pair:
        base = (
            f"aa|{pair.a_id}|{pair.rhs_action_id}|"
            f"{canonical_sig(pair.variant_sig)}|{canonical_sig(pair.rhs_variant_sig)}"
        )
    else:
        base = f"ai|{pair.a_id}|{pair.i_id}|{canonical_sig(pair.variant_sig)}"
    return base if phase is None else f"{base}|p{phase}"


__all__ = [
    "EndValueDict",
    "FieldValueDict",
    "InferenceInfo",
    "NoteDict",
    "OutcomeValueDict",
    "TagValueDict",
    "apply_interaction_metadata",
    "describe_interaction_inference",
    "normalize_interaction_confidence",
    "normalize_interaction_source",
    "note_key_for_pair",
]
