# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Shared value utilities for inference heuristics and profiles.

Everything here is a pure function over pairs, notes and field values:

    - Pair identifiers: action id, variant signature, input/rhs key,
      modifier ids parsed from a signature.
    - Field values: extraction from a note, canonical value keys used for
      equality, and defensive clones so suggestions never alias notes.
    - Tags: flattening of the loose tag shapes hosts store into an ordered,
      case-insensitively deduplicated list.

Value Keys:
    ``value_key`` produces the string every strategy and the profile store
    use to decide "same value":

    - outcome: ``o:<outcome_id>`` or ``r:<result>``
    - end: ``e:<end_action_id>|<end_variant_sig>`` or ``f:<end_free>``
    - tag: ``t:<tag>|<tag>...``
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from interaction_inference.enums import EnumNoteField

if TYPE_CHECKING:
    from interaction_inference.models.model_note import FieldValueDict
    from interaction_inference.models.model_pair import Pair

_TAG_SPLIT_PATTERN = re.compile(r"[\n,]")


# =============================================================================
# Numbers
# =============================================================================


def is_finite_number(value: object) -> bool:
    """True for real ints/floats that are finite (bools excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def coerce_int(value: object) -> int | None:
    """Coerce ids coming from loosely typed hosts (``"12"`` -> 12)."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            number = float(text)
        except ValueError:
            return None
        if math.isfinite(number) and number.is_integer():
            return int(number)
    return None


# =============================================================================
# Signatures
# =============================================================================


def canonical_sig(sig: object) -> str:
    """Canonicalize a variant signature (``"5+1+5"`` -> ``"1+5"``).

    Non-numeric parts are dropped, ids are sorted ascending and deduplicated.
    """
    if sig is None or sig == "":
        return ""
    ids = {coerce_int(part) for part in str(sig).split("+")}
    ids.discard(None)
    return "+".join(str(item) for item in sorted(ids))  # type: ignore[type-var]


def normalize_variant_sig(pair: Pair | None) -> str:
    if pair is None:
        return ""
    sig = pair.variant_sig
    if isinstance(sig, (str, int)) and not isinstance(sig, bool):
        return str(sig)
    return ""


def normalize_input_key(pair: Pair | None) -> str:
    """Key of the right-hand side: ``in:<id>`` for AI rows, ``rhs:<id>`` for AA."""
    if pair is None:
        return ""
    if pair.is_action_pair:
        rhs = coerce_int(pair.rhs_action_id)
        return f"rhs:{rhs}" if rhs is not None else ""
    input_id = coerce_int(pair.i_id)
    return f"in:{input_id}" if input_id is not None else ""


def normalize_action_id(pair: Pair | None) -> int | None:
    if pair is None:
        return None
    return coerce_int(pair.a_id)


def normalize_phase_key(phase: int | None) -> str | None:
    return None if phase is None else str(phase)


def parse_modifier_ids(value: object) -> list[int]:
    """Parse modifier ids from a signature string or an object carrying one."""
    if isinstance(value, Mapping):
        sig = value.get("variant_sig")
    else:
        sig = getattr(value, "variant_sig", value)
    if sig is None or isinstance(sig, bool):
        return []
    ids: list[int] = []
    for part in str(sig).split("+"):
        parsed = coerce_int(part) if part.strip() else None
        if parsed is not None:
            ids.append(parsed)
    return ids


# =============================================================================
# Tags
# =============================================================================


def expand_tag_candidates(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        expanded: list[str] = []
        for item in value:
            expanded.extend(expand_tag_candidates(item))
        return expanded
    if isinstance(value, Mapping):
        if "tags" in value:
            return expand_tag_candidates(value["tags"])
        if "tag" in value:
            return expand_tag_candidates(value["tag"])
    text = value if isinstance(value, str) else str(value)
    return [tag.strip() for tag in _TAG_SPLIT_PATTERN.split(text) if tag.strip()]


def normalize_tag_list(value: object) -> list[str]:
    """Flatten tags, keeping first spelling of each case-insensitive tag."""
    seen: set[str] = set()
    tags: list[str] = []
    for tag in expand_tag_candidates(value):
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        tags.append(tag)
    return tags


# =============================================================================
# Field Values
# =============================================================================


def has_structured_value(note: Mapping[str, Any] | None, field: str) -> bool:
    """True when the note holds any key belonging to the field."""
    if not isinstance(note, Mapping):
        return False
    if field == EnumNoteField.OUTCOME:
        return "outcome_id" in note or "result" in note
    if field == EnumNoteField.END:
        return "end_action_id" in note or "end_variant_sig" in note or "end_free" in note
    if field == EnumNoteField.TAG:
        tags = note.get("tags")
        return isinstance(tags, list) and len(tags) > 0
    return False


def extract_note_field_value(
    note: Mapping[str, Any] | None, field: str
) -> FieldValueDict | None:
    """Extract the normalized value of one field, or None when empty."""
    if not isinstance(note, Mapping):
        return None
    if field == EnumNoteField.OUTCOME:
        if is_finite_number(note.get("outcome_id")):
            return {"outcome_id": note["outcome_id"]}
        result = note.get("result")
        if isinstance(result, str) and result.strip():
            return {"result": result.strip()}
        return None
    if field == EnumNoteField.END:
        if is_finite_number(note.get("end_action_id")):
            sig = note.get("end_variant_sig")
            return {
                "end_action_id": note["end_action_id"],
                "end_variant_sig": sig if isinstance(sig, str) else "",
            }
        end_free = note.get("end_free")
        if isinstance(end_free, str) and end_free.strip():
            return {"end_free": end_free.strip()}
        return None
    if field == EnumNoteField.TAG:
        tags = normalize_tag_list(note.get("tags"))
        return {"tags": tags} if tags else None
    return None


def value_key(field: str, value: Mapping[str, Any] | None) -> str:
    """Canonical equality key for a field value ("" for no value)."""
    if not value:
        return ""
    if field == EnumNoteField.OUTCOME:
        if is_finite_number(value.get("outcome_id")):
            return f"o:{value['outcome_id']}"
        if isinstance(value.get("result"), str):
            return f"r:{value['result']}"
    if field == EnumNoteField.END:
        if is_finite_number(value.get("end_action_id")):
            sig = value.get("end_variant_sig")
            return f"e:{value['end_action_id']}|{sig if isinstance(sig, str) else ''}"
        if isinstance(value.get("end_free"), str):
            return f"f:{value['end_free']}"
    if field == EnumNoteField.TAG:
        return "t:" + "|".join(normalize_tag_list(value.get("tags")))
    return ""


def clone_value(field: str, value: Mapping[str, Any] | None) -> FieldValueDict | None:
    """Copy a field value into a fresh dict with only the field's keys."""
    if not value:
        return None
    if field == EnumNoteField.OUTCOME:
        if is_finite_number(value.get("outcome_id")):
            return {"outcome_id": value["outcome_id"]}
        if isinstance(value.get("result"), str):
            return {"result": value["result"]}
        return None
    if field == EnumNoteField.END:
        if is_finite_number(value.get("end_action_id")):
            sig = value.get("end_variant_sig")
            return {
                "end_action_id": value["end_action_id"],
                "end_variant_sig": sig if isinstance(sig, str) else "",
            }
        if isinstance(value.get("end_free"), str):
            return {"end_free": value["end_free"]}
        return None
    if field == EnumNoteField.TAG:
        return {"tags": normalize_tag_list(value.get("tags"))}
    return None


def sorted_unique_ints(values: Iterable[object]) -> list[int]:
    ids = {coerce_int(value) for value in values}
    ids.discard(None)
    return sorted(ids)  # type: ignore[type-var]


__all__ = [
    "canonical_sig",
    "clone_value",
    "coerce_int",
    "expand_tag_candidates",
    "extract_note_field_value",
    "has_structured_value",
    "is_finite_number",
    "normalize_action_id",
    "normalize_input_key",
    "normalize_phase_key",
    "normalize_tag_list",
    "normalize_variant_sig",
    "parse_modifier_ids",
    "sorted_unique_ints",
    "value_key",
]
