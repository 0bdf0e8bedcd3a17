# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Project-side records the resolver reads: actions and grid selection."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from interaction_inference.utils import coerce_int


@dataclass(frozen=True)
class ActionRecord:
    """Action metadata relevant to inference.

    Attributes:
        id: Action id.
        name: Display name.
        action_group: Free-form group label ("" when ungrouped).
        phases: Allowed phase numbers; empty means unrestricted.
        properties: Property labels used by the action-property strategy.
    """

    id: int
    name: str = ""
    action_group: str = ""
    phases: frozenset[int] = frozenset()
    properties: tuple[str, ...] = ()

    @classmethod
    def create(
        cls,
        id: int,
        name: str = "",
        *,
        action_group: str | None = "",
        phases: Iterable[object] = (),
        properties: Iterable[str] = (),
    ) -> ActionRecord:
        parsed = {coerce_int(phase) for phase in phases}
        parsed.discard(None)
        return cls(
            id=id,
            name=name,
            action_group=(action_group or "").strip(),
            phases=frozenset(parsed),  # type: ignore[arg-type]
            properties=tuple(properties),
        )

    @property
    def allowed_phases(self) -> frozenset[int] | None:
        return self.phases or None


@dataclass(frozen=True)
class SelectionState:
    """Current grid selection.

    Attributes:
        active_row: Row of the cursor in the default index.
        rows: Selected rows (empty means just the active row).
        cols: Selected column indices.
        cols_all: Whole-row selection spanning every column.
    """

    active_row: int = 0
    rows: frozenset[int] = field(default_factory=frozenset)
    cols: frozenset[int] = field(default_factory=frozenset)
    cols_all: bool = False


__all__ = ["ActionRecord", "SelectionState"]
