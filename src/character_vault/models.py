from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .constants import ABILITY_SCORES
from .data.snapshot import CharacterDocument


@dataclass(slots=True)
class DerivedStats:
    """Numbers rebuilt from a snapshot on every render."""

    level: int = 0
    proficiency_bonus: int = 0
    ability_modifiers: Dict[str, int] = field(
        default_factory=lambda: {key: 0 for key in ABILITY_SCORES}
    )
    skill_totals: Dict[str, int] = field(default_factory=dict)
    passive_perception: int = 10
    armor_class: int = 10

    def ability_modifier(self, ability: str) -> int:
        return self.ability_modifiers.get(ability, 0)


@dataclass(slots=True)
class RosterMeta:
    line1: str
    line2: str
    initiative: Optional[int] = None


@dataclass(slots=True)
class RosterEntry:
    """A loaded snapshot together with what the roster needs to show and search it."""

    id: str
    name: str
    system_id: str
    meta: RosterMeta
    payload: Any
    document: CharacterDocument
    corpus: str = ""
