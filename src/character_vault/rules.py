from __future__ import annotations

import math
from typing import Any, Dict

from .armor import resolve_armor_class
from .constants import ABILITY_SCORES, PERCEPTION_SKILL
from .data.snapshot import CharacterDocument, finite_number, finite_sum, to_number
from .formula import parse_flat_bonus
from .models import DerivedStats


def proficiency_bonus(level: Any) -> int:
    level = to_number(level)
    if level is None or level <= 0:
        return 0
    return 2 + int((level - 1) // 4)


def ability_modifier(score: Any) -> int:
    score = to_number(score)
    if score is None:
        return 0
    return int((score - 10) // 2)


def total_level(document: CharacterDocument) -> int:
    level = finite_sum(*(entry.levels for entry in document.class_levels))
    if not level:
        level = document.details_level
    return max(0, int(level)) if level else 0


def prof_component(rank: Any, prof: int) -> int:
    """Proficiency contribution for a skill rank: half, full, double or scaled."""

    rank = to_number(rank)
    if rank is None or rank <= 0:
        return 0
    if rank == 0.5:
        return prof // 2
    if rank == 1:
        return prof
    if rank == 2:
        return 2 * prof
    scaled = finite_number(rank * prof)
    return math.floor(scaled) if scaled is not None else 0


def ability_modifiers(document: CharacterDocument) -> Dict[str, int]:
    return {ability: ability_modifier(document.ability_scores.get(ability)) for ability in ABILITY_SCORES}


def compute_skill_totals(
    document: CharacterDocument,
    modifiers: Dict[str, int],
    prof_bonus: int,
) -> Dict[str, int]:
    global_bonus = finite_sum(
        parse_flat_bonus(document.bonuses.ability_skill), parse_flat_bonus(document.bonuses.skill_check)
    ) or 0
    totals: Dict[str, int] = {}
    for code, skill in document.skills.items():
        total = finite_sum(
            modifiers.get(skill.ability, 0),
            prof_component(skill.rank, prof_bonus),
            parse_flat_bonus(skill.check_bonus),
            global_bonus,
        )
        totals[code] = total if total is not None else 0
    return totals


def compute_passive_perception(document: CharacterDocument, skill_totals: Dict[str, int]) -> int:
    perception = document.skills.get(PERCEPTION_SKILL)
    passive_bonus = parse_flat_bonus(perception.passive_bonus) if perception else 0
    total = finite_sum(
        10,
        skill_totals.get(PERCEPTION_SKILL, 0),
        passive_bonus,
        parse_flat_bonus(document.bonuses.skill_passive),
    )
    return total if total is not None else 10


def compute_derived_stats(document: CharacterDocument) -> DerivedStats:
    """Rebuild every derived number from scratch; nothing is carried between calls."""

    level = total_level(document)
    prof = proficiency_bonus(level)
    modifiers = ability_modifiers(document)
    skills = compute_skill_totals(document, modifiers, prof)
    return DerivedStats(
        level=level,
        proficiency_bonus=prof,
        ability_modifiers=modifiers,
        skill_totals=skills,
        passive_perception=compute_passive_perception(document, skills),
        armor_class=resolve_armor_class(document, modifiers, prof),
    )
