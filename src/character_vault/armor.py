from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .constants import (
    ABILITY_SCORES,
    EFFECT_MODE_ADD,
    EFFECT_MODE_OVERRIDE,
    LEGACY_KEY_ROOT,
    SYSTEM_KEY_ROOT,
    UNARMORED_BASE,
)
from .data.snapshot import ActiveEffect, CharacterDocument, ItemRecord, finite_number, finite_sum, to_number
from .formula import DICE_PATTERN, SIGNED_INT_PATTERN, evaluate_formula, parse_flat_bonus

__all__ = [
    "AC_ARMOR_TOKEN",
    "AC_BONUS_TOKEN",
    "AC_DEX_TOKEN",
    "ArmorBreakdown",
    "EffectAdjustments",
    "armor_and_shield",
    "armor_breakdown",
    "collect_effect_adjustments",
    "dex_contribution",
    "flat_ac_bonus",
    "formula_context",
    "qualifying_effects",
    "resolve_armor_class",
]

logger = logging.getLogger(__name__)

AC_ARMOR_TOKEN = "@attributes.ac.armor"
AC_SHIELD_TOKEN = "@attributes.ac.shield"
AC_BASE_TOKEN = "@attributes.ac.base"
AC_DEX_TOKEN = "@attributes.ac.dex"
AC_BONUS_TOKEN = "@attributes.ac.bonus"
PROF_TOKENS = ("@prof", "@attributes.prof")

AC_VALUE_KEY = re.compile(r"^system\.attributes\.ac\.(?:value|flat)$")
AC_BONUS_KEY = re.compile(r"^system\.attributes\.ac\.bonus$")


@dataclass(slots=True)
class EffectAdjustments:
    override: Optional[float] = None
    bonus: float = 0

    def add_bonus(self, amount: float) -> None:
        total = finite_sum(self.bonus, amount)
        if total is None:
            logger.debug("AC effect bonus overflowed; keeping %s", self.bonus)
            return
        self.bonus = total


@dataclass(slots=True)
class ArmorBreakdown:
    """Intermediate numbers behind a computed AC, also exposed to custom formulas."""

    armor: float
    shield: float
    dex: int
    bonus: float
    override: Optional[float] = None


def qualifying_effects(document: CharacterDocument) -> List[ActiveEffect]:
    """Enabled actor effects plus enabled, transferring effects of equipped or attuned items."""

    effects = [effect for effect in document.effects if not effect.disabled]
    for item in document.items:
        if not item.active:
            continue
        effects.extend(effect for effect in item.effects if effect.transfer and not effect.disabled)
    return effects


def collect_effect_adjustments(document: CharacterDocument) -> EffectAdjustments:
    adjustments = EffectAdjustments()
    for effect in qualifying_effects(document):
        for change in effect.changes:
            key = _normalize_key(change.key)
            amount = _change_amount(change.value)
            if amount is None:
                continue
            if AC_VALUE_KEY.match(key):
                if change.mode == EFFECT_MODE_OVERRIDE:
                    adjustments.override = amount
                elif change.mode == EFFECT_MODE_ADD:
                    adjustments.add_bonus(amount)
            elif AC_BONUS_KEY.match(key):
                if change.mode == EFFECT_MODE_ADD:
                    adjustments.add_bonus(amount)
                elif change.mode == EFFECT_MODE_OVERRIDE:
                    # An override on the bonus key resets the additive total, not the AC.
                    adjustments.bonus = amount
    return adjustments


def armor_and_shield(document: CharacterDocument) -> Tuple[float, float, Optional[ItemRecord]]:
    """Return (armor contribution, shield total, chosen armor).

    Only light, medium, heavy and natural armor compete for the body slot;
    trinkets or clothing that carry an armor value are ignored. The armor
    contribution already includes shields, and with no body armor the
    unarmored base of 10 stands in for it.
    """

    armors: List[Tuple[float, ItemRecord]] = []
    shields: List[float] = []
    for item in document.items:
        if item.type != "equipment" or not item.equipped or item.armor_value is None:
            continue
        total = finite_sum(item.armor_value, item.magical_bonus)
        if total is None:
            logger.debug("Ignoring %r: armor value out of range", item.name)
            continue
        if item.is_shield:
            shields.append(total)
        elif item.is_body_armor:
            armors.append((total, item))

    base, best = max(armors, key=lambda pair: pair[0], default=(UNARMORED_BASE, None))
    shield_total = finite_sum(*shields) or 0
    armor = finite_sum(base, shield_total)
    return (armor if armor is not None else base), shield_total, best


def dex_contribution(dex_modifier: int, armor: Optional[ItemRecord]) -> int:
    if armor is None:
        return dex_modifier
    cap = armor.armor_dex_cap
    if cap is None or cap == "":
        return dex_modifier
    return min(dex_modifier, to_number(cap) or 0)


def flat_ac_bonus(document: CharacterDocument) -> float:
    bonuses = document.bonuses
    total = finite_sum(
        parse_flat_bonus(document.armor_class.bonus),
        parse_flat_bonus(bonuses.ac_value),
        parse_flat_bonus(bonuses.ac_bonus),
        parse_flat_bonus(bonuses.ac_all),
    )
    return total if total is not None else 0


def formula_context(breakdown: ArmorBreakdown, modifiers: Dict[str, int], prof_bonus: int) -> Dict[str, float]:
    context: Dict[str, float] = {
        AC_ARMOR_TOKEN: breakdown.armor,
        AC_SHIELD_TOKEN: breakdown.shield,
        AC_BASE_TOKEN: UNARMORED_BASE,
        AC_DEX_TOKEN: breakdown.dex,
        AC_BONUS_TOKEN: breakdown.bonus,
    }
    for ability in ABILITY_SCORES:
        # Full modifier; only @attributes.ac.dex honours the armor's cap.
        context[f"@abilities.{ability}.mod"] = modifiers.get(ability, 0)
    for token in PROF_TOKENS:
        context[token] = prof_bonus
    return context


def armor_breakdown(document: CharacterDocument, modifiers: Dict[str, int]) -> ArmorBreakdown:
    armor, shield, best = armor_and_shield(document)
    adjustments = collect_effect_adjustments(document)
    bonus = finite_sum(flat_ac_bonus(document), adjustments.bonus)
    return ArmorBreakdown(
        armor=armor,
        shield=shield,
        dex=dex_contribution(modifiers.get("dex", 0), best),
        bonus=bonus if bonus is not None else 0,
        override=adjustments.override,
    )


def resolve_armor_class(document: CharacterDocument, modifiers: Dict[str, int], prof_bonus: int) -> int:
    ac = document.armor_class
    # An exported value is final; no bonuses are layered on top of it.
    if ac.value is not None:
        return math.floor(ac.value)
    if ac.flat is not None:
        return math.floor(ac.flat)

    breakdown = armor_breakdown(document, modifiers)
    result: Optional[int] = None
    if breakdown.override is not None:
        result = _to_int(breakdown.override, breakdown.bonus)
    elif ac.calc == "custom" and ac.formula is not None:
        result = _custom_formula_ac(ac.formula, breakdown, modifiers, prof_bonus)
        if result is None:
            logger.debug("Custom AC formula for %r failed; using armor + Dex + bonus", document.name)

    if result is None:
        result = _to_int(breakdown.armor, breakdown.dex, breakdown.bonus)
    if result is None:
        logger.warning("AC for %r is out of range; using the unarmored base", document.name)
        result = UNARMORED_BASE
    return result


def _custom_formula_ac(
    formula: str,
    breakdown: ArmorBreakdown,
    modifiers: Dict[str, int],
    prof_bonus: int,
) -> Optional[int]:
    result = evaluate_formula(formula, formula_context(breakdown, modifiers, prof_bonus))
    if result is None:
        return None
    if AC_BONUS_TOKEN in formula:
        return _to_int(result)
    return _to_int(result, breakdown.bonus)


def _normalize_key(key: str) -> str:
    if key.startswith(LEGACY_KEY_ROOT):
        return SYSTEM_KEY_ROOT + key[len(LEGACY_KEY_ROOT):]
    return key


def _change_amount(value: Any) -> Optional[float]:
    number = finite_number(value)
    if number is not None:
        return number
    if isinstance(value, str) and SIGNED_INT_PATTERN.search(value) and not DICE_PATTERN.search(value):
        return parse_flat_bonus(value)
    return None


def _to_int(*terms: float) -> Optional[int]:
    total = finite_sum(*terms)
    return math.floor(total) if total is not None else None
