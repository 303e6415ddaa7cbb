from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..constants import ABILITY_SCORES, ARMOR_SUBTYPES, ATTUNED, SHIELD_SUBTYPE, UNKNOWN_SYSTEM_ID

__all__ = [
    "ActiveEffect",
    "ArmorClassBlock",
    "CharacterDocument",
    "ClassLevel",
    "EffectChange",
    "GlobalBonuses",
    "ItemRecord",
    "SkillEntry",
    "actor_from_payload",
    "finite_number",
    "finite_sum",
    "guess_system",
    "normalize_document",
    "to_number",
]


def finite_number(value: Any) -> Optional[float]:
    """Return ``value`` if it is a real, finite number; booleans and strings are rejected."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, int):
        return value
    if not math.isfinite(value):
        return None
    return value


def to_number(value: Any) -> Optional[float]:
    """Like :func:`finite_number` but also accepts numeric strings such as ``"14"``."""

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
        if value.is_integer():
            value = int(value)
    return finite_number(value)


def finite_sum(*terms: Any) -> Optional[float]:
    """Add finite numbers, returning ``None`` if the total overflows or is not finite."""

    try:
        total = sum(terms)
    except OverflowError:
        return None
    return finite_number(total)


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _sequence(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if finite_number(value) is not None:
        return str(value)
    return ""


def _flag(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def _dig(source: Any, *keys: str) -> Any:
    current = source
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


@dataclass(slots=True)
class EffectChange:
    key: str
    mode: Optional[int]
    value: Any


@dataclass(slots=True)
class ActiveEffect:
    name: str
    disabled: bool
    transfer: bool
    changes: List[EffectChange] = field(default_factory=list)


@dataclass(slots=True)
class ClassLevel:
    name: str
    levels: float


@dataclass(slots=True)
class SkillEntry:
    ability: str
    rank: Optional[float]
    check_bonus: Any = None
    passive_bonus: Any = None


@dataclass(slots=True)
class ItemRecord:
    id: str
    name: str
    type: str
    subtype: str = ""
    equipped: bool = False
    attunement: Any = None
    quantity: Optional[float] = None
    armor_value: Optional[float] = None
    armor_dex_cap: Any = None
    magical_bonus: float = 0
    levels: float = 0
    spell_level: Optional[float] = None
    school: str = ""
    prepared: Any = None
    preparation_mode: str = ""
    preparation_prepared: bool = False
    effects: List[ActiveEffect] = field(default_factory=list)

    @property
    def attuned(self) -> bool:
        return self.attunement == ATTUNED

    @property
    def active(self) -> bool:
        """Equipped or attuned items pass their transferring effects to the actor."""

        return self.equipped or self.attuned

    @property
    def is_shield(self) -> bool:
        return self.subtype == SHIELD_SUBTYPE

    @property
    def is_body_armor(self) -> bool:
        return self.subtype in ARMOR_SUBTYPES


@dataclass(slots=True)
class ArmorClassBlock:
    value: Optional[float] = None
    flat: Optional[float] = None
    bonus: Any = None
    formula: Optional[str] = None
    calc: str = ""


@dataclass(slots=True)
class GlobalBonuses:
    ability_skill: Any = None
    skill_check: Any = None
    skill_passive: Any = None
    ac_value: Any = None
    ac_bonus: Any = None
    ac_all: Any = None


@dataclass(slots=True)
class CharacterDocument:
    """Read-only view over one exported actor, tolerant of missing fields."""

    id: str = ""
    name: str = ""
    img: str = ""
    actor_type: str = ""
    system_id: str = UNKNOWN_SYSTEM_ID
    ability_scores: Dict[str, Optional[float]] = field(
        default_factory=lambda: {key: None for key in ABILITY_SCORES}
    )
    class_levels: List[ClassLevel] = field(default_factory=list)
    details_level: float = 0
    class_label: str = ""
    race: str = ""
    background: str = ""
    alignment: str = ""
    biography: str = ""
    skills: Dict[str, SkillEntry] = field(default_factory=dict)
    bonuses: GlobalBonuses = field(default_factory=GlobalBonuses)
    items: List[ItemRecord] = field(default_factory=list)
    effects: List[ActiveEffect] = field(default_factory=list)
    armor_class: ArmorClassBlock = field(default_factory=ArmorClassBlock)
    hp_value: Any = None
    hp_max: Any = None
    hp_temp: Any = None
    initiative: Optional[float] = None
    movement: Dict[str, Any] = field(default_factory=dict)
    raw: Any = None

    def items_of_type(self, *types: str) -> List[ItemRecord]:
        return [item for item in self.items if item.type in types]


def actor_from_payload(payload: Any) -> Any:
    """Pick the actor out of the envelope shapes exporters produce."""

    for path in (("actor",), ("data", "actor"), ("document",)):
        candidate = _dig(payload, *path)
        if candidate:
            return candidate
    return payload


def guess_system(payload: Any) -> str:
    actor = _mapping(_dig(payload, "actor"))
    for candidate in (
        _dig(payload, "systemId"),
        _dig(actor, "system", "id"),
        _dig(actor, "systemId"),
        _dig(actor, "_stats", "systemId"),
        _dig(actor_from_payload(payload), "_stats", "systemId"),
    ):
        if isinstance(candidate, str) and candidate:
            return candidate
    return UNKNOWN_SYSTEM_ID


def normalize_document(payload: Any) -> CharacterDocument:
    actor = _mapping(actor_from_payload(payload))
    system = _mapping(actor.get("system"))
    details = _mapping(system.get("details"))
    attributes = _mapping(system.get("attributes"))
    bonuses = _mapping(system.get("bonuses"))

    items = [_item_from_raw(raw) for raw in _sequence(actor.get("items")) if isinstance(raw, dict)]
    class_levels = [ClassLevel(name=item.name, levels=item.levels) for item in items if item.type == "class"]

    hp = _mapping(attributes.get("hp"))
    return CharacterDocument(
        id=_text(actor.get("_id")),
        name=_text(actor.get("name")),
        img=_text(actor.get("img")),
        actor_type=_text(actor.get("type")),
        system_id=guess_system(payload),
        ability_scores=_ability_scores(system.get("abilities")),
        class_levels=class_levels,
        details_level=to_number(details.get("level")) or 0,
        class_label=_text(details.get("class")),
        race=_named(details.get("race")),
        background=_named(details.get("background")),
        alignment=_text(details.get("alignment")),
        biography=_biography(details.get("biography")),
        skills=_skills(system.get("skills")),
        bonuses=GlobalBonuses(
            ability_skill=_dig(bonuses, "abilities", "skill"),
            skill_check=_dig(bonuses, "skills", "check"),
            skill_passive=_dig(bonuses, "skills", "passive"),
            ac_value=_dig(bonuses, "ac", "value"),
            ac_bonus=_dig(bonuses, "ac", "bonus"),
            ac_all=_dig(bonuses, "ac", "all"),
        ),
        items=items,
        effects=_effects(actor.get("effects")),
        armor_class=_armor_class(attributes.get("ac")),
        hp_value=hp.get("value"),
        hp_max=hp.get("max"),
        hp_temp=hp.get("temp"),
        initiative=_initiative(attributes.get("init")),
        movement=_mapping(attributes.get("movement")),
        raw=payload,
    )


def _ability_scores(raw: Any) -> Dict[str, Optional[float]]:
    abilities = _mapping(raw)
    return {key: to_number(_dig(abilities, key, "value")) for key in ABILITY_SCORES}


def _skills(raw: Any) -> Dict[str, SkillEntry]:
    skills: Dict[str, SkillEntry] = {}
    for code, entry in _mapping(raw).items():
        entry = _mapping(entry)
        skill_bonuses = _mapping(entry.get("bonuses"))
        skills[code] = SkillEntry(
            ability=_text(entry.get("ability")),
            rank=to_number(entry.get("value")),
            check_bonus=skill_bonuses.get("check"),
            passive_bonus=skill_bonuses.get("passive"),
        )
    return skills


def _effects(raw: Any) -> List[ActiveEffect]:
    effects: List[ActiveEffect] = []
    for entry in _sequence(raw):
        if not isinstance(entry, dict):
            continue
        changes = []
        for change in _sequence(entry.get("changes")):
            if not isinstance(change, dict):
                continue
            mode = to_number(change.get("mode"))
            changes.append(
                EffectChange(
                    key=_text(change.get("key")),
                    mode=int(mode) if mode is not None else None,
                    value=change.get("value"),
                )
            )
        effects.append(
            ActiveEffect(
                name=_text(entry.get("name") or entry.get("label")),
                disabled=_flag(entry.get("disabled")),
                transfer=_flag(entry.get("transfer")),
                changes=changes,
            )
        )
    return effects


def _item_from_raw(raw: Dict[str, Any]) -> ItemRecord:
    system = _mapping(raw.get("system"))
    armor = _mapping(system.get("armor"))
    preparation = _mapping(system.get("preparation"))
    return ItemRecord(
        id=_text(raw.get("_id")),
        name=_text(raw.get("name")),
        type=_text(raw.get("type")),
        subtype=_text(_dig(system, "type", "value")),
        equipped=_flag(system.get("equipped")),
        attunement=system.get("attunement"),
        quantity=to_number(system.get("quantity")),
        armor_value=finite_number(armor.get("value")),
        armor_dex_cap=armor.get("dex"),
        magical_bonus=to_number(armor.get("magicalBonus")) or 0,
        levels=to_number(system.get("levels")) or 0,
        spell_level=to_number(system.get("level")),
        school=_text(system.get("school")),
        prepared=system.get("prepared"),
        preparation_mode=_text(preparation.get("mode")),
        preparation_prepared=bool(preparation.get("prepared")),
        effects=_effects(raw.get("effects")),
    )


def _armor_class(raw: Any) -> ArmorClassBlock:
    ac = _mapping(raw)
    formula = ac.get("formula")
    return ArmorClassBlock(
        value=finite_number(ac.get("value")),
        flat=finite_number(ac.get("flat")),
        bonus=ac.get("bonus"),
        formula=formula if isinstance(formula, str) else None,
        calc=_text(ac.get("calc")),
    )


def _initiative(raw: Any) -> Optional[float]:
    if isinstance(raw, dict):
        for key in ("mod", "total", "value"):
            value = to_number(raw.get(key))
            if value is not None:
                return value
        return None
    return to_number(raw)


def _named(value: Any) -> str:
    # dnd5e 3.x+ stores race/background as embedded item references
    if isinstance(value, dict):
        return _text(value.get("name"))
    return _text(value)


def _biography(value: Any) -> str:
    if isinstance(value, dict):
        return _text(value.get("value"))
    return _text(value)
