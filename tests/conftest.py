"""
Pytest fixtures for the Character Vault test suite.

Factories build minimal Foundry dnd5e actor payloads so each test only spells
out the fields it cares about.
"""

from typing import Any, Dict, List, Optional

import pytest

ABILITY_KEYS = ("str", "dex", "con", "int", "wis", "cha")


def _actor(
    name: str = "Test Hero",
    abilities: Optional[Dict[str, int]] = None,
    items: Optional[List[dict]] = None,
    effects: Optional[List[dict]] = None,
    ac: Optional[dict] = None,
    skills: Optional[dict] = None,
    bonuses: Optional[dict] = None,
    details: Optional[dict] = None,
    actor_id: str = "actor0001",
) -> dict:
    scores = {key: 10 for key in ABILITY_KEYS}
    scores.update(abilities or {})
    system: Dict[str, Any] = {
        "abilities": {key: {"value": value} for key, value in scores.items()},
        "attributes": {"ac": ac or {}},
        "skills": skills or {},
        "bonuses": bonuses or {},
        "details": details or {},
    }
    return {
        "_id": actor_id,
        "name": name,
        "type": "character",
        "system": system,
        "items": items or [],
        "effects": effects or [],
        "_stats": {"systemId": "dnd5e"},
    }


def _armor(
    name: str,
    value: int,
    dex_cap: Any = None,
    subtype: str = "medium",
    equipped: bool = True,
    magical_bonus: Any = None,
) -> dict:
    armor: Dict[str, Any] = {"value": value, "dex": dex_cap}
    if magical_bonus is not None:
        armor["magicalBonus"] = magical_bonus
    return {
        "_id": f"item-{name.lower().replace(' ', '-')}",
        "name": name,
        "type": "equipment",
        "system": {"equipped": equipped, "armor": armor, "type": {"value": subtype}},
    }


def _change(key: str, mode: int, value: Any) -> dict:
    return {"key": key, "mode": mode, "value": value}


def _effect(*changes: dict, disabled: bool = False, transfer: bool = True, name: str = "Effect") -> dict:
    return {"name": name, "disabled": disabled, "transfer": transfer, "changes": list(changes)}


def _class_item(name: str, levels: int) -> dict:
    return {"_id": f"class-{name.lower()}", "name": name, "type": "class", "system": {"levels": levels}}


@pytest.fixture
def make_actor():
    return _actor


@pytest.fixture
def make_armor():
    return _armor


@pytest.fixture
def make_effect():
    return _effect


@pytest.fixture
def make_change():
    return _change


@pytest.fixture
def make_class():
    return _class_item


@pytest.fixture
def fighter_payload() -> dict:
    """Level 5 fighter/rogue in chain shirt with a shield, wrapped the way the exporter writes it."""

    actor = _actor(
        name="Brienne Tarth",
        abilities={"str": 16, "dex": 14, "con": 14, "wis": 12},
        items=[
            _class_item("Fighter", 3),
            _class_item("Rogue", 2),
            _armor("Chain Shirt", 13, dex_cap=2),
            _armor("Shield", 2, subtype="shield"),
            {
                "_id": "item-longsword",
                "name": "Longsword",
                "type": "weapon",
                "system": {"equipped": True, "quantity": 1},
            },
            {"_id": "item-rope", "name": "Hempen Rope", "type": "loot", "system": {"quantity": 2}},
            {"_id": "feat-dash", "name": "Dash", "type": "feat", "system": {}},
            {"_id": "feat-second-wind", "name": "Second Wind", "type": "feat", "system": {}},
            {
                "_id": "spell-shield",
                "name": "Shield",
                "type": "spell",
                "system": {"level": 1, "school": "abj", "prepared": 1},
            },
        ],
        skills={
            "ath": {"ability": "str", "value": 1},
            "prc": {"ability": "wis", "value": 1},
        },
        details={"race": "Human", "background": "Soldier", "alignment": "Lawful Good"},
    )
    actor["system"]["attributes"]["hp"] = {"value": 30, "max": 44}
    actor["system"]["attributes"]["movement"] = {"walk": 30}
    return {"actor": actor, "systemId": "dnd5e"}
