ABILITY_SCORES = ["str", "dex", "con", "int", "wis", "cha"]

# Foundry dnd5e skill codes, in sheet order.
SKILL_NAMES = {
    "acr": "Acrobatics",
    "ani": "Animal Handling",
    "arc": "Arcana",
    "ath": "Athletics",
    "dec": "Deception",
    "his": "History",
    "ins": "Insight",
    "itm": "Intimidation",
    "inv": "Investigation",
    "med": "Medicine",
    "nat": "Nature",
    "prc": "Perception",
    "prf": "Performance",
    "per": "Persuasion",
    "rel": "Religion",
    "sle": "Sleight of Hand",
    "ste": "Stealth",
    "sur": "Survival",
}

PERCEPTION_SKILL = "prc"

DND5E_SYSTEM_ID = "dnd5e"
UNKNOWN_SYSTEM_ID = "unknown"

# system.attunement value meaning "attuned"
ATTUNED = 2

# Foundry ActiveEffect change modes
EFFECT_MODE_ADD = 2
EFFECT_MODE_OVERRIDE = 5

LEGACY_KEY_ROOT = "data."
SYSTEM_KEY_ROOT = "system."

UNARMORED_BASE = 10

# equipment sub-types worn as body armor; "shield" stacks on top of these
ARMOR_SUBTYPES = {"light", "medium", "heavy", "natural"}
SHIELD_SUBTYPE = "shield"

GEAR_TYPES = {
    "weapon",
    "equipment",
    "consumable",
    "tool",
    "loot",
    "backpack",
    "container",
}

# Generic actions that exports list as features; hidden from the sheet.
FILTERED_FEATURES = [
    "hide",
    "search",
    "attack",
    "check cover",
    "dash",
    "disengage",
    "grapple",
    "knock out",
    "magic",
    "ready",
    "ready spell",
    "stabilise",
    "study",
    "underwater",
    "dodge",
    "fall",
    "help",
    "influence",
    "mount",
    "ready action",
    "shove",
    "squeeze",
    "suffocation",
]
