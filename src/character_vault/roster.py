from __future__ import annotations

import re
import uuid
from typing import Any, Iterable, List, Optional

from .constants import DND5E_SYSTEM_ID
from .data.snapshot import CharacterDocument, actor_from_payload, normalize_document
from .models import RosterEntry, RosterMeta
from . import rules


def norm(value: Any) -> str:
    return ("" if value is None else str(value)).lower().strip()


def name_key(value: Any) -> str:
    """Lowercase, punctuation stripped, whitespace collapsed."""

    return re.sub(r"[^a-z0-9]+", " ", norm(value)).strip()


def fmt_signed(value: Any) -> str:
    try:
        return f"{int(value or 0):+d}"
    except (TypeError, ValueError, OverflowError):
        return "+0"


def entry_id(payload: Any, document: CharacterDocument) -> str:
    if document.id:
        return document.id
    if isinstance(payload, dict) and isinstance(payload.get("id"), (str, int)) and payload["id"] != "":
        return str(payload["id"])
    return uuid.uuid4().hex


def roster_meta(document: CharacterDocument) -> RosterMeta:
    if document.system_id != DND5E_SYSTEM_ID:
        return RosterMeta(line1=document.actor_type or "Actor", line2="Snapshot")

    derived = rules.compute_derived_stats(document)
    class_names = ", ".join(entry.name for entry in document.class_levels if entry.name)
    line1 = " • ".join(
        part for part in (class_names or document.class_label or "Character", _level_label(derived.level)) if part
    )
    line2 = "  ·  ".join(
        [
            f"AC {derived.armor_class}",
            f"HP {_display(document.hp_value)}/{_display(document.hp_max)}",
            f"PB {fmt_signed(derived.proficiency_bonus)}",
        ]
    )
    initiative = document.initiative
    if initiative is None:
        initiative = derived.ability_modifier("dex")
    return RosterMeta(line1=line1, line2=line2, initiative=int(initiative))


def roster_tooltip(entry: RosterEntry) -> str:
    parts = [entry.meta.line2]
    if entry.meta.initiative is not None:
        parts.append(f"Init {fmt_signed(entry.meta.initiative)}")
    return "  ·  ".join(parts)


def search_corpus(document: CharacterDocument) -> str:
    bits = [document.name, document.class_label, document.race, document.background]
    bits.extend(item.name for item in document.items)
    return norm(" ".join(bit for bit in bits if bit))


def build_entry(payload: Any) -> RosterEntry:
    document = normalize_document(payload)
    return RosterEntry(
        id=entry_id(payload, document),
        name=document.name or "Unnamed",
        system_id=document.system_id,
        meta=roster_meta(document),
        payload=payload,
        document=document,
        corpus=search_corpus(document),
    )


def build_roster(payloads: Iterable[Any]) -> List[RosterEntry]:
    entries = [build_entry(payload) for payload in payloads if actor_from_payload(payload) is not None]
    entries.sort(key=lambda entry: entry.name.casefold())
    return entries


def filter_entries(entries: Iterable[RosterEntry], query: str) -> List[RosterEntry]:
    needle = norm(query)
    if not needle:
        return list(entries)
    return [entry for entry in entries if needle in entry.corpus]


def find_entry(entries: Iterable[RosterEntry], entry_id_value: Optional[str]) -> Optional[RosterEntry]:
    if not entry_id_value:
        return None
    for entry in entries:
        if entry.id == entry_id_value:
            return entry
    return None


def _level_label(level: int) -> str:
    return f"Lv {level}" if level else ""


def _display(value: Any) -> str:
    if value is None or value == "":
        return "–"
    return str(value)
