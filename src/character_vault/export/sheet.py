from __future__ import annotations

import html
import json
import re
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from ..constants import ABILITY_SCORES, DND5E_SYSTEM_ID, FILTERED_FEATURES, GEAR_TYPES, SKILL_NAMES
from ..data.snapshot import CharacterDocument, ItemRecord
from ..models import DerivedStats, RosterEntry
from ..roster import fmt_signed, name_key, norm
from .. import rules

Row = Tuple[str, str]
Card = Tuple[str, str]

HIDDEN_FEATURES = {name_key(name) for name in FILTERED_FEATURES}

_TAG_PATTERN = re.compile(r"<[^>]+>")


def spell_prepared_label(spell: ItemRecord) -> str:
    prepared = spell.prepared
    # dnd5e 4.x stores preparation as 0/1/2
    if not isinstance(prepared, bool):
        if prepared == 2:
            return "Always prepared"
        if prepared == 1:
            return "Prepared"
        if prepared == 0:
            return "Not prepared"

    if spell.preparation_mode == "prepared":
        return "Prepared" if spell.preparation_prepared else "Not prepared"
    if spell.preparation_mode == "always":
        return "Always prepared"
    return ""


def should_hide_feature(item: ItemRecord) -> bool:
    return name_key(item.name) in HIDDEN_FEATURES


def ability_rows(document: CharacterDocument, derived: DerivedStats) -> List[Row]:
    rows: List[Row] = []
    for ability in ABILITY_SCORES:
        score = document.ability_scores.get(ability)
        rows.append((ability.upper(), f"{_display(score)} ({fmt_signed(derived.ability_modifier(ability))})"))
    return rows


def combat_rows(document: CharacterDocument, derived: DerivedStats) -> List[Row]:
    hp = f"{_display(document.hp_value)} / {_display(document.hp_max)}"
    if document.hp_temp:
        hp += f" (temp {document.hp_temp})"
    initiative = document.initiative
    if initiative is None:
        initiative = derived.ability_modifier("dex")
    return [
        ("Armour Class", str(derived.armor_class)),
        ("Hit Points", hp),
        ("Initiative", fmt_signed(initiative)),
        ("Proficiency Bonus", fmt_signed(derived.proficiency_bonus)),
        ("Speed", _speed(document.movement)),
        ("Passive Perception", str(derived.passive_perception)),
    ]


def skill_rows(derived: DerivedStats) -> List[Row]:
    return [(label, fmt_signed(derived.skill_totals.get(code, 0))) for code, label in SKILL_NAMES.items()]


def spell_cards(document: CharacterDocument) -> List[Card]:
    cards: List[Card] = []
    for spell in _sorted_by_name(document.items_of_type("spell")):
        level = spell.spell_level
        level_label = "Cantrip" if level == 0 else (f"Level {int(level)}" if level is not None else "")
        parts = [level_label, spell.school, spell_prepared_label(spell)]
        cards.append((spell.name or "Unnamed", " • ".join(part for part in parts if part)))
    return cards


def feature_cards(document: CharacterDocument) -> List[Card]:
    features = [item for item in document.items_of_type("feat") if not should_hide_feature(item)]
    return [(item.name or "Unnamed", "") for item in _sorted_by_name(features)]


def gear_cards(document: CharacterDocument, query: str = "") -> List[Card]:
    needle = norm(query)
    cards: List[Card] = []
    for item in _sorted_by_name(document.items_of_type(*GEAR_TYPES)):
        if needle and needle not in norm(item.name):
            continue
        quantity = item.quantity if item.quantity is not None else 1
        parts = [f"qty {_display(quantity)}", "equipped" if item.equipped else ""]
        cards.append((item.name or "Unnamed", " • ".join(part for part in parts if part)))
    return cards


def build_sheet_text(entry: RosterEntry) -> str:
    """Plain-text character sheet for copying or saving."""

    document = entry.document
    if entry.system_id != DND5E_SYSTEM_ID:
        return "\n".join([entry.name, f"System: {entry.system_id}", "", raw_snapshot_text(entry)])

    derived = rules.compute_derived_stats(document)
    lines: List[str] = [entry.name, entry.meta.line1]
    pills = [entry.meta.line2] + [bit for bit in (document.race, document.background, document.alignment) if bit]
    lines.append(" | ".join(pills))

    for title, rows in (
        ("Abilities", ability_rows(document, derived)),
        ("Combat", combat_rows(document, derived)),
        ("Skills", skill_rows(derived)),
    ):
        lines.append("")
        lines.append(title)
        lines.extend(f"  {label}: {value}" for label, value in rows)

    for title, cards, empty in (
        ("Spells", spell_cards(document), "No spells exported."),
        ("Features", feature_cards(document), "No features exported."),
        ("Inventory", gear_cards(document), "No inventory exported."),
    ):
        lines.append("")
        lines.append(title)
        if not cards:
            lines.append(f"  {empty}")
        for name, subtitle in cards:
            lines.append(f"  {name}" + (f" ({subtitle})" if subtitle else ""))

    biography = _strip_tags(document.biography).strip()
    lines.append("")
    lines.append("Biography")
    lines.append(f"  {biography}" if biography else "  No biography exported.")
    return "\n".join(lines)


def build_sheet_html(entry: RosterEntry, inventory_query: str = "") -> str:
    document = entry.document
    if entry.system_id != DND5E_SYSTEM_ID:
        return (
            f"<h2>{_esc(entry.name)}</h2>"
            f"<p>System: <b>{_esc(entry.system_id)}</b></p>"
            "<p>Rich rendering is implemented for dnd5e. Other systems show a raw snapshot.</p>"
            f"<h3>Raw data</h3><pre>{_esc(raw_snapshot_text(entry))}</pre>"
        )

    derived = rules.compute_derived_stats(document)
    pills = [entry.meta.line2] + [bit for bit in (document.race, document.background, document.alignment) if bit]
    parts = [
        f"<h2>{_esc(entry.name)}</h2>",
        f"<p>{_esc(entry.meta.line1)}<br/>{' · '.join(_esc(pill) for pill in pills)}</p>",
        _rows_html("Abilities", ability_rows(document, derived)),
        _rows_html("Combat", combat_rows(document, derived)),
        _rows_html("Skills", skill_rows(derived)),
        _cards_html("Spells", spell_cards(document), "No spells exported."),
        _cards_html("Features", feature_cards(document), "No features exported."),
    ]
    empty_gear = "No inventory exported."
    if norm(inventory_query) and document.items_of_type(*GEAR_TYPES):
        empty_gear = "No matching items."
    parts.append(_cards_html("Inventory", gear_cards(document, inventory_query), empty_gear))
    # Foundry stores biographies as HTML already.
    parts.append(f"<h3>Biography</h3><div>{document.biography or '<em>No biography exported.</em>'}</div>")
    return "\n".join(parts)


def raw_snapshot_text(entry: RosterEntry) -> str:
    return json.dumps(entry.payload, indent=2, ensure_ascii=False, default=str)


def export_sheet_to_text(entry: RosterEntry, destination: Path) -> None:
    text = build_sheet_text(entry)
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(text.rstrip() + "\n", encoding="utf-8")


def _rows_html(title: str, rows: Sequence[Row]) -> str:
    cells = "".join(f"<tr><td>{_esc(label)}</td><td><b>{_esc(value)}</b></td></tr>" for label, value in rows)
    return f"<h3>{_esc(title)}</h3><table cellspacing='4'>{cells}</table>"


def _cards_html(title: str, cards: Sequence[Card], empty: str) -> str:
    if not cards:
        return f"<h3>{_esc(title)}</h3><p><i>{_esc(empty)}</i></p>"
    items = "".join(
        f"<li><b>{_esc(name)}</b>" + (f" <span style='color:#9aa3bb'>{_esc(sub)}</span>" if sub else "") + "</li>"
        for name, sub in cards
    )
    return f"<h3>{_esc(title)}</h3><ul>{items}</ul>"


def _speed(movement: dict) -> str:
    text = f"walk {_display(movement.get('walk'))}"
    for mode in ("fly", "swim"):
        if movement.get(mode):
            text += f", {mode} {movement[mode]}"
    return text


def _sorted_by_name(items: List[ItemRecord]) -> List[ItemRecord]:
    return sorted(items, key=lambda item: item.name.casefold())


def _display(value: Any) -> str:
    if value is None or value == "":
        return "–"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _esc(value: Optional[str]) -> str:
    return html.escape(value or "")


def _strip_tags(value: str) -> str:
    return html.unescape(_TAG_PATTERN.sub(" ", value or "")).replace("  ", " ")
