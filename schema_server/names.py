"""Conversions between item identifiers and display names."""

import re
from collections.abc import Iterable

from .constants import (
    KILLSTREAK_TIERS,
    QUALITY_DECORATED,
    QUALITY_UNIQUE,
    QUALITY_UNUSUAL,
    WEARS,
    Category,
)
from .schema import Snapshot, resolve_defindex
from .sku import ItemIdentifier

_WEAR_SUFFIX = re.compile(r" \((" + "|".join(re.escape(w) for w in WEARS.values()) + r")\)$")
_SERIES_SUFFIX = re.compile(r" Series #(\d+)$")
_CRAFT_NUMBER_SUFFIX = re.compile(r" #(\d+)$")
_WEAR_IDS = {name: ident for ident, name in WEARS.items()}
_KILLSTREAK_IDS = {name: ident for ident, name in KILLSTREAK_TIERS.items()}


def _shows_quality(item: ItemIdentifier) -> bool:
    if item.quality == QUALITY_UNIQUE:
        return False
    if item.quality == QUALITY_DECORATED and item.paintkit is not None:
        return False
    if item.quality == QUALITY_UNUSUAL and item.effect:
        return False
    return True


def get_name(snapshot: Snapshot, item: ItemIdentifier, proper: bool = False, use_pipe_for_skin: bool = False) -> str | None:
    """Return the display name for `item`, or None when its defindex is not cataloged."""
    if item.defindex is None:
        return None
    schema_item = snapshot.item(item.defindex)
    if schema_item is None:
        return None

    name = ""
    if not item.tradable:
        name += "Non-Tradable "
    if not item.craftable:
        name += "Non-Craftable "
    if item.quality2 is not None:
        name += (snapshot.quality_name(item.quality2) or "") + " "
    if item.quality is not None and _shows_quality(item):
        quality = snapshot.quality_name(item.quality)
        if quality:
            name += quality + " "
    if item.effect:
        effect = snapshot.effect_name(item.effect)
        if effect:
            name += effect + " "
    if item.festive:
        name += "Festivized "
    if item.killstreak in KILLSTREAK_TIERS:
        name += KILLSTREAK_TIERS[item.killstreak] + " "
    if item.target:
        target = snapshot.item(item.target)
        if target is not None:
            name += target["item_name"] + " "
    if item.australium:
        name += "Australium "
    if item.paintkit is not None:
        skin = snapshot.paintkit_name(item.paintkit)
        if skin:
            name += skin + (" | " if use_pipe_for_skin else " ")
    if proper and name == "" and schema_item.get("proper_name"):
        name = "The "

    name += schema_item["item_name"]

    if item.wear in WEARS:
        name += f" ({WEARS[item.wear]})"
    if item.crateseries:
        name += f" Series #{item.crateseries}"
    if item.craftnumber:
        name += f" #{item.craftnumber}"
    return name


def _take_prefix(text: str, candidates: Iterable[str], sep: str = " ") -> tuple[str | None, str]:
    for candidate in sorted(candidates, key=len, reverse=True):
        if text.startswith(candidate + sep):
            return candidate, text[len(candidate) + len(sep):]
    return None, text


def _names(table: dict) -> list[str]:
    return [k for k in table if not k.isdigit()]


def _split_target(snapshot: Snapshot, text: str) -> tuple[str | None, str]:
    names = snapshot.defindexes_by_name
    for idx, ch in enumerate(text):
        if ch == " " and text[:idx] in names and text[idx + 1:] in names:
            return text[:idx], text[idx + 1:]
    return None, text


def item_object_from_name(snapshot: Snapshot, name: str) -> ItemIdentifier:
    """
    Parse a display name back into an identifier.

    The returned identifier has ``defindex=None`` when the base item name is not
    cataloged; callers check ``is_resolved``.
    """
    derived = snapshot.derived
    names = snapshot.defindexes_by_name
    rest = name.strip()
    fields: dict = {}

    for prefix, key in (("Non-Tradable ", "tradable"), ("Non-Tradeable ", "tradable"), ("Non-Craftable ", "craftable")):
        if rest.startswith(prefix):
            fields[key] = False
            rest = rest[len(prefix):]

    m = _SERIES_SUFFIX.search(rest)
    if m:
        fields["crateseries"] = int(m.group(1))
        rest = rest[:m.start()]
    m = _CRAFT_NUMBER_SUFFIX.search(rest)
    if m:
        fields["craftnumber"] = int(m.group(1))
        rest = rest[:m.start()]
    m = _WEAR_SUFFIX.search(rest)
    if m:
        fields["wear"] = _WEAR_IDS[m.group(1)]
        rest = rest[:m.start()]

    qualities = derived[Category.QUALITIES]
    found: list[int] = []
    while len(found) < 2 and rest not in names:
        quality, rest = _take_prefix(rest, _names(qualities))
        if quality is None:
            break
        found.append(int(qualities[quality]))

    effects = derived[Category.EFFECTS]
    if rest not in names:
        effect, rest = _take_prefix(rest, _names(effects))
        if effect is not None:
            fields["effect"] = int(effects[effect])

    if rest.startswith("Festivized ") and rest not in names:
        fields["festive"] = True
        rest = rest[len("Festivized "):]

    if rest not in names:
        tier, rest = _take_prefix(rest, _KILLSTREAK_IDS)
        if tier is not None:
            fields["killstreak"] = _KILLSTREAK_IDS[tier]

    if rest.startswith("Australium ") and rest not in names:
        fields["australium"] = True
        rest = rest[len("Australium "):]

    paintkits = derived[Category.PAINTKITS]
    if rest not in names:
        for sep in (" | ", " "):
            skin, remainder = _take_prefix(rest, _names(paintkits), sep)
            if skin is not None and (remainder in names or remainder.removeprefix("The ") in names):
                fields["paintkit"] = int(paintkits[skin])
                rest = remainder
                break

    if rest not in names and rest.startswith("The ") and rest[4:] in names:
        rest = rest[4:]

    if rest not in names:
        target, base = _split_target(snapshot, rest)
        if target is not None:
            fields["target"] = resolve_defindex(snapshot, target, QUALITY_UNIQUE)
            rest = base

    if len(found) == 2:
        fields["quality2"], fields["quality"] = found
    elif len(found) == 1:
        if "effect" in fields and found[0] != QUALITY_UNUSUAL:
            fields["quality2"], fields["quality"] = found[0], QUALITY_UNUSUAL
        else:
            fields["quality"] = found[0]
    elif "effect" in fields:
        fields["quality"] = QUALITY_UNUSUAL
    elif "paintkit" in fields:
        fields["quality"] = QUALITY_DECORATED
    else:
        fields["quality"] = QUALITY_UNIQUE

    defindex = resolve_defindex(snapshot, rest, fields["quality"])
    return ItemIdentifier(defindex=defindex, **fields)
