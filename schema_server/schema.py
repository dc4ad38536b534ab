"""Immutable dataset snapshots and the lookup tables derived from them."""

import hashlib
import json
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .constants import (
    KILLSTREAK_TIERS,
    QUALITY_NORMAL,
    QUALITY_UNIQUE,
    WEARS,
    Category,
    CharacterClass,
)
from .errors import NotFoundError, SnapshotInvalid

RawDocument = Mapping[str, Any]

_CRATE_SERIES_ATTR = "set supply crate series"
_PAINT_ATTR = "set item tint RGB"
_STRANGE_PART_ATTR = "strange part new counter ID"


@dataclass(frozen=True)
class Snapshot:
    """One fully-built copy of the dataset. Never mutated after construction.

    Derived tables are read-only views. ``raw`` is the decoded document shared
    by every reader; it is only ever serialized, never modified.
    """

    raw: RawDocument
    version: str
    fetched_at: int  # epoch ms
    derived: Mapping[Category, Any]
    items_by_defindex: Mapping[int, Mapping[str, Any]] = field(repr=False)
    defindexes_by_name: Mapping[str, tuple[int, ...]] = field(repr=False)
    weapons_by_class: Mapping[CharacterClass, tuple[str, ...]] = field(repr=False)

    @property
    def schema(self) -> Mapping[str, Any]:
        return self.raw["schema"]

    @property
    def items_game(self) -> Mapping[str, Any]:
        return self.raw["items_game"]

    def by_key(self, category: Category, key: str) -> Any:
        table = self.derived[category]
        if isinstance(table, Mapping):
            if key in table:
                return table[key]
        elif key in table:
            return key
        raise NotFoundError(f"Cannot find '{key}' in {category.value}")

    def item(self, defindex: int) -> Mapping[str, Any] | None:
        return self.items_by_defindex.get(defindex)

    def quality_name(self, quality_id: int) -> str | None:
        return self.derived[Category.QUALITIES].get(str(quality_id))

    def effect_name(self, effect_id: int) -> str | None:
        return self.derived[Category.EFFECTS].get(str(effect_id))

    def paintkit_name(self, paintkit_id: int) -> str | None:
        return self.derived[Category.PAINTKITS].get(str(paintkit_id))


def _bidirectional(pairs: Mapping[str, int]) -> dict[str, Any]:
    table: dict[str, Any] = dict(pairs)
    for name, ident in pairs.items():
        table[str(ident)] = name
    return table


def _attribute(item: Mapping[str, Any], name: str) -> Any:
    for attr in item.get("attributes") or ():
        if attr.get("name") == name:
            return attr.get("value")
    return None


def _qualities(schema: Mapping[str, Any]) -> dict[str, Any]:
    ids: Mapping[str, int] = schema.get("qualities") or {}
    names: Mapping[str, str] = schema.get("qualityNames") or {}
    return _bidirectional({names.get(key, key): int(value) for key, value in ids.items()})


def _effects(schema: Mapping[str, Any]) -> dict[str, Any]:
    pairs: dict[str, int] = {}
    for particle in schema.get("attribute_controlled_attached_particles") or ():
        name = particle.get("name")
        # first id wins when the particle list carries duplicated names
        if name and name not in pairs:
            pairs[name] = int(particle["id"])
    return _bidirectional(pairs)


def _paintkits(schema: Mapping[str, Any]) -> dict[str, Any]:
    pairs: dict[str, int] = {}
    for ident, name in (schema.get("paintkits") or {}).items():
        if name not in pairs:
            pairs[name] = int(ident)
    return _bidirectional(pairs)


def _paints(items: list[Mapping[str, Any]]) -> dict[str, Any]:
    pairs: dict[str, int] = {}
    for item in items:
        tool = item.get("tool") or {}
        if tool.get("type") != "paint_can":
            continue
        color = _attribute(item, _PAINT_ATTR)
        if color is None or float(color) == 0:
            continue
        pairs[item["item_name"]] = int(float(color))
    return _bidirectional(pairs)


def _crate_series(items: list[Mapping[str, Any]]) -> dict[str, int]:
    series: dict[str, int] = {}
    for item in items:
        value = _attribute(item, _CRATE_SERIES_ATTR)
        if value is not None:
            series[str(item["defindex"])] = int(float(value))
    return series


def _strange_parts(schema: Mapping[str, Any], items: list[Mapping[str, Any]]) -> dict[str, int]:
    score_names = {
        int(t["type"]): t.get("type_name")
        for t in schema.get("kill_eater_score_types") or ()
    }
    parts: dict[str, int] = {}
    for item in items:
        if item.get("item_type_name") != "Strange Part":
            continue
        counter = _attribute(item, _STRANGE_PART_ATTR)
        if counter is None:
            continue
        score_type = int(float(counter))
        name = score_names.get(score_type)
        if name:
            parts[name] = score_type
    return parts


def _is_trade_weapon(item: Mapping[str, Any]) -> bool:
    if item.get("craft_class") != "weapon" or item.get("item_quality") != QUALITY_UNIQUE:
        return False
    name = item.get("name", "")
    # reskins and promo duplicates carry their own defindex but never trade as weapons
    return not name.startswith(("Upgradeable ", "Festive ", "Botkiller ", "Promo "))


def _weapons(items: list[Mapping[str, Any]]) -> tuple[list[str], list[str], dict[CharacterClass, tuple[str, ...]]]:
    craft: list[str] = []
    uncraft: list[str] = []
    by_class: dict[CharacterClass, list[str]] = {c: [] for c in CharacterClass}
    for item in items:
        if not _is_trade_weapon(item):
            continue
        sku = f"{item['defindex']};{QUALITY_UNIQUE}"
        craft.append(sku)
        uncraft.append(f"{sku};uncraftable")
        classes = item.get("used_by_classes") or [c.value for c in CharacterClass]
        for name in classes:
            try:
                by_class[CharacterClass(name)].append(sku)
            except ValueError:
                continue
    return craft, uncraft, {c: tuple(v) for c, v in by_class.items()}


def _validate(raw: RawDocument) -> None:
    if not isinstance(raw, Mapping):
        raise SnapshotInvalid("Schema document must be a JSON object")
    for section in ("schema", "items_game"):
        if not isinstance(raw.get(section), Mapping):
            raise SnapshotInvalid(f"Schema document is missing the '{section}' section")
    if not isinstance(raw["schema"].get("items"), list):
        raise SnapshotInvalid("Schema document has no 'schema.items' list")


def content_version(raw: RawDocument) -> str:
    digest = hashlib.sha1(json.dumps(raw, sort_keys=True).encode("utf-8")).hexdigest()
    return digest[:16]


def _derive(schema: Mapping[str, Any]) -> tuple[dict, dict, dict, dict]:
    items: list[Mapping[str, Any]] = schema["items"]

    by_defindex: dict[int, Mapping[str, Any]] = {}
    by_name: dict[str, list[int]] = {}
    for item in items:
        defindex = int(item["defindex"])
        by_defindex[defindex] = item
        name = item.get("item_name")
        if name:
            by_name.setdefault(name, []).append(defindex)

    craft, uncraft, by_class = _weapons(items)
    tables = {
        Category.QUALITIES: _qualities(schema),
        Category.KILLSTREAKS: _bidirectional({"None": 0, **{v: k for k, v in KILLSTREAK_TIERS.items()}}),
        Category.EFFECTS: _effects(schema),
        Category.PAINTKITS: _paintkits(schema),
        Category.WEARS: _bidirectional({v: k for k, v in WEARS.items()}),
        Category.CRATE_SERIES: _crate_series(items),
        Category.PAINTS: _paints(items),
        Category.STRANGE_PARTS: _strange_parts(schema, items),
    }
    derived: dict[Category, Any] = {k: MappingProxyType(v) for k, v in tables.items()}
    derived[Category.CRAFT_WEAPONS] = tuple(craft)
    derived[Category.UNCRAFT_WEAPONS] = tuple(uncraft)
    return derived, by_defindex, {k: tuple(v) for k, v in by_name.items()}, by_class


def build_snapshot(raw: RawDocument, version: str | None = None, fetched_at: int | None = None) -> Snapshot:
    """Validate a raw document and precompute every derived table.

    Any section of the wrong shape surfaces as ``SnapshotInvalid``.
    """
    _validate(raw)
    try:
        derived, by_defindex, by_name, by_class = _derive(raw["schema"])
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SnapshotInvalid(f"Schema document is malformed: {e!r}") from e

    return Snapshot(
        raw=raw,
        version=version or content_version(raw),
        fetched_at=fetched_at if fetched_at is not None else int(time.time() * 1000),
        derived=MappingProxyType(derived),
        items_by_defindex=MappingProxyType(by_defindex),
        defindexes_by_name=MappingProxyType(by_name),
        weapons_by_class=MappingProxyType(by_class),
    )


def resolve_defindex(snapshot: Snapshot, item_name: str, quality: int | None) -> int | None:
    """Pick the catalog entry for a display name; stock items only match Normal quality."""
    candidates = snapshot.defindexes_by_name.get(item_name)
    if not candidates:
        return None
    stock = quality == QUALITY_NORMAL
    for defindex in candidates:
        is_stock = snapshot.items_by_defindex[defindex].get("item_quality") == QUALITY_NORMAL
        if is_stock == stock:
            return defindex
    return candidates[0]
