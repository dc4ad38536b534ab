"""
Read-only queries over the active snapshot.

Every public call reads ``store.current()`` exactly once and works on that
reference, so an install that lands mid-call can at worst make the answer one
generation stale.
"""

from collections.abc import Mapping
from typing import Any

from .constants import CHARACTER_CLASSES, RAW_SECTION_KEYS, Category, CharacterClass, RawSection
from .errors import InvalidClassError, InvalidRawKeyError, NotFoundError
from .names import get_name, item_object_from_name
from .schema import Snapshot
from .sku import ItemIdentifier, format_sku, parse_sku
from .store import SnapshotStore


class QueryFacade:
    def __init__(self, store: SnapshotStore):
        self.store = store

    # whole dataset and derived tables

    def raw(self) -> Mapping[str, Any]:
        return self.store.current().raw

    def property_table(self, category: Category) -> Any:
        table = self.store.current().derived[category]
        # derived tables are read-only views; hand out a plain copy
        return list(table) if isinstance(table, tuple) else dict(table)

    def by_raw_category(self, section: RawSection, key: str) -> Any:
        valid = RAW_SECTION_KEYS[section]
        if key not in valid:
            raise InvalidRawKeyError(f"Invalid key '{key}' for raw.{section.value}", accepted=valid)
        data = self.store.current().raw[section.value]
        if key not in data:
            raise NotFoundError(f"Cannot find value of {key} key in raw.{section.value}")
        return data[key]

    def class_weapons(self, character_class: str) -> list[str]:
        try:
            cls = CharacterClass(character_class)
        except ValueError:
            raise InvalidClassError("Invalid Character class.", accepted=CHARACTER_CLASSES) from None
        return list(self.store.current().weapons_by_class[cls])

    # names and identifiers

    def name_from_identifier(self, item: ItemIdentifier, proper: bool = False, use_pipe_for_skin: bool = False) -> str:
        name = get_name(self.store.current(), item, proper, use_pipe_for_skin)
        if name is None:
            raise NotFoundError("Item name returned null")
        return name

    def name_from_sku(self, sku: str, proper: bool = False, use_pipe_for_skin: bool = False) -> str:
        return self.name_from_identifier(parse_sku(sku), proper, use_pipe_for_skin)

    def identifier_from_name(self, name: str) -> ItemIdentifier:
        item = item_object_from_name(self.store.current(), name)
        if not item.is_resolved:
            raise NotFoundError(f"Generated sku: {format_sku(item)} - Please check the item name you've sent")
        return item

    def sku_from_name(self, name: str) -> str:
        return format_sku(self.identifier_from_name(name))

    def sku_from_identifier(self, item: ItemIdentifier) -> str:
        if not item.is_resolved:
            raise NotFoundError(f"Generated sku: {format_sku(item)} - Please check the item object you've sent")
        return format_sku(item)

    def item_object_from_name(self, name: str) -> ItemIdentifier:
        return item_object_from_name(self.store.current(), name)

    # catalog entries

    @staticmethod
    def _entry(snap: Snapshot, defindex: int | None, missing: str) -> tuple[Mapping[str, Any], Any]:
        item = snap.item(defindex) if defindex is not None else None
        if item is None:
            raise NotFoundError(missing)
        return item, snap.items_game.get("items", {}).get(str(defindex))

    def item_from_defindex(self, defindex: int) -> tuple[Mapping[str, Any], Any]:
        """Return the schema item and its items_game counterpart."""
        return self._entry(self.store.current(), defindex, f"Unable to get item element from defindex {defindex}")

    def item_from_name(self, name: str) -> tuple[Mapping[str, Any], Any]:
        snap = self.store.current()
        item = item_object_from_name(snap, name)
        if item.defindex is None:
            raise NotFoundError("Unable to get item object from item name (defindex is null)")
        return self._entry(snap, item.defindex, "Item not found")

    def item_from_sku(self, sku: str) -> tuple[Mapping[str, Any], Any]:
        return self.item_from_identifier(parse_sku(sku))

    def item_from_identifier(self, item: ItemIdentifier) -> tuple[Mapping[str, Any], Any]:
        return self._entry(self.store.current(), item.defindex, "Unable to get item element from item sku")
