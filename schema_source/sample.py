"""Small but structurally complete schema document used for local runs and tests."""

import copy

ALL_CLASSES = ["Scout", "Soldier", "Pyro", "Demoman", "Heavy", "Engineer", "Medic", "Sniper", "Spy"]

def _weapon(defindex: int, name: str, item_name: str, classes: list[str], *, proper: bool = True,
            quality: int = 6, craft: bool = True, item_class: str = "tf_weapon") -> dict:
    return {
        "name": name,
        "defindex": defindex,
        "item_class": item_class,
        "item_type_name": "Weapon",
        "item_name": item_name,
        "proper_name": proper,
        "item_slot": "primary",
        "item_quality": quality,
        "min_ilevel": 1,
        "max_ilevel": 1,
        "craft_class": "weapon" if craft else "",
        "craft_material_type": "weapon" if craft else "",
        "used_by_classes": classes,
    }

_ITEMS = [
    _weapon(13, "TF_WEAPON_SCATTERGUN", "Scattergun", ["Scout"], proper=False, quality=0, craft=False,
            item_class="tf_weapon_scattergun"),
    _weapon(200, "Upgradeable TF_WEAPON_SCATTERGUN", "Scattergun", ["Scout"], proper=False,
            item_class="tf_weapon_scattergun"),
    _weapon(45, "The Force-A-Nature", "Force-A-Nature", ["Scout"], item_class="tf_weapon_scattergun"),
    _weapon(44, "The Sandman", "Sandman", ["Scout"], item_class="tf_weapon_bat_wood"),
    _weapon(127, "The Direct Hit", "Direct Hit", ["Soldier"], item_class="tf_weapon_rocketlauncher_directhit"),
    _weapon(40, "The Backburner", "Backburner", ["Pyro"], item_class="tf_weapon_flamethrower"),
    _weapon(264, "Frying Pan", "Frying Pan", ["Scout", "Soldier", "Pyro", "Demoman", "Heavy", "Engineer",
                                             "Medic", "Sniper"], proper=False, item_class="saxxy"),
    _weapon(660, "Festive Bat 2011", "Festive Bat", ["Scout"], proper=False, item_class="tf_weapon_bat"),
    {
        "name": "Decoder Ring",
        "defindex": 5021,
        "item_class": "tool",
        "item_type_name": "Tool",
        "item_name": "Mann Co. Supply Crate Key",
        "proper_name": False,
        "item_quality": 6,
        "craft_class": "tool",
        "craft_material_type": "tool",
        "tool": {"type": "decoder_ring"},
    },
    {
        "name": "Supply Crate 1",
        "defindex": 5022,
        "item_class": "supply_crate",
        "item_type_name": "Crate",
        "item_name": "Mann Co. Supply Crate",
        "proper_name": False,
        "item_quality": 6,
        "craft_class": "supply_crate",
        "attributes": [{"name": "set supply crate series", "class": "supply_crate_series", "value": 1}],
    },
    {
        "name": "Team Captain",
        "defindex": 378,
        "item_class": "tf_wearable",
        "item_type_name": "Hat",
        "item_name": "Team Captain",
        "proper_name": True,
        "item_quality": 6,
        "craft_class": "hat",
        "used_by_classes": ALL_CLASSES,
    },
    {
        "name": "Strange Part: Scouts Killed",
        "defindex": 6003,
        "item_class": "tool",
        "item_type_name": "Strange Part",
        "item_name": "Strange Part: Scouts Killed",
        "proper_name": False,
        "item_quality": 11,
        "attributes": [{"name": "strange part new counter ID", "class": "strange_part", "value": 10}],
    },
    {
        "name": "Paint Can 10",
        "defindex": 5027,
        "item_class": "tool",
        "item_type_name": "Tool",
        "item_name": "Indubitably Green",
        "proper_name": False,
        "item_quality": 6,
        "tool": {"type": "paint_can"},
        "attributes": [{"name": "set item tint RGB", "class": "set_item_tint_rgb", "value": 7511618}],
    },
    {
        "name": "Specialized Killstreakifier Basic",
        "defindex": 6523,
        "item_class": "tool",
        "item_type_name": "Killstreak Kit",
        "item_name": "Kit",
        "proper_name": False,
        "item_quality": 6,
        "tool": {"type": "killstreakifier"},
    },
]

SAMPLE_SCHEMA = {
    "schema": {
        "items_game_url": "http://media.steampowered.com/apps/440/scripts/items/items_game.sample.txt",
        "qualities": {
            "Normal": 0,
            "rarity1": 1,
            "vintage": 3,
            "rarity4": 5,
            "Unique": 6,
            "strange": 11,
            "haunted": 13,
            "collectors": 14,
            "paintkitweapon": 15,
        },
        "qualityNames": {
            "Normal": "Normal",
            "rarity1": "Genuine",
            "vintage": "Vintage",
            "rarity4": "Unusual",
            "Unique": "Unique",
            "strange": "Strange",
            "haunted": "Haunted",
            "collectors": "Collector's",
            "paintkitweapon": "Decorated Weapon",
        },
        "originNames": [
            {"origin": 0, "name": "Timed Drop"},
            {"origin": 2, "name": "Purchased"},
        ],
        "attributes": [
            {"name": "set supply crate series", "defindex": 187, "attribute_class": "supply_crate_series"},
            {"name": "set item tint RGB", "defindex": 142, "attribute_class": "set_item_tint_rgb"},
            {"name": "strange part new counter ID", "defindex": 380, "attribute_class": "strange_part"},
        ],
        "item_sets": [],
        "attribute_controlled_attached_particles": [
            {"system": "superrare_burning1", "id": 13, "attach_to_rootbone": False, "name": "Burning Flames"},
            {"system": "superrare_sunbeams", "id": 17, "attach_to_rootbone": True, "name": "Sunbeams"},
            {"system": "weapon_unusual_hot", "id": 701, "attach_to_rootbone": False, "name": "Hot"},
        ],
        "item_levels": [],
        "kill_eater_score_types": [
            {"type": 0, "type_name": "Kills", "level_data": "KillEaterRank"},
            {"type": 10, "type_name": "Scouts Killed", "level_data": "KillEaterRank"},
        ],
        "string_lookups": [],
        "items": _ITEMS,
        "paintkits": {"102": "Night Terror", "106": "Civic Duty Mk.II"},
    },
    "items_game": {
        "game_info": {"first_valid_class": "1", "last_valid_class": "9"},
        "qualities": {"normal": {"value": "0"}, "unique": {"value": "6"}},
        "rarities": {"common": {"value": "1"}},
        "prefabs": {"valve tool": {"item_class": "tool"}},
        "items": {
            "5021": {"name": "Decoder Ring", "prefab": "valve tool", "item_name": "#TF_Tool_DecoderRing"},
            "45": {"name": "The Force-A-Nature", "prefab": "weapon_scattergun"},
            "13": {"name": "TF_WEAPON_SCATTERGUN", "prefab": "weapon_scattergun"},
        },
        "war_definitions": {"0": {"name": "Heavy vs Pyro"}},
    },
}

def sample_schema() -> dict:
    """Return a fresh deep copy so callers may modify it freely."""
    return copy.deepcopy(SAMPLE_SCHEMA)
