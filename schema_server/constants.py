from enum import Enum


class CharacterClass(str, Enum):
    SCOUT = "Scout"
    SOLDIER = "Soldier"
    PYRO = "Pyro"
    DEMOMAN = "Demoman"
    HEAVY = "Heavy"
    ENGINEER = "Engineer"
    MEDIC = "Medic"
    SNIPER = "Sniper"
    SPY = "Spy"


CHARACTER_CLASSES: list[str] = [c.value for c in CharacterClass]


class RawSection(str, Enum):
    SCHEMA = "schema"
    ITEMS_GAME = "items_game"


# keys addressable under raw["schema"]
RAW_SCHEMA_KEYS: tuple[str, ...] = (
    "items_game_url",
    "qualities",
    "qualityNames",
    "originNames",
    "attributes",
    "item_sets",
    "attribute_controlled_attached_particles",
    "item_levels",
    "kill_eater_score_types",
    "string_lookups",
    "items",
    "paintkits",
)

# keys addressable under raw["items_game"]
RAW_ITEMS_GAME_KEYS: tuple[str, ...] = (
    "game_info",
    "qualities",
    "colors",
    "rarities",
    "equip_regions_list",
    "equip_conflicts",
    "quest_objective_conditions",
    "item_series_types",
    "item_collections",
    "operations",
    "prefabs",
    "items",
    "attributes",
    "item_criteria_templates",
    "random_attribute_templates",
    "lootlist_job_template_definitions",
    "item_sets",
    "client_loot_lists",
    "revolving_loot_lists",
    "recipes",
    "achievement_rewards",
    "attribute_controlled_attached_particles",
    "armory_data",
    "item_levels",
    "kill_eater_score_types",
    "mvm_maps",
    "mvm_tours",
    "matchmaking_categories",
    "maps",
    "master_maps_list",
    "steam_packages",
    "string_lookups",
    "community_market_item_remaps",
    "war_definitions",
)

RAW_SECTION_KEYS: dict[RawSection, tuple[str, ...]] = {
    RawSection.SCHEMA: RAW_SCHEMA_KEYS,
    RawSection.ITEMS_GAME: RAW_ITEMS_GAME_KEYS,
}


class Category(str, Enum):
    """Derived lookup tables precomputed for every snapshot."""

    QUALITIES = "qualities"
    KILLSTREAKS = "killstreaks"
    EFFECTS = "effects"
    PAINTKITS = "paintkits"
    WEARS = "wears"
    CRATE_SERIES = "crateseries"
    PAINTS = "paints"
    STRANGE_PARTS = "strangeParts"
    CRAFT_WEAPONS = "craftWeapons"
    UNCRAFT_WEAPONS = "uncraftWeapons"


KILLSTREAK_TIERS: dict[int, str] = {
    1: "Killstreak",
    2: "Specialized Killstreak",
    3: "Professional Killstreak",
}

WEARS: dict[int, str] = {
    1: "Factory New",
    2: "Minimal Wear",
    3: "Field-Tested",
    4: "Well-Worn",
    5: "Battle Scarred",
}

# quality ids with special naming rules
QUALITY_NORMAL = 0
QUALITY_UNUSUAL = 5
QUALITY_UNIQUE = 6
QUALITY_STRANGE = 11
QUALITY_DECORATED = 15
