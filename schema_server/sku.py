"""Compact item identifiers ("SKUs") such as ``5021;6`` or ``378;5;u13;strange``."""

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

from .constants import QUALITY_STRANGE
from .errors import InvalidInputError


@dataclass(frozen=True)
class ItemIdentifier:
    defindex: int | None
    quality: int | None
    craftable: bool = True
    tradable: bool = True
    killstreak: int = 0
    australium: bool = False
    effect: int | None = None
    festive: bool = False
    paintkit: int | None = None
    wear: int | None = None
    quality2: int | None = None
    craftnumber: int | None = None
    crateseries: int | None = None
    target: int | None = None
    output: int | None = None
    outputQuality: int | None = None
    paint: int | None = None

    @property
    def is_resolved(self) -> bool:
        return self.defindex is not None and self.quality is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_FIELDS = set(ItemIdentifier.__dataclass_fields__)


def _num(raw: str, token: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InvalidInputError(f"Invalid sku token '{token}'") from None


def parse_sku(sku: str) -> ItemIdentifier:
    parts = sku.strip().split(";")
    if len(parts) < 2:
        raise InvalidInputError(f"Invalid sku '{sku}': expected '<defindex>;<quality>'")
    fields: dict[str, Any] = {
        "defindex": _num(parts[0], parts[0]),
        "quality": _num(parts[1], parts[1]),
    }

    for token in parts[2:]:
        if token == "australium":
            fields["australium"] = True
        elif token == "uncraftable":
            fields["craftable"] = False
        elif token in ("untradable", "untradeable"):
            fields["tradable"] = False
        elif token == "festive":
            fields["festive"] = True
        elif token == "strange":
            fields["quality2"] = QUALITY_STRANGE
        elif token.startswith("kt-"):
            fields["killstreak"] = _num(token[3:], token)
        elif token.startswith("td-"):
            fields["target"] = _num(token[3:], token)
        elif token.startswith("od-"):
            fields["output"] = _num(token[3:], token)
        elif token.startswith("oq-"):
            fields["outputQuality"] = _num(token[3:], token)
        elif token.startswith("pk") and token[2:].isdigit():
            fields["paintkit"] = int(token[2:])
        elif token.startswith("u") and token[1:].isdigit():
            fields["effect"] = int(token[1:])
        elif token.startswith("w") and token[1:].isdigit():
            fields["wear"] = int(token[1:])
        elif token.startswith("n") and token[1:].isdigit():
            fields["craftnumber"] = int(token[1:])
        elif token.startswith("c") and token[1:].isdigit():
            fields["crateseries"] = int(token[1:])
        elif token.startswith("p") and token[1:].isdigit():
            fields["paint"] = int(token[1:])
        # anything else is ignored

    return ItemIdentifier(**fields)


def format_sku(item: ItemIdentifier) -> str:
    def part(value: int | None) -> str:
        return "null" if value is None else str(value)

    sku = f"{part(item.defindex)};{part(item.quality)}"
    if item.effect:
        sku += f";u{item.effect}"
    if item.australium:
        sku += ";australium"
    if not item.craftable:
        sku += ";uncraftable"
    if not item.tradable:
        sku += ";untradable"
    if item.wear:
        sku += f";w{item.wear}"
    if item.paintkit is not None:
        sku += f";pk{item.paintkit}"
    if item.quality2 == QUALITY_STRANGE:
        sku += ";strange"
    if item.killstreak:
        sku += f";kt-{item.killstreak}"
    if item.target:
        sku += f";td-{item.target}"
    if item.festive:
        sku += ";festive"
    if item.craftnumber:
        sku += f";n{item.craftnumber}"
    if item.crateseries:
        sku += f";c{item.crateseries}"
    if item.output:
        sku += f";od-{item.output}"
    if item.outputQuality:
        sku += f";oq-{item.outputQuality}"
    if item.paint:
        sku += f";p{item.paint}"
    return sku


def from_item_object(obj: Mapping[str, Any]) -> ItemIdentifier:
    """Build an identifier from a structured item; unknown keys are dropped."""
    fields = {k: v for k, v in obj.items() if k in _FIELDS}
    # explicit nulls fall back to the dataclass defaults, except the two required keys
    for key in list(fields):
        if fields[key] is None and key not in ("defindex", "quality"):
            del fields[key]
    fields.setdefault("defindex", None)
    fields.setdefault("quality", None)
    return ItemIdentifier(**fields)
