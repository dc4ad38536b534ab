from pydantic import BaseModel, ConfigDict, Field

class ItemObject(BaseModel):
    """Structured item as accepted by the name and sku endpoints."""

    model_config = ConfigDict(extra="ignore", json_schema_extra={"examples": [{"defindex": 5021, "quality": 6}]})

    defindex: int | None = Field(None, description="Item definition index, e.g. 5021")
    quality: int | None = Field(None, description="Quality id, e.g. 6 for Unique")
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
