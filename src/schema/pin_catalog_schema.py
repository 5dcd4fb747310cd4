from pydantic import BaseModel, ConfigDict, Field, field_validator

from model.enum.pin_enum import PinCapability, PinCategory, PinSide


class PinDescriptor(BaseModel):
    """
    Static description of one physical connector pin.

    Notes:
    - `capability_mask` is a digit string, each digit a PinCapability ("23" = Analog + Digital).
    - `ic_address` is only present for pins wired to an output driver (e.g. "TLE7244_01_05").
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    number: int = Field(alias="pin", ge=1)
    side: PinSide
    label: str
    capability_mask: str = Field(alias="type")
    category: PinCategory
    description: str = ""
    ic_address: str | None = Field(default=None, alias="ic")

    @field_validator("capability_mask", mode="before")
    @classmethod
    def validate_capability_mask(cls, v):
        text = str(v).strip()
        valid_digits = {c.value for c in PinCapability}
        if not text or any(ch not in valid_digits for ch in text):
            raise ValueError(f"capability mask must only contain {sorted(valid_digits)}, got: {v!r}")
        return text

    @property
    def capabilities(self) -> set[PinCapability]:
        return {PinCapability(ch) for ch in self.capability_mask}

    def has_capability(self, capability: PinCapability | str) -> bool:
        return str(capability) in self.capability_mask


class PinCatalogSchema(BaseModel):
    """Root of the connector catalog YAML"""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    part_number: str = Field(alias="partNumber")
    description: str = ""
    total_pins: int = Field(alias="totalPins", ge=1)
    connector_pins: list[PinDescriptor] = Field(alias="connectorPins", default_factory=list)
