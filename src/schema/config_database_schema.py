from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from model.enum.signal_enum import OutputType
from schema.pin_config_schema import DioPinConfig, PinConfigBase, PwmPinConfig, build_pin_config
from util.value_util import pin_key, pin_sort_key, to_bool

logger = logging.getLogger(__name__)

DATABASE_VERSION = "1.0"


class GeneralSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    last_updated: str | None = None
    version: str = DATABASE_VERSION
    auto_save: bool = True
    load_defaults_on_start: bool = False

    @field_validator("auto_save", "load_defaults_on_start", mode="before")
    @classmethod
    def coerce_bool(cls, v):
        return to_bool(v)


class DefaultConfigurations(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dio: DioPinConfig = Field(default_factory=DioPinConfig, alias="DIO")
    pwm: PwmPinConfig = Field(default_factory=PwmPinConfig, alias="PWM")

    def for_type(self, output_type: OutputType | str) -> DioPinConfig | PwmPinConfig:
        return self.dio if OutputType(output_type) == OutputType.DIO else self.pwm


class SavedConfigurations(BaseModel):
    """Saved records per output type, keyed by pin number string"""

    model_config = ConfigDict(populate_by_name=True)

    dio: dict[str, DioPinConfig] = Field(default_factory=dict, alias="DIO")
    pwm: dict[str, PwmPinConfig] = Field(default_factory=dict, alias="PWM")

    @field_validator("dio", "pwm", mode="before")
    @classmethod
    def normalize_pin_keys(cls, v):
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError(f"expected mapping of pin number to configuration, got {type(v).__name__}")
        return {pin_key(k): value for k, value in v.items()}

    def for_type(self, output_type: OutputType | str) -> dict[str, Any]:
        return self.dio if OutputType(output_type) == OutputType.DIO else self.pwm

    def find_output_type(self, pin_number: str | int) -> OutputType | None:
        """DIO wins when a pin is (invalidly) present under both types"""
        key = pin_key(pin_number)
        if key in self.dio:
            return OutputType.DIO
        if key in self.pwm:
            return OutputType.PWM
        return None

    def iter_records(self) -> list[tuple[OutputType, str, PinConfigBase]]:
        """All records, DIO first, each group sorted by pin number"""
        result: list[tuple[OutputType, str, PinConfigBase]] = []
        for output_type in (OutputType.DIO, OutputType.PWM):
            records = self.for_type(output_type)
            for key in sorted(records, key=pin_sort_key):
                result.append((output_type, key, records[key]))
        return result

    def overlapping_pins(self) -> set[str]:
        return set(self.dio) & set(self.pwm)

    def count(self) -> int:
        return len(self.dio) + len(self.pwm)


class ConfigurationDatabase(BaseModel):
    """
    Whole persisted state of the tool.

    Invariant: a pin number appears in at most one of `saved_configurations.dio` / `.pwm`.
    The store enforces it on every upsert; any overlap in loaded or imported data is
    resolved in favour of DIO when the model is validated.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    general_settings: GeneralSettings = Field(default_factory=GeneralSettings)
    default_configurations: DefaultConfigurations = Field(default_factory=DefaultConfigurations)
    saved_configurations: SavedConfigurations = Field(default_factory=SavedConfigurations)

    @model_validator(mode="before")
    @classmethod
    def require_mapping(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValueError(f"configuration database must be a JSON object, got {type(data).__name__}")
        return data

    @model_validator(mode="after")
    def keep_dio_on_overlap(self) -> ConfigurationDatabase:
        for key in sorted(self.saved_configurations.overlapping_pins(), key=pin_sort_key):
            logger.warning(f"[STORE] Pin {key} is saved as both DIO and PWM, keeping DIO")
            self.saved_configurations.pwm.pop(key)
        return self

    @classmethod
    def with_defaults(cls) -> ConfigurationDatabase:
        return cls()

    @classmethod
    def from_records(cls, records: list[dict[str, Any]]) -> ConfigurationDatabase:
        """
        Build a database from flat records (legacy array / per-pin keys).

        Records without a usable pin number or output type, or with invalid values, are skipped.
        Later records overwrite earlier ones for the same pin.
        """
        database = cls.with_defaults()
        for record in records:
            if not isinstance(record, dict):
                continue
            raw_type = record.get("outputType") or record.get("configType")
            raw_pin = record.get("pinNumber") or record.get("pin")
            if raw_type not in (OutputType.DIO.value, OutputType.PWM.value) or raw_pin in (None, ""):
                continue

            key = pin_key(raw_pin)
            try:
                config = build_pin_config(raw_type, {**record, "pinNumber": key, "configured": True})
            except ValidationError as e:
                logger.warning(f"[STORE] Skipping invalid legacy {raw_type} record for pin {key}: {e}")
                continue
            database.put(OutputType(raw_type), key, config)
        return database

    def put(self, output_type: OutputType, pin_number: str | int, config: PinConfigBase) -> None:
        """Insert a record, dropping any entry for the same pin under the other output type"""
        key = pin_key(pin_number)
        other_type = OutputType.PWM if output_type == OutputType.DIO else OutputType.DIO
        self.saved_configurations.for_type(other_type).pop(key, None)
        self.saved_configurations.for_type(output_type)[key] = config

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
