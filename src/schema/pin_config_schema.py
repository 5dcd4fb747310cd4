from __future__ import annotations

import logging
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

from model.enum.signal_enum import (
    Direction,
    InitState,
    InitStrategy,
    OutProtectStrategy,
    OutputType,
    PwmDiagnostics,
    PwmOverload,
    PwmPeriod,
    PwmPolarity,
)
from util.value_util import is_blank, pin_key, to_bool

logger = logging.getLogger(__name__)


class PinConfigBase(BaseModel):
    """
    Fields shared by every pin configuration record.

    Notes:
    - Stored and exchanged with camelCase keys (`connectedTo`, `calibAlterText`, ...);
      Python code uses the snake_case attribute names.
    - Booleans accept JSON booleans and the text forms "true"/"TRUE"/"1"; they are kept as bool.
    - Empty form values ("") fall back to the field default.
    - Unknown keys (e.g. legacy `deviceType`) are kept so a round trip never drops data.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=False,
        extra="allow",
    )

    pin: str | None = None
    pin_number: str | None = None
    original_label: str = ""
    short_name: str = ""
    cust_spec_name: str = ""
    timestamp: str | None = None
    configured: bool = False

    connected_to: str = ""
    ext_connected_to: str = ""
    calibratable: bool = False
    calib_alter_text: str = ""
    init_state: InitState = InitState.IDLE
    init_strategy: InitStrategy = InitStrategy.ANY_RESET

    @model_validator(mode="before")
    @classmethod
    def normalize_legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return cls.canonical_keys(data)

    @classmethod
    def canonical_keys(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Rename the capitalised keys written by the terminal diagram (`ConnectedTo`, `InitState`)"""
        known_aliases = {field.alias or to_camel(name) for name, field in cls.model_fields.items()}
        normalized = dict(data)
        for key in data:
            if not key or not key[0].isupper():
                continue
            camel_key = key[0].lower() + key[1:]
            if camel_key in known_aliases and camel_key not in data:
                normalized[camel_key] = normalized.pop(key)
        return normalized

    @field_validator("pin", "pin_number", mode="before")
    @classmethod
    def coerce_pin_to_str(cls, v):
        if v is None or is_blank(v):
            return None
        return pin_key(v)

    @field_validator("configured", "calibratable", mode="before")
    @classmethod
    def coerce_base_bool(cls, v, info: ValidationInfo):
        return to_bool(v, default=cls.model_fields[info.field_name].default)

    @field_validator("init_state", "init_strategy", mode="before")
    @classmethod
    def blank_enum_to_default(cls, v, info: ValidationInfo):
        if v is None or is_blank(v):
            return cls.model_fields[info.field_name].default
        return v

    @field_validator(
        "original_label", "short_name", "cust_spec_name", "connected_to", "ext_connected_to", "calib_alter_text", mode="before"
    )
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else str(v)

    @property
    def output_type_value(self) -> OutputType:
        return OutputType(getattr(self, "output_type"))

    @property
    def key(self) -> str | None:
        """Pin number the record is saved under"""
        return self.pin_number or self.pin

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class DioPinConfig(PinConfigBase):
    """Digital I/O signal configuration (rba_IoSigDio signal)"""

    output_type: Literal["DIO"] = "DIO"

    # None means the form left it empty; the validator reports it
    direction: Direction | None = Direction.OUTPUT
    direction_changeable: bool = False
    invert: bool = False
    calibratable_invert: bool = False
    out_diag_current: bool = False
    out_protect_strategy: OutProtectStrategy = OutProtectStrategy.SWITCH_OFF

    @field_validator("direction", mode="before")
    @classmethod
    def blank_direction_to_none(cls, v):
        if v is None or is_blank(v):
            return None
        return v

    @field_validator("direction_changeable", "invert", "calibratable_invert", "out_diag_current", mode="before")
    @classmethod
    def coerce_dio_bool(cls, v, info: ValidationInfo):
        return to_bool(v, default=cls.model_fields[info.field_name].default)

    @field_validator("out_protect_strategy", mode="before")
    @classmethod
    def none_protect_strategy(cls, v):
        # "" is a legal value here (no strategy chosen)
        return "" if v is None else v


class PwmPinConfig(PinConfigBase):
    """Pulse-width-modulated output configuration"""

    output_type: Literal["PWM"] = "PWM"

    frequency: int = Field(default=1000, ge=1, le=100000, description="PWM frequency in Hz")
    duty_cycle: int = Field(default=50, ge=0, le=100, description="PWM duty cycle in percent")
    period: PwmPeriod = PwmPeriod.VARIABLE
    polarity: PwmPolarity = PwmPolarity.NORMAL
    overload: PwmOverload = PwmOverload.ENABLED
    diagnostics: PwmDiagnostics = PwmDiagnostics.FULL

    @classmethod
    def canonical_keys(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Also rename `pwmFrequency` / `pwmDutyCycle` from the terminal diagram"""
        normalized = super().canonical_keys(data)
        for legacy_key, key in (("pwmFrequency", "frequency"), ("pwmDutyCycle", "dutyCycle")):
            if legacy_key in normalized and is_blank(normalized.get(key)):
                normalized[key] = normalized.pop(legacy_key)
        return normalized

    @field_validator("frequency", "duty_cycle", "period", "polarity", "overload", "diagnostics", mode="before")
    @classmethod
    def blank_pwm_to_default(cls, v, info: ValidationInfo):
        if v is None or is_blank(v):
            return cls.model_fields[info.field_name].default
        return v


PinConfiguration = Annotated[DioPinConfig | PwmPinConfig, Field(discriminator="output_type")]

CONFIG_MODEL_BY_TYPE: dict[OutputType, type[PinConfigBase]] = {
    OutputType.DIO: DioPinConfig,
    OutputType.PWM: PwmPinConfig,
}


def build_pin_config(output_type: OutputType | str, data: dict[str, Any] | None = None) -> DioPinConfig | PwmPinConfig:
    """
    Build a typed record for `output_type` from a raw mapping.

    The `outputType` key in `data` is ignored; the caller decides the type.

    Raises:
        ValueError: unknown output type
        pydantic.ValidationError: field values out of range
    """
    output_type = OutputType(output_type)
    payload = {k: v for k, v in (data or {}).items() if k not in ("outputType", "output_type")}
    model_cls = CONFIG_MODEL_BY_TYPE[output_type]
    return model_cls.model_validate(payload)


def builtin_default(output_type: OutputType | str) -> DioPinConfig | PwmPinConfig:
    """Hardcoded default template for an output type"""
    return build_pin_config(output_type)
