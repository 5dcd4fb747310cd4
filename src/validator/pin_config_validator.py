import re
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from model.enum.signal_enum import OutputType
from schema.pin_config_schema import PinConfigBase
from util.value_util import is_blank

CONNECTED_TO_PATTERN = re.compile(r"^[A-Z][A-Za-z0-9]*?_.*")
SIGNAL_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
CALIB_ALTER_TEXT_MAX_LENGTH = 32


class ValidationReport(BaseModel):
    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)


class PinConfigValidator:
    """
    Stateless checks of a pin configuration before export.

    Rules are applied in a fixed order and each produces at most one message,
    prefixed with `Pin {n}: `. Input is never mutated.
    """

    @staticmethod
    def validate_record(config: Mapping[str, Any] | PinConfigBase, pin_number: str | int) -> ValidationReport:
        data = PinConfigValidator._as_mapping(config)
        errors: list[str] = []

        connected_to = data.get("connectedTo")
        if is_blank(connected_to):
            errors.append(f"Pin {pin_number}: Connected To is required")
        elif not CONNECTED_TO_PATTERN.match(str(connected_to)):
            errors.append(f"Pin {pin_number}: Connected To format should be DevType_DevOrPortIdx_Pin")

        if data.get("outputType") != OutputType.PWM.value and is_blank(data.get("direction")):
            errors.append(f"Pin {pin_number}: Direction is required")

        calib_alter_text = data.get("calibAlterText")
        if calib_alter_text and len(str(calib_alter_text)) > CALIB_ALTER_TEXT_MAX_LENGTH:
            errors.append(
                f"Pin {pin_number}: Calibration Alternate Text max {CALIB_ALTER_TEXT_MAX_LENGTH} characters"
            )

        # The short name only stands in when no customer specific name is given
        name = data.get("custSpecName") if not is_blank(data.get("custSpecName")) else data.get("shortName")
        if not is_blank(name) and not SIGNAL_NAME_PATTERN.match(str(name)):
            errors.append(
                f"Pin {pin_number}: Customer Specific Name must start with letter "
                f"and contain only alphanumeric characters and underscores"
            )

        return ValidationReport(is_valid=not errors, errors=errors)

    @staticmethod
    def validate_batch(
        entries: Iterable[tuple[str | int, Mapping[str, Any] | PinConfigBase]],
    ) -> ValidationReport:
        """
        Validate several records.

        Args:
            entries: (pin_number, config) pairs

        Returns:
            ValidationReport: All errors concatenated; valid only if every record passed.
        """
        errors: list[str] = []
        for pin_number, config in entries:
            errors.extend(PinConfigValidator.validate_record(config, pin_number).errors)
        return ValidationReport(is_valid=not errors, errors=errors)

    @staticmethod
    def _as_mapping(config: Mapping[str, Any] | PinConfigBase) -> dict[str, Any]:
        if isinstance(config, PinConfigBase):
            return config.model_dump(mode="json", by_alias=True)
        return {(to_camel(k) if "_" in k else k): v for k, v in config.items()}
