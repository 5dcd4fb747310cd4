import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from exception import CatalogError
from model.enum.pin_enum import PinCapability, PinCategory, PinSide
from schema.pin_catalog_schema import PinCatalogSchema, PinDescriptor
from util.config_manager import ConfigManager

logger = logging.getLogger(__name__)


class PinCatalog:
    """
    Read-only connector pin table.

    Pin numbers are not guaranteed unique (the VD1CC055 table repeats some numbers on
    both sides); every number-based lookup returns the first match in file order unless
    a `side` is given.
    """

    def __init__(self, schema: PinCatalogSchema):
        self._schema = schema
        self._pins: tuple[PinDescriptor, ...] = tuple(schema.connector_pins)

        self._by_number: dict[int, list[PinDescriptor]] = {}
        for pin in self._pins:
            self._by_number.setdefault(pin.number, []).append(pin)

        duplicates = self.duplicate_pin_numbers()
        if duplicates:
            logger.debug(f"[CATALOG] {schema.part_number}: duplicate pin numbers {duplicates}")

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PinCatalog":
        """
        Load and validate a catalog YAML file.

        Raises:
            CatalogError: file missing, unreadable or not matching the catalog schema
        """
        try:
            raw = ConfigManager.load_yaml_file(str(path))
        except (OSError, yaml.YAMLError) as e:
            raise CatalogError(f"Failed to read pin catalog '{path}': {e}") from e

        if not isinstance(raw, dict):
            raise CatalogError(f"Pin catalog '{path}' must be a mapping")

        try:
            schema = PinCatalogSchema.model_validate(raw)
        except ValidationError as e:
            raise CatalogError(f"Invalid pin catalog '{path}': {e}") from e

        catalog = cls(schema)
        logger.info(f"[CATALOG] Loaded {schema.part_number} with {len(catalog)} pins from {path}")
        return catalog

    @property
    def part_number(self) -> str:
        return self._schema.part_number

    @property
    def description(self) -> str:
        return self._schema.description

    @property
    def total_pins(self) -> int:
        return self._schema.total_pins

    @property
    def pins(self) -> tuple[PinDescriptor, ...]:
        return self._pins

    def __len__(self) -> int:
        return len(self._pins)

    def __iter__(self):
        return iter(self._pins)

    def get_pin_by_number(self, pin_number: int | str, side: PinSide | str | None = None) -> PinDescriptor | None:
        candidates = self._candidates(pin_number)
        if side is not None:
            side = PinSide(side)
            candidates = [pin for pin in candidates if pin.side == side]
        return candidates[0] if candidates else None

    def get_pins_by_category(self, category: PinCategory | str) -> list[PinDescriptor]:
        category = PinCategory(category)
        return [pin for pin in self._pins if pin.category == category]

    def get_pins_by_side(self, side: PinSide | str) -> list[PinDescriptor]:
        side = PinSide(side)
        return [pin for pin in self._pins if pin.side == side]

    def get_pins_by_type(self, capability: PinCapability | str) -> list[PinDescriptor]:
        """Pins whose capability mask contains the given digit"""
        return [pin for pin in self._pins if pin.has_capability(capability)]

    def get_pins_by_ic(self, ic_address: str) -> list[PinDescriptor]:
        return [pin for pin in self._pins if pin.ic_address == ic_address]

    def get_ic_address(self, pin_number: int | str) -> str | None:
        """Driver address of the first pin with this number that has one"""
        for pin in self._candidates(pin_number):
            if pin.ic_address:
                return pin.ic_address
        return None

    def get_label(self, pin_number: int | str) -> str | None:
        pin = self.get_pin_by_number(pin_number)
        return pin.label if pin else None

    def duplicate_pin_numbers(self) -> list[int]:
        return sorted(number for number, pins in self._by_number.items() if len(pins) > 1)

    def _candidates(self, pin_number: int | str) -> list[PinDescriptor]:
        try:
            number = int(str(pin_number).strip())
        except ValueError:
            return []
        return self._by_number.get(number, [])
