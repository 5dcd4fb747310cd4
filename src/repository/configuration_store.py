"""
Pin Configuration Store

Single owner of the ConfigurationDatabase. Every read and write of pin configurations
goes through this class; every mutation is written through to the key-value storage
immediately.

Read path priority:
1. Structured database under `config_key`
2. Legacy flat array under `legacy_array_key`
3. Legacy per-pin keys `{legacy_pin_prefix}{N}`
"""

import json
import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from exception import StorageCorruptError
from model.enum.signal_enum import OutputType
from repository.kv_storage import KeyValueStorage
from schema.config_database_schema import ConfigurationDatabase
from schema.pin_config_schema import CONFIG_MODEL_BY_TYPE, PinConfigBase, build_pin_config, builtin_default
from util.time_util import to_iso_timestamp, utc_now
from util.value_util import is_valid_pin_key, pin_key

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_KEY = "kr_cvo_config_data"
LEGACY_ARRAY_KEY = "pin_configurations_array"
LEGACY_PIN_PREFIX = "pin_config_"

ChangeListener = Callable[[ConfigurationDatabase | None], None]


class StoreSummary(BaseModel):
    total: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)
    configured: int = 0
    last_updated: str | None = None


class ConfigurationStore:
    """
    Persistent pin configuration store.

    Responsibilities:
    - Seed and load the configuration database
    - Upsert/remove/clear saved pin configurations (write-through)
    - Keep a pin under at most one output type
    - Re-read storage when told about an external change
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        config_key: str = DEFAULT_CONFIG_KEY,
        legacy_array_key: str = LEGACY_ARRAY_KEY,
        legacy_pin_prefix: str = LEGACY_PIN_PREFIX,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._storage = storage
        self._config_key = config_key
        self._legacy_array_key = legacy_array_key
        self._legacy_pin_prefix = legacy_pin_prefix
        self._clock = clock
        self._listeners: list[ChangeListener] = []

    @property
    def config_key(self) -> str:
        return self._config_key

    # ------------------------------------------------------------------
    # Database level
    # ------------------------------------------------------------------
    def initialize_defaults(self) -> bool:
        """
        Write a default database if none is persisted yet.

        Returns:
            bool: True if a database was written, False if one already existed (or the write failed).
        """
        try:
            if self._storage.get_item(self._config_key):
                return False
        except Exception as e:
            logger.error(f"[STORE] Failed to read '{self._config_key}': {e}", exc_info=True)
            return False

        database = self._read_legacy() or ConfigurationDatabase.with_defaults()
        written = self.save(database)
        if written:
            logger.info(
                f"[STORE] Seeded configuration database '{self._config_key}' "
                f"({database.saved_configurations.count()} migrated records)"
            )
        return written

    def get_all(self) -> ConfigurationDatabase | None:
        """
        Return the full database.

        Returns:
            ConfigurationDatabase | None: None when nothing is stored or the stored value is corrupt.
        """
        try:
            return self._load()
        except StorageCorruptError as e:
            logger.error(f"[STORE] {e}")
            return None

    def save(self, database: ConfigurationDatabase) -> bool:
        """
        Stamp `generalSettings.lastUpdated` and persist the database.

        Returns:
            bool: False on any serialization or storage failure.
        """
        try:
            database.general_settings.last_updated = to_iso_timestamp(self._clock())
            payload = json.dumps(database.to_storage(), ensure_ascii=False)
            self._storage.set_item(self._config_key, payload)
            return True
        except Exception as e:
            logger.error(f"[STORE] Failed to save configuration database: {e}", exc_info=True)
            return False

    def replace_all(self, database: ConfigurationDatabase) -> bool:
        """Replace the stored database in one write (used by imports)"""
        success = self.save(database)
        if success:
            logger.info(f"[STORE] Replaced database ({database.saved_configurations.count()} saved records)")
        return success

    # ------------------------------------------------------------------
    # Record level
    # ------------------------------------------------------------------
    def upsert(
        self, output_type: OutputType | str, pin_number: str | int, record: Mapping[str, Any] | PinConfigBase
    ) -> PinConfigBase | None:
        """
        Merge `record` into the saved configuration of `pin_number` and persist.

        Fields in `record` take precedence over the existing entry. Any entry for the same
        pin under the other output type is removed in the same write.

        Returns:
            PinConfigBase | None: The stored record, or None if the database is corrupt
            or the write failed.

        Raises:
            ValueError: pin number is not made of letters, digits and underscores
            pydantic.ValidationError: record values are out of range (e.g. frequency 0)
        """
        output_type = OutputType(output_type)
        key = pin_key(pin_number)
        if not is_valid_pin_key(key):
            raise ValueError(f"Invalid pin number {pin_number!r}: only letters, digits and '_' are allowed")

        database = self._load_for_update()
        if database is None:
            return None

        existing = database.saved_configurations.for_type(output_type).get(key)
        merged: dict[str, Any] = existing.to_storage() if existing else {}
        merged.update(self._to_storage_keys(output_type, record))
        merged.update(
            {
                "pinNumber": key,
                "timestamp": to_iso_timestamp(self._clock()),
                "configured": True,
            }
        )
        config = build_pin_config(output_type, merged)

        other_type = OutputType.PWM if output_type == OutputType.DIO else OutputType.DIO
        if key in database.saved_configurations.for_type(other_type):
            logger.info(f"[STORE] Pin {key} switched to {output_type}, dropping stale {other_type} entry")
        database.put(output_type, key, config)

        if not self.save(database):
            return None

        logger.info(f"[STORE] Saved {output_type} configuration for pin {key}")
        return config

    def remove(self, output_type: OutputType | str, pin_number: str | int) -> bool:
        """
        Delete the saved configuration for a pin.

        Returns:
            bool: True if an entry was removed and persisted.
        """
        output_type = OutputType(output_type)
        key = pin_key(pin_number)

        database = self.get_all()
        if database is None:
            return False

        records = database.saved_configurations.for_type(output_type)
        if key not in records:
            logger.debug(f"[STORE] No {output_type} configuration for pin {key} to remove")
            return False

        del records[key]
        success = self.save(database)
        if success:
            logger.info(f"[STORE] Removed {output_type} configuration for pin {key}")
        return success

    def clear_all(self) -> bool:
        """Empty both saved maps, keeping defaults and general settings"""
        database = self.get_all()
        if database is None:
            return False

        database.saved_configurations.dio.clear()
        database.saved_configurations.pwm.clear()
        success = self.save(database)
        if success:
            logger.info("[STORE] Cleared all saved configurations")
        return success

    def load_defaults(self, output_type: OutputType | str) -> PinConfigBase:
        """Default template for an output type, falling back to the built-in one"""
        database = self.get_all()
        if database is None:
            return builtin_default(output_type)
        return database.default_configurations.for_type(output_type).model_copy(deep=True)

    def get_record(self, pin_number: str | int, output_type: OutputType | str | None = None) -> PinConfigBase | None:
        """
        Saved configuration for a pin.

        Args:
            pin_number: Pin number
            output_type: Restrict the lookup to one output type; by default DIO then PWM.
        """
        database = self.get_all()
        if database is None:
            return None

        key = pin_key(pin_number)
        resolved_type = OutputType(output_type) if output_type else database.saved_configurations.find_output_type(key)
        if resolved_type is None:
            return None
        return database.saved_configurations.for_type(resolved_type).get(key)

    def find_output_type(self, pin_number: str | int) -> OutputType | None:
        database = self.get_all()
        if database is None:
            return None
        return database.saved_configurations.find_output_type(pin_number)

    def list_records(self) -> list[PinConfigBase]:
        """All saved records, DIO first, sorted by pin number"""
        database = self.get_all()
        if database is None:
            return []
        return [config for _, _, config in database.saved_configurations.iter_records()]

    def summary(self) -> StoreSummary:
        records = self.list_records()
        by_type: dict[str, int] = {}
        for config in records:
            by_type[config.output_type] = by_type.get(config.output_type, 0) + 1

        timestamps = [config.timestamp for config in records if config.timestamp]
        return StoreSummary(
            total=len(records),
            by_type=by_type,
            configured=sum(1 for config in records if config.configured),
            last_updated=max(timestamps) if timestamps else None,
        )

    # ------------------------------------------------------------------
    # External change notification
    # ------------------------------------------------------------------
    def add_change_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def handle_external_change(self, key: str | None) -> bool:
        """
        React to a storage change made by another process/tab.

        Args:
            key: Changed key, or None when the whole storage was cleared.

        Returns:
            bool: True if the key is relevant and listeners were notified with a fresh read.
        """
        if key is not None and not self._is_relevant_key(key):
            return False

        database = self.get_all()
        logger.info(f"[STORE] External change on '{key}', notifying {len(self._listeners)} listener(s)")
        for listener in list(self._listeners):
            try:
                listener(database)
            except Exception as e:
                logger.error(f"[STORE] Change listener {listener!r} failed: {e}", exc_info=True)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _is_relevant_key(self, key: str) -> bool:
        return key in (self._config_key, self._legacy_array_key) or key.startswith(self._legacy_pin_prefix)

    def _load(self) -> ConfigurationDatabase | None:
        """
        Raises:
            StorageCorruptError: the structured key exists but does not parse
        """
        try:
            raw = self._storage.get_item(self._config_key)
        except Exception as e:
            raise StorageCorruptError(f"Failed to read '{self._config_key}': {e}", key=self._config_key) from e

        if raw:
            try:
                return ConfigurationDatabase.model_validate(json.loads(raw))
            except (json.JSONDecodeError, ValidationError) as e:
                raise StorageCorruptError(
                    f"Stored configuration '{self._config_key}' is corrupt: {e}", key=self._config_key
                ) from e

        return self._read_legacy()

    def _load_for_update(self) -> ConfigurationDatabase | None:
        """Database to mutate: the stored one, or a fresh default one if nothing is stored"""
        try:
            database = self._load()
        except StorageCorruptError as e:
            logger.error(f"[STORE] Refusing to overwrite corrupt data: {e}")
            return None
        return database or ConfigurationDatabase.with_defaults()

    def _read_legacy(self) -> ConfigurationDatabase | None:
        """Build a database from the legacy array key, or from per-pin keys"""
        try:
            raw_array = self._storage.get_item(self._legacy_array_key)
            if raw_array:
                records = json.loads(raw_array)
                if isinstance(records, list):
                    logger.info(f"[STORE] Loaded {len(records)} records from legacy '{self._legacy_array_key}'")
                    return ConfigurationDatabase.from_records(records)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"[STORE] Ignoring unreadable legacy '{self._legacy_array_key}': {e}")
        except Exception as e:
            logger.warning(f"[STORE] Failed to read legacy '{self._legacy_array_key}': {e}")

        records: list[dict[str, Any]] = []
        try:
            pin_keys = self._storage.keys_with_prefix(self._legacy_pin_prefix)
        except Exception as e:
            logger.warning(f"[STORE] Failed to list legacy per-pin keys: {e}")
            return None

        for key in pin_keys:
            try:
                record = json.loads(self._storage.get_item(key) or "null")
            except json.JSONDecodeError as e:
                logger.warning(f"[STORE] Ignoring unreadable legacy key '{key}': {e}")
                continue
            if isinstance(record, dict):
                record.setdefault("pin", key[len(self._legacy_pin_prefix) :])
                records.append(record)

        if not records:
            return None

        try:
            logger.info(f"[STORE] Loaded {len(records)} records from legacy per-pin keys")
            return ConfigurationDatabase.from_records(records)
        except ValidationError as e:
            logger.warning(f"[STORE] Ignoring legacy per-pin records: {e}")
            return None

    @staticmethod
    def _to_storage_keys(output_type: OutputType, record: Mapping[str, Any] | PinConfigBase) -> dict[str, Any]:
        """Normalize a record to camelCase storage keys, renaming legacy keys before the merge"""
        if isinstance(record, PinConfigBase):
            data = record.model_dump(mode="json", by_alias=True, exclude_unset=True)
        else:
            data = dict(record)
        data.pop("outputType", None)
        data.pop("output_type", None)
        data = {(to_camel(k) if "_" in k else k): v for k, v in data.items()}
        return CONFIG_MODEL_BY_TYPE[output_type].canonical_keys(data)
