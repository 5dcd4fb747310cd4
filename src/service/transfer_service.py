import json
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from exception import MalformedImportError
from repository.configuration_store import ConfigurationStore
from schema.config_database_schema import ConfigurationDatabase
from service.export_service import ExportResult
from util.time_util import to_file_date, utc_now

logger = logging.getLogger(__name__)

JSON_MIME_TYPE = "application/json"


class ImportResult(BaseModel):
    success: bool
    data: ConfigurationDatabase | None = None
    error: str | None = None


class TransferService:
    """
    Whole-database JSON export and import.

    An import is all-or-nothing: the document is parsed and validated completely
    before the store is touched, and then written in one `replace_all` call.
    """

    def __init__(self, store: ConfigurationStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self._clock = clock

    def import_json(self, text: str | bytes) -> ImportResult:
        try:
            database = self.parse_import(text)
        except MalformedImportError as e:
            logger.warning(f"[IMPORT] Rejected: {e}")
            return ImportResult(success=False, error=str(e))

        if not self.store.replace_all(database):
            return ImportResult(success=False, error="Failed to write imported configuration to storage")

        logger.info(f"[IMPORT] Imported {database.saved_configurations.count()} saved configurations")
        return ImportResult(success=True, data=database)

    def import_file(self, path: str | Path) -> ImportResult:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"[IMPORT] Cannot read {path}: {e}")
            return ImportResult(success=False, error=f"Error reading file: {e}")
        return self.import_json(text)

    def parse_import(self, text: str | bytes) -> ConfigurationDatabase:
        """
        Build the database an import would write, without writing it.

        Raises:
            MalformedImportError: invalid JSON, missing saved configurations, or invalid records
        """
        try:
            document = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedImportError(f"Not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise MalformedImportError("Configuration file must contain a JSON object")

        saved = document.get("savedConfigurations")
        if not isinstance(saved, dict) or not any(isinstance(saved.get(t), dict) for t in ("DIO", "PWM")):
            raise MalformedImportError("Invalid configuration file format: savedConfigurations.DIO or .PWM is required")

        document = self._fill_from_current(document)

        try:
            return ConfigurationDatabase.model_validate(document)
        except ValidationError as e:
            raise MalformedImportError(f"Invalid configuration records: {e}") from e

    def export_json(self) -> ExportResult | None:
        database = self.store.get_all()
        if database is None:
            logger.warning("[EXPORT] No configuration database to export")
            return None

        content = json.dumps(database.to_storage(), indent=2, ensure_ascii=False)
        file_name = f"kr_cvo_config_{to_file_date(self._clock())}.json"
        logger.info(f"[EXPORT] Exported configuration database as {file_name}")
        return ExportResult(
            content=content,
            file_name=file_name,
            mime_type=JSON_MIME_TYPE,
            record_count=database.saved_configurations.count(),
        )

    def _fill_from_current(self, document: dict[str, Any]) -> dict[str, Any]:
        """Take missing general settings / defaults from the database currently stored"""
        current = self.store.get_all() or ConfigurationDatabase.with_defaults()
        current_data = current.to_storage()

        filled = dict(document)
        for section in ("generalSettings", "defaultConfigurations"):
            if not isinstance(filled.get(section), dict):
                filled[section] = current_data[section]
            elif section == "defaultConfigurations":
                filled[section] = {**current_data[section], **filled[section]}
        return filled
