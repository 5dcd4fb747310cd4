import logging
from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel, Field

from catalog.pin_catalog import PinCatalog
from exception import ExportBlockedError
from model.enum.export_enum import ListExportFormat
from model.enum.signal_enum import OutputType
from render.arxml_renderer import ArxmlRenderer, RenderedSignal
from repository.configuration_store import ConfigurationStore
from schema.app_config_schema import ExportSettings
from schema.pin_config_schema import PinConfigBase
from service import list_export
from service.file_emitter import FileEmitter
from util.time_util import to_file_date, to_file_timestamp, utc_now
from util.value_util import is_blank, pin_key, safe_pin_token
from validator.pin_config_validator import PinConfigValidator, ValidationReport

logger = logging.getLogger(__name__)

ARXML_MIME_TYPE = "application/xml"


class ExportResult(BaseModel):
    content: str
    file_name: str
    mime_type: str = ARXML_MIME_TYPE
    record_count: int = 0
    warnings: list[str] = Field(default_factory=list)


class ExportService:
    """
    Combines store, validator and renderer into export actions.

    Read-only with respect to the store. Output depends only on the stored state
    and the injected clock.
    """

    def __init__(
        self,
        store: ConfigurationStore,
        renderer: ArxmlRenderer,
        catalog: PinCatalog | None = None,
        settings: ExportSettings | None = None,
        emitter: FileEmitter | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.renderer = renderer
        self.catalog = catalog
        self.settings = settings or ExportSettings()
        self.emitter = emitter
        self._clock = clock

    def export_single_pin(self, pin_number: str | int) -> ExportResult | None:
        """
        Render the saved configuration of one pin as a standalone ARXML document.

        Returns:
            ExportResult | None: None if the pin has no saved configuration.

        Raises:
            ExportBlockedError: validation failed and `block_on_validation_failure` is set
        """
        key = pin_key(pin_number)
        output_type = self.store.find_output_type(key)
        config = self.store.get_record(key, output_type) if output_type else None
        if config is None:
            logger.warning(f"[EXPORT] No saved configuration for pin {key}")
            return None

        config = self._prepare(config, key)
        report = self._check([(key, config)])

        signal = self.renderer.render_signal(output_type, config, pin_number=key)
        content = self.renderer.render_signals_document([signal])
        file_name = f"{self.settings.module_prefix}_{output_type}_Pin{safe_pin_token(key)}_Config.arxml"

        logger.info(f"[EXPORT] Exported pin {key} ({output_type}) as {file_name}")
        return ExportResult(content=content, file_name=file_name, record_count=1, warnings=report.errors)

    def export_all(self) -> ExportResult | None:
        """
        Render every saved DIO then PWM configuration into one document.

        Returns:
            ExportResult | None: None if nothing is saved.

        Raises:
            ExportBlockedError: validation failed and `block_on_validation_failure` is set
        """
        entries = self._saved_entries()
        if not entries:
            logger.warning("[EXPORT] Nothing to export, no saved configurations")
            return None

        report = self._check([(key, config) for _, key, config in entries])

        signals: list[RenderedSignal] = [
            self.renderer.render_signal(output_type, config, pin_number=key) for output_type, key, config in entries
        ]
        content = self.renderer.render_signals_document(signals)
        file_name = f"{self.settings.module_prefix}_AllPins_{to_file_timestamp(self._clock())}.arxml"

        warnings = report.errors + self._name_collisions(entries, signals)

        logger.info(f"[EXPORT] Exported {len(signals)} signals as {file_name}")
        return ExportResult(content=content, file_name=file_name, record_count=len(signals), warnings=warnings)

    def export_list(self, fmt: ListExportFormat | str) -> ExportResult | None:
        """CSV / JSON / XML dump of the same record set `export_all` uses"""
        fmt = ListExportFormat(fmt)
        records = [config for _, _, config in self._saved_entries()]
        if not records:
            logger.warning(f"[EXPORT] Nothing to export as {fmt}, no saved configurations")
            return None

        content = list_export.serialize(records, fmt)
        file_name = f"pin_configurations_{to_file_date(self._clock())}.{fmt}"
        logger.info(f"[EXPORT] Exported {len(records)} records as {file_name}")
        return ExportResult(
            content=content, file_name=file_name, mime_type=list_export.MIME_TYPES[fmt], record_count=len(records)
        )

    def emit(self, result: ExportResult) -> bool:
        """Hand a result to the file emitter. False if no emitter is configured."""
        if self.emitter is None:
            logger.warning(f"[EXPORT] No file emitter configured, dropping {result.file_name}")
            return False
        self.emitter.emit_file(result.content, result.file_name, result.mime_type)
        return True

    def _saved_entries(self) -> list[tuple[OutputType, str, PinConfigBase]]:
        database = self.store.get_all()
        if database is None:
            return []
        return [
            (output_type, key, self._prepare(config, key))
            for output_type, key, config in database.saved_configurations.iter_records()
        ]

    def _prepare(self, config: PinConfigBase, key: str) -> PinConfigBase:
        """Copy of the record with connection fields completed from the catalog"""
        if self.catalog is None or not self.settings.fill_connected_to_from_catalog:
            return config

        ic_address = self.catalog.get_ic_address(key)
        if not ic_address:
            return config

        update: dict[str, str] = {}
        if is_blank(config.connected_to):
            update["connected_to"] = ic_address
        if is_blank(config.ext_connected_to):
            update["ext_connected_to"] = ic_address
        if not update:
            return config

        logger.debug(f"[EXPORT] Pin {key}: using catalog IC address {ic_address} for {sorted(update)}")
        return config.model_copy(update=update)

    @staticmethod
    def _name_collisions(
        entries: list[tuple[OutputType, str, PinConfigBase]], signals: list[RenderedSignal]
    ) -> list[str]:
        """One warning per short name rendered for more than one pin"""
        pins_by_name: dict[str, list[str]] = {}
        for (_, key, _), signal in zip(entries, signals):
            pins_by_name.setdefault(signal.short_name, []).append(key)

        warnings = []
        for name, keys in pins_by_name.items():
            if len(keys) > 1:
                message = f"Pins {', '.join(keys)}: duplicate signal name {name}"
                logger.warning(f"[EXPORT] {message}")
                warnings.append(message)
        return warnings

    def _check(self, entries: list[tuple[str, PinConfigBase]]) -> ValidationReport:
        report = PinConfigValidator.validate_batch(entries)
        if report.is_valid:
            return report

        for error in report.errors:
            logger.warning(f"[EXPORT] Validation: {error}")

        if self.settings.block_on_validation_failure:
            raise ExportBlockedError(f"Export blocked by {len(report.errors)} validation error(s)", report.errors)
        return report
