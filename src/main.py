import argparse
import json
import logging
import sys
from typing import Any

from dotenv import load_dotenv

from catalog.pin_catalog import PinCatalog
from exception import MissingRecordError
from model.enum.export_enum import ListExportFormat, StorageBackend
from model.enum.signal_enum import OutputType
from render.arxml_renderer import ArxmlRenderer
from repository.configuration_store import ConfigurationStore
from repository.kv_storage import InMemoryKeyValueStorage, KeyValueStorage, SQLiteKeyValueStorage
from schema.app_config_schema import AppConfig
from service.export_service import ExportResult, ExportService
from service.file_emitter import DirectoryFileEmitter
from service.transfer_service import TransferService
from util.config_manager import ConfigManager
from util.logger_config import setup_logging
from validator.pin_config_validator import PinConfigValidator

logger = logging.getLogger("PinMapMain")


class PinMapperApp:
    """Wires storage, store, catalog, renderer and services from one AppConfig"""

    def __init__(self, config: AppConfig, storage: KeyValueStorage | None = None):
        self.config = config
        self.storage = storage or self._build_storage(config)
        self.store = ConfigurationStore(self.storage, config_key=config.storage.config_key)
        self.catalog = PinCatalog.from_yaml(config.catalog.path)
        self.renderer = ArxmlRenderer.from_template_dir(config.export.template_dir, config.export.template_family)
        self.export_service = ExportService(
            store=self.store,
            renderer=self.renderer,
            catalog=self.catalog,
            settings=config.export,
            emitter=DirectoryFileEmitter(config.export.output_dir),
        )
        self.transfer_service = TransferService(self.store)

    @staticmethod
    def _build_storage(config: AppConfig) -> KeyValueStorage:
        if config.storage.backend == StorageBackend.SQLITE:
            return SQLiteKeyValueStorage(config.storage.db_path)
        return InMemoryKeyValueStorage()


def _print_json(data: Any, pretty: bool = True) -> None:
    if pretty:
        print(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=False))
    else:
        print(json.dumps(data, ensure_ascii=False))


def _parse_assignments(assignments: list[str] | None) -> dict[str, str]:
    record: dict[str, str] = {}
    for item in assignments or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got: {item!r}")
        record[key.strip()] = value
    return record


def _emit(app: PinMapperApp, result: ExportResult | None, what: str) -> Any:
    if result is None:
        return {"exported": False, "reason": f"nothing to export ({what})"}
    app.export_service.emit(result)
    return {
        "exported": True,
        "file_name": result.file_name,
        "output_dir": app.config.export.output_dir,
        "records": result.record_count,
        "warnings": result.warnings,
    }


# -------------------------
# Command implementations
# -------------------------
def cmd_init(app: PinMapperApp, args: argparse.Namespace) -> Any:
    return {"written": app.store.initialize_defaults(), "config_key": app.store.config_key}


def cmd_pins(app: PinMapperApp, args: argparse.Namespace) -> Any:
    if args.action == "get":
        pin = app.catalog.get_pin_by_number(args.pin, side=args.side)
        return pin.model_dump(mode="json", by_alias=True) if pin else None

    if args.action == "list":
        pins = list(app.catalog.pins)
        if args.side:
            pins = [pin for pin in pins if pin in app.catalog.get_pins_by_side(args.side)]
        if args.category:
            pins = [pin for pin in pins if pin in app.catalog.get_pins_by_category(args.category)]
        if args.type:
            pins = [pin for pin in pins if pin in app.catalog.get_pins_by_type(args.type)]
        return [pin.model_dump(mode="json", by_alias=True) for pin in pins]

    if args.action == "duplicates":
        return {"part_number": app.catalog.part_number, "duplicates": app.catalog.duplicate_pin_numbers()}

    raise RuntimeError(f"Unknown pins action: {args.action}")


def cmd_config(app: PinMapperApp, args: argparse.Namespace) -> Any:
    store = app.store

    if args.action == "list":
        return [record.to_storage() for record in store.list_records()]

    if args.action == "get":
        record = store.get_record(args.pin, args.type)
        if record is None:
            raise MissingRecordError(f"No saved configuration for pin {args.pin}", pin_number=args.pin)
        return record.to_storage()

    if args.action == "set":
        record = _parse_assignments(args.set)
        if "originalLabel" not in record:
            label = app.catalog.get_label(args.pin)
            if label:
                record["originalLabel"] = label
        saved = store.upsert(args.type, args.pin, record)
        if saved is None:
            raise RuntimeError(f"Failed to save configuration for pin {args.pin}")
        return saved.to_storage()

    if args.action == "remove":
        output_type = args.type or store.find_output_type(args.pin)
        return {"removed": bool(output_type) and store.remove(output_type, args.pin)}

    if args.action == "clear":
        return {"cleared": store.clear_all()}

    if args.action == "defaults":
        return store.load_defaults(args.type).to_storage()

    if args.action == "summary":
        return store.summary().model_dump()

    raise RuntimeError(f"Unknown config action: {args.action}")


def cmd_validate(app: PinMapperApp, args: argparse.Namespace) -> Any:
    entries = [(record.key, record) for record in app.store.list_records()]
    return PinConfigValidator.validate_batch(entries).model_dump()


def cmd_export(app: PinMapperApp, args: argparse.Namespace) -> Any:
    if args.action == "pin":
        return _emit(app, app.export_service.export_single_pin(args.pin), f"pin {args.pin}")

    if args.action == "all":
        return _emit(app, app.export_service.export_all(), "all pins")

    if args.action == "list":
        return _emit(app, app.export_service.export_list(args.format), args.format)

    if args.action == "json":
        return _emit(app, app.transfer_service.export_json(), "database")

    raise RuntimeError(f"Unknown export action: {args.action}")


def cmd_import(app: PinMapperApp, args: argparse.Namespace) -> Any:
    result = app.transfer_service.import_file(args.file)
    if not result.success:
        raise RuntimeError(result.error)
    return {"imported": True, "saved": result.data.saved_configurations.count()}


COMMANDS = {
    "init": cmd_init,
    "pins": cmd_pins,
    "config": cmd_config,
    "validate": cmd_validate,
    "export": cmd_export,
    "import": cmd_import,
}


# -------------------------
# CLI parser
# -------------------------
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pinmap",
        description="Map VD1CC055 connector pins to AUTOSAR BSW signals and export ARXML.",
    )
    p.add_argument("--app_config", default="res/pinmap_config.yml", help="Path to application config YAML")
    p.add_argument("--raw", action="store_true", help="Print raw JSON without pretty formatting")

    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init", help="Seed the configuration database with defaults")

    # pins
    pins = sub.add_parser("pins", help="Connector pin catalog")
    pins_sub = pins.add_subparsers(dest="action", required=True)

    pins_list = pins_sub.add_parser("list", help="List catalog pins")
    pins_list.add_argument("--side", choices=["left", "right"])
    pins_list.add_argument("--category")
    pins_list.add_argument("--type", help="Capability digit (1=SENT, 2=Analog, 3=Digital, 4=Output)")

    pins_get = pins_sub.add_parser("get", help="Show one pin (first match)")
    pins_get.add_argument("pin", type=int)
    pins_get.add_argument("--side", choices=["left", "right"])

    pins_sub.add_parser("duplicates", help="Pin numbers that appear more than once")

    # config
    cfg = sub.add_parser("config", help="Saved pin configurations")
    cfg_sub = cfg.add_subparsers(dest="action", required=True)

    cfg_sub.add_parser("list", help="All saved configurations")

    cfg_get = cfg_sub.add_parser("get", help="Saved configuration of a pin")
    cfg_get.add_argument("pin")
    cfg_get.add_argument("--type", choices=[t.value for t in OutputType])

    cfg_set = cfg_sub.add_parser("set", help="Create or update a pin configuration")
    cfg_set.add_argument("pin")
    cfg_set.add_argument("--type", required=True, choices=[t.value for t in OutputType])
    cfg_set.add_argument("--set", action="append", metavar="FIELD=VALUE", help="e.g. connectedTo=TLE7244_01_05")

    cfg_rm = cfg_sub.add_parser("remove", help="Remove a pin configuration")
    cfg_rm.add_argument("pin")
    cfg_rm.add_argument("--type", choices=[t.value for t in OutputType])

    cfg_sub.add_parser("clear", help="Remove all saved configurations (defaults are kept)")

    cfg_def = cfg_sub.add_parser("defaults", help="Default template of an output type")
    cfg_def.add_argument("type", choices=[t.value for t in OutputType])

    cfg_sub.add_parser("summary", help="Counts by output type")

    sub.add_parser("validate", help="Validate all saved configurations")

    # export
    exp = sub.add_parser("export", help="Write export files to the output directory")
    exp_sub = exp.add_subparsers(dest="action", required=True)

    exp_pin = exp_sub.add_parser("pin", help="ARXML for one pin")
    exp_pin.add_argument("pin")

    exp_sub.add_parser("all", help="ARXML with every saved pin")

    exp_list = exp_sub.add_parser("list", help="Flat list of saved pins")
    exp_list.add_argument("format", choices=[f.value for f in ListExportFormat])

    exp_sub.add_parser("json", help="Whole configuration database as JSON")

    # import
    imp = sub.add_parser("import", help="Replace the configuration database from a JSON file")
    imp.add_argument("file")

    return p


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = ConfigManager.load_app_config(args.app_config)
        setup_logging(
            log_level=config.logging.level,
            log_to_file=config.logging.to_file,
            log_dir=config.logging.log_dir,
            log_base_filename=config.logging.base_filename,
        )

        app = PinMapperApp(config)
        result = COMMANDS[args.cmd](app, args)

        _print_json(result, pretty=not args.raw)
        return 0

    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(f"[ERROR] {args.cmd} - {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
