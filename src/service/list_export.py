"""Flat CSV / JSON / XML dumps of saved pin configurations."""

import csv
import io
import json
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from typing import Any
from xml.dom import minidom

from model.enum.export_enum import ListExportFormat
from schema.pin_config_schema import PinConfigBase

CSV_HEADER = ["Pin", "ShortName", "OutputType", "Frequency", "DutyCycle", "Timestamp"]

MIME_TYPES: dict[ListExportFormat, str] = {
    ListExportFormat.CSV: "text/csv",
    ListExportFormat.JSON: "application/json",
    ListExportFormat.XML: "application/xml",
}


def _pwm_values(config: PinConfigBase) -> tuple[Any, Any]:
    return getattr(config, "frequency", None), getattr(config, "duty_cycle", None)


def to_csv(records: Sequence[PinConfigBase]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for config in records:
        frequency, duty_cycle = _pwm_values(config)
        writer.writerow(
            [
                config.key or "",
                config.short_name,
                config.output_type_value.value,
                "" if frequency is None else frequency,
                "" if duty_cycle is None else duty_cycle,
                config.timestamp or "",
            ]
        )
    return buffer.getvalue()


def to_json(records: Sequence[PinConfigBase], indent: int = 2) -> str:
    return json.dumps([config.to_storage() for config in records], indent=indent, ensure_ascii=False)


def _add_text(parent: ET.Element, tag: str, text: Any) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = str(text)
    return element


def to_xml(records: Sequence[PinConfigBase], indent: int = 2) -> str:
    root = ET.Element("configurations")
    for config in records:
        element = ET.SubElement(root, "configuration", {"pin": config.key or ""})
        _add_text(element, "shortName", config.short_name)
        _add_text(element, "outputType", config.output_type_value.value)

        frequency, duty_cycle = _pwm_values(config)
        if frequency is not None:
            _add_text(element, "pwmFrequency", frequency)
        if duty_cycle is not None:
            _add_text(element, "pwmDutyCycle", duty_cycle)

        _add_text(element, "timestamp", config.timestamp or "")

    raw_xml = ET.tostring(root, encoding="utf-8")
    pretty_xml = minidom.parseString(raw_xml).toprettyxml(indent=" " * indent, encoding="UTF-8")
    lines = [line for line in pretty_xml.decode("utf-8").splitlines() if line.strip()]
    return "\n".join(lines) + "\n"


def serialize(records: Sequence[PinConfigBase], fmt: ListExportFormat | str) -> str:
    fmt = ListExportFormat(fmt)
    if fmt == ListExportFormat.CSV:
        return to_csv(records)
    if fmt == ListExportFormat.XML:
        return to_xml(records)
    return to_json(records)
