import json
import xml.etree.ElementTree as ET

import pytest

from schema.pin_config_schema import DioPinConfig, PwmPinConfig
from service import list_export


@pytest.fixture
def records():
    return [
        DioPinConfig(pinNumber="3", shortName="Relay", timestamp="2024-05-01T08:30:00.000Z"),
        PwmPinConfig(pinNumber="5", shortName="Fan, left", frequency=2000, dutyCycle=30),
    ]


class TestListExport:
    """Flat list dumps"""

    def test_when_csv_then_header_and_blank_pwm_columns_for_dio(self, records):
        # Act
        content = list_export.to_csv(records)

        # Assert
        assert content.splitlines() == [
            "Pin,ShortName,OutputType,Frequency,DutyCycle,Timestamp",
            "3,Relay,DIO,,,2024-05-01T08:30:00.000Z",
            '5,"Fan, left",PWM,2000,30,',
        ]

    def test_when_json_then_array_of_storage_records(self, records):
        # Act
        document = json.loads(list_export.to_json(records))

        # Assert
        assert [entry["pinNumber"] for entry in document] == ["3", "5"]
        assert document[1]["dutyCycle"] == 30
        assert document[0]["outputType"] == "DIO"

    def test_when_xml_then_one_element_per_record(self, records):
        # Act
        content = list_export.to_xml(records)

        # Assert
        root = ET.fromstring(content.encode("utf-8"))
        assert content.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert [element.get("pin") for element in root] == ["3", "5"]
        assert root[0].find("pwmFrequency") is None
        assert root[1].findtext("pwmFrequency") == "2000"
        assert root[1].findtext("shortName") == "Fan, left"

    @pytest.mark.parametrize("fmt, marker", [("csv", "Pin,"), ("json", "["), ("xml", "<?xml")])
    def test_when_serialize_by_format_then_matching_writer_is_used(self, records, fmt, marker):
        # Assert
        assert list_export.serialize(records, fmt).startswith(marker)

    def test_when_format_unknown_then_raise(self, records):
        # Act & Assert
        with pytest.raises(ValueError):
            list_export.serialize(records, "yaml")
