import copy

import pytest

from schema.pin_config_schema import DioPinConfig, PwmPinConfig
from validator.pin_config_validator import PinConfigValidator


@pytest.fixture
def valid_dio():
    return {"connectedTo": "TLE7244_01_03", "direction": "Output", "custSpecName": "O_S_LS13"}


class TestValidateRecord:
    """Per-record rules"""

    def test_when_record_is_complete_then_valid(self, valid_dio):
        # Act
        report = PinConfigValidator.validate_record(valid_dio, "3")

        # Assert
        assert report.is_valid is True
        assert report.errors == []

    def test_when_connected_to_missing_then_required_error(self, valid_dio):
        # Arrange
        valid_dio["connectedTo"] = "   "

        # Act
        report = PinConfigValidator.validate_record(valid_dio, 7)

        # Assert
        assert report.errors == ["Pin 7: Connected To is required"]

    def test_when_connected_to_malformed_then_single_format_error(self, valid_dio):
        # Arrange
        valid_dio["connectedTo"] = "tle_bad"

        # Act
        report = PinConfigValidator.validate_record(valid_dio, "5")

        # Assert
        assert report.is_valid is False
        assert len(report.errors) == 1
        assert "Pin 5" in report.errors[0]
        assert report.errors[0] == "Pin 5: Connected To format should be DevType_DevOrPortIdx_Pin"

    @pytest.mark.parametrize("connected_to", ["TLE7244_01_03", "MCU_P33_4", "A_"])
    def test_when_connected_to_has_device_prefix_then_accepted(self, valid_dio, connected_to):
        # Arrange
        valid_dio["connectedTo"] = connected_to

        # Assert
        assert PinConfigValidator.validate_record(valid_dio, "1").is_valid

    def test_when_dio_direction_missing_then_required_error(self, valid_dio):
        # Arrange
        del valid_dio["direction"]

        # Act
        report = PinConfigValidator.validate_record(valid_dio, "3")

        # Assert
        assert report.errors == ["Pin 3: Direction is required"]

    def test_when_pwm_record_has_no_direction_then_valid(self):
        # Arrange
        config = PwmPinConfig(connectedTo="TLE7244_01_02", frequency=200)

        # Act
        report = PinConfigValidator.validate_record(config, "12")

        # Assert
        assert report.is_valid is True

    def test_when_calib_text_longer_than_32_then_error(self, valid_dio):
        # Arrange
        valid_dio["calibAlterText"] = "K" * 33

        # Act
        report = PinConfigValidator.validate_record(valid_dio, "3")

        # Assert
        assert report.errors == ["Pin 3: Calibration Alternate Text max 32 characters"]

    def test_when_calib_text_exactly_32_then_valid(self, valid_dio):
        # Arrange
        valid_dio["calibAlterText"] = "K" * 32

        # Assert
        assert PinConfigValidator.validate_record(valid_dio, "3").is_valid

    @pytest.mark.parametrize("name", ["1_Signal", "Bad Name", "O-S-LS13"])
    def test_when_name_not_identifier_then_error(self, valid_dio, name):
        # Arrange
        valid_dio["custSpecName"] = name

        # Act
        report = PinConfigValidator.validate_record(valid_dio, "3")

        # Assert
        assert report.errors == [
            "Pin 3: Customer Specific Name must start with letter "
            "and contain only alphanumeric characters and underscores"
        ]

    def test_when_only_short_name_given_then_it_is_checked(self, valid_dio):
        # Arrange
        del valid_dio["custSpecName"]
        valid_dio["shortName"] = "Relay Low 9"

        # Act
        report = PinConfigValidator.validate_record(valid_dio, "84")

        # Assert
        assert len(report.errors) == 1
        assert report.errors[0].startswith("Pin 84: Customer Specific Name")

    def test_when_several_rules_fail_then_errors_in_rule_order(self):
        # Arrange
        record = {"connectedTo": "", "direction": "", "calibAlterText": "x" * 40, "custSpecName": "9lives"}

        # Act
        report = PinConfigValidator.validate_record(record, "2")

        # Assert
        assert [error.split(": ", 1)[1].split(" ")[0] for error in report.errors] == [
            "Connected",
            "Direction",
            "Calibration",
            "Customer",
        ]

    def test_when_validated_twice_then_same_result_and_input_untouched(self, valid_dio):
        # Arrange
        valid_dio["connectedTo"] = "bad"
        snapshot = copy.deepcopy(valid_dio)

        # Act
        first = PinConfigValidator.validate_record(valid_dio, "3")
        second = PinConfigValidator.validate_record(valid_dio, "3")

        # Assert
        assert first == second
        assert valid_dio == snapshot

    def test_when_record_is_model_then_aliases_are_checked(self):
        # Arrange
        config = DioPinConfig(connected_to="TLE7244_01_05", direction="", cust_spec_name="O_S_RL09")

        # Act
        report = PinConfigValidator.validate_record(config, "84")

        # Assert
        assert report.errors == ["Pin 84: Direction is required"]

    def test_when_record_uses_snake_case_keys_then_they_are_read(self):
        # Arrange
        record = {"connected_to": "TLE7244_01_05", "direction": "Input", "calib_alter_text": "y" * 33}

        # Act
        report = PinConfigValidator.validate_record(record, "84")

        # Assert
        assert report.errors == ["Pin 84: Calibration Alternate Text max 32 characters"]


class TestValidateBatch:
    """Batch validation"""

    def test_when_all_valid_then_batch_valid(self, valid_dio):
        # Act
        report = PinConfigValidator.validate_batch([("3", valid_dio), ("4", dict(valid_dio))])

        # Assert
        assert report.is_valid is True

    def test_when_some_invalid_then_errors_are_concatenated(self, valid_dio):
        # Arrange
        bad_connection = {**valid_dio, "connectedTo": "tle_bad"}
        bad_direction = {k: v for k, v in valid_dio.items() if k != "direction"}

        # Act
        report = PinConfigValidator.validate_batch([("3", valid_dio), ("5", bad_connection), ("6", bad_direction)])

        # Assert
        assert report.is_valid is False
        assert [error.split(":")[0] for error in report.errors] == ["Pin 5", "Pin 6"]

    def test_when_batch_empty_then_valid(self):
        # Assert
        assert PinConfigValidator.validate_batch([]).is_valid
