import pytest

from util.time_util import to_file_date, to_file_timestamp, to_iso_timestamp
from util.value_util import is_blank, is_valid_pin_key, pin_key, pin_sort_key, safe_pin_token, to_bool


class TestToBool:
    @pytest.mark.parametrize(
        "value, expected",
        [(True, True), ("TRUE", True), ("true", True), ("1", True), (1, True), ("FALSE", False), ("false", False), (0, False)],
    )
    def test_when_boolean_ish_value_then_converted(self, value, expected):
        # Assert
        assert to_bool(value) is expected

    @pytest.mark.parametrize("value", [None, "", "maybe"])
    def test_when_value_unrecognised_then_default(self, value):
        # Assert
        assert to_bool(value, default=True) is True


class TestPinKey:
    def test_when_numeric_then_leading_zeros_and_spaces_dropped(self):
        # Assert
        assert pin_key(7) == "7"
        assert pin_key(" 07 ") == "7"
        assert pin_key("X1") == "X1"

    @pytest.mark.parametrize("key, expected", [("84", True), ("X1", True), ("3_4", True), ("3/4", False), ("", False)])
    def test_when_checking_key_then_only_letters_digits_underscore_allowed(self, key, expected):
        # Assert
        assert is_valid_pin_key(key) is expected

    def test_when_making_safe_token_then_other_characters_become_underscore(self):
        # Assert
        assert safe_pin_token(" 07 ") == "7"
        assert safe_pin_token("3/4") == "3_4"

    def test_when_sorting_then_numeric_keys_first_in_numeric_order(self):
        # Assert
        assert sorted(["12", "X1", "3", "100"], key=pin_sort_key) == ["3", "12", "100", "X1"]

    def test_when_blank_check_then_only_none_and_whitespace(self):
        # Assert
        assert is_blank(None) and is_blank("  ")
        assert not is_blank(0) and not is_blank("a")


class TestTimestamps:
    def test_when_formatting_then_iso_file_and_date_forms(self, clock):
        # Act
        now = clock()

        # Assert
        assert to_iso_timestamp(now) == "2024-05-01T08:30:00.000Z"
        assert to_file_timestamp(now) == "2024-05-01T08-30-00"
        assert to_file_date(now) == "2024-05-01"
