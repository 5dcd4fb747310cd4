"""Utility functions for value conversion of form and storage values."""

import re

_TRUE_TEXT = {"1", "true", "yes", "on"}
_FALSE_TEXT = {"0", "false", "no", "off"}

PIN_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


def to_bool(x, default: bool = False) -> bool:
    """
    Convert a boolean-ish value to bool.

    Args:
        x: Value to convert (None, bool, int, or text such as "TRUE", "false", "1")
        default: Returned when the value is None, empty, or not recognised

    Returns:
        bool: Converted value.

    Note: Stored configurations mix JSON booleans with the form strings "TRUE"/"FALSE"
          and "true"/"false". All of them collapse to one Python bool here.

    Examples:
        >>> to_bool("TRUE")
        True
        >>> to_bool("false")
        False
        >>> to_bool("", default=True)
        True
        >>> to_bool(None)
        False
    """
    if x is None:
        return default

    if isinstance(x, bool):
        return x

    if isinstance(x, int):
        return x != 0

    if isinstance(x, str):
        normalized = x.strip().lower()
        if normalized in _TRUE_TEXT:
            return True
        if normalized in _FALSE_TEXT:
            return False

    return default


def is_blank(x) -> bool:
    """
    True for None and for strings that are empty after stripping.

    Examples:
        >>> is_blank("  ")
        True
        >>> is_blank(0)
        False
    """
    if x is None:
        return True
    return isinstance(x, str) and not x.strip()


def pin_key(pin_number) -> str:
    """
    Normalize a pin number to the string key used in saved configuration maps.

    Examples:
        >>> pin_key(7)
        '7'
        >>> pin_key(" 07 ")
        '7'
        >>> pin_key("X1")
        'X1'
    """
    text = str(pin_number).strip()
    if text.isdigit():
        return str(int(text))
    return text


def pin_sort_key(pin_number: str) -> tuple[int, int | str]:
    """Sort numeric pin keys numerically, then anything else lexically."""
    text = str(pin_number)
    if text.isdigit():
        return (0, int(text))
    return (1, text)


def is_valid_pin_key(key: str) -> bool:
    """
    True if the key can appear in a SHORT-NAME (`Pin_{key}`) and a file name as is.

    Examples:
        >>> is_valid_pin_key("84")
        True
        >>> is_valid_pin_key("3/4")
        False
    """
    return bool(PIN_KEY_PATTERN.match(key))


def safe_pin_token(pin_number) -> str:
    """
    Pin key with every character outside `[A-Za-z0-9_]` replaced by `_`.

    Examples:
        >>> safe_pin_token("3/4")
        '3_4'
    """
    return re.sub(r"[^A-Za-z0-9_]", "_", pin_key(pin_number))
