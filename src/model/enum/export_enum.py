from enum import StrEnum


class BooleanStyle(StrEnum):
    """Textual form of booleans inside a rendered template"""

    LOWER = "lower"  # true / false
    UPPER = "upper"  # TRUE / FALSE

    def render(self, value: bool) -> str:
        text = "true" if value else "false"
        return text.upper() if self is BooleanStyle.UPPER else text


class ListExportFormat(StrEnum):
    CSV = "csv"
    JSON = "json"
    XML = "xml"


class StorageBackend(StrEnum):
    MEMORY = "memory"
    SQLITE = "sqlite"


class PlaceholderKind(StrEnum):
    TEXT = "text"
    BOOL = "bool"
