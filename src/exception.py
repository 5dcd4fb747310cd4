"""Pin mapper exception definitions"""


class PinMapperError(Exception):
    """Base exception for the pin mapper"""

    pass


class CatalogError(PinMapperError):
    """Pin catalog data could not be loaded"""

    pass


class StorageCorruptError(PinMapperError):
    """Persisted configuration exists but cannot be parsed"""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class MissingRecordError(PinMapperError):
    """No saved configuration for the requested pin"""

    def __init__(self, message: str, pin_number: str | None = None):
        super().__init__(message)
        self.pin_number = pin_number


class MalformedImportError(PinMapperError):
    """Imported document is not valid JSON or lacks the required shape"""

    pass


class TemplateError(PinMapperError):
    """ARXML template family is missing or incomplete"""

    pass


class ExportBlockedError(PinMapperError):
    """Export refused because validation failed and blocking is enabled"""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []
