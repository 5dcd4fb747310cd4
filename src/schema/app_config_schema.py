"""Configuration schema for the pin mapper application."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from model.enum.export_enum import StorageBackend


class StorageConfig(BaseModel):
    """Where the configuration database is persisted."""

    model_config = ConfigDict(extra="forbid")

    backend: StorageBackend = Field(
        default=StorageBackend.SQLITE,
        description="memory (process-local, lost on exit) or sqlite",
    )

    db_path: str = Field(
        default="data/pinmap.db",
        description="Path to SQLite database file (sqlite backend only)",
    )

    config_key: str = Field(
        default="kr_cvo_config_data",
        description="Storage key holding the configuration database",
    )


class CatalogConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = Field(default="res/vd1cc055_pins.yml", description="Pin catalog YAML")


class ExportSettings(BaseModel):
    """
    ARXML and list export behaviour.

    `block_on_validation_failure` turns the advisory validation before export into a hard stop.
    """

    model_config = ConfigDict(extra="forbid")

    template_dir: str = Field(default="res/templates", description="Root directory of template families")
    template_family: str = Field(default="rba_IoSigDio", description="Template family used for ARXML export")
    module_prefix: str = Field(default="TLE7244", description="Prefix of exported ARXML file names")
    output_dir: str = Field(default="output", description="Directory exported files are written to")
    block_on_validation_failure: bool = False
    fill_connected_to_from_catalog: bool = Field(
        default=True,
        description="Use the catalog IC address when a record has no connectedTo / extConnectedTo",
    )

    @field_validator("module_prefix")
    @classmethod
    def validate_module_prefix(cls, v: str) -> str:
        if not v or any(ch in v for ch in "/\\"):
            raise ValueError(f"module_prefix must be a non-empty file name fragment, got: {v!r}")
        return v


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = "INFO"
    to_file: bool = False
    log_dir: str = "logs"
    base_filename: str = "pinmap"

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        level = str(v).strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v!r}")
        return level


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    storage: StorageConfig = Field(default_factory=StorageConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    export: ExportSettings = Field(default_factory=ExportSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
