import os
import re
from typing import Any

import yaml

from schema.app_config_schema import AppConfig


class ConfigManager:

    @staticmethod
    def load_yaml_file(path: str) -> dict:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)

    @staticmethod
    def parse_env_var_with_default(value: str) -> bool | int | float | str | None:
        match = re.match(r"\$\{(\w+)(?::-([^\}]*))?\}", value)  # Match ${VAR_NAME:-default} or ${VAR_NAME}
        if not match:
            return value

        var_name = match.group(1)
        default_value = match.group(2)

        resolved_value = os.getenv(var_name) or default_value
        if resolved_value is not None:
            return ConfigManager._parse_value_by_type(resolved_value)
        return None

    @staticmethod
    def resolve_env_vars(obj: Any) -> Any:
        """Recursively resolve `${VAR:-default}` strings in a loaded YAML tree"""
        if isinstance(obj, dict):
            return {k: ConfigManager.resolve_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [ConfigManager.resolve_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            return ConfigManager.parse_env_var_with_default(obj)
        else:
            return obj

    @staticmethod
    def load_app_config(config_path: str) -> AppConfig:
        """Load, resolve environment variables and validate the application configuration"""
        raw_config = ConfigManager.load_yaml_file(config_path) or {}
        resolved = ConfigManager.resolve_env_vars(raw_config)
        # Unset variables without a default resolve to None; let the schema default apply
        resolved = {
            section: {k: v for k, v in values.items() if v is not None} if isinstance(values, dict) else values
            for section, values in resolved.items()
        }
        return AppConfig(**resolved)

    @staticmethod
    def _parse_value_by_type(value: str) -> bool | int | float | str:
        if value.lower() in ["true", "false"]:
            return value.lower() == "true"
        elif ConfigManager._is_int(value):
            return int(value)
        elif ConfigManager._is_float(value):
            return float(value)
        else:
            return value

    @staticmethod
    def _is_int(value: str) -> bool:
        try:
            int(value)
            return True
        except ValueError:
            return False

    @staticmethod
    def _is_float(value: str) -> bool:
        try:
            float(value)
            return True
        except ValueError:
            return False
