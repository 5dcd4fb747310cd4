import logging
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from exception import TemplateError
from model.enum.export_enum import BooleanStyle
from model.enum.signal_enum import OutputType
from schema.template_family_schema import PlaceholderSpec, TemplateFamilySchema
from util.config_manager import ConfigManager

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{\{([A-Z][A-Z0-9_]*)\}\}")

SIGNAL_CONTAINERS_SLOT = "SIGNAL_CONTAINERS"
SIGNAL_REQUESTS_SLOT = "SIGNAL_REQUESTS"
DOCUMENT_SLOTS = (SIGNAL_CONTAINERS_SLOT, SIGNAL_REQUESTS_SLOT)

FAMILY_FILE = "family.yml"


class TemplateFamily:
    """
    One ARXML module flavour: an outer document, per-output-type signal blocks,
    optional request blocks, and the placeholder table shared by all of them.
    """

    def __init__(
        self,
        name: str,
        schema: TemplateFamilySchema,
        document: str,
        signal_templates: dict[OutputType, str],
        request_templates: dict[OutputType, str],
    ):
        self.name = name
        self.module = schema.module
        self.boolean_style: BooleanStyle = schema.boolean_style
        self.placeholders: dict[str, PlaceholderSpec] = dict(schema.placeholders)
        self.document = document
        self.signal_templates = signal_templates
        self.request_templates = request_templates

        self._check_tokens()

    @classmethod
    def from_directory(cls, directory: str | Path) -> "TemplateFamily":
        """
        Load `family.yml` and the template files it names.

        Raises:
            TemplateError: missing file, invalid family.yml, or an undeclared placeholder
        """
        directory = Path(directory)
        family_path = directory / FAMILY_FILE

        try:
            raw = ConfigManager.load_yaml_file(str(family_path))
            schema = TemplateFamilySchema.model_validate(raw or {})
        except (OSError, yaml.YAMLError) as e:
            raise TemplateError(f"Failed to read template family '{family_path}': {e}") from e
        except ValidationError as e:
            raise TemplateError(f"Invalid template family '{family_path}': {e}") from e

        document = cls._read_template(directory, schema.document)
        signal_templates = {
            output_type: cls._read_template(directory, file_name)
            for output_type, file_name in schema.signal_templates.items()
        }
        request_templates = {
            output_type: cls._read_template(directory, file_name)
            for output_type, file_name in schema.request_templates.items()
        }

        family = cls(directory.name, schema, document, signal_templates, request_templates)
        logger.info(
            f"[RENDER] Loaded template family '{family.name}' "
            f"(signals: {sorted(signal_templates)}, requests: {sorted(request_templates)})"
        )
        return family

    def signal_template(self, output_type: OutputType | str) -> str:
        output_type = OutputType(output_type)
        template = self.signal_templates.get(output_type)
        if template is None:
            raise TemplateError(f"Template family '{self.name}' has no {output_type} signal template")
        return template

    def request_template(self, output_type: OutputType | str) -> str | None:
        return self.request_templates.get(OutputType(output_type))

    @staticmethod
    def _read_template(directory: Path, file_name: str) -> str:
        path = directory / file_name
        try:
            return path.read_text(encoding="utf-8").rstrip("\n")
        except OSError as e:
            raise TemplateError(f"Failed to read template '{path}': {e}") from e

    def _check_tokens(self):
        for slot in DOCUMENT_SLOTS:
            if f"{{{{{slot}}}}}" not in self.document:
                raise TemplateError(f"Template family '{self.name}': document lacks the {{{{{slot}}}}} slot")

        fragments = {f"signal {t}": text for t, text in self.signal_templates.items()}
        fragments.update({f"request {t}": text for t, text in self.request_templates.items()})
        for label, text in fragments.items():
            undeclared = set(TOKEN_PATTERN.findall(text)) - set(self.placeholders)
            if undeclared:
                raise TemplateError(
                    f"Template family '{self.name}': {label} template uses undeclared placeholders {sorted(undeclared)}"
                )
