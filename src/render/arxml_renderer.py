"""
ARXML Template Renderer

Fills `{{NAME}}` tokens of a template family with values from a flat pin configuration
record and composes the filled blocks into one AUTOSAR ECUC document.

Rules:
- Tokens are matched as whole tokens in a single pass, so `{{DIRECTION}}` and
  `{{DIRECTION_CHANGEABLE}}` never affect each other and substituted values are never re-scanned.
- Missing or empty values fall back to the placeholder's declared default.
- Booleans are rendered in the family's boolean style; every value is XML-escaped.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from model.enum.export_enum import PlaceholderKind
from model.enum.signal_enum import OutputType
from render.template_family import DOCUMENT_SLOTS, SIGNAL_CONTAINERS_SLOT, SIGNAL_REQUESTS_SLOT, TOKEN_PATTERN, TemplateFamily
from schema.pin_config_schema import PinConfigBase
from schema.template_family_schema import PlaceholderSpec
from util.value_util import is_blank, safe_pin_token, to_bool

logger = logging.getLogger(__name__)

SIGNAL_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

# Text that must never reach the XML as a value
_MISSING_TEXT = {"none", "null", "undefined"}

_DOCUMENT_SLOT_PATTERN = re.compile("|".join(re.escape(f"{{{{{slot}}}}}") for slot in DOCUMENT_SLOTS))


class RenderedSignal(BaseModel):
    """Container block and (optional) request block of one signal, bound by a shared short name"""

    short_name: str
    output_type: OutputType
    signal_block: str
    request_block: str | None = None


class ArxmlRenderer:
    def __init__(self, family: TemplateFamily):
        self._family = family

    @classmethod
    def from_template_dir(cls, template_root: str | Path, family_name: str) -> "ArxmlRenderer":
        return cls(TemplateFamily.from_directory(Path(template_root) / family_name))

    @property
    def family(self) -> TemplateFamily:
        return self._family

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def render_signal_block(
        self, kind: OutputType | str, record: Mapping[str, Any] | PinConfigBase, pin_number: str | None = None
    ) -> str:
        """Fill the DIO or PWM signal container template"""
        data = self._template_data(record, pin_number)
        return self._fill(self._family.signal_template(kind), data)

    def render_request_block(
        self, kind: OutputType | str, record: Mapping[str, Any] | PinConfigBase, pin_number: str | None = None
    ) -> str | None:
        """Fill the request template, or None if the family has none for this output type"""
        template = self._family.request_template(kind)
        if template is None:
            return None
        data = self._template_data(record, pin_number)
        return self._fill(template, data)

    def render_signal(
        self, kind: OutputType | str, record: Mapping[str, Any] | PinConfigBase, pin_number: str | None = None
    ) -> RenderedSignal:
        data = self._template_data(record, pin_number)
        request_template = self._family.request_template(kind)
        return RenderedSignal(
            short_name=data["signalName"],
            output_type=OutputType(kind),
            signal_block=self._fill(self._family.signal_template(kind), data),
            request_block=self._fill(request_template, data) if request_template is not None else None,
        )

    def render_document(self, signal_blocks: Iterable[str], request_blocks: Iterable[str | None]) -> str:
        """Insert the blocks into the two slots of the outer document"""
        slot_content = {
            f"{{{{{SIGNAL_CONTAINERS_SLOT}}}}}": "\n".join(signal_blocks),
            f"{{{{{SIGNAL_REQUESTS_SLOT}}}}}": "\n".join(block for block in request_blocks if block),
        }
        return _DOCUMENT_SLOT_PATTERN.sub(lambda m: slot_content[m.group(0)], self._family.document)

    def render_signals_document(self, signals: Iterable[RenderedSignal]) -> str:
        signals = list(signals)
        return self.render_document(
            [signal.signal_block for signal in signals], [signal.request_block for signal in signals]
        )

    @staticmethod
    def derive_signal_name(data: Mapping[str, Any], pin_number: str | None = None) -> str:
        """
        Short name binding container and request: custSpecName, else shortName,
        else `Pin_{n}`. Candidates that are not valid identifiers are skipped and
        characters of `n` outside `[A-Za-z0-9_]` become `_`.
        """
        for key in ("custSpecName", "shortName"):
            candidate = ArxmlRenderer._present(data.get(key))
            if isinstance(candidate, str) and SIGNAL_NAME_PATTERN.match(candidate):
                return candidate

        number = pin_number or data.get("pinNumber") or data.get("pin")
        return f"Pin_{safe_pin_token(number)}" if not is_blank(number) else "Pin_unknown"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _template_data(self, record: Mapping[str, Any] | PinConfigBase, pin_number: str | None) -> dict[str, Any]:
        if isinstance(record, PinConfigBase):
            data = record.to_storage()
        else:
            data = {(to_camel(k) if "_" in k else k): v for k, v in record.items()}
        data["signalName"] = self.derive_signal_name(data, pin_number)
        return data

    def _fill(self, template: str, data: Mapping[str, Any]) -> str:
        return TOKEN_PATTERN.sub(lambda m: self._placeholder_value(m.group(1), data), template)

    def _placeholder_value(self, name: str, data: Mapping[str, Any]) -> str:
        spec = self._family.placeholders.get(name)
        if spec is None:
            # TemplateFamily rejects undeclared tokens at load time
            logger.warning(f"[RENDER] Undeclared placeholder {{{{{name}}}}} in family '{self._family.name}'")
            return ""
        return escape(self._resolve(spec, data))

    def _resolve(self, spec: PlaceholderSpec, data: Mapping[str, Any]) -> str:
        value = self._present(data.get(spec.source))
        if value is None and spec.fallback_source:
            value = self._present(data.get(spec.fallback_source))

        if spec.kind == PlaceholderKind.BOOL:
            default = to_bool(spec.default)
            return self._family.boolean_style.render(to_bool(value, default=default))

        if value is None:
            return str(spec.default)
        if isinstance(value, bool):
            return self._family.boolean_style.render(value)
        return str(value)

    @staticmethod
    def _present(value: Any) -> Any:
        """The value, or None if it is missing, blank or a missing-value marker"""
        if value is None or is_blank(value):
            return None
        if isinstance(value, str):
            if value.strip().lower() in _MISSING_TEXT:
                return None
            return value.strip()
        return value
