from pydantic import BaseModel, ConfigDict, Field, field_validator

from model.enum.export_enum import BooleanStyle, PlaceholderKind
from model.enum.signal_enum import OutputType


class PlaceholderSpec(BaseModel):
    """Where a `{{NAME}}` token takes its value from"""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source: str
    fallback_source: str | None = None
    kind: PlaceholderKind = PlaceholderKind.TEXT
    default: str | bool = ""

    @field_validator("default", mode="before")
    @classmethod
    def coerce_default(cls, v):
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class TemplateFamilySchema(BaseModel):
    """Content of `family.yml` in a template family directory"""

    model_config = ConfigDict(extra="forbid")

    module: str
    boolean_style: BooleanStyle = BooleanStyle.LOWER
    document: str
    signal_templates: dict[OutputType, str]
    request_templates: dict[OutputType, str] = Field(default_factory=dict)
    placeholders: dict[str, PlaceholderSpec]

    @field_validator("request_templates", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or {}
