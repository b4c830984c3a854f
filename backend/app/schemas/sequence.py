import re
import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

SEQUENCE_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

# Path segments taken by the template-builder routes under /numbering-sequences
RESERVED_SEQUENCE_CODES = frozenset({"variables", "validate", "preview"})


class SequenceCreate(BaseModel):
    sequence_code: str = Field(min_length=1, max_length=20)
    prefix_template: str = Field(default="", max_length=255)
    next_number: int = Field(default=1, ge=1)
    description: str = ""
    is_active: bool = True

    @field_validator("sequence_code")
    @classmethod
    def check_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Sequence code is required")
        if not SEQUENCE_CODE_PATTERN.match(v):
            raise ValueError("Sequence code may only contain letters, digits, '_' and '-'")
        if v.lower() in RESERVED_SEQUENCE_CODES:
            raise ValueError(f"'{v}' is reserved and cannot be used as a sequence code")
        return v


class SequenceUpdate(BaseModel):
    prefix_template: str | None = Field(default=None, max_length=255)
    description: str | None = None
    is_active: bool | None = None


class SequenceResetRequest(BaseModel):
    next_number: int = Field(ge=1)


class SequenceResponse(BaseModel):
    id: uuid.UUID
    sequence_code: str
    prefix_template: str
    next_number: int
    description: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    preview: str | None = None

    model_config = {"from_attributes": True}


class SequenceListResponse(BaseModel):
    items: list[SequenceResponse]
    total: int
    page: int
    page_size: int
    pages: int


def _stringify_context(v: dict[str, str | int]) -> dict[str, str]:
    return {key: str(value) for key, value in v.items()}


class AllocateRequest(BaseModel):
    # document codes such as customer numbers may arrive as JSON numbers
    context: dict[str, str | int] = Field(default_factory=dict)

    @field_validator("context")
    @classmethod
    def stringify_context(cls, v: dict[str, str | int]) -> dict[str, str]:
        return _stringify_context(v)


class AllocateResponse(BaseModel):
    sequence_code: str
    number: int
    code: str


class TemplateValidateRequest(BaseModel):
    template: str


class TemplateValidateResponse(BaseModel):
    valid: bool
    invalid_tokens: list[str]


class TemplatePreviewRequest(BaseModel):
    template: str = ""
    next_number: int = Field(default=1, ge=1)
    context: dict[str, str | int] = Field(default_factory=dict)

    @field_validator("context")
    @classmethod
    def stringify_context(cls, v: dict[str, str | int]) -> dict[str, str]:
        return _stringify_context(v)


class TemplatePreviewResponse(BaseModel):
    preview: str
    invalid_tokens: list[str]


class TemplateVariable(BaseModel):
    code: str
    name: str
    example: str


class TemplateVariableGroup(BaseModel):
    name: str
    variables: list[TemplateVariable]


class TemplatePreset(BaseModel):
    label: str
    template: str
    category: str
    example: str


class TemplateVariablesResponse(BaseModel):
    groups: list[TemplateVariableGroup]
    static: list[TemplateVariable]
    presets: list[TemplatePreset]
