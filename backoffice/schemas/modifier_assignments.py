from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, StrictBool, field_validator, model_validator


class ModifierGroupOverride(BaseModel):
    """Sobrescreve a política de seleção do grupo apenas para um item."""

    code: str = Field(..., min_length=1, max_length=32)
    is_required: Optional[StrictBool] = None
    is_multiselect: Optional[StrictBool] = None
    min_selection: Optional[int] = Field(None, ge=0)
    max_selection: Optional[int] = Field(None, ge=0)

    @field_validator("code")
    @classmethod
    def _strip_code(cls, value: str) -> str:
        code = value.strip()
        if not code:
            raise ValueError("código de grupo vazio")
        return code

    @model_validator(mode="after")
    def _check_bounds(self) -> "ModifierGroupOverride":
        if (
            self.min_selection is not None
            and self.max_selection is not None
            and self.min_selection > self.max_selection
        ):
            raise ValueError("min_selection não pode ser maior que max_selection")
        return self


class AssignmentWriteRequest(BaseModel):
    explicit_group_codes: list[str] = Field(default_factory=list)
    per_group_overrides: list[ModifierGroupOverride] = Field(default_factory=list)
    inherit_enabled: StrictBool = True

    @field_validator("explicit_group_codes")
    @classmethod
    def _strip_codes(cls, value: list[str]) -> list[str]:
        codes = [code.strip() for code in value]
        if any(not code for code in codes):
            raise ValueError("código de grupo vazio")
        return codes

    @model_validator(mode="after")
    def _check_overrides(self) -> "AssignmentWriteRequest":
        seen: set[str] = set()
        for override in self.per_group_overrides:
            if override.code in seen:
                raise ValueError(f"override duplicado para o grupo {override.code}")
            seen.add(override.code)
        return self

    def overrides_by_code(self) -> dict[str, ModifierGroupOverride]:
        return {override.code: override for override in self.per_group_overrides}


class AssignmentWriteResponse(BaseModel):
    success: bool = True


class ModifierItemView(BaseModel):
    code: str
    name: str
    label_name: Optional[str] = None
    price: Decimal
    is_default: bool
    display_order: Optional[int] = None
    active: bool


class ModifierGroupView(BaseModel):
    code: str
    name: str
    label_name: Optional[str] = None
    options: list[ModifierItemView] = Field(default_factory=list)


class ProjectedAssignment(BaseModel):
    group_code: str
    inherited: bool
    is_required: bool
    is_multiselect: bool
    min_selection: Optional[int] = None
    max_selection: Optional[int] = None
    group: ModifierGroupView


class AssignmentStatus(BaseModel):
    menu_item_code: str
    resolved_at: Optional[datetime] = None
    category_changed_at: Optional[datetime] = None
    stale: bool
