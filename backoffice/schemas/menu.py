from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, StrictBool, model_validator

from backoffice.schemas.modifier_assignments import ModifierGroupOverride


def _check_selection_bounds(min_selection: Optional[int], max_selection: Optional[int]) -> None:
    if min_selection is not None and max_selection is not None and min_selection > max_selection:
        raise ValueError("min_selection não pode ser maior que max_selection")


class MenuCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    color_code: Optional[str] = None
    display_order: Optional[int] = None
    is_active: bool = True


class MenuCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    color_code: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class MenuCategoryOut(BaseModel):
    menu_category_code: str
    name: str
    color_code: Optional[str] = None
    display_order: Optional[int] = None
    is_active: bool
    modifiers_changed_at: Optional[datetime] = None


class CategoryModifierLinkCreate(BaseModel):
    modifier_group_code: str = Field(..., min_length=1)


class CategoryModifierLinkOut(BaseModel):
    menu_category_code: str
    modifier_group_code: str
    group_name: Optional[str] = None


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    kitchen_name: Optional[str] = None
    description: Optional[str] = None
    menu_category_code: Optional[str] = None
    base_price: Decimal = Field(Decimal("0"), ge=0)
    is_active: bool = True
    selected_modifiers: list[str] = Field(default_factory=list)
    modifier_overrides: list[ModifierGroupOverride] = Field(default_factory=list)
    inherit_modifiers: StrictBool = True


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    kitchen_name: Optional[str] = None
    description: Optional[str] = None
    menu_category_code: Optional[str] = None
    base_price: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None


class MenuItemOut(BaseModel):
    menu_item_code: str
    name: str
    kitchen_name: Optional[str] = None
    description: Optional[str] = None
    menu_category_code: Optional[str] = None
    base_price: Decimal
    is_active: bool
    inherit_modifier_group: bool
    modifiers_resolved_at: Optional[datetime] = None


class ModifierGroupCreate(BaseModel):
    group_name: str = Field(..., min_length=1, max_length=255)
    label_name: Optional[str] = None
    is_required: bool = False
    is_multiselect: bool = False
    min_selection: Optional[int] = Field(None, ge=0)
    max_selection: Optional[int] = Field(None, ge=0)
    show_default_top: bool = False
    price_strategy: int = 1
    price: Optional[Decimal] = Field(None, ge=0)
    menu_category_code: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def _check_bounds(self) -> "ModifierGroupCreate":
        _check_selection_bounds(self.min_selection, self.max_selection)
        return self


class ModifierGroupUpdate(BaseModel):
    group_name: Optional[str] = Field(None, min_length=1, max_length=255)
    label_name: Optional[str] = None
    is_required: Optional[bool] = None
    is_multiselect: Optional[bool] = None
    min_selection: Optional[int] = Field(None, ge=0)
    max_selection: Optional[int] = Field(None, ge=0)
    show_default_top: Optional[bool] = None
    price_strategy: Optional[int] = None
    price: Optional[Decimal] = Field(None, ge=0)
    menu_category_code: Optional[str] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "ModifierGroupUpdate":
        _check_selection_bounds(self.min_selection, self.max_selection)
        return self


class ModifierItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    label_name: Optional[str] = None
    price: Decimal = Decimal("0")
    is_default: bool = False
    display_order: Optional[int] = None
    is_active: bool = True
    color_code: Optional[str] = None


class ModifierItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    label_name: Optional[str] = None
    price: Optional[Decimal] = None
    is_default: Optional[bool] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None
    color_code: Optional[str] = None


class ModifierItemOut(BaseModel):
    modifier_item_code: str
    modifier_group_code: str
    name: str
    label_name: Optional[str] = None
    price: Decimal
    is_default: bool
    display_order: Optional[int] = None
    is_active: bool
    color_code: Optional[str] = None


class ModifierGroupOut(BaseModel):
    modifier_group_code: str
    group_name: str
    label_name: Optional[str] = None
    is_required: bool
    is_multiselect: bool
    min_selection: Optional[int] = None
    max_selection: Optional[int] = None
    show_default_top: bool
    price_strategy: int
    price: Optional[Decimal] = None
    menu_category_code: Optional[str] = None
    is_active: bool
    assigned_categories: list[dict] = Field(default_factory=list)
    items: list[ModifierItemOut] = Field(default_factory=list)


class AvailableModifierOut(BaseModel):
    modifier_group_code: str
    name: str
    label_name: Optional[str] = None
    pos_name: str
    is_required: bool
    is_multiselect: bool
    min_selection: Optional[int] = None
    max_selection: Optional[int] = None
    item_count: int
    sample_items: list[str]
    config_summary: str
    modifier_items: list[ModifierItemOut]
