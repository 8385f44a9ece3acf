# backend/portfolio_engine/schemas/categories.py
"""
Pydantic schemas for categories, subcategories and holdings assignments.

Colors are shape-checked and uppercased here; palette membership is a
business rule enforced by CategoryService (InvalidColorError → 400).
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portfolio_engine.schemas.validators import normalize_hex_color


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str | None = Field(default=None, examples=["#FF0000"])

    @field_validator("color")
    @classmethod
    def normalize_color(cls, v: str | None) -> str | None:
        return normalize_hex_color(v)


class CategoryRename(BaseModel):
    new_name: str = Field(..., min_length=1, max_length=100)


class ColorUpdate(BaseModel):
    color: str = Field(..., examples=["#00FF00"])

    @field_validator("color")
    @classmethod
    def normalize_color(cls, v: str) -> str:
        return normalize_hex_color(v)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    priority: int
    color: str | None = None


class CategoryNamesResponse(BaseModel):
    """Top-level names plus subcategory names per category."""

    categories: list[str]
    subcategories: dict[str, list[str]]


class ColorMapResponse(BaseModel):
    """name → color ("#0000FF" when unset)."""

    colors: dict[str, str]


class HoldingsAssignmentRequest(BaseModel):
    """
    Assign assets within one category.

    Example:
        {"assets": {"Apple": "Growth", "Cash": null}}
    """

    assets: dict[str, str | None] = Field(..., min_length=1)


class HoldingsCategoriesResponse(BaseModel):
    """{category: {asset_name: subcategory or null}}."""

    categories: dict[str, dict[str, str | None]]
