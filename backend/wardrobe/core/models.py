"""Pydantic models for catalog records.

wardrobe.json stays plain JSON; jobs work on dicts and use these models
to build new records and to validate existing ones.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClothingItem(BaseModel):
    """Single catalog record (one garment, one or more photos)."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., min_length=1, description="Unique item id")
    images: list[str] = Field(default_factory=list, description="Ordered image references")
    primary_image_index: int | None = Field(default=None, alias="primaryImageIndex", ge=0)
    time: str = Field(default="", description="ISO date YYYY-MM-DD")
    location: str = ""
    brand: list[str] = Field(default_factory=list)
    pattern: str = ""
    size: str = ""
    category: list[str] = Field(default_factory=list)
    style: list[str] = Field(default_factory=list)
    material: str = ""
    color: str | None = None
    price: float | None = None
    satisfaction: int = Field(default=3, ge=1, le=5)
    scene: str = ""
    tags: list[str] | None = None
    notes: str | None = None
    is_delete: int | None = Field(default=None, alias="isDelete")

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Empty or a real calendar date."""
        if v:
            date.fromisoformat(v)
        return v

    @property
    def is_deleted(self) -> bool:
        return self.is_delete == 1

    def to_record(self) -> dict[str, Any]:
        """JSON record with camelCase keys, unset optionals omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class FilterOptions(BaseModel):
    """Gallery filters; empty lists mean "no restriction"."""

    brands: list[str] = Field(default_factory=list)
    size: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    styles: list[str] = Field(default_factory=list)
    materials: list[str] = Field(default_factory=list)
    scenes: list[str] = Field(default_factory=list)
    satisfaction_min: int = Field(default=1, ge=1, le=5)
    satisfaction_max: int = Field(default=5, ge=1, le=5)
    date_start: str | None = None
    date_end: str | None = None

    @field_validator("date_start", "date_end")
    @classmethod
    def validate_dates(cls, v: str | None) -> str | None:
        if v is not None:
            date.fromisoformat(v)
        return v

    @property
    def is_active(self) -> bool:
        return bool(
            self.brands
            or self.size
            or self.categories
            or self.styles
            or self.materials
            or self.scenes
            or self.satisfaction_min > 1
            or self.satisfaction_max < 5
            or self.date_start
            or self.date_end
        )

