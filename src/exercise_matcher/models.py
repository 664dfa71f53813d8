"""
Catalog value types validated at the catalog source boundary.
"""
from typing import Any, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Translation(BaseModel):
    """Locale-specific name of a catalog exercise."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    locale: str = Field(min_length=1)
    name: str = Field(min_length=1)
    search_terms: Tuple[str, ...] = Field(default=(), alias="searchTerms")

    @field_validator("search_terms", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return () if value is None else value


class CatalogEntry(BaseModel):
    """Approved catalog exercise with all of its translations."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    slug: str
    translations: Tuple[Translation, ...] = ()


class NewCatalogEntry(BaseModel):
    """Write payload for a catalog entry created from an unmatched name."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    status: str = "pending"
    created_by: str = Field(alias="createdBy")
    translations: Tuple[Translation, ...]


class ImportedExercise(BaseModel):
    """
    Exercise record coming from an import (file parser, AI extraction).

    Only ``name`` is required; any other fields the caller carries are kept.
    """
    model_config = ConfigDict(extra="allow")

    name: str
    catalog_id: Optional[str] = None
    match_confidence: Optional[float] = None
    not_found: bool = False
