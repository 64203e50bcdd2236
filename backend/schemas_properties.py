"""
backend/schemas_properties.py

Pydantic schemas for the listing, filter-option, nearby-places and lead
capture endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domains.property.models.property_listing import PropertyDetail, PropertyListing


# ========================================================================
# LISTING SCHEMAS
# ========================================================================

class PropertyListResponse(BaseModel):
    """Response schema for /api/all-properties."""
    properties: List[PropertyListing] = Field(default_factory=list)
    total: int = Field(0, description="Number of properties returned")


class WizardResponse(PropertyListResponse):
    """Wizard results plus the filters that were actually applied."""
    filters: Dict[str, Any] = Field(default_factory=dict)


class PropertyDetailResponse(BaseModel):
    property: PropertyDetail


class PriceRange(BaseModel):
    min: int = 0
    max: int = 50_000_000


class FilterOptionsResponse(BaseModel):
    """Distinct values that drive the filter dropdowns."""
    property_types: List[str] = Field(default_factory=list)
    configurations: List[str] = Field(default_factory=list)
    locations: List[str] = Field(default_factory=list)
    possession_options: List[str] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)


# ========================================================================
# NEARBY PLACES SCHEMAS
# ========================================================================

class PlaceDetail(BaseModel):
    name: str
    distance: str
    duration: str
    rating: Optional[float] = None


class PlaceCategory(BaseModel):
    type: str
    count: int = 0
    places: List[PlaceDetail] = Field(default_factory=list)


class TransitInfo(BaseModel):
    name: str
    distance: str
    duration: str
    type: str


class NearbyPlacesResult(BaseModel):
    amenities: List[PlaceCategory] = Field(default_factory=list)
    transit_points: List[TransitInfo] = Field(default_factory=list)


class NearbyPlacesResponse(NearbyPlacesResult):
    cached: bool = False


class CacheInfo(BaseModel):
    entries_in_cache: int
    expired_entries: int = 0
    cache_file_path: str


class CacheUsage(BaseModel):
    api_calls: int = 0
    cache_hits: int = 0
    total_requests: int = 0


class CacheSavings(BaseModel):
    api_savings_percent: int = 0
    estimated_cost_savings: str = "$0.00"


class CacheStatsResponse(BaseModel):
    cache: CacheInfo
    usage: CacheUsage
    savings: CacheSavings


# ========================================================================
# IMPORT SCHEMAS
# ========================================================================

class RawPropertyValidation(BaseModel):
    project_name: Optional[str] = None
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


class ValidatePropertiesResponse(BaseModel):
    results: List[RawPropertyValidation] = Field(default_factory=list)
    valid: int = 0
    invalid: int = 0


class TransformPropertiesResponse(BaseModel):
    properties: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0


class ImportPropertiesResponse(BaseModel):
    imported: int = 0
    skipped: int = 0
    invalid: int = 0
    errors: List[RawPropertyValidation] = Field(default_factory=list)


# ========================================================================
# CONTACT INQUIRY SCHEMAS
# ========================================================================

class ContactInquiryCreate(BaseModel):
    """Lead captured from a listing page (site visit / brochure request)."""
    name: str = Field(..., min_length=1, max_length=120)
    phone: str = Field(..., min_length=6, max_length=20)
    email: Optional[str] = Field(None, max_length=200)
    meeting_time: Optional[datetime] = None
    property_id: Optional[str] = Field(None, max_length=64)
    property_name: Optional[str] = Field(None, max_length=200)

    @field_validator("name", "phone", mode="before")
    @classmethod
    def trim(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class ContactInquiryResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    phone: str
    email: Optional[str] = None
    meeting_time: Optional[str] = None
    property_id: Optional[str] = None
    property_name: Optional[str] = None
    created_at: str
