from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class PropertyListing(BaseModel):
    """
    A property listing as returned by the listing endpoints.
    Mirrors the properties table with JSON columns decoded.
    """

    model_config = ConfigDict(extra="ignore")

    # Identity
    id: str
    property_id: Optional[str] = None
    project_name: str
    name: Optional[str] = None
    developer_name: Optional[str] = None
    rera_number: Optional[str] = None

    # Location
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    nearby_locations: List[str] = Field(default_factory=list)

    # Project details
    property_type: Optional[str] = None
    construction_status: Optional[str] = None
    possession_date: Optional[str] = None
    community_type: Optional[str] = None
    is_gated_community: Optional[bool] = None
    total_units: Optional[int] = None
    area_size_acres: Optional[float] = None

    # Units
    configurations: Optional[str] = Field(
        None, description="Comma-separated unit types, e.g. '2 BHK, 3 BHK'"
    )
    configuration_details: List[Dict[str, Any]] = Field(default_factory=list)
    min_size_sqft: Optional[float] = None
    max_size_sqft: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None

    # Pricing (INR)
    price: Optional[float] = None
    price_per_sqft: Optional[float] = None
    minimum_budget: Optional[float] = None
    maximum_budget: Optional[float] = None

    # Extras
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    loan_approved_banks: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    data: Dict[str, Any] = Field(
        default_factory=dict, description="Additional listing attributes kept from import"
    )

    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PropertyDetail(BaseModel):
    """Single-listing payload used by the property detail page."""

    id: str
    rera_number: str = ""
    project_name: str = ""
    builder_name: str = ""
    area: str = ""
    possession_date: str = ""
    price_per_sqft: float = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    configurations: List[Dict[str, Any]] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
