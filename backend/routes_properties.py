"""
backend/routes_properties.py

Public listing endpoints: search/filter, detail, filter options, the Find My
Home wizard, nearby places, lead capture and the raw RERA export endpoints.

Maps-backed collaborators are provided through dependency functions
(get_maps_client, get_location_matcher, get_nearby_service) so tests can
swap them via app.dependency_overrides.
"""

from __future__ import annotations

import math
import os
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, Response

try:
    from backend.auth_context import AdminContext, require_admin_context
    from backend.config import DEFAULT_CITY, GOOGLE_API_KEY, IS_DEV, NEARBY_CACHE_PATH, PUBLIC_DIR
    from backend.db import get_db, property_row_to_dict, row_to_dict
    from backend.geo import has_coordinates
    from backend.google_maps import GoogleMapsClient, MapsError
    from backend.nearby_places import NearbyPlacesCache, NearbyPlacesService
    from backend.property_filters import (
        POSSESSION_OPTIONS,
        LocationMatcher,
        PropertyFilters,
        build_where_clause,
        matches_post_filters,
    )
    from backend.property_import import (
        import_properties,
        project_label,
        transform_raw_property,
        validate_raw_property,
    )
    from backend.schemas_properties import (
        CacheStatsResponse,
        ContactInquiryCreate,
        ContactInquiryResponse,
        FilterOptionsResponse,
        ImportPropertiesResponse,
        NearbyPlacesResponse,
        PriceRange,
        PropertyDetail,
        PropertyDetailResponse,
        PropertyListResponse,
        RawPropertyValidation,
        TransformPropertiesResponse,
        ValidatePropertiesResponse,
        WizardResponse,
    )
except ModuleNotFoundError:
    from auth_context import AdminContext, require_admin_context
    from config import DEFAULT_CITY, GOOGLE_API_KEY, IS_DEV, NEARBY_CACHE_PATH, PUBLIC_DIR
    from db import get_db, property_row_to_dict, row_to_dict
    from geo import has_coordinates
    from google_maps import GoogleMapsClient, MapsError
    from nearby_places import NearbyPlacesCache, NearbyPlacesService
    from property_filters import (
        POSSESSION_OPTIONS,
        LocationMatcher,
        PropertyFilters,
        build_where_clause,
        matches_post_filters,
    )
    from property_import import (
        import_properties,
        project_label,
        transform_raw_property,
        validate_raw_property,
    )
    from schemas_properties import (
        CacheStatsResponse,
        ContactInquiryCreate,
        ContactInquiryResponse,
        FilterOptionsResponse,
        ImportPropertiesResponse,
        NearbyPlacesResponse,
        PriceRange,
        PropertyDetail,
        PropertyDetailResponse,
        PropertyListResponse,
        RawPropertyValidation,
        TransformPropertiesResponse,
        ValidatePropertiesResponse,
        WizardResponse,
    )


router = APIRouter(
    prefix="/api",
    tags=["properties"],
)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

DEFAULT_MAX_PRICE = 50_000_000


# ---------------------------------------------------------
# Dependencies (process-wide singletons)
# ---------------------------------------------------------
_maps_client: Optional[GoogleMapsClient] = None
_location_matcher: Optional[LocationMatcher] = None
_nearby_service: Optional[NearbyPlacesService] = None


def get_maps_client() -> Optional[GoogleMapsClient]:
    """Shared Maps client, or None when GOOGLE_API_KEY is not configured."""
    global _maps_client
    if not GOOGLE_API_KEY:
        return None
    if _maps_client is None:
        _maps_client = GoogleMapsClient(GOOGLE_API_KEY)
    return _maps_client


def get_location_matcher(client: Optional[GoogleMapsClient] = Depends(get_maps_client)) -> LocationMatcher:
    """Matcher whose area cache lives for the whole process."""
    global _location_matcher
    if _location_matcher is None:
        _location_matcher = LocationMatcher(area_lookup=client.reverse_geocode_areas if client else None)
    return _location_matcher


def get_nearby_service(client: Optional[GoogleMapsClient] = Depends(get_maps_client)) -> NearbyPlacesService:
    global _nearby_service
    if _nearby_service is None:
        _nearby_service = NearbyPlacesService(client, NearbyPlacesCache(NEARBY_CACHE_PATH))
    return _nearby_service


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------
def _load_properties(filters: PropertyFilters) -> List[Dict[str, Any]]:
    where, params = build_where_clause(filters)
    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute(
            f"SELECT * FROM properties WHERE {where} ORDER BY created_at DESC, project_name",
            params,
        )
        return [property_row_to_dict(row) for row in cur.fetchall()]
    except sqlite3.Error as e:
        if IS_DEV:
            print(f"[PROPERTIES] DB error: {e}")
        raise HTTPException(status_code=500, detail="Database error")
    finally:
        conn.close()


def search_properties(filters: PropertyFilters, matcher: LocationMatcher) -> List[Dict[str, Any]]:
    """SQL filters, then parsed filters, then location/radius matching."""
    records = _load_properties(filters)
    records = [r for r in records if matches_post_filters(r, filters)]
    if filters.location:
        records = matcher.match(records, filters.location, filters.radius_km)
    print(f"[PROPERTIES] {len(records)} properties after filters {filters.applied()}")
    return records


def _budget_bounds(conn: sqlite3.Connection) -> PriceRange:
    cur = conn.cursor()
    cur.execute(
        """
        SELECT
            COALESCE(NULLIF(minimum_budget, 0), price) AS low,
            COALESCE(NULLIF(maximum_budget, 0), price) AS high
        FROM properties
        """
    )
    values: List[float] = []
    for row in cur.fetchall():
        for value in (row["low"], row["high"]):
            if value is not None and value > 0:
                values.append(float(value))
    if not values:
        return PriceRange(min=0, max=DEFAULT_MAX_PRICE)
    return PriceRange(min=math.floor(min(values)), max=math.ceil(max(values)))


def normalize_images(images: List[Any], public_dir: Optional[str] = None) -> List[str]:
    """
    Keep absolute URLs, add a missing leading slash to relative paths, and drop
    /property_images/... paths whose file is not present under public_dir.
    """
    public_dir = public_dir or PUBLIC_DIR
    valid: List[str] = []
    for image in images:
        if not isinstance(image, str) or not image.strip():
            continue
        url = image.strip()
        if not url.startswith("http") and not url.startswith("/"):
            url = f"/{url}"
        if url.startswith("/property_images/"):
            if not os.path.isfile(os.path.join(public_dir, url.lstrip("/"))):
                if IS_DEV:
                    print(f"[PROPERTIES] Image file not found: {url}")
                continue
        valid.append(url)
    return valid


# ---------------------------------------------------------
# Listings
# ---------------------------------------------------------
@router.get("/all-properties", response_model=PropertyListResponse)
def list_properties(
    search: Optional[str] = Query(None, max_length=200),
    location: Optional[str] = Query(None, max_length=500, description="Comma-separated location names"),
    property_type: Optional[str] = Query(None),
    min_price: Optional[str] = Query(None),
    max_price: Optional[str] = Query(None),
    bedrooms: Optional[str] = Query(None),
    min_price_per_sqft: Optional[str] = Query(None),
    max_price_per_sqft: Optional[str] = Query(None),
    configurations: Optional[str] = Query(None),
    construction_status: Optional[str] = Query(None),
    possession: Optional[str] = Query(None),
    radius_km: Optional[str] = Query(None, description="Include listings within this many km of matches"),
    matcher: LocationMatcher = Depends(get_location_matcher),
) -> PropertyListResponse:
    """
    List properties with optional filters.

    Numeric parameters arrive as strings so that "any" and blanks can be
    treated as "no filter" instead of failing validation.
    """
    filters = PropertyFilters.from_query(
        search=search,
        location=location,
        property_type=property_type,
        min_price=min_price,
        max_price=max_price,
        bedrooms=bedrooms,
        min_price_per_sqft=min_price_per_sqft,
        max_price_per_sqft=max_price_per_sqft,
        configurations=configurations,
        construction_status=construction_status,
        possession=possession,
        radius_km=radius_km,
    )
    records = search_properties(filters, matcher)
    return PropertyListResponse(properties=records, total=len(records))


@router.get("/properties/{property_id}", response_model=PropertyDetailResponse)
def get_property(
    response: Response,
    property_id: str = Path(..., description="Property id"),
    client: Optional[GoogleMapsClient] = Depends(get_maps_client),
) -> PropertyDetailResponse:
    response.headers.update(NO_CACHE_HEADERS)

    if not property_id.strip():
        raise HTTPException(status_code=400, detail="Invalid property ID")

    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute("SELECT * FROM properties WHERE id = ?", (property_id.strip(),))
        row = cur.fetchone()
    except sqlite3.Error as e:
        if IS_DEV:
            print(f"[PROPERTIES] DB error: {e}")
        raise HTTPException(status_code=500, detail="Database error")
    finally:
        conn.close()

    if not row:
        raise HTTPException(status_code=404, detail="Property not found")

    record = property_row_to_dict(row)
    images = record.get("images") or []
    if not images and client is not None and record.get("project_name"):
        query = f"{record['project_name']} {record.get('location') or DEFAULT_CITY}"
        try:
            images = client.place_photo_urls(query, limit=5)
            print(f"[PROPERTIES] {len(images)} place photos used for property {property_id}")
        except MapsError as e:
            print(f"[PROPERTIES] Photo lookup failed for property {property_id}: {e}")

    detail = PropertyDetail(
        id=record["id"],
        rera_number=record.get("rera_number") or "",
        project_name=record.get("project_name") or "",
        builder_name=record.get("developer_name") or "",
        area=record.get("location") or "",
        possession_date=record.get("possession_date") or "",
        price_per_sqft=record.get("price_per_sqft") or 0,
        latitude=record.get("latitude"),
        longitude=record.get("longitude"),
        configurations=record.get("configuration_details") or [],
        images=normalize_images(images),
    )
    return PropertyDetailResponse(property=detail)


@router.get("/filter-options", response_model=FilterOptionsResponse)
def filter_options() -> FilterOptionsResponse:
    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute(
            "SELECT DISTINCT property_type FROM properties WHERE COALESCE(property_type, '') != '' ORDER BY property_type"
        )
        property_types = [row["property_type"] for row in cur.fetchall()]

        cur.execute("SELECT DISTINCT configurations FROM properties WHERE COALESCE(configurations, '') != ''")
        configurations: List[str] = []
        for row in cur.fetchall():
            for token in row["configurations"].split(","):
                token = token.strip()
                if token and token not in configurations:
                    configurations.append(token)

        cur.execute("SELECT DISTINCT location FROM properties WHERE COALESCE(location, '') != '' ORDER BY location")
        locations = [row["location"] for row in cur.fetchall()]

        bounds = _budget_bounds(conn)
    except sqlite3.Error as e:
        if IS_DEV:
            print(f"[PROPERTIES] DB error: {e}")
        raise HTTPException(status_code=500, detail="Database error")
    finally:
        conn.close()

    return FilterOptionsResponse(
        property_types=property_types,
        configurations=sorted(configurations),
        locations=locations,
        possession_options=list(POSSESSION_OPTIONS),
        price_range=bounds,
    )


@router.get("/price-range", response_model=PriceRange)
def price_range() -> PriceRange:
    conn = get_db()
    try:
        return _budget_bounds(conn)
    except sqlite3.Error as e:
        if IS_DEV:
            print(f"[PROPERTIES] DB error: {e}")
        raise HTTPException(status_code=500, detail="Database error")
    finally:
        conn.close()


@router.get("/wizard-properties", response_model=WizardResponse)
def wizard_properties(
    min_price: Optional[str] = Query(None),
    max_price: Optional[str] = Query(None),
    budget: Optional[str] = Query(None, description="e.g. under-50l, 1cr-1.5cr, above-2cr"),
    location: Optional[str] = Query(None),
    property_type: Optional[str] = Query(None),
    configurations: Optional[str] = Query(None),
    construction_status: Optional[str] = Query(None),
    community_type: Optional[str] = Query(None),
    possession_timeline: Optional[str] = Query(None),
    matcher: LocationMatcher = Depends(get_location_matcher),
) -> WizardResponse:
    """Find My Home: the listing filters plus budget keywords and possession timelines."""
    filters = PropertyFilters.from_query(
        min_price=min_price,
        max_price=max_price,
        budget=budget,
        location=location,
        property_type=property_type,
        configurations=configurations,
        construction_status=construction_status,
        community_type=community_type,
        possession_timeline=possession_timeline,
    )
    records = search_properties(filters, matcher)
    return WizardResponse(properties=records, total=len(records), filters=filters.applied())


# ---------------------------------------------------------
# Nearby places
# ---------------------------------------------------------
def _parse_coordinate(value: Optional[str], name: str, limit: float) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid {name} parameter")
    if math.isnan(number) or abs(number) > limit:
        raise HTTPException(status_code=400, detail=f"Invalid {name} parameter")
    return number


@router.get("/property-nearby-places", response_model=NearbyPlacesResponse)
def property_nearby_places(
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    property_name: Optional[str] = Query(None, max_length=200),
    location: Optional[str] = Query(None, max_length=200),
    refresh: bool = Query(False, description="Bypass the cache"),
    service: NearbyPlacesService = Depends(get_nearby_service),
) -> NearbyPlacesResponse:
    """
    Nearby amenities and transit for coordinates, or for a property name that
    is geocoded first. Results are cached permanently per rounded coordinate.
    """
    if service.client is None:
        raise HTTPException(status_code=500, detail="Maps API key not available")

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    if lat and lng:
        latitude = _parse_coordinate(lat, "lat", 90)
        longitude = _parse_coordinate(lng, "lng", 180)

    # Zero coordinates mean "unknown" for imported listings
    if not has_coordinates(latitude, longitude):
        if not property_name or not property_name.strip():
            raise HTTPException(
                status_code=400,
                detail="Missing required parameters: either lat/lng coordinates or property_name",
            )
        query = f"{property_name.strip()} {location or DEFAULT_CITY}"
        try:
            coords = service.client.geocode(query)
        except MapsError as e:
            print(f"[NEARBY] Geocoding failed for {property_name!r}: {e}")
            coords = None
        if coords is None or not has_coordinates(*coords):
            raise HTTPException(status_code=404, detail="Could not geocode property location")
        latitude, longitude = coords

    result, cached = service.lookup(latitude, longitude, refresh=refresh)
    return NearbyPlacesResponse(amenities=result.amenities, transit_points=result.transit_points, cached=cached)


@router.get("/nearby-places-cache-stats", response_model=CacheStatsResponse)
def nearby_places_cache_stats(service: NearbyPlacesService = Depends(get_nearby_service)) -> CacheStatsResponse:
    return CacheStatsResponse(**service.stats())


# ---------------------------------------------------------
# Raw listing data
# ---------------------------------------------------------
@router.post("/validate-properties", response_model=ValidatePropertiesResponse)
def validate_properties(records: List[Dict[str, Any]] = Body(...)) -> ValidatePropertiesResponse:
    results: List[RawPropertyValidation] = []
    for raw in records:
        is_valid, errors = validate_raw_property(raw)
        results.append(RawPropertyValidation(project_name=project_label(raw), is_valid=is_valid, errors=errors))
    valid = sum(1 for r in results if r.is_valid)
    return ValidatePropertiesResponse(results=results, valid=valid, invalid=len(results) - valid)


@router.post("/transform-properties", response_model=TransformPropertiesResponse)
def transform_properties(records: List[Dict[str, Any]] = Body(...)) -> TransformPropertiesResponse:
    transformed = [transform_raw_property(raw) for raw in records]
    return TransformPropertiesResponse(properties=transformed, total=len(transformed))


@router.post("/transform-and-import-properties", response_model=ImportPropertiesResponse)
def transform_and_import_properties(
    records: List[Dict[str, Any]] = Body(...),
    ctx: AdminContext = Depends(require_admin_context),
) -> ImportPropertiesResponse:
    conn = get_db()
    try:
        summary = import_properties(conn, records)
    except sqlite3.Error as e:
        if IS_DEV:
            print(f"[IMPORT] DB error: {e}")
        raise HTTPException(status_code=500, detail="Database error")
    finally:
        conn.close()
    print(f"[IMPORT] Import run by admin_id={ctx.admin_id}")
    return ImportPropertiesResponse(**summary)


# ---------------------------------------------------------
# Leads
# ---------------------------------------------------------
@router.post("/contact-inquiries", response_model=ContactInquiryResponse, status_code=201)
def create_contact_inquiry(request: ContactInquiryCreate) -> ContactInquiryResponse:
    now = datetime.utcnow().isoformat() + "Z"
    meeting_time = request.meeting_time.isoformat() if request.meeting_time else None

    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO contact_inquiries (name, phone, email, meeting_time, property_id, property_name, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                request.name,
                request.phone,
                request.email,
                meeting_time,
                request.property_id,
                request.property_name,
                now,
            ),
        )
        inquiry_id = cur.lastrowid
        conn.commit()
        cur.execute("SELECT * FROM contact_inquiries WHERE id = ?", (inquiry_id,))
        row = cur.fetchone()
    except sqlite3.Error as e:
        if IS_DEV:
            print(f"[INQUIRY] DB error: {e}")
        raise HTTPException(status_code=500, detail="Database error")
    finally:
        conn.close()

    print(f"[INQUIRY] New inquiry id={inquiry_id} for property={request.property_id or '-'}")
    return ContactInquiryResponse(**row_to_dict(row))
