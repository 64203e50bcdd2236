"""
backend/property_filters.py

Listing filters shared by the All Properties page and the Find My Home wizard.

Two layers:
- build_where_clause(): parameterized SQL for scalar columns (search, type,
  status, community, budget overlap, price per sqft)
- matches_post_filters(): in-Python checks that need parsing (BHK counts,
  configuration tokens, possession dates)

Location is handled separately by LocationMatcher, which combines a text
match on the listing's location with reverse-geocoded area names and an
optional radius around every matched listing.
"""

from __future__ import annotations

import re
import time
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

try:
    from backend.config import IS_DEV
    from backend.geo import has_coordinates, haversine_km
except ModuleNotFoundError:
    from config import IS_DEV
    from geo import has_coordinates, haversine_km


# Budget keywords used by the wizard (INR; 1 L = 100,000, 1 Cr = 10,000,000)
BUDGET_PRESETS: Dict[str, Tuple[Optional[float], Optional[float]]] = {
    "under-50l": (None, 5_000_000),
    "50l-75l": (5_000_000, 7_500_000),
    "75l-1cr": (7_500_000, 10_000_000),
    "1cr-1.5cr": (10_000_000, 15_000_000),
    "1.5cr-2cr": (15_000_000, 20_000_000),
    "above-2cr": (20_000_000, None),
}

POSSESSION_OPTIONS = ["Ready to Move", "New Launch"]

POSSESSION_TIMELINES = ("ready", "within-1-year", "1-2-years", "2-3-years", "3-plus-years")

_READY_STATUSES = ("ready", "completed", "ready to move")
_LAUNCH_STATUSES = ("new launch", "under construction", "launch", "pre-launch", "ongoing")

_DATE_FORMATS = ("%d-%m-%Y", "%Y-%m-%d", "%d/%m/%Y", "%m/%Y", "%m-%Y", "%b %Y", "%B %Y", "%Y")

_BHK_GROUP = re.compile(r"((?:\d+\s*(?:&|and|/)\s*)*\d+)\s*BHK", re.IGNORECASE)


# ---------------------------------------------------------
# Query parsing
# ---------------------------------------------------------
def _clean_text(value: Any) -> Optional[str]:
    """'any' and blank mean no filter."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "any":
        return None
    return text


def _clean_number(value: Any) -> Optional[float]:
    """Coerce query numbers; empty, invalid and zero mean no filter."""
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number == 0:  # NaN or zero
        return None
    return number


@dataclass
class PropertyFilters:
    search: Optional[str] = None
    location: Optional[str] = None
    property_type: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    bedrooms: Optional[int] = None
    min_price_per_sqft: Optional[float] = None
    max_price_per_sqft: Optional[float] = None
    configurations: Optional[str] = None
    construction_status: Optional[str] = None
    possession: Optional[str] = None
    community_type: Optional[str] = None
    possession_timeline: Optional[str] = None
    radius_km: float = 0.0

    @classmethod
    def from_query(
        cls,
        search: Any = None,
        location: Any = None,
        property_type: Any = None,
        min_price: Any = None,
        max_price: Any = None,
        bedrooms: Any = None,
        min_price_per_sqft: Any = None,
        max_price_per_sqft: Any = None,
        configurations: Any = None,
        construction_status: Any = None,
        possession: Any = None,
        community_type: Any = None,
        possession_timeline: Any = None,
        radius_km: Any = None,
        budget: Any = None,
    ) -> "PropertyFilters":
        """Build filters from raw query values, applying a budget keyword if given."""
        bedrooms_num = _clean_number(bedrooms)
        filters = cls(
            search=_clean_text(search),
            location=_clean_text(location),
            property_type=_clean_text(property_type),
            min_price=_clean_number(min_price),
            max_price=_clean_number(max_price),
            bedrooms=int(bedrooms_num) if bedrooms_num is not None else None,
            min_price_per_sqft=_clean_number(min_price_per_sqft),
            max_price_per_sqft=_clean_number(max_price_per_sqft),
            configurations=_clean_text(configurations),
            construction_status=_clean_text(construction_status),
            possession=_clean_text(possession),
            community_type=_clean_text(community_type),
            possession_timeline=_clean_text(possession_timeline),
            radius_km=_clean_number(radius_km) or 0.0,
        )

        budget_key = _clean_text(budget)
        if budget_key:
            preset = BUDGET_PRESETS.get(budget_key.lower())
            if preset is None:
                if IS_DEV:
                    print(f"[FILTERS] Unknown budget keyword ignored: {budget_key!r}")
            else:
                low, high = preset
                if low is not None:
                    filters.min_price = low
                if high is not None:
                    filters.max_price = high
        return filters

    def applied(self) -> Dict[str, Any]:
        """Only the filters that are set (echoed back by the wizard)."""
        return {k: v for k, v in asdict(self).items() if v not in (None, 0, 0.0)}


# ---------------------------------------------------------
# SQL layer
# ---------------------------------------------------------
def build_where_clause(filters: PropertyFilters) -> Tuple[str, List[Any]]:
    """
    Build a parameterized WHERE clause for the scalar filters.

    Budget matching uses the listing's range [minimum_budget or price,
    maximum_budget or price] and keeps listings overlapping the requested range.
    """
    clauses: List[str] = []
    params: List[Any] = []

    if filters.search:
        pattern = f"%{filters.search.lower()}%"
        clauses.append(
            "(LOWER(project_name) LIKE ?"
            " OR LOWER(COALESCE(developer_name, '')) LIKE ?"
            " OR LOWER(COALESCE(location, '')) LIKE ?"
            " OR LOWER(COALESCE(rera_number, '')) LIKE ?)"
        )
        params.extend([pattern] * 4)

    if filters.property_type:
        clauses.append("LOWER(property_type) = ?")
        params.append(filters.property_type.lower())

    if filters.construction_status:
        clauses.append("LOWER(construction_status) = ?")
        params.append(filters.construction_status.lower())

    if filters.community_type:
        clauses.append("LOWER(community_type) = ?")
        params.append(filters.community_type.lower())

    if filters.min_price is not None:
        clauses.append("COALESCE(NULLIF(maximum_budget, 0), price) >= ?")
        params.append(filters.min_price)

    if filters.max_price is not None:
        clauses.append("COALESCE(NULLIF(minimum_budget, 0), price) <= ?")
        params.append(filters.max_price)

    if filters.min_price_per_sqft is not None:
        clauses.append("price_per_sqft >= ?")
        params.append(filters.min_price_per_sqft)

    if filters.max_price_per_sqft is not None:
        clauses.append("price_per_sqft <= ?")
        params.append(filters.max_price_per_sqft)

    if not clauses:
        return "1=1", params
    return " AND ".join(clauses), params


# ---------------------------------------------------------
# Python layer
# ---------------------------------------------------------
def bhk_counts(configurations: Optional[str]) -> Set[int]:
    """Bedroom counts mentioned in a configurations string ('4&5 BHK' -> {4, 5})."""
    if not configurations:
        return set()
    counts: Set[int] = set()
    for group in _BHK_GROUP.findall(configurations):
        counts.update(int(n) for n in re.findall(r"\d+", group))
    return counts


def _squash(text: str) -> str:
    return re.sub(r"\s+", "", text).lower()


def parse_possession_date(value: Any) -> Optional[date]:
    """Parse the free-form possession dates found in listing data."""
    if not value:
        return None
    text = str(value).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _status_in(status: Optional[str], candidates: Tuple[str, ...]) -> bool:
    if not status:
        return False
    status_lower = status.lower()
    return any(c in status_lower for c in candidates)


def matches_possession(record: Dict[str, Any], possession: str, today: Optional[date] = None) -> bool:
    """'Ready to Move' / 'New Launch' check against status and possession date."""
    today = today or date.today()
    status = record.get("construction_status")
    possession_on = parse_possession_date(record.get("possession_date"))
    wanted = possession.lower()

    if wanted == "ready to move":
        return _status_in(status, _READY_STATUSES) or (possession_on is not None and possession_on <= today)
    if wanted == "new launch":
        return _status_in(status, _LAUNCH_STATUSES) or (possession_on is not None and possession_on > today)
    # Unknown option: fall back to a plain text match on the status
    return bool(status) and wanted in status.lower()


def matches_timeline(record: Dict[str, Any], timeline: str, today: Optional[date] = None) -> bool:
    """Possession timeline buckets measured from today."""
    today = today or date.today()
    timeline = timeline.lower()
    possession_on = parse_possession_date(record.get("possession_date"))

    if timeline == "ready":
        if _status_in(record.get("construction_status"), _READY_STATUSES):
            return True
        return possession_on is not None and possession_on <= today

    if possession_on is None or possession_on <= today:
        return False

    days = (possession_on - today).days
    one_year = 365
    if timeline == "within-1-year":
        return days <= one_year
    if timeline == "1-2-years":
        return one_year < days <= 2 * one_year
    if timeline == "2-3-years":
        return 2 * one_year < days <= 3 * one_year
    if timeline == "3-plus-years":
        return days > 3 * one_year
    return False


def matches_post_filters(record: Dict[str, Any], filters: PropertyFilters, today: Optional[date] = None) -> bool:
    """Filters that need parsing beyond what SQL can do cleanly."""
    if filters.bedrooms is not None:
        counts = bhk_counts(record.get("configurations"))
        if counts:
            if filters.bedrooms not in counts:
                return False
        elif record.get("bedrooms") != filters.bedrooms:
            return False

    if filters.configurations:
        listing_configs = _squash(record.get("configurations") or "")
        wanted = [_squash(token) for token in filters.configurations.split(",") if token.strip()]
        if wanted and not any(token in listing_configs for token in wanted):
            return False

    if filters.possession and not matches_possession(record, filters.possession, today):
        return False

    if filters.possession_timeline and not matches_timeline(record, filters.possession_timeline, today):
        return False

    return True


# ---------------------------------------------------------
# Location + radius matching
# ---------------------------------------------------------
AreaLookup = Callable[[float, float], List[str]]


class LocationMatcher:
    """
    Match listings against one or more location names.

    A listing matches a term when its location text contains it, or when any
    reverse-geocoded area name for its coordinates contains it. With a radius,
    listings within radius_km of any matched listing are added as well.

    Area names are cached per coordinate pair for the life of the matcher.
    """

    def __init__(
        self,
        area_lookup: Optional[AreaLookup] = None,
        batch_size: int = 5,
        batch_delay: float = 0.1,
    ) -> None:
        self.area_lookup = area_lookup
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self.area_cache: Dict[str, List[str]] = {}

    def areas_for(self, record: Dict[str, Any]) -> Tuple[List[str], bool]:
        """Return (areas, looked_up) where looked_up is True if the lookup was called."""
        lat, lng = record.get("latitude"), record.get("longitude")
        if not has_coordinates(lat, lng):
            return [], False

        key = f"{lat},{lng}"
        if key in self.area_cache:
            return self.area_cache[key], False
        if self.area_lookup is None:
            return [], False

        try:
            areas = list(self.area_lookup(float(lat), float(lng)))
            if IS_DEV:
                print(f"[LOCATION] Areas for {record.get('project_name')}: {', '.join(areas)}")
        except Exception as e:
            print(f"[LOCATION] Area lookup failed for property {record.get('id')}: {e}")
            areas = []
        self.area_cache[key] = areas
        return areas, True

    def match(self, properties: List[Dict[str, Any]], location: str, radius_km: float = 0.0) -> List[Dict[str, Any]]:
        terms = [t.strip() for t in location.lower().split(",") if t.strip()]
        print(f"[LOCATION] Filtering by locations: {', '.join(terms)} (radius={radius_km}km)")

        matched: List[Dict[str, Any]] = []
        matched_ids: Set[Any] = set()
        references: List[Tuple[float, float, str]] = []

        def add(record: Dict[str, Any], source: str) -> None:
            matched.append(record)
            matched_ids.add(record.get("id"))
            if has_coordinates(record.get("latitude"), record.get("longitude")):
                references.append((float(record["latitude"]), float(record["longitude"]), source))

        for term in terms:
            text_hits = [
                p for p in properties
                if term in (p.get("location") or "").lower() and p.get("id") not in matched_ids
            ]
            for record in text_hits:
                add(record, f"{record.get('project_name')} (location match: {term})")
            print(f"[LOCATION] {len(text_hits)} properties match location text {term!r}")

            candidates = [
                p for p in properties
                if has_coordinates(p.get("latitude"), p.get("longitude")) and p.get("id") not in matched_ids
            ]
            area_hits = 0
            for start in range(0, len(candidates), self.batch_size):
                batch = candidates[start:start + self.batch_size]
                looked_up_any = False
                for record in batch:
                    areas, looked_up = self.areas_for(record)
                    looked_up_any = looked_up_any or looked_up
                    if any(term in area.lower() for area in areas):
                        add(record, f"{record.get('project_name')} (area match: {term})")
                        area_hits += 1
                # Pace the geocoding API between batches
                if looked_up_any and self.batch_delay > 0 and start + self.batch_size < len(candidates):
                    time.sleep(self.batch_delay)
            if area_hits:
                print(f"[LOCATION] {area_hits} more properties match area {term!r} through coordinates")

        if references and radius_km > 0:
            nearby: List[Dict[str, Any]] = []
            for record in properties:
                if record.get("id") in matched_ids:
                    continue
                if not has_coordinates(record.get("latitude"), record.get("longitude")):
                    continue
                for ref_lat, ref_lng, source in references:
                    distance = haversine_km(record["latitude"], record["longitude"], ref_lat, ref_lng)
                    if distance <= radius_km:
                        if IS_DEV:
                            print(f"[LOCATION] {record.get('project_name')} is {distance:.2f}km from {source}")
                        nearby.append(record)
                        break
            for record in nearby:
                matched.append(record)
                matched_ids.add(record.get("id"))
            print(f"[LOCATION] {len(nearby)} additional properties within {radius_km}km")

        return matched
