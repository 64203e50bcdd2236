# frontend/comparison.py
# Pure helpers for listing tables, price formatting and side-by-side comparison.
# No Streamlit calls here so the logic can be unit tested.

from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd

CRORE = 10_000_000
LAKH = 100_000

BEST_MARK = " (best)"
WORST_MARK = " (worst)"


def _num(value: Any) -> float:
    """Coerce API values (None, "", strings, NaN) to a float, 0 when unusable."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def format_price_inr(price: Any) -> str:
    """₹x.x Cr from one crore, ₹x.x Lac from one lakh, otherwise grouped rupees."""
    value = _num(price)
    if value >= CRORE:
        return f"₹{value / CRORE:.1f} Cr"
    if value >= LAKH:
        return f"₹{value / LAKH:.1f} Lac"
    return f"₹{value:,.0f}"


def format_price_range(min_price: Any, max_price: Any) -> str:
    low, high = _num(min_price), _num(max_price)
    if low > 0 and high > 0 and low != high:
        return f"{format_price_inr(low)} - {format_price_inr(high)}"
    if low > 0:
        return format_price_inr(low)
    if high > 0:
        return format_price_inr(high)
    return "Price not available"


def best_index(values: Sequence[Any], lower_is_better: bool = False) -> Optional[int]:
    """
    Index of the best positive value, first one wins on ties.
    Non-positive values mean "unknown" and never win.
    """
    best: Optional[int] = None
    for i, raw in enumerate(values):
        value = _num(raw)
        if value <= 0:
            continue
        if best is None:
            best = i
            continue
        current = _num(values[best])
        if (value < current) if lower_is_better else (value > current):
            best = i
    return best


def worst_index(values: Sequence[Any], lower_is_better: bool = False) -> Optional[int]:
    """Index of the worst positive value; None unless at least two values differ."""
    known = [_num(v) for v in values if _num(v) > 0]
    if len(known) < 2 or len(set(known)) < 2:
        return None
    return best_index(values, lower_is_better=not lower_is_better)


# --------------------------------------------------------------------
# Per-listing values
# --------------------------------------------------------------------

def min_price_of(prop: Dict[str, Any]) -> float:
    return _num(prop.get("minimum_budget")) or _num(prop.get("price"))


def average_price_of(prop: Dict[str, Any]) -> float:
    low, high = min_price_of(prop), _num(prop.get("maximum_budget"))
    if low and high:
        return (low + high) / 2
    return low or high


def average_size_of(prop: Dict[str, Any]) -> float:
    low, high = _num(prop.get("min_size_sqft")), _num(prop.get("max_size_sqft"))
    if low and high:
        return (low + high) / 2
    return low or high


def format_size_range(prop: Dict[str, Any]) -> str:
    low, high = _num(prop.get("min_size_sqft")), _num(prop.get("max_size_sqft"))
    if low and high and low != high:
        return f"{low:,.0f} - {high:,.0f} sq ft"
    if low or high:
        return f"{(low or high):,.0f} sq ft"
    return "N/A"


def _text(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "N/A"
    text = str(value).strip()
    return text or "N/A"


# (label, display, metric for best/worst or None, lower_is_better)
ComparisonMetric = Tuple[str, Callable[[Dict[str, Any]], str], Optional[Callable[[Dict[str, Any]], float]], bool]

COMPARISON_METRICS: List[ComparisonMetric] = [
    ("Location", lambda p: _text(p.get("location")), None, False),
    ("Developer", lambda p: _text(p.get("developer_name")), None, False),
    ("Property Type", lambda p: _text(p.get("property_type")), None, False),
    ("Configurations", lambda p: _text(p.get("configurations")), None, False),
    (
        "Price Range",
        lambda p: format_price_range(min_price_of(p), p.get("maximum_budget")),
        average_price_of,
        True,
    ),
    (
        "Price/sq ft",
        lambda p: f"₹{_num(p.get('price_per_sqft')):,.0f}" if _num(p.get("price_per_sqft")) else "N/A",
        lambda p: _num(p.get("price_per_sqft")),
        True,
    ),
    ("Starting Price", lambda p: format_price_inr(min_price_of(p)) if min_price_of(p) else "N/A", min_price_of, True),
    ("Size Range", format_size_range, average_size_of, False),
    (
        "Total Units",
        lambda p: f"{int(_num(p.get('total_units')))}" if _num(p.get("total_units")) else "N/A",
        lambda p: _num(p.get("total_units")),
        False,
    ),
    (
        "Area Size",
        lambda p: f"{_num(p.get('area_size_acres')):g} acres" if _num(p.get("area_size_acres")) else "N/A",
        lambda p: _num(p.get("area_size_acres")),
        False,
    ),
    ("Construction Status", lambda p: _text(p.get("construction_status")), None, False),
    ("Possession", lambda p: _text(p.get("possession_date")), None, False),
    ("RERA Number", lambda p: _text(p.get("rera_number")), None, False),
]


def _column_names(properties: List[Dict[str, Any]]) -> List[str]:
    names: List[str] = []
    for i, prop in enumerate(properties, start=1):
        name = _text(prop.get("project_name"))
        # Distinct headers even when two listings share a name
        names.append(name if name not in names else f"{name} #{i}")
    return names


def comparison_rows(properties: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    One row per metric with a column per listing. Numeric metrics mark the
    best cell with " (best)" and, when values differ, the worst with " (worst)".
    """
    columns = _column_names(properties)
    rows: List[Dict[str, str]] = []
    for label, display, metric, lower_is_better in COMPARISON_METRICS:
        cells = [display(p) for p in properties]
        if metric is not None and len(properties) > 1:
            values = [metric(p) for p in properties]
            best = best_index(values, lower_is_better)
            worst = worst_index(values, lower_is_better)
            if best is not None:
                cells[best] += BEST_MARK
            if worst is not None and worst != best:
                cells[worst] += WORST_MARK
        row = {"Metric": label}
        row.update(zip(columns, cells))
        rows.append(row)
    return rows


def comparison_frame(properties: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(comparison_rows(properties)).set_index("Metric")


def comparison_csv(properties: List[Dict[str, Any]]) -> str:
    """CSV export of the comparison table (the download on the Compare page)."""
    return comparison_frame(properties).to_csv()


# --------------------------------------------------------------------
# Listing tables
# --------------------------------------------------------------------

def listings_frame(properties: List[Dict[str, Any]]) -> pd.DataFrame:
    """Results table for the All Properties and Find My Home pages."""
    rows = [
        {
            "Project": _text(p.get("project_name")),
            "Developer": _text(p.get("developer_name")),
            "Location": _text(p.get("location")),
            "Type": _text(p.get("property_type")),
            "Configurations": _text(p.get("configurations")),
            "Price": format_price_range(min_price_of(p), p.get("maximum_budget")),
            "Price/sq ft": _num(p.get("price_per_sqft")) or None,
            "Possession": _text(p.get("possession_date")),
        }
        for p in properties
    ]
    return pd.DataFrame(
        rows,
        columns=["Project", "Developer", "Location", "Type", "Configurations", "Price", "Price/sq ft", "Possession"],
    )


def has_coordinates(lat: Any, lng: Any) -> bool:
    """Both values numeric and non-zero; listings never geocoded carry 0."""
    if isinstance(lat, bool) or isinstance(lng, bool):
        return False
    return _num(lat) != 0 and _num(lng) != 0


def map_points(properties: List[Dict[str, Any]]) -> pd.DataFrame:
    """lat/lon frame for st.map; listings without coordinates are left out."""
    points = []
    for p in properties:
        lat, lng = p.get("latitude"), p.get("longitude")
        if not has_coordinates(lat, lng):
            continue
        points.append({"lat": _num(lat), "lon": _num(lng), "project": _text(p.get("project_name"))})
    return pd.DataFrame(points, columns=["lat", "lon", "project"])


def nearby_query(prop: Dict[str, Any], default_city: str) -> Dict[str, Any]:
    """Nearby-places params: coordinates when known, else the name to geocode."""
    if has_coordinates(prop.get("latitude"), prop.get("longitude")):
        return {"lat": _num(prop["latitude"]), "lng": _num(prop["longitude"])}
    return {
        "property_name": prop.get("project_name") or "",
        "location": prop.get("area") or prop.get("location") or default_city,
    }


def label_for(prop: Dict[str, Any]) -> str:
    """Selectbox label: "Project - Location"."""
    return f"{_text(prop.get('project_name'))} - {_text(prop.get('location'))}"


def select_by_ids(properties: List[Dict[str, Any]], ids: Sequence[str]) -> List[Dict[str, Any]]:
    """Keep the order of `ids`; unknown ids are dropped."""
    by_id = {p.get("id"): p for p in properties}
    return [by_id[i] for i in ids if i in by_id]
