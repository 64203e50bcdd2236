"""
backend/property_import.py

Validation and transformation of raw RERA listing exports.

A raw record looks like:
    {
        "RERA_Number": "P02400008439",
        "ProjectName": "HALLMARK ALTUS",
        "BuilderName": "HALLMARK INFRA HEIGHTS LLP",
        "Area": "Kondapur",
        "Possession_date": "01-06-2029",
        "Price_per_sft": 8999,
        "configurations": [
            {"type": "3 BHK", "sizeRange": 2265, "sizeUnit": "Sq ft",
             "facing": "East", "BaseProjectPrice": 20382735},
            ...
        ]
    }

transform_raw_property() maps it onto the properties table columns.
"""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

try:
    from backend.config import IS_DEV
    from backend.db import PROPERTY_JSON_COLUMNS, dumps_json
    from backend.property_filters import bhk_counts
except ModuleNotFoundError:
    from config import IS_DEV
    from db import PROPERTY_JSON_COLUMNS, dumps_json
    from property_filters import bhk_counts

RAW_FIELDS = (
    "RERA_Number",
    "ProjectName",
    "BuilderName",
    "Area",
    "Possession_date",
    "Price_per_sft",
)

IMPORT_COLUMNS = (
    "id",
    "property_id",
    "project_name",
    "name",
    "developer_name",
    "rera_number",
    "location",
    "property_type",
    "possession_date",
    "configurations",
    "configuration_details",
    "min_size_sqft",
    "max_size_sqft",
    "bedrooms",
    "bathrooms",
    "price",
    "price_per_sqft",
    "minimum_budget",
    "maximum_budget",
    "data",
    "created_at",
    "updated_at",
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def project_label(raw: Any) -> Optional[str]:
    """ProjectName as text for validation reports (None when absent)."""
    if not isinstance(raw, dict) or raw.get("ProjectName") is None:
        return None
    return str(raw["ProjectName"])


def validate_raw_property(raw: Dict[str, Any]) -> Tuple[bool, List[str]]:
    errors: List[str] = []

    if not raw.get("ProjectName"):
        errors.append("ProjectName is required")
    if not raw.get("Area"):
        errors.append("Area is required")

    configurations = raw.get("configurations")
    if not isinstance(configurations, list):
        errors.append("configurations must be an array")
    else:
        for index, config in enumerate(configurations, start=1):
            if not isinstance(config, dict):
                errors.append(f"Configuration {index}: must be an object")
                continue
            if not config.get("type"):
                errors.append(f"Configuration {index}: type is required")
            elif not isinstance(config.get("type"), str):
                errors.append(f"Configuration {index}: type must be a string")
            if not _is_number(config.get("sizeRange")) or not config.get("sizeRange"):
                errors.append(f"Configuration {index}: sizeRange must be a number")
            if not _is_number(config.get("BaseProjectPrice")) or not config.get("BaseProjectPrice"):
                errors.append(f"Configuration {index}: BaseProjectPrice must be a number")

    return not errors, errors


def _property_type(types: List[str]) -> str:
    if any("Commercial" in t or "Office" in t for t in types):
        return "Commercial"
    if any("Plot" in t or "Land" in t for t in types):
        return "Plot"
    return "Residential"


def transform_raw_property(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map a raw record onto properties columns (JSON columns left as Python values)."""
    details = [c for c in (raw.get("configurations") or []) if isinstance(c, dict)]

    types: List[str] = []
    for config in details:
        config_type = config.get("type")
        if config_type is None or isinstance(config_type, (dict, list)):
            continue
        config_type = str(config_type).strip()
        if config_type and config_type not in types:
            types.append(config_type)

    sizes = [c["sizeRange"] for c in details if _is_number(c.get("sizeRange"))]
    prices = [c["BaseProjectPrice"] for c in details if _is_number(c.get("BaseProjectPrice"))]

    bedroom_counts = set()
    for config_type in types:
        bedroom_counts.update(bhk_counts(config_type))
    bedrooms = max(bedroom_counts) if bedroom_counts else None

    project_name = raw.get("ProjectName") or "Unknown Project"
    min_price = min(prices) if prices else 0
    max_price = max(prices) if prices else 0

    return {
        "rera_number": raw.get("RERA_Number"),
        "project_name": project_name,
        "name": project_name,
        "developer_name": raw.get("BuilderName"),
        "location": raw.get("Area") or "Unknown Location",
        "possession_date": raw.get("Possession_date"),
        "price_per_sqft": raw.get("Price_per_sft"),
        "property_type": _property_type(types),
        "price": min_price,
        "minimum_budget": min_price,
        "maximum_budget": max_price,
        "configurations": ", ".join(types),
        "configuration_details": details,
        "min_size_sqft": min(sizes) if sizes else None,
        "max_size_sqft": max(sizes) if sizes else None,
        "bedrooms": bedrooms,
        "bathrooms": max(1, bedrooms // 2) if bedrooms else None,
        "data": {field: raw.get(field) for field in RAW_FIELDS if field in raw},
    }


def import_properties(conn: sqlite3.Connection, raws: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Validate, transform and insert raw records.

    Records whose RERA number already exists are skipped. The caller owns the
    connection; this function commits on success.
    """
    imported = skipped = invalid = 0
    errors: List[Dict[str, Any]] = []
    cur = conn.cursor()
    now = datetime.utcnow().isoformat() + "Z"

    for raw in raws:
        if not isinstance(raw, dict):
            invalid += 1
            errors.append({"project_name": None, "is_valid": False, "errors": ["record must be an object"]})
            continue

        is_valid, problems = validate_raw_property(raw)
        if not is_valid:
            invalid += 1
            errors.append({"project_name": project_label(raw), "is_valid": False, "errors": problems})
            continue

        record = transform_raw_property(raw)
        rera = record.get("rera_number")
        if rera:
            cur.execute("SELECT 1 FROM properties WHERE rera_number = ?", (rera,))
            if cur.fetchone():
                skipped += 1
                if IS_DEV:
                    print(f"[IMPORT] Skipping existing RERA {rera}")
                continue

        record_id = uuid.uuid4().hex
        record.update({"id": record_id, "property_id": rera or record_id, "created_at": now, "updated_at": now})
        values = [
            dumps_json(record.get(column)) if column in PROPERTY_JSON_COLUMNS else record.get(column)
            for column in IMPORT_COLUMNS
        ]
        cur.execute(
            f"INSERT INTO properties ({', '.join(IMPORT_COLUMNS)}) VALUES ({', '.join('?' for _ in IMPORT_COLUMNS)})",
            values,
        )
        imported += 1

    conn.commit()
    print(f"[IMPORT] imported={imported} skipped={skipped} invalid={invalid}")
    return {"imported": imported, "skipped": skipped, "invalid": invalid, "errors": errors}
