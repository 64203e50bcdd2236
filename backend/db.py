# backend/db.py
# SQLite access layer: connections, row helpers and idempotent schema setup

from __future__ import annotations

import json
import sqlite3
from pathlib import Path as FsPath
from typing import Any, Dict, List, Optional

try:
    from backend import config
except ModuleNotFoundError:
    import config


def get_db_path() -> str:
    """Resolve DATABASE_PATH (relative paths live next to this module).

    Read on every call so tests can point config.DATABASE_PATH at a temp file.
    """
    path = FsPath(config.DATABASE_PATH)
    if not path.is_absolute():
        path = FsPath(__file__).resolve().parent / path
    return str(path)


def get_db() -> sqlite3.Connection:
    """
    Create and return a SQLite connection with Row factory.
    Callers are responsible for closing it.
    """
    conn = sqlite3.connect(get_db_path(), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def row_to_dict(row) -> dict:
    """
    Safely convert a sqlite3.Row to dict.

    Returns {} for None so callers can use .get() unconditionally.
    """
    if row is None:
        return {}
    return dict(row)


def dumps_json(value: Any) -> Optional[str]:
    """Serialize a list/dict column value (None stays NULL)."""
    if value is None:
        return None
    return json.dumps(value)


def loads_json(value: Optional[str], default: Any = None) -> Any:
    """Parse a JSON column, returning default for NULL or malformed data."""
    if value is None or value == "":
        return default
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return default


# Columns of the properties table stored as JSON text
PROPERTY_JSON_COLUMNS = (
    "configuration_details",
    "amenities",
    "images",
    "nearby_locations",
    "loan_approved_banks",
    "data",
)


def normalize_configurations(value: Any) -> List[Dict[str, Any]]:
    """
    Coerce a stored configuration_details value into a list of detail dicts.

    JSON text is parsed (repeatedly, for values encoded more than once); plain
    text becomes a single detail named after it; anything else is [].
    """
    if isinstance(value, list):
        return [detail for detail in value if isinstance(detail, dict)]
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return [{"type": value, "sizeRange": 0, "sizeUnit": "Sq ft", "facing": "N/A", "BaseProjectPrice": 0}]
        if isinstance(parsed, (str, list)):
            return normalize_configurations(parsed)
        return []
    return []


def property_row_to_dict(row) -> Dict[str, Any]:
    """Convert a properties row into a plain dict with JSON columns decoded."""
    record = row_to_dict(row)
    for column in PROPERTY_JSON_COLUMNS:
        if column not in record:
            continue
        if column == "configuration_details":
            record[column] = normalize_configurations(record[column])
            continue
        expected = dict if column == "data" else list
        value = loads_json(record[column])
        # Legacy rows can hold a JSON-encoded string instead of the value itself
        if isinstance(value, str):
            value = loads_json(value)
        record[column] = value if isinstance(value, expected) else expected()
    if "is_gated_community" in record and record["is_gated_community"] is not None:
        record["is_gated_community"] = bool(record["is_gated_community"])
    return record


def init_db() -> None:
    """Create all tables and indexes if missing. Safe to run repeatedly."""
    conn = get_db()
    cur = conn.cursor()

    # Property listings
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS properties (
            id TEXT PRIMARY KEY,
            property_id TEXT,
            project_name TEXT NOT NULL,
            name TEXT,
            developer_name TEXT,
            rera_number TEXT,
            location TEXT,
            property_type TEXT DEFAULT 'Residential',
            construction_status TEXT,
            possession_date TEXT,
            community_type TEXT,
            is_gated_community INTEGER,
            total_units INTEGER,
            area_size_acres REAL,

            configurations TEXT,
            configuration_details TEXT,
            min_size_sqft REAL,
            max_size_sqft REAL,
            bedrooms INTEGER,
            bathrooms INTEGER,

            price REAL DEFAULT 0,
            price_per_sqft REAL,
            minimum_budget REAL,
            maximum_budget REAL,

            latitude REAL,
            longitude REAL,

            amenities TEXT,
            images TEXT,
            nearby_locations TEXT,
            loan_approved_banks TEXT,
            description TEXT,
            data TEXT,

            created_at TEXT,
            updated_at TEXT
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_properties_location ON properties(location)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_properties_rera ON properties(rera_number)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_properties_type ON properties(property_type)")

    # Blog admins and their sessions
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS blog_admins (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS admin_sessions (
            id TEXT PRIMARY KEY,
            admin_id INTEGER NOT NULL REFERENCES blog_admins(id),
            created_at TEXT NOT NULL,
            expires_at TEXT NOT NULL,
            revoked_at TEXT
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_admin_sessions_admin ON admin_sessions(admin_id)")

    # Blog content
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS blog_categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            slug TEXT UNIQUE NOT NULL,
            description TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS blog_posts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            slug TEXT UNIQUE NOT NULL,
            excerpt TEXT,
            content TEXT,
            featured_image TEXT,
            category TEXT DEFAULT 'Real Estate',
            status TEXT NOT NULL DEFAULT 'draft',
            author_id INTEGER REFERENCES blog_admins(id),
            published_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_blog_posts_status ON blog_posts(status, published_at)")

    # Leads captured from listing pages
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS contact_inquiries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            phone TEXT NOT NULL,
            email TEXT,
            meeting_time TEXT,
            property_id TEXT,
            property_name TEXT,
            created_at TEXT NOT NULL
        )
        """
    )

    conn.commit()
    conn.close()
    if config.IS_DEV:
        print(f"[MIGRATION] Ensured schema at {get_db_path()}")
