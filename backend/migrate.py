# backend/migrate.py
# Schema setup and one-off data maintenance for the SQLite database
# Run: python -m backend.migrate [--seed-blog] [--import FILE] [--fix-configurations] [--dedupe]

import argparse
import json
import sqlite3
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from backend.auth_context import hash_password
from backend.config import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME
from backend.db import dumps_json, get_db, get_db_path, init_db, normalize_configurations
from backend.models import BlogCategory, BlogPost, PostStatus
from backend.property_import import import_properties

DEFAULT_CATEGORIES = [
    BlogCategory(name="Real Estate", slug="real-estate", description="Latest trends and insights in real estate"),
    BlogCategory(name="Investment Tips", slug="investment-tips", description="Smart investment strategies for property buyers"),
    BlogCategory(name="Market Analysis", slug="market-analysis", description="In-depth analysis of property markets"),
    BlogCategory(name="NRI Guide", slug="nri-guide", description="Complete guide for NRI property investments"),
]

WELCOME_CONTENT = """# Welcome to Relai Blog

We're excited to launch our blog where we'll share valuable insights about real estate investment, market trends, and expert advice to help you make informed property decisions.

## What You'll Find Here

- **Market Analysis**: Deep dives into property market trends
- **Investment Tips**: Strategies to maximize your property returns
- **NRI Guidance**: Specialized advice for overseas investors
- **Industry News**: Latest developments in real estate

Stay tuned for regular updates and expert insights from our team!
"""


def _iso(moment: datetime) -> str:
    return moment.isoformat() + "Z"


def run_migrations() -> None:
    """Create tables and indexes if missing. Safe to run multiple times."""
    print("[MIGRATE] Starting database migrations...")
    init_db()
    print(f"[MIGRATE] Schema ready at {get_db_path()}")


def seed_blog(conn: sqlite3.Connection) -> Dict[str, int]:
    """Default admin, the four default categories and a welcome post. Existing rows are kept."""
    created = {"admins": 0, "categories": 0, "posts": 0}
    cur = conn.cursor()

    cur.execute("SELECT id FROM blog_admins WHERE username = ?", (DEFAULT_ADMIN_USERNAME,))
    row = cur.fetchone()
    if row:
        admin_id = row["id"]
        print(f"[MIGRATE] Admin {DEFAULT_ADMIN_USERNAME!r} already exists")
    else:
        cur.execute(
            "INSERT INTO blog_admins (username, password_hash, created_at) VALUES (?, ?, ?)",
            (DEFAULT_ADMIN_USERNAME, hash_password(DEFAULT_ADMIN_PASSWORD), _iso(datetime.utcnow())),
        )
        admin_id = cur.lastrowid
        created["admins"] += 1
        print(f"[MIGRATE] Created default admin user {DEFAULT_ADMIN_USERNAME!r}")

    for category in DEFAULT_CATEGORIES:
        cur.execute("SELECT id FROM blog_categories WHERE slug = ?", (category.slug,))
        if cur.fetchone():
            continue
        cur.execute(
            "INSERT INTO blog_categories (name, slug, description, created_at) VALUES (?, ?, ?, ?)",
            (category.name, category.slug, category.description, _iso(category.created_at)),
        )
        created["categories"] += 1
        print(f"[MIGRATE] Created category {category.name!r}")

    now = datetime.utcnow()
    welcome = BlogPost(
        title="Welcome to Relai Blog",
        slug="welcome-to-relai-blog",
        excerpt="Discover the latest insights, trends, and expert advice in real estate investment with Relai.",
        content=WELCOME_CONTENT,
        status=PostStatus.published,
        author_id=admin_id,
        published_at=now,
        created_at=now,
        updated_at=now,
    )
    cur.execute("SELECT id FROM blog_posts WHERE slug = ?", (welcome.slug,))
    if not cur.fetchone():
        cur.execute(
            """
            INSERT INTO blog_posts (
                title, slug, excerpt, content, category, status,
                author_id, published_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                welcome.title,
                welcome.slug,
                welcome.excerpt,
                welcome.content,
                welcome.category,
                welcome.status.value,
                welcome.author_id,
                _iso(now),
                _iso(now),
                _iso(now),
            ),
        )
        created["posts"] += 1
        print("[MIGRATE] Created welcome post")

    conn.commit()
    return created


def import_file(conn: sqlite3.Connection, path: str) -> Dict[str, Any]:
    """Import a JSON file holding a list of raw listing records."""
    with open(path, "r", encoding="utf-8") as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise ValueError(f"{path} must contain a JSON array of properties")
    return import_properties(conn, records)


def fix_configurations(conn: sqlite3.Connection) -> Dict[str, int]:
    """Rewrite configuration_details stored as non-list JSON or plain text as a JSON list."""
    fixed = skipped = 0
    cur = conn.cursor()
    cur.execute("SELECT id, project_name, configuration_details FROM properties")
    for row in cur.fetchall():
        raw = row["configuration_details"]
        if raw is None:
            skipped += 1
            continue
        try:
            current: Any = json.loads(raw)
        except ValueError:
            current = raw
        if isinstance(current, list):
            skipped += 1
            continue
        details = normalize_configurations(current)
        conn.execute(
            "UPDATE properties SET configuration_details = ?, updated_at = ? WHERE id = ?",
            (dumps_json(details), _iso(datetime.utcnow()), row["id"]),
        )
        fixed += 1
        print(f"[MIGRATE] Fixed configurations for {row['project_name']!r}")
    conn.commit()
    return {"fixed": fixed, "skipped": skipped}


def dedupe_properties(conn: sqlite3.Connection) -> Dict[str, int]:
    """
    Make project name + location unique. The first listing of each group
    (by created_at, then id) keeps its name; later ones get " (Duplicate N)".
    Blank names/locations become "Unknown Project N" / "Unknown Location".
    """
    renamed = filled = 0
    cur = conn.cursor()
    now = _iso(datetime.utcnow())

    cur.execute(
        """
        SELECT id, project_name, location FROM properties
        WHERE COALESCE(project_name, '') != '' AND COALESCE(location, '') != ''
        ORDER BY created_at, id
        """
    )
    groups: Dict[tuple, List[str]] = {}
    names: Dict[str, str] = {}
    for row in cur.fetchall():
        groups.setdefault((row["project_name"], row["location"]), []).append(row["id"])
        names[row["id"]] = row["project_name"]

    for (project_name, _location), ids in groups.items():
        for n, property_id in enumerate(ids[1:], start=1):
            new_name = f"{project_name} (Duplicate {n})"
            conn.execute(
                "UPDATE properties SET project_name = ?, name = ?, updated_at = ? WHERE id = ?",
                (new_name, new_name, now, property_id),
            )
            renamed += 1
            print(f"[MIGRATE] Renamed duplicate {property_id} to {new_name!r}")

    cur.execute(
        """
        SELECT id, project_name, location FROM properties
        WHERE COALESCE(project_name, '') = '' OR COALESCE(location, '') = ''
        ORDER BY created_at, id
        """
    )
    unknown = 0
    for row in cur.fetchall():
        project_name: Optional[str] = row["project_name"]
        location: Optional[str] = row["location"]
        if not project_name:
            unknown += 1
            project_name = f"Unknown Project {unknown}"
        if not location:
            location = "Unknown Location"
        conn.execute(
            "UPDATE properties SET project_name = ?, name = ?, location = ?, updated_at = ? WHERE id = ?",
            (project_name, project_name, location, now, row["id"]),
        )
        filled += 1

    conn.commit()
    return {"renamed": renamed, "filled": filled}


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Relai database migrations and data fixes")
    parser.add_argument("--seed-blog", action="store_true", help="create the default admin, categories and welcome post")
    parser.add_argument("--import", dest="import_path", metavar="FILE", help="import raw listings from a JSON file")
    parser.add_argument("--fix-configurations", action="store_true", help="normalize stored configuration details")
    parser.add_argument("--dedupe", action="store_true", help="rename duplicate project name + location listings")
    args = parser.parse_args(argv)

    run_migrations()

    conn = get_db()
    try:
        if args.seed_blog:
            print(f"[MIGRATE] Blog seed: {seed_blog(conn)}")
        if args.import_path:
            summary = import_file(conn, args.import_path)
            print(f"[MIGRATE] Import: imported={summary['imported']} skipped={summary['skipped']} invalid={summary['invalid']}")
        if args.fix_configurations:
            print(f"[MIGRATE] Configurations: {fix_configurations(conn)}")
        if args.dedupe:
            print(f"[MIGRATE] Dedupe: {dedupe_properties(conn)}")
    except (OSError, ValueError, sqlite3.Error) as e:
        print(f"[MIGRATE] Failed: {e}")
        return 1
    finally:
        conn.close()

    print("[MIGRATE] All migrations complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
