"""
backend/test_blog_api.py

Tests for the public blog and the admin blog endpoints.

Tests cover:
- Login, token verification and logout (session revocation)
- Auth enforcement on every admin endpoint
- Post CRUD (slug uniqueness, publish timestamps)
- Public visibility of published posts only
- Categories and captured leads

Run: pytest backend/test_blog_api.py -v
"""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

import backend.config as config_module

# Patch DATABASE_PATH before importing main (main runs init_db at import)
test_db = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
test_db.close()
config_module.DATABASE_PATH = test_db.name

from backend.auth_context import hash_password, verify_password
from backend.db import get_db, init_db
from backend.main import app
from backend.migrate import seed_blog


# ========================================================================
# FIXTURES
# ========================================================================

@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh database seeded like `python -m backend.migrate --seed-blog`."""
    monkeypatch.setattr(config_module, "DATABASE_PATH", str(tmp_path / "blog.db"))
    init_db()
    conn = get_db()
    seed_blog(conn)
    conn.close()
    yield


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def token(client, db):
    resp = client.post("/api/admin/blog/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200
    return resp.json()["token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def new_post(**overrides) -> dict:
    body = {
        "title": "Hyderabad Market Outlook",
        "slug": "hyderabad-market-outlook",
        "excerpt": "Where prices are heading",
        "content": "# Outlook",
        "category": "Market Analysis",
        "status": "draft",
    }
    body.update(overrides)
    return body


# ========================================================================
# PASSWORDS
# ========================================================================

class TestPasswords:
    def test_hash_round_trip(self):
        stored = hash_password("admin123", iterations=1000)
        assert stored.startswith("pbkdf2_sha256$1000$")
        assert verify_password("admin123", stored)
        assert not verify_password("admin124", stored)

    def test_salted(self):
        assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)

    def test_malformed_hash_rejected(self):
        assert not verify_password("admin123", "plaintext")
        assert not verify_password("admin123", "md5$1$salt$abc")


# ========================================================================
# AUTH
# ========================================================================

class TestLogin:
    def test_login_success(self, client, db):
        resp = client.post("/api/admin/blog/login", json={"username": "admin", "password": "admin123"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["user"]["username"] == "admin"
        payload = jwt.decode(data["token"], config_module.SECRET_KEY, algorithms=[config_module.ALGORITHM])
        assert payload["sub"] == str(data["user"]["id"])
        assert payload["sid"]

    @pytest.mark.parametrize(
        "body",
        [{}, {"username": "admin"}, {"username": "admin", "password": "wrong"}, {"username": "ghost", "password": "admin123"}],
    )
    def test_login_failures(self, client, db, body):
        resp = client.post("/api/admin/blog/login", json=body)
        assert resp.status_code == 401

    def test_no_token(self, client, db):
        resp = client.get("/api/admin/blog/posts")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "No token provided"

    def test_garbage_token(self, client, db):
        resp = client.get("/api/admin/blog/posts", headers=auth("not-a-jwt"))
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid or expired token"

    def test_token_signed_with_other_key(self, client, token):
        payload = jwt.decode(token, config_module.SECRET_KEY, algorithms=[config_module.ALGORITHM])
        forged = jwt.encode(payload, "another-key", algorithm="HS256")
        assert client.get("/api/admin/blog/posts", headers=auth(forged)).status_code == 401

    def test_expired_session_rejected(self, client, token):
        conn = get_db()
        past = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat()
        conn.execute("UPDATE admin_sessions SET expires_at = ?", (past,))
        conn.commit()
        conn.close()
        resp = client.get("/api/admin/blog/posts", headers=auth(token))
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid or expired token"

    def test_logout_revokes_token(self, client, token):
        assert client.post("/api/admin/blog/logout", headers=auth(token)).status_code == 200
        resp = client.get("/api/admin/blog/posts", headers=auth(token))
        assert resp.status_code == 401

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/admin/blog/posts"),
            ("post", "/api/admin/blog/posts"),
            ("put", "/api/admin/blog/posts/1"),
            ("delete", "/api/admin/blog/posts/1"),
            ("get", "/api/admin/blog/categories"),
            ("post", "/api/admin/blog/categories"),
            ("get", "/api/admin/contact-inquiries"),
            ("post", "/api/admin/blog/logout"),
        ],
    )
    def test_admin_endpoints_require_token(self, client, db, method, path):
        kwargs = {"json": new_post()} if method in ("post", "put") else {}
        if path.endswith("categories") and method == "post":
            kwargs = {"json": {"name": "Legal", "slug": "legal"}}
        resp = getattr(client, method)(path, **kwargs)
        assert resp.status_code == 401


# ========================================================================
# POSTS
# ========================================================================

class TestAdminPosts:
    def test_create_draft(self, client, token):
        resp = client.post("/api/admin/blog/posts", json=new_post(), headers=auth(token))
        assert resp.status_code == 201
        post = resp.json()
        assert post["status"] == "draft"
        assert post["published_at"] is None
        assert post["author_id"] == 1

    def test_create_published_stamps_published_at(self, client, token):
        post = client.post("/api/admin/blog/posts", json=new_post(status="published"), headers=auth(token)).json()
        assert post["published_at"]

    def test_category_defaults(self, client, token):
        post = client.post("/api/admin/blog/posts", json=new_post(category=None), headers=auth(token)).json()
        assert post["category"] == "Real Estate"

    def test_duplicate_slug(self, client, token):
        client.post("/api/admin/blog/posts", json=new_post(), headers=auth(token))
        resp = client.post("/api/admin/blog/posts", json=new_post(title="Again"), headers=auth(token))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Slug already exists"

    def test_invalid_slug(self, client, token):
        resp = client.post("/api/admin/blog/posts", json=new_post(slug="Not A Slug"), headers=auth(token))
        assert resp.status_code == 422

    def test_list_includes_drafts_newest_first(self, client, token):
        client.post("/api/admin/blog/posts", json=new_post(), headers=auth(token))
        posts = client.get("/api/admin/blog/posts", headers=auth(token)).json()
        assert [p["slug"] for p in posts] == ["hyderabad-market-outlook", "welcome-to-relai-blog"]

    def test_update_publish_then_draft(self, client, token):
        post = client.post("/api/admin/blog/posts", json=new_post(), headers=auth(token)).json()

        published = client.put(
            f"/api/admin/blog/posts/{post['id']}", json=new_post(status="published"), headers=auth(token)
        ).json()
        assert published["published_at"]

        again = client.put(
            f"/api/admin/blog/posts/{post['id']}",
            json=new_post(status="published", title="Updated title"),
            headers=auth(token),
        ).json()
        assert again["title"] == "Updated title"
        assert again["published_at"] == published["published_at"]

        drafted = client.put(f"/api/admin/blog/posts/{post['id']}", json=new_post(), headers=auth(token)).json()
        assert drafted["published_at"] is None

    def test_update_slug_conflict(self, client, token):
        post = client.post("/api/admin/blog/posts", json=new_post(), headers=auth(token)).json()
        resp = client.put(
            f"/api/admin/blog/posts/{post['id']}",
            json=new_post(slug="welcome-to-relai-blog"),
            headers=auth(token),
        )
        assert resp.status_code == 400

    def test_update_keeps_own_slug(self, client, token):
        post = client.post("/api/admin/blog/posts", json=new_post(), headers=auth(token)).json()
        resp = client.put(f"/api/admin/blog/posts/{post['id']}", json=new_post(), headers=auth(token))
        assert resp.status_code == 200

    def test_update_missing(self, client, token):
        resp = client.put("/api/admin/blog/posts/999", json=new_post(), headers=auth(token))
        assert resp.status_code == 404

    def test_delete(self, client, token):
        post = client.post("/api/admin/blog/posts", json=new_post(), headers=auth(token)).json()
        resp = client.delete(f"/api/admin/blog/posts/{post['id']}", headers=auth(token))
        assert resp.json() == {"message": "Post deleted successfully"}
        assert client.delete(f"/api/admin/blog/posts/{post['id']}", headers=auth(token)).status_code == 404


# ========================================================================
# PUBLIC BLOG
# ========================================================================

class TestPublicBlog:
    def test_only_published_posts_listed(self, client, token):
        client.post("/api/admin/blog/posts", json=new_post(), headers=auth(token))
        posts = client.get("/api/blog/posts").json()
        assert [p["slug"] for p in posts] == ["welcome-to-relai-blog"]
        assert posts[0]["author"] == "Relai Team"
        assert posts[0]["category"] == "Real Estate"
        assert "content" not in posts[0]

    def test_newest_published_first(self, client, token):
        client.post("/api/admin/blog/posts", json=new_post(status="published"), headers=auth(token))
        posts = client.get("/api/blog/posts").json()
        assert [p["slug"] for p in posts] == ["hyderabad-market-outlook", "welcome-to-relai-blog"]

    def test_post_by_slug(self, client, db):
        post = client.get("/api/blog/posts/welcome-to-relai-blog").json()
        assert post["title"] == "Welcome to Relai Blog"
        assert post["content"].startswith("# Welcome to Relai Blog")

    def test_draft_not_visible(self, client, token):
        client.post("/api/admin/blog/posts", json=new_post(), headers=auth(token))
        assert client.get("/api/blog/posts/hyderabad-market-outlook").status_code == 404
        assert client.get("/api/blog/posts/missing").status_code == 404

    def test_static_categories(self, client, db):
        categories = client.get("/api/blog/categories").json()
        assert [c["slug"] for c in categories] == ["real-estate", "investment-tips", "market-analysis", "nri-guide"]
        assert [c["id"] for c in categories] == [1, 2, 3, 4]


# ========================================================================
# CATEGORIES + LEADS
# ========================================================================

class TestAdminCategories:
    def test_seeded_categories_by_name(self, client, token):
        names = [c["name"] for c in client.get("/api/admin/blog/categories", headers=auth(token)).json()]
        assert names == ["Investment Tips", "Market Analysis", "NRI Guide", "Real Estate"]

    def test_create_and_duplicate(self, client, token):
        body = {"name": "Legal", "slug": "legal", "description": "Registration and RERA"}
        resp = client.post("/api/admin/blog/categories", json=body, headers=auth(token))
        assert resp.status_code == 201
        assert resp.json()["slug"] == "legal"
        assert client.post("/api/admin/blog/categories", json=body, headers=auth(token)).status_code == 400


class TestAdminInquiries:
    def test_lists_newest_first(self, client, token):
        for name in ("First", "Second"):
            resp = client.post("/api/contact-inquiries", json={"name": name, "phone": "9848022338"})
            assert resp.status_code == 201
        inquiries = client.get("/api/admin/contact-inquiries", headers=auth(token)).json()
        assert [i["name"] for i in inquiries] == ["Second", "First"]
