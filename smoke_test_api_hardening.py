"""
Smoke Test for API Hardening - Admin sessions & draft visibility

Tests:
1. Admin endpoints reject requests without a token (401)
2. Admin login returns a working token
3. Draft posts are invisible on the public blog (list and slug lookup)
4. Publishing makes the post public
5. Logout revokes the token server-side (401 afterwards)
6. Raw import endpoint requires an admin token

Run: python smoke_test_api_hardening.py

Requirements:
- Backend running on localhost:8000
- Blog seeded: python -m backend.migrate --seed-blog
"""

import os
import sys
import uuid
from typing import Optional, Dict

import requests

BASE_URL = os.environ.get("BACKEND_URL", "http://localhost:8000").rstrip("/")
ADMIN_USERNAME = os.environ.get("DEFAULT_ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "admin123")


class TestResult:
    def __init__(self):
        self.passed = 0
        self.failed = 0
        self.tests = []

    def add_pass(self, name: str, detail: str = ""):
        self.passed += 1
        self.tests.append(("✅ PASS", name, detail))
        print(f"✅ PASS: {name}")
        if detail:
            print(f"  └─ {detail}")

    def add_fail(self, name: str, detail: str = ""):
        self.failed += 1
        self.tests.append(("❌ FAIL", name, detail))
        print(f"❌ FAIL: {name}")
        if detail:
            print(f"  └─ {detail}")

    def check(self, name: str, ok: bool, detail: str = ""):
        if ok:
            self.add_pass(name, detail)
        else:
            self.add_fail(name, detail)

    def summary(self):
        print("\n" + "=" * 60)
        print(f"SMOKE TEST SUMMARY: {self.passed} passed, {self.failed} failed")
        print("=" * 60)
        return self.failed == 0


def login() -> Optional[str]:
    resp = requests.post(
        f"{BASE_URL}/api/admin/blog/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
        timeout=10,
    )
    if resp.status_code != 200:
        print(f"Login failed: {resp.status_code} {resp.text}")
        return None
    return resp.json()["token"]


def auth(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def main():
    result = TestResult()
    slug = f"smoke-{uuid.uuid4().hex[:8]}"

    print("=" * 60)
    print(f"API HARDENING SMOKE TEST against {BASE_URL}")
    print("=" * 60 + "\n")

    # Test 1: no token
    print("Test 1: Admin endpoints without a token...")
    resp = requests.get(f"{BASE_URL}/api/admin/blog/posts", timeout=10)
    result.check("No Token", resp.status_code == 401, f"GET /api/admin/blog/posts -> {resp.status_code}")
    resp = requests.get(f"{BASE_URL}/api/admin/contact-inquiries", timeout=10)
    result.check("No Token - Leads", resp.status_code == 401, f"GET /api/admin/contact-inquiries -> {resp.status_code}")
    print()

    # Test 2: login
    print("Test 2: Admin login...")
    token = login()
    if not token:
        result.add_fail("Login", "Could not log in; is the blog seeded?")
        result.summary()
        return 1
    result.add_pass("Login", "Received admin token")
    print()

    # Test 3: drafts stay private
    print("Test 3: Draft visibility...")
    resp = requests.post(
        f"{BASE_URL}/api/admin/blog/posts",
        json={"title": "Smoke draft", "slug": slug, "content": "draft", "status": "draft"},
        headers=auth(token),
        timeout=10,
    )
    if resp.status_code != 201:
        result.add_fail("Create Draft", f"Expected 201, got {resp.status_code}")
        result.summary()
        return 1
    post_id = resp.json()["id"]
    public = requests.get(f"{BASE_URL}/api/blog/posts", timeout=10).json()
    result.check("Draft Hidden - List", all(p["slug"] != slug for p in public))
    resp = requests.get(f"{BASE_URL}/api/blog/posts/{slug}", timeout=10)
    result.check("Draft Hidden - Slug", resp.status_code == 404, f"GET /api/blog/posts/{slug} -> {resp.status_code}")
    print()

    # Test 4: publish
    print("Test 4: Publishing...")
    resp = requests.put(
        f"{BASE_URL}/api/admin/blog/posts/{post_id}",
        json={"title": "Smoke draft", "slug": slug, "content": "draft", "status": "published"},
        headers=auth(token),
        timeout=10,
    )
    result.check("Publish", resp.status_code == 200 and bool(resp.json().get("published_at")))
    resp = requests.get(f"{BASE_URL}/api/blog/posts/{slug}", timeout=10)
    result.check("Published Visible", resp.status_code == 200)
    requests.delete(f"{BASE_URL}/api/admin/blog/posts/{post_id}", headers=auth(token), timeout=10)
    print()

    # Test 5: import needs admin
    print("Test 5: Raw import requires admin...")
    resp = requests.post(f"{BASE_URL}/api/transform-and-import-properties", json=[], timeout=10)
    result.check("Import No Token", resp.status_code == 401, f"-> {resp.status_code}")
    print()

    # Test 6: logout revokes
    print("Test 6: Logout revokes the token...")
    resp = requests.post(f"{BASE_URL}/api/admin/blog/logout", headers=auth(token), timeout=10)
    result.check("Logout", resp.status_code == 200)
    resp = requests.get(f"{BASE_URL}/api/admin/blog/posts", headers=auth(token), timeout=10)
    result.check("Revoked Token", resp.status_code == 401, f"Old token after logout -> {resp.status_code}")
    print()

    success = result.summary()
    return 0 if success else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nTest interrupted by user")
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"\n\n❌ ERROR: {e}")
        sys.exit(1)
