# frontend/app.py
# Relai – Hyderabad property search, comparison and blog
#
# Run from repo root: streamlit run frontend/app.py
# Or from frontend folder: streamlit run app.py

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd
import requests
import streamlit as st

# Import environment config (robust fallback for different run contexts)
try:
    from frontend.config import IS_DEV, IS_LOCAL, MAX_COMPARE, DEFAULT_CITY, get_api_base_url
except ModuleNotFoundError:
    from config import IS_DEV, IS_LOCAL, MAX_COMPARE, DEFAULT_CITY, get_api_base_url

try:
    from frontend.auth import (
        init_admin_state, set_admin_session, clear_admin_session, is_admin, get_admin_user
    )
except ModuleNotFoundError:
    from auth import (
        init_admin_state, set_admin_session, clear_admin_session, is_admin, get_admin_user
    )

try:
    from frontend.api_client import api_request
except ModuleNotFoundError:
    from api_client import api_request

try:
    from frontend.comparison import (
        comparison_csv, comparison_frame, format_price_inr, format_price_range,
        label_for, listings_frame, map_points, nearby_query, select_by_ids,
    )
except ModuleNotFoundError:
    from comparison import (
        comparison_csv, comparison_frame, format_price_inr, format_price_range,
        label_for, listings_frame, map_points, nearby_query, select_by_ids,
    )

# --------------------------------------------------------------------
# Page setup + theme
# --------------------------------------------------------------------

st.set_page_config(page_title="Relai", page_icon="🏠", layout="wide")

CUSTOM_CSS = """
<style>
.stButton > button {
    background-color: #1f4e79 !important;
    color: white !important;
    border: none !important;
}

.stButton > button:hover {
    background-color: #2e6da4 !important;
}

.stRadio label {
    color: #1f4e79 !important;
}

.stSelectbox > div > div {
    border-color: #1f4e79 !important;
}

.stSlider > div > div > div > div {
    background-color: #1f4e79 !important;
}
</style>
"""

st.markdown(CUSTOM_CSS, unsafe_allow_html=True)

PAGES = ["All Properties", "Property Details", "Compare", "Find My Home", "Blog", "Admin"]

ANY = "Any"

BUDGET_OPTIONS = {
    ANY: None,
    "Under ₹50 Lac": "under-50l",
    "₹50 - 75 Lac": "50l-75l",
    "₹75 Lac - 1 Cr": "75l-1cr",
    "₹1 - 1.5 Cr": "1cr-1.5cr",
    "₹1.5 - 2 Cr": "1.5cr-2cr",
    "Above ₹2 Cr": "above-2cr",
}

TIMELINE_OPTIONS = {
    ANY: None,
    "Ready to move": "ready",
    "Within 1 year": "within-1-year",
    "1 - 2 years": "1-2-years",
    "2 - 3 years": "2-3-years",
    "3+ years": "3-plus-years",
}

CONSTRUCTION_OPTIONS = [ANY, "Ready to Move", "Under Construction", "New Launch"]
COMMUNITY_OPTIONS = [ANY, "Gated", "Semi-Gated", "Standalone"]

# --------------------------------------------------------------------
# State helpers
# --------------------------------------------------------------------


def init_state() -> None:
    ss = st.session_state

    init_admin_state()

    ss.setdefault("nav_page", "All Properties")

    # Listing search
    ss.setdefault("search_results", None)
    ss.setdefault("search_params", {})

    # Comparison: ids in selection order + the listing dicts they came from
    ss.setdefault("compare_ids", [])
    ss.setdefault("compare_cache", {})

    # Details
    ss.setdefault("detail_property_id", None)
    ss.setdefault("nearby_result", None)

    # Wizard + blog
    ss.setdefault("wizard_result", None)
    ss.setdefault("blog_slug", None)

    ss.setdefault("_backend_status", "unknown")
    ss.setdefault("_backend_was_down", False)


init_state()

ss = st.session_state


def go_to(page: str) -> None:
    """Navigation helper: set nav_page and rerun."""
    st.session_state["nav_page"] = page
    st.rerun()


def open_details(property_id: str) -> None:
    ss["detail_property_id"] = property_id
    ss["nearby_result"] = None
    go_to("Property Details")


def remember_for_compare(properties: List[Dict[str, Any]]) -> None:
    """Keep listing dicts around so Compare works after the search changes."""
    cache = ss["compare_cache"]
    for prop in properties:
        if prop.get("id") in ss["compare_ids"]:
            cache[prop["id"]] = prop


def compare_properties() -> List[Dict[str, Any]]:
    return select_by_ids(list(ss["compare_cache"].values()), ss["compare_ids"])


# --------------------------------------------------------------------
# API helpers
# --------------------------------------------------------------------


def handle_api_error(resp: requests.Response, operation: str = "operation") -> None:
    """Show the backend's `detail` message for a failed call."""
    try:
        detail = resp.json().get("detail", resp.text)
    except ValueError:
        detail = resp.text
    if resp.status_code == 404:
        st.warning(f"Not found: {detail}")
    elif resp.status_code in (400, 422):
        st.error(f"Invalid request for {operation}: {detail}")
    else:
        st.error(f"Backend error {resp.status_code} on {operation}: {detail}")


def get_json(path: str, params: Optional[Dict[str, Any]] = None, operation: Optional[str] = None) -> Optional[Any]:
    resp = api_request("GET", path, params=params)
    if resp is None:
        return None
    if resp.status_code != 200:
        handle_api_error(resp, operation or path)
        return None
    return resp.json()


@st.cache_data(ttl=300, show_spinner=False)
def load_filter_options() -> Dict[str, Any]:
    resp = api_request("GET", "/api/filter-options")
    if resp is None or resp.status_code != 200:
        return {}
    return resp.json()


def image_url(path: str) -> str:
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{get_api_base_url()}{path}"


# --------------------------------------------------------------------
# Layout helpers
# --------------------------------------------------------------------


def render_header() -> None:
    st.title("Relai")
    st.caption(f"Verified new-launch and ready-to-move projects across {DEFAULT_CITY}.")


def render_sidebar() -> None:
    with st.sidebar:
        st.markdown("## 🏠 Relai")

        if ss.get("_backend_status") in ("connection_error", "timeout", "error"):
            st.error("⚠️ Backend unreachable")
            if st.button("🔄 Retry Connection", use_container_width=True, key="retry_connection_btn"):
                ss["_backend_status"] = "unknown"
                load_filter_options.clear()
                st.rerun()
        elif ss.get("_backend_status") == "ok":
            st.success("✅ Connected")

        if IS_LOCAL:
            try:
                st.caption(f"**API:** {get_api_base_url()}")
            except RuntimeError:
                st.caption("**API:** not configured")

        st.markdown("---")
        current = ss.get("nav_page", "All Properties")
        choice = st.radio(
            "Navigate",
            PAGES,
            index=PAGES.index(current) if current in PAGES else 0,
        )
        if choice != current:
            ss["nav_page"] = choice
            st.rerun()

        count = len(ss["compare_ids"])
        st.markdown("---")
        st.caption(f"Compare list: {count}/{MAX_COMPARE}")
        if count and st.button("Clear compare list", key="clear_compare_btn"):
            ss["compare_ids"] = []
            st.rerun()

        if is_admin():
            user = get_admin_user() or {}
            st.caption(f"Admin: **{user.get('username', '?')}**")


# --------------------------------------------------------------------
# All Properties
# --------------------------------------------------------------------


def build_search_params(options: Dict[str, Any]) -> Dict[str, Any]:
    """Render the filter widgets and return the query parameters they describe."""
    price_bounds = options.get("price_range") or {"min": 0, "max": 50_000_000}
    low_bound = int(price_bounds.get("min", 0))
    high_bound = max(int(price_bounds.get("max", 50_000_000)), low_bound + 100_000)

    params: Dict[str, Any] = {}
    with st.expander("Filters", expanded=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            search = st.text_input("Search", key="f_search", placeholder="Project, developer or area")
            locations = st.multiselect("Locations", options.get("locations", []), key="f_locations")
            radius = st.slider("Include listings within (km)", 0, 25, 0, key="f_radius")
        with col2:
            property_type = st.selectbox("Property type", [ANY] + options.get("property_types", []), key="f_type")
            configuration = st.selectbox("Configuration", [ANY] + options.get("configurations", []), key="f_config")
            possession = st.selectbox("Possession", [ANY] + options.get("possession_options", []), key="f_possession")
        with col3:
            price = st.slider(
                "Budget (₹)",
                min_value=low_bound,
                max_value=high_bound,
                value=(low_bound, high_bound),
                step=100_000,
                key="f_price",
            )
            st.caption(format_price_range(price[0], price[1]))
            bedrooms = st.selectbox("Bedrooms", [ANY, "1", "2", "3", "4", "5"], key="f_bedrooms")

    if search.strip():
        params["search"] = search.strip()
    if locations:
        params["location"] = ",".join(locations)
        if radius:
            params["radius_km"] = radius
    if property_type != ANY:
        params["property_type"] = property_type
    if configuration != ANY:
        params["configurations"] = configuration
    if possession != ANY:
        params["possession"] = possession
    if bedrooms != ANY:
        params["bedrooms"] = bedrooms
    if price[0] > low_bound:
        params["min_price"] = price[0]
    if price[1] < high_bound:
        params["max_price"] = price[1]
    return params


def render_results(properties: List[Dict[str, Any]], key_prefix: str) -> None:
    """Shared results block: table, map, compare selection and details link."""
    if not properties:
        st.info("No properties match these filters.")
        return

    st.dataframe(
        listings_frame(properties),
        use_container_width=True,
        hide_index=True,
        column_config={
            "Price/sq ft": st.column_config.NumberColumn("Price/sq ft", format="₹%d"),
        },
    )

    points = map_points(properties)
    if not points.empty:
        with st.expander(f"Map ({len(points)} of {len(properties)} listings have coordinates)"):
            st.map(points, latitude="lat", longitude="lon")

    by_id = {p["id"]: p for p in properties}
    col_a, col_b = st.columns(2)
    with col_a:
        selected = st.multiselect(
            f"Add to compare (max {MAX_COMPARE})",
            list(by_id),
            default=[i for i in ss["compare_ids"] if i in by_id],
            format_func=lambda i: label_for(by_id[i]),
            max_selections=MAX_COMPARE,
            key=f"{key_prefix}_compare",
        )
        outside = [i for i in ss["compare_ids"] if i not in by_id]
        new_ids = (outside + selected)[:MAX_COMPARE]
        if new_ids != ss["compare_ids"]:
            ss["compare_ids"] = new_ids
        remember_for_compare(properties)
        if len(ss["compare_ids"]) >= 2 and st.button("Compare selected", key=f"{key_prefix}_compare_btn"):
            go_to("Compare")
    with col_b:
        detail_id = st.selectbox(
            "View details",
            [None] + list(by_id),
            format_func=lambda i: "-- Select --" if i is None else label_for(by_id[i]),
            key=f"{key_prefix}_detail",
        )
        if detail_id and st.button("Open details", key=f"{key_prefix}_detail_btn"):
            open_details(detail_id)


def render_all_properties() -> None:
    st.markdown("## 🔍 All Properties")
    options = load_filter_options()
    params = build_search_params(options)

    if st.button("Search", type="primary", key="search_btn") or ss["search_results"] is None or params != ss["search_params"]:
        with st.spinner("Loading properties..."):
            data = get_json("/api/all-properties", params=params, operation="property search")
        if data is None:
            return
        ss["search_results"] = data.get("properties", [])
        ss["search_params"] = params
        if IS_DEV:
            print(f"[UI] Search {params} -> {data.get('total', 0)} properties")

    results = ss["search_results"] or []
    st.markdown(f"**{len(results)} properties found**")
    render_results(results, "all")


# --------------------------------------------------------------------
# Property Details
# --------------------------------------------------------------------


def render_nearby_places(prop: Dict[str, Any]) -> None:
    st.markdown("### 📍 Nearby Places")

    col1, col2 = st.columns([1, 1])
    load = col1.button("Load nearby places", key="nearby_load_btn")
    refresh = col2.button("Refresh", key="nearby_refresh_btn")

    if load or refresh:
        params = nearby_query(prop, DEFAULT_CITY)
        if refresh:
            params["refresh"] = "true"
        with st.spinner("Finding nearby places..."):
            ss["nearby_result"] = get_json("/api/property-nearby-places", params=params, operation="nearby places")

    result = ss.get("nearby_result")
    if not result:
        return

    if result.get("cached"):
        st.caption("Served from cache")

    amenities = [c for c in result.get("amenities", []) if c.get("count")]
    if amenities:
        tabs = st.tabs([f"{c['type']} ({c['count']})" for c in amenities])
        for tab, category in zip(tabs, amenities):
            with tab:
                st.dataframe(pd.DataFrame(category["places"]), use_container_width=True, hide_index=True)
    else:
        st.info("No amenities found nearby.")

    transit = result.get("transit_points", [])
    if transit:
        st.markdown("**Connectivity**")
        st.dataframe(pd.DataFrame(transit), use_container_width=True, hide_index=True)


def render_contact_form(prop: Dict[str, Any]) -> None:
    st.markdown("### 📞 Schedule a site visit")
    with st.form("contact_form", clear_on_submit=True):
        name = st.text_input("Name")
        phone = st.text_input("Phone")
        email = st.text_input("Email (optional)")
        submitted = st.form_submit_button("Request callback")

    if submitted:
        if not name.strip() or not phone.strip():
            st.error("Please enter your name and phone number.")
            return
        body = {
            "name": name,
            "phone": phone,
            "email": email or None,
            "property_id": prop.get("id"),
            "property_name": prop.get("project_name"),
        }
        resp = api_request("POST", "/api/contact-inquiries", json=body)
        if resp is None:
            return
        if resp.status_code == 201:
            st.success("Thanks! Our team will call you shortly.")
        else:
            handle_api_error(resp, "contact request")


def render_property_details() -> None:
    property_id = ss.get("detail_property_id")
    if not property_id:
        st.info("Select a property on the All Properties page to see its details.")
        if st.button("Browse properties"):
            go_to("All Properties")
        return

    data = get_json(f"/api/properties/{property_id}", operation="property details")
    if data is None:
        return
    prop = data["property"]

    st.markdown(f"## 🏢 {prop.get('project_name') or 'Property'}")
    st.caption(f"{prop.get('builder_name') or 'Unknown developer'} · {prop.get('area') or DEFAULT_CITY}")

    col1, col2, col3 = st.columns(3)
    col1.metric("RERA Number", prop.get("rera_number") or "N/A")
    col2.metric("Possession", prop.get("possession_date") or "TBD")
    col3.metric("Price/sq ft", f"₹{prop['price_per_sqft']:,.0f}" if prop.get("price_per_sqft") else "N/A")

    images = prop.get("images", [])
    if images:
        st.image([image_url(path) for path in images[:6]], width=300)

    configurations = prop.get("configurations", [])
    if configurations:
        st.markdown("### Configurations")
        df = pd.DataFrame(configurations)
        if "BaseProjectPrice" in df.columns:
            df["Price"] = df["BaseProjectPrice"].map(format_price_inr)
        st.dataframe(df, use_container_width=True, hide_index=True)

    compare_ids = ss["compare_ids"]
    if property_id not in compare_ids and len(compare_ids) < MAX_COMPARE:
        listing = next((p for p in ss.get("search_results") or [] if p.get("id") == property_id), None)
        if listing and st.button("➕ Add to compare", key="detail_compare_btn"):
            ss["compare_ids"] = compare_ids + [property_id]
            remember_for_compare([listing])
            st.rerun()

    st.markdown("---")
    render_nearby_places(prop)
    st.markdown("---")
    render_contact_form(prop)


# --------------------------------------------------------------------
# Compare
# --------------------------------------------------------------------


def render_compare() -> None:
    st.markdown("## ⚖️ Compare Properties")
    properties = compare_properties()
    if len(properties) < 2:
        st.info(f"Pick 2 to {MAX_COMPARE} properties on the All Properties page to compare them.")
        return

    st.dataframe(comparison_frame(properties), use_container_width=True)
    st.caption("(best) and (worst) mark the strongest and weakest value for price, rate and size rows.")

    st.download_button(
        "⬇️ Download comparison (CSV)",
        data=comparison_csv(properties),
        file_name="relai-property-comparison.csv",
        mime="text/csv",
        key="compare_csv_btn",
    )

    remove = st.selectbox(
        "Remove from comparison",
        [None] + [p["id"] for p in properties],
        format_func=lambda i: "-- Select --" if i is None else label_for(ss["compare_cache"][i]),
        key="compare_remove",
    )
    if remove and st.button("Remove", key="compare_remove_btn"):
        ss["compare_ids"] = [i for i in ss["compare_ids"] if i != remove]
        st.rerun()


# --------------------------------------------------------------------
# Find My Home
# --------------------------------------------------------------------


def render_find_my_home() -> None:
    st.markdown("## 🧭 Find My Home")
    st.caption("Answer a few questions and we'll shortlist projects that fit.")
    options = load_filter_options()

    with st.form("wizard_form"):
        budget = st.selectbox("What's your budget?", list(BUDGET_OPTIONS))
        locations = st.multiselect("Preferred locations", options.get("locations", []))
        property_type = st.selectbox("Property type", [ANY] + options.get("property_types", []))
        configuration = st.selectbox("Configuration", [ANY] + options.get("configurations", []))
        construction = st.selectbox("Construction status", CONSTRUCTION_OPTIONS)
        community = st.selectbox("Community", COMMUNITY_OPTIONS)
        timeline = st.selectbox("When do you want to move in?", list(TIMELINE_OPTIONS))
        submitted = st.form_submit_button("Show matching homes")

    if submitted:
        params: Dict[str, Any] = {}
        if BUDGET_OPTIONS[budget]:
            params["budget"] = BUDGET_OPTIONS[budget]
        if locations:
            params["location"] = ",".join(locations)
        if property_type != ANY:
            params["property_type"] = property_type
        if configuration != ANY:
            params["configurations"] = configuration
        if construction != ANY:
            params["construction_status"] = construction
        if community != ANY:
            params["community_type"] = community
        if TIMELINE_OPTIONS[timeline]:
            params["possession_timeline"] = TIMELINE_OPTIONS[timeline]
        with st.spinner("Finding homes..."):
            ss["wizard_result"] = get_json("/api/wizard-properties", params=params, operation="Find My Home")

    result = ss.get("wizard_result")
    if not result:
        return

    applied = result.get("filters", {})
    if applied:
        st.caption("Applied: " + ", ".join(f"{k}={v}" for k, v in applied.items()))
    properties = result.get("properties", [])
    st.markdown(f"**{len(properties)} homes match**")
    render_results(properties, "wizard")


# --------------------------------------------------------------------
# Blog
# --------------------------------------------------------------------


def render_blog() -> None:
    slug = ss.get("blog_slug")
    if slug:
        post = get_json(f"/api/blog/posts/{slug}", operation="blog post")
        if st.button("← All posts", key="blog_back_btn"):
            ss["blog_slug"] = None
            st.rerun()
        if post is None:
            return
        st.markdown(f"## {post['title']}")
        st.caption(f"{post.get('category')} · {post.get('author')} · {post.get('published_at', '')[:10]}")
        if post.get("featured_image"):
            st.image(image_url(post["featured_image"]))
        st.markdown(post.get("content") or "")
        return

    st.markdown("## 📰 Relai Blog")
    posts = get_json("/api/blog/posts", operation="blog") or []
    categories = get_json("/api/blog/categories", operation="blog categories") or []

    names = [ANY] + [c["name"] for c in categories]
    category = st.selectbox("Category", names, key="blog_category")
    if category != ANY:
        posts = [p for p in posts if p.get("category") == category]

    if not posts:
        st.info("No posts yet.")
        return

    for post in posts:
        with st.container(border=True):
            st.markdown(f"### {post['title']}")
            st.caption(f"{post.get('category')} · {post.get('published_at', '')[:10]}")
            if post.get("excerpt"):
                st.write(post["excerpt"])
            if st.button("Read more", key=f"blog_read_{post['id']}"):
                ss["blog_slug"] = post["slug"]
                st.rerun()


# --------------------------------------------------------------------
# Admin
# --------------------------------------------------------------------


def render_admin_login() -> None:
    st.markdown("## 🔐 Admin Login")
    with st.form("admin_login_form"):
        username = st.text_input("Username", key="admin_username")
        password = st.text_input("Password", type="password", key="admin_password")
        submitted = st.form_submit_button("Login")

    if not submitted:
        return
    if not username or not password:
        st.error("Please enter username and password.")
        return

    resp = api_request("POST", "/api/admin/blog/login", json={"username": username, "password": password}, timeout=10)
    if resp is None:
        return
    if resp.status_code == 200:
        data = resp.json()
        set_admin_session(data["token"], data["user"])
        print(f"[UI] Admin login: {data['user'].get('username')}")
        st.rerun()
    else:
        handle_api_error(resp, "admin login")


def post_form(form_key: str, post: Optional[Dict[str, Any]], categories: List[str]) -> Optional[Dict[str, Any]]:
    """Create/edit form; returns the request body when submitted."""
    post = post or {}
    with st.form(form_key, clear_on_submit=not post):
        title = st.text_input("Title", value=post.get("title", ""))
        slug = st.text_input("Slug", value=post.get("slug", ""), help="lowercase-words-with-dashes")
        excerpt = st.text_area("Excerpt", value=post.get("excerpt") or "", height=80)
        content = st.text_area("Content (Markdown)", value=post.get("content") or "", height=300)
        featured_image = st.text_input("Featured image URL", value=post.get("featured_image") or "")
        category_options = categories or ["Real Estate"]
        current_category = post.get("category") or category_options[0]
        category = st.selectbox(
            "Category",
            category_options,
            index=category_options.index(current_category) if current_category in category_options else 0,
        )
        status = st.radio(
            "Status",
            ["draft", "published"],
            index=1 if post.get("status") == "published" else 0,
            horizontal=True,
        )
        submitted = st.form_submit_button("Save")

    if not submitted:
        return None
    return {
        "title": title,
        "slug": slug,
        "excerpt": excerpt or None,
        "content": content or None,
        "featured_image": featured_image or None,
        "category": category,
        "status": status,
    }


def render_admin_posts(categories: List[str]) -> None:
    posts = get_json("/api/admin/blog/posts", operation="admin posts")
    if posts is None:
        return

    if posts:
        df = pd.DataFrame(posts)[["id", "title", "slug", "category", "status", "published_at", "updated_at"]]
        st.dataframe(df, use_container_width=True, hide_index=True)

    with st.expander("➕ New post"):
        body = post_form("new_post_form", None, categories)
        if body:
            resp = api_request("POST", "/api/admin/blog/posts", json=body)
            if resp is not None:
                if resp.status_code == 201:
                    st.success("Post created.")
                    st.rerun()
                else:
                    handle_api_error(resp, "create post")

    if not posts:
        return

    by_id = {p["id"]: p for p in posts}
    post_id = st.selectbox(
        "Edit post",
        [None] + list(by_id),
        format_func=lambda i: "-- Select --" if i is None else f"{by_id[i]['title']} ({by_id[i]['status']})",
        key="admin_edit_post",
    )
    if post_id is None:
        return

    body = post_form(f"edit_post_form_{post_id}", by_id[post_id], categories)
    if body:
        resp = api_request("PUT", f"/api/admin/blog/posts/{post_id}", json=body)
        if resp is not None:
            if resp.status_code == 200:
                st.success("Post updated.")
                st.rerun()
            else:
                handle_api_error(resp, "update post")

    confirm = st.checkbox("I want to delete this post", key=f"confirm_delete_{post_id}")
    if st.button("🗑️ Delete post", disabled=not confirm, key=f"delete_post_{post_id}"):
        resp = api_request("DELETE", f"/api/admin/blog/posts/{post_id}")
        if resp is not None:
            if resp.status_code == 200:
                st.success("Post deleted.")
                ss.pop("admin_edit_post", None)
                st.rerun()
            else:
                handle_api_error(resp, "delete post")


def render_admin_categories(categories: List[Dict[str, Any]]) -> None:
    if categories:
        st.dataframe(pd.DataFrame(categories)[["id", "name", "slug", "description"]], use_container_width=True, hide_index=True)

    with st.form("new_category_form", clear_on_submit=True):
        name = st.text_input("Name")
        slug = st.text_input("Slug")
        description = st.text_input("Description")
        submitted = st.form_submit_button("Add category")

    if submitted:
        resp = api_request(
            "POST",
            "/api/admin/blog/categories",
            json={"name": name, "slug": slug, "description": description or None},
        )
        if resp is not None:
            if resp.status_code == 201:
                st.success(f"Category {name!r} added.")
                st.rerun()
            else:
                handle_api_error(resp, "create category")


def render_admin_inquiries() -> None:
    inquiries = get_json("/api/admin/contact-inquiries", operation="contact inquiries")
    if inquiries is None:
        return
    if not inquiries:
        st.info("No inquiries yet.")
        return
    df = pd.DataFrame(inquiries)
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.download_button(
        "⬇️ Download inquiries (CSV)",
        data=df.to_csv(index=False),
        file_name="relai-contact-inquiries.csv",
        mime="text/csv",
    )


def render_admin() -> None:
    if not is_admin():
        render_admin_login()
        return

    user = get_admin_user() or {}
    col1, col2 = st.columns([4, 1])
    col1.markdown(f"## 🛠️ Admin · {user.get('username', '')}")
    if col2.button("Logout", key="admin_logout_btn"):
        api_request("POST", "/api/admin/blog/logout")
        clear_admin_session()
        st.rerun()

    categories = get_json("/api/admin/blog/categories", operation="admin categories")
    if categories is None:
        # Session may have been cleared by a 401
        if not is_admin():
            st.rerun()
        return

    posts_tab, categories_tab, inquiries_tab = st.tabs(["Posts", "Categories", "Inquiries"])
    with posts_tab:
        render_admin_posts([c["name"] for c in categories])
    with categories_tab:
        render_admin_categories(categories)
    with inquiries_tab:
        render_admin_inquiries()


# --------------------------------------------------------------------
# Main
# --------------------------------------------------------------------


def main() -> None:
    # Must run before any widget on every rerun
    init_admin_state()

    nav_page = ss.get("nav_page") or "All Properties"
    if IS_DEV:
        print(f"[ROUTING] page={nav_page} | admin={is_admin()} | compare={len(ss['compare_ids'])}")

    render_sidebar()
    render_header()

    if nav_page == "All Properties":
        render_all_properties()
    elif nav_page == "Property Details":
        render_property_details()
    elif nav_page == "Compare":
        render_compare()
    elif nav_page == "Find My Home":
        render_find_my_home()
    elif nav_page == "Blog":
        render_blog()
    elif nav_page == "Admin":
        render_admin()
    else:
        ss["nav_page"] = "All Properties"
        render_all_properties()


if __name__ == "__main__":
    main()
