from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_laundromat, make_user
from laundrylocator import crud, models
from laundrylocator.api.admin import upload_dir
from laundrylocator.main import app


def auth(user):
    return {"X-User-Id": str(user.id)}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


# --- nearby / search ---

@pytest.mark.parametrize("params", [
    {"lat": "abc", "lng": "-104.99"},
    {"lat": "39.7"},
    {"lat": "39.7", "lng": "-104.99", "radius": "0"},
    {"lat": "39.7", "lng": "-104.99", "radius": "-5"},
    {"lat": "95", "lng": "-104.99"},
])
def test_nearby_bad_params(client, params):
    assert client.get("/api/laundromats", params=params).status_code == 400
    assert client.get("/api/nearby-laundromats", params=params).status_code == 400

def test_nearby_includes_distance(client, db):
    make_laundromat(db, latitude="39.75", longitude="-104.99")
    body = client.get("/api/nearby-laundromats", params={"lat": 39.7392, "lng": -104.9903, "radius": 5}).json()
    assert len(body) == 1
    assert 0 < body[0]["distance"] < 5

def test_search_filters_and_ranking(client, db):
    make_laundromat(db, name="Plain Wash", rating=4.9, services=["Coin Laundry"])
    premium = make_laundromat(db, name="Premium Wash", rating=3.0, is_premium=True, services=["Coin Laundry", "Wi-Fi"])
    make_laundromat(db, name="Elsewhere", city="Austin", state="TX")

    body = client.get("/api/laundromats", params={"q": "wash"}).json()
    assert [r["name"] for r in body] == ["Premium Wash", "Plain Wash"]

    body = client.get("/api/laundromats", params={"services": "wi-fi"}).json()
    assert [r["id"] for r in body] == [premium.id]

    body = client.get("/api/laundromats", params={"rating": 4}).json()
    assert [r["name"] for r in body] == ["Plain Wash"]

def test_search_open_now(client, db):
    make_laundromat(db, name="Always", hours="24/7")
    make_laundromat(db, name="Never", hours="Not specified")
    body = client.get("/api/laundromats", params={"openNow": "true"}).json()
    assert [r["name"] for r in body] == ["Always"]

def test_search_limit_validated(client):
    assert client.get("/api/laundromats", params={"limit": 500}).status_code == 400


# --- listing detail, reviews, favorites ---

def test_detail_increments_views(client, db):
    obj = make_laundromat(db)
    assert client.get(f"/api/laundromats/{obj.slug}").status_code == 200
    client.get(f"/api/laundromats/{obj.slug}")
    db.refresh(obj)
    assert obj.view_count == 2
    assert client.get("/api/laundromats/missing-slug").status_code == 404

def test_featured_order(client, db):
    second = make_laundromat(db, is_featured=True, featured_rank=2)
    unranked = make_laundromat(db, is_featured=True)
    first = make_laundromat(db, is_featured=True, featured_rank=1)
    make_laundromat(db)
    body = client.get("/api/featured-laundromats").json()
    assert [r["id"] for r in body] == [first.id, second.id, unranked.id]

def test_reviews_recompute_rating(client, db):
    obj = make_laundromat(db)
    user = make_user(db, "reviewer")
    for rating in (5, 4, 4):
        res = client.post("/api/reviews", json={"laundromat_id": obj.id, "user_id": user.id, "rating": rating})
        assert res.status_code == 201
    db.refresh(obj)
    assert obj.rating == 4.3
    assert obj.review_count == 3
    assert len(client.get(f"/api/laundromats/{obj.id}/reviews").json()) == 3

def test_review_validation(client, db):
    obj = make_laundromat(db)
    user = make_user(db, "reviewer")
    bad = client.post("/api/reviews", json={"laundromat_id": obj.id, "user_id": user.id, "rating": 6})
    assert bad.status_code == 400
    assert bad.json()["errors"]
    missing = client.post("/api/reviews", json={"laundromat_id": 999, "user_id": user.id, "rating": 5})
    assert missing.status_code == 404

def test_favorites(client, db):
    obj = make_laundromat(db)
    user = make_user(db, "fan")
    assert client.get("/api/favorites").status_code == 401
    assert client.post("/api/favorites", json={"laundromat_id": obj.id}, headers=auth(user)).status_code == 201
    assert client.post("/api/favorites", json={"laundromat_id": obj.id}, headers=auth(user)).status_code == 201
    assert [r["id"] for r in client.get("/api/favorites", headers=auth(user)).json()] == [obj.id]
    assert client.delete(f"/api/favorites/{obj.id}", headers=auth(user)).status_code == 200
    assert client.get("/api/favorites", headers=auth(user)).json() == []


# --- locations ---

def test_states_and_cities(client, db):
    make_laundromat(db)
    make_laundromat(db, state="Colorado")
    make_laundromat(db, city="Boulder")
    make_laundromat(db, city="Austin", state="TX")

    states = client.get("/api/states").json()
    assert {(s["abbr"], s["laundry_count"]) for s in states} == {("CO", 3), ("TX", 1)}
    assert client.get("/api/states/colorado").json()["abbr"] == "CO"
    assert client.get("/api/states/tx").json()["name"] == "Texas"
    assert client.get("/api/states/nowhere").status_code == 404

    cities = client.get("/api/states/co/cities").json()
    assert [(c["name"], c["laundry_count"]) for c in cities] == [("Denver", 2), ("Boulder", 1)]
    assert client.get("/api/popular-cities", params={"limit": 1}).json()[0]["slug"] == "denver-co"

    assert client.get("/api/cities/denver-co").json()["laundry_count"] == 2
    assert len(client.get("/api/cities/denver-co/laundromats").json()) == 2
    assert client.get("/api/cities/atlantis-co").status_code == 404
    assert client.get("/api/cities/atlantis-co/laundromats").status_code == 404

def test_city_and_state_seo(client, db):
    make_laundromat(db, rating=4.0)
    city = client.get("/api/cities/denver-co/seo").json()
    assert city["h1"] == "Laundromats in Denver, CO"
    assert city["schema"]["@type"] == "ItemList"
    state = client.get("/api/states/colorado/seo").json()
    assert state["h1"] == "Laundromats in Colorado"
    assert state["schema"]["@type"] == "BreadcrumbList"

def test_listing_schema(client, db):
    obj = make_laundromat(db, rating=4.5, review_count=10, latitude="39.7", longitude="-104.9")
    body = client.get(f"/api/laundromats/{obj.slug}/schema").json()
    assert body["@type"] == "LaundryOrDryCleaner"
    assert body["isOpen"] is True
    assert body["aggregateRating"]["ratingValue"] == 4.5

def test_sitemap_and_robots(client, db):
    obj = make_laundromat(db)
    xml = client.get("/sitemap.xml")
    assert xml.headers["content-type"].startswith("application/xml")
    assert f"/laundromats/{obj.slug}</loc>" in xml.text
    assert "/cities/denver-co</loc>" in xml.text
    assert "Sitemap:" in client.get("/robots.txt").text


# --- business owners ---

BUSINESS = {
    "name": "Fresh Fold",
    "address": "12 Pine St",
    "city": "Denver",
    "state": "co",
    "zip": "80202",
    "phone": "3035550199",
    "hours": "Daily 7am-10pm",
    "website": "freshfold.example.com",
}

def test_business_add_requires_identity(client):
    assert client.post("/api/business/add", json=BUSINESS).status_code == 401
    assert client.post("/api/business/add", json=BUSINESS, headers={"X-User-Id": "999"}).status_code == 401

def test_business_add_and_unique_slug(client, db):
    user = make_user(db)
    first = client.post("/api/business/add", json=BUSINESS, headers=auth(user))
    second = client.post("/api/business/add", json=BUSINESS, headers=auth(user))
    assert first.status_code == 201
    assert first.json()["slug"] == "fresh-fold-denver-co"
    assert second.json()["slug"] == "fresh-fold-denver-co-1"
    obj = crud.get_laundromat(db, first.json()["id"])
    assert obj.owner_id == user.id
    assert obj.website == "https://freshfold.example.com"
    assert obj.phone == "(303) 555-0199"

@pytest.mark.parametrize("field,value", [
    ("name", "ab"), ("zip", "8020"), ("state", "Colorado"), ("state", "ZZ"),
    ("website", "not a url"), ("hours", "7-9"),
])
def test_business_add_validation(client, db, field, value):
    user = make_user(db)
    res = client.post("/api/business/add", json=dict(BUSINESS, **{field: value}), headers=auth(user))
    assert res.status_code == 400

def test_business_search(client, db):
    make_laundromat(db, name="Sparkle Laundry", phone="(303) 555-1111")
    make_laundromat(db, name="Other")
    body = client.get("/api/business/search", params={"q": "sparkle"}).json()
    assert [r["name"] for r in body] == ["Sparkle Laundry"]

def test_claim_conflict_and_dashboard(client, db):
    owner = make_user(db, "owner")
    rival = make_user(db, "rival")
    obj = make_laundromat(db)
    assert client.get("/api/business/dashboard", headers=auth(owner)).status_code == 404
    assert client.post("/api/business/claim", json={"laundromat_id": obj.id}, headers=auth(owner)).status_code == 200
    assert client.post("/api/business/claim", json={"laundromat_id": obj.id}, headers=auth(rival)).status_code == 409

    dash = client.get("/api/business/dashboard", headers=auth(owner)).json()
    assert dash["laundromat"]["id"] == obj.id
    assert dash["subscription"]["tier"] == "basic"
    assert dash["premium_features"]["photo_limit"] == 1
    assert {a["type"] for a in dash["pending_actions"]} == {"photo_upload", "description_update"}
    assert 0 < dash["profile_completeness"] < 100

def test_owner_update_authorization(client, db):
    owner = make_user(db, "owner")
    rival = make_user(db, "rival")
    obj = make_laundromat(db, owner_id=owner.id)
    url = f"/api/business/laundromats/{obj.id}"
    assert client.patch(url, json={"description": "x"}, headers=auth(rival)).status_code == 403
    res = client.patch(url, json={"description": "Bright and clean", "phone": "3035550123"}, headers=auth(owner))
    assert res.status_code == 200
    assert res.json()["phone"] == "(303) 555-0123"
    too_many = client.patch(url, json={"photos": ["a.jpg", "b.jpg"]}, headers=auth(owner))
    assert too_many.status_code == 400

@pytest.mark.parametrize("field", ["name", "hours", "services", "amenities"])
def test_owner_update_rejects_null_required_fields(client, db, field):
    owner = make_user(db)
    obj = make_laundromat(db, owner_id=owner.id)
    res = client.patch(f"/api/business/laundromats/{obj.id}", json={field: None}, headers=auth(owner))
    assert res.status_code == 400
    detail = client.get(f"/api/laundromats/{obj.slug}")
    assert detail.status_code == 200
    assert detail.json()["services"] == ["Wash & Fold"]


# --- subscriptions ---

def test_subscription_lifecycle(client, db):
    owner = make_user(db)
    obj = make_laundromat(db, owner_id=owner.id)
    res = client.post("/api/subscriptions", json={"laundromat_id": obj.id, "tier": "featured"}, headers=auth(owner))
    assert res.status_code == 201
    sub = res.json()
    assert sub["amount"] == 3999
    db.refresh(obj)
    assert obj.is_featured and obj.is_premium and obj.listing_type == "featured"

    again = client.post("/api/subscriptions", json={"laundromat_id": obj.id, "tier": "premium"}, headers=auth(owner))
    assert again.status_code == 409

    listed = client.get("/api/subscriptions", headers=auth(owner)).json()
    assert listed[0]["laundromat_name"] == obj.name

    cancel = client.post(f"/api/subscriptions/{sub['id']}/cancel", headers=auth(owner)).json()
    assert cancel["subscription"]["status"] == "cancelled"
    assert 3900 <= cancel["refund_amount"] <= 3999
    db.refresh(obj)
    assert obj.listing_type == "basic" and not obj.is_premium and not obj.is_featured

def test_subscription_requires_ownership(client, db):
    owner = make_user(db, "owner")
    rival = make_user(db, "rival")
    obj = make_laundromat(db, owner_id=owner.id)
    res = client.post("/api/subscriptions", json={"laundromat_id": obj.id, "tier": "premium"}, headers=auth(rival))
    assert res.status_code == 403
    bad_tier = client.post("/api/subscriptions", json={"laundromat_id": obj.id, "tier": "gold"}, headers=auth(owner))
    assert bad_tier.status_code == 400

def test_expire_subscriptions(db):
    owner = make_user(db)
    obj = make_laundromat(db, owner_id=owner.id)
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    crud.create_subscription(db, owner.id, obj, "premium", "monthly", True, start)
    assert crud.expire_subscriptions(db, now=start + timedelta(days=10)) == 0
    assert crud.expire_subscriptions(db, now=start + timedelta(days=31)) == 1
    db.refresh(obj)
    assert obj.listing_type == "basic"
    assert db.query(models.Subscription).one().status == "expired"


# --- admin import ---

@pytest.fixture
def uploads(tmp_path):
    app.dependency_overrides[upload_dir] = lambda: str(tmp_path)
    yield tmp_path

@pytest.fixture
def admin(db):
    return auth(make_user(db, "admin", role="admin"))

def test_admin_import(client, uploads, admin):
    (uploads / "batch.csv").write_text("name,address,city,state\nSuds,1 A St,Denver,CO\n")
    assert client.get("/api/admin/import/files", headers=admin).json() == {"files": ["batch.csv"]}
    body = client.post("/api/admin/import", json={"filename": "batch.csv"}, headers=admin).json()
    assert body["imported"] == 1
    assert client.get("/api/cities/denver-co").json()["laundry_count"] == 1

def test_admin_import_rejects_bad_paths(client, uploads, admin):
    assert client.post("/api/admin/import", json={"filename": "../etc/passwd.csv"}, headers=admin).status_code == 400
    assert client.post("/api/admin/import", json={"filename": "missing.csv"}, headers=admin).status_code == 404

def test_admin_import_requires_admin_role(client, uploads, db):
    (uploads / "batch.csv").write_text("name,address,city,state\nSuds,1 A St,Denver,CO\n")
    owner = make_user(db, "owner", role="owner")
    assert client.post("/api/admin/import", json={"filename": "batch.csv"}).status_code == 401
    assert client.get("/api/admin/import/files").status_code == 401
    res = client.post("/api/admin/import", json={"filename": "batch.csv"}, headers=auth(owner))
    assert res.status_code == 403
    assert db.query(models.Laundromat).count() == 0
