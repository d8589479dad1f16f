from datetime import datetime
from types import SimpleNamespace

from laundrylocator import seo
from laundrylocator.cache import TTLCache

NOW = datetime(2024, 1, 1, 12, 0)


def listing(**kw):
    data = dict(
        slug="suds-denver", name="Suds", address="1 Main St, Capitol Hill", city="Denver", state="CO",
        zip="80202", phone=None, latitude="39.7", longitude="-104.9", hours="Mon-Fri 7AM-10PM",
        rating=4.0, review_count=3, services=["Wash & Fold"], image_url=None,
    )
    data.update(kw)
    return SimpleNamespace(**data)


LISTINGS = [
    listing(),
    listing(slug="bubbles-denver", name="Bubbles", hours="24 Hours", rating=5.0, services=["Wi-Fi", "Wash & Fold"]),
    listing(slug="fold-boulder", name="Fold", city="Boulder", rating=3.0),
]


def test_city_page_is_deterministic():
    first = seo.city_page_content("Denver", "CO", LISTINGS, NOW)
    assert first == seo.city_page_content("Denver", "CO", LISTINGS, NOW)
    assert first["last_updated"] == "2024-01-01"
    assert first["stats"]["total_laundromats"] == 2
    assert first["stats"]["average_rating"] == 4.5
    assert first["stats"]["popular_services"] == ["Wash & Fold", "Wi-Fi"]
    assert first["stats"]["is_24_hour_available"] is True
    assert len(first["schema"]["itemListElement"]) == 2

def test_state_page_counts_full_state_names():
    mixed = LISTINGS + [listing(slug="x", city="Denver", state="Colorado")]
    page = seo.state_page_content("Colorado", "CO",
                                  [{"name": "Denver", "slug": "denver-co"}], mixed, NOW)
    assert page["stats"]["total_laundromats"] == 4
    assert page["stats"]["top_cities"] == ["Denver", "Boulder"]
    crumbs = page["schema"]["itemListElement"]
    assert [c["name"] for c in crumbs] == ["Home", "States", "Colorado", "Denver"]

def test_business_schema_open_state_follows_now():
    schema = seo.laundry_business_schema(listing(), [], NOW)
    assert schema["isOpen"] is True
    assert schema["openingHoursSpecification"][0]["opens"] == "07:00"
    assert "telephone" not in schema
    closed = seo.laundry_business_schema(listing(), [], datetime(2024, 1, 6, 12, 0))
    assert closed["isOpen"] is False

def test_business_schema_limits_reviews():
    reviews = [SimpleNamespace(rating=5, user_id=i, created_at=NOW, comment="ok") for i in range(8)]
    schema = seo.laundry_business_schema(listing(), reviews, NOW)
    assert len(schema["review"]) == 5

def test_unrated_listing_has_no_aggregate_rating():
    assert "aggregateRating" not in seo.laundry_business_schema(listing(rating=0), [], NOW)

def test_sitemap_escapes_and_stamps():
    xml = seo.sitemap_xml(["/", "/laundromats/a&b"], NOW)
    assert "<lastmod>2024-01-01</lastmod>" in xml
    assert "a&amp;b" in xml


def test_ttl_cache_expires():
    clock = [0.0]
    cache = TTLCache(ttl=10, maxsize=2, clock=lambda: clock[0])
    cache.set("a", 1)
    assert cache.get("a") == 1
    clock[0] = 11
    assert cache.get("a") is None
    assert cache.get_or_set("b", lambda: 2) == 2
    cache.set("c", 3)
    cache.set("d", 4)
    assert len(cache) == 2

def test_local_business_list_schema_keeps_all():
    schema = seo.local_business_list_schema(LISTINGS)
    assert [i["position"] for i in schema["itemListElement"]] == [1, 2, 3]
    assert schema["itemListElement"][0]["item"]["@id"].endswith("/laundromats/suds-denver")

def test_average_rating_ignores_unrated_listings():
    listings = LISTINGS + [listing(slug="new-denver", rating=None), listing(slug="zero-denver", rating=0)]
    stats = seo.city_stats("Denver", "CO", listings)
    assert stats["total_laundromats"] == 4
    assert stats["average_rating"] == 4.5
    assert seo.city_stats("Denver", "CO", [listing(rating=None)])["average_rating"] == 0.0
