# laundrylocator/seo.py
"""SEO copy and schema.org JSON-LD for listing, city and state pages.

All functions are pure: they take listings (ORM objects or anything with the
same attributes) plus an explicit `now` where a date is embedded, and return
plain dicts/strings.
"""
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence
from xml.sax.saxutils import escape

from .constants import SITE_NAME, SITE_URL, state_abbr
from .geo import DAY_NAMES, is_currently_open, parse_hours
from .slugs import create_slug


def _rating(listing) -> float:
    try:
        return float(listing.rating or 0)
    except (TypeError, ValueError):
        return 0.0

def _top(counter: Counter, n: int = 5) -> List[str]:
    # Counter.most_common keeps first-seen order among equal counts
    return [key for key, _ in counter.most_common(n)]

def _popular_services(listings: Sequence) -> List[str]:
    counter: Counter = Counter()
    for listing in listings:
        counter.update(listing.services or [])
    return _top(counter)

def _average_rating(listings: Sequence) -> float:
    rated = [_rating(l) for l in listings if _rating(l) > 0]
    if not rated:
        return 0.0
    return sum(rated) / len(rated)

def _has_24_hour(listings: Sequence) -> bool:
    return any(parse_hours(l.hours) == "always" for l in listings)

def city_stats(city: str, state: str, listings: Sequence) -> Dict[str, Any]:
    in_city = [l for l in listings if l.city.strip().lower() == city.strip().lower() and state_abbr(l.state) == state_abbr(state)]
    neighborhoods: Counter = Counter()
    for l in in_city:
        parts = [p.strip() for p in (l.address or "").split(",")]
        if len(parts) > 1 and parts[0]:
            neighborhoods[parts[0]] += 1
    return {
        "total_laundromats": len(in_city),
        "top_neighborhoods": _top(neighborhoods),
        "average_rating": _average_rating(in_city),
        "popular_services": _popular_services(in_city),
        "is_24_hour_available": _has_24_hour(in_city),
    }

def state_stats(abbr: str, listings: Sequence) -> Dict[str, Any]:
    in_state = [l for l in listings if state_abbr(l.state) == state_abbr(abbr)]
    cities: Counter = Counter(l.city for l in in_state)
    return {
        "total_laundromats": len(in_state),
        "top_cities": _top(cities),
        "average_rating": _average_rating(in_state),
        "popular_services": _popular_services(in_state),
    }

def _listing_url(slug: str) -> str:
    return f"{SITE_URL}/laundromats/{slug}"

def _aggregate_rating(listing) -> Optional[Dict[str, Any]]:
    if not _rating(listing):
        return None
    return {
        "@type": "AggregateRating",
        "ratingValue": _rating(listing),
        "reviewCount": listing.review_count or 0,
    }

def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}

def _postal_address(listing) -> Dict[str, Any]:
    return {
        "@type": "PostalAddress",
        "streetAddress": listing.address,
        "addressLocality": listing.city,
        "addressRegion": listing.state,
        "postalCode": listing.zip,
    }

def listing_schema_items(listings: Iterable, limit: int = 10) -> List[Dict[str, Any]]:
    items = []
    for position, listing in enumerate(list(listings)[:limit], start=1):
        items.append({
            "@type": "ListItem",
            "position": position,
            "item": _drop_none({
                "@type": "LocalBusiness",
                "@id": _listing_url(listing.slug),
                "name": listing.name,
                "address": _postal_address(listing),
                "telephone": listing.phone,
                "url": _listing_url(listing.slug),
                "geo": {"@type": "GeoCoordinates", "latitude": listing.latitude, "longitude": listing.longitude}
                if listing.latitude and listing.longitude else None,
                "aggregateRating": _aggregate_rating(listing),
                "openingHours": listing.hours,
                "image": listing.image_url or None,
            }),
        })
    return items

def city_page_content(city: str, state: str, listings: Sequence, now: datetime) -> Dict[str, Any]:
    stats = city_stats(city, state, listings)
    total = stats["total_laundromats"]
    rating = f"{stats['average_rating']:.1f}"
    services = ", ".join(stats["popular_services"][:3]) or "washing, drying"
    neighborhoods = stats["top_neighborhoods"][:3]
    neighborhood_phrase = (
        f"across popular neighborhoods like {', '.join(neighborhoods)}" if neighborhoods else "throughout the city"
    )
    hours_phrase = "including 24-hour options" if stats["is_24_hour_available"] else "with convenient hours"
    in_city = [l for l in listings if l.city.strip().lower() == city.strip().lower() and state_abbr(l.state) == state_abbr(state)]

    return {
        "title": f"{total} Laundromats in {city}, {state} | {SITE_NAME}",
        "description": (
            f"Find the best laundry services in {city}. Compare {total} laundromats with {rating}★ "
            f"average rating, {hours_phrase}. Easy access to {services} and more."
        ),
        "h1": f"Laundromats in {city}, {state}",
        "intro": (
            f"Looking for convenient laundry services in {city}? {SITE_NAME} helps you find the perfect "
            f"laundromat with {total} locations {neighborhood_phrase}. Our directory provides detailed "
            "information including operating hours, available machines, and special services."
        ),
        "neighborhood_section": (
            f"Discover top-rated laundromats in popular {city} areas including {', '.join(neighborhoods)} and more."
            if neighborhoods else ""
        ),
        "services_section": (
            f"Most laundromats in {city} offer essential services like {services}. "
            "Use our filters to find specific amenities you need for your laundry day."
        ),
        "rating_section": (
            f"The average rating for laundromats in {city} is {rating} out of 5 stars. "
            "Browse our top-rated locations to find the best service."
        ),
        "hours_section": (
            f"Find laundromats in {city} {hours_phrase}. "
            "Filter by operating hours to find locations open when you need them."
        ),
        "last_updated": now.date().isoformat(),
        "stats": stats,
        "schema": {
            "@context": "https://schema.org",
            "@type": "ItemList",
            "itemListElement": listing_schema_items(in_city),
        },
    }

def state_page_content(state_name: str, abbr: str, cities: Sequence[Dict[str, Any]],
                       listings: Sequence, now: datetime) -> Dict[str, Any]:
    stats = state_stats(abbr, listings)
    total = stats["total_laundromats"]
    rating = f"{stats['average_rating']:.1f}"
    services = ", ".join(stats["popular_services"][:3]) or "washing, drying"
    top_cities = stats["top_cities"][:5]
    cities_phrase = f"including {', '.join(top_cities)}" if top_cities else "throughout the state"

    crumbs = [
        {"name": "Home", "url": f"{SITE_URL}/"},
        {"name": "States", "url": f"{SITE_URL}/states"},
        {"name": state_name, "url": f"{SITE_URL}/states/{create_slug(state_name)}"},
    ]
    crumbs += [{"name": c["name"], "url": f"{SITE_URL}/cities/{c['slug']}"} for c in list(cities)[:5]]

    return {
        "title": f"Laundromats in {state_name} | {total}+ Locations | {SITE_NAME}",
        "description": (
            f"Find the best laundromats in {state_name}. {total}+ locations across {len(cities)} cities "
            f"with {rating}★ average rating. Compare services, hours, and amenities."
        ),
        "h1": f"Laundromats in {state_name}",
        "intro": (
            f"Looking for laundry services in {state_name}? {SITE_NAME} features {total}+ laundromats "
            f"across {len(cities)} cities {cities_phrase}. Browse our comprehensive directory for detailed "
            "information on operating hours, available machines, and special services."
        ),
        "cities_section": (
            f"Find laundromats in these popular {state_name} cities: {', '.join(top_cities)} and more."
            if top_cities else ""
        ),
        "services_section": (
            f"Most laundromats in {state_name} offer essential services like {services}. "
            "Use our filters to find specific amenities you need."
        ),
        "rating_section": (
            f"The average rating for laundromats in {state_name} is {rating} out of 5 stars. "
            "Browse our top-rated locations to find the best service."
        ),
        "last_updated": now.date().isoformat(),
        "stats": stats,
        "schema": breadcrumb_schema(crumbs),
    }

def opening_hours_specification(hours: Optional[str]) -> List[Dict[str, Any]]:
    parsed = parse_hours(hours)
    if parsed is None:
        return []
    if parsed == "always":
        return [{
            "@type": "OpeningHoursSpecification",
            "dayOfWeek": [d.capitalize() for d in DAY_NAMES],
            "opens": "00:00",
            "closes": "23:59",
        }]
    grouped: Dict[tuple, List[str]] = {}
    for day, open_min, close_min in parsed:
        key = (f"{open_min // 60:02d}:{open_min % 60:02d}", f"{close_min // 60:02d}:{close_min % 60:02d}")
        grouped.setdefault(key, []).append(DAY_NAMES[day].capitalize())
    return [
        {"@type": "OpeningHoursSpecification", "dayOfWeek": days, "opens": opens, "closes": closes}
        for (opens, closes), days in grouped.items()
    ]

def review_schema(reviews: Sequence, limit: int = 5) -> List[Dict[str, Any]]:
    out = []
    for review in list(reviews)[:limit]:
        out.append({
            "@type": "Review",
            "reviewRating": {"@type": "Rating", "ratingValue": review.rating},
            "author": {"@type": "Person", "name": f"User {review.user_id}"},
            "datePublished": review.created_at.date().isoformat() if review.created_at else None,
            "reviewBody": review.comment or "",
        })
    return out

def laundry_business_schema(listing, reviews: Sequence, now: datetime) -> Dict[str, Any]:
    return _drop_none({
        "@context": "https://schema.org",
        "@type": "LaundryOrDryCleaner",
        "@id": f"{_listing_url(listing.slug)}#business",
        "name": listing.name,
        "url": _listing_url(listing.slug),
        "telephone": listing.phone,
        "address": _postal_address(listing),
        "geo": {"@type": "GeoCoordinates", "latitude": listing.latitude, "longitude": listing.longitude}
        if listing.latitude and listing.longitude else None,
        "openingHoursSpecification": opening_hours_specification(listing.hours),
        "priceRange": "$$",
        "aggregateRating": _aggregate_rating(listing),
        "review": review_schema(reviews),
        "isOpen": is_currently_open(listing.hours, now),
        "makesOffer": [
            {"@type": "Offer", "itemOffered": {"@type": "Service", "name": service}}
            for service in listing.services or []
        ],
    })

def local_business_list_schema(listings: Sequence) -> Dict[str, Any]:
    return {
        "@context": "https://schema.org",
        "@type": "ItemList",
        "itemListElement": listing_schema_items(listings, limit=len(listings)),
    }

def breadcrumb_schema(items: Sequence[Dict[str, str]]) -> Dict[str, Any]:
    return {
        "@context": "https://schema.org",
        "@type": "BreadcrumbList",
        "itemListElement": [
            {"@type": "ListItem", "position": i, "name": item["name"], "item": item["url"]}
            for i, item in enumerate(items, start=1)
        ],
    }

def sitemap_xml(paths: Iterable[str], now: datetime) -> str:
    """urlset for the given site-relative paths, all stamped with `now`."""
    lastmod = now.date().isoformat()
    entries = []
    for path in paths:
        loc = escape(f"{SITE_URL}/{path.lstrip('/')}" if path != "/" else f"{SITE_URL}/")
        entries.append(f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod></url>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        + "\n".join(entries)
        + ("\n" if entries else "")
        + "</urlset>\n"
    )

def robots_txt() -> str:
    return (
        "User-agent: *\n"
        "Allow: /\n"
        "Disallow: /api/admin/\n"
        "Disallow: /api/business/\n"
        f"Sitemap: {SITE_URL}/sitemap.xml\n"
    )
