# laundrylocator/enrich.py
"""Record enrichment: SEO tags, summaries and premium scoring.

Everything here is a pure function of the record dict so it can run inside
the CSV import as well as from ad-hoc scripts.
"""
import re
from typing import Dict, Any, List

from .slugs import create_slug

def _num(value, cast=float):
    try:
        return cast(value)
    except (TypeError, ValueError):
        return None

def normalize_business_name(name: str) -> str:
    name = name or ""
    # "Suds Laundromat - TX"
    name = re.sub(r"\s+-\s+[A-Z]{2}$", "", name)
    if name and name == name.upper() and any(c.isalpha() for c in name):
        name = name[0].upper() + name[1:].lower()
    return re.sub(r"\s{2,}", " ", name).strip()

def _closes_late(hours: str) -> bool:
    for part in hours.split(";"):
        if "pm" not in part:
            continue
        closing = re.split(r"[–-]", part)[-1].strip()
        m = re.search(r"(\d+)(?::(\d+))?\s*(pm|am)", closing, re.I)
        if not m:
            continue
        hour = int(m.group(1))
        if m.group(3).lower() == "pm" and hour < 12:
            hour += 12
        if hour >= 21:
            return True
    return False

def generate_seo_tags(record: Dict[str, Any]) -> List[str]:
    name_and_categories = f"{record.get('name') or ''} {record.get('categories') or ''}".lower()
    services = record.get("services") or []
    if isinstance(services, list):
        name_and_categories += " " + " ".join(services).lower()
    description = (record.get("description") or "").lower()
    hours = (record.get("hours") or "").lower()
    text = f"{name_and_categories} {description}"

    tags: List[str] = []
    def add(tag):
        if tag not in tags:
            tags.append(tag)

    if "24 hour" in hours or "24/7" in hours:
        add("24 hour")
    if "coin" in text or "self-service" in text:
        add("coin laundry")
        add("self-service")
    if "drop" in text or "service" in name_and_categories:
        add("drop-off")
    if "pickup" in text or "pick up" in text:
        add("pickup")
    if "delivery" in text:
        add("delivery")
    if "eco" in text or "environment" in description or "green" in name_and_categories:
        add("eco-friendly")
    if hours and _closes_late(hours):
        add("open late")
    return tags

def generate_short_summary(record: Dict[str, Any]) -> str:
    tags = record.get("seo_tags") or []
    if "coin laundry" in tags:
        summary = "Convenient coin-operated laundromat"
    elif "drop-off" in tags:
        summary = "Professional laundry service with drop-off options"
    else:
        summary = "Local laundromat offering washing and drying services"

    rating = _num(record.get("rating"))
    if rating is not None and rating >= 4.0:
        summary += f" with {rating:g}-star rating"

    if "pickup" in tags and "delivery" in tags:
        summary += ". Pickup and delivery available"
    elif "pickup" in tags:
        summary += ". Pickup service available"
    elif "delivery" in tags:
        summary += ". Delivery service available"

    if "24 hour" in tags:
        summary += ". Open 24 hours"
    elif "open late" in tags:
        summary += ". Open late for convenience"

    if "eco-friendly" in tags:
        summary += ". Eco-friendly practices"

    if len(summary) > 145:
        summary = summary[:145] + "..."
    return summary

def generate_default_description(record: Dict[str, Any]) -> str:
    existing = record.get("description") or ""
    if len(existing) > 50:
        return existing
    tags = record.get("seo_tags") or []
    description = f"{record.get('name')} is a "
    if "coin laundry" in tags and "self-service" in tags:
        description += "self-service coin laundromat "
    elif "drop-off" in tags:
        description += "full-service laundry establishment "
    else:
        description += "laundromat "

    location = record.get("city") or ""
    if not location:
        parts = [p.strip() for p in (record.get("address") or "").split(",") if p.strip()]
        location = parts[-2] if len(parts) >= 2 else (parts[0] if parts else "the area")
    description += f"located in {location}. "

    services = []
    if "drop-off" in tags:
        services.append("drop-off service")
    if "pickup" in tags:
        services.append("pickup service")
    if "delivery" in tags:
        services.append("delivery options")
    if services:
        description += f"They offer {', '.join(services)} "
        description += "to save you time. " if len(services) == 1 else "to make your laundry experience convenient. "

    if "24 hour" in tags:
        description += "Open 24 hours a day for your convenience. "
    elif "open late" in tags:
        description += "Extended hours to accommodate your busy schedule. "

    rating = _num(record.get("rating"))
    review_count = _num(record.get("review_count"), int)
    if rating is not None and review_count:
        if rating >= 4.5 and review_count > 20:
            description += f"Highly rated with {rating:g} stars from {review_count} satisfied customers. "
        elif rating >= 4.0:
            description += f"Well-reviewed with a {rating:g}-star rating. "

    description += "Visit today for a clean, efficient laundry experience."
    if len(description) > 395:
        description = description[:395] + "..."
    return description

def calculate_premium_score(record: Dict[str, Any]) -> int:
    score = 0
    if record.get("photos"):
        score += 30
    if record.get("logo"):
        score += 10
    if record.get("website"):
        score += 10
    rating = _num(record.get("rating"))
    if rating is not None and rating >= 4.5:
        score += 20
    elif rating is not None and rating >= 4.0:
        score += 10
    review_count = _num(record.get("review_count"), int) or 0
    if review_count > 200:
        score += 10
    elif review_count > 50:
        score += 5
    if len(record.get("seo_tags") or []) >= 3:
        score += 10
    return min(score, 100)

def assess_premium_potential(score: int) -> str:
    if score >= 60:
        return "High"
    if score >= 35:
        return "Medium"
    return "Low"

def enrich_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of record with name cleanup and derived SEO fields."""
    enriched = dict(record)
    enriched["name"] = normalize_business_name(enriched.get("name") or "")
    enriched["seo_tags"] = generate_seo_tags(enriched)
    enriched["slugified_name"] = create_slug(enriched["name"])
    enriched["premium_score"] = calculate_premium_score(enriched)
    enriched["short_summary"] = generate_short_summary(enriched)
    if not (enriched.get("description") or "").strip():
        enriched["default_description"] = generate_default_description(enriched)
    enriched["premium_potential"] = assess_premium_potential(enriched["premium_score"])
    return enriched
