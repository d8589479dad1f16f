# laundrylocator/slugs.py
"""URL slug helpers for listings, cities and states."""
import re
from typing import Callable, Optional

def create_slug(text: str) -> str:
    slug = str(text).lower().strip()
    slug = slug.replace("&", " and ")
    slug = re.sub(r"\s+", "-", slug)
    # \w keeps underscores; slugs are [a-z0-9-] only
    slug = re.sub(r"[^a-z0-9\-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")

def generate_slug(name: str, city: str, state: Optional[str] = None, address: Optional[str] = None) -> str:
    parts = [name]
    if address:
        parts.append(address)
    parts.append(city)
    if state:
        parts.append(state)
    return create_slug(" ".join(p for p in parts if p))

def city_slug(city: str, state: str) -> str:
    return create_slug(f"{city} {state}")

def create_unique_slug(base_slug: str, exists: Callable[[str], bool]) -> str:
    """Append -1, -2, ... to base_slug until `exists` reports it free."""
    slug = base_slug
    counter = 1
    while exists(slug):
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug
