# laundrylocator/csv_import.py
"""CSV import pipeline for laundromat listings.

Rows are read with pandas, validated, normalized, deduplicated within the
batch and against existing listings, enriched with SEO fields and written
through a storage object exposing `get_laundry_by_slug` and
`create_laundromat`. A bad row never aborts the batch.
"""
import os
import re
from typing import Dict, Any, List, Optional, Tuple
from urllib.parse import urlparse

import pandas as pd

from .constants import STATE_NAMES, state_abbr
from .enrich import enrich_record
from .geo import parse_coordinate
from .schemas import ImportResult
from .slugs import generate_slug
from .utils import logger

# alternate header names seen in scraped exports
COLUMN_ALIASES = {
    "full_address": "address",
    "street": "address",
    "postal_code": "zip",
    "zipcode": "zip",
    "zip_code": "zip",
    "lat": "latitude",
    "lng": "longitude",
    "lon": "longitude",
    "site": "website",
    "features": "amenities",
    "categories": "services",
    "reviews": "review_count",
    "working_hours": "hours",
}

_ZIP = re.compile(r"\b(\d{5})(?:-\d{4})?\b")
_STATE_ZIP = re.compile(r"^([A-Za-z]{2}|[A-Za-z][A-Za-z ]+?)\s*(\d{5}(?:-\d{4})?)?$")


def normalize_name(name: str) -> str:
    name = re.sub(r"[^\w\s&'\-.,]", "", name or "")
    name = name.replace("_", " ")
    return re.sub(r"\s+", " ", name).strip()

def normalize_phone(phone: str) -> str:
    phone = (phone or "").strip()
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone

def normalize_website(website: str) -> Optional[str]:
    website = (website or "").strip()
    if not website:
        return None
    if not re.match(r"^[a-z][a-z0-9+.\-]*://", website, re.I):
        website = "https://" + website.lstrip("/")
    try:
        parsed = urlparse(website)
    except ValueError:
        return None
    host = parsed.hostname or ""
    if parsed.scheme.lower() not in ("http", "https") or "." not in host or " " in website:
        return None
    if not re.match(r"^[a-z0-9.\-]+$", host, re.I) or host.startswith(".") or host.endswith("."):
        return None
    return website

def split_list(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, list):
        items = value
    else:
        items = str(value).split(",")
    return [s.strip() for s in items if str(s).strip()]

def parse_address(address: str) -> Dict[str, str]:
    """Split "123 Main St, Denver, CO 80202" into street/city/state/zip.

    Missing parts come back as empty strings.
    """
    parts = [p.strip() for p in (address or "").split(",") if p.strip()]
    out = {"street": parts[0] if parts else "", "city": "", "state": "", "zip": ""}
    if parts and parts[-1].lower() in ("usa", "us", "united states"):
        parts = parts[:-1]
    if len(parts) < 3:
        return out
    m = _STATE_ZIP.match(parts[-1])
    if not m:
        return out
    code = state_abbr(m.group(1))
    if code not in STATE_NAMES:
        return out
    out["street"] = ", ".join(parts[:-2])
    out["city"] = parts[-2]
    out["state"] = code
    out["zip"] = m.group(2) or ""
    return out

def dedupe_key(record: Dict[str, Any]) -> Tuple[str, str]:
    full = f"{record['address']}, {record['city']}, {record['state']} {record['zip']}"
    return record["name"].lower(), re.sub(r"\s+", " ", full.lower()).strip()

def read_rows(path: str) -> List[Dict[str, str]]:
    df = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True, skip_blank_lines=True)
    df.columns = [str(c).strip().lower() for c in df.columns]
    df = df.rename(columns={k: v for k, v in COLUMN_ALIASES.items() if k in df.columns and v not in df.columns})
    # short rows come back as NaN even with keep_default_na=False
    return [
        {k: v.strip() if isinstance(v, str) else "" for k, v in row.items()}
        for row in df.to_dict(orient="records")
    ]

def normalize_row(row: Dict[str, str]) -> Dict[str, Any]:
    """Validate one row and shape it into listing fields; raises ValueError."""
    name = normalize_name(row.get("name", ""))
    address = row.get("address", "")
    parsed = parse_address(address)
    city = row.get("city") or parsed["city"]
    state = row.get("state") or parsed["state"]
    missing = [f for f, v in (("name", name), ("city", city), ("state", state)) if not v]
    if missing:
        raise ValueError(f"missing required fields: {', '.join(missing)}")
    street = address
    if not row.get("city") and parsed["street"]:
        street = parsed["street"]

    latitude = parse_coordinate(row.get("latitude"), 90.0)
    longitude = parse_coordinate(row.get("longitude"), 180.0)
    if latitude is None or longitude is None:
        latitude = longitude = None

    rating = parse_coordinate(row.get("rating"), 5.0)
    try:
        review_count = int(float(row.get("review_count") or 0))
    except ValueError:
        review_count = 0

    return {
        "name": name,
        "address": street or address,
        "city": city.strip(),
        "state": state_abbr(state),
        "zip": row.get("zip") or parsed["zip"],
        "phone": normalize_phone(row.get("phone", "")) or None,
        "website": normalize_website(row.get("website", "")),
        "latitude": str(latitude) if latitude is not None else None,
        "longitude": str(longitude) if longitude is not None else None,
        "hours": row.get("hours") or "Not specified",
        "services": split_list(row.get("services")),
        "amenities": split_list(row.get("amenities")),
        "description": row.get("description") or None,
        "rating": rating,
        "review_count": max(review_count, 0),
        "image_url": row.get("image_url") or row.get("photo") or None,
        "photos": split_list(row.get("photos")),
        "is_featured": (row.get("isfeatured") or row.get("is_featured", "")).lower() in ("true", "1", "yes"),
        "is_premium": (row.get("ispremium") or row.get("is_premium", "")).lower() in ("true", "1", "yes"),
    }

def to_listing(record: Dict[str, Any], slug: str) -> Dict[str, Any]:
    enriched = enrich_record(record)
    data = dict(record)
    data["slug"] = slug
    data["seo_tags"] = ", ".join(enriched["seo_tags"])
    data["short_summary"] = enriched["short_summary"]
    data["premium_score"] = enriched["premium_score"]
    if not data.get("description"):
        data["description"] = enriched.get("default_description")
    if data["is_premium"] or data["is_featured"]:
        data["listing_type"] = "featured" if data["is_featured"] else "premium"
    return data

def import_rows(rows: List[Dict[str, str]], storage) -> ImportResult:
    result = ImportResult(total=len(rows))
    seen = set()
    for i, row in enumerate(rows, start=1):
        label = row.get("name") or f"row {i}"
        try:
            record = normalize_row(row)
        except ValueError as e:
            result.errors.append(f"Row {i} ({label}): {e}")
            continue

        key = dedupe_key(record)
        if key in seen:
            result.duplicates += 1
            continue
        seen.add(key)

        try:
            slug = generate_slug(record["name"], record["city"], address=record["address"])
            if storage.get_laundry_by_slug(slug):
                result.duplicates += 1
                continue
            storage.create_laundromat(to_listing(record, slug))
            result.imported += 1
        except Exception as e:
            logger.warning("Failed to import row %d (%s): %s", i, label, e)
            result.errors.append(f"Row {i} ({label}): error importing record: {e}")

    result.message = (
        f"Processed {result.total} records: {result.imported} imported, "
        f"{result.duplicates} duplicates, {len(result.errors)} errors"
    )
    logger.info(result.message)
    return result

def import_file(path: str, storage) -> ImportResult:
    if not os.path.exists(path):
        return ImportResult(success=False, errors=[f"File not found: {path}"], message="File not found")
    try:
        rows = read_rows(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        logger.error("Could not parse %s: %s", path, e)
        return ImportResult(success=False, errors=[str(e)], message=f"Error processing CSV file: {e}")
    logger.info("Importing %d rows from %s", len(rows), path)
    return import_rows(rows, storage)

def list_csv_files(directory: str) -> List[str]:
    os.makedirs(directory, exist_ok=True)
    return sorted(f for f in os.listdir(directory) if f.lower().endswith(".csv"))
