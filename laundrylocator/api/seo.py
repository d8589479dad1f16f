# laundrylocator/api/seo.py
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.orm import Session

from .. import crud, seo
from ..cache import TTLCache, get_cache
from ..db import get_db

router = APIRouter(tags=["seo"])


def _site_paths(db: Session):
    paths = ["/", "/states"]
    paths += [f"/states/{s['slug']}" for s in crud.state_rollups(db)]
    paths += [f"/cities/{c['slug']}" for c in crud.city_rollups(db)]
    paths += [f"/laundromats/{slug}" for slug in crud.all_slugs(db)]
    return paths


@router.get("/sitemap.xml")
def sitemap(db: Session = Depends(get_db), cache: TTLCache = Depends(get_cache)):
    xml = cache.get_or_set("sitemap", lambda: seo.sitemap_xml(_site_paths(db), datetime.now()))
    return Response(content=xml, media_type="application/xml")


@router.get("/robots.txt", response_class=PlainTextResponse)
def robots():
    return seo.robots_txt()
