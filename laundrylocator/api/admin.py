# laundrylocator/api/admin.py
"""Admin-only CSV import triggers. Files are uploaded to CSV_UPLOAD_DIR out of band."""
import os

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..cache import TTLCache, get_cache
from ..constants import CSV_UPLOAD_DIR
from ..csv_import import import_file, list_csv_files
from ..db import get_db
from ..utils import logger
from .deps import current_admin

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(current_admin)])


def upload_dir() -> str:
    return CSV_UPLOAD_DIR


def _resolve(directory: str, filename: str) -> str:
    base = os.path.realpath(directory)
    path = os.path.realpath(os.path.join(base, filename))
    if os.path.dirname(path) != base or not filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Invalid file name")
    return path


@router.get("/import/files")
def import_files(directory: str = Depends(upload_dir)):
    return {"files": list_csv_files(directory)}


@router.post("/import", response_model=schemas.ImportResult)
def run_import(payload: schemas.ImportRequest, directory: str = Depends(upload_dir),
               db: Session = Depends(get_db), cache: TTLCache = Depends(get_cache)):
    path = _resolve(directory, payload.filename)
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail=f"File not found: {payload.filename}")
    logger.info("Admin import of %s", path)
    result = import_file(path, crud.SqlStorage(db))
    if result.imported:
        # state/city counts changed
        cache.clear()
    return result
