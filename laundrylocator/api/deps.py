# laundrylocator/api/deps.py
"""Request dependencies shared by the routers."""
import math
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_db
from ..models import User


def current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> User:
    """Caller identity from the X-User-Id header; sessions are handled upstream."""
    if not x_user_id or not x_user_id.strip().isdigit():
        raise HTTPException(status_code=401, detail="Authentication required")
    user = crud.get_user(db, int(x_user_id.strip()))
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def current_admin(user: User = Depends(current_user)) -> User:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def parse_float_param(name: str, value: Optional[str]) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid or missing '{name}' parameter")
    if not math.isfinite(number):
        raise HTTPException(status_code=400, detail=f"Invalid or missing '{name}' parameter")
    return number
