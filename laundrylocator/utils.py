# laundrylocator/utils.py
"""Logging, retry and environment helpers shared across the package."""
import os
import logging
import time
from functools import wraps
from dotenv import load_dotenv

load_dotenv()

def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("laundrylocator")

def retry(exceptions, tries=3, delay=1, backoff=2, logger=logger):
    """Call f up to `tries` times, sleeping delay, delay*backoff, ... between attempts."""
    def deco_retry(f):
        @wraps(f)
        def f_retry(*args, **kwargs):
            remaining, wait = tries, delay
            while remaining > 1:
                try:
                    return f(*args, **kwargs)
                except exceptions as e:
                    logger.warning("%s failed (%s), %d attempts left, retrying in %ss",
                                   f.__name__, e, remaining - 1, wait)
                    time.sleep(wait)
                    remaining -= 1
                    wait *= backoff
            return f(*args, **kwargs)
        return f_retry
    return deco_retry

def env_flag(name: str, default: str = "1") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")

def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw not in (None, "") else default
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default

def env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw not in (None, "") else default
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default
