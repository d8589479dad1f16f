# laundrylocator/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler

from .constants import EXPIRE_SUBSCRIPTIONS_JOB_ID
from .crud import expire_subscriptions
from .db import SessionLocal
from .utils import logger


def run_expire_subscriptions():
    db = SessionLocal()
    try:
        expire_subscriptions(db)
    except Exception as e:
        logger.exception("Subscription expiry job failed: %s", e)
    finally:
        db.close()


def start_scheduler() -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(run_expire_subscriptions, 'interval', hours=1, id=EXPIRE_SUBSCRIPTIONS_JOB_ID)
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
