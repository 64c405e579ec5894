"""Periodic auto-renewal sweep.

Runs ``SubscriptionService.renew_due_bundles`` every RENEWAL_INTERVAL_SEC
seconds, or once with ``--once`` (for cron).
"""
import argparse
import logging
import os
import time

from core.logging_config import setup_logging
from db.session import SessionLocal
from services.subscription_service import SubscriptionService

RENEWAL_INTERVAL_SEC = float(os.getenv("RENEWAL_INTERVAL_SEC", "300"))

logger = logging.getLogger("renewal_worker")


def run_sweep() -> dict:
    db = SessionLocal()
    try:
        return SubscriptionService(db).renew_due_bundles().to_dict()
    finally:
        db.close()


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Renew subscription bundles whose renewal date has passed.")
    parser.add_argument("--once", action="store_true", help="run a single sweep and exit")
    parser.add_argument("--interval", type=float, default=RENEWAL_INTERVAL_SEC)
    args = parser.parse_args(argv)

    setup_logging()

    while True:
        try:
            summary = run_sweep()
            logger.info("Sweep done: %s", summary)
        except Exception:
            if args.once:
                raise
            logger.exception("Renewal sweep failed, retrying in %s seconds", args.interval)
        if args.once:
            return
        time.sleep(args.interval)


if __name__ == "__main__":
    main()
