import argparse
import time
import schedule
import logging
import sys

from config.app_config import EXPIRY_SWEEP_INTERVAL_MINUTES, LOG_LEVEL
from database.config import SessionLocal
from services.clock import system_clock
from services.collaboration_service import CollaborationService

# Configure Logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler("expiry_worker.log")
    ]
)


def run_expiry_sweep(session_factory=SessionLocal, clock=system_clock) -> int:
    """Decline every request whose response window has lapsed."""
    logging.info("Starting expiry sweep...")
    db = session_factory()
    try:
        expired = CollaborationService(db, clock).expire_due()
        logging.info(f"Sweep complete. {expired} request(s) expired.")
        return expired
    except Exception as e:
        logging.error(f"Error in expiry sweep: {e}")
        return 0
    finally:
        db.close()


def start_scheduler(interval_minutes: int = EXPIRY_SWEEP_INTERVAL_MINUTES):
    logging.info(f"Starting Expiry Scheduler (Every {interval_minutes} minutes)...")
    # Run once immediately
    run_expiry_sweep()

    schedule.every(interval_minutes).minutes.do(run_expiry_sweep)

    while True:
        schedule.run_pending()
        time.sleep(30)


def main():
    parser = argparse.ArgumentParser(description="Collaboration request expiry worker")
    parser.add_argument("--mode", choices=["once", "schedule"], default="schedule", help="Run once or schedule")
    parser.add_argument("--interval", type=int, default=EXPIRY_SWEEP_INTERVAL_MINUTES, help="Minutes between sweeps")
    args = parser.parse_args()

    if args.mode == "schedule":
        start_scheduler(args.interval)
    else:
        run_expiry_sweep()


if __name__ == "__main__":
    main()
