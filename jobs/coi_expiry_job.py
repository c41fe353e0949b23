# jobs/coi_expiry_job.py

import argparse
from datetime import datetime

from core.alerts import run_expiry_sweep
from database import session_scope


def run(as_of: datetime = None):
    """
    CLI entry point for the daily COI expiry sweep.
    This is what the platform Cron Job calls.
    """
    with session_scope() as session:
        result = run_expiry_sweep(session, as_of=as_of)

    print(
        f"processed={result.processed} sent={result.sent} "
        f"skipped={result.skipped} failed={result.failed}"
    )
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="Send COI expiry reminders (30/15/7 days).")
    parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="Evaluate as of this ISO datetime (UTC) instead of now",
    )
    args = parser.parse_args(argv)
    run(as_of=args.as_of)


if __name__ == "__main__":
    main()
