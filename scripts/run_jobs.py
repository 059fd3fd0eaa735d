"""Run the cron jobs once, for use from an external crontab.

    python scripts/run_jobs.py process-scheduled-reports
    python scripts/run_jobs.py auto-close-overtime-shifts
"""

from __future__ import annotations

import argparse
import json

from timeclock.container import build_container
from timeclock.main import configure_logging, load_settings
from timeclock.scheduler import JOBS


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("jobs", nargs="+", choices=sorted(JOBS))
    args = parser.parse_args()

    settings = load_settings()
    configure_logging(settings)
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    for name in args.jobs:
        print(json.dumps({"job": name, "result": JOBS[name](container)}))


if __name__ == "__main__":
    main()
