"""Append a dated snapshot of the stored state (run weekly by the scheduler)."""
from __future__ import annotations

import argparse
import logging

from workback.state_store.repository import build_state_repository
from workback.state_store.service import StateService


def main() -> None:
    parser = argparse.ArgumentParser(description="Write a dated backup of the workback state")
    parser.add_argument("--backend", default=None, help="memory, sharepoint or blob (defaults to STATE_BACKEND)")
    parser.add_argument("--date", default=None, help="Backup date as YYYY-MM-DD (defaults to today, UTC)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    service = StateService(repo=build_state_repository(args.backend))
    name = service.run_weekly_backup(args.date)
    print(f"Backup: {name or 'skipped (no state stored)'}")


if __name__ == "__main__":
    main()
