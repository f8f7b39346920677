#!/usr/bin/env python3
"""Run the reading triage core.

Starts the background library sync and keeps it running until
interrupted. With --once, runs a single sync and exits non-zero if any
collection failed.

Usage:
    python run_triage.py
    python run_triage.py --once
    python run_triage.py --settings path/to/settings.yaml
"""

import argparse
import sys
import time
from pathlib import Path

from triage.constants import SETTINGS_PATH
from triage.service import TriageService
from triage.settings import load_settings
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Mirror a Readwise library for triage.")
    parser.add_argument("--once", action="store_true", help="Run one sync and exit")
    parser.add_argument("--settings", type=Path, default=SETTINGS_PATH, help="Settings YAML file")
    args = parser.parse_args(argv)

    service = TriageService.from_settings(load_settings(args.settings))

    if args.once:
        result = service.sync_now()
        if not result["ok"]:
            logger.error(f"Sync failed: {result['error']}")
            return 1
        logger.info(f"Sync complete. {result['updated']} documents indexed.")
        return 0

    service.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        service.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
