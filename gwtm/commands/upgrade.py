"""
Command for upgrading gwtm to the latest release.
"""

import argparse
import sys
from typing import List, Optional

import httpx

from gwtm.config import Settings
from gwtm.upgrade import (
    AlreadyLatest,
    ChecksumMismatch,
    NetworkError,
    UpgradeError,
    Upgrader,
    fetch_latest_version,
    version_gt
)
from gwtm.utils import print_dry_run, print_error, print_status, print_warning


def run_upgrade(settings: Settings, client: Optional[httpx.Client] = None) -> int:
    """Download, verify and install the latest release over the current binary."""
    current = settings.build.version

    print_status("Checking for newer version on GitHub...")
    try:
        latest = fetch_latest_version(client)
    except UpgradeError as e:
        print_error(e, "Could not check for updates. Try again later.")
        return 1

    upgrader = Upgrader(settings.install_dir, settings.binary_path, client=client)

    if settings.dry_run:
        try:
            if not version_gt(latest, current):
                print_status("You already have the latest version.")
                return 0
        except UpgradeError as e:
            print_error(e, "Version format issue")
            return 1
        plan = upgrader.plan(current, latest)
        print_dry_run(f"Would download {plan.binary_url}")
        print_dry_run(f"Would verify against {plan.checksum_url}")
        print_dry_run(f"Would install to {upgrader.binary_path}")
        return 0

    print_status(f"Upgrading to version {latest}...")
    try:
        upgrader.run(current, latest, on_info=print_status, on_warning=print_warning)
    except AlreadyLatest:
        print_status("You already have the latest version.")
        return 0
    except ChecksumMismatch as e:
        print_error(e, "The download may be corrupt. Try again later.")
        return 1
    except NetworkError as e:
        print_error(e, "Check network connection and try again.")
        return 1
    except UpgradeError as e:
        print_error(e, "Upgrade failed. Try again or download manually from GitHub releases")
        return 1

    print_status(f"Upgrade complete. Now running version {latest}.")
    return 0


def main(args: List[str]) -> int:
    """Main entry point for upgrade command."""
    parser = argparse.ArgumentParser(
        prog='gwtm upgrade',
        description='Download and install the latest version of gwtm'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be done without doing it'
    )

    parsed_args = parser.parse_args(args)
    return run_upgrade(Settings.from_env(dry_run=parsed_args.dry_run))


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
