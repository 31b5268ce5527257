"""
Command for showing the installed version and checking for a newer release.
"""

import argparse
import sys
from typing import List, Optional

import httpx

from gwtm.config import Settings, TOOL_NAME
from gwtm.upgrade import UpgradeError, fetch_latest_version, parse_version
from gwtm.utils import print_error, print_status, print_warning


def show_version(settings: Settings, client: Optional[httpx.Client] = None) -> int:
    """Print the running version and compare it with the latest release."""
    current = settings.build.version
    print(f"{TOOL_NAME} version {settings.build.display()}")

    print_status("Checking for newer version on GitHub...")
    try:
        latest = fetch_latest_version(client)
    except UpgradeError as e:
        print_error(e, "Could not check for updates. Try again later.")
        return 1

    print_status(f"Local version: {current}")
    print_status(f"Remote version: {latest}")

    try:
        newer = parse_version(latest).greater_than(parse_version(current))
    except UpgradeError:
        print_warning("Unable to compare versions")
        return 0

    if newer:
        print(f"{latest} > {current}")
        print_status(f"Run '{TOOL_NAME} upgrade' to upgrade to version {latest}.")
    else:
        print(f"{latest} <= {current}")
        print_status("You already have the latest version.")
    return 0


def main(args: List[str]) -> int:
    """Main entry point for version command."""
    parser = argparse.ArgumentParser(
        prog='gwtm version',
        description='Show version and check for updates'
    )
    parser.parse_args(args)
    return show_version(Settings.from_env())


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
