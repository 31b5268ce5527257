"""
Command for listing worktrees.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from gwtm.config import Settings
from gwtm.core import WorktreeRepo, GwtmError, find_worktree_root
from gwtm.utils import print_dry_run, print_error, print_status


def list_worktrees(settings: Settings, cwd: Optional[Path] = None) -> int:
    """Print every worktree of the surrounding worktree-managed repository."""
    try:
        root = find_worktree_root(cwd)
    except GwtmError as e:
        print_error(e, "Run this command from a directory where .git points to .bare")
        return 1

    if settings.dry_run:
        print_dry_run("Would list all worktrees")
        return 0

    repo = WorktreeRepo(str(root))
    try:
        worktrees = repo.worktree_list()
    except GwtmError as e:
        print_error(e, "Failed to list worktrees")
        return 1

    print_status("Active Git worktrees:")
    for worktree in worktrees:
        print(worktree)
    return 0


def main(args: List[str]) -> int:
    """Main entry point for list command."""
    parser = argparse.ArgumentParser(
        prog='gwtm list',
        description='List all worktrees'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be done without doing it'
    )

    parsed_args = parser.parse_args(args)
    return list_worktrees(Settings.from_env(dry_run=parsed_args.dry_run))


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
