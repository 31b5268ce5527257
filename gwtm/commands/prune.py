"""
Command for pruning stale worktree references.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from gwtm.config import Settings
from gwtm.core import WorktreeRepo, GwtmError, find_worktree_root
from gwtm.utils import print_dry_run, print_error, print_status


def prune_worktrees(settings: Settings, cwd: Optional[Path] = None) -> int:
    """Remove administrative data of worktrees whose directories are gone."""
    try:
        root = find_worktree_root(cwd)
    except GwtmError as e:
        print_error(e, "Run this command from a directory where .git points to .bare")
        return 1

    if settings.dry_run:
        print_dry_run("Would prune stale worktrees")
        return 0

    print_status("Pruning stale worktrees...")
    try:
        WorktreeRepo(str(root)).worktree_prune()
    except GwtmError as e:
        print_error(e, "Failed to prune worktrees")
        return 1

    print_status("Prune complete.")
    return 0


def main(args: List[str]) -> int:
    """Main entry point for prune command."""
    parser = argparse.ArgumentParser(
        prog='gwtm prune',
        description='Remove stale worktree references'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be done without doing it'
    )

    parsed_args = parser.parse_args(args)
    return prune_worktrees(Settings.from_env(dry_run=parsed_args.dry_run))


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
