"""
Command for removing a worktree together with its branch.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from gwtm.config import Settings
from gwtm.core import WorktreeRepo, GwtmError, find_worktree_root
from gwtm.utils import print_dry_run, print_error, print_status


def remove_worktree(
    settings: Settings,
    branch_name: str,
    remote: bool = False,
    cwd: Optional[Path] = None
) -> int:
    """Remove the worktree for branch_name and delete the local (and optionally remote) branch."""
    try:
        root = find_worktree_root(cwd)
    except GwtmError as e:
        print_error(e, "Run this command from a directory where .git points to .bare")
        return 1

    if settings.dry_run:
        print_dry_run(f"Would remove worktree '{branch_name}'")
        print_dry_run(f"Would delete local branch '{branch_name}'")
        if remote:
            print_dry_run(f"Would delete remote branch 'origin/{branch_name}'")
        return 0

    repo = WorktreeRepo(str(root))

    print_status(f"Removing worktree '{branch_name}'")
    try:
        repo.worktree_remove(str(root / branch_name))
    except GwtmError as e:
        print_error(e, "Run 'gwtm list' to see available worktrees and branches")
        return 1

    print_status(f"Deleting local branch '{branch_name}'")
    try:
        repo.delete_branch(branch_name)
    except GwtmError as e:
        # Not fatal: the worktree itself is gone
        print_error(e, "Branch may have already been deleted")

    if remote:
        print_status(f"Deleting remote branch 'origin/{branch_name}'")
        try:
            repo.delete_remote_branch(branch_name)
        except GwtmError as e:
            print_error(e, "Remote branch may not exist or network issue")
            return 1

    print_status("Removal complete.")
    return 0


def main(args: List[str]) -> int:
    """Main entry point for remove command."""
    parser = argparse.ArgumentParser(
        prog='gwtm remove',
        description='Remove a worktree and its local branch'
    )
    parser.add_argument(
        'branch',
        help='Branch whose worktree should be removed'
    )
    parser.add_argument(
        '--remote',
        action='store_true',
        help='Also delete the remote branch'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be done without doing it'
    )

    parsed_args = parser.parse_args(args)
    settings = Settings.from_env(dry_run=parsed_args.dry_run)
    return remove_worktree(settings, parsed_args.branch, parsed_args.remote)


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
