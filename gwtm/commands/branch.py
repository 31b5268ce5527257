"""
Command for creating a worktree for a new or existing branch.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from gwtm.config import Settings
from gwtm.core import WorktreeRepo, GwtmError, find_worktree_root
from gwtm.utils import print_dry_run, print_error, print_status, print_warning, prompt_yes_no


def create_branch_worktree(
    settings: Settings,
    branch_name: str,
    base_branch: Optional[str] = None,
    cwd: Optional[Path] = None,
    stdin: Optional[TextIO] = None
) -> int:
    """Create a worktree at <root>/<branch_name>, creating the branch if needed."""
    # Slashes would nest the worktree directory
    if '/' in branch_name or '\\' in branch_name:
        print_error(
            GwtmError(f"Branch name '{branch_name}' contains a slash"),
            "Use hyphens instead of slashes (e.g. 'feature-my-thing' not 'feature/my-thing')"
        )
        return 1

    try:
        root = find_worktree_root(cwd)
    except GwtmError as e:
        print_error(e, "Run this command from within a worktree-managed repository")
        return 1

    repo = WorktreeRepo(str(root), dry_run=settings.dry_run)

    if settings.dry_run:
        print_dry_run("Would fetch latest from origin")
        print_dry_run(f"Would create new branch '{branch_name}'")
        print_dry_run(f"Would push new branch '{branch_name}' to origin")
        print_dry_run(f"Would create worktree for '{branch_name}'")
        return 0

    print_status("Fetching latest from origin")
    try:
        repo.fetch(all_remotes=True)
    except GwtmError as e:
        print_error(e, "Check network connection")
        return 1

    exists_local = repo.branch_exists(branch_name)
    exists_remote = repo.branch_exists(branch_name, remote=True)
    should_push = False

    try:
        if exists_local:
            print_status(f"Branch '{branch_name}' exists locally, creating worktree from it")
            if not exists_remote:
                print_warning(f"Branch '{branch_name}' not found on remote")
                should_push = prompt_yes_no("Push branch to remote?", stdin)

        elif exists_remote:
            print_status(f"Branch '{branch_name}' exists on remote but not locally")
            if not prompt_yes_no("Fetch and create worktree from remote branch?", stdin):
                print_status("Cancelled")
                return 0
            repo.create_branch(branch_name, f"origin/{branch_name}")

        else:
            if not base_branch:
                base_branch = repo.detect_default_branch()
            print_status(f"Creating new branch '{branch_name}' from '{base_branch}'")
            repo.create_branch(branch_name, base_branch)
            should_push = True
    except GwtmError as e:
        print_error(e, "Failed to prepare branch")
        return 1

    worktree_path = root / branch_name
    try:
        repo.worktree_add(str(worktree_path), branch_name)
    except GwtmError as e:
        print_error(e, "Failed to create worktree")
        return 1

    if should_push:
        print_status(f"Pushing new branch '{branch_name}' to origin")
        try:
            repo.push(branch_name, set_upstream=True)
        except GwtmError as e:
            print_error(e, "Failed to push branch to remote")
            return 1

    print_status(f"Worktree for '{branch_name}' is ready at: {worktree_path}")
    return 0


def main(args: List[str]) -> int:
    """Main entry point for new-branch command."""
    parser = argparse.ArgumentParser(
        prog='gwtm new-branch',
        description='Create a worktree for a branch, creating the branch if it does not exist'
    )
    parser.add_argument(
        'branch',
        help='Branch name'
    )
    parser.add_argument(
        'base',
        nargs='?',
        help='Base branch (defaults to the remote default branch)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be done without doing it'
    )

    parsed_args = parser.parse_args(args)
    settings = Settings.from_env(dry_run=parsed_args.dry_run)
    return create_branch_worktree(settings, parsed_args.branch, parsed_args.base)


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
