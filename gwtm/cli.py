"""
CLI interface for gwtm.
"""

import sys
import argparse
from typing import Optional, List

from .config import Settings
from .core import GwtmError
from .commands.setup import setup_repository
from .commands.branch import create_branch_worktree
from .commands.list import list_worktrees
from .commands.remove import remove_worktree
from .commands.prune import prune_worktrees
from .commands.version import show_version
from .commands.upgrade import run_upgrade


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='gwtm',
        description='Git worktree manager - simplify git worktree workflows'
    )

    # Add global options
    parser.add_argument(
        '--version', '-v',
        action='version',
        version=f'%(prog)s {Settings.from_env().build.display()}'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Preview actions without executing'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_parser = subparsers.add_parser('setup', help='Clone a repository as bare repo with an initial worktree')
    setup_parser.add_argument('repo', help='org/repo, SSH URL or HTTPS URL')

    branch_parser = subparsers.add_parser('new-branch', help='Create a worktree for a branch')
    branch_parser.add_argument('branch', help='Branch name (no slashes)')
    branch_parser.add_argument('base', nargs='?', help='Base branch for a new branch')

    subparsers.add_parser('list', help='List all worktrees')

    remove_parser = subparsers.add_parser('remove', help='Remove a worktree and its branch')
    remove_parser.add_argument('branch', help='Branch whose worktree should be removed')
    remove_parser.add_argument('--remote', action='store_true', help='Also delete remote branch')

    subparsers.add_parser('prune', help='Prune stale worktrees')
    subparsers.add_parser('version', help='Show version and check for updates')
    subparsers.add_parser('upgrade', help='Upgrade to latest version')

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    if args is None:
        args = sys.argv[1:]

    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    settings = Settings.from_env(dry_run=parsed_args.dry_run, verbose=parsed_args.verbose)

    try:
        return dispatch(settings, parsed_args)
    except GwtmError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        if parsed_args.verbose:
            import traceback
            traceback.print_exc()
        else:
            print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


def dispatch(settings: Settings, args) -> int:
    """Run the handler for the parsed subcommand."""
    if args.command == 'setup':
        return setup_repository(settings, args.repo)
    elif args.command == 'new-branch':
        return create_branch_worktree(settings, args.branch, args.base)
    elif args.command == 'list':
        return list_worktrees(settings)
    elif args.command == 'remove':
        return remove_worktree(settings, args.branch, args.remote)
    elif args.command == 'prune':
        return prune_worktrees(settings)
    elif args.command == 'version':
        return show_version(settings)
    elif args.command == 'upgrade':
        return run_upgrade(settings)
    raise GwtmError(f"Unknown command '{args.command}'")


if __name__ == '__main__':
    sys.exit(main())
