"""
Command for cloning a repository as a bare store with an initial worktree.
"""

import argparse
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from gwtm.config import Settings
from gwtm.core import WorktreeRepo, GwtmError, parse_repo_spec
from gwtm.utils import print_dry_run, print_error, print_status

BARE_DIR = '.bare'


def setup_repository(settings: Settings, repo_spec: str, cwd: Optional[Path] = None) -> int:
    """Clone repo_spec into ./<name>/.bare and add a worktree for its default branch."""
    try:
        url, repo_name = parse_repo_spec(repo_spec)
    except GwtmError as e:
        print_error(e, "Examples: acme/webapp, git@gitlab.com:org/repo.git, https://github.com/org/repo")
        return 1

    repo_dir = (Path(cwd) if cwd else Path.cwd()).resolve() / repo_name

    if repo_dir.exists():
        print_error(
            GwtmError(f"Directory '{repo_name}' already exists"),
            "Run setup in a different directory or choose a different name"
        )
        return 1

    repo = WorktreeRepo(str(repo_dir), dry_run=settings.dry_run)

    if settings.dry_run:
        print_dry_run(f"Would create project root: {repo_dir}")
        print_dry_run(f"Would clone bare repository into {BARE_DIR}")
        print_dry_run(f"Would create .git file pointing to {BARE_DIR}")
        print_dry_run("Would configure Git for auto remote tracking")
        print_dry_run("Would fetch all remote branches")
        print_dry_run("Would create initial worktree for default branch")
        return 0

    print_status(f"Creating project root: {repo_name}")
    try:
        repo_dir.mkdir(parents=True)
    except OSError as e:
        print_error(e, "Failed to create project directory")
        return 1

    try:
        default_branch = _populate(repo, url, repo_dir)
    except GwtmError as e:
        # Leave nothing half set up behind
        shutil.rmtree(repo_dir, ignore_errors=True)
        print_error(e, "Check network connection and verify repository URL is accessible")
        return 1

    print_status(f"Setup complete! cd {repo_name}/{default_branch} to start working.")
    return 0


def _populate(repo: WorktreeRepo, url: str, repo_dir: Path) -> str:
    print_status(f"Cloning bare repository into {BARE_DIR}")
    repo.clone(url, str(repo_dir / BARE_DIR), bare=True)

    print_status(f"Creating .git file pointing to {BARE_DIR}")
    try:
        (repo_dir / '.git').write_text(f"gitdir: ./{BARE_DIR}")
    except OSError as e:
        raise GwtmError(f"Failed to create .git file: {e}") from e

    print_status("Configuring Git for auto remote tracking")
    repo.configure_worktree_settings()

    print_status("Ensuring all remote branches are fetched")
    repo.configure_fetch_refspec()

    print_status("Fetching all remote branches")
    repo.fetch(all_remotes=True)

    default_branch = repo.detect_default_branch()

    print_status(f"Creating initial worktree for branch: {default_branch}")
    repo.worktree_add(str(repo_dir / default_branch), default_branch)
    return default_branch


def main(args: List[str]) -> int:
    """Main entry point for setup command."""
    parser = argparse.ArgumentParser(
        prog='gwtm setup',
        description='Clone a repository as a bare repo and create a worktree for the default branch'
    )
    parser.add_argument(
        'repo',
        help='org/repo, SSH URL or HTTPS URL'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be done without doing it'
    )

    parsed_args = parser.parse_args(args)
    settings = Settings.from_env(dry_run=parsed_args.dry_run)
    return setup_repository(settings, parsed_args.repo)


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
