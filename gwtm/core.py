"""
Core gwtm functionality - Git client wrapper and worktree management.
"""

import re
from pathlib import Path
from typing import List, Optional, Tuple

import git
from git import Repo


class GwtmError(Exception):
    """Base exception for gwtm operations."""
    pass


ORG_REPO_PATTERN = re.compile(r'^([a-zA-Z0-9_.-]+)/([a-zA-Z0-9_.-]+)$')

WORKTREE_SETTINGS = {
    'push.default': 'current',
    'branch.autosetupmerge': 'always',
    'branch.autosetuprebase': 'always',
}


class WorktreeRepo:
    """Wrapper around the git executable for worktree-managed repositories."""

    def __init__(self, work_dir: Optional[str] = None, dry_run: bool = False):
        """Initialize with working directory (defaults to current directory)."""
        self.work_dir = Path(work_dir) if work_dir else Path.cwd()
        self.dry_run = dry_run

    def exec_git(self, *args: str) -> Tuple[str, str]:
        """Run git with the given arguments and return (stdout, stderr)."""
        if self.dry_run:
            return f"[DRY-RUN] Would execute: git {' '.join(args)}", ''

        try:
            _, stdout, stderr = git.Git(str(self.work_dir)).execute(
                ['git', *args],
                with_extended_output=True
            )
        except git.exc.GitCommandError as e:
            stderr = (e.stderr or '').strip()
            if stderr:
                raise GwtmError(f"git command failed: git {' '.join(args)}\n{stderr}") from e
            raise GwtmError(f"git command failed: git {' '.join(args)}") from e
        except git.exc.CommandError as e:
            raise GwtmError(f"git command failed: {e}") from e
        return stdout, stderr

    def clone(self, url: str, target: str, bare: bool = True) -> None:
        """Clone a repository into target."""
        if self.dry_run:
            return
        try:
            Repo.clone_from(url, target, bare=bare)
        except git.exc.CommandError as e:
            raise GwtmError(f"Failed to clone repository: {e}") from e

    def fetch(self, all_remotes: bool = True, prune: bool = False) -> None:
        """Fetch from the remote repository."""
        args = ['fetch']
        if all_remotes:
            args.append('--all')
        if prune:
            args.append('--prune')
        self._run(args, 'Failed to fetch')

    def push(self, branch: str, set_upstream: bool = False) -> None:
        """Push a branch to origin."""
        args = ['push']
        if set_upstream:
            args.append('-u')
        args.extend(['origin', branch])
        self._run(args, 'Failed to push')

    def branch_exists(self, name: str, remote: bool = False) -> bool:
        """Check if a branch exists locally or on origin."""
        if remote:
            args = ['branch', '-r', '--list', f"origin/{name}"]
        else:
            args = ['branch', '--list', name]

        try:
            stdout, _ = self.exec_git(*args)
        except GwtmError:
            return False
        return stdout.strip() != ''

    def create_branch(self, name: str, base_branch: Optional[str] = None) -> None:
        """Create a new branch, optionally from base_branch."""
        args = ['branch', name]
        if base_branch:
            args.append(base_branch)
        self._run(args, 'Failed to create branch')

    def delete_branch(self, name: str, force: bool = False) -> None:
        """Delete a local branch."""
        self._run(['branch', '-D' if force else '-d', name], 'Failed to delete branch')

    def delete_remote_branch(self, name: str) -> None:
        """Delete a branch on origin."""
        self._run(['push', 'origin', '--delete', name], 'Failed to delete remote branch')

    def set_config(self, key: str, value: str) -> None:
        """Set a git configuration value."""
        self._run(['config', key, value], f"Failed to set config {key}")

    def configure_fetch_refspec(self) -> None:
        """Make origin fetch every remote branch (bare clones skip this)."""
        self.set_config('remote.origin.fetch', '+refs/heads/*:refs/remotes/origin/*')

    def configure_worktree_settings(self) -> None:
        """Configure automatic remote tracking for new branches."""
        for key, value in WORKTREE_SETTINGS.items():
            self.set_config(key, value)

    def detect_default_branch(self) -> str:
        """Detect the default branch of origin."""
        try:
            stdout, _ = self.exec_git('symbolic-ref', 'refs/remotes/origin/HEAD')
            if stdout.strip():
                # refs/remotes/origin/main
                return stdout.strip().split('/')[-1]
        except GwtmError:
            pass

        try:
            stdout, _ = self.exec_git('remote', 'show', 'origin')
        except GwtmError as e:
            fallback = self._local_default_branch()
            if fallback:
                return fallback
            raise GwtmError(f"Failed to detect default branch: {e}") from e

        for line in stdout.split('\n'):
            if 'HEAD branch:' in line:
                parts = line.split(':')
                if len(parts) == 2:
                    return parts[1].strip()

        fallback = self._local_default_branch()
        if fallback:
            return fallback
        raise GwtmError("Could not detect default branch")

    def _local_default_branch(self) -> Optional[str]:
        for candidate in ('main', 'master'):
            if self.branch_exists(candidate):
                return candidate
        return None

    def worktree_add(self, path: str, branch: str, track: bool = False) -> None:
        """Create a worktree at path, creating branch first when track is set."""
        if track:
            args = ['worktree', 'add', '-b', branch, path]
        else:
            args = ['worktree', 'add', path, branch]

        _, stderr = self._run(args, 'Failed to add worktree')
        # git reports progress on stderr even when it succeeds
        if stderr and 'Preparing worktree' not in stderr:
            raise GwtmError(f"Worktree add warnings: {stderr}")

    def worktree_list(self) -> List[str]:
        """List worktrees, one `git worktree list` line each."""
        stdout, _ = self._run(['worktree', 'list'], 'Failed to list worktrees')
        return [line for line in stdout.strip().split('\n') if line]

    def worktree_remove(self, path: str) -> None:
        """Remove the worktree at path."""
        self._run(['worktree', 'remove', path], 'Failed to remove worktree')

    def worktree_prune(self) -> None:
        """Prune stale worktree administrative files."""
        self._run(['worktree', 'prune'], 'Failed to prune worktrees')

    def _run(self, args: List[str], failure: str) -> Tuple[str, str]:
        try:
            return self.exec_git(*args)
        except GwtmError as e:
            raise GwtmError(f"{failure}: {e}") from e


def find_worktree_root(start: Optional[Path] = None) -> Path:
    """Walk upwards to the directory whose .git is a file, not a directory.

    Every worktree also has a .git file, so a directory holding the .bare
    store is preferred over the nearest match.
    """
    current = Path(start) if start else Path.cwd()
    current = current.resolve()

    nearest = None
    for directory in [current, *current.parents]:
        if (directory / '.git').is_file():
            if (directory / '.bare').is_dir():
                return directory
            if nearest is None:
                nearest = directory

    if nearest is None:
        raise GwtmError("Not in a worktree-managed repository")
    return nearest


def parse_repo_spec(spec: str) -> Tuple[str, str]:
    """Turn `org/repo`, an SSH URL or an HTTP(S) URL into (clone URL, repo name)."""
    if '://' in spec:
        name = _last_segment(_strip_git_suffix(spec))
        if not name:
            raise GwtmError(f"Cannot determine repository name from URL '{spec}'")
        return spec, name

    if spec.startswith('git@'):
        if ':' not in spec:
            raise GwtmError(f"Invalid SSH URL '{spec}': missing ':'")
        path = spec.split(':', 1)[1]
        name = _last_segment(_strip_git_suffix(path))
        if not name:
            raise GwtmError(f"Cannot determine repository name from SSH URL '{spec}'")
        return spec, name

    match = ORG_REPO_PATTERN.match(spec)
    if match:
        org, repo = match.groups()
        return f"git@github.com:{org}/{repo}.git", repo

    raise GwtmError(
        f"Invalid repository format '{spec}'\n"
        "Examples: org/repo, git@github.com:org/repo.git, https://github.com/org/repo"
    )


def _strip_git_suffix(value: str) -> str:
    return value[:-4] if value.endswith('.git') else value


def _last_segment(path: str) -> str:
    for part in reversed(path.split('/')):
        if part:
            return part
    return ''
