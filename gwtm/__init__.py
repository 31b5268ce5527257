"""
gwtm - Git Worktree Manager.

gwtm wraps `git worktree` to streamline a branch-per-directory workflow:
a repository is cloned as a bare store and every branch gets its own
working directory next to it. The tool can also upgrade itself from
published releases.
"""

__version__ = "1.0.0"
__author__ = "gwtm"
