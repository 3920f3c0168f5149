"""Rewrite Renovate presets from MyOrg to MyOtherOrg across a GitHub organization.

Scans the organization's repositories for renovate.json, commits the
rewritten file on a branch and opens a pull request, pausing whenever the
GitHub rate limit runs out.
"""

from .cli import main
from .models import RepoOutcome, Repository

__all__ = ["main", "RepoOutcome", "Repository"]

if __name__ == "__main__":
    main()
