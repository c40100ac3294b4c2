"""Find GitHub repositories from a quick-launcher.

Ranks a user's repositories against `owner/fragment` or `/fragment` input
with a short-lived per-owner cache, and falls back to GitHub's full-text
repository search for plain input.
"""

from .cli import main
from .plugin import GitHubRepoPlugin
from .settings import Settings

__all__ = ["main", "GitHubRepoPlugin", "Settings"]

if __name__ == "__main__":
    main()
