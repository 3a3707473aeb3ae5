"""
gh-autodelete: enable "Automatically delete head branches" on a GitHub repository.

Resolves an access token, checks the repository's delete_branch_on_merge setting
and turns it on when needed, verifying the change with a second read.

Environment:
    GITHUB_TOKEN   - GitHub token (otherwise --token or the gh CLI login is used)
    GITHUB_API_URL - GitHub API URL (default: https://api.github.com)
"""

from gh_autodelete.cli import main

__version__ = "0.1.0"
__all__ = ["main", "__version__"]
