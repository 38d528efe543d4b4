"""GitHub API gateway."""

from safe_outputs.adapters.github.base import Comment, GitHubGateway, GitHubUser, Issue, Repository
from safe_outputs.adapters.github.rest import GitHubRestGateway

__all__ = [
    "Comment",
    "GitHubGateway",
    "GitHubRestGateway",
    "GitHubUser",
    "Issue",
    "Repository",
]
