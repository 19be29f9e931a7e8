"""Async client for GitLab merge request draft notes."""

from draftnotes.gitlab_client import GitLabAPIError, GitLabClient, GitLabDecodeError, GitLabError
from draftnotes.resources import draft_notes

__all__ = [
    "GitLabAPIError",
    "GitLabClient",
    "GitLabDecodeError",
    "GitLabError",
    "draft_notes",
]
