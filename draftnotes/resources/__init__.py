"""Resource operations exposed by the GitLab client."""

from . import draft_notes

__all__ = [
    "draft_notes",
]
