"""Pydantic models describing GitLab draft notes returned by the API."""

from pydantic import BaseModel, ConfigDict


class _Snapshot(BaseModel):
    """Immutable view of server state captured when a response was decoded."""

    model_config = ConfigDict(frozen=True, extra="ignore")


class LinePosition(_Snapshot):
    """One end of a multi-line diff range."""

    line_code: str | None = None
    type: str | None = None
    old_line: int | None = None
    new_line: int | None = None


class LineRange(_Snapshot):
    """Start and end lines a draft note spans in a diff."""

    start: LinePosition | None = None
    end: LinePosition | None = None


class NotePosition(_Snapshot):
    """Diff coordinates a line-level draft note is anchored to."""

    base_sha: str | None = None
    start_sha: str | None = None
    head_sha: str | None = None
    old_path: str | None = None
    new_path: str | None = None
    position_type: str | None = None
    old_line: int | None = None
    new_line: int | None = None
    line_range: LineRange | None = None


class DraftNote(_Snapshot):
    """Merge request comment staged by a reviewer and not yet published."""

    id: int
    author_id: int
    merge_request_id: int
    resolve_discussion: bool = False
    discussion_id: str | None = None
    note: str
    commit_id: str | None = None
    line_code: str | None = None
    position: NotePosition | None = None
