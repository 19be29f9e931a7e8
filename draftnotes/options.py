"""Request option models for draft note write and list operations.

Options only serialize the fields a caller explicitly set. Pydantic records
presence in ``model_fields_set``, so ``UpdateDraftNoteOptions()`` sends an empty
body while ``UpdateDraftNoteOptions(note="")`` sends ``{"note": ""}``.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Options(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body containing only the fields that were set."""
        return self.model_dump(mode="json", exclude_unset=True)


class LinePositionOptions(_Options):
    """One end of a line range in a position request."""

    line_code: str | None = None
    type: Literal["new", "old"] | None = None
    old_line: int | None = None
    new_line: int | None = None


class LineRangeOptions(_Options):
    """Multi-line range for a position request."""

    start: LinePositionOptions | None = None
    end: LinePositionOptions | None = None


class PositionOptions(_Options):
    """Diff coordinates used to anchor a draft note to a line."""

    base_sha: str | None = None
    start_sha: str | None = None
    head_sha: str | None = None
    position_type: str | None = None
    old_path: str | None = None
    new_path: str | None = None
    old_line: int | None = None
    new_line: int | None = None
    line_range: LineRangeOptions | None = None


class CreateDraftNoteOptions(_Options):
    """Fields accepted when creating a draft note."""

    note: str
    commit_id: str | None = None
    in_reply_to_discussion_id: str | None = None
    resolve_discussion: bool | None = None
    position: PositionOptions | None = None


class UpdateDraftNoteOptions(_Options):
    """Fields accepted when updating a draft note."""

    note: str | None = None
    position: PositionOptions | None = None


class ListDraftNotesOptions(_Options):
    """Query parameters passed through when listing draft notes."""

    page: int | None = Field(default=None, ge=1)
    per_page: int | None = Field(default=None, ge=1, le=100)
    order_by: str | None = None
    sort: Literal["asc", "desc"] | None = None

    def to_params(self) -> dict[str, Any]:
        """Return the query parameters that were set and are not empty."""
        return self.model_dump(mode="json", exclude_unset=True, exclude_none=True)
