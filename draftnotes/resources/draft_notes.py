"""Draft note operations on GitLab merge requests."""

import logging
from typing import Generic, NamedTuple, TYPE_CHECKING, TypeVar
from urllib.parse import quote

from pydantic import TypeAdapter

from draftnotes.models import DraftNote

if TYPE_CHECKING:
    import httpx

    from draftnotes.gitlab_client import GitLabClient
    from draftnotes.options import CreateDraftNoteOptions, ListDraftNotesOptions, UpdateDraftNoteOptions

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_DRAFT_NOTE = TypeAdapter(DraftNote)
_DRAFT_NOTES = TypeAdapter(list[DraftNote])


class APIResult(NamedTuple, Generic[T]):
    """Decoded payload paired with the raw response it came from."""

    data: T
    response: "httpx.Response"


def _collection_path(project: int | str, merge_request_iid: int) -> str:
    encoded = quote(str(project), safe="")
    return f"/projects/{encoded}/merge_requests/{merge_request_iid}/draft_notes"


def _note_path(project: int | str, merge_request_iid: int, draft_note_id: int) -> str:
    return f"{_collection_path(project, merge_request_iid)}/{draft_note_id}"


async def get_draft_note(
    client: "GitLabClient",
    project: int | str,
    merge_request_iid: int,
    draft_note_id: int,
) -> APIResult[DraftNote]:
    """Return a single draft note."""
    response = await client.request("GET", _note_path(project, merge_request_iid, draft_note_id))
    return APIResult(client.decode(response, _DRAFT_NOTE), response)


async def list_draft_notes(
    client: "GitLabClient",
    project: int | str,
    merge_request_iid: int,
    options: "ListDraftNotesOptions | None" = None,
) -> APIResult[list[DraftNote]]:
    """Return the draft notes of a merge request in the order the server sent them."""
    params = options.to_params() if options is not None else None
    response = await client.request("GET", _collection_path(project, merge_request_iid), params=params)
    return APIResult(client.decode(response, _DRAFT_NOTES), response)


async def create_draft_note(
    client: "GitLabClient",
    project: int | str,
    merge_request_iid: int,
    options: "CreateDraftNoteOptions",
) -> APIResult[DraftNote]:
    """Create a draft note and return it as stored by GitLab."""
    response = await client.request(
        "POST",
        _collection_path(project, merge_request_iid),
        json=options.to_payload(),
    )
    note = client.decode(response, _DRAFT_NOTE)
    LOGGER.debug("Created draft note %s on %s!%s", note.id, project, merge_request_iid)
    return APIResult(note, response)


async def update_draft_note(
    client: "GitLabClient",
    project: int | str,
    merge_request_iid: int,
    draft_note_id: int,
    options: "UpdateDraftNoteOptions",
) -> APIResult[DraftNote]:
    """Update the fields set on ``options`` and return the resulting draft note."""
    response = await client.request(
        "PUT",
        _note_path(project, merge_request_iid, draft_note_id),
        json=options.to_payload(),
    )
    return APIResult(client.decode(response, _DRAFT_NOTE), response)


async def delete_draft_note(
    client: "GitLabClient",
    project: int | str,
    merge_request_iid: int,
    draft_note_id: int,
) -> "httpx.Response":
    """Delete a draft note."""
    return await client.request("DELETE", _note_path(project, merge_request_iid, draft_note_id))


async def publish_draft_note(
    client: "GitLabClient",
    project: int | str,
    merge_request_iid: int,
    draft_note_id: int,
) -> "httpx.Response":
    """Publish a single draft note so other participants can see it."""
    path = f"{_note_path(project, merge_request_iid, draft_note_id)}/publish"
    return await client.request("PUT", path)


async def publish_all_draft_notes(
    client: "GitLabClient",
    project: int | str,
    merge_request_iid: int,
) -> "httpx.Response":
    """Publish every pending draft note the current user holds on a merge request."""
    path = f"{_collection_path(project, merge_request_iid)}/bulk_publish"
    return await client.request("POST", path)
