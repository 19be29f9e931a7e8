"""Command-line entry point for the draft notes client."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, NoReturn, TypeVar

import orjson
import typer

from draftnotes.config import ClientSettings, load_settings
from draftnotes.gitlab_client import GitLabClient, GitLabError
from draftnotes.options import (
    CreateDraftNoteOptions,
    ListDraftNotesOptions,
    PositionOptions,
    UpdateDraftNoteOptions,
)
from draftnotes.resources import draft_notes

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pydantic import BaseModel

T = TypeVar("T")

app = typer.Typer(add_completion=False, help="Manage GitLab merge request draft notes.")

ProjectArg = Annotated[str, typer.Argument(help="Project ID or path with namespace, e.g. group/repo.")]
MergeRequestArg = Annotated[int, typer.Argument(min=1, help="Merge request IID.")]
NoteIdArg = Annotated[int, typer.Argument(min=1, help="Draft note ID.")]

BaseShaOption = Annotated[str | None, typer.Option("--base-sha", help="Base commit SHA of the diff.")]
StartShaOption = Annotated[str | None, typer.Option("--start-sha", help="Start commit SHA of the diff.")]
HeadShaOption = Annotated[str | None, typer.Option("--head-sha", help="Head commit SHA of the diff.")]
OldPathOption = Annotated[str | None, typer.Option("--old-path", help="File path before the change.")]
NewPathOption = Annotated[str | None, typer.Option("--new-path", help="File path after the change.")]
OldLineOption = Annotated[int | None, typer.Option("--old-line", help="Line number before the change.")]
NewLineOption = Annotated[int | None, typer.Option("--new-line", help="Line number after the change.")]


class SortOrder(str, Enum):
    """Sort directions accepted by the list endpoint."""

    asc = "asc"
    desc = "desc"


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s - %(message)s")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable verbose logging output.")] = False,
) -> None:
    """Configure logging before executing a sub-command."""
    _configure_logging(verbose)


@app.command("list")
def list_notes(
    project: ProjectArg,
    merge_request_iid: MergeRequestArg,
    page: Annotated[int | None, typer.Option("--page", min=1, help="Page to request.")] = None,
    per_page: Annotated[
        int | None,
        typer.Option("--per-page", min=1, max=100, help="Number of draft notes per page."),
    ] = None,
    order_by: Annotated[str | None, typer.Option("--order-by", help="Field to order results by.")] = None,
    sort: Annotated[SortOrder | None, typer.Option("--sort", help="Sort direction.")] = None,
) -> None:
    """List the draft notes of a merge request."""
    options = ListDraftNotesOptions(
        **_provided(page=page, per_page=per_page, order_by=order_by, sort=sort.value if sort else None),
    )
    notes, _ = _run(lambda client: draft_notes.list_draft_notes(client, project, merge_request_iid, options))
    _echo_json([note.model_dump(mode="json") for note in notes])


@app.command("get")
def get_note(project: ProjectArg, merge_request_iid: MergeRequestArg, draft_note_id: NoteIdArg) -> None:
    """Show a single draft note."""
    note, _ = _run(lambda client: draft_notes.get_draft_note(client, project, merge_request_iid, draft_note_id))
    _echo_model(note)


@app.command("create")
def create_note(
    project: ProjectArg,
    merge_request_iid: MergeRequestArg,
    note: Annotated[str, typer.Option("--note", help="Text of the draft note.")],
    commit_id: Annotated[str | None, typer.Option("--commit-id", help="Commit the note refers to.")] = None,
    in_reply_to: Annotated[
        str | None,
        typer.Option("--in-reply-to", help="Discussion ID the note replies to."),
    ] = None,
    resolve_discussion: Annotated[
        bool | None,
        typer.Option(
            "--resolve-discussion/--no-resolve-discussion",
            help="Resolve the discussion when the note is published.",
        ),
    ] = None,
    position_type: Annotated[str | None, typer.Option("--position-type", help="Position type, e.g. text.")] = None,
    base_sha: BaseShaOption = None,
    start_sha: StartShaOption = None,
    head_sha: HeadShaOption = None,
    old_path: OldPathOption = None,
    new_path: NewPathOption = None,
    old_line: OldLineOption = None,
    new_line: NewLineOption = None,
) -> None:
    """Stage a new draft note on a merge request."""
    position = _position_options(
        position_type=position_type,
        base_sha=base_sha,
        start_sha=start_sha,
        head_sha=head_sha,
        old_path=old_path,
        new_path=new_path,
        old_line=old_line,
        new_line=new_line,
    )
    options = CreateDraftNoteOptions(
        note=note,
        **_provided(
            commit_id=commit_id,
            in_reply_to_discussion_id=in_reply_to,
            resolve_discussion=resolve_discussion,
            position=position,
        ),
    )
    created, _ = _run(lambda client: draft_notes.create_draft_note(client, project, merge_request_iid, options))
    _echo_model(created)


@app.command("update")
def update_note(
    project: ProjectArg,
    merge_request_iid: MergeRequestArg,
    draft_note_id: NoteIdArg,
    note: Annotated[str | None, typer.Option("--note", help="Replacement text of the draft note.")] = None,
    position_type: Annotated[str | None, typer.Option("--position-type", help="Position type, e.g. text.")] = None,
    base_sha: BaseShaOption = None,
    start_sha: StartShaOption = None,
    head_sha: HeadShaOption = None,
    old_path: OldPathOption = None,
    new_path: NewPathOption = None,
    old_line: OldLineOption = None,
    new_line: NewLineOption = None,
) -> None:
    """Change the text or position of a draft note."""
    position = _position_options(
        position_type=position_type,
        base_sha=base_sha,
        start_sha=start_sha,
        head_sha=head_sha,
        old_path=old_path,
        new_path=new_path,
        old_line=old_line,
        new_line=new_line,
    )
    options = UpdateDraftNoteOptions(**_provided(note=note, position=position))
    if not options.model_fields_set:
        typer.secho("Nothing to update: pass --note or position options.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    updated, _ = _run(
        lambda client: draft_notes.update_draft_note(client, project, merge_request_iid, draft_note_id, options),
    )
    _echo_model(updated)


@app.command("delete")
def delete_note(project: ProjectArg, merge_request_iid: MergeRequestArg, draft_note_id: NoteIdArg) -> None:
    """Delete a draft note."""
    _run(lambda client: draft_notes.delete_draft_note(client, project, merge_request_iid, draft_note_id))
    typer.echo(f"Deleted draft note {draft_note_id} on {project}!{merge_request_iid}")


@app.command("publish")
def publish_note(project: ProjectArg, merge_request_iid: MergeRequestArg, draft_note_id: NoteIdArg) -> None:
    """Publish a single draft note."""
    _run(lambda client: draft_notes.publish_draft_note(client, project, merge_request_iid, draft_note_id))
    typer.echo(f"Published draft note {draft_note_id} on {project}!{merge_request_iid}")


@app.command("publish-all")
def publish_all(project: ProjectArg, merge_request_iid: MergeRequestArg) -> None:
    """Publish every pending draft note on a merge request."""
    _run(lambda client: draft_notes.publish_all_draft_notes(client, project, merge_request_iid))
    typer.echo(f"Published all draft notes on {project}!{merge_request_iid}")


@app.command()
def doctor() -> None:
    """Validate configuration and verify GitLab API connectivity."""
    settings = _load_settings_or_exit()
    typer.echo(f"Loaded configuration for API: {settings.gitlab_api_base}")
    asyncio.run(_doctor(settings))


async def _doctor(settings: ClientSettings) -> None:
    try:
        async with GitLabClient(settings) as client:
            response = await client.request("GET", "/user")
            payload = client.parse_json(response)
    except GitLabError as exc:
        typer.echo(f"Failed to reach GitLab API: {exc}")
        raise typer.Exit(code=1) from exc
    username = payload.get("username", "unknown") if isinstance(payload, dict) else "unknown"
    typer.echo(f"Authenticated as: {username}")


def _run(operation: Callable[[GitLabClient], Awaitable[T]]) -> T:
    settings = _load_settings_or_exit()
    try:
        return asyncio.run(_call(settings, operation))
    except GitLabError as exc:
        _handle_api_error(exc)


async def _call(settings: ClientSettings, operation: Callable[[GitLabClient], Awaitable[T]]) -> T:
    async with GitLabClient(settings) as client:
        return await operation(client)


def _position_options(**fields: Any) -> PositionOptions | None:
    provided = _provided(**fields)
    if not provided:
        return None
    return PositionOptions(**provided)


def _provided(**fields: Any) -> dict[str, Any]:
    """Drop options the user did not pass so they stay unset on the request model."""
    return {key: value for key, value in fields.items() if value is not None}


def _echo_model(model: BaseModel) -> None:
    _echo_json(model.model_dump(mode="json"))


def _echo_json(payload: object) -> None:
    typer.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


def _load_settings_or_exit() -> ClientSettings:
    try:
        return load_settings()
    except ValueError as exc:
        _handle_settings_error(exc)


def _handle_settings_error(exc: ValueError) -> NoReturn:
    typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def _handle_api_error(exc: GitLabError) -> NoReturn:
    typer.secho(f"GitLab request failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


if __name__ == "__main__":
    app()
