"""
Basic usage examples for the HackMD API client.

Set HACKMD_ACCESS_TOKEN before running:

    HACKMD_ACCESS_TOKEN=... python examples/basic_usage.py
"""

import asyncio
import logging
import os
import time

from hackmd_client import (
    ApiClient,
    ApiError,
    CallOptions,
    ClientConfig,
    CommentPermissionType,
    CreateNoteOptions,
    ErrorKind,
    NotePermissionRole,
    RateLimitedError,
    RawResponseError,
    RetryConfig,
)


async def notes_example(client: ApiClient):
    """Demonstrate the note lifecycle."""
    print("=== Notes Example ===\n")

    me = await client.get_me()
    print(f"User: {me.name} ({me.email or 'no email'})")
    for team in me.teams:
        print(f"  - {team.name} ({team.path})")
    print()

    note = await client.create_note(
        CreateNoteOptions(
            title="Python client example",
            content="# Python client example\n\nCreated with hackmd-api-client.",
            read_permission=NotePermissionRole.SIGNED_IN,
            write_permission=NotePermissionRole.OWNER,
            comment_permission=CommentPermissionType.OWNERS,
            permalink=f"python-example-{int(time.time())}",
        )
    )
    print(f"Created note: {note.title} (ID: {note.id})")
    print(f"  Publish link: {note.publish_link}\n")

    await client.update_note_content(note.id, "# Updated\n\nContent replaced.")
    print("Updated note content")

    # Concurrent requests share one client
    notes, history = await asyncio.gather(client.get_note_list(), client.get_history())
    print(f"{len(notes)} notes, {len(history)} in history\n")

    await client.delete_note(note.id)
    print(f"Deleted note {note.id}\n")


async def error_handling_example(token: str):
    """Demonstrate error handling."""
    print("=== Error Handling Example ===\n")

    async with ApiClient(token) as client:
        try:
            await client.get_note("this-note-does-not-exist")
        except RateLimitedError as e:
            print(f"Rate limited: {e.remaining}/{e.limit} left, resets at {e.reset}\n")
        except ApiError as e:
            if e.kind is ErrorKind.NOT_FOUND:
                print(f"Note not found ({e.status_code})\n")
            else:
                print(f"Caught {e.kind.value}: {e}\n")

    # Raw error handling (without classification)
    config = ClientConfig(wrap_response_errors=False)
    async with ApiClient(token, config=config) as client:
        try:
            await client.get_note("this-note-does-not-exist")
        except RawResponseError as e:
            print(f"Raw response: {e.status_code} {e.body[:80]!r}\n")


async def main():
    """Run all examples."""
    logging.basicConfig(level=logging.INFO)

    token = os.environ.get("HACKMD_ACCESS_TOKEN", "")
    config = ClientConfig(
        timeout=10.0,
        retry=RetryConfig(max_attempts=3, base_delay=0.2, max_delay=5.0, jitter=0.1),
    )

    async with ApiClient(token, config=config) as client:
        await notes_example(client)

        # Per-call overrides leave the shared configuration untouched
        teams = await client.get_teams(options=CallOptions(timeout=5.0, max_attempts=1))
        print(f"Member of {len(teams)} teams\n")

    await error_handling_example(token)


if __name__ == "__main__":
    asyncio.run(main())
