"""
Asynchronous HackMD API client.

This module exposes the HackMD endpoints as typed coroutine methods. Each
method builds a request descriptor and hands it to the shared
``RequestExecutor``.
"""

import dataclasses
import logging
from typing import Any, Callable, List, Optional

from .config import CallOptions, ClientConfig
from .executor import RequestDescriptor, RequestExecutor
from .models import (
    CreateNoteOptions,
    Note,
    SingleNote,
    Team,
    UpdateNoteOptions,
    User,
    note_list,
    optional_single_note,
    team_list,
)
from .transport import Transport

logger = logging.getLogger(__name__)


class ApiClient:
    """
    HackMD API client.

    Example:
        >>> async with ApiClient("your-access-token") as client:
        ...     me = await client.get_me()
        ...     notes = await client.get_note_list()

    Per-call overrides:
        >>> note = await client.get_note("abc", options=CallOptions(timeout=5))
    """

    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
    ):
        """
        Initialize the client.

        Args:
            access_token: HackMD API access token
            base_url: Override for the API root URL
            config: Client configuration; the token and base URL arguments
                take precedence over the values it carries
            transport: Custom HTTP transport; defaults to an httpx transport

        Raises:
            ValidationError: If the access token is empty or malformed
        """
        config = config or ClientConfig()
        self.config = dataclasses.replace(
            config,
            access_token=access_token,
            base_url=base_url or config.base_url,
        )
        self.executor = RequestExecutor(self.config, transport=transport)
        logger.debug(f"HackMD client created for {self.config.base_url}")

    async def __aenter__(self):
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager and clean up resources."""
        await self.aclose()
        return False

    async def aclose(self):
        """Close the client and clean up resources."""
        await self.executor.aclose()

    async def _call(
        self,
        method: str,
        path: str,
        decoder: Optional[Callable[[Any], Any]] = None,
        body: Any = None,
        options: Optional[CallOptions] = None,
    ) -> Any:
        descriptor = RequestDescriptor(method=method, path=path, body=body)
        return await self.executor.execute(descriptor, decoder=decoder, options=options)

    # User API

    async def get_me(self, options: Optional[CallOptions] = None) -> User:
        """Get the profile of the token's owner."""
        return await self._call("GET", "me", User.from_dict, options=options)

    async def get_history(self, options: Optional[CallOptions] = None) -> List[Note]:
        """Get the notes the user has recently viewed."""
        return await self._call("GET", "history", note_list, options=options)

    # Note API

    async def get_note_list(self, options: Optional[CallOptions] = None) -> List[Note]:
        """List the user's notes."""
        return await self._call("GET", "notes", note_list, options=options)

    async def get_note(
        self, note_id: str, options: Optional[CallOptions] = None
    ) -> SingleNote:
        """Get a note with its content."""
        return await self._call(
            "GET", f"notes/{note_id}", SingleNote.from_dict, options=options
        )

    async def create_note(
        self, payload: CreateNoteOptions, options: Optional[CallOptions] = None
    ) -> SingleNote:
        """Create a note in the user's workspace."""
        return await self._call(
            "POST", "notes", SingleNote.from_dict, body=payload, options=options
        )

    async def update_note_content(
        self, note_id: str, content: str, options: Optional[CallOptions] = None
    ) -> Optional[SingleNote]:
        """Replace a note's content."""
        return await self.update_note(
            note_id, UpdateNoteOptions(content=content), options=options
        )

    async def update_note(
        self,
        note_id: str,
        payload: UpdateNoteOptions,
        options: Optional[CallOptions] = None,
    ) -> Optional[SingleNote]:
        """
        Update a note's content, permissions or permalink.

        Returns the updated note when the API sends one back, or ``None``
        when it answers with no content.
        """
        return await self._call(
            "PATCH",
            f"notes/{note_id}",
            optional_single_note,
            body=payload,
            options=options,
        )

    async def delete_note(
        self, note_id: str, options: Optional[CallOptions] = None
    ) -> None:
        """Delete a note."""
        await self._call("DELETE", f"notes/{note_id}", options=options)

    # Team API

    async def get_teams(self, options: Optional[CallOptions] = None) -> List[Team]:
        """List the teams the user belongs to."""
        return await self._call("GET", "teams", team_list, options=options)

    async def get_team_notes(
        self, team_path: str, options: Optional[CallOptions] = None
    ) -> List[Note]:
        """List a team's notes."""
        return await self._call(
            "GET", f"teams/{team_path}/notes", note_list, options=options
        )

    async def create_team_note(
        self,
        team_path: str,
        payload: CreateNoteOptions,
        options: Optional[CallOptions] = None,
    ) -> SingleNote:
        """Create a note in a team workspace."""
        return await self._call(
            "POST",
            f"teams/{team_path}/notes",
            SingleNote.from_dict,
            body=payload,
            options=options,
        )

    async def update_team_note_content(
        self,
        team_path: str,
        note_id: str,
        content: str,
        options: Optional[CallOptions] = None,
    ) -> Optional[SingleNote]:
        """Replace a team note's content."""
        return await self.update_team_note(
            team_path, note_id, UpdateNoteOptions(content=content), options=options
        )

    async def update_team_note(
        self,
        team_path: str,
        note_id: str,
        payload: UpdateNoteOptions,
        options: Optional[CallOptions] = None,
    ) -> Optional[SingleNote]:
        """Update a team note. Returns the note, or ``None`` for an empty reply."""
        return await self._call(
            "PATCH",
            f"teams/{team_path}/notes/{note_id}",
            optional_single_note,
            body=payload,
            options=options,
        )

    async def delete_team_note(
        self, team_path: str, note_id: str, options: Optional[CallOptions] = None
    ) -> None:
        """Delete a team note."""
        await self._call(
            "DELETE", f"teams/{team_path}/notes/{note_id}", options=options
        )
