"""Calendar sharing as the access control behind user registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from labres.domain.errors import AccessGrantError

from .client import GoogleCalendarAPIError

if TYPE_CHECKING:
    from .client import GoogleCalendarClient


class GoogleCalendarAccessControl:
    def __init__(self, client: GoogleCalendarClient, *, role: str = "writer") -> None:
        self._client = client
        self._role = role

    async def grant(self, email: str, source_id: str) -> None:
        try:
            await self._client.insert_acl_rule(source_id, email, role=self._role)
        except (GoogleCalendarAPIError, httpx.HTTPError) as exc:
            raise AccessGrantError(
                f"Could not share {source_id} with {email}: {exc}", source_id=source_id
            ) from exc
