"""Registration use case: link a chat user and grant calendar access."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import AccessGrantError
from .identity import normalize_email

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .identity import IdentityLinkStore
    from .model import IdentityLink, ResourceCollection
    from .ports import AccessControl

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GrantFailure:
    collection: ResourceCollection
    error: AccessGrantError


@dataclass(slots=True)
class GrantSummary:
    """Per-collection outcome of a registration."""

    link: IdentityLink
    granted: list[ResourceCollection] = field(default_factory=list)
    failed: list[GrantFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed


@dataclass(slots=True)
class AccessGrantService:
    identities: IdentityLinkStore
    access_control: AccessControl

    async def grant_access(
        self,
        raw_email: str,
        chat_user_id: str,
        collections: Iterable[ResourceCollection],
    ) -> GrantSummary:
        """Validate ``raw_email``, store the link and grant access collection by collection.

        The link is stored first and kept even if every grant fails; grant failures are
        reported in the summary instead of aborting the remaining collections.
        """

        email = normalize_email(raw_email)
        link = self.identities.link(chat_user_id, email)
        summary = GrantSummary(link=link)

        for collection in collections:
            if not collection.grant_access:
                continue
            try:
                await self.access_control.grant(email, collection.source_id)
            except AccessGrantError as exc:
                log.warning("Granting %s access to %s failed: %s", email, collection.name, exc)
                summary.failed.append(GrantFailure(collection, exc))
            else:
                summary.granted.append(collection)

        log.info(
            f"Registered {chat_user_id} as {email}: granted={len(summary.granted)}, "
            f"failed={len(summary.failed)}"
        )
        return summary
