"""Identity links between chat users and email addresses."""

from __future__ import annotations

import threading
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import IdentityConflictError, ValidationError
from .model import IdentityLink
from .time_windows import utcnow

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .ports import KeyValueStore
    from .time_windows import Clock

log = getLogger(__name__)


def normalize_email(raw: str) -> str:
    """Validate the basic ``local@domain`` shape and return the trimmed address."""

    email = raw.strip()
    local, sep, domain = email.partition("@")
    if not sep or not local or not domain or "@" in domain:
        raise ValidationError(f"Invalid email address: {raw!r}")
    if any(char.isspace() for char in email):
        raise ValidationError(f"Email address must not contain whitespace: {raw!r}")
    return email


def _to_record(link: IdentityLink) -> dict[str, str]:
    return {
        "chat_user_id": link.chat_user_id,
        "email": link.email,
        "linked_at": link.linked_at.isoformat(),
    }


def _from_record(record: Mapping[str, str]) -> IdentityLink:
    return IdentityLink(
        chat_user_id=record["chat_user_id"],
        email=record["email"],
        linked_at=datetime.fromisoformat(record["linked_at"]),
    )


class IdentityLinkStore:
    """Chat user to email mapping on top of a key/value store.

    Each chat user has at most one email; linking again replaces the previous
    address. Writes are serialized by a lock, reads go straight to the store.
    """

    def __init__(self, store: KeyValueStore, *, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock
        self._write_lock = threading.Lock()

    def get(self, chat_user_id: str) -> IdentityLink | None:
        record = self._store.get(chat_user_id)
        return _from_record(record) if record is not None else None

    def find_by_email(self, email: str) -> IdentityLink | None:
        wanted = email.strip().casefold()
        for record in self._store.list().values():
            if record["email"].casefold() == wanted:
                return _from_record(record)
        return None

    def list(self) -> list[IdentityLink]:
        links = [_from_record(record) for record in self._store.list().values()]
        return sorted(links, key=lambda link: link.chat_user_id)

    def link(self, chat_user_id: str, email: str) -> IdentityLink:
        """Link ``chat_user_id`` to ``email``, replacing any address it had before.

        Raises ``IdentityConflictError`` when the email already belongs to another
        chat user.
        """

        if not chat_user_id.strip():
            raise ValidationError("Chat user id must not be empty")
        address = normalize_email(email)
        with self._write_lock:
            owner = self.find_by_email(address)
            if owner is not None and owner.chat_user_id != chat_user_id:
                raise IdentityConflictError(address, owner.chat_user_id)

            previous = self.get(chat_user_id)
            link = IdentityLink(chat_user_id=chat_user_id, email=address, linked_at=self._clock())
            self._store.upsert(chat_user_id, _to_record(link))

        if previous is not None and previous.email != address:
            log.info(f"Re-linked {chat_user_id}: {previous.email} -> {address}")
        else:
            log.info(f"Linked {chat_user_id} to {address}")
        return link
