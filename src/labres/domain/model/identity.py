"""Links between chat platform users and their email addresses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(slots=True, frozen=True)
class IdentityLink:
    chat_user_id: str
    email: str
    linked_at: datetime

    def mention(self) -> str:
        return f"<@{self.chat_user_id}>"
