"""Ports for provisioning backend access for linked users."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AccessControl(Protocol):
    async def grant(self, email: str, source_id: str) -> None:
        """Give ``email`` write access to the backend source, raising ``AccessGrantError``."""
        ...


__all__ = ["AccessControl"]
