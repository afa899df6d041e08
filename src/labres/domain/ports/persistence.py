"""Keyed persistence port used for identity links."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@runtime_checkable
class KeyValueStore(Protocol):
    """Small string keyed store; values are JSON-compatible mappings."""

    def get(self, key: str) -> Mapping[str, str] | None: ...

    def upsert(self, key: str, value: Mapping[str, str]) -> None: ...

    def list(self) -> dict[str, Mapping[str, str]]: ...


__all__ = ["KeyValueStore"]
