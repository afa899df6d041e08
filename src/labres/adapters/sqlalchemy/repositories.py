"""SQLite-backed reservation repository and key/value store."""

from __future__ import annotations

import json
import uuid
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from labres.domain.device_spec import format_device_spec, parse_device_spec
from labres.domain.errors import FetchError, RepositoryError
from labres.domain.model import ResourceUsage, Snapshot, TimePeriod

from .startup import configured_engine
from .tables import kv_entries_table, usages_table

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from sqlalchemy.engine import Engine, RowMapping

    from labres.domain.model import ResourceCollection, UsageDraft

log = getLogger(__name__)

IDENTITY_LINKS_NAMESPACE = "identity_links"


def _row_to_usage(row: RowMapping) -> ResourceUsage:
    devices = parse_device_spec(row["devices"]) if row["devices"] else frozenset[int]()
    return ResourceUsage(
        id=row["id"],
        collection_id=row["collection_id"],
        period=TimePeriod(start=row["start_at"], end=row["end_at"]),
        title=row["title"],
        owner=row["owner"],
        devices=devices,
        notes=row["notes"],
    )


def _usage_values(usage: ResourceUsage) -> dict[str, Any]:
    return {
        "start_at": usage.start,
        "end_at": usage.end,
        "title": usage.title,
        "owner": usage.owner,
        "devices": format_device_spec(usage.devices),
        "notes": usage.notes,
    }


class SqlAlchemyUsageRepository:
    """Reservations stored in a local database, shared by the watcher and CLI commands."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or configured_engine()

    async def fetch_snapshot(
        self,
        collection: ResourceCollection,
        *,
        start: datetime,
        end: datetime | None = None,
    ) -> Snapshot:
        conditions = [
            usages_table.c.collection_id == collection.id,
            usages_table.c.end_at > start,
        ]
        if end is not None:
            conditions.append(usages_table.c.start_at < end)
        statement = (
            select(usages_table)
            .where(and_(*conditions))
            .order_by(usages_table.c.start_at, usages_table.c.id)
        )
        try:
            with self._engine.connect() as connection:
                rows = connection.execute(statement).mappings().all()
        except SQLAlchemyError as exc:
            raise FetchError(f"Could not read usages of {collection.name}: {exc}") from exc
        return Snapshot.of(collection.id, (_row_to_usage(row) for row in rows))

    async def create(self, collection: ResourceCollection, draft: UsageDraft) -> ResourceUsage:
        usage = draft.assign_id(uuid.uuid4().hex)
        statement = insert(usages_table).values(
            collection_id=collection.id, id=usage.id, **_usage_values(usage)
        )
        self._write(statement, action=f"create usage on {collection.name}")
        return usage

    async def update(self, collection: ResourceCollection, usage: ResourceUsage) -> ResourceUsage:
        statement = (
            update(usages_table)
            .where(
                usages_table.c.collection_id == collection.id,
                usages_table.c.id == usage.id,
            )
            .values(**_usage_values(usage))
        )
        if self._write(statement, action=f"update usage {usage.id}") == 0:
            raise RepositoryError(f"Usage {usage.id} does not exist in {collection.name}")
        return usage

    async def delete(self, collection: ResourceCollection, usage: ResourceUsage) -> None:
        statement = delete(usages_table).where(
            usages_table.c.collection_id == collection.id,
            usages_table.c.id == usage.id,
        )
        if self._write(statement, action=f"delete usage {usage.id}") == 0:
            raise RepositoryError(f"Usage {usage.id} does not exist in {collection.name}")

    def _write(self, statement: Any, *, action: str) -> int:
        try:
            with self._engine.begin() as connection:
                result = connection.execute(statement)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Could not {action}: {exc}") from exc
        return result.rowcount


class SqlAlchemyKeyValueStore:
    """Namespaced string keys mapped to JSON objects."""

    def __init__(
        self,
        engine: Engine | None = None,
        *,
        namespace: str = IDENTITY_LINKS_NAMESPACE,
    ) -> None:
        self._engine = engine or configured_engine()
        self._namespace = namespace

    def get(self, key: str) -> Mapping[str, str] | None:
        statement = select(kv_entries_table.c.value).where(
            kv_entries_table.c.namespace == self._namespace,
            kv_entries_table.c.key == key,
        )
        with self._engine.connect() as connection:
            value = connection.execute(statement).scalar_one_or_none()
        return json.loads(value) if value is not None else None

    def upsert(self, key: str, value: Mapping[str, str]) -> None:
        payload = json.dumps(dict(value), sort_keys=True)
        with self._engine.begin() as connection:
            updated = connection.execute(
                update(kv_entries_table)
                .where(
                    kv_entries_table.c.namespace == self._namespace,
                    kv_entries_table.c.key == key,
                )
                .values(value=payload)
            )
            if updated.rowcount == 0:
                connection.execute(
                    insert(kv_entries_table).values(
                        namespace=self._namespace, key=key, value=payload
                    )
                )

    def list(self) -> dict[str, Mapping[str, str]]:
        statement = (
            select(kv_entries_table.c.key, kv_entries_table.c.value)
            .where(kv_entries_table.c.namespace == self._namespace)
            .order_by(kv_entries_table.c.key)
        )
        with self._engine.connect() as connection:
            rows = connection.execute(statement).all()
        return {key: json.loads(value) for key, value in rows}
