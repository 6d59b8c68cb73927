"""
PostgreSQL storage backend.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from core.config import Settings, settings as default_settings
from core.exceptions import DatabaseError, ErrorCode
from database.models import ModuleRecord, ProviderRecord, PublisherRecord
from database.session import close_db, create_engine, create_session_maker, init_db
from services.storage.base import Filter, Record, StorageBackend
from services.storage.versioning import latest_version

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from models.pagination import PaginationMeta

logger = logging.getLogger(__name__)

# wire-format key -> mapped attribute
MODULE_COLUMNS = {
    "id": "id",
    "namespace": "namespace",
    "name": "name",
    "provider": "provider",
    "version": "version",
    "owner": "owner",
    "location": "location",
    "downloads": "downloads",
}
PROVIDER_COLUMNS = {
    "id": "id",
    "namespace": "namespace",
    "type": "type",
    "version": "version",
    "platforms": "platforms",
}
PUBLISHER_COLUMNS = {
    "id": "id",
    "name": "name",
    "url": "url",
    "trustSignature": "trust_signature",
    "gpgKeys": "gpg_keys",
}


def build_conditions(
    model: type,
    filter: Filter,
    columns: dict[str, str],
    extension_column: str | None = None,
) -> list[ColumnElement[bool]]:
    """
    Translate an equality filter into SQL conditions.

    Dotted keys sharing a prefix become one JSONB containment test, so they
    must match within a single list element. Unknown plain keys are matched
    inside ``extension_column`` when the table has one.
    """
    conditions: list[ColumnElement[bool]] = []
    nested: dict[str, dict[str, Any]] = {}

    for key, value in filter.items():
        if "." in key:
            head, _, rest = key.partition(".")
            nested.setdefault(head, {})[rest] = value
        elif key in columns:
            conditions.append(getattr(model, columns[key]) == value)
        elif extension_column is not None:
            conditions.append(getattr(model, extension_column).contains({key: value}))
        else:
            raise DatabaseError(
                message=f"Unsupported filter field for {model.__tablename__}: {key}",
                operation="filter",
            )

    for head, sub_filter in nested.items():
        if head not in columns:
            raise DatabaseError(
                message=f"Unsupported filter field for {model.__tablename__}: {head}",
                operation="filter",
            )
        conditions.append(getattr(model, columns[head]).contains([sub_filter]))

    return conditions


def _duplicate_error(table: str, operation: str, cause: IntegrityError) -> DatabaseError:
    return DatabaseError(
        message=f"Duplicate {table} record",
        operation=operation,
        error_code=ErrorCode.DATABASE_CONSTRAINT_VIOLATION,
        cause=cause,
    )


def _isoformat(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def module_to_dict(row: ModuleRecord) -> Record:
    # Definition keys first so canonical columns always win.
    return {
        **(row.definition or {}),
        "id": row.id,
        "owner": row.owner,
        "namespace": row.namespace,
        "name": row.name,
        "provider": row.provider,
        "version": row.version,
        "location": row.location,
        "downloads": row.downloads,
        "createdAt": _isoformat(row.created_at),
    }


def module_from_dict(record: Record) -> ModuleRecord:
    reserved = set(MODULE_COLUMNS) | {"createdAt"}
    return ModuleRecord(
        namespace=record["namespace"],
        name=record["name"],
        provider=record["provider"],
        version=record["version"],
        owner=record.get("owner") or "",
        location=record.get("location"),
        definition={k: v for k, v in record.items() if k not in reserved},
        downloads=0,
    )


def provider_to_dict(row: ProviderRecord) -> Record:
    return {
        "id": row.id,
        "namespace": row.namespace,
        "type": row.type,
        "version": row.version,
        "platforms": list(row.platforms or []),
        "createdAt": _isoformat(row.created_at),
    }


def provider_from_dict(record: Record) -> ProviderRecord:
    return ProviderRecord(
        namespace=record["namespace"],
        type=record["type"],
        version=record["version"],
        platforms=list(record.get("platforms") or []),
    )


def publisher_to_dict(row: PublisherRecord) -> Record:
    return {
        "id": row.id,
        "name": row.name,
        "url": row.url,
        "trustSignature": row.trust_signature,
        "gpgKeys": list(row.gpg_keys or []),
        "createdAt": _isoformat(row.created_at),
    }


def publisher_from_dict(record: Record) -> PublisherRecord:
    return PublisherRecord(
        name=record["name"],
        url=record.get("url"),
        trust_signature=record.get("trustSignature"),
        gpg_keys=list(record.get("gpgKeys") or []),
    )


def publisher_changes(partial: Record) -> dict[str, Any]:
    """Column values to set from a partial publisher record."""
    return {
        PUBLISHER_COLUMNS[key]: value
        for key, value in partial.items()
        if key in PUBLISHER_COLUMNS and key != "id"
    }


class PostgreSQLBackend(StorageBackend):
    """
    PostgreSQL storage backend.

    Features:
    - One async engine and session maker per backend instance
    - JSONB columns for definitions, platforms and GPG keys
    - Atomic download counter via UPDATE ... RETURNING
    """

    store_type = "postgresql"

    def __init__(self, settings: Settings | None = None) -> None:
        """PostgreSQL backend 초기화."""
        self.settings = settings or default_settings
        self._initialized = False
        self._engine: AsyncEngine | None = None
        self._session_maker: async_sessionmaker[AsyncSession] | None = None

    @property
    def module_db(self) -> Any:
        return ModuleRecord.__table__

    @property
    def provider_db(self) -> Any:
        return ProviderRecord.__table__

    @property
    def publisher_db(self) -> Any:
        return PublisherRecord.__table__

    async def initialize(self) -> None:
        """PostgreSQL 연결 및 테이블 초기화."""
        if self._initialized:
            logger.info("PostgreSQL backend already initialized")
            return

        try:
            self._engine = create_engine(self.settings)
            await init_db(self._engine)
            self._session_maker = create_session_maker(self._engine)
            self._initialized = True
            logger.info("PostgreSQL backend initialized successfully")

        except Exception as e:
            logger.error("Failed to initialize PostgreSQL backend: %s", e)
            raise

    async def finalize(self) -> None:
        """PostgreSQL 연결 종료."""
        if self._initialized and self._engine is not None:
            await close_db(self._engine)
            self._engine = None
            self._session_maker = None
            self._initialized = False
            logger.info("PostgreSQL backend finalized")

    def _session(self) -> AsyncSession:
        return self._session_maker()

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    async def _add(self, row: Any) -> Any:
        await self._ensure_initialized()
        async with self._session() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                raise _duplicate_error(row.__tablename__, "insert", e) from e
            await session.refresh(row)
            logger.debug("Inserted %r", row)
            return row

    async def _all(self, stmt: Select) -> list[Any]:
        await self._ensure_initialized()
        async with self._session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def _first(self, stmt: Select) -> Any | None:
        await self._ensure_initialized()
        async with self._session() as session:
            result = await session.execute(stmt.limit(1))
            return result.scalars().first()

    async def _count(self, model: type, conditions: list[ColumnElement[bool]]) -> int:
        await self._ensure_initialized()
        async with self._session() as session:
            stmt = select(func.count()).select_from(model).where(*conditions)
            result = await session.execute(stmt)
            return int(result.scalar() or 0)

    # ==================== modules ====================

    @staticmethod
    def _module_query(filter: Filter) -> Select:
        conditions = build_conditions(ModuleRecord, filter, MODULE_COLUMNS, "definition")
        return (
            select(ModuleRecord)
            .where(*conditions)
            .order_by(ModuleRecord.created_at, ModuleRecord.id)
        )

    async def save_module(self, record: Record) -> Record:
        row = await self._add(module_from_dict(record))
        return module_to_dict(row)

    async def find_modules(self, filter: Filter) -> list[Record]:
        return [module_to_dict(row) for row in await self._all(self._module_query(filter))]

    async def count_modules(self, filter: Filter) -> int:
        conditions = build_conditions(ModuleRecord, filter, MODULE_COLUMNS, "definition")
        return await self._count(ModuleRecord, conditions)

    async def find_all_modules(
        self, filter: Filter, meta: PaginationMeta, offset: int, limit: int
    ) -> list[Record]:
        stmt = self._module_query(filter).offset(offset).limit(limit)
        return [module_to_dict(row) for row in await self._all(stmt)]

    async def get_module_versions(self, filter: Filter) -> list[Record]:
        return await self.find_modules(filter)

    async def get_module_latest_version(self, filter: Filter) -> Record | None:
        return latest_version(await self.find_modules(filter))

    async def find_one_module(self, filter: Filter) -> Record | None:
        row = await self._first(self._module_query(filter))
        return module_to_dict(row) if row is not None else None

    async def increase_module_download(self, filter: Filter) -> Record | None:
        await self._ensure_initialized()
        conditions = build_conditions(ModuleRecord, filter, MODULE_COLUMNS, "definition")
        stmt = (
            update(ModuleRecord)
            .where(*conditions)
            .values(downloads=ModuleRecord.downloads + 1)
            .returning(ModuleRecord)
            .execution_options(synchronize_session=False)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            row = result.scalars().first()
            await session.commit()
            return module_to_dict(row) if row is not None else None

    # ==================== providers ====================

    @staticmethod
    def _provider_query(filter: Filter) -> Select:
        conditions = build_conditions(ProviderRecord, filter, PROVIDER_COLUMNS)
        return (
            select(ProviderRecord)
            .where(*conditions)
            .order_by(ProviderRecord.created_at, ProviderRecord.id)
        )

    async def save_provider(self, record: Record) -> Record:
        row = await self._add(provider_from_dict(record))
        return provider_to_dict(row)

    async def find_providers(self, filter: Filter) -> list[Record]:
        return [provider_to_dict(row) for row in await self._all(self._provider_query(filter))]

    async def count_providers(self, filter: Filter) -> int:
        conditions = build_conditions(ProviderRecord, filter, PROVIDER_COLUMNS)
        return await self._count(ProviderRecord, conditions)

    async def find_all_providers(
        self, filter: Filter, meta: PaginationMeta, offset: int, limit: int
    ) -> list[Record]:
        stmt = self._provider_query(filter).offset(offset).limit(limit)
        return [provider_to_dict(row) for row in await self._all(stmt)]

    async def get_provider_versions(self, filter: Filter) -> list[Record]:
        return await self.find_providers(filter)

    async def find_provider_package(self, filter: Filter) -> Record | None:
        row = await self._first(self._provider_query(filter))
        return provider_to_dict(row) if row is not None else None

    # ==================== publishers ====================

    @staticmethod
    def _publisher_query(filter: Filter) -> Select:
        conditions = build_conditions(PublisherRecord, filter, PUBLISHER_COLUMNS)
        return (
            select(PublisherRecord)
            .where(*conditions)
            .order_by(PublisherRecord.created_at, PublisherRecord.id)
        )

    async def save_publisher(self, record: Record) -> Record:
        row = await self._add(publisher_from_dict(record))
        return publisher_to_dict(row)

    async def update_publisher(self, partial: Record) -> Record | None:
        await self._ensure_initialized()
        if partial.get("id"):
            condition = PublisherRecord.id == partial["id"]
        else:
            condition = PublisherRecord.name == partial.get("name")

        changes = publisher_changes(partial)
        if not changes:
            row = await self._first(select(PublisherRecord).where(condition))
            return publisher_to_dict(row) if row is not None else None

        stmt = (
            update(PublisherRecord)
            .where(condition)
            .values(**changes)
            .returning(PublisherRecord)
            .execution_options(synchronize_session=False)
        )
        async with self._session() as session:
            try:
                result = await session.execute(stmt)
            except IntegrityError as e:
                raise _duplicate_error("publishers", "update_publisher", e) from e
            row = result.scalars().first()
            await session.commit()
            return publisher_to_dict(row) if row is not None else None

    async def find_publishers(self, filter: Filter) -> list[Record]:
        return [publisher_to_dict(row) for row in await self._all(self._publisher_query(filter))]

    async def count_publishers(self, filter: Filter) -> int:
        conditions = build_conditions(PublisherRecord, filter, PUBLISHER_COLUMNS)
        return await self._count(PublisherRecord, conditions)

    async def find_all_publishers(
        self, filter: Filter, meta: PaginationMeta, offset: int, limit: int
    ) -> list[Record]:
        stmt = self._publisher_query(filter).offset(offset).limit(limit)
        return [publisher_to_dict(row) for row in await self._all(stmt)]

    async def find_one_publisher(self, filter: Filter) -> Record | None:
        row = await self._first(self._publisher_query(filter))
        return publisher_to_dict(row) if row is not None else None
