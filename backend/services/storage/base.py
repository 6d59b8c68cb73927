"""
Base storage backend interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from models.pagination import PaginationMeta

Record = dict[str, Any]
Filter = dict[str, Any]


class StorageBackend(ABC):
    """
    Storage backend 추상 인터페이스.

    모든 storage backend는 이 인터페이스를 구현해야 함.

    Filters are dicts of field -> value equality. Dotted keys such as
    ``platforms.os`` address fields of list elements; dotted keys sharing a
    prefix must be satisfied by the same element.
    """

    #: Identifying name of the storage engine
    store_type: str = ""

    @property
    @abstractmethod
    def module_db(self) -> Any:
        """Raw module collection/table handle."""
        ...

    @property
    @abstractmethod
    def provider_db(self) -> Any:
        """Raw provider collection/table handle."""
        ...

    @property
    @abstractmethod
    def publisher_db(self) -> Any:
        """Raw publisher collection/table handle."""
        ...

    @abstractmethod
    async def initialize(self) -> None:
        """Storage 초기화."""
        ...

    @abstractmethod
    async def finalize(self) -> None:
        """Storage 정리 및 종료."""
        ...

    # ==================== modules ====================

    @abstractmethod
    async def save_module(self, record: Record) -> Record:
        """
        모듈 저장.

        Args:
            record: Normalized module record

        Returns:
            Stored record including id, downloads and createdAt
        """
        ...

    @abstractmethod
    async def find_modules(self, filter: Filter) -> list[Record]:
        """Unbounded module query."""
        ...

    async def count_modules(self, filter: Filter) -> int:
        return len(await self.find_modules(filter))

    @abstractmethod
    async def find_all_modules(
        self, filter: Filter, meta: PaginationMeta, offset: int, limit: int
    ) -> list[Record]:
        """Bounded module query: records offset..offset+limit."""
        ...

    @abstractmethod
    async def get_module_versions(self, filter: Filter) -> list[Record]:
        ...

    @abstractmethod
    async def get_module_latest_version(self, filter: Filter) -> Record | None:
        """Highest version among matching modules, per the version ordering policy."""
        ...

    @abstractmethod
    async def find_one_module(self, filter: Filter) -> Record | None:
        ...

    @abstractmethod
    async def increase_module_download(self, filter: Filter) -> Record | None:
        """
        다운로드 수 증가.

        Must be a true increment primitive of the engine, safe under
        concurrent calls.

        Returns:
            Updated record or None if nothing matched
        """
        ...

    # ==================== providers ====================

    @abstractmethod
    async def save_provider(self, record: Record) -> Record:
        ...

    @abstractmethod
    async def find_providers(self, filter: Filter) -> list[Record]:
        ...

    async def count_providers(self, filter: Filter) -> int:
        return len(await self.find_providers(filter))

    @abstractmethod
    async def find_all_providers(
        self, filter: Filter, meta: PaginationMeta, offset: int, limit: int
    ) -> list[Record]:
        ...

    @abstractmethod
    async def get_provider_versions(self, filter: Filter) -> list[Record]:
        ...

    @abstractmethod
    async def find_provider_package(self, filter: Filter) -> Record | None:
        ...

    # ==================== publishers ====================

    @abstractmethod
    async def save_publisher(self, record: Record) -> Record:
        ...

    @abstractmethod
    async def update_publisher(self, partial: Record) -> Record | None:
        """
        퍼블리셔 수정.

        The publisher is identified by ``id`` when present, otherwise by
        ``name``; remaining keys are set on the stored record.
        """
        ...

    @abstractmethod
    async def find_publishers(self, filter: Filter) -> list[Record]:
        ...

    async def count_publishers(self, filter: Filter) -> int:
        return len(await self.find_publishers(filter))

    @abstractmethod
    async def find_all_publishers(
        self, filter: Filter, meta: PaginationMeta, offset: int, limit: int
    ) -> list[Record]:
        ...

    @abstractmethod
    async def find_one_publisher(self, filter: Filter) -> Record | None:
        ...
