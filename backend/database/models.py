"""
PostgreSQL database models for the registry store.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from database.base import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class ModuleRecord(Base):
    """
    모듈 저장 테이블.

    Free-form definition keys (root, submodules, ...) live in ``definition``.
    """

    __tablename__ = "modules"
    __table_args__ = (
        UniqueConstraint("namespace", "name", "provider", "version", name="uq_modules_key"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    namespace: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    version: Mapped[str] = mapped_column(String(100), nullable=False)
    owner: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    definition: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    downloads: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<ModuleRecord({self.namespace}/{self.name}/{self.provider} {self.version})>"


class ProviderRecord(Base):
    """
    프로바이더 저장 테이블.

    ``platforms`` holds the ordered list of {os, arch, location, filename, shasum}.
    """

    __tablename__ = "providers"
    __table_args__ = (
        UniqueConstraint("namespace", "type", "version", name="uq_providers_key"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    namespace: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    version: Mapped[str] = mapped_column(String(100), nullable=False)
    platforms: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<ProviderRecord({self.namespace}/{self.type} {self.version})>"


class PublisherRecord(Base):
    """퍼블리셔 저장 테이블."""

    __tablename__ = "publishers"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    trust_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    gpg_keys: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<PublisherRecord(name={self.name})>"
