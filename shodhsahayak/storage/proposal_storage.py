"""Persistent proposal store on SQLAlchemy (PostgreSQL in production, SQLite locally)."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, TypeVar

from sqlalchemy import (
    DateTime,
    Engine,
    Integer,
    Text,
    UniqueConstraint,
    create_engine,
    desc,
    func,
    or_,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

from shodhsahayak.core.config import get_settings
from shodhsahayak.core.exceptions import StorageError
from shodhsahayak.core.resilience import RetryPolicy, store_policy
from shodhsahayak.domain.models import AgencyCount, ProposalKey, ProposalRecord, StoredProposal

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class ProposalModel(Base):
    """SQLAlchemy model for the proposals table."""

    __tablename__ = "proposals"
    __table_args__ = (UniqueConstraint("title", "link", name="proposals_title_link_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    agency: Mapped[str | None] = mapped_column(Text)
    from_date: Mapped[str | None] = mapped_column(Text)
    deadline: Mapped[str | None] = mapped_column(Text)
    link: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


def create_store_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True, pool_size=5, max_overflow=5)


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ProposalStorage:
    """Append-only proposal table with ``(title, link)`` as the natural key."""

    def __init__(self, engine: Engine, policy: RetryPolicy | None = None) -> None:
        self.engine = engine
        self.policy = policy or store_policy()

    def _insert_statement(self):
        if self.engine.dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif self.engine.dialect.name == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise StorageError(f"Unsupported database dialect: {self.engine.dialect.name}")
        return insert(ProposalModel).on_conflict_do_nothing(index_elements=["title", "link"])

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return await self.policy.call(asyncio.to_thread, func, *args)
        except SQLAlchemyError as exc:
            logger.error("Proposal store operation %s failed: %s", func.__name__, exc)
            raise StorageError(f"Could not reach proposal store: {exc}") from exc

    # -- sync bodies, executed in a worker thread --

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def _ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(select(1))

    def _existing_keys(self) -> set[ProposalKey]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(ProposalModel.title, ProposalModel.link))
            return {(title, link) for title, link in rows}

    def _insert_if_absent(self, records: list[ProposalRecord]) -> int:
        statement = self._insert_statement()
        created_at = datetime.now(timezone.utc)
        inserted = 0
        with self.engine.begin() as conn:
            for record in records:
                result = conn.execute(
                    statement.values(
                        title=record.title,
                        agency=record.agency,
                        from_date=record.start_date,
                        deadline=record.end_date,
                        link=record.link,
                        created_at=created_at,
                    )
                )
                inserted += max(result.rowcount, 0)
        return inserted

    def _list_proposals(self, page: int, limit: int) -> tuple[list[StoredProposal], int]:
        with Session(self.engine) as session:
            total = session.scalar(select(func.count()).select_from(ProposalModel)) or 0
            rows = session.scalars(
                select(ProposalModel)
                .order_by(ProposalModel.created_at.desc(), ProposalModel.deadline.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            return [StoredProposal.model_validate(row) for row in rows], total

    def _by_agency(self, agency: str) -> list[StoredProposal]:
        with Session(self.engine) as session:
            rows = session.scalars(
                select(ProposalModel)
                .where(ProposalModel.agency.ilike(_like(agency), escape="\\"))
                .order_by(ProposalModel.created_at.desc(), ProposalModel.deadline.desc())
            ).all()
            return [StoredProposal.model_validate(row) for row in rows]

    def _search(self, query: str) -> list[StoredProposal]:
        pattern = _like(query)
        with Session(self.engine) as session:
            rows = session.scalars(
                select(ProposalModel)
                .where(
                    or_(
                        ProposalModel.title.ilike(pattern, escape="\\"),
                        ProposalModel.agency.ilike(pattern, escape="\\"),
                    )
                )
                .order_by(ProposalModel.created_at.desc())
            ).all()
            return [StoredProposal.model_validate(row) for row in rows]

    def _agency_counts(self) -> list[AgencyCount]:
        count = func.count().label("proposal_count")
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(ProposalModel.agency, count)
                .where(ProposalModel.agency.is_not(None))
                .group_by(ProposalModel.agency)
                .order_by(desc("proposal_count"), ProposalModel.agency)
            )
            return [AgencyCount(agency=agency, proposal_count=total) for agency, total in rows]

    # -- async API --

    async def initialize(self) -> None:
        await self._run(self.create_schema)
        logger.info("Table 'proposals' verified/created.")

    async def ping(self) -> bool:
        try:
            await self._run(self._ping)
        except StorageError:
            return False
        return True

    async def existing_keys(self) -> set[ProposalKey]:
        return await self._run(self._existing_keys)

    async def insert_if_absent(self, records: Iterable[ProposalRecord]) -> int:
        records = list(records)
        if not records:
            return 0
        return await self._run(self._insert_if_absent, records)

    async def list_proposals(self, page: int, limit: int) -> tuple[list[StoredProposal], int]:
        return await self._run(self._list_proposals, page, limit)

    async def by_agency(self, agency: str) -> list[StoredProposal]:
        return await self._run(self._by_agency, agency)

    async def search(self, query: str) -> list[StoredProposal]:
        return await self._run(self._search, query)

    async def agency_counts(self) -> list[AgencyCount]:
        return await self._run(self._agency_counts)


@lru_cache(maxsize=1)
def get_proposal_storage() -> ProposalStorage:
    """Get or create the singleton store bound to the configured database."""
    settings = get_settings()
    return ProposalStorage(
        create_store_engine(settings.DATABASE_URL),
        policy=store_policy(
            max_attempts=settings.STORE_MAX_ATTEMPTS,
            delay=settings.STORE_RETRY_DELAY_SECONDS,
        ),
    )
