"""SQLite decision storage using async SQLAlchemy.

Each decision is one row holding its scenario tree as a JSON document.
Rows carry a version number; tree updates are compare-and-swap on it, so
two concurrent expansions of different nodes both land instead of the
later write silently dropping the earlier one.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from sqlalchemy import DateTime, Index, Integer, String, Text, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from decision_futures.models import Decision, Scenario
from decision_futures.storage.base import (
    DecisionAccessDeniedError,
    DecisionConflictError,
    DecisionNotFoundError,
    DecisionStore,
    TreeMutation,
)

logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 3


class Base(DeclarativeBase):
    pass


class DecisionRow(Base):
    """A decision and its scenario tree."""

    __tablename__ = "decisions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String)
    decision_text: Mapped[str] = mapped_column(Text)
    scenarios: Mapped[str] = mapped_column(Text)  # JSON list of scenario trees
    created_at: Mapped[datetime] = mapped_column(DateTime)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=1)

    __table_args__ = (Index("ix_decisions_user_created", "user_id", "created_at"),)


def _utc_naive_now() -> datetime:
    # SQLite DateTime columns drop tzinfo; store naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


class SQLiteDecisionStore(DecisionStore):
    """SQLite decision store using async SQLAlchemy."""

    def __init__(self, db_path: str | Path = "decisions.db"):
        """Initialize SQLite storage.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._engine = create_async_engine(
            f"sqlite+aiosqlite:///{self.db_path}",
            echo=False,
        )
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)
        self._initialized = False

    async def _ensure_initialized(self) -> None:
        """Create tables if they don't exist."""
        if not self._initialized:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            self._initialized = True

    async def _get_session(self) -> AsyncSession:
        await self._ensure_initialized()
        return self._session_factory()

    @staticmethod
    def _dump_scenarios(scenarios: list[Scenario]) -> str:
        return json.dumps([s.to_wire() for s in scenarios], ensure_ascii=False)

    @staticmethod
    def _load_scenarios(data: str) -> list[Scenario]:
        return [Scenario.model_validate(s) for s in json.loads(data)]

    def _row_to_decision(self, row: DecisionRow) -> Decision:
        return Decision(
            id=row.id,
            user_id=row.user_id,
            decision_text=row.decision_text,
            scenarios=self._load_scenarios(row.scenarios),
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
        )

    async def create_decision(
        self, user_id: str, decision_text: str, scenarios: list[Scenario]
    ) -> Decision:
        row = DecisionRow(
            id=uuid4().hex,
            user_id=user_id,
            decision_text=decision_text,
            scenarios=self._dump_scenarios(scenarios),
            created_at=_utc_naive_now(),
            updated_at=None,
            version=1,
        )
        async with await self._get_session() as session:
            session.add(row)
            await session.commit()
        logger.info(f"Created decision {row.id} for {user_id} ({len(scenarios)} scenarios)")
        return self._row_to_decision(row)

    async def get_decision(self, decision_id: str) -> Decision | None:
        async with await self._get_session() as session:
            row = await session.get(DecisionRow, decision_id)
            return self._row_to_decision(row) if row else None

    async def list_decisions(self, user_id: str, limit: int = 50) -> list[Decision]:
        async with await self._get_session() as session:
            stmt = (
                select(DecisionRow)
                .where(DecisionRow.user_id == user_id)
                .order_by(DecisionRow.created_at.desc())
                .limit(limit)
            )
            result = await session.execute(stmt)
            return [self._row_to_decision(row) for row in result.scalars().all()]

    async def _get_owned_row(self, session: AsyncSession, decision_id: str, user_id: str) -> DecisionRow:
        row = await session.get(DecisionRow, decision_id)
        if row is None:
            raise DecisionNotFoundError(f"Decision {decision_id} not found")
        if row.user_id != user_id:
            raise DecisionAccessDeniedError(f"Not allowed to modify decision {decision_id}")
        return row

    async def update_scenarios(
        self, decision_id: str, user_id: str, mutate: TreeMutation
    ) -> Decision:
        for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
            async with await self._get_session() as session:
                row = await self._get_owned_row(session, decision_id, user_id)
                read_version = row.version
                scenarios = mutate(self._load_scenarios(row.scenarios))
                now = _utc_naive_now()

                stmt = (
                    update(DecisionRow)
                    .where(DecisionRow.id == decision_id, DecisionRow.version == read_version)
                    .values(
                        scenarios=self._dump_scenarios(scenarios),
                        updated_at=now,
                        version=read_version + 1,
                    )
                    .execution_options(synchronize_session=False)
                )
                result = await session.execute(stmt)
                if result.rowcount == 1:
                    await session.commit()
                    return Decision(
                        id=row.id,
                        user_id=row.user_id,
                        decision_text=row.decision_text,
                        scenarios=scenarios,
                        created_at=_as_utc(row.created_at),
                        updated_at=_as_utc(now),
                    )
                await session.rollback()

            logger.warning(
                f"Decision {decision_id} changed during update (attempt {attempt}/{MAX_UPDATE_ATTEMPTS})"
            )

        raise DecisionConflictError(
            f"Decision {decision_id} kept changing; update abandoned after {MAX_UPDATE_ATTEMPTS} attempts"
        )

    async def delete_decision(self, decision_id: str, user_id: str) -> None:
        async with await self._get_session() as session:
            row = await self._get_owned_row(session, decision_id, user_id)
            await session.delete(row)
            await session.commit()
        logger.info(f"Deleted decision {decision_id}")

    async def close(self) -> None:
        """Close the database connection."""
        await self._engine.dispose()
