import asyncio
from typing import Any, Awaitable, Iterable, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Generic, Protocol, runtime_checkable
from sqlalchemy import Select, select, func, delete, update
from sqlalchemy.exc import SQLAlchemyError, DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from counterdesk.core.errors import StoreError
from counterdesk.core.logger import logger
from counterdesk.core.settings import settings
from .filters import Eq, FilterSpec, compile_filters

# --- models must expose .id ---
@runtime_checkable
class HasId(Protocol):
    id: Any  # PK column

ModelT = TypeVar("ModelT", bound=HasId)
T = TypeVar("T")


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, asyncio.TimeoutError):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, OperationalError)


class BaseRepository(Generic[ModelT]):
    """
    Store adapter over one table.

    Every call goes through `_guard`, which applies the caller's deadline and
    turns driver/ORM failures into `StoreError` tagged with the operation and
    the collection (table) name.
    """

    def __init__(self, model: Type[ModelT]):
        self.model = model
        self.collection: str = getattr(model, "__tablename__", model.__name__)

    async def _guard(self, operation: str, aw: Awaitable[T], timeout: Optional[float] = None) -> T:
        deadline = settings.STORE_TIMEOUT_SEC if timeout is None else timeout
        try:
            return await asyncio.wait_for(aw, timeout=deadline)
        except asyncio.TimeoutError as e:
            logger.error("[Store] %s on %s timed out after %.2fs", operation, self.collection, deadline)
            raise StoreError(operation, self.collection, retryable=True, reason="timeout") from e
        except SQLAlchemyError as e:
            logger.error("[Store] %s on %s failed: %s", operation, self.collection, e, exc_info=True)
            raise StoreError(operation, self.collection, retryable=_is_retryable(e), reason=type(e).__name__) from e

    # ---------------- reads ----------------

    async def find(
        self,
        session: AsyncSession,
        spec: FilterSpec = (),
        *,
        order_by: Sequence[Any] | None = None,
        offset: int = 0,
        limit: int | None = None,
        options: Sequence[Any] | None = None,
        timeout: Optional[float] = None,
    ) -> Tuple[list[ModelT], int]:
        """
        Filtered, ordered, range-limited read plus the total matching count.
        The count ignores offset/limit.
        """
        where = compile_filters(self.model, spec)
        if order_by is None:
            order_by = (self.model.id.desc(),)

        page_q: Select = select(self.model).where(*where).order_by(*order_by).offset(offset)
        if limit is not None:
            page_q = page_q.limit(limit)
        if options:
            page_q = page_q.options(*options).execution_options(populate_existing=True)
        count_q: Select = select(func.count(self.model.id)).select_from(self.model).where(*where)

        async def _run() -> Tuple[list[ModelT], int]:
            items = list((await session.execute(page_q)).scalars().all())
            total = int(await session.scalar(count_q) or 0)
            return items, total

        return await self._guard("find", _run(), timeout)

    async def find_all(
        self,
        session: AsyncSession,
        spec: FilterSpec = (),
        *,
        order_by: Sequence[Any] | None = None,
        limit: int | None = None,
        options: Sequence[Any] | None = None,
        timeout: Optional[float] = None,
    ) -> list[ModelT]:
        where = compile_filters(self.model, spec)
        if order_by is None:
            order_by = (self.model.id.desc(),)
        stmt: Select = select(self.model).where(*where).order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        if options:
            stmt = stmt.options(*options).execution_options(populate_existing=True)

        async def _run() -> list[ModelT]:
            return list((await session.execute(stmt)).scalars().all())

        return await self._guard("find_all", _run(), timeout)

    async def find_one(
        self,
        session: AsyncSession,
        spec: FilterSpec,
        *,
        options: Sequence[Any] | None = None,
        timeout: Optional[float] = None,
    ) -> Optional[ModelT]:
        stmt: Select = select(self.model).where(*compile_filters(self.model, spec)).limit(1)
        if options:
            # refresh relationships of rows already in the identity map
            stmt = stmt.options(*options).execution_options(populate_existing=True)

        async def _run() -> Optional[ModelT]:
            return (await session.execute(stmt)).scalars().first()

        return await self._guard("find_one", _run(), timeout)

    async def get_by_id(
        self,
        id_: Any,
        session: AsyncSession,
        *,
        options: Sequence[Any] | None = None,
        timeout: Optional[float] = None,
    ) -> Optional[ModelT]:
        return await self.find_one(session, (Eq("id", id_),), options=options, timeout=timeout)

    # ---------------- writes ----------------

    async def insert(self, entity: ModelT, session: AsyncSession, *, timeout: Optional[float] = None) -> ModelT:
        session.add(entity)
        await self._guard("insert", session.flush([entity]), timeout)
        return entity

    async def insert_many(
        self, entities: Iterable[ModelT], session: AsyncSession, *, timeout: Optional[float] = None
    ) -> list[ModelT]:
        items = list(entities)
        session.add_all(items)
        await self._guard("insert_many", session.flush(items), timeout)
        return items

    async def update_where(
        self,
        session: AsyncSession,
        spec: FilterSpec,
        patch: Mapping[str, Any],
        *,
        timeout: Optional[float] = None,
    ) -> int:
        """
        Single UPDATE ... WHERE statement; the filter doubles as a guard
        (compare-and-set). Returns the number of rows changed. Loaded rows are
        synced in Python (no RETURNING).
        """
        where = compile_filters(self.model, spec)
        if not where:
            raise ValueError("update_where needs at least one predicate")
        stmt = (
            update(self.model)
            .where(*where)
            .values(**patch)
            .execution_options(synchronize_session="evaluate")
        )

        async def _run() -> int:
            res = await session.execute(stmt)
            await session.flush()
            return int(res.rowcount or 0)

        return await self._guard("update", _run(), timeout)

    async def update_fields(
        self,
        entity: ModelT,
        data: Mapping[str, Any],
        session: AsyncSession,
        *,
        allow: set[str] | None = None,
        deny: set[str] | None = None,
        timeout: Optional[float] = None,
    ) -> ModelT:
        for k, v in data.items():
            if allow and k not in allow:
                continue
            if deny and k in deny:
                continue
            setattr(entity, k, v)
        await self._guard("update", session.flush([entity]), timeout)
        return entity

    async def delete_where(self, session: AsyncSession, spec: FilterSpec, *, timeout: Optional[float] = None) -> int:
        where = compile_filters(self.model, spec)
        if not where:
            raise ValueError("delete_where needs at least one predicate")
        stmt = delete(self.model).where(*where).execution_options(synchronize_session="evaluate")

        async def _run() -> int:
            res = await session.execute(stmt)
            await session.flush()
            return int(res.rowcount or 0)

        return await self._guard("delete", _run(), timeout)
