"""
Base repository pattern for database operations.
"""

from typing import Generic, TypeVar, Type, Optional, List

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    """
    Base repository providing CRUD operations.

    All database access goes through repositories so that components can be
    exercised against any session (PostgreSQL in production, SQLite in tests).
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Model fields

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        logger.debug(f"Created {self.model.__name__}: {instance.id}")
        return instance

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """
        Get record by ID.

        Args:
            id: Record ID

        Returns:
            Model instance or None
        """
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def update(self, id: int, **kwargs) -> int:
        """
        Update a record.

        Args:
            id: Record ID
            **kwargs: Fields to update

        Returns:
            Number of rows updated
        """
        stmt = update(self.model).where(self.model.id == id).values(**kwargs)

        result = await self.session.execute(stmt)
        await self.session.flush()

        if result.rowcount:
            logger.debug(f"Updated {self.model.__name__}: {id}")

        return result.rowcount

    async def count(self) -> int:
        """
        Count total records.

        Returns:
            Total count
        """
        result = await self.session.execute(
            select(func.count()).select_from(self.model)
        )
        return result.scalar_one()

    async def list_where(self, *criteria, order_by=None, limit: Optional[int] = None) -> List[ModelType]:
        """
        List records matching SQLAlchemy criteria.

        Args:
            *criteria: Filter expressions
            order_by: Column(s) to order by (defaults to id)
            limit: Maximum number of records to return

        Returns:
            List of model instances
        """
        query = select(self.model).where(*criteria)
        if order_by is None:
            query = query.order_by(self.model.id)
        elif isinstance(order_by, (list, tuple)):
            query = query.order_by(*order_by)
        else:
            query = query.order_by(order_by)
        if limit:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())
