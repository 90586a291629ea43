"""
Base Resource Repository
Read-only lookups shared by every resource kind
"""

from typing import Generic, Optional, Type, TypeVar, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import with_polymorphic
import structlog

from workspace_authz.core.database import translate_storage_errors
from workspace_authz.models.resource import Resource

logger = structlog.get_logger()

ModelType = TypeVar("ModelType", bound=Resource)


def polymorphic_entity(model: Type[Resource]):
    """Selectable entity for ``model``; the base model loads every kind's columns"""
    if model is Resource:
        return with_polymorphic(Resource, "*")
    return model


class ResourceRepository(Generic[ModelType]):
    """
    Read-only resource repository
    """

    def __init__(self, model: Type[ModelType] = Resource):
        """
        Initialize resource repository

        Args:
            model: Resource model class (the polymorphic base or one kind)
        """
        self.model = model
        self.entity = polymorphic_entity(model)

    async def get(
        self,
        db: AsyncSession,
        id: Union[UUID, str],
        include_deleted: bool = False
    ) -> Optional[ModelType]:
        """
        Get a single resource by ID

        Args:
            db: Database session
            id: Resource ID
            include_deleted: Include soft-deleted resources

        Returns:
            Resource instance or None
        """
        resource_id = id if isinstance(id, UUID) else UUID(str(id))
        query = select(self.entity).where(self.entity.id == resource_id)
        if not include_deleted:
            query = query.where(self.entity.deleted_at.is_(None))

        with translate_storage_errors("resource_lookup"):
            result = await db.execute(query)
            record = result.scalar_one_or_none()

        if record:
            logger.debug("Resource retrieved", model=self.model.__name__, id=str(resource_id))
        else:
            logger.debug("Resource not found", model=self.model.__name__, id=str(resource_id))
        return record
