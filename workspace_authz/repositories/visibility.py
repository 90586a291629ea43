"""
Resource Visibility Repository
Permission-scoped, paginated listing over any resource table
"""

from typing import Generic, List, Tuple, Type, TypeVar, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import exists, func, select, true
import structlog

from workspace_authz.core.database import translate_storage_errors
from workspace_authz.core.permissions import GroupSet, GroupsLike
from workspace_authz.models.grant import PermissionGrant
from workspace_authz.models.resource import Resource, ResourceAncestor
from workspace_authz.repositories.base import polymorphic_entity

logger = structlog.get_logger()

ModelType = TypeVar("ModelType", bound=Resource)


class VisibilityRepository(Generic[ModelType]):
    """
    Restricts a resource table to the rows a group set may see

    A row is visible when some grant for the permission, held by one of the
    groups, names an ancestor-or-self of the row's resource path. Ancestors
    come from the ``resource_ancestor`` closure table, so the grant join is an
    indexed equality rather than a per-row prefix test.
    """

    def __init__(self, model: Type[ModelType] = Resource):
        self.model = model
        self.entity = polymorphic_entity(model)

    def visibility_clause(self, groups: GroupsLike, permission: str):
        """
        Reusable predicate over ``self.entity``

        ``true()`` for super-admins; otherwise a correlated EXISTS against the
        closure and grant tables. Soft-delete and workspace filters are not
        part of it.
        """
        groups = GroupSet.of(groups)
        if groups.is_super_admin:
            return true()
        return exists().where(
            ResourceAncestor.resource_id == self.entity.id,
            PermissionGrant.resource_prefix == ResourceAncestor.ancestor_path,
            PermissionGrant.permission == permission,
            PermissionGrant.group_id.in_(sorted(groups.ids)),
        )

    def _scope(self, groups: GroupSet, workspace_id: UUID, permission: str) -> list:
        criteria = [
            self.entity.workspace_id == workspace_id,
            self.entity.deleted_at.is_(None),
        ]
        if not groups.is_super_admin:
            criteria.append(self.visibility_clause(groups, permission))
        return criteria

    async def list_visible(
        self,
        db: AsyncSession,
        *,
        groups: GroupsLike,
        workspace_id: Union[UUID, str],
        permission: str,
        page: int,
        page_size: int
    ) -> Tuple[List[ModelType], int]:
        """
        One page of visible resources plus the size of the whole visible set

        Args:
            db: Database session
            groups: Caller's group set
            workspace_id: Workspace to list
            permission: Permission required on each row
            page: Zero-based page number
            page_size: Maximum rows per page

        Returns:
            (resources newest first, total visible count)

        Raises:
            ValueError: Negative page or a page size below one
        """
        if page < 0:
            raise ValueError(f"Page must be zero or greater, got {page}")
        if page_size < 1:
            raise ValueError(f"Page size must be at least 1, got {page_size}")

        groups = GroupSet.of(groups)
        if not groups:
            return [], 0

        if not isinstance(workspace_id, UUID):
            workspace_id = UUID(str(workspace_id))

        criteria = self._scope(groups, workspace_id, permission)
        query = (
            select(self.entity, func.count().over().label("total_count"))
            .where(*criteria)
            .order_by(self.entity.created_at.desc(), self.entity.id.asc())
            .offset(page * page_size)
            .limit(page_size)
        )

        with translate_storage_errors("visibility_listing"):
            result = await db.execute(query)
            rows = result.all()

            if rows:
                total = rows[0].total_count
            elif page == 0:
                total = 0
            else:
                # Past the end: the window count has no row to ride on
                total = await db.scalar(
                    select(func.count()).select_from(self.entity).where(*criteria)
                )

        items = [row[0] for row in rows]
        logger.debug(
            "Visible resources listed",
            model=self.model.__name__,
            workspace_id=str(workspace_id),
            permission=permission,
            page=page,
            page_size=page_size,
            returned=len(items),
            total=total,
            super_admin=groups.is_super_admin,
        )
        return items, total
