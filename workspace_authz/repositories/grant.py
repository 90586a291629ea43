"""
Grant Repository
Batched lookups over (group, resource prefix, permission) grant records
"""

from typing import FrozenSet
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import and_, exists, select
import structlog

from workspace_authz.core.database import translate_storage_errors
from workspace_authz.core.permissions import GroupSet, ResourcePath
from workspace_authz.models.grant import PermissionGrant
from workspace_authz.models.resource import Resource

logger = structlog.get_logger()


class GrantRepository:
    """
    Read-only access to the grant store

    Every lookup is one statement covering all groups and all prefixes of the
    path, regardless of path depth or group count.
    """

    @staticmethod
    def _matching_grants(groups: GroupSet, path: ResourcePath):
        return and_(
            PermissionGrant.group_id.in_(sorted(groups.ids)),
            PermissionGrant.resource_prefix.in_(path.prefix_strings()),
        )

    @staticmethod
    def _path_deleted(path: ResourcePath):
        return exists().where(
            Resource.resource_path == str(path),
            Resource.deleted_at.is_not(None),
        )

    async def has_grant(
        self,
        db: AsyncSession,
        groups: GroupSet,
        path: ResourcePath,
        permission: str
    ) -> bool:
        """
        Whether any group holds ``permission`` on any prefix of ``path``

        A soft-deleted resource at exactly ``path`` never matches, in the same
        statement as the grant test.
        """
        granted = exists().where(
            self._matching_grants(groups, path),
            PermissionGrant.permission == permission,
        )
        query = select(and_(granted, ~self._path_deleted(path)))

        with translate_storage_errors("grant_lookup"):
            result = await db.execute(query)
            return bool(result.scalar())

    async def permissions_on(
        self,
        db: AsyncSession,
        groups: GroupSet,
        path: ResourcePath
    ) -> FrozenSet[str]:
        """All permission names granted on ``path`` through any prefix and group"""
        query = (
            select(PermissionGrant.permission)
            .distinct()
            .where(self._matching_grants(groups, path))
            .where(~self._path_deleted(path))
        )

        with translate_storage_errors("grant_listing"):
            result = await db.execute(query)
            return frozenset(result.scalars().all())


grant_repository = GrantRepository()
