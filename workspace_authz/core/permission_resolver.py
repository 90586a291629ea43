"""
Hierarchical permission resolution.

A group set holds a permission on a resource path when any of its groups has
a grant for that permission on the path or on any of its ancestors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import FrozenSet
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from workspace_authz.core.permissions import ALL_PERMISSIONS, GroupSet, ResourcePath
from workspace_authz.repositories.grant import GrantRepository, grant_repository

logger = structlog.get_logger()


class PermissionResolver(ABC):
    @abstractmethod
    async def allowed(
        self,
        db: AsyncSession,
        identity: UUID,
        groups: GroupSet,
        resource_path: ResourcePath,
        permission: str,
    ) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def effective_permissions(
        self,
        db: AsyncSession,
        identity: UUID,
        groups: GroupSet,
        resource_path: ResourcePath,
    ) -> FrozenSet[str]:
        raise NotImplementedError


class GrantStorePermissionResolver(PermissionResolver):
    """Resolves against the grant store with one batched lookup per decision"""

    def __init__(self, grants: GrantRepository) -> None:
        self.grants = grants

    async def allowed(
        self,
        db: AsyncSession,
        identity: UUID,
        groups: GroupSet,
        resource_path: ResourcePath,
        permission: str,
    ) -> bool:
        if groups.is_super_admin:
            logger.debug("Permission granted to super-admin", identity=str(identity), permission=permission)
            return True
        if not groups:
            return False

        # identity is informational: grants are held by groups only
        decision = await self.grants.has_grant(db, groups, resource_path, permission)
        logger.debug(
            "Permission decision",
            identity=str(identity),
            resource_path=str(resource_path),
            permission=permission,
            allowed=decision,
        )
        return decision

    async def effective_permissions(
        self,
        db: AsyncSession,
        identity: UUID,
        groups: GroupSet,
        resource_path: ResourcePath,
    ) -> FrozenSet[str]:
        if groups.is_super_admin:
            return frozenset(ALL_PERMISSIONS)
        if not groups:
            return frozenset()
        return await self.grants.permissions_on(db, groups, resource_path)


permission_resolver = GrantStorePermissionResolver(grant_repository)
